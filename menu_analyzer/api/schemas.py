"""API request/response schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from menu_analyzer.models.domain import AnalysisResult


class AnalyzeMenuRequest(BaseModel):
    """JSON body for URL or pasted-text analysis."""

    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    text: Optional[str] = None
    business_name: Optional[str] = Field(None, alias="businessName", max_length=255)

    @model_validator(mode="after")
    def _exactly_one_source(self):
        # Blank fields count as absent
        if not (self.url or "").strip():
            self.url = None
        if not (self.text or "").strip():
            self.text = None
        if (self.url is None) == (self.text is None):
            raise ValueError("Provide exactly one of url or text")
        return self


class AnalysisRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    business_name: Optional[str]
    menu_source: str
    menu_url: Optional[str]
    menu_file_name: Optional[str]
    revenue_score: int
    analysis_results: AnalysisResult
    created_at: datetime


class AnalysisListResponse(BaseModel):
    success: bool = True
    analyses: List[AnalysisRecordResponse]


class AnalysisDetailResponse(BaseModel):
    success: bool = True
    analysis: AnalysisRecordResponse


class DeleteAnalysisResponse(BaseModel):
    success: bool = True
    message: str = "Analysis deleted successfully"


class UsageResponse(BaseModel):
    usage_date: date
    analyses_used: int
    limit: int
    remaining: int
    resets_on: date


class StatsResponse(BaseModel):
    total_analyses: int
    average_score: int
    best_score: int
    usage: UsageResponse


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None
