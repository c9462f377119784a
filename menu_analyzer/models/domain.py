# menu_analyzer/models/domain.py
"""Domain models shared by the intake and analysis pipeline."""

import math
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_RECOMMENDATIONS = 3


class FileSource(BaseModel):
    """An uploaded PDF or image."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pdf", "image"]
    data: bytes
    declared_mime_type: Optional[str] = None
    file_name: Optional[str] = None


class UrlSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    href: str


class RawTextSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


MenuSource = Union[FileSource, UrlSource, RawTextSource]


class ExtractedText(BaseModel):
    """Plain text pulled out of a menu source."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(min_length=1)
    origin_kind: Literal["pdf", "image", "url", "text"]
    origin_descriptor: str

    @field_validator("content")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be blank")
        return v


class ReasonCode(str, Enum):
    ACCEPTED = "ACCEPTED"
    DUMMY_CONTENT = "DUMMY_CONTENT"
    NON_MENU_DOCUMENT = "NON_MENU_DOCUMENT"
    REPETITIVE_CONTENT = "REPETITIVE_CONTENT"
    TOO_SHORT = "TOO_SHORT"
    NO_PRICES = "NO_PRICES"
    NO_MENU_VOCABULARY = "NO_MENU_VOCABULARY"


class ValidationVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    accepted: bool
    reason_code: ReasonCode
    human_message: str


class AnalysisResult(BaseModel):
    """
    Structured recommendations for one menu.

    Every producer (model, zero-score sentinel, fallback) must yield this shape:
    a score in [0, 100], a non-empty summary and 1-3 non-empty entries per list.
    """

    revenue_score: int = Field(ge=0, le=100)
    summary: str
    quick_wins: List[str]
    visual_appeal: List[str]
    strategic_pricing: List[str]
    menu_design: List[str]

    @field_validator("revenue_score", mode="before")
    @classmethod
    def _coerce_score(cls, v):
        # Models sometimes answer 72.5 or "72"; bools are not scores
        if isinstance(v, bool):
            raise ValueError("revenue_score must be a number")
        if isinstance(v, str):
            v = float(v.strip())
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError("revenue_score must be finite")
            v = math.floor(v + 0.5)
        if isinstance(v, int):
            # 0 is reserved for the not-a-menu answer, so negatives are not clamped into it
            if v < 0:
                raise ValueError("revenue_score must not be negative")
            return min(100, v)
        raise ValueError("revenue_score must be a number")

    @field_validator("summary")
    @classmethod
    def _summary_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("summary must not be empty")
        return v

    @field_validator("quick_wins", "visual_appeal", "strategic_pricing", "menu_design")
    @classmethod
    def _clean_recommendations(cls, v: List[str]) -> List[str]:
        cleaned = [str(item).strip() for item in v if item is not None and str(item).strip()]
        if not cleaned:
            raise ValueError("at least one recommendation is required")
        return cleaned[:MAX_RECOMMENDATIONS]
