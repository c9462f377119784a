# menu_analyzer/api/routes/analyses.py
# Endpoints for a user's saved analyses and daily usage

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from menu_analyzer.api.dependencies import (
    get_current_user_id,
    get_quota_manager,
    get_repository,
)
from menu_analyzer.api.schemas import (
    AnalysisDetailResponse,
    AnalysisListResponse,
    AnalysisRecordResponse,
    DeleteAnalysisResponse,
    StatsResponse,
    UsageResponse,
)
from menu_analyzer.services.persistence import AnalysisRepository, QuotaManager

router = APIRouter(prefix="/api", tags=["analyses"])


def _usage(quota: QuotaManager, user_id: str) -> UsageResponse:
    decision = quota.check_and_reserve(user_id)
    return UsageResponse(
        usage_date=decision.usage_date,
        analyses_used=decision.used,
        limit=decision.limit,
        remaining=decision.remaining,
        resets_on=decision.resets_on,
    )


@router.get("/analyses", response_model=AnalysisListResponse)
def list_analyses(
    user_id: Annotated[str, Depends(get_current_user_id)],
    repo: Annotated[AnalysisRepository, Depends(get_repository)],
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    min_score: Optional[int] = Query(None, ge=0, le=100),
):
    # Newest first, only the caller's own records
    records = repo.list_for_user(user_id, skip=skip, limit=limit, min_score=min_score)
    return AnalysisListResponse(
        analyses=[AnalysisRecordResponse.model_validate(r) for r in records]
    )


@router.get("/analyses/stats", response_model=StatsResponse)
def analysis_stats(
    user_id: Annotated[str, Depends(get_current_user_id)],
    repo: Annotated[AnalysisRepository, Depends(get_repository)],
    quota: Annotated[QuotaManager, Depends(get_quota_manager)],
):
    stats = repo.stats_for_user(user_id)
    return StatsResponse(
        total_analyses=stats.total_analyses,
        average_score=stats.average_score,
        best_score=stats.best_score,
        usage=_usage(quota, user_id),
    )


@router.get("/analyses/{analysis_id}", response_model=AnalysisDetailResponse)
def get_analysis(
    analysis_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    repo: Annotated[AnalysisRepository, Depends(get_repository)],
):
    record = repo.get_for_user(user_id, analysis_id)
    return AnalysisDetailResponse(analysis=AnalysisRecordResponse.model_validate(record))


@router.delete("/analyses/{analysis_id}", response_model=DeleteAnalysisResponse)
def delete_analysis(
    analysis_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    repo: Annotated[AnalysisRepository, Depends(get_repository)],
):
    repo.delete_for_user(user_id, analysis_id)
    return DeleteAnalysisResponse()


@router.get("/usage", response_model=UsageResponse)
def usage(
    user_id: Annotated[str, Depends(get_current_user_id)],
    quota: Annotated[QuotaManager, Depends(get_quota_manager)],
):
    # Today's quota, so the UI can show "N analyses left"
    return _usage(quota, user_id)
