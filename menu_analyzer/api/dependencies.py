"""FastAPI dependencies."""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from menu_analyzer.config import Settings, get_settings
from menu_analyzer.core.analysis.engine import AnalysisEngine
from menu_analyzer.core.extraction.resolver import SourceResolver
from menu_analyzer.core.pipeline import MenuAnalysisPipeline
from menu_analyzer.core.validation.validator import ContentValidator
from menu_analyzer.database import UserSession, get_db
from menu_analyzer.services.llm_client import LLMClient, get_llm_client
from menu_analyzer.services.notifier import WebhookNotifier, get_notifier
from menu_analyzer.services.persistence import AnalysisRepository, QuotaManager


def get_config() -> Settings:
    """Get application settings."""
    return get_settings()


def get_llm(settings: Annotated[Settings, Depends(get_config)]) -> LLMClient:
    """Get LLM client."""
    return get_llm_client()


def get_webhook_notifier() -> WebhookNotifier:
    """Get CRM webhook notifier."""
    return get_notifier()


def _credential(request: Request, settings: Settings) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user_id(
    request: Request,
    settings: Annotated[Settings, Depends(get_config)],
    db: Session = Depends(get_db),
) -> str:
    """Resolve the caller's session token to a user id."""
    token = _credential(request, settings)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    session = db.query(UserSession).filter(UserSession.token == token).first()
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid session")
    if session.expires_at is not None and session.expires_at <= datetime.utcnow():
        raise HTTPException(status_code=401, detail="Session expired")

    request.state.user_id = session.user_id
    return session.user_id


def get_quota_manager(db: Session = Depends(get_db)) -> QuotaManager:
    return QuotaManager(db)


def get_repository(db: Session = Depends(get_db)) -> AnalysisRepository:
    return AnalysisRepository(db)


def get_pipeline(
    llm: Annotated[LLMClient, Depends(get_llm)],
    quota: Annotated[QuotaManager, Depends(get_quota_manager)],
) -> MenuAnalysisPipeline:
    """Wire the intake pipeline for one request."""
    return MenuAnalysisPipeline(
        resolver=SourceResolver(llm_client=llm),
        validator=ContentValidator(),
        engine=AnalysisEngine(llm_client=llm),
        quota=quota,
    )
