# menu_analyzer/services/persistence.py
# Daily quota and analysis records, always scoped to one user

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menu_analyzer.config import get_settings
from menu_analyzer.core.errors import AnalysisForbidden, AnalysisNotFound, QuotaExceeded
from menu_analyzer.database.models import DailyUsage, MenuAnalysis
from menu_analyzer.models.domain import AnalysisResult


@dataclass(frozen=True)
class SourceMetadata:
    """What the caller submitted, as recorded next to the analysis."""

    menu_source: str  # file, url or text
    business_name: Optional[str] = None
    menu_url: Optional[str] = None
    menu_file_name: Optional[str] = None


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    used: int
    limit: int
    usage_date: date
    reason_code: Optional[str] = None

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def resets_on(self) -> date:
        return self.usage_date + timedelta(days=1)


DAILY_LIMIT_REACHED = "DAILY_LIMIT_REACHED"


def _take_usage_slot(db: Session, user_id: str, day: date, now: datetime, limit: int) -> bool:
    """
    Create-or-increment the (user, day) counter, but only while it is under
    the limit. Returns whether a slot was taken.

    The database does the read-modify-write, so concurrent requests can never
    push the counter past the limit.
    """
    if limit <= 0:
        return False

    dialect = db.get_bind().dialect.name
    values = dict(user_id=user_id, usage_date=day, analyses_used=1, last_analysis_at=now)

    if dialect in ("postgresql", "sqlite"):
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert

        stmt = insert(DailyUsage).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[DailyUsage.user_id, DailyUsage.usage_date],
            set_={
                "analyses_used": DailyUsage.analyses_used + 1,
                "last_analysis_at": now,
            },
            where=DailyUsage.analyses_used < limit,
        )
        return db.execute(stmt).rowcount > 0

    if dialect == "mysql":
        from sqlalchemy.dialects.mysql import insert

        # ON DUPLICATE KEY rowcounts cannot tell "unchanged" from "updated" here,
        # so use a conditional UPDATE, then INSERT IGNORE for a new day
        bump = (
            update(DailyUsage)
            .where(
                DailyUsage.user_id == user_id,
                DailyUsage.usage_date == day,
                DailyUsage.analyses_used < limit,
            )
            .values(analyses_used=DailyUsage.analyses_used + 1, last_analysis_at=now)
        )
        if db.execute(bump).rowcount > 0:
            return True
        if db.execute(insert(DailyUsage).values(**values).prefix_with("IGNORE")).rowcount > 0:
            return True
        # Lost an insert race for the first slot of the day
        return db.execute(bump).rowcount > 0

    raise NotImplementedError(f"Atomic usage increment not supported on {dialect}")


class QuotaManager:
    """Per-user daily ceiling plus the write path for successful analyses."""

    def __init__(
        self,
        db: Session,
        daily_limit: Optional[int] = None,
        timezone: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = get_settings()
        self.db = db
        self.daily_limit = daily_limit if daily_limit is not None else settings.DAILY_ANALYSIS_LIMIT
        self.tz = ZoneInfo(timezone or settings.USAGE_TIMEZONE)
        self.clock = clock or (lambda: datetime.now(self.tz))

    def today(self) -> date:
        return self.clock().astimezone(self.tz).date()

    def used_today(self, user_id: str) -> int:
        row = (
            self.db.query(DailyUsage.analyses_used)
            .filter(DailyUsage.user_id == user_id, DailyUsage.usage_date == self.today())
            .first()
        )
        return row[0] if row else 0

    def check_and_reserve(self, user_id: str) -> QuotaDecision:
        """
        Decide whether the user may start another analysis today.

        Nothing is charged here; the usage counter moves in commit(), once an
        analysis actually exists.
        """
        day = self.today()
        used = self.used_today(user_id)
        if used >= self.daily_limit:
            logger.info(f"[quota] user={user_id} denied, {used}/{self.daily_limit} used on {day}")
            return QuotaDecision(False, used, self.daily_limit, day, DAILY_LIMIT_REACHED)
        return QuotaDecision(True, used, self.daily_limit, day)

    def limit_reached(self, day: date) -> QuotaExceeded:
        return QuotaExceeded(
            f"Daily limit reached. You have used all {self.daily_limit} free analyses "
            f"for today. Your limit resets tomorrow ({(day + timedelta(days=1)).isoformat()})."
        )

    def commit(self, user_id: str, result: AnalysisResult, source: SourceMetadata) -> Optional[MenuAnalysis]:
        """
        Charge one analysis and store the record.

        Raises:
            QuotaExceeded: concurrent requests used the last slot first; no record is stored

        Storage failures are logged and swallowed: the analysis already
        succeeded and is returned to the caller regardless.
        """
        now = self.clock()
        naive_now = now.astimezone(ZoneInfo("UTC")).replace(tzinfo=None)
        day = now.astimezone(self.tz).date()

        try:
            charged = _take_usage_slot(self.db, user_id, day, naive_now, self.daily_limit)
        except (SQLAlchemyError, NotImplementedError):
            self.db.rollback()
            logger.exception(f"[quota] usage increment failed for user={user_id}")
        else:
            if not charged:
                self.db.rollback()
                logger.info(f"[quota] user={user_id} hit the limit of {self.daily_limit} at commit on {day}")
                raise self.limit_reached(day)
            try:
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception(f"[quota] usage increment failed for user={user_id}")

        record = MenuAnalysis(
            id=uuid.uuid4().hex,
            user_id=user_id,
            business_name=source.business_name,
            menu_source=source.menu_source,
            menu_url=source.menu_url,
            menu_file_name=source.menu_file_name,
            analysis_results=result.model_dump(),
            revenue_score=result.revenue_score,
            created_at=naive_now,
        )
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"[persist] saving analysis failed for user={user_id}")
            return None

        logger.info(f"[persist] analysis {record.id} saved for user={user_id}")
        return record


@dataclass(frozen=True)
class AnalysisStats:
    total_analyses: int
    average_score: int
    best_score: int


class AnalysisRepository:
    """Read and delete access to a user's own analyses."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 50,
        min_score: Optional[int] = None,
    ) -> List[MenuAnalysis]:
        query = self.db.query(MenuAnalysis).filter(MenuAnalysis.user_id == user_id)
        if min_score is not None:
            query = query.filter(MenuAnalysis.revenue_score >= min_score)
        return (
            query.order_by(MenuAnalysis.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_for_user(self, user_id: str, analysis_id: str) -> MenuAnalysis:
        record = self.db.query(MenuAnalysis).filter(MenuAnalysis.id == analysis_id).first()
        if record is None:
            logger.info(f"[analyses] {analysis_id} not found (user={user_id})")
            raise AnalysisNotFound("Analysis not found")
        if record.user_id != user_id:
            logger.warning(f"[analyses] user={user_id} denied access to {analysis_id} owned by another user")
            raise AnalysisForbidden("Access denied. You can only access your own analyses.")
        return record

    def delete_for_user(self, user_id: str, analysis_id: str) -> None:
        record = self.get_for_user(user_id, analysis_id)
        self.db.delete(record)
        self.db.commit()
        logger.info(f"[analyses] {analysis_id} deleted by user={user_id}")

    def stats_for_user(self, user_id: str) -> AnalysisStats:
        total, average, best = (
            self.db.query(
                func.count(MenuAnalysis.id),
                func.avg(MenuAnalysis.revenue_score),
                func.max(MenuAnalysis.revenue_score),
            )
            .filter(MenuAnalysis.user_id == user_id)
            .one()
        )
        return AnalysisStats(
            total_analyses=total or 0,
            average_score=int(round(float(average))) if average is not None else 0,
            best_score=best or 0,
        )
