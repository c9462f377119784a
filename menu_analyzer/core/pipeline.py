"""
Menu intake pipeline
quota check -> resolve source -> validate content -> analyze -> commit
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from menu_analyzer.core.analysis.engine import AnalysisEngine
from menu_analyzer.core.errors import ValidationRejection
from menu_analyzer.core.extraction.resolver import SourceResolver
from menu_analyzer.core.validation.validator import ContentValidator
from menu_analyzer.database.models import MenuAnalysis
from menu_analyzer.models.domain import AnalysisResult, MenuSource
from menu_analyzer.services.persistence import QuotaManager, SourceMetadata


@dataclass
class PipelineOutcome:
    result: AnalysisResult
    record: Optional[MenuAnalysis] = None  # None when saving failed


class MenuAnalysisPipeline:
    """Runs the four stages for one request, sequentially."""

    def __init__(
        self,
        resolver: SourceResolver,
        validator: ContentValidator,
        engine: AnalysisEngine,
        quota: QuotaManager,
    ):
        self.resolver = resolver
        self.validator = validator
        self.engine = engine
        self.quota = quota

    async def run(self, user_id: str, source: MenuSource, metadata: SourceMetadata) -> PipelineOutcome:
        """
        Raises:
            QuotaExceeded: the user already used today's analyses, or a concurrent
                request took the last one before this result was charged
            ExtractionError: the source could not be read
            ValidationRejection: the text does not look like a menu
        """
        decision = self.quota.check_and_reserve(user_id)
        if not decision.allowed:
            raise self.quota.limit_reached(decision.usage_date)

        extracted = await self.resolver.resolve(source)

        verdict = self.validator.validate(extracted)
        if not verdict.accepted:
            logger.info(
                f"[pipeline] user={user_id} {extracted.origin_kind} rejected: {verdict.reason_code.value}"
            )
            raise ValidationRejection(verdict)

        result = await self.engine.analyze(extracted)
        record = self.quota.commit(user_id, result, metadata)
        return PipelineOutcome(result=result, record=record)
