"""
Menu analysis
One model call per request; anything unusable falls back to a deterministic result.
"""

import json
from typing import Optional

from loguru import logger

from menu_analyzer.core.analysis.fallback import generate_fallback
from menu_analyzer.core.analysis.parsing import parse_analysis
from menu_analyzer.core.prompts.builder import PromptBuilder, get_prompt_builder
from menu_analyzer.models.domain import AnalysisResult, ExtractedText
from menu_analyzer.services.llm_client import LLMClient, LLMClientError

# Returned by the model when it judges the content is not a menu
NOT_A_MENU_RESULT = {
    "revenue_score": 0,
    "summary": (
        "The submitted content does not appear to be a genuine restaurant menu "
        "with real items and prices, so no revenue analysis was performed."
    ),
    "quick_wins": ["Upload your actual restaurant menu with item names and prices"],
    "visual_appeal": ["Provide a clear photo, PDF or link of the full menu"],
    "strategic_pricing": ["Make sure every menu item lists its price"],
    "menu_design": ["Include your menu sections, items and descriptions"],
}


def is_not_a_menu(result: AnalysisResult) -> bool:
    return result.revenue_score == 0


class AnalysisEngine:
    """Produces an AnalysisResult for validated menu text. Never raises."""

    def __init__(self, llm_client: LLMClient, prompt_builder: Optional[PromptBuilder] = None):
        self.llm = llm_client
        self.prompt_builder = prompt_builder or get_prompt_builder()

    async def analyze(self, extracted: ExtractedText) -> AnalysisResult:
        menu_text = extracted.content
        prompt = self.prompt_builder.analyze_menu_prompt(
            menu_text=menu_text,
            not_a_menu_json=json.dumps(NOT_A_MENU_RESULT, indent=2),
        )

        try:
            raw = await self.llm.generate_text(prompt)
        except LLMClientError as e:
            logger.warning(f"[analysis] model unavailable, using fallback: {e}")
            return generate_fallback(menu_text)

        result = parse_analysis(raw)
        if result is None:
            logger.warning(f"[analysis] unusable model reply, using fallback. Raw (first 500 chars): {raw[:500]}")
            return generate_fallback(menu_text)

        if is_not_a_menu(result):
            logger.info(f"[analysis] model judged {extracted.origin_descriptor} not a menu")
        else:
            logger.info(f"[analysis] model score={result.revenue_score} for {extracted.origin_descriptor}")
        return result
