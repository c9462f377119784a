"""Deterministic, model-free analysis used when the model is unavailable or unusable."""

import math

from menu_analyzer.core.validation.validator import has_price
from menu_analyzer.models.domain import AnalysisResult

BASE_SCORE = 40
PRICE_BONUS = 20
PROSE_BONUS = 20
PROSE_THRESHOLD = 500
WORD_BONUS_CAP = 20

FALLBACK_SUMMARY = (
    "This is a best-effort default assessment generated automatically, without a "
    "personalized review of your menu items and prices. The recommendations below are "
    "general revenue practices; re-run the analysis later for suggestions tailored to your menu."
)

QUICK_WINS = [
    "Add appetizing descriptions to highlight premium ingredients and preparation methods",
    "Include 'Most Popular' or 'Chef's Favorite' badges on high-margin items",
    "Create combo meals to increase average transaction size",
]

VISUAL_APPEAL = [
    "Add high-quality photos for your top 5 best-selling dishes",
    "Use color-coded sections to make navigation easier",
    "Increase white space between sections for better readability",
]

STRATEGIC_PRICING = [
    "Implement psychological pricing (e.g., $12.95 instead of $13.00)",
    "Position premium items at the top and bottom of each section",
    "Create a 'Premium Selection' section for high-margin specialty items",
]

MENU_DESIGN = [
    "Limit each category to 7 items to reduce decision fatigue",
    "Use descriptive category names (e.g., 'Garden Fresh Salads' vs 'Salads')",
    "Add a highlighted 'Signature Dishes' section at the beginning",
]


def fallback_score(menu_text: str) -> int:
    score = BASE_SCORE
    if has_price(menu_text):
        score += PRICE_BONUS
    if len(menu_text) > PROSE_THRESHOLD:
        score += PROSE_BONUS
    score += min(WORD_BONUS_CAP, len(menu_text.split()) / 10)
    # Round half up
    return min(100, int(math.floor(score + 0.5)))


def generate_fallback(menu_text: str) -> AnalysisResult:
    return AnalysisResult(
        revenue_score=fallback_score(menu_text),
        summary=FALLBACK_SUMMARY,
        quick_wins=list(QUICK_WINS),
        visual_appeal=list(VISUAL_APPEAL),
        strategic_pricing=list(STRATEGIC_PRICING),
        menu_design=list(MENU_DESIGN),
    )
