"""
Content validation
Decides whether extracted text is plausibly a real restaurant menu before a
model call is spent on it.
"""

import re
from dataclasses import dataclass
from typing import Optional

from menu_analyzer.config import Settings, get_settings
from menu_analyzer.models.domain import ExtractedText, ReasonCode, ValidationVerdict

# Boilerplate filler and sample-document phrasing
PLACEHOLDER_MARKERS = (
    "lorem ipsum",
    "dolor sit amet",
    "consectetur adipiscing",
    "sed do eiusmod",
    "dummy text",
    "dummy content",
    "dummy document",
    "placeholder text",
    "sample text",
    "sample document",
    "sample pdf",
    "test document",
    "test file",
    "this is a test",
    "this is a sample",
    "this is a dummy",
)

# Phrasing typical of legal, policy, manual, report and article documents
NON_MENU_MARKERS = (
    "terms and conditions",
    "terms of service",
    "terms of use",
    "privacy policy",
    "cookie policy",
    "all rights reserved",
    "user manual",
    "user guide",
    "instruction manual",
    "installation guide",
    "table of contents",
    "annual report",
    "quarterly report",
    "financial statement",
    "executive summary",
    "abstract:",
    "chapter 1",
    "pursuant to",
    "hereinafter",
    "whereas",
    "licensee",
    "published by",
    "curriculum vitae",
    "invoice number",
)

FOOD_KEYWORDS = (
    "appetizer", "starter", "entree", "entrée", "main course", "dessert", "side",
    "burger", "pizza", "pasta", "salad", "soup", "sandwich", "wrap", "taco",
    "burrito", "steak", "chicken", "beef", "pork", "lamb", "fish", "salmon",
    "shrimp", "seafood", "rice", "noodle", "curry", "sushi", "fries", "wings",
    "bread", "cheese", "egg", "bacon", "vegetable", "vegetarian", "vegan",
    "cake", "pie", "ice cream", "coffee", "tea", "espresso", "latte", "juice",
    "soda", "wine", "beer", "cocktail", "breakfast", "brunch", "lunch", "dinner",
    "grilled", "fried", "roasted", "baked",
)

MENU_WORDS = FOOD_KEYWORDS + (
    "menu", "price", "served", "special", "combo", "platter", "portion",
    "order", "dish", "drink", "beverage", "kitchen", "chef", "house",
)

CURRENCY_SYMBOLS = ("$", "€", "£", "¥", "₹")


def _word_pattern(words):
    # Whole words, simple plurals allowed
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})(?:s|es)?\b", re.IGNORECASE)


_FOOD_RE = _word_pattern(FOOD_KEYWORDS)
_MENU_WORD_RE = _word_pattern(MENU_WORDS)

PRICE_RE = re.compile(r"[$€£¥₹]\s?\d+(?:[.,]\d{1,2})?|\d+[.,]\d{2}\b|\b\d+(?:[.,]\d{2})?\s?(?:usd|eur|gbp|dollars?)\b", re.IGNORECASE)
_DIGIT_RE = re.compile(r"\d")

MESSAGES = {
    ReasonCode.ACCEPTED: "Menu content accepted.",
    ReasonCode.DUMMY_CONTENT: (
        "This looks like placeholder or sample text rather than a real menu. "
        "Please upload your actual restaurant menu."
    ),
    ReasonCode.NON_MENU_DOCUMENT: (
        "This document looks like a policy, manual, report or article rather than a menu. "
        "Please upload your restaurant menu."
    ),
    ReasonCode.REPETITIVE_CONTENT: (
        "The content is highly repetitive and does not look like a real menu. "
        "Please upload your restaurant menu."
    ),
    ReasonCode.TOO_SHORT: (
        "There is not enough content to analyze. "
        "Please provide the full menu with item names and prices."
    ),
    ReasonCode.NO_PRICES: (
        "No prices were found. Please provide a menu that lists item prices."
    ),
    ReasonCode.NO_MENU_VOCABULARY: (
        "This content does not mention any food, drinks or prices. "
        "Please upload a restaurant menu."
    ),
}


@dataclass(frozen=True)
class ValidationPolicy:
    """Length and repetition thresholds. Empirical, so kept configurable."""

    image_min_length: int = 10
    min_length: int = 100
    no_price_max_length: int = 500
    no_vocabulary_max_length: int = 200
    repetition_min_tokens: int = 50
    repetition_min_ratio: float = 0.2

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationPolicy":
        return cls(
            image_min_length=settings.VALIDATION_IMAGE_MIN_LENGTH,
            min_length=settings.VALIDATION_MIN_LENGTH,
            no_price_max_length=settings.VALIDATION_NO_PRICE_MAX_LENGTH,
            no_vocabulary_max_length=settings.VALIDATION_NO_VOCAB_MAX_LENGTH,
            repetition_min_tokens=settings.VALIDATION_REPETITION_MIN_TOKENS,
            repetition_min_ratio=settings.VALIDATION_REPETITION_MIN_RATIO,
        )


def has_placeholder_text(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def has_non_menu_markers(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in NON_MENU_MARKERS)


def has_food_keyword(text: str) -> bool:
    return bool(_FOOD_RE.search(text))


def has_menu_vocabulary(text: str) -> bool:
    return bool(_MENU_WORD_RE.search(text)) or any(symbol in text for symbol in CURRENCY_SYMBOLS)


def has_price(text: str) -> bool:
    return bool(PRICE_RE.search(text))


def is_repetitive(text: str, min_tokens: int, min_ratio: float) -> bool:
    tokens = text.lower().split()
    if len(tokens) <= min_tokens:
        return False
    return len(set(tokens)) / len(tokens) < min_ratio


class ContentValidator:
    """Heuristic gate in front of the analysis model. Pure, never raises."""

    def __init__(self, policy: Optional[ValidationPolicy] = None):
        self.policy = policy or ValidationPolicy.from_settings(get_settings())

    def validate(self, extracted: ExtractedText) -> ValidationVerdict:
        if extracted.origin_kind == "image":
            code = self._lenient(extracted.content)
        else:
            code = self._strict(extracted.content)
        return verdict_for(code)

    def _lenient(self, text: str) -> ReasonCode:
        # Text read from photos is noisy: only reject what is clearly not a menu
        stripped = text.strip()
        if len(stripped) < self.policy.image_min_length:
            return ReasonCode.TOO_SHORT
        if has_placeholder_text(stripped) and not has_food_keyword(stripped) and not has_price(stripped):
            return ReasonCode.DUMMY_CONTENT
        return ReasonCode.ACCEPTED

    def _strict(self, text: str) -> ReasonCode:
        stripped = text.strip()
        length = len(stripped)

        # First match wins
        if has_placeholder_text(stripped):
            return ReasonCode.DUMMY_CONTENT
        if has_non_menu_markers(stripped):
            return ReasonCode.NON_MENU_DOCUMENT
        if is_repetitive(stripped, self.policy.repetition_min_tokens, self.policy.repetition_min_ratio):
            return ReasonCode.REPETITIVE_CONTENT
        if length < self.policy.min_length:
            return ReasonCode.TOO_SHORT
        if not _DIGIT_RE.search(stripped) and length < self.policy.no_price_max_length:
            return ReasonCode.NO_PRICES
        if not has_menu_vocabulary(stripped) and length < self.policy.no_vocabulary_max_length:
            return ReasonCode.NO_MENU_VOCABULARY
        return ReasonCode.ACCEPTED


def verdict_for(code: ReasonCode) -> ValidationVerdict:
    return ValidationVerdict(
        accepted=code is ReasonCode.ACCEPTED,
        reason_code=code,
        human_message=MESSAGES[code],
    )
