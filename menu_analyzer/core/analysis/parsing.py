"""Recover the JSON object from a model reply that may carry fences or chatter."""

import json
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from menu_analyzer.models.domain import AnalysisResult

_FENCE_RE = re.compile(r"```[a-zA-Z]*")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def first_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} span, or None.

    Braces inside JSON strings are ignored, so a reply like
    'Here you go: {"summary": "use {bold} names"} Hope it helps {:' still
    yields the object.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        # Unbalanced from here; try the next opening brace
        start = text.find("{", start + 1)
    return None


def parse_json_reply(text: str) -> Optional[Dict[str, Any]]:
    candidate = first_json_object(strip_code_fences(text))
    if candidate is None:
        return None
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parse_analysis(text: str) -> Optional[AnalysisResult]:
    """Model reply -> AnalysisResult, or None when it cannot be trusted."""
    data = parse_json_reply(text)
    if data is None:
        return None
    try:
        return AnalysisResult.model_validate(data)
    except (ValidationError, ValueError, OverflowError):
        return None
