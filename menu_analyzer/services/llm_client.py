# menu_analyzer/services/llm_client.py
"""LLM client wrapper for OpenRouter/OpenAI."""

import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI


class LLMClientError(RuntimeError):
    """LLM client error."""

    pass


class LLMRateLimitError(LLMClientError):
    """Provider refused the call for quota or rate-limit reasons."""

    pass


@dataclass(frozen=True)
class Attachment:
    """Binary payload sent next to the prompt (menu photo or PDF)."""

    data: bytes
    mime_type: str
    file_name: Optional[str] = None

    def to_content_part(self) -> Dict[str, Any]:
        encoded = base64.b64encode(self.data).decode("utf-8")
        data_url = f"data:{self.mime_type};base64,{encoded}"
        if self.mime_type.startswith("image/"):
            return {"type": "image_url", "image_url": {"url": data_url}}
        return {
            "type": "file",
            "file": {"filename": self.file_name or "menu.pdf", "file_data": data_url},
        }


class LLMClient:
    """Wrapper around OpenRouter chat completions."""

    def __init__(
        self,
        api_key: str,
        model: str = None,
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        if not self.model:
            raise LLMClientError("Model must be specified")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        # No SDK retries: a failed call goes straight to the caller's fallback
        return AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            default_headers={"X-Title": "Menu Analyzer"},
        )

    async def generate(
        self,
        messages: List[Dict[str, Any]],
        response_format: Dict[str, Any] = None,
    ):
        """Call LLM with messages."""
        if not self.configured:
            raise LLMClientError("OPENROUTER_API_KEY is not configured")
        try:
            client = self._get_client()
            kwargs = {"model": self.model, "messages": messages}
            if response_format is not None:
                kwargs["response_format"] = response_format
            return await client.chat.completions.create(**kwargs)
        except openai.RateLimitError as e:
            raise LLMRateLimitError(f"LLM rate limited: {e}") from e
        except Exception as e:
            raise LLMClientError(f"LLM call failed: {e}") from e

    async def generate_text(self, prompt: str, attachment: Optional[Attachment] = None) -> str:
        """Send one prompt (plus an optional file) and return the reply text."""
        if attachment is None:
            content: Any = prompt
        else:
            content = [{"type": "text", "text": prompt}, attachment.to_content_part()]

        response = await self.generate(messages=[{"role": "user", "content": content}])
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise LLMClientError(f"LLM returned no choices: {e}") from e


# Singleton
_llm_client: LLMClient = None


def get_llm_client() -> LLMClient:
    """Get cached LLM client instance."""
    global _llm_client
    if _llm_client is None:
        from menu_analyzer.config import get_settings

        settings = get_settings()
        _llm_client = LLMClient(
            api_key=settings.OPENROUTER_API_KEY,
            model=settings.OPENROUTER_DEFAULT_MODEL,
            base_url=settings.OPENROUTER_BASE_URL,
            timeout=settings.MODEL_TIMEOUT_SECONDS,
        )
    return _llm_client
