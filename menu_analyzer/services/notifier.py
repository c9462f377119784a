# menu_analyzer/services/notifier.py
# Best-effort CRM webhook. Runs after the response; failures only get logged.

from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from loguru import logger

LEAD_TAGS = ["menu-analyzer-lead", "free-analysis"]


class WebhookNotifier:
    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def notify(self, event: str, payload: Dict[str, Any]) -> bool:
        """Post one event. Returns whether the sink accepted it; never raises."""
        body = {
            "event": event,
            "source": "menu-analyzer",
            "tags": LEAD_TAGS,
            "timestamp": datetime.utcnow().isoformat(),
            **payload,
        }
        if not self.enabled:
            logger.info(f"[notify] no CRM webhook configured, {event} captured in test mode")
            return False

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=body, headers=headers)
                response.raise_for_status()
        except Exception as e:
            logger.warning(f"[notify] {event} delivery failed: {e}")
            return False

        logger.info(f"[notify] {event} delivered")
        return True


# Singleton
_notifier: WebhookNotifier = None


def get_notifier() -> WebhookNotifier:
    """Get cached notifier instance."""
    global _notifier
    if _notifier is None:
        from menu_analyzer.config import get_settings

        settings = get_settings()
        _notifier = WebhookNotifier(
            url=settings.CRM_WEBHOOK_URL,
            api_key=settings.CRM_API_KEY,
            timeout=settings.NOTIFY_TIMEOUT_SECONDS,
        )
    return _notifier
