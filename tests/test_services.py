# =============================================
# File: tests/test_services.py
# Purpose: Model client guards, webhook delivery and image preparation
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import asyncio
import io
import json

import httpx
import pytest
from PIL import Image

from menu_analyzer.core.processors.image import ImageOptions, ImageProcessor
from menu_analyzer.services.llm_client import Attachment, LLMClient, LLMClientError
from menu_analyzer.services.notifier import LEAD_TAGS, WebhookNotifier

from conftest import png_bytes


def test_unconfigured_client_refuses_to_call():
    client = LLMClient(api_key="", model="google/gemini-2.5-flash")
    assert client.configured is False
    with pytest.raises(LLMClientError):
        asyncio.run(client.generate_text("hello"))


def test_model_is_required():
    with pytest.raises(LLMClientError):
        LLMClient(api_key="k", model="")


def test_pdf_attachment_is_sent_as_file_part():
    part = Attachment(data=b"%PDF-1.7", mime_type="application/pdf", file_name="menu.pdf").to_content_part()
    assert part["type"] == "file"
    assert part["file"]["filename"] == "menu.pdf"
    assert part["file"]["file_data"].startswith("data:application/pdf;base64,")


def test_webhook_without_url_is_test_mode():
    notifier = WebhookNotifier(url="")
    assert notifier.enabled is False
    assert asyncio.run(notifier.notify("analysis.completed", {"user_id": "u"})) is False


def test_webhook_delivery():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    notifier = WebhookNotifier(url="https://crm.test/hook", transport=httpx.MockTransport(handler))
    delivered = asyncio.run(notifier.notify("analysis.completed", {"user_id": "u", "revenue_score": 70}))

    assert delivered is True
    assert seen[0]["event"] == "analysis.completed"
    assert seen[0]["revenue_score"] == 70
    assert seen[0]["tags"] == LEAD_TAGS


def test_webhook_transport_error_is_swallowed():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    notifier = WebhookNotifier(url="https://crm.test/hook", transport=httpx.MockTransport(handler))
    assert asyncio.run(notifier.notify("analysis.completed", {})) is False


def test_small_image_is_sent_unchanged():
    data = png_bytes()
    prepared = ImageProcessor().prepare(data, "image/png")
    assert prepared.data == data
    assert prepared.mime_type == "image/png"


def test_large_image_is_downscaled():
    processor = ImageProcessor(ImageOptions(max_size=(100, 100)))
    prepared = processor.prepare(png_bytes(size=(400, 200)), None)
    img = Image.open(io.BytesIO(prepared.data))
    assert img.size == (100, 50)
    assert prepared.mime_type == "image/png"


def test_log_lines_carry_request_id(tmp_path):
    from loguru import logger

    from menu_analyzer.utils.logging import setup_logging

    log_file = tmp_path / "app.log"
    setup_logging("INFO", str(log_file))
    with logger.contextualize(request_id="req-123"):
        logger.info("request.completed GET /health")
    setup_logging("WARNING")

    content = log_file.read_text()
    assert "req-123" in content
    assert "request.completed GET /health" in content
