# =============================================
# File: tests/test_analyze_endpoint.py
# Purpose: POST /api/analyze-menu end to end with a scripted model
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import httpx
import pytest

from menu_analyzer.database import DailyUsage
from menu_analyzer.services.persistence import QuotaManager

from conftest import SCENARIO_A, VALID_ANALYSIS_JSON, png_bytes

LOREM = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua. Lorem ipsum dolor sit amet."
)

URL = "/api/analyze-menu"


def _used(db, user_id="user-1"):
    return QuotaManager(db).used_today(user_id)


def _error_body(r, status, detail):
    assert r.status_code == status, r.text
    body = r.json()
    assert body["success"] is False
    assert body["detail"] == detail
    assert body["error"]
    return body


# ---------- auth ----------

def test_requires_authentication(client):
    r = client.post(URL, json={"text": SCENARIO_A})
    body = _error_body(r, 401, None)
    assert body["error"] == "Authentication required"


def test_unknown_and_expired_sessions(client, auth_headers):
    r = client.post(URL, json={"text": SCENARIO_A}, headers={"Authorization": "Bearer nope"})
    assert r.json()["error"] == "Invalid session"

    r = client.post(URL, json={"text": SCENARIO_A}, headers=auth_headers(expired=True))
    assert r.status_code == 401
    assert r.json()["error"] == "Session expired"


def test_session_cookie_is_accepted(client, auth_headers, fake_llm):
    token = auth_headers()["Authorization"].split(" ", 1)[1]
    fake_llm.replies.append(VALID_ANALYSIS_JSON)
    client.cookies.set("session", token)
    r = client.post(URL, json={"text": SCENARIO_A})
    client.cookies.clear()
    assert r.status_code == 200


# ---------- happy paths ----------

def test_pasted_menu_is_analyzed_and_charged(client, auth_headers, fake_llm, db_session):
    fake_llm.replies.append(VALID_ANALYSIS_JSON)
    r = client.post(URL, json={"text": SCENARIO_A, "businessName": "Luigi's"}, headers=auth_headers())

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["revenue_score"] == 68
    assert set(body) == {"revenue_score", "summary", "quick_wins", "visual_appeal", "strategic_pricing", "menu_design"}
    assert r.headers["X-Analysis-Id"]
    assert r.headers["X-Request-ID"]
    assert _used(db_session) == 1


def test_model_outage_still_returns_fallback(client, auth_headers, fake_llm, db_session):
    # No scripted reply: the model answers with nothing usable
    r = client.post(URL, json={"text": SCENARIO_A}, headers=auth_headers())
    assert r.status_code == 200
    assert r.json()["revenue_score"] == 62
    assert "best-effort" in r.json()["summary"]
    assert _used(db_session) == 1


def test_menu_photo_is_read_then_analyzed(client, auth_headers, fake_llm, db_session):
    fake_llm.replies.extend(["Pancakes $7  Waffles $8", VALID_ANALYSIS_JSON])
    r = client.post(
        URL,
        files={"file": ("menu.png", png_bytes(), "image/png")},
        data={"type": "image", "businessName": "Cafe Sol"},
        headers=auth_headers(),
    )
    assert r.status_code == 200, r.text
    assert len(fake_llm.calls) == 2
    assert fake_llm.calls[0][1] is not None  # photo attached to the first call


# ---------- rejections ----------

def test_placeholder_text_is_rejected_without_charge(client, auth_headers, fake_llm, db_session):
    r = client.post(URL, json={"text": LOREM}, headers=auth_headers())
    _error_body(r, 400, "DUMMY_CONTENT")
    assert fake_llm.calls == []
    assert _used(db_session) == 0


def test_daily_limit(client, auth_headers, fake_llm, db_session):
    headers = auth_headers()
    db_session.add(DailyUsage(user_id="user-1", usage_date=QuotaManager(db_session).today(), analyses_used=10))
    db_session.commit()

    r = client.post(URL, json={"text": SCENARIO_A}, headers=headers)
    body = _error_body(r, 429, "DAILY_LIMIT_REACHED")
    assert "resets tomorrow" in body["error"]
    assert fake_llm.calls == []
    assert _used(db_session) == 10


def test_invalid_pdf(client, auth_headers, fake_llm):
    r = client.post(
        URL,
        files={"file": ("menu.pdf", b"definitely not a pdf", "application/pdf")},
        data={"type": "pdf"},
        headers=auth_headers(),
    )
    _error_body(r, 400, "INVALID_PDF")
    assert fake_llm.calls == []


def test_unsupported_upload(client, auth_headers):
    r = client.post(
        URL,
        files={"file": ("menu.docx", b"PK\x03\x04", "application/vnd.openxmlformats-officedocument.wordprocessingml.document")},
        headers=auth_headers(),
    )
    _error_body(r, 400, "UNSUPPORTED_FILE_TYPE")


def test_missing_file(client, auth_headers):
    r = client.post(URL, data={"type": "pdf"}, files={"other": ("x.txt", b"x", "text/plain")}, headers=auth_headers())
    _error_body(r, 400, "BAD_REQUEST")


@pytest.mark.parametrize("payload", [{}, {"url": "https://a.test", "text": SCENARIO_A}, {"text": "   "}])
def test_exactly_one_of_url_or_text(client, auth_headers, payload):
    r = client.post(URL, json=payload, headers=auth_headers())
    body = _error_body(r, 400, "BAD_REQUEST")
    assert body["error"] == "Provide exactly one of url or text"


def test_blank_url_next_to_text_uses_the_text(client, auth_headers, fake_llm, db_session):
    fake_llm.replies.append(VALID_ANALYSIS_JSON)
    r = client.post(URL, json={"url": "   ", "text": SCENARIO_A}, headers=auth_headers())
    assert r.status_code == 200, r.text
    assert r.json()["revenue_score"] == 68
    assert _used(db_session) == 1


def test_invalid_url(client, auth_headers):
    r = client.post(URL, json={"url": "not-a-url"}, headers=auth_headers())
    _error_body(r, 400, "INVALID_URL")


# ---------- side effects ----------

def test_save_failure_does_not_fail_request(client, auth_headers, fake_llm, db_session, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from sqlalchemy.orm import Session

    headers = auth_headers()
    fake_llm.replies.append(VALID_ANALYSIS_JSON)

    def broken_add(self, *args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(Session, "add", broken_add)
    r = client.post(URL, json={"text": SCENARIO_A}, headers=headers)

    assert r.status_code == 200
    assert r.json()["revenue_score"] == 68
    assert "X-Analysis-Id" not in r.headers
    assert _used(db_session) == 1


def test_failing_webhook_does_not_change_response(client, auth_headers, fake_llm):
    from menu_analyzer.api.dependencies import get_webhook_notifier
    from menu_analyzer.main import app
    from menu_analyzer.services.notifier import WebhookNotifier

    posted = []

    def handler(request):
        posted.append(request)
        return httpx.Response(500, json={"error": "crm down"})

    notifier = WebhookNotifier(url="https://crm.test/hook", api_key="k", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_webhook_notifier] = lambda: notifier
    fake_llm.replies.append(VALID_ANALYSIS_JSON)

    r = client.post(URL, json={"text": SCENARIO_A, "businessName": "Luigi's"}, headers=auth_headers())

    assert r.status_code == 200
    assert r.json()["revenue_score"] == 68
    assert len(posted) == 1
    assert posted[0].headers["Authorization"] == "Bearer k"
