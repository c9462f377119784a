# =============================================
# File: tests/conftest.py
# Purpose: Shared fixtures: in-memory database, fake model, authenticated client
# =============================================
import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# Must be set before menu_analyzer.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["CRM_WEBHOOK_URL"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import io
import uuid
from datetime import datetime, timedelta

import fitz
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from menu_analyzer.database import Base, SessionLocal, UserSession, engine
from menu_analyzer.services.llm_client import LLMClient

SCENARIO_A = "Burger $9.99, Salad $6.50, served with fresh greens and house dressing, ask about our daily specials"

VALID_ANALYSIS_JSON = """{
  "revenue_score": 68,
  "summary": "Solid core menu with clear prices. Better descriptions and bundles would lift the average check.",
  "quick_wins": ["Describe the Burger's toppings", "Offer a Burger + Salad combo", "Mark the daily specials"],
  "visual_appeal": ["Add a photo of the Burger", "Box the specials", "Use bolder item names"],
  "strategic_pricing": ["Price the Burger at $9.95", "Anchor with a premium salad", "Drop dollar signs"],
  "menu_design": ["Group mains and sides", "Put the Burger top right", "Limit each section to 7 items"]
}"""


class FakeLLM(LLMClient):
    """Scripted stand-in for the generative model."""

    def __init__(self, replies=None, error=None):
        super().__init__(api_key="test-key", model="fake/model")
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    async def generate_text(self, prompt, attachment=None):
        self.calls.append((prompt, attachment))
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_session(db, user_id: str, expires_at=None) -> str:
    token = uuid.uuid4().hex
    db.add(UserSession(token=token, user_id=user_id, email=f"{user_id}@example.com", expires_at=expires_at))
    db.commit()
    return token


@pytest.fixture
def auth_headers(db_session):
    def _headers(user_id: str = "user-1", expired: bool = False):
        expires = datetime.utcnow() - timedelta(hours=1) if expired else None
        return {"Authorization": f"Bearer {make_session(db_session, user_id, expires)}"}
    return _headers


@pytest.fixture
def client(db_session, fake_llm):
    from menu_analyzer.api.dependencies import get_llm, get_webhook_notifier
    from menu_analyzer.main import app
    from menu_analyzer.services.notifier import WebhookNotifier

    app.dependency_overrides[get_llm] = lambda: fake_llm
    app.dependency_overrides[get_webhook_notifier] = lambda: WebhookNotifier(url="")
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def pdf_bytes(text: str = "") -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def png_bytes(size=(40, 20)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, "white").save(buf, format="PNG")
    return buf.getvalue()
