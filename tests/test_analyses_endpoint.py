# =============================================
# File: tests/test_analyses_endpoint.py
# Purpose: Saved analyses, stats, usage and health endpoints
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import json

from menu_analyzer.models.domain import AnalysisResult
from menu_analyzer.services.persistence import QuotaManager, SourceMetadata

from conftest import VALID_ANALYSIS_JSON


def _seed(db, user_id, scores):
    quota = QuotaManager(db)
    records = []
    for score in scores:
        data = json.loads(VALID_ANALYSIS_JSON)
        data["revenue_score"] = score
        result = AnalysisResult.model_validate(data)
        record = quota.commit(user_id, result, SourceMetadata(menu_source="url", menu_url="https://a.test/menu"))
        records.append(record.id)
    return records


def test_list_only_returns_own_analyses(client, auth_headers, db_session):
    mine = _seed(db_session, "user-1", [40, 80])
    _seed(db_session, "user-2", [95])

    r = client.get("/api/analyses", headers=auth_headers("user-1"))
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert sorted(a["id"] for a in body["analyses"]) == sorted(mine)
    assert all(a["user_id"] == "user-1" for a in body["analyses"])


def test_list_min_score_filter(client, auth_headers, db_session):
    _seed(db_session, "user-1", [40, 80])
    r = client.get("/api/analyses", params={"min_score": 50}, headers=auth_headers("user-1"))
    assert [a["revenue_score"] for a in r.json()["analyses"]] == [80]


def test_get_own_analysis(client, auth_headers, db_session):
    analysis_id = _seed(db_session, "user-1", [80])[0]
    r = client.get(f"/api/analyses/{analysis_id}", headers=auth_headers("user-1"))
    assert r.status_code == 200
    analysis = r.json()["analysis"]
    assert analysis["menu_source"] == "url"
    assert analysis["menu_url"] == "https://a.test/menu"
    assert analysis["analysis_results"]["revenue_score"] == 80


def test_other_users_analysis_is_forbidden(client, auth_headers, db_session):
    analysis_id = _seed(db_session, "user-2", [95])[0]
    headers = auth_headers("user-1")

    r = client.get(f"/api/analyses/{analysis_id}", headers=headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "FORBIDDEN"

    r = client.delete(f"/api/analyses/{analysis_id}", headers=headers)
    assert r.status_code == 403


def test_missing_analysis(client, auth_headers):
    r = client.get("/api/analyses/does-not-exist", headers=auth_headers())
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Analysis not found", "detail": "NOT_FOUND"}


def test_delete_own_analysis(client, auth_headers, db_session):
    analysis_id = _seed(db_session, "user-1", [80])[0]
    headers = auth_headers("user-1")

    r = client.delete(f"/api/analyses/{analysis_id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert client.get(f"/api/analyses/{analysis_id}", headers=headers).status_code == 404


def test_stats_and_usage(client, auth_headers, db_session):
    _seed(db_session, "user-1", [40, 80])
    headers = auth_headers("user-1")

    stats = client.get("/api/analyses/stats", headers=headers).json()
    assert stats["total_analyses"] == 2
    assert stats["average_score"] == 60
    assert stats["best_score"] == 80
    assert stats["usage"]["analyses_used"] == 2

    usage = client.get("/api/usage", headers=headers).json()
    assert usage["analyses_used"] == 2
    assert usage["limit"] == 10
    assert usage["remaining"] == 8


def test_list_requires_authentication(client):
    assert client.get("/api/analyses").status_code == 401
    assert client.get("/api/usage").status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

    ready = client.get("/health/ready").json()
    assert ready["checks"]["database"] is True
    # No model key in the test environment
    assert ready["checks"]["config"] is False
    assert ready["status"] == "not ready"


def test_root(client):
    assert client.get("/").json()["status"] == "running"
