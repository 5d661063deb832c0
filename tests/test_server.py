"""HTTP API tests using FastAPI's TestClient.

The database is never touched: ``get_db`` yields an inert ``MagicMock`` session,
the repository is replaced by an in-memory fake, and automatic saves go to
an in-memory sink.  The content store and engine are the real ones, loaded
by the app's lifespan handler.
"""

import json
import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from stoma_server.app import create_app
from stoma_server.config import ServerSettings
from stoma_server.dependencies import get_db, get_diagnosis_sink, get_repository
from stoma_server.errors import NotFoundError, value_error_handler
from stoma_triage.interfaces import DiagnosisSink

API = "/api/v1"


# =====================================================================
# Fakes
# =====================================================================


class MemorySink(DiagnosisSink):
    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []

    async def save(self, record, *, user_id):
        if self.fail:
            raise ConnectionError("database is down")
        self.saved.append((user_id, record))


class FakeRepository:
    """Stores rows in a list; mirrors DiagnosisRepository's signatures."""

    def __init__(self):
        self.rows = []
        self.calls = []

    async def create_record(self, db, *, user_id, **fields):
        row = SimpleNamespace(
            id=uuid.uuid4(),
            user_id=user_id,
            created_at=datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc),
            **fields,
        )
        self.rows.append(row)
        return row

    async def get_by_id(self, db, record_id):
        return next((r for r in self.rows if r.id == record_id), None)

    async def list_by_user(self, db, user_id, *, limit=20, offset=0):
        self.calls.append(("list_by_user", limit, offset))
        rows = [r for r in self.rows if r.user_id == user_id]
        return rows[offset:offset + limit]

    async def list_by_date(self, db, user_id, day):
        self.calls.append(("list_by_date", day))
        return [r for r in self.rows if r.user_id == user_id and r.created_at.date() == day]

    async def list_for_month(self, db, user_id, year, month):
        self.calls.append(("list_for_month", year, month))
        return [
            r for r in self.rows
            if r.user_id == user_id
            and (r.created_at.year, r.created_at.month) == (year, month)
        ]


# =====================================================================
# Fixtures
# =====================================================================


def _make_client(settings, sink=None, repo=None):
    app = create_app(settings)

    async def fake_db():
        yield MagicMock()

    app.dependency_overrides[get_db] = fake_db
    if repo is not None:
        app.dependency_overrides[get_repository] = lambda: repo
    if sink is not None:
        app.dependency_overrides[get_diagnosis_sink] = lambda: sink
    return TestClient(app)


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def client(sink, repo):
    with _make_client(ServerSettings(), sink=sink, repo=repo) as c:
        yield c


def _step(client, qid, index, code=1, headers=None, **extra):
    return client.post(
        f"{API}/triage/step",
        json={"question_id": qid, "answer_index": index, "classification": code, **extra},
        headers=headers or {},
    )


# =====================================================================
# Triage endpoints
# =====================================================================


class TestTriage:

    def test_start(self, client):
        resp = client.post(f"{API}/triage/start")
        assert resp.status_code == 200
        body = resp.json()
        assert body["type"] == "question"
        assert body["qid"] == "E_Q1"
        assert [o["label"] for o in body["options"]] == ["예", "아니오"]

    def test_step_to_question(self, client):
        resp = _step(client, "E_Q1", 1)
        assert resp.status_code == 200
        body = resp.json()
        assert body["step"]["type"] == "question"
        assert body["step"]["qid"] == "E_Q2"
        assert body["severity"] is None
        assert body["saved"] is False

    def test_dynamic_branch(self, client):
        body = _step(client, "E_Q2", 1, code=3).json()
        assert body["step"]["qid"] == "C3_Q1"
        assert body["step"]["group"] == "class_3"

    def test_step_to_result(self, client):
        body = _step(client, "E_Q1", 0).json()
        step = body["step"]
        assert step["type"] == "result"
        assert step["rid"] == "E_R1"
        assert step["risk_level"] == 3
        assert body["severity"] == "high"
        assert body["risk_label"] == "위험"

    def test_unknown_question_falls_back(self, client):
        body = _step(client, "NONEXISTENT_ID", 0).json()
        assert body["step"]["rid"] == "C1_R1"
        assert body["severity"] == "low"

    def test_out_of_range_answer_falls_back(self, client):
        body = _step(client, "C1_Q2", 99).json()
        assert body["step"]["rid"] == "C1_R1"

    @pytest.mark.parametrize("code", [0, 4])
    def test_invalid_classification_rejected(self, client, code):
        assert _step(client, "E_Q2", 1, code=code).status_code == 422

    def test_missing_fields_rejected(self, client):
        resp = client.post(f"{API}/triage/step", json={"question_id": "E_Q1"})
        assert resp.status_code == 422

    def test_get_question(self, client):
        resp = client.get(f"{API}/triage/questions/C2_Q4")
        assert resp.status_code == 200
        body = resp.json()
        assert body["qid"] == "C2_Q4"
        assert len(body["options"]) == 7

    def test_get_question_not_found(self, client):
        resp = client.get(f"{API}/triage/questions/NOPE")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Resource not found"}

    def test_get_result(self, client):
        resp = client.get(f"{API}/triage/results/E_R2")
        assert resp.status_code == 200
        body = resp.json()
        assert body["risk_level"] == 3
        assert body["emergency_alert"] is None

    def test_get_result_not_found(self, client):
        assert client.get(f"{API}/triage/results/NOPE").status_code == 404


# =====================================================================
# Automatic saving on /triage/step
# =====================================================================


class TestAutoSave:

    def test_anonymous_result_not_saved(self, client, sink):
        body = _step(client, "E_Q1", 0).json()
        assert body["saved"] is False
        assert sink.saved == []

    def test_identified_result_saved(self, client, sink):
        body = _step(
            client, "E_Q1", 0,
            headers={"X-User-ID": "u1"},
            image_url="https://img/1.jpg", brightness=120.5, sacs_grade="L2",
        ).json()
        assert body["saved"] is True
        [(user_id, record)] = sink.saved
        assert user_id == "u1"
        assert record.diagnosis == "응급 상황 (장폐색 의심)"
        assert record.risk_level == 3
        assert record.image_url == "https://img/1.jpg"
        assert record.brightness == 120.5
        assert record.sacs_grade == "L2"

    def test_question_step_not_saved(self, client, sink):
        _step(client, "E_Q1", 1, headers={"X-User-ID": "u1"})
        assert sink.saved == []

    def test_failed_save_does_not_change_result(self, repo):
        failing = MemorySink(fail=True)
        with _make_client(ServerSettings(), sink=failing, repo=repo) as c:
            resp = _step(c, "E_Q1", 0, headers={"X-User-ID": "u1"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["step"]["rid"] == "E_R1"
        assert body["saved"] is False

    def test_persistence_disabled(self, repo):
        with _make_client(ServerSettings(persist_results=False), repo=repo) as c:
            body = _step(c, "E_Q1", 0, headers={"X-User-ID": "u1"}).json()
        assert body["step"]["rid"] == "E_R1"
        assert body["saved"] is False

    def test_proxy_secret_enforced(self, sink, repo):
        settings = ServerSettings(trusted_proxy_secret="s3cret")
        with _make_client(settings, sink=sink, repo=repo) as c:
            assert _step(c, "E_Q1", 0, headers={"X-User-ID": "u1"}).status_code == 403
            bad = {"X-User-ID": "u1", "X-Proxy-Secret": "nope"}
            assert _step(c, "E_Q1", 0, headers=bad).status_code == 403
            good = {"X-User-ID": "u1", "X-Proxy-Secret": "s3cret"}
            assert _step(c, "E_Q1", 0, headers=good).json()["saved"] is True
            # Anonymous triage still works
            assert _step(c, "E_Q1", 0).status_code == 200


# =====================================================================
# History endpoints
# =====================================================================


class TestHistory:

    RECORD = {
        "diagnosis": "정상 상태",
        "description": "d",
        "risk_level": 1,
        "advice": "a",
        "image_url": "https://img/2.jpg",
    }

    def test_requires_user(self, client):
        assert client.get(f"{API}/history").status_code == 401
        assert client.post(f"{API}/history", json=self.RECORD).status_code == 401

    def test_create_and_list(self, client, repo):
        headers = {"X-User-ID": "u1"}
        resp = client.post(f"{API}/history", json=self.RECORD, headers=headers)
        assert resp.status_code == 201
        created = resp.json()
        assert created["user_id"] == "u1"
        assert created["diagnosis"] == "정상 상태"

        listed = client.get(f"{API}/history", headers=headers).json()
        assert [r["id"] for r in listed] == [created["id"]]
        assert repo.calls[-1] == ("list_by_user", 20, 0)

        # Other users see nothing
        assert client.get(f"{API}/history", headers={"X-User-ID": "u2"}).json() == []

    def test_create_rejects_bad_risk_level(self, client):
        body = {**self.RECORD, "risk_level": 5}
        resp = client.post(f"{API}/history", json=body, headers={"X-User-ID": "u1"})
        assert resp.status_code == 422

    def test_filter_by_date(self, client, repo):
        headers = {"X-User-ID": "u1"}
        client.post(f"{API}/history", json=self.RECORD, headers=headers)
        hit = client.get(f"{API}/history?date=2026-10-18", headers=headers).json()
        miss = client.get(f"{API}/history?date=2026-10-17", headers=headers).json()
        assert len(hit) == 1
        assert miss == []
        assert repo.calls[-1] == ("list_by_date", date(2026, 10, 17))

    def test_filter_by_month(self, client, repo):
        headers = {"X-User-ID": "u1"}
        client.post(f"{API}/history", json=self.RECORD, headers=headers)
        hit = client.get(f"{API}/history?year=2026&month=10", headers=headers).json()
        assert len(hit) == 1
        assert repo.calls[-1] == ("list_for_month", 2026, 10)

    def test_month_requires_year(self, client):
        resp = client.get(f"{API}/history?month=10", headers={"X-User-ID": "u1"})
        assert resp.status_code == 400

    def test_invalid_month(self, client):
        resp = client.get(f"{API}/history?year=2026&month=13", headers={"X-User-ID": "u1"})
        assert resp.status_code == 422

    def test_pagination_bounds(self, client, repo):
        headers = {"X-User-ID": "u1"}
        assert client.get(f"{API}/history?limit=0", headers=headers).status_code == 422
        client.get(f"{API}/history?limit=5&offset=10", headers=headers)
        assert repo.calls[-1] == ("list_by_user", 5, 10)

    def test_get_by_id_scoped_to_user(self, client):
        created = client.post(
            f"{API}/history", json=self.RECORD, headers={"X-User-ID": "u1"},
        ).json()
        own = client.get(f"{API}/history/{created['id']}", headers={"X-User-ID": "u1"})
        other = client.get(f"{API}/history/{created['id']}", headers={"X-User-ID": "u2"})
        assert own.status_code == 200
        assert other.status_code == 404


# =====================================================================
# Reference endpoints
# =====================================================================


class TestReference:

    def test_risk_levels(self, client):
        body = client.get(f"{API}/reference/risk-levels").json()
        assert [(lv["level"], lv["severity"], lv["label"]) for lv in body] == [
            (1, "low", "정상"), (2, "medium", "주의"), (3, "high", "위험"),
        ]

    def test_classifications(self, client):
        body = client.get(f"{API}/reference/classifications").json()
        assert {c["code"]: c["entry_question"] for c in body} == {
            1: "C1_Q1", 2: "C2_Q1", 3: "C3_Q1",
        }

    def test_graph(self, client, store):
        body = client.get(f"{API}/reference/graph").json()
        node_ids = {n["data"]["id"] for n in body["nodes"]}
        assert node_ids == set(store.questions) | set(store.results)
        dynamic = [e["data"] for e in body["edges"] if e["data"]["kind"] == "dynamic_start"]
        assert {e["target"] for e in dynamic} == {"C1_Q1", "C2_Q1", "C3_Q1"}
        assert all(e["source"] == "E_Q2" for e in dynamic)
        for e in body["edges"]:
            assert e["data"]["target"] in node_ids


# =====================================================================
# Error mapping
# =====================================================================


class TestErrorMapping:

    REQUEST = SimpleNamespace(url="http://testserver/api/v1/x")

    @pytest.mark.asyncio
    async def test_not_found_error_is_404(self):
        resp = await value_error_handler(self.REQUEST, NotFoundError("Record missing"))
        assert resp.status_code == 404
        assert json.loads(resp.body) == {"detail": "Resource not found"}

    @pytest.mark.asyncio
    async def test_status_does_not_depend_on_message(self):
        resp = await value_error_handler(self.REQUEST, ValueError("option not found"))
        assert resp.status_code == 400
        assert json.loads(resp.body) == {"detail": "Invalid request"}

    def test_route_not_found_is_404(self, client):
        resp = client.get(f"{API}/triage/results/C1_Q1")
        assert resp.status_code == 404
