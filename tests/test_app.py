"""
Testes da API HTTP.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

import app as app_module
import models
from app import app, get_db, get_registry
from schemas import GenericAction, GenericProcessSummary


@pytest.fixture
def client(db_session, registry):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_registry] = lambda: registry
    app.state.limiter.enabled = False
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.limiter.enabled = True


def _add_process(provider, n_actions=3):
    provider.add_process(
        GenericProcessSummary(process_id="PROC-1", radicado="12345", office="Juzgado 1"),
        {"judge": "Juez"},
        [
            GenericAction(external_id=f"ACT-{i}", type="Auto", annotation=f"Nota {i}",
                          action_date=datetime(2025, 1, i + 1))
            for i in range(n_actions)
        ],
    )


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestLifespan:
    def test_scheduler_starts_and_stops_with_app(self, monkeypatch):
        scheduler = Mock()
        monkeypatch.setattr(app_module, "scheduler", scheduler)

        with TestClient(app):
            scheduler.start.assert_called_once_with()
            scheduler.stop.assert_not_called()

        scheduler.stop.assert_called_once_with()


class TestCaseSync:
    """POST /cases/{case_id}/judicial/sync"""

    def test_sync_ok(self, client, provider, make_case):
        case = make_case("12345")
        _add_process(provider)

        resp = client.post(f"/cases/{case.id}/judicial/sync")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "synced"
        assert body["imported"] == 3
        assert body["is_new_tracking"] is True

    def test_unknown_case(self, client):
        assert client.post("/cases/nope/judicial/sync").status_code == 404

    def test_missing_filing_number(self, client, make_case):
        case = make_case(None)
        assert client.post(f"/cases/{case.id}/judicial/sync").status_code == 400

    def test_provider_error(self, client, provider, make_case):
        case = make_case("12345")
        provider.fail("get_process_id_by_radicado")
        resp = client.post(f"/cases/{case.id}/judicial/sync")
        assert resp.status_code == 502

    def test_unknown_country_is_not_an_error(self, client, db_session, make_case):
        firm = models.Firm(name="US Firm", country="US")
        db_session.add(firm)
        db_session.commit()
        case = make_case("12345", case_firm=firm)

        resp = client.post(f"/cases/{case.id}/judicial/sync")

        assert resp.status_code == 200
        assert resp.json()["status"] == "skipped_no_provider"


class TestSweepEndpoint:
    def test_run_sweep(self, client, provider, make_case):
        make_case("12345")
        _add_process(provider)

        resp = client.post("/judicial/sweep")

        assert resp.status_code == 200
        assert resp.json()["cases_processed"] == 1

        status = client.get("/judicial/sync/status").json()
        assert status["execution_type"] == "api"

        history = client.get("/judicial/sync/history").json()
        assert history["total_returned"] == 1

        stats = client.get("/judicial/sync/stats").json()
        assert stats["total_executions"] == 1


class TestProcessView:
    """GET /cases/{case_id}/judicial"""

    def test_untracked_case(self, client, make_case):
        case = make_case("12345")
        body = client.get(f"/cases/{case.id}/judicial").json()
        assert body["tracked"] is False
        assert body["filing_number"] == "12345"
        assert body["actions"] == []

    def test_tracked_case_paginated(self, client, provider, make_case):
        case = make_case("12345")
        _add_process(provider, n_actions=3)
        client.post(f"/cases/{case.id}/judicial/sync")

        body = client.get(f"/cases/{case.id}/judicial", params={"page": 1, "page_size": 2}).json()

        assert body["tracked"] is True
        assert body["process"]["process_id"] == "PROC-1"
        assert body["process"]["details"]["judge"] == "Juez"
        assert body["total"] == 3
        assert body["total_pages"] == 2
        assert [a["external_id"] for a in body["actions"]] == ["ACT-2", "ACT-1"]

    def test_unknown_case(self, client):
        assert client.get("/cases/nope/judicial").status_code == 404
