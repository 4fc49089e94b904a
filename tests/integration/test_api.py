"""
API Tests

HTTP surface over an injected engine with a fixed clock.
"""

import pytest
from fastapi.testclient import TestClient

from moment_engine.api.server import create_app
from moment_engine.engine import EngineConfig, MomentIntelligenceEngine
from moment_engine.temporal import LogicalClock

from tests.fixtures import LENIENT_BEHAVIOUR, NOW


CANDIDATE = {
    "id": "cand_desk_summer",
    "title": "Office workers fake a summer vacation from their desks",
    "keywords": ["summer", "desk", "office", "vacation"],
    "signals": [
        {"id": "s0", "source": "reddit", "createdAt": "2026-03-14T17:30:00Z",
         "title": "Office workers fake summer vacation from desks", "entities": ["Slack"]},
        {"id": "s1", "source": "hn", "createdAt": "2026-03-14T17:00:00Z",
         "title": "Office workers fake summer vacation from desks"},
        {"id": "s2", "source": "tiktok", "createdAt": "2026-03-14T16:30:00Z",
         "title": "Office workers fake summer vacation from desks"},
    ],
}

HEALTHY_WINDOW = {
    "windowLabel": "last 24h",
    "signals": [
        {"source": "reddit", "text": "summer office", "keywords": ["summer", "office"],
         "entities": ["Slack"]},
        {"source": "hn", "text": "desk vacation", "keywords": ["desk", "vacation"]},
        {"source": "tiktok", "text": "summer desk", "keywords": ["summer", "desk"]},
    ],
}


@pytest.fixture
def engine():
    return MomentIntelligenceEngine(
        EngineConfig(behaviour=LENIENT_BEHAVIOUR),
        clock=LogicalClock.fixed(NOW),
    )


@pytest.fixture
def client(engine):
    with TestClient(create_app(engine)) as test_client:
        yield test_client


@pytest.fixture
def qualified_client(client):
    response = client.post("/api/v1/moments/qualify", json={"candidates": [CANDIDATE]})
    assert response.status_code == 200
    return client


class TestHealth:

    def test_online(self, client):
        body = client.get("/health").json()
        assert body == {"status": "online", "behaviourVersion": "behaviour_test_lenient", "moments": 0}

    def test_starting_without_lifespan(self, engine):
        response = TestClient(create_app(engine)).get("/health")
        assert response.status_code == 503


class TestAssess:

    def test_assess_clusters(self, client):
        response = client.post("/api/v1/trends/assess", json=[{
            "id": "cluster_001",
            "label": "Desk-bound summer",
            "category": "Work culture",
            "signals": [
                {"id": "r1", "source": "reddit", "score": 160, "timestamp": "2026-03-14T12:00:00Z",
                 "tags": ["market:brazil"]},
                {"id": "h1", "source": "hn", "score": 40, "timestamp": "2026-03-14T15:00:00Z"},
            ],
        }])

        assert response.status_code == 200
        (trend,) = response.json()["data"]
        assert trend["status"] == "Peaking"
        assert trend["category"] == "Work culture · Brazil"
        assert trend["evidence"]["signalCount"] == 2
        assert trend["evidence"]["firstSeenAt"] == "2026-03-14T12:00:00Z"

    def test_empty_clusters(self, client):
        response = client.post("/api/v1/trends/assess", json=[])
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "EMPTY_PAYLOAD"

    def test_malformed_cluster(self, client):
        response = client.post("/api/v1/trends/assess", json=[{"label": "no id"}])
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "MALFORMED_PAYLOAD"

    def test_invalid_json(self, client):
        response = client.post(
            "/api/v1/trends/assess",
            content="{not json",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 422
        assert response.json()["ok"] is False


class TestMoments:

    def test_qualify(self, client):
        response = client.post("/api/v1/moments/qualify", json={"candidates": [CANDIDATE]})

        (outcome,) = response.json()["data"]
        assert outcome["candidateId"] == "cand_desk_summer"
        assert outcome["qualification"]["pass"] is True
        assert outcome["record"]["lifecycleStatus"] == "active"
        assert outcome["record"]["canonical"]["anchorEntities"] == ["slack"]
        assert outcome["error"] is None

    def test_get_moment(self, qualified_client):
        body = qualified_client.get("/api/v1/moments/cand_desk_summer").json()
        assert body["data"]["qualifiedAt"] == "2026-03-14T18:00:00Z"

    def test_unknown_moment(self, client):
        response = client.get("/api/v1/moments/ghost")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "MOMENT_NOT_FOUND"

    def test_evaluate_healthy(self, qualified_client):
        response = qualified_client.post(
            "/api/v1/moments/cand_desk_summer/evaluate", json=HEALTHY_WINDOW
        )

        data = response.json()["data"]
        assert data["health"]["state"] == "VALID"
        assert data["health"]["ICS"] == pytest.approx(1.0)
        assert data["lifecycleStatus"] == "active"
        assert data["behaviourVersion"] == "behaviour_test_lenient"

    def test_evaluate_without_body_is_no_evidence(self, qualified_client):
        response = qualified_client.post("/api/v1/moments/cand_desk_summer/evaluate")

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["health"]["invalidReason"] == "NO_EVIDENCE"
        assert data["lifecycleStatus"] == "historical"

    def test_evaluate_unknown(self, client):
        response = client.post("/api/v1/moments/ghost/evaluate", json=HEALTHY_WINDOW)
        assert response.status_code == 404

    def test_health_counts_moments(self, qualified_client):
        assert qualified_client.get("/health").json()["moments"] == 1
