"""
API Server Tests
================

Drives the FastAPI app end to end against a temporary state document.
"""

import json

import pytest
from fastapi.testclient import TestClient

from homeostat.api.server import create_app
from homeostat.config import AppConfig
from homeostat.contracts.ontology import EnforcementLevel, SCHEMA_VERSION
from homeostat.schema.versions import is_valid_state

from .fixtures import legacy_doc, normative_model, seeded_state


PERSONAL_BODY = {"type": "Personal", "id": "personal"}


def write_document(path, document):
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(document, f)


@pytest.fixture
def state_path(tmp_path):
    path = tmp_path / "state.json"
    write_document(path, seeded_state().to_dict())
    return path


@pytest.fixture
def client(state_path):
    app = create_app(AppConfig(state_path_override=str(state_path)))
    with TestClient(app) as test_client:
        yield test_client


def open_explore(client, episode_id="e1"):
    return client.post("/episodes", json={
        "node": PERSONAL_BODY,
        "type": "Explore",
        "objective": "Learn X",
        "episodeId": episode_id,
    })


# =============================================================================
# READ MODEL
# =============================================================================

class TestReadModel:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "online", "schemaVersion": SCHEMA_VERSION}

    def test_baseline_status(self, client):
        response = client.get("/status/Personal/personal")
        assert response.status_code == 200
        assert response.json() == {"mode": "baseline", "node": PERSONAL_BODY}

    def test_invalid_node_type(self, client):
        assert client.get("/status/Team/personal").status_code == 422

    def test_state_is_the_loaded_document(self, client):
        assert client.get("/state").json() == seeded_state().to_dict()

    def test_missing_file_starts_empty(self, tmp_path):
        app = create_app(AppConfig(state_path_override=str(tmp_path / "absent.json")))
        with TestClient(app) as client:
            state = client.get("/state").json()
        assert state["variables"] == []
        assert state["schemaVersion"] == SCHEMA_VERSION

    def test_legacy_file_is_migrated_on_startup(self, tmp_path):
        path = tmp_path / "old.json"
        write_document(path, legacy_doc(6))

        with TestClient(create_app(AppConfig(state_path_override=str(path)))) as client:
            state = client.get("/state").json()

        assert state["schemaVersion"] == SCHEMA_VERSION
        assert [n["id"] for n in state["nodes"]] == ["personal", "org", "system:becoming-engine"]

    def test_unknown_file_fails_startup(self, tmp_path):
        path = tmp_path / "bad.json"
        write_document(path, {"nope": True})

        with pytest.raises(RuntimeError):
            with TestClient(create_app(AppConfig(state_path_override=str(path)))):
                pass


# =============================================================================
# EPISODES
# =============================================================================

class TestEpisodes:

    def test_open_explore(self, client):
        response = open_explore(client)

        assert response.status_code == 201
        body = response.json()
        assert body["episode"]["id"] == "e1"
        assert body["episode"]["status"] == "Active"
        assert body["membrane"] == {"decision": "allow"}
        assert client.get("/status/Personal/personal").json()["mode"] == "active"

    def test_second_explore_conflicts(self, client):
        open_explore(client)
        response = open_explore(client, "e2")

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "CARDINALITY_EXCEEDED"

    def test_stabilize_requires_variable_id(self, client):
        response = client.post("/episodes", json={
            "node": PERSONAL_BODY,
            "type": "Stabilize",
            "objective": "Sleep more",
        })
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_FAILED"

    def test_invalid_episode_type(self, client):
        response = client.post("/episodes", json={
            "node": PERSONAL_BODY, "type": "Wander", "objective": "Learn X",
        })
        assert response.status_code == 422

    def test_generated_episode_id(self, client):
        response = client.post("/episodes", json={
            "node": PERSONAL_BODY, "type": "Explore", "objective": "Learn X",
        })
        assert response.status_code == 201
        assert response.json()["episode"]["id"].startswith("ep")

    def test_blocking_model_refuses(self, state_path):
        state = seeded_state()
        document = state.to_dict()
        document["models"] = [
            normative_model("b1", EnforcementLevel.BLOCK, statement="No new work").to_dict()
        ]
        write_document(state_path, document)

        with TestClient(create_app(AppConfig(state_path_override=str(state_path)))) as client:
            response = open_explore(client)
            episodes = client.get("/state").json()["episodes"]

        assert response.status_code == 409
        assert response.json()["detail"] == {
            "code": "BLOCKED", "error": "No new work", "modelId": "b1",
        }
        assert episodes == []

    def test_close_explore_requires_model(self, client):
        open_explore(client)
        response = client.post("/episodes/e1/close", json={
            "closureNote": {"content": "Learned that X causes Y"},
        })

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_FAILED"

    def test_close_explore(self, client):
        open_explore(client)
        response = client.post("/episodes/e1/close", json={
            "closureNote": {"content": "Learned that X causes Y", "id": "cn1"},
            "modelUpdates": [{"id": "m1", "type": "Descriptive", "statement": "X causes Y"}],
        })

        assert response.status_code == 200
        assert response.json()["episode"]["status"] == "Closed"
        assert response.json()["episode"]["closureNoteId"] == "cn1"

        state = client.get("/state").json()
        assert [m["id"] for m in state["models"]] == ["m1"]
        assert client.get("/status/Personal/personal").json()["mode"] == "baseline"

    def test_close_unknown_episode(self, client):
        response = client.post("/episodes/ghost/close", json={
            "closureNote": {"content": "Done"},
        })
        assert response.status_code == 404

    def test_reused_episode_id_is_refused(self, client):
        open_explore(client)
        client.post("/episodes/e1/close", json={
            "closureNote": {"content": "Learned that X causes Y"},
            "modelUpdates": [{"id": "m1", "type": "Descriptive", "statement": "X causes Y"}],
        })
        response = open_explore(client, "e1")

        assert response.status_code == 409
        assert response.json()["detail"] == {
            "code": "DUPLICATE_ID", "error": "Episode with id 'e1' already exists",
        }
        assert is_valid_state(client.get("/state").json())


# =============================================================================
# SIGNALS AND ACTIONS
# =============================================================================

class TestSignalsAndActions:

    def test_signal(self, client):
        response = client.post("/signals", json={
            "node": PERSONAL_BODY, "variableId": "v1", "status": "InRange", "reason": "slept 8h",
        })

        assert response.status_code == 200
        assert response.json()["variable"]["status"] == "InRange"

    def test_signal_missing_variable(self, client):
        response = client.post("/signals", json={
            "node": PERSONAL_BODY, "variableId": "ghost", "status": "High",
        })

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_action_lifecycle(self, client):
        created = client.post("/actions", json={
            "node": PERSONAL_BODY, "description": "Read a paper", "actionId": "a1",
        })
        assert created.status_code == 201
        assert created.json()["action"]["status"] == "Pending"

        completed = client.post("/actions/a1/complete")
        assert completed.status_code == 200
        assert completed.json()["action"]["status"] == "Done"

        again = client.post("/actions/a1/complete")
        assert again.status_code == 200

    def test_complete_missing_action(self, client):
        assert client.post("/actions/ghost/complete").status_code == 404

    def test_reused_action_id_is_refused(self, client):
        body = {"node": PERSONAL_BODY, "description": "Read a paper", "actionId": "a1"}
        client.post("/actions", json=body)
        response = client.post("/actions", json=body)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "DUPLICATE_ID"
        assert len(client.get("/state").json()["actions"]) == 1


# =============================================================================
# MIGRATION DRY RUN
# =============================================================================

class TestMigrate:

    def test_legacy_document(self, client):
        response = client.post("/migrate", json=legacy_doc(2))
        body = response.json()

        assert response.status_code == 200
        assert body["status"] == "migrated"
        assert body["fromVersion"] == 2
        assert body["state"]["schemaVersion"] == SCHEMA_VERSION

    def test_garbage(self, client):
        assert client.post("/migrate", json={"nope": True}).json() == {"status": "invalid"}

    def test_loaded_state_is_untouched(self, client):
        before = client.get("/state").json()
        client.post("/migrate", json=legacy_doc(2))
        assert client.get("/state").json() == before
