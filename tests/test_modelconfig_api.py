"""
API endpoint tests for ModelConfig CRUD.

These tests use FastAPI TestClient with the in-memory Redis fake so that
handlers can read back what they wrote.
"""

import json
from unittest.mock import AsyncMock

import pytest

from kagent.errors import InternalError


def create_body(**overrides):
    body = {
        "name": "gpt-4o",
        "provider": {"name": "OpenAI", "type": "OpenAI"},
        "model": "gpt-4o",
        "apiKey": "sk-test",
        "openAI": {"baseUrl": "https://api.openai.com/v1", "temperature": "0.2"},
    }
    body.update(overrides)
    return body


def stored_secret(fake_redis, name):
    data = fake_redis._storage.get(f"resource:Secret:test-ns:{name}")
    return json.loads(data) if data else None


class TestCreateModelConfig:
    """POST /api/modelconfigs"""

    def test_create_with_api_key(self, client, fake_redis):
        response = client.post("/api/modelconfigs", json=create_body())

        assert response.status_code == 201
        data = response.json()
        assert data["kind"] == "ModelConfig"
        assert data["metadata"]["name"] == "gpt-4o"
        assert data["metadata"]["namespace"] == "test-ns"
        assert data["spec"]["provider"] == "OpenAI"
        assert data["spec"]["apiKeySecretRef"] == "gpt-4o"
        assert data["spec"]["apiKeySecretKey"] == "OPENAI_API_KEY"
        assert data["spec"]["openAI"] == {
            "baseUrl": "https://api.openai.com/v1",
            "temperature": "0.2",
        }

        secret = stored_secret(fake_redis, "gpt-4o")
        assert secret["stringData"] == {"OPENAI_API_KEY": "sk-test"}

    def test_create_ollama_skips_secret(self, client, fake_redis):
        body = create_body(
            name="llama",
            provider={"name": "Ollama", "type": "Ollama"},
            model="llama3",
            ollama={"host": "http://ollama:11434"},
        )

        response = client.post("/api/modelconfigs", json=body)

        assert response.status_code == 201
        spec = response.json()["spec"]
        assert "apiKeySecretRef" not in spec
        assert spec["ollama"] == {"host": "http://ollama:11434"}
        assert stored_secret(fake_redis, "llama") is None

    def test_create_without_api_key_skips_secret(self, client, fake_redis):
        response = client.post("/api/modelconfigs", json=create_body(apiKey=""))

        assert response.status_code == 201
        assert stored_secret(fake_redis, "gpt-4o") is None

    def test_params_for_other_providers_ignored(self, client):
        body = create_body(anthropic={"maxTokens": 100})

        response = client.post("/api/modelconfigs", json=body)

        assert "anthropic" not in response.json()["spec"]

    def test_create_conflict(self, client):
        assert client.post("/api/modelconfigs", json=create_body()).status_code == 201

        response = client.post("/api/modelconfigs", json=create_body())

        assert response.status_code == 409
        assert response.json()["detail"] == "Model config already exists"

    def test_unsupported_provider(self, client, fake_redis):
        body = create_body(provider={"name": "Foo", "type": "FooAI"})

        response = client.post("/api/modelconfigs", json=body)

        assert response.status_code == 400
        assert "unsupported provider type" in response.json()["detail"]
        assert stored_secret(fake_redis, "gpt-4o") is None

    def test_invalid_body(self, client):
        response = client.post("/api/modelconfigs", json={"name": "x"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    def test_secret_removed_when_config_create_fails(self, client, store, fake_redis):
        original_create = store.create

        async def failing_create(kind, obj):
            if kind == "ModelConfig":
                raise InternalError("boom")
            return await original_create(kind, obj)

        store.create = failing_create

        response = client.post("/api/modelconfigs", json=create_body())

        assert response.status_code == 500
        assert stored_secret(fake_redis, "gpt-4o") is None


class TestGetAndListModelConfigs:
    """GET /api/modelconfigs and /api/modelconfigs/{configName}"""

    def test_list_empty(self, client):
        response = client.get("/api/modelconfigs")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_flattens_params(self, client):
        client.post("/api/modelconfigs", json=create_body())
        client.post(
            "/api/modelconfigs",
            json=create_body(
                name="claude",
                provider={"name": "Anthropic", "type": "Anthropic"},
                model="claude-sonnet",
                anthropic={"maxTokens": 1024, "topK": 5},
            ),
        )

        response = client.get("/api/modelconfigs")

        assert response.status_code == 200
        configs = {c["name"]: c for c in response.json()}
        assert configs["claude"] == {
            "name": "claude",
            "namespace": "test-ns",
            "providerName": "Anthropic",
            "model": "claude-sonnet",
            "apiKeySecretRef": "claude",
            "apiKeySecretKey": "ANTHROPIC_API_KEY",
            "modelParams": {"maxTokens": 1024, "topK": 5},
        }
        assert configs["gpt-4o"]["modelParams"]["baseUrl"] == "https://api.openai.com/v1"

    def test_get(self, client):
        client.post("/api/modelconfigs", json=create_body())

        response = client.get("/api/modelconfigs/gpt-4o")

        assert response.status_code == 200
        data = response.json()
        assert data["providerName"] == "OpenAI"
        assert data["modelParams"] == {
            "baseUrl": "https://api.openai.com/v1",
            "temperature": "0.2",
        }

    def test_get_missing(self, client):
        response = client.get("/api/modelconfigs/missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "Model config not found"

    def test_store_failure_is_500(self, client, store):
        store.list = AsyncMock(side_effect=InternalError("down"))

        response = client.get("/api/modelconfigs")

        assert response.status_code == 500


class TestUpdateModelConfig:
    """PUT /api/modelconfigs/{configName}"""

    def test_update_model_and_params(self, client):
        client.post("/api/modelconfigs", json=create_body())

        response = client.put(
            "/api/modelconfigs/gpt-4o",
            json={
                "provider": {"name": "OpenAI", "type": "OpenAI"},
                "model": "gpt-4.1",
                "openAI": {"maxTokens": 2048},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["model"] == "gpt-4.1"
        assert data["modelParams"] == {"maxTokens": 2048}
        # No new key sent: existing secret reference kept
        assert data["apiKeySecretRef"] == "gpt-4o"
        assert data["apiKeySecretKey"] == "OPENAI_API_KEY"

    def test_update_api_key_updates_secret(self, client, fake_redis):
        client.post("/api/modelconfigs", json=create_body())

        response = client.put(
            "/api/modelconfigs/gpt-4o",
            json={
                "provider": {"name": "OpenAI", "type": "OpenAI"},
                "model": "gpt-4o",
                "apiKey": "sk-new",
            },
        )

        assert response.status_code == 200
        secret = stored_secret(fake_redis, "gpt-4o")
        assert secret["stringData"]["OPENAI_API_KEY"] == "sk-new"
        assert secret["metadata"]["resourceVersion"] == "2"

    def test_update_api_key_creates_missing_secret(self, client, fake_redis):
        client.post("/api/modelconfigs", json=create_body(apiKey=""))

        response = client.put(
            "/api/modelconfigs/gpt-4o",
            json={
                "provider": {"name": "OpenAI", "type": "OpenAI"},
                "model": "gpt-4o",
                "apiKey": "sk-new",
            },
        )

        assert response.status_code == 200
        assert response.json()["apiKeySecretRef"] == "gpt-4o"
        assert stored_secret(fake_redis, "gpt-4o")["stringData"] == {"OPENAI_API_KEY": "sk-new"}

    def test_switch_to_ollama_drops_secret_ref(self, client):
        client.post("/api/modelconfigs", json=create_body())

        response = client.put(
            "/api/modelconfigs/gpt-4o",
            json={
                "provider": {"name": "Ollama", "type": "Ollama"},
                "model": "llama3",
                "apiKey": "ignored",
                "ollama": {"host": "http://ollama:11434"},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["providerName"] == "Ollama"
        assert data["apiKeySecretRef"] == ""
        assert data["modelParams"] == {"host": "http://ollama:11434"}

    def test_update_missing(self, client):
        response = client.put(
            "/api/modelconfigs/missing",
            json={"provider": {"type": "OpenAI"}, "model": "gpt-4o"},
        )

        assert response.status_code == 404

    def test_update_unsupported_provider(self, client):
        client.post("/api/modelconfigs", json=create_body())

        response = client.put(
            "/api/modelconfigs/gpt-4o",
            json={"provider": {"type": "FooAI"}, "model": "x"},
        )

        assert response.status_code == 400


class TestDeleteModelConfig:
    """DELETE /api/modelconfigs/{configName}"""

    def test_delete(self, client):
        client.post("/api/modelconfigs", json=create_body())

        response = client.delete("/api/modelconfigs/gpt-4o")

        assert response.status_code == 200
        assert response.json() is None
        assert client.get("/api/modelconfigs/gpt-4o").status_code == 404

    def test_delete_missing(self, client):
        response = client.delete("/api/modelconfigs/missing")

        assert response.status_code == 404


class TestHealth:
    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}

    def test_health_with_store(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["redis"] == "connected"

    def test_health_without_store(self, client, app):
        app.state.store = None

        response = client.get("/health")

        assert response.status_code == 503
