"""Tests for the HTTP API."""

import asyncio
from collections import OrderedDict
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from promptcopilot.api import deps
from promptcopilot.api.deps import get_prompt_store, get_workbench, to_http_exception
from promptcopilot.config import Settings, get_settings
from promptcopilot.core.engine.service import PromptWorkbench
from promptcopilot.core.exceptions import (
    CatalogError,
    GenerationInProgressError,
    MissingCredentialError,
    ScoreParseError,
    UpstreamError,
    ValidationError,
)
from promptcopilot.core.model import PromptRecord, Provider
from promptcopilot.core.persistence import InMemoryPromptStore, InMemoryUsageSink
from promptcopilot.main import create_app


@pytest.fixture
def store():
    return InMemoryPromptStore()


@pytest.fixture
def workbench(registry, settings, store):
    return PromptWorkbench(registry=registry, settings=settings, store=store)


@pytest.fixture
def client(workbench, settings, store):
    app = create_app()
    app.dependency_overrides[get_workbench] = lambda: workbench
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_prompt_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def config_json(config):
    return config.model_dump(mode="json")


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["configured_providers"] == ["groq"]
    assert data["system_model"]["model"] == "llama-3.3-70b-versatile"


def test_health_unavailable_when_catalog_fails(client):
    with patch("promptcopilot.api.health.get_catalog", side_effect=CatalogError("catalog.yaml is invalid")):
        response = client.get("/api/health")

    assert response.status_code == 503
    assert "catalog.yaml is invalid" in response.json()["detail"]


def test_catalog(client):
    response = client.get("/api/catalog")
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"use_cases", "techniques", "length_modes", "output_formats"}
    assert data["use_cases"][0]["id"] == "general"


def test_default_config(client):
    response = client.get("/api/catalog/default-config")
    assert response.status_code == 200
    data = response.json()
    assert data["length_mode"]["id"] == "medium"
    assert data["llm_config"]["provider"] == "groq"
    assert data["examples"] == []


def test_compile(client, config_json):
    config_json["context"] = "Plan a trip"
    response = client.post("/api/prompts/compile", json={"config": config_json})
    assert response.status_code == 200
    assert "Task context: Plan a trip" in response.json()["prompt"]


def test_heuristic_score(client, config_json):
    response = client.post("/api/prompts/score", json={"prompt": "", "config": config_json})
    assert response.status_code == 200
    assert response.json() == {"clarity": 0, "specificity": 0, "structure": 0, "total": 0}


def test_generate_with_server_keys(client, config_json):
    response = client.post("/api/prompts/generate", json={"config": config_json})
    assert response.status_code == 200
    data = response.json()
    assert data["prompt"].startswith("You are a helpful assistant.")
    assert data["score"]["total"] == 75
    assert data["score_error"] is None
    assert data["usage"]["provider"] == "groq"
    assert data["fallback"] is False


def test_generate_custom_keys_missing(client, config_json):
    response = client.post(
        "/api/prompts/generate",
        json={"config": config_json, "use_custom_keys": True, "api_keys": {"openai_key": "sk-user"}},
    )
    assert response.status_code == 400
    assert "Groq API key is required" in response.json()["detail"]


def test_generate_scoring_failure_still_200(client, providers, config_json):
    providers[Provider.GROQ].responder = lambda prompt: "no json here"
    response = client.post("/api/prompts/generate", json={"config": config_json})
    assert response.status_code == 200
    data = response.json()
    assert data["prompt"] == "no json here"
    assert data["score"] is None
    assert data["score_error"]


def test_variants(client, config_json):
    response = client.post("/api/prompts/variants", json={"config": config_json})
    assert response.status_code == 200
    data = response.json()
    assert [v["id"] for v in data["variants"]] == ["variant-0", "variant-1", "variant-2"]
    assert data["best_variant_id"] == "variant-0"


def test_run_with_custom_key(client, providers):
    response = client.post(
        "/api/prompts/run",
        json={
            "prompt": "Hello",
            "llm_config": {"provider": "openai", "model": "gpt-4o"},
            "use_custom_keys": True,
            "api_keys": {"openai_key": "sk-user"},
        },
    )
    assert response.status_code == 200
    assert response.json()["output"] == "Model output"
    assert providers[Provider.OPENAI].calls[0]["prompt"] == "Hello"


def test_run_upstream_failure_is_502(client, providers):
    providers[Provider.GROQ].fail = True
    response = client.post(
        "/api/prompts/run",
        json={"prompt": "Hello", "llm_config": {"provider": "groq", "model": "llama-3.3-70b-versatile"}},
    )
    assert response.status_code == 502
    assert "groq" in response.json()["detail"].lower()


def test_run_rejects_out_of_bounds_model_config(client):
    response = client.post(
        "/api/prompts/run",
        json={"prompt": "Hello", "llm_config": {"provider": "groq", "model": "m", "temperature": 5}},
    )
    assert response.status_code == 422


def test_test_suite(client):
    response = client.post(
        "/api/prompts/test-suite",
        json={
            "prompt": "Classify",
            "test_cases": ["one", "two"],
            "llm_config": {"provider": "groq", "model": "llama-3.3-70b-versatile"},
        },
    )
    assert response.status_code == 200
    assert response.json()["outputs"] == ["Model output", "Model output"]


def test_chain_failure_reported_in_body(client, providers, config_json):
    second = {**config_json, "step_name": "Publish", "llm_config": {"provider": "anthropic", "model": "claude-3-haiku-20240307"}}
    response = client.post(
        "/api/chains/execute",
        json={"steps": [{**config_json, "step_name": "Draft"}, second]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "failed"
    assert data["failed_step"] == 2
    assert data["outputs"] == ["Model output"]
    assert "Anthropic API key is required" in data["error"]


def test_chain_requires_steps(client):
    response = client.post("/api/chains/execute", json={"steps": []})
    assert response.status_code == 422


def test_history_endpoints(client, store, config):
    record = PromptRecord.from_config(config, "saved prompt")
    asyncio.run(store.save(record))

    listed = client.get("/api/history")
    assert listed.status_code == 200
    assert [r["id"] for r in listed.json()] == [record.id]

    fetched = client.get(f"/api/history/{record.id}")
    assert fetched.status_code == 200
    assert fetched.json()["final_prompt"] == "saved prompt"

    assert client.delete(f"/api/history/{record.id}").status_code == 204
    assert client.get(f"/api/history/{record.id}").status_code == 404
    assert client.delete(f"/api/history/{record.id}").status_code == 404


@pytest.mark.parametrize(
    "error, status",
    [
        (ValidationError("bad"), 400),
        (CatalogError("unknown"), 400),
        (MissingCredentialError("groq"), 400),
        (GenerationInProgressError("busy"), 409),
        (UpstreamError("down", provider="openai"), 502),
        (ScoreParseError("garbled"), 502),
    ],
)
def test_error_mapping(error, status):
    assert to_http_exception(error).status_code == status


@pytest.fixture
def session_workbenches(monkeypatch):
    workbenches = OrderedDict()
    monkeypatch.setattr(deps, "_workbenches", workbenches)
    return workbenches


def test_workbench_per_session_is_reused(session_workbenches, settings, store):
    sink = InMemoryUsageSink()

    first = get_workbench("alice", settings, store, sink)

    assert get_workbench("alice", settings, store, sink) is first
    assert get_workbench("bob", settings, store, sink) is not first
    assert get_workbench(None, settings, store, sink) is session_workbenches[deps.DEFAULT_SESSION]


def test_idle_workbenches_evicted_least_recently_used(session_workbenches, store):
    settings = Settings(_env_file=None, max_sessions=2)
    sink = InMemoryUsageSink()

    first = get_workbench("a", settings, store, sink)
    get_workbench("b", settings, store, sink)
    assert get_workbench("a", settings, store, sink) is first
    get_workbench("c", settings, store, sink)

    assert list(session_workbenches) == ["a", "c"]


def test_busy_workbench_not_evicted(session_workbenches, store):
    settings = Settings(_env_file=None, max_sessions=2)
    sink = InMemoryUsageSink()

    busy = get_workbench("a", settings, store, sink)
    busy._busy = True
    get_workbench("b", settings, store, sink)
    get_workbench("c", settings, store, sink)

    assert list(session_workbenches) == ["a", "c"]
    assert session_workbenches["a"] is busy
