"""
HTTP surface tests through FastAPI's TestClient
"""

import os
import runpy
import sys

import pytest
from fastapi.testclient import TestClient

from binding_validator.app import app
from binding_validator.models.enums import BackendKind
from binding_validator.services.base_service import ValidationResult

from helpers import FakeRedis, fake_connect, manifest

BOUND_SERVICES = manifest({
    "p.redis": [{
        "name": "cache-1",
        "label": "p.redis",
        "credentials": {"host": "redis.example.com", "port": 6379, "password": "top-secret"},
    }],
    "user-provided": [{
        "name": "my-mysql-db",
        "credentials": {"jdbcUrl": "jdbc:mysql://h:3306/d", "username": "u", "password": "p"},
    }],
})


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("VCAP_SERVICES", BOUND_SERVICES)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def redis_client(client, monkeypatch):
    fake = FakeRedis({"test": "hello"})
    service = client.app.state.services[BackendKind.KEYVALUE]
    monkeypatch.setattr(service, "connect", fake_connect(fake))
    return fake


class TestIndexAndHealth:

    def test_index_lists_services_without_secrets(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["application"] == "Service Binding Validator"
        assert body["configured_services"]["keyvalue"][0]["service_name"] == "cache-1"
        assert "top-secret" not in response.text

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["configured_kinds"]) == {"keyvalue", "relational-mysql"}

    def test_trace_id_header(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Trace-ID"]) == 8

    def test_runs_without_bindings(self, monkeypatch):
        monkeypatch.delenv("VCAP_SERVICES", raising=False)
        with TestClient(app) as test_client:
            assert test_client.get("/health").json()["configured_kinds"] == []
            assert test_client.get("/api/services").json()["count"] == 0

    def test_malformed_manifest_degrades_to_empty(self, monkeypatch):
        monkeypatch.setenv("VCAP_SERVICES", "{broken")
        with TestClient(app) as test_client:
            assert test_client.get("/health").status_code == 200
            assert test_client.get("/api/services").json()["services"] == {}


class TestServicesEndpoint:

    def test_summary(self, client):
        body = client.get("/api/services").json()
        assert body["count"] == 2
        mysql = body["services"]["relational-mysql"][0]
        assert mysql["username"] == "u"
        assert mysql["user_provided"] is True
        assert mysql["has_jdbc_url"] is True
        assert "password" not in mysql
        assert "jdbc_url" not in mysql


class TestValidateEndpoint:

    def test_get_with_query_parameters(self, client, redis_client):
        response = client.get("/api/redis/validate", params={"operation": "get", "key": "test"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["service"] == "Redis/Valkey"
        assert body["operation"] == "get"
        assert body["value"] == "hello"

    def test_post_with_json_body(self, client, redis_client):
        response = client.post(
            "/api/valkey/validate", params={"operation": "set"}, json={"key": "k", "value": "v", "ttl": 30}
        )
        assert response.status_code == 200
        assert response.json()["set"] is True
        assert redis_client.data["k"] == "v"
        assert redis_client.ttls["k"] == 30

    def test_post_without_body_uses_defaults(self, client, redis_client):
        response = client.post("/api/redis/validate?operation=exists")
        assert response.json()["key"] == "test"
        assert response.json()["exists"] is True

    def test_camel_case_routing_key(self, monkeypatch):
        captured = {}

        async def fake_validate(operation, request=None):
            captured["request"] = request
            return ValidationResult(service="RabbitMQ", operation=operation, data={"sent": True})

        monkeypatch.setenv("VCAP_SERVICES", manifest({
            "p.rabbitmq": [{"name": "events", "label": "p.rabbitmq", "credentials": {"host": "b"}}]
        }))
        with TestClient(app) as test_client:
            service = test_client.app.state.services[BackendKind.BROKER]
            monkeypatch.setattr(service, "validate", fake_validate)
            response = test_client.post(
                "/api/rabbit/validate?operation=send", json={"routingKey": "orders", "message": "hi"}
            )

        assert response.status_code == 200
        assert captured["request"].routing_key == "orders"
        assert captured["request"].message == "hi"

    def test_unconfigured_backend(self, client):
        response = client.get("/api/rabbitmq/validate", params={"operation": "send"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == "RabbitMQ service not configured"

    def test_unsupported_operation(self, client, redis_client):
        body = client.get("/api/redis/validate", params={"operation": "flushall"}).json()
        assert body["status"] == "error"
        assert body["message"] == "Unsupported operation: flushall"

    def test_unknown_service(self, client):
        response = client.get("/api/mongodb/validate", params={"operation": "read"})
        assert response.status_code == 404
        assert "Unknown service: mongodb" in response.json()["message"]

    def test_missing_operation(self, client):
        assert client.get("/api/redis/validate").status_code == 422

    @pytest.mark.parametrize("ttl", ["-1", "soon"])
    def test_invalid_query_parameter(self, client, ttl):
        response = client.get("/api/redis/validate", params={"operation": "set", "ttl": ttl})
        assert response.status_code == 422
        assert response.json()["error"] == "Validation Error"

    @pytest.mark.parametrize("content", [b"{not json", b"[1, 2]"])
    def test_invalid_body(self, client, content):
        response = client.post(
            "/api/redis/validate?operation=set", content=content, headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 422

    def test_backend_failure_is_reported_not_raised(self, client, monkeypatch):
        async def prepare_fails(*args, **kwargs):
            raise OSError("Connection refused")

        service = client.app.state.services[BackendKind.MYSQL]
        monkeypatch.setattr(service, "prepare", prepare_fails)
        monkeypatch.setattr(service, "connect", fake_connect(object()))

        response = client.get("/api/mysql/validate", params={"operation": "read"})
        assert response.status_code == 200
        assert response.json()["status"] == "error"
        assert response.json()["error_type"] == "OSError"


class TestEntryPoint:

    def test_source_checkout_runs_without_install(self, monkeypatch):
        monkeypatch.setattr(sys, "path", list(sys.path))
        root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

        namespace = runpy.run_path(os.path.join(root, "main.py"))

        assert sys.path[0] == os.path.join(root, "src")
        assert namespace["app"] is app
