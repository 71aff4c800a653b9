"""
Integration tests for the registry API.

Requests go through FastAPI, the message bus and a real SQLite storage.
"""
import json

import pytest
from fastapi.testclient import TestClient

from bloodconnect.adapters.storage import SqlAlchemyStorage
from bloodconnect.bootstrap import bootstrap
from bloodconnect.entrypoints.registry_api import app, get_registry
from bloodconnect.service_layer.notifications import NotificationChannel
from bloodconnect.service_layer.unit_of_work import RegistryUnitOfWork


@pytest.fixture
def api_registry(sqlite_session_factory):
    return bootstrap(
        uow=RegistryUnitOfWork(storage=SqlAlchemyStorage(sqlite_session_factory)),
        channel=NotificationChannel(ttl=3.5),
    )


@pytest.fixture
def client(api_registry):
    app.dependency_overrides[get_registry] = lambda: api_registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, **fields):
    body = {"name": "Rahim", "phone": "01711-111111", "blood": "O+", "city": "Dhaka", **fields}
    return client.post("/api/v1/donors", json=body)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_and_search_donors(client):
    response = register(client)
    register(client, name="Karim", blood="A+", city="Khulna")

    assert response.status_code == 201
    assert response.json()["view"] == "find"
    assert response.json()["message"]["text"] == "Thank you! You are registered as a donor."

    found = client.get("/api/v1/donors", params={"blood": "O+", "city": "dhaka"}).json()
    assert found["count"] == 1
    assert found["donors"][0]["name"] == "Rahim"
    assert found["donors"][0]["contact"]["call"] == "tel:01711-111111"

    everyone = client.get("/api/v1/donors").json()
    assert [d["name"] for d in everyone["donors"]] == ["Karim", "Rahim"]


def test_invalid_registration_is_rejected(client):
    response = client.post("/api/v1/donors", json={"name": "Rahim", "blood": "O+"})

    assert response.status_code == 422
    assert response.json()["detail"] == "Please provide name, phone and blood group"
    assert client.get("/api/v1/donors").json()["count"] == 0


def test_request_lifecycle(client):
    created = client.post(
        "/api/v1/requests",
        json={"name": "Karim", "phone": "0181", "blood": "B-", "hospital": "DMC"},
    )
    request_id = created.json()["request"]["id"]

    toggled = client.post(f"/api/v1/requests/{request_id}/toggle-fulfilled")
    summary = client.get("/api/v1/summary").json()
    removed = client.delete(f"/api/v1/requests/{request_id}")

    assert created.status_code == 201
    assert created.json()["view"] == "home"
    assert toggled.json()["request"]["fulfilled"] is True
    assert summary["requests"] == 1
    assert summary["open_requests"] == 0
    assert removed.json()["removed"] is True
    assert client.get("/api/v1/requests").json()["count"] == 0


def test_toggle_unknown_request_is_404(client):
    assert client.post("/api/v1/requests/missing/toggle-fulfilled").status_code == 404


def test_clear_requests(client):
    client.post("/api/v1/requests", json={"name": "A", "phone": "1", "blood": "A+"})
    client.post("/api/v1/requests", json={"name": "B", "phone": "2", "blood": "B+"})

    response = client.delete("/api/v1/requests")

    assert response.json()["cleared"] == 2
    assert response.json()["message"]["text"] == "All requests cleared (local only)"


def test_remove_donor(client):
    donor_id = register(client).json()["donor"]["id"]

    response = client.delete(f"/api/v1/donors/{donor_id}")

    assert response.json()["removed"] is True
    assert response.json()["message"]["text"] == "Donor removed"


def test_export_then_import_round_trip(client):
    register(client)
    client.post("/api/v1/requests", json={"name": "Karim", "phone": "0181", "blood": "B-"})

    exported = client.get("/api/v1/export")
    document = exported.json()
    client.delete("/api/v1/requests")
    client.delete(f"/api/v1/donors/{document['donors'][0]['id']}")

    imported = client.post(
        "/api/v1/import",
        files={"file": ("blood-donation-data.json", exported.content, "application/json")},
    )

    assert exported.headers["content-disposition"] == 'attachment; filename="blood-donation-data.json"'
    assert imported.status_code == 200
    assert imported.json()["imported"] == {"donors": 1, "requests": 1}
    assert json.loads(client.get("/api/v1/export").content) == document


def test_malformed_import_is_rejected(client):
    register(client)

    response = client.post(
        "/api/v1/import",
        files={"file": ("broken.json", b"{oops", "application/json")},
    )

    assert response.status_code == 400
    assert client.get("/api/v1/donors").json()["count"] == 1
    notification = client.get("/api/v1/notification").json()
    assert notification["message"] == {"text": "Could not read the file", "kind": "error"}


def test_blood_groups(client):
    assert client.get("/api/v1/blood-groups").json() == ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
