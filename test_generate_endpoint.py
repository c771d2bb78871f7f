#!/usr/bin/env python3
"""
Tests for POST /api/generate and GET /api/diagrams
"""

from datetime import datetime

from firebase_admin import firestore

from conftest import TEST_USER_ID, FakeDocument, FakeFirestore, FakeGroqClient
from diagram_generator import FALLBACK_SUMMARY
from diagram_store import DiagramStore
from routes import diagram_routes

VALID_BODY = {
    "text": "A user logs in and lands on the dashboard",
    "diagramType": "flowchart",
    "diagramTypeName": "DFD (Data Flow Diagram)",
}


def _stored(fake_db):
    return fake_db.collection("diagrams").added


def test_generate_requires_authentication(client, fake_groq, fake_db, wire_services):
    wire_services(fake_groq)
    response = client.post("/api/generate", json=VALID_BODY)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert fake_groq.calls == []
    assert _stored(fake_db) == []


def test_generate_rejects_invalid_token(client, authenticated, fake_groq, fake_db, wire_services):
    wire_services(fake_groq)
    response = client.post("/api/generate", json=VALID_BODY, headers={"Authorization": "Bearer forged"})

    assert response.status_code == 401
    assert fake_groq.calls == []


def test_generate_success(client, authenticated, fake_groq, fake_db, wire_services):
    wire_services(fake_groq)
    response = client.post("/api/generate", json=VALID_BODY, headers=authenticated)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Diagram generated successfully."
    assert body["diagramId"] == "diagram-1"
    assert body["diagramCode"] == "graph TD; A-->B;"
    assert body["analysis"]["flowPoints"] == ["User submits form", "Server checks password"]

    stored = _stored(fake_db)
    assert len(stored) == 1
    record = stored[0]
    assert record["user_id"] == TEST_USER_ID
    assert record["title"] == "A login flow from the form to the dashboard."
    assert record["description"] == VALID_BODY["text"]
    assert record["diagram_type"] == "flowchart"
    assert record["diagram_code"] == "graph TD; A-->B;"
    assert record["created_at"] is firestore.SERVER_TIMESTAMP


def test_generate_lowercases_diagram_type(client, authenticated, fake_groq, fake_db, wire_services):
    wire_services(fake_groq)
    body = dict(VALID_BODY, diagramType="ER_Diagram", diagramTypeName="ER Diagram")
    response = client.post("/api/generate", json=body, headers=authenticated)

    assert response.status_code == 200
    assert _stored(fake_db)[0]["diagram_type"] == "er_diagram"
    assert "ER DIAGRAM" in fake_groq.calls[0]["messages"][0]["content"]


def test_generate_invalid_type_makes_no_calls(client, authenticated, fake_groq, fake_db, wire_services):
    wire_services(fake_groq)
    body = dict(VALID_BODY, diagramType="gantt")
    response = client.post("/api/generate", json=body, headers=authenticated)

    assert response.status_code == 400
    assert response.json()["details"] == {"receivedType": "gantt"}
    assert fake_groq.calls == []
    assert _stored(fake_db) == []


def test_generate_text_too_long(client, authenticated, fake_groq, fake_db, wire_services):
    wire_services(fake_groq)
    body = dict(VALID_BODY, text="x" * 5001)
    response = client.post("/api/generate", json=body, headers=authenticated)

    assert response.status_code == 400
    assert response.json()["error"] == "Input text exceeds maximum length of 5000 characters."
    assert fake_groq.calls == []


def test_generate_text_at_limit_is_accepted(client, authenticated, fake_groq, fake_db, wire_services):
    wire_services(fake_groq)
    body = dict(VALID_BODY, text="x" * 5000)
    response = client.post("/api/generate", json=body, headers=authenticated)

    assert response.status_code == 200


def test_generate_missing_fields(client, authenticated, fake_groq, wire_services):
    wire_services(fake_groq)

    response = client.post("/api/generate", json={"diagramType": "flowchart"}, headers=authenticated)
    assert response.status_code == 400
    assert response.json()["error"] == 'Missing or invalid "text" field.'

    response = client.post("/api/generate", json={"text": "abc", "diagramType": "flowchart"}, headers=authenticated)
    assert response.status_code == 400
    assert "diagramTypeName" in response.json()["error"]
    assert fake_groq.calls == []


def test_generate_invalid_json_body(client, authenticated, fake_groq, wire_services):
    wire_services(fake_groq)
    headers = dict(authenticated, **{"Content-Type": "application/json"})
    response = client.post("/api/generate", content="{not json", headers=headers)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON in request body."}


def test_generate_model_declines(client, authenticated, fake_db, wire_services):
    groq = FakeGroqClient(content='{"error": "Unable to generate diagram from the provided text."}')
    wire_services(groq)
    response = client.post("/api/generate", json=VALID_BODY, headers=authenticated)

    assert response.status_code == 422
    assert response.json()["error"] == (
        "AI could not process the request: Unable to generate diagram from the provided text."
    )
    assert _stored(fake_db) == []


def test_generate_recovers_from_malformed_json(client, authenticated, fake_db, wire_services):
    groq = FakeGroqClient(content='{"mermaidCode": flowchart TD; A-->B;')
    wire_services(groq)
    response = client.post("/api/generate", json=VALID_BODY, headers=authenticated)

    assert response.status_code == 200
    body = response.json()
    assert body["diagramCode"] == "flowchart TD; A-->B;"
    assert body["analysis"]["flowPoints"] == []
    assert body["analysis"]["arrowMeanings"] == {}

    stored = _stored(fake_db)
    assert len(stored) == 1
    assert stored[0]["analysis"]["flowPoints"] == []
    assert stored[0]["title"] == FALLBACK_SUMMARY


def test_generate_unparsable_answer(client, authenticated, fake_db, wire_services):
    groq = FakeGroqClient(content="I could not understand the request.")
    wire_services(groq)
    response = client.post("/api/generate", json=VALID_BODY, headers=authenticated)

    assert response.status_code == 500
    assert response.json()["details"]["responseContent"] == "I could not understand the request."
    assert _stored(fake_db) == []


def test_generate_llm_unreachable(client, authenticated, fake_db, wire_services):
    groq = FakeGroqClient(error=ConnectionError("network down"))
    wire_services(groq)
    response = client.post("/api/generate", json=VALID_BODY, headers=authenticated)

    assert response.status_code == 503
    assert response.json()["error"] == "Failed to communicate with the LLM API."
    assert _stored(fake_db) == []


def test_generate_storage_failure(client, authenticated, fake_groq, monkeypatch, wire_services):
    wire_services(fake_groq)
    failing_db = FakeFirestore(add_error=RuntimeError("quota exceeded"))
    monkeypatch.setattr(diagram_routes, "diagram_store", DiagramStore(db_client=failing_db))

    response = client.post("/api/generate", json=VALID_BODY, headers=authenticated)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Storage error: quota exceeded"
    assert body["details"]["userId"] == TEST_USER_ID


def test_generate_without_database(client, authenticated, fake_groq, monkeypatch, wire_services):
    wire_services(fake_groq)
    monkeypatch.setattr(diagram_routes, "diagram_store", DiagramStore(db_client=None))

    response = client.post("/api/generate", json=VALID_BODY, headers=authenticated)

    assert response.status_code == 500
    assert response.json()["error"].startswith("Storage error")


def test_list_diagrams(client, authenticated, fake_db, monkeypatch):
    collection = fake_db.collection("diagrams")
    collection.stream_documents = [
        FakeDocument("d2", {
            "user_id": TEST_USER_ID,
            "title": "Newer",
            "diagram_type": "flowchart",
            "diagram_code": "graph TD; A-->B;",
            "analysis": {"summary": "", "flowPoints": [], "arrowMeanings": {}},
            "created_at": datetime(2024, 5, 2, 12, 0, 0),
        }),
        FakeDocument("d1", {"user_id": TEST_USER_ID, "title": "Older", "created_at": None}),
    ]
    monkeypatch.setattr(diagram_routes, "diagram_store", DiagramStore(db_client=fake_db))

    response = client.get("/api/diagrams?limit=5", headers=authenticated)

    assert response.status_code == 200
    diagrams = response.json()["diagrams"]
    assert [d["id"] for d in diagrams] == ["d2", "d1"]
    assert diagrams[0]["createdAt"] == "2024-05-02T12:00:00"
    assert diagrams[0]["diagramCode"] == "graph TD; A-->B;"
    assert collection.queries[0].limit_value == 5
    assert collection.queries[0].order[0] == "created_at"


def test_list_diagrams_limit_bounds(client, authenticated, fake_db, monkeypatch):
    monkeypatch.setattr(diagram_routes, "diagram_store", DiagramStore(db_client=fake_db))

    assert client.get("/api/diagrams?limit=0", headers=authenticated).status_code == 422
    assert client.get("/api/diagrams?limit=101", headers=authenticated).status_code == 422


def test_list_diagrams_requires_authentication(client):
    response = client.get("/api/diagrams")

    assert response.status_code == 401
