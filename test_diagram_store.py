#!/usr/bin/env python3
"""
Tests for Firestore diagram storage and bearer-token parsing
"""

from datetime import datetime, timezone

import pytest

from auth_service import AuthService
from conftest import FakeDocument, FakeFirestore
from diagram_store import DiagramStore
from user_friendly_errors import DiagramStoreError


def _insert(store, user_id="user-1"):
    return store.insert_diagram(
        user_id,
        "Login flow",
        "A user logs in",
        "flowchart",
        "graph TD; A-->B;",
        {"summary": "Login flow", "flowPoints": [], "arrowMeanings": {}},
    )


def test_insert_returns_generated_id():
    db = FakeFirestore()
    store = DiagramStore(db_client=db, collection="test_diagrams")

    assert _insert(store) == "diagram-1"
    assert _insert(store) == "diagram-2"
    assert len(db.collection("test_diagrams").added) == 2


def test_insert_failure_carries_details():
    store = DiagramStore(db_client=FakeFirestore(add_error=RuntimeError("permission denied")))

    with pytest.raises(DiagramStoreError) as exc_info:
        _insert(store, user_id="user-9")

    error = exc_info.value
    assert error.status_code == 500
    assert error.message == "Storage error: permission denied"
    assert error.details == {"details": "permission denied", "userId": "user-9"}


def test_store_without_database():
    store = DiagramStore()

    assert not store.is_available()
    with pytest.raises(DiagramStoreError):
        _insert(store)
    with pytest.raises(DiagramStoreError):
        store.list_user_diagrams("user-1")


def test_list_user_diagrams_maps_records():
    db = FakeFirestore()
    collection = db.collection("diagrams")
    collection.stream_documents = [
        FakeDocument("d1", {
            "user_id": "user-1",
            "title": "Orders",
            "description": "Customers place orders",
            "diagram_type": "er_diagram",
            "diagram_code": "erDiagram; CUSTOMER ||--o{ ORDER : places",
            "analysis": {"summary": "Orders", "flowPoints": [], "arrowMeanings": {}},
            "created_at": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        }),
    ]
    store = DiagramStore(db_client=db)

    records = store.list_user_diagrams("user-1", limit=20)

    assert records == [{
        "id": "d1",
        "userId": "user-1",
        "title": "Orders",
        "description": "Customers place orders",
        "diagramType": "er_diagram",
        "diagramCode": "erDiagram; CUSTOMER ||--o{ ORDER : places",
        "analysis": {"summary": "Orders", "flowPoints": [], "arrowMeanings": {}},
        "createdAt": "2024-01-15T10:30:00+00:00",
    }]
    assert collection.queries[0].limit_value == 20


@pytest.mark.parametrize("header, expected", [
    ("Bearer abc.def", "abc.def"),
    ("Bearer   ", None),
    ("Basic abc", None),
    ("", None),
    (None, None),
])
def test_extract_token_from_header(header, expected):
    assert AuthService.extract_token_from_header(header) == expected
