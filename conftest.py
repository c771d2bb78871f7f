import json
import sys
from pathlib import Path
from types import SimpleNamespace

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import pytest
from fastapi.testclient import TestClient

from auth_service import AuthService
from diagram_generator import DiagramGenerator
from diagram_store import DiagramStore
from routes import diagram_routes

TEST_USER_ID = "user-123"
VALID_TOKEN = "valid-token"


class FakeCompletions:
    """Stands in for groq.Groq().chat.completions"""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeGroqClient:
    def __init__(self, content=None, error=None):
        self.completions = FakeCompletions(content, error)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


class FakeDocument:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    def to_dict(self):
        return dict(self._data)


class FakeQuery:
    def __init__(self, collection):
        self.collection = collection
        self.filters = []
        self.order = None
        self.limit_value = None

    def where(self, filter=None):
        self.filters.append(filter)
        return self

    def order_by(self, field_path, direction=None):
        self.order = (field_path, direction)
        return self

    def limit(self, count):
        self.limit_value = count
        return self

    def stream(self):
        docs = self.collection.stream_documents
        if self.limit_value is not None:
            docs = docs[:self.limit_value]
        return iter(docs)


class FakeCollection:
    def __init__(self, add_error=None):
        self.added = []
        self.add_error = add_error
        self.stream_documents = []
        self.queries = []

    def add(self, data):
        if self.add_error is not None:
            raise self.add_error
        self.added.append(data)
        return None, SimpleNamespace(id=f"diagram-{len(self.added)}")

    def where(self, filter=None):
        query = FakeQuery(self)
        self.queries.append(query)
        return query.where(filter=filter)


class FakeFirestore:
    """Minimal Firestore client covering collection().add() and simple queries"""

    def __init__(self, add_error=None):
        self.collections = {}
        self.add_error = add_error

    def collection(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(self.add_error)
        return self.collections[name]


def llm_json(mermaid_code="graph TD; A-->B;", **analysis):
    """Build a well-formed model answer"""
    return json.dumps({"mermaidCode": mermaid_code, "analysis": analysis})


@pytest.fixture
def fake_groq():
    return FakeGroqClient(content=llm_json(
        summary="A login flow from the form to the dashboard.",
        flowPoints=["User submits form", "Server checks password"],
        arrowMeanings={"A-->B": "form submission"},
    ))


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def authenticated(monkeypatch):
    """Accept VALID_TOKEN as the ID token of TEST_USER_ID"""
    def verify_token(token):
        return {"uid": TEST_USER_ID} if token == VALID_TOKEN else None

    monkeypatch.setattr(AuthService, "verify_token", staticmethod(verify_token))
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
def wire_services(monkeypatch, fake_db):
    """Point the API routes at a generator backed by the given fake Groq client"""
    def _wire(groq_client):
        generator = DiagramGenerator(client=groq_client, model="test-model")
        store = DiagramStore(db_client=fake_db)
        monkeypatch.setattr(diagram_routes, "diagram_generator", generator)
        monkeypatch.setattr(diagram_routes, "diagram_store", store)
        return generator, store

    return _wire


@pytest.fixture
def client():
    import main
    return TestClient(main.app)
