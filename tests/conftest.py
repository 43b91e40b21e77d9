import pytest
from fastapi.testclient import TestClient

from db import Store
from main import create_app


@pytest.fixture
def store():
    s = Store.from_url("sqlite://")
    yield s
    s.dispose()


@pytest.fixture
def client(store):
    app = create_app(store=store, ping_interval=0)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def broken_client(tmp_path):
    """App whose store points at a database file that can never be opened."""
    s = Store.from_url(f"sqlite:///{tmp_path}/missing/dir/quiz.db")
    app = create_app(store=s, ping_interval=0)
    # no lifespan: the startup reconnect loop would never finish
    app.state.store = s
    yield TestClient(app)
    s.dispose()


CROSSWORD = {
    "crosswordData": [["c", "a", "t"], ["", "", ""]],
    "questions": ["A small pet"],
    "answers": ["cat"],
    "passage": "The cat sat on the mat.",
    "generatedKey": "c123",
}

MCQ = {
    "questions": ["What sat on the mat?"],
    "options": [["cat", "dog", "bird", "fish"]],
    "correct_answers": ["cat"],
    "passage": "The cat sat on the mat.",
    "generatedKey": "m456",
}


@pytest.fixture
def crossword(client):
    r = client.post("/display_question_answer", json=CROSSWORD)
    assert r.status_code == 200
    return CROSSWORD["generatedKey"]


@pytest.fixture
def mcq(client):
    r = client.post("/export_mcq_data", json=MCQ)
    assert r.status_code == 200
    return MCQ["generatedKey"]
