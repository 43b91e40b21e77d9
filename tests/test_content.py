import json

from conftest import CROSSWORD, MCQ


def test_health_reports_store_state(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["database"] == "connected"
    assert "timestamp" in body


def test_root_lists_endpoints(client):
    body = client.get("/").json()
    assert body["endpoints"]["health"] == "/health"


def test_crossword_is_returned_as_stored(client, crossword):
    r = client.get(f"/check-key/{crossword}")
    assert r.status_code == 200
    body = r.json()
    assert body["found"] is True
    assert body["crosswordData"] == json.dumps(CROSSWORD["crosswordData"], separators=(",", ":"))
    assert json.loads(body["questions"]) == CROSSWORD["questions"]
    assert json.loads(body["answers"]) == CROSSWORD["answers"]
    # passage is stored raw, not JSON-encoded
    assert body["passage"] == CROSSWORD["passage"]


def test_mcq_is_returned_as_stored(client, mcq):
    body = client.get(f"/check-mcq/{mcq}").json()
    assert body["found"] is True
    assert json.loads(body["questions"]) == MCQ["questions"]
    assert json.loads(body["options"]) == MCQ["options"]
    assert json.loads(body["correct_answers"]) == MCQ["correct_answers"]
    assert body["passage"] == MCQ["passage"]


def test_unknown_key_is_not_found(client):
    r = client.get("/check-key/c-nope")
    assert r.status_code == 200
    assert r.json() == {"found": False}

    r = client.get("/check-mcq/m-nope")
    assert r.status_code == 200
    assert r.json() == {"found": False}


def test_non_ascii_payload_kept(client):
    payload = dict(CROSSWORD, generatedKey="c-utf", answers=["kucing", "señor"])
    assert client.post("/display_question_answer", json=payload).status_code == 200
    body = client.get("/check-key/c-utf").json()
    assert "señor" in body["answers"]


def test_duplicate_crossword_key_fails(client, crossword):
    r = client.post("/display_question_answer", json=CROSSWORD)
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to insert crossword data"
    assert "detail" in r.json()


def test_duplicate_mcq_key_fails(client, mcq):
    r = client.post("/export_mcq_data", json=MCQ)
    assert r.status_code == 500
    assert r.json()["error"] == "Error saving MCQ"


def test_key_availability_flips_after_store(client):
    assert client.get("/check-key-availability/c123").json() == {"available": True}
    client.post("/display_question_answer", json=CROSSWORD)
    assert client.get("/check-key-availability/c123").json() == {"available": False}

    assert client.get("/check-key-availability/m456").json() == {"available": True}
    client.post("/export_mcq_data", json=MCQ)
    assert client.get("/check-key-availability/m456").json() == {"available": False}


def test_key_availability_is_per_kind(client, crossword):
    # a crossword key never makes an 'm' key unavailable
    assert client.get("/check-key-availability/m123").json() == {"available": True}


def test_key_availability_rejects_unknown_prefix(client, crossword):
    r = client.get("/check-key-availability/x123")
    assert r.status_code == 400
    assert r.json() == {"available": False, "error": "Invalid key prefix."}


def test_ingestion_does_not_check_field_types(client):
    r = client.post("/display_question_answer", json={"generatedKey": 12345, "passage": 42, "answers": ["x"]})
    assert r.status_code == 200

    body = client.get("/check-key/12345").json()
    assert body["found"] is True
    assert body["passage"] == "42"

    r = client.post("/export_mcq_data", json={"generatedKey": 777, "passage": 7})
    assert r.status_code == 200
    assert client.get("/check-mcq/777").json()["found"] is True


def test_null_fields_come_back_as_null(client):
    client.post("/display_question_answer", json={"generatedKey": "c-bare", "answers": ["x"]})
    body = client.get("/check-key/c-bare").json()
    assert body == {
        "found": True,
        "crosswordData": None,
        "questions": None,
        "answers": '["x"]',
        "passage": None,
    }

    client.post("/export_mcq_data", json={"generatedKey": "m-bare"})
    body = client.get("/check-mcq/m-bare").json()
    assert body["passage"] is None
    assert body["options"] is None
