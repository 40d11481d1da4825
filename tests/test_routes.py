"""
Tests for the evaluation codec API routes.

The app is exercised without entering its lifespan, so no log files are opened.
"""

import pytest
from fastapi.testclient import TestClient

from kipu_codec.app import app


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_adapt(client, raw_evaluation):
    response = client.post("/evaluations/adapt", json=raw_evaluation)

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Nursing Assessment"
    assert len(body["patientEvaluationItems"]) == 10
    diagnosis = body["patientEvaluationItems"][5]["records"][0]
    assert diagnosis["diagnosisDescription"] == "Alcohol use disorder"
    assert diagnosis["code"] == "F10.20"


def test_adapt_rejects_bad_item(client):
    response = client.post("/evaluations/adapt", json={"patient_evaluation_items": [1]})
    assert response.status_code == 400


def test_parse(client, raw_evaluation, expected_content):
    response = client.post("/evaluations/parse", json=raw_evaluation)

    assert response.status_code == 200
    assert response.json() == {"title": "Nursing Assessment", "content": expected_content}


def test_parse_uses_configured_workers(client, raw_evaluation, expected_content, monkeypatch):
    monkeypatch.setenv("CODEC_PARSER_WORKERS", "4")
    response = client.post("/evaluations/parse", json=raw_evaluation)
    assert response.json()["content"] == expected_content


def test_parse_items(client):
    response = client.post("/evaluations/items/parse", json={"items": [
        {"name": "A", "fieldType": "string", "value": "one"},
        {"name": "B", "fieldType": "string", "value": ""},
        {"name": "C", "fieldType": "check_box", "value": "0"},
    ]})

    assert response.status_code == 200
    body = response.json()
    assert body["results"] == ["A: one", None, "C: No"]
    assert body["rendered"] == 2


def test_categorize(client):
    response = client.post("/evaluations/categorize", json={"fields": [
        {"id": "1", "fieldType": "text", "value": "hello"},
        {"id": "2", "fieldType": "file", "value": "scan.pdf"},
        {"id": "3", "fieldType": "radio", "value": ""},
    ]})

    assert response.status_code == 200
    body = response.json()
    assert body["textValues"] == [{"evaluationItemId": "1", "value": "hello", "optionalCheckbox": False}]
    assert body["radioButtonValues"] == []


def test_categorize_wire(client):
    response = client.post("/evaluations/categorize", json={
        "fields": [{"id": "1", "fieldType": "select", "value": "B"}],
        "wire": True,
    })
    assert response.json()["drop_down_values"] == [{"evaluation_item_id": "1", "value": "B"}]


def test_categorize_rejects_field_without_id(client):
    response = client.post("/evaluations/categorize", json={"fields": [{"fieldType": "text", "value": "x"}]})
    assert response.status_code == 400


def test_field_types(client):
    response = client.get("/evaluations/field-types")

    assert response.status_code == 200
    by_token = {entry["token"]: entry for entry in response.json()}
    assert by_token["matrix"]["displayRule"] == "matrix"
    assert by_token["matrix"]["submissionBucket"] == "stringValues"
    assert by_token["patient.brought_in_medication"]["recordKind"] == "medication_history"
