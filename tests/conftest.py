"""Shared fixtures: KIPU payloads as the API returns them."""

import copy

import pytest

from kipu_codec import config
from kipu_codec.clients import kipu_client
from kipu_codec.field_types import FIELD_TYPE_REGISTRY

MATRIX_COLUMNS = [
    {"key": "frequency", "value": "Frequency"},
    {"key": "last_use", "value": "Last Use"},
]

RAW_EVALUATION = {
    "data": {
        "patient_evaluation": {
            "id": 501,
            "name": "Nursing Assessment",
            "evaluation_type": "nursing",
            "patient_casefile_id": "12:34",
            "created_at": "2024-03-01T10:00:00Z",
            "patient_evaluation_items": [
                {"id": 1, "name": "Assessment Date", "field_type": "evaluation_datetime",
                 "value": "2024-03-01T15:30:00"},
                {"id": 2, "name": "Chief Complaint", "field_type": "text",
                 "value": "<p>Anxiety and <b>insomnia</b></p>"},
                {"id": 3, "name": "Consent Signed", "field_type": "check_box", "value": "true"},
                {"id": 4, "name": "Housing", "field_type": "radio_buttons", "value": "Stable"},
                {"id": 5, "name": "Substance Use", "field_type": "matrix", "records": [
                    {"label": "Alcohol", "column_names": MATRIX_COLUMNS,
                     "frequency": "Daily", "last_use": "Yesterday"},
                    {"label": "Cocaine", "column_names": MATRIX_COLUMNS,
                     "frequency": "NA", "last_use": ""},
                ]},
                {"id": 6, "name": "Diagnoses", "field_type": "patient.diagnosis_code", "records": [
                    {"diagnosis_description": "Alcohol use disorder", "code": "F10.20", "status": "Active"},
                ]},
                {"id": 7, "name": "Drug of Choice", "field_type": "patient.drug_of_choice", "records": [
                    {"name": "Alcohol"},
                    {"name": "Opioids"},
                ]},
                {"id": 8, "name": "Section A", "field_type": "title"},
                {"id": 9, "name": "Total", "field_type": "points_total", "value": 12},
                {"id": 10, "name": "Legacy Widget", "field_type": "mystery_widget", "value": "kept"},
            ],
        }
    }
}

EXPECTED_CONTENT = "\n\n".join([
    "Assessment Date occurred on Mar 1, 2024, 3:30 PM",
    "Chief Complaint: Anxiety and insomnia",
    "Consent Signed: Yes",
    "Housing: Stable",
    "Substance Use:\n- Alcohol: Frequency: Daily, Last Use: Yesterday",
    "Diagnoses:\n- Alcohol use disorder - Code: F10.20 - Status: Active",
    "Drug of Choice:\n- Alcohol\n- Opioids",
    "Section A",
    "Total: 12 points",
    "Legacy Widget: kept",
])


@pytest.fixture
def raw_evaluation():
    return copy.deepcopy(RAW_EVALUATION)


@pytest.fixture
def expected_content():
    return EXPECTED_CONTENT


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Settings and client are process-wide; rebuild them per test from a clean environment."""
    for name in ("KIPU_BASE_URL", "KIPU_TIMEOUT", "KIPU_RECIPIENT_ID", "KIPU_SENDING_APP_NAME",
                 "KIPU_EXT_USERNAME", "KIPU_ENVELOPE_KEY", "CODEC_LOG_LEVEL", "CODEC_LOG_FILE",
                 "CODEC_PARSER_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    config.reset_settings()
    kipu_client.reset_client()
    yield
    config.reset_settings()
    kipu_client.reset_client()


@pytest.fixture
def restore_registry():
    snapshot = dict(FIELD_TYPE_REGISTRY)
    yield
    FIELD_TYPE_REGISTRY.clear()
    FIELD_TYPE_REGISTRY.update(snapshot)
