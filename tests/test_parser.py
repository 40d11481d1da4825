import pytest

from kipu_codec.adapter import adapt_evaluation
from kipu_codec.errors import InvalidEvaluationError
from kipu_codec.field_types import registered_tokens
from kipu_codec.parser import (
    coerce_checkbox,
    format_date,
    parse_evaluation,
    parse_item,
    parse_items,
    strip_html,
)

MATRIX_COLUMNS = [{"key": "severity", "value": "Severity"}, {"key": "frequency", "value": "Frequency"}]


# ============================================================
# WHOLE EVALUATIONS
# ============================================================

def test_parse_evaluation(raw_evaluation, expected_content):
    parsed = parse_evaluation(raw_evaluation)

    assert parsed.title == "Nursing Assessment"
    assert parsed.content == expected_content


def test_parse_adapted_evaluation(raw_evaluation, expected_content):
    assert parse_evaluation(adapt_evaluation(raw_evaluation)).content == expected_content


def test_parallel_parse_preserves_order(raw_evaluation, expected_content):
    assert parse_evaluation(raw_evaluation, max_workers=4).content == expected_content


def test_parse_items_parallel_matches_sequential(raw_evaluation):
    items = adapt_evaluation(raw_evaluation).patientEvaluationItems * 5
    assert parse_items(items, max_workers=8) == parse_items(items)


def test_untitled_evaluation():
    parsed = parse_evaluation({"patient_evaluation_items": [{"field_type": "string", "value": "x"}]})
    assert parsed.title == "Unnamed Evaluation"
    assert parsed.content == "Unnamed Item: x"


def test_fallback_message_names_item_count():
    parsed = parse_evaluation({
        "name": "Blank Form",
        "patient_evaluation_items": [
            {"id": 1, "name": "A", "field_type": "text", "value": ""},
            {"id": 2, "name": "B", "field_type": "check_box", "value": None},
            {"id": 3, "name": "C", "field_type": "matrix", "records": []},
        ],
    })
    assert parsed.content == (
        "Evaluation content could not be parsed. This evaluation contains 3 items, "
        "but none could be formatted for display."
    )


def test_fallback_message_for_empty_evaluation():
    assert "contains 0 items" in parse_evaluation({"name": "Nothing"}).content


def test_parse_evaluation_requires_evaluation():
    with pytest.raises(InvalidEvaluationError):
        parse_evaluation(None)


# ============================================================
# EMPTY VALUES
# ============================================================

@pytest.mark.parametrize("field_type", [t for t in registered_tokens() if t != "title"] + ["never_registered"])
@pytest.mark.parametrize("value", ["", None, "missing"])
def test_empty_value_renders_nothing(field_type, value):
    item = {"id": "1", "name": "Question", "fieldType": field_type}
    if value != "missing":
        item["value"] = value
    assert parse_item(item) is None


def test_title_renders_without_value():
    assert parse_item({"name": "Section B", "fieldType": "title"}) == "Section B"


# ============================================================
# CHECKBOXES
# ============================================================

@pytest.mark.parametrize("value, expected", [
    ("true", "Consent: Yes"),
    ("TRUE", "Consent: Yes"),
    ("yes", "Consent: Yes"),
    ("1", "Consent: Yes"),
    (True, "Consent: Yes"),
    ("0", "Consent: No"),
    ("false", "Consent: No"),
    (False, "Consent: No"),
    ("", None),
])
def test_checkbox_truthiness(value, expected):
    assert parse_item({"name": "Consent", "fieldType": "check_box", "value": value}) == expected


def test_coerce_checkbox():
    assert coerce_checkbox(" Yes ")
    assert not coerce_checkbox(1)
    assert not coerce_checkbox(None)


# ============================================================
# FIELD-TYPE RULES
# ============================================================

@pytest.mark.parametrize("value, expected", [
    ("2024-01-05T09:05:00", "Jan 5, 2024, 9:05 AM"),
    ("2024-12-31T23:59:00Z", "Dec 31, 2024, 11:59 PM"),
    ("2024-07-04", "Jul 4, 2024, 12:00 AM"),
    ("07/04/2024 12:30 PM", "Jul 4, 2024, 12:30 PM"),
    ("sometime <b>soon</b>", "sometime soon"),
    ("", None),
])
def test_format_date(value, expected):
    assert format_date(value) == expected


def test_date_items():
    assert parse_item({"name": "Admit", "fieldType": "datestamp", "value": "2024-02-29T13:00:00"}) == \
        "Admit occurred on Feb 29, 2024, 1:00 PM"
    assert parse_item({"name": "Signed", "fieldType": "timestamp", "timestamp": "2024-02-29T08:00:00"}) == \
        "Signed occurred on Feb 29, 2024, 8:00 AM"


def test_text_strips_tags_keeps_entities():
    item = {"name": "Notes", "fieldType": "formatted_text", "value": "<p>Tom &amp; Jerry</p>"}
    assert parse_item(item) == "Notes: Tom &amp; Jerry"
    assert strip_html("  <div><br/>hi</div> ") == "hi"


def test_content_prefers_first_record_description():
    item = {"name": "Q", "fieldType": "string", "value": "value",
            "records": [{"description": "from record"}]}
    assert parse_item(item) == "Q: from record"


def test_choice_falls_back_to_option_text():
    assert parse_item({"name": "Mood", "fieldType": "radio_buttons", "value": "<i>Calm</i>"}) == "Mood: Calm"
    assert parse_item({"name": "Mood", "fieldType": "radio_buttons", "option_text": "Anxious"}) == "Mood: Anxious"
    assert parse_item({"name": "Diet", "fieldType": "drop_down_list", "value": "Regular"}) == "Diet: Regular"


def test_points():
    assert parse_item({"label": "CIWA Total", "fieldType": "points_item", "value": "8"}) == "CIWA Total: 8 points"
    assert parse_item({"name": "Score", "fieldType": "points_total", "points": 4}) == "Score: 4 points"


def test_unknown_type_falls_back():
    assert parse_item({"name": "Widget", "fieldType": "future_widget", "value": 42}) == "Widget: 42"
    assert parse_item({"name": "Widget", "fieldType": "future_widget", "value": "<b>bold</b>"}) == "Widget: bold"


def test_flattened_demographic():
    assert parse_item({"name": "Bed", "fieldType": "patient.bed", "bed_name": "B-12"}) == "Bed: B-12"


# ============================================================
# MATRIX
# ============================================================

def test_matrix_suppresses_unanswered_rows():
    item = {"name": "Withdrawal Symptoms", "fieldType": "matrix", "records": [
        {"label": "Nausea", "columnNames": MATRIX_COLUMNS, "severity": "", "frequency": "NA"},
        {"label": "Tremor", "columnNames": MATRIX_COLUMNS, "severity": "Mild", "frequency": "na"},
        {"label": "Sweats", "columnNames": MATRIX_COLUMNS, "severity": "na", "frequency": ""},
    ]}
    assert parse_item(item) == "Withdrawal Symptoms:\n- Tremor: Severity: Mild"


def test_matrix_all_rows_unanswered():
    item = {"name": "Grid", "fieldType": "matrix", "records": [
        {"label": "Nausea", "columnNames": MATRIX_COLUMNS, "severity": "NA", "frequency": ""},
    ]}
    assert parse_item(item) is None


def test_matrix_row_label_fallbacks():
    item = {"name": "Grid", "fieldType": "matrix", "records": [
        {"name": "Named", "columnNames": MATRIX_COLUMNS, "severity": "High"},
        {"columnNames": MATRIX_COLUMNS, "frequency": "Weekly"},
    ]}
    assert parse_item(item) == "Grid:\n- Named: Severity: High\n- Item: Frequency: Weekly"


def test_matrix_legacy_rows():
    item = {"name": "Plan", "fieldType": "matrix", "records": [
        {"label": "Goal 1", "value": "<b>Sobriety</b>", "comments": "On track", "option": "A"},
        {"label": "", "value": ""},
        {"description": "Attend groups"},
    ]}
    assert parse_item(item) == (
        "Plan:\n- Goal 1 - Sobriety - Comments: On track - Option: A\n- Description: Attend groups"
    )


# ============================================================
# RECORD LISTS AND INSTRUMENTS
# ============================================================

def test_brought_in_medication_mixed_rows():
    item = {"name": "Brought In", "fieldType": "patient.brought_in_medication", "records": [
        {"drug_name": "Heroin", "status": "Active"},
        {"medication_name": "Sertraline", "dosage": "50mg"},
        {"drug_name": ""},
    ]}
    assert parse_item(item) == "Brought In:\n- Heroin (Active)\n- Sertraline 50mg"


def test_problem_list():
    item = {"name": "Problems", "fieldType": "problem_list", "records": [
        {"problem_description": "Insomnia", "status": "Active"},
        {"problem_description": ""},
    ]}
    assert parse_item(item) == "Problems:\n- Insomnia (Active)"


def test_assessment_records():
    item = {"name": "COWS", "fieldType": "patient.cows", "records": [
        {"name": "Pulse Rate", "value": "2", "description": "80-100 bpm"},
        {"label": "Sweating", "score": 1},
    ]}
    assert parse_item(item) == "COWS:\n- Pulse Rate - Score: 2 - 80-100 bpm\n- Sweating - Score: 1"


def test_assessment_flattened_scores():
    item = {
        "id": "1",
        "name": "CIWA",
        "field_type": "patient.ciwa_ar_current",
        "ciwa_ar_nausea": "2",
        "ciwa_ar_nausea_label": "Nausea and Vomiting",
        "ciwa_ar_tremor": "1",
        "score": "3",
    }
    assert parse_item(item) == "CIWA:\n- Nausea and Vomiting: 2\n- Tremor: 1\n- Total Score: 3"


def test_vitals():
    item = {"name": "Vitals", "field_type": "patient.vital_signs",
            "pulse": "72", "blood_pressure_systolic": "120", "blood_pressure_diastolic": "80"}
    assert parse_item(item) == "Vitals:\n- Blood Pressure Systolic: 120\n- Blood Pressure Diastolic: 80\n- Pulse: 72"


def test_parse_item_matches_parse_evaluation_for_snake_records():
    item = {"name": "Problems", "field_type": "problem_list",
            "records": [{"description": "", "problem_description": "Insomnia", "status": "Active"}]}

    assert parse_item(item) == "Problems:\n- Insomnia (Active)"
    assert parse_evaluation({"patient_evaluation_items": [item]}).content == parse_item(item)


def test_matrix_zero_is_unanswered():
    item = {"name": "Grid", "fieldType": "matrix", "records": [
        {"label": "Nausea", "columnNames": MATRIX_COLUMNS, "severity": 0, "frequency": 0.0},
        {"label": "Tremor", "columnNames": MATRIX_COLUMNS, "severity": 2, "frequency": "0"},
    ]}
    assert parse_item(item) == "Grid:\n- Tremor: Severity: 2, Frequency: 0"


def test_matrix_empty_column_list_takes_column_path():
    item = {"name": "Grid", "fieldType": "matrix", "records": [
        {"label": "Goal 1", "value": "Sobriety", "columnNames": []},
    ]}
    assert parse_item(item) is None
