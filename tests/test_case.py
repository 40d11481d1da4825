from kipu_codec.case import camel_to_snake, snake_to_camel, to_camel, to_snake


def test_to_camel():
    assert to_camel("patient_evaluation_items") == "patientEvaluationItems"
    assert to_camel("ciwa_ar_nausea_label") == "ciwaArNauseaLabel"
    assert to_camel("o2_saturation") == "o2Saturation"
    assert to_camel("already") == "already"
    assert to_camel("fieldType") == "fieldType"


def test_to_camel_keeps_leading_underscore():
    assert to_camel("_private_key") == "_private_key"


def test_to_snake():
    assert to_snake("evaluationItemId") == "evaluation_item_id"
    assert to_snake("radioButtonValues") == "radio_button_values"
    assert to_snake("value") == "value"


def test_snake_to_camel_converts_keys_only():
    data = {
        "field_type": "patient.drug_of_choice",
        "records": [{"drug_name": "heroin", "column_names": [{"key": "last_use", "value": "Last Use"}]}],
    }
    assert snake_to_camel(data) == {
        "fieldType": "patient.drug_of_choice",
        "records": [{"drugName": "heroin", "columnNames": [{"key": "last_use", "value": "Last Use"}]}],
    }


def test_camel_to_snake_recurses_into_lists():
    data = {"checkBoxValues": [{"evaluationItemId": "1", "values": [{"label": "A"}]}]}
    assert camel_to_snake(data) == {"check_box_values": [{"evaluation_item_id": "1", "values": [{"label": "A"}]}]}


def test_non_mapping_values_untouched():
    assert snake_to_camel("snake_case_string") == "snake_case_string"
    assert snake_to_camel(None) is None
    assert snake_to_camel([1, "a_b"]) == [1, "a_b"]
