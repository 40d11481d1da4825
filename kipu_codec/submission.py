"""
Submission Categorizer: groups edited answers into KIPU's six value arrays.

Edits arrive flat (``{id, fieldType, value}``) and are filed under exactly one
bucket chosen by the field-type registry. Empty answers are dropped, attachment
fields are left to their own upload channel, and unregistered field types fall
into ``stringValues`` so nothing the user typed is lost.

Matrix edits have no dedicated bucket and land in ``stringValues``; the read
path's unanswered-row suppression is not applied here.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .errors import InvalidPatientIdError, InvalidSubmissionError
from .field_types import SubmissionBucket, lookup
from .schemas import (
    CheckBoxOption,
    CheckBoxValue,
    StringValue,
    SubmissionField,
    SubmissionPayload,
    TextValue,
)
from .text import is_blank, stringify

logger = logging.getLogger("kipu-codec")

_MISSING = object()

DEFAULT_SENDING_APP_NAME = "ChartChek"
DEFAULT_EXT_USERNAME = "chartchek_user"


def _is_empty(value: Any) -> bool:
    return value is _MISSING or is_blank(value)


def _wire_value(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return stringify(value)


def _as_field(raw: Any) -> Tuple[Optional[SubmissionField], Any]:
    """Validate one edit; returns (field, value) with ``_MISSING`` for an absent value key."""
    if isinstance(raw, SubmissionField):
        return raw, raw.value
    if not isinstance(raw, Mapping):
        raise InvalidSubmissionError(f"Submission field must be a mapping, got {type(raw).__name__}")

    value = raw.get("value", _MISSING)
    try:
        field = SubmissionField.model_validate({k: v for k, v in raw.items() if k != "value"})
    except ValidationError as e:
        raise InvalidSubmissionError(f"Invalid submission field: {e.errors()[0].get('msg')}") from e
    return field, value


def categorize(fields: Iterable[Union[SubmissionField, Mapping[str, Any]]]) -> SubmissionPayload:
    """
    Build the submission payload for a list of edits.

    Guarantees every non-empty edit id appears in exactly one bucket. A
    repeated id keeps its first occurrence only.
    """
    if fields is None:
        raise InvalidSubmissionError("Submission fields are required, got None")
    if isinstance(fields, (str, bytes, Mapping)):
        raise InvalidSubmissionError(f"Submission fields must be a list, got {type(fields).__name__}")

    buckets: Dict[SubmissionBucket, List[Any]] = {bucket: [] for bucket in SubmissionBucket}
    seen = set()
    skipped = excluded = 0

    for raw in fields:
        field, value = _as_field(raw)
        if _is_empty(value):
            skipped += 1
            continue
        if field.id in seen:
            logger.warning(f"[SUBMISSION] Duplicate evaluation item id {field.id!r}, keeping first occurrence")
            continue

        bucket = lookup(field.fieldType).submission_bucket
        if bucket == SubmissionBucket.EXCLUDED:
            excluded += 1
            logger.debug(f"[SUBMISSION] Excluding {field.fieldType!r} field {field.id!r} from value arrays")
            continue

        if bucket == SubmissionBucket.CHECKBOX:
            selected = value if isinstance(value, (list, tuple)) else [value]
            entry = CheckBoxValue(
                evaluationItemId=field.id,
                values=[CheckBoxOption(label=_wire_value(v), description="") for v in selected],
            )
        elif bucket == SubmissionBucket.TEXT:
            entry = TextValue(evaluationItemId=field.id, value=_wire_value(value), optionalCheckbox=False)
        else:
            entry = StringValue(evaluationItemId=field.id, value=_wire_value(value))

        buckets[bucket].append(entry)
        seen.add(field.id)

    payload = SubmissionPayload(**{
        bucket.value: entries for bucket, entries in buckets.items() if bucket != SubmissionBucket.EXCLUDED
    })
    logger.info(f"[SUBMISSION] Categorized {len(seen)} fields ({skipped} empty, {excluded} excluded): {payload.counts()}")
    return payload


def parse_patient_id(patient_id: str) -> Tuple[str, str]:
    """Split a ``<chartId>:<patientMasterId>`` patient id."""
    if not isinstance(patient_id, str) or patient_id.count(":") != 1:
        raise InvalidPatientIdError(
            f"Invalid patient ID format {patient_id!r}. Expected format: chartId:patientMasterId"
        )
    chart_id, patient_master_id = (part.strip() for part in patient_id.split(":"))
    if not chart_id or not patient_master_id:
        raise InvalidPatientIdError(
            f"Invalid patient ID format {patient_id!r}. Expected format: chartId:patientMasterId"
        )
    return chart_id, patient_master_id


def _evaluation_id(evaluation_id: Any) -> Union[int, str]:
    text = str(evaluation_id).strip()
    return int(text) if text.isdigit() else text


def build_create_document(
    evaluation_id: Union[int, str],
    patient_id: str,
    fields: Iterable[Any],
    notes: Optional[str] = None,
    recipient_id: Optional[str] = None,
    sending_app_name: str = DEFAULT_SENDING_APP_NAME,
    ext_username: str = DEFAULT_EXT_USERNAME,
) -> Dict[str, Any]:
    """
    Build the request body for KIPU's patient-evaluation create endpoint.

    Returns ``{"document": {"recipient_id", "sending_app_name", "data": {...}}}``
    with the six categorized value arrays in snake_case.
    """
    _, patient_master_id = parse_patient_id(patient_id)
    payload = categorize(fields)

    data: Dict[str, Any] = {
        "ext_username": ext_username,
        "patient_master_id": patient_master_id,
        "evaluation_id": _evaluation_id(evaluation_id),
        "evaluation_name": "",
        "notes": [{"note": notes, "evaluation_item_id": None}] if notes else [],
    }
    data.update(payload.to_wire())

    return {
        "document": {
            "recipient_id": recipient_id,
            "sending_app_name": sending_app_name,
            "data": data,
        }
    }
