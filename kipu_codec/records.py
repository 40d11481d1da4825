"""
Record Resolver

Turns one raw row of a multi-row answer into the typed record variant its
owning item's field type implies. The variant is chosen by the owner's field
type alone, except for brought-in medication rows, which are split by
``classify_sub_variant``.

Resolution never raises for a mapping: fields of the wrong type degrade to
None and anything that is not a mapping becomes an empty ``GenericRecord``.
"""

import logging
from typing import Any, Mapping

from .case import snake_to_camel
from .field_types import RecordKind, lookup
from .schemas import (
    RECORD_MODELS,
    BaseRecord,
    EvaluationRecord,
    GenericRecord,
    MatrixRecord,
)
from .text import is_blank

logger = logging.getLogger("kipu-codec")

# Canonical key whose presence marks a row as already normalized
NORMALIZED_MARKER = "description"

_COMMON_FIELDS = tuple(BaseRecord.model_fields)


def classify_sub_variant(raw_record: Any) -> RecordKind:
    """
    Brought-in medication policy.

    KIPU uses one field type for two row shapes. A row naming a drug
    (``drugName`` or ``drug_name`` present and non-empty) is a drug-history
    row; every other row is a medication row.
    """
    if isinstance(raw_record, Mapping):
        for key in ("drugName", "drug_name"):
            if not is_blank(raw_record.get(key)):
                return RecordKind.DRUG_HISTORY
    return RecordKind.MEDICATION


def record_class_for(owner_field_type, raw_record: Any = None) -> type:
    """Record model class for rows owned by ``owner_field_type``."""
    kind = lookup(owner_field_type).record_kind
    if kind == RecordKind.MEDICATION_HISTORY:
        kind = classify_sub_variant(raw_record)
    return RECORD_MODELS.get(kind, GenericRecord)


def _layer(model: type, camel_record: Mapping[str, Any]) -> dict:
    """Common fields plus the variant's own; matrix and generic rows keep every key."""
    if model in (MatrixRecord, GenericRecord):
        return dict(camel_record)
    wanted = set(_COMMON_FIELDS) | set(model.model_fields)
    return {k: v for k, v in camel_record.items() if k in wanted}


def resolve_record(raw_record: Any, owner_field_type) -> EvaluationRecord:
    """Resolve ``raw_record`` (snake or camel keys) against its owner's field type."""
    if not isinstance(raw_record, Mapping):
        logger.debug(f"[RESOLVER] Non-mapping record under {owner_field_type!r}: {type(raw_record).__name__}")
        return GenericRecord()

    camel_record = snake_to_camel(dict(raw_record))
    model = record_class_for(owner_field_type, camel_record)
    return model.model_validate(_layer(model, camel_record))


def passthrough_record(record: Any, owner_field_type) -> EvaluationRecord:
    """
    Keep an already-normalized row as it is.

    Record model instances are returned untouched; mappings are wrapped in
    their variant with every key kept (snake_case keys are camelCased first,
    camelCase keys convert to themselves). Anything else is resolved.
    """
    if isinstance(record, BaseRecord):
        return record
    if isinstance(record, Mapping) and NORMALIZED_MARKER in record:
        camel_record = snake_to_camel(dict(record))
        model = record_class_for(owner_field_type, camel_record)
        return model.model_validate(camel_record)
    return resolve_record(record, owner_field_type)


def is_normalized(record: Any) -> bool:
    return isinstance(record, BaseRecord) or (isinstance(record, Mapping) and NORMALIZED_MARKER in record)
