"""
Normalization Adapter: reshapes raw KIPU evaluation JSON into ``Evaluation``.

KIPU answers with snake_case keys and sometimes wraps the evaluation under a
namespaced envelope (``{"data": {"patient_evaluation": {...}}}``). The adapter
unwraps it, converts keys to camelCase (unless the payload is already in the
application's shape) and types every record through the Record Resolver.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .case import snake_to_camel
from .errors import InvalidEvaluationError
from .records import passthrough_record
from .schemas import Evaluation, EvaluationItem

# Get logger from main module
logger = logging.getLogger("kipu-codec")

DEFAULT_ENVELOPE_KEY = "data"
_EVALUATION_KEYS = ("patient_evaluation", "patientEvaluation")
_ITEM_KEYS = ("patientEvaluationItems", "items")


def locate_evaluation(raw: Any, envelope_key: Optional[str] = None) -> Mapping[str, Any]:
    """
    Find the evaluation object inside ``raw``.

    Checks ``<envelope_key>.patient_evaluation``, then ``patient_evaluation``,
    then falls back to ``raw`` itself.
    """
    if not isinstance(raw, Mapping):
        raise InvalidEvaluationError(
            f"Evaluation must be a mapping, got {type(raw).__name__}"
        )

    envelope = raw.get(envelope_key or DEFAULT_ENVELOPE_KEY)
    if isinstance(envelope, Mapping):
        for key in _EVALUATION_KEYS:
            if isinstance(envelope.get(key), Mapping):
                logger.debug(f"[ADAPTER] Evaluation found under envelope '{envelope_key or DEFAULT_ENVELOPE_KEY}.{key}'")
                return envelope[key]

    for key in _EVALUATION_KEYS:
        if isinstance(raw.get(key), Mapping):
            logger.debug(f"[ADAPTER] Evaluation found under '{key}'")
            return raw[key]

    return raw


def _item_as_mapping(item: EvaluationItem) -> Dict[str, Any]:
    data = item.model_dump(exclude={"records"})
    data["records"] = list(item.records) if item.records is not None else None
    return data


def _adapt_records(records: Any, field_type: str) -> Optional[List[Any]]:
    if not isinstance(records, list):
        return None
    return [passthrough_record(record, field_type) for record in records]


def adapt_item(raw: Any) -> EvaluationItem:
    """
    Normalize one evaluation item.

    ``records`` are held back from the key-case pass and rehydrated against
    the item's own field type, so rows already in normalized shape come back
    unchanged. ``adapt_item(adapt_item(x))`` therefore leaves records equal.
    """
    if isinstance(raw, EvaluationItem):
        raw = _item_as_mapping(raw)
    if not isinstance(raw, Mapping):
        raise InvalidEvaluationError(
            f"Evaluation item must be a mapping, got {type(raw).__name__}"
        )

    records = raw.get("records")
    scalars = snake_to_camel({k: v for k, v in raw.items() if k != "records"})
    field_type = scalars.get("fieldType")

    scalars["records"] = _adapt_records(records, field_type)
    return EvaluationItem.model_validate(scalars)


def adapt_evaluation(raw: Any, envelope_key: Optional[str] = None) -> Evaluation:
    """
    Normalize a raw evaluation payload.

    Every item is kept, in the order received, including items whose field
    type is not registered.
    """
    if isinstance(raw, Evaluation):
        return raw
    if raw is None:
        raise InvalidEvaluationError("Evaluation is required, got None")

    base = locate_evaluation(raw, envelope_key)

    # Payloads already in application shape are used as-is
    if "patientEvaluationItems" in base:
        data = dict(base)
    else:
        data = snake_to_camel(dict(base))

    items: Any = []
    for key in _ITEM_KEYS:
        if data.get(key) is not None:
            items = data[key]
            break
    if not isinstance(items, list):
        logger.warning(f"[ADAPTER] Items are not a list ({type(items).__name__}), treating as empty")
        items = []

    data.pop("items", None)
    data["patientEvaluationItems"] = [adapt_item(item) for item in items]

    evaluation = Evaluation.model_validate(data)
    logger.info(
        f"[ADAPTER] Adapted evaluation '{evaluation.name or evaluation.id}' "
        f"with {len(evaluation.patientEvaluationItems)} items"
    )
    return evaluation
