"""
Evaluation Codec API Routes

Exposes the adapter, display parser and submission categorizer over HTTP for
admin tooling (paste a raw KIPU payload, see what the codec makes of it).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .adapter import adapt_evaluation
from .config import get_settings
from .errors import CodecError
from .field_types import FIELD_TYPE_REGISTRY
from .parser import parse_evaluation, parse_items
from .submission import categorize

logger = logging.getLogger("kipu-codec")

router = APIRouter(prefix="/evaluations", tags=["Evaluation Codec"])


# ============================================================
# REQUEST/RESPONSE MODELS
# ============================================================

class ParseItemsRequest(BaseModel):
    """Raw or normalized items to render individually."""
    items: List[Dict[str, Any]]


class ParseItemsResponse(BaseModel):
    results: List[Optional[str]]
    rendered: int
    timestamp: str


class CategorizeRequest(BaseModel):
    """Flat edits: ``[{id, fieldType, value}]``."""
    fields: List[Dict[str, Any]]
    wire: bool = False  # snake_case body fragment instead of the camelCase payload


class FieldTypeInfo(BaseModel):
    token: str
    recordKind: str
    displayRule: str
    submissionBucket: str
    slot: str


# ============================================================
# ENDPOINTS
# ============================================================

@router.post("/adapt")
async def adapt(raw: Dict[str, Any]):
    """Normalize a raw KIPU evaluation payload."""
    try:
        evaluation = adapt_evaluation(raw, envelope_key=get_settings().envelope_key)
    except CodecError as e:
        logger.warning(f"[API] Adapt rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return evaluation.model_dump()


@router.post("/parse")
async def parse(raw: Dict[str, Any]):
    """Render a raw or normalized evaluation as ``{title, content}``."""
    settings = get_settings()
    try:
        evaluation = adapt_evaluation(raw, envelope_key=settings.envelope_key)
        parsed = parse_evaluation(evaluation, max_workers=settings.parser_workers)
    except CodecError as e:
        logger.warning(f"[API] Parse rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return parsed.model_dump()


@router.post("/items/parse", response_model=ParseItemsResponse)
async def parse_item_list(request: ParseItemsRequest):
    """Render each item on its own; None where an item has nothing to show."""
    try:
        results = parse_items(request.items, max_workers=get_settings().parser_workers)
    except CodecError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ParseItemsResponse(
        results=results,
        rendered=sum(1 for r in results if r is not None),
        timestamp=datetime.now().isoformat(),
    )


@router.post("/categorize")
async def categorize_fields(request: CategorizeRequest):
    """Group edits into KIPU's six submission value arrays."""
    try:
        payload = categorize(request.fields)
    except CodecError as e:
        logger.warning(f"[API] Categorize rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return payload.to_wire() if request.wire else payload.model_dump()


@router.get("/field-types", response_model=List[FieldTypeInfo])
async def list_field_types():
    """Every registered field type and how the codec treats it."""
    return [
        FieldTypeInfo(
            token=spec.token,
            recordKind=spec.record_kind.value,
            displayRule=spec.display_rule.value,
            submissionBucket=spec.submission_bucket.value,
            slot=spec.slot.value,
        )
        for _, spec in sorted(FIELD_TYPE_REGISTRY.items())
    ]
