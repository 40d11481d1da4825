"""
KIPU Evaluation Codec

Converts KIPU's field-type-tagged evaluation JSON into normalized models for
display, and edited answers back into KIPU's categorized submission payload.
"""

__version__ = "1.0.0"

from .adapter import adapt_evaluation, adapt_item, locate_evaluation
from .errors import (
    CodecError,
    InvalidEvaluationError,
    InvalidPatientIdError,
    InvalidSubmissionError,
    KipuApiError,
)
from .field_types import FieldTypeSpec, KipuFieldType, lookup, register
from .parser import coerce_checkbox, parse_evaluation, parse_item, parse_items, strip_html
from .records import classify_sub_variant, resolve_record
from .schemas import Evaluation, EvaluationItem, ParsedEvaluation, SubmissionField, SubmissionPayload
from .submission import build_create_document, categorize, parse_patient_id
from .templates import extract_dynamic_form_fields, transform_template

__all__ = [
    "adapt_evaluation",
    "adapt_item",
    "locate_evaluation",
    "CodecError",
    "InvalidEvaluationError",
    "InvalidPatientIdError",
    "InvalidSubmissionError",
    "KipuApiError",
    "FieldTypeSpec",
    "KipuFieldType",
    "lookup",
    "register",
    "coerce_checkbox",
    "parse_evaluation",
    "parse_item",
    "parse_items",
    "strip_html",
    "classify_sub_variant",
    "resolve_record",
    "Evaluation",
    "EvaluationItem",
    "ParsedEvaluation",
    "SubmissionField",
    "SubmissionPayload",
    "build_create_document",
    "categorize",
    "parse_patient_id",
    "extract_dynamic_form_fields",
    "transform_template",
]
