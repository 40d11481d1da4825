"""
Display Parser: renders normalized evaluation items as plain clinical text.

Each item is dispatched on its registry display rule. Items with nothing to
show render as None and are left out; an evaluation where every item renders
as None yields an explicit "could not be parsed" message naming the item
count, so callers can tell an empty evaluation from a parse failure.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .adapter import adapt_evaluation, adapt_item
from .field_types import DisplayRule
from .schemas import (
    Evaluation,
    EvaluationItem,
    MatrixRecord,
    ParsedEvaluation,
)
from .text import is_blank, is_numeric_like, strip_html

__all__ = [
    "parse_evaluation",
    "parse_item",
    "parse_items",
    "strip_html",
    "coerce_checkbox",
    "format_date",
    "extract_content",
]

logger = logging.getLogger("kipu-codec")

FALLBACK_MESSAGE = (
    "Evaluation content could not be parsed. This evaluation contains {count} items, "
    "but none could be formatted for display."
)

_TRUTHY = {"true", "1", "yes"}

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Common KIPU date formats that datetime.fromisoformat does not accept
_DATE_FORMATS = [
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%d-%b-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
]

# Flattened vital-sign sub-fields, in display order
VITAL_SIGN_FIELDS: List[Tuple[str, str]] = [
    ("bloodPressureSystolic", "Blood Pressure Systolic"),
    ("bloodPressureDiastolic", "Blood Pressure Diastolic"),
    ("bloodPressureSystolicLying", "Blood Pressure Systolic (Lying)"),
    ("bloodPressureDiastolicLying", "Blood Pressure Diastolic (Lying)"),
    ("pulseLying", "Pulse (Lying)"),
    ("bloodPressureSystolicSitting", "Blood Pressure Systolic (Sitting)"),
    ("bloodPressureDiastolicSitting", "Blood Pressure Diastolic (Sitting)"),
    ("pulseSitting", "Pulse (Sitting)"),
    ("bloodPressureSystolicStanding", "Blood Pressure Systolic (Standing)"),
    ("bloodPressureDiastolicStanding", "Blood Pressure Diastolic (Standing)"),
    ("pulseStanding", "Pulse (Standing)"),
    ("temperature", "Temperature"),
    ("pulse", "Pulse"),
    ("respirations", "Respirations"),
    ("o2Saturation", "O2 Saturation"),
    ("height", "Height"),
    ("weight", "Weight"),
    ("bmi", "BMI"),
]

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


# ============================================================
# VALUE HELPERS
# ============================================================

def coerce_checkbox(value: Any) -> bool:
    """``True`` or the strings ``"true"``, ``"1"``, ``"yes"`` (any case) are checked."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 or common US-style date; None when nothing matches."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith("Z") else text)
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_date(value: Any) -> Optional[str]:
    """
    Render a date/time like ``Jan 5, 2024, 3:30 PM``.

    Timezones are kept as given. Values that do not parse come back as their
    HTML-stripped text so the answer still shows.
    """
    if is_blank(value):
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        logger.debug(f"[PARSER] Unparseable date {value!r}, rendering raw text")
        return strip_html(value) or None

    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return f"{_MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}, {hour}:{parsed.minute:02d} {meridiem}"


def _humanize(key: str) -> str:
    words = _WORD_BOUNDARY.sub(" ", key).split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _is_displayable(value: Any) -> bool:
    return not is_blank(value) and not isinstance(value, (dict, list))


def extract_content(item: EvaluationItem) -> Any:
    """
    The item's scalar answer: first record's description, then the item's
    description, then ``value``, then the registry's flattened content key.
    """
    records = item.records or []
    if records and not is_blank(records[0].description):
        return records[0].description
    if not is_blank(item.description):
        return item.description
    if not is_blank(item.value):
        return item.value

    content_key = item.spec.content_key
    if content_key:
        flattened = item.get(content_key)
        if _is_displayable(flattened):
            return flattened
    return None


def _block(title: str, lines: Iterable[Optional[str]]) -> Optional[str]:
    kept = [line for line in lines if line]
    if not kept:
        return None
    return f"{title}:\n- " + "\n- ".join(kept)


# ============================================================
# RENDERING RULES
# ============================================================

def _render_date(item: EvaluationItem, title: str) -> Optional[str]:
    formatted = format_date(extract_content(item))
    return f"{title} occurred on {formatted}" if formatted else None


def _render_text(item: EvaluationItem, title: str) -> Optional[str]:
    content = extract_content(item)
    if content is None:
        return None
    text = strip_html(content)
    return f"{title}: {text}" if text else None


def _render_checkbox(item: EvaluationItem, title: str) -> Optional[str]:
    content = extract_content(item)
    if content is None:
        return None
    return f"{title}: {'Yes' if coerce_checkbox(content) else 'No'}"


def _render_choice(item: EvaluationItem, title: str) -> Optional[str]:
    content = extract_content(item)
    if content is None:
        option_text = item.get("optionText")
        content = option_text if _is_displayable(option_text) else None
    return _render_text_value(title, content)


def _render_text_value(title: str, content: Any) -> Optional[str]:
    if content is None:
        return None
    text = strip_html(content)
    return f"{title}: {text}" if text else None


def _render_matrix(item: EvaluationItem, title: str) -> Optional[str]:
    records = item.records or []
    if not records:
        return None

    first = records[0]
    if isinstance(first, MatrixRecord) and first.columnNames is not None:
        lines = []
        for record in records:
            if not isinstance(record, MatrixRecord) or not record.columnNames:
                continue
            details = record.column_details()
            if not details:
                # Unanswered instrument row
                continue
            lines.append(f"{record.row_label}: {', '.join(details)}")
        return _block(title, lines)

    return _block(title, (record.summary() for record in records))


def _render_points(item: EvaluationItem, title: str) -> Optional[str]:
    content = extract_content(item)
    if content is None:
        return None
    return f"{title}: {content} points"


def _render_record_list(item: EvaluationItem, title: str) -> Optional[str]:
    return _block(title, (record.summary() for record in item.records or []))


def _flattened_scores(item: EvaluationItem, prefix: str) -> List[str]:
    flattened = item.flattened()
    lines = []
    for key, value in flattened.items():
        if not key.startswith(prefix) or key.endswith("Label") or not _is_displayable(value):
            continue
        label = flattened.get(f"{key}Label")
        if not _is_displayable(label):
            label = _humanize(key[len(prefix):]) or key
        lines.append(f"{strip_html(label)}: {strip_html(value)}")

    score = flattened.get("score")
    if lines and _is_displayable(score):
        lines.append(f"Total Score: {score}")
    return lines


def _render_assessment(item: EvaluationItem, title: str) -> Optional[str]:
    if item.records:
        return _block(title, (record.summary() for record in item.records))

    prefix = item.spec.flattened_prefix
    return _block(title, _flattened_scores(item, prefix)) if prefix else None


def _render_vitals(item: EvaluationItem, title: str) -> Optional[str]:
    lines = []
    for key, label in VITAL_SIGN_FIELDS:
        value = item.get(key)
        if _is_displayable(value):
            lines.append(f"{label}: {strip_html(value)}")
    return _block(title, lines)


def _render_fallback(item: EvaluationItem, title: str) -> Optional[str]:
    content = extract_content(item)
    if content is None:
        return None
    if is_numeric_like(content):
        return f"{title}: {content}"
    return _render_text_value(title, content)


_RENDERERS = {
    DisplayRule.DATE: _render_date,
    DisplayRule.TEXT: _render_text,
    DisplayRule.CHECKBOX: _render_checkbox,
    DisplayRule.CHOICE: _render_choice,
    DisplayRule.MATRIX: _render_matrix,
    DisplayRule.POINTS: _render_points,
    DisplayRule.RECORD_LIST: _render_record_list,
    DisplayRule.ASSESSMENT: _render_assessment,
    DisplayRule.VITALS: _render_vitals,
    DisplayRule.TITLE: lambda item, title: title,
    DisplayRule.FALLBACK: _render_fallback,
}


# ============================================================
# PUBLIC API
# ============================================================

def parse_item(item: Any) -> Optional[str]:
    """Render one item (adapted model or raw mapping); None when it has nothing to show."""
    if not isinstance(item, EvaluationItem):
        item = adapt_item(item)

    renderer = _RENDERERS.get(item.spec.display_rule, _render_fallback)
    return renderer(item, item.title)


def parse_items(items: Sequence[Any], max_workers: Optional[int] = None) -> List[Optional[str]]:
    """
    Render every item, in input order.

    With ``max_workers`` above 1 items are rendered on a thread pool; results
    are still returned by input index, not completion order.
    """
    items = list(items)
    if not max_workers or max_workers <= 1 or len(items) <= 1:
        return [parse_item(item) for item in items]

    results: List[Optional[str]] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(parse_item, item): index for index, item in enumerate(items)}
        for future, index in futures.items():
            results[index] = future.result()
    return results


def parse_evaluation(evaluation: Any, max_workers: Optional[int] = None) -> ParsedEvaluation:
    """Render a whole evaluation as ``{title, content}``."""
    if not isinstance(evaluation, Evaluation):
        evaluation = adapt_evaluation(evaluation)

    items = evaluation.patientEvaluationItems
    rendered = [text for text in parse_items(items, max_workers=max_workers) if text is not None]

    if rendered:
        content = "\n\n".join(rendered)
    else:
        logger.warning(f"[PARSER] No renderable items in evaluation '{evaluation.name}' ({len(items)} items)")
        content = FALLBACK_MESSAGE.format(count=len(items))

    return ParsedEvaluation(title=evaluation.name or "Unnamed Evaluation", content=content)
