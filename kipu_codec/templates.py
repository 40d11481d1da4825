"""
Evaluation templates: the blank form KIPU serves before an evaluation is filled in.

``transform_template`` fills the defaults the form viewer relies on;
``extract_dynamic_form_fields`` reduces template items to field descriptors
for dynamically generated forms.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import field_validator

from .case import snake_to_camel
from .errors import InvalidEvaluationError
from .schemas import CodecModel
from .text import as_text

logger = logging.getLogger("kipu-codec")


class TemplateItem(CodecModel):
    """One question of an evaluation template, with viewer defaults applied."""
    id: Optional[Union[int, str]] = None
    fieldType: str = ""
    name: Optional[str] = None
    label: Optional[str] = None
    recordNames: Any = ""
    columnNames: Any = ""
    enabled: bool = True
    optional: bool = False
    evaluationId: Optional[Union[int, str]] = None
    defaultValue: Any = ""
    dividerBelow: bool = False
    rule: Any = ""
    placeholder: Any = ""
    prePopulateWithId: Any = 0
    parentItemId: Any = ""
    conditions: Any = ""
    labelWidth: Any = ""
    itemGroup: Any = ""
    showString: Any = ""
    showStringCss: Any = ""
    matrixDefaultRecords: Any = 0
    cssStyle: Any = ""
    image: Any = None
    skipValidations: Any = None
    records: List[Any] = []

    @field_validator("fieldType", mode="before")
    @classmethod
    def _coerce_field_type(cls, v):
        return as_text(v) or ""

    @field_validator("enabled", mode="before")
    @classmethod
    def _always_enabled(cls, v):
        return True

    @field_validator("optional", "dividerBelow", mode="before")
    @classmethod
    def _coerce_flag(cls, v):
        return bool(v)

    @field_validator("recordNames", "columnNames", "defaultValue", "rule", "placeholder", "parentItemId",
                     "conditions", "labelWidth", "itemGroup", "showString", "showStringCss", "cssStyle",
                     mode="before")
    @classmethod
    def _default_blank(cls, v):
        return v or ""

    @field_validator("prePopulateWithId", "matrixDefaultRecords", mode="before")
    @classmethod
    def _default_zero(cls, v):
        return v or 0

    @field_validator("records", mode="before")
    @classmethod
    def _default_records(cls, v):
        return v if isinstance(v, list) else []


def transform_template(template: Any) -> Dict[str, Any]:
    """Normalize a template (snake or camel keys, ``evaluationItems`` or ``items``)."""
    if not isinstance(template, Mapping):
        raise InvalidEvaluationError(f"Template must be a mapping, got {type(template).__name__}")

    data = dict(template) if "evaluationItems" in template else snake_to_camel(dict(template))
    items = data.get("evaluationItems") or data.get("items") or []
    if not isinstance(items, list):
        items = []

    transformed = []
    for item in items:
        if not isinstance(item, Mapping):
            raise InvalidEvaluationError(f"Template item must be a mapping, got {type(item).__name__}")
        transformed.append(TemplateItem.model_validate(dict(item)).model_dump())

    logger.info(f"[TEMPLATE] Transformed template '{data.get('name')}' with {len(transformed)} items")
    data["evaluationItems"] = transformed
    return data


def extract_dynamic_form_fields(items: List[Any]) -> List[Dict[str, Any]]:
    """
    ``{id, label, fieldType, required, options?}`` descriptor per item.

    Every other key rides along. ``options`` is only present when non-empty,
    and ``required`` falls back to ``not optional`` when the item does not say.
    """
    fields = []
    for item in items or []:
        if isinstance(item, CodecModel):
            item = item.model_dump()
        if not isinstance(item, Mapping):
            raise InvalidEvaluationError(f"Template item must be a mapping, got {type(item).__name__}")

        rest = {k: v for k, v in item.items() if k not in ("id", "label", "fieldType", "required", "options")}
        descriptor = {
            "id": item.get("id"),
            "label": item.get("label"),
            "fieldType": item.get("fieldType"),
            "required": bool(item["required"]) if "required" in item else not item.get("optional", True),
        }
        options = item.get("options")
        if isinstance(options, list) and options:
            descriptor["options"] = options
        descriptor.update(rest)
        fields.append(descriptor)
    return fields
