"""
Pydantic schemas for the evaluation codec.

Two independent representations of an evaluation answer live here:

- the READ side (``Evaluation`` / ``EvaluationItem`` / record variants), an
  immutable snapshot of what KIPU returned, normalized to camelCase;
- the WRITE side (``SubmissionField`` / ``SubmissionPayload``), the flat edits a
  user makes and the categorized arrays KIPU's create endpoint expects.

They share only ``id`` and ``fieldType``; an edit never mutates a read snapshot.
"""

from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, field_validator

from .case import camel_to_snake, to_camel, to_snake
from .field_types import FieldTypeSpec, RecordKind, ValueSlot, lookup, normalize_token
from .text import as_identifier, as_scalar, as_text, is_blank, strip_html


class CodecModel(BaseModel):
    """Frozen model that keeps unknown keys verbatim as extras."""
    model_config = ConfigDict(extra="allow", frozen=True)

    def get(self, key: str, default: Any = None) -> Any:
        """Dict-style access across declared fields and extras."""
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key, default)


def _join(parts: List[Optional[str]], sep: str = " - ") -> Optional[str]:
    kept = [strip_html(p) for p in parts if not is_blank(p)]
    kept = [p for p in kept if p]
    return sep.join(kept) if kept else None


def _with_status(text: Optional[str], status: Optional[str]) -> Optional[str]:
    if is_blank(text):
        return None
    text = strip_html(text)
    if not text:
        return None
    return f"{text} ({status})" if status else text


# ============================================================
# RECORD VARIANTS
# ============================================================

class BaseRecord(CodecModel):
    """One row of a multi-row answer. Fields shared by every variant."""
    kind: ClassVar[RecordKind] = RecordKind.GENERIC

    id: Optional[Union[int, str]] = None
    name: Optional[str] = None
    description: Optional[str] = None
    value: Any = None
    status: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return as_identifier(v)

    @field_validator("name", "description", "status", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return as_text(v)

    def summary(self) -> Optional[str]:
        """One-line description used when the record is listed."""
        for candidate in (self.description, self.name, self.value):
            if not is_blank(candidate) and as_text(candidate):
                text = strip_html(as_text(candidate))
                if text:
                    return text
        return None


class MatrixColumn(BaseModel):
    """Names one dynamic column present in a matrix row."""
    key: str
    value: Optional[str] = None


class MatrixRecord(BaseRecord):
    """Matrix row: fixed label/comments/option plus arbitrary named columns (kept as extras)."""
    kind: ClassVar[RecordKind] = RecordKind.MATRIX

    label: Optional[str] = None
    comments: Optional[str] = None
    option: Optional[str] = None
    columnNames: Optional[List[MatrixColumn]] = None

    @field_validator("label", "comments", "option", mode="before")
    @classmethod
    def _coerce_matrix_text(cls, v):
        return as_text(v)

    @field_validator("columnNames", mode="before")
    @classmethod
    def _coerce_columns(cls, v):
        if isinstance(v, MatrixColumn):
            return [v]
        if not isinstance(v, list):
            return None
        columns = []
        for col in v:
            if isinstance(col, MatrixColumn):
                columns.append(col)
            elif isinstance(col, dict) and as_text(col.get("key")):
                columns.append({"key": as_text(col.get("key")), "value": as_text(col.get("value"))})
        return columns

    def column_value(self, key: str) -> Any:
        """Value of a dynamic column, looked up by its key and the key's camelCase form."""
        value = self.get(key)
        if value is None and to_camel(key) != key:
            value = self.get(to_camel(key))
        return value

    @staticmethod
    def _answered(value: Any) -> bool:
        if value is None or isinstance(value, bool) and not value:
            return False
        if isinstance(value, (int, float)) and value == 0:
            return False
        text = str(value).strip()
        return text != "" and text.lower() != "na"

    def column_details(self) -> List[str]:
        """``"<column>: <value>"`` for every declared column with a real answer."""
        details = []
        for col in self.columnNames or []:
            value = self.column_value(col.key)
            if self._answered(value):
                details.append(f"{col.value or col.key}: {strip_html(str(value))}")
        return details

    def is_unanswered(self) -> bool:
        """True when every declared column is empty or ``na``."""
        return not self.column_details()

    @property
    def row_label(self) -> str:
        return self.label or self.name or "Item"

    def summary(self) -> Optional[str]:
        return _join([
            self.label,
            as_text(self.value),
            f"Description: {strip_html(self.description)}" if self.description else None,
            f"Comments: {strip_html(self.comments)}" if self.comments else None,
            f"Option: {strip_html(self.option)}" if self.option else None,
        ])


class DrugHistoryRecord(BaseRecord):
    kind: ClassVar[RecordKind] = RecordKind.DRUG_HISTORY

    drugName: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    route: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None

    @field_validator("drugName", "dosage", "frequency", "route", "startDate", "endDate", mode="before")
    @classmethod
    def _coerce_fields(cls, v):
        return as_text(v)

    def summary(self) -> Optional[str]:
        return _with_status(self.drugName, self.status)


class MedicationRecord(BaseRecord):
    kind: ClassVar[RecordKind] = RecordKind.MEDICATION

    medicationName: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    route: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    prescriber: Optional[str] = None

    @field_validator("medicationName", "dosage", "frequency", "route", "startDate", "endDate",
                     "prescriber", mode="before")
    @classmethod
    def _coerce_fields(cls, v):
        return as_text(v)

    def summary(self) -> Optional[str]:
        head = self.medicationName or self.name or self.description
        if is_blank(head):
            return None
        text = _join([head, self.dosage, self.route, self.frequency], sep=" ")
        return _with_status(text, self.status)


class DiagnosisRecord(BaseRecord):
    kind: ClassVar[RecordKind] = RecordKind.DIAGNOSIS

    diagnosisDescription: Optional[str] = None
    code: Optional[str] = None
    dateIdentified: Optional[str] = None
    provider: Optional[str] = None
    severity: Optional[str] = None

    @field_validator("diagnosisDescription", "code", "dateIdentified", "provider", "severity", mode="before")
    @classmethod
    def _coerce_fields(cls, v):
        return as_text(v)

    def summary(self) -> Optional[str]:
        return _join([
            self.diagnosisDescription or self.description,
            f"Code: {self.code}" if self.code else None,
            f"Status: {self.status}" if self.status else None,
        ])


class ProblemListRecord(BaseRecord):
    kind: ClassVar[RecordKind] = RecordKind.PROBLEM_LIST

    problemDescription: Optional[str] = None
    dateIdentified: Optional[str] = None
    severity: Optional[str] = None
    provider: Optional[str] = None

    @field_validator("problemDescription", "dateIdentified", "severity", "provider", mode="before")
    @classmethod
    def _coerce_fields(cls, v):
        return as_text(v)

    def summary(self) -> Optional[str]:
        return _with_status(self.problemDescription or self.description, self.status)


class DrugOfChoiceRecord(BaseRecord):
    kind: ClassVar[RecordKind] = RecordKind.DRUG_OF_CHOICE

    drugName: Optional[str] = None
    frequency: Optional[str] = None
    lastUsed: Optional[str] = None
    yearsUsed: Optional[Union[int, float, str]] = None
    ageFirstUsed: Optional[Union[int, float, str]] = None
    routeOfAdministration: Optional[str] = None

    @field_validator("drugName", "frequency", "lastUsed", "routeOfAdministration", mode="before")
    @classmethod
    def _coerce_fields(cls, v):
        return as_text(v)

    @field_validator("yearsUsed", "ageFirstUsed", mode="before")
    @classmethod
    def _coerce_numbers(cls, v):
        return as_scalar(v)

    def summary(self) -> Optional[str]:
        for candidate in (self.name, self.description, as_text(self.value), self.drugName):
            if not is_blank(candidate) and strip_html(candidate):
                return strip_html(candidate)
        return None


class TreatmentPlanRecord(BaseRecord):
    kind: ClassVar[RecordKind] = RecordKind.TREATMENT_PLAN

    goal: Optional[str] = None
    objective: Optional[str] = None
    intervention: Optional[str] = None
    targetDate: Optional[str] = None
    progress: Optional[str] = None

    @field_validator("goal", "objective", "intervention", "targetDate", "progress", mode="before")
    @classmethod
    def _coerce_fields(cls, v):
        return as_text(v)

    def summary(self) -> Optional[str]:
        return _join([
            self.description or self.name,
            f"Goal: {self.goal}" if self.goal else None,
            f"Objective: {self.objective}" if self.objective else None,
            f"Intervention: {self.intervention}" if self.intervention else None,
            f"Target: {self.targetDate}" if self.targetDate else None,
            f"Progress: {self.progress}" if self.progress else None,
            f"Status: {self.status}" if self.status else None,
        ])


class AssessmentRecord(BaseRecord):
    """Row of a standardized instrument (CIWA-Ar, CIWA-B, COWS)."""
    kind: ClassVar[RecordKind] = RecordKind.ASSESSMENT

    label: Optional[str] = None
    score: Optional[Union[int, float, str]] = None

    @field_validator("label", mode="before")
    @classmethod
    def _coerce_label(cls, v):
        return as_text(v)

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, v):
        return as_scalar(v)

    def summary(self) -> Optional[str]:
        points = self.value if not is_blank(self.value) else self.score
        return _join([
            self.name or self.label,
            f"Score: {points}" if not is_blank(points) else None,
            self.description,
        ])


class GenericRecord(BaseRecord):
    """Fallback row for field types without a dedicated shape; every raw key is kept."""
    kind: ClassVar[RecordKind] = RecordKind.GENERIC


EvaluationRecord = Union[
    MatrixRecord, DrugHistoryRecord, DiagnosisRecord, ProblemListRecord, DrugOfChoiceRecord,
    TreatmentPlanRecord, MedicationRecord, AssessmentRecord, GenericRecord,
]

RECORD_MODELS: Dict[RecordKind, type] = {
    RecordKind.MATRIX: MatrixRecord,
    RecordKind.DRUG_HISTORY: DrugHistoryRecord,
    RecordKind.MEDICATION: MedicationRecord,
    RecordKind.DIAGNOSIS: DiagnosisRecord,
    RecordKind.PROBLEM_LIST: ProblemListRecord,
    RecordKind.DRUG_OF_CHOICE: DrugOfChoiceRecord,
    RecordKind.TREATMENT_PLAN: TreatmentPlanRecord,
    RecordKind.ASSESSMENT: AssessmentRecord,
    RecordKind.GENERIC: GenericRecord,
}


# ============================================================
# READ SIDE
# ============================================================

class EvaluationItem(CodecModel):
    """
    One answerable unit of an evaluation.

    Type-specific flattened scalars (vital signs, CIWA/COWS sub-scores,
    ``points``, ``optionText`` ...) ride along as extras; ``answer()`` returns
    whichever slot the registry says carries this field type's answer.
    """
    id: Optional[str] = None
    name: Optional[str] = None
    label: Optional[str] = None
    fieldType: str = ""
    description: Optional[str] = None
    value: Any = None
    records: Optional[List[SerializeAsAny[BaseRecord]]] = None

    @field_validator("id", "name", "label", "description", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return as_text(v)

    @field_validator("fieldType", mode="before")
    @classmethod
    def _coerce_field_type(cls, v):
        return normalize_token(v)

    @property
    def spec(self) -> FieldTypeSpec:
        return lookup(self.fieldType)

    @property
    def title(self) -> str:
        return self.name or self.label or "Unnamed Item"

    def flattened(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def answer(self) -> Any:
        slot = self.spec.slot
        if slot == ValueSlot.RECORDS:
            return self.records
        if slot == ValueSlot.FLATTENED:
            return self.flattened()
        if slot == ValueSlot.NONE:
            return None
        return self.value


class Evaluation(CodecModel):
    """Ordered collection of items plus evaluation-level metadata."""
    id: Optional[Union[int, str]] = None
    name: Optional[str] = None
    status: Optional[str] = None
    evaluationType: Optional[str] = None
    evaluationId: Optional[Union[int, str]] = None
    patientCasefileId: Optional[str] = None
    createdAt: Optional[str] = None
    createdBy: Optional[str] = None
    updatedAt: Optional[str] = None
    updatedBy: Optional[str] = None
    patientEvaluationItems: List[EvaluationItem] = []

    @field_validator("id", "evaluationId", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return as_identifier(v)

    @field_validator("name", "status", "evaluationType", "patientCasefileId", "createdAt", "createdBy",
                     "updatedAt", "updatedBy", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return as_text(v)


class ParsedEvaluation(BaseModel):
    """Display Parser output."""
    title: str
    content: str


# ============================================================
# WRITE SIDE
# ============================================================

class SubmissionField(BaseModel):
    """A single edited answer: ``{id, fieldType, value}``."""
    model_config = ConfigDict(frozen=True)

    id: str
    fieldType: str = ""
    value: Any = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return as_text(v) if as_text(v) is not None else v

    @field_validator("fieldType", mode="before")
    @classmethod
    def _coerce_field_type(cls, v):
        return normalize_token(v)


class StringValue(BaseModel):
    evaluationItemId: str
    value: str


class TextValue(BaseModel):
    evaluationItemId: str
    value: str
    optionalCheckbox: bool = False


class CheckBoxOption(BaseModel):
    label: str
    description: str = ""


class CheckBoxValue(BaseModel):
    evaluationItemId: str
    values: List[CheckBoxOption] = []


class SubmissionPayload(BaseModel):
    """The six value arrays KIPU's patient-evaluation create endpoint expects."""
    stringValues: List[StringValue] = Field(default_factory=list)
    textValues: List[TextValue] = Field(default_factory=list)
    radioButtonValues: List[StringValue] = Field(default_factory=list)
    checkBoxValues: List[CheckBoxValue] = Field(default_factory=list)
    dropDownValues: List[StringValue] = Field(default_factory=list)
    datestampValues: List[StringValue] = Field(default_factory=list)

    def item_ids(self) -> List[str]:
        """Every evaluation item id across the six arrays, in bucket order."""
        ids = []
        for bucket in (self.stringValues, self.textValues, self.radioButtonValues,
                       self.checkBoxValues, self.dropDownValues, self.datestampValues):
            ids.extend(entry.evaluationItemId for entry in bucket)
        return ids

    def counts(self) -> Dict[str, int]:
        return {name: len(getattr(self, name)) for name in type(self).model_fields}

    def to_wire(self) -> Dict[str, List[Dict[str, Any]]]:
        """snake_case body fragment (``string_values``, ``evaluation_item_id`` ...) for the KIPU request."""
        wire: Dict[str, List[Dict[str, Any]]] = {}
        for name in type(self).model_fields:
            wire[to_snake(name)] = [camel_to_snake(entry.model_dump()) for entry in getattr(self, name)]
        return wire
