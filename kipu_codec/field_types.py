"""
Field-Type Registry

==============================================================================
ARCHITECTURAL CONTEXT
==============================================================================

Every KIPU evaluation item is tagged with a ``field_type`` token that decides
how its answer is shaped, rendered and submitted. This module is the single
source of truth for those decisions:

    token ──► FieldTypeSpec
                 ├── record_kind        (Record Resolver)
                 ├── display_rule       (Display Parser)
                 ├── submission_bucket  (Submission Categorizer)
                 ├── slot               (which item slot carries the answer)
                 ├── content_key        (flattened scalar holding the answer)
                 └── flattened_prefix   (CIWA / COWS sub-score key prefix)

Adding a field type means adding exactly one ``FieldTypeSpec``. Unknown tokens
never raise: ``lookup()`` hands back a fallback spec that treats the item as a
generic string-like scalar.
==============================================================================
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger("kipu-codec")


# ==============================================================================
# ENUMERATIONS
# ==============================================================================

class KipuFieldType(str, Enum):
    """Field-type tokens emitted by the KIPU evaluation API."""
    ATTACHMENTS = "attachments"
    AUTO_COMPLETE = "auto_complete"
    CARE_TEAM = "care_team"
    CARE_TEAM_CASE_MANAGER = "care_team.Case_Manager"
    CARE_TEAM_INTAKE_TECHNICIAN = "care_team.Intake_Technician"
    CARE_TEAM_OTHER_CASE_MANAGER = "care_team.Other_Case_Manager"
    CARE_TEAM_OTHER_THERAPIST = "care_team.Other_therapist"
    CARE_TEAM_PEER_SUPPORT = "care_team.Peer_Support"
    CARE_TEAM_PEER_SUPPORT_SPECIALIST = "care_team.Peer_Support_Specialist"
    CARE_TEAM_PRIMARY_THERAPIST = "care_team.Primary_Therapist"
    CARE_TEAM_INTAKE_SPECIALIST = "care_team.intake_specialist"
    CONDITIONAL_QUESTION = "conditional_question"
    CREATE_EVALUATION = "create_evaluation"
    CHECK_BOX = "check_box"
    CHECKBOX = "checkbox"
    DATESTAMP = "datestamp"
    DROP_DOWN_LIST = "drop_down_list"
    EVALUATION_DATE = "evaluation_date"
    EVALUATION_DATETIME = "evaluation_datetime"
    EVALUATION_NAME = "evaluation_name"
    EVALUATION_NAME_DROP_DOWN = "evaluation_name_drop_down"
    EVALUATION_START_AND_END_TIME = "evaluation_start_and_end_time"
    FORMATTED_TEXT = "formatted_text"
    GOLDEN_THREAD_TAG = "golden_thread_tag"
    IMAGE = "image"
    IMAGE_WITH_CANVAS = "image_with_canvas"
    MATRIX = "matrix"
    PATIENT_ADMISSION_DATETIME = "patient.admission_datetime"
    PATIENT_ALLERGIES = "patient.allergies"
    PATIENT_ANTICIPATED_DISCHARGE_DATE = "patient.anticipated_discharge_date"
    PATIENT_ATTENDANCES = "patient.attendances"
    PATIENT_BED = "patient.bed"
    PATIENT_BMI = "patient.bmi"
    PATIENT_BROUGHT_IN_MEDICATION = "patient.brought_in_medication"
    PATIENT_CIWA_AR = "patient.ciwa_ar"
    PATIENT_CIWA_AR_CURRENT = "patient.ciwa_ar_current"
    PATIENT_CIWA_B = "patient.ciwa_b"
    PATIENT_CIWA_B_CURRENT = "patient.ciwa_b_current"
    PATIENT_COWS = "patient.cows"
    PATIENT_COWS_CURRENT = "patient.cows_current"
    PATIENT_DIAGNOSIS_CODE = "patient.diagnosis_code"
    PATIENT_DIAGNOSIS_CODE_CURRENT = "patient.diagnosis_code_current"
    PATIENT_DISCHARGE_DATETIME = "patient.discharge_datetime"
    PATIENT_DISCHARGE_MEDICATIONS = "patient.discharge_medications"
    PATIENT_DISCHARGE_TYPE = "patient.discharge_type"
    PATIENT_DIETS = "patient.diets"
    PATIENT_DRUG_OF_CHOICE = "patient.drug_of_choice"
    PATIENT_ELECTRONIC_DEVICES = "patient.electronic_devices"
    PATIENT_EMPLOYER = "patient.employer"
    PATIENT_ETHNICITY = "patient.ethnicity"
    PATIENT_GLUCOSE_LOG = "patient.glucose_log"
    PATIENT_HEIGHT_WEIGHT = "patient.height_weight"
    PATIENT_HEIGHT_WEIGHT_CURRENT = "patient.height_weight_current"
    PATIENT_LOCKER = "patient.locker"
    PATIENT_MARITAL_STATUS = "patient.marital_status"
    PATIENT_MEDICATION_CURRENT = "patient.medication_current"
    PATIENT_MEDICATION_INVENTORY = "patient.medication_inventory"
    PATIENT_OCCUPATION = "patient.occupation"
    PATIENT_ORTHOSTATIC_VITALS = "patient.orthostatic_vitals"
    PATIENT_ORTHOSTATIC_VITAL_SIGNS_CURRENT = "patient.orthostatic_vital_signs_current"
    PATIENT_RECURRING_FORMS = "patient.recurring_forms"
    PATIENT_TOGGLE_MARS_GENERATION = "patient.toggle_mars_generation"
    PATIENT_VITAL_SIGNS = "patient.vital_signs"
    PATIENT_VITAL_SIGNS_CURRENT = "patient.vital_signs_current"
    POINTS_ITEM = "points_item"
    POINTS_TOTAL = "points_total"
    PROGRESS_NOTE = "progress_note"
    PROBLEM_LIST = "problem_list"
    RADIO_BUTTONS = "radio_buttons"
    STRING = "string"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    TITLE = "title"
    TREATMENT_PLAN_COLUMN_TITLES = "treatment_plan_column_titles"
    TREATMENT_PLAN_GOAL = "treatment_plan_goal"
    TREATMENT_PLAN_ITEM = "treatment_plan_item"
    TREATMENT_PLAN_MASTER_PLAN = "treatment_plan_master_plan"
    TREATMENT_PLAN_OBJECTIVE = "treatment_plan_objective"
    TREATMENT_PLAN_PROBLEM = "treatment_plan_problem"


class RecordKind(str, Enum):
    """Typed record variant implied by an item's field type."""
    MATRIX = "matrix"
    DRUG_HISTORY = "drug_history"
    MEDICATION = "medication"
    MEDICATION_HISTORY = "medication_history"  # drug history OR medication, see records.classify_sub_variant
    DIAGNOSIS = "diagnosis"
    PROBLEM_LIST = "problem_list"
    DRUG_OF_CHOICE = "drug_of_choice"
    TREATMENT_PLAN = "treatment_plan"
    ASSESSMENT = "assessment"
    GENERIC = "generic"


class DisplayRule(str, Enum):
    """Rendering rule the Display Parser applies."""
    DATE = "date"
    TEXT = "text"
    CHECKBOX = "checkbox"
    CHOICE = "choice"
    MATRIX = "matrix"
    POINTS = "points"
    RECORD_LIST = "record_list"
    ASSESSMENT = "assessment"
    VITALS = "vitals"
    TITLE = "title"
    FALLBACK = "fallback"


class SubmissionBucket(str, Enum):
    """Value array of the KIPU submission payload an edit is filed under."""
    STRING = "stringValues"
    TEXT = "textValues"
    RADIO = "radioButtonValues"
    CHECKBOX = "checkBoxValues"
    DROPDOWN = "dropDownValues"
    DATESTAMP = "datestampValues"
    EXCLUDED = "excluded"


class ValueSlot(str, Enum):
    """Which part of an item carries its answer."""
    SCALAR = "scalar"
    RECORDS = "records"
    FLATTENED = "flattened"
    NONE = "none"


# ==============================================================================
# REGISTRY ENTRIES
# ==============================================================================

@dataclass(frozen=True)
class FieldTypeSpec:
    """Everything the codec needs to know about one field-type token."""
    token: str
    record_kind: RecordKind = RecordKind.GENERIC
    display_rule: DisplayRule = DisplayRule.FALLBACK
    submission_bucket: SubmissionBucket = SubmissionBucket.STRING
    slot: ValueSlot = ValueSlot.SCALAR
    content_key: Optional[str] = None        # flattened attribute holding the answer
    flattened_prefix: Optional[str] = None   # e.g. "ciwaAr" for ciwaArNausea / ciwaArNauseaLabel

    @property
    def is_known(self) -> bool:
        return self.token in FIELD_TYPE_REGISTRY


FT = KipuFieldType

_DEFAULT_ENTRIES: List[FieldTypeSpec] = [
    # Dates
    FieldTypeSpec(FT.EVALUATION_DATE.value, display_rule=DisplayRule.DATE,
                  submission_bucket=SubmissionBucket.DATESTAMP),
    FieldTypeSpec(FT.EVALUATION_DATETIME.value, display_rule=DisplayRule.DATE,
                  submission_bucket=SubmissionBucket.DATESTAMP),
    FieldTypeSpec(FT.DATESTAMP.value, display_rule=DisplayRule.DATE,
                  submission_bucket=SubmissionBucket.DATESTAMP),
    FieldTypeSpec(FT.TIMESTAMP.value, display_rule=DisplayRule.DATE,
                  submission_bucket=SubmissionBucket.DATESTAMP, content_key="timestamp"),
    FieldTypeSpec(FT.PATIENT_ADMISSION_DATETIME.value, display_rule=DisplayRule.DATE,
                  submission_bucket=SubmissionBucket.DATESTAMP, slot=ValueSlot.FLATTENED, content_key="date"),
    FieldTypeSpec(FT.PATIENT_DISCHARGE_DATETIME.value, display_rule=DisplayRule.DATE,
                  submission_bucket=SubmissionBucket.DATESTAMP, slot=ValueSlot.FLATTENED, content_key="date"),
    FieldTypeSpec(FT.PATIENT_ANTICIPATED_DISCHARGE_DATE.value, display_rule=DisplayRule.DATE,
                  submission_bucket=SubmissionBucket.DATESTAMP, slot=ValueSlot.FLATTENED, content_key="date"),

    # Free text
    FieldTypeSpec(FT.STRING.value, display_rule=DisplayRule.TEXT),
    FieldTypeSpec(FT.TEXT.value, display_rule=DisplayRule.TEXT, submission_bucket=SubmissionBucket.TEXT),
    FieldTypeSpec(FT.FORMATTED_TEXT.value, display_rule=DisplayRule.TEXT, submission_bucket=SubmissionBucket.TEXT),

    # Choices
    FieldTypeSpec(FT.CHECK_BOX.value, display_rule=DisplayRule.CHECKBOX,
                  submission_bucket=SubmissionBucket.CHECKBOX),
    FieldTypeSpec(FT.CHECKBOX.value, display_rule=DisplayRule.CHECKBOX,
                  submission_bucket=SubmissionBucket.CHECKBOX),
    FieldTypeSpec(FT.RADIO_BUTTONS.value, display_rule=DisplayRule.CHOICE,
                  submission_bucket=SubmissionBucket.RADIO, content_key="optionText"),
    FieldTypeSpec(FT.DROP_DOWN_LIST.value, display_rule=DisplayRule.CHOICE,
                  submission_bucket=SubmissionBucket.DROPDOWN, content_key="optionText"),
    FieldTypeSpec(FT.EVALUATION_NAME_DROP_DOWN.value, display_rule=DisplayRule.CHOICE,
                  submission_bucket=SubmissionBucket.DROPDOWN, content_key="optionText"),

    # Structured / multi-row
    # Matrix edits have no dedicated bucket and fall into stringValues (see DESIGN.md)
    FieldTypeSpec(FT.MATRIX.value, record_kind=RecordKind.MATRIX, display_rule=DisplayRule.MATRIX,
                  slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_DRUG_OF_CHOICE.value, record_kind=RecordKind.DRUG_OF_CHOICE,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_BROUGHT_IN_MEDICATION.value, record_kind=RecordKind.MEDICATION_HISTORY,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_MEDICATION_CURRENT.value, record_kind=RecordKind.MEDICATION,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_DISCHARGE_MEDICATIONS.value, record_kind=RecordKind.MEDICATION,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_MEDICATION_INVENTORY.value, record_kind=RecordKind.MEDICATION,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_DIAGNOSIS_CODE.value, record_kind=RecordKind.DIAGNOSIS,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_DIAGNOSIS_CODE_CURRENT.value, record_kind=RecordKind.DIAGNOSIS,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PATIENT_ALLERGIES.value, record_kind=RecordKind.DIAGNOSIS,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.PROBLEM_LIST.value, record_kind=RecordKind.PROBLEM_LIST,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.EVALUATION_NAME.value, record_kind=RecordKind.TREATMENT_PLAN,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.TREATMENT_PLAN_GOAL.value, record_kind=RecordKind.TREATMENT_PLAN,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.TREATMENT_PLAN_OBJECTIVE.value, record_kind=RecordKind.TREATMENT_PLAN,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.TREATMENT_PLAN_PROBLEM.value, record_kind=RecordKind.TREATMENT_PLAN,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.TREATMENT_PLAN_ITEM.value, record_kind=RecordKind.TREATMENT_PLAN,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),
    FieldTypeSpec(FT.TREATMENT_PLAN_MASTER_PLAN.value, record_kind=RecordKind.TREATMENT_PLAN,
                  display_rule=DisplayRule.RECORD_LIST, slot=ValueSlot.RECORDS),

    # Standardized withdrawal instruments
    FieldTypeSpec(FT.PATIENT_CIWA_AR.value, record_kind=RecordKind.ASSESSMENT,
                  display_rule=DisplayRule.ASSESSMENT, slot=ValueSlot.RECORDS, flattened_prefix="ciwaAr"),
    FieldTypeSpec(FT.PATIENT_CIWA_AR_CURRENT.value, record_kind=RecordKind.ASSESSMENT,
                  display_rule=DisplayRule.ASSESSMENT, slot=ValueSlot.FLATTENED, flattened_prefix="ciwaAr"),
    FieldTypeSpec(FT.PATIENT_CIWA_B.value, record_kind=RecordKind.ASSESSMENT,
                  display_rule=DisplayRule.ASSESSMENT, slot=ValueSlot.RECORDS, flattened_prefix="ciwaB"),
    FieldTypeSpec(FT.PATIENT_CIWA_B_CURRENT.value, record_kind=RecordKind.ASSESSMENT,
                  display_rule=DisplayRule.ASSESSMENT, slot=ValueSlot.FLATTENED, flattened_prefix="ciwaB"),
    FieldTypeSpec(FT.PATIENT_COWS.value, record_kind=RecordKind.ASSESSMENT,
                  display_rule=DisplayRule.ASSESSMENT, slot=ValueSlot.RECORDS, flattened_prefix="cow"),
    FieldTypeSpec(FT.PATIENT_COWS_CURRENT.value, record_kind=RecordKind.ASSESSMENT,
                  display_rule=DisplayRule.ASSESSMENT, slot=ValueSlot.FLATTENED, flattened_prefix="cow"),

    # Vitals
    FieldTypeSpec(FT.PATIENT_VITAL_SIGNS.value, display_rule=DisplayRule.VITALS, slot=ValueSlot.FLATTENED),
    FieldTypeSpec(FT.PATIENT_VITAL_SIGNS_CURRENT.value, display_rule=DisplayRule.VITALS, slot=ValueSlot.FLATTENED),
    FieldTypeSpec(FT.PATIENT_ORTHOSTATIC_VITALS.value, display_rule=DisplayRule.VITALS, slot=ValueSlot.FLATTENED),
    FieldTypeSpec(FT.PATIENT_ORTHOSTATIC_VITAL_SIGNS_CURRENT.value, display_rule=DisplayRule.VITALS,
                  slot=ValueSlot.FLATTENED),
    FieldTypeSpec(FT.PATIENT_HEIGHT_WEIGHT.value, display_rule=DisplayRule.VITALS, slot=ValueSlot.FLATTENED),
    FieldTypeSpec(FT.PATIENT_HEIGHT_WEIGHT_CURRENT.value, display_rule=DisplayRule.VITALS, slot=ValueSlot.FLATTENED),

    # Flattened demographic scalars
    FieldTypeSpec(FT.PATIENT_BMI.value, slot=ValueSlot.FLATTENED, content_key="bmi"),
    FieldTypeSpec(FT.PATIENT_BED.value, slot=ValueSlot.FLATTENED, content_key="bedName"),
    FieldTypeSpec(FT.PATIENT_DIETS.value, slot=ValueSlot.FLATTENED, content_key="diets"),
    FieldTypeSpec(FT.PATIENT_DISCHARGE_TYPE.value, slot=ValueSlot.FLATTENED, content_key="dischargeType"),
    FieldTypeSpec(FT.PATIENT_EMPLOYER.value, slot=ValueSlot.FLATTENED, content_key="employer"),
    FieldTypeSpec(FT.PATIENT_ETHNICITY.value, slot=ValueSlot.FLATTENED, content_key="ethnicity"),
    FieldTypeSpec(FT.PATIENT_LOCKER.value, slot=ValueSlot.FLATTENED, content_key="locker"),
    FieldTypeSpec(FT.PATIENT_MARITAL_STATUS.value, slot=ValueSlot.FLATTENED, content_key="maritalStatus"),
    FieldTypeSpec(FT.PATIENT_OCCUPATION.value, slot=ValueSlot.FLATTENED, content_key="occupation"),
    FieldTypeSpec(FT.CARE_TEAM_PRIMARY_THERAPIST.value, slot=ValueSlot.FLATTENED, content_key="primaryTherapist"),

    # Scores
    FieldTypeSpec(FT.POINTS_ITEM.value, display_rule=DisplayRule.POINTS, content_key="points"),
    FieldTypeSpec(FT.POINTS_TOTAL.value, display_rule=DisplayRule.POINTS, content_key="points"),

    # Layout / files
    FieldTypeSpec(FT.TITLE.value, display_rule=DisplayRule.TITLE, slot=ValueSlot.NONE),
    FieldTypeSpec(FT.ATTACHMENTS.value, submission_bucket=SubmissionBucket.EXCLUDED),

    # Form-side tokens used when submitting edits
    FieldTypeSpec("textarea", display_rule=DisplayRule.TEXT, submission_bucket=SubmissionBucket.TEXT),
    FieldTypeSpec("number"),
    FieldTypeSpec("radio", display_rule=DisplayRule.CHOICE, submission_bucket=SubmissionBucket.RADIO),
    FieldTypeSpec("select", display_rule=DisplayRule.CHOICE, submission_bucket=SubmissionBucket.DROPDOWN),
    FieldTypeSpec("check_box_first_value_none", display_rule=DisplayRule.CHECKBOX,
                  submission_bucket=SubmissionBucket.CHECKBOX),
    FieldTypeSpec("date", display_rule=DisplayRule.DATE, submission_bucket=SubmissionBucket.DATESTAMP),
    FieldTypeSpec("datetime", display_rule=DisplayRule.DATE, submission_bucket=SubmissionBucket.DATESTAMP),
    FieldTypeSpec("file", submission_bucket=SubmissionBucket.EXCLUDED),
    FieldTypeSpec("attachment", submission_bucket=SubmissionBucket.EXCLUDED),
]

FIELD_TYPE_REGISTRY: Dict[str, FieldTypeSpec] = {spec.token: spec for spec in _DEFAULT_ENTRIES}

# Spec handed out for anything unregistered
UNKNOWN_FIELD_TYPE = FieldTypeSpec(token="")


# ==============================================================================
# MODULE-LEVEL FUNCTIONS
# ==============================================================================

def normalize_token(field_type) -> str:
    """Reduce an enum member, string or junk value to a registry token."""
    if isinstance(field_type, KipuFieldType):
        return field_type.value
    if isinstance(field_type, str):
        return field_type.strip()
    return ""


def lookup(field_type) -> FieldTypeSpec:
    """
    Return the spec for ``field_type``.

    Never raises: unregistered tokens get a copy of ``UNKNOWN_FIELD_TYPE``
    carrying the token, so every consumer lands on its fallback arm.
    """
    token = normalize_token(field_type)
    spec = FIELD_TYPE_REGISTRY.get(token)
    if spec is None:
        logger.debug(f"[REGISTRY] Unregistered field type: {token!r}")
        return replace(UNKNOWN_FIELD_TYPE, token=token)
    return spec


def is_registered(field_type) -> bool:
    return normalize_token(field_type) in FIELD_TYPE_REGISTRY


def register(spec: FieldTypeSpec) -> None:
    """Add or replace the registry entry for ``spec.token``."""
    if spec.token in FIELD_TYPE_REGISTRY:
        logger.info(f"[REGISTRY] Replacing field type {spec.token!r}")
    FIELD_TYPE_REGISTRY[spec.token] = spec
    logger.debug(f"[REGISTRY] Registered {spec.token!r} -> {spec.display_rule.value}/{spec.submission_bucket.value}")


def registered_tokens() -> List[str]:
    return sorted(FIELD_TYPE_REGISTRY)
