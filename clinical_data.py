"""
Clinical Data Model - Obesity Diagnostic Engine

Typed input/output contracts for the obesity classification pipeline.

INPUT:
    PatientData is composed of four independent groups (anthropometric,
    clinical, laboratory, functional). Every field is Optional and defaults
    to None: a missing value means "unknown", never "negative". The engine
    only reacts to values that are explicitly present.

OUTPUT:
    DiagnosticResult carries the classification, a confidence rating, the
    derived criteria, recommendations and a narrative rationale.

Intake forms and the interview importer send camelCase keys; the
from_dict constructors accept both camelCase and snake_case. Dict input
is validated by the pydantic *Input models at the bottom of this module,
which the HTTP layer also uses as request bodies.
"""

from typing import Dict, Any, List, Optional, Literal
from dataclasses import dataclass, field, fields, replace
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ==================== ENUMERATIONS ====================

class Sex(Enum):
    """Biological sex used for sex-specific anthropometric thresholds"""
    MALE = "male"
    FEMALE = "female"


class Classification(Enum):
    """Final diagnostic categories"""
    NO_OBESITY = "no-obesity"
    PRECLINICAL_OBESITY = "preclinical-obesity"
    CLINICAL_OBESITY = "clinical-obesity"


class Confidence(Enum):
    """How much corroborating data was available to the classifier"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _present_count(group) -> int:
    return sum(1 for f in fields(group) if getattr(group, f.name) is not None)


# ==================== INPUT GROUPS ====================

@dataclass(frozen=True)
class AnthropometricData:
    """Body measurements. Height and circumferences in inches, weight in pounds."""
    height: Optional[float] = None
    weight: Optional[float] = None
    bmi: Optional[float] = None
    waist_circumference: Optional[float] = None
    hip_circumference: Optional[float] = None
    waist_hip_ratio: Optional[float] = None
    waist_height_ratio: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    age: Optional[float] = None
    sex: Optional[Sex] = None
    ethnicity: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "AnthropometricData":
        return AnthropometricInput.model_validate(payload or {}).to_domain()

    def with_derived_ratios(self) -> "AnthropometricData":
        """
        Fill in waist-to-hip and waist-to-height ratios from the raw
        circumferences when they were not supplied.

        Mirrors what the intake form computes; ratios already present are
        never overwritten.
        """
        updates = {}
        waist = self.waist_circumference
        if self.waist_hip_ratio is None and waist is not None and self.hip_circumference:
            updates["waist_hip_ratio"] = round(waist / self.hip_circumference, 2)
        if self.waist_height_ratio is None and waist is not None and self.height:
            updates["waist_height_ratio"] = round(waist / self.height, 2)
        return replace(self, **updates) if updates else self


@dataclass(frozen=True)
class ClinicalData:
    """Symptoms and past medical history flags"""
    # Symptoms
    breathlessness: Optional[bool] = None
    fatigue: Optional[bool] = None
    chronic_pain: Optional[bool] = None
    urinary_incontinence: Optional[bool] = None
    sleep_disorders: Optional[bool] = None
    reflux: Optional[bool] = None
    osteoarthritis: Optional[bool] = None

    # Past medical history
    type2_diabetes: Optional[bool] = None
    hypertension: Optional[bool] = None
    pcos: Optional[bool] = None
    sleep_apnea: Optional[bool] = None
    nafld: Optional[bool] = None
    cardiovascular_disease: Optional[bool] = None
    mental_health: Optional[bool] = None

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "ClinicalData":
        return ClinicalInput.model_validate(payload or {}).to_domain()

    def provided_count(self) -> int:
        return _present_count(self)


@dataclass(frozen=True)
class LaboratoryData:
    """Laboratory panel. Units: mg/dL, %, U/L, mL/min/1.73m², mg/L."""
    # Glucose metabolism
    fasting_glucose: Optional[float] = None
    hba1c: Optional[float] = None

    # Lipid profile
    total_cholesterol: Optional[float] = None
    ldl: Optional[float] = None
    hdl: Optional[float] = None
    triglycerides: Optional[float] = None

    # Liver
    alt: Optional[float] = None
    ast: Optional[float] = None
    fibrosis: Optional[bool] = None

    # Kidney
    egfr: Optional[float] = None
    microalbuminuria: Optional[bool] = None

    crp: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "LaboratoryData":
        return LaboratoryInput.model_validate(payload or {}).to_domain()

    def provided_count(self) -> int:
        return _present_count(self)


@dataclass(frozen=True)
class FunctionalData:
    """Activities of daily living (ADL) limitations and quality-of-life measures"""
    mobility_limitations: Optional[bool] = None
    bathing_difficulty: Optional[bool] = None
    dressing_difficulty: Optional[bool] = None
    toileting_difficulty: Optional[bool] = None
    continence_difficulty: Optional[bool] = None
    eating_difficulty: Optional[bool] = None

    quality_of_life_score: Optional[float] = None
    physical_limitations: Optional[bool] = None
    psychosocial_impact: Optional[bool] = None

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "FunctionalData":
        return FunctionalInput.model_validate(payload or {}).to_domain()

    def provided_count(self) -> int:
        return _present_count(self)


@dataclass(frozen=True)
class PatientData:
    """The engine's sole input"""
    anthropometrics: AnthropometricData = field(default_factory=AnthropometricData)
    clinical: ClinicalData = field(default_factory=ClinicalData)
    laboratory: LaboratoryData = field(default_factory=LaboratoryData)
    functional: FunctionalData = field(default_factory=FunctionalData)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PatientData":
        """
        Build PatientData from the collaborator dictionary shape:

            {"anthropometrics": {...}, "clinical": {...},
             "laboratory": {...}, "functional": {...}}

        Missing groups become empty groups; unknown keys are ignored.
        Values are validated and coerced by PatientDataInput; anything that
        cannot be coerced raises pydantic.ValidationError (a ValueError).
        """
        return PatientDataInput.model_validate(payload or {}).to_domain()


# ==================== OUTPUT STRUCTURES ====================

@dataclass(frozen=True)
class DiagnosticCriteria:
    """Findings derived from PatientData; computed once per evaluation"""
    excess_adiposity_confirmed: bool
    organ_dysfunction: List[str]
    functional_limitations: List[str]
    risk_factors: List[str]


@dataclass(frozen=True)
class DiagnosticResult:
    """Structured output from the diagnostic engine"""
    classification: Classification
    confidence: Confidence
    criteria: DiagnosticCriteria
    recommendations: List[str]
    reasoning: str
    affected_systems: List[str]


# ==================== INPUT VALIDATION MODELS ====================

class _GroupModel(BaseModel):
    """Accepts both camelCase (form payloads) and snake_case keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AnthropometricInput(_GroupModel):
    height: Optional[float] = Field(None, gt=0, description="Height in inches")
    weight: Optional[float] = Field(None, gt=0, description="Weight in pounds")
    bmi: Optional[float] = Field(None, gt=0)
    waist_circumference: Optional[float] = Field(None, gt=0, description="Inches")
    hip_circumference: Optional[float] = Field(None, gt=0, description="Inches")
    waist_hip_ratio: Optional[float] = Field(None, gt=0)
    waist_height_ratio: Optional[float] = Field(None, gt=0)
    body_fat_percentage: Optional[float] = Field(None, ge=0, le=100)
    age: Optional[float] = Field(None, ge=0, le=130)
    sex: Optional[Literal["male", "female"]] = None
    ethnicity: Optional[str] = None

    @field_validator("sex", mode="before")
    @classmethod
    def normalize_sex(cls, value):
        if isinstance(value, Sex):
            return value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def to_domain(self) -> AnthropometricData:
        values = self.model_dump()
        if values["sex"] is not None:
            values["sex"] = Sex(values["sex"])
        return AnthropometricData(**values)


class ClinicalInput(_GroupModel):
    breathlessness: Optional[bool] = None
    fatigue: Optional[bool] = None
    chronic_pain: Optional[bool] = None
    urinary_incontinence: Optional[bool] = None
    sleep_disorders: Optional[bool] = None
    reflux: Optional[bool] = None
    osteoarthritis: Optional[bool] = None
    type2_diabetes: Optional[bool] = Field(None, alias="type2Diabetes")
    hypertension: Optional[bool] = None
    pcos: Optional[bool] = None
    sleep_apnea: Optional[bool] = None
    nafld: Optional[bool] = None
    cardiovascular_disease: Optional[bool] = None
    mental_health: Optional[bool] = None

    def to_domain(self) -> ClinicalData:
        return ClinicalData(**self.model_dump())


class LaboratoryInput(_GroupModel):
    fasting_glucose: Optional[float] = Field(None, ge=0, description="mg/dL")
    hba1c: Optional[float] = Field(None, ge=0, alias="hba1c", description="%")
    total_cholesterol: Optional[float] = Field(None, ge=0)
    ldl: Optional[float] = Field(None, ge=0)
    hdl: Optional[float] = Field(None, ge=0)
    triglycerides: Optional[float] = Field(None, ge=0)
    alt: Optional[float] = Field(None, ge=0, description="U/L")
    ast: Optional[float] = Field(None, ge=0, description="U/L")
    fibrosis: Optional[bool] = None
    egfr: Optional[float] = Field(None, ge=0, alias="egfr", description="mL/min/1.73m²")
    microalbuminuria: Optional[bool] = None
    crp: Optional[float] = Field(None, ge=0, description="mg/L")

    def to_domain(self) -> LaboratoryData:
        return LaboratoryData(**self.model_dump())


class FunctionalInput(_GroupModel):
    mobility_limitations: Optional[bool] = None
    bathing_difficulty: Optional[bool] = None
    dressing_difficulty: Optional[bool] = None
    toileting_difficulty: Optional[bool] = None
    continence_difficulty: Optional[bool] = None
    eating_difficulty: Optional[bool] = None
    quality_of_life_score: Optional[float] = None
    physical_limitations: Optional[bool] = None
    psychosocial_impact: Optional[bool] = None

    def to_domain(self) -> FunctionalData:
        return FunctionalData(**self.model_dump())


class PatientDataInput(_GroupModel):
    anthropometrics: AnthropometricInput = Field(default_factory=AnthropometricInput)
    clinical: ClinicalInput = Field(default_factory=ClinicalInput)
    laboratory: LaboratoryInput = Field(default_factory=LaboratoryInput)
    functional: FunctionalInput = Field(default_factory=FunctionalInput)

    def to_domain(self, derive_ratios: bool = False) -> PatientData:
        """
        Only explicitly sent fields survive; unset fields stay None.
        Waist ratios are derived only when asked (HTTP boundary).
        """
        anthropometrics = self.anthropometrics.to_domain()
        if derive_ratios:
            anthropometrics = anthropometrics.with_derived_ratios()
        return PatientData(
            anthropometrics=anthropometrics,
            clinical=self.clinical.to_domain(),
            laboratory=self.laboratory.to_domain(),
            functional=self.functional.to_domain(),
        )
