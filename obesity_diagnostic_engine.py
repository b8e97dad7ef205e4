"""
Obesity Diagnostic Engine - Rule-Based Clinical Classification

Classifies a patient as no obesity, preclinical obesity or clinical obesity
from structured anthropometric, clinical, laboratory and functional data.

FRAMEWORK:
- Excess adiposity must be confirmed first (BMI with ethnicity-adjusted
  cut-offs, or anthropometric markers for normal-range BMI)
- Clinical obesity = excess adiposity + organ dysfunction and/or
  limitations in activities of daily living
- Preclinical obesity = excess adiposity without either

PIPELINE (synchronous, one pass per call):
1. Input validation (minimum anthropometric data)
2. Excess adiposity confirmation
3. Organ dysfunction / functional limitation / risk factor extraction
4. Classification
5. Confidence scoring (data completeness)
6. Reasoning and recommendations
7. Affected organ systems

The engine is stateless and performs no I/O. Insufficient data is an
expected state and yields None rather than an exception.

Reference: Rubino et al. (2025) - "Definition and diagnostic criteria of
clinical obesity" - Lancet Diabetes & Endocrinology
"""

from typing import Dict, Any, List, Optional, Callable
from dataclasses import dataclass
from datetime import date
import logging

from clinical_data import (
    PatientData,
    ClinicalData,
    LaboratoryData,
    FunctionalData,
    DiagnosticCriteria,
    DiagnosticResult,
    Classification,
    Confidence,
)
from adiposity import AdiposityAssessor, resolve_bmi, bmi_category, is_asian_ethnicity

logger = logging.getLogger(__name__)


def _at_least(value: Optional[float], threshold: float) -> bool:
    return value is not None and value >= threshold


def _above(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


def _below(value: Optional[float], threshold: float) -> bool:
    return value is not None and value < threshold


# ==================== STAGE 1: INPUT VALIDATION ====================

class InputValidator:
    """Checks whether enough data exists to attempt classification."""

    @staticmethod
    def has_minimum_data(data: PatientData) -> bool:
        anthro = data.anthropometrics
        has_height_weight = anthro.height is not None and anthro.weight is not None
        return has_height_weight or anthro.bmi is not None


# ==================== STAGE 3: FINDING EXTRACTION ====================

@dataclass(frozen=True)
class OrganSystemRule:
    """One organ-system dysfunction rule"""
    finding: str
    system: Optional[str]   # label used in the affected-systems summary
    predicate: Callable[[ClinicalData, LaboratoryData], bool]


ORGAN_DYSFUNCTION_RULES = (
    OrganSystemRule(
        "Metabolic: Type 2 diabetes", "Endocrine/Metabolic",
        lambda c, lab: bool(c.type2_diabetes) or _at_least(lab.hba1c, 6.5) or _at_least(lab.fasting_glucose, 126),
    ),
    OrganSystemRule(
        "Cardiovascular: Hypertension/CVD", "Cardiovascular",
        lambda c, lab: bool(c.hypertension) or bool(c.cardiovascular_disease),
    ),
    OrganSystemRule(
        "Hepatic: NAFLD/elevated enzymes", "Hepatic",
        lambda c, lab: bool(c.nafld) or bool(lab.fibrosis) or _above(lab.alt, 40) or _above(lab.ast, 40),
    ),
    OrganSystemRule(
        "Renal: Decreased eGFR/albuminuria", None,
        lambda c, lab: _below(lab.egfr, 60) or bool(lab.microalbuminuria),
    ),
    OrganSystemRule(
        "Respiratory: Sleep apnea/dyspnea", "Respiratory",
        lambda c, lab: bool(c.sleep_apnea) or bool(c.breathlessness),
    ),
    OrganSystemRule(
        "Reproductive: PCOS", "Reproductive",
        lambda c, lab: bool(c.pcos),
    ),
    OrganSystemRule(
        "Musculoskeletal: Osteoarthritis", "Musculoskeletal",
        lambda c, lab: bool(c.osteoarthritis),
    ),
)

# (FunctionalData attribute, label) in reporting order
FUNCTIONAL_LIMITATION_CHECKS = (
    ("mobility_limitations", "Mobility limitations"),
    ("bathing_difficulty", "Bathing difficulty"),
    ("dressing_difficulty", "Dressing difficulty"),
    ("toileting_difficulty", "Toileting difficulty"),
    ("continence_difficulty", "Continence difficulty"),
    ("eating_difficulty", "Eating difficulty"),
)

CLINICAL_RISK_FACTOR_CHECKS = (
    ("fatigue", "Chronic fatigue"),
    ("chronic_pain", "Chronic pain"),
    ("urinary_incontinence", "Urinary incontinence"),
    ("sleep_disorders", "Sleep disorders"),
    ("reflux", "GERD"),
    ("mental_health", "Mental health concerns"),
)

TRIGLYCERIDES_THRESHOLD = 150.0   # mg/dL, at or above
HDL_THRESHOLD = 40.0              # mg/dL, below
CRP_THRESHOLD = 3.0               # mg/L, above


class FindingExtractor:
    """
    Independent scans of clinical, laboratory and functional inputs.

    Each scan returns labeled findings in a fixed order. Absent values never
    trigger a rule.
    """

    @staticmethod
    def assess_organ_dysfunction(clinical: ClinicalData, laboratory: LaboratoryData) -> List[str]:
        return [rule.finding for rule in ORGAN_DYSFUNCTION_RULES if rule.predicate(clinical, laboratory)]

    @staticmethod
    def assess_functional_limitations(functional: FunctionalData) -> List[str]:
        return [label for attr, label in FUNCTIONAL_LIMITATION_CHECKS if getattr(functional, attr)]

    @staticmethod
    def identify_risk_factors(clinical: ClinicalData, laboratory: LaboratoryData) -> List[str]:
        risks = [label for attr, label in CLINICAL_RISK_FACTOR_CHECKS if getattr(clinical, attr)]

        # Laboratory risk factors
        if _at_least(laboratory.triglycerides, TRIGLYCERIDES_THRESHOLD):
            risks.append("Elevated triglycerides")
        if _below(laboratory.hdl, HDL_THRESHOLD):
            risks.append("Low HDL cholesterol")
        if _above(laboratory.crp, CRP_THRESHOLD):
            risks.append("Elevated CRP (inflammation)")

        return risks

    @staticmethod
    def identify_affected_systems(data: PatientData) -> List[str]:
        """
        Collapse the organ dysfunction predicates into one label per system.
        Insertion order is preserved and each system appears at most once.
        """
        systems: List[str] = []
        for rule in ORGAN_DYSFUNCTION_RULES:
            if rule.system is None or rule.system in systems:
                continue
            if rule.predicate(data.clinical, data.laboratory):
                systems.append(rule.system)
        return systems

    @staticmethod
    def assess_criteria(data: PatientData) -> DiagnosticCriteria:
        return DiagnosticCriteria(
            excess_adiposity_confirmed=AdiposityAssessor.confirm_excess_adiposity(data.anthropometrics),
            organ_dysfunction=FindingExtractor.assess_organ_dysfunction(data.clinical, data.laboratory),
            functional_limitations=FindingExtractor.assess_functional_limitations(data.functional),
            risk_factors=FindingExtractor.identify_risk_factors(data.clinical, data.laboratory),
        )


# ==================== STAGE 4-5: CLASSIFICATION & CONFIDENCE ====================

class ObesityClassifier:
    """Maps derived criteria onto one of three mutually exclusive categories."""

    @staticmethod
    def classify(criteria: DiagnosticCriteria) -> Classification:
        if not criteria.excess_adiposity_confirmed:
            return Classification.NO_OBESITY

        if criteria.organ_dysfunction or criteria.functional_limitations:
            return Classification.CLINICAL_OBESITY

        return Classification.PRECLINICAL_OBESITY

    @staticmethod
    def assess_confidence(data: PatientData, criteria: DiagnosticCriteria) -> Confidence:
        """
        Score data completeness (0-6).

        A present-but-false flag counts as provided data, the same as a
        measured value.
        """
        score = 0
        anthro = data.anthropometrics

        if anthro.height is not None and anthro.weight is not None:
            score += 1
        if anthro.waist_circumference is not None:
            score += 1
        if anthro.body_fat_percentage is not None:
            score += 1

        if data.clinical.provided_count() >= 3:
            score += 1
        if data.laboratory.provided_count() >= 3:
            score += 1
        if data.functional.provided_count() >= 2:
            score += 1

        logger.debug(f"Data completeness score: {score}/6")

        if score >= 5:
            return Confidence.HIGH
        elif score >= 3:
            return Confidence.MEDIUM
        else:
            return Confidence.LOW


# ==================== STAGE 6: NARRATIVE ====================

RECOMMENDATIONS = {
    Classification.CLINICAL_OBESITY: (
        "Initiate comprehensive obesity management plan",
        "Consider pharmacotherapy or surgical evaluation",
        "Address identified organ dysfunction",
        "Monitor for complications",
    ),
    Classification.PRECLINICAL_OBESITY: (
        "Implement lifestyle intervention program",
        "Regular monitoring for disease progression",
        "Preventive counseling for identified risk factors",
        "Consider weight management referral",
    ),
    Classification.NO_OBESITY: (
        "Continue healthy lifestyle practices",
        "Routine health maintenance",
    ),
}

RISK_FACTOR_RECOMMENDATION = "Address identified risk factors"


class NarrativeGenerator:
    """Deterministic, human-readable reasoning and recommendations."""

    @staticmethod
    def generate_reasoning(classification: Classification, criteria: DiagnosticCriteria) -> str:
        if not criteria.excess_adiposity_confirmed:
            return "Excess adiposity not confirmed based on available anthropometric measurements."

        if classification == Classification.CLINICAL_OBESITY:
            reasoning = (
                f"Excess adiposity confirmed with evidence of organ dysfunction "
                f"({len(criteria.organ_dysfunction)} systems affected)"
            )
            if criteria.functional_limitations:
                reasoning += f" and functional limitations ({len(criteria.functional_limitations)} domains affected)"
            return reasoning + "."

        return (
            "Excess adiposity confirmed but without evidence of organ dysfunction "
            "or significant functional limitations."
        )

    @staticmethod
    def generate_recommendations(classification: Classification, criteria: DiagnosticCriteria) -> List[str]:
        recommendations = list(RECOMMENDATIONS[classification])
        if classification == Classification.NO_OBESITY and criteria.risk_factors:
            recommendations.append(RISK_FACTOR_RECOMMENDATION)
        return recommendations


# ==================== MAIN DIAGNOSTIC ENGINE ====================

class ObesityDiagnosticEngine:
    """
    Main orchestrator for obesity classification.

    Integrates all stages into a single, transparent decision pipeline.
    """

    @staticmethod
    def evaluate(data: PatientData) -> Optional[DiagnosticResult]:
        """
        Complete diagnostic evaluation pipeline.

        Args:
            data: Patient measurements, history, labs and functional status

        Returns:
            DiagnosticResult, or None when there is not enough
            anthropometric data to attempt classification
        """
        if not InputValidator.has_minimum_data(data):
            logger.info("Insufficient anthropometric data - need height and weight, or BMI")
            return None

        logger.info("🏥 Starting obesity diagnostic evaluation")

        # ─── STAGE 2-3: Criteria ───
        criteria = FindingExtractor.assess_criteria(data)
        logger.info(f"  • Excess adiposity confirmed: {criteria.excess_adiposity_confirmed}")
        logger.debug(f"  • Organ dysfunction: {criteria.organ_dysfunction}")
        logger.debug(f"  • Functional limitations: {criteria.functional_limitations}")
        logger.debug(f"  • Risk factors: {criteria.risk_factors}")

        # ─── STAGE 4-5: Classification ───
        classification = ObesityClassifier.classify(criteria)
        confidence = ObesityClassifier.assess_confidence(data, criteria)

        # ─── STAGE 6-7: Narrative ───
        result = DiagnosticResult(
            classification=classification,
            confidence=confidence,
            criteria=criteria,
            recommendations=NarrativeGenerator.generate_recommendations(classification, criteria),
            reasoning=NarrativeGenerator.generate_reasoning(classification, criteria),
            affected_systems=FindingExtractor.identify_affected_systems(data),
        )

        logger.info(
            f"🎯 Classification: {classification.value.upper()} | Confidence: {confidence.value.upper()}"
        )
        return result


def evaluate(data: PatientData) -> Optional[DiagnosticResult]:
    return ObesityDiagnosticEngine.evaluate(data)


# ==================== REPORTING ====================

CLASSIFICATION_DETAILS = {
    Classification.CLINICAL_OBESITY: {
        "label": "Clinical Obesity",
        "description": "Excess adiposity with organ dysfunction or functional limitations",
    },
    Classification.PRECLINICAL_OBESITY: {
        "label": "Preclinical Obesity",
        "description": "Excess adiposity without organ dysfunction",
    },
    Classification.NO_OBESITY: {
        "label": "No Obesity",
        "description": "Excess adiposity not confirmed",
    },
}


def format_diagnostic_response(result: DiagnosticResult, data: Optional[PatientData] = None) -> Dict[str, Any]:
    """
    Convert DiagnosticResult to JSON-serializable dictionary for API response.
    """
    response = {
        "classification": result.classification.value,
        "classification_details": dict(CLASSIFICATION_DETAILS[result.classification]),
        "confidence": result.confidence.value,
        "criteria": {
            "excess_adiposity_confirmed": result.criteria.excess_adiposity_confirmed,
            "organ_dysfunction": list(result.criteria.organ_dysfunction),
            "functional_limitations": list(result.criteria.functional_limitations),
            "risk_factors": list(result.criteria.risk_factors),
        },
        "recommendations": list(result.recommendations),
        "reasoning": result.reasoning,
        "affected_systems": list(result.affected_systems),
    }

    if data is not None:
        bmi = resolve_bmi(data.anthropometrics)
        response["anthropometric_summary"] = {
            "bmi": round(bmi, 1) if bmi is not None else None,
            "bmi_category": bmi_category(bmi) if bmi is not None else None,
            "asian_thresholds_applied": is_asian_ethnicity(data.anthropometrics.ethnicity),
        }

    return response


@dataclass(frozen=True)
class DiagnosticReport:
    """Exportable assessment record handed to report/export collaborators"""
    assessment_date: str
    clinician: Optional[str]
    result: DiagnosticResult
    supporting_data: PatientData
    summary: str


def generate_summary(result: DiagnosticResult, data: PatientData) -> str:
    """One-paragraph plain-text summary of the assessment."""
    details = CLASSIFICATION_DETAILS[result.classification]
    parts = [f"Classification: {details['label']} ({details['description'].lower()})."]

    bmi = resolve_bmi(data.anthropometrics)
    if bmi is not None:
        parts.append(f"BMI {bmi:.1f} ({bmi_category(bmi)}).")

    parts.append(result.reasoning)

    if result.affected_systems:
        parts.append(f"Affected systems: {', '.join(result.affected_systems)}.")
    if result.criteria.risk_factors:
        parts.append(f"Risk factors: {', '.join(result.criteria.risk_factors)}.")

    parts.append(f"Confidence: {result.confidence.value} (based on data completeness).")
    return " ".join(parts)


def build_diagnostic_report(
    data: PatientData,
    clinician: Optional[str] = None,
    assessment_date: Optional[date] = None
) -> Optional[DiagnosticReport]:
    """
    Evaluate and wrap the result with its supporting data.
    Returns None when the engine does.
    """
    result = ObesityDiagnosticEngine.evaluate(data)
    if result is None:
        return None

    assessment_date = assessment_date or date.today()
    return DiagnosticReport(
        assessment_date=assessment_date.isoformat(),
        clinician=clinician,
        result=result,
        supporting_data=data,
        summary=generate_summary(result, data),
    )
