"""
FastAPI Endpoint for Obesity Diagnostic Evaluation

Exposes the rule-based obesity diagnostic engine over HTTP.
Request bodies are validated by pydantic before reaching the engine;
insufficient data is reported as a normal response with no result.

This router is mounted by main.py.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, Optional
from dataclasses import asdict
from datetime import datetime
import logging

from clinical_data import PatientDataInput, AnthropometricInput
from obesity_diagnostic_engine import (
    ObesityDiagnosticEngine,
    format_diagnostic_response,
    build_diagnostic_report,
    ORGAN_DYSFUNCTION_RULES,
    FUNCTIONAL_LIMITATION_CHECKS,
    CLINICAL_RISK_FACTOR_CHECKS,
    CLASSIFICATION_DETAILS,
)
from adiposity import (
    AdiposityAssessor,
    ASIAN_BMI_THRESHOLDS,
    DEFAULT_BMI_THRESHOLDS,
    BODY_FAT_NORMAL_RANGES,
    WAIST_THRESHOLDS,
    WAIST_HIP_RATIO_THRESHOLDS,
    WAIST_HEIGHT_RATIO_THRESHOLD,
    resolve_bmi,
    bmi_category,
    is_asian_ethnicity,
    weight_to_lose,
)

logger = logging.getLogger(__name__)

ENGINE_VERSION = "1.0.0"

diagnostic_router = APIRouter(prefix="/diagnostics", tags=["diagnostics"])


# ==================== REQUEST/RESPONSE MODELS ====================

class DiagnosticRequest(BaseModel):
    """Request model for diagnostic evaluation"""
    patient_data: PatientDataInput = Field(..., description="Structured patient data from intake forms")
    session_id: Optional[str] = Field(None, description="Session identifier for tracking")
    clinician: Optional[str] = Field(None, description="Clinician name for the report")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "patient_data": {
                    "anthropometrics": {"height": 65, "weight": 200, "ethnicity": "caucasian", "sex": "female"},
                    "clinical": {"hypertension": True},
                    "laboratory": {"hba1c": 5.9},
                    "functional": {},
                },
                "session_id": "20261018123456",
            }
        }
    )


class DiagnosticResponse(BaseModel):
    """Response model for diagnostic evaluation"""
    success: bool
    timestamp: str
    session_id: Optional[str]

    # None when there is not enough anthropometric data
    result: Optional[Dict[str, Any]] = None
    message: Optional[str] = None

    processing_time: float
    engine_version: str = ENGINE_VERSION


INSUFFICIENT_DATA_MESSAGE = "Enter basic anthropometric data (height and weight, or BMI) to begin diagnostic evaluation."


# ==================== ENDPOINTS ====================

@diagnostic_router.post("/evaluate", response_model=DiagnosticResponse)
async def evaluate_patient(request: DiagnosticRequest):
    """
    Classify a patient as no obesity, preclinical obesity or clinical obesity.

    **Pipeline:**
    1. Minimum data check (height + weight, or BMI)
    2. Excess adiposity confirmation (ethnicity-adjusted)
    3. Organ dysfunction, functional limitation and risk factor extraction
    4. Classification, confidence, reasoning and recommendations

    Insufficient data is not an error: the response carries `result: null`
    and a message asking for more data.
    """
    start_time = datetime.now()

    try:
        logger.info(f"🔍 Diagnostic evaluation for session: {request.session_id}")

        data = request.patient_data.to_domain(derive_ratios=True)
        result = ObesityDiagnosticEngine.evaluate(data)

        processing_time = (datetime.now() - start_time).total_seconds()

        if result is None:
            return DiagnosticResponse(
                success=True,
                timestamp=datetime.now().isoformat(),
                session_id=request.session_id,
                result=None,
                message=INSUFFICIENT_DATA_MESSAGE,
                processing_time=round(processing_time, 3),
            )

        logger.info(f"✅ Diagnostic evaluation completed: {result.classification.value} ({result.confidence.value} confidence)")

        return DiagnosticResponse(
            success=True,
            timestamp=datetime.now().isoformat(),
            session_id=request.session_id,
            result=format_diagnostic_response(result, data),
            processing_time=round(processing_time, 3),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Diagnostic evaluation failed: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail=f"Diagnostic evaluation error: {str(e)}"
        )


@diagnostic_router.post("/report")
async def generate_report(request: DiagnosticRequest):
    """
    Evaluate and return an exportable report payload with a plain-text summary.
    """
    try:
        data = request.patient_data.to_domain(derive_ratios=True)
        report = build_diagnostic_report(data, clinician=request.clinician)

        if report is None:
            return {"success": True, "report": None, "message": INSUFFICIENT_DATA_MESSAGE}

        return {
            "success": True,
            "report": {
                "patient_info": {
                    "assessment_date": report.assessment_date,
                    "clinician": report.clinician,
                },
                "result": format_diagnostic_response(report.result, data),
                "supporting_data": request.patient_data.model_dump(exclude_none=True),
                "summary": report.summary,
            },
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Report generation failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Report generation error: {str(e)}")


@diagnostic_router.post("/adiposity")
async def check_adiposity(anthropometrics: AnthropometricInput):
    """
    Quick endpoint to check only excess adiposity.

    Useful during data collection, before clinical and laboratory data
    are available. Runs the adiposity stage only.
    """
    try:
        anthro = anthropometrics.to_domain().with_derived_ratios()
        bmi = resolve_bmi(anthro)
        excess = weight_to_lose(anthro.height, anthro.weight)

        return {
            "bmi": round(bmi, 1) if bmi is not None else None,
            "bmi_category": bmi_category(bmi) if bmi is not None else None,
            "asian_thresholds_applied": is_asian_ethnicity(anthro.ethnicity),
            "excess_adiposity_confirmed": AdiposityAssessor.confirm_excess_adiposity(anthro),
            "secondary_indicators": AdiposityAssessor.secondary_indicators(anthro),
            "weight_to_lose_for_bmi_25": round(excess, 1) if excess is not None else None,
        }

    except Exception as e:
        logger.error(f"❌ Adiposity check failed: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@diagnostic_router.get("/criteria")
async def get_diagnostic_criteria():
    """
    Return the diagnostic rule tables.

    Useful for transparency and clinician education.
    """
    return {
        "classifications": {
            classification.value: details for classification, details in CLASSIFICATION_DETAILS.items()
        },
        "bmi_thresholds": {
            "asian": asdict(ASIAN_BMI_THRESHOLDS),
            "default": asdict(DEFAULT_BMI_THRESHOLDS),
        },
        "waist_circumference_inches": {
            ("asian" if asian else "default"): {sex.value: value for sex, value in by_sex.items()}
            for asian, by_sex in WAIST_THRESHOLDS.items()
        },
        "waist_hip_ratio": {sex.value: value for sex, value in WAIST_HIP_RATIO_THRESHOLDS.items()},
        "waist_height_ratio": WAIST_HEIGHT_RATIO_THRESHOLD,
        "body_fat_normal_ranges": [
            {
                "min_age": band.min_age,
                "max_age": band.max_age,
                "male": list(band.male),
                "female": list(band.female),
            }
            for band in BODY_FAT_NORMAL_RANGES
        ],
        "organ_dysfunction": [rule.finding for rule in ORGAN_DYSFUNCTION_RULES],
        "functional_limitations": [label for _, label in FUNCTIONAL_LIMITATION_CHECKS],
        "risk_factors": [label for _, label in CLINICAL_RISK_FACTOR_CHECKS] + [
            "Elevated triglycerides",
            "Low HDL cholesterol",
            "Elevated CRP (inflammation)",
        ],
    }


# ==================== INTEGRATION HELPER ====================

def add_diagnostic_routes_to_app(app):
    """
    Helper function to integrate diagnostic routes into a FastAPI app.

    Usage:
        from diagnostic_endpoint import add_diagnostic_routes_to_app
        add_diagnostic_routes_to_app(app)
    """
    app.include_router(diagnostic_router)
    logger.info("✅ Diagnostic routes registered")
