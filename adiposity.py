"""
Excess Adiposity Assessment

Decides whether "excess adiposity" is present from anthropometric data,
using ethnicity-adjusted BMI thresholds and, for normal-range BMI, a
secondary gate over waist, ratio and body-fat indicators.

DECISION ORDER:
1. Body fat > 45%                      -> confirmed (severe adiposity)
2. BMI > 40                            -> confirmed (any ethnicity)
3. BMI >= obesity class I threshold    -> confirmed
4. BMI >= pre-obesity threshold        -> confirmed
5. BMI < normal upper bound            -> confirmed only with >= 2 indicators
6. anything else                       -> not confirmed

Reference: WHO Expert Consultation (2004) - BMI cut-offs for Asian populations
Reference: Lancet Diabetes & Endocrinology Commission (2025) - Clinical obesity
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass
from types import MappingProxyType
import logging

from clinical_data import AnthropometricData, Sex

logger = logging.getLogger(__name__)


# ==================== RULE TABLES ====================

@dataclass(frozen=True)
class BMIThresholds:
    """Ethnicity-specific BMI cut-offs (kg/m²)"""
    pre_obesity: float
    obesity_class_i: float
    normal_upper_bound: float


ASIAN_BMI_THRESHOLDS = BMIThresholds(pre_obesity=23.0, obesity_class_i=27.0, normal_upper_bound=22.9)
DEFAULT_BMI_THRESHOLDS = BMIThresholds(pre_obesity=25.0, obesity_class_i=30.0, normal_upper_bound=25.0)

SEVERE_OBESITY_BMI = 40.0
SEVERE_BODY_FAT_PERCENTAGE = 45.0
MINIMUM_SECONDARY_INDICATORS = 2

# Waist circumference (inches) above which central adiposity is flagged
WAIST_THRESHOLDS = MappingProxyType({
    True: MappingProxyType({Sex.MALE: 35.4, Sex.FEMALE: 31.5}),    # Asian
    False: MappingProxyType({Sex.MALE: 40.0, Sex.FEMALE: 35.0}),   # default
})

WAIST_HIP_RATIO_THRESHOLDS = MappingProxyType({Sex.MALE: 0.9, Sex.FEMALE: 0.85})
WAIST_HEIGHT_RATIO_THRESHOLD = 0.5


@dataclass(frozen=True)
class BodyFatBand:
    """Normal body-fat range (percent, inclusive) for one age band"""
    min_age: int
    max_age: Optional[int]
    male: Tuple[float, float]
    female: Tuple[float, float]

    def upper_bound(self, sex: Sex) -> float:
        return (self.male if sex == Sex.MALE else self.female)[1]


BODY_FAT_NORMAL_RANGES = (
    BodyFatBand(18, 29, male=(12.0, 19.0), female=(24.0, 32.0)),
    BodyFatBand(30, 39, male=(14.0, 22.0), female=(25.0, 34.0)),
    BodyFatBand(40, 49, male=(16.0, 24.0), female=(27.0, 36.0)),
    BodyFatBand(50, 59, male=(18.0, 26.0), female=(29.0, 38.0)),
    BodyFatBand(60, None, male=(20.0, 28.0), female=(30.0, 40.0)),
)

# WHO BMI categories: (exclusive upper bound, label)
BMI_CATEGORIES = (
    (18.5, "Underweight"),
    (25.0, "Normal"),
    (30.0, "Overweight"),
    (35.0, "Obese I"),
    (40.0, "Obese II"),
)


# ==================== ETHNICITY ====================

ASIAN_ETHNICITY_EXACT_MATCHES = frozenset({
    "asian",
    "chinese",
    "japanese",
    "korean",
    "indian",
    "vietnamese",
    "thai",
    "filipino",
})

ASIAN_ETHNICITY_SUBSTRING_MATCHES = (
    "east asian",
    "south asian",
    "southeast asian",
)


def is_asian_ethnicity(ethnicity: Optional[str]) -> bool:
    """True when the free-text ethnicity selects the Asian threshold set."""
    if not ethnicity:
        return False

    normalized = ethnicity.strip().lower()
    if not normalized:
        return False

    if normalized in ASIAN_ETHNICITY_EXACT_MATCHES:
        return True

    return any(match in normalized for match in ASIAN_ETHNICITY_SUBSTRING_MATCHES)


def thresholds_for(ethnicity: Optional[str]) -> BMIThresholds:
    return ASIAN_BMI_THRESHOLDS if is_asian_ethnicity(ethnicity) else DEFAULT_BMI_THRESHOLDS


# ==================== BMI HELPERS ====================

def calculate_bmi(weight_lbs: Optional[float], height_in: Optional[float]) -> Optional[float]:
    """
    BMI from imperial units: (weight_lbs / height_in²) × 703.
    Returns None if either value is missing or height is not positive.
    """
    if weight_lbs is None or height_in is None or height_in <= 0:
        return None
    return (weight_lbs / (height_in ** 2)) * 703


def resolve_bmi(anthro: AnthropometricData) -> Optional[float]:
    """Provided BMI wins; otherwise recompute from height and weight."""
    if anthro.bmi is not None:
        return anthro.bmi
    return calculate_bmi(anthro.weight, anthro.height)


def bmi_category(bmi: float) -> str:
    for upper, label in BMI_CATEGORIES:
        if bmi < upper:
            return label
    return "Obese III"


def target_weight_for_bmi(height_in: float, target_bmi: float = 25.0) -> Optional[float]:
    """Weight (lbs) at which the patient would sit exactly on `target_bmi`."""
    if not height_in or height_in <= 0:
        return None
    return (target_bmi * height_in ** 2) / 703


def weight_to_lose(height_in: Optional[float], weight_lbs: Optional[float],
                   target_bmi: float = 25.0) -> Optional[float]:
    """Pounds above the target-BMI weight, or None when already at/below it."""
    if weight_lbs is None or height_in is None:
        return None
    target = target_weight_for_bmi(height_in, target_bmi)
    if target is None or weight_lbs <= target:
        return None
    return weight_lbs - target


def body_fat_upper_bound(age: Optional[float], sex: Optional[Sex]) -> Optional[float]:
    """Upper bound of the normal body-fat range, or None below 18 / unknown."""
    if age is None or sex is None or age < 18:
        return None
    for band in reversed(BODY_FAT_NORMAL_RANGES):
        if age >= band.min_age:
            return band.upper_bound(sex)
    return None


# ==================== ASSESSOR ====================

class AdiposityAssessor:
    """
    Confirms excess adiposity from anthropometrics alone.

    Only explicitly present measurements are compared against thresholds;
    a missing measurement never counts for or against the patient.
    """

    @staticmethod
    def secondary_indicators(anthro: AnthropometricData) -> List[str]:
        """
        Anthropometric risk markers used when BMI sits in the normal range.
        """
        indicators = []
        asian = is_asian_ethnicity(anthro.ethnicity)
        sex = anthro.sex

        if anthro.waist_circumference is not None and sex is not None:
            threshold = WAIST_THRESHOLDS[asian][sex]
            if anthro.waist_circumference > threshold:
                indicators.append(f"Waist circumference {anthro.waist_circumference} in > {threshold} in")

        if anthro.waist_height_ratio is not None and anthro.waist_height_ratio >= WAIST_HEIGHT_RATIO_THRESHOLD:
            indicators.append(f"Waist-to-height ratio {anthro.waist_height_ratio} ≥ {WAIST_HEIGHT_RATIO_THRESHOLD}")

        if anthro.waist_hip_ratio is not None and sex is not None:
            threshold = WAIST_HIP_RATIO_THRESHOLDS[sex]
            if anthro.waist_hip_ratio > threshold:
                indicators.append(f"Waist-to-hip ratio {anthro.waist_hip_ratio} > {threshold}")

        if anthro.body_fat_percentage is not None:
            upper = body_fat_upper_bound(anthro.age, sex)
            if upper is not None and anthro.body_fat_percentage > upper:
                indicators.append(f"Body fat {anthro.body_fat_percentage}% above normal range (≤{upper}%)")

        return indicators

    @staticmethod
    def confirm_excess_adiposity(anthro: AnthropometricData) -> bool:
        bmi = resolve_bmi(anthro)

        if anthro.body_fat_percentage is not None and anthro.body_fat_percentage > SEVERE_BODY_FAT_PERCENTAGE:
            logger.debug(f"Body fat {anthro.body_fat_percentage}% > {SEVERE_BODY_FAT_PERCENTAGE}% (severe adiposity)")
            return True

        if bmi is None:
            logger.debug("BMI not resolvable - excess adiposity not confirmed")
            return False

        thresholds = thresholds_for(anthro.ethnicity)

        if bmi > SEVERE_OBESITY_BMI:
            logger.debug(f"BMI {bmi:.1f} > {SEVERE_OBESITY_BMI} (severe obesity)")
            return True

        if bmi >= thresholds.obesity_class_i:
            logger.debug(f"BMI {bmi:.1f} ≥ {thresholds.obesity_class_i} (obesity class I)")
            return True

        if bmi >= thresholds.pre_obesity:
            logger.debug(f"BMI {bmi:.1f} ≥ {thresholds.pre_obesity} (pre-obesity)")
            return True

        if bmi < thresholds.normal_upper_bound:
            indicators = AdiposityAssessor.secondary_indicators(anthro)
            logger.debug(f"BMI {bmi:.1f} in normal range - secondary indicators: {indicators}")
            return len(indicators) >= MINIMUM_SECONDARY_INDICATORS

        return False


def confirm_excess_adiposity(anthro: AnthropometricData) -> bool:
    return AdiposityAssessor.confirm_excess_adiposity(anthro)
