"""
Tests for excess adiposity confirmation, ethnicity matching and BMI helpers.

Run: pytest test_adiposity.py
"""

import pytest

from clinical_data import AnthropometricData, Sex
from adiposity import (
    AdiposityAssessor,
    confirm_excess_adiposity,
    is_asian_ethnicity,
    thresholds_for,
    calculate_bmi,
    resolve_bmi,
    bmi_category,
    target_weight_for_bmi,
    weight_to_lose,
    body_fat_upper_bound,
    ASIAN_BMI_THRESHOLDS,
    DEFAULT_BMI_THRESHOLDS,
)


# ==================== ETHNICITY ====================

@pytest.mark.parametrize("ethnicity", [None, "", "   "])
def test_empty_ethnicity_is_not_asian(ethnicity):
    assert is_asian_ethnicity(ethnicity) is False


@pytest.mark.parametrize("ethnicity", ["Asian", "CHINESE", "japanese", " Vietnamese ", "Filipino", "indian"])
def test_exact_ethnicity_matches_regardless_of_casing(ethnicity):
    assert is_asian_ethnicity(ethnicity) is True


@pytest.mark.parametrize("ethnicity", ["East Asian", "south asian descent", "Southeast Asian heritage"])
def test_substring_ethnicity_matches(ethnicity):
    assert is_asian_ethnicity(ethnicity) is True


@pytest.mark.parametrize("ethnicity", ["Caucasian", "African American", "Hispanic", "Asian-American"])
def test_non_asian_ethnicities(ethnicity):
    assert is_asian_ethnicity(ethnicity) is False


def test_thresholds_for_ethnicity():
    assert thresholds_for("korean") is ASIAN_BMI_THRESHOLDS
    assert thresholds_for("caucasian") is DEFAULT_BMI_THRESHOLDS
    assert thresholds_for(None) is DEFAULT_BMI_THRESHOLDS


# ==================== BMI HELPERS ====================

def test_bmi_recomputed_from_height_and_weight():
    bmi = resolve_bmi(AnthropometricData(height=70, weight=180))
    assert abs(bmi - 25.8) < 0.1


def test_provided_bmi_takes_precedence():
    assert resolve_bmi(AnthropometricData(height=70, weight=180, bmi=31.0)) == 31.0


@pytest.mark.parametrize("weight,height", [(180, None), (None, 70), (180, 0)])
def test_calculate_bmi_unresolvable(weight, height):
    assert calculate_bmi(weight, height) is None


@pytest.mark.parametrize("bmi,category", [
    (18.4, "Underweight"),
    (18.5, "Normal"),
    (24.9, "Normal"),
    (25.0, "Overweight"),
    (30.0, "Obese I"),
    (35.0, "Obese II"),
    (40.0, "Obese III"),
    (52.3, "Obese III"),
])
def test_bmi_category(bmi, category):
    assert bmi_category(bmi) == category


def test_weight_targets():
    assert abs(target_weight_for_bmi(70) - 174.25) < 0.01
    assert abs(weight_to_lose(70, 180) - 5.75) < 0.01
    assert weight_to_lose(70, 150) is None
    assert weight_to_lose(None, 180) is None


# ==================== BODY FAT TABLE ====================

@pytest.mark.parametrize("age,sex,upper", [
    (18, Sex.FEMALE, 32.0),
    (29.5, Sex.MALE, 19.0),
    (39, Sex.MALE, 22.0),
    (45, Sex.FEMALE, 36.0),
    (59, Sex.MALE, 26.0),
    (60, Sex.FEMALE, 40.0),
    (85, Sex.MALE, 28.0),
])
def test_body_fat_upper_bound(age, sex, upper):
    assert body_fat_upper_bound(age, sex) == upper


@pytest.mark.parametrize("age,sex", [(17, Sex.FEMALE), (None, Sex.MALE), (40, None)])
def test_body_fat_upper_bound_not_applicable(age, sex):
    assert body_fat_upper_bound(age, sex) is None


# ==================== CONFIRMATION ====================

def test_ethnicity_gating_between_23_and_25():
    asian = AnthropometricData(bmi=24.0, ethnicity="asian")
    caucasian = AnthropometricData(bmi=24.0, ethnicity="caucasian")
    assert confirm_excess_adiposity(asian) is True
    assert confirm_excess_adiposity(caucasian) is False


def test_height_weight_ethnicity_gating():
    # 5'6", 150 lb -> BMI ~24.2
    assert confirm_excess_adiposity(AnthropometricData(height=66, weight=150, ethnicity="Chinese")) is True
    assert confirm_excess_adiposity(AnthropometricData(height=66, weight=150, ethnicity="Hispanic")) is False


@pytest.mark.parametrize("bmi", [25.0, 27.5, 30.0, 40.0, 40.1, 55.0])
def test_default_thresholds_confirm_from_pre_obesity(bmi):
    assert confirm_excess_adiposity(AnthropometricData(bmi=bmi)) is True


def test_very_high_bmi_dominates_ethnicity():
    for ethnicity in ("asian", "caucasian", None):
        assert confirm_excess_adiposity(AnthropometricData(height=65, weight=200, ethnicity=ethnicity)) is True


def test_asian_band_between_normal_bound_and_pre_obesity_is_not_confirmed():
    # BMI 22.95 sits above the Asian normal upper bound (22.9) but below 23
    anthro = AnthropometricData(
        bmi=22.95, ethnicity="asian", sex=Sex.MALE,
        waist_circumference=40, waist_height_ratio=0.6, waist_hip_ratio=1.0,
    )
    assert confirm_excess_adiposity(anthro) is False


def test_severe_body_fat_overrides_bmi():
    assert confirm_excess_adiposity(AnthropometricData(bmi=20.0, body_fat_percentage=45.1)) is True
    assert confirm_excess_adiposity(AnthropometricData(bmi=20.0, body_fat_percentage=45.0)) is False


def test_severe_body_fat_without_bmi():
    assert confirm_excess_adiposity(AnthropometricData(body_fat_percentage=50)) is True


def test_unresolvable_bmi_is_not_confirmed():
    assert confirm_excess_adiposity(AnthropometricData()) is False
    anthro = AnthropometricData(sex=Sex.MALE, waist_circumference=50, waist_height_ratio=0.7, waist_hip_ratio=1.1)
    assert confirm_excess_adiposity(anthro) is False


# ==================== SECONDARY INDICATORS ====================

def test_two_indicators_confirm_normal_bmi():
    anthro = AnthropometricData(bmi=22.0, sex=Sex.MALE, ethnicity="korean",
                                waist_circumference=36, waist_hip_ratio=0.95)
    assert len(AdiposityAssessor.secondary_indicators(anthro)) == 2
    assert confirm_excess_adiposity(anthro) is True


def test_single_indicator_is_not_enough():
    # Same measurements without the Asian waist threshold: only the ratio counts
    anthro = AnthropometricData(bmi=22.0, sex=Sex.MALE, ethnicity="caucasian",
                                waist_circumference=36, waist_hip_ratio=0.95)
    assert len(AdiposityAssessor.secondary_indicators(anthro)) == 1
    assert confirm_excess_adiposity(anthro) is False


@pytest.mark.parametrize("ethnicity,waist,expected", [
    ("asian", 31.6, 1),
    ("asian", 31.5, 0),
    ("caucasian", 35.1, 1),
    ("caucasian", 35.0, 0),
])
def test_female_waist_thresholds(ethnicity, waist, expected):
    anthro = AnthropometricData(bmi=21.0, sex=Sex.FEMALE, ethnicity=ethnicity, waist_circumference=waist)
    assert len(AdiposityAssessor.secondary_indicators(anthro)) == expected


def test_ratio_boundaries():
    at_threshold = AnthropometricData(bmi=21.0, sex=Sex.MALE, waist_hip_ratio=0.9, waist_height_ratio=0.5)
    # waist-to-hip must exceed the threshold; waist-to-height only needs to reach it
    assert AdiposityAssessor.secondary_indicators(at_threshold) == ["Waist-to-height ratio 0.5 ≥ 0.5"]


@pytest.mark.parametrize("ratio,expected", [(0.85, 0), (0.86, 1)])
def test_female_waist_hip_ratio_boundary(ratio, expected):
    anthro = AnthropometricData(bmi=21.0, sex=Sex.FEMALE, waist_hip_ratio=ratio)
    assert len(AdiposityAssessor.secondary_indicators(anthro)) == expected


@pytest.mark.parametrize("bmi", [23.0, 27.0])
def test_asian_thresholds_confirm_at_exact_boundaries(bmi):
    assert confirm_excess_adiposity(AnthropometricData(bmi=bmi, ethnicity="asian")) is True


def test_sex_specific_indicators_skipped_when_sex_unknown():
    anthro = AnthropometricData(bmi=22.0, waist_circumference=50, waist_hip_ratio=1.2, waist_height_ratio=0.7)
    assert len(AdiposityAssessor.secondary_indicators(anthro)) == 1
    assert confirm_excess_adiposity(anthro) is False


def test_body_fat_band_counts_as_indicator():
    above = AnthropometricData(bmi=22.0, sex=Sex.FEMALE, age=35, body_fat_percentage=35, waist_height_ratio=0.5)
    within = AnthropometricData(bmi=22.0, sex=Sex.FEMALE, age=35, body_fat_percentage=34, waist_height_ratio=0.5)
    assert confirm_excess_adiposity(above) is True
    assert confirm_excess_adiposity(within) is False


def test_body_fat_band_skipped_under_18():
    anthro = AnthropometricData(bmi=22.0, sex=Sex.FEMALE, age=17, body_fat_percentage=44, waist_hip_ratio=0.9)
    assert len(AdiposityAssessor.secondary_indicators(anthro)) == 1
    assert confirm_excess_adiposity(anthro) is False


def test_older_male_body_fat_and_waist():
    anthro = AnthropometricData(bmi=24.0, sex=Sex.MALE, age=65, body_fat_percentage=29, waist_circumference=41)
    assert confirm_excess_adiposity(anthro) is True
