"""
Profile synthesis - combined assessment input to account record.

Pure functions only: the same inputs always produce a byte-identical
record. Nothing here performs I/O or reads the clock.
"""
import json
import re

from pydantic import ValidationError

from onboarding_service.core.config import settings
from onboarding_service.core.errors import TransformationInvariantViolation
from onboarding_service.models.account import CanonicalAccountRecord, Credentials
from onboarding_service.models.assessment import FitnessInput, PsychologicalInput
from onboarding_service.models.remote import AnalysisResult


STRESS_LEVEL_CODES = {"low": 1, "moderate": 2, "high": 3}
SLEEP_QUALITY_CODES = {"poor": 1, "fair": 2, "good": 3, "excellent": 4}

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def _encode(value) -> str:
    """Compact JSON, matching what the registration store decodes."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def encode_list_field(items: list[str]) -> str:
    """
    Encode a list of strings into a single record field.

    Args:
        items: Ordered values, e.g. workout preferences

    Returns:
        JSON array string that decode_list_field reverses exactly
    """
    return _encode(list(items))


def decode_list_field(value: str | None) -> list[str]:
    """
    Decode a list field stored by encode_list_field.

    Empty or missing values decode to an empty list.

    Raises:
        ValueError: If the stored value is not a JSON array of strings
    """
    if not value:
        return []
    decoded = json.loads(value)
    if not isinstance(decoded, list) or not all(isinstance(item, str) for item in decoded):
        raise ValueError(f"Not an encoded string list: {value!r}")
    return decoded


def parse_time_commitment(token: str) -> int:
    """
    Numeric prefix of a time-commitment bucket token.

    "3-4_hours" -> 3, "7+_hours" -> 7, anything without leading digits -> 0.
    """
    match = _LEADING_DIGITS.match(token or "")
    return int(match.group(1)) if match else 0


def map_stress_level(token: str) -> int:
    """low/moderate/high -> 1/2/3; anything else -> 0."""
    return STRESS_LEVEL_CODES.get(token, 0)


def map_sleep_quality(token: str) -> int:
    """poor/fair/good/excellent -> 1..4; anything else -> 0."""
    return SLEEP_QUALITY_CODES.get(token, 0)


def format_weight(weight) -> str:
    """String form of a collected weight, e.g. 180.0 -> "180"."""
    if isinstance(weight, float) and weight.is_integer():
        return str(int(weight))
    return str(weight)


def join_barriers(barriers: list[str]) -> str:
    # Lossy on purpose: the record stores a display string, not a list
    return ", ".join(barriers)


def build_account_record(
    credentials: Credentials,
    fitness: FitnessInput,
    psychological: PsychologicalInput,
    analysis: AnalysisResult,
) -> CanonicalAccountRecord:
    """
    Build the canonical account record from everything collected.

    Args:
        credentials: Registration identifier and password
        fitness: Validated fitness assessment
        psychological: Validated psychological assessment
        analysis: Analysis service result

    Returns:
        Frozen CanonicalAccountRecord

    Raises:
        TransformationInvariantViolation: If the derived fields fail the
            record schema (only possible if upstream validation was bypassed)
    """
    basic = fitness.basicInfo
    profile = fitness.fitnessProfile
    lifestyle = fitness.lifestyle
    readiness = psychological.readinessAssessment

    try:
        return CanonicalAccountRecord(
            username=credentials.username,
            password=credentials.password,
            age=int(basic.age),
            gender=basic.gender,
            heightFeet=int(basic.heightFeet),
            heightInches=int(basic.heightInches),
            weight=format_weight(basic.weight),
            fitnessGoal=profile.fitnessGoal,
            experienceLevel=profile.experienceLevel,
            currentActivityLevel=profile.currentActivityLevel,
            workoutPreferences=encode_list_field(profile.workoutPreferences),
            motivationFactors=encode_list_field(analysis.motivationAnalysis.underlyingMotivations),
            pastAttempts=settings.DEFAULT_PAST_ATTEMPTS,
            confidenceLevel=analysis.motivationAnalysis.readinessScore,
            timeCommitment=parse_time_commitment(lifestyle.timeCommitment),
            obstacles=join_barriers(readiness.barriers),
            stressLevel=map_stress_level(lifestyle.stressLevel),
            sleepQuality=map_sleep_quality(lifestyle.sleepQuality),
            dietaryPreferences=settings.DEFAULT_DIETARY_PREFERENCES,
            supplementPreferences=settings.DEFAULT_SUPPLEMENT_PREFERENCES,
            occupationType=lifestyle.occupationType,
            workSchedule=lifestyle.workSchedule,
            emotionalDrivers=_encode(psychological.emotionalDrivers.model_dump()),
            personalVision=_encode(psychological.personalVision.model_dump()),
            readinessAssessment=_encode({
                "narrative": readiness.narrative,
                "efficacyBeliefs": readiness.efficacyBeliefs,
                "motivations": readiness.motivations,
                "challenges": readiness.challenges,
                "readinessScore": readiness.readinessScore,
                "barriers": list(readiness.barriers),
            }),
            injuries=settings.DEFAULT_INJURIES,
            medicalConditions=settings.DEFAULT_MEDICAL_CONDITIONS,
            additionalNotes=settings.DEFAULT_ADDITIONAL_NOTES,
        )
    except (ValidationError, TypeError, ValueError) as e:
        raise TransformationInvariantViolation(f"Could not build account record: {e}") from e
