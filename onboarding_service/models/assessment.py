"""
Pydantic models for the two collected assessment rounds.

Both rounds are validated in full before the pipeline moves on; any
missing field or out-of-range score rejects the whole submission.
"""
from typing import Literal, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


SleepQuality = Literal["poor", "fair", "good", "excellent"]
StressLevel = Literal["low", "moderate", "high"]


# --- Fitness Assessment ---

class BasicInfo(BaseModel):
    """Basic body attributes."""

    age: int = Field(..., ge=13, le=120)
    gender: str = Field(..., min_length=1)
    heightFeet: int = Field(..., ge=4, le=8)
    heightInches: int = Field(..., ge=0, le=11)
    weight: Union[str, int, float] = Field(..., description="Free-text weight, e.g. '180' or '82kg'")

    @field_validator("weight")
    @classmethod
    def weight_not_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("Weight is required")
        return value


class FitnessProfile(BaseModel):
    """Goal, experience and training preferences."""

    fitnessGoal: str = Field(..., min_length=1, examples=["weight_loss", "muscle_gain", "endurance"])
    experienceLevel: str = Field(..., min_length=1, examples=["beginner", "intermediate", "advanced"])
    currentActivityLevel: str = Field(..., min_length=1, examples=["sedentary", "moderately_active"])
    workoutPreferences: list[str] = Field(..., min_length=1, description="At least one workout preference")


class Lifestyle(BaseModel):
    """Schedule, recovery and stress context."""

    timeCommitment: str = Field(..., min_length=1, description="Bucket token, e.g. '3-4_hours'")
    occupationType: str = Field(..., min_length=1)
    workSchedule: str = Field(..., min_length=1)
    sleepQuality: SleepQuality
    stressLevel: StressLevel


class FitnessInput(BaseModel):
    """First assessment round."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "basicInfo": {
                    "age": 30,
                    "gender": "male",
                    "heightFeet": 5,
                    "heightInches": 10,
                    "weight": "180"
                },
                "fitnessProfile": {
                    "fitnessGoal": "muscle_gain",
                    "experienceLevel": "intermediate",
                    "currentActivityLevel": "moderately_active",
                    "workoutPreferences": ["Strength Training"]
                },
                "lifestyle": {
                    "timeCommitment": "3-4_hours",
                    "occupationType": "sedentary",
                    "workSchedule": "regular",
                    "sleepQuality": "good",
                    "stressLevel": "moderate"
                }
            }
        }
    )

    basicInfo: BasicInfo
    fitnessProfile: FitnessProfile
    lifestyle: Lifestyle


# --- Psychological Assessment ---

class EmotionalDrivers(BaseModel):
    """How the user feels now and wants to feel."""

    current: list[str] = Field(..., min_length=1)
    desired: list[str] = Field(..., min_length=1)
    impact: int = Field(..., ge=1, le=10)


class PersonalVision(BaseModel):
    """One-year goal and how satisfying reaching it would be."""

    oneYearGoal: str = Field(..., min_length=1)
    visionSatisfaction: int = Field(..., ge=1, le=10)


class ReadinessAssessment(BaseModel):
    """Self-reported readiness to start. readinessScore is on a 1-10 scale."""

    model_config = ConfigDict(populate_by_name=True)

    narrative: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("narrative", "psychologicalNarrative"),
    )
    efficacyBeliefs: str = Field(..., min_length=1)
    motivations: str = Field(..., min_length=1)
    challenges: str = Field(..., min_length=1)
    readinessScore: int = Field(..., ge=1, le=10)
    barriers: list[str] = Field(default=[])
    supportSystem: list[str] = Field(default=[])


class PsychologicalInput(BaseModel):
    """Second assessment round."""

    emotionalDrivers: EmotionalDrivers
    personalVision: PersonalVision
    readinessAssessment: ReadinessAssessment
