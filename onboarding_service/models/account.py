"""
Pydantic models for registration credentials and the account record.
"""
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """Identifier and password captured before the assessments start."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class CanonicalAccountRecord(BaseModel):
    """
    Persistence-ready account record submitted to /register.

    Built once per run by the profile transformer and never mutated.
    List-valued inputs are stored as JSON-encoded strings; stress and
    sleep are stored as integer codes.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    password: str
    age: int
    gender: str
    heightFeet: int
    heightInches: int
    weight: str
    fitnessGoal: str
    experienceLevel: str
    currentActivityLevel: str
    workoutPreferences: str
    motivationFactors: str
    pastAttempts: int
    confidenceLevel: Union[int, float]
    timeCommitment: int
    obstacles: str
    stressLevel: int
    sleepQuality: int
    dietaryPreferences: str
    supplementPreferences: str
    occupationType: str
    workSchedule: str
    emotionalDrivers: str
    personalVision: str
    readinessAssessment: str
    injuries: Optional[str] = None
    medicalConditions: Optional[str] = None
    additionalNotes: Optional[str] = None


class RegisteredAccount(BaseModel):
    """Stored account as echoed back by /register."""

    model_config = ConfigDict(extra="allow")

    id: Optional[Union[int, str]] = None
    username: str
