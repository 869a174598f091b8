"""
Request/response models for the remote onboarding endpoints.

One tagged model per endpoint body; responses are validated at the
boundary before the pipeline consumes them.
"""
from typing import Optional, Union
from pydantic import BaseModel, Field


Score = Union[int, float]


# --- check-availability ---

class AvailabilityRequest(BaseModel):
    identifier: str


class AvailabilityResponse(BaseModel):
    available: bool


# --- analyze-assessment ---

class AnalysisUserData(BaseModel):
    """Fitness fields the analysis service weighs alongside readiness."""

    age: int
    experienceLevel: str
    currentActivityLevel: str
    sleepQuality: str
    stressLevel: str
    workoutPreferences: list[str]
    timeCommitment: str


class AnalyzeAssessmentRequest(BaseModel):
    narrative: str
    efficacyBeliefs: str
    motivations: str
    challenges: str
    readinessScore: int
    userData: AnalysisUserData


class AnalysisFactors(BaseModel):
    motivation: Score
    commitment: Score
    fitnessLevel: Score
    lifestyle: Score
    narrativeFactor: Score


class MotivationAnalysis(BaseModel):
    """readinessScore here is on a 0-100 scale."""

    readinessScore: Score = Field(..., ge=0, le=100)
    underlyingMotivations: list[str] = []
    analysisFactors: AnalysisFactors


class Milestones(BaseModel):
    shortTerm: list[str] = []
    midTerm: list[str] = []
    longTerm: list[str] = []
    explanation: str = ""


class SuccessPrediction(BaseModel):
    successProbability: Score
    confidenceScore: Score
    keyFactors: list[str] = []
    recommendations: list[str] = []


class TimelinePrediction(BaseModel):
    estimatedWeeks: Score
    confidenceScore: Score
    keyFactors: list[str] = []
    recommendations: list[str] = []


class AnalysisResult(BaseModel):
    """Behavioral analysis of the combined assessment."""

    motivationAnalysis: MotivationAnalysis
    milestones: Milestones
    successPrediction: SuccessPrediction
    timelinePrediction: TimelinePrediction


# --- generate-workout ---

class GenerateWorkoutRequest(BaseModel):
    fitnessGoal: str
    experienceLevel: str
    age: int
    gender: str
    currentActivityLevel: str
    workoutPreferences: list[str]
    obstacles: list[str]
    timeCommitment: str


class WorkoutPlan(BaseModel):
    """Generated workout plan."""

    message: str
    biology: Optional[str] = None
    psychology: Optional[str] = None
    suggestions: list[str] = []
