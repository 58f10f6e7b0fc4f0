from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Literal

from ..models.treatment_plan import PlanStatus

class Objective(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    progress: int = Field(default=0, ge=0, le=100)
    status: Literal["En cours", "Terminé", "À venir"] = "À venir"
    icon: Literal["heart", "trending", "dumbbell", "target"] = "trending"
    variant: Optional[Literal["blue", "green", "orange"]] = None

class PlanExerciseInput(BaseModel):
    exercise_id: str = Field(min_length=1)
    instructions: Optional[str] = None
    duration_days: int = Field(default=7, gt=0)

class TreatmentPlanCreate(BaseModel):
    patient_id: str = Field(min_length=1)
    objectives: List[Objective] = Field(min_length=1)
    session_count: int = Field(gt=0)
    follow_up: Optional[str] = None
    exercises: List[PlanExerciseInput] = []

class TreatmentPlanUpdate(BaseModel):
    objectives: Optional[List[Objective]] = None
    session_count: Optional[int] = Field(default=None, gt=0)
    follow_up: Optional[str] = None
    status: Optional[PlanStatus] = None
    exercises: Optional[List[PlanExerciseInput]] = None

class PlanExerciseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    exercise_id: str
    instructions: Optional[str] = None
    duration_days: int
    assigned_at: Optional[datetime] = None

class TreatmentPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    kine_id: str
    objectives: List[Objective]
    session_count: int
    follow_up: Optional[str] = None
    status: PlanStatus
    exercises: List[PlanExerciseResponse]
    created_at: Optional[datetime] = None
