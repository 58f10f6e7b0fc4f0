from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.exercise import ExerciseDifficulty, ExerciseIcon, PerceivedDifficulty

class ExerciseCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    category: str = "Mobilité"
    tip: Optional[str] = None
    difficulty: ExerciseDifficulty
    icon: ExerciseIcon = ExerciseIcon.CIRCLE
    is_global: bool = True

class ExerciseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    tip: Optional[str] = None
    difficulty: Optional[ExerciseDifficulty] = None
    icon: Optional[ExerciseIcon] = None
    is_global: Optional[bool] = None

class ExerciseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    duration: str
    category: str
    tip: Optional[str] = None
    difficulty: ExerciseDifficulty
    icon: ExerciseIcon
    is_global: bool

class TodayExercise(BaseModel):
    """An exercise of the patient's active plan with today's completion flag."""
    id: str
    title: str
    description: str
    duration: str
    tip: Optional[str] = None
    difficulty: ExerciseDifficulty
    icon: ExerciseIcon = ExerciseIcon.CIRCLE
    completed: bool = False
    instructions: Optional[str] = None

class ExerciseToggle(BaseModel):
    completed: bool
    douleur: Optional[int] = Field(default=None, ge=0, le=10)
    difficulte: Optional[PerceivedDifficulty] = None
    ressenti: Optional[str] = None
    modifications: Optional[str] = None

    @field_validator("difficulte", mode="before")
    @classmethod
    def blank_difficulte(cls, value):
        # The feedback form sends "" when nothing is selected
        if isinstance(value, str) and not value.strip():
            return None
        return value

class ExerciseLogResponse(BaseModel):
    id: str
    patient_id: str
    exercise_id: Optional[str] = None
    exercise_title: Optional[str] = None
    date: date
    completed: bool
    douleur: Optional[int] = None
    difficulte: Optional[PerceivedDifficulty] = None
    ressenti: Optional[str] = None
    modifications: Optional[str] = None
