from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_user, get_staff_user, get_patient_user, ensure_can_view_patient
from ...services.exercise_service import ExerciseService
from ...schemas.common import ApiResponse, json_response
from ...schemas.exercise import (
    ExerciseCreate, ExerciseUpdate, ExerciseResponse, TodayExercise,
    ExerciseToggle, ExerciseLogResponse
)
from ...models.user import User

router = APIRouter(prefix="/exercises", tags=["Exercises"])

# Catalog routes
@router.get("", response_model=ApiResponse[List[ExerciseResponse]])
async def list_exercises(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """List the exercise catalog, newest first."""
    exercises = ExerciseService(db).list_exercises()
    return json_response(
        "Exercise list retrieved",
        data=[ExerciseResponse.model_validate(exercise) for exercise in exercises]
    )

@router.post("", response_model=ApiResponse[ExerciseResponse], status_code=status.HTTP_201_CREATED)
async def create_exercise(
    exercise_data: ExerciseCreate,
    db: Session = Depends(get_db),
    _: User = Depends(get_staff_user)
):
    exercise = ExerciseService(db).create_exercise(exercise_data)
    return json_response("Exercise created", data=ExerciseResponse.model_validate(exercise))

@router.put("/{exercise_id}", response_model=ApiResponse[ExerciseResponse])
async def update_exercise(
    exercise_id: str,
    exercise_data: ExerciseUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(get_staff_user)
):
    exercise = ExerciseService(db).update_exercise(exercise_id, exercise_data)
    return json_response("Exercise updated", data=ExerciseResponse.model_validate(exercise))

@router.delete("/{exercise_id}", response_model=ApiResponse)
async def delete_exercise(
    exercise_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_staff_user)
):
    ExerciseService(db).delete_exercise(exercise_id)
    return json_response("Exercise deleted")

# Patient routes
@router.get("/patient/today", response_model=ApiResponse[List[TodayExercise]])
async def get_today_exercises(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_patient_user)
):
    """Exercises of the patient's active plan with today's completion flags."""
    service = ExerciseService(db)
    patient = service.get_patient_for_user(current_user)
    return json_response("Today's exercises retrieved", data=service.get_today_exercises(patient.id))

@router.post("/{exercise_id}/toggle", response_model=ApiResponse[TodayExercise])
async def toggle_exercise(
    exercise_id: str,
    toggle: ExerciseToggle,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_patient_user)
):
    """Set today's completion flag of an exercise, with optional feedback."""
    service = ExerciseService(db)
    patient = service.get_patient_for_user(current_user)
    exercise = service.toggle_completion(patient.id, exercise_id, toggle)
    return json_response("Status updated", data=exercise)

# Kiné routes
@router.get("/patient/{patient_id}/logs", response_model=ApiResponse[List[ExerciseLogResponse]])
async def get_patient_logs(
    patient_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    """Exercise completion history of a patient followed by the kiné."""
    service = ExerciseService(db)
    ensure_can_view_patient(current_user, service.get_patient(patient_id))
    return json_response("Exercise history retrieved", data=service.get_patient_logs(patient_id))
