from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_user, get_staff_user
from ...services.treatment_plan_service import TreatmentPlanService
from ...schemas.common import ApiResponse, json_response
from ...schemas.treatment_plan import TreatmentPlanCreate, TreatmentPlanUpdate, TreatmentPlanResponse
from ...models.user import User

router = APIRouter(prefix="/plans", tags=["Treatment plans"])

@router.post("", response_model=ApiResponse[TreatmentPlanResponse], status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: TreatmentPlanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    """Create a treatment plan for a patient and assign its exercises."""
    plan = TreatmentPlanService(db).create_plan(current_user, plan_data)
    return json_response("Treatment plan created", data=TreatmentPlanResponse.model_validate(plan))

@router.get("/patient/{patient_id}", response_model=ApiResponse[List[TreatmentPlanResponse]])
async def get_patient_plans(
    patient_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    plans = TreatmentPlanService(db).get_plans_for_patient(patient_id, current_user)
    return json_response(
        "Treatment plans retrieved",
        data=[TreatmentPlanResponse.model_validate(plan) for plan in plans]
    )

@router.get("/{plan_id}", response_model=ApiResponse[TreatmentPlanResponse])
async def get_plan(
    plan_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    plan = TreatmentPlanService(db).get_plan(plan_id, current_user)
    return json_response("Treatment plan retrieved", data=TreatmentPlanResponse.model_validate(plan))

@router.patch("/{plan_id}", response_model=ApiResponse[TreatmentPlanResponse])
async def update_plan(
    plan_id: str,
    plan_data: TreatmentPlanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    """Update a plan. Finishing it releases the patient from the kiné."""
    plan = TreatmentPlanService(db).update_plan(plan_id, current_user, plan_data)
    return json_response("Treatment plan updated", data=TreatmentPlanResponse.model_validate(plan))
