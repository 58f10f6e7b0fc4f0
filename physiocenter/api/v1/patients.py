from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, get_patient_user, ensure_can_view_patient
from ...schemas.common import ApiResponse, json_response
from ...schemas.patient import PatientResponse
from ...models.patient import Patient
from ...models.user import User

router = APIRouter(prefix="/patients", tags=["Patients"])

def _profile_not_found():
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Patient profile not found"
    )

@router.get("/me", response_model=ApiResponse[PatientResponse])
async def get_my_profile(
    current_user: User = Depends(get_patient_user)
):
    if not current_user.patient:
        raise _profile_not_found()
    return json_response("Patient profile", data=PatientResponse.model_validate(current_user.patient))

@router.get("/by-user/{user_id}", response_model=ApiResponse[PatientResponse])
async def get_patient_by_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Resolve a user id to its patient profile."""
    patient = db.query(Patient).filter(Patient.user_id == user_id).first()
    if not patient:
        raise _profile_not_found()

    ensure_can_view_patient(current_user, patient)
    return json_response("Patient profile", data=PatientResponse.model_validate(patient))
