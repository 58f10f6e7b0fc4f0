from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_current_user, get_staff_user
from ...services.rendezvous_service import RendezVousService, get_cabinet_hours
from ...schemas.common import ApiResponse, json_response
from ...schemas.patient import PatientResponse
from ...schemas.rendezvous import RendezVousCreate, RendezVousUpdate, RendezVousResponse, CabinetHours
from ...models.user import User

router = APIRouter(prefix="/rdvs", tags=["Appointments"])

def _rdv(rdv) -> RendezVousResponse:
    return RendezVousResponse.model_validate(rdv)

@router.get("/cabinet-hours", response_model=ApiResponse[CabinetHours])
async def cabinet_hours():
    return json_response("Cabinet hours", data=get_cabinet_hours())

@router.post("", response_model=ApiResponse[RendezVousResponse], status_code=status.HTTP_201_CREATED)
async def create_rendezvous(
    rdv_data: RendezVousCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Book an appointment. It stays pending until confirmed."""
    rdv = RendezVousService(db).create(current_user, rdv_data)
    return json_response("Appointment created", data=_rdv(rdv))

@router.get("", response_model=ApiResponse[List[RendezVousResponse]])
async def list_kine_day(
    kine_id: str = Query(..., min_length=1),
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    """Upcoming appointments of a kiné on the given day."""
    rdvs = RendezVousService(db).list_upcoming_for_kine(kine_id, day, current_user)
    return json_response("Appointments retrieved", data=[_rdv(rdv) for rdv in rdvs])

@router.get("/me", response_model=ApiResponse[List[RendezVousResponse]])
async def list_my_rendezvous(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    rdvs = RendezVousService(db).list_for_user(current_user)
    return json_response("Appointments retrieved", data=[_rdv(rdv) for rdv in rdvs])

@router.get("/patients/{kine_id}", response_model=ApiResponse[List[PatientResponse]])
async def list_kine_patients(
    kine_id: str,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    """Patients who booked with the kiné, filtered by name or email with ``q``."""
    patients = RendezVousService(db).patients_of_kine(kine_id, current_user, q)
    return json_response(
        "Patients retrieved",
        data=[PatientResponse.model_validate(patient) for patient in patients]
    )

@router.get("/{rdv_id}", response_model=ApiResponse[RendezVousResponse])
async def get_rendezvous(
    rdv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return json_response("Appointment retrieved", data=_rdv(RendezVousService(db).get(rdv_id, current_user)))

@router.put("/{rdv_id}", response_model=ApiResponse[RendezVousResponse])
async def update_rendezvous(
    rdv_id: str,
    rdv_data: RendezVousUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    rdv = RendezVousService(db).update(rdv_id, current_user, rdv_data)
    return json_response("Appointment updated", data=_rdv(rdv))

@router.delete("/{rdv_id}", response_model=ApiResponse)
async def delete_rendezvous(
    rdv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    RendezVousService(db).delete(rdv_id, current_user)
    return json_response("Appointment deleted")

@router.patch("/{rdv_id}/confirm", response_model=ApiResponse[RendezVousResponse])
async def confirm_rendezvous(
    rdv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return json_response("Appointment confirmed", data=_rdv(RendezVousService(db).confirm(rdv_id, current_user)))

@router.patch("/{rdv_id}/complete", response_model=ApiResponse[RendezVousResponse])
async def complete_rendezvous(
    rdv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    return json_response("Appointment completed", data=_rdv(RendezVousService(db).complete(rdv_id, current_user)))

@router.patch("/{rdv_id}/cancel", response_model=ApiResponse[RendezVousResponse])
async def cancel_rendezvous(
    rdv_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return json_response("Appointment cancelled", data=_rdv(RendezVousService(db).cancel(rdv_id, current_user)))
