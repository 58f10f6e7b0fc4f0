from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple
import asyncio
import logging

from ..core.config import settings
from ..core.database import SessionLocal
from ..core.security import UserRole, AuthorizationError
from ..models.kine import Kine
from ..models.patient import Patient
from ..models.rendezvous import RendezVous, RendezVousStatus
from ..models.user import User
from ..schemas.rendezvous import RendezVousCreate, RendezVousUpdate, CabinetDay, CabinetHours

logger = logging.getLogger(__name__)

# Opening hours per weekday (0 = Monday), None when closed
CABINET_SCHEDULE: Dict[int, Optional[Tuple[int, int]]] = {
    0: (8, 18),
    1: (8, 18),
    2: (8, 18),
    3: (8, 18),
    4: (8, 18),
    5: (9, 13),
    6: None,
}
DAY_NAMES = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")

CABINET_CLOSED = "Le cabinet est fermé à cet horaire."

def is_cabinet_open(start: datetime, duration: int) -> bool:
    """True when the whole slot ``[start, start + duration)`` falls inside opening hours."""
    hours = CABINET_SCHEDULE.get(start.weekday())
    if hours is None:
        return False

    opening, closing = hours
    day_start = datetime.combine(start.date(), time(hour=opening))
    day_end = datetime.combine(start.date(), time(hour=closing))
    return day_start <= start and start + timedelta(minutes=duration) <= day_end

def get_cabinet_hours() -> CabinetHours:
    open_hours = [hours for hours in CABINET_SCHEDULE.values() if hours]
    return CabinetHours(
        opening_hour=min(opening for opening, _ in open_hours),
        closing_hour=max(closing for _, closing in open_hours),
        open_days=[weekday for weekday, hours in CABINET_SCHEDULE.items() if hours],
        schedule=[
            CabinetDay(
                weekday=weekday,
                name=DAY_NAMES[weekday],
                open=hours is not None,
                start=hours[0] if hours else None,
                end=hours[1] if hours else None,
            )
            for weekday, hours in sorted(CABINET_SCHEDULE.items())
        ],
    )

class RendezVousService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, user: User, data: RendezVousCreate) -> RendezVous:
        """Book an appointment for the calling patient or kiné.

        A patient books with a kiné of their choice, a kiné books for one of
        their patients. Slots are not checked against other bookings.
        """
        if user.role == UserRole.PATIENT:
            if not data.kine_id:
                self._bad_request("kine_id is required when a patient books an appointment")
            patient = user.patient
            kine = self.db.get(Kine, data.kine_id)
        elif user.role == UserRole.KINE:
            if not data.patient_id:
                self._bad_request("patient_id is required when a kiné books an appointment")
            patient = self.db.get(Patient, data.patient_id)
            kine = user.kine
        else:
            raise AuthorizationError("Only patients and kinés can book appointments")

        if not patient or not kine:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient or kiné not found"
            )

        duration = data.duration or settings.RDV_DEFAULT_DURATION_MINUTES
        if not is_cabinet_open(data.date, duration):
            self._bad_request(CABINET_CLOSED)

        rdv = RendezVous(
            patient_id=patient.id,
            kine_id=kine.id,
            date=data.date,
            duration=duration,
            reason=data.reason,
            status=RendezVousStatus.PENDING,
            payment_done=False,
        )
        self.db.add(rdv)
        self.db.commit()
        self.db.refresh(rdv)

        logger.info(f"Booked appointment {rdv.id} for patient {patient.id} with kine {kine.id} at {rdv.date}")
        return rdv

    def get(self, rdv_id: str, user: User) -> RendezVous:
        rdv = self.db.get(RendezVous, rdv_id)
        if not rdv:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )
        self._check_access(rdv, user)
        return rdv

    def update(self, rdv_id: str, user: User, data: RendezVousUpdate) -> RendezVous:
        rdv = self.get(rdv_id, user)

        changes = data.model_dump(exclude_unset=True)
        if "date" in changes or "duration" in changes:
            start = changes.get("date") or rdv.date
            duration = changes.get("duration") or rdv.duration
            if not is_cabinet_open(start, duration):
                self._bad_request(CABINET_CLOSED)

        for field, value in changes.items():
            if value is not None:
                setattr(rdv, field, value)

        self.db.commit()
        self.db.refresh(rdv)
        return rdv

    def delete(self, rdv_id: str, user: User) -> None:
        rdv = self.get(rdv_id, user)
        self.db.delete(rdv)
        self.db.commit()
        logger.info(f"Deleted appointment {rdv_id}")

    def confirm(self, rdv_id: str, user: User) -> RendezVous:
        """Pending → upcoming. Confirmation is what records the payment."""
        rdv = self.get(rdv_id, user)
        if rdv.status != RendezVousStatus.PENDING:
            self._bad_request("Only pending appointments can be confirmed")
        rdv.status = RendezVousStatus.UPCOMING
        rdv.payment_done = True
        return self._save_transition(rdv)

    def complete(self, rdv_id: str, user: User) -> RendezVous:
        rdv = self.get(rdv_id, user)
        if user.role == UserRole.PATIENT:
            raise AuthorizationError("Patients cannot complete appointments")
        if rdv.status != RendezVousStatus.UPCOMING:
            self._bad_request("Only upcoming appointments can be completed")
        rdv.status = RendezVousStatus.COMPLETED
        return self._save_transition(rdv)

    def cancel(self, rdv_id: str, user: User) -> RendezVous:
        rdv = self.get(rdv_id, user)
        if rdv.status in (RendezVousStatus.CANCELLED, RendezVousStatus.COMPLETED):
            self._bad_request("This appointment can no longer be cancelled")
        rdv.status = RendezVousStatus.CANCELLED
        return self._save_transition(rdv)

    def list_for_user(self, user: User) -> List[RendezVous]:
        query = self.db.query(RendezVous)
        if user.role == UserRole.PATIENT:
            query = query.filter(RendezVous.patient_id == (user.patient.id if user.patient else None))
        elif user.role == UserRole.KINE:
            query = query.filter(RendezVous.kine_id == (user.kine.id if user.kine else None))
        return query.order_by(RendezVous.date).all()

    def list_upcoming_for_kine(self, kine_id: str, day: date, user: User) -> List[RendezVous]:
        """Confirmed appointments of a kiné on one calendar day."""
        self._check_kine_access(kine_id, user)
        start = datetime.combine(day, time.min)
        return self.db.query(RendezVous).filter(
            RendezVous.kine_id == kine_id,
            RendezVous.date >= start,
            RendezVous.date < start + timedelta(days=1),
            RendezVous.status == RendezVousStatus.UPCOMING
        ).order_by(RendezVous.date).all()

    def patients_of_kine(self, kine_id: str, user: User, search: Optional[str] = None) -> List[Patient]:
        """Distinct patients who booked at least once with the kiné, optionally filtered by name or email."""
        self._check_kine_access(kine_id, user)
        patients = self.db.query(Patient).join(
            RendezVous, RendezVous.patient_id == Patient.id
        ).filter(RendezVous.kine_id == kine_id).distinct().all()

        if search:
            needle = search.casefold()
            patients = [
                patient for patient in patients
                if needle in f"{patient.user.first_name} {patient.user.last_name} {patient.user.email}".casefold()
            ]
        return sorted(patients, key=lambda patient: (patient.user.last_name, patient.user.first_name))

    def cancel_stale(self, now: Optional[datetime] = None) -> int:
        """Cancel pending appointments left unconfirmed for too long. Returns how many."""
        now = now or datetime.utcnow()
        threshold = now - timedelta(minutes=settings.RDV_PENDING_TIMEOUT_MINUTES)

        count = self.db.query(RendezVous).filter(
            RendezVous.status == RendezVousStatus.PENDING,
            RendezVous.created_at < threshold
        ).update({"status": RendezVousStatus.CANCELLED}, synchronize_session=False)
        self.db.commit()

        if count:
            logger.info(f"Auto-cancelled {count} pending appointment(s)")
        return count

    def _save_transition(self, rdv: RendezVous) -> RendezVous:
        self.db.commit()
        self.db.refresh(rdv)
        logger.info(f"Appointment {rdv.id} is now '{rdv.status.value}'")
        return rdv

    def _check_access(self, rdv: RendezVous, user: User):
        if user.role == UserRole.ADMIN:
            return
        if user.role == UserRole.PATIENT and user.patient and user.patient.id == rdv.patient_id:
            return
        if user.role == UserRole.KINE and user.kine and user.kine.id == rdv.kine_id:
            return
        raise AuthorizationError("Access denied to this appointment")

    def _check_kine_access(self, kine_id: str, user: User):
        if user.role == UserRole.ADMIN:
            return
        if user.role == UserRole.KINE and user.kine and user.kine.id == kine_id:
            return
        raise AuthorizationError("Access denied to this kiné's schedule")

    @staticmethod
    def _bad_request(detail: str):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

async def auto_cancel_loop(interval: Optional[int] = None):
    """Periodically cancel stale pending appointments until the task is cancelled."""
    interval = interval or settings.RDV_AUTO_CANCEL_INTERVAL_SECONDS
    while True:
        await asyncio.sleep(interval)
        db = SessionLocal()
        try:
            RendezVousService(db).cancel_stale()
        except Exception as e:
            logger.error(f"Auto-cancel of pending appointments failed: {str(e)}")
        finally:
            db.close()
