from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..core.security import UserRole, AuthorizationError
from ..models.kine import Kine
from ..models.patient import Patient
from ..models.rendezvous import RendezVous
from ..models.resource import EducationalResource
from ..models.treatment_plan import TreatmentPlan
from ..models.user import User, RefreshToken
from ..schemas.kine import KineUpdate

logger = logging.getLogger(__name__)

class KineService:
    def __init__(self, db: Session):
        self.db = db

    def list_kines(self, search: Optional[str] = None) -> List[Kine]:
        kines = self.db.query(Kine).join(User).order_by(User.last_name, User.first_name).all()
        if search:
            needle = search.casefold()
            kines = [
                kine for kine in kines
                if needle in kine.user.last_name.casefold() or needle in kine.user.first_name.casefold()
            ]
        return kines

    def get(self, kine_id: str, user: User) -> Kine:
        kine = self.db.get(Kine, kine_id)
        if not kine:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Kiné not found"
            )
        self._check_owner(kine, user)
        return kine

    def get_by_user(self, user_id: str, user: User) -> Kine:
        kine = self.db.query(Kine).filter(Kine.user_id == user_id).first()
        if not kine:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Kiné not found"
            )
        self._check_owner(kine, user)
        return kine

    def update(self, kine_id: str, user: User, data: KineUpdate) -> Kine:
        kine = self.get(kine_id, user)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(kine, field, value)
        self.db.commit()
        self.db.refresh(kine)
        return kine

    def delete(self, kine_id: str, user: User) -> None:
        """Delete a kiné together with their user account.

        Followed patients are released. A kiné with treatment plans,
        appointments or published resources on record cannot be deleted,
        deactivate them instead.
        """
        kine = self.get(kine_id, user)

        has_history = (
            self.db.query(TreatmentPlan.id).filter(TreatmentPlan.kine_id == kine.id).first()
            or self.db.query(RendezVous.id).filter(RendezVous.kine_id == kine.id).first()
            or self.db.query(EducationalResource.id).filter(EducationalResource.author_id == kine.user_id).first()
        )
        if has_history:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Kiné has clinical or library history, deactivate the account instead"
            )

        self.db.query(Patient).filter(Patient.kine_id == kine.id).update(
            {"kine_id": None}, synchronize_session=False
        )
        account = kine.user
        account_id = account.id
        self.db.query(RefreshToken).filter(RefreshToken.user_id == account_id).delete(synchronize_session=False)
        self.db.delete(kine)
        self.db.delete(account)
        self.db.commit()
        logger.info(f"Deleted kine {kine_id} and user {account_id}")

    def _check_owner(self, kine: Kine, user: User):
        if user.role == UserRole.ADMIN or kine.user_id == user.id:
            return
        raise AuthorizationError("Access denied to this kiné")
