from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List
import logging

from ..core.security import UserRole, AuthorizationError
from ..models.exercise import Exercise
from ..models.kine import Kine
from ..models.patient import Patient, PatientStatus
from ..models.treatment_plan import TreatmentPlan, PlanExercise, PlanStatus
from ..models.user import User
from ..schemas.treatment_plan import TreatmentPlanCreate, TreatmentPlanUpdate, PlanExerciseInput

logger = logging.getLogger(__name__)

class TreatmentPlanService:
    def __init__(self, db: Session):
        self.db = db

    def create_plan(self, kine_user: User, data: TreatmentPlanCreate) -> TreatmentPlan:
        kine = self._kine_for_user(kine_user)
        patient = self._get_patient(data.patient_id)

        if patient.kine_id and patient.kine_id != kine.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Patient is followed by another kiné"
            )

        plan = TreatmentPlan(
            patient_id=patient.id,
            kine_id=kine.id,
            objectives=[objective.model_dump() for objective in data.objectives],
            session_count=data.session_count,
            follow_up=data.follow_up,
            status=PlanStatus.IN_PROGRESS,
        )
        plan.exercises = self._build_exercises(data.exercises)

        patient.kine_id = kine.id
        patient.status = PatientStatus.ACTIVE

        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)

        logger.info(f"Kine {kine.id} created plan {plan.id} for patient {patient.id}")
        return plan

    def get_plan(self, plan_id: str, user: User) -> TreatmentPlan:
        plan = self.db.query(TreatmentPlan).filter(TreatmentPlan.id == plan_id).first()
        if not plan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Treatment plan not found"
            )
        self._check_access(plan.patient_id, plan.kine_id, user)
        return plan

    def get_plans_for_patient(self, patient_id: str, user: User) -> List[TreatmentPlan]:
        patient = self._get_patient(patient_id)
        self._check_access(patient.id, patient.kine_id, user)
        return self.db.query(TreatmentPlan).filter(
            TreatmentPlan.patient_id == patient.id
        ).order_by(TreatmentPlan.created_at.desc()).all()

    def update_plan(self, plan_id: str, user: User, data: TreatmentPlanUpdate) -> TreatmentPlan:
        plan = self.get_plan(plan_id, user)
        if user.role == UserRole.PATIENT:
            raise AuthorizationError("Patients cannot modify treatment plans")

        changes = data.model_dump(exclude_unset=True, exclude={"exercises", "objectives"})
        for field, value in changes.items():
            setattr(plan, field, value)
        if data.objectives is not None:
            plan.objectives = [objective.model_dump() for objective in data.objectives]
        if data.exercises is not None:
            plan.exercises = self._build_exercises(data.exercises)

        if data.status == PlanStatus.FINISHED:
            # A finished plan releases the patient from the kiné's caseload
            patient = self._get_patient(plan.patient_id)
            patient.kine_id = None
            patient.status = PatientStatus.FINISHED
            logger.info(f"Plan {plan.id} finished, patient {patient.id} unlinked from kine {plan.kine_id}")

        self.db.commit()
        self.db.refresh(plan)
        return plan

    def _build_exercises(self, items: List[PlanExerciseInput]) -> List[PlanExercise]:
        ids = {item.exercise_id for item in items}
        found = {
            exercise_id for (exercise_id,) in
            self.db.query(Exercise.id).filter(Exercise.id.in_(ids)).all()
        } if ids else set()
        missing = ids - found
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown exercises: {', '.join(sorted(missing))}"
            )

        return [
            PlanExercise(
                exercise_id=item.exercise_id,
                position=position,
                instructions=item.instructions,
                duration_days=item.duration_days,
            )
            for position, item in enumerate(items)
        ]

    def _check_access(self, patient_id: str, kine_id: str, user: User):
        if user.role == UserRole.ADMIN:
            return
        if user.role == UserRole.PATIENT and user.patient and user.patient.id == patient_id:
            return
        if user.role == UserRole.KINE and user.kine and user.kine.id == kine_id:
            return
        raise AuthorizationError("Access denied to this treatment plan")

    def _kine_for_user(self, user: User) -> Kine:
        if not user.kine:
            raise AuthorizationError("Only kinés can create treatment plans")
        return user.kine

    def _get_patient(self, patient_id: str) -> Patient:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found"
            )
        return patient
