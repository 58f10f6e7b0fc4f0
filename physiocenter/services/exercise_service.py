from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from datetime import date
from typing import Dict, List, Optional
import logging

from ..models.exercise import Exercise, ExerciseLog
from ..models.patient import Patient
from ..models.treatment_plan import TreatmentPlan, PlanExercise, PlanStatus
from ..models.user import User
from ..schemas.exercise import (
    ExerciseCreate, ExerciseUpdate, TodayExercise, ExerciseToggle, ExerciseLogResponse
)

logger = logging.getLogger(__name__)

class ExerciseService:
    def __init__(self, db: Session):
        self.db = db

    # Catalog

    def list_exercises(self) -> List[Exercise]:
        return self.db.query(Exercise).order_by(Exercise.created_at.desc()).all()

    def get_exercise(self, exercise_id: str) -> Exercise:
        exercise = self.db.query(Exercise).filter(Exercise.id == exercise_id).first()
        if not exercise:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Exercise not found"
            )
        return exercise

    def create_exercise(self, data: ExerciseCreate) -> Exercise:
        exercise = Exercise(**data.model_dump())
        self.db.add(exercise)
        self.db.commit()
        self.db.refresh(exercise)
        logger.info(f"Created exercise {exercise.id} ({exercise.title})")
        return exercise

    def update_exercise(self, exercise_id: str, data: ExerciseUpdate) -> Exercise:
        exercise = self.get_exercise(exercise_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(exercise, field, value)
        self.db.commit()
        self.db.refresh(exercise)
        return exercise

    def delete_exercise(self, exercise_id: str) -> None:
        exercise = self.get_exercise(exercise_id)
        self.db.query(PlanExercise).filter(
            PlanExercise.exercise_id == exercise_id
        ).delete(synchronize_session=False)
        self.db.query(ExerciseLog).filter(
            ExerciseLog.exercise_id == exercise_id
        ).update({"exercise_id": None}, synchronize_session=False)
        self.db.delete(exercise)
        self.db.commit()
        logger.info(f"Deleted exercise {exercise_id}")

    # Patient side

    def get_patient_for_user(self, user: User) -> Patient:
        patient = self.db.query(Patient).filter(Patient.user_id == user.id).first()
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient profile not found"
            )
        return patient

    def get_active_plan(self, patient_id: str) -> Optional[TreatmentPlan]:
        return self.db.query(TreatmentPlan).filter(
            TreatmentPlan.patient_id == patient_id,
            TreatmentPlan.status == PlanStatus.IN_PROGRESS
        ).order_by(TreatmentPlan.created_at.desc()).first()

    def get_today_exercises(self, patient_id: str, day: Optional[date] = None) -> List[TodayExercise]:
        """Exercises of the active plan merged with the day's completion logs."""
        day = day or date.today()
        plan = self.get_active_plan(patient_id)
        if not plan or not plan.exercises:
            return []

        logs = self._logs_by_exercise(patient_id, day)
        today = []
        for item in plan.exercises:
            # Plan items can outlive a deleted catalog exercise
            if item.exercise is None:
                continue
            today.append(self._to_today(item.exercise, logs.get(item.exercise_id), item.instructions))
        return today

    def toggle_completion(
        self,
        patient_id: str,
        exercise_id: str,
        toggle: ExerciseToggle,
        day: Optional[date] = None,
    ) -> TodayExercise:
        """Set the day's completion flag of an exercise and record the feedback.

        ``completed`` is the target value, so repeating a request is harmless.
        """
        day = day or date.today()
        exercise = self.get_exercise(exercise_id)

        try:
            log = self._apply_toggle(patient_id, exercise_id, day, toggle)
        except IntegrityError:
            # A concurrent request created the day's log first
            self.db.rollback()
            log = self._apply_toggle(patient_id, exercise_id, day, toggle)

        logger.info(
            f"Patient {patient_id} set exercise {exercise_id} "
            f"completed={log.completed} for {day.isoformat()}"
        )

        instructions = None
        plan = self.get_active_plan(patient_id)
        if plan:
            instructions = next(
                (item.instructions for item in plan.exercises if item.exercise_id == exercise_id),
                None,
            )
        return self._to_today(exercise, log, instructions)

    def get_patient(self, patient_id: str) -> Patient:
        patient = self.db.get(Patient, patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found"
            )
        return patient

    def get_patient_logs(self, patient_id: str) -> List[ExerciseLogResponse]:
        self.get_patient(patient_id)

        logs = self.db.query(ExerciseLog).filter(
            ExerciseLog.patient_id == patient_id
        ).order_by(ExerciseLog.date.desc(), ExerciseLog.updated_at.desc()).all()

        return [
            ExerciseLogResponse(
                id=log.id,
                patient_id=log.patient_id,
                exercise_id=log.exercise_id,
                exercise_title=log.exercise.title if log.exercise else None,
                date=log.date,
                completed=log.completed,
                douleur=log.pain_level,
                difficulte=log.perceived_difficulty,
                ressenti=log.sensation,
                modifications=log.modifications,
            )
            for log in logs
        ]

    def _apply_toggle(self, patient_id: str, exercise_id: str, day: date, toggle: ExerciseToggle) -> ExerciseLog:
        log = self.db.query(ExerciseLog).filter(
            ExerciseLog.patient_id == patient_id,
            ExerciseLog.exercise_id == exercise_id,
            ExerciseLog.date == day
        ).first()

        if not log:
            log = ExerciseLog(patient_id=patient_id, exercise_id=exercise_id, date=day)
            self.db.add(log)

        log.completed = toggle.completed

        # Blank feedback fields keep whatever was recorded before
        if toggle.douleur is not None:
            log.pain_level = toggle.douleur
        if toggle.difficulte:
            log.perceived_difficulty = toggle.difficulte
        if toggle.ressenti:
            log.sensation = toggle.ressenti
        if toggle.modifications:
            log.modifications = toggle.modifications

        self.db.commit()
        self.db.refresh(log)
        return log

    def _logs_by_exercise(self, patient_id: str, day: date) -> Dict[str, ExerciseLog]:
        logs = self.db.query(ExerciseLog).filter(
            ExerciseLog.patient_id == patient_id,
            ExerciseLog.date == day
        ).all()
        return {log.exercise_id: log for log in logs}

    @staticmethod
    def _to_today(exercise: Exercise, log: Optional[ExerciseLog], instructions: Optional[str]) -> TodayExercise:
        return TodayExercise(
            id=exercise.id,
            title=exercise.title,
            description=exercise.description,
            duration=exercise.duration,
            tip=exercise.tip,
            difficulty=exercise.difficulty,
            icon=exercise.icon,
            completed=bool(log and log.completed),
            instructions=instructions,
        )
