from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .user import generate_id

class PlanStatus(str, enum.Enum):
    IN_PROGRESS = "en cours"
    FINISHED = "terminé"
    ARCHIVED = "archivé"

class TreatmentPlan(Base):
    __tablename__ = "treatment_plans"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    kine_id = Column(String(36), ForeignKey("kines.id"), nullable=False, index=True)

    # List of {title, description, progress, status, icon, variant}
    objectives = Column(JSON, nullable=False, default=list)
    session_count = Column(Integer, nullable=False)  # Planned number of appointments
    follow_up = Column(Text, nullable=True)
    status = Column(SQLEnum(PlanStatus), nullable=False, default=PlanStatus.IN_PROGRESS)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="treatment_plans")
    kine = relationship("Kine", back_populates="treatment_plans")
    exercises = relationship(
        "PlanExercise",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PlanExercise.position",
    )

    def __repr__(self):
        return f"<TreatmentPlan(id={self.id}, patient_id={self.patient_id}, status='{self.status}')>"

class PlanExercise(Base):
    __tablename__ = "plan_exercises"

    id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(String(36), ForeignKey("treatment_plans.id"), nullable=False, index=True)
    exercise_id = Column(String(36), ForeignKey("exercises.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    instructions = Column(Text, nullable=True)
    duration_days = Column(Integer, nullable=False, default=7)
    assigned_at = Column(DateTime, server_default=func.now())

    # Relationships
    plan = relationship("TreatmentPlan", back_populates="exercises")
    exercise = relationship("Exercise")
