from sqlalchemy import (
    Column, Integer, String, ForeignKey, Date, DateTime, Boolean, Text,
    UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .user import generate_id

class ExerciseDifficulty(str, enum.Enum):
    EASY = "Facile"
    MODERATE = "Modéré"
    HARD = "Difficile"

class ExerciseIcon(str, enum.Enum):
    TARGET = "target"
    REFRESH = "refresh"
    ZAP = "zap"
    CIRCLE = "circle"
    DUMBBELL = "dumbbell"
    ACTIVITY = "activity"

class PerceivedDifficulty(str, enum.Enum):
    """Difficulty as reported by the patient after an exercise."""
    EASY = "Facile"
    MODERATE = "Modéré"
    HARD = "Difficile"
    IMPOSSIBLE = "Impossible"

class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    duration = Column(String(50), nullable=False)  # Display label, e.g. "3 x 10 reps"
    tip = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, default="Mobilité")
    difficulty = Column(SQLEnum(ExerciseDifficulty), nullable=False)
    icon = Column(SQLEnum(ExerciseIcon), nullable=False, default=ExerciseIcon.CIRCLE)
    is_global = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    logs = relationship("ExerciseLog", back_populates="exercise", passive_deletes=True)

    def __repr__(self):
        return f"<Exercise(id={self.id}, title='{self.title}', difficulty='{self.difficulty}')>"

class ExerciseLog(Base):
    """Completion record of one exercise by one patient on one day."""
    __tablename__ = "exercise_logs"
    __table_args__ = (
        UniqueConstraint("patient_id", "exercise_id", "date", name="uq_exercise_log_day"),
    )

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    # Logs outlive the catalog entry they point to
    exercise_id = Column(String(36), ForeignKey("exercises.id", ondelete="SET NULL"), nullable=True, index=True)
    date = Column(Date, nullable=False, index=True)
    completed = Column(Boolean, default=False, nullable=False)

    # Patient feedback
    pain_level = Column(Integer, nullable=True)  # 0-10
    perceived_difficulty = Column(SQLEnum(PerceivedDifficulty), nullable=True)
    sensation = Column(Text, nullable=True)
    modifications = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    exercise = relationship("Exercise", back_populates="logs")
    patient = relationship("Patient")

    def __repr__(self):
        return (
            f"<ExerciseLog(patient_id={self.patient_id}, exercise_id={self.exercise_id}, "
            f"date='{self.date}', completed={self.completed})>"
        )
