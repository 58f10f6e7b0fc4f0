from sqlalchemy import Column, String, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .user import generate_id

class PatientStatus(str, enum.Enum):
    ACTIVE = "actif"
    PAUSED = "en_pause"
    FINISHED = "termine"

class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    kine_id = Column(String(36), ForeignKey("kines.id"), nullable=True, index=True)

    # Personal information
    gender = Column(String(1), nullable=True)  # "H" | "F"
    date_of_birth = Column(DateTime, nullable=True)
    address = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)

    # Medical information
    blood_type = Column(String(3), nullable=True)
    pathology = Column(String(255), default="Non spécifié")
    status = Column(SQLEnum(PatientStatus), default=PatientStatus.ACTIVE)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="patient")
    kine = relationship("Kine", back_populates="patients")
    treatment_plans = relationship("TreatmentPlan", back_populates="patient")

    def __repr__(self):
        return f"<Patient(id={self.id}, user_id={self.user_id}, status='{self.status}')>"
