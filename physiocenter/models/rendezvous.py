from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import timedelta
import enum

from ..core.database import Base
from .user import generate_id

class RendezVousStatus(str, enum.Enum):
    PENDING = "en attente"
    UPCOMING = "à venir"
    CANCELLED = "annulé"
    COMPLETED = "terminé"

class RendezVous(Base):
    __tablename__ = "rendezvous"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)

    # Relationships
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    kine_id = Column(String(36), ForeignKey("kines.id"), nullable=False, index=True)

    # Appointment details
    date = Column(DateTime, nullable=False, index=True)  # Clinic wall-clock time
    duration = Column(Integer, nullable=False, default=30)  # Minutes
    reason = Column(Text, nullable=True)
    status = Column(SQLEnum(RendezVousStatus), nullable=False, default=RendezVousStatus.PENDING, index=True)
    payment_done = Column(Boolean, nullable=False, default=False)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient")
    kine = relationship("Kine")

    @property
    def end_time(self):
        return self.date + timedelta(minutes=self.duration or 0)

    def __repr__(self):
        return (
            f"<RendezVous(id={self.id}, patient_id={self.patient_id}, "
            f"kine_id={self.kine_id}, date='{self.date}', status='{self.status}')>"
        )
