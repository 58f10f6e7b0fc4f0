from sqlalchemy import Column, String, ForeignKey, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from .user import generate_id

class Kine(Base):
    __tablename__ = "kines"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)

    # Professional information
    specialty = Column(String(100), nullable=False)
    rpps_number = Column(String(20), nullable=False)
    presentation = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="kine")
    patients = relationship("Patient", back_populates="kine")
    treatment_plans = relationship("TreatmentPlan", back_populates="kine")

    def __repr__(self):
        return f"<Kine(id={self.id}, specialty='{self.specialty}')>"
