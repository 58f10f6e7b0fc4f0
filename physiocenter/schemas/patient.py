from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from ..models.patient import PatientStatus
from .auth import UserResponse

class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    kine_id: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    blood_type: Optional[str] = None
    pathology: Optional[str] = None
    status: PatientStatus
    user: UserResponse
