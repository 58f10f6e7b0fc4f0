from datetime import datetime
from typing import List, Optional
from typing_extensions import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from ..models.rendezvous import RendezVousStatus

def _wall_clock(value: datetime) -> datetime:
    # Appointments are stored in clinic local time
    if value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value

WallClock = Annotated[datetime, AfterValidator(_wall_clock)]

class RendezVousCreate(BaseModel):
    """Booking request. The caller's own side (patient or kiné) is filled in by the server."""
    patient_id: Optional[str] = None
    kine_id: Optional[str] = None
    date: WallClock
    duration: Optional[int] = Field(default=None, gt=0)
    reason: Optional[str] = None

class RendezVousUpdate(BaseModel):
    date: Optional[WallClock] = None
    duration: Optional[int] = Field(default=None, gt=0)
    reason: Optional[str] = None
    status: Optional[RendezVousStatus] = None
    payment_done: Optional[bool] = None

class RendezVousResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    kine_id: str
    date: datetime
    end_time: datetime
    duration: int
    reason: Optional[str] = None
    status: RendezVousStatus
    payment_done: bool
    created_at: Optional[datetime] = None

class CabinetDay(BaseModel):
    weekday: int  # 0 = Monday
    name: str
    open: bool
    start: Optional[int] = None
    end: Optional[int] = None

class CabinetHours(BaseModel):
    opening_hour: int
    closing_hour: int
    open_days: List[int]
    schedule: List[CabinetDay]
