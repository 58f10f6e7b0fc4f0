from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel
from typing_extensions import Literal

class ActivityItem(BaseModel):
    type: Literal["user_register", "rdv_created"]
    message: str
    date: Optional[datetime] = None

class DashboardStats(BaseModel):
    kine_count: int
    patient_count: int
    exercise_count: int
    rdvs_today: int
    rdvs_week: int
    occupancy_rate: int  # Percent of the weekly capacity
    recent_activity: List[ActivityItem]
