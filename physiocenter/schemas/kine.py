from typing import Optional
from pydantic import BaseModel, Field

class KineUpdate(BaseModel):
    specialty: Optional[str] = Field(default=None, min_length=2)
    rpps_number: Optional[str] = Field(default=None, min_length=5)
    presentation: Optional[str] = None
