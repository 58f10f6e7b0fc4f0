from typing import Optional

from pydantic import BaseModel
from typing_extensions import Literal


class Exercise(BaseModel):
    """One of today's exercises as the patient sees it."""

    id: str
    title: str
    description: str
    duration: str
    tip: Optional[str] = None
    difficulty: Literal["Facile", "Modéré", "Difficile"]
    icon: str = "circle"
    completed: bool = False
    instructions: Optional[str] = None
