from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

DataT = TypeVar("DataT")

class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope shared by every clinic endpoint."""
    message: str
    success: bool = True
    data: Optional[DataT] = None

def json_response(message: str, success: bool = True, data: Any = None) -> dict:
    return {"message": message, "success": success, "data": data}
