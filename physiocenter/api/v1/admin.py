from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_admin_user
from ...services.admin_service import AdminService
from ...schemas.admin import DashboardStats
from ...schemas.common import ApiResponse, json_response
from ...models.user import User

router = APIRouter(prefix="/admin", tags=["Administration"])

@router.get("/stats", response_model=ApiResponse[DashboardStats])
async def dashboard_stats(
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    """Counters, weekly occupancy and recent activity of the clinic."""
    return json_response("Dashboard statistics", data=AdminService(db).dashboard_stats())
