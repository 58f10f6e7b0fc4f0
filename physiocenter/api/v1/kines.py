from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_admin_user, get_staff_user
from ...services.kine_service import KineService
from ...schemas.auth import KineResponse
from ...schemas.common import ApiResponse, json_response
from ...schemas.kine import KineUpdate
from ...models.user import User

router = APIRouter(prefix="/kines", tags=["Kinés"])

@router.get("", response_model=ApiResponse[List[KineResponse]])
async def list_kines(
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    kines = KineService(db).list_kines()
    return json_response("Kinés retrieved", data=[KineResponse.model_validate(kine) for kine in kines])

@router.get("/search", response_model=ApiResponse[List[KineResponse]])
async def search_kines(
    nom: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    """Match ``nom`` against first and last names, ignoring case."""
    kines = KineService(db).list_kines(search=nom)
    return json_response("Search results", data=[KineResponse.model_validate(kine) for kine in kines])

@router.get("/by-user/{user_id}", response_model=ApiResponse[KineResponse])
async def get_kine_by_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    kine = KineService(db).get_by_user(user_id, current_user)
    return json_response("Kiné retrieved", data=KineResponse.model_validate(kine))

@router.get("/{kine_id}", response_model=ApiResponse[KineResponse])
async def get_kine(
    kine_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    kine = KineService(db).get(kine_id, current_user)
    return json_response("Kiné retrieved", data=KineResponse.model_validate(kine))

@router.put("/{kine_id}", response_model=ApiResponse[KineResponse])
async def update_kine(
    kine_id: str,
    kine_data: KineUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    kine = KineService(db).update(kine_id, current_user, kine_data)
    return json_response("Kiné updated", data=KineResponse.model_validate(kine))

@router.delete("/{kine_id}", response_model=ApiResponse)
async def delete_kine(
    kine_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    """Delete a kiné and their user account."""
    KineService(db).delete(kine_id, current_user)
    return json_response("Kiné and user deleted")
