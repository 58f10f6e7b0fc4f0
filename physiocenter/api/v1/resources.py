from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_staff_user
from ...services.resource_service import ResourceService
from ...schemas.common import ApiResponse, json_response
from ...schemas.resource import ResourceCreate, ResourceUpdate, ResourceResponse
from ...models.user import User

router = APIRouter(prefix="/resources", tags=["Educational resources"])

def _many(resources) -> List[ResourceResponse]:
    return [ResourceResponse.model_validate(resource) for resource in resources]

# Public library
@router.get("", response_model=ApiResponse[List[ResourceResponse]])
async def list_resources(db: Session = Depends(get_db)):
    """Public resources, newest first."""
    return json_response("Resources retrieved", data=_many(ResourceService(db).list_resources()))

@router.get("/search/{term}", response_model=ApiResponse[List[ResourceResponse]])
async def search_resources(term: str, db: Session = Depends(get_db)):
    return json_response("Search results", data=_many(ResourceService(db).search(term)))

# Staff management
@router.get("/all", response_model=ApiResponse[List[ResourceResponse]])
async def list_all_resources(
    db: Session = Depends(get_db),
    _: User = Depends(get_staff_user)
):
    """Every resource, private ones included."""
    return json_response("Resources retrieved", data=_many(ResourceService(db).list_resources(include_private=True)))

@router.post("", response_model=ApiResponse[ResourceResponse], status_code=status.HTTP_201_CREATED)
async def create_resource(
    resource_data: ResourceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    resource = ResourceService(db).create(current_user, resource_data)
    return json_response("Resource created", data=ResourceResponse.model_validate(resource))

@router.get("/{resource_id}", response_model=ApiResponse[ResourceResponse])
async def get_resource(resource_id: str, db: Session = Depends(get_db)):
    resource = ResourceService(db).get(resource_id)
    return json_response("Resource retrieved", data=ResourceResponse.model_validate(resource))

@router.put("/{resource_id}", response_model=ApiResponse[ResourceResponse])
async def update_resource(
    resource_id: str,
    resource_data: ResourceUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(get_staff_user)
):
    resource = ResourceService(db).update(resource_id, resource_data)
    return json_response("Resource updated", data=ResourceResponse.model_validate(resource))

@router.delete("/{resource_id}", response_model=ApiResponse)
async def delete_resource(
    resource_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_staff_user)
):
    ResourceService(db).delete(resource_id)
    return json_response("Resource deleted")
