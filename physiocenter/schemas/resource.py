from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from ..models.resource import ResourceType, ResourceVisibility

class ResourceCreate(BaseModel):
    title: str = Field(min_length=2)
    type: ResourceType
    content: str = Field(min_length=2)
    url: Optional[HttpUrl] = None
    visibility: ResourceVisibility = ResourceVisibility.PUBLIC
    tags: List[str] = []

class ResourceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2)
    type: Optional[ResourceType] = None
    content: Optional[str] = Field(default=None, min_length=2)
    url: Optional[HttpUrl] = None
    visibility: Optional[ResourceVisibility] = None
    tags: Optional[List[str]] = None

class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    type: ResourceType
    content: str
    url: Optional[str] = None
    author_id: str
    published_at: Optional[datetime] = None
    visibility: ResourceVisibility
    tags: List[str] = []
