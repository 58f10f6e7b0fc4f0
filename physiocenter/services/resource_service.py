from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List
import logging

from ..models.resource import EducationalResource, ResourceVisibility
from ..models.user import User
from ..schemas.resource import ResourceCreate, ResourceUpdate

logger = logging.getLogger(__name__)

class ResourceService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, author: User, data: ResourceCreate) -> EducationalResource:
        resource = EducationalResource(author_id=author.id, **self._columns(data.model_dump()))
        self.db.add(resource)
        self.db.commit()
        self.db.refresh(resource)
        logger.info(f"User {author.id} published resource {resource.id} ({resource.title})")
        return resource

    def get(self, resource_id: str, include_private: bool = False) -> EducationalResource:
        resource = self.db.get(EducationalResource, resource_id)
        if not resource or (not include_private and resource.visibility != ResourceVisibility.PUBLIC):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Resource not found"
            )
        return resource

    def update(self, resource_id: str, data: ResourceUpdate) -> EducationalResource:
        resource = self.get(resource_id, include_private=True)
        for field, value in self._columns(data.model_dump(exclude_unset=True)).items():
            setattr(resource, field, value)
        self.db.commit()
        self.db.refresh(resource)
        return resource

    def delete(self, resource_id: str) -> None:
        resource = self.get(resource_id, include_private=True)
        self.db.delete(resource)
        self.db.commit()
        logger.info(f"Deleted resource {resource_id}")

    def list_resources(self, include_private: bool = False) -> List[EducationalResource]:
        query = self.db.query(EducationalResource)
        if not include_private:
            query = query.filter(EducationalResource.visibility == ResourceVisibility.PUBLIC)
        return query.order_by(EducationalResource.published_at.desc()).all()

    def search(self, term: str) -> List[EducationalResource]:
        """Public resources whose title, content or one of the tags contains ``term``, ignoring case."""
        needle = term.casefold()
        return [
            resource for resource in self.list_resources()
            if needle in resource.title.casefold()
            or needle in resource.content.casefold()
            or any(needle in tag.casefold() for tag in resource.tags or [])
        ]

    @staticmethod
    def _columns(values: dict) -> dict:
        if values.get("url") is not None:
            values["url"] = str(values["url"])
        return values
