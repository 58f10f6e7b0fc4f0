from sqlalchemy import Column, String, ForeignKey, DateTime, Text, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .user import generate_id

class ResourceType(str, enum.Enum):
    ARTICLE = "article"
    VIDEO = "video"

class ResourceVisibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "privé"

class EducationalResource(Base):
    """Article or video of the clinic's educational library."""
    __tablename__ = "educational_resources"

    id = Column(String(36), primary_key=True, index=True, default=generate_id)
    title = Column(String(255), nullable=False)
    type = Column(SQLEnum(ResourceType), nullable=False)
    content = Column(Text, nullable=False)
    url = Column(String(500), nullable=True)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    published_at = Column(DateTime, server_default=func.now())
    visibility = Column(SQLEnum(ResourceVisibility), nullable=False, default=ResourceVisibility.PUBLIC)
    tags = Column(JSON, nullable=False, default=list)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    author = relationship("User")

    def __repr__(self):
        return f"<EducationalResource(id={self.id}, title='{self.title}', type='{self.type}')>"
