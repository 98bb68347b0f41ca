from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PostCreateSchema(BaseModel):
    # title stays optional here so a missing title gets its own 400 message
    title: Optional[str] = None
    description: Optional[str] = None


class PostUpdateSchema(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None

    def changes(self) -> dict:
        """Fields the client actually sent with a non-empty value."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name)
        }


class PostSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    idPost: int
    title: str
    description: Optional[str] = None
    createdAt: Optional[datetime] = None


class PostCreatedSchema(BaseModel):
    idPost: int
    title: str
    description: Optional[str] = None
    message: str


class MessageSchema(BaseModel):
    message: str
    idPost: int
