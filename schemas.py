"""
Database Schemas for the Video Sharing backend

Each Pydantic model maps to a MongoDB collection. The collection name is the lowercase of the class name.

Collections:
- User -> user (owned by the identity service, read here for display names)
- Channel -> channel
- Video -> video (comments are embedded)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from exceptions import ValidationError


class Reaction(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"

    @property
    def field(self) -> str:
        return "likes" if self is Reaction.LIKE else "dislikes"


class User(BaseModel):
    name: str
    email: Optional[str] = None


class Channel(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    owner: ObjectId = Field(..., description="Owner user id, set once at creation")
    videos: List[ObjectId] = Field(default_factory=list, description="Video ids in upload order")
    subscribers: List[ObjectId] = Field(default_factory=list)


class Comment(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: ObjectId = Field(default_factory=ObjectId, serialization_alias="_id")
    user: ObjectId
    text: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Video(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    url: str
    thumbnail_url: str
    video_public_id: str = Field(..., description="Media store id of the video file")
    thumbnail_public_id: str = Field(..., description="Media store id of the thumbnail")
    channel: ObjectId
    owner: ObjectId
    likes: List[ObjectId] = Field(default_factory=list)
    dislikes: List[ObjectId] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)


def require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value
