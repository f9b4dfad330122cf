"""Channel lifecycle and subscriber bookkeeping.

Every set mutation is a single atomic update on the channel document, so
concurrent subscribe/unsubscribe calls never overwrite each other.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import PyMongoError

import projections
from database import create_document, populate
from exceptions import ConflictError, NotFoundError, UnauthorizedError
from schemas import Channel, require_text

logger = logging.getLogger(__name__)

NO_CHANNEL_MESSAGE = "You don't have a channel. Create a channel first."

_VIDEO_FIELDS = ["title", "description", "url", "thumbnail_url"]


def _touch() -> Dict[str, Any]:
    return {"updated_at": datetime.now(timezone.utc)}


def create_channel(db: Database, owner_id: ObjectId, name: Optional[str], description: Optional[str]) -> Dict[str, Any]:
    channel = Channel(
        name=require_text(name, "Name"),
        description=require_text(description, "Description"),
        owner=owner_id,
    )
    doc = create_document(db, "channel", channel)
    logger.info("Channel %s created by %s", doc["_id"], owner_id)
    return projections.channel_document(doc)


def find_owner_channel(db: Database, owner_id: ObjectId) -> Optional[Dict[str, Any]]:
    """Most recently created channel of ``owner_id``, if any."""
    return db["channel"].find_one({"owner": owner_id}, sort=[("_id", -1)])


def _detail(db: Database, channel: Dict[str, Any], id_key: str) -> Dict[str, Any]:
    videos = populate(db, "video", channel.get("videos", []), _VIDEO_FIELDS)
    subscribers = populate(db, "user", channel.get("subscribers", []), ["name"])
    return projections.channel_detail(channel, videos, subscribers, id_key=id_key)


def get_channel(db: Database, channel_id: ObjectId) -> Dict[str, Any]:
    channel = db["channel"].find_one({"_id": channel_id})
    if not channel:
        raise NotFoundError("Channel")
    return _detail(db, channel, "id")


def get_owner_channel(db: Database, owner_id: ObjectId) -> Dict[str, Any]:
    channel = find_owner_channel(db, owner_id)
    if not channel:
        raise NotFoundError(detail=NO_CHANNEL_MESSAGE)
    return _detail(db, channel, "_id")


def _ensure_exists(db: Database, channel_id: ObjectId) -> None:
    if db["channel"].find_one({"_id": channel_id}, {"_id": 1}) is None:
        raise NotFoundError("Channel")


def subscribe(db: Database, channel_id: ObjectId, user_id: ObjectId) -> None:
    result = db["channel"].update_one(
        {"_id": channel_id, "subscribers": {"$ne": user_id}},
        {"$addToSet": {"subscribers": user_id}, "$set": _touch()},
    )
    if result.matched_count == 0:
        _ensure_exists(db, channel_id)
        raise ConflictError("Already subscribed to this channel")


def unsubscribe(db: Database, channel_id: ObjectId, user_id: ObjectId) -> None:
    result = db["channel"].update_one(
        {"_id": channel_id, "subscribers": user_id},
        {"$pull": {"subscribers": user_id}, "$set": _touch()},
    )
    if result.matched_count == 0:
        _ensure_exists(db, channel_id)
        raise ConflictError("Not subscribed to this channel")


def is_subscribed(db: Database, channel_id: ObjectId, user_id: Optional[ObjectId]) -> bool:
    if user_id is None:
        raise UnauthorizedError()
    channel = db["channel"].find_one({"_id": channel_id}, {"subscribers": 1})
    if not channel:
        raise NotFoundError("Channel")
    return user_id in channel.get("subscribers", [])


def attach_video(db: Database, channel_id: ObjectId, video_id: ObjectId) -> bool:
    """Append ``video_id`` to the channel's videos. False when the channel is gone."""
    result = db["channel"].update_one(
        {"_id": channel_id},
        {"$addToSet": {"videos": video_id}, "$set": _touch()},
    )
    return result.matched_count == 1


def detach_video(db: Database, channel_id: ObjectId, video_id: ObjectId) -> None:
    """Remove ``video_id`` from the channel's videos. Never raises."""
    try:
        db["channel"].update_one(
            {"_id": channel_id},
            {"$pull": {"videos": video_id}, "$set": _touch()},
        )
    except PyMongoError as exc:
        logger.warning("Could not detach video %s from channel %s: %s", video_id, channel_id, exc)
