"""Video lifecycle, reactions, comments and channel-video linkage.

A video and its channel's ``videos`` list live in two documents with no
transaction spanning them. Upload inserts the video and then links it,
undoing the insert if the channel disappeared in between; delete removes the
video and then unlinks it on a best-effort basis.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

import channels
import projections
from database import create_document, get_documents, objid, populate
from exceptions import ConflictError, MediaStoreError, NotFoundError, PreconditionFailedError, ValidationError
from media import IMAGE, VIDEO, MediaFile, MediaStore, public_id_from_url
from schemas import Comment, Reaction, Video, require_text

logger = logging.getLogger(__name__)

_ALREADY_REACTED = {
    Reaction.LIKE: "You have already liked this video",
    Reaction.DISLIKE: "You have already disliked this video",
}


def _require_file(file: Optional[MediaFile], field: str) -> MediaFile:
    if file is None or not file.data:
        raise ValidationError(f"{field} file is required")
    return file


def _channels_by_id(db: Database, ids) -> Dict[ObjectId, Dict[str, Any]]:
    return {c["_id"]: c for c in populate(db, "channel", {i for i in ids if i is not None}, ["name", "subscribers"])}


def upload_video(db: Database, media: MediaStore, owner_id: ObjectId, title: Optional[str],
                 description: Optional[str], video: Optional[MediaFile],
                 thumbnail: Optional[MediaFile]) -> Dict[str, Any]:
    channel = channels.find_owner_channel(db, owner_id)
    if not channel:
        raise PreconditionFailedError()

    title = require_text(title, "Title")
    description = require_text(description, "Description")
    video = _require_file(video, "Video")
    thumbnail = _require_file(thumbnail, "Thumbnail")

    stored_video = media.upload(video.data, VIDEO, video.filename, video.content_type)
    try:
        stored_thumb = media.upload(thumbnail.data, IMAGE, thumbnail.filename, thumbnail.content_type)
    except MediaStoreError:
        # No document is written; the uploaded video stays in the media store.
        logger.warning("Thumbnail upload failed, video media %s left orphaned", stored_video.public_id)
        raise

    doc = create_document(db, "video", Video(
        title=title,
        description=description,
        url=stored_video.url,
        thumbnail_url=stored_thumb.url,
        video_public_id=stored_video.public_id,
        thumbnail_public_id=stored_thumb.public_id,
        channel=channel["_id"],
        owner=owner_id,
    ))

    if not channels.attach_video(db, channel["_id"], doc["_id"]):
        db["video"].delete_one({"_id": doc["_id"]})
        logger.warning("Channel %s vanished during upload, video %s removed", channel["_id"], doc["_id"])
        raise PreconditionFailedError()

    logger.info("Video %s uploaded to channel %s", doc["_id"], channel["_id"])
    return projections.video_created(doc, channel)


def list_videos(db: Database) -> List[Dict[str, Any]]:
    videos = get_documents(db, "video")
    by_id = _channels_by_id(db, [v.get("channel") for v in videos])
    return [projections.video_summary(v, by_id.get(v.get("channel"))) for v in videos]


def get_video(db: Database, video_id: str) -> Dict[str, Any]:
    vid = objid(video_id, "Invalid videoId")
    video = db["video"].find_one({"_id": vid})
    if not video:
        raise NotFoundError("Video")
    channel = db["channel"].find_one({"_id": video.get("channel")}) if video.get("channel") else None
    authors = [c.get("user") for c in video.get("comments", [])]
    users = {u["_id"]: u for u in populate(db, "user", dict.fromkeys(authors), ["name"])}
    return projections.video_detail(video, channel, users)


def update_video(db: Database, media: MediaStore, video_id: ObjectId, title: Optional[str],
                 description: Optional[str], video: Optional[MediaFile],
                 thumbnail: Optional[MediaFile]) -> Dict[str, Any]:
    existing = db["video"].find_one({"_id": video_id})
    if not existing:
        raise NotFoundError("Video")

    # Prior media goes first, before any replacement is uploaded.
    old_video = existing.get("video_public_id") or public_id_from_url(existing.get("url"))
    if old_video:
        media.delete(old_video, VIDEO)
    old_thumb = existing.get("thumbnail_public_id") or public_id_from_url(existing.get("thumbnail_url"))
    if old_thumb:
        media.delete(old_thumb, IMAGE)

    changes: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
    if video is not None and video.data:
        stored = media.upload(video.data, VIDEO, video.filename, video.content_type)
        changes["url"] = stored.url
        changes["video_public_id"] = stored.public_id
    if thumbnail is not None and thumbnail.data:
        stored = media.upload(thumbnail.data, IMAGE, thumbnail.filename, thumbnail.content_type)
        changes["thumbnail_url"] = stored.url
        changes["thumbnail_public_id"] = stored.public_id
    if title and title.strip():
        changes["title"] = title
    if description and description.strip():
        changes["description"] = description

    updated = db["video"].find_one_and_update(
        {"_id": video_id}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise NotFoundError("Video")
    channel = db["channel"].find_one({"_id": updated.get("channel")}) if updated.get("channel") else None
    return projections.video_updated(updated, channel)


def delete_video(db: Database, video_id: ObjectId) -> None:
    deleted = db["video"].find_one_and_delete({"_id": video_id})
    if not deleted:
        raise NotFoundError("Video")
    if deleted.get("channel"):
        channels.detach_video(db, deleted["channel"], video_id)
    logger.info("Video %s deleted", video_id)


def react(db: Database, video_id: ObjectId, user_id: ObjectId, kind: Reaction) -> None:
    # The opposite reaction set is left untouched.
    result = db["video"].update_one(
        {"_id": video_id, kind.field: {"$ne": user_id}},
        {"$addToSet": {kind.field: user_id}},
    )
    if result.matched_count == 0:
        if db["video"].find_one({"_id": video_id}, {"_id": 1}) is None:
            raise NotFoundError("Video")
        raise ConflictError(_ALREADY_REACTED[kind])


def add_comment(db: Database, video_id: ObjectId, user_id: ObjectId, text: Optional[str]) -> None:
    if db["video"].find_one({"_id": video_id}, {"_id": 1}) is None:
        raise NotFoundError("Video")
    if text is None or not text.strip():
        raise ValidationError("Comment text is required")
    comment = Comment(user=user_id, text=text).model_dump(by_alias=True)
    result = db["video"].update_one({"_id": video_id}, {"$push": {"comments": comment}})
    if result.matched_count == 0:
        raise NotFoundError("Video")
