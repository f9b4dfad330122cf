"""
Response shapes.

Pure functions turning stored channel/video documents (and whatever they
reference) into the flat payloads each endpoint returns. The shapes differ
between endpoints on purpose; clients depend on each of them.
"""

from typing import Any, Dict, List, Optional

from database import to_str_id

UNKNOWN_CHANNEL = "Unknown Channel"


def _str(value) -> Optional[str]:
    return str(value) if value is not None else None


def channel_document(channel: Dict[str, Any]) -> Dict[str, Any]:
    doc = to_str_id(channel)
    return {"_id": doc.pop("id"), **doc}


def channel_detail(channel: Dict[str, Any], videos: List[Dict[str, Any]], subscribers: List[Dict[str, Any]],
                   id_key: str = "id") -> Dict[str, Any]:
    return {
        "name": channel["name"],
        "description": channel["description"],
        "videos": [
            {
                id_key: str(v["_id"]),
                "title": v.get("title"),
                "description": v.get("description"),
                "url": v.get("url"),
                "thumbnailUrl": v.get("thumbnail_url"),
            }
            for v in videos
        ],
        "subscribers": [s.get("name") for s in subscribers],
        "subscribersCount": len(channel.get("subscribers", [])),
    }


def _channel_fields(channel: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not channel:
        return {"channelName": UNKNOWN_CHANNEL, "channelId": None, "subscribersCount": 0}
    return {
        "channelName": channel.get("name"),
        "channelId": str(channel["_id"]),
        "subscribersCount": len(channel.get("subscribers", [])),
    }


def _reaction_fields(video: Dict[str, Any]) -> Dict[str, int]:
    return {"likes": len(video.get("likes", [])), "dislikes": len(video.get("dislikes", []))}


def comment_entry(comment: Dict[str, Any]) -> Dict[str, Any]:
    return {"_id": _str(comment.get("_id")), "user": _str(comment.get("user")), "text": comment.get("text")}


def comment_with_author(comment: Dict[str, Any], users: Dict[Any, Dict[str, Any]]) -> Dict[str, Any]:
    author = users.get(comment.get("user"))
    return {
        "_id": _str(comment.get("_id")),
        "user": {"_id": str(author["_id"]), "name": author.get("name")} if author else None,
        "text": comment.get("text"),
    }


def video_created(video: Dict[str, Any], channel: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "videoId": str(video["_id"]),
        "title": video["title"],
        "description": video["description"],
        "url": video["url"],
        "thumbnailUrl": video.get("thumbnail_url"),
        **_channel_fields(channel),
        **_reaction_fields(video),
        "comments": [comment_entry(c) for c in video.get("comments", [])],
    }


def video_summary(video: Dict[str, Any], channel: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "videoId": str(video["_id"]),
        "title": video["title"],
        "description": video["description"],
        "url": video["url"],
        **_channel_fields(channel),
        **_reaction_fields(video),
        "comments": [comment_entry(c) for c in video.get("comments", [])],
    }


def video_detail(video: Dict[str, Any], channel: Optional[Dict[str, Any]],
                 users: Dict[Any, Dict[str, Any]]) -> Dict[str, Any]:
    payload = video_summary(video, channel)
    payload["comments"] = [comment_with_author(c, users) for c in video.get("comments", [])]
    return payload


def video_updated(video: Dict[str, Any], channel: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    payload = video_created(video, channel)
    payload.pop("videoId")
    return payload
