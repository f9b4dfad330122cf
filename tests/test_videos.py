import os

import pytest
from bson import ObjectId

import channels
import videos
from exceptions import ConflictError, BadRequestError, MediaStoreError, NotFoundError, PreconditionFailedError, ValidationError
from media import IMAGE, LocalMediaStore, MediaFile
from schemas import Reaction


class FailingThumbnailStore(LocalMediaStore):
    def upload(self, data, resource_type, filename=None, content_type=None):
        if resource_type == IMAGE:
            raise MediaStoreError()
        return super().upload(data, resource_type, filename, content_type)


def _files():
    return MediaFile(b"video-bytes", "clip.mp4", "video/mp4"), MediaFile(b"thumb-bytes", "thumb.png", "image/png")


@pytest.fixture
def owner(db):
    owner_id = ObjectId()
    channels.create_channel(db, owner_id, "A's Channel", "All about A")
    return owner_id


@pytest.fixture
def uploaded(db, media, owner):
    video, thumb = _files()
    return videos.upload_video(db, media, owner, "Intro", "First video", video, thumb)


def test_upload_links_video_to_channel(db, media, owner, uploaded) -> None:
    assert uploaded["channelName"] == "A's Channel"
    assert uploaded["likes"] == 0
    assert uploaded["dislikes"] == 0
    assert uploaded["comments"] == []
    assert uploaded["thumbnailUrl"].endswith(".png")
    channel = channels.find_owner_channel(db, owner)
    assert channel["videos"] == [ObjectId(uploaded["videoId"])]
    assert uploaded["channelId"] == str(channel["_id"])
    stored = db["video"].find_one({"_id": ObjectId(uploaded["videoId"])})
    assert stored["owner"] == owner
    assert os.path.exists(os.path.join(media.root, stored["video_public_id"]))


def test_upload_without_channel_creates_nothing(db, media) -> None:
    video, thumb = _files()
    with pytest.raises(PreconditionFailedError):
        videos.upload_video(db, media, ObjectId(), "Intro", "desc", video, thumb)
    assert db["video"].count_documents({}) == 0


def test_upload_requires_files(db, media, owner) -> None:
    video, _ = _files()
    with pytest.raises(ValidationError):
        videos.upload_video(db, media, owner, "Intro", "desc", video, None)
    with pytest.raises(ValidationError):
        videos.upload_video(db, media, owner, "", "desc", *_files())
    assert db["video"].count_documents({}) == 0


def test_thumbnail_failure_creates_no_document(db, tmp_path, owner) -> None:
    store = FailingThumbnailStore(str(tmp_path / "failing"))
    with pytest.raises(MediaStoreError):
        videos.upload_video(db, store, owner, "Intro", "desc", *_files())
    assert db["video"].count_documents({}) == 0
    # the video file already uploaded is left behind
    assert len(os.listdir(tmp_path / "failing" / "videos")) == 1


def test_upload_rolls_back_when_channel_vanishes(db, media, owner, monkeypatch) -> None:
    monkeypatch.setattr(channels, "attach_video", lambda db, channel_id, video_id: False)
    with pytest.raises(PreconditionFailedError):
        videos.upload_video(db, media, owner, "Intro", "desc", *_files())
    assert db["video"].count_documents({}) == 0


def test_list_videos(db, media, owner, uploaded) -> None:
    listed = videos.list_videos(db)
    assert len(listed) == 1
    item = listed[0]
    assert item["videoId"] == uploaded["videoId"]
    assert item["channelName"] == "A's Channel"
    assert "thumbnailUrl" not in item


def test_list_videos_with_dangling_channel(db) -> None:
    db["video"].insert_one({"title": "Lost", "description": "d", "url": "u", "channel": ObjectId(),
                            "likes": [], "dislikes": [], "comments": []})
    item = videos.list_videos(db)[0]
    assert item["channelName"] == "Unknown Channel"
    assert item["channelId"] is None
    assert item["subscribersCount"] == 0


def test_get_video_malformed_id(db) -> None:
    with pytest.raises(BadRequestError):
        videos.get_video(db, "not-an-id")


def test_get_video_missing(db) -> None:
    with pytest.raises(NotFoundError):
        videos.get_video(db, str(ObjectId()))


def test_get_video_resolves_comment_authors(db, uploaded, make_user) -> None:
    bob = make_user("Bob")
    vid = ObjectId(uploaded["videoId"])
    videos.add_comment(db, vid, bob, "Nice one")
    detail = videos.get_video(db, uploaded["videoId"])
    assert detail["comments"][0]["user"] == {"_id": str(bob), "name": "Bob"}
    assert detail["comments"][0]["text"] == "Nice one"
    assert "thumbnailUrl" not in detail


def test_update_replaces_only_given_fields(db, media, uploaded) -> None:
    vid = ObjectId(uploaded["videoId"])
    before = db["video"].find_one({"_id": vid})
    updated = videos.update_video(db, media, vid, "New title", None, None,
                                  MediaFile(b"new-thumb", "new.jpg", "image/jpeg"))
    assert updated["title"] == "New title"
    assert updated["description"] == "First video"
    assert updated["url"] == before["url"]
    assert updated["thumbnailUrl"] != before["thumbnail_url"]
    assert "videoId" not in updated
    # prior media is removed whether or not it was replaced
    assert not os.path.exists(os.path.join(media.root, before["video_public_id"]))
    assert not os.path.exists(os.path.join(media.root, before["thumbnail_public_id"]))


def test_update_missing_video(db, media) -> None:
    with pytest.raises(NotFoundError):
        videos.update_video(db, media, ObjectId(), "t", None, None, None)


def test_delete_detaches_from_channel(db, owner, uploaded) -> None:
    vid = ObjectId(uploaded["videoId"])
    videos.delete_video(db, vid)
    assert channels.find_owner_channel(db, owner)["videos"] == []
    with pytest.raises(NotFoundError):
        videos.get_video(db, uploaded["videoId"])


def test_delete_missing_video(db) -> None:
    with pytest.raises(NotFoundError):
        videos.delete_video(db, ObjectId())


def test_like_twice_conflicts(db, uploaded) -> None:
    vid = ObjectId(uploaded["videoId"])
    user = ObjectId()
    videos.react(db, vid, user, Reaction.LIKE)
    with pytest.raises(ConflictError) as exc_info:
        videos.react(db, vid, user, Reaction.LIKE)
    assert exc_info.value.detail == "You have already liked this video"
    assert db["video"].find_one({"_id": vid})["likes"] == [user]


def test_like_and_dislike_are_independent(db, uploaded) -> None:
    vid = ObjectId(uploaded["videoId"])
    user = ObjectId()
    videos.react(db, vid, user, Reaction.DISLIKE)
    videos.react(db, vid, user, Reaction.LIKE)
    stored = db["video"].find_one({"_id": vid})
    assert stored["likes"] == [user]
    assert stored["dislikes"] == [user]


def test_react_missing_video(db) -> None:
    with pytest.raises(NotFoundError):
        videos.react(db, ObjectId(), ObjectId(), Reaction.DISLIKE)


def test_comments_append_in_order(db, uploaded) -> None:
    vid = ObjectId(uploaded["videoId"])
    user = ObjectId()
    for text in ("first", "second", "third"):
        videos.add_comment(db, vid, user, text)
    comments = db["video"].find_one({"_id": vid})["comments"]
    assert [c["text"] for c in comments] == ["first", "second", "third"]
    assert all(c["user"] == user for c in comments)


def test_comment_validation(db, uploaded) -> None:
    with pytest.raises(ValidationError):
        videos.add_comment(db, ObjectId(uploaded["videoId"]), ObjectId(), "  ")
    with pytest.raises(NotFoundError):
        videos.add_comment(db, ObjectId(), ObjectId(), "hello")


def test_dislike_twice_conflicts(db, uploaded) -> None:
    vid = ObjectId(uploaded["videoId"])
    user = ObjectId()
    videos.react(db, vid, user, Reaction.DISLIKE)
    with pytest.raises(ConflictError) as exc_info:
        videos.react(db, vid, user, Reaction.DISLIKE)
    assert exc_info.value.detail == "You have already disliked this video"
    assert db["video"].find_one({"_id": vid})["dislikes"] == [user]


def test_update_ignores_blank_text_fields(db, media, uploaded) -> None:
    vid = ObjectId(uploaded["videoId"])
    updated = videos.update_video(db, media, vid, "   ", "\t", None, None)
    assert updated["title"] == "Intro"
    assert updated["description"] == "First video"


def test_blank_comment_on_missing_video_is_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        videos.add_comment(db, ObjectId(), ObjectId(), "  ")
    with pytest.raises(NotFoundError):
        videos.add_comment(db, ObjectId(), ObjectId(), None)
