"""
Media store adapters for video files and thumbnails.

Two backends share one interface: upload bytes, get back a retrievable URL
and an opaque public id; delete by that public id. The configured store is
built once at startup and injected into request handlers.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from bson import ObjectId
from fastapi import Request

from config import Settings
from exceptions import MediaStoreError

logger = logging.getLogger(__name__)

VIDEO = "video"
IMAGE = "image"

_FOLDERS = {VIDEO: "videos", IMAGE: "thumbnails"}
_DEFAULT_EXT = {VIDEO: ".mp4", IMAGE: ".jpg"}
_DEFAULT_CONTENT_TYPE = {VIDEO: "video/mp4", IMAGE: "image/jpeg"}


@dataclass
class StoredMedia:
    url: str
    public_id: str


@dataclass
class MediaFile:
    data: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None


def _object_name(resource_type: str, filename: Optional[str]) -> str:
    ext = os.path.splitext(filename)[1] if filename else ""
    return f"{_FOLDERS[resource_type]}/{ObjectId()}{ext or _DEFAULT_EXT[resource_type]}"


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """Recover the public id of a stored URL (folder/name.ext)."""
    if not url:
        return None
    parts = url.rstrip("/").split("/")
    if len(parts) >= 2 and parts[-2] in _FOLDERS.values():
        return "/".join(parts[-2:])
    return parts[-1]


class MediaStore(ABC):
    @abstractmethod
    def upload(self, data: bytes, resource_type: str, filename: Optional[str] = None,
               content_type: Optional[str] = None) -> StoredMedia:
        ...

    @abstractmethod
    def delete(self, public_id: str, resource_type: str) -> None:
        ...

    def close(self) -> None:
        pass


class LocalMediaStore(MediaStore):
    """Keeps files on disk under ``root``; they are served from ``base_url``."""

    def __init__(self, root: str, base_url: str = "/static"):
        self.root = root
        self.base_url = base_url.rstrip("/")
        for folder in _FOLDERS.values():
            os.makedirs(os.path.join(root, folder), exist_ok=True)

    def _path(self, public_id: str) -> str:
        path = os.path.normpath(os.path.join(self.root, public_id))
        if not path.startswith(os.path.normpath(self.root) + os.sep):
            raise MediaStoreError()
        return path

    def upload(self, data, resource_type, filename=None, content_type=None):
        public_id = _object_name(resource_type, filename)
        try:
            with open(self._path(public_id), "wb") as f:
                f.write(data)
        except OSError as exc:
            logger.error("Local %s upload failed: %s", resource_type, exc)
            raise MediaStoreError()
        return StoredMedia(url=f"{self.base_url}/{public_id}", public_id=public_id)

    def delete(self, public_id, resource_type):
        try:
            os.remove(self._path(public_id))
        except FileNotFoundError:
            logger.warning("Local %s %s already gone", resource_type, public_id)
        except OSError as exc:
            logger.error("Local %s delete failed for %s: %s", resource_type, public_id, exc)
            raise MediaStoreError()


class S3MediaStore(MediaStore):
    def __init__(self, client, bucket: str, public_url: str):
        self.client = client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    def upload(self, data, resource_type, filename=None, content_type=None):
        key = _object_name(resource_type, filename)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or _DEFAULT_CONTENT_TYPE[resource_type],
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 %s upload failed: %s", resource_type, exc)
            raise MediaStoreError()
        return StoredMedia(url=f"{self.public_url}/{key}", public_id=key)

    def delete(self, public_id, resource_type):
        try:
            self.client.delete_object(Bucket=self.bucket, Key=public_id)
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 %s delete failed for %s: %s", resource_type, public_id, exc)
            raise MediaStoreError()

    def close(self):
        self.client.close()


def build_media_store(settings: Settings) -> MediaStore:
    if settings.media_backend == "s3":
        client = boto3.client(
            "s3",
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
            region_name=settings.aws_region,
        )
        public_url = settings.s3_public_url or f"https://{settings.s3_bucket}.s3.{settings.aws_region}.amazonaws.com"
        return S3MediaStore(client, settings.s3_bucket, public_url)
    if settings.media_backend == "local":
        return LocalMediaStore(settings.upload_dir, settings.media_base_url)
    raise ValueError(f"Unknown media backend: {settings.media_backend}")


def get_media_store(request: Request) -> MediaStore:
    return request.app.state.media
