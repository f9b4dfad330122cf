"""
MongoDB access helpers.

The client is created by the application lifespan and stored on app.state;
route handlers receive the database through the get_db dependency.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from bson import ObjectId
from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import Settings
from exceptions import BadRequestError


def connect(settings: Settings) -> MongoClient:
    return MongoClient(settings.database_url)


def get_db(request: Request) -> Database:
    return request.app.state.db


def ensure_indexes(db: Database) -> None:
    db["channel"].create_index([("owner", ASCENDING)])
    db["video"].create_index([("channel", ASCENDING)])


def objid(id_str: str, detail: str = "Invalid id format") -> ObjectId:
    if not ObjectId.is_valid(id_str):
        raise BadRequestError(detail)
    return ObjectId(id_str)


def _jsonable(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def to_str_id(doc):
    if not doc:
        return doc
    d = {**doc}
    if d.get("_id"):
        d = {"id": d.pop("_id"), **d}
    return _jsonable(d)


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document stamped with created_at/updated_at and return it with its _id."""
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    now = datetime.now(timezone.utc)
    doc["created_at"] = now
    doc["updated_at"] = now
    doc["_id"] = db[collection_name].insert_one(doc).inserted_id
    return doc


def get_documents(db: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def populate(db: Database, collection_name: str, ids: Iterable[ObjectId], fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    """Resolve references in one query.

    Documents come back in the order of ``ids``; ids that do not resolve are
    dropped.
    """
    ids = list(ids)
    if not ids:
        return []
    projection = {f: 1 for f in fields} if fields else None
    found = {d["_id"]: d for d in db[collection_name].find({"_id": {"$in": ids}}, projection)}
    return [found[i] for i in ids if i in found]
