import logging
from typing import Optional

import jwt
from bson import ObjectId
from fastapi import Depends, Header

from config import Settings, get_settings
from exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


def issue_token(user_id: ObjectId, settings: Settings) -> str:
    """Sign a token carrying the caller id, in the shape the identity service issues."""
    return jwt.encode({"id": str(user_id)}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def get_current_user_id(
    x_auth_token: Optional[str] = Header(default=None, alias="x-auth-token"),
    settings: Settings = Depends(get_settings),
) -> ObjectId:
    if not x_auth_token:
        raise UnauthorizedError()
    try:
        payload = jwt.decode(x_auth_token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        logger.warning("Rejected credential: %s", exc)
        raise UnauthorizedError("Invalid or expired token")
    user_id = payload.get("id")
    if not isinstance(user_id, str) or not ObjectId.is_valid(user_id):
        raise UnauthorizedError("Invalid or expired token")
    return ObjectId(user_id)
