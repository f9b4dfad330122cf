"""HTTP exceptions shared by the channel and video services.

Each class carries its status code and a default message so call sites only
name the failure.
"""

from typing import Optional

from fastapi import HTTPException, status


class ValidationError(HTTPException):
    def __init__(self, detail: str = "Missing required field") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class BadRequestError(HTTPException):
    def __init__(self, detail: str = "Invalid id format") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class PreconditionFailedError(HTTPException):
    def __init__(self, detail: str = "You need to create a channel first") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, resource: str = "Resource", detail: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource} not found",
        )


class MediaStoreError(HTTPException):
    """Any failure talking to the media store. Opaque to the caller."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        )
