"""HTTP error taxonomy raised by the service layer."""
from fastapi import HTTPException, status


class ConflictError(HTTPException):
    """Raised when a unique resource (an email address) already exists."""

    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class UnauthorizedError(HTTPException):
    """Raised for bad credentials, wrong provider, or a token whose user no longer exists."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthenticationFailed(UnauthorizedError):
    """Raised when a token or an OAuth handshake cannot be validated."""

    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(detail=detail)


class NotFoundError(HTTPException):
    """Raised when a resource is missing or is not owned by the caller."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
