"""Student identity dependencies for FastAPI.

Tokens are issued by the account service; this server only verifies them and
reads the student id from the ``sub`` claim.
"""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from api.config import ALGORITHM, SECRET_KEY

# HTTP Bearer scheme for JWT
security = HTTPBearer(auto_error=False)


def verify_token(token: str) -> dict | None:
    """Decode and verify a JWT, None if invalid or expired."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def _student_id(payload: dict | None) -> str | None:
    if payload is None:
        return None
    subject = payload.get("sub")
    if subject is None or str(subject).strip() == "":
        return None
    return str(subject)


async def get_current_student(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Get the id of the authenticated student.

    Raises:
        HTTPException: 401 if not authenticated or token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    student_id = _student_id(verify_token(credentials.credentials))
    if student_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return student_id


async def get_optional_student(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str | None:
    """Get the student id if authenticated, otherwise None.

    This dependency does not raise an exception if not authenticated.
    """
    if credentials is None:
        return None
    return _student_id(verify_token(credentials.credentials))
