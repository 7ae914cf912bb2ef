from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_token_service
from ..models.user import User
from ..services.token_service import TokenService
from .errors import AppError, ErrorKind
from .helpers import ensure_utc


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an 'Authorization: Bearer <token>' header"""
    if not authorization or not authorization.startswith("Bearer "):
        raise AppError(ErrorKind.UNAUTHORIZED, "Token was not provided!")

    token = authorization[len("Bearer "):].strip()
    if not token or " " in token:
        raise AppError(ErrorKind.UNAUTHORIZED, "Invalid token format!")
    return token


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
) -> User:
    """Resolve the user behind a valid access token and attach it to the request"""
    token = extract_bearer_token(authorization)
    payload = token_service.decode_access_token(token)

    user = db.query(User).filter(User.id == payload.get("id")).first()
    if user is None:
        raise AppError(ErrorKind.NOT_FOUND, "User not found!")

    # Tokens issued before the last credential change are stale
    if user.password_changed_at is not None:
        changed_at = int(ensure_utc(user.password_changed_at).timestamp())
        if changed_at > payload.get("iat", 0):
            raise AppError(
                ErrorKind.UNAUTHORIZED,
                "Token is no longer valid. Please log in again!"
            )

    request.state.user = user
    return user


def require_role(*allowed_roles: str):
    """Dependency factory restricting a route to the given roles"""
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise AppError(
                ErrorKind.FORBIDDEN,
                f"You are not authorized to access this route. Your role is {current_user.role}"
            )
        return current_user
    return role_checker
