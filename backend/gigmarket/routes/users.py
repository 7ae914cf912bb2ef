from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..schemas.user import UserResponse
from ..utils.responses import api_response
from ..utils.security import get_current_user, require_role

router = APIRouter(prefix="/users", tags=["Users"])


# List all users (admin only)
@router.get("")
async def list_users(
    current_user: User = Depends(require_role("admin")),
    db: Session = Depends(get_db)
):
    users = db.query(User).order_by(User.id).all()
    return api_response(
        data=[UserResponse.from_user(user).model_dump(mode="json") for user in users],
        message="Users retrieved successfully"
    )


# Get current user's profile
@router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return api_response(
        data=UserResponse.from_user(current_user).model_dump(mode="json"),
        message="User profile retrieved successfully"
    )
