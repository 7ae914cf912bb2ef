from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    id: int
    phoneNumber: str
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    status: Optional[str] = None
    role: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            phoneNumber=user.phone_number,
            name=user.name,
            email=user.email,
            address=user.address,
            city=user.city,
            state=user.state,
            zip=user.zip,
            country=user.country,
            status=user.status,
            role=user.role,
            createdAt=user.created_at,
            updatedAt=user.updated_at
        )
