from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional


class UserCreate(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: str = Field(..., pattern="^(EMPLOYEE|MANAGER)$")
    manager_id: Optional[int] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class Token(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    manager_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class DirectoryUserResponse(BaseModel):
    id: int
    name: str
    role: str
    manager_id: Optional[int] = None

    class Config:
        from_attributes = True
