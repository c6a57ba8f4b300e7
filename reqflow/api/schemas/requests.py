from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class RequestCreate(BaseModel):
    # Presence is checked by the workflow service so all missing fields are reported together
    title: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[int] = None


class RequestResponse(BaseModel):
    id: int
    title: str
    description: str
    created_by: int
    assigned_to: int
    manager_id: int
    status: str
    created_at: datetime
    updated_at: datetime
    available_actions: List[str] = []

    class Config:
        from_attributes = True


class RequestListResponse(BaseModel):
    items: List[RequestResponse]
    total: int


class RequestHistoryResponse(BaseModel):
    id: int
    request_id: int
    user_id: int
    action: str
    created_at: datetime

    class Config:
        from_attributes = True
