from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

RequestStatus = Literal["pending", "accepted", "rejected"]


class GroupInviteCreate(BaseModel):
    invitee_id: str


class GroupInviteResponse(BaseModel):
    id: str
    group_id: str
    inviter_id: str
    invitee_id: str
    status: RequestStatus
    created_at: datetime
    expires_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JoinRequestCreate(BaseModel):
    message: Optional[str] = None


class JoinRequestResponse(BaseModel):
    id: str
    group_id: str
    user_id: str
    message: Optional[str] = None
    status: RequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True
