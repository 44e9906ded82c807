from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

MessageType = Literal["text", "media", "system"]


class DirectMessageCreate(BaseModel):
    recipient_id: str
    content: str
    type: Optional[MessageType] = "text"


class DirectMessageData(DirectMessageCreate):
    sender_id: str
    participants: Optional[List[str]] = None


class DirectMessageResponse(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    content: str
    timestamp: datetime
    read: bool = False
    type: Optional[MessageType] = None
    participants: List[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    count: int
