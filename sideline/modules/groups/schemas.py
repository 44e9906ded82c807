from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

MessageType = Literal["text", "media", "system"]


class GroupCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    sport: str = Field(min_length=1)
    is_private: bool = False
    photo_url: Optional[str] = None
    max_members: Optional[int] = Field(default=None, ge=1)
    rules: Optional[List[str]] = None
    tags: Optional[List[str]] = None


class GroupCreate(GroupCreateRequest):
    creator_id: str
    members: List[str]
    admins: List[str]


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    sport: str
    creator_id: str
    members: List[str]
    admins: List[str]
    is_private: bool = False
    photo_url: Optional[str] = None
    max_members: Optional[int] = None
    rules: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    version: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GroupMessageCreate(BaseModel):
    content: str


class GroupMessageResponse(BaseModel):
    id: str
    group_id: str
    sender_id: str
    content: str
    timestamp: datetime
    type: MessageType = "text"
    read: bool = False

    class Config:
        from_attributes = True
