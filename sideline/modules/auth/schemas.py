from pydantic import BaseModel
from typing import Optional


class Session(BaseModel):
    """The acting user, resolved from a bearer token and passed to every service call."""
    user_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
