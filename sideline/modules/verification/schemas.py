from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class SendVerificationRequest(BaseModel):
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")

    model_config = ConfigDict(populate_by_name=True)


class SendVerificationResponse(BaseModel):
    success: bool = True
    status: str


class VerifyCodeRequest(BaseModel):
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    code: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class VerifyCodeResponse(BaseModel):
    success: bool = True
    valid: bool
