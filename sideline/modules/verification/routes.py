from fastapi import APIRouter, Depends, Request
from twilio.rest import Client
from sideline.config import settings
from sideline.core.rate_limit import limiter
from sideline.core.twilio_client import get_twilio
from sideline.modules.verification.schemas import (
    SendVerificationRequest, SendVerificationResponse,
    VerifyCodeRequest, VerifyCodeResponse,
)
from sideline.modules.verification.service import VerificationService

router = APIRouter(prefix="/api", tags=["verification"])


def get_verification_service(client: Client = Depends(get_twilio)) -> VerificationService:
    return VerificationService(client, settings.twilio_verify_service_sid)


@router.post("/send-verification", response_model=SendVerificationResponse)
@limiter.limit(settings.verification_rate_limit)
async def send_verification(
    request: Request,
    data: SendVerificationRequest,
    service: VerificationService = Depends(get_verification_service)
):
    """Send a 6-digit SMS code to an E.164 phone number"""
    status = service.send_verification(data.phone_number)
    return SendVerificationResponse(status=status)


@router.post("/verify-code", response_model=VerifyCodeResponse)
@limiter.limit(settings.verification_rate_limit)
async def verify_code(
    request: Request,
    data: VerifyCodeRequest,
    service: VerificationService = Depends(get_verification_service)
):
    """Check a code previously sent to the phone number"""
    valid = service.check_verification(data.phone_number, data.code)
    return VerifyCodeResponse(valid=valid)
