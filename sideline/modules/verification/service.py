import logging
import re
from twilio.rest import Client
from twilio.base.exceptions import TwilioException, TwilioRestException
from sideline.core.exceptions import (
    ValidationError, InvalidFormat, InvalidCodeFormat,
    ProviderError, InvalidPhoneNumber, RateLimited, InvalidCode,
)
from typing import Dict, Optional, Type

logger = logging.getLogger(__name__)

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$", re.ASCII)
CODE_PATTERN = re.compile(r"^\d{6}$", re.ASCII)

APPROVED = "approved"

_SEND_ERRORS: Dict[int, Type[ProviderError]] = {
    60200: InvalidPhoneNumber,
    60203: RateLimited,
}
_CHECK_ERRORS: Dict[int, Type[ProviderError]] = {
    60200: InvalidPhoneNumber,
    60202: InvalidCode,
}


def validate_phone_number(phone_number: Optional[str]) -> str:
    if not phone_number:
        raise ValidationError("Phone number is required")
    if not E164_PATTERN.fullmatch(phone_number):
        raise InvalidFormat()
    return phone_number


def validate_code(code: Optional[str]) -> str:
    if not code:
        raise ValidationError("Verification code is required")
    if not CODE_PATTERN.fullmatch(code):
        raise InvalidCodeFormat()
    return code


def _map_provider_error(exc: TwilioException, known: Dict[int, Type[ProviderError]], fallback: str) -> ProviderError:
    code = getattr(exc, "code", None)
    error_class = known.get(code) if isinstance(exc, TwilioRestException) else None
    if error_class:
        return error_class(code=code)
    return ProviderError(fallback, code=code)


class VerificationService:
    """Two-step SMS verification through Twilio Verify. Stateless, single attempt per call."""

    def __init__(self, client: Client, service_sid: str):
        self.client = client
        self.service_sid = service_sid

    def send_verification(self, phone_number: Optional[str]) -> str:
        """Send an SMS code and return the provider status (e.g. "pending")"""
        phone_number = validate_phone_number(phone_number)
        try:
            verification = self.client.verify.v2\
                .services(self.service_sid)\
                .verifications\
                .create(to=phone_number, channel="sms")
        except TwilioException as e:
            logger.error(f"Error sending verification to {phone_number}: {e}")
            raise _map_provider_error(
                e, _SEND_ERRORS, "Failed to send verification code. Please try again later."
            ) from e

        logger.info(f"Verification sent: status={verification.status} to={phone_number} sid={verification.sid}")
        return verification.status

    def check_verification(self, phone_number: Optional[str], code: Optional[str]) -> bool:
        """Check a code; True iff the provider reports it approved"""
        if not phone_number or not code:
            raise ValidationError("Phone number and verification code are required")
        phone_number = validate_phone_number(phone_number)
        code = validate_code(code)
        try:
            check = self.client.verify.v2\
                .services(self.service_sid)\
                .verification_checks\
                .create(to=phone_number, code=code)
        except TwilioException as e:
            logger.error(f"Error verifying code for {phone_number}: {e}")
            raise _map_provider_error(
                e, _CHECK_ERRORS, "Failed to verify code. Please try again."
            ) from e

        valid = check.status == APPROVED
        logger.info(f"Verification check: status={check.status} to={phone_number} valid={valid}")
        return valid
