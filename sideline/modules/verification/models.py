# Twilio Verify
# No tables: verification codes and their state live entirely in the Twilio
# Verify service identified by TWILIO_VERIFY_SERVICE_SID.

"""
Twilio Verify v2 calls used by service.py:
- services(sid).verifications.create(to, channel="sms") -> status "pending"
- services(sid).verification_checks.create(to, code) -> status "approved" | "pending" | ...

Error codes mapped by the service:
- 60200 Invalid parameter (bad phone number)
- 60202 Max check attempts reached / invalid code
- 60203 Max send attempts reached
"""
