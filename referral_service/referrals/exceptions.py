"""Custom exceptions for referrals"""
from enum import Enum
from typing import Optional

from fastapi import HTTPException, status


class ErrorKind(Enum):
    """Every way a referral operation can be refused: (name, code, HTTP status)"""
    NOT_AUTHORIZED = ("NotAuthorized", 100, status.HTTP_403_FORBIDDEN)
    INVALID_NEEDS = ("InvalidNeeds", 101, status.HTTP_400_BAD_REQUEST)
    INVALID_LANGUAGE = ("InvalidLanguage", 102, status.HTTP_400_BAD_REQUEST)
    INVALID_EXPERTISE = ("InvalidExpertise", 103, status.HTTP_400_BAD_REQUEST)
    INVALID_PRIORITY = ("InvalidPriority", 104, status.HTTP_400_BAD_REQUEST)
    REFERRAL_NOT_FOUND = ("ReferralNotFound", 106, status.HTTP_404_NOT_FOUND)
    INVALID_STATUS = ("InvalidStatus", 107, status.HTTP_409_CONFLICT)
    COUNSELOR_NOT_VERIFIED = ("CounselorNotVerified", 109, status.HTTP_403_FORBIDDEN)
    VICTIM_NOT_REGISTERED = ("VictimNotRegistered", 110, status.HTTP_403_FORBIDDEN)
    MATCHING_FAILED = ("MatchingFailed", 111, status.HTTP_502_BAD_GATEWAY)
    STATUS_UPDATE_NOT_ALLOWED = ("StatusUpdateNotAllowed", 112, status.HTTP_409_CONFLICT)
    INVALID_UPDATE_REASON = ("InvalidUpdateReason", 113, status.HTTP_400_BAD_REQUEST)
    MAX_REFERRALS_EXCEEDED = ("MaxReferralsExceeded", 114, status.HTTP_409_CONFLICT)
    INVALID_ANONYMITY_LEVEL = ("InvalidAnonymityLevel", 115, status.HTTP_400_BAD_REQUEST)
    INVALID_LOCATION = ("InvalidLocation", 116, status.HTTP_400_BAD_REQUEST)
    INVALID_AVAILABILITY = ("InvalidAvailability", 117, status.HTTP_400_BAD_REQUEST)
    INVALID_FEEDBACK = ("InvalidFeedback", 119, status.HTTP_400_BAD_REQUEST)
    INVALID_REFERRAL_TYPE = ("InvalidReferralType", 121, status.HTTP_400_BAD_REQUEST)
    INVALID_DURATION = ("InvalidDuration", 122, status.HTTP_400_BAD_REQUEST)
    INVALID_COST = ("InvalidCost", 123, status.HTTP_400_BAD_REQUEST)
    INVALID_PAYMENT_STATUS = ("InvalidPaymentStatus", 124, status.HTTP_400_BAD_REQUEST)

    def __init__(self, label: str, code: int, http_status: int):
        self.label = label
        self.code = code
        self.http_status = http_status


class ReferralException(HTTPException):
    """Raised when a referral operation is refused"""
    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        super().__init__(
            status_code=kind.http_status,
            detail={
                "error": kind.label,
                "code": kind.code,
                "message": message or kind.label,
            },
        )


class ReferralNotFoundException(ReferralException):
    """Raised when a referral id has never been assigned"""
    def __init__(self, referral_id: int):
        super().__init__(ErrorKind.REFERRAL_NOT_FOUND, f"Referral {referral_id} not found")


class NotAuthorizedException(ReferralException):
    """Raised when the caller is not a party allowed to act on the referral"""
    def __init__(self, caller: str, referral_id: int):
        super().__init__(
            ErrorKind.NOT_AUTHORIZED,
            f"{caller} is not authorized to act on referral {referral_id}",
        )


class InvalidStatusException(ReferralException):
    """Raised when a status value is unknown or the referral is in the wrong status"""
    def __init__(self, status_value: str, expected: Optional[str] = None):
        detail = f"Invalid status '{status_value}'"
        if expected:
            detail = f"Referral is '{status_value}', expected {expected}"
        super().__init__(ErrorKind.INVALID_STATUS, detail)


class ReferralValidationException(ReferralException):
    """Raised when a referral field holds a value outside its allowed domain"""
    def __init__(self, kind: ErrorKind, field: str, value):
        super().__init__(kind, f"Invalid value for {field}: {value!r}")


class MatchingFailedException(ReferralException):
    """Raised when the match or session recorder refuses an event"""
    def __init__(self, event: str, referral_id: int):
        super().__init__(
            ErrorKind.MATCHING_FAILED,
            f"Could not record {event} for referral {referral_id}",
        )
