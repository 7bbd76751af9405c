"""Validation logic for referrals"""
import numbers

from referral_service.referrals.exceptions import (
    ErrorKind,
    InvalidStatusException,
    ReferralValidationException,
)
from referral_service.referrals.models import (
    Language,
    PaymentStatus,
    ReferralStatus,
    ReferralType,
)

MAX_COST = 10000


class ReferralValidator:
    """Validates referral field values and transition inputs"""

    VALID_LANGUAGES = [language.value for language in Language]
    VALID_REFERRAL_TYPES = [referral_type.value for referral_type in ReferralType]
    VALID_PAYMENT_STATUSES = [payment.value for payment in PaymentStatus]
    VALID_STATUSES = [status.value for status in ReferralStatus]

    def validate_new_referral(
        self,
        needs: str,
        language: str,
        expertise: str,
        priority: int,
        anonymity_level: int,
        location: str,
        availability: str,
        referral_type: str,
        duration: int,
        cost: float,
        payment_status: str,
    ) -> None:
        """
        Check the fields of a new referral.

        Checks run in a fixed order and the first failure is raised, so a
        request with several bad fields always reports the same one.
        """
        self._require_text(needs, ErrorKind.INVALID_NEEDS, "needs")
        self._require_choice(language, self.VALID_LANGUAGES, ErrorKind.INVALID_LANGUAGE, "language")
        self._require_text(expertise, ErrorKind.INVALID_EXPERTISE, "expertise")
        self._require_int_range(priority, 1, 5, ErrorKind.INVALID_PRIORITY, "priority")
        self._require_int_range(anonymity_level, 0, 3, ErrorKind.INVALID_ANONYMITY_LEVEL, "anonymity_level")
        self._require_text(location, ErrorKind.INVALID_LOCATION, "location")
        self._require_text(availability, ErrorKind.INVALID_AVAILABILITY, "availability")
        self._require_choice(
            referral_type, self.VALID_REFERRAL_TYPES, ErrorKind.INVALID_REFERRAL_TYPE, "referral_type"
        )
        self._require_int_range(duration, 15, 120, ErrorKind.INVALID_DURATION, "duration")
        self._require_range(cost, 0, MAX_COST, ErrorKind.INVALID_COST, "cost")
        self._require_choice(
            payment_status, self.VALID_PAYMENT_STATUSES, ErrorKind.INVALID_PAYMENT_STATUS, "payment_status"
        )

    def validate_status(self, status: str) -> None:
        """Validate status value"""
        if status not in self.VALID_STATUSES:
            raise InvalidStatusException(status)

    def validate_reason(self, reason: str) -> None:
        """Validate a transition reason is present"""
        self._require_text(reason, ErrorKind.INVALID_UPDATE_REASON, "reason")

    def validate_feedback_score(self, score: int) -> None:
        """Validate feedback score is 1-5"""
        self._require_int_range(score, 1, 5, ErrorKind.INVALID_FEEDBACK, "score")

    @staticmethod
    def _require_text(value: str, kind: ErrorKind, field: str) -> None:
        if not value:
            raise ReferralValidationException(kind, field, value)

    @staticmethod
    def _require_choice(value: str, choices: list, kind: ErrorKind, field: str) -> None:
        if value not in choices:
            raise ReferralValidationException(kind, field, value)

    @staticmethod
    def _require_int_range(value, low: int, high: int, kind: ErrorKind, field: str) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
            raise ReferralValidationException(kind, field, value)

    @staticmethod
    def _require_range(value, low, high, kind: ErrorKind, field: str) -> None:
        # bool is a numbers.Real
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not low <= value <= high:
            raise ReferralValidationException(kind, field, value)
