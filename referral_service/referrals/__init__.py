from referral_service.referrals.repository import ReferralRepository
from referral_service.referrals.service import ReferralStore
from referral_service.referrals.models import Referral, ReferralStatus, ReferralUpdate
from referral_service.referrals.exceptions import ErrorKind, ReferralException

__all__ = [
    "ReferralRepository",
    "ReferralStore",
    "Referral",
    "ReferralStatus",
    "ReferralUpdate",
    "ErrorKind",
    "ReferralException",
]
