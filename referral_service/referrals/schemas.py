"""Referral Pydantic schemas"""
from typing import List, Optional
from pydantic import BaseModel


class CreateReferralRequest(BaseModel):
    """
    Request to open a referral. The victim is the authenticated caller.

    Field ranges are checked by the store so that each bad field is reported
    with its own error kind.
    """
    needs: str
    language: str
    expertise: str
    priority: int
    anonymity_level: int
    location: str
    availability: str
    followup_required: bool = False
    emergency_flag: bool = False
    referral_type: str
    duration: int
    cost: float
    payment_status: str


class CreateReferralResponse(BaseModel):
    referral_id: int


class AcceptReferralRequest(BaseModel):
    """Accept a referral; counselor defaults to the caller"""
    counselor_id: Optional[str] = None


class UpdateStatusRequest(BaseModel):
    status: str
    reason: str


class ReasonRequest(BaseModel):
    """Reason for closing or rejecting a referral"""
    reason: str


class FeedbackRequest(BaseModel):
    score: int


class OperationResponse(BaseModel):
    """Acknowledgement of a successful transition"""
    referral_id: int
    success: bool = True


class ReferralResponse(BaseModel):
    """Referral response"""
    id: int
    victim_id: str
    counselor_id: Optional[str] = None
    status: str  # open | accepted | in-progress | completed | closed | rejected
    created_at: int
    needs: str
    language: str
    expertise: str
    priority: int
    anonymity_level: int
    location: str
    availability: str
    followup_required: bool
    emergency_flag: bool
    feedback_score: Optional[int] = None
    satisfaction_level: Optional[str] = None
    referral_type: str
    duration: int
    cost: float
    payment_status: str


class ReferralUpdateResponse(BaseModel):
    """Latest recorded transition of a referral"""
    referral_id: int
    update_status: str
    update_timestamp: int
    updater: str
    update_reason: str


class VictimReferralsResponse(BaseModel):
    victim_id: str
    referral_ids: List[int]
    count: int
