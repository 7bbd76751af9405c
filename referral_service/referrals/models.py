"""Referral database models"""
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, Boolean, Float, ForeignKey
from referral_service.db.base import Base


class ReferralStatus(str, Enum):
    """Lifecycle stages of a referral"""
    OPEN = "open"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CLOSED = "closed"
    REJECTED = "rejected"


class Language(str, Enum):
    ENGLISH = "english"
    SPANISH = "spanish"
    FRENCH = "french"
    OTHER = "other"


class ReferralType(str, Enum):
    TRAUMA = "trauma"
    ANXIETY = "anxiety"
    DEPRESSION = "depression"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    WAIVED = "waived"


class Referral(Base):
    """
    A victim's request for counseling, tracked from open to closed.
    Ids are assigned by the store, densely from 0; rows are never deleted.
    """
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True, autoincrement=False)
    victim_id = Column(String(255), nullable=False, index=True)
    counselor_id = Column(String(255), nullable=True, index=True)
    status = Column(String(50), default=ReferralStatus.OPEN.value, nullable=False, index=True)
    created_at = Column(Integer, nullable=False)  # logical time, Unix seconds
    needs = Column(Text, nullable=False)
    language = Column(String(20), nullable=False)
    expertise = Column(Text, nullable=False)
    priority = Column(Integer, nullable=False)  # 1-5
    anonymity_level = Column(Integer, nullable=False)  # 0-3
    location = Column(Text, nullable=False)
    availability = Column(Text, nullable=False)
    followup_required = Column(Boolean, nullable=False, default=False)
    emergency_flag = Column(Boolean, nullable=False, default=False)
    feedback_score = Column(Integer, nullable=True)  # 1-5, set once completed
    referral_type = Column(String(20), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes, 15-120
    cost = Column(Float, nullable=False)
    payment_status = Column(String(20), nullable=False)


class ReferralUpdate(Base):
    """Most recent transition of a referral; overwritten on every recorded change"""
    __tablename__ = "referral_updates"

    referral_id = Column(Integer, ForeignKey("referrals.id"), primary_key=True)
    update_status = Column(String(50), nullable=False)
    update_timestamp = Column(Integer, nullable=False)
    updater = Column(String(255), nullable=False)
    update_reason = Column(Text, nullable=False)
