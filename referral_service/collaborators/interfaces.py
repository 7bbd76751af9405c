"""Contracts of the services a referral store depends on"""
from dataclasses import dataclass
from typing import Protocol


class IdentityRegistry(Protocol):
    """Answers which role a principal is registered with"""

    def has_role(self, principal: str, role: str) -> bool:
        ...


class CounselorVerifier(Protocol):
    """Answers whether a counselor's credentials have been verified"""

    def is_verified(self, principal: str) -> bool:
        ...


class MatchRecorder(Protocol):
    """Logs counselor/referral pairings. False means the pairing was not recorded."""

    def record_match(self, referral_id: int, counselor_id: str) -> bool:
        ...


class SessionRecorder(Protocol):
    """Logs session start and completion. False means the event was not recorded."""

    def record_start(self, referral_id: int) -> bool:
        ...

    def record_complete(self, referral_id: int) -> bool:
        ...


@dataclass(frozen=True)
class Collaborators:
    """The four external services a referral store talks to"""
    identity_registry: IdentityRegistry
    counselor_verifier: CounselorVerifier
    match_recorder: MatchRecorder
    session_recorder: SessionRecorder
