"""Referral store: lifecycle rules for victim-to-counselor referrals"""
import asyncio
import logging
import time
import weakref
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from referral_service.collaborators.interfaces import Collaborators
from referral_service.referrals.exceptions import (
    ErrorKind,
    InvalidStatusException,
    MatchingFailedException,
    NotAuthorizedException,
    ReferralException,
    ReferralNotFoundException,
)
from referral_service.referrals.models import Referral, ReferralStatus, ReferralUpdate
from referral_service.referrals.repository import ReferralRepository
from referral_service.referrals.validators import ReferralValidator

logger = logging.getLogger(__name__)

DEFAULT_MAX_REFERRALS = 10000
VICTIM_ROLE = "victim"
ACCEPTED_REASON = "Counselor accepted the referral"

# One writer at a time for the whole referral table, per event loop
_referral_locks = weakref.WeakKeyDictionary()


def get_referral_lock() -> asyncio.Lock:
    """Lock shared by every store running on the current event loop"""
    loop = asyncio.get_running_loop()
    lock = _referral_locks.get(loop)
    if lock is None:
        lock = _referral_locks[loop] = asyncio.Lock()
    return lock


def unix_clock() -> int:
    return int(time.time())


class ReferralStore:
    """
    Owns referrals, their latest update record and the per-victim index.

    Every mutating operation runs under a single lock and checks all of its
    preconditions before touching state, so a refused call leaves nothing
    behind. Refusals are raised as ReferralException carrying an ErrorKind.
    """

    def __init__(
        self,
        db: AsyncSession,
        collaborators: Collaborators,
        max_referrals: int = DEFAULT_MAX_REFERRALS,
        lock: Optional[asyncio.Lock] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.db = db
        self.repository = ReferralRepository(db)
        self.validator = ReferralValidator()
        self.collaborators = collaborators
        self.max_referrals = max_referrals
        self.lock = lock
        self.clock = clock or unix_clock

    @asynccontextmanager
    async def _exclusive(self, operation: str, referral_id=None):
        async with self.lock or get_referral_lock():
            try:
                yield
            except ReferralException as exc:
                logger.warning(f"{operation} refused (referral={referral_id}): {exc.kind.label}")
                raise

    async def _load(self, referral_id: int) -> Referral:
        referral = await self.repository.get_by_id(referral_id)
        if not referral:
            raise ReferralNotFoundException(referral_id)
        return referral

    def _update_record(self, referral_id: int, status: str, caller: str, reason: str) -> ReferralUpdate:
        return ReferralUpdate(
            referral_id=referral_id,
            update_status=status,
            update_timestamp=self.clock(),
            updater=caller,
            update_reason=reason,
        )

    @staticmethod
    def _is_party(referral: Referral, caller: str) -> bool:
        return caller == referral.victim_id or caller == referral.counselor_id

    async def create_referral(
        self,
        victim_id: str,
        needs: str,
        language: str,
        expertise: str,
        priority: int,
        anonymity_level: int,
        location: str,
        availability: str,
        followup_required: bool,
        emergency_flag: bool,
        referral_type: str,
        duration: int,
        cost: float,
        payment_status: str,
    ) -> int:
        """
        Create an open referral for a registered victim.

        Steps:
        1. Check capacity
        2. Validate fields in their fixed order
        3. Confirm the victim is registered
        4. Store the referral under the next id

        Returns the new referral id.
        """
        async with self._exclusive("create_referral"):
            next_id = await self.repository.count()
            if next_id >= self.max_referrals:
                raise ReferralException(
                    ErrorKind.MAX_REFERRALS_EXCEEDED,
                    f"Referral capacity of {self.max_referrals} reached",
                )

            self.validator.validate_new_referral(
                needs=needs,
                language=language,
                expertise=expertise,
                priority=priority,
                anonymity_level=anonymity_level,
                location=location,
                availability=availability,
                referral_type=referral_type,
                duration=duration,
                cost=cost,
                payment_status=payment_status,
            )

            if not self.collaborators.identity_registry.has_role(victim_id, VICTIM_ROLE):
                raise ReferralException(
                    ErrorKind.VICTIM_NOT_REGISTERED,
                    f"{victim_id} is not registered as a victim",
                )

            referral = Referral(
                id=next_id,
                victim_id=victim_id,
                counselor_id=None,
                status=ReferralStatus.OPEN.value,
                created_at=self.clock(),
                needs=needs,
                language=language,
                expertise=expertise,
                priority=priority,
                anonymity_level=anonymity_level,
                location=location,
                availability=availability,
                followup_required=followup_required,
                emergency_flag=emergency_flag,
                feedback_score=None,
                referral_type=referral_type,
                duration=duration,
                cost=cost,
                payment_status=payment_status,
            )
            await self.repository.create(referral)

        logger.info(f"Referral {next_id} created for victim {victim_id}")
        return next_id

    async def accept_referral(self, referral_id: int, counselor_id: str, caller: str) -> bool:
        """
        Assign a verified counselor to an open referral.

        The pairing must be logged with the match recorder first; if that
        fails the referral stays open and unassigned.
        """
        async with self._exclusive("accept_referral", referral_id):
            referral = await self._load(referral_id)

            if referral.status != ReferralStatus.OPEN.value:
                raise InvalidStatusException(referral.status, expected="'open'")

            if not self.collaborators.counselor_verifier.is_verified(counselor_id):
                raise ReferralException(
                    ErrorKind.COUNSELOR_NOT_VERIFIED,
                    f"Counselor {counselor_id} is not verified",
                )

            if not self.collaborators.match_recorder.record_match(referral_id, counselor_id):
                raise MatchingFailedException("match", referral_id)

            referral.counselor_id = counselor_id
            referral.status = ReferralStatus.ACCEPTED.value
            await self.repository.update(
                referral,
                self._update_record(referral_id, ReferralStatus.ACCEPTED.value, caller, ACCEPTED_REASON),
            )

        logger.info(f"Referral {referral_id} accepted by counselor {counselor_id}")
        return True

    async def update_referral_status(self, referral_id: int, new_status: str, reason: str, caller: str) -> bool:
        """
        Move a referral to any other status.

        Only the victim or the assigned counselor may do this. The transition
        edge itself is not checked; only a move to the current status is refused.
        """
        async with self._exclusive("update_referral_status", referral_id):
            referral = await self._load(referral_id)

            if not self._is_party(referral, caller):
                raise NotAuthorizedException(caller, referral_id)

            self.validator.validate_status(new_status)
            self.validator.validate_reason(reason)

            if referral.status == new_status:
                raise ReferralException(
                    ErrorKind.STATUS_UPDATE_NOT_ALLOWED,
                    f"Referral {referral_id} is already '{new_status}'",
                )

            previous = referral.status
            referral.status = new_status
            await self.repository.update(
                referral,
                self._update_record(referral_id, new_status, caller, reason),
            )

        logger.info(f"Referral {referral_id} moved {previous} -> {new_status} by {caller}")
        return True

    async def provide_feedback(self, referral_id: int, score: int, caller: str) -> bool:
        """Victim rates a completed referral (1-5)"""
        async with self._exclusive("provide_feedback", referral_id):
            referral = await self._load(referral_id)

            if caller != referral.victim_id:
                raise NotAuthorizedException(caller, referral_id)

            if referral.status != ReferralStatus.COMPLETED.value:
                raise InvalidStatusException(referral.status, expected="'completed'")

            self.validator.validate_feedback_score(score)

            referral.feedback_score = score
            await self.repository.update(referral)

        logger.info(f"Feedback {score} recorded for referral {referral_id}")
        return True

    async def close_referral(self, referral_id: int, reason: str, caller: str) -> bool:
        """Victim or counselor closes a referral from any status but closed"""
        async with self._exclusive("close_referral", referral_id):
            referral = await self._load(referral_id)

            if not self._is_party(referral, caller):
                raise NotAuthorizedException(caller, referral_id)

            if referral.status == ReferralStatus.CLOSED.value:
                raise InvalidStatusException(referral.status, expected="any status but 'closed'")

            self.validator.validate_reason(reason)

            referral.status = ReferralStatus.CLOSED.value
            await self.repository.update(
                referral,
                self._update_record(referral_id, ReferralStatus.CLOSED.value, caller, reason),
            )

        logger.info(f"Referral {referral_id} closed by {caller}")
        return True

    async def reject_referral(self, referral_id: int, reason: str, caller: str) -> bool:
        """The assigned counselor hands an accepted referral back, unassigning themselves"""
        async with self._exclusive("reject_referral", referral_id):
            referral = await self._load(referral_id)

            if caller != referral.counselor_id:
                raise NotAuthorizedException(caller, referral_id)

            if referral.status != ReferralStatus.ACCEPTED.value:
                raise InvalidStatusException(referral.status, expected="'accepted'")

            self.validator.validate_reason(reason)

            referral.status = ReferralStatus.REJECTED.value
            referral.counselor_id = None
            await self.repository.update(
                referral,
                self._update_record(referral_id, ReferralStatus.REJECTED.value, caller, reason),
            )

        logger.info(f"Referral {referral_id} rejected by {caller}")
        return True

    async def start_session(self, referral_id: int) -> bool:
        """Begin counseling on an accepted referral"""
        # No caller check: any principal may start a session on an accepted referral.
        async with self._exclusive("start_session", referral_id):
            referral = await self._load(referral_id)

            if referral.status != ReferralStatus.ACCEPTED.value:
                raise InvalidStatusException(referral.status, expected="'accepted'")

            if not referral.counselor_id:
                raise ReferralException(
                    ErrorKind.COUNSELOR_NOT_VERIFIED,
                    f"Referral {referral_id} has no counselor",
                )

            if not self.collaborators.session_recorder.record_start(referral_id):
                raise MatchingFailedException("session start", referral_id)

            referral.status = ReferralStatus.IN_PROGRESS.value
            await self.repository.update(referral)

        logger.info(f"Session started for referral {referral_id}")
        return True

    async def complete_session(self, referral_id: int) -> bool:
        """Finish counseling on an in-progress referral"""
        async with self._exclusive("complete_session", referral_id):
            referral = await self._load(referral_id)

            if referral.status != ReferralStatus.IN_PROGRESS.value:
                raise InvalidStatusException(referral.status, expected="'in-progress'")

            if not self.collaborators.session_recorder.record_complete(referral_id):
                raise MatchingFailedException("session completion", referral_id)

            referral.status = ReferralStatus.COMPLETED.value
            await self.repository.update(referral)

        logger.info(f"Session completed for referral {referral_id}")
        return True

    async def get_referral(self, referral_id: int) -> Optional[Referral]:
        return await self.repository.get_by_id(referral_id)

    async def get_referral_update(self, referral_id: int) -> Optional[ReferralUpdate]:
        return await self.repository.get_update(referral_id)

    async def get_updates_for_victim(self, victim_id: str) -> List[int]:
        """Referral ids a victim has created, oldest first"""
        return await self.repository.get_ids_by_victim(victim_id)

    async def get_referral_counter(self) -> int:
        """Id the next referral will receive"""
        return await self.repository.count()
