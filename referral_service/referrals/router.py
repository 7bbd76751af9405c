import os
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from referral_service.db.postgres import get_db
from referral_service.collaborators import Collaborators, get_collaborators
from referral_service.referrals.exceptions import ReferralNotFoundException
from referral_service.referrals.models import Referral, ReferralUpdate
from referral_service.referrals.satisfaction import get_satisfaction_level
from referral_service.referrals.service import DEFAULT_MAX_REFERRALS, ReferralStore
from referral_service.referrals.schemas import (
    AcceptReferralRequest,
    CreateReferralRequest,
    CreateReferralResponse,
    FeedbackRequest,
    OperationResponse,
    ReasonRequest,
    ReferralResponse,
    ReferralUpdateResponse,
    UpdateStatusRequest,
    VictimReferralsResponse,
)
from referral_service.auth.middleware import JWTPayload, verify_token, check_permission

router = APIRouter(
    prefix="/referrals",
    tags=["referrals"],
)


def get_referral_store(
    db: AsyncSession = Depends(get_db),
    collaborators: Collaborators = Depends(get_collaborators),
) -> ReferralStore:
    """Dependency building the store for one request"""
    max_referrals = int(os.getenv("MAX_REFERRALS", DEFAULT_MAX_REFERRALS))
    return ReferralStore(db, collaborators, max_referrals=max_referrals)


def to_response(referral: Referral) -> ReferralResponse:
    """Convert Referral model to response schema"""
    satisfaction_level = get_satisfaction_level(referral.feedback_score)
    return ReferralResponse(
        id=referral.id,
        victim_id=referral.victim_id,
        counselor_id=referral.counselor_id,
        status=referral.status,
        created_at=referral.created_at,
        needs=referral.needs,
        language=referral.language,
        expertise=referral.expertise,
        priority=referral.priority,
        anonymity_level=referral.anonymity_level,
        location=referral.location,
        availability=referral.availability,
        followup_required=referral.followup_required,
        emergency_flag=referral.emergency_flag,
        feedback_score=referral.feedback_score,
        satisfaction_level=satisfaction_level.value if satisfaction_level else None,
        referral_type=referral.referral_type,
        duration=referral.duration,
        cost=referral.cost,
        payment_status=referral.payment_status,
    )


def to_update_response(update: ReferralUpdate) -> ReferralUpdateResponse:
    return ReferralUpdateResponse(
        referral_id=update.referral_id,
        update_status=update.update_status,
        update_timestamp=update.update_timestamp,
        updater=update.updater,
        update_reason=update.update_reason,
    )


@router.post("/", response_model=CreateReferralResponse, status_code=status.HTTP_201_CREATED)
async def create_referral(
    request: CreateReferralRequest,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Open a referral on behalf of the calling victim.

    Required permission: referral:create (VICTIM role)
    """
    check_permission(jwt_payload, "referral:create")

    referral_id = await store.create_referral(
        victim_id=jwt_payload.user_id,
        **request.model_dump(),
    )

    return CreateReferralResponse(referral_id=referral_id)


@router.get("/victims/{victim_id}", response_model=VictimReferralsResponse)
async def get_victim_referrals(
    victim_id: str,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    List the referral ids a victim created, oldest first.

    Required permission: referral:read
    """
    check_permission(jwt_payload, "referral:read")

    referral_ids = await store.get_updates_for_victim(victim_id)
    return VictimReferralsResponse(victim_id=victim_id, referral_ids=referral_ids, count=len(referral_ids))


@router.get("/{referral_id}", response_model=ReferralResponse)
async def get_referral(
    referral_id: int,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Get referral details.

    Required permission: referral:read
    """
    check_permission(jwt_payload, "referral:read")

    referral = await store.get_referral(referral_id)
    if not referral:
        raise ReferralNotFoundException(referral_id)

    return to_response(referral)


@router.get("/{referral_id}/update", response_model=ReferralUpdateResponse)
async def get_referral_update(
    referral_id: int,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Get the latest recorded transition of a referral.

    Required permission: referral:read
    """
    check_permission(jwt_payload, "referral:read")

    if not await store.get_referral(referral_id):
        raise ReferralNotFoundException(referral_id)

    update = await store.get_referral_update(referral_id)
    if not update:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Referral {referral_id} has no update record yet",
        )

    return to_update_response(update)


@router.put("/{referral_id}/accept", response_model=OperationResponse)
async def accept_referral(
    referral_id: int,
    request: AcceptReferralRequest,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Accept an open referral.

    Required permission: referral:accept (COUNSELOR role)
    """
    check_permission(jwt_payload, "referral:accept")

    await store.accept_referral(
        referral_id,
        counselor_id=request.counselor_id or jwt_payload.user_id,
        caller=jwt_payload.user_id,
    )
    return OperationResponse(referral_id=referral_id)


@router.put("/{referral_id}/status", response_model=OperationResponse)
async def update_referral_status(
    referral_id: int,
    request: UpdateStatusRequest,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Move a referral to another status (victim or assigned counselor).

    Required permission: referral:update
    """
    check_permission(jwt_payload, "referral:update")

    await store.update_referral_status(
        referral_id,
        new_status=request.status,
        reason=request.reason,
        caller=jwt_payload.user_id,
    )
    return OperationResponse(referral_id=referral_id)


@router.put("/{referral_id}/feedback", response_model=OperationResponse)
async def provide_feedback(
    referral_id: int,
    request: FeedbackRequest,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Rate a completed referral (victim only).

    Required permission: referral:feedback (VICTIM role)
    """
    check_permission(jwt_payload, "referral:feedback")

    await store.provide_feedback(referral_id, score=request.score, caller=jwt_payload.user_id)
    return OperationResponse(referral_id=referral_id)


@router.put("/{referral_id}/close", response_model=OperationResponse)
async def close_referral(
    referral_id: int,
    request: ReasonRequest,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Close a referral (victim or assigned counselor).

    Required permission: referral:update
    """
    check_permission(jwt_payload, "referral:update")

    await store.close_referral(referral_id, reason=request.reason, caller=jwt_payload.user_id)
    return OperationResponse(referral_id=referral_id)


@router.put("/{referral_id}/reject", response_model=OperationResponse)
async def reject_referral(
    referral_id: int,
    request: ReasonRequest,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Hand an accepted referral back (assigned counselor only).

    Required permission: referral:accept (COUNSELOR role)
    """
    check_permission(jwt_payload, "referral:accept")

    await store.reject_referral(referral_id, reason=request.reason, caller=jwt_payload.user_id)
    return OperationResponse(referral_id=referral_id)


@router.put("/{referral_id}/session/start", response_model=OperationResponse)
async def start_session(
    referral_id: int,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Start the counseling session of an accepted referral.

    Required permission: referral:session
    """
    check_permission(jwt_payload, "referral:session")

    await store.start_session(referral_id)
    return OperationResponse(referral_id=referral_id)


@router.put("/{referral_id}/session/complete", response_model=OperationResponse)
async def complete_session(
    referral_id: int,
    store: ReferralStore = Depends(get_referral_store),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Complete the counseling session of an in-progress referral.

    Required permission: referral:session
    """
    check_permission(jwt_payload, "referral:session")

    await store.complete_session(referral_id)
    return OperationResponse(referral_id=referral_id)
