import os
from functools import lru_cache

from referral_service.collaborators.interfaces import Collaborators
from referral_service.collaborators.http_clients import (
    CounselorVerifierClient,
    IdentityRegistryClient,
)
from referral_service.collaborators.recorders import MatchEventRecorder, SessionEventRecorder
from referral_service.messaging.rabbitmq import RabbitMQPublisher


@lru_cache(maxsize=1)
def get_collaborators() -> Collaborators:
    """Build the production collaborators from the environment (once per process)"""
    publisher = RabbitMQPublisher()
    return Collaborators(
        identity_registry=IdentityRegistryClient(os.getenv("IDENTITY_REGISTRY_URL")),
        counselor_verifier=CounselorVerifierClient(os.getenv("COUNSELOR_VERIFIER_URL")),
        match_recorder=MatchEventRecorder(publisher),
        session_recorder=SessionEventRecorder(publisher),
    )


__all__ = ["Collaborators", "get_collaborators"]
