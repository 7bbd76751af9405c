"""Match and session recorders backed by the event bus"""
from referral_service.messaging.rabbitmq import RabbitMQPublisher


class MatchEventRecorder:
    """Publishes counselor/referral pairings"""

    def __init__(self, publisher: RabbitMQPublisher):
        self.publisher = publisher

    def record_match(self, referral_id: int, counselor_id: str) -> bool:
        message = {
            "event": "referral.matched",
            "data": {"referral_id": referral_id, "counselor_id": counselor_id},
        }
        return self.publisher.publish("referral.matched", message)


class SessionEventRecorder:
    """Publishes counseling session start and completion"""

    def __init__(self, publisher: RabbitMQPublisher):
        self.publisher = publisher

    def record_start(self, referral_id: int) -> bool:
        return self._publish("referral.session.started", referral_id)

    def record_complete(self, referral_id: int) -> bool:
        return self._publish("referral.session.completed", referral_id)

    def _publish(self, event: str, referral_id: int) -> bool:
        message = {"event": event, "data": {"referral_id": referral_id}}
        return self.publisher.publish(event, message)
