"""RabbitMQ publisher for referral events"""
import os
import json
import logging
import pika
from pika.exceptions import AMQPError
from typing import Dict

logger = logging.getLogger(__name__)


class RabbitMQPublisher:
    """Publishes JSON messages to a durable topic exchange"""

    def __init__(self, exchange: str = None):
        self.host = os.getenv("RABBITMQ_HOST", "localhost")
        self.port = int(os.getenv("RABBITMQ_PORT", "5672"))
        self.user = os.getenv("RABBITMQ_USER", "guest")
        self.password = os.getenv("RABBITMQ_PASSWORD", "guest")
        self.exchange = exchange or os.getenv("RABBITMQ_REFERRAL_EXCHANGE", "referral.events")

    def _parameters(self) -> pika.ConnectionParameters:
        credentials = pika.PlainCredentials(self.user, self.password)
        return pika.ConnectionParameters(
            host=self.host,
            port=self.port,
            credentials=credentials,
            heartbeat=600,
            blocked_connection_timeout=300
        )

    def publish(self, routing_key: str, message: Dict) -> bool:
        """Publish one message. Returns False if the broker could not take it."""
        try:
            connection = pika.BlockingConnection(self._parameters())
            try:
                channel = connection.channel()
                channel.exchange_declare(
                    exchange=self.exchange,
                    exchange_type='topic',
                    durable=True
                )
                channel.basic_publish(
                    exchange=self.exchange,
                    routing_key=routing_key,
                    body=json.dumps(message),
                    properties=pika.BasicProperties(
                        content_type="application/json",
                        delivery_mode=2,
                    ),
                )
            finally:
                connection.close()
        except AMQPError as e:
            logger.error(f"Failed to publish {routing_key} to {self.exchange}: {e}")
            return False

        logger.info(f"Published {routing_key} to {self.exchange}")
        return True
