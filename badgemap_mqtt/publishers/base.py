"""
Base MQTT Publisher
==================

Bounded Context: Message Production

Abstract base for the engine's outbound publishers.

Design:
- Connection lifecycle inherited from MQTTConnection
- One topic per publisher; retain chosen per publisher (view is retained,
  snapshots are not)
- Subclasses turn domain objects into dicts (format_message) and expose a
  typed publish_* entry point; this class owns JSON encoding and counters

Architecture:
    MQTTConnection
        ↓
    BasePublisher (abstract)
        ↓
    TestPositionPublisher, ViewPublisher, SnapshotPublisher
"""

import json
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

import paho.mqtt.client as mqtt

from ..connection import MQTTConnection
from ..logging import StructuredLogger, LogEvent


class BasePublisher(MQTTConnection, ABC):
    """
    Publishes JSON messages to a single topic.

    Attributes:
        topic: Destination topic
        retain: Default retain flag

    Example:
        >>> class EchoPublisher(BasePublisher):
        ...     def format_message(self, text):
        ...         return {"text": text}
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        topic: str,
        client_id: str,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
        retain: bool = False
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.topic = topic
        self.retain = retain
        self._published = 0
        self._failed = 0

    def _describe(self) -> Dict[str, Any]:
        return dict(super()._describe(), topic=self.topic)

    @abstractmethod
    def format_message(self, *args, **kwargs) -> Dict[str, Any]:
        """Turn a domain object into a JSON-compatible dict."""
        raise NotImplementedError("Subclasses must implement format_message()")

    def publish(
        self,
        message_data: Dict[str, Any],
        retain: Optional[bool] = None
    ) -> bool:
        """
        Encode and send one message.

        Args:
            message_data: Output of format_message()
            retain: Overrides the publisher's retain flag when given

        Returns:
            True if paho accepted the message, False otherwise
        """
        if not self.is_connected():
            self._count_failure()
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Dropped message: not connected",
                metadata={'topic': self.topic}
            )
            return False

        try:
            payload = json.dumps(message_data)
        except (TypeError, ValueError) as e:
            self._count_failure()
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Message is not JSON-serializable",
                exc_info=e,
                metadata={'topic': self.topic}
            )
            return False

        try:
            info = self.client.publish(
                self.topic,
                payload,
                qos=self.qos,
                retain=self.retain if retain is None else retain
            )
        except ValueError as e:
            # paho rejects wildcard topics and oversized payloads
            self._count_failure()
            self.logger.error(
                event=LogEvent.MQTT_PUBLISH_ERROR,
                message="paho refused message",
                exc_info=e,
                metadata={'topic': self.topic}
            )
            return False

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self._count_failure()
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"paho publish returned rc={info.rc}",
                metadata={'topic': self.topic}
            )
            return False

        with self._stats_lock:
            self._published += 1
            published = self._published

        self.logger.debug(
            event=LogEvent.MQTT_PUBLISH_SUCCESS,
            message="Message handed to paho",
            metadata={'topic': self.topic, 'published': published, 'bytes': len(payload)}
        )
        return True

    def _count_failure(self) -> None:
        with self._stats_lock:
            self._failed += 1

    def disconnect(self) -> None:
        self.close()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Publisher closed",
            metadata=self.get_stats()
        )

    def get_stats(self) -> Dict[str, Any]:
        """Counters for the shutdown summary."""
        with self._stats_lock:
            return {
                'topic': self.topic,
                'message_count': self._published,
                'failed_count': self._failed,
                'connected': self.is_connected(),
                'broker': self.broker
            }
