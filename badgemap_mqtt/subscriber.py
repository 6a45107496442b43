"""
MQTT Subscriber
==============

Bounded Context: Message Consumption

Receives badge positions, zone definitions, crossing events and bulk
imports and hands each decoded payload to the engine.

Design:
- One client, several topics; each topic maps to one message kind
- JSON decoding here, canonicalization downstream (normalizer)
- on_message(kind, data) runs in the paho network thread, which makes it
  the single writer for the engine
- Undecodable payloads and handler failures are logged and counted as
  dropped, never re-raised

Architecture:
    MQTT Broker → TrackingSubscriber → on_message(kind, data) → TrackingEngine

Example:
    >>> subscriber = TrackingSubscriber(
    ...     broker_host="localhost",
    ...     topics={
    ...         "badgemap/floor_3/badges": "position_update",
    ...         "badgemap/floor_3/events": "crossing_event",
    ...     },
    ...     on_message=engine.handle,
    ...     logger=create_logger("subscriber"),
    ... )
    >>> subscriber.connect()
    >>> subscriber.start()
"""

import json
from typing import Any, Callable, Dict, Optional

import paho.mqtt.client as mqtt

from .connection import MQTTConnection
from .logging import StructuredLogger, LogEvent


class TrackingSubscriber(MQTTConnection):
    """
    Routes inbound topics to message kinds.

    Attributes:
        topics: topic -> message kind
        on_message: Callback invoked with (kind, decoded payload)
    """

    def __init__(
        self,
        broker_host: str,
        topics: Dict[str, str],
        on_message: Callable[[str, Any], Any],
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "badgemap_subscriber",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
    ):
        if not topics:
            raise ValueError("At least one topic is required")

        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.topics = dict(topics)
        self.on_message = on_message
        self.client.on_message = self._on_message

        self._running = False
        self._received: Dict[str, int] = {kind: 0 for kind in self.topics.values()}
        self._dropped = 0

    def _describe(self) -> Dict[str, Any]:
        return dict(super()._describe(), topics=sorted(self.topics))

    def _after_connect(self, client: mqtt.Client) -> None:
        # Subscriptions do not survive a clean reconnect
        for topic in self.topics:
            client.subscribe(topic, qos=self.qos)

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        self.handle_payload(msg.topic, msg.payload)

    def handle_payload(self, topic: str, payload: bytes) -> bool:
        """
        Decode one raw payload and hand it to on_message.

        Args:
            topic: Topic the payload arrived on
            payload: Raw bytes

        Returns:
            True if the callback handled the payload without raising
        """
        kind = self.topics.get(topic)
        if kind is None:
            self.logger.warning(
                event=LogEvent.MALFORMED_MESSAGE,
                message=f"Ignoring message on unrouted topic {topic}"
            )
            return False

        try:
            data = json.loads(payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            with self._stats_lock:
                self._dropped += 1
            self.logger.warning(
                event=LogEvent.MALFORMED_MESSAGE,
                message=f"Dropped undecodable {kind} payload",
                exc_info=e,
                metadata={'topic': topic, 'size': len(payload)}
            )
            return False

        with self._stats_lock:
            self._received[kind] += 1

        self.logger.debug(
            event=LogEvent.MESSAGE_RECEIVED,
            message=f"Received {kind}",
            metadata={'topic': topic}
        )

        try:
            self.on_message(kind, data)
        except Exception as e:
            # Raising here would kill the paho network thread
            with self._stats_lock:
                self._dropped += 1
            self.logger.error(
                event=LogEvent.MESSAGE_HANDLER_ERROR,
                message=f"Error handling {kind} message",
                exc_info=e,
                metadata={'topic': topic}
            )
            return False
        return True

    def start(self) -> None:
        """Mark the subscriber as running (connect() already started the loop)."""
        if not self.is_connected():
            self.logger.warning(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Cannot start: not connected to broker"
            )
            return

        self._running = True
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Subscriber listening",
            metadata={'topics': sorted(self.topics)}
        )

    def stop(self) -> None:
        self._running = False
        self.close()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Subscriber stopped",
            metadata=self.get_stats()
        )

    def is_running(self) -> bool:
        return self._running

    def get_stats(self) -> Dict[str, Any]:
        """Per-kind receive counts, drops and connection status."""
        with self._stats_lock:
            return {
                'received': dict(self._received),
                'dropped': self._dropped,
                'connected': self.is_connected(),
                'running': self._running,
                'broker': self.broker
            }
