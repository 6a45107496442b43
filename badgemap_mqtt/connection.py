"""
MQTT Connection
===============

Bounded Context: MQTT Infrastructure

Client lifecycle shared by the subscriber and every publisher.

Design:
- One paho client per role (callback API v2)
- Connected state tracked in a threading.Event set/cleared by callbacks
- _after_connect() hook runs on every (re)connect (subscriptions live there)
- Network loop runs in paho's own thread (loop_start)
"""

import threading
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .logging import StructuredLogger, LogEvent


class MQTTConnection:
    """
    Owns a paho client and its connection state.

    Attributes:
        broker_host: MQTT broker hostname
        broker_port: MQTT broker port
        client_id: MQTT client identifier
        qos: Quality of Service used by the role
        logger: Structured logger instance
        client: Underlying paho client
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        client_id: str,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.logger = logger
        self.qos = qos

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = threading.Event()
        self._stats_lock = threading.Lock()

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def _describe(self) -> Dict[str, Any]:
        """Metadata attached to connection log lines."""
        return {'broker': self.broker, 'client_id': self.client_id}

    def _after_connect(self, client: mqtt.Client) -> None:
        """Called on every successful (re)connect."""

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Broker refused connection ({reason_code})",
                metadata=self._describe()
            )
            return

        self._connected.set()
        self._after_connect(client)
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata=self._describe()
        )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Lost connection to MQTT broker",
            metadata=dict(self._describe(), reason_code=str(reason_code))
        )

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Open the connection and start the network loop.

        Args:
            timeout: Seconds to wait for the broker's CONNACK

        Returns:
            True once connected, False on refusal, timeout or socket error
        """
        try:
            self.client.connect(self.broker_host, self.broker_port)
        except OSError as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Could not reach broker",
                exc_info=e,
                metadata=self._describe()
            )
            return False

        self.client.loop_start()
        if self._connected.wait(timeout=timeout):
            return True

        self.logger.error(
            event=LogEvent.MQTT_CONNECTION_ERROR,
            message=f"No CONNACK within {timeout}s",
            metadata=self._describe()
        )
        return False

    def close(self) -> None:
        """Stop the network loop and disconnect."""
        self.client.loop_stop()
        self.client.disconnect()
        self._connected.clear()

    def is_connected(self) -> bool:
        return self._connected.is_set()
