"""
Snapshot Publisher
==================

Bounded Context: Render Feed

Publishes periodic render snapshots (badges, geofences, colors, statistics,
recent events and notifications) for dashboards.

Design:
- Accepts any snapshot object exposing to_dict() (see
  badgemap_engine.RenderSnapshot), keeping the transport free of engine
  imports
- Adds a monotonically increasing sequence number per publisher
- Not retained; consumers that join late wait for the next tick

Message Flow:
    run_tracking_engine (timer) → engine.snapshot() → SnapshotPublisher → MQTT
"""

import itertools
from typing import Dict, Any, Optional

from .base import BasePublisher
from ..logging import StructuredLogger, LogEvent


class SnapshotPublisher(BasePublisher):
    """Publisher for render snapshots."""

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "badgemap_snapshot_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self._sequence = itertools.count(1)

    def format_message(self, snapshot: Any) -> Dict[str, Any]:
        """
        Serialize a snapshot and stamp it with a sequence number.

        Raises:
            ValueError: If the snapshot cannot be converted to a dict
        """
        try:
            formatted = snapshot.to_dict()
        except (AttributeError, TypeError) as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize snapshot",
                exc_info=e
            )
            raise ValueError(f"Failed to format snapshot: {e}") from e

        formatted['sequence'] = next(self._sequence)
        return formatted

    def publish_snapshot(self, snapshot: Any) -> bool:
        """
        Publish one render snapshot.

        Returns:
            True if published successfully, False otherwise
        """
        try:
            message_data = self.format_message(snapshot)
        except ValueError:
            return False
        return self.publish(message_data)
