"""
View Publisher
==============

Bounded Context: Map Recentering

Publishes recenter signals (center + zoom) for the rendering side.
Messages are retained so a renderer that connects later still frames the
current floor plan.

Message Flow:
    TrackingEngine.on_recenter → ViewPublisher → MQTT Broker (retained)
"""

from typing import Dict, Any, Optional

from badgemap_zone.geometry import MapView

from .base import BasePublisher
from ..logging import StructuredLogger


class ViewPublisher(BasePublisher):
    """Publisher for MapView recenter signals."""

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "badgemap_view_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos,
            retain=True
        )

    def format_message(self, view: MapView) -> Dict[str, Any]:
        return {
            'center': [view.center_lat, view.center_lon],
            'zoom': view.zoom,
        }

    def publish_view(self, view: MapView) -> bool:
        return self.publish(self.format_message(view))
