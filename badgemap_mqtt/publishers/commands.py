"""
Test Position Publisher
=======================

Bounded Context: Manual Badge Placement

Relays TestPositionCommand messages (emitted when an operator drags a badge
or edits its radius) to any backend that wants to replay them.

Message Flow:
    TrackingEngine.on_test_position → TestPositionPublisher → MQTT Broker
"""

from typing import Dict, Any, Optional

from .base import BasePublisher
from ..schemas import TestPositionCommand
from ..logging import StructuredLogger, LogEvent


class TestPositionPublisher(BasePublisher):
    """
    Publisher for manual badge position commands.

    Example:
        >>> publisher = TestPositionPublisher(
        ...     broker_host="localhost",
        ...     topic="badgemap/floor_3/test/badges",
        ...     logger=logger
        ... )
        >>> publisher.connect()
        >>> engine = TrackingEngine(on_test_position=publisher.publish_command)
    """
    __test__ = False  # not a pytest class

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "badgemap_test_position_publisher",
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
            qos=qos
        )

    def format_message(self, command: TestPositionCommand) -> Dict[str, Any]:
        """Format a command as {mac, latitude, longitude, radius}."""
        return command.to_dict()

    def publish_command(self, command: TestPositionCommand) -> bool:
        """
        Publish one test position command.

        Returns:
            True if published successfully, False otherwise
        """
        success = self.publish(self.format_message(command))
        if success:
            self.logger.info(
                event=LogEvent.TEST_POSITION_EMITTED,
                message="Published test position",
                metadata={'mac': command.mac, 'topic': self.topic}
            )
        return success
