#!/usr/bin/env python3
"""
Tracking Engine Service - Entry Point
=====================================

This script starts the Badgemap tracking engine, which:
- Consumes badge positions, zone definitions, crossing events and bulk
  imports from MQTT
- Maintains badges, geofences, status and the event log in memory
- Publishes recenter signals, test position commands and periodic render
  snapshots to MQTT

Usage:
    python run_tracking_engine.py --config config/engine_config.yaml

Architecture:
    - TrackingEngine: State + correlation (badgemap_engine)
    - TrackingSubscriber: Inbound topics (badgemap_mqtt)
    - ViewPublisher / TestPositionPublisher / SnapshotPublisher (badgemap_mqtt)

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create publishers, engine and subscriber
    4. Connect and start
    5. Publish snapshots every snapshot_interval_s until stopped
    6. Graceful shutdown

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown
"""

import argparse
import signal
import sys
import logging
import threading
from pathlib import Path
from typing import List, Optional

from badgemap_engine import EngineConfig, MessageKind, TrackingEngine
from badgemap_mqtt import (
    BasePublisher,
    SnapshotPublisher,
    TestPositionPublisher,
    TrackingSubscriber,
    ViewPublisher,
    create_logger,
)


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging for the engine service.

    Args:
        log_file: Optional path to log file

    Returns:
        Logger instance for the service
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class EngineApp:
    """
    Main application wrapper for TrackingEngine.

    Handles:
    - Configuration loading
    - Component wiring (engine, subscriber, publishers)
    - Snapshot timer
    - Signal handling and graceful shutdown
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        self.config_path = config_path
        self.logger = setup_logging(log_file)

        # Components (initialized in setup())
        self.config: Optional[EngineConfig] = None
        self.engine: Optional[TrackingEngine] = None
        self.subscriber: Optional[TrackingSubscriber] = None
        self.view_publisher: Optional[ViewPublisher] = None
        self.test_position_publisher: Optional[TestPositionPublisher] = None
        self.snapshot_publisher: Optional[SnapshotPublisher] = None

        self._stop = threading.Event()
        self._shutdown_requested = False

    @property
    def publishers(self) -> List[BasePublisher]:
        return [
            p for p in (
                self.view_publisher,
                self.test_position_publisher,
                self.snapshot_publisher,
            )
            if p is not None
        ]

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Load configuration from YAML
        2. Create publishers
        3. Create TrackingEngine wired to the publishers
        4. Create subscriber routing topics to the engine
        """
        self.logger.info("=" * 80)
        self.logger.info("Badgemap Tracking Engine - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"Loading configuration: {self.config_path}")
        self.config = EngineConfig.from_yaml(self.config_path)
        self.logger.info(f"Configuration loaded (service_id={self.config.service_id})")

        mqtt = self.config.mqtt_config
        service_id = self.config.service_id
        mqtt_logger = create_logger(component="mqtt")
        auth = {'username': mqtt.username, 'password': mqtt.password}

        self.view_publisher = ViewPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=mqtt.topic("view_topic", service_id),
            logger=mqtt_logger,
            client_id=f"publisher_view_{service_id}",
            **auth
        )
        self.test_position_publisher = TestPositionPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=mqtt.topic("test_position_topic", service_id),
            logger=mqtt_logger,
            client_id=f"publisher_test_position_{service_id}",
            **auth
        )
        self.snapshot_publisher = SnapshotPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=mqtt.topic("snapshot_topic", service_id),
            logger=mqtt_logger,
            client_id=f"publisher_snapshot_{service_id}",
            qos=mqtt.qos,
            **auth
        )

        self.engine = TrackingEngine(
            config=self.config,
            structured_logger=create_logger(component="engine"),
            on_recenter=self.view_publisher.publish_view,
            on_test_position=self.test_position_publisher.publish_command,
        )

        topics = {
            mqtt.topic("badge_topic", service_id): MessageKind.POSITION_UPDATE.value,
            mqtt.topic("geofence_topic", service_id): MessageKind.ZONE_DEFINITION.value,
            mqtt.topic("event_topic", service_id): MessageKind.CROSSING_EVENT.value,
            mqtt.topic("import_topic", service_id): MessageKind.BULK_IMPORT.value,
        }
        self.subscriber = TrackingSubscriber(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topics=topics,
            on_message=self.engine.handle,
            logger=mqtt_logger,
            client_id=f"subscriber_{service_id}",
            qos=mqtt.qos,
            **auth
        )

        for topic, kind in topics.items():
            self.logger.info(f"  - {kind}: {topic}")
        self.logger.info("=" * 80)

    def run(self):
        """
        Connect everything and publish snapshots until stopped.
        """
        if not self.engine:
            raise RuntimeError("Engine not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        for publisher in self.publishers:
            if not publisher.connect():
                raise RuntimeError(f"Could not connect publisher for {publisher.topic}")

        if not self.subscriber.connect():
            raise RuntimeError("Could not connect subscriber")
        self.subscriber.start()

        self.logger.info("Service started successfully")
        self.logger.info("Press Ctrl+C to stop")

        interval = self.config.snapshot_interval_s
        while not self._stop.wait(timeout=interval):
            self.snapshot_publisher.publish_snapshot(self.engine.snapshot())

    def shutdown(self):
        """
        Graceful shutdown.

        Order:
        1. Stop snapshot loop
        2. Stop subscriber (no more inbound mutations)
        3. Disconnect publishers
        """
        if self._shutdown_requested:
            self.logger.warning("Shutdown already in progress")
            return

        self._shutdown_requested = True
        self._stop.set()

        self.logger.info("=" * 80)
        self.logger.info("Shutting down tracking engine")

        if self.subscriber:
            self.subscriber.stop()

        for publisher in self.publishers:
            publisher.disconnect()

        if self.engine:
            self.logger.info(f"Message counters: {self.engine.get_stats()}")

        self.logger.info("Shutdown complete")
        self.logger.info("=" * 80)

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received signal {signal_name} ({signum})")
        self.shutdown()


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace with parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Badgemap Tracking Engine - badges + geofences + MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with the sample config
  python run_tracking_engine.py --config config/engine_config.yaml

  # Console logging only
  python run_tracking_engine.py --config config/engine_config.yaml --no-log-file
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to engine configuration YAML file'
    )

    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/engine.log'),
        help='Path to log file (default: logs/engine.log)'
    )

    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )

    return parser.parse_args(argv)


def main():
    args = parse_args()

    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = EngineApp(config_path=args.config, log_file=log_file)

    try:
        app.setup()
        app.run()
    except (RuntimeError, ValueError, OSError) as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        app.shutdown()
        sys.exit(1)


if __name__ == '__main__':
    main()
