"""
Configuration schema for the tracking engine service.

This module defines the configuration structure for the engine: retention
limits for the in-memory state and MQTT topic settings.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker and topic configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 0

    # Inbound
    badge_topic: str = "badgemap/{service_id}/badges"
    geofence_topic: str = "badgemap/{service_id}/geofences"
    event_topic: str = "badgemap/{service_id}/events"
    import_topic: str = "badgemap/{service_id}/import"

    # Outbound
    test_position_topic: str = "badgemap/{service_id}/test/badges"
    view_topic: str = "badgemap/{service_id}/view"
    snapshot_topic: str = "badgemap/{service_id}/snapshot"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    def topic(self, name: str, service_id: str) -> str:
        """
        Resolve a topic template.

        Args:
            name: Field name (e.g. "badge_topic")
            service_id: Value for the {service_id} placeholder
        """
        return getattr(self, name).format(service_id=service_id)


@dataclass(frozen=True)
class EngineConfig:
    """
    Main configuration for the tracking engine service.

    Loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    service_id: str = "default"

    # In-memory retention
    history_limit: int = 50
    event_log_limit: int = 100
    notification_limit: int = 100
    rate_window_minutes: int = 5

    # Outbound snapshot cadence
    snapshot_interval_s: float = 1.0

    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    def __post_init__(self):
        """Validate engine configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        for name in ("history_limit", "event_log_limit", "notification_limit",
                     "rate_window_minutes"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")

        if self.snapshot_interval_s <= 0:
            raise ValueError(
                f"snapshot_interval_s must be > 0, got {self.snapshot_interval_s}"
            )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "EngineConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "floor_3"
            history_limit: 50
            event_log_limit: 100
            rate_window_minutes: 5
            snapshot_interval_s: 1.0

            mqtt_config:
              broker: "localhost"
              port: 1883
              username: null
              password: null
              badge_topic: "badgemap/{service_id}/badges"

        Unknown top-level keys are rejected.
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")

        mqtt_config_data = data.pop("mqtt_config", None) or {}
        mqtt_config = MQTTConfig(**mqtt_config_data)

        return cls(mqtt_config=mqtt_config, **data)
