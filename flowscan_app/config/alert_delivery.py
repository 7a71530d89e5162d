"""Configuration for alert delivery mechanisms."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class DeliveryMethod(Enum):
    """Supported alert delivery methods."""
    FILE_OUTPUT = "file_output"
    STDOUT = "stdout"


@dataclass(frozen=True)
class FileDeliveryConfig:
    """Configuration for file-based delivery."""
    output_path: str
    format: str = "jsonl"  # json, jsonl
    append_mode: bool = True
    create_dirs: bool = True


@dataclass(frozen=True)
class StdoutDeliveryConfig:
    """Configuration for stdout delivery."""
    format: str = "json"  # json, pretty
    include_timestamp: bool = True


@dataclass(frozen=True)
class DeliveryDestination:
    """Single alert delivery destination."""
    name: str
    method: DeliveryMethod
    config: Any  # FileDeliveryConfig | StdoutDeliveryConfig
    enabled: bool = True

    # Filtering options
    events_filter: Optional[list[str]] = None  # Only deliver specific alert events
    tickers_filter: Optional[list[str]] = None


@dataclass(frozen=True)
class AlertDeliveryConfig:
    """Complete alert delivery configuration."""
    destinations: list[DeliveryDestination]
    enabled: bool = True

    # Delivery runs inside the tick loop
    failure_retry_attempts: int = 0
    failure_retry_delay_seconds: float = 2.0


def get_default_delivery_config() -> AlertDeliveryConfig:
    """Get default alert delivery configuration."""
    return AlertDeliveryConfig(
        destinations=[
            DeliveryDestination(
                name="stdout",
                method=DeliveryMethod.STDOUT,
                config=StdoutDeliveryConfig(
                    format="json",
                    include_timestamp=True
                ),
                enabled=True
            )
        ],
        enabled=True,
        failure_retry_attempts=0,
        failure_retry_delay_seconds=2.0,
    )


def create_file_destination(
    name: str,
    output_path: str,
    format: str = "jsonl",
    enabled: bool = True,
    events_filter: Optional[list[str]] = None,
    **kwargs
) -> DeliveryDestination:
    """Create file delivery destination."""
    return DeliveryDestination(
        name=name,
        method=DeliveryMethod.FILE_OUTPUT,
        config=FileDeliveryConfig(
            output_path=output_path,
            format=format,
            **kwargs
        ),
        enabled=enabled,
        events_filter=events_filter,
    )


def create_stdout_destination(
    name: str = "stdout",
    format: str = "json",
    enabled: bool = True,
    events_filter: Optional[list[str]] = None,
) -> DeliveryDestination:
    """Create stdout delivery destination."""
    return DeliveryDestination(
        name=name,
        method=DeliveryMethod.STDOUT,
        config=StdoutDeliveryConfig(format=format),
        enabled=enabled,
        events_filter=events_filter,
    )
