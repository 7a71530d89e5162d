"""File-based alert delivery mechanism."""

import fcntl
import json
from pathlib import Path
from typing import Any

from ..config.alert_delivery import FileDeliveryConfig
from .base import (
    AlertDeliveryPermanentError,
    BaseAlertDelivery,
    DeliveryResult,
    DeliveryStatus,
)


class FileAlertDelivery(BaseAlertDelivery):
    """Appends alerts to a JSON array file or a JSONL log."""

    def __init__(self, name: str, config: FileDeliveryConfig):
        super().__init__(name, config)
        self.config: FileDeliveryConfig = config
        self.output_path = Path(config.output_path)

        if config.create_dirs:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

        if config.format not in ["json", "jsonl"]:
            raise AlertDeliveryPermanentError(f"Unsupported format: {config.format}",
                                              delivery_method="file_output")

    def deliver(self, alerts: list[dict[str, Any]]) -> list[DeliveryResult]:
        try:
            if self.config.format == "json":
                self._write_json_format(alerts)
            else:
                self._write_jsonl_format(alerts)

        except OSError as e:
            self.logger.warning(
                "Alert delivery file error",
                delivery_name=self.name,
                output_path=str(self.output_path),
                error=str(e)
            )
            return [DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"File system error: {str(e)}",
                error=e
            ) for _ in alerts]

        except (TypeError, ValueError) as e:
            # Unserializable payload
            self.logger.error(
                "Alert delivery encoding error",
                delivery_name=self.name,
                error=str(e)
            )
            return [DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"JSON encoding error: {str(e)}",
                error=e
            ) for _ in alerts]

        results = []
        for alert in alerts:
            self.logger.debug(
                "Alert written to file",
                delivery_name=self.name,
                alert_event=alert.get("event"),
                output_path=str(self.output_path)
            )
            results.append(DeliveryResult(
                status=DeliveryStatus.SUCCESS,
                message=f"Written to {self.output_path}"
            ))
        return results

    def _write_json_format(self, alerts: list[dict[str, Any]]) -> None:
        """Rewrite the file as one JSON array."""
        existing_data = []
        if self.config.append_mode and self.output_path.exists():
            try:
                with open(self.output_path) as f:
                    existing_data = json.load(f)
                    if not isinstance(existing_data, list):
                        existing_data = []
            except (OSError, json.JSONDecodeError):
                existing_data = []

        with open(self.output_path, 'w') as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            json.dump(existing_data + alerts, f, indent=2, default=str)

    def _write_jsonl_format(self, alerts: list[dict[str, Any]]) -> None:
        """One JSON object per line."""
        mode = 'a' if self.config.append_mode else 'w'

        with open(self.output_path, mode) as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            for alert in alerts:
                json.dump(alert, f, default=str)
                f.write('\n')

    def health_check(self) -> bool:
        try:
            test_file = self.output_path.parent / ".health_check_test"
            test_file.write_text("test")
            test_file.unlink()
            return True

        except Exception as e:
            self.logger.warning(
                "Health check failed",
                delivery_name=self.name,
                error=str(e)
            )
            return False
