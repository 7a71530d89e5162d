"""Standard output alert delivery mechanism."""

import json
import sys
from datetime import datetime, timezone
from typing import Any

from ..config.alert_delivery import StdoutDeliveryConfig
from .base import BaseAlertDelivery, DeliveryResult, DeliveryStatus


class StdoutAlertDelivery(BaseAlertDelivery):
    """Prints alerts to stdout as JSON or a one-line summary."""

    def __init__(self, name: str, config: StdoutDeliveryConfig):
        super().__init__(name, config)
        self.config: StdoutDeliveryConfig = config

    def deliver(self, alerts: list[dict[str, Any]]) -> list[DeliveryResult]:
        results = []

        for alert in alerts:
            try:
                print(self._format_alert(alert), file=sys.stdout, flush=True)

                self.logger.debug(
                    "Alert printed to stdout",
                    delivery_name=self.name,
                    alert_event=alert.get("event"),
                    ticker=alert.get("ticker")
                )
                results.append(DeliveryResult(
                    status=DeliveryStatus.SUCCESS,
                    message="Printed to stdout"
                ))

            except Exception as e:
                self.logger.error(
                    "Failed to print alert to stdout",
                    delivery_name=self.name,
                    alert_event=alert.get("event"),
                    error=str(e)
                )
                results.append(DeliveryResult(
                    status=DeliveryStatus.FAILED,
                    message=f"Stdout error: {str(e)}",
                    error=e
                ))

        return results

    def _format_alert(self, alert: dict[str, Any]) -> str:
        if self.config.format == "pretty":
            output = f"[{datetime.now(timezone.utc).isoformat()}] {alert.get('event', 'alert').upper()}"
            if alert.get("ticker"):
                output += f": {alert['ticker']}"
            if alert.get("heat_score") is not None:
                output += f" (heat: {alert['heat_score']})"
            return output

        if self.config.include_timestamp:
            alert = {**alert, "stdout_timestamp": datetime.now(timezone.utc).isoformat()}
        return json.dumps(alert, default=str)

    def health_check(self) -> bool:
        try:
            return sys.stdout.writable()
        except Exception:
            return False
