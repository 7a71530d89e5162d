"""Fan-out of alert payloads to the configured delivery destinations."""

from typing import Any, Optional

from ..config.alert_delivery import (
    AlertDeliveryConfig,
    DeliveryMethod,
    get_default_delivery_config,
)
from ..logging.config import get_logger
from .base import BaseAlertDelivery, DeliveryResult, DeliveryStatus
from .file_delivery import FileAlertDelivery
from .stdout_delivery import StdoutAlertDelivery

logger = get_logger(__name__)


class AlertDispatcher:
    """Delivers each alert to every enabled destination whose filters accept it."""

    def __init__(self, delivery_config: Optional[AlertDeliveryConfig] = None):
        self.delivery_config = delivery_config or get_default_delivery_config()
        self.delivery_handlers: dict[str, BaseAlertDelivery] = {}

        self._init_delivery_handlers()

    def _init_delivery_handlers(self) -> None:
        if not self.delivery_config.enabled:
            return

        for destination in self.delivery_config.destinations:
            if not destination.enabled:
                continue

            try:
                if destination.method == DeliveryMethod.FILE_OUTPUT:
                    handler = FileAlertDelivery(destination.name, destination.config)
                elif destination.method == DeliveryMethod.STDOUT:
                    handler = StdoutAlertDelivery(destination.name, destination.config)
                else:
                    logger.warning("Unsupported delivery method", method=str(destination.method))
                    continue

                self.delivery_handlers[destination.name] = handler
                logger.info("Initialized delivery handler", destination=destination.name)

            except Exception as e:
                logger.error("Failed to initialize delivery handler",
                             destination=destination.name,
                             error=str(e))

    def dispatch(self, alert: dict[str, Any]) -> dict[str, list[DeliveryResult]]:
        """
        Deliver one alert; failures are logged, never raised.

        Returns:
            Delivery results keyed by destination name
        """
        outcomes: dict[str, list[DeliveryResult]] = {}

        if not self.delivery_config.enabled or not self.delivery_handlers:
            return outcomes

        for destination_name in self._filter_destinations(alert):
            handler = self.delivery_handlers.get(destination_name)
            if not handler:
                continue

            try:
                results = handler.deliver_with_retry(
                    [alert],
                    max_retries=self.delivery_config.failure_retry_attempts,
                    retry_delay=self.delivery_config.failure_retry_delay_seconds
                )
            except Exception as e:
                logger.error("Unexpected error during alert delivery",
                             destination=destination_name,
                             alert_event=alert.get("event"),
                             error=str(e))
                continue

            for result in results:
                if result.status != DeliveryStatus.SUCCESS:
                    logger.error("Alert delivery failed",
                                 destination=destination_name,
                                 alert_event=alert.get("event"),
                                 status=result.status.value,
                                 message=result.message,
                                 attempts=result.attempt_count)
            outcomes[destination_name] = results

        return outcomes

    __call__ = dispatch

    def _filter_destinations(self, alert: dict[str, Any]) -> list[str]:
        filtered = []

        for destination in self.delivery_config.destinations:
            if not destination.enabled:
                continue

            if destination.events_filter and alert.get("event") not in destination.events_filter:
                continue

            if destination.tickers_filter and alert.get("ticker") not in destination.tickers_filter:
                continue

            filtered.append(destination.name)

        return filtered

    def health_check(self) -> dict[str, bool]:
        return {name: handler.health_check() for name, handler in self.delivery_handlers.items()}
