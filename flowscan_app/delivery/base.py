"""Base classes for alert delivery mechanisms."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..errors.system_failures import DeliveryError
from ..logging.config import get_logger


class DeliveryStatus(Enum):
    """Alert delivery status."""
    SUCCESS = "success"
    FAILED = "failed"
    DEAD_LETTER = "dead_letter"


@dataclass
class DeliveryResult:
    """Result of one alert delivery attempt."""
    status: DeliveryStatus
    message: Optional[str] = None
    attempt_count: int = 1
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None


class AlertDeliveryRetryableError(DeliveryError):
    """Transient delivery failure."""
    pass


class AlertDeliveryPermanentError(DeliveryError):
    """Delivery failure that should not be retried."""
    pass


class BaseAlertDelivery(ABC):
    """Base class for alert delivery mechanisms."""

    def __init__(self, name: str, config: Any):
        self.name = name
        self.config = config
        self.logger = get_logger(f"alert.delivery.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    def deliver(self, alerts: list[dict[str, Any]]) -> list[DeliveryResult]:
        """
        Deliver alerts to the configured destination.

        Args:
            alerts: List of alert payloads, each carrying an "event" key

        Returns:
            List of delivery results for each alert
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if delivery mechanism is healthy."""
        pass

    def deliver_with_retry(
        self,
        alerts: list[dict[str, Any]],
        max_retries: int = 3,
        retry_delay: float = 1.0
    ) -> list[DeliveryResult]:
        """
        Deliver alerts one at a time, retrying failures.

        Args:
            alerts: List of alert payloads
            max_retries: Maximum number of retry attempts
            retry_delay: Delay between retries in seconds

        Returns:
            List of delivery results for each alert
        """
        results = []

        for alert in alerts:
            attempt = 0
            last_error = None

            while attempt <= max_retries:
                try:
                    start_time = time.time()
                    delivery_results = self.deliver([alert])
                    delivery_time = int((time.time() - start_time) * 1000)

                    if delivery_results and delivery_results[0].status == DeliveryStatus.SUCCESS:
                        result = delivery_results[0]
                        result.delivery_time_ms = delivery_time
                        result.attempt_count = attempt + 1
                        results.append(result)
                        self._delivery_count += 1
                        break

                    # Failed without raising
                    last_error = delivery_results[0].error if delivery_results else None

                except AlertDeliveryPermanentError as e:
                    self._error_count += 1
                    results.append(DeliveryResult(
                        status=DeliveryStatus.FAILED,
                        message=f"Permanent error: {str(e)}",
                        attempt_count=attempt + 1,
                        error=e
                    ))
                    break

                except Exception as e:
                    last_error = e

                attempt += 1

                if attempt <= max_retries:
                    self.logger.warning(
                        "Delivery attempt failed, retrying",
                        delivery_name=self.name,
                        attempt=attempt,
                        retry_delay=retry_delay,
                        error=str(last_error)
                    )
                    time.sleep(retry_delay)
                else:
                    self._error_count += 1
                    results.append(DeliveryResult(
                        status=DeliveryStatus.DEAD_LETTER,
                        message=f"Max retries exceeded: {str(last_error)}",
                        attempt_count=attempt,
                        error=last_error
                    ))

        return results

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        total = self._delivery_count + self._error_count
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
            "success_rate": self._delivery_count / total if total > 0 else 0.0,
        }

    def reset_stats(self):
        self._delivery_count = 0
        self._error_count = 0
