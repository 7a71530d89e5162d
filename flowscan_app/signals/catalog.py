"""
Classification of raw detection payloads into typed signal records.

The detection layer hands over plain dictionaries. Field names are accepted in
snake_case or in the camelCase the detectors emit.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import structlog

from ..errors import InvalidInputError, MalformedSignalError
from .models import (
    BlockTradeSignal,
    BreakoutSignal,
    CrossDirection,
    Direction,
    GapSignal,
    MomentumSurgeSignal,
    NewHighSignal,
    NewLowSignal,
    RelativeStrengthSignal,
    Signal,
    SignalType,
    UnknownSignal,
    VolumeSpikeSignal,
    VwapCrossSignal,
)

logger = structlog.get_logger(__name__)

HUGE_BLOCK_VALUE = 1_000_000.0

_DIRECTION_ALIASES = {
    "bullish": Direction.BULLISH,
    "bull": Direction.BULLISH,
    "long": Direction.BULLISH,
    "up": Direction.BULLISH,
    "call": Direction.BULLISH,
    "bearish": Direction.BEARISH,
    "bear": Direction.BEARISH,
    "short": Direction.BEARISH,
    "down": Direction.BEARISH,
    "put": Direction.BEARISH,
}


@dataclass(frozen=True)
class FieldSpec:
    """How one signal attribute is read from a raw payload."""
    name: str
    aliases: tuple[str, ...]
    convert: Callable[[Any], Any]
    required: bool = True


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _to_cross(value: Any) -> CrossDirection:
    text = str(value).strip().lower()
    if text in ("above", "up", "bullish"):
        return CrossDirection.ABOVE
    if text in ("below", "down", "bearish"):
        return CrossDirection.BELOW
    raise ValueError(f"unknown cross direction {value!r}")


_TYPE_FIELDS: dict[SignalType, tuple[type[Signal], tuple[FieldSpec, ...]]] = {
    SignalType.VOLUME_SPIKE: (VolumeSpikeSignal, (
        FieldSpec("rvol", ("rvol", "volume_multiple", "volumeMultiple"), float),
        FieldSpec("current_volume", ("current_volume", "currentVolume"), float, False),
        FieldSpec("avg_volume", ("avg_volume", "avgVolume"), float, False),
    )),
    SignalType.BLOCK_TRADE: (BlockTradeSignal, (
        FieldSpec("trade_value", ("trade_value", "tradeValue"), float),
        FieldSpec("size", ("size",), float, False),
        FieldSpec("is_large_block", ("is_large_block", "isLargeBlock"), _to_bool, False),
    )),
    SignalType.MOMENTUM_SURGE: (MomentumSurgeSignal, (
        FieldSpec("price_change_percent",
                  ("price_change_percent", "priceChangePercent", "priceChange"), float),
    )),
    SignalType.BREAKOUT: (BreakoutSignal, (
        FieldSpec("resistance", ("resistance", "level"), float),
        FieldSpec("breakout_percent", ("breakout_percent", "breakoutPercent"), float, False),
    )),
    SignalType.GAP: (GapSignal, (
        FieldSpec("gap_percent", ("gap_percent", "gapPercent"), float),
        FieldSpec("prev_close", ("prev_close", "prevClose"), float, False),
    )),
    SignalType.VWAP_CROSS: (VwapCrossSignal, (
        FieldSpec("vwap", ("vwap",), float),
        FieldSpec("cross_direction", ("cross_direction", "crossDirection", "direction"), _to_cross),
    )),
    SignalType.NEW_HIGH: (NewHighSignal, ()),
    SignalType.NEW_LOW: (NewLowSignal, ()),
    SignalType.RELATIVE_STRENGTH: (RelativeStrengthSignal, (
        FieldSpec("relative_strength", ("relative_strength", "relativeStrength"), float),
        FieldSpec("is_outperforming", ("is_outperforming", "isOutperforming"), _to_bool, False),
    )),
}


def parse_direction(value: Any) -> Optional[Direction]:
    """Map loose direction labels onto Direction; None when unrecognised."""
    if value is None:
        return None
    if isinstance(value, Direction):
        return value
    return _DIRECTION_ALIASES.get(str(value).strip().lower())


class SignalCatalog:
    """Stateless classifier from raw detections to signal records."""

    def __init__(self, huge_block_value: float = HUGE_BLOCK_VALUE):
        self.huge_block_value = huge_block_value

    def classify(self, raw: Union[Signal, dict[str, Any]]) -> Signal:
        """
        Build the typed signal record for one detection.

        Raises:
            MalformedSignalError: ticker, price or a required type field is missing
                or cannot be read as the expected type
            InvalidInputError: price is not positive
        """
        if isinstance(raw, Signal):
            return raw

        if not isinstance(raw, dict):
            raise MalformedSignalError(
                f"Expected a detection mapping, got {type(raw).__name__}",
                raw_data=None
            )

        missing = [key for key in ("ticker", "price") if raw.get(key) in (None, "")]
        if missing:
            raise MalformedSignalError(
                f"Detection is missing required fields: {missing}",
                raw_data=raw,
                missing_fields=missing
            )

        ticker = str(raw["ticker"]).strip().upper()
        try:
            price = float(raw["price"])
        except (TypeError, ValueError) as e:
            raise MalformedSignalError(
                f"Price is not numeric: {raw['price']!r}",
                raw_data=raw
            ) from e

        if price <= 0:
            raise InvalidInputError(
                f"Price must be positive for {ticker}",
                field="price",
                value=price
            )

        common = {
            "ticker": ticker,
            "price": price,
            "timestamp_ms": self._timestamp(raw),
            "direction": parse_direction(raw.get("bias", raw.get("direction"))),
        }

        raw_type = str(raw.get("type", raw.get("signal_type", ""))).strip().lower()
        try:
            signal_type = SignalType(raw_type)
        except ValueError:
            signal_type = SignalType.UNKNOWN

        if signal_type is SignalType.UNKNOWN:
            logger.debug("Unrecognised detection type", ticker=ticker, raw_type=raw_type)
            return UnknownSignal(raw_type=raw_type, **common)

        signal_cls, specs = _TYPE_FIELDS[signal_type]
        values = self._read_fields(raw, specs)

        if signal_type is SignalType.BLOCK_TRADE and "is_large_block" not in values:
            values["is_large_block"] = values["trade_value"] >= self.huge_block_value

        if signal_type is SignalType.RELATIVE_STRENGTH and "is_outperforming" not in values:
            values["is_outperforming"] = values["relative_strength"] > 0

        # A vwap cross carries its own side; the shared direction key is not a bias there
        if signal_type is SignalType.VWAP_CROSS and "bias" not in raw:
            common["direction"] = None

        return signal_cls(**common, **values)

    def _read_fields(self, raw: dict[str, Any], specs: tuple[FieldSpec, ...]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        missing = []

        for spec in specs:
            key = next((alias for alias in spec.aliases if raw.get(alias) is not None), None)
            if key is None:
                if spec.required:
                    missing.append(spec.name)
                continue
            try:
                values[spec.name] = spec.convert(raw[key])
            except (TypeError, ValueError) as e:
                raise MalformedSignalError(
                    f"Field '{spec.name}' has an unreadable value {raw[key]!r}",
                    raw_data=raw,
                    missing_fields=[spec.name]
                ) from e

        if missing:
            raise MalformedSignalError(
                f"Detection is missing required fields: {missing}",
                raw_data=raw,
                missing_fields=missing
            )

        return values

    @staticmethod
    def _timestamp(raw: dict[str, Any]) -> Optional[int]:
        value = raw.get("timestamp_ms", raw.get("timestampMs", raw.get("timestamp")))
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
