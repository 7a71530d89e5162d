"""Paper position persistence for restart recovery and audit trails."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Optional, Protocol

from ..logging.config import get_logger
from ..recommendation.models import OptionContractSuggestion, OptionType
from ..signals.models import Direction
from ..state.models import ClosedTrade, ExitReason, PaperPosition, PositionStatus
from ..state.stats import DayPerformance, compute_historical_performance
from ..utils.time import trade_date_for


class PositionRepository(Protocol):
    """Narrow persistence interface used by the position engine."""

    def save(self, position: PaperPosition) -> bool:
        ...

    def load_active_positions(self, trade_date: date) -> list[PaperPosition]:
        ...


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def position_from_dict(data: dict[str, Any]) -> PaperPosition:
    """Rebuild a PaperPosition from PaperPosition.to_dict() output."""
    option = data.get("option")
    option_details = None
    if option:
        option_details = OptionContractSuggestion(
            option_type=OptionType(option["type"]),
            strike=option["strike"],
            expiration_date=date.fromisoformat(option["expiration_date"]),
            days_to_expiration=option["days_to_expiration"],
            estimated_premium=option["estimated_premium"],
            suggested_contracts=option["suggested_contracts"],
        )

    exit_reason = data.get("exit_reason")
    return PaperPosition(
        id=data["id"],
        ticker=data["ticker"],
        direction=Direction(data["direction"]),
        entry_price=data["entry_price"],
        partial_target_price=data["partial_target_price"],
        target_price=data["target_price"],
        stop_price=data["stop_price"],
        confidence_score=data["confidence_score"],
        leverage_multiplier=data["leverage_multiplier"],
        trade_date=date.fromisoformat(data["trade_date"]),
        action_tier=data.get("action_tier"),
        option_details=option_details,
        factors=tuple(data.get("factors") or ()),
        warnings=tuple(data.get("warnings") or ()),
        status=PositionStatus(data["status"]),
        trailing_stop_price=data.get("trailing_stop_price"),
        partial_alert_fired=data.get("partial_alert_fired", False),
        high_price_seen=data.get("high_price_seen"),
        low_price_seen=data.get("low_price_seen"),
        last_price=data.get("last_price"),
        exit_price=data.get("exit_price"),
        exit_reason=ExitReason(exit_reason) if exit_reason else None,
        stock_pnl_percent=data.get("stock_pnl_percent"),
        option_pnl_percent=data.get("option_pnl_percent"),
        pnl_dollars=data.get("pnl_dollars"),
        created_at=_parse_datetime(data["created_at"]),
        closed_at=_parse_datetime(data.get("closed_at")),
    )


class SQLitePositionStore:
    """SQLite-based position persistence layer."""

    def __init__(self, db_path: str = "positions.db"):
        self.db_path = Path(db_path)
        self.logger = get_logger("position.store")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS positions (
                    id TEXT PRIMARY KEY,
                    ticker TEXT NOT NULL,
                    direction TEXT NOT NULL,
                    status TEXT NOT NULL,
                    trade_date TEXT NOT NULL,
                    position_data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_positions_trade_date ON positions(trade_date)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_positions_status ON positions(status)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def save(self, position: PaperPosition) -> bool:
        """
        Insert or update a position.

        Returns:
            True if stored, False on failure (logged, never raised)
        """
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        INSERT OR REPLACE INTO positions (
                            id, ticker, direction, status, trade_date,
                            position_data, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """, (
                        position.id,
                        position.ticker,
                        position.direction.value,
                        position.status.value,
                        position.trade_date.isoformat(),
                        json.dumps(position.to_dict()),
                        datetime.now().astimezone().isoformat(),
                    ))
                    conn.commit()

                    self.logger.debug("Position stored",
                                      position_id=position.id,
                                      ticker=position.ticker,
                                      status=position.status.value)
                    return True

            except Exception as e:
                self.logger.error("Failed to store position",
                                  position_id=position.id,
                                  ticker=position.ticker,
                                  error=str(e))
                return False

    def get_position(self, position_id: str) -> Optional[PaperPosition]:
        """Get a position by id."""
        try:
            with self._get_connection() as conn:
                row = conn.execute("""
                    SELECT position_data FROM positions WHERE id = ?
                """, (position_id,)).fetchone()

                if row:
                    return position_from_dict(json.loads(row["position_data"]))
                return None

        except Exception as e:
            self.logger.error("Failed to get position", position_id=position_id, error=str(e))
            return None

    def load_active_positions(self, trade_date: date) -> list[PaperPosition]:
        """OPEN positions recorded for one trading day."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT position_data FROM positions
                    WHERE status = ? AND trade_date = ?
                    ORDER BY rowid
                """, (PositionStatus.OPEN.value, trade_date.isoformat())).fetchall()

                return [position_from_dict(json.loads(row["position_data"])) for row in rows]

        except Exception as e:
            self.logger.error("Failed to load active positions",
                              trade_date=trade_date.isoformat(), error=str(e))
            return []

    def get_positions_by_date(self, trade_date: date) -> list[PaperPosition]:
        """Every position, open or closed, for one trading day."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT position_data FROM positions WHERE trade_date = ? ORDER BY rowid
                """, (trade_date.isoformat(),)).fetchall()

                return [position_from_dict(json.loads(row["position_data"])) for row in rows]

        except Exception as e:
            self.logger.error("Failed to get positions by date",
                              trade_date=trade_date.isoformat(), error=str(e))
            return []

    def get_historical_performance(self, days: int = 7,
                                   as_of: Optional[date] = None) -> list[DayPerformance]:
        """Per-day rollup of CLOSED positions over the last `days` days, newest first."""
        cutoff = (as_of or trade_date_for()) - timedelta(days=days)
        try:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT position_data FROM positions
                    WHERE status = ? AND trade_date >= ?
                    ORDER BY trade_date DESC, rowid
                """, (PositionStatus.CLOSED.value, cutoff.isoformat())).fetchall()

                positions = [position_from_dict(json.loads(row["position_data"])) for row in rows]

        except Exception as e:
            self.logger.error("Failed to get historical performance", days=days, error=str(e))
            return []

        return compute_historical_performance(
            (p.trade_date, ClosedTrade.from_position(p)) for p in positions)

    def get_stats(self) -> dict[str, Any]:
        """Get database statistics."""
        try:
            with self._get_connection() as conn:
                total_count = conn.execute("SELECT COUNT(*) FROM positions").fetchone()[0]

                status_counts = {}
                for row in conn.execute("""
                    SELECT status, COUNT(*) as count FROM positions GROUP BY status
                """):
                    status_counts[row[0]] = row[1]

                return {
                    "total_positions": total_count,
                    "positions_by_status": status_counts,
                }

        except Exception as e:
            self.logger.error("Failed to get stats", error=str(e))
            return {}


class InMemoryPositionStore:
    """Dict-backed repository for tests and ephemeral runs."""

    def __init__(self):
        self._positions: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def save(self, position: PaperPosition) -> bool:
        with self._lock:
            self._positions[position.id] = position.to_dict()
        return True

    def get_position(self, position_id: str) -> Optional[PaperPosition]:
        with self._lock:
            data = self._positions.get(position_id)
        return position_from_dict(data) if data else None

    def load_active_positions(self, trade_date: date) -> list[PaperPosition]:
        with self._lock:
            snapshot = list(self._positions.values())
        return [
            position_from_dict(data) for data in snapshot
            if data["status"] == PositionStatus.OPEN.value
            and data["trade_date"] == trade_date.isoformat()
        ]

    def get_positions_by_date(self, trade_date: date) -> list[PaperPosition]:
        with self._lock:
            snapshot = list(self._positions.values())
        return [position_from_dict(data) for data in snapshot
                if data["trade_date"] == trade_date.isoformat()]

    def get_historical_performance(self, days: int = 7,
                                   as_of: Optional[date] = None) -> list[DayPerformance]:
        cutoff = (as_of or trade_date_for()) - timedelta(days=days)
        with self._lock:
            snapshot = list(self._positions.values())
        closed = [position_from_dict(data) for data in snapshot
                  if data["status"] == PositionStatus.CLOSED.value
                  and date.fromisoformat(data["trade_date"]) >= cutoff]
        return compute_historical_performance(
            (p.trade_date, ClosedTrade.from_position(p)) for p in closed)
