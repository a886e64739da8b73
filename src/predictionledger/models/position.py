from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    symbol: str
    market_value: float = 0.0
    pnl: float = 0.0
    pnl_pct: float = 0.0
    spent: float = 0.0
    quantity: float = 0.0

    @property
    def implied_price(self) -> float | None:
        if self.quantity > 0:
            return self.market_value / self.quantity
        return None

    @classmethod
    def from_dict(cls, data: dict) -> Position:
        """Build from a report row; missing or non-numeric fields count as 0."""
        return cls(
            symbol=str(data.get("symbol") or "").strip().upper(),
            market_value=_num(data.get("marketValue")),
            pnl=_num(data.get("pnl")),
            pnl_pct=_num(data.get("pnlPct")),
            spent=_num(data.get("spent")),
            quantity=_num(data.get("quantity")),
        )


def _num(value) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value) if value is not None else 0.0
    except (OverflowError, TypeError, ValueError):
        return 0.0
