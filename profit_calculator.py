"""
profit_calculator.py — per-unit economics for a resale price.

  total cost = buy price + ad spend per sale (CPA) + shipping
  margin     = selling price − total cost
  margin %   = margin / selling price
  ROI %      = margin / total cost

With no selling price given, the standard x3 markup is assumed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from scorers.policy import suggested_price


@dataclass(frozen=True)
class ProfitBreakdown:
    buy_price: float
    selling_price: float
    cpa: float
    shipping: float
    total_cost: float
    margin: float
    margin_percent: float
    roi_percent: float

    @property
    def is_profitable(self) -> bool:
        return self.margin > 0


def calculate_profit(
    buy_price: float,
    selling_price: Optional[float] = None,
    cpa: float = 15,
    shipping: float = 0,
) -> ProfitBreakdown:
    if buy_price < 0 or cpa < 0 or shipping < 0:
        raise ValueError("prices and costs must be >= 0")
    if selling_price is None:
        selling_price = suggested_price(buy_price)
    if selling_price < 0:
        raise ValueError("selling price must be >= 0")

    total_cost = buy_price + cpa + shipping
    margin = selling_price - total_cost
    margin_percent = margin / selling_price * 100 if selling_price > 0 else 0.0
    roi_percent = margin / total_cost * 100 if total_cost > 0 else 0.0

    return ProfitBreakdown(
        buy_price=buy_price,
        selling_price=round(selling_price, 2),
        cpa=cpa,
        shipping=shipping,
        total_cost=round(total_cost, 2),
        margin=round(margin, 2),
        margin_percent=round(margin_percent, 1),
        roi_percent=round(roi_percent, 1),
    )
