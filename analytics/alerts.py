"""
Portfolio alerts.

Rule-based notifications over current holdings:
- Bonds maturing soon (high severity inside the short window)
- Stocks that moved significantly vs purchase price (gain or loss)

Thresholds come from config.alerts.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any

from config import config
from db import get_db
from db.models import MONEY_SCALE
from db.repositories import BondRepository, StockRepository


class AlertType(str, Enum):
    """Kind of alert."""
    BOND_MATURITY = "bond_maturity"
    SIGNIFICANT_GAIN = "significant_gain"
    SIGNIFICANT_LOSS = "significant_loss"


class AlertSeverity(str, Enum):
    """How urgently an alert needs attention."""
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Alert:
    """Single alert with a human-readable message and its source data."""
    type: AlertType
    severity: AlertSeverity
    message: str
    data: dict[str, Any] = field(default_factory=dict)


def maturity_severity(days_to_maturity: int) -> AlertSeverity:
    if days_to_maturity <= config.alerts.maturity_high_severity_days:
        return AlertSeverity.HIGH
    return AlertSeverity.MEDIUM


def movement_severity(percentage_change: float) -> AlertSeverity:
    if round(abs(percentage_change), MONEY_SCALE) >= config.alerts.high_severity_move_pct:
        return AlertSeverity.HIGH
    return AlertSeverity.MEDIUM


class AlertEngine:
    """
    Evaluates alert rules against the database.

    Maturity alerts come first (soonest first), followed by price
    movement alerts (largest move first).
    """

    def __init__(self, today: date | None = None):
        self.today = today or date.today()
        self.config = config.alerts

    def bond_maturity_alerts(self) -> list[Alert]:
        """Bonds maturing between today and the alert window end."""
        end = self.today + timedelta(days=self.config.maturity_alert_days)

        db = get_db()
        with db.session() as session:
            bonds = BondRepository(session).get_maturing_between(self.today, end)

        alerts = []
        for bond in bonds:
            days = (bond.maturity_date - self.today).days
            alerts.append(
                Alert(
                    type=AlertType.BOND_MATURITY,
                    severity=maturity_severity(days),
                    message=f"Bond {bond.issuer} matures in {days} days",
                    data={
                        "issuer": bond.issuer,
                        "maturity_date": bond.maturity_date,
                        "face_value": bond.face_value,
                        "days_to_maturity": days,
                    },
                )
            )
        return alerts

    def price_movement_alerts(self) -> list[Alert]:
        """Repriced stocks whose move vs purchase price crosses the threshold."""
        db = get_db()
        with db.session() as session:
            movers = StockRepository(session).get_movers(self.config.significant_move_pct)

        alerts = []
        for stock in movers:
            change = stock.percentage_change
            is_gain = change > 0
            alerts.append(
                Alert(
                    type=AlertType.SIGNIFICANT_GAIN if is_gain else AlertType.SIGNIFICANT_LOSS,
                    severity=movement_severity(change),
                    message=f"{stock.symbol} has {'gained' if is_gain else 'lost'} {abs(change):.1f}%",
                    data={
                        "symbol": stock.symbol,
                        "company_name": stock.company_name,
                        "percentage_change": change,
                        "current_price": stock.current_price,
                        "purchase_price": stock.purchase_price,
                    },
                )
            )
        return alerts

    def run(self) -> list[Alert]:
        """Evaluate every rule."""
        return self.bond_maturity_alerts() + self.price_movement_alerts()


def compute_alerts(today: date | None = None) -> list[Alert]:
    """Run all alert rules."""
    return AlertEngine(today).run()
