"""
Position Sizing Calculator

Fixed fractional sizing: risk a fixed percentage of capital per trade, so the
stop distance alone decides the quantity. Follows "No Silent Failures" - all
invalid inputs raise exceptions.
"""

from dataclasses import dataclass, field


def format_quantity(quantity: float) -> str:
    """4 decimals for whole-unit sizes, 6 below one unit."""
    return f"{quantity:.4f}" if quantity >= 1 else f"{quantity:.6f}"


@dataclass
class PositionSize:
    """
    Position sizing result.

    Attributes:
        quantity: Position size in base asset (e.g., BTC)
        notional_value: Position value in quote asset (e.g., USDT)
        risk_amount: Quote amount lost if the stop is hit
        risk_percentage: Percentage of capital at risk
        method: Sizing method used
        metadata: Additional calculation details
    """
    quantity: float
    notional_value: float
    risk_amount: float
    risk_percentage: float
    method: str = "fixed_fractional"
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        """Validate position size data."""
        if self.quantity < 0:
            raise ValueError(f"Position quantity must be >= 0, got {self.quantity}")
        if self.notional_value < 0:
            raise ValueError(f"Notional value must be >= 0, got {self.notional_value}")
        if self.risk_amount < 0:
            raise ValueError(f"Risk amount must be >= 0, got {self.risk_amount}")
        if not 0 <= self.risk_percentage <= 100:
            raise ValueError(f"Risk percentage must be 0-100, got {self.risk_percentage}")

    @property
    def quantity_text(self) -> str:
        return format_quantity(self.quantity)

    @property
    def risk_amount_text(self) -> str:
        return f"${self.risk_amount:.2f}"

    @property
    def risk_pct_text(self) -> str:
        return f"{self.risk_percentage:g}%"

    def to_dict(self) -> dict:
        return {
            'quantity': self.quantity_text,
            'notional_value': round(self.notional_value, 2),
            'risk_amount': self.risk_amount_text,
            'risk_pct': self.risk_pct_text,
        }


class PositionSizer:
    """
    Fixed fractional position sizing.

    Usage:
        sizer = PositionSizer(account_balance=144)
        size = sizer.calculate_fixed_fractional(
            risk_pct=2.0,
            entry_price=50000,
            stop_price=49000
        )
        size.quantity_text  # '0.002880'
    """

    def __init__(self, account_balance: float, max_risk_pct: float = 100.0):
        """
        Initialize position sizer.

        Args:
            account_balance: Trading capital in quote asset (USDT)
            max_risk_pct: Upper bound accepted for risk_pct

        Raises:
            ValueError: If any parameter is invalid
        """
        if account_balance <= 0:
            raise ValueError(f"Account balance must be positive, got {account_balance}")
        if not 0 < max_risk_pct <= 100:
            raise ValueError(f"Max risk % must be 0-100, got {max_risk_pct}")

        self.account_balance = account_balance
        self.max_risk_pct = max_risk_pct

    def calculate_fixed_fractional(
        self,
        risk_pct: float,
        entry_price: float,
        stop_price: float,
    ) -> PositionSize:
        """
        Calculate position size using the fixed fractional method.

        Formula:
            risk_amount = account_balance * (risk_pct / 100)
            stop_distance = abs(entry_price - stop_price)
            quantity = risk_amount / stop_distance

        Args:
            risk_pct: Percentage of account to risk (e.g., 2.0 = 2%)
            entry_price: Entry price for position
            stop_price: Stop loss price

        Returns:
            PositionSize with calculated metrics

        Raises:
            ValueError: If inputs are invalid
        """
        if not 0 < risk_pct <= self.max_risk_pct:
            raise ValueError(f"Risk % must be 0-{self.max_risk_pct}, got {risk_pct}")
        if entry_price <= 0:
            raise ValueError(f"Entry price must be positive, got {entry_price}")
        if stop_price <= 0:
            raise ValueError(f"Stop price must be positive, got {stop_price}")
        if entry_price == stop_price:
            raise ValueError("Entry and stop prices must be different")

        risk_amount = self.account_balance * (risk_pct / 100)
        stop_distance = abs(entry_price - stop_price)
        quantity = risk_amount / stop_distance

        return PositionSize(
            quantity=quantity,
            notional_value=quantity * entry_price,
            risk_amount=risk_amount,
            risk_percentage=risk_pct,
            metadata={
                'account_balance': self.account_balance,
                'stop_distance': stop_distance,
                'stop_distance_pct': stop_distance / entry_price * 100,
            },
        )
