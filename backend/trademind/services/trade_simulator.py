"""Trade simulator recording fabricated trade outcomes.

Nothing is executed on an exchange. A trade is recorded at the current
market price with a random P&L:

    pnl = (U - 0.5) * price * amount * pnl_factor,  U ~ uniform[0, 1)

so the outcome lies within ±pnl_factor/2 of the trade's notional.
"""

import logging
import random
from decimal import Decimal

import httpx

from trademind.clients import CoinGeckoRestClient
from trademind.models import (
    Alert,
    AlertType,
    Signal,
    SignalType,
    TradeAction,
    TradeRecord,
    to_ledger,
)
from trademind.storage import AlertRepository, TradeRepository

logger = logging.getLogger(__name__)


class PriceUnavailableError(RuntimeError):
    """Raised when no current price can be obtained for a token."""


def _plain(value: Decimal) -> str:
    """Decimal without trailing zeros or exponent (10.00000000 -> "10")."""
    return format(value.normalize(), "f")


class TradeSimulator:
    """Record simulated trades and announce them as alerts."""

    def __init__(
        self,
        client: CoinGeckoRestClient,
        trade_repo: TradeRepository,
        alert_repo: AlertRepository,
        pnl_factor: float = 0.1,
        vs_currency: str = "usd",
        rng: random.Random | None = None,
    ):
        """
        Args:
            client: Market data client for the current price
            trade_repo: Where trades are recorded
            alert_repo: Where trade alerts are raised
            pnl_factor: Scale of the random P&L relative to notional
            vs_currency: Quote currency
            rng: Random source (seed it for reproducible outcomes)
        """
        self.client = client
        self.trade_repo = trade_repo
        self.alert_repo = alert_repo
        self.pnl_factor = pnl_factor
        self.vs_currency = vs_currency
        self.rng = rng or random.Random()

    async def _current_price(self, token: str) -> float:
        try:
            price = await self.client.get_price(token, vs_currency=self.vs_currency)
        except (httpx.HTTPError, ValueError) as e:
            raise PriceUnavailableError(f"Unable to get current price for {token}") from e
        if price is None or price <= 0:
            raise PriceUnavailableError(f"Unable to get current price for {token}")
        return price

    def fabricate_pnl(self, price: float, amount: Decimal) -> Decimal:
        return to_ledger((self.rng.random() - 0.5) * price * float(amount) * self.pnl_factor)

    async def simulate(
        self,
        token: str,
        action: TradeAction | str,
        amount: float | Decimal | str,
        strategy_id: int,
        price: float | None = None,
    ) -> TradeRecord:
        """
        Record a simulated trade.

        Args:
            token: CoinGecko id
            action: BUY or SELL
            amount: Quantity of the token
            strategy_id: Strategy the trade is attributed to
            price: Execution price (fetched from the market when omitted)

        Returns:
            Stored trade record

        Raises:
            ValueError: If the action is unknown or the amount not positive
            PriceUnavailableError: If no current price is available
        """
        action = TradeAction(action)
        amount = to_ledger(amount)
        if amount <= 0:
            raise ValueError(f"amount must be positive, got {amount}")

        if price is None:
            price = await self._current_price(token)

        trade = await self.trade_repo.save(
            TradeRecord(
                strategy_id=strategy_id,
                token=token,
                action=action,
                price=to_ledger(price),
                amount=amount,
                pnl=self.fabricate_pnl(price, amount),
            )
        )

        await self.alert_repo.create(
            Alert(
                title=f"Trade Executed: {action.value} {token}",
                message=(
                    f"Successfully {action.past_tense} {_plain(amount)} "
                    f"{token} at ${price}"
                ),
                type=AlertType.SUCCESS,
            )
        )

        logger.info(
            f"Simulated {action.value} {_plain(amount)} {token} @ {price} "
            f"(pnl={trade.pnl})"
        )
        return trade

    async def trade_on_signal(
        self,
        signal: Signal,
        amount: float | Decimal,
        strategy_id: int,
        min_confidence: int = 70,
    ) -> TradeRecord | None:
        """Trade a signal if it is actionable and confident enough.

        HOLD signals and signals whose displayed confidence does not exceed
        ``min_confidence`` are skipped. The trade uses the signal's price.

        Returns:
            Trade record, or None if skipped
        """
        if signal.type is SignalType.HOLD:
            return None
        if signal.display_confidence <= min_confidence:
            return None

        return await self.simulate(
            token=signal.token,
            action=TradeAction(signal.type.value),
            amount=amount,
            strategy_id=strategy_id,
            price=signal.price,
        )
