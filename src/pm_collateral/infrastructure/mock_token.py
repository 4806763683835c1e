"""In-process collateral token (mock USDC).

Conforms to CollateralToken. Used by the API for local/dev deployments and by
the tests. ``mint`` is a faucet; a real deployment would point the engine at
an actual token client instead.
"""
import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)

USDC_DECIMALS = 6


class InMemoryCollateralToken:
    def __init__(self, decimals: int = USDC_DECIMALS, symbol: str = "mUSDC") -> None:
        self._decimals = decimals
        self.symbol = symbol
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self._lock = threading.Lock()
        self.total_supply = 0

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, who: str) -> int:
        return self._balances.get(who, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"mint amount must be non-negative, got {amount}")
        with self._lock:
            self._balances[to] += amount
            self.total_supply += amount
        logger.debug("Faucet minted %d %s to %s", amount, self.symbol, to)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        with self._lock:
            self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        with self._lock:
            if amount < 0 or self._balances.get(sender, 0) < amount:
                return False
            self._balances[sender] -= amount
            self._balances[to] += amount
        return True

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        with self._lock:
            allowed = self._allowances.get((owner, spender), 0)
            if amount < 0 or allowed < amount or self._balances.get(owner, 0) < amount:
                return False
            self._allowances[(owner, spender)] = allowed - amount
            self._balances[owner] -= amount
            self._balances[to] += amount
        return True
