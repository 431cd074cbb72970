"""Investment offer catalog.

Offers are reference data owned by the product team; the ledger only needs
name, amount range and risk level to open a position. Return and term are
carried for display.
"""

from dataclasses import dataclass

from src.iv_common.enums import RiskLevel


@dataclass(frozen=True)
class Offer:
    name: str
    min_amount: int          # cents, inclusive
    max_amount: int          # cents, inclusive
    risk_level: RiskLevel
    target_return_bps: int   # advertised return at term end, e.g. 10000 = +100 %
    term_days: int
    description: str = ""

    def accepts(self, amount: int) -> bool:
        return self.min_amount <= amount <= self.max_amount


DEFAULT_OFFERS: tuple[Offer, ...] = (
    Offer(
        name="Quantum Alpha",
        min_amount=5_000,
        max_amount=30_000,
        risk_level=RiskLevel.LOW,
        target_return_bps=10_000,
        term_days=20,
        description="Short-term strategy that doubles the investment at the end of the term.",
    ),
    Offer(
        name="Crypto Velocity",
        min_amount=30_000,
        max_amount=200_000,
        risk_level=RiskLevel.MEDIUM,
        target_return_bps=15_000,
        term_days=45,
        description="Capital acceleration with a strong medium-term return.",
    ),
    Offer(
        name="Global Elite",
        min_amount=200_000,
        max_amount=1_000_000,
        risk_level=RiskLevel.HIGH,
        target_return_bps=25_000,
        term_days=60,
        description="Maximum performance for large capital volumes.",
    ),
)


def list_offers(offers: tuple[Offer, ...] = DEFAULT_OFFERS) -> list[Offer]:
    """Offers sorted by minimum amount, lowest first."""
    return sorted(offers, key=lambda o: o.min_amount)


def find_offer(name: str, offers: tuple[Offer, ...] = DEFAULT_OFFERS) -> Offer | None:
    wanted = name.strip().casefold()
    for offer in offers:
        if offer.name.casefold() == wanted:
            return offer
    return None
