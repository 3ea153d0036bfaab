"""Bonus / cashback rules.

A declarative table of (bank keyword, merchant keyword) -> rate, evaluated in
priority order; the first matching rule wins. A bank with no rule earns
nothing.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from paypilot.execution.models import BonusAward


logger = logging.getLogger(__name__)


CENT = Decimal("0.01")


class BonusRule(BaseModel):
    """One row of the bonus table."""

    model_config = ConfigDict(frozen=True)

    name: str
    bank_keyword: str                      # case-sensitive substring of the bank name
    merchant_keyword: Optional[str] = None  # case-insensitive substring; None matches any merchant
    rate: Decimal
    partner: str = ""

    def matches(self, bank_name: str, merchant: str) -> bool:
        if self.bank_keyword not in bank_name:
            return False
        if self.merchant_keyword is None:
            return True
        return self.merchant_keyword.lower() in merchant.lower()


# Priority order matters: specific merchant rules before the flat bank rate
BONUS_RULES: List[BonusRule] = [
    BonusRule(name="kapital_cinema", bank_keyword="Kapital", merchant_keyword="cinema",
              rate=Decimal("0.10"), partner="CinemaPlus"),
    BonusRule(name="kapital_wolt", bank_keyword="Kapital", merchant_keyword="wolt",
              rate=Decimal("0.05"), partner="Wolt"),
    BonusRule(name="kapital_flat", bank_keyword="Kapital", rate=Decimal("0.01")),
    BonusRule(name="abb_bolt", bank_keyword="ABB", merchant_keyword="bolt",
              rate=Decimal("0.05"), partner="Bolt"),
    BonusRule(name="abb_flat", bank_keyword="ABB", rate=Decimal("0.01")),
]


class BonusCalculator:
    """Evaluates the bonus table for a settled payment."""

    def __init__(self, rules: Optional[Sequence[BonusRule]] = None):
        self.rules: List[BonusRule] = list(BONUS_RULES if rules is None else rules)

    def compute(self, bank_name: str, merchant: str, amount: Decimal) -> BonusAward:
        """Bonus for paying `amount` to `merchant` with a card from `bank_name`."""
        for rule in self.rules:
            if rule.matches(bank_name, merchant):
                bonus = (Decimal(amount) * rule.rate).quantize(CENT, rounding=ROUND_HALF_UP)
                logger.info(f"Bonus rule '{rule.name}' matched: {bonus} (rate {rule.rate})")
                return BonusAward(amount=bonus, rate=rule.rate, partner=rule.partner, rule_name=rule.name)

        logger.debug(f"No bonus rule for bank '{bank_name}'")
        return BonusAward()
