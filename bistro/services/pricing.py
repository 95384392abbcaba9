from __future__ import annotations

import logging
import math
import random
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

# 1 USD = 3.7 ILS (approximate)
ILS_PER_USD = 3.7

DEFAULT_BASE_PRICE = 35

# shekels
BASE_PRICES = {
    "Starters": 32,
    "Breakfast": 48,
    "Lunch": 68,
    "Supper": 89,
    "Desserts": 28,
    "Beverages": 18,
}

PREMIUM_INGREDIENTS = (
    ("salmon", 25),
    ("beef", 30),
    ("steak", 40),
    ("shrimp", 20),
    ("seafood", 25),
    ("truffle", 35),
    ("cheese", 10),
    ("avocado", 8),
    ("organic", 15),
    ("special", 10),
    ("premium", 20),
    ("wellington", 45),
)

LARGE_PORTION_WORDS = ("large", "extra", "double")
LARGE_PORTION_FACTOR = 1.3

PRICE_ENDINGS = (0.49, 0.79, 0.89, 0.99)


class RandomSource(Protocol):
    def next_float(self) -> float:
        """Uniform float in [0, 1)."""


class LocalRandom:
    """RandomSource backed by a private random.Random, never the global one."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def next_float(self) -> float:
        return self._rng.random()


def base_price_shekels(category: str, description: str = "", name: str = "") -> float:
    base: float = BASE_PRICES.get(category, DEFAULT_BASE_PRICE)
    text = f"{description or ''} {name or ''}".lower()

    for term, increase in PREMIUM_INGREDIENTS:
        if term in text:
            base += increase

    if any(w in text for w in LARGE_PORTION_WORDS):
        base *= LARGE_PORTION_FACTOR

    return base


def estimate_price(
    category: str,
    description: str = "",
    name: str = "",
    rng: Optional[RandomSource] = None,
) -> float:
    """
    Suggest a menu price in USD from the category and keyword signals.

    The result varies by +-10% and ends in .49/.79/.89/.99 under $10,
    .99 otherwise. Pass `rng` to make the two random draws reproducible.
    """
    rng = rng or LocalRandom()

    shekels = base_price_shekels(category, description, name)
    usd = shekels / ILS_PER_USD
    usd *= 0.9 + rng.next_float() * 0.2

    ending = PRICE_ENDINGS[min(int(rng.next_float() * len(PRICE_ENDINGS)), len(PRICE_ENDINGS) - 1)]
    if usd < 10:
        price = math.floor(usd) + ending
    else:
        price = math.floor(usd) + 0.99

    price = round(price, 2)
    logger.debug("price estimate category=%s shekels=%.2f usd=%.2f", category, shekels, price)
    return price
