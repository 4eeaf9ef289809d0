from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from num2words import num2words

from ..core.constants import CURRENCY_LABEL

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round half-up to 2 decimals. Applied to reported amounts only."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def round_whole(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def amount_in_words(amount: float) -> str:
    """Indian-grouped words for an amount, e.g. 'Ten Thousand Taka Only'."""
    rounded = Decimal(str(round_money(amount)))
    whole = int(rounded)
    paisa = int((abs(rounded) - abs(whole)) * 100)

    words = num2words(whole, lang="en_IN").replace(",", "").replace("-", " ")
    text = f"{words.title()} {CURRENCY_LABEL}"
    if paisa > 0:
        paisa_words = num2words(paisa, lang="en_IN").replace("-", " ")
        text += f" And {paisa_words.title()} Paisa"
    return f"{text} Only"
