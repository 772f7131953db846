"""
Odds math helpers for American moneylines.
"""


def american_to_implied_prob(price: int) -> float:
    """
    Convert American odds to implied probability.

    +150 → 100 / (150 + 100) = 0.4000
    -130 → 130 / (130 + 100) = 0.5652
    """
    if price > 0:
        return 100.0 / (price + 100.0)
    else:
        return abs(price) / (abs(price) + 100.0)


def implied_prob_to_american(prob: float) -> int:
    """
    Convert an implied probability back to American odds.

    0.4000 → +150
    0.5652 → -130
    Probabilities of exactly 0.5 map to -100 (even money).
    """
    if not 0.0 < prob < 1.0:
        raise ValueError(f"probability must be in (0, 1), got {prob}")
    if prob < 0.5:
        return round(100.0 * (1.0 - prob) / prob)
    return -round(100.0 * prob / (1.0 - prob))


def no_vig_probabilities(home_price: int, away_price: int) -> tuple[float, float]:
    """Implied probabilities for both sides with the bookmaker margin removed."""
    home = american_to_implied_prob(home_price)
    away = american_to_implied_prob(away_price)
    total = home + away
    return home / total, away / total
