"""Confidence scoring helpers.

Each factor returns a bounded delta so it can be tested on its own; callers
sum the deltas and clamp the total with ``combine``.
"""


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a value into ``[low, high]``."""
    return max(low, min(high, value))


def combine(*deltas: float) -> float:
    """Sum confidence deltas and clamp the result to ``[0, 1]``."""
    return clamp(sum(deltas))


def flag_bonus(condition: bool, amount: float) -> float:
    """Return ``amount`` when ``condition`` holds, else nothing."""
    return amount if condition else 0.0


def length_penalty(length: int, limit: int, base: float, factor: float) -> float:
    """Shrink ``base`` to ``base * factor`` once ``length`` exceeds ``limit``."""
    if length > limit:
        return -base * (1.0 - factor)
    return 0.0


def count_bonus(count: int, per_item: float, cap: float) -> float:
    """Linear reward per counted item, capped at ``cap``."""
    if count <= 0:
        return 0.0
    return min(cap, count * per_item)


def ratio(part: int, whole: int) -> float:
    """Safe ``part / whole``; zero when ``whole`` is empty."""
    if whole <= 0:
        return 0.0
    return part / whole


def tiered_bonus(count: int, tiers: list[tuple[int, float]]) -> float:
    """Bonus for the highest tier whose threshold ``count`` reaches.

    Args:
        count: Observed quantity.
        tiers: ``(threshold, bonus)`` pairs, highest threshold first.

    Returns:
        The bonus of the first matching tier, or 0.
    """
    for threshold, bonus in tiers:
        if count >= threshold:
            return bonus
    return 0.0
