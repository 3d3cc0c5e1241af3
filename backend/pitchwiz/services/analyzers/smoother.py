from typing import Optional


def smooth(previous: Optional[float], current: float, factor: float) -> float:
    """Exponential smoothing of successive pitch estimates.

    `factor` is the weight kept from `previous`; 0 follows `current` exactly,
    values near 1 hold steady. The caller owns `previous` between calls.
    """
    if previous is None:
        return current
    return previous * factor + current * (1 - factor)
