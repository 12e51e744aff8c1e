"""Moving-average helpers.

``mean_of_last`` is the scalar used by the signal engine on every evaluation.
``sma`` returns the full rolling series and is used for chart overlays.
"""

import math
from typing import Sequence

import numpy as np


def mean_of_last(values: Sequence[float], period: int) -> float:
    """Arithmetic mean of the last ``period`` values.

    Args:
        values: Ordered samples, oldest first
        period: Window length

    Returns:
        Mean of the trailing window

    Raises:
        ValueError: If period is not positive or there are too few values
    """
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")
    if len(values) < period:
        raise ValueError(f"need {period} values, got {len(values)}")

    window = values[len(values) - period:]
    return math.fsum(window) / period


def sma(values: Sequence[float], period: int) -> np.ndarray:
    """Simple moving average series aligned with ``values``.

    The first ``period - 1`` entries are NaN.
    """
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")

    arr = np.asarray(values, dtype=float)
    result = np.full(arr.shape, np.nan)
    if arr.size < period:
        return result

    cumsum = np.cumsum(np.insert(arr, 0, 0.0))
    result[period - 1:] = (cumsum[period:] - cumsum[:-period]) / period
    return result
