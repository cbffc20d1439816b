"""Integer rounding shared by percentages and the final score."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with exact halves going up.

    62.5 -> 63 and 82.5 -> 83, where ``round()`` gives 62 and 82.
    """
    return math.floor(value + 0.5)
