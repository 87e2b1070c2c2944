"""
scale.py
Discrete colour scale for newspaper counts (step function, no interpolation).

A count selects the first bound it reaches (count >= bound); the palette runs
darkest to lightest in the same order. Zero or missing counts get NO_DATA_COLOR.
"""

from typing import List, Optional, Tuple

DENSITY_COLORS = ["#5C0000", "#8B0000", "#B22222", "#FF8A8A", "#FFC7C7", "#EFEFEF"]
DENSITY_BOUNDS = [5, 4, 3, 2, 1, 0]
NO_DATA_COLOR = "#F8F8F8"
NO_DATA_LABEL = "keine Daten"


def bucket_index(count: Optional[int]) -> Optional[int]:
    """Index into DENSITY_COLORS, or None when the count means 'no data'."""
    if count is None:
        return None
    # the trailing 0 bound closes the scale; zero itself is "no data"
    for i, bound in enumerate(DENSITY_BOUNDS[:-1]):
        if count >= bound:
            return i
    return None


def color_for_count(count: Optional[int]) -> str:
    idx = bucket_index(count)
    if idx is None:
        return NO_DATA_COLOR
    return DENSITY_COLORS[idx]


def legend_rows() -> List[Tuple[str, str]]:
    """(label, colour) pairs for the legend, darkest first."""
    rows = []
    for i, bound in enumerate(DENSITY_BOUNDS[:-1]):
        label = f"{bound}+" if i == 0 else str(bound)
        rows.append((label, DENSITY_COLORS[i]))
    rows.append((NO_DATA_LABEL, NO_DATA_COLOR))
    return rows
