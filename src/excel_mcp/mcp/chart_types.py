from __future__ import annotations

import logging
from typing import Final

logger = logging.getLogger(__name__)

# Ordering here determines error messages and substring matching priority.
SUPPORTED_CHART_TYPES: Final[tuple[str, ...]] = (
    "line",
    "bar",
    "column",
    "area",
    "scatter",
    "pie",
    "doughnut",
    "radar",
)

CHART_TYPE_ALIASES: Final[dict[str, str]] = {
    "column_clustered": "column",
    "bar_clustered": "bar",
    "xy_scatter": "scatter",
    "donut": "doughnut",
}

SUPPORTED_CHART_TYPES_SET: Final[frozenset[str]] = frozenset(SUPPORTED_CHART_TYPES)
SUPPORTED_CHART_TYPES_CSV: Final[str] = ", ".join(SUPPORTED_CHART_TYPES)

# Chart types without category/value axes.
AXISLESS_CHART_TYPES: Final[frozenset[str]] = frozenset({"pie", "doughnut"})


def normalize_chart_type(chart_type: str) -> str | None:
    """Normalize chart type input to a canonical key.

    Exact names win, then the alias table, then the first canonical name
    contained in the input.

    Args:
        chart_type: Raw chart type value from request payload.

    Returns:
        Canonical chart type key when supported; otherwise ``None``.
    """
    candidate = chart_type.strip().lower()
    if candidate in SUPPORTED_CHART_TYPES_SET:
        return candidate
    alias = CHART_TYPE_ALIASES.get(candidate)
    if alias is not None:
        return alias
    for canonical in SUPPORTED_CHART_TYPES:
        if canonical in candidate:
            logger.warning(
                "Chart type %r matched %r by substring", chart_type, canonical
            )
            return canonical
    return None
