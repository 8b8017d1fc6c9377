"""Σ and μ rows computed from recorded variable values."""

import math
from typing import List, Sequence

from clonotable.stats import VariableStats

SUM_LABEL = "Σ"
MEAN_LABEL = "μ"

# Largest count shown in a Σ cell; larger totals saturate.
MAX_COUNT = 2 ** 64 - 1


def _round_count(total: float) -> int:
    # Half away from zero, clamped to [0, MAX_COUNT].
    if math.isnan(total) or total <= 0:
        return 0
    if total >= MAX_COUNT:
        return MAX_COUNT
    return int(math.floor(total + 0.5))


def _stat_name(lvar: str) -> str:
    return lvar.split(':', 1)[0]


def _pad(row: List[str], cvar_count: int) -> List[str]:
    return row + [""] * cvar_count


def build_sum_row(lvars: Sequence[str], stats: VariableStats, cvar_count: int) -> List[str]:
    """Σ row: total of every numeric value recorded for each lvar."""
    row = [SUM_LABEL]
    for lvar in lvars:
        total = stats.total(_stat_name(lvar))
        if total is None:
            row.append("")
        elif lvar.endswith("_%"):
            row.append(f"{total:.2f}")
        else:
            row.append(str(_round_count(total)))
    return _pad(row, cvar_count)


def build_mean_row(lvars: Sequence[str], stats: VariableStats, n: int, cvar_count: int) -> List[str]:
    """μ row: the Σ total divided by the number of rows n."""
    row = [MEAN_LABEL]
    for lvar in lvars:
        total = stats.total(_stat_name(lvar))
        if total is None or n == 0:
            row.append("")
        elif lvar.endswith("_%"):
            row.append(f"{total / n:.2f}")
        else:
            row.append(f"{total / n:.1f}")
    return _pad(row, cvar_count)
