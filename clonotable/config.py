"""Configuration for table assembly, parseable output and consistency checking."""

from dataclasses import dataclass, field
from typing import List


# Baseline fraction of VDJ cells expected to also be GEX cells.  Across 260
# tested libraries the lowest observed fraction was 0.65, and most were 0.9 or
# higher.
GEX_SHARING_BASELINE = 0.7

# Binomial sum below which a VDJ/GEX pair is rejected.  For 100 sampled cells
# this amounts to requiring at least 50 GEX cells.
INCONSISTENCY_THRESHOLD = 0.00002

# Maximum number of VDJ cells sampled per dataset.
MAX_SAMPLED_CELLS = 100


def _split_list(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [x for x in value.split(',') if x]
    return list(value)


@dataclass
class TableConfig:
    """Configuration for clonotype table assembly.

    Attributes:
        lvars: Row-level variables to display
        sum: Append a Σ row
        mean: Append a μ row
        consensus: Show the consensus row for multi-clonotype groups
        toy: Emit pairwise phylogeny inferences to the log buffer
        ref_v_trim: Bases at the 3' end of V excluded from V comparison
        ref_j_trim: Bases at the 5' end of J excluded from J comparison
        max_phylogeny_exacts: Groups larger than this skip the phylogeny
    """
    lvars: List[str] = field(default_factory=lambda: ["n"])
    sum: bool = False
    mean: bool = False
    consensus: bool = True
    toy: bool = False
    ref_v_trim: int = 15
    ref_j_trim: int = 15
    max_phylogeny_exacts: int = 500

    @classmethod
    def from_args(cls, args) -> 'TableConfig':
        lvars = _split_list(getattr(args, 'lvars', None))
        return cls(
            lvars=lvars if lvars else ["n"],
            sum=getattr(args, 'sum', False),
            mean=getattr(args, 'mean', False),
            toy=getattr(args, 'toy', False),
        )


@dataclass
class ParseableConfig:
    """Configuration for parseable output.

    An empty pcols list requests every field.  extra_args names fields that
    are always collected, whether or not pout is set.
    """
    pout: str = ""
    pcols: List[str] = field(default_factory=list)
    extra_args: List[str] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return bool(self.pout) or bool(self.extra_args)

    @classmethod
    def from_args(cls, args) -> 'ParseableConfig':
        return cls(
            pout=getattr(args, 'pout', None) or "",
            pcols=_split_list(getattr(args, 'pcols', None)),
        )


@dataclass
class ConsistencyConfig:
    """Configuration for the VDJ/GEX consistency test."""
    allow_inconsistent: bool = False
    threads: int = 1
    max_cells: int = MAX_SAMPLED_CELLS
    baseline: float = GEX_SHARING_BASELINE
    threshold: float = INCONSISTENCY_THRESHOLD

    @classmethod
    def from_args(cls, args) -> 'ConsistencyConfig':
        return cls(
            allow_inconsistent=getattr(args, 'allow_inconsistent', False),
            threads=getattr(args, 'threads', 1),
        )
