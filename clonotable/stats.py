"""Per-variable value collections used for Σ and μ rows."""

from typing import List, Tuple, Iterator, Optional, Sequence


def parse_number(value: str) -> Optional[float]:
    """Return value as a float, or None if it is not numeric.

    Surrounding whitespace and digit-group underscores are not accepted;
    "inf" and "nan" are.
    """
    if not isinstance(value, str) or '_' in value or value != value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


class VariableStats:
    """Ordered mapping of variable name to its per-row string values.

    The same name may be recorded more than once (for instance once per
    dataset); lookups see every entry with that name.
    """

    def __init__(self, entries: Optional[Sequence[Tuple[str, List[str]]]] = None):
        self.entries: List[Tuple[str, List[str]]] = []
        for name, values in entries or []:
            self.add(name, values)

    def add(self, name: str, values: Sequence[str]) -> None:
        self.entries.append((name, [str(v) for v in values]))

    def __iter__(self) -> Iterator[Tuple[str, List[str]]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: str) -> bool:
        return any(entry_name == name for entry_name, _ in self.entries)

    def total(self, name: str) -> Optional[float]:
        """Sum numeric values recorded under name; None if name was never recorded."""
        found = False
        total = 0.0
        for entry_name, values in self.entries:
            if entry_name != name:
                continue
            found = True
            for value in values:
                x = parse_number(value)
                if x is not None:
                    total += x
        return total if found else None

    @classmethod
    def from_rows(cls, lvars: Sequence[str], lvar_rows: Sequence[Sequence[str]]) -> 'VariableStats':
        """Build stats from per-row lvar values, one list per displayed row."""
        stats = cls()
        for i, lvar in enumerate(lvars):
            name = lvar.split(':', 1)[0]
            stats.add(name, [row[i] for row in lvar_rows])
        return stats
