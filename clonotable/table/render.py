"""Plain text rendering of assembled rows.

Contract: rows are rectangular; justify holds one code per cell ('l' or
'r') with '|' inserted before the first cell of each chain column.  A row
made entirely of HLINE cells is drawn as a horizontal rule.
"""

from typing import List, Sequence

from clonotable.table.context import HLINE


def _is_hline(row: Sequence[str]) -> bool:
    return bool(row) and all(cell == HLINE for cell in row)


def make_table(rows: List[List[str]], justify: Sequence[str]) -> str:
    codes = [j for j in justify if j != '|']
    separators = set()
    c = 0
    for j in justify:
        if j == '|':
            separators.add(c)
        else:
            c += 1
    ncells = len(codes)
    for i, row in enumerate(rows):
        if len(row) != ncells:
            raise ValueError(f"Row {i} has {len(row)} cells, justification covers {ncells}")

    widths = [0] * ncells
    for row in rows:
        if _is_hline(row):
            continue
        for c, cell in enumerate(row):
            widths[c] = max(widths[c], len(cell))

    lines = []
    for row in rows:
        parts = []
        hline = _is_hline(row)
        for c in range(ncells):
            if c in separators:
                parts.append("─┼─" if hline else " │ ")
            elif c > 0:
                parts.append("──" if hline else "  ")
            if hline:
                parts.append("─" * widths[c])
            elif codes[c] == 'r':
                parts.append(row[c].rjust(widths[c]))
            else:
                parts.append(row[c].ljust(widths[c]))
        lines.append(''.join(parts).rstrip())
    return '\n'.join(lines) + '\n'
