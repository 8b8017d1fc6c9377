"""Mutable state threaded through the table pipeline for one clonotype group."""

from dataclasses import dataclass, field
from io import StringIO
from typing import List, Dict

# Row whose cells are all HLINE is drawn as a horizontal rule.
HLINE = "\\hline"

# Text-valued variables; anything else is right-justified as a number.
TEXT_VARIABLES = {
    "#", "amino", "var", "const", "notes", "edit", "comp",
    "datasets", "donors", "origins", "barcode", "barcodes",
    "clust", "ext", "filter", "inkt", "mait", "near", "far",
}
TEXT_SUFFIXES = ("_aa", "_dna", "_name", "_names", "_id_name")


def justification(var: str) -> str:
    """Return 'l' for text-valued variables and 'r' for numeric ones."""
    name = var.split(':', 1)[0]
    if name in TEXT_VARIABLES or name.endswith(TEXT_SUFFIXES):
        return 'l'
    return 'r'


def show_chain_names(cell: str) -> str:
    """Replace the |TRX and |TRY chain placeholders with TRB and TRA."""
    return cell.replace("|TRX", "TRB").replace("|TRY", "TRA")


@dataclass
class RenderContext:
    """Rows, justification and log buffers for one rendering call.

    Stages append to rows; the only non-append edit is the insertion of
    reference rows at reference_insert_at, just after the header.
    """
    rows: List[List[str]] = field(default_factory=list)
    justify: List[str] = field(default_factory=list)
    mlog: StringIO = field(default_factory=StringIO)
    logz: StringIO = field(default_factory=StringIO)
    out_data: List[Dict[str, str]] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    reference_insert_at: int = 1
    table: str = ""

    @property
    def width(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def push(self, row: List[str]) -> None:
        if self.rows and len(row) != self.width:
            raise ValueError(f"Row has {len(row)} cells, header has {self.width}")
        self.rows.append(row)

    def insert_after_header(self, new_rows: List[List[str]]) -> None:
        for offset, row in enumerate(new_rows):
            if len(row) != self.width:
                raise ValueError(f"Row has {len(row)} cells, header has {self.width}")
            self.rows.insert(self.reference_insert_at + offset, row)

    def push_hline(self) -> None:
        self.rows.append([HLINE] * self.width)
