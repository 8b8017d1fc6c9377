"""Header row, justification and body rows for a clonotype table."""

import logging
from typing import List, NamedTuple, Optional, Sequence, TextIO

from Bio.Seq import translate

from clonotable.types import ClonotypeGroup, ExactClonotype, RowData
from clonotable.table.context import justification

# Displayed where a reference base is undefined (junction region).
UNDEFINED = "◦"

# Display variables computed from chain sequences rather than taken from row data.
SEQUENCE_CVARS = ("amino", "var")


class TableStuff(NamedTuple):
    """Output of build_table_stuff."""
    row1: List[str]
    justify: List[str]
    body: List[List[List[str]]]  # Per displayed exact clonotype: main row then sub-rows
    has_positions: bool


def translate_codon(codon: str) -> str:
    """Translate a codon, '-' for incomplete or gapped codons."""
    if len(codon) < 3 or '-' in codon:
        return '-'
    return str(translate(codon))


def amino_residues(seq: Sequence[Optional[str]], positions: Sequence[int]) -> List[str]:
    """Residues at amino acid positions of a per-base sequence.

    seq may hold None for undefined bases; any codon touching one yields UNDEFINED.
    """
    residues = []
    for p in positions:
        codon = seq[3 * p:3 * p + 3]
        if any(b is None for b in codon):
            residues.append(UNDEFINED)
        else:
            residues.append(translate_codon(''.join(codon)))
    return residues


def base_residues(seq: Sequence[Optional[str]], positions: Sequence[int]) -> List[str]:
    """Bases at nucleotide positions, UNDEFINED where unknown."""
    residues = []
    for p in positions:
        b = seq[p] if p < len(seq) else None
        residues.append(UNDEFINED if b is None else b)
    return residues


def join_residues(residues: Sequence[str], field_types: Optional[Sequence[int]] = None) -> str:
    """Concatenate residues, inserting a space wherever the field type changes."""
    out = []
    for k, residue in enumerate(residues):
        if field_types is not None and k > 0 and field_types[k] != field_types[k - 1]:
            out.append(' ')
        out.append(residue)
    return ''.join(out)


def sequence_cell(cvar: str, seq: Sequence[Optional[str]], group: ClonotypeGroup, cx: int) -> str:
    """Cell text for a sequence cvar of one column."""
    if cvar == "amino":
        return join_residues(amino_residues(seq, group.show_aa[cx]), group.field_types[cx])
    return join_residues(base_residues(seq, group.vars[cx]))


def column_width(group: ClonotypeGroup) -> int:
    return sum(len(cvars) for cvars in group.rsi.cvars)


def has_displayed_positions(group: ClonotypeGroup) -> bool:
    for cx, cvars in enumerate(group.rsi.cvars):
        if "amino" in cvars and group.show_aa[cx]:
            return True
        if "var" in cvars and group.vars[cx]:
            return True
    return False


def add_header_text(group: ClonotypeGroup, exact_clonotypes: List[ExactClonotype],
                    mlog: TextIO, label: str = "") -> None:
    """Write the clonotype summary line that precedes the table."""
    ncells = sum(exact_clonotypes[group.exacts[u]].ncells() for u in group.rord)
    prefix = f"[{label}] " if label else ""
    mlog.write(f"{prefix}CLONOTYPE = {ncells} CELLS, {len(group.exacts)} EXACT SUBCLONOTYPES, "
               f"{group.rsi.ncols} CHAINS\n")


def build_table_stuff(lvars: Sequence[str],
                      group: ClonotypeGroup,
                      exact_clonotypes: List[ExactClonotype],
                      row_data: Sequence[RowData]) -> TableStuff:
    """
    Build the header row, its lead justification codes and the body rows.

    The per-column justification ('|' then one code per cvar) is left to the
    caller, which appends it once all rows are in place.

    Args:
        lvars: Row-level variables
        group: Layout of the clonotype
        exact_clonotypes: All exact clonotypes, indexed by group.exacts
        row_data: Display values per exact clonotype, in storage order

    Returns:
        TableStuff with body rows in display order (group.rord)
    """
    group.validate()
    rsi = group.rsi
    nexacts = len(group.exacts)
    if len(row_data) != nexacts:
        raise ValueError(f"Got row data for {len(row_data)} exact clonotypes, expected {nexacts}")

    row1 = ["#"] + list(lvars)
    justify = [justification("#")] + [justification(lvar) for lvar in lvars]
    for cvars in rsi.cvars:
        row1.extend(cvars)
    width = len(row1)

    body = []
    for v, u in enumerate(group.rord):
        data = row_data[u]
        if len(data.lvar_values) != len(lvars):
            raise ValueError(f"Exact clonotype {u}: {len(data.lvar_values)} lvar values "
                             f"for {len(lvars)} lvars")
        ex = exact_clonotypes[group.exacts[u]]
        row = [str(v + 1)] + list(data.lvar_values)
        for cx, cvars in enumerate(rsi.cvars):
            m = rsi.mat[cx][u]
            values = data.cvar_values[cx] if cx < len(data.cvar_values) else {}
            for cvar in cvars:
                if m is None:
                    row.append("")
                elif cvar in SEQUENCE_CVARS:
                    row.append(sequence_cell(cvar, ex.share[m].seq_del, group, cx))
                else:
                    row.append(values.get(cvar, ""))
        rows = [row]
        for subrow in data.subrows:
            if len(subrow) != width:
                raise ValueError(f"Sub-row of exact clonotype {u} has {len(subrow)} cells, "
                                 f"expected {width}")
            rows.append(list(subrow))
        body.append(rows)

    logging.debug(f"Built table stuff: {width} columns, {nexacts} exact clonotypes")
    return TableStuff(row1, justify, body, has_displayed_positions(group))
