"""Reference, consensus and diff rows."""

from typing import List, Optional, Sequence

from clonotable.types import ClonotypeGroup, DonorReferenceItem, ExactClonotype, RefData
from clonotable.table.stuff import (
    SEQUENCE_CVARS,
    UNDEFINED,
    amino_residues,
    base_residues,
    join_residues,
    sequence_cell,
)


def reference_bases(vref: str, jref: str, n: int) -> List[Optional[str]]:
    """Reference base at each position of an aligned chain of length n.

    V covers the start of the chain and J is anchored at its 3' end; bases in
    between (the junction) are undefined.
    """
    bases = []
    for p in range(n):
        if p < len(vref):
            bases.append(vref[p])
        elif p >= n - len(jref):
            bases.append(jref[len(jref) - (n - p)])
        else:
            bases.append(None)
    return bases


def resolve_vref(group: ClonotypeGroup, cx: int, refdata: RefData,
                 dref: Sequence[DonorReferenceItem], donor: bool = True) -> str:
    """V reference of a column: the donor allele if one is assigned, else the universal V."""
    vpid = group.rsi.vpids[cx]
    if donor and vpid is not None:
        if vpid >= len(dref):
            raise ValueError(f"Column {cx} refers to donor reference {vpid}, "
                             f"only {len(dref)} available")
        return dref[vpid].nt_sequence
    return refdata.seq(group.rsi.vids[cx])


def _reference_row(label: str, nlvars: int, group: ClonotypeGroup, refdata: RefData,
                   dref: Sequence[DonorReferenceItem], donor: bool) -> List[str]:
    rsi = group.rsi
    row = [label] + [""] * nlvars
    for cx, cvars in enumerate(rsi.cvars):
        vref = resolve_vref(group, cx, refdata, dref, donor=donor)
        jref = refdata.seq(rsi.jids[cx])
        bases = reference_bases(vref, jref, rsi.seq_del_lens[cx])
        for cvar in cvars:
            row.append(sequence_cell(cvar, bases, group, cx) if cvar in SEQUENCE_CVARS else "")
    return row


def build_reference_rows(nlvars: int, group: ClonotypeGroup, refdata: RefData,
                         dref: Sequence[DonorReferenceItem]) -> List[List[str]]:
    """
    Build the universal reference row and, if it differs, the donor reference row.

    Returns:
        One or two rows; the donor row is omitted when no column has a donor
        allele that changes a displayed cell
    """
    universal = _reference_row("reference", nlvars, group, refdata, dref, donor=False)
    rows = [universal]
    if any(vpid is not None for vpid in group.rsi.vpids):
        donor = _reference_row("donor ref", nlvars, group, refdata, dref, donor=True)
        if donor[1:] != universal[1:]:
            rows.append(donor)
    return rows


def _column_residues(group: ClonotypeGroup, exact_clonotypes: List[ExactClonotype],
                     cx: int, cvar: str) -> List[List[str]]:
    residues = []
    for u, m in enumerate(group.rsi.mat[cx]):
        if m is None:
            continue
        seq = exact_clonotypes[group.exacts[u]].share[m].seq_del
        if cvar == "amino":
            residues.append(amino_residues(seq, group.show_aa[cx]))
        else:
            residues.append(base_residues(seq, group.vars[cx]))
    return residues


def _reference_residues(group: ClonotypeGroup, cx: int, cvar: str, refdata: RefData,
                        dref: Sequence[DonorReferenceItem]) -> List[str]:
    rsi = group.rsi
    vref = resolve_vref(group, cx, refdata, dref)
    bases = reference_bases(vref, refdata.seq(rsi.jids[cx]), rsi.seq_del_lens[cx])
    if cvar == "amino":
        return amino_residues(bases, group.show_aa[cx])
    return base_residues(bases, group.vars[cx])


def _summary_row(label: str, nlvars: int, group: ClonotypeGroup,
                 exact_clonotypes: List[ExactClonotype], column_marks) -> List[str]:
    row = [label] + [""] * nlvars
    for cx, cvars in enumerate(group.rsi.cvars):
        for cvar in cvars:
            if cvar not in SEQUENCE_CVARS:
                row.append("")
                continue
            residues = _column_residues(group, exact_clonotypes, cx, cvar)
            if not residues:
                row.append("")
                continue
            marks = column_marks(cx, cvar, residues)
            field_types = group.field_types[cx] if cvar == "amino" else None
            row.append(join_residues(marks, field_types))
    return row


def build_consensus_row(nlvars: int, group: ClonotypeGroup,
                        exact_clonotypes: List[ExactClonotype]) -> List[str]:
    """Residue shared by every exact clonotype at each displayed position, X where they differ."""
    def column_marks(cx, cvar, residues):
        return [column[0] if len(set(column)) == 1 else "X" for column in zip(*residues)]

    return _summary_row("consensus", nlvars, group, exact_clonotypes, column_marks)


def build_diff_row(nlvars: int, group: ClonotypeGroup,
                   exact_clonotypes: List[ExactClonotype], refdata: RefData,
                   dref: Sequence[DonorReferenceItem]) -> List[str]:
    """
    Mark each displayed position '.' or 'x'.

    A position gets 'x' when the exact clonotypes present in the column differ
    from each other, or when any of them differs from the reference (the donor
    allele if one is assigned).  Positions where the reference is undefined
    are judged among the clonotypes only.
    """
    def column_marks(cx, cvar, residues):
        reference = _reference_residues(group, cx, cvar, refdata, dref)
        marks = []
        for k, column in enumerate(zip(*residues)):
            seen = set(column)
            if reference[k] != UNDEFINED:
                seen.add(reference[k])
            marks.append("." if len(seen) == 1 else "x")
        return marks

    return _summary_row("diff", nlvars, group, exact_clonotypes, column_marks)
