"""Toy pairwise phylogeny between the exact clonotypes of a group.

For each pair of exact clonotypes, every displayed variant position where
they differ is attributed to one side by comparison with the reference: in
the V region (short of the trimmed 3' end) against the V allele, in the J
region (short of the trimmed 5' end) against J read from the 3' end.
Differences in between count toward neither.  When exactly one side has no
reference-matching differences, that side is reported as the ancestor.

Cost is O(pairs x columns x positions), so large groups are skipped.
"""

import logging
from typing import List, NamedTuple, Sequence

from clonotable.types import ClonotypeGroup, DonorReferenceItem, ExactClonotype, RefData
from clonotable.table.reference import resolve_vref


class PairInference(NamedTuple):
    """Inferred direction between two exact clonotypes (1-indexed)."""
    ancestor: int
    descendant: int
    u1: int
    u2: int
    d1: int
    d2: int
    d: int

    def __str__(self):
        return (f"{self.ancestor} ==> {self.descendant}; u1 = {self.u1}, u2 = {self.u2}, "
                f"d1 = {self.d1}, d2 = {self.d2}, d = {self.d}")


def column_references(group: ClonotypeGroup, exact_clonotypes: List[ExactClonotype],
                      refdata: RefData, dref: Sequence[DonorReferenceItem]):
    """V and J references per column; J is taken from the last exact clonotype in the column."""
    vrefs, jrefs = [], []
    for cx in range(group.rsi.ncols):
        jref = ""
        for exact, m in zip(group.exacts, group.rsi.mat[cx]):
            if m is not None:
                jref = exact_clonotypes[exact].share[m].js
        vrefs.append(resolve_vref(group, cx, refdata, dref))
        jrefs.append(jref)
    return vrefs, jrefs


def infer_pairs(group: ClonotypeGroup, exact_clonotypes: List[ExactClonotype],
                refdata: RefData, dref: Sequence[DonorReferenceItem],
                ref_v_trim: int, ref_j_trim: int) -> List[PairInference]:
    vrefs, jrefs = column_references(group, exact_clonotypes, refdata, dref)
    rsi = group.rsi
    nexacts = len(group.exacts)
    inferences = []
    for u1 in range(nexacts):
        ex1 = exact_clonotypes[group.exacts[u1]]
        for u2 in range(u1 + 1, nexacts):
            ex2 = exact_clonotypes[group.exacts[u2]]
            d1 = d2 = d = 0
            for cx in range(rsi.ncols):
                m1, m2 = rsi.mat[cx][u1], rsi.mat[cx][u2]
                if m1 is None or m2 is None:
                    continue
                s1, s2 = ex1.share[m1].seq_del, ex2.share[m2].seq_del
                n = len(s1)
                vref, jref = vrefs[cx], jrefs[cx]
                for p in group.vars[cx]:
                    if s1[p] == s2[p]:
                        continue
                    if p < len(vref) - ref_v_trim:
                        if s1[p] == vref[p]:
                            d1 += 1
                        elif s2[p] == vref[p]:
                            d2 += 1
                    elif p >= n - (len(jref) - ref_j_trim):
                        jbase = jref[len(jref) - (n - p)]
                        if s1[p] == jbase:
                            d1 += 1
                        elif s2[p] == jbase:
                            d2 += 1
                    else:
                        d += 1
            if (d1 == 0) != (d2 == 0):
                if d1 == 0:
                    ancestor, descendant = u1 + 1, u2 + 1
                else:
                    ancestor, descendant = u2 + 1, u1 + 1
                inferences.append(PairInference(ancestor, descendant, u1 + 1, u2 + 1, d1, d2, d))
    return inferences


def annotate_phylogeny(group: ClonotypeGroup, exact_clonotypes: List[ExactClonotype],
                       refdata: RefData, dref: Sequence[DonorReferenceItem],
                       ref_v_trim: int, ref_j_trim: int, max_exacts: int,
                       logz) -> List[PairInference]:
    """Write one line per inferred ancestor/descendant pair to logz."""
    nexacts = len(group.exacts)
    if nexacts > max_exacts:
        logging.warning(f"Skipping phylogeny for group with {nexacts} exact subclonotypes "
                        f"(limit {max_exacts})")
        return []
    inferences = infer_pairs(group, exact_clonotypes, refdata, dref, ref_v_trim, ref_j_trim)
    for inference in inferences:
        logz.write(f"{inference}\n")
    return inferences
