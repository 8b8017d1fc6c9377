"""Test toy phylogeny inference between exact subclonotypes."""

import io
import unittest

from clonotable.types import (
    ClonotypeGroup,
    ColumnInfo,
    DonorReferenceItem,
    ExactClonotype,
    RefData,
    SharedChain,
)
from clonotable.table.phylogeny import annotate_phylogeny, infer_pairs

V_REF = "ATGGCTAAACCC"
J_REF = "TGGGGC"
GERMLINE = V_REF + "GAT" + J_REF


def mutate(seq, pos, base):
    return seq[:pos] + base + seq[pos + 1:]


def exact(seq):
    return ExactClonotype(share=[SharedChain(seq, 1, 2, js=J_REF)], clones=[])


def group_for(nexacts, positions, vpid=None):
    rsi = ColumnInfo(mat=[[0] * nexacts], vids=[1], jids=[2], vpids=[vpid],
                     cvars=[["var"]], seq_del_lens=[len(GERMLINE)])
    return ClonotypeGroup(exacts=list(range(nexacts)), rsi=rsi, vars=[positions],
                          show_aa=[[]], field_types=[[]])


REFDATA = RefData(refs={1: V_REF, 2: J_REF})


class TestPhylogeny(unittest.TestCase):

    def test_difference_in_v_matching_second_reference(self):
        """Clonotype 2 carries the reference base in V: 1 ==> 2 with d1 = 0."""
        exacts = [exact(mutate(GERMLINE, 4, 'T')), exact(GERMLINE)]

        pairs = infer_pairs(group_for(2, [4]), exacts, REFDATA, [], ref_v_trim=2, ref_j_trim=2)

        self.assertEqual(len(pairs), 1)
        self.assertEqual((pairs[0].ancestor, pairs[0].descendant), (1, 2))
        self.assertEqual((pairs[0].d1, pairs[0].d2, pairs[0].d), (0, 1, 0))
        self.assertEqual(str(pairs[0]), "1 ==> 2; u1 = 1, u2 = 2, d1 = 0, d2 = 1, d = 0")

    def test_difference_in_v_matching_first_reference(self):
        exacts = [exact(GERMLINE), exact(mutate(GERMLINE, 4, 'T'))]

        pairs = infer_pairs(group_for(2, [4]), exacts, REFDATA, [], ref_v_trim=2, ref_j_trim=2)

        self.assertEqual((pairs[0].ancestor, pairs[0].descendant), (2, 1))
        self.assertEqual((pairs[0].d1, pairs[0].d2), (1, 0))

    def test_difference_in_j_compared_from_three_prime_end(self):
        # Base 19 is J base 4 of 6 counted so that the J end aligns with the chain end.
        exacts = [exact(mutate(GERMLINE, 19, 'A')), exact(GERMLINE)]

        pairs = infer_pairs(group_for(2, [19]), exacts, REFDATA, [], ref_v_trim=2, ref_j_trim=2)

        self.assertEqual(str(pairs[0]), "1 ==> 2; u1 = 1, u2 = 2, d1 = 0, d2 = 1, d = 0")

    def test_junction_difference_gives_no_direction(self):
        exacts = [exact(mutate(GERMLINE, 13, 'C')), exact(GERMLINE)]

        pairs = infer_pairs(group_for(2, [13]), exacts, REFDATA, [], ref_v_trim=2, ref_j_trim=2)

        self.assertEqual(pairs, [])

    def test_trimmed_v_end_counts_as_junction(self):
        # With a trim of 4, V comparison stops before base 8.
        exacts = [exact(mutate(GERMLINE, 9, 'G')), exact(GERMLINE)]

        pairs = infer_pairs(group_for(2, [9]), exacts, REFDATA, [], ref_v_trim=4, ref_j_trim=2)

        self.assertEqual(pairs, [])

    def test_donor_allele_used_as_v_reference(self):
        dref = [DonorReferenceItem(mutate(V_REF, 4, 'T'), 1)]
        exacts = [exact(GERMLINE), exact(mutate(GERMLINE, 4, 'T'))]

        pairs = infer_pairs(group_for(2, [4], vpid=0), exacts, REFDATA, dref,
                            ref_v_trim=2, ref_j_trim=2)

        self.assertEqual((pairs[0].ancestor, pairs[0].descendant), (1, 2))

    def test_both_sides_with_differences_gives_no_direction(self):
        first = mutate(GERMLINE, 4, 'T')
        second = mutate(GERMLINE, 1, 'A')
        exacts = [exact(first), exact(second)]

        pairs = infer_pairs(group_for(2, [1, 4]), exacts, REFDATA, [], ref_v_trim=2, ref_j_trim=2)

        self.assertEqual(pairs, [])

    def test_annotation_written_to_log(self):
        exacts = [exact(mutate(GERMLINE, 4, 'T')), exact(GERMLINE), exact(GERMLINE)]
        logz = io.StringIO()

        annotate_phylogeny(group_for(3, [4]), exacts, REFDATA, [], 2, 2, 10, logz)

        self.assertEqual(logz.getvalue(),
                         "1 ==> 2; u1 = 1, u2 = 2, d1 = 0, d2 = 1, d = 0\n"
                         "1 ==> 3; u1 = 1, u2 = 3, d1 = 0, d2 = 1, d = 0\n")

    def test_large_group_skipped(self):
        exacts = [exact(mutate(GERMLINE, 4, 'T')), exact(GERMLINE), exact(GERMLINE)]
        logz = io.StringIO()

        with self.assertLogs(level='WARNING'):
            result = annotate_phylogeny(group_for(3, [4]), exacts, REFDATA, [], 2, 2, 2, logz)

        self.assertEqual(result, [])
        self.assertEqual(logz.getvalue(), "")


if __name__ == '__main__':
    unittest.main()
