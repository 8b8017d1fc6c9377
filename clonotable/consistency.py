"""
Test for consistency between VDJ cells and GEX cells.

Up to 100 VDJ cells having both chain types (heavy and light, or TRB and TRA)
are taken in decreasing order of total VDJ UMI count, using at most one cell
per exact subclonotype, and the number of them that are also GEX cells is
counted.  If n cells were taken and k of them are GEX cells, the pair passes
when P(X <= k) >= 0.00002 for X ~ Binomial(n, 0.7).  For n = 100 this is the
same as requiring k >= 50; for small n the requirement is less stringent.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
from scipy.stats import binom
from tqdm import tqdm

from clonotable.config import ConsistencyConfig
from clonotable.types import (
    ConsistencyResult,
    DatasetOrigin,
    ExactClonotype,
    InconsistentDatasetsError,
    TigData,
)

GUIDANCE = (
    "\nThis test is restricted to VDJ cells having both chain types, uses at most "
    "one cell\nper exact subclonotype, and uses up to 100 cells having the highest "
    "UMI counts.\n"
    "\nThe data suggest a laboratory or informatic mixup.  If you believe "
    "that this is not the case,\nyou can force the run by adding "
    "--allow-inconsistent to the command line.\n"
)


def binomial_sum(n: int, k: int, p: float) -> float:
    """Probability of at most k successes in n trials with success probability p."""
    return float(binom.cdf(k, n, p))


def exact_clonotype_index(exact_clonotypes: Sequence[ExactClonotype],
                          dataset_index: int) -> Dict[str, int]:
    """Map each barcode of a dataset to the exact clonotype containing it."""
    exid = {}
    for i, ex in enumerate(exact_clonotypes):
        for clone in ex.clones:
            if clone and clone[0].dataset_index == dataset_index:
                exid[clone[0].barcode] = i
    return exid


def paired_cells(tig_bc: Sequence[Sequence[TigData]], vdj_cells: Sequence[str],
                 dataset_index: int) -> List[Tuple[str, int]]:
    """VDJ cells of a dataset having both chain types, with their total UMI count.

    Cells are returned in vdj_cells order.
    """
    vdj = set(vdj_cells)
    numi: Dict[str, int] = {}
    heavy: Set[str] = set()
    light: Set[str] = set()
    for tigs in tig_bc:
        if not tigs or tigs[0].dataset_index != dataset_index:
            continue
        barcode = tigs[0].barcode
        if barcode not in vdj:
            continue
        for tig in tigs:
            numi[barcode] = numi.get(barcode, 0) + tig.umi_count
            if tig.left:
                heavy.add(barcode)
            else:
                light.add(barcode)
    return [(bc, numi[bc]) for bc in vdj_cells if bc in heavy and bc in light]


def sample_cells(cells: Sequence[Tuple[str, int]], exid: Dict[str, int],
                 gex_cells: Set[str], max_cells: int) -> Tuple[int, int]:
    """
    Count sampled cells and how many of them are GEX cells.

    Cells are visited by decreasing UMI count, ties in input order.  A cell is
    skipped if its exact clonotype already contributed a cell; cells outside
    any exact clonotype are always taken.

    Returns:
        Tuple of (total, good)
    """
    if not cells:
        return 0, 0
    umis = np.array([umi for _, umi in cells], dtype=np.int64)
    order = np.argsort(-umis, kind='stable')
    used = set()
    total = good = 0
    for i in order:
        barcode = cells[i][0]
        ex = exid.get(barcode)
        if ex is not None:
            if ex in used:
                continue
            used.add(ex)
        total += 1
        if barcode in gex_cells:
            good += 1
        if total == max_cells:
            break
    return total, good


def check_dataset(li: int,
                  config: ConsistencyConfig,
                  origin: DatasetOrigin,
                  tig_bc: Sequence[Sequence[TigData]],
                  exact_clonotypes: Sequence[ExactClonotype],
                  vdj_cells: Sequence[str],
                  gex_cells: Set[str]) -> ConsistencyResult:
    """Run the sharing test for dataset li."""
    exid = exact_clonotype_index(exact_clonotypes, li)
    cells = paired_cells(tig_bc, vdj_cells, li)
    total, good = sample_cells(cells, exid, gex_cells, config.max_cells)
    if total == 0:
        return ConsistencyResult(li, 0, 0, None)
    probability = binomial_sum(total, good, config.baseline)
    message = ""
    if probability < config.threshold:
        message = (
            f"\nThe VDJ dataset with path\n{origin.dataset_path}\nand the GEX dataset with path\n"
            f"{origin.gex_path}\nshow insufficient sharing of barcodes.  "
            f"Of the {total} VDJ cells that were tested,\n"
            f"only {good} were GEX cells.\n"
        )
    return ConsistencyResult(li, total, good, probability, message)


def check_vdj_gex_consistency(config: ConsistencyConfig,
                              origins: Sequence[DatasetOrigin],
                              tig_bc: Sequence[Sequence[TigData]],
                              exact_clonotypes: Sequence[ExactClonotype],
                              vdj_cells: Sequence[Sequence[str]],
                              gex_cell_barcodes: Sequence[Sequence[str]]) -> List[Optional[ConsistencyResult]]:
    """
    Test every dataset that has a GEX pairing, in parallel.

    Datasets without a GEX path, and all datasets when allow_inconsistent is
    set, are skipped and get a None result.

    Returns:
        Results indexed by dataset

    Raises:
        InconsistentDatasetsError: if any dataset fails the test
    """
    ndatasets = len(origins)
    if len(vdj_cells) != ndatasets or len(gex_cell_barcodes) != ndatasets:
        raise ValueError(f"Expected VDJ and GEX barcodes for {ndatasets} datasets")

    results: List[Optional[ConsistencyResult]] = [None] * ndatasets
    if config.allow_inconsistent:
        logging.info("Skipping VDJ/GEX consistency test (inconsistency allowed)")
        return results
    to_test = [li for li in range(ndatasets) if origins[li].gex_path]
    if not to_test:
        return results

    def run(li):
        return check_dataset(li, config, origins[li], tig_bc, exact_clonotypes,
                             vdj_cells[li], set(gex_cell_barcodes[li]))

    with ThreadPoolExecutor(max_workers=max(1, config.threads)) as executor:
        for result in tqdm(executor.map(run, to_test), total=len(to_test),
                           desc="Testing VDJ/GEX consistency", unit="dataset"):
            results[result.dataset_index] = result

    flagged = []
    for result in results:
        if result is None:
            continue
        if result.probability is None:
            logging.info(f"Dataset {result.dataset_index + 1}: no paired VDJ cells to test")
        else:
            logging.info(f"Dataset {result.dataset_index + 1}: {result.good} of {result.total} "
                         f"sampled VDJ cells are GEX cells (p={result.probability:.3g})")
        if result.message:
            flagged.append(result)

    if flagged:
        message = ''.join(r.message for r in flagged) + GUIDANCE
        raise InconsistentDatasetsError(message, flagged)
    return results
