"""Loading of a clonotable run description from JSON.

Layout of the document:

    {
      "references": {"<id>": "<nt sequence>", ...},
      "reference_names": {"<id>": "<gene name>", ...},
      "donor_references": [{"nt_sequence": ..., "ref_id": ..., "donor_index": ...}],
      "datasets": [{"path": ..., "gex_path": ..., "vdj_cells": [...], "gex_cells": [...]}],
      "exact_clonotypes": [{"share": [{"seq_del": ..., "v_ref_id": ..., "j_ref_id": ...,
                                        "js": ..., "cdr3_aa": ...}],
                            "clones": [[{"dataset_index": ..., "barcode": ...,
                                         "umi_count": ..., "read_count": ..., "left": ...}]]}],
      "contigs": [[<contig>, ...], ...],
      "groups": [{"exacts": [...], "mat": [[...]], "vids": [...], "jids": [...],
                  "vpids": [...], "cvars": [[...]], "seq_del_lens": [...],
                  "vars": [[...]], "show_aa": [[...]], "field_types": [[...]], "rord": [...],
                  "rows": [{"lvars": {"<name>": "<value>"}, "cvars": [{...}], "subrows": [[...]]}],
                  "stats": [["<name>", ["<value>", ...]]]}]
    }

"contigs" defaults to the cells of the exact clonotypes; "stats" defaults to
the displayed lvar values.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from clonotable.stats import VariableStats
from clonotable.types import (
    ClonotableError,
    ClonotypeGroup,
    ColumnInfo,
    DatasetOrigin,
    DonorReferenceItem,
    ExactClonotype,
    RefData,
    RowData,
    SharedChain,
    TigData,
)


@dataclass
class RunGroup:
    """One clonotype group with its raw display values."""
    group: ClonotypeGroup
    lvar_values: List[Dict[str, str]]
    cvar_values: List[List[Dict[str, str]]]
    subrows: List[List[List[str]]]
    stats: Optional[VariableStats] = None

    def row_data(self, lvars: Sequence[str], exact_clonotypes: List[ExactClonotype]) -> List[RowData]:
        """RowData per exact clonotype for the requested lvars; n defaults to the cell count."""
        rows = []
        for u, values in enumerate(self.lvar_values):
            ncells = exact_clonotypes[self.group.exacts[u]].ncells()
            lvals = []
            for lvar in lvars:
                if lvar in values:
                    lvals.append(str(values[lvar]))
                elif lvar == "n":
                    lvals.append(str(ncells))
                else:
                    lvals.append("")
            rows.append(RowData(lvals, self.cvar_values[u], self.subrows[u]))
        return rows


@dataclass
class Run:
    refdata: RefData
    dref: List[DonorReferenceItem]
    origins: List[DatasetOrigin]
    vdj_cells: List[List[str]]
    gex_cells: List[List[str]]
    exact_clonotypes: List[ExactClonotype]
    tig_bc: List[List[TigData]]
    groups: List[RunGroup] = field(default_factory=list)


def _tig(data: dict) -> TigData:
    return TigData(
        dataset_index=int(data["dataset_index"]),
        barcode=data["barcode"],
        umi_count=int(data["umi_count"]),
        read_count=int(data.get("read_count", 0)),
        left=bool(data.get("left", False)),
    )


def _exact_clonotype(data: dict) -> ExactClonotype:
    share = [SharedChain(seq_del=s["seq_del"], v_ref_id=int(s["v_ref_id"]),
                         j_ref_id=int(s["j_ref_id"]), js=s.get("js", ""),
                         cdr3_aa=s.get("cdr3_aa", ""))
             for s in data["share"]]
    clones = [[_tig(t) for t in cell] for cell in data.get("clones", [])]
    return ExactClonotype(share=share, clones=clones)


def _group(data: dict) -> RunGroup:
    nexacts = len(data["exacts"])
    cols = len(data["mat"])
    rsi = ColumnInfo(
        mat=data["mat"],
        vids=[int(x) for x in data["vids"]],
        jids=[int(x) for x in data["jids"]],
        vpids=data.get("vpids", [None] * cols),
        cvars=data["cvars"],
        seq_del_lens=data["seq_del_lens"],
    )
    group = ClonotypeGroup(
        exacts=data["exacts"],
        rsi=rsi,
        vars=data.get("vars", [[] for _ in range(cols)]),
        show_aa=data.get("show_aa", [[] for _ in range(cols)]),
        field_types=data.get("field_types", [[] for _ in range(cols)]),
        rord=data.get("rord"),
    )
    rows = data.get("rows", [{} for _ in range(nexacts)])
    if len(rows) != nexacts:
        raise ClonotableError(f"Group has {nexacts} exact clonotypes but {len(rows)} rows")
    stats = None
    if "stats" in data:
        stats = VariableStats([(name, values) for name, values in data["stats"]])
    return RunGroup(
        group=group,
        lvar_values=[row.get("lvars", {}) for row in rows],
        cvar_values=[row.get("cvars", [{} for _ in range(cols)]) for row in rows],
        subrows=[row.get("subrows", []) for row in rows],
        stats=stats,
    )


def load_run(path: str) -> Run:
    """Load a run description, raising ClonotableError on missing or malformed input."""
    if not os.path.exists(path):
        raise ClonotableError(f"Input file not found: {path}")
    try:
        with open(path) as f:
            doc = json.load(f)
    except json.JSONDecodeError as e:
        raise ClonotableError(f"Cannot parse {path}: {e}") from e

    try:
        refdata = RefData(
            refs={int(k): v for k, v in doc.get("references", {}).items()},
            names={int(k): v for k, v in doc.get("reference_names", {}).items()},
        )
        dref = [DonorReferenceItem(d["nt_sequence"], int(d["ref_id"]), int(d.get("donor_index", 0)))
                for d in doc.get("donor_references", [])]
        datasets = doc.get("datasets", [])
        origins = [DatasetOrigin(d["path"], d.get("gex_path", "")) for d in datasets]
        vdj_cells = [list(d.get("vdj_cells", [])) for d in datasets]
        gex_cells = [list(d.get("gex_cells", [])) for d in datasets]
        exact_clonotypes = [_exact_clonotype(e) for e in doc.get("exact_clonotypes", [])]
        if "contigs" in doc:
            tig_bc = [[_tig(t) for t in tigs] for tigs in doc["contigs"]]
        else:
            tig_bc = [cell for ex in exact_clonotypes for cell in ex.clones]
        groups = [_group(g) for g in doc.get("groups", [])]
    except (KeyError, TypeError, ValueError) as e:
        raise ClonotableError(f"Malformed run description {path}: {e}") from e

    logging.info(f"Loaded {len(exact_clonotypes)} exact clonotypes in {len(groups)} groups "
                 f"from {len(origins)} datasets")
    return Run(refdata, dref, origins, vdj_cells, gex_cells, exact_clonotypes, tig_bc, groups)
