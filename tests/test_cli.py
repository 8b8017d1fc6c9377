#!/usr/bin/env python3
"""
Tests for the run loader and the clonotable command line.

Tests focus on:
- Loading a JSON run description
- Failing before any table output when VDJ and GEX cells disagree
- Table and parseable output of a full run
"""

import csv
import json
import os

import pytest

from clonotable.cli import main
from clonotable.io import load_run
from clonotable.types import ClonotableError

HEAVY_V = "ATGGCTAAACCC"
HEAVY_J = "TGGGGC"
LIGHT_V = "CAGTCT"
LIGHT_J = "TTCGGC"


def contig(barcode, umis, left, li=0):
    return {"dataset_index": li, "barcode": barcode, "umi_count": umis,
            "read_count": 2 * umis, "left": left}


def exact(heavy_seq, barcodes):
    return {
        "share": [
            {"seq_del": heavy_seq, "v_ref_id": 1, "j_ref_id": 2, "js": HEAVY_J},
            {"seq_del": LIGHT_V + "AGC" + LIGHT_J, "v_ref_id": 3, "j_ref_id": 4, "js": LIGHT_J},
        ],
        "clones": [[contig(bc, 10 + i, True), contig(bc, 5, False)] for i, bc in enumerate(barcodes)],
    }


FIRST = [f"AAAC{i}-1" for i in range(4)]
SECOND = [f"GGGT{i}-1" for i in range(6)]
# Paired cells outside any exact clonotype, so that the consistency test has a sample.
UNCLONED = [f"TTTT{i}-1" for i in range(20)]
ALL_BARCODES = FIRST + SECOND + UNCLONED


def run_document(gex_cells):
    first = exact(HEAVY_V + "GAT" + HEAVY_J, FIRST)
    second = exact("ATGGTTAAACCC" + "GAT" + HEAVY_J, SECOND)
    extra_contigs = [[contig(bc, 8, True), contig(bc, 4, False)] for bc in UNCLONED]
    return {
        "references": {"1": HEAVY_V, "2": HEAVY_J, "3": LIGHT_V, "4": LIGHT_J},
        "reference_names": {"1": "IGHV1-1", "2": "IGHJ1", "3": "IGKV1-1", "4": "IGKJ1"},
        "datasets": [{"path": "/data/vdj", "gex_path": "/data/gex",
                      "vdj_cells": ALL_BARCODES, "gex_cells": gex_cells}],
        "contigs": first["clones"] + second["clones"] + extra_contigs,
        "exact_clonotypes": [first, second],
        "groups": [{
            "exacts": [0, 1],
            "mat": [[0, 0], [1, 1]],
            "vids": [1, 3],
            "jids": [2, 4],
            "cvars": [["amino", "umed"], ["amino"]],
            "seq_del_lens": [21, 15],
            "vars": [[4], []],
            "show_aa": [[0, 1, 2, 3, 4, 5, 6], [0, 1, 2, 3, 4]],
            "field_types": [[0, 0, 0, 0, 1, 2, 2], [0, 0, 1, 2, 2]],
            "rows": [
                {"lvars": {"umis": "40"}, "cvars": [{"umed": "10"}, {}]},
                {"lvars": {"umis": "65"}, "cvars": [{"umed": "11"}, {}]},
            ],
        }],
    }


@pytest.fixture
def run_file(tmp_path):
    def write(gex_cells):
        path = tmp_path / "run.json"
        path.write_text(json.dumps(run_document(gex_cells)))
        return str(path)
    return write


def test_load_run(run_file):
    run = load_run(run_file(["AAAC0-1"]))

    assert len(run.exact_clonotypes) == 2
    assert run.exact_clonotypes[1].ncells() == 6
    assert run.refdata.seq(1) == HEAVY_V
    assert run.origins[0].gex_path == "/data/gex"
    assert len(run.tig_bc) == 30
    assert run.groups[0].group.rsi.vpids == [None, None]
    assert run.groups[0].group.rord == [0, 1]


def test_row_data_fills_cell_count_for_n(run_file):
    run = load_run(run_file([]))

    rows = run.groups[0].row_data(["n", "umis", "gex"], run.exact_clonotypes)

    assert [r.lvar_values for r in rows] == [["4", "40", ""], ["6", "65", ""]]


def test_load_run_missing_file(tmp_path):
    with pytest.raises(ClonotableError):
        load_run(str(tmp_path / "missing.json"))


def test_load_run_malformed(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"exact_clonotypes": [{"clones": []}]}))

    with pytest.raises(ClonotableError):
        load_run(str(path))


def test_main_prints_tables(run_file, capsys):
    main([run_file(ALL_BARCODES), "--lvars", "n,umis", "--sum", "--mean", "--log-level", "WARNING"])

    out = capsys.readouterr().out
    assert "[1] CLONOTYPE = 10 CELLS, 2 EXACT SUBCLONOTYPES, 2 CHAINS" in out
    assert "MVKP D WG" in out
    sum_line = next(line for line in out.splitlines() if line.startswith("Σ"))
    mean_line = next(line for line in out.splitlines() if line.startswith("μ"))
    assert sum_line.split()[1:3] == ["10", "105"]
    assert mean_line.split()[1:3] == ["5.0", "52.5"]


def test_main_writes_parseable_output(run_file, tmp_path, capsys):
    pout = tmp_path / "out.csv"

    main([run_file(ALL_BARCODES), "--pout", str(pout), "--pcols", "exact_subclonotype_id,n,amino1",
          "--log-level", "WARNING"])

    with open(pout) as f:
        records = list(csv.DictReader(f))
    assert records == [
        {"exact_subclonotype_id": "1", "n": "4", "amino1": "MAKP D WG"},
        {"exact_subclonotype_id": "2", "n": "6", "amino1": "MVKP D WG"},
    ]


def test_main_stops_on_inconsistent_data(run_file, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([run_file([]), "--log-level", "WARNING"])

    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "CLONOTYPE" not in captured.out
    assert "/data/gex" in captured.err


def test_main_allow_inconsistent(run_file, capsys):
    main([run_file([]), "--allow-inconsistent", "--log-level", "WARNING"])

    assert "CLONOTYPE = 10 CELLS" in capsys.readouterr().out


def test_main_missing_input(tmp_path):
    with pytest.raises(SystemExit):
        main([os.path.join(str(tmp_path), "missing.json"), "--log-level", "WARNING"])


def test_main_parseable_header_comes_from_first_pass(run_file, tmp_path):
    pout = tmp_path / "out.csv"

    main([run_file(ALL_BARCODES), "--pout", str(pout), "--lvars", "n,umis", "--log-level", "WARNING"])

    with open(pout) as f:
        reader = csv.DictReader(f)
        records = list(reader)
    assert reader.fieldnames == ["exact_subclonotype_id", "n", "umis", "amino1", "umed1", "amino2"]
    assert [r["umis"] for r in records] == ["40", "65"]
    assert records[1]["amino2"] == "QS S FG"


def test_main_logs_to_stderr_and_log_file(run_file, tmp_path, capsys):
    log_file = tmp_path / "run.log"

    main([run_file(ALL_BARCODES), "--log-level", "INFO", "--log-file", str(log_file)])

    captured = capsys.readouterr()
    assert "Loaded 2 exact clonotypes" in captured.err
    assert "Loaded 2 exact clonotypes" not in captured.out
    assert "CLONOTYPE = 10 CELLS" in captured.out
    assert "Loaded 2 exact clonotypes" in log_file.read_text()
