#!/usr/bin/env python3

import argparse
import logging
import sys

from tqdm import tqdm

try:
    from clonotable import __version__
except ImportError:
    __version__ = "dev"

from clonotable.config import ConsistencyConfig, ParseableConfig, TableConfig
from clonotable.consistency import check_vdj_gex_consistency
from clonotable.io import load_run
from clonotable.parseable import write_parseable
from clonotable.table.finish import TableAssembler
from clonotable.types import ClonotableError, InconsistentDatasetsError


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Print clonotype tables after testing VDJ/GEX barcode consistency.")
    parser.add_argument("input_file", help="JSON run description")
    parser.add_argument("--lvars", type=str, default="n",
                        help="Comma-separated row-level variables to display (default: n)")
    parser.add_argument("--sum", action="store_true",
                        help="Add a row with the sum of each row-level variable")
    parser.add_argument("--mean", action="store_true",
                        help="Add a row with the mean of each row-level variable")
    parser.add_argument("--toy", action="store_true",
                        help="Print inferred ancestor/descendant pairs of exact subclonotypes")
    parser.add_argument("--pout", type=str, default=None,
                        help="Write parseable CSV output to this path ('stdout' for standard output)")
    parser.add_argument("--pcols", type=str, default=None,
                        help="Comma-separated fields for parseable output (default: all)")
    parser.add_argument("--allow-inconsistent", action="store_true",
                        help="Skip the VDJ/GEX barcode consistency test")
    parser.add_argument("--threads", type=int, default=1, metavar="N",
                        help="Threads for the consistency test (default: 1)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level")
    parser.add_argument("--log-file", type=str, default=None,
                        help="Also write log messages to this file")
    parser.add_argument("--version", action="version",
                        version=f"clonotable {__version__}",
                        help="Show program's version number and exit")
    return parser.parse_args(argv)


def setup_logging(log_level: str, log_file: str = None) -> None:
    """Send log messages to stderr (and optionally log_file), keeping stdout for tables."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(getattr(logging, log_level))

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w'))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(args.log_level, args.log_file)

    table_config = TableConfig.from_args(args)
    parseable_config = ParseableConfig.from_args(args)
    consistency_config = ConsistencyConfig.from_args(args)

    try:
        run = load_run(args.input_file)
    except ClonotableError as e:
        logging.error(str(e))
        sys.exit(1)

    try:
        check_vdj_gex_consistency(consistency_config, run.origins, run.tig_bc,
                                  run.exact_clonotypes, run.vdj_cells, run.gex_cells)
    except InconsistentDatasetsError as e:
        logging.error(f"VDJ/GEX consistency test failed for {len(e.flagged)} dataset(s)")
        sys.stderr.write(str(e))
        sys.exit(1)

    assembler = TableAssembler(table_config, run.exact_clonotypes, run.refdata, run.dref,
                               parseable=parseable_config)

    # Pass 1 measures the parseable field names; pass 2 prints and collects records.
    fields = []
    records = []
    for pass_num in (1, 2):
        for i, run_group in enumerate(tqdm(run.groups, desc=f"Assembling tables (pass {pass_num})",
                                           unit="group", disable=pass_num == 1)):
            row_data = run_group.row_data(table_config.lvars, run.exact_clonotypes)
            ctx = assembler.finish_table(run_group.group, row_data, run_group.stats,
                                         pass_num=pass_num, label=str(i + 1))
            if pass_num == 1:
                for name in ctx.fields:
                    if name not in fields:
                        fields.append(name)
                continue
            sys.stdout.write(ctx.mlog.getvalue())
            phylogeny = ctx.logz.getvalue()
            if phylogeny:
                sys.stdout.write(phylogeny)
            sys.stdout.write("\n")
            records.extend(ctx.out_data)
        if pass_num == 1 and fields:
            logging.debug(f"Parseable fields: {', '.join(fields)}")

    if parseable_config.pout:
        write_parseable(parseable_config, records, fields)


if __name__ == "__main__":
    main()
