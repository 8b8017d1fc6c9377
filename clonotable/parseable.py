"""Parseable output: per exact clonotype field collection and CSV writing."""

import csv
import logging
import sys
from typing import List, Dict, Optional, Sequence

from clonotable.config import ParseableConfig


class ParseableCollector:
    """Collects fields for parseable output, one record per exact clonotype.

    A field is requested when parseable output is active and pcols is empty
    (everything requested), or the field is in pcols or extra_args.  The
    first pass only measures, noting requested field names in first-seen
    order; values are stored on the second pass.
    """

    def __init__(self, config: ParseableConfig, nexacts: int, pass_num: int):
        self.config = config
        self.pass_num = pass_num
        self.allowed = set(config.pcols) | set(config.extra_args)
        self.records: List[Dict[str, str]] = [{} for _ in range(nexacts)]
        self.fields: List[str] = []

    @property
    def active(self) -> bool:
        return self.pass_num == 2 and self.config.active

    def requested(self, field: str) -> bool:
        return self.config.active and (not self.config.pcols or field in self.allowed)

    def wants(self, field: str) -> bool:
        return self.active and self.requested(field)

    def speak(self, u: int, field: str, value) -> None:
        if not self.requested(field):
            return
        if self.pass_num == 1:
            if field not in self.fields:
                self.fields.append(field)
        elif self.pass_num == 2:
            self.records[u][field] = str(value)

    def reorder(self, rord: Sequence[int]) -> None:
        """Put records into display order: record v becomes the one stored at rord[v]."""
        self.records = [self.records[rord[v]] for v in range(len(self.records))]


def output_fields(config: ParseableConfig, records: Sequence[Dict[str, str]],
                  measured: Optional[Sequence[str]] = None) -> List[str]:
    """Field order for output: pcols if given, else the fields measured on the
    first pass, else fields in first-seen order."""
    if config.pcols:
        return list(config.pcols)
    if measured:
        return list(measured)
    fields = []
    for record in records:
        for name in record:
            if name not in fields:
                fields.append(name)
    return fields


def write_parseable(config: ParseableConfig, records: Sequence[Dict[str, str]],
                    measured: Optional[Sequence[str]] = None) -> None:
    """Write records as CSV to config.pout ('stdout' for standard output)."""
    fields = output_fields(config, records, measured)
    if config.pout == "stdout":
        _write_csv(sys.stdout, fields, records)
    else:
        with open(config.pout, 'w', newline='') as f:
            _write_csv(f, fields, records)
        logging.info(f"Wrote {len(records)} parseable records to {config.pout}")


def _write_csv(handle, fields: List[str], records: Sequence[Dict[str, str]]) -> None:
    writer = csv.DictWriter(handle, fieldnames=fields, extrasaction='ignore', restval='')
    writer.writeheader()
    for record in records:
        writer.writerow(record)
