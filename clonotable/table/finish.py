"""Assemble the complete table for a clonotype group."""

import logging
from typing import List, Optional, Sequence

from clonotable.config import TableConfig, ParseableConfig
from clonotable.parseable import ParseableCollector
from clonotable.stats import VariableStats
from clonotable.types import (
    ClonotypeGroup,
    DonorReferenceItem,
    ExactClonotype,
    RefData,
    RowData,
)
from clonotable.table.aggregate import build_mean_row, build_sum_row
from clonotable.table.context import RenderContext, justification, show_chain_names
from clonotable.table.phylogeny import annotate_phylogeny
from clonotable.table.reference import (
    build_consensus_row,
    build_diff_row,
    build_reference_rows,
)
from clonotable.table.render import make_table
from clonotable.table.stuff import add_header_text, build_table_stuff, column_width


class TableAssembler:
    """Builds clonotype tables against a fixed set of exact clonotypes and references."""

    def __init__(self, config: TableConfig,
                 exact_clonotypes: List[ExactClonotype],
                 refdata: RefData,
                 dref: Optional[Sequence[DonorReferenceItem]] = None,
                 parseable: Optional[ParseableConfig] = None):
        self.config = config
        self.exact_clonotypes = exact_clonotypes
        self.refdata = refdata
        self.dref = list(dref or [])
        self.parseable = parseable or ParseableConfig()

    def finish_table(self, group: ClonotypeGroup,
                     row_data: Sequence[RowData],
                     stats: Optional[VariableStats] = None,
                     pass_num: int = 2,
                     n: Optional[int] = None,
                     label: str = "") -> RenderContext:
        """
        Run the table pipeline for one group.

        Order: header text, table stuff, reference rows, consensus row, diff
        row, body, Σ/μ rows, rendering, phylogeny.  Pass 1 only measures the
        parseable field names (ctx.fields); records are filled on pass 2.

        Args:
            group: Layout of the clonotype
            row_data: Display values per exact clonotype, in storage order
            stats: Values for Σ/μ rows; derived from row_data lvars if omitted
            pass_num: 1 to measure only, 2 to also collect parseable output
            n: Row count for μ; defaults to the number of exact clonotypes
            label: Prefix for the header text line

        Returns:
            RenderContext holding rows, justification, logs, table text and
            parseable records in display order
        """
        lvars = self.config.lvars
        exacts = group.exacts
        nexacts = len(exacts)
        rsi = group.rsi
        ctx = RenderContext()

        if stats is None:
            stats = VariableStats.from_rows(lvars, [row_data[u].lvar_values for u in group.rord])
        if n is None:
            n = nexacts

        add_header_text(group, self.exact_clonotypes, ctx.mlog, label)

        stuff = build_table_stuff(lvars, group, self.exact_clonotypes, row_data)
        ctx.rows.append(list(stuff.row1))
        ctx.justify = list(stuff.justify)
        self._collect_parseable(ctx, group, stuff, pass_num)

        if stuff.has_positions:
            ctx.insert_after_header(build_reference_rows(len(lvars), group, self.refdata, self.dref))
            if nexacts > 1:
                if self.config.consensus:
                    ctx.push(build_consensus_row(len(lvars), group, self.exact_clonotypes))
                ctx.push(build_diff_row(len(lvars), group, self.exact_clonotypes,
                                        self.refdata, self.dref))
            ctx.push_hline()

        for rows in stuff.body:
            for row in rows:
                ctx.push(row)

        cvar_count = column_width(group)
        if self.config.sum:
            ctx.push(build_sum_row(lvars, stats, cvar_count))
        if self.config.mean:
            ctx.push(build_mean_row(lvars, stats, n, cvar_count))

        for row in ctx.rows:
            row[:] = [show_chain_names(cell) for cell in row]
        for cvars in rsi.cvars:
            ctx.justify.append('|')
            ctx.justify.extend(justification(cvar) for cvar in cvars)
        ctx.table = make_table(ctx.rows, ctx.justify)
        ctx.mlog.write(ctx.table)

        if self.config.toy:
            annotate_phylogeny(group, self.exact_clonotypes, self.refdata, self.dref,
                               self.config.ref_v_trim, self.config.ref_j_trim,
                               self.config.max_phylogeny_exacts, ctx.logz)

        logging.debug(f"Finished table {label or '(unlabeled)'} on pass {pass_num}: "
                      f"{len(ctx.rows)} rows")
        return ctx

    def _collect_parseable(self, ctx: RenderContext, group: ClonotypeGroup, stuff, pass_num: int):
        if not self.parseable.active:
            return
        collector = ParseableCollector(self.parseable, len(group.exacts), pass_num)
        lvars = self.config.lvars
        for v, u in enumerate(group.rord):
            collector.speak(u, "exact_subclonotype_id", v + 1)
            main_row = stuff.body[v][0]
            for i, lvar in enumerate(lvars):
                collector.speak(u, lvar, main_row[1 + i])
            k = 1 + len(lvars)
            for cx, cvars in enumerate(group.rsi.cvars):
                for cvar in cvars:
                    collector.speak(u, f"{cvar}{cx + 1}", main_row[k])
                    k += 1
        collector.reorder(group.rord)
        ctx.out_data = collector.records
        ctx.fields = collector.fields
