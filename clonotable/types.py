"""Shared data structures for clonotype table assembly and consistency checking."""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, NamedTuple


class ClonotableError(Exception):
    """Base class for user-facing errors."""


class InconsistentDatasetsError(ClonotableError):
    """Raised when VDJ and GEX cell barcodes show insufficient sharing."""

    def __init__(self, message: str, flagged: List["ConsistencyResult"]):
        super().__init__(message)
        self.flagged = flagged


class TigData(NamedTuple):
    """One contig: a single chain observed in a single cell barcode."""
    dataset_index: int
    barcode: str
    umi_count: int
    read_count: int = 0
    left: bool = False  # True for heavy/TRB chains


class SharedChain(NamedTuple):
    """Chain sequence shared by all cells of an exact subclonotype."""
    seq_del: str  # Aligned nucleotide sequence, '-' marks deleted bases
    v_ref_id: int
    j_ref_id: int
    js: str = ""  # J reference segment
    cdr3_aa: str = ""


@dataclass
class ExactClonotype:
    """Cells sharing an identical chain configuration."""
    share: List[SharedChain]
    clones: List[List[TigData]]  # One entry per cell, one TigData per chain

    def ncells(self) -> int:
        return len(self.clones)


class DonorReferenceItem(NamedTuple):
    """Donor-specific inferred V allele."""
    nt_sequence: str
    ref_id: int
    donor_index: int = 0


@dataclass
class RefData:
    """Universal reference segments keyed by id."""
    refs: Dict[int, str]
    names: Dict[int, str] = field(default_factory=dict)

    def seq(self, ref_id: int) -> str:
        if ref_id not in self.refs:
            raise ValueError(f"Reference id {ref_id} not present in reference data")
        return self.refs[ref_id]


@dataclass
class ColumnInfo:
    """Per-chain-column layout of a clonotype group.

    Attributes:
        mat: mat[col][u] is the index into exact clonotype u's share list, or None
            when that clonotype has no chain in the column
        vids: Universal V reference id per column
        jids: Universal J reference id per column
        vpids: Donor reference index per column, None to use the universal V
        cvars: Display variable names per column
        seq_del_lens: Aligned chain length per column
    """
    mat: List[List[Optional[int]]]
    vids: List[int]
    jids: List[int]
    vpids: List[Optional[int]]
    cvars: List[List[str]]
    seq_del_lens: List[int]

    @property
    def ncols(self) -> int:
        return len(self.mat)

    def validate(self, nexacts: int) -> None:
        cols = len(self.mat)
        for name in ("vids", "jids", "vpids", "cvars", "seq_del_lens"):
            if len(getattr(self, name)) != cols:
                raise ValueError(f"ColumnInfo.{name} has {len(getattr(self, name))} entries, "
                                 f"expected {cols}")
        for cx, column in enumerate(self.mat):
            if len(column) != nexacts:
                raise ValueError(f"ColumnInfo.mat column {cx} has {len(column)} rows, "
                                 f"expected {nexacts}")


@dataclass
class ClonotypeGroup:
    """Everything needed to lay out the table of one clonotype.

    vars and show_aa hold per-column nucleotide and amino acid positions to
    display; field_types holds one region tag per show_aa position. rord maps
    display order to storage order of exacts.
    """
    exacts: List[int]
    rsi: ColumnInfo
    vars: List[List[int]]
    show_aa: List[List[int]]
    field_types: List[List[int]]
    rord: Optional[List[int]] = None

    def __post_init__(self):
        if self.rord is None:
            self.rord = list(range(len(self.exacts)))

    def validate(self) -> None:
        nexacts = len(self.exacts)
        self.rsi.validate(nexacts)
        cols = self.rsi.ncols
        if len(self.vars) != cols or len(self.show_aa) != cols or len(self.field_types) != cols:
            raise ValueError("vars, show_aa and field_types must have one entry per column")
        for cx in range(cols):
            if len(self.field_types[cx]) != len(self.show_aa[cx]):
                raise ValueError(f"Column {cx}: field_types and show_aa differ in length")
        if sorted(self.rord) != list(range(nexacts)):
            raise ValueError(f"rord is not a permutation of 0..{nexacts - 1}")


@dataclass
class RowData:
    """Precomputed display values for one exact clonotype."""
    lvar_values: List[str]
    cvar_values: List[Dict[str, str]] = field(default_factory=list)
    subrows: List[List[str]] = field(default_factory=list)


class DatasetOrigin(NamedTuple):
    """Source paths of one dataset; an empty gex_path means no GEX pairing."""
    dataset_path: str
    gex_path: str = ""


class ConsistencyResult(NamedTuple):
    """Outcome of the barcode sharing test for one dataset."""
    dataset_index: int
    total: int
    good: int
    probability: Optional[float]
    message: str = ""
