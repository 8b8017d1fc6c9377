"""
Clonotable: clonotype table assembly for single-cell immune repertoire data.

Lays out exact subclonotypes of each clonotype as a table with reference,
consensus and aggregate rows, and tests that VDJ and GEX cell barcodes agree
before anything is reported.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main", "__version__"]
