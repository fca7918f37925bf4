"""VESTA

A behavioral contract for pluggable entity-storage backends, expressed as an
executable conformance suite. It defines what it means for a storage backend to
correctly implement a small CRUD-plus-query API over loosely typed records, and
verifies any concrete backend against that contract.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
