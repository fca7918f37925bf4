"""Bootstrap (composition root) for VESTA.

Assembles reference entity stores from configuration (backend name, database
URL, merge policy, identity source) for entrypoints.

Import rules:
- Entry points import *this* package (not adapters directly).
- This package may import: `vesta.adapters`, `vesta.interfaces`, `vesta.domain`
  and `vesta.config`.
- Inner layers must not import `vesta.bootstrap`.
"""

from vesta.adapters.id_generators import ID_GENERATORS

from .bootstrap import BACKENDS, build_store

__all__ = ["BACKENDS", "ID_GENERATORS", "build_store"]
