"""Interfaces (application boundary) for VESTA.

Defines framework-free contracts: the `EntityStore` port every backend must
implement, its error taxonomy, and the ID generator port used by the reference
backends.

Dependency rule: may import `vesta.domain` only. It may be imported by
`vesta.adapters`, `vesta.conformance` and `vesta.bootstrap`.
"""
