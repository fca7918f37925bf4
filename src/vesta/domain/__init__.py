"""Domain layer for VESTA.

Contains the entity model (namespaces, entities, directives, canonical form)
and the query model shared by the store contract and the conformance suites.
This package is deliberately technology-agnostic.

Dependency rule: do not import from `vesta.adapters`, `vesta.conformance` or
`vesta.entrypoints`.
"""
