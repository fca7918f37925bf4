"""Entrypoints (inbound adapters) for VESTA.

Expose the conformance harness to the outside world. Currently only the CLI.

Dependency rule: may import `vesta.bootstrap` and `vesta.conformance`; avoid
importing `vesta.adapters` directly.
"""
