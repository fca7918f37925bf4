"""VESTA test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- contract/     : Store and id generator behavior run against every implementation.
- integration/  : Real SQLite databases and the filesystem.
- e2e/          : The `vesta` command line through Click's CliRunner.
- fixtures/     : Store fixtures loaded as a pytest plugin (no tests here).
- helpers/      : Shared utilities (no tests here).

Each top-level folder marks its tests with the folder name (see the
folder conftests), so `pytest -m unit` runs the fast subset.
"""
