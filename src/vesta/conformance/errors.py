"""Errors raised by conformance steps."""


class AssertionViolation(AssertionError):
    """An observed result did not match the store contract."""


class MissingFixtureError(AssertionViolation):
    """A step needed fixture state that no earlier step provided."""

    def __init__(self, key: str) -> None:
        super().__init__(f"fixture {key!r} was not set by an earlier step")
        self.key = key
