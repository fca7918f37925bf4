"""Domain-layer error definitions.

These errors describe caller mistakes (malformed queries, unsupported field
values, unusable namespaces). They subclass `ValueError` so they are never
confused with backend failures, which live in `vesta.interfaces.entity_store`.
"""

# ============================================================================
#                           General domain errors
# ============================================================================


class DomainError(ValueError):
    """Base class for domain-layer errors."""


class InvalidNamespaceError(DomainError):
    """Raised when a namespace cannot be used for the requested operation."""

    def __init__(self, namespace: str, reason: str) -> None:
        super().__init__(f"Invalid namespace {namespace!r}: {reason}")
        self.namespace = namespace
        self.reason = reason


# ============================================================================
#                           Entity field errors
# ============================================================================


class InvalidFieldValueError(DomainError):
    """Raised when a field holds a value outside the supported variants."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(
            f"Field {field!r} holds unsupported value of type {type(value).__name__}"
        )
        self.field = field
        self.value = value


class ReservedFieldError(DomainError):
    """Raised when a reserved name is assigned as an ordinary field."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field!r} is reserved and cannot be assigned as a field")
        self.field = field


# ============================================================================
#                           Query errors
# ============================================================================


class InvalidQueryError(DomainError):
    """Raised when a query or one of its directives is malformed."""
