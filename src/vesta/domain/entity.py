"""Entity model for VESTA.

An `Entity` is one loosely typed record: a `Namespace`, an optional identity
and a bag of fields. Control directives (`zone$`, `base$`, `name$`, `id$`) share
the same key space as fields when an entity is built from a mapping, but they
are parsed out into `EntityDirectives` and never stored as fields.

Layering & dependency rules:
- Lives under `vesta.domain`. Do NOT import from adapters, conformance or entrypoints.

Canonical form
--------------
`Entity.canonical()` renders a stable, deterministically ordered string used by
the conformance suites for pattern assertions::

    $-/-/product:{id=*;name=apple;price=100}

- namespace parts that are unset render as ``-``;
- an unset id renders as the wildcard ``*``;
- fields are sorted by name; booleans render ``true``/``false``, datetimes as
  ISO-8601 and lists/mappings as compact JSON with sorted keys.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, TypeAlias

from .errors import InvalidFieldValueError, InvalidNamespaceError, ReservedFieldError

PLACEHOLDER = "-"
WILDCARD_ID = "*"
DIRECTIVE_SUFFIX = "$"
ID_KEY = "id"
ID_DIRECTIVE = "id$"
NAMESPACE_DIRECTIVES = {"zone$": "zone", "base$": "base", "name$": "name"}

FieldValue: TypeAlias = (
    str | int | float | bool | datetime | list[Any] | dict[str, Any] | None
)


def is_directive(key: str) -> bool:
    """Return True if *key* names a control directive rather than a field."""
    return key.endswith(DIRECTIVE_SUFFIX)


def _part(raw: str) -> str | None:
    raw = raw.strip()
    return None if raw in ("", PLACEHOLDER) else raw


# ===========================================================================
#                               Namespace
# ===========================================================================


@dataclass(frozen=True, slots=True)
class Namespace:
    """The (zone, base, name) triple scoping a collection of entities."""

    zone: str | None = None
    base: str | None = None
    name: str | None = None

    @classmethod
    def parse(cls, descriptor: NamespaceDescriptor) -> Namespace:
        """Build a namespace from any supported descriptor.

        Args:
            descriptor: A `Namespace`, an `Entity` (its namespace is used), a
                string (``"name"``, ``"base/name"`` or ``"zone/base/name"``,
                with ``-`` as placeholder) or a mapping carrying ``zone$``,
                ``base$`` and/or ``name$``.

        Returns:
            The parsed namespace.

        Raises:
            InvalidNamespaceError: If a string descriptor has more than three parts.
        """
        if isinstance(descriptor, Namespace):
            return descriptor
        if isinstance(descriptor, Entity):
            return descriptor.namespace
        if isinstance(descriptor, str):
            parts = [_part(p) for p in descriptor.split("/")]
            match len(parts):
                case 1:
                    return cls(name=parts[0])
                case 2:
                    return cls(base=parts[0], name=parts[1])
                case 3:
                    return cls(zone=parts[0], base=parts[1], name=parts[2])
                case _:
                    raise InvalidNamespaceError(
                        descriptor, "expected 'name', 'base/name' or 'zone/base/name'"
                    )
        return cls(
            **{
                attr: descriptor[key]
                for key, attr in NAMESPACE_DIRECTIVES.items()
                if key in descriptor
            }
        )

    def canonical(self) -> str:
        """Return ``<zone>/<base>/<name>`` with ``-`` for unset parts."""
        return "/".join(
            part if part is not None else PLACEHOLDER
            for part in (self.zone, self.base, self.name)
        )

    def __str__(self) -> str:
        return self.canonical()


NamespaceDescriptor: TypeAlias = "Namespace | Entity | str | Mapping[str, Any]"


# ===========================================================================
#                               Directives
# ===========================================================================


@dataclass(slots=True)
class EntityDirectives:
    """Control directives attached to an in-memory entity.

    Attributes:
        id: Identifier to use verbatim when the entity is created (``id$``).
        extra: Any other ``$``-suffixed keys; kept aside, never persisted.
    """

    id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


# ===========================================================================
#                               Entity
# ===========================================================================


class Entity(MutableMapping[str, Any]):
    """One record: namespace, identity and field set.

    Fields are read and written through the mapping interface::

        foo = Entity.make("foo", p1="v1")
        foo["p2"] = "v2"
        del foo["p1"]

    The identity is read-only; it is assigned by a store on create and carried
    by every copy a store hands back.
    """

    __slots__ = ("_namespace", "_id", "_fields", "directives")

    def __init__(
        self,
        namespace: Namespace,
        fields: Mapping[str, Any] | None = None,
        *,
        id: str | None = None,  # pylint: disable=redefined-builtin
        directives: EntityDirectives | None = None,
    ) -> None:
        self._namespace = namespace
        self._id = id
        self._fields: dict[str, Any] = {}
        self.directives = directives if directives is not None else EntityDirectives()
        for key, value in (fields or {}).items():
            self[key] = value

    @classmethod
    def make(
        cls,
        descriptor: NamespaceDescriptor,
        data: Mapping[str, Any] | None = None,
        /,
        **fields: Any,
    ) -> Entity:
        """Construct an entity from a namespace descriptor and initial values.

        Construction never touches a store. Values are deep-copied so that a
        template mapping can be reused safely. The key ``id`` sets the
        identity; ``$``-suffixed keys are parsed as directives.

        Args:
            descriptor: Namespace descriptor (see `Namespace.parse`). A mapping
                descriptor may also carry field values, like a template.
            data: Optional mapping of initial values.
            **fields: Additional initial values.

        Returns:
            A new, unsaved (or identity-carrying) entity.
        """
        items: dict[str, Any] = {}
        if isinstance(descriptor, Mapping) and not isinstance(descriptor, Entity):
            namespace = Namespace()
            items.update(descriptor)
        else:
            namespace = Namespace.parse(descriptor)
        items.update(data or {})
        items.update(fields)

        entity = cls(namespace)
        for key, value in items.items():
            if key == ID_KEY:
                entity._id = value  # pylint: disable=protected-access
            else:
                entity[key] = copy.deepcopy(value)
        return entity

    # --------------------------------------------------------------------- #
    # Identity
    # --------------------------------------------------------------------- #

    @property
    def namespace(self) -> Namespace:
        """The namespace this entity belongs to."""
        return self._namespace

    @property
    def id(self) -> str | None:
        """The identity, or None if the entity was never persisted."""
        return self._id

    def is_same_record(self, other: Entity) -> bool:
        """Return True if both entities denote the same persisted record."""
        return (
            self._id is not None
            and self._id == other.id
            and self._namespace == other.namespace
        )

    # --------------------------------------------------------------------- #
    # Mapping interface
    # --------------------------------------------------------------------- #

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if is_directive(key):
            self._apply_directive(key, value)
        elif key == ID_KEY:
            raise ReservedFieldError(key)
        else:
            self._fields[key] = value

    def __delitem__(self, key: str) -> None:
        del self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return (
            self._namespace == other.namespace
            and self._id == other.id
            and self._fields == other.data()
        )

    __hash__ = None  # type: ignore[assignment]

    def _apply_directive(self, key: str, value: Any) -> None:
        if key in NAMESPACE_DIRECTIVES:
            self._namespace = replace(
                self._namespace, **{NAMESPACE_DIRECTIVES[key]: value}
            )
        elif key == ID_DIRECTIVE:
            self.directives.id = value
        else:
            self.directives.extra[key] = value

    # --------------------------------------------------------------------- #
    # Copies & rendering
    # --------------------------------------------------------------------- #

    def data(self) -> dict[str, Any]:
        """Return a deep copy of the field set."""
        return copy.deepcopy(self._fields)

    def clone(self) -> Entity:
        """Return a deep, independent copy of this entity."""
        return Entity(
            self._namespace,
            self.data(),
            id=self._id,
            directives=copy.deepcopy(self.directives),
        )

    def canonical(self) -> str:
        """Return the canonical string form (see module docstring)."""
        ident = self._id if self._id is not None else WILDCARD_ID
        parts = [f"id={ident}"]
        parts.extend(
            f"{key}={render_value(self._fields[key])}" for key in sorted(self._fields)
        )
        return f"${self._namespace}:{{{';'.join(parts)}}}"

    def __str__(self) -> str:
        return self.canonical()

    def __repr__(self) -> str:
        return f"Entity({self.canonical()!r})"


# ===========================================================================
#                           Value helpers
# ===========================================================================


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"not JSON serializable: {type(value).__name__}")


def render_value(value: Any) -> str:
    """Render a field value for the canonical form."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(
            value, sort_keys=True, separators=(",", ":"), default=_json_default
        )
    return str(value)


def validate_value(name: str, value: Any) -> None:
    """Check that *value* belongs to the supported field variants.

    Supported: str, int, float, bool, datetime, None, and lists/tuples or
    string-keyed mappings thereof (recursively).

    Raises:
        InvalidFieldValueError: On the first unsupported value found.
    """
    if value is None or isinstance(value, (str, int, float, bool, datetime)):
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            validate_value(name, item)
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidFieldValueError(name, key)
            validate_value(f"{name}.{key}", item)
        return
    raise InvalidFieldValueError(name, value)


def validate_fields(fields: Mapping[str, Any]) -> None:
    """Validate every value of a field set (see `validate_value`)."""
    for name, value in fields.items():
        validate_value(name, value)
