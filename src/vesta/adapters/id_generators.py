"""Identity generators for the reference entity stores.

`UUIDv4Generator` is what the stores use unless told otherwise. `ID_GENERATORS`
maps the names accepted by ``vesta check --id-generator`` to factories.
"""

import threading
import uuid
from collections.abc import Callable

from ulid import monotonic

from vesta.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods


class UUIDv4Generator(IdGenerator):
    """Random 36-character UUIDs."""

    def new_id(self) -> str:
        return str(uuid.uuid4())


class ULIDGenerator(IdGenerator):
    """Monotonic ULIDs from `ulid-py`.

    Identities sort in creation order, so a ``sort$`` on ``id`` reproduces the
    natural order of a namespace. Calls are serialized so that the ordering
    also holds for ids issued from several threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            return str(monotonic.new())


class SimpleIdGenerator(IdGenerator):
    """Counter rendered as zero-padded digits (``00000001``, ``00000002``...).

    Readable ids for tests and debugging sessions; the counter restarts with
    every instance, so two stores sharing a database must not both use one.
    """

    def __init__(self, length: int = 8) -> None:
        self._lock = threading.Lock()
        self._counter = 0
        self._length = length

    def new_id(self) -> str:
        with self._lock:
            self._counter += 1
            return str(self._counter).zfill(self._length)


ID_GENERATORS: dict[str, Callable[[], IdGenerator]] = {
    "uuid4": UUIDv4Generator,
    "ulid": ULIDGenerator,
    "simple": SimpleIdGenerator,
}


def make_id_generator(name: str) -> IdGenerator:
    """Build the generator registered as *name*.

    Raises:
        KeyError: If *name* is not in `ID_GENERATORS`.
    """
    try:
        factory = ID_GENERATORS[name]
    except KeyError:
        raise KeyError(
            f"unknown id generator {name!r}; choose from {', '.join(ID_GENERATORS)}"
        ) from None
    return factory()
