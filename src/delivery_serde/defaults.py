import typing

from .interfaces import DurableCache


class MemoryCache(DurableCache):
    """
    A :py:class:`DurableCache` kept in a plain dictionary.  Its content lives as long
    as the object does, which makes it suitable for tests and for sharing warmed-up
    metadata between clients within one process.
    """

    _store: typing.Dict[str, bytes]

    def has(self, key: str) -> bool:
        return key in self._store

    def get(self, key: str) -> bytes:
        return self._store[key]

    def set(self, key: str, value: bytes) -> None:
        self._store[key] = value

    def keys(self) -> typing.Iterable[str]:
        return self._store.keys()

    def __init__(self, initial: typing.Optional[typing.Mapping[str, bytes]] = None):
        self._store = dict(initial) if initial is not None else {}
