import json
import logging
import typing

from .exceptions import (
    MisconfiguredCacheError,
    ResourceNotFoundError,
)
from .identity import IdentityKey, KindLike, ResourceKind, durable_cache_key
from .interfaces import DurableCache
from .models import Resource
from .renderer import ResourceRenderer
from .types import JSONObject
from .utils import assert_not_none

logger = logging.getLogger(__name__)

Reviver = typing.Callable[[JSONObject], typing.Any]

REQUIRED_CACHE_METHODS = ("has", "get", "set")

# returned by DurableStore._read when the cache raised, as opposed to a missing key
READ_FAILED = object()


def check_cache(cache: typing.Any) -> DurableCache:
    """
    Makes sure ``cache`` can serve as a :py:class:`DurableCache`.

    :raises MisconfiguredCacheError: if any of ``has``, ``get`` or ``set`` is not callable.
    """
    missing = [name for name in REQUIRED_CACHE_METHODS if not callable(getattr(cache, name, None))]
    if missing:
        raise MisconfiguredCacheError(cache, missing)
    return typing.cast(DurableCache, cache)


class DurableStore:
    """
    A :py:class:`DurableStore` reads and writes rendered Space and ContentType documents
    through a :py:class:`DurableCache`.

    Failures of the underlying cache are logged and reported as misses; a broken
    cache never breaks the read path.
    """

    cache: DurableCache
    api: str
    space_id: str
    renderer: ResourceRenderer

    def key(self, kind: KindLike, id: typing.Optional[str] = None) -> str:
        return durable_cache_key(self.api, self.space_id, kind, id)

    def _read(self, key: str) -> typing.Optional[typing.Any]:
        try:
            if not self.cache.has(key):
                return None
            return json.loads(self.cache.get(key))
        except Exception:
            logger.warning("durable cache read failed for %s; treating as a miss", key, exc_info=True)
            return READ_FAILED

    def _write(self, key: str, value: typing.Any) -> bool:
        try:
            self.cache.set(key, json.dumps(value).encode("utf-8"))
        except Exception:
            logger.warning("durable cache write failed for %s", key, exc_info=True)
            return False
        return True

    def load(self, kind: KindLike, id: str) -> typing.Optional[JSONObject]:
        data = self._read(self.key(kind, id))
        return None if data is READ_FAILED else data

    def _read_content_type_index(self) -> typing.Optional[typing.List[str]]:
        ids = self._read(self.key(ResourceKind.CONTENT_TYPE))
        if ids is READ_FAILED:
            return None
        if not isinstance(ids, list):
            return []
        return [id for id in ids if isinstance(id, str)]

    def load_content_type_ids(self) -> typing.Sequence[str]:
        ids = self._read_content_type_index()
        return ids if ids is not None else []

    def store(self, resource: Resource) -> None:
        kind = resource.kind
        if not kind.durable:
            raise ValueError(f"{kind.value} resources are never stored durably")
        id = assert_not_none(resource.id)
        if not self._write(self.key(kind, id), self.renderer(resource)):
            return
        if kind is ResourceKind.CONTENT_TYPE:
            ids = self._read_content_type_index()
            if ids is None:
                logger.warning("content type index unreadable, not adding %s to it", id)
            elif id not in ids:
                ids.append(id)
                self._write(self.key(ResourceKind.CONTENT_TYPE), ids)

    def __init__(
        self,
        cache: typing.Any,
        space_id: str,
        api: str = "delivery",
        renderer: typing.Optional[ResourceRenderer] = None,
    ):
        self.cache = check_cache(cache)
        self.space_id = space_id
        self.api = api
        self.renderer = renderer if renderer is not None else ResourceRenderer()


class InstanceRepository:
    """
    An :py:class:`InstanceRepository` guarantees that a client hands out a single live
    object per :py:class:`IdentityKey`.

    Lookups hit an in-memory mapping first.  Space and ContentType resources may
    additionally come from a :py:class:`DurableStore`; their stored JSON is revived
    through the callable given to :py:meth:`bind_reviver`.  Entries and Assets never
    touch the durable tier.

    :param Optional[DurableStore] store: the durable tier, if any.
    :param bool write_through: whether Space and ContentType resources are written to the
                               durable tier when set.
    """

    _instances: typing.Dict[IdentityKey, Resource]
    _store: typing.Optional[DurableStore]
    _reviver: typing.Optional[Reviver] = None
    write_through: bool

    @property
    def store(self) -> typing.Optional[DurableStore]:
        return self._store

    def bind_reviver(self, reviver: Reviver) -> None:
        self._reviver = reviver

    def _revive(self, key: IdentityKey) -> typing.Optional[Resource]:
        if self._store is None or self._reviver is None or not key.kind.durable:
            return None
        data = self._store.load(key.kind, key.id)
        if data is None:
            return None
        try:
            resource = self._reviver(data)
        except Exception:
            logger.warning("failed to revive %s from the durable cache", key, exc_info=True)
            return None
        if not isinstance(resource, Resource) or resource.identity_key() != key:
            logger.warning("durable cache entry for %s holds a different resource", key)
            return None
        self._instances[key] = resource
        logger.debug("revived %s from the durable cache", key)
        return resource

    def peek(self, key: IdentityKey) -> typing.Optional[Resource]:
        """
        Returns the in-memory instance registered under ``key`` without consulting the
        durable tier.
        """
        return self._instances.get(key)

    def has(self, kind: KindLike, id: str, locale: typing.Optional[str] = None) -> bool:
        key = IdentityKey.of(kind, id, locale)
        if key in self._instances:
            return True
        return self._revive(key) is not None

    def get(self, kind: KindLike, id: str, locale: typing.Optional[str] = None) -> Resource:
        key = IdentityKey.of(kind, id, locale)
        try:
            return self._instances[key]
        except KeyError:
            pass
        resource = self._revive(key)
        if resource is None:
            raise ResourceNotFoundError(key.kind.value, key.id, key.locale)
        return resource

    def set(self, resource: Resource, persist: bool = True) -> None:
        """
        Registers a resource under its identity key.

        :param Resource resource: the resource to register.
        :param bool persist: whether the resource may be written through to the durable tier.
                             Resources registered ahead of their hydration pass :py:const:`False`.
        """
        self._instances[resource.identity_key()] = resource
        if persist:
            self.persist(resource)

    def persist(self, resource: Resource) -> None:
        if not self.write_through or self._store is None or not resource.kind.durable:
            return
        self._store.store(resource)

    def discard(self, resource: Resource) -> None:
        key = resource.identity_key()
        if self._instances.get(key) is resource:
            del self._instances[key]

    def warm_up(self) -> int:
        """
        Loads the Space and every ContentType from the durable tier into memory.

        :return: The number of resources loaded.
        """
        if self._store is None:
            return 0
        loaded = 0
        if self.has(ResourceKind.SPACE, self._store.space_id):
            loaded += 1
        for id in self._store.load_content_type_ids():
            if self.has(ResourceKind.CONTENT_TYPE, id):
                loaded += 1
        logger.debug("warmed up %d resources from the durable cache", loaded)
        return loaded

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, key: IdentityKey) -> bool:
        return key in self._instances

    def __init__(self, store: typing.Optional[DurableStore] = None, write_through: bool = False):
        self._instances = {}
        self._store = store
        self.write_through = write_through
