import collections.abc
import logging
import typing

from .exceptions import InvalidResourceError, MappingError, UnrecognizedResourceKindError
from .identity import IdentityKey, ResourceKind
from .interfaces import ResourceResolver
from .mappers import DEFAULT_MAPPERS, BaseMapper
from .models import Entry, Resource, ResourceArray, UnresolvedResource
from .repository import InstanceRepository
from .types import JSONObject

logger = logging.getLogger(__name__)

INCLUDED_KINDS = (ResourceKind.ENTRY, ResourceKind.ASSET)


def sys_of(data: typing.Any) -> JSONObject:
    if isinstance(data, collections.abc.Mapping):
        sys = data.get("sys")
        if isinstance(sys, collections.abc.Mapping):
            return sys
    return {}


def _content_type_id_of(sys: JSONObject) -> typing.Optional[str]:
    content_type_sys = sys_of(sys.get("contentType"))
    return content_type_sys.get("id")


class ResourceBuilder:
    """
    A :py:class:`ResourceBuilder` turns API responses into resources.

    It dispatches on ``sys.type`` to a :py:class:`BaseMapper`, and for entries on the
    content type to a registered :py:class:`Entry` subclass.  Every resource is
    registered in the :py:class:`InstanceRepository` as soon as it is allocated and
    before its fields are hydrated, so a key that is already registered is never
    built twice.

    :param ResourceResolver client: the client resources resolve their links through.
    :param InstanceRepository repository: the identity cache of the client.
    """

    _repository: InstanceRepository
    _mappers: typing.Dict[ResourceKind, BaseMapper]
    _entry_classes: typing.Dict[str, typing.Type[Entry]]

    def register_mapper(self, mapper: BaseMapper) -> None:
        self._mappers[mapper.kind] = mapper

    def register_entry_class(self, content_type_id: str, class_: typing.Type[Entry]) -> None:
        """
        Makes entries of the given content type be built as instances of ``class_``.

        :param str content_type_id: the content type id.
        :param Type[Entry] class_: a subclass of :py:class:`Entry`.
        """
        if not (isinstance(class_, type) and issubclass(class_, Entry)):
            raise TypeError(f"{class_!r} is not a subclass of Entry")
        self._entry_classes[content_type_id] = class_

    def determine_kind(self, data: JSONObject) -> ResourceKind:
        sys = sys_of(data)
        type_ = sys.get("type")
        kind = ResourceKind.from_type_name(type_)
        if kind is None or kind not in self._mappers:
            raise UnrecognizedResourceKindError(type_, sys.get("id"))
        return kind

    def _resource_class(
        self, kind: ResourceKind, sys: JSONObject
    ) -> typing.Optional[typing.Type[Resource]]:
        if kind is not ResourceKind.ENTRY:
            return None
        content_type_id = _content_type_id_of(sys)
        if content_type_id is None:
            return None
        return self._entry_classes.get(content_type_id)

    def _build_resource(self, data: JSONObject, persist: bool) -> Resource:
        kind = self.determine_kind(data)
        sys = sys_of(data)
        id = sys.get("id")
        if not isinstance(id, str):
            raise InvalidResourceError(kind.value, None, "missing sys.id")
        key = IdentityKey.of(kind, id, sys.get("locale"))
        existing = self._repository.peek(key)
        if existing is not None:
            logger.debug("reusing registered instance for %s", key)
            return existing

        mapper = self._mappers[kind]
        target = mapper.allocate(data, self._resource_class(kind, sys))
        self._repository.set(target, persist=False)
        try:
            mapper.hydrate(target, data)
        except Exception:
            self._repository.discard(target)
            raise
        if persist:
            self._repository.persist(target)
        logger.debug("built %s", key)
        return target

    def _build_includes(self, includes: typing.Any, persist: bool) -> None:
        if not isinstance(includes, collections.abc.Mapping):
            return
        for kind in INCLUDED_KINDS:
            for item in includes.get(kind.value, ()):
                try:
                    self._build_resource(item, persist)
                except MappingError as e:
                    logger.warning("skipping included %s: %s", kind.value, e)

    def _build_array(self, data: JSONObject, persist: bool) -> ResourceArray:
        raw_items = data["items"]
        if not isinstance(raw_items, collections.abc.Sequence) or isinstance(raw_items, str):
            raise InvalidResourceError("Array", None, "items must be an array")
        self._build_includes(data.get("includes"), persist)
        items: typing.List[typing.Union[Resource, UnresolvedResource]] = []
        for i, raw_item in enumerate(raw_items):
            try:
                items.append(self._build_resource(raw_item, persist))
            except MappingError as e:
                sys = sys_of(raw_item)
                logger.warning("item %d of the page could not be built: %s", i, e)
                items.append(
                    UnresolvedResource(
                        kind=sys.get("type"),
                        id=sys.get("id"),
                        error=e,
                        data=raw_item if isinstance(raw_item, collections.abc.Mapping) else {},
                    )
                )
        return ResourceArray(
            items,
            total=data.get("total", len(items)),
            skip=data.get("skip", 0),
            limit=data.get("limit", len(items)),
        )

    def build(
        self, data: JSONObject, persist: bool = True
    ) -> typing.Union[Resource, ResourceArray]:
        """
        Builds a resource, or a :py:class:`ResourceArray` if ``data`` is a page.

        :param JSONObject data: the decoded response.
        :param bool persist: whether Space and ContentType resources may be written to the
                             durable tier.
        :return: The built resource or page.
        :raises UnrecognizedResourceKindError: if ``sys.type`` is missing or unknown.
        """
        if not isinstance(data, collections.abc.Mapping):
            raise InvalidResourceError(None, None, "document must be an object")
        if "items" in data:
            return self._build_array(data, persist)
        return self._build_resource(data, persist)

    def __init__(
        self,
        client: ResourceResolver,
        repository: InstanceRepository,
        mappers: typing.Optional[typing.Iterable[BaseMapper]] = None,
    ):
        self._repository = repository
        self._mappers = {}
        self._entry_classes = {}
        for mapper in mappers if mappers is not None else (m(client) for m in DEFAULT_MAPPERS):
            self.register_mapper(mapper)
