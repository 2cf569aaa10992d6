import dataclasses
import json
import logging
import typing

from .builder import ResourceBuilder, sys_of
from .exceptions import InvalidLinkTypeError, InvalidResourceError, SpaceMismatchError
from .identity import WILDCARD_LOCALE, ResourceKind
from .interfaces import ResourceResolver, Transport
from .models import (
    Asset,
    ContentType,
    Entry,
    Link,
    Resource,
    ResourceArray,
    Space,
)
from .renderer import ResourceRenderer
from .repository import DurableStore, InstanceRepository
from .types import JSONObject
from .utils import assert_type

logger = logging.getLogger(__name__)

Query = typing.Optional[typing.Mapping[str, typing.Any]]

R = typing.TypeVar("R", bound=Resource)


@dataclasses.dataclass
class ClientOptions:
    """
    ``ClientOptions`` collects the optional settings of a :py:class:`Client`.
    """

    default_locale: typing.Optional[str] = None
    """
    The locale content is requested in when none is given.  ``None`` stands for the
    space's default locale and ``"*"`` for all locales.
    """

    preview: bool = False
    """
    Whether the client talks to the preview API.  Only affects the durable cache keys.
    """

    cache: typing.Optional[typing.Any] = None
    """
    A durable cache for the Space and its ContentTypes, see
    :py:class:`delivery_serde.interfaces.DurableCache`.
    """

    auto_warmup: bool = False
    """
    Whether the durable cache is loaded at construction and written to whenever the
    Space or a ContentType is fetched.  When off, the cache is only read and has to be
    filled with :py:class:`delivery_serde.cache_warmer.CacheWarmer`.
    """


class Client(ResourceResolver):
    """
    A :py:class:`Client` turns responses of the delivery API for a single space into
    resources, keeping one live instance per resource identity.

    :param str space_id: the id of the space served by this client.
    :param Transport transport: the callable performing the HTTP requests.
    :param Optional[ClientOptions] options: settings; keyword arguments override them.
    """

    API_DELIVERY = "delivery"
    API_PREVIEW = "preview"

    space_id: str
    options: ClientOptions
    _transport: Transport
    _repository: InstanceRepository
    _builder: ResourceBuilder
    _renderer: ResourceRenderer

    @property
    def api(self) -> str:
        return self.API_PREVIEW if self.options.preview else self.API_DELIVERY

    @property
    def default_locale(self) -> typing.Optional[str]:
        return self.options.default_locale

    @property
    def repository(self) -> InstanceRepository:
        return self._repository

    @property
    def builder(self) -> ResourceBuilder:
        return self._builder

    @property
    def renderer(self) -> ResourceRenderer:
        return self._renderer

    def register_entry_class(self, content_type_id: str, class_: typing.Type[Entry]) -> None:
        self._builder.register_entry_class(content_type_id, class_)

    def _path(self, *parts: str) -> str:
        return "/".join(("", "spaces", self.space_id) + parts)

    def _request(self, path: str, query: Query = None) -> JSONObject:
        logger.debug("requesting %s %r", path, query)
        return self._transport(path, query)

    def _request_and_build(self, path: str, query: Query = None):
        return self._builder.build(self._request(path, query))

    def _expect(self, class_: typing.Type[R], kind: ResourceKind, id: str, resource: typing.Any) -> R:
        if not isinstance(resource, class_):
            raise InvalidResourceError(kind.value, id, f"expected {kind.value}, got {resource!r}")
        return resource

    def _effective_locale(self, locale: typing.Optional[str]) -> str:
        locale = locale or self.default_locale
        if locale:
            return locale
        default = self.get_space().default_locale
        return default.code if default is not None else WILDCARD_LOCALE

    def get_space(self) -> Space:
        if self._repository.has(ResourceKind.SPACE, self.space_id):
            return assert_type(Space, self._repository.get(ResourceKind.SPACE, self.space_id))
        return self._expect(
            Space, ResourceKind.SPACE, self.space_id, self._request_and_build(self._path())
        )

    def get_content_type(self, content_type_id: str) -> ContentType:
        if self._repository.has(ResourceKind.CONTENT_TYPE, content_type_id):
            return assert_type(
                ContentType, self._repository.get(ResourceKind.CONTENT_TYPE, content_type_id)
            )
        return self._expect(
            ContentType,
            ResourceKind.CONTENT_TYPE,
            content_type_id,
            self._request_and_build(self._path("content_types", content_type_id)),
        )

    def get_content_types(self, query: Query = None) -> ResourceArray:
        return self._request_and_build(self._path("content_types"), dict(query or {}))

    def get_entry(self, entry_id: str, locale: typing.Optional[str] = None) -> Entry:
        locale = self._effective_locale(locale)
        if self._repository.has(ResourceKind.ENTRY, entry_id, locale):
            return assert_type(Entry, self._repository.get(ResourceKind.ENTRY, entry_id, locale))
        return self._expect(
            Entry,
            ResourceKind.ENTRY,
            entry_id,
            self._request_and_build(self._path("entries", entry_id), {"locale": locale}),
        )

    def get_entries(self, query: Query = None) -> ResourceArray:
        query_ = dict(query or {})
        query_.setdefault("locale", self._effective_locale(None))
        return self._request_and_build(self._path("entries"), query_)

    def get_asset(self, asset_id: str, locale: typing.Optional[str] = None) -> Asset:
        locale = self._effective_locale(locale)
        if self._repository.has(ResourceKind.ASSET, asset_id, locale):
            return assert_type(Asset, self._repository.get(ResourceKind.ASSET, asset_id, locale))
        return self._expect(
            Asset,
            ResourceKind.ASSET,
            asset_id,
            self._request_and_build(self._path("assets", asset_id), {"locale": locale}),
        )

    def get_assets(self, query: Query = None) -> ResourceArray:
        query_ = dict(query or {})
        query_.setdefault("locale", self._effective_locale(None))
        return self._request_and_build(self._path("assets"), query_)

    def resolve_link(
        self, link: Link, locale: typing.Optional[str] = None
    ) -> typing.Union[Entry, Asset]:
        if link.link_type == ResourceKind.ENTRY.value:
            return self.get_entry(link.id, locale)
        elif link.link_type == ResourceKind.ASSET.value:
            return self.get_asset(link.id, locale)
        else:
            raise InvalidLinkTypeError(link.link_type)

    def _extract_space_id(self, data: typing.Any) -> typing.Optional[str]:
        if not isinstance(data, dict):
            return None
        sys = sys_of(data)
        if sys.get("type") == ResourceKind.SPACE.value:
            return sys.get("id")
        if sys.get("space") is not None:
            return sys_of(sys["space"]).get("id")
        items = data.get("items")
        if isinstance(items, list):
            if not items:
                return self.space_id
            first_sys = sys_of(items[0])
            if first_sys.get("space") is not None:
                return sys_of(first_sys["space"]).get("id")
        return None

    def parse_json(self, payload: typing.Union[str, bytes]) -> typing.Union[Resource, ResourceArray]:
        """
        Revives a document previously rendered with :py:meth:`to_json` (or a raw API
        response kept elsewhere).

        :param payload: the JSON text.
        :return: The built resource or page.
        :raises SpaceMismatchError: if the document belongs to another space.
        """
        data = json.loads(payload)
        space_id = self._extract_space_id(data)
        if space_id != self.space_id:
            raise SpaceMismatchError(self.space_id, space_id)
        return self._builder.build(data)

    def to_json(self, target: typing.Union[Resource, ResourceArray]) -> str:
        return json.dumps(self._renderer(target))

    def __init__(
        self,
        space_id: str,
        transport: Transport,
        options: typing.Optional[ClientOptions] = None,
        **kwargs,
    ):
        options = options if options is not None else ClientOptions()
        if kwargs:
            options = dataclasses.replace(options, **kwargs)
        self.space_id = space_id
        self.options = options
        self._transport = transport
        self._renderer = ResourceRenderer()
        store = None
        if options.cache is not None:
            store = DurableStore(options.cache, space_id, self.api, self._renderer)
        self._repository = InstanceRepository(store, write_through=options.auto_warmup)
        self._builder = ResourceBuilder(self, self._repository)
        self._repository.bind_reviver(lambda data: self._builder.build(data, persist=False))
        if options.auto_warmup:
            self._repository.warm_up()
