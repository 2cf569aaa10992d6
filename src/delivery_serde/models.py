"""
Classes in :py:mod:`delivery_serde.models` are the typed, in-memory counterparts of the
resources served by the delivery API.

Resources are not meant to be constructed by hand when they stem from API responses:
mappers allocate them through :py:meth:`Resource._allocate` and fill them with
:py:meth:`Resource._hydrate`, as the concrete class of an entry is only known once its
content type has been read from the response.
"""

import collections.abc
import dataclasses
import datetime
import itertools
import logging
import typing
from collections import OrderedDict

from .exceptions import (
    MappingError,
    ResourceNotFoundError,
    UnknownFieldError,
    UnknownLocaleError,
)
from .identity import WILDCARD_LOCALE, IdentityKey, ResourceKind
from .system_properties import SystemProperties
from .types import JSONObject, MutableJSONObject
from .utils import assert_not_none

if typing.TYPE_CHECKING:
    from .interfaces import ResourceResolver  # noqa: F401

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Link:
    """
    A :py:class:`Link` is an unresolved reference to another resource found in field data.
    """

    link_type: str
    id: str

    @staticmethod
    def is_link(value: typing.Any) -> bool:
        if not isinstance(value, collections.abc.Mapping):
            return False
        sys = value.get("sys")
        return isinstance(sys, collections.abc.Mapping) and sys.get("type") == "Link"

    @classmethod
    def from_json(cls, value: JSONObject) -> "Link":
        sys = value["sys"]
        return cls(link_type=sys["linkType"], id=sys["id"])

    def to_json(self) -> MutableJSONObject:
        return {"sys": {"type": "Link", "linkType": self.link_type, "id": self.id}}


@dataclasses.dataclass(frozen=True)
class Locale:
    code: str
    name: str
    default: bool = False
    fallback_code: typing.Optional[str] = None


@dataclasses.dataclass(frozen=True)
class ContentTypeField:
    id: str
    name: str
    type: str
    link_type: typing.Optional[str] = None
    items: typing.Optional[typing.Mapping[str, typing.Any]] = None
    required: bool = False
    localized: bool = False
    disabled: bool = False
    omitted: bool = False

    @property
    def items_type(self) -> typing.Optional[str]:
        return None if self.items is None else self.items.get("type")

    @property
    def items_link_type(self) -> typing.Optional[str]:
        return None if self.items is None else self.items.get("linkType")


@dataclasses.dataclass(frozen=True)
class AssetFile:
    file_name: str
    content_type: str
    url: typing.Optional[str] = None
    details: typing.Optional[typing.Mapping[str, typing.Any]] = None
    upload: typing.Optional[str] = None

    @classmethod
    def from_json(cls, value: JSONObject) -> "AssetFile":
        return cls(
            file_name=value["fileName"],
            content_type=value["contentType"],
            url=value.get("url"),
            details=value.get("details"),
            upload=value.get("upload"),
        )

    def to_json(self) -> MutableJSONObject:
        retval: MutableJSONObject = {
            "fileName": self.file_name,
            "contentType": self.content_type,
        }
        if self.url is not None:
            retval["url"] = self.url
        if self.details is not None:
            retval["details"] = self.details
        if self.upload is not None:
            retval["upload"] = self.upload
        return retval


EMPTY_MAPPING: typing.Mapping[str, typing.Any] = {}

T = typing.TypeVar("T", bound="Resource")


class Resource:
    """
    The base class of every resource variant.

    :param SystemProperties sys: the system properties of the resource.
    """

    kind: typing.ClassVar[ResourceKind]
    _hydrated_attributes: typing.ClassVar[typing.Tuple[str, ...]] = ("_sys", "_client")
    _hydratable: typing.ClassVar[typing.FrozenSet[str]] = frozenset()

    _sys: SystemProperties = SystemProperties()
    _client: typing.Optional["ResourceResolver"] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._hydratable = frozenset(
            itertools.chain.from_iterable(
                vars(c).get("_hydrated_attributes", ()) for c in cls.__mro__
            )
        )

    @classmethod
    def _allocate(cls: typing.Type[T]) -> T:
        """
        Returns a blank instance without running :py:meth:`__init__`; the class level
        defaults act as its zero values until :py:meth:`_hydrate` fills it.
        """
        return cls.__new__(cls)

    def _hydrate(self, patch: typing.Mapping[str, typing.Any]) -> None:
        hydratable = type(self)._hydratable
        for name, value in patch.items():
            if name not in hydratable:
                raise AttributeError(f"{type(self).__name__} has no hydratable attribute {name}")
            setattr(self, name, value)

    @property
    def system_properties(self) -> SystemProperties:
        return self._sys

    @property
    def sys(self) -> SystemProperties:
        return self._sys

    @property
    def id(self) -> typing.Optional[str]:
        return self._sys.id

    def identity_key(self) -> IdentityKey:
        return self._sys.identity_key()

    def as_link(self) -> Link:
        return Link(link_type=self.kind.value, id=assert_not_none(self._sys.id))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self._sys.id!r} locale={self._sys.locale!r}>"

    def __init__(self, sys: SystemProperties):
        if sys.kind is not self.kind:
            raise ValueError(f"system properties of type {sys.type} given to {type(self).__name__}")
        if sys.id is None:
            raise ValueError(f"{type(self).__name__} requires an id")
        self._sys = sys


class Space(Resource):
    kind = ResourceKind.SPACE
    _hydrated_attributes = ("_name", "_locales")

    _name: typing.Optional[str] = None
    _locales: typing.Sequence[Locale] = ()

    @property
    def name(self) -> typing.Optional[str]:
        return self._name

    @property
    def locales(self) -> typing.Sequence[Locale]:
        return self._locales

    @property
    def default_locale(self) -> typing.Optional[Locale]:
        for locale in self._locales:
            if locale.default:
                return locale
        return self._locales[0] if self._locales else None

    def get_locale(self, code: str) -> Locale:
        for locale in self._locales:
            if locale.code == code:
                return locale
        raise UnknownLocaleError(code, [locale.code for locale in self._locales])

    def __init__(self, sys: SystemProperties, name: str, locales: typing.Iterable[Locale]):
        super().__init__(sys)
        self._name = name
        self._locales = tuple(locales)


class ContentType(Resource):
    kind = ResourceKind.CONTENT_TYPE
    _hydrated_attributes = ("_name", "_description", "_display_field", "_fields")

    _name: typing.Optional[str] = None
    _description: typing.Optional[str] = None
    _display_field: typing.Optional[str] = None
    _fields: typing.Mapping[str, ContentTypeField] = EMPTY_MAPPING

    @property
    def name(self) -> typing.Optional[str]:
        return self._name

    @property
    def description(self) -> typing.Optional[str]:
        return self._description

    @property
    def display_field(self) -> typing.Optional[str]:
        return self._display_field

    @property
    def fields(self) -> typing.Sequence[ContentTypeField]:
        return list(self._fields.values())

    def get_field(self, field_id: str) -> typing.Optional[ContentTypeField]:
        return self._fields.get(field_id)

    def __init__(
        self,
        sys: SystemProperties,
        name: str,
        fields: typing.Iterable[ContentTypeField] = (),
        description: typing.Optional[str] = None,
        display_field: typing.Optional[str] = None,
    ):
        super().__init__(sys)
        self._name = name
        self._description = description
        self._display_field = display_field
        self._fields = OrderedDict((f.id, f) for f in fields)


class LocalizedResource(Resource):
    """
    A resource whose field values are held per locale.  Reads go through the
    space's fallback chain: a locale lacking a value defers to its ``fallback_code``.
    """

    _hydrated_attributes = ("_locales", "_locale")

    _locales: typing.Sequence[Locale] = ()
    _locale: typing.Optional[str] = None

    @property
    def locales(self) -> typing.Sequence[Locale]:
        return self._locales

    @property
    def locale(self) -> typing.Optional[str]:
        """
        The locale used by accessors when none is given explicitly.
        """
        if self._locale is not None and self._locale != WILDCARD_LOCALE:
            return self._locale
        for locale in self._locales:
            if locale.default:
                return locale.code
        return None

    def set_locale(self, code: str) -> None:
        self._find_locale(code)
        self._locale = code

    def _find_locale(self, code: str) -> typing.Optional[Locale]:
        if not self._locales:
            return None
        for locale in self._locales:
            if locale.code == code:
                return locale
        raise UnknownLocaleError(code, [locale.code for locale in self._locales])

    def _localized_value(
        self, values: typing.Mapping[str, typing.Any], locale: typing.Optional[str] = None
    ) -> typing.Any:
        code = locale if locale is not None and locale != WILDCARD_LOCALE else self.locale
        if code is None:
            return None
        fallbacks = {locale.code: locale.fallback_code for locale in self._locales}
        visited: typing.Set[str] = set()
        while code is not None and code not in visited:
            if code in values:
                return values[code]
            visited.add(code)
            code = fallbacks.get(code)
        return None


class Entry(LocalizedResource):
    """
    An :py:class:`Entry` holds the field values of a piece of content.

    Subclasses may be registered to a :py:class:`delivery_serde.builder.ResourceBuilder`
    per content type; they are hydrated exactly like the generic class.
    """

    kind = ResourceKind.ENTRY
    _hydrated_attributes = ("_fields",)

    _fields: typing.Mapping[str, typing.Mapping[str, typing.Any]] = EMPTY_MAPPING

    @property
    def content_type(self) -> typing.Optional[ContentType]:
        return self._sys.content_type

    @property
    def fields(self) -> typing.Mapping[str, typing.Mapping[str, typing.Any]]:
        """
        The raw field data: field id to locale code to value.  Links are left unresolved.
        """
        return self._fields

    def _link_locale(self) -> str:
        return self._sys.locale or WILDCARD_LOCALE

    def _resolve(self, value: typing.Any) -> typing.Any:
        if self._client is None:
            return value
        if isinstance(value, Link):
            return self._client.resolve_link(value, self._link_locale())
        if isinstance(value, list) and any(isinstance(item, Link) for item in value):
            resolved = []
            for item in value:
                if not isinstance(item, Link):
                    resolved.append(item)
                    continue
                try:
                    resolved.append(self._client.resolve_link(item, self._link_locale()))
                except ResourceNotFoundError as e:
                    logger.warning("dropping unresolvable link in %r: %s", self, e)
            return resolved
        return value

    def get(
        self, name: str, locale: typing.Optional[str] = None, resolve_links: bool = True
    ) -> typing.Any:
        """
        Returns the value of a field, applying locale fallback.

        :param str name: the field id.
        :param Optional[str] locale: the locale to read; defaults to :py:attr:`locale`.
        :param bool resolve_links: whether links are resolved into resources.
        :return: The value, or :py:const:`None` if no locale on the fallback chain has one.
        :raises UnknownFieldError: if the content type does not declare the field.
        """
        values = self._fields.get(name)
        if values is None:
            content_type = self.content_type
            if content_type is not None and content_type.get_field(name) is None:
                raise UnknownFieldError(content_type.id, name)
            return None
        value = self._localized_value(values, locale)
        if resolve_links:
            value = self._resolve(value)
        return value

    def __getitem__(self, name: str) -> typing.Any:
        return self.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __init__(
        self,
        sys: SystemProperties,
        fields: typing.Mapping[str, typing.Mapping[str, typing.Any]],
        locales: typing.Iterable[Locale] = (),
    ):
        if sys.content_type is None:
            raise ValueError("an entry requires a content type")
        super().__init__(sys)
        self._fields = {k: dict(v) for k, v in fields.items()}
        self._locales = tuple(locales)
        self._locale = sys.locale


class Asset(LocalizedResource):
    kind = ResourceKind.ASSET
    _hydrated_attributes = ("_title", "_description", "_file")

    _title: typing.Mapping[str, str] = EMPTY_MAPPING
    _description: typing.Mapping[str, str] = EMPTY_MAPPING
    _file: typing.Mapping[str, AssetFile] = EMPTY_MAPPING

    def get_title(self, locale: typing.Optional[str] = None) -> typing.Optional[str]:
        return self._localized_value(self._title, locale)

    def get_description(self, locale: typing.Optional[str] = None) -> typing.Optional[str]:
        return self._localized_value(self._description, locale)

    def get_file(self, locale: typing.Optional[str] = None) -> typing.Optional[AssetFile]:
        return self._localized_value(self._file, locale)

    @property
    def title(self) -> typing.Optional[str]:
        return self.get_title()

    @property
    def description(self) -> typing.Optional[str]:
        return self.get_description()

    @property
    def file(self) -> typing.Optional[AssetFile]:
        return self.get_file()

    @property
    def localized_fields(self) -> typing.Mapping[str, typing.Mapping[str, typing.Any]]:
        retval: typing.Dict[str, typing.Mapping[str, typing.Any]] = OrderedDict()
        for name, values in (
            ("title", self._title),
            ("description", self._description),
            ("file", self._file),
        ):
            if values:
                retval[name] = values
        return retval


class DeletedResource(Resource):
    @property
    def deleted_at(self) -> typing.Optional[datetime.datetime]:
        return self._sys.deleted_at


class DeletedEntry(DeletedResource):
    kind = ResourceKind.DELETED_ENTRY


class DeletedAsset(DeletedResource):
    kind = ResourceKind.DELETED_ASSET


@dataclasses.dataclass(frozen=True)
class UnresolvedResource:
    """
    Stands in for a page item that could not be built.
    """

    kind: typing.Optional[str]
    id: typing.Optional[str]
    error: MappingError = dataclasses.field(compare=False)
    data: JSONObject = dataclasses.field(compare=False, repr=False, default_factory=dict)


ArrayItem = typing.Union[Resource, UnresolvedResource]


class ResourceArray(collections.abc.Sequence):
    """
    An immutable page of built resources.

    :param Iterable[ArrayItem] items: the items in response order.
    :param int total: the total number of matching resources.
    :param int skip: the offset of this page.
    :param int limit: the page size requested.
    """

    _items: typing.Tuple[ArrayItem, ...]
    total: int
    skip: int
    limit: int

    @property
    def items(self) -> typing.Sequence[ArrayItem]:
        return self._items

    @property
    def unresolved(self) -> typing.Sequence[UnresolvedResource]:
        return [item for item in self._items if isinstance(item, UnresolvedResource)]

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"<ResourceArray total={self.total} skip={self.skip} limit={self.limit} items={list(self._items)!r}>"

    def __init__(
        self,
        items: typing.Iterable[ArrayItem],
        total: int,
        skip: int = 0,
        limit: int = 100,
    ):
        self._items = tuple(items)
        self.total = total
        self.skip = skip
        self.limit = limit
