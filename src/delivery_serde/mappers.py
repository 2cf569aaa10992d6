import abc
import collections.abc
import typing
from collections import OrderedDict

from .exceptions import InvalidResourceError, ResourceNotFoundError
from .identity import WILDCARD_LOCALE, ResourceKind
from .interfaces import ResourceResolver
from .models import (
    Asset,
    AssetFile,
    ContentType,
    ContentTypeField,
    DeletedAsset,
    DeletedEntry,
    Entry,
    Link,
    LocalizedResource,
    Locale,
    Resource,
    Space,
)
from .system_properties import SystemProperties
from .types import JSONObject
from .utils import parse_datetime


def normalize_field_data(value: typing.Any, locale: typing.Optional[str]) -> typing.Any:
    """
    Brings the value of a localized field into the locale-to-value form.

    A response fetched for a single locale carries flat values, which get wrapped
    under that locale; a response fetched for all locales already carries the
    mapping and is returned as is.

    :param Any value: the raw field value.
    :param Optional[str] locale: ``sys.locale`` of the resource, if any.
    :return: A mapping from locale code to value.
    """
    if not locale or locale == WILDCARD_LOCALE:
        return value
    return {locale: value}


def _parse_timestamp(sys: JSONObject, name: str) -> typing.Any:
    value = sys.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidResourceError(sys.get("type"), sys.get("id"), f"malformed {name}: {value!r}")
    try:
        return parse_datetime(value)
    except ValueError:
        raise InvalidResourceError(sys.get("type"), sys.get("id"), f"malformed {name}: {value!r}")


def _link_id(sys: JSONObject, name: str) -> str:
    try:
        return sys[name]["sys"]["id"]
    except (KeyError, TypeError):
        raise InvalidResourceError(sys.get("type"), sys.get("id"), f"malformed {name} link")


class BaseMapper(metaclass=abc.ABCMeta):
    """
    A mapper turns the raw JSON of one resource kind into an instance of a
    :py:class:`Resource` subclass in two phases: :py:meth:`allocate` returns a blank
    instance carrying its system properties, and :py:meth:`hydrate` fills in the rest.
    The split lets the caller register the instance before its fields are populated.

    :param ResourceResolver client: the client used to look up the Space and ContentTypes
                                    and injected into resources for link resolution.
    """

    kind: typing.ClassVar[ResourceKind]
    resource_class: typing.ClassVar[typing.Type[Resource]]
    inject_client: typing.ClassVar[bool] = True
    client: ResourceResolver

    @abc.abstractmethod
    def extract(self, target: Resource, data: JSONObject) -> typing.Mapping[str, typing.Any]:
        """
        Returns the attribute patch for ``target`` built from ``data``.
        """
        ...  # pragma: nocover

    def build_system_properties(self, sys: JSONObject) -> SystemProperties:
        if not isinstance(sys, collections.abc.Mapping):
            raise InvalidResourceError(None, None, "sys must be an object")
        content_type = None
        if sys.get("contentType") is not None:
            content_type_id = _link_id(sys, "contentType")
            try:
                content_type = self.client.get_content_type(content_type_id)
            except ResourceNotFoundError:
                raise InvalidResourceError(
                    sys.get("type"), sys.get("id"), f'unknown content type "{content_type_id}"'
                )
        return SystemProperties(
            id=sys.get("id"),
            type=sys.get("type"),
            space=self.client.get_space() if sys.get("space") is not None else None,
            content_type=content_type,
            revision=sys.get("revision"),
            created_at=_parse_timestamp(sys, "createdAt"),
            updated_at=_parse_timestamp(sys, "updatedAt"),
            deleted_at=_parse_timestamp(sys, "deletedAt"),
            locale=sys.get("locale"),
        )

    def allocate(
        self, data: JSONObject, resource_class: typing.Optional[typing.Type[Resource]] = None
    ) -> Resource:
        target = (resource_class or self.resource_class)._allocate()
        patch: typing.Dict[str, typing.Any] = {
            "_sys": self.build_system_properties(data.get("sys", {})),
        }
        if self.inject_client:
            patch["_client"] = self.client
        target._hydrate(patch)
        return target

    def hydrate(self, target: Resource, data: JSONObject) -> Resource:
        target._hydrate(self.extract(target, data))
        if isinstance(target, LocalizedResource):
            locale = target.sys.locale or self.client.default_locale
            target._hydrate(
                {
                    "_locales": tuple(self.client.get_space().locales),
                    "_locale": None if locale == WILDCARD_LOCALE else locale,
                }
            )
        return target

    def map(
        self, data: JSONObject, resource_class: typing.Optional[typing.Type[Resource]] = None
    ) -> Resource:
        return self.hydrate(self.allocate(data, resource_class), data)

    def _invalid(self, target: Resource, detail: str) -> InvalidResourceError:
        return InvalidResourceError(self.kind.value, target.id, detail)

    def _fields_of(self, target: Resource, data: JSONObject) -> JSONObject:
        fields = data.get("fields", {})
        if not isinstance(fields, collections.abc.Mapping):
            raise self._invalid(target, "fields must be an object")
        return fields

    def _localized(self, target: Resource, name: str, value: typing.Any) -> typing.Mapping[str, typing.Any]:
        normalized = normalize_field_data(value, target.sys.locale)
        if not isinstance(normalized, collections.abc.Mapping):
            raise self._invalid(target, f'field "{name}" is not keyed by locale')
        return normalized

    def __init__(self, client: ResourceResolver):
        self.client = client


class SpaceMapper(BaseMapper):
    kind = ResourceKind.SPACE
    resource_class = Space

    def extract(self, target: Resource, data: JSONObject) -> typing.Mapping[str, typing.Any]:
        try:
            locales = tuple(
                Locale(
                    code=locale["code"],
                    name=locale.get("name", locale["code"]),
                    default=bool(locale.get("default", False)),
                    fallback_code=locale.get("fallbackCode"),
                )
                for locale in data.get("locales", ())
            )
        except (KeyError, TypeError, AttributeError):
            raise self._invalid(target, "malformed locales")
        return {"_name": data.get("name"), "_locales": locales}


class ContentTypeMapper(BaseMapper):
    kind = ResourceKind.CONTENT_TYPE
    resource_class = ContentType

    def _build_field(self, data: JSONObject) -> ContentTypeField:
        return ContentTypeField(
            id=data["id"],
            name=data.get("name", data["id"]),
            type=data["type"],
            link_type=data.get("linkType"),
            items=data.get("items"),
            required=bool(data.get("required", False)),
            localized=bool(data.get("localized", False)),
            disabled=bool(data.get("disabled", False)),
            omitted=bool(data.get("omitted", False)),
        )

    def extract(self, target: Resource, data: JSONObject) -> typing.Mapping[str, typing.Any]:
        try:
            fields = OrderedDict(
                (f.id, f) for f in (self._build_field(d) for d in data.get("fields", ()))
            )
        except (KeyError, TypeError, AttributeError):
            raise self._invalid(target, "malformed field definitions")
        return {
            "_name": data.get("name"),
            "_description": data.get("description"),
            "_display_field": data.get("displayField"),
            "_fields": fields,
        }


class EntryMapper(BaseMapper):
    kind = ResourceKind.ENTRY
    resource_class = Entry

    def format_value(self, field: typing.Optional[ContentTypeField], value: typing.Any) -> typing.Any:
        if Link.is_link(value):
            return Link.from_json(value)
        if isinstance(value, list):
            return [Link.from_json(item) if Link.is_link(item) else item for item in value]
        if field is not None and field.type == "Date" and isinstance(value, str):
            try:
                return parse_datetime(value)
            except ValueError:
                return value
        return value

    def extract(self, target: Resource, data: JSONObject) -> typing.Mapping[str, typing.Any]:
        content_type = target.sys.content_type
        fields: typing.Dict[str, typing.Mapping[str, typing.Any]] = OrderedDict()
        for name, value in self._fields_of(target, data).items():
            field = content_type.get_field(name) if content_type is not None else None
            values = self._localized(target, name, value)
            try:
                fields[name] = OrderedDict(
                    (code, self.format_value(field, v)) for code, v in values.items()
                )
            except (KeyError, TypeError):
                raise self._invalid(target, f'malformed link in field "{name}"')
        return {"_fields": fields}


class AssetMapper(BaseMapper):
    kind = ResourceKind.ASSET
    resource_class = Asset

    def extract(self, target: Resource, data: JSONObject) -> typing.Mapping[str, typing.Any]:
        fields = self._fields_of(target, data)
        patch: typing.Dict[str, typing.Any] = {}
        for name in ("title", "description"):
            if name in fields:
                patch[f"_{name}"] = dict(self._localized(target, name, fields[name]))
        if "file" in fields:
            try:
                patch["_file"] = {
                    code: AssetFile.from_json(v)
                    for code, v in self._localized(target, "file", fields["file"]).items()
                }
            except (KeyError, TypeError):
                raise self._invalid(target, "malformed file")
        return patch


class DeletedEntryMapper(BaseMapper):
    kind = ResourceKind.DELETED_ENTRY
    resource_class = DeletedEntry
    inject_client = False

    def extract(self, target: Resource, data: JSONObject) -> typing.Mapping[str, typing.Any]:
        return {}


class DeletedAssetMapper(BaseMapper):
    kind = ResourceKind.DELETED_ASSET
    resource_class = DeletedAsset
    inject_client = False

    def extract(self, target: Resource, data: JSONObject) -> typing.Mapping[str, typing.Any]:
        return {}


DEFAULT_MAPPERS: typing.Sequence[typing.Type[BaseMapper]] = (
    SpaceMapper,
    ContentTypeMapper,
    EntryMapper,
    AssetMapper,
    DeletedEntryMapper,
    DeletedAssetMapper,
)
