"""
:py:mod:`delivery_serde.renderer` turns built resources back into the JSON envelope
the delivery API emits, so that they can be cached out of process and revived with
:py:meth:`delivery_serde.client.Client.parse_json`.

Synopsis
--------

.. code-block:: python

   import json

   from delivery_serde.renderer import ResourceRenderer

   renderer = ResourceRenderer()
   print(json.dumps(renderer(client.get_entry("nyancat"))))

"""

import datetime
import typing
from collections import OrderedDict

from .models import (
    Asset,
    AssetFile,
    ContentType,
    ContentTypeField,
    DeletedResource,
    Entry,
    Link,
    Locale,
    Resource,
    ResourceArray,
    Space,
    UnresolvedResource,
)
from .system_properties import SystemProperties
from .types import JSONValue, MutableJSONObject
from .utils import format_datetime


def _link_to(link_type: str, id: typing.Optional[str]) -> MutableJSONObject:
    return {"sys": {"type": "Link", "linkType": link_type, "id": id}}


class ResourceRenderer:
    def _dict_factory(self, items: typing.Iterable[typing.Tuple[str, typing.Any]]):
        return OrderedDict(items)

    def _render_datetime(self, value: typing.Any) -> JSONValue:
        return format_datetime(value)

    def _render_link(self, value: typing.Any) -> JSONValue:
        return typing.cast(Link, value).to_json()

    def _render_asset_file(self, value: typing.Any) -> JSONValue:
        return typing.cast(AssetFile, value).to_json()

    def _render_passthrough(self, value: typing.Any) -> JSONValue:
        return value

    _supported_types: typing.ClassVar[typing.Dict[type, typing.Callable]] = {
        datetime.datetime: _render_datetime,
        datetime.date: _render_datetime,
        Link: _render_link,
        AssetFile: _render_asset_file,
        str: _render_passthrough,
        int: _render_passthrough,
        float: _render_passthrough,
        bool: _render_passthrough,
        None.__class__: _render_passthrough,
    }

    def render_value(self, value: typing.Any) -> JSONValue:
        if isinstance(value, (list, tuple)):
            return [self.render_value(v) for v in value]
        if isinstance(value, dict):
            return self._dict_factory((k, self.render_value(v)) for k, v in value.items())
        # fast pass
        r = self._supported_types.get(type(value))
        if r is not None:
            return r(self, value)
        for type_, r in self._supported_types.items():
            if isinstance(value, type_):
                return r(self, value)
        if isinstance(value, Resource):
            return value.as_link().to_json()
        raise TypeError(f"unsupported type {value!r}")

    def render_system_properties(self, sys: SystemProperties) -> MutableJSONObject:
        retval: MutableJSONObject = OrderedDict()
        if sys.id is not None:
            retval["id"] = sys.id
        if sys.type is not None:
            retval["type"] = sys.type
        if sys.space is not None:
            retval["space"] = _link_to("Space", sys.space.id)
        if sys.content_type is not None:
            retval["contentType"] = _link_to("ContentType", sys.content_type.id)
        if sys.revision is not None:
            retval["revision"] = sys.revision
        if sys.created_at is not None:
            retval["createdAt"] = format_datetime(sys.created_at)
        if sys.updated_at is not None:
            retval["updatedAt"] = format_datetime(sys.updated_at)
        if sys.deleted_at is not None:
            retval["deletedAt"] = format_datetime(sys.deleted_at)
        if sys.locale is not None:
            retval["locale"] = sys.locale
        return retval

    def _render_locale(self, locale: Locale) -> MutableJSONObject:
        return self._dict_factory(
            [
                ("code", locale.code),
                ("name", locale.name),
                ("default", locale.default),
                ("fallbackCode", locale.fallback_code),
            ]
        )

    def _render_space(self, space: Space) -> MutableJSONObject:
        retval = self._dict_factory([("sys", self.render_system_properties(space.sys))])
        retval["name"] = space.name
        retval["locales"] = [self._render_locale(locale) for locale in space.locales]
        return retval

    def _render_content_type_field(self, field: ContentTypeField) -> MutableJSONObject:
        retval = self._dict_factory(
            [
                ("id", field.id),
                ("name", field.name),
                ("type", field.type),
            ]
        )
        if field.link_type is not None:
            retval["linkType"] = field.link_type
        if field.items is not None:
            retval["items"] = dict(field.items)
        retval["required"] = field.required
        retval["localized"] = field.localized
        retval["disabled"] = field.disabled
        retval["omitted"] = field.omitted
        return retval

    def _render_content_type(self, content_type: ContentType) -> MutableJSONObject:
        retval = self._dict_factory([("sys", self.render_system_properties(content_type.sys))])
        retval["name"] = content_type.name
        if content_type.description is not None:
            retval["description"] = content_type.description
        if content_type.display_field is not None:
            retval["displayField"] = content_type.display_field
        retval["fields"] = [self._render_content_type_field(f) for f in content_type.fields]
        return retval

    def _render_localized_fields(
        self,
        sys: SystemProperties,
        fields: typing.Mapping[str, typing.Mapping[str, typing.Any]],
    ) -> MutableJSONObject:
        retval: MutableJSONObject = self._dict_factory(())
        locale = sys.locale
        for name, values in fields.items():
            if locale is not None:
                if locale in values:
                    retval[name] = self.render_value(values[locale])
            else:
                retval[name] = self._dict_factory(
                    (code, self.render_value(v)) for code, v in values.items()
                )
        return retval

    def _render_entry(self, entry: Entry) -> MutableJSONObject:
        return self._dict_factory(
            [
                ("sys", self.render_system_properties(entry.sys)),
                ("fields", self._render_localized_fields(entry.sys, entry.fields)),
            ]
        )

    def _render_asset(self, asset: Asset) -> MutableJSONObject:
        return self._dict_factory(
            [
                ("sys", self.render_system_properties(asset.sys)),
                ("fields", self._render_localized_fields(asset.sys, asset.localized_fields)),
            ]
        )

    def _render_deleted(self, resource: DeletedResource) -> MutableJSONObject:
        return self._dict_factory([("sys", self.render_system_properties(resource.sys))])

    def _render_array(self, array: ResourceArray) -> MutableJSONObject:
        return self._dict_factory(
            [
                ("sys", {"type": "Array"}),
                ("total", array.total),
                ("skip", array.skip),
                ("limit", array.limit),
                ("items", [self._render_item(item) for item in array]),
            ]
        )

    def _render_item(
        self, item: typing.Union[Resource, UnresolvedResource]
    ) -> MutableJSONObject:
        if isinstance(item, UnresolvedResource):
            return dict(item.data)
        return self._render_resource(item)

    def _render_resource(self, resource: Resource) -> MutableJSONObject:
        if isinstance(resource, Space):
            return self._render_space(resource)
        elif isinstance(resource, ContentType):
            return self._render_content_type(resource)
        elif isinstance(resource, Entry):
            return self._render_entry(resource)
        elif isinstance(resource, Asset):
            return self._render_asset(resource)
        elif isinstance(resource, DeletedResource):
            return self._render_deleted(resource)
        else:
            raise TypeError(f"unsupported resource {resource!r}")

    def __call__(self, target: typing.Union[Resource, ResourceArray]) -> MutableJSONObject:
        if isinstance(target, ResourceArray):
            return self._render_array(target)
        return self._render_resource(target)
