import dataclasses
import datetime
import typing

from .identity import IdentityKey, ResourceKind

if typing.TYPE_CHECKING:
    from .models import ContentType, Space  # noqa: F401


@dataclasses.dataclass(frozen=True)
class SystemProperties:
    """
    :py:class:`SystemProperties` holds the ``sys`` block of a resource.

    Every member is optional as the delivery API omits whatever does not apply to
    a given kind; ``space`` and ``content_type`` refer to the instances held by the
    client's instance repository rather than to copies.
    """

    id: typing.Optional[str] = None
    type: typing.Optional[str] = None
    space: typing.Optional["Space"] = dataclasses.field(default=None, compare=False, repr=False)
    content_type: typing.Optional["ContentType"] = dataclasses.field(
        default=None, compare=False, repr=False
    )
    revision: typing.Optional[int] = None
    created_at: typing.Optional[datetime.datetime] = None
    updated_at: typing.Optional[datetime.datetime] = None
    deleted_at: typing.Optional[datetime.datetime] = None
    locale: typing.Optional[str] = None

    @property
    def kind(self) -> typing.Optional[ResourceKind]:
        return ResourceKind.from_type_name(self.type)

    @property
    def space_id(self) -> typing.Optional[str]:
        if self.space is None:
            return None
        return self.space.id

    @property
    def content_type_id(self) -> typing.Optional[str]:
        if self.content_type is None:
            return None
        return self.content_type.id

    def identity_key(self) -> IdentityKey:
        kind = self.kind
        assert kind is not None and self.id is not None
        return IdentityKey.of(kind, self.id, self.locale)
