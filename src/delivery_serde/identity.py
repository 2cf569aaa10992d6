import dataclasses
import enum
import typing

WILDCARD_LOCALE = "*"


class ResourceKind(enum.Enum):
    SPACE = "Space"
    CONTENT_TYPE = "ContentType"
    ENTRY = "Entry"
    ASSET = "Asset"
    DELETED_ENTRY = "DeletedEntry"
    DELETED_ASSET = "DeletedAsset"

    @property
    def localized(self) -> bool:
        """
        Whether resources of this kind hold field values that differ per locale.
        """
        return self in (ResourceKind.ENTRY, ResourceKind.ASSET)

    @property
    def durable(self) -> bool:
        """
        Whether resources of this kind may be persisted to a durable cache.
        """
        return self in (ResourceKind.SPACE, ResourceKind.CONTENT_TYPE)

    @classmethod
    def from_type_name(cls, name: typing.Optional[str]) -> typing.Optional["ResourceKind"]:
        try:
            return cls(name)
        except ValueError:
            return None


KindLike = typing.Union[ResourceKind, str]


def as_kind(kind: KindLike) -> ResourceKind:
    return kind if isinstance(kind, ResourceKind) else ResourceKind(kind)


@dataclasses.dataclass(frozen=True)
class IdentityKey:
    """
    An :py:class:`IdentityKey` addresses a single live resource within a client.

    Locale-independent kinds are always keyed with the wildcard locale, so
    ``IdentityKey.of("Space", "abc", "en-US")`` and ``IdentityKey.of("Space", "abc")``
    are the same key.
    """

    kind: ResourceKind
    id: str
    locale: str = WILDCARD_LOCALE

    @classmethod
    def of(
        cls, kind: KindLike, id: str, locale: typing.Optional[str] = None
    ) -> "IdentityKey":
        kind = as_kind(kind)
        if not kind.localized or not locale:
            locale = WILDCARD_LOCALE
        return cls(kind=kind, id=id, locale=locale)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}:{self.locale}"


def durable_cache_key(api: str, space_id: str, kind: KindLike, id: typing.Optional[str] = None) -> str:
    """
    Builds the key under which a resource is stored in a durable cache.
    Omitting ``id`` yields the key of the per-kind index.

    :param str api: either ``"delivery"`` or ``"preview"``.
    :param str space_id: the space the resource belongs to.
    :param kind: the resource kind.
    :param Optional[str] id: the resource identifier.
    :return: A string key.
    """
    parts = [api, space_id, as_kind(kind).value]
    if id is not None:
        parts.append(id)
    return ".".join(parts)
