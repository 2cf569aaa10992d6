import abc
import typing


class DeliverySerdeException(Exception, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self):
        return self.message


class MappingError(DeliverySerdeException, metaclass=abc.ABCMeta):
    """
    Base class for errors raised while turning a single raw document into a resource.
    A :py:class:`ResourceBuilder` recovers from these for individual page items.
    """

    kind: typing.Optional[str]
    id: typing.Optional[str]


class UnrecognizedResourceKindError(MappingError):
    @property
    def message(self):
        if self.kind is None:
            return "resource has no sys.type"
        return f'no resource kind known as "{self.kind}"'

    def __init__(self, kind: typing.Optional[str], id: typing.Optional[str] = None):
        self.kind = kind
        self.id = id


class InvalidResourceError(MappingError):
    detail: str

    @property
    def message(self):
        return f"invalid {self.kind or 'resource'} ({self.id or '?'}): {self.detail}"

    def __init__(
        self, kind: typing.Optional[str], id: typing.Optional[str], detail: str
    ):
        self.kind = kind
        self.id = id
        self.detail = detail


class SpaceMismatchError(DeliverySerdeException):
    expected: str
    actual: typing.Optional[str]

    @property
    def message(self):
        return (
            f'trying to parse a document with a client configured for space "{self.expected}", '
            f'but space "{self.actual}" was detected'
        )

    def __init__(self, expected: str, actual: typing.Optional[str]):
        self.expected = expected
        self.actual = actual


class InvalidLinkTypeError(DeliverySerdeException):
    link_type: str

    @property
    def message(self):
        return f'trying to resolve a link of unknown type "{self.link_type}"'

    def __init__(self, link_type: str):
        self.link_type = link_type


class ResourceNotFoundError(DeliverySerdeException, KeyError):
    kind: str
    id: str
    locale: typing.Optional[str]

    @property
    def message(self):
        suffix = f" (locale {self.locale})" if self.locale not in (None, "*") else ""
        return f'no {self.kind} found for "{self.id}"{suffix}'

    def __init__(self, kind: str, id: str, locale: typing.Optional[str] = None):
        self.kind = kind
        self.id = id
        self.locale = locale


class MisconfiguredCacheError(DeliverySerdeException):
    cache: typing.Any
    missing: typing.Sequence[str]

    @property
    def message(self):
        return (
            f"{type(self.cache).__name__} is not usable as a durable cache "
            f"(missing callable {', '.join(self.missing)})"
        )

    def __init__(self, cache: typing.Any, missing: typing.Sequence[str]):
        self.cache = cache
        self.missing = missing


class UnknownLocaleError(DeliverySerdeException, ValueError):
    code: str
    available: typing.Sequence[str]

    @property
    def message(self):
        return f'locale "{self.code}" is not available (known: {", ".join(self.available)})'

    def __init__(self, code: str, available: typing.Sequence[str]):
        self.code = code
        self.available = available


class UnknownFieldError(DeliverySerdeException, KeyError):
    content_type_id: typing.Optional[str]
    name: str

    @property
    def message(self):
        return f'content type "{self.content_type_id}" has no field "{self.name}"'

    def __init__(self, content_type_id: typing.Optional[str], name: str):
        self.content_type_id = content_type_id
        self.name = name
