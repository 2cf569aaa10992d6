"""
This module contains the interfaces of the collaborators the resource layer relies on
but does not implement: the transport that talks to the delivery API, the durable
key/value store, and the client surface that mappers and resources call back into.

"""
import abc
import typing

from .types import JSONObject

if typing.TYPE_CHECKING:
    from .models import Asset, ContentType, Entry, Link, Space  # noqa: F401


class Transport(typing.Protocol):
    def __call__(
        self, path: str, query: typing.Optional[typing.Mapping[str, typing.Any]] = None
    ) -> JSONObject:
        """
        Issues a GET request against the delivery API and returns the decoded JSON body.
        Implementations raise :py:class:`ResourceNotFoundError` when the API answers
        that the resource does not exist.

        :param str path: the request path, e.g. ``/spaces/cfexampleapi/entries/nyancat``.
        :param Optional[Mapping[str, Any]] query: query parameters.
        :return: The decoded response body.
        """
        ...  # pragma: nocover


class DurableCache(metaclass=abc.ABCMeta):
    """
    A :py:class:`DurableCache` is a key/value store whose content outlives the process.
    Only Space and ContentType documents are ever written to it.

    Any object providing callable ``has``, ``get`` and ``set`` is accepted in place
    of a subclass.
    """

    @abc.abstractmethod
    def has(self, key: str) -> bool:
        """
        Returns :py:const:`True` if a value is stored under ``key``.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def get(self, key: str) -> bytes:
        """
        Returns the value stored under ``key``.

        :raises KeyError: if nothing is stored under ``key``.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """
        Stores ``value`` under ``key``, replacing any previous value.
        """
        ...  # pragma: nocover


class ResourceResolver(metaclass=abc.ABCMeta):
    """
    A :py:class:`ResourceResolver` denotes the client-side operations mappers need to
    populate system properties and resources need to resolve their links.
    """

    @property
    @abc.abstractmethod
    def default_locale(self) -> typing.Optional[str]:
        ...  # pragma: nocover

    @abc.abstractmethod
    def get_space(self) -> "Space":
        ...  # pragma: nocover

    @abc.abstractmethod
    def get_content_type(self, content_type_id: str) -> "ContentType":
        ...  # pragma: nocover

    @abc.abstractmethod
    def get_entry(self, entry_id: str, locale: typing.Optional[str] = None) -> "Entry":
        ...  # pragma: nocover

    @abc.abstractmethod
    def get_asset(self, asset_id: str, locale: typing.Optional[str] = None) -> "Asset":
        ...  # pragma: nocover

    @abc.abstractmethod
    def resolve_link(
        self, link: "Link", locale: typing.Optional[str] = None
    ) -> typing.Union["Entry", "Asset"]:
        """
        Resolves a link to the resource it points to.

        :param Link link: the link to resolve.
        :param Optional[str] locale: the locale to fetch the target in.
        :return: The linked :py:class:`Entry` or :py:class:`Asset`.
        """
        ...  # pragma: nocover
