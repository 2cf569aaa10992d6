import logging
import typing

from .client import Client
from .models import ContentType
from .repository import DurableStore

logger = logging.getLogger(__name__)


class CacheWarmer:
    """
    A :py:class:`CacheWarmer` fetches the Space and all ContentTypes of a client's space
    and writes them to a durable cache, so that clients constructed later with
    ``auto_warmup`` (or reading the cache lazily) need no request for them.

    :param Client client: the client to fetch through.
    :param Any cache: the durable cache to fill.
    """

    client: Client
    store: DurableStore

    def warm_up(self, limit: int = 1000) -> int:
        """
        :param int limit: the page size used when listing the content types.
        :return: The number of resources written.
        """
        self.store.store(self.client.get_space())
        written = 1
        for item in self.client.get_content_types({"limit": limit}):
            if isinstance(item, ContentType):
                self.store.store(item)
                written += 1
        logger.info("warmed up durable cache for space %s with %d resources", self.client.space_id, written)
        return written

    def __init__(self, client: Client, cache: typing.Any):
        self.client = client
        self.store = DurableStore(cache, client.space_id, client.api, client.renderer)
