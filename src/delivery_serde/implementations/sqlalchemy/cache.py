import typing

import sqlalchemy as sa  # type: ignore

from ...interfaces import DurableCache

DEFAULT_TABLE_NAME = "delivery_serde_cache"


def build_cache_table(metadata: sa.MetaData, name: str = DEFAULT_TABLE_NAME) -> sa.Table:
    """
    Declares the key/value table backing a :py:class:`SQLACache` on ``metadata``.

    :param sa.MetaData metadata: the metadata to attach the table to.
    :param str name: the table name.
    :return: The declared :py:class:`sa.Table`.
    """
    return sa.Table(
        name,
        metadata,
        sa.Column("key", sa.String(255), primary_key=True),
        sa.Column("value", sa.LargeBinary, nullable=False),
    )


class SQLACache(DurableCache):
    """
    A :py:class:`DurableCache` persisting its entries to a relational database
    through SQLAlchemy.  Every operation runs in its own transaction.

    :param sa.engine.Engine engine: the engine to connect with.
    :param Optional[sa.Table] table: a table declared by :py:func:`build_cache_table`;
                                     one is declared on a private metadata if omitted.
    :param bool create: whether the table is created when missing.
    """

    engine: sa.engine.Engine
    table: sa.Table

    def has(self, key: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                sa.select(self.table.c.key).where(self.table.c.key == key)
            ).first()
        return row is not None

    def get(self, key: str) -> bytes:
        with self.engine.connect() as conn:
            row = conn.execute(
                sa.select(self.table.c.value).where(self.table.c.key == key)
            ).first()
        if row is None:
            raise KeyError(key)
        return bytes(row[0])

    def set(self, key: str, value: bytes) -> None:
        with self.engine.begin() as conn:
            conn.execute(self.table.delete().where(self.table.c.key == key))
            conn.execute(self.table.insert().values(key=key, value=value))

    def __init__(
        self,
        engine: sa.engine.Engine,
        table: typing.Optional[sa.Table] = None,
        create: bool = True,
    ):
        self.engine = engine
        self.table = table if table is not None else build_cache_table(sa.MetaData())
        if create:
            self.table.create(bind=engine, checkfirst=True)
