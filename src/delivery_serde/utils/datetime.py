import datetime
import typing


def parse_datetime(value: str) -> datetime.datetime:
    """
    Parses an ISO 8601 timestamp as emitted by the delivery API
    (e.g. ``2013-06-27T22:46:19.513Z``).  Date-only values yield midnight.

    :param str value: the timestamp string.
    :return: a :py:class:`datetime.datetime`, timezone-aware when the input carries an offset.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    if "T" not in value:
        return datetime.datetime.combine(datetime.date.fromisoformat(value), datetime.time())
    return datetime.datetime.fromisoformat(value)


def format_datetime(value: typing.Union[datetime.datetime, datetime.date]) -> str:
    if not isinstance(value, datetime.datetime):
        return value.isoformat()
    if value.tzinfo is None:
        return value.isoformat()
    return value.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")
