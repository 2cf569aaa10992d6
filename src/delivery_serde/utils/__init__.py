from .typing import assert_not_none, assert_type  # noqa
from .datetime import format_datetime, parse_datetime  # noqa
