"""Configuration enums - no magic strings!"""

from __future__ import annotations

from enum import Enum


class TimeoutType(str, Enum):
    """Timer kinds used by the bridge - type-safe timeout keys."""

    REQUEST = "request"
    SIZE_DEBOUNCE = "size_debounce"
    DISPLAY_MODE_SETTLE = "display_mode_settle"
    INITIAL_SIZE = "initial_size"


class StringPolicy(str, Enum):
    """What the normalizer does with a payload that arrives as a string.

    ``PARSE`` decodes it as JSON and treats undecodable text as empty.
    ``PASSTHROUGH`` hands the string to the renderer untouched.
    """

    PARSE = "parse"
    PASSTHROUGH = "passthrough"


class LogFormat(str, Enum):
    """Console log line layouts accepted by ``setup_logging``."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
