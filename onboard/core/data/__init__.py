"""Static data — the tool catalog and selection sets."""

from onboard.core.data.catalog import (  # noqa: F401
    DEFAULT_REQUEST,
    EXTENDED_REQUEST,
    GNOC_COMPANIONS,
    TOOL_CATALOG,
)
