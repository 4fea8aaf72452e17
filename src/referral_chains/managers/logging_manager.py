"""
# Logging Manager

Provides `get_logger()`, the single entry point every module uses to obtain a logger.

Loggers are stdlib `logging` loggers wrapped in a `LoggerAdapter` that stamps each
message with a bracketed component prefix, so log lines read:

```
2026-01-01 12:00:00,000 INFO referral_chains [DATABASE] Successfully connected to MongoDB database: 10D
```

The console handler is installed once, on first use, at the level configured by
`settings.DEFAULT_LOG_LEVEL`.
"""

import logging
from typing import Any, MutableMapping, Optional, Tuple

from referral_chains.config import settings

LOGGER_NAME = "referral_chains"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed component prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {"prefix": prefix})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(LOGGER_NAME)
    level = logging.getLevelName(str(settings.DEFAULT_LOG_LEVEL).upper())
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a prefixed logger for a component.

    Args:
        name: Optional child logger name under `referral_chains` (e.g. `"database"`).
        prefix: Tag written in front of each message (e.g. `"[DATABASE]"`).

    Returns:
        PrefixedLoggerAdapter: Adapter exposing the usual `debug`/`info`/`warning`/`error` API.
    """
    _configure_root_logger()
    logger_name = f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME
    return PrefixedLoggerAdapter(logging.getLogger(logger_name), prefix)
