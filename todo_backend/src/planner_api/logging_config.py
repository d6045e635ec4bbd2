from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """
    Attach a stderr handler to the 'planner_api' logger.

    Safe to call more than once: an existing handler is reused and only the
    level is updated. Records still propagate, so handlers installed by the
    host (or by pytest) see them as well.
    """
    logger = logging.getLogger("planner_api")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not any(getattr(h, "_planner_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        handler._planner_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
