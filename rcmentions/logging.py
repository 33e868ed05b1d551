import inspect
import logging
from pprint import pformat
from typing import Any

from pydantic import BaseModel

DETECTION_PREFIX = "[Athlete Detection]"


class PprintLogger:
    """A logger wrapper that pretty-prints structured payloads and tags every line.

    Messages may be plain strings, dicts, or pydantic models (mentions, batch
    results). Structured messages are rendered with ``model_dump_json`` or
    ``pformat`` so that the detection logs stay readable in worker output.
    """

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        self._logger = logger
        self._prefix = prefix

    def _format_message(self, msg: Any, pprint: bool = True) -> str:
        """Format a message, optionally using pprint, and apply the prefix."""
        if isinstance(msg, str) or not pprint:
            text = str(msg)
        elif isinstance(msg, BaseModel):
            text = msg.model_dump_json(indent=2)
        else:
            text = pformat(msg, width=120, depth=None)
        if not self._prefix:
            return text
        return f"{self._prefix} {text}"

    def debug(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.debug(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def info(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.info(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def warning(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.warning(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def error(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.error(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def exception(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.exception(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate any other attributes to the underlying logger."""
        return getattr(self._logger, name)


def setup_logging(
    level: int = logging.INFO,
    name: str | None = None,
    prefix: str = DETECTION_PREFIX,
) -> PprintLogger:
    """Set up logging and return a PprintLogger.

    The logger is named after ``name`` or, when omitted, after the calling
    module, so ``setup_logging()`` at module scope behaves like
    ``logging.getLogger(__name__)``.
    """
    if name is None:
        frame = inspect.currentframe().f_back  # type: ignore[union-attr]
        name = frame.f_globals.get("__name__", "rcmentions")  # type: ignore[union-attr]
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return PprintLogger(logger, prefix=prefix)
