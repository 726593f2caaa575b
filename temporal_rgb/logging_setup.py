"""Logging configuration helpers for the temporal RGB tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

DEFAULT_LOGGER_NAME = "temporal_rgb"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _open_file_handler(log_file: Union[str, Path]) -> Tuple[Optional[logging.Handler], Optional[str]]:
    """Open ``log_file``, falling back to the working directory.

    Returns the handler (or ``None``) and a warning to emit once logging is up.
    """
    log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = Path.cwd() / log_path

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), None
    except OSError as exc:
        fallback_path = Path.cwd() / log_path.name
        try:
            handler = logging.FileHandler(fallback_path, encoding="utf-8")
        except OSError as fallback_exc:
            return None, (
                f"Failed to open log file at '{log_path}' "
                f"and fallback '{fallback_path}'. Reason: {fallback_exc}"
            )
        return handler, (
            f"Failed to open log file at '{log_path}'. Falling back to '{fallback_path}'. "
            f"Reason: {exc}"
        )


def configure_logging(
    logger_name: Optional[str] = None,
    *,
    level: Union[int, str] = logging.INFO,
    log_file: Union[str, Path, None] = None,
    include_stream: bool = True,
) -> logging.Logger:
    """Configure root logging handlers and return the named logger.

    Parameters
    ----------
    logger_name:
        Logger to return. Defaults to ``"temporal_rgb"``.
    level:
        Level name or number applied to the root and returned loggers.
    log_file:
        Optional log file path. ``None`` disables file logging.
    include_stream:
        Attach a stderr `logging.StreamHandler` when ``True``.
    """
    resolved_level = _resolve_level(level)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: List[logging.Handler] = []
    pending_warning: Optional[str] = None
    if log_file:
        file_handler, pending_warning = _open_file_handler(log_file)
        if file_handler is not None:
            handlers.append(file_handler)

    if include_stream:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)

    if handlers:
        logging.basicConfig(level=resolved_level, handlers=handlers, force=True)
    else:
        logging.basicConfig(level=resolved_level, handlers=[logging.NullHandler()], force=True)

    logger = logging.getLogger(logger_name or DEFAULT_LOGGER_NAME)
    logger.setLevel(resolved_level)

    if pending_warning:
        logger.warning(pending_warning)

    return logger


__all__ = ["DEFAULT_LOGGER_NAME", "LOG_FORMAT", "configure_logging"]
