"""Logging utilities for delaunay_mesh.

Every module obtains its logger through get_logger() so the whole package
lives under the 'delaunay_mesh' logger family. The process root logger is
never modified.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_ROOT_NAME = 'delaunay_mesh'
_FORMAT = logging.Formatter('%(levelname)s %(name)s: %(message)s')
_handler: Optional[logging.Handler] = None


def _to_level(level: Union[str, int, None], default: int = logging.INFO) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = getattr(logging, str(level).upper(), None)
    return resolved if isinstance(resolved, int) else default


def configure_logging(level: Union[str, int] = 'INFO', stream=None) -> logging.Logger:
    """Attach a stream handler to the 'delaunay_mesh' logger and set its level.

    Repeated calls reuse the handler installed by the first call.
    """
    global _handler
    root = logging.getLogger(_ROOT_NAME)
    if _handler is None or _handler not in root.handlers:
        _handler = logging.StreamHandler(stream=stream or sys.stdout)
        _handler.setFormatter(_FORMAT)
        root.addHandler(_handler)
    root.setLevel(_to_level(level))
    root.propagate = False
    return root


def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Return a logger under the 'delaunay_mesh' namespace.

    Without an explicit level the logger is left at NOTSET so it inherits
    whatever configure_logging() set on the package logger.
    """
    if name != _ROOT_NAME and not name.startswith(_ROOT_NAME + '.'):
        name = f'{_ROOT_NAME}.{name}'
    log = logging.getLogger(name)
    log.setLevel(logging.NOTSET if level is None else _to_level(level))
    return log


__all__ = ['get_logger', 'configure_logging']
