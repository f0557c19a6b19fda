"""Structured logging for the commerce domain.

Business events are logged through structlog as an event name plus keyword
context (``logger.info("order_placed", order_id=...)``). Records are routed
through the stdlib root logger so the console, the rotating log files and
third-party libraries all share one set of handlers.

The active environment (``PROTEAN_ENV``, or ``ENVIRONMENT`` when set) picks
the level and the renderer. ``LOG_LEVEL`` and ``LOG_DIR`` override the
level and the log directory.
"""

import logging
import logging.handlers
import os
import sys
from contextlib import contextmanager
from pathlib import Path

import structlog

# env -> (default level, render as JSON)
_PROFILES = {
    "production": ("INFO", True),
    "staging": ("INFO", True),
    "development": ("DEBUG", False),
    "test": ("WARNING", False),
}

_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5


def current_env() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level(env: str | None = None) -> str:
    default_level, _ = _PROFILES.get(env or current_env(), ("INFO", False))
    return os.getenv("LOG_LEVEL", default_level).upper()


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(level: str) -> None:
    """Console plus ``commerce.log``; errors are also copied to ``commerce_error.log``."""
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating_handler(log_dir / "commerce.log", level),
        _rotating_handler(log_dir / "commerce_error.log", logging.ERROR),
    ]

    logging.getLogger("protean").setLevel(logging.WARNING)


def _renderer(as_json: bool):
    if as_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=3),
    )


def setup_structlog(as_json: bool) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(as_json),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(env: str | None = None) -> None:
    env = env or current_env()
    _, as_json = _PROFILES.get(env, ("INFO", False))

    setup_stdlib_logging(get_log_level(env))
    setup_structlog(as_json)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def log_context(**values):
    """Attach ``values`` to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**{k: str(v) for k, v in values.items() if v is not None}):
        yield
