"""Logging and profiling for the command-line engine, on top of telelog.

Everything else in the package logs through four calls:

``configure(config=..., preset=...)`` -- swap the active telelog config
``get_logger(name)`` -- cached ``telelog.Logger`` per name
``record_event(name, level=..., data=...)`` -- one structured ``event::`` line
``span(name, component=..., metadata=...)`` -- profile a block

Settings come from ``EX_ENGINE_*`` environment variables unless a preset or
an explicit ``telelog.Config`` is installed.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from typing import Any, Dict, Iterator, Optional

import telelog as tl  # type: ignore[import]

ENV_PREFIX = "EX_ENGINE_"
DEFAULT_LOGGER_NAME = "ex_engine"

PRESETS: Dict[str, Dict[str, Any]] = {
    "development": {
        "min_level": "DEBUG",
        "console_output": True,
        "colored_output": True,
        "json_format": False,
    },
    "production": {
        "min_level": "WARNING",
        "console_output": False,
        "buffering": True,
        "file_output": "ex_engine.log",
    },
    "performance": {
        "min_level": "DEBUG",
        "console_output": False,
        "buffering": True,
        "json_format": True,
        "file_output": "ex_engine-performance.log",
    },
}

_loggers: Dict[str, Any] = {}
_config: Optional[Any] = None


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_flag(name: str, default: bool) -> bool:
    raw = env(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int) -> int:
    raw = env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _build(settings: Dict[str, Any]) -> Any:
    config = tl.Config()
    for option, value in settings.items():
        getattr(config, f"with_{option}")(value)
    return config


def _settings_from_env() -> Dict[str, Any]:
    settings: Dict[str, Any] = {
        "min_level": (env("LOG_LEVEL") or "INFO").upper(),
        "console_output": not env_flag("DISABLE_CONSOLE", False),
    }
    if settings["console_output"]:
        settings["colored_output"] = not env_flag("NO_COLOR", False)
    if env_flag("LOG_JSON", False):
        settings["json_format"] = True
    if env("LOG_FILE"):
        settings["file_output"] = env("LOG_FILE")
    if env_flag("LOG_BUFFERED", False):
        settings["buffering"] = True
        settings["buffer_size"] = env_int("LOG_BUFFER_SIZE", 2048)
    return settings


def _settings_for_preset(preset: str) -> Dict[str, Any]:
    try:
        settings = dict(PRESETS[preset.lower()])
    except KeyError:
        raise ValueError(f"Unknown telemetry preset '{preset}'") from None
    if env("LOG_FILE"):
        settings["file_output"] = env("LOG_FILE")
    return settings


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Install a telelog configuration and drop cached loggers.

    ``config`` and ``preset`` are mutually exclusive; with neither, the
    ``EX_ENGINE_LOG_*`` variables decide. Profiling is always switched on
    since ``span`` relies on it.
    """

    global _config
    if config is not None and preset is not None:
        raise ValueError("Pass either `config` or `preset`, not both.")
    if config is None:
        config = _build(_settings_for_preset(preset) if preset else _settings_from_env())
    config.with_profiling(True)
    _config = config
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    logger_name = name or env("LOGGER") or DEFAULT_LOGGER_NAME
    logger = _loggers.get(logger_name)
    if logger is None:
        if _config is None:
            configure()
        logger = tl.Logger.with_config(logger_name, _config)
        _loggers[logger_name] = logger
    return logger


def _text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _emit(logger: Any, level: str, message: str, data: Dict[str, Any]) -> None:
    # ``<level>_with`` takes key/value pairs; older telelog builds only have ``<level>``.
    structured = getattr(logger, f"{level}_with", None)
    if structured is not None:
        structured(message, [(str(key), _text(value)) for key, value in data.items()])
        return
    plain = getattr(logger, level, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'")
    plain(f"{message} {data}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    _emit(
        get_logger(logger_name),
        level.lower(),
        f"event::{name}",
        {"event": name, **(data or {})},
    )


@contextmanager
def span(
    name: str,
    *,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> Iterator[None]:
    """Profile the block as ``name``.

    ``component`` additionally tracks it as a telelog component (``True``
    reuses ``name``). ``metadata`` is attached as logger context while the
    block runs. A block that raises logs ``span::fail`` and re-raises.
    """

    logger = get_logger(logger_name)
    component_name = name if component is True else (component or None)
    context = {key: _text(value) for key, value in (metadata or {}).items()}

    with ExitStack() as stack:
        for key, value in context.items():
            logger.add_context(key, value)
            stack.callback(logger.remove_context, key)
        if component_name:
            stack.enter_context(logger.track_component(component_name))
        stack.enter_context(logger.profile(name))
        try:
            yield
        except Exception as exc:
            _emit(logger, "error", "span::fail", {"span": name, **context, "reason": str(exc)})
            raise


__all__ = [
    "ENV_PREFIX",
    "PRESETS",
    "configure",
    "env",
    "env_flag",
    "env_int",
    "get_logger",
    "record_event",
    "span",
]
