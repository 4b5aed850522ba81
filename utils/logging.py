import atexit
import json
import logging
import logging.handlers
import queue
from pathlib import Path
from typing import Any

from config.config_loader import ConfigLoader

_queue_listener: logging.handlers.QueueListener | None = None
_atexit_registered = False

_EXTRA_FIELDS = ("guild_id", "channel_id", "user_id", "message_key")


class ErrorLevelFilter(logging.Filter):
    """Allow only error-or-higher log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        return record.levelno >= logging.ERROR


class CustomJsonFormatter(logging.Formatter):
    """
    Render log records as single-line JSON.

    Records carrying a ``message_key`` (see ``utils.log_context.vac_log_extra``)
    have their message rendered through the localization catalog; the raw key
    and parameters are kept alongside for machine consumption.
    """

    def __init__(self, datefmt: str | None = None, locale: str | None = None) -> None:
        super().__init__(datefmt=datefmt)
        self.locale = locale

    def format(self, record: logging.LogRecord) -> str:
        record_dict: dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.name,
            "funcName": record.funcName,
            "lineno": record.lineno,
            "message": self._render_message(record),
        }

        for field_name in _EXTRA_FIELDS:
            if hasattr(record, field_name):
                record_dict[field_name] = getattr(record, field_name)

        params = getattr(record, "event_params", None)
        if params:
            record_dict["params"] = {k: _jsonable(v) for k, v in params.items()}

        if record.exc_info:
            record_dict["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(record_dict, ensure_ascii=False)

    def _render_message(self, record: logging.LogRecord) -> str:
        message_key = getattr(record, "message_key", None)
        if not message_key:
            return record.getMessage()

        from helpers.messages import format_message

        params = getattr(record, "event_params", None) or {}
        return format_message(message_key, locale=self.locale, **params)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def setup_logging(log_file: str = "logs/bot.log", locale: str | None = None) -> None:
    """
    Setup structured logging with JSON formatting, queue-based async handling,
    and daily log rotation.

    Args:
        log_file: Path to the log file (default: "logs/bot.log")
        locale: Locale used to render keyed VAC log events
    """
    config = ConfigLoader.load_config()
    logging_config = config.get("logging", {})
    log_level_name = logging_config.get("level", "INFO").upper()
    log_level = getattr(logging, log_level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    # Stop any existing listener before creating a new one (e.g., during tests)
    global _queue_listener
    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    log_path = Path(log_file)
    errors_dir = log_path.parent / "errors"
    errors_dir.mkdir(parents=True, exist_ok=True)

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=1000)
    queue_listener = _build_queue_listener(log_queue, log_level, str(log_path), locale)

    queue_handler = logging.handlers.QueueHandler(log_queue)
    queue_handler.setLevel(log_level)
    root_logger.addHandler(queue_handler)

    queue_listener.start()
    _queue_listener = queue_listener

    _register_logging_shutdown()

    discord_logger = logging.getLogger("discord")
    discord_logger.setLevel(logging.WARNING)


def _build_queue_listener(
    log_queue: queue.Queue, log_level: int, log_file: str, locale: str | None
) -> logging.handlers.QueueListener:
    """
    Creates a QueueListener that will dispatch logs from the queue
    to file, error-file and console handlers.
    """
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=30,
        utc=True,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setLevel(log_level)

    errors_dir = Path(log_file).parent / "errors"
    error_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(errors_dir / "errors.jsonl"),
        when="midnight",
        interval=1,
        backupCount=30,
        utc=True,
        encoding="utf-8",
    )
    error_handler.suffix = "%Y-%m-%d"
    error_handler.namer = _error_log_namer  # type: ignore[assignment]
    error_handler.setLevel(logging.ERROR)
    error_handler.addFilter(ErrorLevelFilter())

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    formatter = CustomJsonFormatter(datefmt="%Y-%m-%d %H:%M:%S", locale=locale)
    file_handler.setFormatter(formatter)
    error_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    return logging.handlers.QueueListener(
        log_queue,
        file_handler,
        console_handler,
        error_handler,
        respect_handler_level=True,
    )


def _error_log_namer(default_name: str) -> str:
    """Rename rotated error files to the errors_YYYY-MM-DD.jsonl pattern."""

    # Default name: /path/errors.jsonl.YYYY-MM-DD
    base_without_suffix, date_part = default_name.rsplit(".", 1)
    base_path = Path(base_without_suffix)
    return str(base_path.with_name(f"errors_{date_part}.jsonl"))


def _register_logging_shutdown() -> None:
    """Ensure the queue listener is stopped during interpreter shutdown."""

    global _atexit_registered

    if _atexit_registered:
        return

    def _shutdown_listener() -> None:
        global _queue_listener
        if _queue_listener:
            _queue_listener.stop()
            _queue_listener = None

    atexit.register(_shutdown_listener)
    _atexit_registered = True


def get_logger(name: str) -> logging.Logger:
    """
    Convenience method for retrieving a logger
    """
    return logging.getLogger(name)
