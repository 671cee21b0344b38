import json
import logging
import os
import threading
from pathlib import Path


ROOT_LOGGER_NAME = "asset_ledger"

# Record attributes copied into the JSON payload when passed through ``extra``
LEDGER_CONTEXT_FIELDS = ("item_id", "location_id", "asset_id", "movement_id", "sku_key")

DEFAULT_FIELDS = {
    "timestamp": "asctime",
    "level": "levelname",
    "logger": "name",
    "module": "module",
    "function": "funcName",
    "line": "lineno",
    "message": "message",
}


class SingletonLogger:
    """
    Owns the ``asset_ledger`` root logger; handlers are attached on first use only.

    Every module asks for a dotted child ("asset_ledger.stock", ...) which
    propagates to the root, so one set of handlers serves the whole package.
    """
    _lock = threading.Lock()
    _root = None

    @classmethod
    def get_logger(cls, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        """
        Args:
            name (str): Logger name; prefixed with "asset_ledger." when outside the hierarchy

        Returns:
            logging.Logger: The root ledger logger or one of its children
        """
        with cls._lock:
            if cls._root is None:
                cls._root = cls._configure_root()
        if not name or name == ROOT_LOGGER_NAME:
            return cls._root
        if not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    @staticmethod
    def _configure_root() -> logging.Logger:
        """
        LEDGER_LOG_LEVEL sets the level (default INFO). LEDGER_LOG_DIR, when set,
        adds ledger.log (append) and errors.log (ERROR and above) in that directory.
        """
        level_name = os.environ.get("LEDGER_LOG_LEVEL", "INFO").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.INFO

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(level)
        root.handlers.clear()
        formatter = JsonFormatter(DEFAULT_FIELDS)

        handlers = [(logging.StreamHandler(), level)]
        log_dir = os.environ.get("LEDGER_LOG_DIR")
        if log_dir:
            directory = Path(log_dir)
            directory.mkdir(parents=True, exist_ok=True)
            handlers.append((logging.FileHandler(directory / "ledger.log", encoding="utf-8"), level))
            handlers.append((logging.FileHandler(directory / "errors.log", encoding="utf-8"), logging.ERROR))

        for handler, handler_level in handlers:
            handler.setLevel(handler_level)
            handler.setFormatter(formatter)
            root.addHandler(handler)
        return root


class JsonFormatter(logging.Formatter):
    """
    Formatter that renders each LogRecord as one JSON object.

    @param dict fmt_dict: Output key -> LogRecord attribute. Defaults to {"message": "message"}.
    @param str time_format: time.strftime() format for asctime. Default: "%Y-%m-%dT%H:%M:%S"
    @param str msec_format: Millisecond suffix format. Default: "%s.%03dZ"
    @param tuple context_fields: Attributes passed via ``extra`` that are copied when present.
    """
    def __init__(self, fmt_dict: dict = None, time_format: str = "%Y-%m-%dT%H:%M:%S",
                 msec_format: str = "%s.%03dZ", context_fields: tuple = LEDGER_CONTEXT_FIELDS):
        super().__init__()
        self.fmt_dict = dict(fmt_dict) if fmt_dict else {"message": "message"}
        self.default_time_format = time_format
        self.default_msec_format = msec_format
        self.context_fields = context_fields

    def usesTime(self) -> bool:
        return "asctime" in self.fmt_dict.values()

    def formatMessage(self, record) -> dict:
        """
        Map fmt_dict onto the record, then add ledger context.
        An unknown attribute in fmt_dict raises KeyError.
        """
        attributes = record.__dict__
        payload = {key: attributes[attr] for key, attr in self.fmt_dict.items()}
        payload.update({field: attributes[field] for field in self.context_fields if field in attributes})
        return payload

    def format(self, record) -> str:
        record.message = record.getMessage()
        if self.usesTime():
            record.asctime = self.formatTime(record)

        payload = self.formatMessage(record)
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            payload["exc_info"] = record.exc_text
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(payload, default=str)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a ledger logger.

    Args:
        name (str): Logger name, placed under the "asset_ledger" hierarchy

    Returns:
        logging.Logger: Configured logger
    """
    return SingletonLogger.get_logger(name)
