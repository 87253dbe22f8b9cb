import logging
from logging.config import dictConfig

_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class ExtraFieldsFormatter(logging.Formatter):
    """Appends the ``extra={...}`` fields of a record as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {
            key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS
        }
        if not fields:
            return line
        pairs = " ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def configure_logging(level: str = "INFO") -> None:
    """Route application and server logs to stderr with one shared format."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": ExtraFieldsFormatter,
                    "fmt": "%(asctime)s %(levelname)s %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "src.dayreport": {"level": level.upper()},
                "httpx": {"level": "WARNING"},
            },
            "root": {"level": level.upper(), "handlers": ["console"]},
        }
    )
