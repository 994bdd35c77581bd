import logging
import threading
from datetime import datetime

from clients.store import TabularStore
from utils.constants import ACTIVITY_LOGGER, LOG_SHEET_HEADERS
from utils.formatting_utils import format_timestamp


class HealthCheckFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        return "/healthz" not in msg


class SheetLogHandler(logging.Handler):
    """Append log records as rows of the spreadsheet's Log tab."""

    def __init__(self, store: TabularStore, sheet_name: str, level=logging.INFO):
        super().__init__(level)
        self.store = store
        self.sheet_name = sheet_name
        self._sheet_ready = False
        self._local = threading.local()

    def emit(self, record: logging.LogRecord) -> None:
        # a failing append would log again and land back here
        if getattr(self._local, "busy", False):
            return
        self._local.busy = True
        try:
            if not self._sheet_ready:
                self.store.get_or_create_sheet(self.sheet_name, LOG_SHEET_HEADERS)
                self._sheet_ready = True
            details = ""
            if record.exc_info:
                details = (self.formatter or logging.Formatter()).formatException(
                    record.exc_info
                )
            self.store.append_row(
                self.sheet_name,
                [
                    format_timestamp(datetime.fromtimestamp(record.created)),
                    record.levelname,
                    record.getMessage(),
                    details,
                ],
            )
        except Exception:
            self.handleError(record)
        finally:
            self._local.busy = False


def setup_logging():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    for logger_name in ["uvicorn.access", "tornado.access", "streamlit.web.server"]:
        logger = logging.getLogger(logger_name)
        logger.addFilter(HealthCheckFilter())


def attach_sheet_logging(store: TabularStore, sheet_name: str) -> SheetLogHandler:
    """Mirror activity records and every error into the Log tab. Idempotent."""
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, SheetLogHandler):
            return handler
    handler = SheetLogHandler(store, sheet_name)
    handler.addFilter(
        lambda record: record.name == ACTIVITY_LOGGER or record.levelno >= logging.ERROR
    )
    root.addHandler(handler)
    logging.getLogger(ACTIVITY_LOGGER).setLevel(logging.INFO)
    return handler
