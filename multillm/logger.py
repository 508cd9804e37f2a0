import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional


# Keyword fields copied from the log record into the JSON line, in order.
STRUCTURED_FIELDS = (
    'run_id',
    'component',
    'model',
    'attempt',
    'max_attempts',
    'status_code',
    'category',
    'duration_seconds',
    'delay_seconds',
    'tokens',
    'completed',
    'total',
    'source',
    'stream',
    'timeout',
    'count',
    'error',
)


class JSONLFileHandler(logging.FileHandler):
    """Append-only handler flushed per record so `tail -f` sees lines as they happen."""
    def emit(self, record):
        super().emit(record)
        self.flush()


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name))
            for name in STRUCTURED_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RunLogger:
    """Structured logger shared by the components of one client run.

    Messages take keyword fields (model=..., attempt=..., error=...);
    fields left as None are dropped. With a log_dir each component
    appends JSON lines to <component>.jsonl, opened on first use so idle
    components leave no empty files. Without one, records propagate to
    the stdlib logging tree.
    """
    def __init__(
        self,
        run_id: str,
        component: str,
        log_dir: Optional[Path] = None,
        console_output: bool = False,
        level: str = "INFO",
        filename: str = None
    ):
        self.run_id = run_id
        self.component = component
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.console_output = console_output
        self.level = level
        self.filename = filename or f"{component}.jsonl"

        self.log_file = None
        self._logger: Optional[logging.Logger] = None
        self._setup_lock = threading.Lock()
        self._children: List['RunLogger'] = []

    def _build_logger(self) -> logging.Logger:
        logger = logging.getLogger(f"multillm.{self.component}.{self.run_id}.{id(self)}")
        logger.setLevel(self.level.upper())

        if self.console_output:
            console = logging.StreamHandler(sys.stderr)
            console.setFormatter(logging.Formatter('%(levelname)s [%(component)s] %(message)s'))
            logger.addHandler(console)

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = self.log_dir / self.filename
            handler = JSONLFileHandler(self.log_file, mode='a', encoding='utf-8')
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)

        logger.propagate = not logger.handlers
        return logger

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            with self._setup_lock:
                if self._logger is None:
                    self._logger = self._build_logger()
        return self._logger

    def _log(self, level: int, message: str, exc_info=None, **fields):
        extra = {'run_id': self.run_id, 'component': self.component}
        extra.update((k, v) for k, v in fields.items() if v is not None)
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self._log(logging.ERROR, message, **fields)

    def child(self, component: str) -> 'RunLogger':
        """Logger for another component sharing this run's id and destination.

        Children are closed along with their parent.
        """
        child = RunLogger(
            self.run_id,
            component,
            log_dir=self.log_dir,
            console_output=self.console_output,
            level=self.level,
        )
        with self._setup_lock:
            self._children.append(child)
        return child

    def close(self):
        with self._setup_lock:
            children, self._children = self._children, []
        for child in children:
            child.close()
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_logger(run_id: str, component: str, **kwargs) -> RunLogger:
    return RunLogger(run_id, component, **kwargs)
