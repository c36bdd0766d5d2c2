import contextvars
import gzip
import logging
import os
import re
import shutil
import uuid
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from time import perf_counter
from typing import Optional


_run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")


def new_run_id() -> str:
    """Start a new correlation id for the current async context and return it."""
    run_id = str(uuid.uuid4())
    _run_id_var.set(run_id)
    return run_id


# ----------------------------------------------------------------------
# Custom Filters
# ----------------------------------------------------------------------
class CorrelationFilter(logging.Filter):
    """Attach the upload's run ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id_var.get()
        return True


_FASTLY_KEY_RE = re.compile(r"(Fastly-Key[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+", re.IGNORECASE)


class RedactFilter(logging.Filter):
    """Redact the Fastly credential from log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            msg = _FASTLY_KEY_RE.sub(r"\1***", record.msg)
            for env_var in ("FASTLY_API_KEY", "FASTLY_API_TOKEN"):
                secret = os.getenv(env_var)
                if secret:
                    msg = msg.replace(secret, "***")
            record.msg = msg
        return True


# ----------------------------------------------------------------------
# Log rotation with gzip compression
# ----------------------------------------------------------------------
def _rotator(source, dest):
    with open(source, "rb") as sf, gzip.open(dest + ".gz", "wb") as df:
        shutil.copyfileobj(sf, df)
    Path(source).unlink()


def _log_dir() -> Path:
    return Path(os.getenv("ACL_UPLOADER_LOG_DIR", "logs"))


# ----------------------------------------------------------------------
# Logger Setup
# ----------------------------------------------------------------------
def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = "uploader.log",
    retention_days: int = 14,
) -> logging.Logger:
    """
    Create or retrieve a module logger:
    - Console + daily rotating file (gzip on rotate, keeps retention_days)
    - run_id taken from the current upload context
    - Fastly credential redaction
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Handlers are attached once; later calls only adjust the level.
    if logger.handlers:
        return logger

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | run_id=%(run_id)s | "
        "%(filename)s:%(lineno)d | %(message)s"
    )
    corr_filter = CorrelationFilter()
    redact_filter = RedactFilter()

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG)
    ch.setFormatter(fmt)
    ch.addFilter(corr_filter)
    ch.addFilter(redact_filter)
    logger.addHandler(ch)

    if log_file:
        log_dir = _log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = TimedRotatingFileHandler(
            log_dir / log_file, when="midnight", backupCount=retention_days, encoding="utf-8"
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        fh.rotator = _rotator
        fh.addFilter(corr_filter)
        fh.addFilter(redact_filter)
        logger.addHandler(fh)

    logger.propagate = False
    return logger


# ----------------------------------------------------------------------
# Metrics Logging Helper
# ----------------------------------------------------------------------
def log_metric(logger: logging.Logger, name: str, value: int, **labels):
    """Log a structured metric in a consistent format."""
    label_str = " ".join(f"{k}={v}" for k, v in labels.items())
    logger.info("METRIC | %s=%s %s", name, value, label_str)


# ----------------------------------------------------------------------
# Stage Timing Context Manager
# ----------------------------------------------------------------------
class log_stage:
    """Context manager for timing an upload stage."""

    def __init__(self, logger: logging.Logger, stage: str):
        self.logger = logger
        self.stage = stage

    def __enter__(self):
        self.start = perf_counter()
        self.logger.debug("Stage '%s' started", self.stage)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = perf_counter() - self.start
        if exc_type is None:
            self.logger.info("Stage '%s' completed in %.2fs", self.stage, self.duration)
        else:
            self.logger.warning("Stage '%s' failed after %.2fs: %s", self.stage, self.duration, exc_val)
