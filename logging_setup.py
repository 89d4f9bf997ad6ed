import logging
import sys
from typing import Optional

NOISY_LOGGERS = ("sqlalchemy", "passlib", "multipart", "httpx")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure root logging once at startup.

    - stderr handler with timestamps
    - optional file handler (LOG_FILE)
    - chatty third-party loggers limited to WARNING
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Remove pre-existing handlers (uvicorn reload, repeated startup in tests)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
