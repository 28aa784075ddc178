"""
Process-wide logging for the API server and the CLI.

Modules log through `logging.getLogger(__name__)`; this only decides where
records go and how they look.
"""
import logging
import sys

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
JSON_FORMAT = (
    '{"ts":"%(asctime)s","level":"%(levelname)s",'
    '"logger":"%(name)s","msg":"%(message)s"}'
)
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Logs every DexHunter / Supabase request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO", json_format: bool = False) -> logging.Handler:
    """Route all records to stdout, replacing handlers left by earlier calls."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(JSON_FORMAT if json_format else TEXT_FORMAT, DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    try:
        root.setLevel(level.upper())
    except ValueError:
        root.setLevel(logging.INFO)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
