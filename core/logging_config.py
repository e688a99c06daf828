"""
Logging setup shared by the driver, the providers and the batch runner.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console (and optional file) handlers to the root logger.

    Calling it more than once does not duplicate handlers.

    Args:
        level: Root log level
        log_file: Optional path, e.g. "logs/reassembly.log"

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(getattr(h, "_presto_handler", False) and isinstance(h, logging.StreamHandler)
               and not isinstance(h, logging.FileHandler) for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        sh._presto_handler = True
        root.addHandler(sh)

    if log_file:
        target = os.path.abspath(log_file)
        if not any(isinstance(h, logging.FileHandler) and h.baseFilename == target for h in root.handlers):
            log_dir = os.path.dirname(target)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir, exist_ok=True)
            fh = logging.FileHandler(target, encoding="utf-8")
            fh.setFormatter(formatter)
            root.addHandler(fh)

    return root
