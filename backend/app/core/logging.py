import logging
import sys
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# third-party loggers that drown out ours at INFO
NOISY_LOGGERS = ("urllib3", "stripe", "python_http_client", "sqlalchemy.engine", "multipart")


def configure_logging(level: Optional[str] = "INFO", *, quiet: Iterable[str] = NOISY_LOGGERS) -> logging.Logger:
    """
    Root logger setup shared by the API process and the scripts/.
    uvicorn installs its own handlers before the app is imported; in that case
    only the level is applied, otherwise a stdout handler is added.
    """
    resolved = (level or "INFO").upper()
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(resolved)
    else:
        logging.basicConfig(level=resolved, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])

    if resolved != "DEBUG":
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return logging.getLogger("catalog_pilot")
