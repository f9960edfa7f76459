import logging
import sys
from pathlib import Path

from . import config


class _ConsoleNoiseFilter(logging.Filter):
    """Only dayplan's own records reach the console; third-party noise needs ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "dayplan" or record.name.startswith("dayplan."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int | str | None = None,
) -> None:
    """Configure a filtered stderr handler and a full log file.

    Call once, early, from the CLI entry point.
    """
    log_dir = Path(log_dir) if log_dir else config.LOG_DIR
    if file_level is None:
        file_level = config.get_log_level()
    if isinstance(file_level, str):
        file_level = logging.getLevelName(file_level)
        if not isinstance(file_level, int):
            file_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "dayplan.log"), encoding="utf-8")
    except OSError:
        root.warning("log directory %s not writable; file logging disabled", log_dir)
        return
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
