from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

FORMAT = "%(asctime)s %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> Path | None:
    """Configure the root logger; return the log file path if one is written.

    At DEBUG level, per-cut messages also go to a timestamped file under
    `Report/` unless `log_file` names another destination.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=FORMAT)
    logging.getLogger().setLevel(lvl)
    # Pyomo is chatty about solver plugins at DEBUG
    logging.getLogger("pyomo").setLevel(max(lvl, logging.INFO))

    if log_file is None and lvl == logging.DEBUG:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = Path("Report") / f"oa_debug_{ts}.txt"
    if log_file is None:
        return None

    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(path, mode="w", encoding="utf-8")
    fh.setLevel(lvl)
    fh.setFormatter(logging.Formatter(FORMAT))
    logging.getLogger().addHandler(fh)
    logging.getLogger(__name__).info("Writing logs to %s", path)
    return path


__all__ = ["setup_logging", "FORMAT"]
