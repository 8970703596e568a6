# src/things_bridge/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Decides what reaches stderr while the console is open.

    Bridge records pass, except the per-row chatter from store.decode and
    store.recurrence, which needs WARNING+. Captured py.warnings and anything
    from other libraries need ERROR+. The log file still gets everything.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("things_bridge."):
            if name.startswith(("things_bridge.store.decode", "things_bridge.store.recurrence")):
                return record.levelno >= logging.WARNING
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/things-bridge",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Route all records to `<log_dir>/things-bridge.log` at `file_level` and a
    filtered copy to stderr at `console_level`.

    Closes and replaces whatever handlers the root logger had, so calling it again
    reconfigures rather than duplicates. `cli.main` calls it before anything
    else logs.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "things-bridge.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
