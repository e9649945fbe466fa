"""
Scratch directory for a single mirror run.
"""

import logging
import shutil
import signal
import tempfile
import threading
from contextlib import contextmanager
from typing import Iterator

TERMINATION_SIGNALS = [sig for sig in (getattr(signal, "SIGTERM", None), getattr(signal, "SIGHUP", None)) if sig]


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


@contextmanager
def scratch_directory(prefix: str = "mr-") -> Iterator[str]:
    """Create a temporary directory and remove it when the block exits.

    While the block runs, SIGTERM and SIGHUP raise SystemExit so the
    directory is also removed when the process is told to stop. The previous
    handlers are restored afterwards.
    """
    path = tempfile.mkdtemp(prefix=prefix)
    logging.debug(f"Created scratch directory {path}")

    previous_handlers = {}
    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        for sig in TERMINATION_SIGNALS:
            previous_handlers[sig] = signal.signal(sig, _raise_system_exit)

    try:
        yield path
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        shutil.rmtree(path, ignore_errors=True)
        logging.debug(f"Removed scratch directory {path}")
