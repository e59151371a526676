"""Is the interactive session locked?

Windows: no foreground window means the secure desktop is up.
Linux: systemd-logind's LockedHint for the current session.
Other platforms are reported as never locked.
"""

import logging
import os
import subprocess
import sys

log = logging.getLogger(__name__)

_LOGINCTL_TIMEOUT = 2


def _windows_locked() -> bool:
    import ctypes
    return ctypes.windll.user32.GetForegroundWindow() == 0


def _logind_locked() -> bool:
    session = os.environ.get("XDG_SESSION_ID", "")
    args = ["loginctl", "show-session", "--property=LockedHint", "--value"]
    if session:
        args.insert(2, session)
    try:
        proc = subprocess.run(args, capture_output=True, text=True,
                              timeout=_LOGINCTL_TIMEOUT, check=False)
    except FileNotFoundError:
        log.debug("loginctl not available; assuming unlocked")
        return False
    return proc.returncode == 0 and proc.stdout.strip() == "yes"


def is_session_locked() -> bool:
    if sys.platform == "win32":
        return _windows_locked()
    if sys.platform.startswith("linux"):
        return _logind_locked()
    return False
