"""Desktop notifications and the audible low-battery alert."""

import logging
import subprocess
import sys
import threading
import time
from typing import Optional, Tuple

log = logging.getLogger(__name__)

APP_NAME = "Pulsar Battery"
NOTIFY_TIMEOUT = 10


def change_text(previous: int, current: int) -> str:
    change = current - previous
    if change > 0:
        return f"+{change}% since last update"
    if change < 0:
        return f"{change}% since last update"
    return "No change"


def format_notification(previous: int, current: int, is_charging: bool,
                        model: Optional[str]) -> Tuple[str, str, str]:
    """Return (title, body, urgency) for a battery level event."""
    critical = current < 10 and not is_charging
    low = current < 20 and not is_charging

    if critical:
        title = "Critical Battery Level"
    elif low:
        title = "Low Battery"
    elif is_charging:
        title = "Charging"
    else:
        title = "Battery Update"

    device_line = f"{model}: {current}%" if model and model.strip() else f"Battery: {current}%"
    if is_charging:
        status_line = "Currently charging"
    else:
        status_line = f"Not charging - {change_text(previous, current)}"

    return title, f"{device_line}\n{status_line}", "critical" if critical else "normal"


class Notifier:
    """Sends battery notifications through notify-send.

    Each notification runs on its own short-lived thread so callers never
    wait for the notification daemon.
    """

    def __init__(self, enabled: bool = True, icon: str = "input-mouse"):
        self.enabled = enabled
        self._icon = icon
        self._missing_warned = False

    def notify_level_changed(self, previous: int, current: int,
                             is_charging: bool, model: Optional[str]) -> None:
        if not self.enabled:
            return
        title, body, urgency = format_notification(previous, current, is_charging, model)
        log.info("Notify: %s - %s", title, body.replace("\n", " / "))
        thread = threading.Thread(
            target=self._send, args=(title, body, urgency),
            name="notify-send", daemon=True,
        )
        thread.start()

    def _send(self, title: str, message: str, urgency: str) -> None:
        try:
            subprocess.run([
                "notify-send",
                "-a", APP_NAME,
                "-u", urgency,
                "-i", self._icon,
                title,
                message,
            ], check=False, capture_output=True, timeout=NOTIFY_TIMEOUT)
        except FileNotFoundError:
            if not self._missing_warned:
                self._missing_warned = True
                log.warning("notify-send not found; desktop notifications disabled")
        except Exception:
            log.exception("Battery notification failed")


def beep(times: int = 3, frequency: int = 200, duration_ms: int = 200) -> None:
    """Best-effort audible alert."""
    try:
        if sys.platform == "win32":
            import winsound
            for _ in range(times):
                winsound.Beep(frequency, duration_ms)
        else:
            for _ in range(times):
                sys.stdout.write("\a")
                sys.stdout.flush()
                time.sleep(duration_ms / 1000.0)
    except Exception as e:
        log.debug("Beep failed: %s", e)
