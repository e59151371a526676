#!/usr/bin/env python3
"""System tray icon showing the Pulsar mouse battery level."""

import sys

from PyQt5.QtWidgets import QApplication, QSystemTrayIcon, QMenu, QAction, QActionGroup
from PyQt5.QtGui import QIcon, QPainter, QColor, QFont, QPixmap, QPainterPath
from PyQt5.QtCore import QTimer, Qt, QRectF

from pulsarbattery.config import Config, load_thresholds
from pulsarbattery.core.monitor import BatteryMonitor
from pulsarbattery.core.poller import HistoryLog, StatusPoller
from pulsarbattery.core.reader import BatteryReader
from pulsarbattery.history import HistoryStore
from pulsarbattery.notify import Notifier, beep

POLL_CHOICES_MINUTES = (0.5, 1.0, 5.0, 15.0, 30.0)


class BatteryTrayIcon(QSystemTrayIcon):
    """Tray icon driving the presentation poll and owning the monitor."""

    def __init__(self):
        super().__init__()

        self._config = Config()
        history_cfg = self._config.history
        poll_interval = self._config.poll_interval()
        reader = BatteryReader()

        self._poller = StatusPoller(
            reader,
            poll_interval,
            history=HistoryLog(
                HistoryStore(max_entries=history_cfg["max_entries"]),
                log_interval_minutes=history_cfg["log_interval_minutes"],
                max_entries=history_cfg["max_entries"],
            ),
        )
        notif_cfg = self._config.notifications
        self._monitor = BatteryMonitor(
            reader,
            Notifier(enabled=notif_cfg["enabled"]),
            poll_interval=poll_interval,
            thresholds=load_thresholds(),
            beeper=beep if notif_cfg.get("beep", True) else None,
        )

        self._poll_timer = QTimer()
        self._poll_timer.timeout.connect(self._poll)
        self._save_timer = QTimer()
        self._save_timer.timeout.connect(self._poller.history.save)

        self._menu = QMenu()
        self.setContextMenu(self._menu)
        self._rebuild_menu()

        self._poller.history.load()
        self._monitor.start()
        self._poll()
        self._restart_poll_timer()
        self._save_timer.start(history_cfg["save_interval_seconds"] * 1000)
        self.show()

    def shutdown(self):
        self._poll_timer.stop()
        self._save_timer.stop()
        self._monitor.stop()
        self._poller.history.save()

    # ---- Polling ---------------------------------------------------------

    def _poll(self):
        self._poller.poll()
        self._update_icon()
        self._rebuild_menu()

    def _restart_poll_timer(self):
        self._poll_timer.start(int(self._poller.poll_interval_minutes * 60 * 1000))

    def _set_interval(self, minutes: float):
        self._poller.set_poll_interval(minutes)
        self._config["polling.interval_minutes"] = minutes
        self._restart_poll_timer()
        self._rebuild_menu()

    # ---- Menu building ---------------------------------------------------

    def _rebuild_menu(self):
        self._menu.clear()

        status = self._poller.last_status
        if status is None:
            label = self._poller.status_text or "No device found"
        else:
            charging_str = " (charging)" if status.is_charging else ""
            label = f"{status.model}: {status.percentage}%{charging_str}"
        status_action = QAction(label, self._menu)
        status_action.setEnabled(False)
        self._menu.addAction(status_action)

        if self._poller.last_updated is not None:
            updated = QAction(f"Updated {self._poller.last_updated:%H:%M:%S}", self._menu)
            updated.setEnabled(False)
            self._menu.addAction(updated)

        self._menu.addSeparator()

        interval_menu = self._menu.addMenu("Poll Interval")
        group = QActionGroup(interval_menu)
        current = self._poller.poll_interval_minutes
        for minutes in POLL_CHOICES_MINUTES:
            action = QAction(f"{minutes:g} min", interval_menu, checkable=True)
            action.setChecked(abs(current - minutes) < 1e-9)
            action.triggered.connect(lambda _checked, m=minutes: self._set_interval(m))
            group.addAction(action)
            interval_menu.addAction(action)

        refresh_action = QAction("Refresh Now", self._menu)
        refresh_action.triggered.connect(self._poll)
        self._menu.addAction(refresh_action)

        self._menu.addSeparator()
        quit_action = QAction("Quit", self._menu)
        quit_action.triggered.connect(QApplication.instance().quit)
        self._menu.addAction(quit_action)

    # ---- Icon ------------------------------------------------------------

    def _update_icon(self):
        status = self._poller.last_status
        if status is None:
            self.setIcon(self._create_icon(None))
            self.setToolTip("Pulsar Battery: no device")
            return
        self.setIcon(self._create_icon(status.percentage, status.is_charging))
        charging_str = ", charging" if status.is_charging else ""
        self.setToolTip(f"{status.model}: {status.percentage}%{charging_str}")

    @staticmethod
    def _create_icon(percent, charging=False):
        size = 64
        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.transparent)
        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.Antialiasing)

        if percent is None:
            fill_color = QColor(120, 120, 120)
        elif percent <= 10:
            fill_color = QColor(220, 50, 50)
        elif percent <= 30:
            fill_color = QColor(255, 180, 60)
        else:
            fill_color = QColor(80, 200, 80)

        # Mouse body silhouette
        mouse_path = QPainterPath()
        mouse_path.moveTo(16, 14)
        mouse_path.lineTo(16, 52)
        mouse_path.quadTo(16, 58, 22, 58)
        mouse_path.lineTo(42, 58)
        mouse_path.quadTo(48, 58, 48, 52)
        mouse_path.lineTo(48, 14)
        mouse_path.quadTo(48, 6, 32, 6)
        mouse_path.quadTo(16, 6, 16, 14)
        mouse_path.closeSubpath()

        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(60, 60, 60))
        painter.drawPath(mouse_path)

        if percent:
            fill_height = int((min(percent, 100) / 100.0) * 42)
            painter.setClipPath(mouse_path)
            painter.fillRect(QRectF(20, 52 - fill_height, 24, fill_height), fill_color)
            painter.setClipping(False)

        painter.setPen(QColor(255, 255, 255))
        if percent is None:
            painter.setFont(QFont("Sans", 16, QFont.Bold))
            painter.drawText(QRectF(0, 20, size, 30), Qt.AlignCenter, "?")
        else:
            text = "+" if charging else str(percent)
            painter.setFont(QFont("Sans", 11 if len(text) <= 2 else 9, QFont.Bold))
            painter.drawText(QRectF(16, 32, 32, 20), Qt.AlignCenter, text)

        painter.end()
        return QIcon(pixmap)


def main():
    app = QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)
    app.setApplicationName("Pulsar Battery")

    if not QSystemTrayIcon.isSystemTrayAvailable():
        print("Error: System tray is not available on this desktop environment.")
        return 1

    tray = BatteryTrayIcon()
    app.aboutToQuit.connect(tray.shutdown)
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
