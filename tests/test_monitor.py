from unittest import mock

import pytest

from fakes import FakeHidDevice
from fakes import status

from pulsarbattery.config import PollInterval
from pulsarbattery.core import monitor as monitor_module
from pulsarbattery.core.monitor import BatteryMonitor
from pulsarbattery.core.reader import BatteryReader
from pulsarbattery.core.types import MonitorState
from pulsarbattery.core.types import Thresholds


class Probe:
    """Lock probe returning queued samples, then a default."""

    def __init__(self, *samples, default=False):
        self.samples = list(samples)
        self.default = default
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.samples.pop(0) if self.samples else self.default


@pytest.fixture
def make_monitor(mocker, clock):
    def _make(statuses=(), reader=None, lock_probe=None, thresholds=Thresholds(5, 30),
              minutes=1.0, history=None):
        if reader is None:
            reader = mocker.Mock()
            reader.read_battery_status.side_effect = list(statuses)
        monitor = BatteryMonitor(
            reader,
            mocker.Mock(),
            poll_interval=PollInterval(minutes),
            thresholds=thresholds,
            lock_probe=lock_probe or Probe(),
            clock=clock,
            beeper=mocker.Mock(),
            history=history,
        )
        mocker.patch.object(monitor, "_wait", return_value=False)
        return monitor

    return _make


def _notifications(monitor):
    return monitor._notifier.notify_level_changed.call_args_list


def test_first_read_seeds_without_notifying(make_monitor):
    monitor = make_monitor([status(80)])

    monitor.check_battery(5)

    assert monitor.last_notified_percentage == 80
    assert _notifications(monitor) == []


def test_level_changes_are_edge_triggered(make_monitor):
    monitor = make_monitor([status(p) for p in (80, 80, 75, 75, 70)])

    for _ in range(5):
        monitor.check_battery(5)

    assert _notifications(monitor) == [
        mock.call(80, 75, False, "Pulsar X2"),
        mock.call(75, 70, False, "Pulsar X2"),
    ]
    assert monitor.last_notified_percentage == 70


@pytest.mark.parametrize(
    "reading, alert",
    [
        (status(29), True),
        (status(30), False),
        (status(31), False),
        (status(0), True),
        (status(29, charging=True), False),
        (status(0, charging=True), False),
    ],
)
def test_low_battery_threshold(make_monitor, reading, alert):
    monitor = make_monitor([reading])

    monitor.check_battery(30)

    if alert:
        assert _notifications(monitor) == [
            mock.call(reading.percentage, reading.percentage, False, "Pulsar X2")
        ]
        monitor._beeper.assert_called_once_with()
    else:
        assert _notifications(monitor) == []
        monitor._beeper.assert_not_called()


def test_low_battery_repeats_every_poll(make_monitor):
    monitor = make_monitor([status(3), status(3), status(3)])

    for _ in range(3):
        monitor.check_battery(5)

    assert _notifications(monitor) == [mock.call(3, 3, False, "Pulsar X2")] * 3


def test_change_and_low_battery_both_fire(make_monitor):
    monitor = make_monitor([status(45, charging=True), status(40)])

    monitor.check_battery(50)
    monitor.check_battery(50)

    assert _notifications(monitor) == [
        mock.call(45, 40, False, "Pulsar X2"),
        mock.call(40, 40, False, "Pulsar X2"),
    ]


def test_absent_read_mutates_nothing(make_monitor):
    monitor = make_monitor([None])

    monitor.check_battery(5)

    assert monitor.last_notified_percentage is None
    assert monitor.cached is None
    assert _notifications(monitor) == []


def test_cache_used_within_ttl(make_monitor, clock):
    monitor = make_monitor([status(55), None])

    monitor.read_battery_status()
    clock.advance(monitor_module.CACHE_TTL_SECONDS)

    assert monitor.read_battery_status() == status(55)


def test_cache_expires_after_ttl(make_monitor, clock):
    monitor = make_monitor([status(55), None])

    monitor.read_battery_status()
    clock.advance(monitor_module.CACHE_TTL_SECONDS + 1)

    assert monitor.read_battery_status() is None


def test_fresh_read_replaces_cache(make_monitor, clock):
    monitor = make_monitor([status(55), status(54)])

    monitor.read_battery_status()
    clock.advance(30)
    monitor.read_battery_status()

    assert monitor.cached.status == status(54)
    assert monitor.cached.timestamp == clock.now


def test_only_fresh_reads_are_recorded(make_monitor, mocker):
    history = mocker.Mock()
    monitor = make_monitor([status(55), None], history=history)

    monitor.read_battery_status()
    monitor.read_battery_status()

    assert history.append.call_count == 1
    assert history.append.call_args[0][0].percentage == 55


def test_notifier_failure_is_contained(make_monitor):
    monitor = make_monitor([status(80), status(2)])
    monitor._notifier.notify_level_changed.side_effect = RuntimeError("bus down")
    monitor._beeper.side_effect = OSError("no speaker")

    monitor.check_battery(5)
    monitor.check_battery(5)

    assert monitor.last_notified_percentage == 2


def test_lock_debounce_needs_two_locked_samples(make_monitor):
    monitor = make_monitor([status(70)], lock_probe=Probe(True, False))

    assert monitor.run_cycle() is MonitorState.UNLOCKED
    monitor._reader.read_battery_status.assert_called_once_with()


def test_debounce_waits_between_samples(make_monitor):
    probe = Probe(True, True)
    monitor = make_monitor(lock_probe=probe)

    monitor.run_cycle()

    monitor._wait.assert_called_once_with(monitor_module.LOCK_DEBOUNCE_SECONDS)
    assert probe.calls == 2


def test_locked_without_recent_unlock_skips_polling(make_monitor):
    monitor = make_monitor(lock_probe=Probe(default=True))

    assert monitor.run_cycle() is MonitorState.LOCKED
    monitor._reader.read_battery_status.assert_not_called()


def test_grace_window_polls_with_locked_threshold(make_monitor, clock):
    probe = Probe(False, False)
    monitor = make_monitor([status(25), status(25), status(25)], lock_probe=probe)

    assert monitor.run_cycle() is MonitorState.UNLOCKED
    assert _notifications(monitor) == []

    probe.default = True
    clock.advance(7)
    assert monitor.run_cycle() is MonitorState.RECENTLY_LOCKED
    assert _notifications(monitor) == [mock.call(25, 25, False, "Pulsar X2")]

    clock.advance(7)
    assert monitor.run_cycle() is MonitorState.LOCKED
    assert monitor._reader.read_battery_status.call_count == 2


def test_unlocked_polls_follow_interval(make_monitor, clock):
    monitor = make_monitor([status(90)] * 5, minutes=1.0)

    monitor.run_cycle()
    clock.advance(30)
    monitor.run_cycle()
    assert monitor._reader.read_battery_status.call_count == 1

    clock.advance(30)
    monitor.run_cycle()
    assert monitor._reader.read_battery_status.call_count == 2


def test_interval_changes_apply_without_restart(make_monitor, clock):
    monitor = make_monitor([status(90)] * 5, minutes=30.0)

    monitor.run_cycle()
    monitor.poll_interval.minutes = 0.01
    clock.advance(6)
    monitor.run_cycle()

    assert monitor.poll_interval.seconds == 6.0
    assert monitor._reader.read_battery_status.call_count == 2


def test_lock_probe_failure_counts_as_unlocked(make_monitor, mocker):
    probe = mocker.Mock(side_effect=OSError("no session"))
    monitor = make_monitor([status(90)], lock_probe=probe)

    assert monitor.run_cycle() is MonitorState.UNLOCKED


def test_stop_interrupts_debounce(mocker):
    monitor = BatteryMonitor(mocker.Mock(), mocker.Mock(), lock_probe=lambda: False)
    monitor.stop()

    assert monitor.run_cycle() is None
    monitor._reader.read_battery_status.assert_not_called()


def test_thread_stops_promptly(mocker):
    reader = mocker.Mock()
    reader.read_battery_status.return_value = None
    monitor = BatteryMonitor(reader, mocker.Mock(), lock_probe=lambda: False)

    monitor.start()
    assert monitor.alive
    monitor.stop()
    monitor.join(timeout=5)

    assert not monitor.is_alive()


def test_end_to_end_with_device(fake_hid, mocker, clock):
    fake_hid.add(0x3710, 0x5406)
    fake_hid.queue(FakeHidDevice(responses=[[0, 0, 0, 0, 0, 0, 45, 0x01]]))
    fake_hid.queue(FakeHidDevice(responses=[[0, 0, 0, 0, 0, 0, 40, 0x00]]))
    notifier = mocker.Mock()
    beeper = mocker.Mock()
    monitor = BatteryMonitor(BatteryReader(), notifier, lock_probe=lambda: False,
                             clock=clock, beeper=beeper)

    monitor.check_battery(50)
    assert monitor.cached.status.percentage == 45
    assert monitor.cached.status.is_charging is True
    notifier.notify_level_changed.assert_not_called()

    monitor.check_battery(50)
    assert notifier.notify_level_changed.call_args_list == [
        mock.call(45, 40, False, "Pulsar X2 CrazyLight"),
        mock.call(40, 40, False, "Pulsar X2 CrazyLight"),
    ]
    beeper.assert_called_once_with()
