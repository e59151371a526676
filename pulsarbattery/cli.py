#!/usr/bin/env python3
"""Command-line interface for the Pulsar mouse battery monitor."""

import sys
import json
import logging
import argparse

from pulsarbattery.config import Config, load_thresholds
from pulsarbattery.core.monitor import BatteryMonitor
from pulsarbattery.core.reader import BatteryReader
from pulsarbattery.history import HistoryStore
from pulsarbattery.notify import Notifier, beep
from pulsarbattery.transport import format_path


def _print_devices(reader: BatteryReader) -> int:
    found = False
    for name, devices in reader.list_devices().items():
        print(f"[{name}]")
        if not devices:
            print("  no matching HID interfaces")
            continue
        found = True
        for index, info in enumerate(devices):
            usage_page = info.get("usage_page")
            page = "None" if usage_page is None else f"0x{usage_page:04x}"
            print(
                f"  {index}: vid=0x{info.get('vendor_id', 0):04x} "
                f"pid=0x{info.get('product_id', 0):04x} "
                f"interface={info.get('interface_number')} usage_page={page} "
                f"product='{info.get('product_string') or ''}' "
                f"path={format_path(info.get('path', b''))}"
            )
    if not found:
        print("\nNo Pulsar devices found. Check the dongle is plugged in "
              "and that udev rules grant access to its hidraw nodes.")
    return 0


def _print_status(reader: BatteryReader, as_json: bool, debug: bool) -> int:
    status = reader.read_battery_status(debug)
    if status is None:
        if as_json:
            print(json.dumps({"error": "No device found"}))
        else:
            print("Error: No Pulsar device found.")
            print("\nRun with --list to see candidate HID interfaces.")
        return 1

    if as_json:
        print(json.dumps({
            "model": status.model,
            "battery_percent": status.percentage,
            "is_charging": status.is_charging,
        }))
    else:
        charging = " (charging)" if status.is_charging else ""
        print(f"{status.model}: {status.percentage}%{charging}")
    return 0


def _run_monitor(reader: BatteryReader) -> int:
    config = Config()
    notif_cfg = config.notifications
    monitor = BatteryMonitor(
        reader,
        Notifier(enabled=notif_cfg["enabled"]),
        poll_interval=config.poll_interval(),
        thresholds=load_thresholds(),
        beeper=beep if notif_cfg.get("beep", True) else None,
        history=HistoryStore(max_entries=config.history["max_entries"]),
    )
    print(f"Monitoring battery (every {monitor.poll_interval.minutes:g} min, Ctrl+C to stop)...")
    monitor.start()
    try:
        while monitor.is_alive():
            monitor.join(1.0)
    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        monitor.stop()
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Pulsar Battery - Wireless Mouse Battery Monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Environment:
  BATTERY_LEVEL_ALERT_THRESHOLD         Low battery alert while unlocked (default: 5)
  BATTERY_LEVEL_ALERT_THRESHOLD_LOCKED  Low battery alert after locking (default: 30)

Examples:
  %(prog)s              Show battery status
  %(prog)s --json       Output as JSON (for scripts/waybar)
  %(prog)s --list       List candidate HID interfaces
  %(prog)s --monitor    Run the alert monitor in the foreground
  %(prog)s --tray       Start the system tray icon
""",
    )
    parser.add_argument("--list", "-l", action="store_true", help="List candidate HID interfaces")
    parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    parser.add_argument("--monitor", "-m", action="store_true", help="Run the alert monitor")
    parser.add_argument("--tray", "-t", action="store_true", help="Start the system tray icon")
    parser.add_argument("--debug", "-d", action="store_true", help="Log raw responses and probe errors")

    args = parser.parse_args(argv)

    if args.debug:
        level = logging.DEBUG
    elif args.monitor or args.tray:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    if args.tray:
        from pulsarbattery.tray import main as tray_main
        return tray_main()

    reader = BatteryReader()
    if args.list:
        return _print_devices(reader)
    if args.monitor:
        return _run_monitor(reader)
    return _print_status(reader, args.json, args.debug)


if __name__ == "__main__":
    sys.exit(main())
