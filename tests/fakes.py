from pulsarbattery.core.types import BatteryStatus


class FakeHidDevice:
    """Stands in for hid.device(); reads with a 1 ms timeout return stale reports."""

    def __init__(self, responses=(), stale=(), fail_open=False, fail_write=False):
        self.responses = [list(r) for r in responses]
        self.stale = [list(r) for r in stale]
        self.fail_open = fail_open
        self.fail_write = fail_write
        self.written = []
        self.features = []
        self.read_timeouts = []
        self.opened_path = None
        self.closed = False

    def open_path(self, path):
        if self.fail_open:
            raise OSError("open failed")
        self.opened_path = path

    def set_nonblocking(self, value):
        pass

    def read(self, max_length, timeout_ms=0):
        self.read_timeouts.append(timeout_ms)
        if timeout_ms <= 1:
            return self.stale.pop(0) if self.stale else []
        return self.responses.pop(0) if self.responses else []

    def write(self, data):
        if self.fail_write:
            raise OSError("write failed")
        self.written.append(bytes(data))
        return len(data)

    def send_feature_report(self, data):
        self.features.append(bytes(data))
        return len(data)

    def close(self):
        self.closed = True


class FakeHid:
    """Stands in for the hid module."""

    def __init__(self):
        self.infos = []
        self.queued = []
        self.opened = []

    def add(self, vendor_id, product_id, interface_number=1, usage_page=0xFF02, path=None):
        info = {
            "vendor_id": vendor_id,
            "product_id": product_id,
            "interface_number": interface_number,
            "usage_page": usage_page,
            "usage": 0,
            "product_string": "Pulsar Dongle",
            "path": path or f"/dev/hidraw{len(self.infos)}".encode(),
        }
        self.infos.append(info)
        return info

    def queue(self, device):
        self.queued.append(device)
        return device

    def enumerate(self, vendor_id=0, product_id=0):
        return [dict(i) for i in self.infos if not vendor_id or i["vendor_id"] == vendor_id]

    def device(self):
        dev = self.queued.pop(0) if self.queued else FakeHidDevice()
        self.opened.append(dev)
        return dev


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def status(percentage, charging=False, model="Pulsar X2"):
    return BatteryStatus(percentage=percentage, is_charging=charging, model=model)


def cmd04_response(battery, charging):
    return [0x09, 0x04, 0x00, 0x00, 0x00, 0x00, battery, charging]
