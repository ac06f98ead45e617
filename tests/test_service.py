from conftest import FakeTransport, PRINTER_NAME, RecordingSleep, ScanFailureTransport, printer
from blereceipt.config import Timing
from blereceipt.errors import TransportError
from blereceipt.service import BluetoothPrinterService, ConsoleNotifier, Notifier


class RecordingNotifier(Notifier):
    def __init__(self):
        self.alerts = []

    async def alert(self, title, message):
        self.alerts.append((title, message))


class BrokenNotifier(Notifier):
    async def alert(self, title, message):
        raise RuntimeError("no window")


def service(transport, notifier=None):
    return BluetoothPrinterService(transport, notifier, timing=Timing.zero(),
                                   sleep=RecordingSleep(), scan_timeout=1.0)


def test_connect_print_disconnect(run):
    transport = FakeTransport(paired=[printer()])
    svc = service(transport, RecordingNotifier())

    async def scenario():
        assert await svc.connect(PRINTER_NAME)
        assert await svc.print_formatted_text(["Shop", "Receipt #1"], font_size=16, is_body=False)
        assert await svc.print_formatted_text(["Item   10.00"], font_size=12, center_align=False)
        assert await svc.disconnect()
        assert await svc.disconnect()

    run(scenario())
    assert b"Shop\n" in transport.writes
    assert transport.writes[-1] == b"\x1d\x56\x00"
    assert transport.writes.count(b"\x1d\x56\x00") == 1


def test_exhausted_connect_alerts_once(run, link_error):
    notifier = RecordingNotifier()
    transport = FakeTransport(paired=[printer()], connect_errors=[link_error] * 3)
    assert run(service(transport, notifier).connect(PRINTER_NAME)) is False
    assert len(notifier.alerts) == 1
    title, message = notifier.alerts[0]
    assert title == "Connection Failed"
    assert "re-pair" in message


def test_bluetooth_off_alert(run):
    notifier = RecordingNotifier()
    transport = FakeTransport(paired=[printer()], available=False)
    assert run(service(transport, notifier).connect(PRINTER_NAME)) is False
    assert notifier.alerts == [("Error", "Bluetooth is turned off")]


def test_scan_failure_alerts(run):
    notifier = RecordingNotifier()
    transport = ScanFailureTransport(TransportError("Bluetooth adapter busy"))
    assert run(service(transport, notifier).connect(PRINTER_NAME)) is False
    assert [title for title, _ in notifier.alerts] == ["Connection Failed"]


def test_missing_printer_is_silent(run):
    notifier = RecordingNotifier()
    assert run(service(FakeTransport(), notifier).connect(PRINTER_NAME)) is False
    assert notifier.alerts == []


def test_broken_notifier_does_not_escape(run):
    transport = FakeTransport(paired=[printer()], connect_errors=[TransportError("x")] * 3)
    assert run(service(transport, BrokenNotifier()).connect(PRINTER_NAME)) is False


def test_print_without_connection(run):
    assert run(service(FakeTransport()).print_formatted_text(["Hello"])) is False


def test_paired_device_names(run):
    transport = FakeTransport(paired=[printer(), printer(None, "02")])
    assert run(service(transport).get_paired_devices()) == [PRINTER_NAME, "Unknown Device"]


def test_scan_device_names(run):
    transport = FakeTransport(advertised=[printer(), printer(None, "02")])
    assert run(service(transport).scan_devices()) == [PRINTER_NAME]


def test_console_notifier(run, capsys):
    run(ConsoleNotifier().alert("Connection Failed", "Could not connect"))
    assert capsys.readouterr().err == "Connection Failed: Could not connect\n"
