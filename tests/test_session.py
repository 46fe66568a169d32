import pytest
import serial

from bench_psu.errors import DeviceNotConnectedError, OperationFailedError
from bench_psu.instrumentation import SerialSession, SimulatedSupply


def make_session(device):
    return SerialSession(serial_factory=device.as_factory())


@pytest.mark.parametrize("port", ["", "C", "CO", "COM"])
def test_open_rejects_short_ports(port):
    device = SimulatedSupply()
    session = make_session(device)
    with pytest.raises(DeviceNotConnectedError):
        session.open(port)
    assert not session.is_open()
    assert device.port is None


def test_open_configures_line_settings():
    device = SimulatedSupply()
    session = make_session(device)
    session.open("/dev/ttyUSB0")

    assert session.is_open()
    assert session.port == "/dev/ttyUSB0"
    assert device.baudrate == 9600
    assert device.bytesize == serial.EIGHTBITS
    assert device.parity == serial.PARITY_NONE
    assert device.stopbits == serial.STOPBITS_ONE
    assert device.xonxoff is False and device.rtscts is False
    assert device.timeout == 2.0


def test_failed_open_leaves_session_closed():
    device = SimulatedSupply(refuse_open=True)
    session = make_session(device)
    with pytest.raises(DeviceNotConnectedError):
        session.open("/dev/ttyUSB0")
    assert not session.is_open()
    assert session.port == ""


def test_failed_reopen_drops_previous_connection():
    device = SimulatedSupply()
    session = make_session(device)
    session.open("/dev/ttyUSB0")
    with pytest.raises(DeviceNotConnectedError):
        session.open("CO")
    assert not session.is_open()
    assert not device.is_open


def test_close_is_idempotent():
    device = SimulatedSupply()
    session = make_session(device)
    session.open("/dev/ttyUSB0")
    session.close()
    session.close()
    assert not session.is_open()
    assert session.port == ""


def test_read_line_times_out_without_reply():
    device = SimulatedSupply()
    session = make_session(device)
    session.open("/dev/ttyUSB0")
    session.write_line("OUTP ON")
    with pytest.raises(OperationFailedError):
        session.read_line()


def test_write_on_closed_session_raises():
    session = make_session(SimulatedSupply())
    with pytest.raises(DeviceNotConnectedError):
        session.write_line("OUTP?")


def test_exchange_reports_transport_failure():
    device = SimulatedSupply()
    session = make_session(device)
    session.open("/dev/ttyUSB0")
    device.unplug()
    with pytest.raises(OperationFailedError):
        session.exchange("MEAS:VOLT?\n")
    assert session.is_open()
