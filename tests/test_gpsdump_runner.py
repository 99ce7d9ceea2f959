"""
Tests for gpsdump_runner.py GPSDump arguments and invocation
"""
import os
import sys
import pytest
from gpsdump_runner import (
    GpsDumpResponse,
    SubprocessGpsDump,
    gpsdump_params,
    port_argument,
    order_token,
    parse_order_token,
    list_arguments,
    track_index,
    flight_arguments,
    getGpsDumpPath
)
from igc_model import FailureKind, GpsModel, Platform


class TestParams:
    """Tests for the per-platform switch table"""

    def test_windows(self, tmp_path):
        params = gpsdump_params(Platform.WIN, str(tmp_path))
        assert params.executable == "GpsDump542.exe"
        assert params.models[GpsModel.FLYTEC_20] == "/gps=iqcompeo"
        assert params.list_file == os.path.join(str(tmp_path), "gpslist.txt")
        assert params.track_file == "/igc_log="

    def test_mac32(self):
        params = gpsdump_params(Platform.MAC32, "/tmp")
        assert params.models[GpsModel.FLYTEC_20] == "/gps=flytec"
        assert params.list_file is None
        assert params.track_file == "/name="

    def test_unix_builds(self):
        mac = gpsdump_params(Platform.MAC64, "/tmp")
        linux = gpsdump_params(Platform.LINUX, "/tmp")
        assert mac.executable == "gpsdumpMac64_14"
        assert linux.executable == "gpsdumpLin64_28"
        assert linux.models[GpsModel.FLYMASTER] == "-gyn"
        assert linux.models[GpsModel.FLYTEC_15] == "-giq"
        assert linux.list == "-f0"


class TestPortArgument:
    """Tests for serial port translation"""

    def test_windows(self):
        assert port_argument(Platform.WIN, "COM3") == "/com=3"

    def test_mac(self):
        assert port_argument(Platform.MAC64, "/dev/tty.usbserial-1410") == "-cu.usbserial-1410"

    def test_linux(self):
        assert port_argument(Platform.LINUX, "/dev/ttyACM0") == "-ca0"
        assert port_argument(Platform.LINUX, "/dev/ttyS1") == "-c1"
        assert port_argument(Platform.LINUX, "/dev/ttyUSB0") == "-cu0"

    def test_linux_other_port_unchanged(self):
        assert port_argument(Platform.LINUX, "/dev/rfcomm0") == "/dev/rfcomm0"
        assert port_argument(Platform.LINUX, "COM1") == "COM1"


class TestOrderToken:
    """Tests for the device order token"""

    def test_token(self):
        assert order_token("-gyn", "-ca0", GpsModel.FLYMASTER) == "-gyn,-ca0,flysd"

    def test_parse(self):
        assert parse_order_token("/gps=iqbasic,/com=3,fly15") == ("/gps=iqbasic", "/com=3", GpsModel.FLYTEC_15)

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            parse_order_token("-gyn,-ca0,garmin")


class TestArgumentVectors:
    """Tests for list and download argument vectors"""

    def test_windows_list(self, tmp_path):
        params = gpsdump_params(Platform.WIN, str(tmp_path))
        args, output_file = list_arguments(Platform.WIN, params, "/gps=flymaster", "/com=3")
        assert args == ["/win=0", "/com=3", "/gps=flymaster", "/flightlist",
                        "/notify=" + params.list_file, "/overwrite", "/exit"]
        assert output_file == params.list_file

    def test_mac32_list(self):
        params = gpsdump_params(Platform.MAC32, "/tmp")
        assert list_arguments(Platform.MAC32, params, "/gps=flymaster", "-cu0") == \
            (["/gps=flymaster", "-cu0", "/flightlist"], None)

    def test_linux_list(self):
        params = gpsdump_params(Platform.LINUX, "/tmp")
        assert list_arguments(Platform.LINUX, params, "-gyn", "-ca0") == \
            (["-gyn", "-ca0", "-lnomatter.txt", "-f0"], None)

    def test_track_index(self):
        assert track_index(Platform.WIN, GpsModel.FLYMASTER, 0) == 1
        assert track_index(Platform.WIN, GpsModel.FLYMASTER_OLD, 0) == 0
        assert track_index(Platform.WIN, GpsModel.FLYTEC_20, 4) == 4
        assert track_index(Platform.LINUX, GpsModel.FLYTEC_15, 4) == 5

    def test_windows_flight(self):
        params = gpsdump_params(Platform.WIN, "C:/Temp")
        assert flight_arguments(Platform.WIN, params, "/gps=flymaster", "/com=3", "C:/Temp/gpsdump.igc", 1) == \
            ["/win=0", "/com=3", "/gps=flymaster", "/igc_log=C:/Temp/gpsdump.igc", "/track=1", "/exit"]

    def test_mac32_flight(self):
        params = gpsdump_params(Platform.MAC32, "/tmp")
        assert flight_arguments(Platform.MAC32, params, "/gps=flymaster", "-cu0", "/tmp/gpsdump.igc", 2) == \
            ["/gps=flymaster", "/name=/tmp/gpsdump.igc", "/track=2"]

    def test_linux_flight(self):
        params = gpsdump_params(Platform.LINUX, "/tmp")
        assert flight_arguments(Platform.LINUX, params, "-gyn", "-ca0", "/tmp/gpsdump.igc", 1) == \
            ["-gyn", "-ca0", "-l/tmp/gpsdump.igc", "-f1"]


class TestResponse:
    """Tests for GpsDumpResponse"""

    def test_ok(self):
        assert GpsDumpResponse(output="x").ok is True
        assert GpsDumpResponse(failure=FailureKind.NO_RESPONSE).ok is False


def write_script(path, body):
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(0o755)
    return str(path)


class TestSubprocessGpsDump:
    """Tests for the subprocess invoker"""

    def test_missing_executable(self, tmp_path):
        response = SubprocessGpsDump(str(tmp_path / "gpsdump")).invoke(["-f0"])
        assert response.failure == FailureKind.GPSDUMP_NOT_FOUND
        assert response.message == "GPSDump not found"

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="shell script executable")
    def test_stdout_output(self, tmp_path):
        executable = write_script(tmp_path / "gpsdump", 'echo "args: $@"')
        response = SubprocessGpsDump(executable).invoke(["-gyn", "-f0"])
        assert response.ok
        assert response.output.strip() == "args: -gyn -f0"

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="shell script executable")
    def test_failing_process(self, tmp_path):
        executable = write_script(tmp_path / "gpsdump", "exit 2")
        response = SubprocessGpsDump(executable).invoke([])
        assert response.failure == FailureKind.GPSDUMP_ERROR

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="shell script executable")
    def test_exit_status_ignored(self, tmp_path):
        executable = write_script(tmp_path / "gpsdump", "echo partial; exit 2")
        response = SubprocessGpsDump(executable, check_exit=False).invoke([])
        assert response.output.strip() == "partial"

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="shell script executable")
    def test_output_file(self, tmp_path):
        list_file = tmp_path / "gpslist.txt"
        executable = write_script(tmp_path / "gpsdump", f'echo "Flight list" > "{list_file}"')
        response = SubprocessGpsDump(executable).invoke([], str(list_file))
        assert response.output.strip() == "Flight list"

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="shell script executable")
    def test_missing_output_file(self, tmp_path):
        executable = write_script(tmp_path / "gpsdump", "exit 0")
        response = SubprocessGpsDump(executable).invoke([], str(tmp_path / "gpslist.txt"))
        assert response.failure == FailureKind.NO_RESPONSE
        assert response.message == "No response from GPSDump"

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="shell script executable")
    def test_timeout(self, tmp_path):
        executable = write_script(tmp_path / "gpsdump", "exec sleep 5")
        response = SubprocessGpsDump(executable, timeout=0.2).invoke([])
        assert response.failure == FailureKind.GPSDUMP_ERROR


class TestGpsDumpPath:
    """Tests for executable lookup"""

    def test_path(self):
        assert getGpsDumpPath(Platform.LINUX, "/opt/gpsdump") == os.path.join("/opt/gpsdump", "gpsdumpLin64_28")
