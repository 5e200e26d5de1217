"""
Tests for the batctl command layer and table streams.

Run: python3 -m pytest tests/test_batctl.py -v
"""

import shlex
import sys
from unittest.mock import patch

import pytest

from batmon.commands import batctl
from batmon.commands.base import ResultStatus
from batmon.monitoring.errors import StreamCloseError, StreamOpenError

TABLE = (
    "[B.A.T.M.A.N. adv 2019.2, MainIF/MAC: wlan0/02:11:22:33:44:55 (bat0 BATMAN_IV)]\n"
    "  Originator      last-seen (#/255)           Nexthop [outgoingIF]:   Potential nexthops ...\n"
    "02:aa:bb:cc:dd:01    0.340s   (255) 02:aa:bb:cc:dd:01 [     wlan0]: 02:aa:bb:cc:dd:01 (255)\n"
    "02:aa:bb:cc:dd:02    1.020s   (187) 02:aa:bb:cc:dd:01 [     wlan0]: 02:aa:bb:cc:dd:01 (187)\n"
)


def python_command(code: str) -> str:
    """Command line that runs a Python snippet"""
    return shlex.join([sys.executable, "-c", code])


def raw_table_command(data: bytes) -> str:
    """Command that writes data to stdout unmodified"""
    return python_command(f"import sys; sys.stdout.buffer.write({data!r})")


# Interface name with a byte that is not valid UTF-8
MANGLED_TABLE = TABLE.encode().replace(b"[     wlan0]", b"[    wl\xff0]", 1)

# Writes far more to stderr than a pipe buffer holds before printing the table
NOISY_COMMAND = python_command(
    f"import sys; sys.stderr.write('warning: ' * 50000); sys.stderr.flush(); sys.stdout.write({TABLE!r})"
)


class TestTextStream:
    """Tests for TextStream."""

    def test_from_string(self):
        stream = batctl.TextStream(TABLE)
        lines = list(stream)
        assert len(lines) == 4
        assert lines[0].endswith("\n")
        stream.close()

    def test_from_list(self):
        stream = batctl.TextStream(["a\n", "b\n"])
        assert list(stream) == ["a\n", "b\n"]

    def test_open_file(self, tmp_path):
        """Saved dumps are replayed and closed."""
        dump = tmp_path / "originators.txt"
        dump.write_text(TABLE)

        stream = batctl.open_file(str(dump))
        assert len(list(stream)) == 4
        stream.close()
        assert stream._source.closed

    def test_open_missing_file(self, tmp_path):
        with pytest.raises(StreamOpenError):
            batctl.open_file(str(tmp_path / "missing.txt"))


class TestProcessStream:
    """Tests for ProcessStream."""

    def test_reads_stdout(self):
        stream = batctl.open_table(python_command("print('line one'); print('line two')"))
        assert [line.rstrip("\n") for line in stream] == ["line one", "line two"]
        stream.close()

    def test_missing_executable(self):
        with pytest.raises(StreamOpenError) as exc_info:
            batctl.open_table("/nonexistent/batctl-xyz o")
        assert exc_info.value.command == "/nonexistent/batctl-xyz o"

    def test_empty_command(self):
        with pytest.raises(StreamOpenError):
            batctl.open_table("   ")

    def test_unbalanced_quotes(self):
        with pytest.raises(StreamOpenError):
            batctl.open_table("batctl 'o")

    def test_nonzero_exit_on_close(self):
        """A failing command is reported when the stream is closed."""
        stream = batctl.open_table(python_command(
            "import sys; sys.stderr.write('Error - mesh has not been enabled yet'); sys.exit(3)"
        ))
        assert list(stream) == []

        with pytest.raises(StreamCloseError) as exc_info:
            stream.close()
        assert exc_info.value.returncode == 3
        assert "mesh has not been enabled" in str(exc_info.value)

    def test_undecodable_bytes_replaced(self):
        """Invalid UTF-8 is read as replacement characters."""
        stream = batctl.open_table(raw_table_command(MANGLED_TABLE))
        lines = list(stream)
        stream.close()

        assert len(lines) == 4
        assert "wl\ufffd0" in lines[2]

    def test_noisy_stderr(self):
        """A command flooding stderr still delivers its stdout."""
        stream = batctl.open_table(NOISY_COMMAND, timeout=30)
        lines = list(stream)
        stream.close()

        assert len(lines) == 4

    def test_noisy_stderr_in_close_error(self):
        """Failure detail keeps only the tail of a long stderr."""
        stream = batctl.open_table(python_command(
            "import sys; sys.stderr.write('x' * 200000 + ' interface down'); sys.exit(1)"
        ))
        list(stream)

        with pytest.raises(StreamCloseError) as exc_info:
            stream.close()
        assert str(exc_info.value).endswith("interface down")
        assert len(str(exc_info.value)) < 1000


class TestAvailability:
    """Tests for batctl discovery."""

    def test_is_available(self):
        assert isinstance(batctl.is_available(), bool)

    def test_found_on_path(self):
        with patch("batmon.commands.batctl.shutil.which", return_value="/usr/sbin/batctl"):
            assert batctl._find_cli() == "/usr/sbin/batctl"


class TestGetOriginators:
    """Tests for get_originators."""

    def test_not_available(self):
        with patch("batmon.commands.batctl.is_available", return_value=False):
            result = batctl.get_originators()

        assert not result.success
        assert result.status == ResultStatus.NOT_AVAILABLE
        assert "apt install batctl" in result.data['fix_hint']

    def test_parses_output(self):
        command = python_command(f"import sys; sys.stdout.write({TABLE!r})")
        result = batctl.get_originators(command)

        assert result.success
        assert result.data['count'] == 2
        assert result.data['originators'][1]['originator'] == "02:aa:bb:cc:dd:02"
        assert result.data['originators'][1]['next_hop'] == "02:aa:bb:cc:dd:01"

    def test_bad_output(self):
        command = python_command("print('header'); print('header'); print('not a table')")
        result = batctl.get_originators(command)

        assert not result.success
        assert result.raw_output == "not a table"

    def test_undecodable_interface_name(self):
        """Trailing fields with invalid UTF-8 do not break parsing."""
        result = batctl.get_originators(raw_table_command(MANGLED_TABLE))

        assert result.success
        assert result.data['count'] == 2

    def test_input_file(self, tmp_path):
        """A saved dump is parsed without running or looking for batctl."""
        dump = tmp_path / "originators.txt"
        dump.write_bytes(MANGLED_TABLE)

        with patch("batmon.commands.batctl.is_available", return_value=False):
            result = batctl.get_originators(input_path=str(dump))

        assert result.success
        assert result.data['originators'][0]['quality'] == 255

    def test_missing_input_file(self, tmp_path):
        result = batctl.get_originators(input_path=str(tmp_path / "missing.txt"))
        assert not result.success
        assert result.status == ResultStatus.ERROR

    def test_command_error(self):
        result = batctl.get_originators("/nonexistent/batctl-xyz o")
        assert not result.success
        assert result.status == ResultStatus.ERROR
