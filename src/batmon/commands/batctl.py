"""
batctl Commands

Runs the originator table query (`batctl o` by default) and exposes its
stdout as a line stream that lives for exactly one sampling pass.

Usage:
    from batmon.commands import batctl

    stream = batctl.open_table("batctl o")
    try:
        for line in stream:
            ...
    finally:
        stream.close()

    result = batctl.get_originators()      # one-off parsed listing
"""

import shlex
import shutil
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from .base import CommandResult
from ..monitoring.errors import ParseError, StreamCloseError, StreamOpenError
from ..monitoring.originators import parse_table

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "batctl o"


def _find_cli() -> Optional[str]:
    """Find the batctl executable."""
    found = shutil.which('batctl')
    if found:
        return found

    for path in ('/usr/sbin/batctl', '/usr/local/sbin/batctl', '/sbin/batctl'):
        if Path(path).exists():
            return path

    return None


def is_available() -> bool:
    """Check if batctl is installed"""
    return _find_cli() is not None


class TableStream:
    """Line stream over the output of one originator table read."""

    def __iter__(self) -> Iterator[str]:
        raise NotImplementedError

    def close(self) -> None:
        """Release the stream.

        Raises:
            StreamCloseError: the source could not be released cleanly
        """


class ProcessStream(TableStream):
    """stdout of a spawned table command"""

    def __init__(self, command: str, timeout: Optional[float] = None):
        """
        Args:
            command: Shell-style command line, split with shlex (no shell)
            timeout: Seconds to wait for the process to exit at close time

        Raises:
            StreamOpenError: the command could not be started
        """
        self.command = command
        self.timeout = timeout
        try:
            args = shlex.split(command)
        except ValueError as e:
            raise StreamOpenError(f"Cannot parse '{command}': {e}", command=command) from e
        if not args:
            raise StreamOpenError("Empty table command", command=command)

        logger.debug(f"Running: {command}")
        # only stdout is a pipe; stderr is spooled and read at close
        self._stderr = tempfile.TemporaryFile()
        try:
            self._proc = subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=self._stderr,
                text=True,
                errors='replace',
            )
        except OSError as e:
            self._stderr.close()
            raise StreamOpenError(f"Cannot start '{command}': {e}", command=command) from e

    def __iter__(self) -> Iterator[str]:
        return iter(self._proc.stdout)

    def close(self) -> None:
        self._proc.stdout.close()
        try:
            returncode = self._proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            self._proc.kill()
            self._proc.wait()
            raise StreamCloseError(f"'{self.command}' did not exit within {self.timeout}s")
        finally:
            self._stderr.seek(0)
            stderr = self._stderr.read().decode(errors='replace')
            self._stderr.close()

        if returncode != 0:
            detail = stderr.strip()[-500:] or f"exit status {returncode}"
            raise StreamCloseError(f"'{self.command}' exited with {detail}", returncode=returncode)


class TextStream(TableStream):
    """Canned table text: a string, a list of lines or an open file"""

    def __init__(self, source):
        if isinstance(source, str):
            source = source.splitlines(keepends=True)
        self._source = source

    def __iter__(self) -> Iterator[str]:
        return iter(self._source)

    def close(self) -> None:
        close = getattr(self._source, 'close', None)
        if close is not None:
            try:
                close()
            except OSError as e:
                raise StreamCloseError(f"Cannot close input: {e}") from e


def open_table(command: str = DEFAULT_COMMAND, timeout: Optional[float] = None) -> TableStream:
    """Start the table command and return its output stream."""
    return ProcessStream(command, timeout=timeout)


def open_file(path: str) -> TableStream:
    """Open a saved table dump for replay.

    Raises:
        StreamOpenError: the file cannot be opened
    """
    try:
        return TextStream(open(path, 'r', errors='replace'))
    except OSError as e:
        raise StreamOpenError(f"Cannot open {path}: {e}", command=path) from e


def get_originators(command: str = DEFAULT_COMMAND, timeout: int = 30,
                    input_path: Optional[str] = None) -> CommandResult:
    """
    Read and parse the originator table once, without stability tracking.

    Args:
        command: Table command to run
        timeout: Seconds to wait for the command to exit
        input_path: Parse a saved table dump instead of running command

    Returns:
        CommandResult with data['originators'] as a list of dicts
    """
    if not input_path and command == DEFAULT_COMMAND and not is_available():
        return CommandResult.not_available(
            "batctl not installed",
            fix_hint="sudo apt install batctl"
        )

    try:
        stream = open_file(input_path) if input_path else open_table(command, timeout=timeout)
    except StreamOpenError as e:
        return CommandResult.fail(f"Command error: {e}", error=str(e))

    try:
        entries = [entry.to_dict() for entry in parse_table(stream)]
    except ParseError as e:
        return CommandResult.fail(
            f"Unexpected batctl output: {e}",
            error=str(e),
            raw=e.line
        )
    except OSError as e:
        return CommandResult.fail(f"Read error: {e}", error=str(e))
    finally:
        try:
            stream.close()
        except StreamCloseError as e:
            logger.warning(f"Closing batctl stream: {e}")

    return CommandResult.ok(
        message=f"{len(entries)} originators",
        data={'originators': entries, 'count': len(entries)}
    )
