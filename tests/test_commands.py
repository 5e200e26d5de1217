"""
Commands Layer Tests

Tests the result type shared by the batctl commands and sampling passes.

Run: python3 -m pytest tests/test_commands.py -v
"""

from batmon.commands.base import CommandResult, ResultStatus


class TestCommandResult:
    """Test CommandResult base class."""

    def test_ok_result(self):
        """Test creating a successful result."""
        result = CommandResult.ok("3 originators", data={'count': 3})
        assert result.success is True
        assert result.status == ResultStatus.SUCCESS
        assert result.message == "3 originators"
        assert result.data == {'count': 3}
        assert bool(result) is True

    def test_fail_result(self):
        """Test creating a failed result."""
        result = CommandResult.fail("Pass failed", error="line 4: bad row", raw="xx", data={'dispatched': 2})
        assert result.success is False
        assert result.status == ResultStatus.ERROR
        assert result.error == "line 4: bad row"
        assert result.raw_output == "xx"
        assert result.data['dispatched'] == 2
        assert bool(result) is False

    def test_fail_defaults_error_to_message(self):
        assert CommandResult.fail("Pass failed").error == "Pass failed"

    def test_warn_result(self):
        """Test creating a warning result."""
        result = CommandResult.warn("Untracked originators", data={'untracked': 1})
        assert result.success is True  # Warnings are still "successful"
        assert result.status == ResultStatus.WARNING
        assert result.data.get('untracked') == 1

    def test_not_available_result(self):
        """Test creating a not-available result."""
        result = CommandResult.not_available(
            "batctl not installed",
            fix_hint="sudo apt install batctl"
        )
        assert result.success is False
        assert result.status == ResultStatus.NOT_AVAILABLE
        assert "apt install" in result.data.get('fix_hint', '')

    def test_to_dict(self):
        """Test serialization."""
        d = CommandResult.fail("Pass failed", error="boom").to_dict()
        assert d == {
            'success': False,
            'status': 'error',
            'message': 'Pass failed',
            'data': {},
            'error': 'boom',
        }
