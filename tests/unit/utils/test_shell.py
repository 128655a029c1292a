"""Unit tests for shell execution utilities."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from sysdiff.utils.shell import CommandResult, command_exists, run_command


class TestCommandResult:
    """Tests for CommandResult dataclass."""

    def test_success(self) -> None:
        """Exit code 0 is success."""
        assert CommandResult(stdout="", stderr="", returncode=0).success is True
        assert CommandResult(stdout="", stderr="", returncode=1).success is False


class TestRunCommand:
    """Tests for run_command function."""

    @patch("sysdiff.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """stdout, stderr and the exit code are returned."""
        mock_run.return_value = MagicMock(stdout="out", stderr="err", returncode=3)

        result = run_command(["git", "status"])

        assert result == CommandResult(stdout="out", stderr="err", returncode=3)

    @patch("sysdiff.utils.shell.subprocess.run")
    def test_decodes_with_surrogateescape(self, mock_run: MagicMock) -> None:
        """Undecodable bytes in file names survive decoding."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["git", "ls-files", "-z"], cwd="/srv/repo")

        kwargs = mock_run.call_args.kwargs
        assert kwargs["errors"] == "surrogateescape"
        assert kwargs["capture_output"] is True
        assert kwargs["cwd"] == "/srv/repo"

    @patch("sysdiff.utils.shell.subprocess.run")
    def test_check_raises(self, mock_run: MagicMock) -> None:
        """check=True propagates CalledProcessError."""
        mock_run.side_effect = subprocess.CalledProcessError(1, ["false"])

        with pytest.raises(subprocess.CalledProcessError):
            run_command(["false"], check=True)

    def test_raises_file_not_found(self) -> None:
        """A missing executable raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            run_command(["definitely-not-a-real-command-xyz"])


class TestCommandExists:
    """Tests for command_exists function."""

    @patch("sysdiff.utils.shell.shutil.which", return_value="/usr/bin/git")
    def test_found(self, mock_which: MagicMock) -> None:
        """A command on PATH exists."""
        assert command_exists("git") is True
        mock_which.assert_called_once_with("git")

    @patch("sysdiff.utils.shell.shutil.which", return_value=None)
    def test_not_found(self, mock_which: MagicMock) -> None:
        """A command missing from PATH does not exist."""
        assert command_exists("git") is False
