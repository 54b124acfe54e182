import subprocess
import sys
import unittest
from unittest.mock import MagicMock, patch

from utils import shell
from utils.errors import CommandFailedError, ExecutionFailedError, ShellRunnerError, TimedOutError


class TestRun(unittest.TestCase):

    @patch("utils.shell.subprocess.run")
    def test_run_success(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0)

        self.assertEqual(shell.run("git", ["status"], working_directory="/tmp"), 0)
        mock_run.assert_called_once_with(["git", "status"], cwd="/tmp")

    @patch("utils.shell.subprocess.run")
    def test_run_non_zero_exit(self, mock_run):
        mock_run.return_value = MagicMock(returncode=2)

        with self.assertRaises(CommandFailedError) as cm:
            shell.run("swiftlint", ["lint"])
        self.assertEqual(cm.exception.exit_code, 2)
        self.assertEqual(cm.exception.command, "swiftlint")
        self.assertEqual(str(cm.exception), "swiftlint failed with exit code 2.")

    @patch("utils.shell.subprocess.run", side_effect=FileNotFoundError(2, "No such file or directory"))
    def test_run_missing_executable(self, mock_run):
        with self.assertRaises(ExecutionFailedError) as cm:
            shell.run("nope")
        self.assertEqual(str(cm.exception), "Failed to execute nope: No such file or directory")
        self.assertIsInstance(cm.exception, ShellRunnerError)


class TestRunAndCapture(unittest.TestCase):

    @patch("utils.shell.subprocess.Popen")
    def test_capture_output(self, mock_popen):
        process = MagicMock(returncode=0)
        process.communicate.return_value = (b"firefox-ios/A.swift\n", None)
        mock_popen.return_value = process

        output = shell.run_and_capture("git", ["diff", "--name-only"], working_directory="/repo", timeout=5)

        self.assertEqual(output, "firefox-ios/A.swift\n")
        mock_popen.assert_called_once_with(
            ["git", "diff", "--name-only"],
            cwd="/repo",
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
        )
        process.communicate.assert_called_once_with(timeout=5)

    @patch("utils.shell.subprocess.Popen")
    def test_capture_replaces_invalid_utf8(self, mock_popen):
        process = MagicMock(returncode=0)
        process.communicate.return_value = (b"caf\xe9", None)
        mock_popen.return_value = process

        self.assertEqual(shell.run_and_capture("cat"), "caf�")

    @patch("utils.shell.subprocess.Popen")
    def test_capture_non_zero_exit(self, mock_popen):
        process = MagicMock(returncode=128)
        process.communicate.return_value = (b"", None)
        mock_popen.return_value = process

        with self.assertRaises(CommandFailedError) as cm:
            shell.run_and_capture("git", ["diff"])
        self.assertEqual(cm.exception.exit_code, 128)

    @patch("utils.shell.subprocess.Popen")
    def test_timeout_terminates_then_kills(self, mock_popen):
        process = MagicMock()
        process.communicate.side_effect = subprocess.TimeoutExpired(cmd="sleep", timeout=1)
        process.wait.side_effect = [subprocess.TimeoutExpired(cmd="sleep", timeout=shell.TERMINATE_GRACE_SEC), 0]
        mock_popen.return_value = process

        with self.assertRaises(TimedOutError) as cm:
            shell.run_and_capture("sleep", ["10"], timeout=1)

        self.assertEqual(str(cm.exception), "sleep timed out after 1 seconds.")
        process.terminate.assert_called_once()
        process.kill.assert_called_once()

    @patch("utils.shell.subprocess.Popen")
    def test_timeout_without_kill(self, mock_popen):
        process = MagicMock()
        process.communicate.side_effect = subprocess.TimeoutExpired(cmd="sleep", timeout=1)
        process.wait.return_value = -15
        mock_popen.return_value = process

        with self.assertRaises(TimedOutError):
            shell.run_and_capture("sleep", ["10"], timeout=1)
        process.terminate.assert_called_once()
        process.kill.assert_not_called()

    @patch("utils.shell.subprocess.Popen", side_effect=PermissionError(13, "Permission denied"))
    def test_capture_cannot_start(self, mock_popen):
        with self.assertRaises(ExecutionFailedError) as cm:
            shell.run_and_capture("./script")
        self.assertEqual(cm.exception.reason, "Permission denied")


class TestRealProcesses(unittest.TestCase):

    def test_capture_real_output(self):
        output = shell.run_and_capture(sys.executable, ["-c", "print('hello')"])
        self.assertEqual(output.strip(), "hello")

    def test_real_timeout(self):
        with self.assertRaises(TimedOutError):
            shell.run_and_capture(sys.executable, ["-c", "import time; time.sleep(5)"], timeout=0.2)

    def test_is_available(self):
        self.assertTrue(shell.is_available(sys.executable))
        self.assertFalse(shell.is_available("definitely-not-a-real-command-xyz"))


if __name__ == "__main__":
    unittest.main()
