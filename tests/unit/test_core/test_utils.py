# SPDX-License-Identifier: LGPL-3.0-or-later
import json
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from imageprep.core.utils import U


class TestUtilsFileOperations(unittest.TestCase):
    """Test utility file operations."""

    def test_write_text_creates_parents(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "run" / "nested" / "backup.status"

            U.write_text(p, "1\n")

            self.assertEqual(p.read_text(), "1\n")

    def test_json_dump_is_stable(self):
        out = U.json_dump({"b": 1, "a": Path("/x")})
        self.assertEqual(json.loads(out), {"a": "/x", "b": 1})
        self.assertLess(out.index('"a"'), out.index('"b"'))


class TestUtilsCommandExecution(unittest.TestCase):
    """Test utility command execution."""

    def setUp(self):
        self.logger = Mock()

    @patch("subprocess.run")
    def test_run_cmd_executes_command(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="output", stderr="")

        result = U.run_cmd(self.logger, ["mdata-put", "state", "running"])

        self.assertEqual(result.returncode, 0)
        self.assertEqual(mock_run.call_args[0][0], ["mdata-put", "state", "running"])
        self.assertTrue(mock_run.call_args[1]["check"])

    @patch("subprocess.run")
    def test_run_cmd_captures_output(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="{}", stderr="")

        U.run_cmd(self.logger, ["imgapi-config"], capture=True)

        self.assertTrue(mock_run.call_args[1]["capture_output"])
        self.assertTrue(mock_run.call_args[1]["text"])

    @patch("subprocess.run")
    def test_run_cmd_reraises_failures(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(2, ["manta-sync"], stderr="auth failed")

        with self.assertRaises(subprocess.CalledProcessError):
            U.run_cmd(self.logger, ["manta-sync"])
        self.logger.error.assert_called()

    @patch("subprocess.run", side_effect=FileNotFoundError("cleanmgr.exe"))
    def test_run_cmd_missing_executable(self, _mock_run):
        with self.assertRaises(FileNotFoundError):
            U.run_cmd(self.logger, ["cleanmgr.exe", "/autoclean"])


class TestSpinner(unittest.TestCase):
    @patch("imageprep.core.utils.is_tty", return_value=False)
    def test_spinner_is_passthrough_without_tty(self, _tty):
        ran = []
        with U.spinner("Waiting for cleanmgr"):
            ran.append(True)
        self.assertEqual(ran, [True])


if __name__ == "__main__":
    unittest.main()
