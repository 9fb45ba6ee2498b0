"""
Tests for ui/cli.py - the command-line stand-in for the host application.

These tests drive the Typer app with CliRunner and replace the HTTP
transport with a canned one.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from dialhook.core.codec import encode_parameters
from dialhook.core.transport import TransportResponse
from dialhook.ui.cli import app


class CannedTransport:
    def __init__(self, status: int = 200, body: bytes = b"Success!"):
        self.status = status
        self.body = body
        self.urls = []

    def get(self, url, timeout, connect_timeout, verify_ssl=True, ca_file=None):
        self.urls.append(url)
        self.verify_ssl = verify_ssl
        return TransportResponse(status=self.status, body=self.body)


class TestCallCommand(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = Path(self.temp_dir) / "config.ini"

    def tearDown(self):
        import shutil

        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def invoke(self, transport, *args):
        with patch("dialhook.core.entry.RequestsTransport", return_value=transport):
            return self.runner.invoke(
                app,
                ["call", "--config", str(self.config_file), "--base-url", "http://backend.test/api", *args],
            )

    def test_call_with_echo(self):
        transport = CannedTransport()
        result = self.invoke(transport, "-p", "tel=0744516456", "-p", "CIF=1234KTE", "--resp")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(transport.urls, ["http://backend.test/api?CIF=1234KTE&tel=0744516456"])
        self.assertIn("Output Buffer", result.output)
        self.assertIn("Success!", result.output)

    def test_call_without_echo(self):
        result = self.invoke(CannedTransport(), "-p", "tel=0744516456")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertNotIn("Output Buffer", result.output)

    def test_call_http_error(self):
        result = self.invoke(CannedTransport(status=404), "-p", "tel=0744516456")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("404", result.output)

    def test_insecure_flag(self):
        transport = CannedTransport()
        self.invoke(transport, "-p", "tel=1", "--insecure")
        self.assertFalse(transport.verify_ssl)

    def test_malformed_param(self):
        result = self.invoke(CannedTransport(), "-p", "novalue")
        self.assertEqual(result.exit_code, 2)
        self.assertIn("KEY=VALUE", result.output)

    def test_bad_config_file(self):
        self.config_file.write_text("[api]\ntimeout = soon\n")
        result = self.invoke(CannedTransport(), "-p", "tel=1")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error loading configuration", result.output)


class TestDecodeCommand(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil

        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_decode_raw_file(self):
        path = Path(self.temp_dir) / "capture.bin"
        path.write_bytes(encode_parameters({"CFResp": "yes", "tel": "0744516456"}))

        result = self.runner.invoke(app, ["decode", str(path)])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("0744516456", result.output)
        self.assertIn("echo requested: True", result.output)

    def test_decode_hex_file(self):
        path = Path(self.temp_dir) / "capture.hex"
        path.write_text(encode_parameters({"tel": "0744516456"}).hex())

        result = self.runner.invoke(app, ["decode", str(path), "--hex"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("1 parameter(s)", result.output)

    def test_decode_truncated_file(self):
        path = Path(self.temp_dir) / "short.bin"
        path.write_bytes(b"02" + b"\0" * 10)

        result = self.runner.invoke(app, ["decode", str(path)])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("TRUNCATED_BUFFER", result.output)


class TestSettingsCommand(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = Path(self.temp_dir) / "config.ini"

    def tearDown(self):
        import shutil

        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_show_defaults(self):
        with patch.dict("os.environ", {"DIALHOOK_BASE_URL": ""}, clear=False):
            result = self.runner.invoke(app, ["settings", "show", "--config", str(self.config_file)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("base_url", result.output)
        self.assertIn("default", result.output)

    def test_init_writes_file(self):
        answers = "\n".join(["http://crm.local/hook", "6", "3", "n"]) + "\n"
        result = self.runner.invoke(
            app, ["settings", "init", "--config", str(self.config_file)], input=answers
        )
        self.assertEqual(result.exit_code, 0, result.output)
        text = self.config_file.read_text()
        self.assertIn("base_url = http://crm.local/hook", text)
        self.assertIn("timeout = 6", text)
        self.assertIn("verify_ssl = false", text)

    def test_unknown_action(self):
        result = self.runner.invoke(app, ["settings", "edit"])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
