"""Tests for CLI commands against the in-process mock API."""

import sys
import unittest
from contextlib import ExitStack, asynccontextmanager
from pathlib import Path
from unittest.mock import patch

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from typer.testing import CliRunner

from dealdesk.api import ApiClient
from dealdesk.auth import MemoryCredentialStore
from dealdesk.cli import app
from dealdesk.mock_api import create_app

_COMMAND_MODULES = (
    "dealdesk.cli.auth_commands",
    "dealdesk.cli.thread_commands",
    "dealdesk.cli.message_commands",
    "dealdesk.cli.integration_commands",
)


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.mock_app = create_app(seed=True)
        self.credentials = MemoryCredentialStore()

        @asynccontextmanager
        async def open_client(api_url=None):
            transport = httpx.ASGITransport(app=self.mock_app)
            async with ApiClient(self.credentials, base_url="http://testserver/api/v1", transport=transport) as api:
                yield api

        self._patches = ExitStack()
        for module in _COMMAND_MODULES:
            self._patches.enter_context(patch(f"{module}.open_client", open_client))

    def tearDown(self):
        self._patches.close()

    def _invoke(self, *args):
        return self.runner.invoke(app, list(args))

    def _login(self):
        result = self._invoke("login", "--email", "demo@example.com", "--password", "demo-password")
        self.assertEqual(result.exit_code, 0, result.output)
        return result

    def test_login_whoami_logout(self):
        self.assertIn("Signed in as demo@example.com", self._login().output)
        self.assertTrue(self.credentials.read())

        whoami = self._invoke("whoami")
        self.assertEqual(whoami.exit_code, 0, whoami.output)
        self.assertIn("2022 Subaru Outback", whoami.output)

        self.assertEqual(self._invoke("logout").exit_code, 0)
        self.assertIsNone(self.credentials.read())
        self.assertEqual(self._invoke("whoami").exit_code, 1)

    def test_bad_login_exits_with_server_error(self):
        result = self._invoke("login", "--email", "demo@example.com", "--password", "wrong-password")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("invalid email or password", result.output)

    def test_register_then_onboard(self):
        result = self._invoke("register", "--email", "new@example.com", "--password", "long-password")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("dealdesk onboard", result.output)

        blocked = self._invoke("threads", "list")
        self.assertEqual(blocked.exit_code, 1)
        self.assertIn("onboard", blocked.output)

        onboard = self._invoke("onboard", "--year", "2020", "--make", "Honda", "--model", "Fit")
        self.assertEqual(onboard.exit_code, 0, onboard.output)
        self.assertIn("2020 Honda Fit", onboard.output)

        locked = self._invoke("onboard", "--year", "2021", "--make", "Kia", "--model", "Rio")
        self.assertEqual(locked.exit_code, 1)
        self.assertIn("locked", locked.output)

    def test_threads_commands(self):
        self._login()
        listed = self._invoke("threads", "list")
        self.assertEqual(listed.exit_code, 0, listed.output)
        self.assertIn("Renton", listed.output)

        blank = self._invoke("threads", "create", "   ")
        self.assertEqual(blank.exit_code, 1)
        self.assertIn("Seller name is required", blank.output)

        created = self._invoke("threads", "create", "Eastside Subaru")
        self.assertEqual(created.exit_code, 0, created.output)

        too_few = self._invoke("threads", "consolidate", "Eastside Subaru")
        self.assertEqual(too_few.exit_code, 1)
        self.assertIn("at least 2", too_few.output)

        merged = self._invoke("threads", "consolidate", "Subaru of Renton", "Eastside Subaru")
        self.assertEqual(merged.exit_code, 0, merged.output)
        self.assertIn("Threads consolidated successfully", merged.output)

        archived = self._invoke("threads", "archive", "Subaru of Renton", "--yes")
        self.assertEqual(archived.exit_code, 0, archived.output)
        self.assertIn("Thread archived", archived.output)

        missing = self._invoke("messages", "show", "Subaru of Renton")
        self.assertEqual(missing.exit_code, 1)
        self.assertIn("No thread matches", missing.output)

    def test_messages_offers_inbox_sms(self):
        self._login()
        shown = self._invoke("messages", "show", "Subaru of Renton")
        self.assertEqual(shown.exit_code, 0, shown.output)
        self.assertIn("$34,500", shown.output)

        offers = self._invoke("offers", "list")
        self.assertIn("34,500", offers.output)

        inbox_id = next(iter(self.mock_app.state.store.inbox))
        assigned = self._invoke("inbox", "assign", inbox_id[:8], "Subaru of Renton")
        self.assertEqual(assigned.exit_code, 0, assigned.output)
        self.assertIn("Inbox is empty", self._invoke("inbox", "list").output)

        sms = self._invoke("sms", "send", "+14255550123", "Would you take $27k?")
        self.assertEqual(sms.exit_code, 0, sms.output)
        self.assertIn("SMS sent successfully!", sms.output)

        no_phone = self._invoke("sms", "send", "Subaru of Renton", "hi")
        self.assertEqual(no_phone.exit_code, 1)
        self.assertIn("thread does not have a phone number assigned", no_phone.output)

    def test_gmail_commands(self):
        self._login()
        self.assertIn("Connected", self._invoke("gmail", "status").output)
        connect = self._invoke("gmail", "connect", "--no-browser")
        self.assertEqual(connect.exit_code, 0, connect.output)
        self.assertIn("accounts.google.com", connect.output)
        disconnect = self._invoke("gmail", "disconnect")
        self.assertIn("Gmail disconnected successfully", disconnect.output)
        self.assertIn("Not connected", self._invoke("gmail", "status").output)


if __name__ == "__main__":
    unittest.main()
