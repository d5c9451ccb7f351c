"""Tests for onboarding, Gmail connection, SMS replies and in-process signals."""

import asyncio
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dealdesk.errors import ApiError, TransportError, ValidationError
from dealdesk.models import GmailAuthUrl, GmailStatus, User, UserPreferences
from dealdesk.session import Navigator, Route
from dealdesk.state import (
    GmailConnection,
    NoticeLevel,
    Notifier,
    RefreshBus,
    SmsReply,
    format_phone_number,
    submit_preferences,
    validate_preferences,
)


class FakeSession:
    """Stands in for SessionController: user, navigator, refresh_user."""

    def __init__(self, user):
        self.user = user
        self.navigator = Navigator(Route.ONBOARDING)
        self.refreshed = 0

    async def refresh_user(self):
        self.refreshed += 1


class FakePreferencesAPI:
    def __init__(self):
        self.created = []

    async def create(self, year, make, model):
        self.created.append((year, make, model))
        return UserPreferences(year=year, make=make, model=model)


class TestOnboarding(unittest.TestCase):
    def test_validate_preferences(self):
        self.assertEqual(validate_preferences(" 2019 ", " Toyota ", "RAV4"), (2019, "Toyota", "RAV4"))
        for year, make, model in [(1899, "A", "B"), (2101, "A", "B"), ("abc", "A", "B"), (2020, " ", "B"), (2020, "A", "")]:
            with self.assertRaises(ValidationError):
                validate_preferences(year, make, model)

    def test_submit_refreshes_session_and_navigates(self):
        session = FakeSession(User(id="u", email="u@x.y"))
        api = SimpleNamespace(preferences=FakePreferencesAPI())
        prefs = asyncio.run(submit_preferences(session, api, "2022", "Subaru", "Outback"))
        self.assertEqual(prefs.label, "2022 Subaru Outback")
        self.assertEqual(api.preferences.created, [(2022, "Subaru", "Outback")])
        self.assertEqual(session.refreshed, 1)
        self.assertIs(session.navigator.current, Route.DASHBOARD)

    def test_locked_preferences_rejected_without_call(self):
        user = User(id="u", email="u@x.y", preferences=UserPreferences(year=2020, make="Kia", model="Soul"))
        session = FakeSession(user)
        api = SimpleNamespace(preferences=FakePreferencesAPI())
        with self.assertRaises(ValidationError):
            asyncio.run(submit_preferences(session, api, 2022, "Subaru", "Outback"))
        self.assertEqual(api.preferences.created, [])

    def test_anonymous_rejected(self):
        api = SimpleNamespace(preferences=FakePreferencesAPI())
        with self.assertRaises(ValidationError):
            asyncio.run(submit_preferences(FakeSession(None), api, 2022, "Subaru", "Outback"))


class FakeGmailAPI:
    def __init__(self, error=None):
        self.error = error
        self.disconnected = False

    async def get_status(self):
        if self.error:
            raise self.error
        return GmailStatus(connected=True, gmail_email="me@gmail.com")

    async def get_auth_url(self):
        if self.error:
            raise self.error
        return GmailAuthUrl(auth_url="https://accounts.example/consent")

    async def disconnect(self):
        if self.error:
            raise self.error
        self.disconnected = True


class TestGmailConnection(unittest.TestCase):
    def test_refresh_connect_disconnect(self):
        gmail = GmailConnection(SimpleNamespace(gmail=FakeGmailAPI()))
        self.assertTrue(gmail.loading)

        async def run():
            await gmail.refresh()
            self.assertTrue(gmail.connected)
            self.assertEqual(gmail.gmail_email, "me@gmail.com")
            self.assertEqual(await gmail.connect(), "https://accounts.example/consent")
            return await gmail.disconnect()

        self.assertTrue(asyncio.run(run()))
        self.assertFalse(gmail.loading)
        self.assertFalse(gmail.connected)
        self.assertIsNone(gmail.gmail_email)
        self.assertEqual([n.text for n in gmail.notifier.drain()], ["Gmail disconnected successfully"])

    def test_failures_notify(self):
        gmail = GmailConnection(SimpleNamespace(gmail=FakeGmailAPI(error=TransportError("down"))))

        async def run():
            self.assertFalse(await gmail.refresh())
            self.assertIsNone(await gmail.connect())
            self.assertFalse(await gmail.disconnect())

        asyncio.run(run())
        self.assertFalse(gmail.loading)
        self.assertEqual(
            [n.text for n in gmail.notifier.drain()],
            ["Failed to start Gmail connection", "Failed to disconnect Gmail"],
        )


class FakeTwilioAPI:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def send_sms(self, message_id, content):
        if self.error:
            raise self.error
        self.sent.append((message_id, content))


class TestSmsReply(unittest.TestCase):
    def test_format_phone_number(self):
        self.assertEqual(format_phone_number("+14255550123"), "(425) 555-0123")
        self.assertEqual(format_phone_number("4255550123"), "(425) 555-0123")
        self.assertEqual(format_phone_number("+442071234567"), "+442071234567")

    def test_eligibility(self):
        api = SimpleNamespace(twilio=FakeTwilioAPI())
        self.assertTrue(SmsReply(api, "m1", "+14255550123").eligible)
        self.assertFalse(SmsReply(api, None, "+14255550123").eligible)
        self.assertFalse(SmsReply(api, "m1", None).eligible)

    def test_send_success(self):
        api = SimpleNamespace(twilio=FakeTwilioAPI())
        reply = SmsReply(api, "m1", "+14255550123")
        self.assertTrue(asyncio.run(reply.send("Can you do $31k?")))
        self.assertEqual(api.twilio.sent, [("m1", "Can you do $31k?")])
        self.assertEqual(reply.recipient_label, "(425) 555-0123")
        self.assertEqual([n.text for n in reply.notifier.drain()], ["SMS sent successfully!"])

    def test_local_preconditions_skip_network(self):
        api = SimpleNamespace(twilio=FakeTwilioAPI())
        no_target = SmsReply(api, None, "+14255550123")
        self.assertFalse(asyncio.run(no_target.send("hi")))
        self.assertEqual(no_target.error, "No SMS message found to reply to in this thread")
        empty = SmsReply(api, "m1", "+14255550123")
        self.assertFalse(asyncio.run(empty.send("   ")))
        self.assertEqual(empty.error, "Message content is required")
        self.assertEqual(api.twilio.sent, [])

    def test_server_error_text_shown(self):
        api = SimpleNamespace(twilio=FakeTwilioAPI(error=ApiError(400, "thread does not have a phone number assigned")))
        reply = SmsReply(api, "m1", "+14255550123")
        self.assertFalse(asyncio.run(reply.send("hi")))
        self.assertEqual(reply.error, "thread does not have a phone number assigned")
        self.assertFalse(reply.sending)


class TestSignals(unittest.TestCase):
    def test_refresh_bus_runs_sync_and_async_listeners(self):
        bus = RefreshBus()
        heard = []

        async def async_listener():
            heard.append("async")

        def broken():
            raise RuntimeError("listener bug")

        bus.subscribe("topic", lambda: heard.append("sync"))
        bus.subscribe("topic", broken)
        unsubscribe = bus.subscribe("topic", async_listener)

        self.assertEqual(asyncio.run(bus.broadcast("topic")), 3)
        self.assertEqual(heard, ["sync", "async"])
        unsubscribe()
        self.assertEqual(asyncio.run(bus.broadcast("topic")), 2)
        self.assertEqual(asyncio.run(bus.broadcast("nobody")), 0)

    def test_notifier_drain(self):
        notifier = Notifier()
        notifier.success("ok")
        notifier.error("bad")
        self.assertEqual([n.level for n in notifier.pending], [NoticeLevel.SUCCESS, NoticeLevel.ERROR])
        self.assertEqual(len(notifier.drain()), 2)
        self.assertEqual(notifier.drain(), [])


if __name__ == "__main__":
    unittest.main()
