"""End-to-end flows: ApiClient + session + dashboard state against the in-process mock API."""

import asyncio
import sys
import unittest
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dealdesk.api import ApiClient
from dealdesk.auth import MemoryCredentialStore
from dealdesk.errors import ApiError
from dealdesk.mock_api import create_app
from dealdesk.models import Sender, SellerType
from dealdesk.session import Navigator, PageRender, Route, SessionController, SessionState, guard_protected_route
from dealdesk.state import DashboardState, GmailConnection, SmsReply, submit_preferences

BASE_URL = "http://testserver/api/v1"


def _client(app):
    return ApiClient(MemoryCredentialStore(), base_url=BASE_URL, transport=httpx.ASGITransport(app=app))


class TestNewBuyerFlow(unittest.TestCase):
    def test_register_onboard_create_and_consolidate(self):
        app = create_app()

        async def run():
            async with _client(app) as api:
                navigator = Navigator()
                session = SessionController(api, navigator=navigator)
                await session.register("buyer@example.com", "long-password")
                self.assertEqual(guard_protected_route(session.view(), navigator), PageRender.REDIRECT)
                self.assertIs(navigator.current, Route.ONBOARDING)

                await submit_preferences(session, api, 2023, "Toyota", "Tacoma")
                self.assertEqual(session.state, SessionState.AUTHENTICATED)
                self.assertIs(navigator.current, Route.DASHBOARD)
                self.assertEqual(guard_protected_route(session.view(), navigator), PageRender.CONTENT)

                dashboard = DashboardState(api)
                self.assertTrue(await dashboard.open(session.view()))
                self.assertEqual(dashboard.threads, [])

                first = await dashboard.create_thread("Tacoma World Seller", SellerType.PRIVATE)
                second = await dashboard.create_thread("Same seller (email)", SellerType.PRIVATE)
                third = await dashboard.create_thread("Northgate Toyota")
                self.assertEqual(dashboard.selected_thread_id, third.id)

                dashboard.toggle_edit_mode()
                dashboard.toggle_thread_selection(second.id)
                dashboard.toggle_thread_selection(first.id)
                result = await dashboard.consolidate()

                # Both are named, so the first selected becomes the parent
                self.assertEqual(result.thread.id, second.id)
                self.assertEqual(result.superseded_thread_ids, [first.id])
                self.assertEqual({t.id for t in dashboard.threads}, {second.id, third.id})
                self.assertEqual(dashboard.selected_thread_id, second.id)

                await dashboard.load_threads()
                self.assertEqual({t.id for t in dashboard.threads}, {second.id, third.id})

                with self.assertRaises(ApiError) as ctx:
                    await api.preferences.create(2024, "Ford", "Maverick")
                self.assertEqual(ctx.exception.status_code, 409)

        asyncio.run(run())


class TestSeededFlow(unittest.TestCase):
    def test_demo_account_dashboard(self):
        app = create_app(seed=True)

        async def run():
            async with _client(app) as api:
                session = SessionController(api)
                await session.login("demo@example.com", "demo-password")
                self.assertIs(session.navigator.current, Route.DASHBOARD)
                self.assertEqual((await api.preferences.get()).label, "2022 Subaru Outback")
                self.assertEqual(await api.twilio.get_phone_number(), "+12065550100")

                dashboard = DashboardState(api)
                await dashboard.open(session.view())
                self.assertEqual(len(dashboard.threads), 2)
                self.assertEqual(len(dashboard.offers), 1)
                self.assertEqual(len(dashboard.inbox), 1)
                unread_before = dashboard.total_unread_count
                self.assertEqual(unread_before, 2)

                private = next(t for t in dashboard.threads if t.seller_type is SellerType.PRIVATE)
                dealer = next(t for t in dashboard.threads if t.seller_type is SellerType.DEALERSHIP)

                messages = await dashboard.select_thread(private.id)
                self.assertEqual(dashboard.find_thread(private.id).unread_count, 0)
                await dashboard.load_threads()
                self.assertEqual(dashboard.find_thread(private.id).unread_count, 0)

                seller_messages = [m for m in messages if m.sender is Sender.SELLER]
                reply = SmsReply(api, seller_messages[-1].id, private.phone)
                self.assertTrue(reply.eligible)
                self.assertTrue(await reply.send("Is $27,500 possible?"))

                self.assertTrue(await dashboard.assign_inbox_message(dashboard.inbox[0].id, dealer.id))
                self.assertEqual(dashboard.inbox, [])

                gmail = GmailConnection(api)
                await gmail.refresh()
                self.assertTrue(gmail.connected)
                self.assertTrue(await gmail.disconnect())

                await session.logout()
                self.assertIsNone(api.credentials.read())
                with self.assertRaises(ApiError) as ctx:
                    await api.thread.get_all()
                self.assertEqual(ctx.exception.status_code, 401)
                self.assertEqual(ctx.exception.error, "missing authorization header")

        asyncio.run(run())


if __name__ == "__main__":
    unittest.main()
