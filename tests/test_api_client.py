"""Tests for the API client: bearer interception, error mapping, response unwrapping."""

import asyncio
import json
import sys
import unittest
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dealdesk.api import ApiClient
from dealdesk.auth import MemoryCredentialStore
from dealdesk.errors import INVALID_RESPONSE_BODY, ApiError, TransportError, ValidationError, error_message

BASE_URL = "http://api.test/api/v1"


def _client(handler, token=None):
    store = MemoryCredentialStore(token)
    return ApiClient(store, base_url=BASE_URL, transport=httpx.MockTransport(handler)), store


class TestBearerInterception(unittest.TestCase):
    def test_token_attached_until_cleared(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization"))
            return httpx.Response(200, json={"threads": []})

        async def run():
            api, store = _client(handler, token="T1")
            async with api:
                await api.thread.get_all()
                store.write("T2")
                await api.thread.get_all()
                store.clear()
                await api.thread.get_all()

        asyncio.run(run())
        self.assertEqual(seen, ["Bearer T1", "Bearer T2", None])

    def test_requests_hit_versioned_base_path(self):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append((request.method, request.url.path))
            return httpx.Response(200, json={})

        async def run():
            api, _ = _client(handler, token="T")
            async with api:
                await api.thread.mark_read("abc")
                await api.message.assign_inbox_message_to_thread("in-1", "t-1")

        asyncio.run(run())
        self.assertEqual(
            paths,
            [
                ("POST", "/api/v1/threads/abc/read"),
                ("POST", "/api/v1/inbox/messages/in-1/assign"),
            ],
        )


class TestErrorMapping(unittest.TestCase):
    def test_non_2xx_raises_api_error_with_server_text(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "seller name is required"})

        async def run():
            api, _ = _client(handler, token="T")
            async with api:
                await api.thread.create("Acme")

        with self.assertRaises(ApiError) as ctx:
            asyncio.run(run())
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.error, "seller name is required")
        self.assertEqual(error_message(ctx.exception, "Failed"), "seller name is required")

    def test_error_without_body_uses_fallback(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        async def run():
            api, _ = _client(handler)
            async with api:
                await api.offer.get_all()

        with self.assertRaises(ApiError) as ctx:
            asyncio.run(run())
        self.assertIsNone(ctx.exception.error)
        self.assertEqual(error_message(ctx.exception, "Failed to load"), "Failed to load")

    def test_connection_failure_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def run():
            api, _ = _client(handler)
            async with api:
                await api.auth.me()

        with self.assertRaises(TransportError) as ctx:
            asyncio.run(run())
        self.assertEqual(error_message(ctx.exception, "Failed to load user"), "Failed to load user")

    def test_error_message_for_validation_and_unknown(self):
        self.assertEqual(error_message(ValidationError("Seller name is required"), "x"), "Seller name is required")
        self.assertEqual(error_message(RuntimeError("boom"), "fallback"), "fallback")


class TestResponses(unittest.TestCase):
    def test_empty_body_and_wrapped_lists(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/auth/logout"):
                return httpx.Response(204)
            if request.url.path.endswith("/offers"):
                return httpx.Response(
                    200,
                    json={
                        "offers": [
                            {
                                "id": "o1",
                                "threadId": "t1",
                                "offerText": "$30,000 OTD",
                                "trackedAt": "2024-05-01T12:00:00Z",
                            }
                        ]
                    },
                )
            return httpx.Response(404, json={"error": "not found"})

        async def run():
            api, _ = _client(handler, token="T")
            async with api:
                self.assertIsNone(await api.auth.logout())
                return await api.offer.get_all()

        offers = asyncio.run(run())
        self.assertEqual(len(offers), 1)
        self.assertEqual(offers[0].thread_id, "t1")
        self.assertEqual(offers[0].offer_text, "$30,000 OTD")

    def test_consolidate_accepts_bare_thread_and_wrapped_result(self):
        bodies = []
        responses = [
            {"id": "t1", "sellerName": "Acme", "sellerType": "dealership", "supersededThreadIds": ["t2"]},
            {"thread": {"id": "t3", "sellerName": "Bob", "sellerType": "private"}, "supersededThreadIds": ["t4"]},
            {"id": "t5", "sellerName": "Cal", "sellerType": "other"},
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=responses[len(bodies) - 1])

        async def run():
            api, _ = _client(handler, token="T")
            async with api:
                return [
                    await api.thread.consolidate(["t1", "t2"]),
                    await api.thread.consolidate(["t3", "t4"]),
                    await api.thread.consolidate(["t5", "t6"]),
                ]

        first, second, third = asyncio.run(run())
        self.assertEqual(bodies[0], {"threadIds": ["t1", "t2"]})
        self.assertEqual((first.thread.id, first.superseded_thread_ids), ("t1", ["t2"]))
        self.assertEqual((second.thread.id, second.superseded_thread_ids), ("t3", ["t4"]))
        self.assertEqual((third.thread.id, third.superseded_thread_ids), ("t5", []))


class TestInvalidBodies(unittest.TestCase):
    def test_body_failing_model_validation_raises_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"threads": [{"sellerName": "no id"}]})

        async def run():
            api, _ = _client(handler, token="T")
            async with api:
                await api.thread.get_all()

        with self.assertRaises(ApiError) as ctx:
            asyncio.run(run())
        self.assertEqual(ctx.exception.status_code, 200)
        self.assertEqual(ctx.exception.error, INVALID_RESPONSE_BODY)
        self.assertEqual(ctx.exception.path, "/threads")

    def test_non_json_success_body_raises_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        async def run():
            api, _ = _client(handler, token="T")
            async with api:
                await api.offer.get_all()

        with self.assertRaises(ApiError) as ctx:
            asyncio.run(run())
        self.assertEqual(ctx.exception.error, INVALID_RESPONSE_BODY)

    def test_wrong_shape_for_single_model_raises_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json=["not", "a", "thread"])

        async def run():
            api, _ = _client(handler, token="T")
            async with api:
                await api.thread.create("Acme")

        with self.assertRaises(ApiError) as ctx:
            asyncio.run(run())
        self.assertEqual(ctx.exception.status_code, 201)


if __name__ == "__main__":
    unittest.main()
