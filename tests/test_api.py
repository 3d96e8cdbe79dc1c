"""Tests for libreprobe.api -- headers, URLs and the HTTP client."""

import base64
import unittest

import aiohttp
from aiohttp import test_utils, web

from libreprobe.api import ProbeClient, build_headers, create_client, join_url
from libreprobe.constants import USER_AGENT
from libreprobe.models import ServerConfig


class TestJoinUrl(unittest.TestCase):
    def test_trailing_and_leading_slash(self):
        self.assertEqual(
            join_url("http://host/", "/backend/empty.php"),
            "http://host/backend/empty.php",
        )

    def test_no_slashes(self):
        self.assertEqual(join_url("http://host", "backend"), "http://host/backend")

    def test_sub_path(self):
        self.assertEqual(
            join_url("http://host/speed//", "backend/getIP.php"),
            "http://host/speed/backend/getIP.php",
        )


class TestBuildHeaders(unittest.TestCase):
    def test_user_agent_only(self):
        headers = build_headers(ServerConfig(url="http://host"))
        self.assertEqual(headers, {"User-Agent": USER_AGENT})

    def test_basic_auth(self):
        headers = build_headers(
            ServerConfig(url="http://host", username="user", password="secret")
        )
        expected = "Basic " + base64.b64encode(b"user:secret").decode()
        self.assertEqual(headers["Authorization"], expected)

    def test_auth_requires_both_parts(self):
        headers = build_headers(ServerConfig(url="http://host", username="user"))
        self.assertNotIn("Authorization", headers)


class TestServerConfig(unittest.TestCase):
    def test_name_defaults_to_url(self):
        self.assertEqual(ServerConfig(url="http://host").name, "http://host")

    def test_from_dict_blank_credentials(self):
        server = ServerConfig.from_dict(
            {"url": "http://host", "name": "Host", "username": "", "password": ""}
        )
        self.assertEqual(server.name, "Host")
        self.assertIsNone(server.username)
        self.assertFalse(server.has_auth)

    def test_to_dict_hides_credentials(self):
        server = ServerConfig(url="http://host", username="u", password="p")
        self.assertEqual(server.to_dict(), {"name": "http://host", "url": "http://host"})


class TestClientLifecycle(unittest.IsolatedAsyncioTestCase):
    async def test_requires_context(self):
        client = create_client(ServerConfig(url="http://127.0.0.1:9"))
        self.assertIsInstance(client, ProbeClient)
        with self.assertRaises(RuntimeError):
            await client.fetch_server_info()

    async def test_session_closed_on_exit(self):
        client = ProbeClient(ServerConfig(url="http://127.0.0.1:9"))
        async with client:
            session = client._session
            self.assertIsNotNone(session)
        self.assertTrue(session.closed)
        self.assertIsNone(client._session)


def _backend(seen, info_body='{"processedString": "10.0.0.1 - LAN"}', password=None):
    """A minimal LibreSpeed backend recording what it received."""

    @web.middleware
    async def auth(request, handler):
        seen.setdefault("user_agents", []).append(request.headers.get("User-Agent"))
        if password is not None:
            expected = "Basic " + base64.b64encode(f"user:{password}".encode()).decode()
            if request.headers.get("Authorization") != expected:
                raise web.HTTPUnauthorized()
        return await handler(request)

    async def get_ip(request):
        return web.Response(text=info_body, content_type="application/json")

    async def garbage(request):
        ck_size = int(request.query["ckSize"])
        seen.setdefault("ck_sizes", []).append(ck_size)
        response = web.StreamResponse()
        await response.prepare(request)
        for _ in range(ck_size):
            await response.write(b"\0" * 1024)
        await response.write_eof()
        return response

    async def empty(request):
        body = await request.read()
        seen.setdefault("posts", []).append(len(body))
        return web.Response(text="")

    app = web.Application(middlewares=[auth])
    app.router.add_get("/backend/getIP.php", get_ip)
    app.router.add_get("/backend/garbage.php", garbage)
    app.router.add_post("/backend/empty.php", empty)
    return app


class TestProbeClientAgainstBackend(unittest.IsolatedAsyncioTestCase):
    async def _start(self, app):
        server = test_utils.TestServer(app)
        await server.start_server()
        self.addAsyncCleanup(server.close)
        return str(server.make_url("/"))

    async def test_server_info(self):
        seen = {}
        base = await self._start(_backend(seen))
        async with ProbeClient(ServerConfig(url=base)) as client:
            info = await client.fetch_server_info()
        self.assertEqual(info, {"processedString": "10.0.0.1 - LAN"})
        self.assertEqual(seen["user_agents"], [USER_AGENT])

    async def test_server_info_not_an_object(self):
        base = await self._start(_backend({}, info_body="[1, 2]"))
        async with ProbeClient(ServerConfig(url=base)) as client:
            info = await client.fetch_server_info()
        self.assertEqual(info, {"value": [1, 2]})

    async def test_server_info_plain_text(self):
        base = await self._start(_backend({}, info_body="not json at all"))
        async with ProbeClient(ServerConfig(url=base)) as client:
            info = await client.fetch_server_info()
        self.assertEqual(info, {"raw": "not json at all"})

    async def test_stream_download(self):
        seen = {}
        base = await self._start(_backend(seen))
        async with ProbeClient(ServerConfig(url=base)) as client:
            total = 0
            async for chunk in client.stream_download(3):
                total += len(chunk)
        self.assertEqual(seen["ck_sizes"], [3])
        self.assertEqual(total, 3 * 1024)

    async def test_upload_and_ping(self):
        seen = {}
        base = await self._start(_backend(seen))
        async with ProbeClient(ServerConfig(url=base)) as client:
            await client.upload(b"x" * 4096, timeout=5)
            await client.ping(timeout=5)
        self.assertEqual(seen["posts"], [4096, 0])

    async def test_basic_auth_accepted(self):
        base = await self._start(_backend({}, password="secret"))
        server = ServerConfig(url=base, username="user", password="secret")
        async with ProbeClient(server) as client:
            await client.ping(timeout=5)

    async def test_http_error_raised(self):
        base = await self._start(_backend({}, password="secret"))
        async with ProbeClient(ServerConfig(url=base)) as client:
            with self.assertRaises(aiohttp.ClientResponseError):
                await client.ping(timeout=5)


if __name__ == "__main__":
    unittest.main()
