import asyncio
import threading
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from aiohttp import web
from aiohttp import test_utils

from confstrap.bootstrap import Bootstrapper
from confstrap.config.models import BootstrapOptions, RemoteDescriptor
from confstrap.errors import RemoteFetchError, RemoteKeyNotFoundError
from confstrap.remote.providers import (
    ConsulKVProvider,
    HttpProvider,
    default_providers,
    normalize_base_url,
)
from confstrap.remote.retry import RetryPolicy
from confstrap.sources.models import Source


class ProviderUrlTests(unittest.TestCase):
    def test_normalize_base_url(self) -> None:
        self.assertEqual(normalize_base_url("localhost:8500"), "http://localhost:8500")
        self.assertEqual(normalize_base_url("https://consul.internal/"), "https://consul.internal")

    def test_consul_url(self) -> None:
        descriptor = RemoteDescriptor(provider="consul", dsn="localhost:8500", key="/services/billing")
        self.assertEqual(
            ConsulKVProvider().build_url(descriptor),
            "http://localhost:8500/v1/kv/services/billing?raw",
        )

    def test_http_url(self) -> None:
        descriptor = RemoteDescriptor(provider="http", dsn="https://cfg.internal/base/", key="/billing.json")
        self.assertEqual(HttpProvider().build_url(descriptor), "https://cfg.internal/base/billing.json")

    def test_default_providers_pick_up_consul_token(self) -> None:
        providers = default_providers({"CONSUL_HTTP_TOKEN": "secret"})
        self.assertEqual(sorted(providers), ["consul", "http"])
        self.assertEqual(providers["consul"].token, "secret")
        self.assertIsNone(default_providers({})["consul"].token)


class ProviderFetchTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.requests: list = []

        async def consul_kv(request: web.Request) -> web.Response:
            self.requests.append(request)
            key = request.match_info["key"]
            if key == "missing":
                return web.Response(status=404)
            if key == "broken":
                return web.Response(status=500, text="boom")
            return web.Response(body=b'{"db": {"host": "consul-db"}}')

        async def document(request: web.Request) -> web.Response:
            self.requests.append(request)
            return web.Response(text="name: billing\n")

        app = web.Application()
        app.router.add_get("/v1/kv/{key:.+}", consul_kv)
        app.router.add_get("/docs/{name}", document)
        self.server = test_utils.TestServer(app)
        await self.server.start_server()
        self.addAsyncCleanup(self.server.close)
        self.dsn = f"{self.server.host}:{self.server.port}"

    def _descriptor(self, provider: str, key: str) -> RemoteDescriptor:
        return RemoteDescriptor(provider=provider, dsn=self.dsn, key=key)

    async def test_consul_returns_raw_value(self) -> None:
        body = await ConsulKVProvider().fetch_async(self._descriptor("consul", "/billing"))
        self.assertEqual(body, b'{"db": {"host": "consul-db"}}')
        self.assertIn("raw", self.requests[0].query)
        self.assertNotIn("X-Consul-Token", self.requests[0].headers)

    async def test_consul_sends_token(self) -> None:
        await ConsulKVProvider(token="secret").fetch_async(self._descriptor("consul", "/billing"))
        self.assertEqual(self.requests[0].headers["X-Consul-Token"], "secret")

    async def test_missing_key(self) -> None:
        with self.assertRaises(RemoteKeyNotFoundError) as ctx:
            await ConsulKVProvider().fetch_async(self._descriptor("consul", "/missing"))
        self.assertEqual(ctx.exception.status, 404)

    async def test_server_error(self) -> None:
        with self.assertRaises(RemoteFetchError) as ctx:
            await ConsulKVProvider().fetch_async(self._descriptor("consul", "/broken"))
        self.assertEqual(ctx.exception.status, 500)
        self.assertNotIsInstance(ctx.exception, RemoteKeyNotFoundError)

    async def test_connection_failure_is_wrapped(self) -> None:
        descriptor = self._descriptor("consul", "/billing")
        await self.server.close()
        with self.assertRaises(RemoteFetchError) as ctx:
            await ConsulKVProvider(timeout_seconds=2.0).fetch_async(descriptor)
        self.assertIsNone(ctx.exception.status)
        self.assertIsNotNone(ctx.exception.__cause__)

    async def test_http_provider(self) -> None:
        body = await HttpProvider().fetch_async(self._descriptor("http", "docs/billing.yaml"))
        self.assertEqual(body, b"name: billing\n")
        self.assertEqual(self.requests[0].match_info["name"], "billing.yaml")


class _ConfigHandler(BaseHTTPRequestHandler):
    hits = 0

    def do_GET(self) -> None:
        type(self).hits += 1
        body = b'{"port": 9000}'
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:
        return None


class FetchInsideRunningLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        _ConfigHandler.hits = 0
        self.server = ThreadingHTTPServer(("127.0.0.1", 0), _ConfigHandler)
        thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        thread.start()
        self.addCleanup(self.server.server_close)
        self.addCleanup(self.server.shutdown)
        host, port = self.server.server_address[:2]
        self.descriptor = RemoteDescriptor(provider="http", dsn=f"{host}:{port}", key="config.json")

    def test_sync_fetch_from_coroutine(self) -> None:
        async def fetch_in_loop() -> bytes:
            return HttpProvider(timeout_seconds=5.0).fetch(self.descriptor)

        self.assertEqual(asyncio.run(fetch_in_loop()), b'{"port": 9000}')
        self.assertEqual(_ConfigHandler.hits, 1)

    def test_bootstrap_from_coroutine(self) -> None:
        async def bootstrap_in_loop():
            return Bootstrapper(
                environ={},
                policy=RetryPolicy.fixed(attempts=3, delay=0.0),
            ).run(BootstrapOptions(search_dirs=(), dotenv_path=None, remote=self.descriptor))

        context = asyncio.run(bootstrap_in_loop())

        self.assertIsNone(context.error_for(Source.REMOTE))
        self.assertEqual(context.get_int("port"), 9000)
        self.assertEqual(_ConfigHandler.hits, 1)


if __name__ == "__main__":
    unittest.main()
