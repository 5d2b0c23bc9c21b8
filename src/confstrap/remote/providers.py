from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Dict, Mapping, Optional

import aiohttp

from confstrap.config.models import RemoteDescriptor
from confstrap.errors import RemoteFetchError, RemoteKeyNotFoundError
from confstrap.remote.interfaces import RemoteProvider

logger = logging.getLogger(__name__)

CONSUL_TOKEN_ENV_KEY = "CONSUL_HTTP_TOKEN"

_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ConnectionResetError,
)


def normalize_base_url(dsn: str) -> str:
    base = dsn.strip()
    if "://" not in base:
        base = f"http://{base}"
    return base.rstrip("/")


def _run_blocking(factory: Callable[[], Coroutine[Any, Any, bytes]]) -> bytes:
    """Run one fetch coroutine to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(factory())
    # asyncio.run cannot nest inside a running loop; use a fresh loop on a worker thread.
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="confstrap-fetch") as pool:
        return pool.submit(lambda: asyncio.run(factory())).result()


async def _read_body(session: aiohttp.ClientSession, url: str, *, headers: Optional[Mapping[str, str]] = None) -> bytes:
    try:
        async with session.get(url, headers=headers) as response:
            if response.status == 404:
                raise RemoteKeyNotFoundError(f"Remote key not found. url={url}", status=404)
            if response.status != 200:
                raise RemoteFetchError(
                    f"Remote fetch failed with status {response.status}. url={url}",
                    status=response.status,
                )
            return await response.read()
    except RemoteFetchError:
        raise
    except _TRANSPORT_ERRORS as exc:
        raise RemoteFetchError(f"Remote fetch failed. url={url} error={type(exc).__name__}: {exc}") from exc
    except Exception as exc:
        logger.exception("Unexpected remote fetch error. url=%s", url)
        raise RemoteFetchError(f"Remote fetch failed. url={url}") from exc


@dataclass(frozen=True, slots=True)
class ConsulKVProvider:
    """Reads a raw value from the Consul KV HTTP API (`GET /v1/kv/<key>?raw`)."""

    timeout_seconds: float = 10.0
    token: Optional[str] = None

    def build_url(self, descriptor: RemoteDescriptor) -> str:
        key = descriptor.key.strip("/")
        return f"{normalize_base_url(descriptor.dsn)}/v1/kv/{key}?raw"

    def fetch(self, descriptor: RemoteDescriptor) -> bytes:
        return _run_blocking(lambda: self.fetch_async(descriptor))

    async def fetch_async(self, descriptor: RemoteDescriptor) -> bytes:
        url = self.build_url(descriptor)
        logger.debug("Fetching remote configuration. provider=%s url=%s", descriptor.provider, url)
        headers = {"X-Consul-Token": self.token} if self.token else None
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await _read_body(session, url, headers=headers)


@dataclass(frozen=True, slots=True)
class HttpProvider:
    """Reads a configuration document from `GET <dsn>/<key>`."""

    timeout_seconds: float = 10.0

    def build_url(self, descriptor: RemoteDescriptor) -> str:
        key = descriptor.key.lstrip("/")
        return f"{normalize_base_url(descriptor.dsn)}/{key}"

    def fetch(self, descriptor: RemoteDescriptor) -> bytes:
        return _run_blocking(lambda: self.fetch_async(descriptor))

    async def fetch_async(self, descriptor: RemoteDescriptor) -> bytes:
        url = self.build_url(descriptor)
        logger.debug("Fetching remote configuration. provider=%s url=%s", descriptor.provider, url)
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await _read_body(session, url)


def default_providers(environ: Optional[Mapping[str, str]] = None) -> Dict[str, RemoteProvider]:
    env = environ if environ is not None else os.environ
    return {
        "consul": ConsulKVProvider(token=env.get(CONSUL_TOKEN_ENV_KEY) or None),
        "http": HttpProvider(),
    }
