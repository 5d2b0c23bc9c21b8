from __future__ import annotations

from typing import Protocol

from confstrap.config.models import RemoteDescriptor


class RemoteProvider(Protocol):
    def fetch(self, descriptor: RemoteDescriptor) -> bytes:
        """
        Return the raw configuration blob stored under `descriptor.key`.

        Implementations make exactly one attempt; retrying is the caller's concern.
        Raise `RemoteFetchError` on failure.
        """
