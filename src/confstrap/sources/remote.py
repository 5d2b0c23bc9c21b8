from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Union

from confstrap.config.models import RemoteDescriptor, RetrySettings
from confstrap.errors import RemoteNotConfiguredError, SourceError, UnsupportedRemoteProviderError
from confstrap.remote.interfaces import RemoteProvider
from confstrap.remote.retry import RetryAttempt, RetryPolicy
from confstrap.sources.formats import parse_config
from confstrap.sources.models import ProbeResult, Source

logger = logging.getLogger(__name__)


def probe_remote(
    descriptor: Optional[RemoteDescriptor],
    config_type: str,
    *,
    providers: Mapping[str, RemoteProvider],
    policy: Union[RetryPolicy, RetrySettings],
    on_retry: Optional[Callable[[RetryAttempt], None]] = None,
) -> ProbeResult:
    """
    Fetch configuration from a remote key/value provider under a bounded retry policy.

    Without a complete descriptor nothing is contacted and a "not configured" error is
    recorded. `policy` may be given as `RetrySettings`, in which case the policy is
    only built once there is something to fetch. Once retries are exhausted the
    provider's last error is recorded as is.
    """
    if descriptor is None or not descriptor.is_complete:
        return ProbeResult(
            source=Source.REMOTE,
            error=RemoteNotConfiguredError(
                Source.REMOTE,
                "Remote source not configured; provider, dsn and key are all required.",
            ),
        )

    location = f"{descriptor.provider}://{descriptor.dsn}/{descriptor.key.lstrip('/')}"
    provider = providers.get(descriptor.provider.lower())
    if provider is None:
        return ProbeResult(
            source=Source.REMOTE,
            error=UnsupportedRemoteProviderError(
                Source.REMOTE,
                f"Unsupported remote provider. provider={descriptor.provider} supported={', '.join(sorted(providers))}",
            ),
            location=location,
        )

    if isinstance(policy, RetrySettings):
        policy = RetryPolicy.from_settings(policy)

    try:
        raw = policy.run(lambda: provider.fetch(descriptor), on_retry=on_retry, description=location)
    except Exception as exc:
        return ProbeResult(source=Source.REMOTE, error=exc, location=location)

    try:
        data = parse_config(raw, config_type, source=Source.REMOTE, location=location)
    except SourceError as exc:
        return ProbeResult(source=Source.REMOTE, error=exc, location=location)

    logger.debug("Fetched remote configuration. location=%s keys=%s", location, len(data))
    return ProbeResult(source=Source.REMOTE, data=data, location=location)
