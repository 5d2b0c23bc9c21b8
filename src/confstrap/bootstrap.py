from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, NoReturn, Optional

from confstrap.config.models import BootstrapOptions
from confstrap.config.options import resolve_dotenv_path, resolve_options
from confstrap.errors import (
    AllSourcesFailedError,
    MandatoryKeyMissingError,
    RequiredSourceFailedError,
    SourceUnavailableError,
)
from confstrap.remote.interfaces import RemoteProvider
from confstrap.remote.providers import default_providers
from confstrap.remote.retry import RetryAttempt, RetryPolicy
from confstrap.sources.environment import probe_dotenv
from confstrap.sources.files import probe_file
from confstrap.sources.models import ProbeResult, Source
from confstrap.sources.remote import probe_remote
from confstrap.store.merge import LOAD_ORDER, MergeEngine
from confstrap.store.store import ConfigStore

logger = logging.getLogger(__name__)

FATAL_EXIT_CODE = 1


def _fatal(message: str, *args: Any) -> NoReturn:
    logger.critical(message, *args)
    sys.exit(FATAL_EXIT_CODE)


@dataclass(frozen=True, slots=True)
class ConfigContext:
    """
    Result of one bootstrap run: the finalized options, the resolved store and one
    error slot per source.

    A slot holds None iff that source yielded usable configuration. The context is
    read-only; bootstrapping again produces a new context rather than mutating this one.
    """

    options: BootstrapOptions
    store: ConfigStore
    errors: Mapping[Source, Optional[BaseException]]
    locations: Mapping[Source, Optional[str]] = field(default_factory=dict)

    @classmethod
    def uninitialized(cls) -> "ConfigContext":
        not_loaded = {
            source: SourceUnavailableError(source, "Configuration has not been bootstrapped.") for source in Source
        }
        return cls(
            options=BootstrapOptions(),
            store=ConfigStore.empty(),
            errors=MappingProxyType(not_loaded),
        )

    # Lookups

    def get(self, key: str) -> Any:
        return self.store.get(key)

    def get_string(self, key: str) -> str:
        return self.store.get_string(key)

    def get_int(self, key: str) -> int:
        return self.store.get_int(key)

    def get_float(self, key: str) -> float:
        return self.store.get_float(key)

    def get_bool(self, key: str) -> bool:
        return self.store.get_bool(key)

    def get_string_list(self, key: str) -> List[str]:
        return self.store.get_string_list(key)

    # Source verdicts

    def error_for(self, source: Source) -> Optional[BaseException]:
        return self.errors.get(Source(source))

    def succeeded(self, source: Source) -> bool:
        return self.error_for(source) is None

    def verdict(self) -> Dict[Source, bool]:
        return {source: self.succeeded(source) for source in Source}

    def readiness_report(self) -> Dict[str, Dict[str, Any]]:
        report: Dict[str, Dict[str, Any]] = {}
        for source in Source:
            error = self.error_for(source)
            report[source.value] = {
                "ok": error is None,
                "location": self.locations.get(source),
                "error_type": type(error).__name__ if error is not None else None,
                "error": str(error) if error is not None else None,
            }
        return report

    # Requirement checks

    def missing_keys(self, *keys: str) -> List[str]:
        return [key for key in keys if self.store.get(key) is None]

    def check_loaded(self, *keys: str) -> None:
        missing = self.missing_keys(*keys)
        if missing:
            raise MandatoryKeyMissingError(missing)

    def ensure_loaded(self, *keys: str) -> None:
        """Terminate the process when any of `keys` is not defined."""
        missing = self.missing_keys(*keys)
        for key in missing:
            logger.critical("Configuration key is not defined. key=%s", key)
        if missing:
            _fatal("Required configuration is missing. keys=%s", ", ".join(missing))

    def check_sources(self, *sources: Source) -> None:
        """
        Raise unless the required sources succeeded.

        With no sources named, at least one of the three must have succeeded.
        """
        if not sources:
            if all(self.errors.get(source) is not None for source in Source):
                raise AllSourcesFailedError(self.errors)
            return
        for source in sources:
            error = self.error_for(source)
            if error is not None:
                raise RequiredSourceFailedError(Source(source), error)

    def ensure_sources_succeeded(self, *sources: Source) -> None:
        """Terminate the process unless the required sources succeeded."""
        try:
            self.check_sources(*sources)
        except AllSourcesFailedError as exc:
            for source, error in exc.errors.items():
                logger.critical("Configuration source failed. source=%s error=%s", source.value, error)
            _fatal("No configuration loaded from any possible source.")
        except RequiredSourceFailedError as exc:
            _fatal(
                "Required configuration source failed. source=%s error_type=%s error=%s",
                exc.source.value,
                type(exc.error).__name__,
                exc.error,
            )


class Bootstrapper:
    """
    Runs the bootstrap sequence: `.env` probe, option finalization, remote probe,
    file probe.

    Probe failures are recorded on the returned context and never raised. The run is
    synchronous; only the remote retry policy sleeps. Bootstrapper instances must not
    be run concurrently against the same environment mapping.
    """

    def __init__(
        self,
        *,
        environ: Optional[MutableMapping[str, str]] = None,
        providers: Optional[Mapping[str, RemoteProvider]] = None,
        policy: Optional[RetryPolicy] = None,
        on_retry: Optional[Callable[[RetryAttempt], None]] = None,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._providers = providers
        self._policy = policy
        self._on_retry = on_retry

    def run(self, options: Optional[BootstrapOptions] = None) -> ConfigContext:
        base = options if options is not None else BootstrapOptions()

        results: Dict[Source, ProbeResult] = {}
        results[Source.ENV] = probe_dotenv(resolve_dotenv_path(base, self._environ), self._environ)
        self._log_result(results[Source.ENV])

        resolved = resolve_options(base, self._environ)
        logger.debug(
            "Bootstrap options resolved. type=%s filename=%s env_prefix=%s search_dirs=%s remote=%s",
            resolved.config_type,
            resolved.filename,
            resolved.env_prefix or "-",
            list(resolved.search_dirs),
            resolved.remote.provider if resolved.remote else "-",
        )

        engine = MergeEngine()
        for source in LOAD_ORDER:
            result = self._probe(source, resolved)
            results[source] = result
            self._log_result(result)
            if result.ok and result.data is not None:
                engine.load(source, result.data)

        store = ConfigStore.from_engine(engine, env_prefix=resolved.env_prefix, environ=self._environ)
        context = ConfigContext(
            options=resolved,
            store=store,
            errors=MappingProxyType({source: results[source].error for source in Source}),
            locations=MappingProxyType({source: results[source].location for source in Source}),
        )
        logger.info(
            "Configuration bootstrap complete. env=%s file=%s remote=%s keys=%s",
            _status(context, Source.ENV),
            _status(context, Source.FILE),
            _status(context, Source.REMOTE),
            len(store.all_keys()),
        )
        return context

    def _probe(self, source: Source, options: BootstrapOptions) -> ProbeResult:
        if source is Source.FILE:
            return probe_file(options.filename, options.config_type, options.search_dirs)
        if source is Source.REMOTE:
            providers = self._providers if self._providers is not None else default_providers(self._environ)
            return probe_remote(
                options.remote,
                options.config_type,
                providers=providers,
                policy=self._policy if self._policy is not None else options.retry,
                on_retry=self._on_retry,
            )
        raise ValueError(f"Source is not loaded into the store: {source}")

    @staticmethod
    def _log_result(result: ProbeResult) -> None:
        if result.ok:
            logger.info(
                "Configuration source loaded. source=%s location=%s",
                result.source.value,
                result.location,
            )
        elif isinstance(result.error, SourceUnavailableError):
            logger.info(
                "Configuration source unavailable. source=%s reason=%s",
                result.source.value,
                result.error,
            )
        else:
            logger.warning(
                "Configuration source failed. source=%s location=%s error_type=%s error=%s",
                result.source.value,
                result.location,
                type(result.error).__name__,
                result.error,
            )


def _status(context: ConfigContext, source: Source) -> str:
    return "ok" if context.succeeded(source) else "error"


__all__ = [
    "Bootstrapper",
    "ConfigContext",
    "FATAL_EXIT_CODE",
]
