from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from confstrap.sources.models import Source


class ConfstrapError(Exception):
    """Base class for all errors raised or recorded by confstrap."""


class SourceError(ConfstrapError):
    """An error attributed to one configuration source."""

    def __init__(self, source: "Source", message: str) -> None:
        super().__init__(message)
        self.source = source


class SourceUnavailableError(SourceError):
    """The source is absent or not configured. Informational, never fatal by itself."""


class SourceFailedError(SourceError):
    """The source exists but could not be read or parsed."""


class DotenvNotFoundError(SourceUnavailableError):
    pass


class DotenvParseError(SourceFailedError):
    def __init__(self, source: "Source", message: str, *, lines: Sequence[int] = ()) -> None:
        super().__init__(source, message)
        self.lines = tuple(lines)


class ConfigFileNotFoundError(SourceUnavailableError):
    def __init__(self, source: "Source", message: str, *, searched: Sequence[str] = ()) -> None:
        super().__init__(source, message)
        self.searched = tuple(searched)


class ConfigParseError(SourceFailedError):
    pass


class UnsupportedConfigFormatError(SourceFailedError):
    pass


class RemoteNotConfiguredError(SourceUnavailableError):
    pass


class UnsupportedRemoteProviderError(SourceFailedError):
    pass


class RemoteFetchError(ConfstrapError):
    """Raised by remote providers when a key/value fetch does not yield content."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class RemoteKeyNotFoundError(RemoteFetchError):
    pass


class MandatoryKeyMissingError(ConfstrapError):
    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = tuple(keys)
        super().__init__(f"Configuration keys are not defined. keys={', '.join(self.keys)}")


class AllSourcesFailedError(ConfstrapError):
    def __init__(self, errors: Mapping["Source", Optional[BaseException]]) -> None:
        self.errors = dict(errors)
        super().__init__("No configuration loaded from any possible source.")


class RequiredSourceFailedError(ConfstrapError):
    def __init__(self, source: "Source", error: BaseException) -> None:
        self.source = source
        self.error = error
        super().__init__(f"Required configuration source failed. source={source.value} error={error}")
