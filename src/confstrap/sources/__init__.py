"""Source probes: `.env` file, configuration file and remote key/value store."""

from confstrap.sources.environment import probe_dotenv
from confstrap.sources.files import find_config_file, probe_file
from confstrap.sources.formats import parse_config, supported_types
from confstrap.sources.models import ProbeResult, Source
from confstrap.sources.remote import probe_remote

__all__ = [
    "ProbeResult",
    "Source",
    "find_config_file",
    "parse_config",
    "probe_dotenv",
    "probe_file",
    "probe_remote",
    "supported_types",
]
