from __future__ import annotations

import logging

import confstrap
from confstrap.config.models import LoggingSettings
from confstrap.logging import init_logging
from confstrap.sources.models import Source


def main() -> None:
    init_logging(LoggingSettings(level="INFO"))

    context = confstrap.configure(config_type="yaml", filename="service", search_dirs=["examples", "."])
    context.ensure_sources_succeeded()

    logger = logging.getLogger("smoke")
    logger.info("Config loaded. file_ok=%s remote_ok=%s", context.succeeded(Source.FILE), context.succeeded(Source.REMOTE))
    logger.info("Database host=%s port=%s", confstrap.get_string("db.host"), confstrap.get_int("db.port"))


if __name__ == "__main__":
    main()
