import logging
import sys

import structlog


# Shared by stdlib records: `extra=` fields end up as top-level keys
_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.stdlib.ExtraAdder(),
]


def build_formatter(fmt: str = "text") -> structlog.stdlib.ProcessorFormatter:
    """One JSON object per line for `json`, key=value console lines otherwise."""
    if fmt == "json":
        processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str, ensure_ascii=False),
        ]
    else:
        processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=False),
        ]
    return structlog.stdlib.ProcessorFormatter(processors=processors, foreign_pre_chain=_PRE_CHAIN)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure the root logger. Safe to call more than once."""
    structlog.configure(
        processors=_PRE_CHAIN[:-1] + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(fmt))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # SQLAlchemy echoes through its own logger; keep it quiet unless asked
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
