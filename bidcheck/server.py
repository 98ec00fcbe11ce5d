import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastmcp import FastMCP

from bidcheck.context import ValidatorContext

logger = logging.getLogger(__name__)

_context: ValidatorContext | None = None


def get_context() -> ValidatorContext:
    """Get the current ValidatorContext. Raises if not initialized."""
    if _context is None:
        raise RuntimeError("Validator not initialized. Server lifespan has not started.")
    return _context


def _reset_context() -> None:
    """Clear the module-level context reference. Used in tests."""
    global _context  # noqa: PLW0603
    _context = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Build caches and services for the server lifecycle."""
    global _context  # noqa: PLW0603
    from bidcheck.config import get_settings

    _context = ValidatorContext.from_settings(get_settings())
    logger.info("Validator context initialized")

    try:
        yield {"context": _context}
    finally:
        _context.destroy()
        _context = None
        logger.info("Validator context destroyed")


mcp = FastMCP("bidcheck", lifespan=app_lifespan)


LOG_FILE_NAME = "bidcheck.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_level: str, data_dir: Path) -> Path:
    """Send bidcheck logs to stderr and to a rotating file under *data_dir*.

    Stdout is left alone because the stdio transport carries MCP frames
    on it. Calling this again adds no duplicate handlers.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).
            Unknown names fall back to INFO.
        data_dir: Base data directory; the log file is
            ``data_dir/logs/bidcheck.log``.

    Returns:
        Path of the log file.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # Exact type check: RotatingFileHandler is a StreamHandler subclass
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(level)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    log_file = data_dir / "logs" / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)
    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    return log_file


def initialize() -> FastMCP:
    """Set up directories, logging, and register tools. Returns the MCP server."""
    from bidcheck.config import get_settings

    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    log_file = setup_logging(settings.log_level, settings.data_dir)

    from bidcheck.tools.cache import register_cache_tools
    from bidcheck.tools.templates import register_template_tools
    from bidcheck.tools.validation import register_validation_tools

    register_validation_tools(mcp)
    register_cache_tools(mcp)
    register_template_tools(mcp)

    logger.info(
        "Bidcheck MCP server initialized (OpenRTB %s, logging to %s)",
        settings.schema_version,
        log_file,
    )
    return mcp
