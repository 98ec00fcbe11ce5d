import logging

from bidcheck.config import get_settings
from bidcheck.server import initialize

logger = logging.getLogger("bidcheck")


def main() -> None:
    """Run the validator over the transport named by ``MCP_TRANSPORT``."""
    app = initialize()
    settings = get_settings()

    if settings.mcp_transport == "streamable-http":
        logger.info("Serving on http://%s:%d", settings.mcp_host, settings.mcp_port)
        app.run(transport="streamable-http", host=settings.mcp_host, port=settings.mcp_port)
    else:
        app.run(transport="stdio")


if __name__ == "__main__":  # pragma: no cover
    main()
