import logging

from fastmcp import FastMCP

from bidcheck.server import get_context

logger = logging.getLogger(__name__)


def register_cache_tools(mcp: FastMCP) -> None:
    """Register cache inspection tools on the MCP server."""

    @mcp.tool
    async def cache_stats() -> str:
        """Show hit rate, size and memory estimate for each cache.

        Returns:
            One line per cache (validation, schema, template).
        """
        stats = get_context().get_cache_stats()
        lines = ["Cache statistics:\n"]
        for name, s in stats.items():
            lines.append(
                f"  {name}: {s.total_entries} entries, {s.hit_count} hits, "
                f"{s.miss_count} misses ({s.hit_rate:.2f}% hit rate), "
                f"{s.eviction_count} evictions, ~{s.estimated_memory_bytes} bytes"
            )
        return "\n".join(lines)

    @mcp.tool
    async def clear_cache() -> str:
        """Empty every cache and reset its counters.

        Returns:
            Confirmation message.
        """
        get_context().clear_cache()
        return "Cleared validation, schema and template caches."
