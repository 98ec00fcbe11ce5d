"""MCP tools for browsing templates and generating sample bid requests."""

import json
import logging

from fastmcp import FastMCP

from bidcheck.models.enums import AdType
from bidcheck.server import get_context
from bidcheck.tools.error_messages import safe_tool_wrapper

logger = logging.getLogger(__name__)


async def _generate(template_id: str, overrides_json: str | None) -> str:
    overrides = json.loads(overrides_json) if overrides_json else None
    if overrides is not None and not isinstance(overrides, dict):
        return 'Overrides must be a JSON object of field paths, e.g. {"imp.0.banner.w": 728}.'

    generated = get_context().templates.generate_from_template(template_id, overrides)
    header = f"Generated from template '{generated.template_id}' (v{generated.template_version})"
    if generated.from_cache:
        header += " [cached]"
    return f"{header}:\n{json.dumps(generated.request, indent=2)}"


def register_template_tools(mcp: FastMCP) -> None:
    """Register template tools on the MCP server."""

    @mcp.tool
    async def list_templates(ad_type: str | None = None) -> str:
        """List the built-in bid request templates.

        Args:
            ad_type: Optional filter: display, video, native or audio.

        Returns:
            One line per template with its id, ad type and description.
        """
        if ad_type is not None and ad_type not in {t.value for t in AdType}:
            choices = ", ".join(t.value for t in AdType)
            return f"Unknown ad type '{ad_type}'. Use one of: {choices}."

        templates = get_context().templates.list_templates(ad_type=ad_type)
        if not templates:
            return f"No templates for ad type '{ad_type}'."

        lines = [f"{len(templates)} template(s):\n"]
        for t in templates:
            lines.append(f"  - {t.id} ({t.ad_type.value}): {t.name}. {t.description}")
        return "\n".join(lines)

    @mcp.tool
    async def generate_from_template(template_id: str, overrides_json: str | None = None) -> str:
        """Generate a bid request from a template, optionally overriding fields.

        Args:
            template_id: Template id from list_templates.
            overrides_json: JSON object mapping dotted paths to values,
                e.g. {"imp.0.banner.w": 728, "site.domain": "example.com"}.

        Returns:
            The generated bid request as formatted JSON.
        """
        return await safe_tool_wrapper(
            _generate, template_id, overrides_json, context={"template": f"'{template_id}'"}
        )
