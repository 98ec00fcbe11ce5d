"""User-friendly error messages and safe tool wrapper."""

import json
import logging

from bidcheck.errors import (
    InvalidFieldPathError,
    SchemaLoadError,
    TemplateGenerationError,
    TemplateNotFoundError,
    UnsupportedSchemaVersionError,
)

logger = logging.getLogger(__name__)


def get_user_message(error: Exception, context: dict | None = None) -> str:
    """Map an exception to a user-friendly message.

    Args:
        error: The exception to translate.
        context: Optional dict with extra info (e.g. {"template": "video-preroll"}).

    Returns:
        A human-readable error message.
    """
    template = (context or {}).get("template", "the template")

    if isinstance(error, TemplateNotFoundError):
        return (
            f"Template '{error.template_id}' does not exist. "
            "Use list_templates to see the available templates."
        )
    if isinstance(error, InvalidFieldPathError):
        return f"Could not apply an override to {template}: {error}"
    if isinstance(error, TemplateGenerationError):
        return f"Could not generate a request from {template}: {error}"
    if isinstance(error, json.JSONDecodeError):
        return f"The input is not valid JSON: {error.msg} (line {error.lineno}, column {error.colno})."
    if isinstance(error, UnsupportedSchemaVersionError):
        return f"That OpenRTB version is not supported. {error}"
    if isinstance(error, SchemaLoadError):
        return "The OpenRTB schema could not be loaded. Please check the schema files and try again."
    if isinstance(error, TimeoutError):
        return "The operation timed out. Please try again with a smaller input."
    return "Something went wrong. Please try again or contact support."


async def safe_tool_wrapper(
    func,  # type: ignore[no-untyped-def]
    *args: object,
    context: dict | None = None,
    **kwargs: object,
) -> str:
    """Call an async function, catching errors and returning friendly messages.

    Args:
        func: Async callable to invoke.
        *args: Positional arguments for *func*.
        context: Optional context dict for error messages.
        **kwargs: Keyword arguments for *func*.

    Returns:
        The function's return value on success, or a user-friendly error string.
    """
    try:
        return await func(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Tool error in %s", func.__name__)
        return get_user_message(exc, context)
