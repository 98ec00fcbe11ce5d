"""Exception hierarchy for programmer and configuration errors.

Validation findings are never raised; they are returned as data in
``ValidationResult``. Only setup mistakes and misuse of the template or
schema APIs surface as exceptions.
"""


class BidcheckError(Exception):
    """Base class for all bidcheck errors."""


class CacheConfigError(BidcheckError, ValueError):
    """Invalid cache configuration or cache call argument."""


class SchemaLoadError(BidcheckError):
    """A schema could not be fetched or parsed."""


class UnsupportedSchemaVersionError(SchemaLoadError):
    """No schema source knows the requested version."""


class TemplateError(BidcheckError):
    """Base class for template catalog and generation errors."""


class TemplateNotFoundError(TemplateError, KeyError):
    """The requested template id is not in the catalog."""

    def __init__(self, template_id: str) -> None:
        super().__init__(template_id)
        self.template_id = template_id

    def __str__(self) -> str:
        return f"Template not found: {self.template_id}"


class TemplateGenerationError(TemplateError):
    """A template produced a request that cannot be completed."""


class InvalidFieldPathError(TemplateError, ValueError):
    """A dotted field path is malformed or cannot be applied."""
