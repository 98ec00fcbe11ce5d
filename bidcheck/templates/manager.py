import copy
import logging
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from bidcheck.cache.specialized import TemplateCache
from bidcheck.errors import TemplateGenerationError, TemplateNotFoundError
from bidcheck.models.enums import AdType
from bidcheck.models.template import GeneratedRequest, SampleTemplate
from bidcheck.templates.catalog import default_templates
from bidcheck.templates.paths import set_path

logger = logging.getLogger(__name__)


class TemplateManager:
    """Read-only template catalog that generates bid requests from templates.

    Generated requests are cached by ``(template id, overrides)``. Every
    returned request is a deep copy, so callers may mutate it freely.
    """

    def __init__(
        self, cache: TemplateCache, templates: Iterable[SampleTemplate] | None = None
    ) -> None:
        self.cache = cache
        catalog = default_templates() if templates is None else templates
        self._templates: dict[str, SampleTemplate] = {t.id: t for t in catalog}

    def get_template(self, template_id: str) -> SampleTemplate:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id) from None

    def list_templates(
        self, ad_type: AdType | str | None = None, tag: str | None = None
    ) -> list[SampleTemplate]:
        templates = list(self._templates.values())
        if ad_type is not None:
            templates = [t for t in templates if t.ad_type == ad_type]
        if tag is not None:
            templates = [t for t in templates if tag in t.tags]
        return templates

    def generate_from_template(
        self, template_id: str, overrides: dict[str, Any] | None = None
    ) -> GeneratedRequest:
        """Build a bid request from a template.

        Args:
            template_id: Catalog id, e.g. ``"basic-display-banner"``.
            overrides: Dotted path to value, e.g. ``{"imp.0.banner.w": 728}``.

        Raises:
            TemplateNotFoundError: Unknown template id.
            InvalidFieldPathError: An override path cannot be applied.
            TemplateGenerationError: The result has no impressions.
        """
        template = self.get_template(template_id)
        key = self.cache.make_key(template_id, overrides)

        cached = self.cache.get(key)
        if cached is not None:
            return cached.model_copy(deep=True, update={"from_cache": True})

        request = copy.deepcopy(template.request)
        for path, value in (overrides or {}).items():
            set_path(request, path, copy.deepcopy(value))
        self._ensure_required_fields(request)

        generated = GeneratedRequest(
            template_id=template.id,
            template_version=template.version,
            request=request,
            cache_key=key,
            generated_at=datetime.now(timezone.utc),
        )
        self.cache.set(key, generated.model_copy(deep=True))
        logger.debug("Generated request from template '%s'", template_id)
        return generated

    @staticmethod
    def _ensure_required_fields(request: dict[str, Any]) -> None:
        if not request.get("id"):
            request["id"] = f"req-{int(time.time() * 1000)}"

        imps = request.get("imp")
        if not isinstance(imps, list) or not imps:
            raise TemplateGenerationError("Request must have at least one impression")

        if request.get("at") is None:
            request["at"] = 1

        for index, imp in enumerate(imps):
            if isinstance(imp, dict) and not imp.get("id"):
                imp["id"] = f"imp-{index + 1}"
