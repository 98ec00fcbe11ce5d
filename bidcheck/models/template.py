from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bidcheck.models.enums import AdType


class SampleTemplate(BaseModel):
    """A named, versioned skeleton bid request."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    ad_type: AdType
    request: dict[str, Any]
    required_fields: list[str] = ["id", "imp", "at"]
    tags: list[str] = []
    version: str = "1.0.0"


class GeneratedRequest(BaseModel):
    template_id: str
    template_version: str
    request: dict[str, Any]
    cache_key: str
    from_cache: bool = False
    generated_at: datetime
