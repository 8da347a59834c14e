from typing import Literal, Optional

from pydantic import BaseModel, Field, HttpUrl

from app.models.normalizer_config import NormalizerConfig

RenderMode = Literal["http", "browser"]


class NormalizeRequest(BaseModel):
    html: str = Field(description="Raw HTML to normalise.")
    base_url: Optional[HttpUrl] = Field(
        default=None,
        description="Page URL used to resolve relative image sources.",
    )
    config: Optional[NormalizerConfig] = Field(
        default=None,
        description=(
            "Override the selector lists or semantic tags.  Omitted fields keep "
            "their defaults."
        ),
    )
