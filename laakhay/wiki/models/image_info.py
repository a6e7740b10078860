"""Image info data model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ImageInfo(BaseModel):
    """One revision of a file, as returned by ``prop=imageinfo``."""

    canonical_title: str | None = Field(default=None, alias="canonicaltitle")
    url: str | None = None
    size: int = Field(default=0, ge=0)
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    sha1: str | None = None
    mime: str | None = None
    user: str | None = None
    timestamp: datetime | None = None
    comment: str | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @property
    def is_image(self) -> bool:
        return bool(self.mime and self.mime.startswith("image/"))
