"""Metadata endpoint response models.

Pydantic models of the JSON document returned by the metadata extraction
endpoint. Unknown fields are ignored so additions on the endpoint side do
not break validation.

Example payload::

    {
        "status": "success",
        "data": {
            "title": "Example Domain",
            "description": "...",
            "image": {"url": "https://example.com/og.png"},
            "logo": {"url": "https://example.com/favicon.ico"}
        }
    }
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MicrolinkAsset(BaseModel):
    """An image reference (``image`` or ``logo``)."""

    model_config = ConfigDict(extra="ignore")

    url: str | None = Field(default=None, description="Asset URL")


class MicrolinkData(BaseModel):
    """Extracted page metadata."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, description="Page title")
    description: str | None = Field(default=None, description="Page description")
    url: str | None = Field(default=None, description="Canonical page URL")
    image: MicrolinkAsset | None = Field(default=None, description="Representative image")
    logo: MicrolinkAsset | None = Field(default=None, description="Site logo or favicon")

    @property
    def image_url(self) -> str:
        return self.image.url if self.image and self.image.url else ""

    @property
    def logo_url(self) -> str:
        return self.logo.url if self.logo and self.logo.url else ""


class MicrolinkResponse(BaseModel):
    """Top-level endpoint response."""

    model_config = ConfigDict(extra="ignore")

    status: str = Field(..., description='"success" when metadata was extracted')
    data: MicrolinkData | None = Field(default=None, description="Extracted metadata")
    message: str | None = Field(default=None, description="Failure message")
