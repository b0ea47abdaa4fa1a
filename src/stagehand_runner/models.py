"""Extraction schemas and task descriptions shared across the runner."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class Article(BaseModel):
    """A single article listed on a news page."""

    title: str = Field(description="The article title")
    url: str = Field(description="The article URL")


class ArticleList(BaseModel):
    """Top articles extracted from a listing page."""

    articles: list[Article] = Field(default_factory=list, description="List of articles")


class PageSummary(BaseModel):
    """Main heading and description of a page."""

    heading: str = Field(description="The main heading of the page")
    description: str = Field(description="The description or summary text")


class TaskDefinition(BaseModel):
    """Inputs for the template extract-and-screenshot flow."""

    url: str = "https://example.com"
    instruction: str = "extract the main heading and description from the page"
    screenshot_path: Optional[Path] = Field(default=Path("tmp/result.png"))
    error_screenshot_path: Optional[Path] = Field(default=Path("tmp/error.png"))
    settle_timeout: float = Field(default=30.0, description="Seconds to wait for page load")
