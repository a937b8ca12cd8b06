"""Pydantic models for generated page layouts."""

from enum import Enum
from typing import Any, Dict, List
from pydantic import BaseModel


class LayoutKind(str, Enum):
    """Supported page arrangements."""

    SINGLE_COLUMN = "single-column"
    TWO_COLUMN = "two-column"
    HERO_FOCUSED = "hero-focused"


class LayoutTheme(BaseModel):
    """Theme hint attached to a layout."""

    accent: str = "blue"


class Section(BaseModel):
    """A single typed page section with its property bag."""

    type: str
    props: Dict[str, Any] = {}


class GeneratedLayout(BaseModel):
    """Layout description produced by the AI backend or the fallbacks."""

    layout: LayoutKind
    theme: LayoutTheme = LayoutTheme()
    sections: List[Section]

    class Config:
        use_enum_values = True
