"""Property models for the section components a layout can reference.

Props arrive from AI-generated JSON, so every model ignores unknown keys and
gives optional fields safe defaults. Identifiers (project and experience ids)
are resolved against the portfolio by the component mapper, not here.
"""

from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator


class SectionProps(BaseModel):
    """Base class for section props."""

    title: str = ""

    class Config:
        extra = "ignore"
        populate_by_name = True


class CallToAction(BaseModel):
    """Hero call-to-action link."""

    text: str
    href: str


class HeroProps(SectionProps):
    subtitle: str = ""
    image: Optional[str] = None
    cta: Optional[CallToAction] = None


class CardGridProps(SectionProps):
    columns: int = 3
    items: List[Union[str, dict]] = []

    @field_validator("columns")
    @classmethod
    def _known_columns(cls, value: int) -> int:
        return value if value in (2, 3, 4) else 3


class SkillBadgesProps(SectionProps):
    skills: Optional[List[str]] = None
    style: Literal["compact", "detailed"] = "compact"


class TimelineProps(SectionProps):
    items: Optional[List[Union[str, dict]]] = None


class ContactFormProps(SectionProps):
    show_email: bool = Field(True, alias="showEmail")
    show_linkedin: bool = Field(False, alias="showLinkedIn")
    show_github: bool = Field(False, alias="showGitHub")


class TextBlockProps(SectionProps):
    content: str = ""
    style: Literal["prose", "highlight"] = "prose"


class ImageGalleryProps(SectionProps):
    images: List[str] = []


class CounterStat(BaseModel):
    label: str
    value: float
    suffix: str = ""
    icon: Optional[str] = None


class StatsCounterProps(SectionProps):
    stats: List[CounterStat] = []
    animated: bool = True


class TechLogosProps(SectionProps):
    technologies: Optional[List[str]] = None
    style: Literal["grid", "marquee"] = "grid"
    size: Literal["sm", "md", "lg"] = "md"


class GitHubActivityProps(SectionProps):
    username: Optional[str] = None
    style: Literal["heatmap", "chart"] = "heatmap"


class Stat(BaseModel):
    label: str
    value: str
    description: Optional[str] = None


class StatsProps(SectionProps):
    stats: List[Stat] = []
    columns: int = 3

    @field_validator("columns")
    @classmethod
    def _known_columns(cls, value: int) -> int:
        return value if value in (2, 3, 4) else 3


class Tab(BaseModel):
    label: str
    content: str


class TabsProps(SectionProps):
    tabs: List[Tab] = []
    default_tab: int = Field(0, alias="defaultTab")


class AccordionItem(BaseModel):
    question: str
    answer: str


class AccordionProps(SectionProps):
    items: List[AccordionItem] = []
    default_open: Optional[int] = Field(None, alias="defaultOpen")


class Testimonial(BaseModel):
    quote: str
    author: str
    role: Optional[str] = None
    company: Optional[str] = None


class TestimonialsProps(SectionProps):
    items: List[Testimonial] = []


class Feature(BaseModel):
    title: str
    description: str = ""
    icon: Optional[str] = None


class FeatureListProps(SectionProps):
    features: List[Feature] = []
    columns: int = 2

    @field_validator("columns")
    @classmethod
    def _known_columns(cls, value: int) -> int:
        return value if value in (2, 3) else 2


class AlertProps(SectionProps):
    message: str = ""
    variant: str = "info"
    dismissible: bool = False

    @field_validator("variant")
    @classmethod
    def _known_variant(cls, value: str) -> str:
        return value if value in ("info", "success", "warning", "error") else "info"
