"""Helper functions for Jinja2 templates."""

import json
import re
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional
from jinja2 import Environment
from markupsafe import Markup


# Technology name -> Simple Icons slug (https://simpleicons.org/)
TECH_ICON_SLUGS: Dict[str, str] = {
    "Python": "python",
    "JavaScript": "javascript",
    "TypeScript": "typescript",
    "SQL": "postgresql",
    "Go": "go",
    "Rust": "rust",
    "Java": "openjdk",
    "React": "react",
    "Vue": "vuedotjs",
    "Angular": "angular",
    "Svelte": "svelte",
    "Next.js": "nextdotjs",
    "Tailwind": "tailwindcss",
    "Tailwind CSS": "tailwindcss",
    "NestJS": "nestjs",
    "Express": "express",
    "FastAPI": "fastapi",
    "Django": "django",
    "Flask": "flask",
    "Node": "nodedotjs",
    "Node.js": "nodedotjs",
    "PostgreSQL": "postgresql",
    "MySQL": "mysql",
    "MongoDB": "mongodb",
    "Redis": "redis",
    "SQLite": "sqlite",
    "Docker": "docker",
    "Kubernetes": "kubernetes",
    "Terraform": "terraform",
    "AWS": "amazonaws",
    "GCP": "googlecloud",
    "Azure": "microsoftazure",
    "Cloudflare": "cloudflare",
    "LangChain": "langchain",
    "OpenAI": "openai",
    "PyTorch": "pytorch",
    "TensorFlow": "tensorflow",
    "Hugging Face": "huggingface",
    "Git": "git",
    "GitHub": "github",
    "GitLab": "gitlab",
    "VSCode": "visualstudiocode",
    "VS Code": "visualstudiocode",
    "Figma": "figma",
    "Electron": "electron",
    "React Native": "react",
    "Flutter": "flutter",
    "RAG": "openai",
    "Vector Databases": "pinecone",
    "Real-time Processing": "apachekafka",
}

# Upper bounds of heatmap levels 0-3; anything above is level 4
HEATMAP_THRESHOLDS = (0, 2, 5, 10)


def tech_icon_slug(tech: str) -> Optional[str]:
    """Simple Icons slug for a technology; None renders a text badge instead."""
    return TECH_ICON_SLUGS.get(tech)


def heatmap_level(count: int) -> int:
    """Bucket a daily contribution count into levels 0-4."""
    for level, upper in enumerate(HEATMAP_THRESHOLDS):
        if count <= upper:
            return level
    return len(HEATMAP_THRESHOLDS)


def heatmap_weeks(contributions: Iterable[Any], today: date, weeks: int = 52) -> List[List[Dict[str, Any]]]:
    """
    Lay out the last ``weeks`` weeks as columns of Sunday-first days.

    Args:
        contributions: Objects with ``date`` (YYYY-MM-DD) and ``count``
        today: Last day of the range; its column stops at today
        weeks: Number of full weeks to cover

    Returns:
        List of weeks, each a list of {"date", "count", "level"} dicts
    """
    counts = {c.date: c.count for c in contributions}
    start = today - timedelta(days=weeks * 7 - 1)
    # date.weekday() is Monday=0; shift back to the preceding Sunday
    start -= timedelta(days=(start.weekday() + 1) % 7)

    grid: List[List[Dict[str, Any]]] = []
    current = start
    while current <= today:
        if current.weekday() == 6:
            grid.append([])
        key = current.isoformat()
        count = counts.get(key, 0)
        grid[-1].append({"date": key, "count": count, "level": heatmap_level(count)})
        current += timedelta(days=1)
    return grid


def format_number(value: Any) -> str:
    """Render whole floats without a trailing .0"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_json_ld(data: Any) -> Markup:
    """Serialize structured data for a <script type="application/ld+json"> block."""
    raw = json.dumps(data, ensure_ascii=False, indent=2)
    return Markup(raw.replace("</", "<\\/"))


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", str(text).lower()).strip("-")


def register_jinja_filters(env: Environment) -> None:
    """
    Register helper functions as Jinja2 filters.

    Args:
        env: Jinja2 Environment instance
    """
    env.filters["tech_icon_slug"] = tech_icon_slug
    env.filters["heatmap_level"] = heatmap_level
    env.filters["format_number"] = format_number
    env.filters["to_json_ld"] = to_json_ld
    env.filters["slugify"] = slugify
