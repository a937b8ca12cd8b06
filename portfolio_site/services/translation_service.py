"""Service for UI and portfolio translations.

Translations live in ``portfolio_site/locales/<lang>/<namespace>.yaml``. Two
namespaces exist: ``ui`` for interface strings and ``portfolio`` for content
overrides keyed by entity id and field name (``projects.<id>.title``).
Lookups fall back to English, then to the caller's default.
"""

import logging
import re
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from portfolio_site.models.portfolio_models import PortfolioContent


logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES: Tuple[str, ...] = ("en", "zh", "ja", "tr")
DEFAULT_LANGUAGE = "en"

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "zh": "中文",
    "ja": "日本語",
    "tr": "Türkçe",
}

# Open Graph locale per language
OG_LOCALES: Dict[str, str] = {
    "en": "en_US",
    "zh": "zh_CN",
    "ja": "ja_JP",
    "tr": "tr_TR",
}

_MISSING = object()
_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def is_supported_language(language: Optional[str]) -> bool:
    return language in SUPPORTED_LANGUAGES


def parse_accept_language(header: Optional[str]) -> List[str]:
    """
    Parse an Accept-Language header into base language codes by preference.

    Example: "tr-TR,tr;q=0.9,en;q=0.8" -> ["tr", "tr", "en"]
    """
    if not header:
        return []

    weighted = []
    for position, part in enumerate(header.split(",")):
        piece = part.strip()
        if not piece:
            continue
        code, _, params = piece.partition(";")
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        base = code.strip().lower().split("-")[0]
        if base and base != "*":
            weighted.append((-quality, position, base))

    return [code for _, _, code in sorted(weighted)]


class TranslationService:
    """Load locale files and resolve translation keys."""

    def __init__(self, locales_dir: Optional[Path] = None):
        """
        Initialize the translation service.

        Args:
            locales_dir: Directory with one sub-directory per language. Defaults to portfolio_site/locales/
        """
        if locales_dir is None:
            locales_dir = Path(__file__).parent.parent / "locales"
        self.locales_dir = locales_dir
        self._resources: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def _load(self, language: str, namespace: str) -> Dict[str, Any]:
        key = (language, namespace)
        if key in self._resources:
            return self._resources[key]

        path = self.locales_dir / language / f"{namespace}.yaml"
        data: Dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML format in {path}: {e}") from e
        else:
            logger.debug("No %s translations for %s", namespace, language)

        self._resources[key] = data
        return data

    @staticmethod
    def _lookup(resource: Any, key: str) -> Any:
        node = resource
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            else:
                return _MISSING
        return node

    @staticmethod
    def _interpolate(value: Any, params: Dict[str, Any]) -> Any:
        if not params or not isinstance(value, str):
            return value
        return _PLACEHOLDER.sub(lambda m: str(params.get(m.group(1), m.group(0))), value)

    def translate(
        self,
        key: str,
        language: str = DEFAULT_LANGUAGE,
        namespace: str = "ui",
        default: Optional[Any] = None,
        **params: Any,
    ) -> Any:
        """
        Resolve a dotted translation key.

        Args:
            key: Dotted key, e.g. "welcome.title" or "experience.acme.highlights.0"
            language: Target language code
            namespace: "ui" or "portfolio"
            default: Value used when neither the language nor English has the key
            **params: Values for {{placeholder}} interpolation

        Returns:
            The translated value (usually a string, lists for list-valued keys).
            Falls back to the key itself when there is no default.
        """
        languages = [language] if language == DEFAULT_LANGUAGE else [language, DEFAULT_LANGUAGE]
        for lang in languages:
            if not is_supported_language(lang):
                continue
            value = self._lookup(self._load(lang, namespace), key)
            if value is not _MISSING and value is not None:
                return self._interpolate(value, params)

        if default is not None:
            return self._interpolate(default, params)
        return key

    def translator(self, language: str):
        """Return a ``t(key, **params)`` callable bound to a language."""
        def t(key: str, default: Optional[Any] = None, **params: Any) -> Any:
            return self.translate(key, language, default=default, **params)
        return t

    def detect_language(
        self,
        stored_preference: Optional[str] = None,
        accept_language: Optional[str] = None,
    ) -> str:
        """
        Pick the display language.

        Order: stored preference, Accept-Language, then the default language.
        """
        if is_supported_language(stored_preference):
            return stored_preference
        for code in parse_accept_language(accept_language):
            if is_supported_language(code):
                return code
        return DEFAULT_LANGUAGE

    def translate_portfolio(self, portfolio: PortfolioContent, language: str) -> PortfolioContent:
        """
        Apply per-field translations to portfolio content.

        Every field falls back to the source value. Skills are technical terms
        and are left untranslated.
        """
        def tr(key: str, default: Any) -> Any:
            if default is None:
                return None
            return self.translate(key, language, namespace="portfolio", default=default)

        personal = portfolio.personal.model_copy(update={
            "name": tr("personal.name", portfolio.personal.name),
            "title": tr("personal.title", portfolio.personal.title),
            "bio": tr("personal.bio", portfolio.personal.bio),
            "location": tr("personal.location", portfolio.personal.location),
        })

        projects = [
            project.model_copy(update={
                "title": tr(f"projects.{project.id}.title", project.title),
                "description": tr(f"projects.{project.id}.description", project.description),
                "long_description": tr(f"projects.{project.id}.longDescription", project.long_description),
            })
            for project in portfolio.projects
        ]

        experience = [
            exp.model_copy(update={
                "company": tr(f"experience.{exp.id}.company", exp.company),
                "role": tr(f"experience.{exp.id}.role", exp.role),
                "period": tr(f"experience.{exp.id}.period", exp.period),
                "description": tr(f"experience.{exp.id}.description", exp.description),
                "highlights": [
                    tr(f"experience.{exp.id}.highlights.{i}", h) for i, h in enumerate(exp.highlights)
                ] if exp.highlights else exp.highlights,
            })
            for exp in portfolio.experience
        ]

        education = [
            edu.model_copy(update={
                "institution": tr(f"education.{edu.id}.institution", edu.institution),
                "degree": tr(f"education.{edu.id}.degree", edu.degree),
                "period": tr(f"education.{edu.id}.period", edu.period),
                "highlights": [
                    tr(f"education.{edu.id}.highlights.{i}", h) for i, h in enumerate(edu.highlights)
                ] if edu.highlights else edu.highlights,
            })
            for edu in portfolio.education
        ]

        return portfolio.model_copy(update={
            "personal": personal,
            "projects": projects,
            "experience": experience,
            "education": education,
        })
