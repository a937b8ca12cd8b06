"""Server-rendered visitor pages and preference endpoints."""

import logging
import random
from typing import Dict, Optional, Tuple
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from portfolio_site.dependencies import Services, get_services
from portfolio_site.models.portfolio_models import PortfolioContent
from portfolio_site.services.component_mapper import SectionData
from portfolio_site.services.palette import color_name_to_hsl, generate_palette, palette_to_css, DEFAULT_BASE_COLOR
from portfolio_site.services.page_renderer import PageContext
from portfolio_site.services.preferences import (
    COLOR_SCHEME_HINT,
    LANGUAGE_COOKIE,
    PreferenceStore,
    ThemePreference,
    get_session_id,
    parse_theme_preference,
    read_theme,
    store_theme,
    toggle_theme,
)
from portfolio_site.services.prompts import ALLOWED_VISITOR_TAGS
from portfolio_site.services.translation_service import is_supported_language
from portfolio_site.services.visitor_context import extract_visitor_context, get_client_ip


logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])


def safe_next(target: Optional[str]) -> str:
    """Only allow same-site relative redirect targets."""
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return "/"
    return target


def _current_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def _page(request: Request, services: Services) -> Tuple[PreferenceStore, PageContext]:
    store = PreferenceStore(request.cookies)
    language = services.translations.detect_language(
        store.get(LANGUAGE_COOKIE), request.headers.get("accept-language")
    )
    page = PageContext(
        language=language,
        theme=read_theme(store, request.headers.get(COLOR_SCHEME_HINT)),
        translate=services.translations.translator(language),
        path=_current_path(request),
        session_id=get_session_id(store),
    )
    return store, page


def _finish(response: Response, store: PreferenceStore, services: Services) -> Response:
    store.apply(response, max_age=services.settings.cookie_max_age)
    response.headers["Accept-CH"] = COLOR_SCHEME_HINT
    response.headers["Vary"] = COLOR_SCHEME_HINT
    return response


def _load_portfolio(services: Services, language: str) -> PortfolioContent:
    try:
        portfolio = services.portfolio_loader.load_portfolio()
    except (FileNotFoundError, ValueError) as e:
        logger.error("Portfolio content unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Portfolio content unavailable",
        )
    return services.translations.translate_portfolio(portfolio, language)


def _visit_url(visitor: str, intent: Optional[str] = None, **extra: object) -> str:
    params: Dict[str, object] = {"visitor": visitor}
    if intent:
        params["intent"] = intent
    params.update({key: value for key, value in extra.items() if value is not None})
    return f"/visit?{urlencode(params)}"


@router.get("/", response_class=HTMLResponse, summary="Welcome page")
async def welcome(request: Request, services: Services = Depends(get_services)):
    store, page = _page(request, services)
    portfolio = _load_portfolio(services, page.language)
    html = services.renderer.render_welcome(page, portfolio)
    return _finish(HTMLResponse(html), store, services)


@router.get("/visit", response_class=HTMLResponse, summary="Personalized page")
async def visit(
    request: Request,
    visitor: str = Query("friend", max_length=50),
    intent: Optional[str] = Query(None, max_length=500),
    feedback: Optional[str] = Query(None),
    retry: Optional[int] = Query(None, ge=0),
    services: Services = Depends(get_services),
):
    store, page = _page(request, services)
    portfolio = _load_portfolio(services, page.language)

    visitor_tag = visitor.lower().strip() or "friend"
    if visitor_tag not in ALLOWED_VISITOR_TAGS:
        visitor_tag = "friend"

    try:
        html = await _render_visit(request, services, page, portfolio, visitor_tag, intent, feedback, retry)
    except Exception:
        logger.exception("Failed to render personalized page")
        html = services.renderer.render_error(page, portfolio)
        return _finish(HTMLResponse(html, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR), store, services)
    return _finish(HTMLResponse(html), store, services)


async def _render_visit(
    request: Request,
    services: Services,
    page: PageContext,
    portfolio: PortfolioContent,
    visitor_tag: str,
    intent: Optional[str],
    feedback: Optional[str],
    retry: Optional[int],
) -> str:
    result = await services.layout_generator.generate(
        visitor_tag=visitor_tag,
        portfolio=portfolio,
        visitor_context=extract_visitor_context(request.headers, request.scope.get("http_version")),
        client_ip=get_client_ip(request.headers, request.client.host if request.client else None),
        custom_intent=intent,
    )

    default_username = services.settings.default_github_username
    activity = {}
    for username in services.component_mapper.github_usernames(result.layout, default_username):
        try:
            activity[username] = await services.github.fetch_activity(username)
        except RuntimeError as e:
            logger.warning("GitHub activity section unavailable for %s: %s", username, e)
            activity[username] = None

    sections = services.component_mapper.map_layout(
        result.layout,
        portfolio,
        SectionData(github_activity=activity, default_github_username=default_username),
    )

    if result.categorization:
        visitor_label = result.categorization["displayName"]
    elif result.visitor_tag in ALLOWED_VISITOR_TAGS:
        visitor_label = page.t(f"visitorTypes.{result.visitor_tag}.label")
    else:
        visitor_label = result.visitor_tag

    return services.renderer.render_generated(
        page,
        portfolio,
        result,
        sections,
        visitor_label=visitor_label,
        intent=intent,
        feedback_status=feedback if feedback in ("liked", "rate_limited") else None,
        feedback_retry_after=retry,
    )


@router.post("/feedback", summary="Like or dislike the current layout")
async def submit_feedback(
    request: Request,
    feedback_type: str = Form(...),
    visitor: str = Form("friend"),
    intent: Optional[str] = Form(None),
    cache_key: Optional[str] = Form(None),
    services: Services = Depends(get_services),
):
    store = PreferenceStore(request.cookies)
    session_id = get_session_id(store)

    status_code, outcome = services.feedback.submit(feedback_type, visitor, session_id, cache_key)
    if status_code != status.HTTP_200_OK:
        raise HTTPException(status_code=status_code, detail=outcome.message)

    if outcome.rate_limited:
        target = _visit_url(visitor, intent, feedback="rate_limited", retry=outcome.retry_after)
    elif outcome.regenerate:
        target = _visit_url(visitor, intent)
    else:
        target = _visit_url(visitor, intent, feedback="liked")

    return _finish(RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER), store, services)


@router.post("/preferences/theme", summary="Store or toggle the theme preference")
async def set_theme(
    request: Request,
    preference: str = Form(...),
    next: Optional[str] = Form(None),
    services: Services = Depends(get_services),
):
    store = PreferenceStore(request.cookies)
    state = read_theme(store, request.headers.get(COLOR_SCHEME_HINT))

    if preference == "toggle":
        store_theme(store, toggle_theme(parse_theme_preference(state.preference), state.system))
    elif preference in {p.value for p in ThemePreference}:
        store_theme(store, ThemePreference(preference))
    else:
        logger.debug("Ignoring unknown theme preference %r", preference)

    response = RedirectResponse(safe_next(next), status_code=status.HTTP_303_SEE_OTHER)
    return _finish(response, store, services)


@router.post("/preferences/language", summary="Store the language preference")
async def set_language(
    request: Request,
    language: str = Form(...),
    next: Optional[str] = Form(None),
    services: Services = Depends(get_services),
):
    store = PreferenceStore(request.cookies)
    if is_supported_language(language):
        store.set(LANGUAGE_COOKIE, language)
    else:
        logger.debug("Ignoring unsupported language %r", language)

    response = RedirectResponse(safe_next(next), status_code=status.HTTP_303_SEE_OTHER)
    return _finish(response, store, services)


@router.get("/palette.css", summary="Theme palette stylesheet")
async def palette_css(accent: Optional[str] = Query(None, max_length=30)):
    # Seeded per name so unknown accents get a stable, cacheable hue
    base = color_name_to_hsl(accent, random.Random(accent.lower())) if accent else DEFAULT_BASE_COLOR
    css = palette_to_css(generate_palette(base))
    return Response(css, media_type="text/css", headers={"Cache-Control": "public, max-age=3600"})
