"""Bidirectional lookups between logical route ids and localized URLs.

``resolve_url`` is the single producer of redirect targets and internal
links. It is pure: the caller always supplies the language explicitly, or
derives it from the inbound request path before calling.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from urllib.parse import quote, unquote, urlencode, urlsplit

from core.errors import AppError, ErrorCodes
from routing.tree import (
    I18N_ROUTES,
    PLACEHOLDER_PATTERN,
    PageRoute,
    RouteFile,
    RouteNode,
    iter_page_routes,
    template_placeholders,
)
from utils.i18n import SUPPORTED_LANGUAGES, Language, coerce_language, get_alt_language, get_language

logger = logging.getLogger(__name__)

RouteParams = Mapping[str, object]
SearchParams = Mapping[str, object] | str | None


@dataclass(frozen=True)
class RouteMatch:
    """A concrete path mapped back onto its page."""

    route: PageRoute
    language: Language
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Redirect:
    """Redirect intent; the web layer turns it into a ``Location`` response."""

    location: str
    status: int = 302


def normalize_path(pathname: str) -> str:
    """Strip the query string, fragment and trailing slashes from ``pathname``."""

    if "://" in pathname:
        pathname = urlsplit(pathname).path
    pathname = pathname.split("#", 1)[0].split("?", 1)[0]
    return pathname.rstrip("/")


def _match_template(template: str, pathname: str) -> dict[str, str] | None:
    template_segments = normalize_path(template).split("/")
    path_segments = pathname.split("/")
    if len(template_segments) != len(path_segments):
        return None
    params: dict[str, str] = {}
    for expected, actual in zip(template_segments, path_segments):
        placeholder = PLACEHOLDER_PATTERN.match(expected)
        if placeholder:
            if not actual:
                return None
            params[placeholder.group(1)] = unquote(actual)
        elif expected != actual:
            return None
    return params


def find_by_file(file: RouteFile | str, routes: Sequence[RouteNode] = I18N_ROUTES) -> PageRoute | None:
    """Return the page declared with ``file`` or ``None``."""

    wanted = str(file)
    for route in iter_page_routes(routes):
        if str(route.file) == wanted:
            return route
    return None


def find_by_id(page_id: str, routes: Sequence[RouteNode] = I18N_ROUTES) -> PageRoute | None:
    """Return the page whose code (``INP-0001`` ...) equals ``page_id``."""

    return next((route for route in iter_page_routes(routes) if route.id == page_id), None)


def match_path(
    pathname: str,
    lang: Language | str | None = None,
    routes: Sequence[RouteNode] = I18N_ROUTES,
) -> RouteMatch | None:
    """Map a concrete path back to its page, language and params.

    Both languages are tried unless ``lang`` is given.
    """

    normalized = normalize_path(pathname)
    if lang is None:
        languages: tuple[Language, ...] = SUPPORTED_LANGUAGES
    else:
        language = coerce_language(lang)
        if language is None:
            return None
        languages = (language,)
    for route in iter_page_routes(routes):
        for language in languages:
            template = route.paths.get(language)
            if template is None:
                continue
            params = _match_template(template, normalized)
            if params is not None:
                return RouteMatch(route=route, language=language, params=params)
    return None


def find_by_path(
    pathname: str,
    lang: Language | str | None = None,
    routes: Sequence[RouteNode] = I18N_ROUTES,
) -> PageRoute | None:
    """Return the page served at ``pathname`` regardless of language (unless ``lang`` is given)."""

    match = match_path(pathname, lang, routes)
    return match.route if match else None


def get_by_file(file: RouteFile | str, routes: Sequence[RouteNode] = I18N_ROUTES) -> PageRoute:
    """Like :func:`find_by_file` but a miss is an internal consistency error."""

    route = find_by_file(file, routes)
    if route is None:
        raise AppError(
            f"No route found for {file} (this should never happen)",
            ErrorCodes.ROUTE_NOT_FOUND,
        )
    return route


def get_by_path(
    pathname: str,
    lang: Language | str | None = None,
    routes: Sequence[RouteNode] = I18N_ROUTES,
) -> PageRoute:
    """Like :func:`find_by_path` but a miss is an internal consistency error."""

    route = find_by_path(pathname, lang, routes)
    if route is None:
        raise AppError(
            f"No route found for {pathname} (this should never happen)",
            ErrorCodes.ROUTE_NOT_FOUND,
        )
    return route


def generate_path(template: str, params: RouteParams | None = None) -> str:
    """Fill the ``:name`` placeholders of ``template`` with ``params``.

    Raises:
        AppError: ``INVALID_ROUTE_PARAMS`` when a placeholder is missing or
            when ``params`` names something the template does not declare.
    """

    supplied = dict(params or {})
    expected = template_placeholders(template)
    missing = [name for name in expected if supplied.get(name) in (None, "")]
    unexpected = sorted(set(supplied) - set(expected))
    if missing or unexpected:
        details = []
        if missing:
            details.append("missing " + ", ".join(missing))
        if unexpected:
            details.append("unexpected " + ", ".join(unexpected))
        raise AppError(
            f"Invalid params for '{template}': {'; '.join(details)}",
            ErrorCodes.INVALID_ROUTE_PARAMS,
            status_code=400,
        )

    segments: list[str] = []
    for segment in template.split("/"):
        placeholder = PLACEHOLDER_PATTERN.match(segment)
        if placeholder:
            segments.append(quote(str(supplied[placeholder.group(1)]), safe=""))
        else:
            segments.append(segment)
    return "/".join(segments)


def format_search(search: SearchParams) -> str:
    """Return ``search`` as a query string including the leading ``?`` (or ``""``)."""

    if not search:
        return ""
    if isinstance(search, str):
        query = search[1:] if search.startswith("?") else search
        return f"?{query}" if query else ""
    pairs = [(key, value) for key, value in search.items() if value is not None]
    query = urlencode(pairs, doseq=True)
    return f"?{query}" if query else ""


def resolve_url(
    file: RouteFile | str,
    lang: Language | str,
    params: RouteParams | None = None,
    search: SearchParams = None,
) -> str:
    """Return the concrete localized URL for ``file``.

    Args:
        file: Logical route identifier.
        lang: Target language; never negotiated here.
        params: Values for the template placeholders.
        search: Optional query string or mapping appended to the path.
    """

    language = coerce_language(lang)
    if language is None:
        raise AppError(f"Unsupported language '{lang}'", ErrorCodes.NO_LANGUAGE_FOUND, status_code=400)
    route = get_by_file(file)
    return generate_path(route.path_for(language), params) + format_search(search)


def i18n_redirect(
    file: RouteFile | str,
    resource: str,
    *,
    params: RouteParams | None = None,
    search: SearchParams = None,
    status: int = 302,
) -> Redirect:
    """Redirect to ``file`` in the language of ``resource`` (a request path or URL)."""

    language = get_language(resource)
    if language is None:
        raise AppError("No language found in request", ErrorCodes.NO_LANGUAGE_FOUND, status_code=400)
    return Redirect(location=resolve_url(file, language, params, search), status=status)


def alternate_url(pathname: str, search: SearchParams = None) -> str | None:
    """Return the same page in the other language, or ``None`` for unknown paths.

    Used by the language switcher; path params carry over unchanged.
    """

    match = match_path(pathname)
    if match is None:
        logger.debug("No route matches '%s'; cannot build alternate-language URL", pathname)
        return None
    alt_language = get_alt_language(match.language)
    if alt_language is None:
        return None
    return resolve_url(match.route.file, alt_language, match.params or None, search)


__all__ = [
    "Redirect",
    "RouteMatch",
    "alternate_url",
    "find_by_file",
    "find_by_id",
    "find_by_path",
    "format_search",
    "generate_path",
    "get_by_file",
    "get_by_path",
    "i18n_redirect",
    "match_path",
    "normalize_path",
    "resolve_url",
]
