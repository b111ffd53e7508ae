"""Bilingual route registry and resolver."""

from __future__ import annotations

from routing.resolver import (
    Redirect,
    RouteMatch,
    alternate_url,
    find_by_file,
    find_by_id,
    find_by_path,
    get_by_file,
    get_by_path,
    i18n_redirect,
    match_path,
    resolve_url,
)
from routing.tree import I18N_ROUTES, LayoutRoute, PageRoute, RouteFile, iter_page_routes, validate_route_tree

__all__ = [
    "I18N_ROUTES",
    "LayoutRoute",
    "PageRoute",
    "Redirect",
    "RouteFile",
    "RouteMatch",
    "alternate_url",
    "find_by_file",
    "find_by_id",
    "find_by_path",
    "get_by_file",
    "get_by_path",
    "i18n_redirect",
    "iter_page_routes",
    "match_path",
    "resolve_url",
    "validate_route_tree",
]
