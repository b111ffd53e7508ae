"""Tests for the declared bilingual route tree."""

from __future__ import annotations

import pytest

from core.errors import AppError, ErrorCodes
from routing.tree import (
    I18N_ROUTES,
    LayoutRoute,
    PageRoute,
    RouteFile,
    find_route_tree_problems,
    iter_page_routes,
    iter_routes,
    template_placeholders,
    validate_route_tree,
)
from utils.i18n import Language


def _page(page_id: str, file: RouteFile, en: str, fr: str) -> PageRoute:
    return PageRoute(id=page_id, file=file, paths={Language.EN: en, Language.FR: fr})


def test_declared_tree_is_valid() -> None:
    assert find_route_tree_problems(I18N_ROUTES) == []
    validate_route_tree()


def test_every_declared_file_is_in_the_tree() -> None:
    files = {route.file for route in iter_routes()}
    assert files == set(RouteFile)


def test_every_page_has_both_languages_with_prefix() -> None:
    for route in iter_page_routes():
        assert route.path_for(Language.EN).startswith("/en")
        assert route.path_for(Language.FR).startswith("/fr")


def test_layouts_contribute_no_paths() -> None:
    layouts = [route for route in iter_routes() if isinstance(route, LayoutRoute)]
    assert {layout.file for layout in layouts} == {
        RouteFile.PROTECTED_LAYOUT,
        RouteFile.MULTI_CHANNEL_LAYOUT,
        RouteFile.PERSON_CASE_LAYOUT,
        RouteFile.PUBLIC_LAYOUT,
    }
    assert all(not hasattr(layout, "paths") for layout in layouts)


def test_template_placeholders() -> None:
    assert template_placeholders("/en/protected/multi-channel/edit-application/:caseId") == ("caseId",)
    assert template_placeholders("/en/protected") == ()


def test_duplicate_file_is_reported() -> None:
    routes = (
        _page("A-1", RouteFile.PUBLIC_INDEX, "/en", "/fr"),
        _page("A-2", RouteFile.PUBLIC_INDEX, "/en/other", "/fr/autre"),
    )

    problems = find_route_tree_problems(routes, declared=None)

    assert any("duplicate route file" in problem for problem in problems)


def test_missing_language_is_reported() -> None:
    routes = (PageRoute(id="A-1", file=RouteFile.PUBLIC_INDEX, paths={Language.EN: "/en"}),)

    problems = find_route_tree_problems(routes, declared=None)

    assert problems == ["route 'routes/public/index' has no 'fr' path"]


def test_prefix_and_placeholder_mismatch_are_reported() -> None:
    routes = (
        _page("A-1", RouteFile.PUBLIC_INDEX, "/fr/public", "/fr/publique"),
        _page("A-2", RouteFile.PROTECTED_INDEX, "/en/case/:caseId", "/fr/cas/:id"),
    )

    problems = find_route_tree_problems(routes, declared=None)

    assert any("lacks the '/en' prefix" in problem for problem in problems)
    assert any("different placeholders" in problem for problem in problems)


def test_colliding_paths_are_reported() -> None:
    routes = (
        _page("A-1", RouteFile.PROTECTED_INDEX, "/en/case/:caseId", "/fr/cas/:caseId"),
        _page("A-2", RouteFile.PROTECTED_ADMIN, "/en/case/:id", "/fr/dossier/:id"),
    )

    problems = find_route_tree_problems(routes, declared=None)

    assert any("collides" in problem for problem in problems)


def test_validate_raises_tree_error() -> None:
    routes = (_page("A-1", RouteFile.PUBLIC_INDEX, "/en", "/fr"),)

    with pytest.raises(AppError) as excinfo:
        validate_route_tree(routes)

    assert excinfo.value.error_code is ErrorCodes.ROUTE_TREE_INVALID
    assert "is declared but absent from the tree" in excinfo.value.msg
