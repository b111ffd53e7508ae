"""Tests for localized URL resolution and reverse lookups."""

from __future__ import annotations

import pytest

from core.errors import AppError, ErrorCodes
from routing.resolver import (
    alternate_url,
    find_by_file,
    find_by_id,
    find_by_path,
    format_search,
    generate_path,
    get_by_file,
    get_by_path,
    i18n_redirect,
    match_path,
    normalize_path,
    resolve_url,
)
from routing.tree import RouteFile, iter_page_routes, template_placeholders
from utils.i18n import SUPPORTED_LANGUAGES, Language


@pytest.mark.parametrize("lang", SUPPORTED_LANGUAGES)
def test_resolve_and_find_round_trip_for_every_page(lang: Language) -> None:
    for route in iter_page_routes():
        params = {name: "CASE-42" for name in template_placeholders(route.path_for(lang))}
        url = resolve_url(route.file, lang, params or None)

        found = find_by_path(url, lang)

        assert found is not None, url
        assert found.file == route.file


def test_resolve_url_localizes_paths() -> None:
    assert resolve_url(RouteFile.PERSON_CASE_PRIVACY_STATEMENT, "en") == "/en/protected/person-case/privacy-statement"
    assert (
        resolve_url(RouteFile.PERSON_CASE_PRIVACY_STATEMENT, Language.FR)
        == "/fr/protege/cas-personnel/declaration-de-confidentialite"
    )


def test_resolve_url_fills_params_and_search() -> None:
    url = resolve_url(
        RouteFile.MULTI_CHANNEL_EDIT_APPLICATION,
        Language.FR,
        {"caseId": "00 1"},
        {"tid": "abc123"},
    )

    assert url == "/fr/protege/multi-chaine/modifier-la-demande/00%201?tid=abc123"


def test_resolve_url_rejects_unknown_language() -> None:
    with pytest.raises(AppError) as excinfo:
        resolve_url(RouteFile.PUBLIC_INDEX, "de")

    assert excinfo.value.error_code is ErrorCodes.NO_LANGUAGE_FOUND
    assert excinfo.value.status_code == 400


def test_resolve_url_unknown_file_is_route_not_found() -> None:
    with pytest.raises(AppError) as excinfo:
        resolve_url("routes/unknown", Language.EN)

    assert excinfo.value.error_code is ErrorCodes.ROUTE_NOT_FOUND


def test_generate_path_requires_declared_params() -> None:
    template = "/en/protected/multi-channel/edit-application/:caseId"

    with pytest.raises(AppError) as missing:
        generate_path(template)
    with pytest.raises(AppError) as unexpected:
        generate_path(template, {"caseId": "1", "other": "2"})

    assert missing.value.error_code is ErrorCodes.INVALID_ROUTE_PARAMS
    assert "missing caseId" in missing.value.msg
    assert "unexpected other" in unexpected.value.msg


def test_match_path_extracts_params_and_language() -> None:
    match = match_path("/fr/protege/multi-chaine/modifier-la-demande/abc/?tid=1")

    assert match is not None
    assert match.route.file is RouteFile.MULTI_CHANNEL_EDIT_APPLICATION
    assert match.language is Language.FR
    assert match.params == {"caseId": "abc"}


def test_match_path_respects_language_filter() -> None:
    assert match_path("/fr/protege", Language.EN) is None
    assert match_path("/fr/protege", "xx") is None
    assert match_path("/en/protected/unknown") is None


def test_find_by_file_and_id() -> None:
    assert find_by_file(RouteFile.PERSON_CASE_REVIEW).id == "INP-0011"
    assert find_by_file("routes/missing") is None
    assert find_by_id("PROT-0003").file is RouteFile.PROTECTED_REQUEST
    assert find_by_id("NOPE-0000") is None


def test_get_helpers_raise_on_miss() -> None:
    with pytest.raises(AppError):
        get_by_file("routes/missing")
    with pytest.raises(AppError) as excinfo:
        get_by_path("/en/nowhere")

    assert excinfo.value.error_code is ErrorCodes.ROUTE_NOT_FOUND
    assert get_by_path("https://example.com/en/public").file is RouteFile.PUBLIC_INDEX


def test_normalize_path() -> None:
    assert normalize_path("/en/public/?a=1#top") == "/en/public"
    assert normalize_path("https://example.com/fr/public/") == "/fr/public"


def test_format_search() -> None:
    assert format_search(None) == ""
    assert format_search("?tid=1") == "?tid=1"
    assert format_search("tid=1") == "?tid=1"
    assert format_search({"tid": "1", "skip": None}) == "?tid=1"


def test_i18n_redirect_uses_language_of_resource() -> None:
    redirect = i18n_redirect(
        RouteFile.PROTECTED_REQUEST,
        "https://example.com/fr/protege/admin?x=1",
        search={"tid": "t1"},
    )

    assert redirect.location == "/fr/protege/requete?tid=t1"
    assert redirect.status == 302


def test_i18n_redirect_without_language_is_rejected() -> None:
    with pytest.raises(AppError) as excinfo:
        i18n_redirect(RouteFile.PROTECTED_REQUEST, "/protected/admin")

    assert excinfo.value.error_code is ErrorCodes.NO_LANGUAGE_FOUND


def test_alternate_url_switches_language_and_keeps_params() -> None:
    assert (
        alternate_url("/en/protected/multi-channel/edit-application/77", {"tid": "t"})
        == "/fr/protege/multi-chaine/modifier-la-demande/77?tid=t"
    )
    assert alternate_url("/fr/protege/cas-personnel/revision") == "/en/protected/person-case/review"
    assert alternate_url("/en/unknown") is None
