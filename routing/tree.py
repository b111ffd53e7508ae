"""Declared bilingual route tree.

Every page is tagged with a stable logical identifier (:class:`RouteFile`)
and one URL template per supported language. Layout routes only group pages;
they never produce a URL of their own. The tree is validated at import time
so a duplicated identifier or a missing translation fails before the first
request is served.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, TypeAlias

from core.errors import AppError, ErrorCodes
from utils.i18n import SUPPORTED_LANGUAGES, Language

PLACEHOLDER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^:([A-Za-z_][A-Za-z0-9_]*)$")


class RouteFile(StrEnum):
    """Closed set of logical route identifiers declared in :data:`I18N_ROUTES`."""

    PROTECTED_LAYOUT = "routes/protected/layout"
    PROTECTED_INDEX = "routes/protected/index"
    PROTECTED_ADMIN = "routes/protected/admin"
    PROTECTED_REQUEST = "routes/protected/request"

    MULTI_CHANNEL_LAYOUT = "routes/protected/multi-channel/layout"
    MULTI_CHANNEL_PID_VERIFICATION = "routes/protected/multi-channel/pid-verification"
    MULTI_CHANNEL_SEARCH_SIN = "routes/protected/multi-channel/search-sin"
    MULTI_CHANNEL_FINALIZE_REQUEST = "routes/protected/multi-channel/finalize-request"
    MULTI_CHANNEL_SEND_VALIDATION = "routes/protected/multi-channel/send-validation"
    MULTI_CHANNEL_EDIT_APPLICATION = "routes/protected/multi-channel/edit-application"
    MULTI_CHANNEL_SIN_CONFIRMATION = "routes/protected/multi-channel/sin-confirmation"

    PERSON_CASE_LAYOUT = "routes/protected/person-case/layout"
    PERSON_CASE_ABANDON = "routes/protected/person-case/abandon"
    PERSON_CASE_PRIVACY_STATEMENT = "routes/protected/person-case/privacy-statement"
    PERSON_CASE_REQUEST_DETAILS = "routes/protected/person-case/request-details"
    PERSON_CASE_PRIMARY_DOCS = "routes/protected/person-case/primary-docs"
    PERSON_CASE_SECONDARY_DOC = "routes/protected/person-case/secondary-doc"
    PERSON_CASE_CURRENT_NAME = "routes/protected/person-case/current-name"
    PERSON_CASE_PERSONAL_INFO = "routes/protected/person-case/personal-info"
    PERSON_CASE_BIRTH_DETAILS = "routes/protected/person-case/birth-details"
    PERSON_CASE_PARENT_DETAILS = "routes/protected/person-case/parent-details"
    PERSON_CASE_PREVIOUS_SIN = "routes/protected/person-case/previous-sin"
    PERSON_CASE_CONTACT_INFORMATION = "routes/protected/person-case/contact-information"
    PERSON_CASE_REVIEW = "routes/protected/person-case/review"

    PUBLIC_LAYOUT = "routes/public/layout"
    PUBLIC_INDEX = "routes/public/index"


@dataclass(frozen=True)
class PageRoute:
    """Leaf route with one URL template per language."""

    id: str
    file: RouteFile
    paths: Mapping[Language, str]

    def path_for(self, lang: Language) -> str:
        return self.paths[lang]


@dataclass(frozen=True)
class LayoutRoute:
    """Structural route grouping ``children``; contributes no URL."""

    file: RouteFile
    children: Sequence["RouteNode"]


RouteNode: TypeAlias = LayoutRoute | PageRoute


def _page(page_id: str, file: RouteFile, *, en: str, fr: str) -> PageRoute:
    return PageRoute(id=page_id, file=file, paths={Language.EN: en, Language.FR: fr})


I18N_ROUTES: Final[tuple[RouteNode, ...]] = (
    #
    # Protected routes (authentication required)
    #
    LayoutRoute(
        file=RouteFile.PROTECTED_LAYOUT,
        children=(
            _page("PROT-0001", RouteFile.PROTECTED_INDEX, en="/en/protected", fr="/fr/protege"),
            _page("PROT-0002", RouteFile.PROTECTED_ADMIN, en="/en/protected/admin", fr="/fr/protege/admin"),
            _page("PROT-0003", RouteFile.PROTECTED_REQUEST, en="/en/protected/request", fr="/fr/protege/requete"),
            LayoutRoute(
                file=RouteFile.MULTI_CHANNEL_LAYOUT,
                children=(
                    _page(
                        "MCF-0001",
                        RouteFile.MULTI_CHANNEL_PID_VERIFICATION,
                        en="/en/protected/multi-channel/pid-verification",
                        fr="/fr/protege/multi-chaine/pid-verification",
                    ),
                    _page(
                        "MCF-0002",
                        RouteFile.MULTI_CHANNEL_SEARCH_SIN,
                        en="/en/protected/multi-channel/search-sin",
                        fr="/fr/protege/multi-chaine/search-sin",
                    ),
                    _page(
                        "MCF-0003",
                        RouteFile.MULTI_CHANNEL_FINALIZE_REQUEST,
                        en="/en/protected/multi-channel/finalize-request",
                        fr="/fr/protege/multi-chaine/finalize-request",
                    ),
                    _page(
                        "MCF-0004",
                        RouteFile.MULTI_CHANNEL_SEND_VALIDATION,
                        en="/en/protected/multi-channel/send-validation",
                        fr="/fr/protege/multi-chaine/send-validation",
                    ),
                    _page(
                        "MCF-0005",
                        RouteFile.MULTI_CHANNEL_EDIT_APPLICATION,
                        en="/en/protected/multi-channel/edit-application/:caseId",
                        fr="/fr/protege/multi-chaine/modifier-la-demande/:caseId",
                    ),
                ),
            ),
            LayoutRoute(
                file=RouteFile.PERSON_CASE_LAYOUT,
                children=(
                    _page(
                        "INP-0000",
                        RouteFile.PERSON_CASE_ABANDON,
                        en="/en/protected/person-case/abandon",
                        fr="/fr/protege/cas-personnel/abandonner",
                    ),
                    _page(
                        "INP-0001",
                        RouteFile.PERSON_CASE_PRIVACY_STATEMENT,
                        en="/en/protected/person-case/privacy-statement",
                        fr="/fr/protege/cas-personnel/declaration-de-confidentialite",
                    ),
                    _page(
                        "INP-0002",
                        RouteFile.PERSON_CASE_PRIMARY_DOCS,
                        en="/en/protected/person-case/primary-documents",
                        fr="/fr/protege/cas-personnel/documents-primaires",
                    ),
                    _page(
                        "INP-0003",
                        RouteFile.PERSON_CASE_REQUEST_DETAILS,
                        en="/en/protected/person-case/request-details",
                        fr="/fr/protege/cas-personnel/faire-une-demande",
                    ),
                    _page(
                        "INP-0004",
                        RouteFile.PERSON_CASE_CURRENT_NAME,
                        en="/en/protected/person-case/current-name",
                        fr="/fr/protege/cas-personnel/nom-actuel",
                    ),
                    _page(
                        "INP-0005",
                        RouteFile.PERSON_CASE_PERSONAL_INFO,
                        en="/en/protected/person-case/personal-information",
                        fr="/fr/protege/cas-personnel/informations-personnelles",
                    ),
                    _page(
                        "INP-0006",
                        RouteFile.PERSON_CASE_SECONDARY_DOC,
                        en="/en/protected/person-case/secondary-document",
                        fr="/fr/protege/cas-personnel/document-secondaire",
                    ),
                    _page(
                        "INP-0007",
                        RouteFile.PERSON_CASE_BIRTH_DETAILS,
                        en="/en/protected/person-case/birth-details",
                        fr="/fr/protege/cas-personnel/details-de-naissance",
                    ),
                    _page(
                        "INP-0008",
                        RouteFile.PERSON_CASE_PARENT_DETAILS,
                        en="/en/protected/person-case/parent-details",
                        fr="/fr/protege/cas-personnel/details-des-parents",
                    ),
                    _page(
                        "INP-0009",
                        RouteFile.PERSON_CASE_PREVIOUS_SIN,
                        en="/en/protected/person-case/previous-sin",
                        fr="/fr/protege/cas-personnel/previous-sin",
                    ),
                    _page(
                        "INP-0010",
                        RouteFile.PERSON_CASE_CONTACT_INFORMATION,
                        en="/en/protected/person-case/contact-information",
                        fr="/fr/protege/cas-personnel/contact-information",
                    ),
                    _page(
                        "INP-0011",
                        RouteFile.PERSON_CASE_REVIEW,
                        en="/en/protected/person-case/review",
                        fr="/fr/protege/cas-personnel/revision",
                    ),
                ),
            ),
            _page(
                "PROT-0016",
                RouteFile.MULTI_CHANNEL_SIN_CONFIRMATION,
                en="/en/protected/multi-channel/sin-confirmation",
                fr="/fr/protege/multi-canal/confirmation-de-nas",
            ),
        ),
    ),
    #
    # Public routes (no authentication required)
    #
    LayoutRoute(
        file=RouteFile.PUBLIC_LAYOUT,
        children=(_page("PUBL-0001", RouteFile.PUBLIC_INDEX, en="/en/public", fr="/fr/public"),),
    ),
)


def iter_routes(routes: Sequence[RouteNode] = I18N_ROUTES) -> Iterator[RouteNode]:
    """Yield every node of ``routes`` depth-first, layouts before their children."""

    for route in routes:
        yield route
        if isinstance(route, LayoutRoute):
            yield from iter_routes(route.children)


def iter_page_routes(routes: Sequence[RouteNode] = I18N_ROUTES) -> Iterator[PageRoute]:
    """Yield every :class:`PageRoute` of ``routes`` depth-first."""

    for route in iter_routes(routes):
        if isinstance(route, PageRoute):
            yield route


def template_placeholders(template: str) -> tuple[str, ...]:
    """Return the placeholder names of ``template`` in declaration order."""

    names: list[str] = []
    for segment in template.split("/"):
        match = PLACEHOLDER_PATTERN.match(segment)
        if match:
            names.append(match.group(1))
    return tuple(names)


def _normalize(path: str) -> str:
    return path.rstrip("/")


def find_route_tree_problems(
    routes: Sequence[RouteNode],
    *,
    declared: type[RouteFile] | None = RouteFile,
) -> list[str]:
    """Return human readable problems found in ``routes`` (empty when valid).

    Checks identifier uniqueness, bilingual coverage, language prefixes,
    placeholder agreement across languages, path uniqueness per language and,
    when ``declared`` is given, that the tree and the enum list the same files.
    """

    problems: list[str] = []
    seen_files: set[str] = set()
    seen_ids: set[str] = set()
    seen_paths: dict[tuple[Language, str], str] = {}

    for route in iter_routes(routes):
        file = str(route.file)
        if file in seen_files:
            problems.append(f"duplicate route file '{file}'")
        seen_files.add(file)
        if not isinstance(route, PageRoute):
            continue

        if route.id in seen_ids:
            problems.append(f"duplicate route id '{route.id}'")
        seen_ids.add(route.id)

        placeholder_sets: set[frozenset[str]] = set()
        for language in SUPPORTED_LANGUAGES:
            template = route.paths.get(language)
            if not template:
                problems.append(f"route '{file}' has no '{language}' path")
                continue
            prefix = f"/{language.value}"
            if template != prefix and not template.startswith(prefix + "/"):
                problems.append(f"route '{file}' {language} path '{template}' lacks the '{prefix}' prefix")
            placeholders = template_placeholders(template)
            if len(set(placeholders)) != len(placeholders):
                problems.append(f"route '{file}' {language} path repeats a placeholder")
            placeholder_sets.add(frozenset(placeholders))
            shape = re.sub(r"/:[^/]+", "/:", _normalize(template))
            key = (language, shape)
            if key in seen_paths:
                problems.append(f"route '{file}' {language} path collides with '{seen_paths[key]}'")
            else:
                seen_paths[key] = file
        if len(placeholder_sets) > 1:
            problems.append(f"route '{file}' declares different placeholders per language")

    if declared is not None:
        declared_files = {member.value for member in declared}
        for missing in sorted(declared_files - seen_files):
            problems.append(f"route file '{missing}' is declared but absent from the tree")
        for extra in sorted(seen_files - declared_files):
            problems.append(f"route file '{extra}' is in the tree but not declared")
    return problems


def validate_route_tree(
    routes: Sequence[RouteNode] = I18N_ROUTES,
    *,
    declared: type[RouteFile] | None = RouteFile,
) -> None:
    """Raise :class:`AppError` when ``routes`` violates a tree invariant."""

    problems = find_route_tree_problems(routes, declared=declared)
    if problems:
        raise AppError(
            "Invalid route tree: " + "; ".join(problems),
            ErrorCodes.ROUTE_TREE_INVALID,
        )


validate_route_tree()


__all__ = [
    "I18N_ROUTES",
    "LayoutRoute",
    "PageRoute",
    "RouteFile",
    "RouteNode",
    "find_route_tree_problems",
    "iter_page_routes",
    "iter_routes",
    "template_placeholders",
    "validate_route_tree",
]
