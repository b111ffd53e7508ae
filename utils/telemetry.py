"""OpenTelemetry tracing bootstrap for the wizard engine.

Settings follow the standard ``OTEL_*`` environment variables. Without an
OTLP endpoint the global (no-op) tracer provider is left untouched, so the
``wizard.dispatch`` spans cost nothing in local runs and tests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_OFF, ALWAYS_ON, ParentBased, Sampler, TraceIdRatioBased

LOGGER = logging.getLogger("sin_wizard.telemetry")

DEFAULT_SERVICE_NAME = "sin-intake-wizard"
_PROVIDER_MARKER = "_sin_wizard_configured"
_DISABLED_VALUES = frozenset({"0", "false", "off", "no"})

_INITIALISED = False


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse ``OTEL_EXPORTER_OTLP_HEADERS`` (``k1=v1,k2=v2``); malformed pairs are skipped."""

    pairs = (fragment.partition("=") for fragment in (raw or "").split(","))
    return {key.strip(): value.strip() for key, sep, value in pairs if sep and key.strip()}


def _ratio_from(raw: str) -> float:
    if not raw:
        return 1.0
    try:
        return min(1.0, max(0.0, float(raw)))
    except ValueError:
        LOGGER.warning("Ignoring non-numeric OTEL_TRACES_SAMPLER_ARG '%s'", raw)
        return 1.0


def build_sampler(env: Mapping[str, str] | None = None) -> Sampler:
    """Return the sampler named by ``OTEL_TRACES_SAMPLER`` (parent-based ratio by default)."""

    source = os.environ if env is None else env
    name = source.get("OTEL_TRACES_SAMPLER", "").strip().lower()
    ratio = _ratio_from(source.get("OTEL_TRACES_SAMPLER_ARG", "").strip())
    fixed = {"always_on": ALWAYS_ON, "always_off": ALWAYS_OFF}
    if name in fixed:
        return fixed[name]
    if name == "traceidratio":
        return TraceIdRatioBased(ratio)
    if name not in {"", "parentbased_traceidratio"}:
        LOGGER.warning("Unsupported OTEL_TRACES_SAMPLER '%s'; using parentbased_traceidratio", name)
    return ParentBased(TraceIdRatioBased(ratio))


@dataclass(frozen=True)
class TracingSettings:
    """Exporter settings resolved from the environment."""

    enabled: bool
    endpoint: str
    service_name: str = DEFAULT_SERVICE_NAME
    headers: dict[str, str] = field(default_factory=dict)
    timeout: int | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "TracingSettings":
        source = os.environ if env is None else env
        timeout: int | None = None
        raw_timeout = source.get("OTEL_EXPORTER_OTLP_TIMEOUT", "").strip()
        if raw_timeout:
            try:
                timeout = int(float(raw_timeout))
            except ValueError:
                LOGGER.warning("Ignoring non-numeric OTEL_EXPORTER_OTLP_TIMEOUT '%s'", raw_timeout)
        return cls(
            enabled=source.get("OTEL_TRACES_ENABLED", "1").strip().lower() not in _DISABLED_VALUES,
            endpoint=source.get("OTEL_EXPORTER_OTLP_ENDPOINT", "").strip(),
            service_name=source.get("OTEL_SERVICE_NAME", "").strip() or DEFAULT_SERVICE_NAME,
            headers=parse_headers(source.get("OTEL_EXPORTER_OTLP_HEADERS")),
            timeout=timeout,
        )


def setup_tracing(*, force: bool = False) -> None:
    """Install an OTLP-exporting tracer provider once per process."""

    global _INITIALISED
    if _INITIALISED and not force:
        return

    settings = TracingSettings.from_env()
    if not settings.enabled:
        LOGGER.info("Tracing disabled via OTEL_TRACES_ENABLED")
        return
    if not settings.endpoint:
        LOGGER.debug("No OTEL_EXPORTER_OTLP_ENDPOINT set; tracing stays a no-op")
        return
    if not force and getattr(trace.get_tracer_provider(), _PROVIDER_MARKER, False):
        return

    provider = TracerProvider(
        resource=Resource.create({"service.name": settings.service_name}),
        sampler=build_sampler(),
    )
    exporter = OTLPSpanExporter(
        endpoint=settings.endpoint,
        headers=settings.headers or None,
        timeout=settings.timeout,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    setattr(provider, _PROVIDER_MARKER, True)
    trace.set_tracer_provider(provider)

    _INITIALISED = True
    LOGGER.info("Tracing initialised for service '%s' exporting to %s", settings.service_name, settings.endpoint)


__all__ = ["DEFAULT_SERVICE_NAME", "TracingSettings", "build_sampler", "parse_headers", "setup_tracing"]
