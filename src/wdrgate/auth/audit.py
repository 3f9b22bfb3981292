"""
Audit sinks for authorization decisions.

Each evaluation performed by the ``ScopeAuthorizer`` can be recorded by an
injected sink. Sinks only observe; they never influence the decision.

Sinks:
    LoggingAuditSink   JSON line per evaluation on the ``wdrgate.audit`` logger
    OTelAuditSink      One span per evaluation, for TraceQL queries
    CompositeAuditSink Fan-out to several sinks

Example TraceQL queries:
    # Invalid credentials
    { name = "wdrgate.authorize" && wdrgate.auth_state = "AUTH_INVALID" }

    # Evaluations for one subject
    { wdrgate.subject = "alice@example.org" }
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from wdrgate.auth.models import AuthorizationEvent, AuthState

_audit_logger = logging.getLogger("wdrgate.audit")


@runtime_checkable
class AuditSink(Protocol):
    """Receives one event per evaluation."""

    def record(self, event: AuthorizationEvent) -> None:
        ...


class LoggingAuditSink:
    """
    Structured JSON audit log.

    Each entry includes standard fields for filtering:
    - event, subject, auth_state (name and wire value)
    - token_count and any dropped tokens
    """

    def __init__(self, service_name: str = "wdrgate", logger: Optional[logging.Logger] = None):
        self.service_name = service_name
        self._logger = logger or _audit_logger

    def record(self, event: AuthorizationEvent) -> None:
        entry = {
            "timestamp": event.evaluated_at.isoformat(),
            "event": "auth.evaluated",
            "service": self.service_name,
            "auth_state": event.auth_state.name,
            "auth_state_code": int(event.auth_state),
            "token_count": len(event.tokens),
        }
        if event.subject:
            entry["subject"] = event.subject
        if event.dropped_capabilities:
            entry["dropped_capabilities"] = list(event.dropped_capabilities)
        if event.dropped_scopes:
            entry["dropped_scopes"] = list(event.dropped_scopes)

        level = logging.WARNING if event.auth_state == AuthState.AUTH_INVALID else logging.INFO
        self._logger.log(level, json.dumps(entry))


class OTelAuditSink:
    """
    Emits evaluations as OTel spans.

    Example:
        sink = OTelAuditSink()
        authorizer = ScopeAuthorizer(capabilities, audit_sink=sink)
    """

    SPAN_NAME = "wdrgate.authorize"

    def __init__(
        self,
        tracer_name: str = "wdrgate.auth.audit",
        tracer_provider: Optional[trace.TracerProvider] = None,
    ):
        self.tracer = trace.get_tracer(tracer_name, tracer_provider=tracer_provider)

    def record(self, event: AuthorizationEvent) -> None:
        with self.tracer.start_as_current_span(self.SPAN_NAME, kind=SpanKind.INTERNAL) as span:
            span.set_attribute("wdrgate.auth_state", event.auth_state.name)
            span.set_attribute("wdrgate.auth_state_code", int(event.auth_state))
            span.set_attribute("wdrgate.token_count", len(event.tokens))
            span.set_attribute("wdrgate.evaluated_at", event.evaluated_at.isoformat())

            if event.subject:
                span.set_attribute("wdrgate.subject", event.subject)
            if event.tokens:
                span.set_attribute("wdrgate.tokens", list(event.tokens))
            if event.dropped_capabilities:
                span.set_attribute("wdrgate.dropped_capabilities", list(event.dropped_capabilities))
            if event.dropped_scopes:
                span.set_attribute("wdrgate.dropped_scopes", list(event.dropped_scopes))

            if event.auth_state == AuthState.AUTH_INVALID:
                span.set_status(Status(StatusCode.ERROR, "Credential invalid"))
            else:
                span.set_status(Status(StatusCode.OK))


class CompositeAuditSink:
    """Forwards each event to every wrapped sink, in order."""

    def __init__(self, sinks: Iterable[AuditSink]):
        self.sinks: List[AuditSink] = list(sinks)

    def record(self, event: AuthorizationEvent) -> None:
        for sink in self.sinks:
            sink.record(event)
