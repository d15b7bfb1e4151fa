"""Structured logging helpers (PII-safe)."""

from typing import Any


def mask_token(token: str | None) -> str | None:
    """Keep only a short prefix of a bearer token for log correlation."""
    if not token:
        return None
    return f"{token[:8]}..."


def build_log_context(
    *,
    client_id: str | None = None,
    token: str | None = None,
    run_date: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict."""
    context: dict[str, Any] = {}
    if client_id:
        context["client_id"] = client_id
    if token:
        context["token"] = mask_token(token)
    if run_date:
        context["run_date"] = run_date
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
