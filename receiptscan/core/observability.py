"""Observability helpers (logging setup, Sentry init & common scrubbing).

Centralises Sentry initialisation so configuration does not drift.
Keeps initialisation a no-op if the SDK or DSN are missing.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from receiptscan.core.config import settings

try:  # Optional import
	import sentry_sdk  # type: ignore
	from sentry_sdk.integrations.fastapi import FastApiIntegration  # type: ignore
	_SENTRY_AVAILABLE = True
except Exception:  # pragma: no cover
	_SENTRY_AVAILABLE = False


_SCRUBBED_HEADERS = ("authorization", "cookie", "set-cookie", "x-api-key")


def configure_logging() -> None:
	"""Configure root logging from ``settings.LOG_LEVEL``."""
	level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
	logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _before_send(event: Dict[str, Any], hint: Dict[str, Any] | None = None):  # type: ignore[override]
	"""Scrub obvious PII / secrets before sending to Sentry.

	- Drop Authorization & Cookie headers
	- Remove request data/body (uploads carry receipt images and API keys)
	"""
	req = event.get("request") or {}
	headers = req.get("headers") or {}
	for k in list(headers.keys()):
		if k.lower() in _SCRUBBED_HEADERS:
			headers.pop(k, None)
	req.pop("data", None)
	event["request"] = req
	return event


def init_sentry(service: str) -> bool:
	"""Initialise Sentry once for a given process.

	Returns True if Sentry was initialised; False otherwise.
	"""
	if not (_SENTRY_AVAILABLE and settings.SENTRY_DSN):  # pragma: no cover - simple guard
		return False
	if getattr(init_sentry, "_done", False):  # prevent duplicate init in same process
		return True
	sentry_sdk.init(
		dsn=settings.SENTRY_DSN,
		integrations=[FastApiIntegration()],
		traces_sample_rate=float(settings.SENTRY_TRACES_SAMPLE_RATE or 0),
		environment=settings.ENVIRONMENT,
		release=settings.SENTRY_RELEASE,
		send_default_pii=False,
		before_send=_before_send,
	)
	sentry_sdk.set_tag("service", service)
	init_sentry._done = True  # type: ignore[attr-defined]
	return True


def sentry_breadcrumb(category: str, message: str, level: str = "info", data: Optional[Dict[str, Any]] = None) -> None:
	"""Best-effort: add a breadcrumb for important lifecycle steps."""
	if not (_SENTRY_AVAILABLE and settings.SENTRY_DSN):
		return
	sentry_sdk.add_breadcrumb(  # type: ignore
		category=category,
		message=message,
		level=level,
		data=data or {},
	)


def sentry_capture(exc: BaseException) -> None:
	"""Best-effort exception capture when Sentry is configured."""
	if not (_SENTRY_AVAILABLE and settings.SENTRY_DSN):
		return
	sentry_sdk.capture_exception(exc)


__all__ = ["configure_logging", "init_sentry", "sentry_breadcrumb", "sentry_capture"]
