"""Observability helpers (Sentry init & common scrubbing).

Centralises Sentry initialisation so configuration does not drift.
Initialisation is a no-op when no DSN is configured, and the helpers
below never raise: observability must not break a request.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from app.core.config import Settings

logger = logging.getLogger(__name__)

_initialised = False


def _before_send(event: Dict[str, Any], hint: Dict[str, Any] | None = None):
	"""Scrub obvious PII / secrets before sending to Sentry.

	- Drop Authorization & Cookie headers
	- Remove request data/body (uploads carry base64 meter photographs)
	"""
	try:
		req = event.get("request") or {}
		headers = req.get("headers") or {}
		for k in list(headers.keys()):
			lk = k.lower()
			if lk in ("authorization", "cookie", "set-cookie", "x-api-key"):
				headers.pop(k, None)
		req.pop("data", None)
		event["request"] = req
	except Exception:  # best effort
		logger.debug("sentry scrubbing failed", exc_info=True)
	return event


def init_sentry(settings: Settings, service: str) -> bool:
	"""Initialise Sentry once for this process.

	Returns True if Sentry is (or already was) initialised; False otherwise.
	"""
	global _initialised
	if not settings.SENTRY_DSN:
		return False
	if _initialised:
		return True
	sentry_sdk.init(
		dsn=settings.SENTRY_DSN,
		integrations=[FastApiIntegration(), SqlalchemyIntegration()],
		traces_sample_rate=float(settings.SENTRY_TRACES_SAMPLE_RATE or 0),
		environment=settings.ENVIRONMENT,
		release=settings.SENTRY_RELEASE,
		before_send=_before_send,
	)
	sentry_sdk.set_tag("service", service)
	_initialised = True
	return True


def sentry_breadcrumb(category: str, message: str, level: str = "info", data: Optional[Dict[str, Any]] = None) -> None:
	"""Best-effort: add a breadcrumb for important pipeline steps."""
	if not _initialised:
		return
	try:
		sentry_sdk.add_breadcrumb(
			category=category,
			message=message,
			level=level,
			data=data or {},
		)
	except Exception:
		logger.debug("sentry breadcrumb failed", exc_info=True)


def sentry_capture(exc: BaseException) -> None:
	"""Best-effort: report an unexpected exception."""
	if not _initialised:
		return
	try:
		sentry_sdk.capture_exception(exc)
	except Exception:
		logger.debug("sentry capture failed", exc_info=True)


__all__ = ["init_sentry", "sentry_breadcrumb", "sentry_capture"]
