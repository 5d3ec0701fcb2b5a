"""Opt-in Sentry reporting for adbshard runs.

Nothing leaves the machine unless ``sentry.enabled`` is true in
``.adbshard.yml`` (or ``ADBSHARD_SENTRY_ENABLED`` is exported) and a DSN is
configured. Outgoing events are stripped of home directories, credentials
and network device addresses.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING, Any

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from adbshard import __version__

if TYPE_CHECKING:
    from adbshard.config import SentryConfig

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_state: dict[str, bool] = {"ready": False}

_REDACTED = "[REDACTED]"

_SECRET_ASSIGNMENT_RE = re.compile(
    r"\b(dsn|token|password|secret|api[_-]?key|authorization)\s*[:=]\s*\S+",
    re.IGNORECASE,
)
_HOME_DIR_RE = re.compile(r"/(?:home|Users)/[^/\s]+")
# adb serials of devices connected over TCP look like 192.168.1.20:5555
_NETWORK_SERIAL_RE = re.compile(r"\b\d{1,3}(?:\.\d{1,3}){3}:\d{1,5}\b")

_REDACTED_KEYS = frozenset({"dsn", "token", "password", "secret", "api_key", "authorization"})


def _default_environment() -> str:
    return "ci" if os.environ.get("CI") else "local"


def init_sentry(config: SentryConfig) -> bool:
    """Start the Sentry SDK for this process if *config* allows it.

    Safe to call more than once: only the first successful call has an
    effect.

    Returns:
        True if Sentry is active after the call.
    """
    with _lock:
        if _state["ready"]:
            return True
        if not config.enabled:
            logger.debug("Sentry reporting is off")
            return False
        if not config.dsn:
            logger.warning("sentry.enabled is set but no DSN is configured; reporting stays off")
            return False

        environment = config.environment or _default_environment()
        sentry_sdk.init(
            dsn=config.dsn,
            release=f"adbshard@{__version__}",
            environment=environment,
            traces_sample_rate=config.traces_sample_rate,
            send_default_pii=False,
            server_name="",
            before_send=_before_send,
            before_send_transaction=_before_send,
            in_app_include=["adbshard"],
            integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        )
        _state["ready"] = True

    logger.debug(
        "Sentry reporting on (environment=%s, traces_sample_rate=%s)",
        environment,
        config.traces_sample_rate,
    )
    return True


def is_sentry_enabled() -> bool:
    """Return whether ``init_sentry`` has started the SDK."""
    return _state["ready"]


def scrub_text(text: str) -> str:
    """Strip home directories, network device serials and credentials from *text*."""
    text = _HOME_DIR_RE.sub("~", text)
    text = _NETWORK_SERIAL_RE.sub("<device>", text)
    return _SECRET_ASSIGNMENT_RE.sub(_REDACTED, text)


def _scrub_value(key: str, value: Any) -> Any:
    if key.lower() in _REDACTED_KEYS:
        return _REDACTED
    if isinstance(value, str):
        return scrub_text(value)
    if isinstance(value, dict):
        return {k: _scrub_value(k, v) for k, v in value.items()}
    return value


def _values(event: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Return ``event[key]["values"]`` or an empty list when it is absent."""
    container = event.get(key)
    if not isinstance(container, dict):
        return []
    return [item for item in container.get("values", []) if isinstance(item, dict)]


def _before_send(event: dict[str, Any], _hint: dict[str, Any]) -> dict[str, Any] | None:
    """Scrub an outgoing event in place and return it."""
    for exception in _values(event, "exception"):
        stacktrace = exception.get("stacktrace") or {}
        for frame in stacktrace.get("frames", []):
            frame.pop("vars", None)
            for key in ("filename", "abs_path"):
                if isinstance(frame.get(key), str):
                    frame[key] = scrub_text(frame[key])

    for crumb in _values(event, "breadcrumbs"):
        if isinstance(crumb.get("message"), str):
            crumb["message"] = scrub_text(crumb["message"])
        if isinstance(crumb.get("data"), dict):
            crumb["data"] = _scrub_value("data", crumb["data"])

    for key in ("tags", "extra"):
        if isinstance(event.get(key), dict):
            event[key] = _scrub_value(key, event[key])

    event.pop("server_name", None)
    return event


def start_span(op: str, description: str) -> AbstractContextManager[Any]:
    """Open a Sentry span around a stage of the run.

    Returns a null context when reporting is off.
    """
    if not _state["ready"]:
        return nullcontext()
    return sentry_sdk.start_span(op=op, name=description)
