"""Concrete probes for the Paraty GO! dependencies.

Environment variables, the HTTP server, Firestore and the Resend API. Every
network call has an explicit timeout or is bounded by its SDK; failures are
normalised into ``ProbeError`` subclasses or verdicts here so nothing
SDK-specific reaches the recorder.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
from resend.exceptions import ResendError

from paratygo.firebase import REGISTRATIONS
from paratygo.mailer import Mailer

from .engine import (
    ConfigMissing,
    DependencyRejected,
    DependencyUnreachable,
    Probe,
    Subsystem,
    Verdict,
)

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 10.0
LATENCY_WARN_MS = 1000
SCRATCH_COLLECTION = "_health_check"
NOT_SET = "not set or empty"


# ── Environment ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EnvVar:
    name: str
    sensitive: bool = False
    shape: Callable[[str], bool] | None = None  # advisory format check
    shape_hint: str = ""


REQUIRED_VARS: list[EnvVar] = [
    EnvVar("FIREBASE_PROJECT_ID"),
    EnvVar(
        "FIREBASE_PRIVATE_KEY", sensitive=True,
        shape=lambda v: "BEGIN PRIVATE KEY" in v,
        shape_hint="Key format may be incorrect (no BEGIN PRIVATE KEY marker)",
    ),
    EnvVar(
        "FIREBASE_CLIENT_EMAIL",
        shape=lambda v: "@" in v and v.endswith(".iam.gserviceaccount.com"),
        shape_hint="Does not look like a service-account email",
    ),
    EnvVar(
        "RESEND_API_KEY", sensitive=True,
        shape=lambda v: v.startswith("re_"),
        shape_hint='Key does not start with "re_"',
    ),
    EnvVar("EMAIL_TO"),
    EnvVar("EMAIL_FROM"),
    EnvVar(
        "PORT",
        shape=lambda v: v.strip().isdigit(),
        shape_hint="Not a port number",
    ),
]


def mask(value: str, visible: int = 10) -> str:
    return f"{value[:visible]}..."


def require(values: Mapping[str, str], name: str) -> str:
    value = (values.get(name) or "").strip()
    if not value:
        raise ConfigMissing(NOT_SET)
    return value


def env_var_probe(values: Mapping[str, str], var: EnvVar) -> Probe:
    def check() -> Verdict:
        value = require(values, var.name)
        notes = []
        if var.shape is not None and not var.shape(value):
            notes.append(f"{var.name}: {var.shape_hint}")
        return Verdict.ok(mask(value) if var.sensitive else value, notes)

    return Probe(var.name, check)


def all_present_probe(values: Mapping[str, str], names: list[str]) -> Probe:
    """One probe covering a whole set of variables."""

    def check() -> Verdict:
        missing = [n for n in names if not (values.get(n) or "").strip()]
        if missing:
            raise ConfigMissing(f"{', '.join(missing)}: {NOT_SET}")
        return Verdict.ok(f"{len(names)} variable(s) configured")

    return Probe("Required variables", check)


# ── HTTP ─────────────────────────────────────────────────────────────────────


def http_request(
    method: str,
    url: str,
    timeout: float = HTTP_TIMEOUT,
    **kwargs: Any,
) -> httpx.Response:
    """Single request bounded by ``timeout`` seconds overall, body included.

    httpx applies the timeout per phase, so the body is streamed against a
    deadline. The client is closed (and the request aborted) on exit.
    """
    headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
    deadline = time.monotonic() + timeout
    try:
        with httpx.Client(timeout=timeout) as client:
            with client.stream(method, url, headers=headers, **kwargs) as resp:
                body = bytearray()
                for chunk in resp.iter_raw():
                    body.extend(chunk)
                    if time.monotonic() > deadline:
                        raise httpx.ReadTimeout("deadline exceeded", request=resp.request)
                return httpx.Response(
                    resp.status_code,
                    headers=resp.headers,
                    content=bytes(body),
                    request=resp.request,
                )
    except httpx.TimeoutException:
        raise DependencyUnreachable(f"Timeout ({timeout:g}s)")
    except httpx.HTTPError as e:
        raise DependencyUnreachable(f"Connection error: {e}")


def is_healthy_response(resp: httpx.Response) -> bool:
    """200 with a JSON body whose status is "ok"."""
    if resp.status_code != 200:
        return False
    try:
        body = resp.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("status") == "ok"


def allows_cross_origin(resp: httpx.Response) -> bool:
    """Pre-flight answered with an Access-Control-Allow-Origin header."""
    return "access-control-allow-origin" in resp.headers


def route_is_mounted(resp: httpx.Response) -> bool:
    """Route exists and validated the request: a 4xx that is not 404/405."""
    return 400 <= resp.status_code < 500 and resp.status_code not in (404, 405)


def health_endpoint_probe(base_url: str, timeout: float = HTTP_TIMEOUT) -> Probe:
    def check() -> Verdict:
        resp = http_request("GET", f"{base_url}/api/health", timeout)
        if not is_healthy_response(resp):
            raise DependencyRejected(f"Unexpected response ({resp.status_code})")
        return Verdict.ok(f"Timestamp: {resp.json().get('timestamp')}")

    return Probe("Health check endpoint", check, gating=True)


def cors_probe(base_url: str, timeout: float = HTTP_TIMEOUT) -> Probe:
    def check() -> Verdict:
        resp = http_request(
            "OPTIONS",
            f"{base_url}/api/health",
            timeout,
            headers={"Origin": "https://example.com", "Access-Control-Request-Method": "GET"},
        )
        if allows_cross_origin(resp):
            return Verdict.ok(f"Allow-Origin: {resp.headers['access-control-allow-origin']}")
        return Verdict.fail(f"No Access-Control-Allow-Origin header ({resp.status_code})")

    return Probe("CORS configuration", check, required=False)


def registration_route_probe(base_url: str, timeout: float = HTTP_TIMEOUT) -> Probe:
    def check() -> Verdict:
        resp = http_request("POST", f"{base_url}/api/cadastro", timeout, json={})
        if route_is_mounted(resp):
            return Verdict.ok(f"Endpoint exists ({resp.status_code} on empty submission)")
        return Verdict.fail(f"Endpoint not found or misbehaving ({resp.status_code})")

    return Probe("Endpoint /api/cadastro", check)


def latency_advisory(
    base_url: str,
    threshold_ms: float = LATENCY_WARN_MS,
    timeout: float = HTTP_TIMEOUT,
) -> Callable[[], str | None]:
    """Round-trip of the health endpoint; a note when over threshold."""

    def check() -> str | None:
        t0 = time.perf_counter()
        http_request("GET", f"{base_url}/api/health", timeout)
        latency = (time.perf_counter() - t0) * 1000
        logger.info("Server latency: %.0fms", latency)
        if latency > threshold_ms:
            return f"High latency: {latency:.0f}ms"
        return None

    return check


# ── Firestore ────────────────────────────────────────────────────────────────


@dataclass
class Cleanup:
    error: str | None = None


@contextmanager
def scratch_document(db: Any, collection: str = SCRATCH_COLLECTION) -> Iterator[tuple[Any, Cleanup]]:
    """A throwaway document, deleted on exit whatever happened inside."""
    ref = db.collection(collection).document(f"probe-{uuid.uuid4().hex[:12]}")
    cleanup = Cleanup()
    try:
        yield ref, cleanup
    finally:
        try:
            ref.delete()
        except Exception as exc:
            cleanup.error = str(exc) or type(exc).__name__
            logger.warning("Could not delete scratch document %s: %s", ref.id, cleanup.error)


class FirestoreProbes:
    """Probes sharing one Firestore client across a subsystem run."""

    def __init__(self, connect: Callable[[], Any], project_id: str = "") -> None:
        self._connect = connect
        self.project_id = project_id
        self.db: Any = None
        self.collections: list[str] = []

    def sdk(self) -> Verdict:
        self.db = self._connect()
        return Verdict.ok(f"Project: {self.project_id or '?'}")

    def access(self) -> Verdict:
        self.collections = [c.id for c in self.db.collections()]
        return Verdict.ok(f"Collections: {', '.join(self.collections) or 'none'}")

    def registrations(self) -> Verdict:
        if REGISTRATIONS not in self.collections:
            return Verdict.fail(f'"{REGISTRATIONS}" does not exist yet (created on first registration)')
        docs = self.db.collection(REGISTRATIONS).limit(100).get()
        count = len(docs)
        return Verdict.ok(f"Exists — {'100+' if count >= 100 else count} registration(s)")

    def write(self) -> Verdict:
        with scratch_document(self.db) as (ref, cleanup):
            ref.set({"timestamp": datetime.now(timezone.utc).isoformat(), "test": True})
            snap = ref.get()
            written = bool(snap.exists) and (snap.to_dict() or {}).get("test") is True
        notes = [f"Test document not removed: {cleanup.error}"] if cleanup.error else []
        if not written:
            return Verdict.fail("Written document could not be read back", notes)
        return Verdict.ok("Write/read/delete round-trip OK", notes)

    def subsystem(self, key: str, label: str) -> Subsystem:
        return Subsystem(key, label, [
            Probe("Firebase Admin SDK", self.sdk, gating=True),
            Probe("Firestore access", self.access, gating=True),
            Probe(f'Collection "{REGISTRATIONS}"', self.registrations, required=False),
            Probe("Firestore write", self.write),
        ])


# ── Resend ───────────────────────────────────────────────────────────────────


def _is_key_rejection(exc: Exception) -> bool:
    text = f"{getattr(exc, 'error_type', '')} {exc}".lower()
    return "api key" in text or "api_key" in text


class EmailProbes:
    """Probes for the Resend API and the sender/recipient configuration."""

    def __init__(self, mailer: Mailer, email_to: str = "", email_from: str = "") -> None:
        self.mailer = mailer
        self.email_to = email_to
        self.email_from = email_from

    def api_key(self) -> Verdict:
        if not self.mailer.is_configured:
            raise ConfigMissing(f"RESEND_API_KEY {NOT_SET}")
        return Verdict.ok("Key configured")

    def connection(self) -> Verdict:
        try:
            domains = self.mailer.list_domains()
        except ResendError as exc:
            if _is_key_rejection(exc):
                raise DependencyRejected(f"Invalid API key: {exc}")
            return Verdict.warn(f"Resend API: {exc}")
        names = [d.get("name", "?") for d in domains]
        if names:
            return Verdict.ok(f"Domains: {', '.join(names)}")
        return Verdict.ok("No domains — using onboarding@resend.dev")

    def destination(self) -> Verdict:
        return Verdict.check("@" in self.email_to, self.email_to or NOT_SET)

    def origin(self) -> Verdict:
        return Verdict.check("@" in self.email_from, self.email_from or NOT_SET)

    def subsystem(self, key: str, label: str) -> Subsystem:
        return Subsystem(key, label, [
            Probe("Resend API key", self.api_key, gating=True),
            Probe("Resend connection", self.connection, gating=True),
            Probe("Destination email", self.destination),
            Probe("Origin email", self.origin),
        ])
