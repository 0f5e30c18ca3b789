"""Probe batteries for the health-check and monitor commands."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from paratygo.config import Settings
from paratygo.firebase import get_client
from paratygo.mailer import Mailer

from . import probes
from .engine import INTEGRATION, IntegrationGate, Probe, Subsystem

MONITOR_TIMEOUT = 5.0


class Key(str, Enum):
    ENVIRONMENT = "environment"
    SERVER = "server"
    FIRESTORE = "firestore"
    EMAIL = "email"
    INTEGRATION = INTEGRATION


LABELS = {
    Key.ENVIRONMENT.value: "Environment variables",
    Key.SERVER.value: "Backend server",
    Key.FIRESTORE.value: "Firebase Firestore",
    Key.EMAIL.value: "Resend email API",
    Key.INTEGRATION.value: "Integration",
}


def _connect_for(cfg: Settings) -> Callable[[], Any]:
    return lambda: get_client(cfg)


def health_suite(
    cfg: Settings,
    connect: Callable[[], Any] | None = None,
    mailer: Mailer | None = None,
) -> tuple[list[Subsystem], IntegrationGate]:
    """Full battery: every dependency, then the integration gate."""
    values = cfg.env_values()
    base_url = cfg.base_url
    firestore = probes.FirestoreProbes(connect or _connect_for(cfg), cfg.firebase_project_id)
    email = probes.EmailProbes(mailer or Mailer(cfg=cfg), cfg.email_to, cfg.email_from)

    subsystems = [
        Subsystem(
            Key.ENVIRONMENT.value,
            LABELS[Key.ENVIRONMENT.value],
            [probes.env_var_probe(values, var) for var in probes.REQUIRED_VARS],
        ),
        Subsystem(Key.SERVER.value, LABELS[Key.SERVER.value], [
            probes.health_endpoint_probe(base_url),
            probes.cors_probe(base_url),
            probes.registration_route_probe(base_url),
        ]),
        firestore.subsystem(Key.FIRESTORE.value, LABELS[Key.FIRESTORE.value]),
        email.subsystem(Key.EMAIL.value, LABELS[Key.EMAIL.value]),
    ]
    return subsystems, IntegrationGate(advisory=probes.latency_advisory(base_url))


def monitor_suite(
    cfg: Settings,
    connect: Callable[[], Any] | None = None,
    mailer: Mailer | None = None,
) -> list[Subsystem]:
    """Light battery: one probe per dependency, no integration gate."""
    values = cfg.env_values()
    names = [v.name for v in probes.REQUIRED_VARS if v.name != "PORT"]
    firestore = probes.FirestoreProbes(connect or _connect_for(cfg), cfg.firebase_project_id)
    email = probes.EmailProbes(mailer or Mailer(cfg=cfg), cfg.email_to, cfg.email_from)

    return [
        Subsystem(Key.ENVIRONMENT.value, LABELS[Key.ENVIRONMENT.value], [
            probes.all_present_probe(values, names),
        ]),
        Subsystem(Key.SERVER.value, LABELS[Key.SERVER.value], [
            probes.health_endpoint_probe(cfg.base_url, timeout=MONITOR_TIMEOUT),
        ]),
        Subsystem(Key.FIRESTORE.value, LABELS[Key.FIRESTORE.value], [
            Probe("Firebase Admin SDK", firestore.sdk, gating=True),
            Probe("Firestore access", firestore.access),
        ]),
        Subsystem(Key.EMAIL.value, LABELS[Key.EMAIL.value], [
            Probe("Resend API key", email.api_key, gating=True),
            Probe("Resend connection", email.connection),
        ]),
    ]
