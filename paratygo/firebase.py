"""Firebase Admin initialisation and Firestore access.

The Admin app is initialised once per process from the service-account
fields in settings. Registrations live in the ``cadastros`` collection.
"""

from __future__ import annotations

import logging
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from paratygo.config import Settings, settings

logger = logging.getLogger(__name__)

REGISTRATIONS = "cadastros"


def init_app(cfg: Settings | None = None) -> firebase_admin.App:
    """Return the default Firebase app, initialising it on first use."""
    cfg = cfg or settings
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred = credentials.Certificate({
        "type": "service_account",
        "project_id": cfg.firebase_project_id,
        "private_key": cfg.private_key_pem,
        "client_email": cfg.firebase_client_email,
        "token_uri": "https://oauth2.googleapis.com/token",
    })
    app = firebase_admin.initialize_app(cred)
    logger.info("Firebase Admin initialised — project=%s", cfg.firebase_project_id)
    return app


def get_client(cfg: Settings | None = None) -> Any:
    """Firestore client bound to the default app."""
    return firestore.client(init_app(cfg))


def save_registration(db: Any, data: dict[str, Any]) -> str:
    """Store a registration with a server timestamp; returns the document id."""
    record = {**data, "dataEnvio": firestore.SERVER_TIMESTAMP}
    _, doc_ref = db.collection(REGISTRATIONS).add(record)
    logger.info("Registration stored: %s", doc_ref.id)
    return doc_ref.id
