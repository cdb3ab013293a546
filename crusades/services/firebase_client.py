"""
Firebase initialization for the shared feed cache
"""

from __future__ import annotations

import base64
import json
import logging
import os
from functools import lru_cache
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from crusades.core.config import settings

logger = logging.getLogger(__name__)


def firestore_enabled() -> bool:
    return settings.USE_FIREBASE is True


def load_service_account() -> dict[str, Any] | None:
    """Read service account info from the first configured source.

    Sources, in order: FIREBASE_CREDENTIALS_JSON, FIREBASE_CREDENTIALS_B64,
    FIREBASE_CREDENTIALS_FILE.
    """
    if settings.FIREBASE_CREDENTIALS_JSON:
        return json.loads(settings.FIREBASE_CREDENTIALS_JSON)
    if settings.FIREBASE_CREDENTIALS_B64:
        return json.loads(base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8"))
    path = settings.FIREBASE_CREDENTIALS_FILE
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


@lru_cache(maxsize=1)
def get_firestore_client():
    """Return a cached Firestore client, or None when Firebase is disabled"""
    if not firestore_enabled():
        return None

    if not firebase_admin._apps:
        info = load_service_account()
        if not info:
            raise RuntimeError(
                "Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, "
                "FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64"
            )
        firebase_admin.initialize_app(credentials.Certificate(info))
        logger.info(f"Firebase app initialized for project {info.get('project_id')}")

    return firestore.client()
