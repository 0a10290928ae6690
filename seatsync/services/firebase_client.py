"""
Firebase initialization and helpers
"""

from __future__ import annotations

import base64
import json
import logging
import os
import threading
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from seatsync.core.config import Settings, settings

logger = logging.getLogger(__name__)


def load_credentials_info(config: Settings) -> dict[str, Any] | None:
    """Read the service account from JSON, base64 JSON or a file, in that order."""
    if config.FIREBASE_CREDENTIALS_JSON:
        return json.loads(config.FIREBASE_CREDENTIALS_JSON)
    if config.FIREBASE_CREDENTIALS_B64:
        decoded = base64.b64decode(config.FIREBASE_CREDENTIALS_B64).decode("utf-8")
        return json.loads(decoded)
    if config.FIREBASE_CREDENTIALS_FILE and os.path.exists(config.FIREBASE_CREDENTIALS_FILE):
        with open(config.FIREBASE_CREDENTIALS_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


class FirebaseState:
    """Process-lifetime Firebase app state.

    ``initialize`` is safe to call any number of times from any thread; only
    the first call touches the SDK.
    """

    def __init__(self, config: Settings = settings):
        self._config = config
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            # Another component of the process may already own the default app
            if not firebase_admin._apps:
                info = load_credentials_info(self._config)
                if not info:
                    raise RuntimeError(
                        "Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, "
                        "FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64"
                    )
                firebase_admin.initialize_app(credentials.Certificate(info))
                logger.info("Firebase app initialized")
            self._initialized = True

    def client(self):
        self.initialize()
        return firestore.client()


firebase_state = FirebaseState()


def get_firestore_client():
    """Return a Firestore client, or None when Firebase is disabled."""
    if not settings.USE_FIREBASE:
        return None
    return firebase_state.client()
