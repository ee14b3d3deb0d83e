# file: NEARBY/core/firebase.py

import os
import json
import asyncio
import logging
import threading

import firebase_admin
from firebase_admin import credentials, firestore, db as rtdb
from firebase_admin.exceptions import FirebaseError
from google.api_core.exceptions import GoogleAPIError

from NEARBY.core.config import (
    CREDENTIAL_SOURCE,
    FIREBASE_PROJECT_ID,
    FIREBASE_DATABASE_URL,
)
from NEARBY.core.errors import StoreError

logger = logging.getLogger("core.firebase")

_init_lock = threading.Lock()
_firestore_client = None


# ------------------------------
# Bootstrap
# ------------------------------
def _load_credentials():
    if not CREDENTIAL_SOURCE:
        raise ValueError("GOOGLE_APPLICATION_CREDENTIALS env var is not set")

    # Case 1: it's a file path
    if os.path.exists(CREDENTIAL_SOURCE):
        logger.info("Loading Firebase credentials from file: %s", CREDENTIAL_SOURCE)
        return credentials.Certificate(CREDENTIAL_SOURCE)

    # Case 2: it's a raw JSON string
    logger.info("Loading Firebase credentials from raw JSON string")
    return credentials.Certificate(json.loads(CREDENTIAL_SOURCE))


def init_firebase():
    """Initialise the default Firebase app once (Firestore + Realtime Database)."""
    with _init_lock:
        if firebase_admin._apps:
            return firebase_admin.get_app()

        try:
            options = {}
            if FIREBASE_PROJECT_ID:
                options["projectId"] = FIREBASE_PROJECT_ID
            if FIREBASE_DATABASE_URL:
                options["databaseURL"] = FIREBASE_DATABASE_URL
            app = firebase_admin.initialize_app(_load_credentials(), options)
            logger.info("🔥 Firebase initialized with project: %s", app.project_id)
            return app
        except Exception as e:
            logger.exception("Failed to initialize Firebase: %s", e)
            raise


def get_firestore():
    """Shared Firestore client (document store: users, places, placeVisits)."""
    global _firestore_client
    if _firestore_client is None:
        init_firebase()
        _firestore_client = firestore.client()
        logger.info("🔥 Firestore client project: %s", _firestore_client.project)
    return _firestore_client


def get_rtdb_root():
    """Root reference of the Realtime Database (presence tree)."""
    init_firebase()
    if not FIREBASE_DATABASE_URL:
        raise ValueError("FIREBASE_DATABASE_URL env var is not set")
    return rtdb.reference("/")


# ------------------------------
# Async bridge
# ------------------------------
async def call_store(operation: str, fn, *args, **kwargs):
    """
    Run a blocking Firebase SDK call in a worker thread.

    SDK failures are re-raised as StoreError so callers only deal with one
    transient-failure type.
    """
    try:
        return await asyncio.to_thread(fn, *args, **kwargs)
    except (FirebaseError, GoogleAPIError) as e:
        logger.warning("Store call %s failed: %s", operation, e)
        raise StoreError(f"{operation} failed: {e}", operation=operation) from e


__all__ = ["init_firebase", "get_firestore", "get_rtdb_root", "call_store", "firestore"]
