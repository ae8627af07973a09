"""Firebase Admin SDK initialization, Firestore client and ID token checks."""

import asyncio
import json
import os
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials, firestore_async
from google.cloud.firestore import AsyncClient
from structlog import get_logger

logger = get_logger(__name__)

_firebase_app: firebase_admin.App | None = None
_firestore_client: AsyncClient | None = None


def _load_credentials(
    firebase_credentials_path: str | None,
    firebase_config_json: str | None,
) -> credentials.Certificate | None:
    # Inline JSON (hosted deployments) wins over a file path (local dev)
    if firebase_config_json:
        logger.info("firebase_credentials_from_env")
        return credentials.Certificate(json.loads(firebase_config_json))

    if firebase_credentials_path:
        if os.path.exists(firebase_credentials_path):
            logger.info("firebase_credentials_from_file", path=firebase_credentials_path)
            return credentials.Certificate(firebase_credentials_path)
        logger.warning("firebase_credentials_file_missing", path=firebase_credentials_path)

    return None


def initialize_firebase(
    firebase_credentials_path: str | None = None,
    firebase_config_json: str | None = None,
    project_id: str | None = None,
) -> firebase_admin.App:
    """
    Initialize the Firebase Admin SDK once per process.

    Credentials are taken from, in order: the raw service-account JSON, the
    service-account file, then Google application default credentials.

    Args:
        firebase_credentials_path: Path to a service account JSON file
        firebase_config_json: Raw JSON string of a service account
        project_id: Project id, needed with default credentials outside GCP

    Returns:
        The Firebase app

    Raises:
        ValueError: If the credentials are malformed
    """
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    options = {"projectId": project_id} if project_id else None
    cred = _load_credentials(firebase_credentials_path, firebase_config_json)

    try:
        if cred is None:
            _firebase_app = firebase_admin.initialize_app(options=options)
            logger.info("firebase_default_credentials")
        else:
            _firebase_app = firebase_admin.initialize_app(cred, options)
    except Exception as e:
        logger.error("firebase_initialization_error", error=str(e))
        raise

    return _firebase_app


def get_firestore_client() -> AsyncClient:
    """
    Get (and lazily create) the async Firestore client.

    Raises:
        RuntimeError: If Firebase has not been initialized
    """
    global _firestore_client

    if _firestore_client is None:
        if _firebase_app is None:
            raise RuntimeError("Firebase not initialized. Call initialize_firebase() first.")
        _firestore_client = firestore_async.client(_firebase_app)

    return _firestore_client


def reset_firestore_client() -> None:
    """Drop the cached Firestore client so the next call builds a fresh one."""
    global _firestore_client

    _firestore_client = None


async def verify_firebase_token(id_token: str, check_revoked: bool = False) -> dict[str, Any]:
    """
    Verify a Firebase ID token.

    The SDK call may fetch Google's public keys over HTTP, so it runs in a
    worker thread.

    Args:
        id_token: Firebase ID token from the client
        check_revoked: Also reject tokens whose session was revoked

    Returns:
        Decoded token: uid, email and custom claims such as ``role``

    Raises:
        ValueError: If the token is invalid, expired or revoked
    """
    try:
        decoded_token = await asyncio.to_thread(
            auth.verify_id_token,
            id_token,
            check_revoked=check_revoked,
            clock_skew_seconds=10,
        )
    except auth.RevokedIdTokenError as e:
        logger.warning("firebase_token_revoked")
        raise ValueError(f"Firebase ID token has been revoked: {e!s}")
    except auth.ExpiredIdTokenError as e:
        logger.info("firebase_token_expired")
        raise ValueError(f"Firebase ID token has expired: {e!s}")
    except auth.InvalidIdTokenError as e:
        logger.warning("firebase_token_invalid", error=str(e))
        raise ValueError(f"Invalid Firebase ID token: {e!s}")
    except Exception as e:
        logger.error("firebase_token_verification_error", error=str(e))
        raise ValueError(f"Token verification failed: {e!s}")

    logger.debug("firebase_token_verified", uid=decoded_token.get("uid"))
    return decoded_token
