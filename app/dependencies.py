import os
import json
import logging
from dotenv import load_dotenv
from typing import Optional

from fastapi import HTTPException, Depends
from firebase_admin import credentials, initialize_app, get_app, _apps, firestore as admin_firestore
from google.cloud import secretmanager
from google.api_core import exceptions as gapi_exceptions

from app.config import settings, cloud_config
from app.services.llm_service import LazyGeminiGenerator
from app.services.packing_controller import PackingListController
from app.services.packing_service import PackingListService
from app.services.session_service import SessionService, SessionNotFoundError
from app.services.storage_service import FirestoreStorage, KeyValueStorage, MemoryStorageRegistry

load_dotenv()
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


SERVICE_ACCOUNT_SECRET = os.getenv("SERVICE_ACCOUNT_SECRET")  # e.g. projects/PROJECT_ID/secrets/SA_KEY/versions/latest
GOOGLE_APPLICATION_CREDENTIALS = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")  # local path (dev)
PROJECT_ID = os.getenv("PROJECT_ID", settings.project_id)  # used to expand a shorthand secret id
DATABASE = os.getenv("DATABASE", settings.database)

def _access_secret_from_sm(resource_name: str) -> Optional[str]:
    """
    Given a full Secret Manager resource name (projects/.../secrets/.../versions/...),
    retrieve the secret payload (string).
    """
    try:
        client = secretmanager.SecretManagerServiceClient()
        response = client.access_secret_version(request={"name": resource_name})
        payload = response.payload.data.decode("UTF-8")
        return payload
    except gapi_exceptions.GoogleAPIError as e:
        logger.exception("Unable to access secret %s: %s", resource_name, e)
        raise


def get_google_api_key() -> str:
    """
    Gemini API key: GOOGLE_API_KEY from the environment, or the
    google-api-key secret when running on Cloud Run.
    """
    if settings.google_api_key:
        return settings.google_api_key
    if cloud_config.IS_CLOUD_RUN:
        logger.info("Loading Gemini API key from Secret Manager")
        return _access_secret_from_sm(cloud_config.get_google_api_key_secret_path()) or ""
    return ""


def _init_firebase(cred=None):
    """
    Initialize the default firebase_admin app once. Without a credential the
    app uses Application Default Credentials (the attached service account on Cloud Run).
    """
    if _apps:
        return get_app()
    app = initialize_app(cred) if cred is not None else initialize_app()
    logger.info("Initialized firebase_admin (%s)", "service account" if cred is not None else "ADC")
    return app


def init_firebase_admin():
    """
    Initialize firebase_admin and return Firestore client.
    Order of preference:
      1) SERVICE_ACCOUNT_SECRET env var -> fetch JSON from Secret Manager
      2) GOOGLE_APPLICATION_CREDENTIALS env var -> local file path (dev)
      3) ADC (Cloud Run) -> initialize_app() without args
    """
    # 1) Secret Manager
    if SERVICE_ACCOUNT_SECRET:
        secret_res_name = SERVICE_ACCOUNT_SECRET
        # support shorthand secret ID (e.g., "SA_KEY") by turning it into a resource name if project id provided
        if not secret_res_name.startswith("projects/") and PROJECT_ID:
            secret_res_name = f"projects/{PROJECT_ID}/secrets/{SERVICE_ACCOUNT_SECRET}/versions/latest"
        logger.info("Loading service account from Secret Manager: %s", secret_res_name)
        secret_payload = _access_secret_from_sm(secret_res_name)
        _init_firebase(credentials.Certificate(json.loads(secret_payload)))
        return admin_firestore.client(database_id=DATABASE)

    # 2) GOOGLE_APPLICATION_CREDENTIALS (local dev)
    if GOOGLE_APPLICATION_CREDENTIALS and os.path.exists(GOOGLE_APPLICATION_CREDENTIALS):
        logger.info("Loading service account from path: %s", GOOGLE_APPLICATION_CREDENTIALS)
        _init_firebase(credentials.Certificate(GOOGLE_APPLICATION_CREDENTIALS))
        return admin_firestore.client(database_id=DATABASE)

    # 3) ADC (Cloud Run)
    logger.info("No explicit service account provided, attempting Application Default Credentials (ADC)")
    _init_firebase()
    return admin_firestore.client(database_id=DATABASE)


# Lazily initialize a single global Firestore client to reuse across requests
_db_client = None


def get_firestore_client():
    global _db_client
    if _db_client is None:
        _db_client = init_firebase_admin()
    return _db_client


# ---------------------------
# Wiring
# ---------------------------
_memory_storage = MemoryStorageRegistry(settings.storage_quota_bytes)
_session_service = None


def storage_for_session(session_id: str) -> KeyValueStorage:
    if settings.storage_backend == "firestore":
        return FirestoreStorage(get_firestore_client(), session_id, settings.storage_collection)
    return _memory_storage.for_session(session_id)


def release_session_storage(session_id: str):
    # Firestore documents are kept; only empty in-memory namespaces are freed.
    if settings.storage_backend != "firestore":
        _memory_storage.release(session_id)


def get_packing_service() -> PackingListService:
    return PackingListService(LazyGeminiGenerator(get_google_api_key))


def _build_controller(storage: KeyValueStorage) -> PackingListController:
    return PackingListController(
        get_packing_service(),
        storage,
        action_message_seconds=settings.action_message_seconds,
    )


def get_session_service() -> SessionService:
    global _session_service
    if _session_service is None:
        _session_service = SessionService(
            controller_factory=_build_controller,
            storage_factory=storage_for_session,
            ttl_hours=settings.session_ttl_hours,
            storage_release=release_session_storage,
        )
    return _session_service


# ---------------------------
# FastAPI dependencies
# ---------------------------
def get_controller(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> PackingListController:
    """
    Resolve the controller for the session id in the path.
    Raises HTTPException(404) for unknown or expired sessions.
    """
    try:
        return sessions.get_controller(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail={"status": "error", "message": str(e)})
