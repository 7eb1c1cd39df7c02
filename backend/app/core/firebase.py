import json
import base64
import logging
from functools import lru_cache

from firebase_admin import credentials, initialize_app, get_app, firestore
from app.core.config import settings

logger = logging.getLogger("khoi")


def init_firebase():
    """
    Initialize the default Firebase Admin app once per process.

    Credentials come from KHOI_FIREBASE_KEY (base64 service account JSON)
    when set, otherwise from application default credentials.
    """
    try:
        app = get_app()
        logger.info("✅ Firebase Admin SDK already initialized")
        return app
    except ValueError:
        pass

    if not settings.KHOI_FIREBASE_KEY:
        logger.info("🔑 KHOI_FIREBASE_KEY not set, using application default credentials")
        app = initialize_app(credentials.ApplicationDefault())
        logger.info("🔥 Firebase Admin SDK initialized with default credentials")
        return app

    try:
        decoded_json = base64.b64decode(settings.KHOI_FIREBASE_KEY).decode("utf-8")
        service_account_info = json.loads(decoded_json)
        logger.info("🔑 Successfully loaded Firebase credentials from KHOI_FIREBASE_KEY")
    except Exception as e:
        raise RuntimeError(f"❌ Failed to decode or parse KHOI_FIREBASE_KEY: {e}")

    project_id = service_account_info.get("project_id")
    if not project_id:
        raise ValueError("❌ 'project_id' missing in Firebase service account JSON")

    app = initialize_app(credentials.Certificate(service_account_info))
    logger.info(f"🔥 Firebase Admin SDK initialized successfully | Project: {project_id}")
    return app


@lru_cache(maxsize=1)
def get_db():
    """Firestore client bound to the default Firebase app."""
    app = init_firebase()
    try:
        db = firestore.client(app)
        logger.info("✅ Firestore client ready")
    except Exception as e:
        logger.error(f"❌ Failed to initialize Firestore client: {e}")
        raise
    return db


__all__ = ["init_firebase", "get_db"]
