import logging

import firebase_admin
from firebase_admin import credentials, db

from config import FIREBASE_CRED_PATH, FIREBASE_DB_URL

logger = logging.getLogger(__name__)


def init_firebase():
    """Initialize the default Firebase app once; later calls are no-ops."""
    if firebase_admin._apps:
        return firebase_admin.get_app()
    try:
        cred = credentials.Certificate(FIREBASE_CRED_PATH)
        app = firebase_admin.initialize_app(cred, {
            'databaseURL': FIREBASE_DB_URL
        })
    except Exception as e:
        raise RuntimeError(f"🔥 Firebase initialization failed: {e}") from e
    logger.info("Firebase app initialized for %s", FIREBASE_DB_URL)
    return app


# Firebase root DB reference
def get_db_ref(path: str = "/") -> db.Reference:
    init_firebase()
    return db.reference(path)
