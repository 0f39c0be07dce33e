import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Firebase service account JSON + Realtime Database URL
FIREBASE_CRED_PATH = os.getenv("FIREBASE_CRED_JSON", "./shoppy-firebase-adminsdk.json")
FIREBASE_DB_URL = os.getenv("FIREBASE_DB_URL", "https://shoppy-7c23b-default-rtdb.firebaseio.com")

# Product catalog (fakestore API)
CATALOG_BASE_URL = os.getenv("CATALOG_BASE_URL", "https://fakestoreapi.com")
CATALOG_TIMEOUT = float(os.getenv("CATALOG_TIMEOUT", "10"))

# Local slot for the persisted cart
CART_STORE_PATH = os.getenv("CART_STORE_PATH", str(Path.home() / ".shoppy_cart.json"))
CART_STORAGE_KEY = "savedCart"

# Order-count increments run on a small background pool
ORDER_COUNT_WORKERS = int(os.getenv("ORDER_COUNT_WORKERS", "4"))

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
