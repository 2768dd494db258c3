# runtime settings, read once from the environment
import os

SECRET_KEY = os.getenv("STOREFRONT_SECRET_KEY", "dev-secret-key-change-me")
ALGORITHM = "HS256"
TOKEN_TTL_MINUTES = int(os.getenv("STOREFRONT_TOKEN_TTL_MINUTES", 60 * 24 * 30))
SESSION_COOKIE = "session-token"

DB_PATH = os.getenv("STOREFRONT_DB_PATH", "data/db.sqlite")

API_URL = os.getenv("STOREFRONT_API_URL", "http://127.0.0.1:8000")
HOST = os.getenv("STOREFRONT_HOST", "127.0.0.1")
PORT = int(os.getenv("STOREFRONT_PORT", 8000))

# seeds the role-assignment table on first start
ADMIN_EMAILS = [
    e.strip().lower()
    for e in os.getenv("STOREFRONT_ADMIN_EMAILS", "admin@example.com").split(",")
    if e.strip()
]

CART_FILE = os.getenv(
    "STOREFRONT_CART_FILE",
    os.path.join(os.path.expanduser("~"), ".min-commerce", "cart.json"),
)
