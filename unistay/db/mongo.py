import logging
import os

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

MONGO_URI = os.getenv("MONGO_URI")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "unistay")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

# Create global client
client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=MONGO_TIMEOUT_MS, tz_aware=True)

# Database reference
db = client[MONGO_DB_NAME]


# ----- Collection helpers -----
def get_profiles_collection():
    return db["profiles"]


def get_connection_requests_collection():
    return db["connection_requests"]


def ensure_indexes(profiles=None, connection_requests=None):
    """Create the indexes the stores rely on. Safe to call repeatedly."""
    profiles = profiles if profiles is not None else get_profiles_collection()
    connection_requests = connection_requests if connection_requests is not None else get_connection_requests_collection()

    profiles.create_index([("created_at", DESCENDING)])
    # One active request per unordered pair; rejected requests drop the key.
    connection_requests.create_index(
        [("active_pair", ASCENDING)], unique=True, sparse=True, name="uq_active_pair"
    )
    connection_requests.create_index([("recipient_id", ASCENDING), ("created_at", DESCENDING)])
    connection_requests.create_index([("sender_id", ASCENDING), ("created_at", DESCENDING)])


def check_connection():
    """Check if MongoDB connection works"""
    try:
        client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.error("MongoDB connection failed: %s", e)
        return False
