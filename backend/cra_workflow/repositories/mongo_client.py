"""MongoDB Client - Connection and Collection Management"""
from typing import Any, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None

# Collection names
REQUESTS = "requests"
COUNTERS = "counters"
LOCKS = "locks"
NOTIFICATION_OUTBOX = "notification_outbox"
DIGEST_QUEUE = "admin_digest_queue"
INAPP_NOTIFICATIONS = "inapp_notifications"
MAIL_SETTINGS = "mail_settings"
MAIL_TOKENS = "mail_tokens"
APP_USERS = "app_users"
AUDIT_EVENTS = "audit_events"


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
        )
        # Test connection
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str, db: Optional[Database] = None) -> Collection:
    """Get a collection from the given database (default: the application database)"""
    db = db if db is not None else get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


# (collection, keys, options)
_INDEXES = [
    (REQUESTS, "request_id", {"unique": True}),
    (REQUESTS, "status", {}),
    (REQUESTS, [("created_by", ASCENDING), ("status", ASCENDING)], {}),
    (REQUESTS, "updated_at", {}),
    # At most one live draft per (creator, session key)
    (REQUESTS, [("created_by", ASCENDING), ("draft_session_key", ASCENDING)], {
        "name": "uniq_draft_session",
        "unique": True,
        "partialFilterExpression": {"status": "draft", "draft_session_key": {"$type": "string"}},
    }),
    (LOCKS, "expires_at", {}),
    (NOTIFICATION_OUTBOX, "notification_id", {"unique": True}),
    (NOTIFICATION_OUTBOX, [("status", ASCENDING), ("next_attempt_at", ASCENDING)], {}),
    (NOTIFICATION_OUTBOX, "request_id", {}),
    (DIGEST_QUEUE, "entry_id", {"unique": True}),
    (DIGEST_QUEUE, [("delivery_status", ASCENDING), ("digest_date", ASCENDING), ("lang", ASCENDING)], {}),
    (DIGEST_QUEUE, "request_id", {}),
    (INAPP_NOTIFICATIONS, "notification_id", {"unique": True}),
    (INAPP_NOTIFICATIONS, [("user_id", ASCENDING), ("created_at", DESCENDING)], {}),
    (INAPP_NOTIFICATIONS, [("user_id", ASCENDING), ("is_read", ASCENDING)], {}),
    (APP_USERS, "user_id", {"unique": True}),
    (APP_USERS, "email_lower", {}),
    (APP_USERS, [("role", ASCENDING), ("is_active", ASCENDING)], {}),
    (AUDIT_EVENTS, "audit_event_id", {"unique": True}),
    (AUDIT_EVENTS, [("request_id", ASCENDING), ("timestamp", DESCENDING)], {}),
]


def create_indexes(db: Optional[Database] = None) -> None:
    """Create all required indexes (idempotent)"""
    db = db if db is not None else get_database()
    for collection, keys, options in _INDEXES:
        db[collection].create_index(keys, **options)
    logger.info(f"Ensured {len(_INDEXES)} MongoDB indexes")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
