"""
MongoDB Connection Module (v2.0.0)
Lazy MongoDB connection shared by the persistence helpers.
"""
import os
import logging

logger = logging.getLogger(__name__)

# MongoDB configuration
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "smartstyle")

# Collections
LIKED_OUTFITS = "liked_outfits"
WARDROBE_ITEMS = "wardrobe_items"
PREFERENCES = "preferences"
RECOMMENDATIONS = "recommendations"

# Global client
_client = None
_db = None


def connect() -> bool:
    """
    Connect to MongoDB.
    
    Returns:
        True if connected, False otherwise
    """
    global _client, _db
    
    try:
        from pymongo import MongoClient
        
        logger.info(f"Connecting to MongoDB: {MONGO_URI[:30]}...")
        
        _client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=5000)
        
        # Test connection
        _client.admin.command('ping')
        
        _db = _client[MONGO_DB_NAME]
        
        logger.info(f"✓ Connected to MongoDB database: {MONGO_DB_NAME}")
        return True
        
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        _client = None
        _db = None
        return False


def close() -> None:
    """Close the client (application shutdown)."""
    global _client, _db
    
    if _client is not None:
        _client.close()
        logger.info("MongoDB connection closed")
    _client = None
    _db = None


def get_collection(name: str):
    """Get a MongoDB collection, or None when the database is unavailable."""
    if _db is None:
        connect()
    
    if _db is None:
        return None
    
    return _db[name]


def health_check() -> dict:
    """Check MongoDB connection health."""
    try:
        if _client is None:
            connect()
        
        if _client:
            _client.admin.command('ping')
            return {"status": "connected", "uri": MONGO_URI[:30] + "..."}
        else:
            return {"status": "disconnected", "reason": "client not initialized"}
            
    except Exception as e:
        return {"status": "disconnected", "reason": str(e)}
