from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv
import os
import logging
from pathlib import Path

from safesign.services.mongo_store import MongoDocumentStore

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger(__name__)

MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "safesign")


class Database:
    """Holds the motor client for the Mongo storage backend."""
    client: AsyncIOMotorClient = None
    db = None

    def __init__(self, mongo_url: str = MONGO_URL, db_name: str = DB_NAME):
        self.mongo_url = mongo_url
        self.db_name = db_name

    async def connect(self):
        try:
            self.client = AsyncIOMotorClient(self.mongo_url)
            self.db = self.client[self.db_name]
            await self.db.command("ping")
            logger.info(f"Connected to MongoDB: {self.db_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def close(self):
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    def get_db(self):
        if self.db is None:
            raise RuntimeError("Database is not connected")
        return self.db

    async def document_store(self) -> MongoDocumentStore:
        """Document store on the connected database, indexes verified."""
        store = MongoDocumentStore(self.get_db())
        try:
            await store.ensure_indexes()
        except Exception as e:
            # Existing indexes with different options must not block startup
            logger.warning(f"Index creation note: {e}")
        return store


# Global database instance
database = Database()
