import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.write_concern import WriteConcern

from .config import BACKENDS, mongo_url, read_password
from .errors import StoreError
from .updates import ATTR_REPOSITORY_NAME

logger = logging.getLogger(__name__)

MONGO_OPERATORS = {
    "set": "$set",
    "set_on_insert": "$setOnInsert",
    "min": "$min",
    "max": "$max",
    "add_to_set": "$addToSet",
    "inc": "$inc",
}


def to_mongo_update(operation):
    update = {}
    for group, values in operation.groups():
        if values:
            update[MONGO_OPERATORS[group]] = dict(values)
    return update


class MongoRepositoryStore:
    def __init__(self, collection, client=None):
        # Don't report a write as done until it is in the on-disk journal
        self._collection = collection.with_options(
            write_concern=WriteConcern(w=1, j=True)
        )
        self._client = client

    @classmethod
    def from_config(cls, config):
        mongodb = config["mongodb"]

        kwargs = {
            "tz_aware": True,
            "serverSelectionTimeoutMS": int(mongodb["timeout"].as_number() * 1000),
        }
        # Credentials only go to the driver as a pair
        username = mongodb["username"].get(str) if mongodb["username"].exists() else ""
        password = read_password(mongodb)
        if username and password:
            kwargs["username"] = username
            kwargs["password"] = password
        elif username:
            logger.warning(
                "No password for mongodb.username %r, not authenticating", username
            )

        database = mongodb["database"].get(str)
        collection = mongodb["collection"].get(str)
        logger.info("Storing repository stats in %s.%s", database, collection)

        client = AsyncIOMotorClient(mongo_url(mongodb), **kwargs)
        return cls(client[database][collection], client=client)

    async def ensure_indexes(self):
        try:
            await self._collection.create_index(
                [(ATTR_REPOSITORY_NAME, ASCENDING)], unique=True, background=True
            )
        except PyMongoError:
            logger.error(
                "Could not create the unique index on %s. Make sure there are "
                "no duplicate documents for a repository name.",
                ATTR_REPOSITORY_NAME,
            )
            raise

    async def _update(self, selector, update):
        try:
            return await self._collection.update_one(selector, update, upsert=True)
        except DuplicateKeyError:
            # Lost an insert race for a new repository against another request.
            # The document exists now, so the same update merges into it.
            logger.debug("Upsert raced for %s, merging", selector)
            return await self._collection.update_one(selector, update, upsert=True)

    async def upsert(self, selector, operation):
        update = to_mongo_update(operation)

        try:
            result = await self._update(selector, update)
        except PyMongoError as e:
            raise StoreError(f"Failed to store stats: {e}") from e

        logger.debug(
            "Upserted %s: matched=%d modified=%d upserted_id=%s",
            selector,
            result.matched_count,
            result.modified_count,
            result.upserted_id,
        )

        return result.matched_count > 0

    async def remove(self, selector):
        try:
            result = await self._collection.delete_one(selector)
        except PyMongoError as e:
            raise StoreError(f"Failed to remove stats: {e}") from e

        logger.debug("Removed %s: deleted=%d", selector, result.deleted_count)

    async def close(self):
        if self._client is not None:
            self._client.close()


class MemoryRepositoryStore:

    """Keeps documents in a dict, merging them the way MongoDB would."""

    def __init__(self):
        self.documents = {}
        self._lock = asyncio.Lock()

    async def ensure_indexes(self):
        pass

    async def upsert(self, selector, operation):
        name = selector[ATTR_REPOSITORY_NAME]

        async with self._lock:
            matched = name in self.documents

            document = self.documents.setdefault(name, dict(selector))
            if not matched:
                document.update(operation.set_on_insert)

            document.update(operation.set)

            for field, value in operation.min.items():
                if field not in document or value < document[field]:
                    document[field] = value

            for field, value in operation.max.items():
                if field not in document or value > document[field]:
                    document[field] = value

            for field, value in operation.add_to_set.items():
                members = document.setdefault(field, [])
                if value not in members:
                    members.append(value)

            for field, value in operation.inc.items():
                document[field] = document.get(field, 0) + value

        return matched

    async def remove(self, selector):
        async with self._lock:
            self.documents.pop(selector[ATTR_REPOSITORY_NAME], None)

    async def close(self):
        pass


def create_store(config):
    backend = config["storage"]["backend"].as_choice(BACKENDS)
    if backend == "memory":
        logger.warning("Using in-memory storage, statistics are lost on exit")
        return MemoryRepositoryStore()
    return MongoRepositoryStore.from_config(config)
