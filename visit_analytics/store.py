import logging

from pymongo import ASCENDING, DESCENDING, MongoClient

logger = logging.getLogger(__name__)


class VisitStore:
    """
    The handful of collection operations the analytics code needs:
    insert, count, grouped counts, and a sorted/projected find.
    All calls block; async callers push them onto a worker thread.
    """

    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_uri(cls, uri, db_name, collection_name, **client_kwargs):
        client_kwargs.setdefault("serverSelectionTimeoutMS", 5000)
        client = MongoClient(uri, **client_kwargs)
        return cls(client[db_name][collection_name])

    def ensure_indexes(self):
        """
        Idempotent; safe to run on every start.
        """
        self.collection.create_index([("timestamp", DESCENDING)])
        self.collection.create_index([("path", ASCENDING)])
        self.collection.create_index([("country", ASCENDING)])
        self.collection.create_index([("sessionId", ASCENDING)])

    def insert(self, document: dict):
        return self.collection.insert_one(document).inserted_id

    def count(self, query: dict) -> int:
        return self.collection.count_documents(query)

    def count_groups(self, key, query: dict) -> int:
        """
        Number of distinct values of a group key expression.
        """
        pipeline = [
            {"$match": query},
            {"$group": {"_id": key}},
        ]
        return len(list(self.collection.aggregate(pipeline)))

    def grouped_counts(self, key, query: dict, sort=None, limit=None) -> list:
        """
        [{"_id": <group>, "count": n}, ...]; sorted by count descending
        unless another sort spec is given.
        """
        pipeline = [
            {"$match": query},
            {"$group": {"_id": key, "count": {"$sum": 1}}},
            {"$sort": sort or {"count": -1}},
        ]
        if limit:
            pipeline.append({"$limit": limit})
        return list(self.collection.aggregate(pipeline))

    def find_recent(self, query: dict, fields, limit: int) -> list:
        projection = {f: 1 for f in fields}
        projection["_id"] = 0
        cursor = self.collection.find(query, projection).sort("timestamp", DESCENDING).limit(limit)
        return list(cursor)
