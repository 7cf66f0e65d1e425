"""
Database helpers

Holds the single MongoDB client shared by every request handler, plus small
helpers for inserting and reading documents. Connection settings come from
the environment (a local .env file is loaded first).
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

load_dotenv()

logger = logging.getLogger("app.database")

DATABASE_URL = os.getenv("DATABASE_URL") or os.getenv("DB_MONGO_URI")
DATABASE_NAME = os.getenv("DATABASE_NAME", "learning-hub")

client: Optional[MongoClient] = None
db = None

if DATABASE_URL:
    try:
        client = MongoClient(DATABASE_URL)
        db = client[DATABASE_NAME]
        logger.info("Connected to MongoDB database %s", DATABASE_NAME)
    except PyMongoError:
        logger.exception("MongoDB connection failed")
        client = None
        db = None
else:
    logger.warning("DATABASE_URL is not set; database routes will fail")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def collection(name: str):
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db[name]


def parse_object_id(value: str, kind: str = "document") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {kind} id")


def serialize(doc: Optional[dict]) -> Optional[dict]:
    """Make a stored document JSON friendly (ObjectId -> hex string)."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def create_document(
    collection_name: str,
    data: Union[BaseModel, Dict[str, Any]],
    stamp: str = "createdAt",
) -> str:
    """Insert a document and return its id as a string.

    The ``stamp`` field is set to the current UTC time unless the caller
    already supplied it.
    """
    if isinstance(data, BaseModel):
        doc = data.model_dump(exclude_unset=True)
    else:
        doc = dict(data)
    doc.setdefault(stamp, now_utc())
    inserted_id = collection(collection_name).insert_one(doc).inserted_id
    logger.debug("inserted %s into %s", inserted_id, collection_name)
    return str(inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[dict] = None,
    sort_field: Optional[str] = None,
) -> List[dict]:
    """Return matching documents, newest first when ``sort_field`` is given."""
    cursor = collection(collection_name).find(filter_dict or {})
    if sort_field:
        cursor = cursor.sort(sort_field, -1)
    return [serialize(d) for d in cursor]


def database_status() -> dict:
    status = {
        "database": "❌ Not Available",
        "database_url": "✅ Set" if DATABASE_URL else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    if db is None:
        return status
    status["database"] = "✅ Available"
    status["database_name"] = db.name
    status["connection_status"] = "Connected"
    try:
        status["collections"] = db.list_collection_names()[:10]
        status["database"] = "✅ Connected & Working"
    except PyMongoError as e:
        status["database"] = f"⚠️ Connected but Error: {str(e)[:50]}"
    return status
