import logging
import os
import re
from decimal import ROUND_HALF_UP, Decimal
from numbers import Number
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from database import (
    collection,
    create_document,
    database_status,
    get_documents,
    now_utc,
    parse_object_id,
    serialize,
)
from schemas import Booking, Material, Note, Review, RoleUpdate, StudySession, User

logger = logging.getLogger("app.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

app = FastAPI(title="Learning Hub API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Database operation failed"})


# Utilities

def _insert_result(inserted_id: str) -> dict:
    return {"acknowledged": True, "insertedId": inserted_id}


def _update_result(result) -> dict:
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
    }


def _delete_result(result) -> dict:
    return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}


def _exact_ci(value: str) -> dict:
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


def average_rating(reviews: List[dict]) -> Optional[float]:
    """Mean of the numeric ratings rounded half up to one decimal, None without any."""
    ratings = [
        r["rating"]
        for r in reviews
        if isinstance(r.get("rating"), Number) and not isinstance(r.get("rating"), bool)
    ]
    if not ratings:
        return None
    mean = sum(Decimal(str(r)) for r in ratings) / len(ratings)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _find_by_id(collection_name: str, item_id: str, kind: str) -> dict:
    oid = parse_object_id(item_id, kind.lower())
    doc = collection(collection_name).find_one({"_id": oid})
    if not doc:
        raise HTTPException(status_code=404, detail=f"{kind} not found")
    return serialize(doc)


def _update_by_id(collection_name: str, item_id: str, kind: str, payload) -> dict:
    oid = parse_object_id(item_id, kind)
    update = payload.model_dump(exclude_unset=True)
    update.pop("_id", None)
    update.pop("createdAt", None)
    update["updatedAt"] = now_utc()
    result = collection(collection_name).update_one({"_id": oid}, {"$set": update})
    return _update_result(result)


def _delete_by_id(collection_name: str, item_id: str, kind: str) -> dict:
    oid = parse_object_id(item_id, kind)
    result = collection(collection_name).delete_one({"_id": oid})
    logger.info("deleted %s %s (%d)", kind, item_id, result.deleted_count)
    return _delete_result(result)


# Routes
@app.get("/")
def root():
    return {"message": "📚 Collaborative Study Platform Server is running!"}


@app.get("/test")
def test_database():
    response = {"backend": "✅ Running"}
    response.update(database_status())
    return response


# Users

@app.post("/users")
def register_user(payload: User, response: Response):
    user = payload.model_dump(exclude_unset=True)
    email = user.get("email")
    if email:
        existing = collection("users").find_one({"email": _exact_ci(email)})
        if existing:
            result = collection("users").update_one(
                {"_id": existing["_id"]}, {"$set": {"lastLoggedAt": now_utc()}}
            )
            logger.debug("user %s logged in again", email)
            return _update_result(result)
    user.setdefault("role", "student")
    user.setdefault("lastLoggedAt", now_utc())
    inserted_id = create_document("users", user)
    logger.info("registered user %s", email)
    response.status_code = status.HTTP_201_CREATED
    return _insert_result(inserted_id)


@app.get("/users")
def list_users():
    return get_documents("users")


@app.get("/usersForAdmin")
def search_users(search: Optional[str] = None):
    query = {}
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query = {"$or": [{"name": pattern}, {"email": pattern}]}
    return get_documents("users", query, sort_field="createdAt")


@app.patch("/users/role/{user_id}")
def update_user_role(user_id: str, payload: RoleUpdate):
    oid = parse_object_id(user_id, "user")
    result = collection("users").update_one({"_id": oid}, {"$set": {"role": payload.role}})
    logger.info("role of user %s set to %s", user_id, payload.role)
    return _update_result(result)


# Sessions

@app.post("/session", status_code=status.HTTP_201_CREATED)
def create_session(payload: StudySession):
    session = payload.model_dump(exclude_unset=True)
    session.setdefault("status", payload.status)
    inserted_id = create_document("session", session)
    logger.info("session %s created by %s", inserted_id, payload.tutorEmail)
    return _insert_result(inserted_id)


@app.get("/all-sessions")
@app.get("/sessions")
def list_sessions():
    return get_documents("session", sort_field="createdAt")


@app.get("/session/{session_id}")
def get_session(session_id: str):
    session = _find_by_id("session", session_id, "Session")
    reviews = get_documents("reviews", {"sessionId": session_id}, sort_field="createdAt")
    session["reviews"] = reviews
    session["averageRating"] = average_rating(reviews)
    return session


@app.get("/tutor-sessions")
def list_tutor_sessions(email: str):
    return get_documents("session", {"tutorEmail": email}, sort_field="createdAt")


@app.get("/approved-sessions")
def list_approved_sessions(email: Optional[str] = None):
    query = {"status": "approved"}
    if email:
        query["tutorEmail"] = email
    return get_documents("session", query, sort_field="createdAt")


@app.patch("/session/resend-request/{session_id}")
def resend_session_request(session_id: str):
    oid = parse_object_id(session_id, "session")
    result = collection("session").update_one(
        {"_id": oid, "status": "rejected"},
        {"$set": {"status": "pending", "updatedAt": now_utc()}},
    )
    if result.modified_count:
        logger.info("session %s resent for approval", session_id)
    return _update_result(result)


# Bookings

@app.get("/bookings")
def list_bookings(email: Optional[str] = None):
    query = {"studentEmail": email} if email else {}
    return get_documents("bookings", query, sort_field="bookedAt")


@app.post("/bookings", status_code=status.HTTP_201_CREATED)
def create_booking(payload: Booking):
    return _insert_result(create_document("bookings", payload, stamp="bookedAt"))


# Reviews

@app.post("/reviews", status_code=status.HTTP_201_CREATED)
def create_review(payload: Review):
    return _insert_result(create_document("reviews", payload))


@app.get("/reviews/{session_id}")
def list_reviews(session_id: str):
    return get_documents("reviews", {"sessionId": session_id}, sort_field="createdAt")


# Notes

@app.post("/notes", status_code=status.HTTP_201_CREATED)
def create_note(payload: Note):
    return _insert_result(create_document("notes", payload))


@app.get("/notes")
def list_notes(email: str):
    return get_documents("notes", {"email": email}, sort_field="createdAt")


@app.get("/notes/{note_id}")
def get_note(note_id: str):
    return _find_by_id("notes", note_id, "Note")


@app.patch("/notes/{note_id}")
def update_note(note_id: str, payload: Note):
    return _update_by_id("notes", note_id, "note", payload)


@app.delete("/notes/{note_id}")
def delete_note(note_id: str):
    return _delete_by_id("notes", note_id, "note")


# Materials

@app.post("/materials", status_code=status.HTTP_201_CREATED)
def create_material(payload: Material):
    return _insert_result(create_document("materials", payload))


@app.get("/materials")
def list_materials(sessionId: Optional[str] = None, tutorEmail: Optional[str] = None):
    query = {}
    if sessionId:
        query["sessionId"] = sessionId
    if tutorEmail:
        query["tutorEmail"] = tutorEmail
    return get_documents("materials", query, sort_field="createdAt")


@app.get("/materials/{material_id}")
def get_material(material_id: str):
    return _find_by_id("materials", material_id, "Material")


@app.patch("/materials/{material_id}")
def update_material(material_id: str, payload: Material):
    return _update_by_id("materials", material_id, "material", payload)


@app.delete("/materials/{material_id}")
def delete_material(material_id: str):
    return _delete_by_id("materials", material_id, "material")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
