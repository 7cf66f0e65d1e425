"""
Database Schemas

Pydantic models describing the documents stored in each MongoDB collection.
They are deliberately loose: unknown fields are kept as-is, values are not
coerced and explicit nulls are stored, so clients can keep whatever extra
data they need.

Collections:
- User -> "users"
- StudySession -> "session"
- Booking -> "bookings"
- Review -> "reviews"
- Note -> "notes"
- Material -> "materials"
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    model_config = ConfigDict(extra="allow")


class User(Document):
    """
    Users collection schema
    Collection name: "users"
    """
    email: Optional[str] = Field(None, description="Email address (unique, case-insensitive)")
    name: Optional[str] = Field(None, description="Display name")
    role: Optional[str] = Field(None, description="student, tutor or admin")
    photoURL: Optional[str] = Field(None, description="Profile photo URL")
    lastLoggedAt: Optional[Any] = None
    createdAt: Optional[Any] = None


class RoleUpdate(BaseModel):
    role: str


class StudySession(Document):
    """
    Study sessions offered by tutors
    Collection name: "session"
    """
    tutorEmail: Optional[str] = Field(None, description="Tutor email (references user)")
    title: Optional[str] = None
    status: Any = Field("pending", description="pending, approved or rejected")
    createdAt: Optional[Any] = None
    updatedAt: Optional[Any] = None


class Booking(Document):
    """
    Student bookings of a session
    Collection name: "bookings"
    """
    studentEmail: Optional[str] = None
    sessionId: Optional[str] = None
    bookedAt: Optional[Any] = None


class Review(Document):
    """
    Student reviews of a session
    Collection name: "reviews"
    """
    sessionId: Optional[str] = Field(None, description="Reviewed session id (not enforced)")
    studentEmail: Optional[str] = None
    rating: Optional[Any] = Field(None, description="Rating given by the student")
    comment: Optional[str] = None
    createdAt: Optional[Any] = None


class Note(Document):
    """
    Personal study notes
    Collection name: "notes"
    """
    email: Optional[str] = Field(None, description="Owner email")
    title: Optional[str] = None
    description: Optional[str] = None
    createdAt: Optional[Any] = None
    updatedAt: Optional[Any] = None


class Material(Document):
    """
    Study materials uploaded by tutors for a session
    Collection name: "materials"
    """
    sessionId: Optional[str] = None
    tutorEmail: Optional[str] = None
    title: Optional[str] = None
    imageURL: Optional[str] = None
    driveLink: Optional[str] = None
    createdAt: Optional[Any] = None
    updatedAt: Optional[Any] = None
