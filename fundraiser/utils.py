"""
Utility functions
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

from bson import ObjectId
from bson.errors import InvalidId

from fundraiser.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: str, field: str = "id") -> ObjectId:
    """
    Parse a client-supplied identifier into an ObjectId

    Raises:
        ValidationError: If the value is not a valid ObjectId
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise ValidationError(f"Invalid {field}") from exc


def new_id() -> str:
    """Fresh identifier string (used for spot ids)"""
    return str(ObjectId())


def serialize(value: Any) -> Any:
    """
    Make a MongoDB document JSON-friendly

    ObjectIds become hex strings; nested dicts and lists are walked.

    Example:
        >>> serialize({"_id": ObjectId("65f000000000000000000001"), "members": []})
        {'_id': '65f000000000000000000001', 'members': []}
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize(v) for v in value]
    return value


def serialize_many(docs: List[Dict]) -> List[Dict]:
    return [serialize(doc) for doc in docs]
