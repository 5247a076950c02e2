"""
Identifier helpers.

Documents created by the API use ObjectId keys; clients send them back as
hex strings.
"""

from typing import Any, Dict

from bson import ObjectId

from common.utils.exceptions import ValidationException


def parse_object_id(value: str, field: str = "id") -> ObjectId:
    """
    Convert a hex string to an ObjectId.

    Raises:
        ValidationException: If the string is not a valid ObjectId
    """
    if not value or not ObjectId.is_valid(value):
        raise ValidationException(
            message=f"Invalid {field}",
            code="INVALID_ID",
            details={"field": field},
        )
    return ObjectId(value)


def serialize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Copy a Mongo document, exposing ``_id`` as a string ``id``."""
    result = {key: value for key, value in doc.items() if key != "_id"}
    result["id"] = str(doc["_id"])
    return result
