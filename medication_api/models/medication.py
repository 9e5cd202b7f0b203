"""
Medication API - Medication Document Model
==========================================

What:  Pydantic model of a medication document as stored in MongoDB.
How:   Field aliases map Python names to the on-disk keys (`_id`, `imageUrl`).
Who:   Used by MedicationService to build documents for writes and to decode
       documents returned by reads.

Document layout:
    {
        "_id":         ObjectId("65a1..."),   # assigned by the driver on insert
        "name":        "Aspirin",
        "description": "Pain relief",
        "price":       4.5,
        "imageUrl":    "http://x/a.png"
    }

Documents created before `price` and `imageUrl` existed decode with the
field defaults.
"""

from typing import Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

# Keys written by update; `_id` is never part of a $set
MUTABLE_FIELDS = ("name", "description", "price", "imageUrl")


class MedicationDocument(BaseModel):
    """
    Represents one medication in the collection.

    Lifecycle:
        1. Built from a create payload without an `_id`
        2. Inserted; the driver assigns `_id`
        3. Mutable fields replaced wholesale by update
        4. Removed by delete (no soft-delete)
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[ObjectId] = Field(default=None, alias="_id")
    name: str = ""
    description: str = ""
    price: float = 0.0
    image_url: str = Field(default="", alias="imageUrl")

    @classmethod
    def from_mongo(cls, document: Dict[str, Any]) -> "MedicationDocument":
        """Decode a raw document; raises pydantic.ValidationError on bad types."""
        return cls.model_validate(document)

    def to_mongo(self) -> Dict[str, Any]:
        """Serialize with on-disk keys, leaving out `_id` while it is unset."""
        document = self.model_dump(by_alias=True)
        if document.get("_id") is None:
            document.pop("_id", None)
        return document

    def mutable_fields(self) -> Dict[str, Any]:
        """Every mutable field, for a full-replace `$set`."""
        document = self.model_dump(by_alias=True)
        return {key: document[key] for key in MUTABLE_FIELDS}

    def __repr__(self) -> str:
        return f"<MedicationDocument(id={self.id}, name='{self.name}')>"
