"""
Medication API - Medication Service
===================================

What:  The five medication operations: list, get, create, update, delete.
How:   Each method issues exactly one call against the collection handle it
       is given, bounded by the operation timeout, and translates the
       outcome into a response model or an application exception.
Who:   Called by the route handlers in routes/medications.py.

Request lifecycle (identical for all five operations):
    Received → Validated → Executed → Responded

    Any failure short-circuits to Responded through an exception:
    - BadRequestError  (malformed id)
    - NotFoundError    (no document matched)
    - DatabaseError    (driver failure, decode failure, or timeout)

    No retries, no partial success.

MedicationService holds no per-request state. The collection is passed in on
every call, so tests hand it an in-memory double or an AsyncMock. One
instance per application lives on `app.state.medication_service`, built by
create_app() from that application's settings.
"""

import asyncio
import logging
from typing import Any, Awaitable, List, Optional, TypeVar

from bson import ObjectId
from fastapi import Request
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from medication_api.exceptions import BadRequestError, DatabaseError, NotFoundError
from medication_api.models.medication import MedicationDocument
from medication_api.schemas.medication import MedicationInput, MedicationResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_medication_id(raw_id: str) -> ObjectId:
    """Parse a path id into an ObjectId, or raise BadRequestError."""
    if not ObjectId.is_valid(raw_id):
        raise BadRequestError(message="Invalid medication ID", context={"raw_id": raw_id})
    return ObjectId(raw_id)


class MedicationService:
    """
    Persistence operations for medication records.

    Error Handling Strategy:
        Driver errors and timeouts are wrapped in DatabaseError with the
        operation's short message. Our own exceptions propagate unchanged.
    """

    def __init__(self, operation_timeout: float = 5.0):
        self.operation_timeout = operation_timeout

    async def _bounded(self, operation: Awaitable[T], failure_message: str) -> T:
        """Await one persistence call under the operation timeout."""
        try:
            return await asyncio.wait_for(operation, timeout=self.operation_timeout)
        except asyncio.TimeoutError as e:
            logger.error("%s: timed out after %.1fs", failure_message, self.operation_timeout)
            raise DatabaseError(
                message=failure_message,
                context={"error_type": "TimeoutError", "timeout": self.operation_timeout},
            ) from e
        except PyMongoError as e:
            logger.error("%s: %s", failure_message, str(e))
            raise DatabaseError(
                message=failure_message,
                context={"error_type": type(e).__name__},
            ) from e

    async def list_medications(self, collection: Any) -> List[MedicationResponse]:
        """
        Return every medication in the collection (possibly an empty list).

        Raises:
            DatabaseError: "Failed to fetch medications" when the query fails,
                           "Failed to parse medications" when a document
                           does not decode into the record shape.
        """
        cursor = collection.find({})
        documents = await self._bounded(
            cursor.to_list(length=None), "Failed to fetch medications"
        )

        try:
            return [
                MedicationResponse.from_document(MedicationDocument.from_mongo(document))
                for document in documents
            ]
        except PydanticValidationError as e:
            logger.error("Failed to decode medication documents: %s", str(e))
            raise DatabaseError(
                message="Failed to parse medications",
                context={"error_type": type(e).__name__},
            ) from e

    async def get_medication(self, collection: Any, medication_id: str) -> MedicationResponse:
        """
        Fetch one medication by id.

        Raises:
            BadRequestError: medication_id is not a valid ObjectId
            NotFoundError:   no document has this id
            DatabaseError:   the query failed or the document is malformed
        """
        oid = parse_medication_id(medication_id)

        document = await self._bounded(
            collection.find_one({"_id": oid}), "Failed to fetch medication"
        )
        if document is None:
            raise NotFoundError(resource_id=medication_id)

        try:
            return MedicationResponse.from_document(MedicationDocument.from_mongo(document))
        except PydanticValidationError as e:
            logger.error("Failed to decode medication %s: %s", medication_id, str(e))
            raise DatabaseError(
                message="Failed to fetch medication",
                context={"medication_id": medication_id},
            ) from e

    async def create_medication(
        self, collection: Any, payload: MedicationInput
    ) -> MedicationResponse:
        """
        Insert a new medication. The id always comes from the driver.

        Raises:
            DatabaseError: "Failed to create medication"
        """
        logger.debug("Received medication: %r", payload)

        document = payload.to_document()
        result = await self._bounded(
            collection.insert_one(document.to_mongo()), "Failed to create medication"
        )
        document.id = result.inserted_id

        logger.info("Medication created: %s", document.id)
        return MedicationResponse.from_document(document)

    async def update_medication(
        self, collection: Any, medication_id: str, payload: MedicationInput
    ) -> MedicationResponse:
        """
        Replace every mutable field of a medication.

        This is a full replace, not a merge: a field missing from the payload
        is written as its default ("" or 0.0).

        Raises:
            BadRequestError: medication_id is not a valid ObjectId
            NotFoundError:   no document has this id
            DatabaseError:   "Failed to update medication"
        """
        oid = parse_medication_id(medication_id)

        document = payload.to_document()
        result = await self._bounded(
            collection.update_one({"_id": oid}, {"$set": document.mutable_fields()}),
            "Failed to update medication",
        )
        if result.matched_count == 0:
            raise NotFoundError(resource_id=medication_id)

        document.id = oid
        logger.info("Medication updated: %s", medication_id)
        return MedicationResponse.from_document(document)

    async def delete_medication(self, collection: Any, medication_id: str) -> None:
        """
        Remove a medication.

        Raises:
            BadRequestError: medication_id is not a valid ObjectId
            NotFoundError:   no document has this id
            DatabaseError:   "Failed to delete medication"
        """
        oid = parse_medication_id(medication_id)

        result = await self._bounded(
            collection.delete_one({"_id": oid}), "Failed to delete medication"
        )
        if result.deleted_count == 0:
            raise NotFoundError(resource_id=medication_id)

        logger.info("Medication deleted: %s", medication_id)


# ── Service Dependency ────────────────────────────────────────────────────
def get_medication_service(request: Request) -> MedicationService:
    """
    FastAPI dependency that provides the application's MedicationService.

    The instance is created by create_app() with the operation timeout of
    the settings that application was built with.
    """
    service: Optional[MedicationService] = getattr(
        request.app.state, "medication_service", None
    )
    if service is None:
        raise DatabaseError(
            message="Database is not available",
            context={"reason": "no medication service attached to application state"},
        )
    return service
