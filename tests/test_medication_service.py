"""
Medication API - Medication Service Unit Tests
==============================================

What:  Tests for MedicationService (list, get, create, update, delete).
How:   Uses an AsyncMock collection (no real MongoDB).

What we test:
    ✅ Each operation issues the expected single collection call
    ✅ Malformed ids raise BadRequestError before any call is made
    ✅ Missing documents raise NotFoundError
    ✅ Driver errors, decode errors and timeouts become DatabaseError
    ✅ Update writes every mutable field (full replace)
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from medication_api.exceptions import BadRequestError, DatabaseError, NotFoundError
from medication_api.schemas.medication import MedicationInput
from medication_api.services.medication_service import (
    MedicationService,
    get_medication_service,
    parse_medication_id,
)


def _document(oid=None, **overrides):
    document = {
        "_id": oid or ObjectId(),
        "name": "Aspirin",
        "description": "Pain relief",
        "price": 4.5,
        "imageUrl": "http://x/a.png",
    }
    document.update(overrides)
    return document


class TestParseMedicationId:

    def test_valid_hex_id(self):
        oid = ObjectId()
        assert parse_medication_id(str(oid)) == oid

    @pytest.mark.parametrize("raw_id", ["not-an-id", "", "123", "zzzzzzzzzzzzzzzzzzzzzzzz"])
    def test_malformed_id_rejected(self, raw_id):
        with pytest.raises(BadRequestError, match="Invalid medication ID"):
            parse_medication_id(raw_id)


class TestListMedications:

    def setup_method(self):
        self.service = MedicationService()

    @pytest.mark.asyncio
    async def test_list_returns_all_documents(self, mock_collection):
        first, second = _document(), _document(name="Ibuprofen")
        mock_collection.find.return_value.to_list.return_value = [first, second]

        result = await self.service.list_medications(mock_collection)

        assert [m.name for m in result] == ["Aspirin", "Ibuprofen"]
        assert result[0].id == str(first["_id"])
        mock_collection.find.assert_called_once_with({})

    @pytest.mark.asyncio
    async def test_list_empty_collection(self, mock_collection):
        result = await self.service.list_medications(mock_collection)
        assert result == []

    @pytest.mark.asyncio
    async def test_list_legacy_documents_use_defaults(self, mock_collection):
        """Documents without price/imageUrl still decode."""
        legacy = {"_id": ObjectId(), "name": "Paracetamol", "description": "Fever"}
        mock_collection.find.return_value.to_list.return_value = [legacy]

        result = await self.service.list_medications(mock_collection)

        assert result[0].price == 0.0
        assert result[0].image_url == ""

    @pytest.mark.asyncio
    async def test_list_query_failure(self, mock_collection):
        mock_collection.find.return_value.to_list.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(DatabaseError, match="Failed to fetch medications"):
            await self.service.list_medications(mock_collection)

    @pytest.mark.asyncio
    async def test_list_decode_failure(self, mock_collection):
        mock_collection.find.return_value.to_list.return_value = [_document(name=["not", "a", "string"])]

        with pytest.raises(DatabaseError, match="Failed to parse medications"):
            await self.service.list_medications(mock_collection)


class TestGetMedication:

    def setup_method(self):
        self.service = MedicationService()

    @pytest.mark.asyncio
    async def test_get_existing(self, mock_collection):
        oid = ObjectId()
        mock_collection.find_one.return_value = _document(oid)

        result = await self.service.get_medication(mock_collection, str(oid))

        assert result.id == str(oid)
        assert result.name == "Aspirin"
        mock_collection.find_one.assert_awaited_once_with({"_id": oid})

    @pytest.mark.asyncio
    async def test_get_malformed_id_skips_query(self, mock_collection):
        with pytest.raises(BadRequestError):
            await self.service.get_medication(mock_collection, "not-an-id")
        mock_collection.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_missing(self, mock_collection):
        mock_collection.find_one.return_value = None

        with pytest.raises(NotFoundError, match="Medication not found"):
            await self.service.get_medication(mock_collection, str(ObjectId()))

    @pytest.mark.asyncio
    async def test_get_query_failure(self, mock_collection):
        mock_collection.find_one.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(DatabaseError, match="Failed to fetch medication"):
            await self.service.get_medication(mock_collection, str(ObjectId()))

    @pytest.mark.asyncio
    async def test_get_times_out(self, mock_collection):
        """A call that outlives the operation timeout is cancelled and reported."""
        service = MedicationService(operation_timeout=0.05)

        async def slow_find_one(query):
            await asyncio.sleep(1)

        mock_collection.find_one.side_effect = slow_find_one

        with pytest.raises(DatabaseError) as exc_info:
            await service.get_medication(mock_collection, str(ObjectId()))

        assert exc_info.value.message == "Failed to fetch medication"
        assert exc_info.value.context["error_type"] == "TimeoutError"


class TestCreateMedication:

    def setup_method(self):
        self.service = MedicationService()

    @pytest.mark.asyncio
    async def test_create_uses_inserted_id(self, mock_collection, medication_payload):
        oid = ObjectId()
        mock_collection.insert_one.return_value = SimpleNamespace(inserted_id=oid)

        result = await self.service.create_medication(
            mock_collection, MedicationInput(**medication_payload)
        )

        assert result.id == str(oid)
        assert result.price == 4.5
        inserted = mock_collection.insert_one.await_args.args[0]
        assert "_id" not in inserted
        assert inserted == medication_payload

    @pytest.mark.asyncio
    async def test_create_ignores_client_id(self, mock_collection):
        oid = ObjectId()
        mock_collection.insert_one.return_value = SimpleNamespace(inserted_id=oid)
        payload = MedicationInput.model_validate({"id": str(ObjectId()), "name": "Aspirin"})

        result = await self.service.create_medication(mock_collection, payload)

        assert result.id == str(oid)
        assert "_id" not in mock_collection.insert_one.await_args.args[0]

    @pytest.mark.asyncio
    async def test_create_failure(self, mock_collection):
        mock_collection.insert_one.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(DatabaseError, match="Failed to create medication"):
            await self.service.create_medication(mock_collection, MedicationInput(name="Aspirin"))


class TestUpdateMedication:

    def setup_method(self):
        self.service = MedicationService()

    @pytest.mark.asyncio
    async def test_update_sets_every_field(self, mock_collection):
        """Omitted fields are written as their defaults, not left untouched."""
        oid = ObjectId()
        mock_collection.update_one.return_value = SimpleNamespace(matched_count=1)

        result = await self.service.update_medication(
            mock_collection, str(oid), MedicationInput(name="Aspirin Forte")
        )

        mock_collection.update_one.assert_awaited_once_with(
            {"_id": oid},
            {"$set": {"name": "Aspirin Forte", "description": "", "price": 0.0, "imageUrl": ""}},
        )
        assert result.id == str(oid)
        assert result.description == ""

    @pytest.mark.asyncio
    async def test_update_missing(self, mock_collection):
        mock_collection.update_one.return_value = SimpleNamespace(matched_count=0)

        with pytest.raises(NotFoundError):
            await self.service.update_medication(
                mock_collection, str(ObjectId()), MedicationInput(name="x")
            )

    @pytest.mark.asyncio
    async def test_update_malformed_id(self, mock_collection):
        with pytest.raises(BadRequestError):
            await self.service.update_medication(mock_collection, "bad", MedicationInput())
        mock_collection.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_failure(self, mock_collection):
        mock_collection.update_one.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(DatabaseError, match="Failed to update medication"):
            await self.service.update_medication(
                mock_collection, str(ObjectId()), MedicationInput()
            )


class TestDeleteMedication:

    def setup_method(self):
        self.service = MedicationService()

    @pytest.mark.asyncio
    async def test_delete_existing(self, mock_collection):
        oid = ObjectId()
        mock_collection.delete_one.return_value = SimpleNamespace(deleted_count=1)

        assert await self.service.delete_medication(mock_collection, str(oid)) is None
        mock_collection.delete_one.assert_awaited_once_with({"_id": oid})

    @pytest.mark.asyncio
    async def test_delete_missing(self, mock_collection):
        mock_collection.delete_one.return_value = SimpleNamespace(deleted_count=0)

        with pytest.raises(NotFoundError):
            await self.service.delete_medication(mock_collection, str(ObjectId()))

    @pytest.mark.asyncio
    async def test_delete_failure(self, mock_collection):
        mock_collection.delete_one.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(DatabaseError, match="Failed to delete medication"):
            await self.service.delete_medication(mock_collection, str(ObjectId()))


class TestGetMedicationService:

    def test_returns_service_from_app_state(self):
        service = MedicationService(operation_timeout=2)
        request = MagicMock()
        request.app.state = SimpleNamespace(medication_service=service)

        assert get_medication_service(request) is service

    def test_missing_service_is_database_error(self):
        request = MagicMock()
        request.app.state = SimpleNamespace()

        with pytest.raises(DatabaseError, match="Database is not available"):
            get_medication_service(request)

    def test_create_app_uses_its_own_operation_timeout(self):
        from medication_api.config import Settings
        from medication_api.main import create_app

        app = create_app(
            app_settings=Settings(
                mongodb_uri="mongodb://localhost:27017",
                mongodb_db_name="pharmacy",
                mongodb_collection="medications",
                operation_timeout_seconds=2,
            ),
            database=MagicMock(),
        )

        assert app.state.medication_service.operation_timeout == 2
