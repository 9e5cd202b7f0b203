"""
Medication API - Medication Route Handlers
==========================================

What:  The five CRUD endpoints of the medication resource, plus OPTIONS.
How:   Each handler extracts the path id and/or decoded body, delegates to
       the application's MedicationService with the injected collection
       handle, and returns the result with the operation's status code.

Route Inventory:
    GET     /medications          → 200 | 500
    GET     /medications/{id}     → 200 | 400 | 404 | 500
    POST    /medications          → 201 | 400 | 500
    PUT     /medications/{id}     → 200 | 400 | 404 | 500
    DELETE  /medications/{id}     → 204 | 400 | 404 | 500
    OPTIONS /medications[/{id}]   → 200, empty body

Errors are raised as application exceptions and rendered by the global
handlers registered in main.py.
"""

from typing import Any, List

from fastapi import APIRouter, Body, Depends, Response

from medication_api.database import get_collection
from medication_api.schemas.medication import (
    ErrorResponse,
    MedicationInput,
    MedicationResponse,
)
from medication_api.services.medication_service import (
    MedicationService,
    get_medication_service,
)

router = APIRouter(tags=["Medications"])


@router.get(
    "/medications",
    response_model=List[MedicationResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all medications",
)
async def list_medications(
    collection: Any = Depends(get_collection),
    service: MedicationService = Depends(get_medication_service),
) -> List[MedicationResponse]:
    return await service.list_medications(collection)


@router.get(
    "/medications/{medication_id}",
    response_model=MedicationResponse,
    responses={
        400: {"description": "Malformed medication ID", "model": ErrorResponse},
        404: {"description": "Medication not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single medication by ID",
)
async def get_medication(
    medication_id: str,
    collection: Any = Depends(get_collection),
    service: MedicationService = Depends(get_medication_service),
) -> MedicationResponse:
    return await service.get_medication(collection, medication_id)


@router.post(
    "/medications",
    status_code=201,
    response_model=MedicationResponse,
    responses={
        400: {"description": "Body does not decode into a medication", "model": ErrorResponse},
        500: {"description": "Insert failed", "model": ErrorResponse},
    },
    summary="Create a medication",
    description="Any `id` in the body is ignored; the identifier is assigned on insert.",
)
async def create_medication(
    payload: MedicationInput = Body(...),
    collection: Any = Depends(get_collection),
    service: MedicationService = Depends(get_medication_service),
) -> MedicationResponse:
    return await service.create_medication(collection, payload)


@router.put(
    "/medications/{medication_id}",
    response_model=MedicationResponse,
    responses={
        400: {"description": "Malformed ID or body", "model": ErrorResponse},
        404: {"description": "Medication not found", "model": ErrorResponse},
        500: {"description": "Update failed", "model": ErrorResponse},
    },
    summary="Replace a medication's fields",
    description=(
        "Full replace: every mutable field is written, and fields missing from "
        "the body are reset to their defaults."
    ),
)
async def update_medication(
    medication_id: str,
    payload: MedicationInput = Body(...),
    collection: Any = Depends(get_collection),
    service: MedicationService = Depends(get_medication_service),
) -> MedicationResponse:
    return await service.update_medication(collection, medication_id, payload)


@router.delete(
    "/medications/{medication_id}",
    status_code=204,
    response_class=Response,
    responses={
        400: {"description": "Malformed medication ID", "model": ErrorResponse},
        404: {"description": "Medication not found", "model": ErrorResponse},
        500: {"description": "Delete failed", "model": ErrorResponse},
    },
    summary="Delete a medication",
)
async def delete_medication(
    medication_id: str,
    collection: Any = Depends(get_collection),
    service: MedicationService = Depends(get_medication_service),
) -> Response:
    await service.delete_medication(collection, medication_id)
    return Response(status_code=204)


# ── Preflight ─────────────────────────────────────────────────────────────
# Browser preflights carrying Access-Control-Request-Method are answered by
# CORSMiddleware before reaching these; plain OPTIONS requests land here.
@router.options("/medications", include_in_schema=False)
@router.options("/medications/{medication_id}", include_in_schema=False)
async def medication_options() -> Response:
    return Response(status_code=200)
