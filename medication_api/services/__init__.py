# Services package init
"""
Medication API - Services Layer
===============================

What:  Persistence operations sitting between routes (HTTP) and MongoDB.

Service Inventory:
    - MedicationService: list/get/create/update/delete over one collection,
      each call bounded by the operation timeout
"""
