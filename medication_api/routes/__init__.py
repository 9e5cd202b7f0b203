# Routes package init
"""
Medication API - Routes Package
===============================

Route Inventory:
    - medications.py:  GET/POST /medications, GET/PUT/DELETE /medications/{id}
    - health.py:       GET /health

Routes stay thin: they decode the request, call MedicationService, and
set the status code. Errors are rendered by the handlers in main.py.
"""
