"""
Medication API - Application Package
====================================

A small CRUD HTTP API for medication records stored in MongoDB.

Architecture Note:

    ┌─────────────────────────────────────┐
    │        Routes (API Layer)           │  ← HTTP verbs, status codes
    ├─────────────────────────────────────┤
    │     Services (Medication CRUD)      │  ← one bounded call per request
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← stored document + JSON contract
    ├─────────────────────────────────────┤
    │       Database (Persistence)        │  ← motor client + collection
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
