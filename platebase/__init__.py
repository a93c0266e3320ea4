"""
Platebase — Application Package
=================================

A small HTTP service that manages dishes (name, price, optional photo).

Layers:
    routes/     HTTP concerns only (parse request, call service)
    services/   validation, photo encoding, store orchestration
    models/     SQLAlchemy ORM mapping of the dishes table
    schemas/    Pydantic input and response models
    database.py async engine and per-request session
"""

__version__ = "1.0.0"
