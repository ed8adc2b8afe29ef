"""
Patient Records Service

A FastAPI-based service for managing clinic patient records, with a
self-service surface for patients and a permission-gated admin surface.
"""

__version__ = "1.0.0"
