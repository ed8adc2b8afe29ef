"""
Test suite for the Patient Records Service.

Contains unit and integration tests for validation, the patient service and
both HTTP surfaces.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
