"""
Test suite for the booking conversion backend.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_conversion_service.py -v
"""
