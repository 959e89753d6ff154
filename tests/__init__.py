"""
Test suite for BizTrack Analytics.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_period_service.py -v
"""
