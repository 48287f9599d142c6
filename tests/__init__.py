"""
StreamPanel Test Suite

Test Categories:
- unit/: Fast, isolated unit tests
- integration/: Tests that drive the FastAPI app against an in-memory catalog
- fixtures/: Factories and canned upstream responses
"""
