"""Test package for travelogic.

This package contains:
- Unit tests (test_sequence.py, test_models.py, test_directions.py,
  test_builder.py, test_repository.py, test_search.py)
- Server action tests (test_actions.py, test_google_api_key_handling.py)
- Test configuration and fake providers (conftest.py)
"""
