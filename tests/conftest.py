"""
Pytest configuration and shared fixtures for Catalog Hierarchy Console tests.
"""

import pytest
import json
import tempfile
from pathlib import Path
from unittest.mock import Mock


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

@pytest.fixture
def cfg():
    """Configuration pointing at a fake admin API."""
    return {
        "API_BASE_URL": "https://catalog.example.test/api",
        "ADMIN_TOKEN": "test_token_12345",
        "REQUEST_TIMEOUT": 15,
        "PAGE_LIMIT": 50,
        "LOG_FILE": ""
    }


@pytest.fixture
def sample_categories():
    """Two categories: sunglasses and eyeglasses."""
    return [
        {"id": 7, "name": "Sunglasses"},
        {"id": 8, "name": "Eyeglasses"}
    ]


@pytest.fixture
def sample_subcategories():
    """Normalized snapshot across two categories, mixed top-level and nested."""
    return [
        {"id": 10, "name": "Sun", "slug": "sun", "category_id": 7, "parent_id": None,
         "sort_order": 1, "is_active": True},
        {"id": 11, "name": "Polarized", "slug": "polarized", "category_id": 7, "parent_id": 10,
         "sort_order": 2, "is_active": True},
        {"id": 12, "name": "Other", "slug": "other", "category_id": 8, "parent_id": None,
         "sort_order": 1, "is_active": True},
        {"id": 13, "name": "Sport", "slug": "sport", "category_id": 7, "parent_id": None,
         "sort_order": 2, "is_active": True},
        {"id": 14, "name": "Mirrored", "slug": "mirrored", "category_id": 7, "parent_id": 10,
         "sort_order": 1, "is_active": False},
        {"id": 15, "name": "Reading", "slug": "reading", "category_id": 8, "parent_id": 12,
         "sort_order": 1, "is_active": True}
    ]


@pytest.fixture
def fallback_payload():
    """Backend list response for category 7 (raw, camelCase spellings mixed in)."""
    return {
        "success": True,
        "message": "Subcategories retrieved",
        "data": {
            "subcategories": [
                {"id": 10, "categoryId": 7, "parent_id": None, "name": "Sun", "slug": "sun"},
                {"id": 11, "category_id": 7, "parentId": 10, "name": "Polarized", "slug": "polarized"},
                {"id": 12, "category": {"id": 8}, "parent_id": None, "name": "Other", "slug": "other"}
            ],
            "pagination": {"page": 1, "limit": 50, "total": 3}
        }
    }


# ============================================================================
# TEMPORARY FILE FIXTURES
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config.json file."""
    config_path = temp_dir / "config.json"
    config_data = {
        "API_BASE_URL": "https://catalog.example.test/api",
        "ADMIN_TOKEN": "test_token_12345",
        "REQUEST_TIMEOUT": 30,
        "LOG_FILE": str(temp_dir / "test.log")
    }
    with open(config_path, 'w') as f:
        json.dump(config_data, f, indent=4)
    return config_path


# ============================================================================
# MOCK API FIXTURES
# ============================================================================

@pytest.fixture
def make_response():
    """Factory for mocked requests responses."""
    def _make(status_code=200, payload=None, json_error=False):
        response = Mock()
        response.status_code = status_code
        if json_error:
            response.json.side_effect = ValueError("No JSON object could be decoded")
        else:
            response.json.return_value = payload
        return response
    return _make


@pytest.fixture
def route_not_found():
    """Mocked 404 response for an undeployed route."""
    response = Mock()
    response.status_code = 404
    response.json.return_value = {"success": False, "message": "Route not found"}
    return response


# ============================================================================
# UTILITY FIXTURES
# ============================================================================

@pytest.fixture
def mock_status_fn():
    """Mock status function that collects status messages."""
    messages = []

    def status_fn(msg):
        messages.append(msg)

    status_fn.messages = messages
    return status_fn


@pytest.fixture
def restore_root_logging():
    """Put back root handlers, level and excepthook after setup_logging()."""
    import logging
    import sys
    handlers = logging.root.handlers[:]
    level = logging.root.level
    excepthook = sys.excepthook
    yield
    for handler in logging.root.handlers[:]:
        if handler not in handlers:
            logging.root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in logging.root.handlers:
            logging.root.addHandler(handler)
    logging.root.setLevel(level)
    sys.excepthook = excepthook
