"""
Shared test fixtures and configuration for Coursify tests.
"""
import json
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

from coursify import create_app
from coursify.config import TestConfig
from coursify.storage.document_store import DocumentStore
from coursify.storage.json_store import JsonStore


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Temporary data directory; created lazily by the store on first access."""
    return tmp_path / "data"


@pytest.fixture
def json_store(temp_data_dir: Path) -> JsonStore:
    return JsonStore(temp_data_dir, read_attempts=3, read_delay=0.001)


@pytest.fixture
def store(temp_data_dir: Path) -> DocumentStore:
    return DocumentStore(temp_data_dir, read_attempts=3, read_delay=0.001)


@pytest.fixture
def app(temp_data_dir: Path) -> Flask:
    """Create a test Flask application writing to a per-test data directory."""
    app = create_app(TestConfig, DATA_DIR=temp_data_dir)
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def runner(app: Flask):
    return app.test_cli_runner()


@pytest.fixture
def app_store(app: Flask) -> DocumentStore:
    """The DocumentStore instance the app under test is using."""
    return app.extensions["document_store"]


@pytest.fixture
def sample_course() -> dict:
    return {
        "id": "course_1",
        "title": "Intro to Python",
        "description": "Basics",
        "status": "draft",
        "participatedUsers": [
            {"userId": "a", "progress": 10},
            {"userId": "b", "progress": 20},
        ],
    }


@pytest.fixture
def read_raw(temp_data_dir: Path):
    """Parse a collection file straight from disk, bypassing the store."""
    def _read(collection: str):
        with open(temp_data_dir / f"{collection}.json", encoding="utf-8") as f:
            return json.load(f)
    return _read
