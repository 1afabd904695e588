# coursify/extensions.py
from flask import current_app
from flask_cors import CORS

from .storage.document_store import DocumentStore

# CORS is a real Flask extension (keeps init_app)
cors = CORS()


def get_store() -> DocumentStore:
    """The DocumentStore created for the running app by ``create_app``."""
    return current_app.extensions["document_store"]
