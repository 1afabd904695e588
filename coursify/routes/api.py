from flask import Blueprint, jsonify

from ..extensions import get_store

bp = Blueprint("api", __name__)


@bp.get("/health")
def health():
    store = get_store()
    return jsonify({
        "status": "ok",
        "data_dir": str(store.data_dir),
        "collections": store.collection_names(),
    })
