from flask import request


def json_payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _order_key(doc: dict):
    order = doc.get("order")
    if isinstance(order, (int, float)) and not isinstance(order, bool):
        return (0, order)
    return (1, 0)


def by_order(docs: list[dict]) -> list[dict]:
    """Sort by numeric ``order``; documents without one go last, keeping insertion order."""
    return sorted(docs, key=_order_key)
