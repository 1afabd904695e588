import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase
_URL_ALPHABET = string.ascii_letters + string.digits + "_-"


def prefixed_id(prefix: str) -> str:
    """``<prefix>_<epoch millis>_<9 random base36 chars>``, e.g. ``course_1718000000000_k3j9x0a2b``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def nanoid(size: int = 21) -> str:
    return "".join(secrets.choice(_URL_ALPHABET) for _ in range(size))
