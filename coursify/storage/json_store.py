from pathlib import Path
import json
import logging
import os
import re
import secrets
import time
from typing import Any, Dict, List

from ..utils.retry import retry_call
from .errors import CollectionFormatError, InvalidCollectionName

log = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonStore:
    """JSON-on-disk collections: one file per collection, each holding an array."""

    def __init__(self, data_dir: Path, read_attempts: int = 3, read_delay: float = 0.05):
        self.data_dir = Path(data_dir)
        self.read_attempts = read_attempts
        self.read_delay = read_delay

    def path(self, collection: str) -> Path:
        if not isinstance(collection, str) or not _NAME_RE.match(collection):
            raise InvalidCollectionName(f"invalid collection name: {collection!r}")
        return self.data_dir / f"{collection}.json"

    def ensure_file(self, collection: str) -> Path:
        p = self.path(collection)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not p.exists():
            # exclusive create, so a file written meanwhile by someone else wins
            try:
                with p.open("x", encoding="utf-8") as f:
                    f.write("[]")
                log.info("Created collection file %s", p)
            except FileExistsError:
                pass
        return p

    def _load(self, p: Path) -> Any:
        with p.open("r", encoding="utf-8") as f:
            return json.load(f)

    def read(self, collection: str) -> List[Dict[str, Any]]:
        """
        Load the whole collection. Missing files and unparseable JSON are retried
        a few times, since a concurrent writer may be between its temp write and
        its rename.
        """
        p = self.ensure_file(collection)
        data = retry_call(
            self._load,
            p,
            attempts=self.read_attempts,
            delay=self.read_delay,
            exceptions=(FileNotFoundError, json.JSONDecodeError),
        )
        if not isinstance(data, list):
            raise CollectionFormatError(f"{p} does not contain a JSON array")
        return data

    def write(self, collection: str, documents: List[Dict[str, Any]]):
        """Replace the collection file atomically (temp file + rename)."""
        if not isinstance(documents, list):
            raise TypeError("documents must be a list")
        p = self.path(collection)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        content = json.dumps(documents, indent=2, ensure_ascii=False)
        tmp = p.with_name(f"{p.name}.tmp-{int(time.time() * 1000)}-{secrets.token_hex(4)}")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, p)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    def names(self) -> List[str]:
        if not self.data_dir.exists():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json") if _NAME_RE.match(p.stem))
