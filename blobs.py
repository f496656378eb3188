import secrets
import threading
from dataclasses import dataclass
from typing import Dict, Optional

URL_PREFIX = "/uploads/"


@dataclass
class Blob:
    content: bytes
    media_type: str


class BlobStore:
    """In-memory attachment content, addressed by URL until revoked"""

    def __init__(self):
        self._blobs: Dict[str, Blob] = {}
        self._lock = threading.Lock()

    def create(self, content: bytes, media_type: str) -> str:
        blob_id = secrets.token_hex(8)
        with self._lock:
            self._blobs[blob_id] = Blob(content, media_type)
        return f"{URL_PREFIX}{blob_id}"

    def get(self, url: str) -> Optional[Blob]:
        with self._lock:
            return self._blobs.get(_blob_id(url))

    def revoke(self, url: str) -> None:
        with self._lock:
            self._blobs.pop(_blob_id(url), None)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return _blob_id(url) in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)


def _blob_id(url: str) -> str:
    return url[len(URL_PREFIX):] if url.startswith(URL_PREFIX) else url
