"""Filesystem-backed image bucket with public URLs.

Mirrors a hosted object store: upload, public URL lookup, delete and list.
Files live under ``<root>/<bucket>/`` and are served by the public blueprint.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import mimetypes
import os

from werkzeug.security import safe_join

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


@dataclass
class StorageResult:
    success: bool
    path: str | None = None
    public_url: str | None = None
    files: list = field(default_factory=list)
    error: str | None = None

    def to_dict(self):
        data = {'success': self.success}
        if self.path:
            data['path'] = self.path
            data['publicUrl'] = self.public_url
        if self.files:
            data['files'] = self.files
        if self.error:
            data['error'] = self.error
        return data


class ImageStorage:

    def __init__(self, root: str, bucket: str, base_url: str, max_bytes: int = DEFAULT_MAX_BYTES):
        self.root = os.path.abspath(root)
        self.bucket = bucket
        self.base_url = base_url.rstrip('/')
        self.max_bytes = max_bytes

    @property
    def bucket_dir(self) -> str:
        return os.path.join(self.root, self.bucket)

    def _resolve(self, path: str) -> str | None:
        return safe_join(self.bucket_dir, path.lstrip('/'))

    def upload(self, data: bytes, path: str, content_type: str | None = None) -> StorageResult:
        content_type = content_type or mimetypes.guess_type(path)[0] or ''
        if not content_type.startswith('image/'):
            return StorageResult(False, error='Only image files can be uploaded.')
        if len(data) > self.max_bytes:
            return StorageResult(False, error=f"Files must be {self.max_bytes // (1024 * 1024)}MB or smaller.")
        target = self._resolve(path)
        if target is None:
            return StorageResult(False, error='Invalid path.')
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            # same name overwrites
            with open(target, 'wb') as f:
                f.write(data)
        except OSError:
            logger.exception("upload to %s failed", path)
            return StorageResult(False, error='Upload failed.')
        rel = os.path.relpath(target, self.bucket_dir).replace(os.sep, '/')
        logger.info("stored %s (%d bytes)", rel, len(data))
        return StorageResult(True, path=rel, public_url=self.get_public_url(rel))

    def get_public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/{self.bucket}/{path.lstrip('/')}"

    def delete(self, path: str) -> StorageResult:
        target = self._resolve(path)
        if target is None or not os.path.isfile(target):
            return StorageResult(False, error='File not found.')
        try:
            os.remove(target)
        except OSError:
            logger.exception("delete of %s failed", path)
            return StorageResult(False, error='Delete failed.')
        return StorageResult(True)

    def list(self, prefix: str = '') -> StorageResult:
        folder = self._resolve(prefix) if prefix else self.bucket_dir
        if folder is None:
            return StorageResult(False, error='Invalid path.')
        if not os.path.isdir(folder):
            return StorageResult(True)
        files = []
        for entry in sorted(os.scandir(folder), key=lambda e: e.name):
            if not entry.is_file():
                continue
            st = entry.stat()
            rel = os.path.relpath(entry.path, self.bucket_dir).replace(os.sep, '/')
            files.append({
                'name': entry.name,
                'path': rel,
                'size': st.st_size,
                'mimetype': mimetypes.guess_type(entry.name)[0],
                'updated_at': datetime.fromtimestamp(st.st_mtime, timezone.utc).isoformat(),
                'publicUrl': self.get_public_url(rel),
            })
        return StorageResult(True, files=files)
