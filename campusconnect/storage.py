"""
Blob store for uploaded images.

Files go through Django's default storage backend; callers only ever keep
the returned public URL on ``logo``, ``banner``, ``media`` or
``profile_picture``.
"""
import logging
import os
import uuid
from contextlib import contextmanager

from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


def _save(uploaded_file, folder):
    _, extension = os.path.splitext(uploaded_file.name)
    path = f"campus_connect/{folder}/{uuid.uuid4().hex}{extension.lower()}"

    saved_path = default_storage.save(path, uploaded_file)
    logger.info(f"Stored upload {uploaded_file.name} at {saved_path}")
    return saved_path


def store_upload(uploaded_file, folder):
    """Save ``uploaded_file`` under ``folder`` and return its public URL."""
    if not uploaded_file:
        return None
    return default_storage.url(_save(uploaded_file, folder))


@contextmanager
def stored_uploads(folder, **uploads):
    """
    Store every given upload and yield ``{field: url or None}``.

    If the block raises, the files stored for it are deleted again and the
    exception propagates, so a rejected request leaves no blobs behind.
    """
    saved_paths = []
    urls = {}
    try:
        for field, uploaded_file in uploads.items():
            if not uploaded_file:
                urls[field] = None
                continue
            path = _save(uploaded_file, folder)
            saved_paths.append(path)
            urls[field] = default_storage.url(path)

        yield urls
    except Exception:
        for path in saved_paths:
            default_storage.delete(path)
            logger.info(f"Discarded upload {path}")
        raise
