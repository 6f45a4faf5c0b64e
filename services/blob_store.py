import logging
import os
import uuid
from collections import namedtuple

from flask import current_app
from werkzeug.utils import secure_filename

from errors import BlobStoreError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}

# An uploaded file: raw bytes plus the client's filename as a content hint
Upload = namedtuple('Upload', ['data', 'content_hint'])


class LocalBlobStore:
    """Stores blobs on local disk and hands back the URL they are served from.

    Stored blobs are durable once ``store`` returns; there is no delete hook.
    """

    def __init__(self, folder, url_prefix='/uploads'):
        self.folder = folder
        self.url_prefix = url_prefix.rstrip('/')

    def store(self, data, content_hint=''):
        if not data:
            raise ValidationError("Uploaded file is empty", field='images')

        name = uuid.uuid4().hex + _extension(content_hint)
        path = os.path.join(self.folder, name)
        try:
            os.makedirs(self.folder, exist_ok=True)
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.exception("Failed to write blob %s", path)
            raise BlobStoreError() from e

        logger.info("Stored %d bytes as %s", len(data), name)
        return f"{self.url_prefix}/{name}"


def _extension(content_hint):
    _, ext = os.path.splitext(secure_filename(content_hint or ''))
    ext = ext.lower()
    return ext if ext in IMAGE_EXTENSIONS else ''


def get_blob_store():
    return current_app.extensions['blob_store']
