"""
Upload handling for image attachments.

File bytes go to Django's configured storage backend; the catalog only keeps
the URL the backend hands back.
"""
import logging
import os
import posixpath
import uuid

from django.conf import settings
from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

from .exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


def upload_alt_text(upload):
    """Default alt text for an uploaded image: the file name without extension"""
    stem = os.path.splitext(os.path.basename(upload.name or ''))[0]
    return stem.replace('_', ' ').replace('-', ' ').strip()


def store_upload(upload, folder, stored=None):
    """Save ``upload`` under ``<UPLOAD_DIR>/<folder>/`` and return its public URL.

    The storage name is appended to ``stored`` when given, so the caller can
    discard the file if the record it belongs to is never written.
    """
    filename = get_valid_filename(os.path.basename(upload.name or 'upload'))
    path = posixpath.join(settings.CATALOG['UPLOAD_DIR'], folder, f"{uuid.uuid4().hex[:8]}-{filename}")
    try:
        name = default_storage.save(path, upload)
    except OSError as e:
        logger.error(f"Failed to store upload {filename}: {str(e)}", exc_info=True)
        raise StoreUnavailable(f"Could not store upload {filename}") from e
    if stored is not None:
        stored.append(name)
    logger.info(f"Stored upload {name}")
    return default_storage.url(name)


def discard_uploads(names):
    """Delete files stored for a write that failed"""
    for name in names:
        try:
            default_storage.delete(name)
        except OSError as e:
            logger.warning(f"Could not discard upload {name}: {str(e)}")
        else:
            logger.info(f"Discarded upload {name}")
