"""Utility functions for identifiers and slugs"""
import uuid

from django.utils.text import slugify


def generate_id(prefix):
    """Generate a server-side identifier, e.g. ``category-3f2b...``"""
    return f"{prefix}-{uuid.uuid4().hex}"


def build_unique_link(model, source, record_id, using, exclude_pk=None):
    """Slugify ``source`` and make it unique among ``model`` rows.

    Collisions are resolved by appending the first characters of the record's
    own identifier token, which is already unique.
    """
    base = slugify(source or '') or model.id_prefix
    candidate = base
    existing = model._default_manager.using(using).filter(link=candidate)
    if exclude_pk:
        existing = existing.exclude(pk=exclude_pk)
    if existing.exists():
        token = record_id.rsplit('-', 1)[-1][:8]
        candidate = f"{base}-{token}"
    return candidate
