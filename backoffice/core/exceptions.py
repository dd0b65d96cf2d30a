"""
Error taxonomy of the catalog query layer.

Callers only ever see the three kinds below; Django and DRF exceptions raised
underneath are translated by ``translate_errors``.
"""
import logging
from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError
from rest_framework import serializers

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for every failure surfaced by the query service"""


class ValidationError(CatalogError):
    """Malformed or out-of-enum input.

    ``detail`` maps field names to lists of messages, with nested mappings for
    nested payloads (e.g. ``{"items": [{"quantity": ["..."]}]}``).
    """

    def __init__(self, detail):
        self.detail = detail
        super().__init__(detail)


class NotFound(CatalogError):
    """Lookup or mutation target does not exist"""

    def __init__(self, resource_kind, lookup):
        self.resource_kind = resource_kind
        self.lookup = lookup
        super().__init__(f"{resource_kind} not found ({lookup})")


class StoreUnavailable(CatalogError):
    """Persistence layer unreachable or errored"""


def plain_detail(detail):
    """Turn DRF error details (ErrorDetail, ReturnDict, ...) into plain str/dict/list"""
    if isinstance(detail, dict):
        return {str(key): plain_detail(value) for key, value in detail.items()}
    if isinstance(detail, (list, tuple)):
        return [plain_detail(value) for value in detail]
    return str(detail)


@contextmanager
def translate_errors(resource_kind):
    """Re-raise serializer and database failures as catalog errors"""
    try:
        yield
    except serializers.ValidationError as exc:
        detail = plain_detail(exc.detail)
        logger.warning(f"Invalid {resource_kind} input: {detail}")
        raise ValidationError(detail) from exc
    except IntegrityError as exc:
        logger.warning(f"Integrity error on {resource_kind}: {exc}")
        raise ValidationError({'non_field_errors': [str(exc)]}) from exc
    except DatabaseError as exc:
        logger.error(f"Store error while handling {resource_kind}: {exc}", exc_info=True)
        raise StoreUnavailable(f"Store unavailable while handling {resource_kind}: {exc}") from exc
