"""Serializer fields shared by the resource serializers"""
import json
import logging
from collections.abc import Mapping

from django.core.files import File
from rest_framework import serializers

from .exceptions import StoreUnavailable
from .storage import store_upload, upload_alt_text

logger = logging.getLogger(__name__)


class ImageSerializer(serializers.Serializer):
    src = serializers.CharField(max_length=500)
    alt = serializers.CharField(max_length=300, allow_blank=True, required=False, default='')


class UploadedImageField(serializers.Field):
    """Image given either as ``{"src": ..., "alt": ...}`` or as an uploaded file.

    Uploaded files are written to storage immediately and replaced by the
    resulting ``{"src": <url>, "alt": <file name>}`` mapping. Storage names
    are recorded in ``context["stored_uploads"]`` when the serializer provides it.
    """
    default_error_messages = {
        'invalid': 'Expected an uploaded file or an object with "src" and "alt".',
    }

    def __init__(self, upload_to='', **kwargs):
        self.upload_to = upload_to
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if isinstance(data, File):
            src = store_upload(data, self.upload_to, stored=self.context.get('stored_uploads'))
            return {'src': src, 'alt': upload_alt_text(data)}
        if not isinstance(data, Mapping):
            self.fail('invalid')
        serializer = ImageSerializer(data=data)
        if not serializer.is_valid():
            raise serializers.ValidationError(serializer.errors)
        return dict(serializer.validated_data)

    def to_representation(self, value):
        return {'src': value.get('src', ''), 'alt': value.get('alt', '')}


class JSONBlobField(serializers.Field):
    """Structured value persisted in a plain text column as JSON.

    ``child`` validates and renders the decoded value; this field only encodes
    it on the way in and decodes it on every read.
    """

    def __init__(self, child=None, **kwargs):
        assert child is not None, '`child` is a required argument.'
        self.child = child
        super().__init__(**kwargs)
        self.child.bind(field_name='', parent=self)

    def to_internal_value(self, data):
        return json.dumps(self.child.run_validation(data))

    def to_representation(self, value):
        if not value:
            return None
        try:
            decoded = json.loads(value)
        except ValueError as e:
            logger.error(f"Stored {self.field_name} is not valid JSON: {str(e)}")
            raise StoreUnavailable(f"Stored {self.field_name} could not be decoded") from e
        return self.child.to_representation(decoded)
