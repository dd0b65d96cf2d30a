from collections.abc import Mapping

from django.db import DEFAULT_DB_ALIAS
from rest_framework import serializers
from rest_framework.validators import UniqueValidator

SERVER_ASSIGNED_FIELDS = ('id', 'created_at', 'modified_at')


class ResourceSerializer(serializers.ModelSerializer):
    """Model serializer that writes through the service's database alias.

    The alias travels in ``context['using']``. Identifier and timestamps are
    server assigned, so a payload that carries them is rejected instead of
    being silently ignored.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # uniqueness checks run against the same database as the write
        for field in self.fields.values():
            for validator in field.validators:
                if isinstance(validator, UniqueValidator):
                    validator.queryset = validator.queryset.using(self.using)

    @property
    def using(self):
        return self.context.get('using', DEFAULT_DB_ALIAS)

    def validate(self, attrs):
        if isinstance(self.initial_data, Mapping):
            assigned = [name for name in SERVER_ASSIGNED_FIELDS if name in self.initial_data]
            if assigned:
                raise serializers.ValidationError(
                    {name: ['This field is assigned by the server.'] for name in assigned}
                )
        return attrs

    def create(self, validated_data):
        instance = self.Meta.model(**validated_data)
        instance.save(using=self.using)
        return instance

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(using=self.using)
        return instance


class ListParamsSerializer(serializers.Serializer):
    """Pagination, sorting and search parameters of a list query"""
    offset = serializers.IntegerField(min_value=0, required=False, default=0)
    limit = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    sort_by = serializers.ChoiceField(choices=[], required=False, allow_null=True, default=None)
    order = serializers.ChoiceField(choices=['asc', 'desc'], required=False, default='asc')
    search_term = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None, trim_whitespace=False
    )

    def __init__(self, *args, sort_fields=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['sort_by'].choices = list(sort_fields)
