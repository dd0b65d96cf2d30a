"""
Catalog query service.

``ResourceService`` implements list/get/add/update/remove for one resource
kind on top of a model, a serializer and an optional django-filter
``FilterSet``. Each app registers its services with ``register_resource``
when Django loads it, and ``CatalogQueryService`` dispatches calls by
resource kind.

All services take the database alias to work on (``using``) at construction
time; nothing here holds a module-level connection.
"""
import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Q

from .exceptions import CatalogError, NotFound, ValidationError, translate_errors
from .serializers import ListParamsSerializer
from .storage import discard_uploads

logger = logging.getLogger(__name__)

LIST_PARAM_KEYS = ('offset', 'limit', 'sort_by', 'order', 'search_term')

_registry = {}


def register_resource(service_class):
    """Class decorator making a ``ResourceService`` reachable by its resource kind"""
    _registry[service_class.resource_kind] = service_class
    return service_class


def registered_kinds():
    return sorted(_registry)


class ResourceService:
    resource_kind = None
    model = None
    serializer_class = None
    filterset_class = None
    sort_fields = ('created_at', 'modified_at')
    default_sort = 'created_at'
    search_field = None
    slug_field = None

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def get_queryset(self):
        return self.model._default_manager.using(self.using).all()

    def get_serializer(self, *args, **kwargs):
        kwargs['context'] = {'using': self.using, 'stored_uploads': []}
        return self.serializer_class(*args, **kwargs)

    # Reads

    def list(self, params=None):
        """Return ``{"total": int, "items": [...]}`` for one page of records.

        ``params`` holds the list options (``offset``, ``limit``, ``sort_by``,
        ``order``, ``search_term``); every other key is a resource filter and
        must be declared on ``filterset_class``. Filters, search and the
        total count ignore pagination; ties in the sort key are broken by id.
        """
        params = dict(params or {})
        options = {key: params.pop(key) for key in LIST_PARAM_KEYS if key in params}
        list_params = ListParamsSerializer(data=options, sort_fields=self.sort_fields)

        with translate_errors(self.resource_kind):
            list_params.is_valid(raise_exception=True)
            options = list_params.validated_data

            queryset = self.filter_queryset(self.get_queryset(), params)
            search_term = options['search_term']
            if search_term and self.search_field:
                queryset = queryset.filter(**{f'{self.search_field}__icontains': search_term})

            total = queryset.count()

            sort_by = options['sort_by'] or self.default_sort
            prefix = '-' if options['order'] == 'desc' else ''
            queryset = queryset.order_by(f'{prefix}{sort_by}', f'{prefix}id')

            offset = options['offset']
            limit = options['limit']
            page = queryset[offset:offset + limit] if limit else queryset[offset:]
            items = [dict(item) for item in self.get_serializer(page, many=True).data]

        logger.debug(
            f"Listed {self.resource_kind}: {len(items)} of {total} "
            f"(offset={offset}, limit={limit}, sort={prefix}{sort_by})"
        )
        return {'total': total, 'items': items}

    def filter_queryset(self, queryset, filters):
        """Apply resource filters conjunctively through the FilterSet"""
        declared = self.filterset_class.base_filters if self.filterset_class else {}
        unknown = sorted(key for key in filters if key not in declared)
        if unknown:
            raise ValidationError({key: ['Unknown filter.'] for key in unknown})
        if not filters:
            return queryset

        filterset = self.filterset_class(data=filters, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationError({key: [str(message) for message in messages]
                                   for key, messages in filterset.errors.items()})
        return filterset.qs

    def get(self, id=None, slug=None):
        """Fetch one record by id or by slug (exactly one of them)"""
        if (id is None) == (slug is None):
            raise ValidationError({'non_field_errors': ['Provide exactly one of "id" or "slug".']})
        if slug is not None and not self.slug_field:
            raise ValidationError({'slug': [f'{self.resource_kind} records have no slug.']})

        lookup = Q()
        if id is not None:
            lookup |= Q(pk=id)
        if slug is not None:
            lookup |= Q(**{self.slug_field: slug})
        instance = self.get_object(lookup, id if id is not None else slug)
        return self.represent(instance)

    def get_object(self, lookup, description):
        with translate_errors(self.resource_kind):
            instance = self.get_queryset().filter(lookup).first()
        if instance is None:
            logger.warning(f"{self.resource_kind} not found: {description}")
            raise NotFound(self.resource_kind, description)
        return instance

    def represent(self, instance):
        return dict(self.get_serializer(instance).data)

    # Mutations

    def add(self, payload):
        """Create a record; id and timestamps are assigned here, never by the caller"""
        serializer = self.get_serializer(data=payload)
        instance, data = self.save(serializer)
        logger.info(f"Created {self.resource_kind} {instance.pk}")
        return data

    def update(self, id, payload):
        """Apply a partial payload; fields it does not mention stay untouched"""
        instance = self.get_object(Q(pk=id), id)
        serializer = self.get_serializer(instance, data=payload or {}, partial=True)
        instance, data = self.save(serializer)
        logger.info(f"Updated {self.resource_kind} {instance.pk}: {sorted((payload or {}).keys())}")
        return data

    def save(self, serializer):
        """Validate and write in one transaction; uploads stored on the way are
        discarded when the write does not happen"""
        try:
            with translate_errors(self.resource_kind):
                serializer.is_valid(raise_exception=True)
                with transaction.atomic(using=self.using):
                    instance = serializer.save()
        except CatalogError:
            discard_uploads(serializer.context['stored_uploads'])
            raise
        with translate_errors(self.resource_kind):
            data = dict(serializer.data)
        return instance, data

    def remove(self, id):
        """Permanently delete a record. Deleting a missing id raises NotFound."""
        with translate_errors(self.resource_kind):
            deleted, _ = self.get_queryset().filter(pk=id).delete()
        if not deleted:
            logger.warning(f"{self.resource_kind} not found for delete: {id}")
            raise NotFound(self.resource_kind, id)
        logger.info(f"Deleted {self.resource_kind} {id}")


class CatalogQueryService:
    """Entry point used by pages and dashboards: one call per kind and operation"""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def service_for(self, resource_kind):
        service_class = _registry.get(resource_kind)
        if service_class is None:
            raise ValidationError({'resource_kind': [
                f'Unknown resource kind "{resource_kind}". Expected one of: {", ".join(registered_kinds())}.'
            ]})
        return service_class(using=self.using)

    def list(self, resource_kind, params=None):
        return self.service_for(resource_kind).list(params)

    def get(self, resource_kind, id=None, slug=None):
        return self.service_for(resource_kind).get(id=id, slug=slug)

    def add(self, resource_kind, payload):
        return self.service_for(resource_kind).add(payload)

    def update(self, resource_kind, id, payload):
        return self.service_for(resource_kind).update(id, payload)

    def remove(self, resource_kind, id):
        self.service_for(resource_kind).remove(id)

    def dashboard_snapshot(self):
        """Lists shown on the admin home page.

        New orders and unread messages (oldest first, capped at
        ``CATALOG['DASHBOARD_LIMIT']``) plus every category by name.
        """
        limit = settings.CATALOG['DASHBOARD_LIMIT']
        orders = self.list('order', {
            'limit': limit, 'status': 'processing', 'sort_by': 'created_at', 'order': 'asc',
        })
        messages = self.list('message', {
            'limit': limit, 'status': 'unread', 'sort_by': 'created_at', 'order': 'asc',
        })
        categories = self.list('category', {'sort_by': 'name', 'order': 'asc'})
        return {
            'orders': orders['items'],
            'messages': messages['items'],
            'categories': categories['items'],
        }
