from django.db import models, router

from .utils import generate_id, build_unique_link


class CatalogModel(models.Model):
    """Base for every resource kind: prefixed string id plus timestamps"""
    id_prefix = None

    id = models.CharField(max_length=64, primary_key=True, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """Assign the identifier on first save; it never changes afterwards"""
        if not self.id:
            self.id = generate_id(self.id_prefix)
        super().save(*args, **kwargs)


class LinkedModel(CatalogModel):
    """Resource addressable by a storefront slug as well as by id"""
    link_source = 'name'

    link = models.SlugField(max_length=220, unique=True, blank=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self.id:
            self.id = generate_id(self.id_prefix)
        if not self.link:
            using = kwargs.get('using') or router.db_for_write(type(self), instance=self)
            self.link = build_unique_link(
                type(self), getattr(self, self.link_source), self.id, using, exclude_pk=self.pk
            )
        super().save(*args, **kwargs)
