"""
Location model — Where stock exists.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Location(models.Model):
    """
    Where stock exists: salon floor, back bar, storeroom, another branch.

    Locations are stable entities, created during system setup.

    Examples:
        Location.objects.create(code='floor', name='Salon floor', is_default=True)
        Location.objects.create(code='storeroom', name='Storeroom')
    """

    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_('Code'),
        help_text=_('Unique identifier (e.g. floor, storeroom)'),
    )
    name = models.CharField(
        max_length=100,
        verbose_name=_('Name'),
    )
    is_default = models.BooleanField(
        default=False,
        verbose_name=_('Default location'),
        help_text=_('Receives adjustments that name no location.'),
    )
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))
    metadata = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_('Metadata'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Location')
        verbose_name_plural = _('Locations')
        ordering = ['code']

    def __str__(self) -> str:
        return self.name
