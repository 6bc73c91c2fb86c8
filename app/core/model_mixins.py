"""
Model mixins providing reusable functionality for Django models.

These are abstract classes combined with BaseModel to add specific
behavior. They carry no domain logic.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    VersionedMixin: Optimistic locking via an auto-incremented version

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin

    class Invoice(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
        number = models.CharField(max_length=32)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import F


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    IDs can be generated before the database insert, which lets callers
    put the local id into processor metadata on the same request.

    Fields:
        id: UUIDField as primary key (auto-generated)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class VersionedMixin(models.Model):
    """
    Optimistic locking through a version counter.

    Every update increments ``version`` atomically in the database using
    an F() expression, then reloads the new value. Writers that must not
    overwrite a concurrent change pair this with
    ``payments.locks.check_version()``.

    Fields:
        version: Incremented on every save after the first insert

    Usage:
        with transaction.atomic():
            intent = check_version(PaymentIntent, intent.pk, intent.version)
            intent.capture()
            intent.save()  # version + 1
    """

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        is_update = (
            not self._state.adding
            and self.pk
            and not kwargs.get("force_insert", False)
        )
        if is_update:
            self.version = F("version") + 1
            update_fields = kwargs.get("update_fields")
            if update_fields is not None:
                kwargs["update_fields"] = {*update_fields, "version"}
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])
