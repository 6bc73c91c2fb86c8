"""
Concurrency control utilities for payment operations.

Payment state is never protected by a lock held across a processor call.
Every state-changing path re-reads the row right before it writes and
folds its precondition into that short write transaction:

1. **Row re-read** (lock_for_update)
   - select_for_update inside the caller's transaction
   - The caller re-checks status (django_fsm.can_proceed) before the
     transition, so racing writers see each other's committed state

2. **Optimistic Locking** (check_version)
   - Version-based conflict detection
   - Raises StaleRecordError when another writer got there first

Usage:

    from payments.locks import check_version, lock_for_update

    with transaction.atomic():
        intent = lock_for_update(PaymentIntent, intent_id)
        if can_proceed(intent.capture):
            intent.capture()
            intent.save()

    with transaction.atomic():
        account = check_version(VendorAccount, account.pk, expected_version=3)
        account.apply_capabilities(...)
        account.save()  # Version auto-increments

Note:
    On SQLite select_for_update is a no-op; SQLite serializes writers
    at the database level instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from django.db import models, transaction

from core.exceptions import NotFoundError
from payments.exceptions import StaleRecordError

if TYPE_CHECKING:
    from typing import Any

# Type variable for model classes
T = TypeVar("T", bound=models.Model)


def _not_found(model_class: type[models.Model], pk: Any) -> NotFoundError:
    model_name = model_class.__name__
    return NotFoundError(
        f"{model_name} {pk} not found",
        error_code=f"{model_name.upper()}_NOT_FOUND",
        details={"pk": str(pk)},
    )


def lock_for_update(model_class: type[T], pk: Any) -> T:
    """
    Re-read a record and lock its row until the transaction ends.

    Must be called inside transaction.atomic().

    Raises:
        NotFoundError: If record doesn't exist
    """
    instance = model_class.objects.select_for_update().filter(pk=pk).first()
    if instance is None:
        raise _not_found(model_class, pk)
    return instance


def check_version(
    model_class: type[T],
    pk: Any,
    expected_version: int,
) -> T:
    """
    Atomically check version and lock a record for update.

    Combines optimistic locking (version check) with a row lock for the
    actual update.

    Args:
        model_class: Django model class (must have 'version' field)
        pk: Primary key of the record
        expected_version: Version the caller read

    Returns:
        The locked model instance

    Raises:
        StaleRecordError: If version doesn't match (concurrent modification)
        NotFoundError: If record doesn't exist

    Note:
        Call within transaction.atomic() so the lock is held until the
        caller's write commits.
    """
    with transaction.atomic():
        instance = (
            model_class.objects.select_for_update()
            .filter(pk=pk, version=expected_version)
            .first()
        )

        if instance is None:
            current = model_class.objects.filter(pk=pk).first()
            if current is None:
                raise _not_found(model_class, pk)

            model_name = model_class.__name__
            raise StaleRecordError(
                f"{model_name} {pk} has been modified "
                f"(expected version {expected_version}, current {current.version})",
                details={
                    "pk": str(pk),
                    "expected_version": expected_version,
                    "current_version": current.version,
                },
            )

        return instance


__all__ = [
    "check_version",
    "lock_for_update",
]
