"""
Vendor account registry service.

Tracks each vendor's connected processor account and onboarding state.
Onboarding status is only ever derived from processor flags, either on
an explicit refresh or from an account.updated webhook.

Usage:
    from payments.services import VendorAccountService

    url = VendorAccountService.create_onboarding_link(user_id)

    account_id, status = VendorAccountService.get_onboarding_status(user_id)

    if VendorAccountService.is_payment_ready(owner_user_id):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError

from core.exceptions import BaseApplicationError, ValidationError

from payments.adapters import IdempotencyKeyGenerator
from payments.clients import VendorDirectoryClient
from payments.exceptions import StaleRecordError
from payments.locks import check_version, lock_for_update
from payments.models import VendorAccount
from payments.services.base import ProcessorService
from payments.state_machines import OnboardingStatus

if TYPE_CHECKING:
    import uuid

    from payments.adapters import AccountResult

DEFAULT_CONNECT_RETURN_URL = "https://localhost:5301"


class VendorAccountService(ProcessorService):
    """
    Service for vendor connected accounts and onboarding state.

    All methods are class methods - no instance state is maintained.
    """

    # =========================================================================
    # Account Creation & Onboarding
    # =========================================================================

    @classmethod
    def get_or_create_account(cls, user_id: uuid.UUID) -> str:
        """
        Return the vendor's processor account id, creating it if needed.

        The local VendorAccount row is created lazily. The processor
        account is created at most once per vendor: concurrent callers
        share an idempotency key, and the id is assigned under a row lock.

        Returns:
            Processor account id (acct_xxx)

        Raises:
            ProcessorError: Account creation failed
        """
        logger = cls.get_logger()
        account, created = VendorAccount.objects.get_or_create(owner_user_id=user_id)
        if created:
            logger.info(
                "Created vendor account record",
                extra={"owner_user_id": str(user_id), "vendor_account_id": str(account.id)},
            )

        if account.provider_account_id:
            return account.provider_account_id

        result = cls.get_processor().create_account(
            user_id,
            idempotency_key=IdempotencyKeyGenerator.generate("create_account", user_id),
        )

        with cls.atomic():
            locked = lock_for_update(VendorAccount, account.pk)
            if locked.provider_account_id:
                # A concurrent request linked the account first
                return locked.provider_account_id

            locked.assign_provider_account(result.id)
            locked.apply_capabilities(
                charges_enabled=result.charges_enabled,
                payouts_enabled=result.payouts_enabled,
                details_submitted=result.details_submitted,
            )
            locked.save()

        logger.info(
            "Linked processor account to vendor",
            extra={"owner_user_id": str(user_id), "provider_account_id": result.id},
        )
        return result.id

    @staticmethod
    def connect_return_base_url() -> str:
        """Base URL the onboarding flow returns the vendor to."""
        base = (
            getattr(settings, "STRIPE_CONNECT_RETURN_URL", "")
            or getattr(settings, "APP_BASE_URL", "")
            or DEFAULT_CONNECT_RETURN_URL
        ).strip()
        if not base.startswith(("http://", "https://")):
            base = f"https://{base}"
        return base.rstrip("/")

    @classmethod
    def create_onboarding_link(cls, user_id: uuid.UUID) -> str:
        """
        Create a hosted onboarding link for the vendor.

        Creates the processor account first when the vendor has none.

        Returns:
            Onboarding URL
        """
        account_id = cls.get_or_create_account(user_id)
        base = cls.connect_return_base_url()
        return cls.get_processor().create_onboarding_link(
            account_id,
            return_url=f"{base}/vendor?stripe=return",
            refresh_url=f"{base}/vendor?stripe=refresh",
        )

    # =========================================================================
    # Onboarding Status
    # =========================================================================

    @classmethod
    def _apply_account_flags(
        cls,
        pk: uuid.UUID,
        expected_version: int,
        result: AccountResult,
    ) -> VendorAccount:
        with cls.atomic():
            account = check_version(VendorAccount, pk, expected_version)
            changed = account.apply_capabilities(
                charges_enabled=result.charges_enabled,
                payouts_enabled=result.payouts_enabled,
                details_submitted=result.details_submitted,
            )
            account.save()

        if changed:
            cls.get_logger().info(
                f"Vendor onboarding status changed to {account.onboarding_status}",
                extra={
                    "provider_account_id": account.provider_account_id,
                    "onboarding_status": account.onboarding_status,
                },
            )
        return account

    @classmethod
    def refresh_onboarding_status(
        cls, provider_account_id: str
    ) -> VendorAccount | None:
        """
        Re-derive onboarding status from the processor's account flags.

        Returns:
            The updated VendorAccount, or None if no local account uses
            this processor account id
        """
        account = VendorAccount.objects.filter(
            provider_account_id=provider_account_id
        ).first()
        if account is None:
            cls.get_logger().warning(
                "No vendor account for processor account",
                extra={"provider_account_id": provider_account_id},
            )
            return None

        result = cls.get_processor().get_account(provider_account_id)

        try:
            return cls._apply_account_flags(account.pk, account.version, result)
        except StaleRecordError:
            # Flags just read from the processor are the newest we have
            fresh = VendorAccount.objects.get(pk=account.pk)
            return cls._apply_account_flags(fresh.pk, fresh.version, result)

    @classmethod
    def refresh_for_user(cls, user_id: uuid.UUID) -> str:
        """
        Refresh the vendor's onboarding status from the processor.

        Returns:
            The new onboarding status

        Raises:
            ValidationError: Vendor has no linked processor account
        """
        account = VendorAccount.objects.filter(owner_user_id=user_id).first()
        if account is None or not account.provider_account_id:
            raise ValidationError(
                "No payment account linked. Start onboarding first.",
                error_code="VENDOR_ACCOUNT_NOT_LINKED",
            )

        refreshed = cls.refresh_onboarding_status(account.provider_account_id)
        return refreshed.onboarding_status

    @classmethod
    def get_onboarding_status(cls, user_id: uuid.UUID) -> tuple[str | None, str]:
        """
        Return (provider_account_id, onboarding_status) for a vendor.

        Unknown vendors report (None, PENDING).
        """
        account = VendorAccount.objects.filter(owner_user_id=user_id).first()
        if account is None:
            return None, OnboardingStatus.PENDING
        return account.provider_account_id, account.onboarding_status

    # =========================================================================
    # Readiness
    # =========================================================================

    @classmethod
    def get_ready_account(cls, owner_user_id: uuid.UUID) -> VendorAccount | None:
        """Return the vendor's account if it can take payments, else None."""
        account = VendorAccount.objects.filter(owner_user_id=owner_user_id).first()
        if account is None or not account.is_payment_ready:
            return None
        return account

    @classmethod
    def is_payment_ready(cls, owner_user_id: uuid.UUID) -> bool:
        """
        True when the vendor has a processor account AND complete onboarding.
        """
        return cls.get_ready_account(owner_user_id) is not None

    @classmethod
    def is_restaurant_payment_ready(cls, restaurant_id: uuid.UUID) -> bool:
        """
        Readiness for a restaurant, resolved through its owner.

        Any failure along the way reports not ready.
        """
        try:
            owner_id = VendorDirectoryClient.get_owner_id(restaurant_id)
            if owner_id is None:
                return False
            return cls.is_payment_ready(owner_id)
        except (BaseApplicationError, DatabaseError):
            cls.get_logger().exception(
                "Restaurant readiness check failed",
                extra={"restaurant_id": str(restaurant_id)},
            )
            return False
