"""
VendorAccount model for processor connected accounts.

One VendorAccount per vendor owner (the user who owns restaurants).
The connected account is used for every restaurant the owner runs.

Usage:
    from payments.models import VendorAccount

    account, created = VendorAccount.objects.get_or_create(owner_user_id=user_id)

    # After the processor assigns an account
    account.assign_provider_account("acct_1234567890")
    account.save()

    # After reconciling with the processor
    account.apply_capabilities(
        charges_enabled=True,
        payouts_enabled=True,
        details_submitted=True,
    )
    account.save()

    if account.is_payment_ready:
        ...
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin

from payments.state_machines import OnboardingStatus


def derive_onboarding_status(
    *,
    charges_enabled: bool,
    payouts_enabled: bool,
    details_submitted: bool,
) -> str:
    """
    Derive onboarding status from processor account flags.

    Pure function of the three flags:
        charges AND payouts enabled -> COMPLETE
        otherwise details submitted -> RESTRICTED
        otherwise                   -> PENDING
    """
    if charges_enabled and payouts_enabled:
        return OnboardingStatus.COMPLETE
    if details_submitted:
        return OnboardingStatus.RESTRICTED
    return OnboardingStatus.PENDING


class VendorAccount(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Connected payment account and onboarding state for a vendor.

    Fields:
        owner_user_id: Identity user id of the vendor (restaurant owner)
        provider_account_id: Processor account id (acct_xxx), assigned once
        onboarding_status: Derived from processor flags, never guessed locally
        charges_enabled / payouts_enabled / details_submitted: Flags seen
            at the last refresh
        version: Optimistic locking version field

    Lifecycle:
        1. Created lazily on the first onboarding request (PENDING)
        2. provider_account_id assigned when the processor creates the account
        3. onboarding_status refreshed from the processor (API call or
           account.updated webhook), indefinitely
    """

    owner_user_id = models.UUIDField(
        unique=True,
        help_text="Identity user id of the vendor (restaurant owner)",
    )

    provider_account_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Processor connected account id (acct_xxx)",
    )

    onboarding_status = models.CharField(
        max_length=20,
        choices=OnboardingStatus.choices,
        default=OnboardingStatus.PENDING,
        db_index=True,
        help_text="Onboarding state derived from processor flags",
    )

    charges_enabled = models.BooleanField(
        default=False,
        help_text="Whether the processor has enabled charges",
    )

    payouts_enabled = models.BooleanField(
        default=False,
        help_text="Whether the processor has enabled payouts",
    )

    details_submitted = models.BooleanField(
        default=False,
        help_text="Whether the vendor has submitted onboarding details",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Vendor Account"
        verbose_name_plural = "Vendor Accounts"

    def __str__(self) -> str:
        return f"VendorAccount({self.provider_account_id}, {self.onboarding_status})"

    @property
    def is_payment_ready(self) -> bool:
        """
        True when the vendor can receive destination payments.

        Requires a provider account id AND COMPLETE onboarding.
        """
        return (
            bool(self.provider_account_id)
            and self.onboarding_status == OnboardingStatus.COMPLETE
        )

    def assign_provider_account(self, provider_account_id: str) -> None:
        """
        Attach the processor account id.

        The id never changes once set. Does not save.

        Raises:
            ValueError: If a different account id is already assigned
        """
        if self.provider_account_id and self.provider_account_id != provider_account_id:
            raise ValueError(
                f"VendorAccount {self.pk} already linked to {self.provider_account_id}"
            )
        self.provider_account_id = provider_account_id

    def apply_capabilities(
        self,
        *,
        charges_enabled: bool,
        payouts_enabled: bool,
        details_submitted: bool,
    ) -> bool:
        """
        Record processor flags and re-derive onboarding status.

        Does not save.

        Returns:
            True if onboarding_status changed
        """
        previous = self.onboarding_status
        self.charges_enabled = bool(charges_enabled)
        self.payouts_enabled = bool(payouts_enabled)
        self.details_submitted = bool(details_submitted)
        self.onboarding_status = derive_onboarding_status(
            charges_enabled=self.charges_enabled,
            payouts_enabled=self.payouts_enabled,
            details_submitted=self.details_submitted,
        )
        return previous != self.onboarding_status
