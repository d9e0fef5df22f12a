"""Registry, Agreement, AgreementName and AgreementUpdate models.

A registry records binding sponsorship agreements between a sponsor and a
beneficiary (the immigrant). Agreements are looked up by their
registry-allocated integer id or, through the name index, by name.

Write through services only:
- set_authority_contract()
- set_creation_fee() / set_max_agreements()
- create_agreement()
- update_agreement()
"""

from dataclasses import dataclass
from typing import Optional

from django.db import models
from django.db.models import Q

from .conf import default_creation_fee, default_max_agreements, get_setting


@dataclass(frozen=True)
class Authority:
    """The authority contract latch: either unset or set to one identity."""

    identity: Optional[str] = None

    @classmethod
    def unset(cls) -> "Authority":
        return cls()

    @classmethod
    def of(cls, identity: str) -> "Authority":
        return cls(identity=identity)

    @property
    def is_set(self) -> bool:
        return self.identity is not None


class AgreementType(models.TextChoices):
    FAMILY = 'family', 'Family'
    EMPLOYMENT = 'employment', 'Employment'
    COMMUNITY = 'community', 'Community'


class Currency(models.TextChoices):
    STX = 'STX', 'Stacks'
    USD = 'USD', 'US Dollar'
    BTC = 'BTC', 'Bitcoin'


class Registry(models.Model):
    """
    Registry-wide state for one independent agreement registry.

    Holds the id allocator, capacity ceiling, creation fee and the
    authority contract latch. The row doubles as the writer lock:
    every mutating service selects it FOR UPDATE first.

    Usage:
        from django_sponsorship.services import get_or_create_registry

        registry = get_or_create_registry('default')
    """

    key = models.SlugField(
        max_length=50,
        unique=True,
        help_text="Registry key, e.g. 'default'",
    )
    next_agreement_id = models.PositiveBigIntegerField(
        default=0,
        help_text="Next id to allocate; also the number of agreements created",
    )
    max_agreements = models.PositiveBigIntegerField(
        default=default_max_agreements,
        help_text="Capacity ceiling",
    )
    creation_fee = models.PositiveBigIntegerField(
        default=default_creation_fee,
        help_text="Fee transferred to the authority on each creation",
    )
    authority_contract = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Fee recipient; settable once (null = unset)",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = 'django_sponsorship'
        verbose_name_plural = 'registries'
        constraints = [
            models.CheckConstraint(
                condition=~Q(authority_contract=get_setting("BURN_ADDRESS")),
                name='sponsorship_authority_not_burn_address',
            ),
        ]

    def __str__(self):
        return f"{self.key}: {self.next_agreement_id}/{self.max_agreements}"

    @property
    def authority(self) -> Authority:
        if self.authority_contract is None:
            return Authority.unset()
        return Authority.of(self.authority_contract)


class Agreement(models.Model):
    """
    A sponsorship agreement admitted into a registry.

    Only name, max_dependents, support_amount and timestamp change after
    creation, and only through update_agreement(). The sponsor is the
    identity that created the agreement.

    Invariant: AgreementName(registry, name) exists and points at this row.
    """

    registry = models.ForeignKey(
        Registry,
        on_delete=models.PROTECT,
        related_name='agreements',
    )
    agreement_id = models.PositiveBigIntegerField(
        help_text="Registry-allocated id, zero-based",
    )

    name = models.CharField(max_length=100)
    agreement_type = models.CharField(max_length=20, choices=AgreementType.choices)
    location = models.CharField(max_length=100)
    currency = models.CharField(max_length=3, choices=Currency.choices)

    # Financial terms
    support_amount = models.PositiveBigIntegerField()
    min_support = models.PositiveBigIntegerField()
    max_obligation = models.PositiveBigIntegerField()
    interest_rate = models.PositiveSmallIntegerField()
    penalty_rate = models.PositiveSmallIntegerField()

    # Structural terms
    max_dependents = models.PositiveSmallIntegerField()
    frequency = models.PositiveBigIntegerField(
        help_text="Periods between required support events",
    )
    grace_period = models.PositiveSmallIntegerField()
    voting_threshold = models.PositiveSmallIntegerField(
        help_text="Percentage, 1-100",
    )

    sponsor = models.CharField(max_length=255)
    immigrant = models.CharField(max_length=255)

    timestamp = models.PositiveBigIntegerField(
        help_text="Height at creation or last update",
    )
    status = models.BooleanField(default=True)

    class Meta:
        app_label = 'django_sponsorship'
        constraints = [
            models.UniqueConstraint(
                fields=['registry', 'agreement_id'],
                name='unique_registry_agreement_id',
            ),
            models.CheckConstraint(
                condition=Q(max_dependents__gte=1, max_dependents__lte=50),
                name='sponsorship_max_dependents_range',
            ),
            models.CheckConstraint(
                condition=Q(voting_threshold__gte=1, voting_threshold__lte=100),
                name='sponsorship_voting_threshold_range',
            ),
        ]
        indexes = [
            models.Index(fields=['registry', 'sponsor']),
        ]
        ordering = ['registry', 'agreement_id']

    def __str__(self):
        return f"Agreement {self.agreement_id} ({self.name})"

    def as_dict(self) -> dict:
        """Snapshot of the agreement's recorded fields."""
        return {
            'id': self.agreement_id,
            'name': self.name,
            'max_dependents': self.max_dependents,
            'support_amount': self.support_amount,
            'frequency': self.frequency,
            'penalty_rate': self.penalty_rate,
            'voting_threshold': self.voting_threshold,
            'timestamp': self.timestamp,
            'sponsor': self.sponsor,
            'immigrant': self.immigrant,
            'agreement_type': self.agreement_type,
            'interest_rate': self.interest_rate,
            'grace_period': self.grace_period,
            'location': self.location,
            'currency': self.currency,
            'status': self.status,
            'min_support': self.min_support,
            'max_obligation': self.max_obligation,
        }


class AgreementName(models.Model):
    """
    Name index entry: agreement name -> agreement, unique per registry.

    Rows are created and moved by the services in the same transaction
    that writes the Agreement.
    """

    registry = models.ForeignKey(
        Registry,
        on_delete=models.PROTECT,
        related_name='names',
    )
    name = models.CharField(max_length=100)
    agreement = models.OneToOneField(
        Agreement,
        on_delete=models.CASCADE,
        related_name='name_entry',
    )

    class Meta:
        app_label = 'django_sponsorship'
        constraints = [
            models.UniqueConstraint(
                fields=['registry', 'name'],
                name='unique_registry_agreement_name',
            ),
        ]

    def __str__(self):
        return f"{self.name} -> {self.agreement.agreement_id}"


class AgreementUpdate(models.Model):
    """
    Latest update applied to an agreement.

    One row per agreement, overwritten on each update. This is not a
    history: only the most recent update is kept.
    """

    agreement = models.OneToOneField(
        Agreement,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='last_update',
    )
    update_name = models.CharField(max_length=100)
    update_max_dependents = models.PositiveSmallIntegerField()
    update_support_amount = models.PositiveBigIntegerField()
    update_timestamp = models.PositiveBigIntegerField()
    updater = models.CharField(max_length=255)

    class Meta:
        app_label = 'django_sponsorship'

    def __str__(self):
        return f"Agreement {self.agreement.agreement_id} updated by {self.updater}"


class Account(models.Model):
    """Balance held by an identity, used by AccountFeeTransfer."""

    identity = models.CharField(max_length=255, unique=True)
    balance = models.PositiveBigIntegerField(default=0)

    class Meta:
        app_label = 'django_sponsorship'

    def __str__(self):
        return f"{self.identity}: {self.balance}"


class FeeTransfer(models.Model):
    """Record of a creation fee moved by AccountFeeTransfer."""

    amount = models.PositiveBigIntegerField()
    sender = models.CharField(max_length=255)
    recipient = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = 'django_sponsorship'
        ordering = ['created_at', 'pk']

    def __str__(self):
        return f"{self.amount} {self.sender} -> {self.recipient}"
