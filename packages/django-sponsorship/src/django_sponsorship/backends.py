"""Backends for the registry's external collaborators.

The registry consults three collaborators it does not own:

- an authority verifier: is this caller allowed to create agreements?
- a fee transfer facility: move the creation fee to the authority
- a clock: the current height, recorded as the agreement timestamp

Backends are selected by dotted path in Django settings
(SPONSORSHIP_AUTHORITY_VERIFIER, SPONSORSHIP_FEE_TRANSFER, SPONSORSHIP_CLOCK)
or passed directly to the services.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .conf import get_setting

logger = logging.getLogger(__name__)


class BaseAuthorityVerifier(ABC):
    """Answers whether an identity is a verified authority."""

    @abstractmethod
    def is_verified_authority(self, identity: str) -> bool:
        raise NotImplementedError


class SettingsAuthorityVerifier(BaseAuthorityVerifier):
    """Verifier backed by the SPONSORSHIP_VERIFIED_AUTHORITIES setting.

    The setting is read on every call so overrides apply immediately.
    """

    def is_verified_authority(self, identity: str) -> bool:
        return identity in set(get_setting("VERIFIED_AUTHORITIES") or [])


class StaticAuthorityVerifier(BaseAuthorityVerifier):
    """Verifier with a fixed allow-list."""

    def __init__(self, identities: Iterable[str] = ()):
        self.identities = set(identities)

    def is_verified_authority(self, identity: str) -> bool:
        return identity in self.identities


@dataclass
class TransferResult:
    """Result of a fee transfer."""

    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "TransferResult":
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> "TransferResult":
        return cls(success=False, error=error)


class BaseFeeTransfer(ABC):
    """Moves an amount from one identity to another, all or nothing."""

    @abstractmethod
    def transfer(self, amount: int, sender: str, recipient: str) -> TransferResult:
        """Transfer amount from sender to recipient.

        A failed transfer must leave balances untouched.
        """
        raise NotImplementedError


class ConsoleFeeTransfer(BaseFeeTransfer):
    """Fee transfer that only logs (for development).

    Does not move any value; every transfer succeeds.
    """

    def transfer(self, amount: int, sender: str, recipient: str) -> TransferResult:
        logger.info(
            "CONSOLE FEE TRANSFER (not actually moved): %s from %s to %s",
            amount, sender, recipient,
        )
        return TransferResult.ok()


class AccountFeeTransfer(BaseFeeTransfer):
    """Fee transfer between Account balances.

    Debits the sender, credits the recipient (creating its account if
    needed) and records a FeeTransfer row. Fails without side effects when
    the sender has no account or too small a balance.
    """

    def transfer(self, amount: int, sender: str, recipient: str) -> TransferResult:
        from .models import Account, FeeTransfer

        with transaction.atomic():
            try:
                source = Account.objects.select_for_update().get(identity=sender)
            except Account.DoesNotExist:
                return TransferResult.fail(f"no account for {sender}")

            if source.balance < amount:
                return TransferResult.fail(
                    f"insufficient balance: {source.balance} < {amount}"
                )

            Account.objects.filter(pk=source.pk).update(balance=F('balance') - amount)
            target, _ = Account.objects.select_for_update().get_or_create(identity=recipient)
            Account.objects.filter(pk=target.pk).update(balance=F('balance') + amount)

            FeeTransfer.objects.create(amount=amount, sender=sender, recipient=recipient)

        return TransferResult.ok()


class BaseClock(ABC):
    """Source of the current height."""

    @abstractmethod
    def current_height(self) -> int:
        raise NotImplementedError


class StaticClock(BaseClock):
    """Clock that only moves when advanced. Useful for tests."""

    def __init__(self, height: int = 0):
        self.height = height

    def current_height(self) -> int:
        return self.height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("A clock cannot move backwards")
        self.height += blocks
        return self.height


class UnixClock(BaseClock):
    """Clock whose height is whole seconds since the Unix epoch."""

    def current_height(self) -> int:
        return int(timezone.now().timestamp())
