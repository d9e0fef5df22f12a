"""Pytest configuration for django-sponsorship tests."""

import pytest

from django_sponsorship.backends import (
    BaseFeeTransfer,
    StaticAuthorityVerifier,
    StaticClock,
    TransferResult,
)


SPONSOR = "ST1TEST"
AUTHORITY = "ST2TEST"
IMMIGRANT = "ST3IMMIGRANT"


class RecordingFeeTransfer(BaseFeeTransfer):
    """Fee transfer that records calls and can be told to fail."""

    def __init__(self):
        self.transfers = []
        self.fail_with = None

    def transfer(self, amount, sender, recipient):
        if self.fail_with:
            return TransferResult.fail(self.fail_with)
        self.transfers.append({"amount": amount, "from": sender, "to": recipient})
        return TransferResult.ok()


@pytest.fixture
def registry(db):
    """Create a fresh registry with default settings."""
    from django_sponsorship.services import get_or_create_registry

    return get_or_create_registry("test")


@pytest.fixture
def authorized_registry(registry):
    """Registry whose authority contract is set."""
    from django_sponsorship.services import set_authority_contract

    return set_authority_contract(registry, AUTHORITY)


@pytest.fixture
def verifier():
    return StaticAuthorityVerifier([SPONSOR])


@pytest.fixture
def fee_transfer():
    return RecordingFeeTransfer()


@pytest.fixture
def clock():
    return StaticClock(height=0)


@pytest.fixture
def alpha_terms():
    """Valid terms for an agreement named Alpha."""
    return {
        "name": "Alpha",
        "max_dependents": 10,
        "support_amount": 100,
        "frequency": 30,
        "penalty_rate": 5,
        "voting_threshold": 50,
        "immigrant": IMMIGRANT,
        "agreement_type": "family",
        "interest_rate": 10,
        "grace_period": 7,
        "location": "VillageX",
        "currency": "STX",
        "min_support": 50,
        "max_obligation": 1000,
    }


@pytest.fixture
def create(verifier, fee_transfer, clock):
    """Call create_agreement with the test backends."""
    from django_sponsorship.services import create_agreement

    def _create(registry, caller=SPONSOR, **terms):
        return create_agreement(
            registry,
            caller,
            verifier=verifier,
            fee_transfer=fee_transfer,
            clock=clock,
            **terms,
        )

    return _create
