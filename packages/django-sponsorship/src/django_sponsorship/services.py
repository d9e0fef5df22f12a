"""Sponsorship registry service layer.

All write operations go through these functions.
Direct model manipulation bypasses invariants and is unsupported.

Every mutating service runs in one transaction that first locks the
Registry row, so writers against the same registry are serialized and
readers never see the agreement store and name index disagree.

Functions:
- get_or_create_registry(): Fetch or create a registry by key
- set_authority_contract(): Set the fee recipient, exactly once
- set_creation_fee(), set_max_agreements(): Adjust registry settings
- create_agreement(): Validate, authorize, charge the fee and admit
- update_agreement(): Change name, max_dependents and support_amount
- get_agreement(), get_agreement_updates(), get_agreement_count()
- check_agreement_existence(), is_agreement_registered()
- verify_name_index(): List inconsistencies between store and name index
"""

import logging
from typing import Optional

from django.db import transaction

from .conf import get_authority_verifier, get_clock, get_fee_transfer, get_setting
from .exceptions import (
    AgreementAlreadyExistsError,
    AuthorityAlreadySetError,
    AuthorityNotVerifiedError,
    InvalidAuthorityError,
    MaxAgreementsExceededError,
    NotAuthorizedError,
    TransferFailedError,
    UpdateNotPermittedError,
)
from .models import Agreement, AgreementName, AgreementUpdate, Registry
from .validators import MAX_UINT, validate_agreement_terms, validate_update_terms

logger = logging.getLogger(__name__)


def get_or_create_registry(key: str = 'default') -> Registry:
    """Get the registry with the given key, creating it with defaults."""
    registry, created = Registry.objects.get_or_create(key=key)
    if created:
        logger.info("Created sponsorship registry '%s'", key)
    return registry


def _lock(registry: Registry) -> Registry:
    """Re-read the registry row with a write lock. Call inside atomic()."""
    return Registry.objects.select_for_update().get(pk=registry.pk)


def _check_amount(amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or not 0 <= amount <= MAX_UINT:
        raise ValueError(f"Amount must be an integer in [0, {MAX_UINT}], got {amount!r}")


def set_authority_contract(registry: Registry, identity: str) -> Registry:
    """
    Set the registry's authority contract.

    This is a one-way latch: it succeeds once, from unset to identity,
    and every later call fails.

    Raises:
        InvalidAuthorityError: If identity is empty or the burn address
        AuthorityAlreadySetError: If the authority is already set
    """
    if not identity or identity == get_setting("BURN_ADDRESS"):
        raise InvalidAuthorityError(identity)

    with transaction.atomic():
        registry = _lock(registry)
        if registry.authority.is_set:
            raise AuthorityAlreadySetError(registry.authority_contract)

        registry.authority_contract = identity
        registry.save(update_fields=['authority_contract', 'updated_at'])

    logger.info("Registry '%s' authority contract set to %s", registry.key, identity)
    return registry


def _set_registry_value(registry: Registry, field: str, amount: int) -> Registry:
    _check_amount(amount)

    with transaction.atomic():
        registry = _lock(registry)
        # Any caller may change these once an authority exists.
        if not registry.authority.is_set:
            raise AuthorityNotVerifiedError(registry.key)

        setattr(registry, field, amount)
        registry.save(update_fields=[field, 'updated_at'])

    logger.info("Registry '%s' %s set to %s", registry.key, field, amount)
    return registry


def set_creation_fee(registry: Registry, amount: int) -> Registry:
    """
    Set the fee charged for each agreement creation.

    Raises:
        AuthorityNotVerifiedError: If no authority contract is set
        ValueError: If amount is not a non-negative integer
    """
    return _set_registry_value(registry, 'creation_fee', amount)


def set_max_agreements(registry: Registry, amount: int) -> Registry:
    """
    Set the registry's capacity ceiling.

    Raises:
        AuthorityNotVerifiedError: If no authority contract is set
        ValueError: If amount is not a non-negative integer
    """
    return _set_registry_value(registry, 'max_agreements', amount)


def create_agreement(
    registry: Registry,
    caller: str,
    *,
    name: str,
    max_dependents: int,
    support_amount: int,
    frequency: int,
    penalty_rate: int,
    voting_threshold: int,
    immigrant: str,
    agreement_type: str,
    interest_rate: int,
    grace_period: int,
    location: str,
    currency: str,
    min_support: int,
    max_obligation: int,
    verifier=None,
    fee_transfer=None,
    clock=None,
) -> Agreement:
    """
    Admit a new agreement into the registry.

    Checks run in a fixed order and the first failure is raised:
    capacity, field validation, caller authorization, name uniqueness,
    authority configured. The creation fee is then transferred from the
    caller to the authority; only after it succeeds are the agreement and
    its name index entry written and the id allocator advanced.

    Args:
        registry: The registry to admit into
        caller: Identity creating the agreement; becomes the sponsor
        verifier: Authority verifier backend (defaults to settings)
        fee_transfer: Fee transfer backend (defaults to settings)
        clock: Clock backend (defaults to settings)
        Remaining keyword arguments are the agreement terms.

    Returns:
        The created Agreement

    Raises:
        MaxAgreementsExceededError: If the registry is full
        InvalidFieldError: If a term is invalid
        NotAuthorizedError: If the caller is not a verified authority
        AgreementAlreadyExistsError: If the name is taken
        AuthorityNotVerifiedError: If no authority contract is set
        TransferFailedError: If the fee transfer fails
    """
    verifier = verifier or get_authority_verifier()
    fee_transfer = fee_transfer or get_fee_transfer()
    clock = clock or get_clock()

    terms = {
        'name': name,
        'max_dependents': max_dependents,
        'support_amount': support_amount,
        'frequency': frequency,
        'penalty_rate': penalty_rate,
        'voting_threshold': voting_threshold,
        'agreement_type': agreement_type,
        'interest_rate': interest_rate,
        'grace_period': grace_period,
        'location': location,
        'currency': currency,
        'min_support': min_support,
        'max_obligation': max_obligation,
    }

    with transaction.atomic():
        registry = _lock(registry)

        if registry.next_agreement_id >= registry.max_agreements:
            raise MaxAgreementsExceededError(registry.max_agreements)

        validate_agreement_terms(terms)

        if not verifier.is_verified_authority(caller):
            raise NotAuthorizedError(caller)

        if AgreementName.objects.filter(registry=registry, name=name).exists():
            raise AgreementAlreadyExistsError(name)

        # Checked after uniqueness so a duplicate is reported first.
        if not registry.authority.is_set:
            raise AuthorityNotVerifiedError(registry.key)

        result = fee_transfer.transfer(
            registry.creation_fee, caller, registry.authority_contract
        )
        if not result.success:
            logger.warning(
                "Creation fee transfer of %s from %s failed: %s",
                registry.creation_fee, caller, result.error,
            )
            raise TransferFailedError(result.error, amount=registry.creation_fee)

        agreement = Agreement.objects.create(
            registry=registry,
            agreement_id=registry.next_agreement_id,
            sponsor=caller,
            immigrant=immigrant,
            timestamp=clock.current_height(),
            status=True,
            **terms,
        )
        AgreementName.objects.create(registry=registry, name=name, agreement=agreement)

        registry.next_agreement_id += 1
        registry.save(update_fields=['next_agreement_id', 'updated_at'])

    logger.info(
        "Agreement %s '%s' created in registry '%s' by %s",
        agreement.agreement_id, name, registry.key, caller,
    )
    return agreement


def update_agreement(
    registry: Registry,
    caller: str,
    agreement_id: int,
    *,
    name: str,
    max_dependents: int,
    support_amount: int,
    clock=None,
) -> Agreement:
    """
    Update an agreement's name, max_dependents and support_amount.

    Only the sponsor may update. Every other field is carried over
    unchanged; timestamp is set to the current height. The agreement's
    single AgreementUpdate slot is overwritten.

    Returns:
        The updated Agreement

    Raises:
        UpdateNotPermittedError: If the agreement does not exist or the
            caller is not its sponsor
        InvalidFieldError: If a new value is invalid
        AgreementAlreadyExistsError: If the new name belongs to another agreement
    """
    clock = clock or get_clock()

    with transaction.atomic():
        registry = _lock(registry)

        agreement = (
            Agreement.objects.select_for_update()
            .filter(registry=registry, agreement_id=agreement_id)
            .first()
        )
        if agreement is None or agreement.sponsor != caller:
            raise UpdateNotPermittedError(agreement_id)

        validate_update_terms(name, max_dependents, support_amount)

        holder = (
            AgreementName.objects.filter(registry=registry, name=name)
            .values_list('agreement_id', flat=True)
            .first()
        )
        if holder is not None and holder != agreement.pk:
            raise AgreementAlreadyExistsError(name)

        height = clock.current_height()
        old_name = agreement.name

        if name != old_name:
            AgreementName.objects.filter(agreement=agreement).update(name=name)

        agreement.name = name
        agreement.max_dependents = max_dependents
        agreement.support_amount = support_amount
        agreement.timestamp = height
        agreement.save(update_fields=['name', 'max_dependents', 'support_amount', 'timestamp'])

        AgreementUpdate.objects.update_or_create(
            agreement=agreement,
            defaults={
                'update_name': name,
                'update_max_dependents': max_dependents,
                'update_support_amount': support_amount,
                'update_timestamp': height,
                'updater': caller,
            },
        )

    logger.info(
        "Agreement %s in registry '%s' updated by %s (name '%s' -> '%s')",
        agreement_id, registry.key, caller, old_name, name,
    )
    return agreement


def get_agreement(registry: Registry, agreement_id: int) -> Optional[Agreement]:
    """Return the agreement with this id, or None."""
    return Agreement.objects.filter(registry=registry, agreement_id=agreement_id).first()


def get_agreement_updates(registry: Registry, agreement_id: int) -> Optional[AgreementUpdate]:
    """Return the latest update recorded for this agreement, or None."""
    return (
        AgreementUpdate.objects.select_related('agreement')
        .filter(agreement__registry=registry, agreement__agreement_id=agreement_id)
        .first()
    )


def get_agreement_count(registry: Registry) -> int:
    """Return the number of agreements ever created (the next id)."""
    return Registry.objects.values_list('next_agreement_id', flat=True).get(pk=registry.pk)


def check_agreement_existence(registry: Registry, name: str) -> bool:
    """Return whether an agreement currently holds this name."""
    return AgreementName.objects.filter(registry=registry, name=name).exists()


def is_agreement_registered(registry: Registry, name: str) -> bool:
    """Alias of check_agreement_existence()."""
    return check_agreement_existence(registry, name)


def verify_name_index(registry: Registry) -> list[str]:
    """
    Compare the agreement store with the name index.

    Returns:
        A list of inconsistencies; empty when every agreement's name maps
        to that agreement and every entry names an agreement that holds it.
    """
    problems = []

    with transaction.atomic():
        entries = {
            entry.agreement_id: entry.name
            for entry in AgreementName.objects.filter(registry=registry)
        }
        for agreement in Agreement.objects.filter(registry=registry):
            indexed = entries.pop(agreement.pk, None)
            if indexed is None:
                problems.append(
                    f"Agreement {agreement.agreement_id} '{agreement.name}' has no name entry"
                )
            elif indexed != agreement.name:
                problems.append(
                    f"Name entry '{indexed}' does not match agreement "
                    f"{agreement.agreement_id} name '{agreement.name}'"
                )
        for name in entries.values():
            problems.append(f"Name entry '{name}' points at no agreement in this registry")

    return problems
