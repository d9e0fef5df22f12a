"""Django Sponsorship - registry of binding sponsorship agreements.

Models:
    Registry: Id allocator, capacity, creation fee and authority latch
    Agreement: Sponsorship between a sponsor and an immigrant
    AgreementName: Name index enforcing unique names per registry
    AgreementUpdate: Latest update applied to an agreement

Services (the only supported write path):
    set_authority_contract: Set the fee recipient, exactly once
    set_creation_fee: Change the creation fee
    set_max_agreements: Change the capacity ceiling
    create_agreement: Validate, authorize, charge the fee and admit
    update_agreement: Rename and adjust dependents and support amount
"""

__version__ = "0.1.0"

__all__ = [
    # Models
    "Registry",
    "Agreement",
    "AgreementName",
    "AgreementUpdate",
    # Services
    "get_or_create_registry",
    "set_authority_contract",
    "set_creation_fee",
    "set_max_agreements",
    "create_agreement",
    "update_agreement",
    "get_agreement",
    "get_agreement_updates",
    "get_agreement_count",
    "check_agreement_existence",
    "is_agreement_registered",
    # Exceptions
    "SponsorshipError",
]

_MODELS = ("Registry", "Agreement", "AgreementName", "AgreementUpdate")


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name in _MODELS:
        from . import models
        return getattr(models, name)

    if name == "SponsorshipError":
        from .exceptions import SponsorshipError
        return SponsorshipError

    if name in __all__:
        from . import services
        return getattr(services, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
