"""Custom exceptions for django-sponsorship.

Every failure carries the numeric ``code`` the registry reports to callers,
so a caller can map an exception back to the flat error table:

    100 not authorized            109 authority not verified
    101..105 invalid field        110, 111 invalid field
    106 agreement already exists  113 invalid name
    107 agreement not found       114 max agreements exceeded
                                  115..119 invalid field
"""


class SponsorshipError(Exception):
    """Base exception for sponsorship registry errors."""

    code = None


class NotAuthorizedError(SponsorshipError):
    """Raised when the caller is not a verified authority."""

    code = 100

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__(f"Caller '{caller}' is not a verified authority")


# Field name -> error code. Order here is not the validation order.
FIELD_ERROR_CODES = {
    "max_dependents": 101,
    "support_amount": 102,
    "frequency": 103,
    "penalty_rate": 104,
    "voting_threshold": 105,
    "min_support": 110,
    "max_obligation": 111,
    "name": 113,
    "agreement_type": 115,
    "interest_rate": 116,
    "grace_period": 117,
    "location": 118,
    "currency": 119,
}


class InvalidFieldError(SponsorshipError):
    """Raised when a single agreement field fails its validity rule."""

    def __init__(self, field: str, value=None):
        if field not in FIELD_ERROR_CODES:
            raise ValueError(f"Unknown agreement field: {field}")
        self.field = field
        self.value = value
        self.code = FIELD_ERROR_CODES[field]
        super().__init__(f"Invalid value for '{field}': {value!r}")


class AgreementAlreadyExistsError(SponsorshipError):
    """Raised when an agreement name is already taken in the registry."""

    code = 106

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Agreement named '{name}' already exists")


class AgreementNotFoundError(SponsorshipError):
    """Error kind for an agreement id that does not exist.

    Not raised by update_agreement(), which reports a missing agreement
    as UpdateNotPermittedError. Kept so code 107 has a name for callers
    mapping codes to exceptions.
    """

    code = 107

    def __init__(self, agreement_id: int):
        self.agreement_id = agreement_id
        super().__init__(f"Agreement {agreement_id} not found")


class UpdateNotPermittedError(SponsorshipError):
    """Raised when an update is refused.

    Covers both a missing agreement and a caller who is not its sponsor.
    The two cases are intentionally indistinguishable to the caller.
    """

    def __init__(self, agreement_id: int):
        self.agreement_id = agreement_id
        super().__init__(f"Update of agreement {agreement_id} not permitted")


class AuthorityNotVerifiedError(SponsorshipError):
    """Raised when an operation needs an authority contract and none is set."""

    code = 109

    def __init__(self, registry_key: str = ""):
        self.registry_key = registry_key
        super().__init__(f"No authority contract set for registry '{registry_key}'")


class AuthorityAlreadySetError(SponsorshipError):
    """Raised when the authority contract latch has already been set."""

    def __init__(self, current: str):
        self.current = current
        super().__init__(f"Authority contract already set to '{current}'")


class InvalidAuthorityError(SponsorshipError):
    """Raised when the proposed authority is the burn address or empty."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"'{identity}' cannot be used as the authority contract")


class MaxAgreementsExceededError(SponsorshipError):
    """Raised when the registry is at capacity."""

    code = 114

    def __init__(self, max_agreements: int):
        self.max_agreements = max_agreements
        super().__init__(f"Registry is full ({max_agreements} agreements)")


class TransferFailedError(SponsorshipError):
    """Raised when the fee transfer backend reports a failure."""

    def __init__(self, error: str, amount: int = None):
        self.error = error
        self.amount = amount
        super().__init__(f"Creation fee transfer failed: {error}")


class BackendLoadError(SponsorshipError):
    """Raised when a configured backend cannot be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load backend '{path}': {reason}")
