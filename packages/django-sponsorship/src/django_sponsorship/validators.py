"""Field validators for agreement terms.

Each validator checks one field in isolation and raises InvalidFieldError
for that field. There are no cross-field rules: min_support is not compared
with max_obligation, for example.
"""

from .exceptions import InvalidFieldError
from .models import AgreementType, Currency


MAX_NAME_LENGTH = 100
MAX_LOCATION_LENGTH = 100
MAX_DEPENDENTS = 50
MAX_PENALTY_RATE = 100
MAX_VOTING_THRESHOLD = 100
MAX_INTEREST_RATE = 20
MAX_GRACE_PERIOD = 30
# Largest value a PositiveBigIntegerField column can hold
MAX_UINT = 2**63 - 1


def _is_uint(value) -> bool:
    # bool is an int subclass but never a valid amount
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= MAX_UINT
    )


def _check_text(field: str, value, max_length: int) -> None:
    if not isinstance(value, str) or not 1 <= len(value) <= max_length:
        raise InvalidFieldError(field, value)


def _check_range(field: str, value, low: int, high: int = None) -> None:
    if not _is_uint(value) or value < low or (high is not None and value > high):
        raise InvalidFieldError(field, value)


def validate_name(name) -> None:
    _check_text('name', name, MAX_NAME_LENGTH)


def validate_max_dependents(max_dependents) -> None:
    _check_range('max_dependents', max_dependents, 1, MAX_DEPENDENTS)


def validate_support_amount(support_amount) -> None:
    _check_range('support_amount', support_amount, 1)


def validate_frequency(frequency) -> None:
    _check_range('frequency', frequency, 1)


def validate_penalty_rate(penalty_rate) -> None:
    _check_range('penalty_rate', penalty_rate, 0, MAX_PENALTY_RATE)


def validate_voting_threshold(voting_threshold) -> None:
    _check_range('voting_threshold', voting_threshold, 1, MAX_VOTING_THRESHOLD)


def validate_agreement_type(agreement_type) -> None:
    if agreement_type not in AgreementType.values:
        raise InvalidFieldError('agreement_type', agreement_type)


def validate_interest_rate(interest_rate) -> None:
    _check_range('interest_rate', interest_rate, 0, MAX_INTEREST_RATE)


def validate_grace_period(grace_period) -> None:
    _check_range('grace_period', grace_period, 0, MAX_GRACE_PERIOD)


def validate_location(location) -> None:
    _check_text('location', location, MAX_LOCATION_LENGTH)


def validate_currency(currency) -> None:
    if currency not in Currency.values:
        raise InvalidFieldError('currency', currency)


def validate_min_support(min_support) -> None:
    _check_range('min_support', min_support, 1)


def validate_max_obligation(max_obligation) -> None:
    _check_range('max_obligation', max_obligation, 1)


# Creation checks run in this order; the first failure is reported.
AGREEMENT_VALIDATORS = (
    ('name', validate_name),
    ('max_dependents', validate_max_dependents),
    ('support_amount', validate_support_amount),
    ('frequency', validate_frequency),
    ('penalty_rate', validate_penalty_rate),
    ('voting_threshold', validate_voting_threshold),
    ('agreement_type', validate_agreement_type),
    ('interest_rate', validate_interest_rate),
    ('grace_period', validate_grace_period),
    ('location', validate_location),
    ('currency', validate_currency),
    ('min_support', validate_min_support),
    ('max_obligation', validate_max_obligation),
)

UPDATE_VALIDATORS = (
    ('name', validate_name),
    ('max_dependents', validate_max_dependents),
    ('support_amount', validate_support_amount),
)


def _run(validators, terms: dict) -> None:
    for field, validator in validators:
        validator(terms[field])


def validate_agreement_terms(terms: dict) -> None:
    """
    Validate the thirteen agreement terms.

    Args:
        terms: Dict with a key for every field in AGREEMENT_VALIDATORS

    Raises:
        InvalidFieldError: For the first field, in pipeline order, that fails
        KeyError: If a field is missing from terms
    """
    _run(AGREEMENT_VALIDATORS, terms)


def validate_update_terms(name, max_dependents, support_amount) -> None:
    """Validate the fields an update may change."""
    _run(UPDATE_VALIDATORS, {
        'name': name,
        'max_dependents': max_dependents,
        'support_amount': support_amount,
    })
