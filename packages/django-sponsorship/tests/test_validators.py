"""Tests for agreement field validators."""
import pytest

from django_sponsorship.exceptions import AgreementNotFoundError, InvalidFieldError
from django_sponsorship.validators import (
    AGREEMENT_VALIDATORS,
    MAX_UINT,
    validate_agreement_terms,
    validate_agreement_type,
    validate_currency,
    validate_grace_period,
    validate_interest_rate,
    validate_location,
    validate_max_dependents,
    validate_name,
    validate_penalty_rate,
    validate_support_amount,
    validate_update_terms,
    validate_voting_threshold,
)


VALID_TERMS = {
    "name": "Alpha",
    "max_dependents": 10,
    "support_amount": 100,
    "frequency": 30,
    "penalty_rate": 5,
    "voting_threshold": 50,
    "agreement_type": "family",
    "interest_rate": 10,
    "grace_period": 7,
    "location": "VillageX",
    "currency": "STX",
    "min_support": 50,
    "max_obligation": 1000,
}


class TestFieldValidators:
    """Test suite for single-field validators."""

    @pytest.mark.parametrize("name", ["A", "x" * 100, "Alpha Agreement"])
    def test_name_accepts_1_to_100_chars(self, name):
        validate_name(name)

    @pytest.mark.parametrize("name", ["", "x" * 101, None])
    def test_name_rejects_out_of_range(self, name):
        with pytest.raises(InvalidFieldError) as exc:
            validate_name(name)
        assert exc.value.field == "name"
        assert exc.value.code == 113

    @pytest.mark.parametrize("value", [1, 25, 50])
    def test_max_dependents_bounds_accepted(self, value):
        validate_max_dependents(value)

    @pytest.mark.parametrize("value", [0, 51, -1, 10.0, True])
    def test_max_dependents_rejected(self, value):
        with pytest.raises(InvalidFieldError) as exc:
            validate_max_dependents(value)
        assert exc.value.code == 101

    def test_support_amount_must_be_positive(self):
        validate_support_amount(1)
        with pytest.raises(InvalidFieldError) as exc:
            validate_support_amount(0)
        assert exc.value.field == "support_amount"

    def test_support_amount_bounded_by_column_size(self):
        validate_support_amount(MAX_UINT)
        with pytest.raises(InvalidFieldError) as exc:
            validate_support_amount(MAX_UINT + 1)
        assert exc.value.code == 102

    def test_penalty_rate_allows_zero_and_hundred(self):
        validate_penalty_rate(0)
        validate_penalty_rate(100)
        with pytest.raises(InvalidFieldError):
            validate_penalty_rate(101)

    def test_voting_threshold_range(self):
        validate_voting_threshold(1)
        validate_voting_threshold(100)
        for value in (0, 101):
            with pytest.raises(InvalidFieldError) as exc:
                validate_voting_threshold(value)
            assert exc.value.code == 105

    def test_interest_rate_at_most_twenty(self):
        validate_interest_rate(20)
        with pytest.raises(InvalidFieldError) as exc:
            validate_interest_rate(21)
        assert exc.value.code == 116

    def test_grace_period_at_most_thirty(self):
        validate_grace_period(0)
        validate_grace_period(30)
        with pytest.raises(InvalidFieldError) as exc:
            validate_grace_period(31)
        assert exc.value.code == 117

    @pytest.mark.parametrize("value", ["family", "employment", "community"])
    def test_agreement_type_choices(self, value):
        validate_agreement_type(value)

    def test_agreement_type_rejects_unknown(self):
        with pytest.raises(InvalidFieldError) as exc:
            validate_agreement_type("invalid")
        assert exc.value.code == 115

    def test_currency_choices(self):
        for value in ("STX", "USD", "BTC"):
            validate_currency(value)
        with pytest.raises(InvalidFieldError) as exc:
            validate_currency("EUR")
        assert exc.value.code == 119

    def test_location_length(self):
        validate_location("VillageX")
        with pytest.raises(InvalidFieldError) as exc:
            validate_location("")
        assert exc.value.code == 118


class TestValidationPipeline:
    """Test suite for the ordered validation pipeline."""

    def test_valid_terms_pass(self):
        validate_agreement_terms(VALID_TERMS)

    def test_pipeline_order(self):
        """Fields are checked in the documented order."""
        assert [field for field, _ in AGREEMENT_VALIDATORS] == [
            "name",
            "max_dependents",
            "support_amount",
            "frequency",
            "penalty_rate",
            "voting_threshold",
            "agreement_type",
            "interest_rate",
            "grace_period",
            "location",
            "currency",
            "min_support",
            "max_obligation",
        ]

    def test_first_failure_is_reported(self):
        """With several bad fields, only the earliest is reported."""
        terms = dict(VALID_TERMS, max_dependents=51, currency="EUR", max_obligation=0)
        with pytest.raises(InvalidFieldError) as exc:
            validate_agreement_terms(terms)
        assert exc.value.field == "max_dependents"

    def test_last_field_reported_when_only_one_bad(self):
        terms = dict(VALID_TERMS, max_obligation=0)
        with pytest.raises(InvalidFieldError) as exc:
            validate_agreement_terms(terms)
        assert exc.value.field == "max_obligation"
        assert exc.value.code == 111

    def test_no_cross_field_check(self):
        """min_support above max_obligation is accepted."""
        validate_agreement_terms(dict(VALID_TERMS, min_support=5000, max_obligation=1))

    def test_update_terms_subset(self):
        validate_update_terms("Beta", 15, 200)
        with pytest.raises(InvalidFieldError) as exc:
            validate_update_terms("Beta", 15, 0)
        assert exc.value.field == "support_amount"

    def test_unknown_field_error_is_rejected(self):
        with pytest.raises(ValueError):
            InvalidFieldError("colour")

    def test_not_found_error_keeps_its_code(self):
        error = AgreementNotFoundError(99)
        assert error.code == 107
        assert error.agreement_id == 99
