"""Tests for completeness checks and patch computation."""

import pytest
from pydantic import ValidationError

from app.core.pricing import DEFAULT_SERVICE_PRICING, ServicePrice, build_pricing_table
from app.database import StoredDocument
from app.models.appointments import AppointmentRecord
from app.models.users import UserRecord
from app.services.backfill_service import (
    compute_identity_patch,
    compute_pricing_patch,
    derive_user_name,
    needs_identity_backfill,
    needs_pricing_backfill,
)


def make_appointment(appointment_id: str = "a1", **data) -> AppointmentRecord:
    return AppointmentRecord.from_document(StoredDocument(id=appointment_id, data=data))


def make_user(user_id: str, **data) -> UserRecord:
    return UserRecord.from_document(StoredDocument(id=user_id, data=data))


class TestPlaceholderTranslation:
    """Placeholder values are read as missing."""

    @pytest.mark.parametrize("name", ["Patient", "Unknown Patient", "", None])
    def test_placeholder_names(self, name) -> None:
        assert make_appointment(userName=name).user_name is None

    def test_real_name_kept(self) -> None:
        assert make_appointment(userName="Jane").user_name == "Jane"

    @pytest.mark.parametrize("name", ["   ", " Patient", "patient"])
    def test_near_placeholder_names_kept_verbatim(self, name) -> None:
        assert make_appointment(userName=name).user_name == name

    def test_padded_phone_placeholder_kept_verbatim(self) -> None:
        assert make_appointment(userPhone=" N/A").user_phone == " N/A"

    @pytest.mark.parametrize("phone", ["N/A", "", None])
    def test_placeholder_phone(self, phone) -> None:
        assert make_appointment(userPhone=phone).user_phone is None

    @pytest.mark.parametrize("amount", [0, 0.0, "", None])
    def test_unpriced_amount(self, amount) -> None:
        assert make_appointment(amount=amount).amount is None

    def test_raw_document_untouched(self) -> None:
        appointment = make_appointment(userName="Patient", userPhone="N/A", date="2025-03-01")
        assert appointment.raw == {"userName": "Patient", "userPhone": "N/A", "date": "2025-03-01"}

    def test_document_id_wins_over_id_field(self) -> None:
        appointment = AppointmentRecord.from_document(
            StoredDocument(id="doc-id", data={"id": "stale"})
        )
        assert appointment.id == "doc-id"


class TestCompleteness:
    """Completeness gates for both policies."""

    def test_complete_identity(self) -> None:
        appointment = make_appointment(userName="Jane", userEmail="j@x.com", userPhone="555-1")
        assert needs_identity_backfill(appointment) is False

    @pytest.mark.parametrize(
        "data",
        [
            {"userName": "Patient", "userEmail": "j@x.com", "userPhone": "555-1"},
            {"userName": "Jane", "userEmail": "", "userPhone": "555-1"},
            {"userName": "Jane", "userEmail": "j@x.com", "userPhone": "N/A"},
            {"userName": "Jane", "userEmail": "j@x.com"},
        ],
    )
    def test_incomplete_identity(self, data) -> None:
        assert needs_identity_backfill(make_appointment(**data)) is True

    @pytest.mark.parametrize(
        "data",
        [
            {"userName": "  ", "userEmail": "j@x.com", "userPhone": "555-9"},
            {"userName": "Sam", "userEmail": "j@x.com", "userPhone": " N/A"},
        ],
    )
    def test_whitespace_values_count_as_present(self, data) -> None:
        assert needs_identity_backfill(make_appointment(**data)) is False

    def test_complete_pricing(self) -> None:
        appointment = make_appointment(amount=1300, serviceCategory="Medical")
        assert needs_pricing_backfill(appointment) is False

    def test_zero_amount_is_incomplete(self) -> None:
        appointment = make_appointment(amount=0, serviceCategory="Medical")
        assert needs_pricing_backfill(appointment) is True


class TestIdentityPatch:
    """Identity patch computation."""

    def test_fills_all_fields_from_email_match(self) -> None:
        appointment = make_appointment(
            userEmail="", patientEmail="j@x.com", userName="Patient", userPhone="N/A"
        )
        user = make_user("u1", email="j@x.com", displayName="Jane", phoneNumber="555-1")

        patch = compute_identity_patch(appointment, user, "j@x.com")

        assert patch == {"userName": "Jane", "userEmail": "j@x.com", "userPhone": "555-1"}

    def test_name_from_user_email_local_part(self) -> None:
        appointment = make_appointment(userName="Patient", userEmail="", patientId="u9")
        user = make_user("u9", email="u9@x.com")

        patch = compute_identity_patch(appointment, user, None)

        assert patch == {"userName": "u9", "userEmail": "u9@x.com"}

    def test_name_priority(self) -> None:
        user = make_user("u", email="e@x.com", displayName="Display", firstName="First")
        assert derive_user_name(user, None) == "Display"

        user = make_user("u", email="e@x.com", firstName="First")
        assert derive_user_name(user, None) == "First"

        assert derive_user_name(make_user("u", email="local@x.com"), None) == "local"
        assert derive_user_name(make_user("u"), "ignored@x.com") == "Unknown Patient"
        assert derive_user_name(None, "fallback@x.com") == "fallback"

    def test_phone_falls_back_to_legacy_field(self) -> None:
        appointment = make_appointment(userName="Thabo", userEmail="t@x.com")
        user = make_user("u3", email="t@x.com", phone="082 555 0199")

        assert compute_identity_patch(appointment, user, "t@x.com") == {
            "userPhone": "082 555 0199"
        }

    def test_existing_values_never_overwritten(self) -> None:
        appointment = make_appointment(userName="Jane D", userEmail="jane@old.com")
        user = make_user("u1", email="jane@new.com", displayName="Jane", phoneNumber="555-1")

        patch = compute_identity_patch(appointment, user, "jane@old.com")

        assert patch == {"userPhone": "555-1"}

    def test_email_fallback_without_user(self) -> None:
        appointment = make_appointment(userName="Patient", patientEmail="lerato@x.com")

        patch = compute_identity_patch(appointment, None, "lerato@x.com")

        assert patch == {"userName": "lerato", "userEmail": "lerato@x.com"}

    def test_phone_never_comes_from_fallback(self) -> None:
        appointment = make_appointment(userPhone="N/A", email="lerato@x.com")

        patch = compute_identity_patch(appointment, None, "lerato@x.com")

        assert "userPhone" not in patch

    def test_nothing_to_derive(self) -> None:
        assert compute_identity_patch(make_appointment(), None, None) == {}

    def test_rewriting_same_placeholder_is_not_a_change(self) -> None:
        appointment = make_appointment(
            userName="Unknown Patient", userEmail="", userPhone="N/A", patientId="u7"
        )
        user = make_user("u7")

        assert compute_identity_patch(appointment, user, None) == {}


class TestPricingPatch:
    """Pricing patch computation."""

    def test_known_service_price_and_category(self) -> None:
        appointment = make_appointment(serviceName="PRP Therapy", amount=0)

        patch = compute_pricing_patch(appointment, DEFAULT_SERVICE_PRICING)

        assert patch == {"amount": 3200, "serviceCategory": "Cosmetic"}

    def test_unknown_service_gets_defaults(self) -> None:
        appointment = make_appointment(serviceName="Tattoo Removal")

        patch = compute_pricing_patch(appointment, DEFAULT_SERVICE_PRICING)

        assert patch == {"amount": 500, "serviceCategory": "Medical"}

    def test_falls_back_to_type(self) -> None:
        appointment = make_appointment(type="Chemical Peel")

        patch = compute_pricing_patch(appointment, DEFAULT_SERVICE_PRICING)

        assert patch == {"amount": 1800, "serviceCategory": "Cosmetic"}

    def test_fields_checked_independently(self) -> None:
        only_category = make_appointment(serviceName="Mole Removal", amount=950)
        only_amount = make_appointment(serviceName="Mole Removal", serviceCategory="Surgical")

        assert compute_pricing_patch(only_category, DEFAULT_SERVICE_PRICING) == {
            "serviceCategory": "Medical"
        }
        assert compute_pricing_patch(only_amount, DEFAULT_SERVICE_PRICING) == {"amount": 1800}

    def test_complete_record_has_empty_patch(self) -> None:
        appointment = make_appointment(
            serviceName="PRP Therapy", amount=2800, serviceCategory="Cosmetic"
        )
        assert compute_pricing_patch(appointment, DEFAULT_SERVICE_PRICING) == {}

    def test_injected_table_and_defaults(self) -> None:
        pricing = {"Consult": ServicePrice(amount=900, category="General")}

        assert compute_pricing_patch(make_appointment(serviceName="Consult"), pricing) == {
            "amount": 900,
            "serviceCategory": "General",
        }
        assert compute_pricing_patch(
            make_appointment(serviceName="Other"),
            pricing,
            default_amount=750,
            default_category="Misc",
        ) == {"amount": 750, "serviceCategory": "Misc"}

    def test_overrides_merge_on_top_of_defaults(self) -> None:
        table = build_pricing_table({"PRP Therapy": {"amount": 3400, "category": "Cosmetic"}})

        assert table["PRP Therapy"].amount == 3400
        assert table["Botox Injections"].amount == 4500

    def test_zero_price_override_rejected(self) -> None:
        with pytest.raises(ValidationError):
            build_pricing_table({"PRP Therapy": {"amount": 0, "category": "Cosmetic"}})
