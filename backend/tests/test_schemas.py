"""Tests for request validation rules."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.models.enums import AustralianState, ProjectType
from app.schemas.comment import CommentCreate
from app.schemas.cost import CostCreate, CostFilters, CostUpdate
from app.schemas.notification import NotificationPreferenceUpdate
from app.schemas.project import AddressInput, ProjectCreate, format_address
from app.schemas.vendor import VendorCompareRequest, VendorRatingCreate


def _address(**overrides):
    data = {
        "street_number": "12",
        "street_name": "Campbell",
        "street_type": "Parade",
        "suburb": "Bondi Beach",
        "state": "NSW",
        "postcode": "2026",
    }
    data.update(overrides)
    return data


def _cost(**overrides):
    data = {
        "project_id": uuid4(),
        "amount": 15000,
        "description": "Tile adhesive",
        "category_id": "materials",
        "date": datetime.utcnow() - timedelta(days=1),
    }
    data.update(overrides)
    return data


class TestCostValidation:

    def test_valid_cost(self):
        cost = CostCreate(**_cost())
        assert cost.amount == 15000

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            CostCreate(**_cost(amount=amount))

    def test_future_date_rejected(self):
        with pytest.raises(ValidationError, match="Cost date cannot be in the future"):
            CostCreate(**_cost(date=datetime.utcnow() + timedelta(days=2)))

    def test_blank_description_rejected(self):
        with pytest.raises(ValidationError):
            CostCreate(**_cost(description="   "))

    def test_update_future_date_rejected(self):
        with pytest.raises(ValidationError):
            CostUpdate(date=datetime.utcnow() + timedelta(days=2))

    def test_aware_date_stored_as_naive_utc(self):
        aware = datetime(2020, 3, 1, 10, 0, tzinfo=timezone(timedelta(hours=11)))
        cost = CostCreate(**_cost(date=aware))
        assert cost.date == datetime(2020, 2, 29, 23, 0)
        assert cost.date.tzinfo is None


class TestCostFilters:

    def test_amount_range_inverted(self):
        with pytest.raises(ValidationError, match="min_amount cannot exceed max_amount"):
            CostFilters(min_amount=500, max_amount=100)

    def test_date_range_inverted(self):
        with pytest.raises(ValidationError):
            CostFilters(start_date=datetime(2026, 5, 1), end_date=datetime(2026, 4, 1))

    def test_search_text_length(self):
        with pytest.raises(ValidationError):
            CostFilters(search_text="x" * 201)

    def test_empty_filters_ok(self):
        assert CostFilters().model_dump(exclude_none=True) == {}


class TestProjectValidation:

    def test_valid_project(self):
        project = ProjectCreate(
            name="Bondi Renovation",
            project_type=ProjectType.RENOVATION,
            address=_address(),
            total_budget=50_000_00,
        )
        assert project.address.state == AustralianState.NSW

    def test_bad_postcode(self):
        with pytest.raises(ValidationError):
            AddressInput(**_address(postcode="20261"))

    def test_unknown_state(self):
        with pytest.raises(ValidationError):
            AddressInput(**_address(state="XYZ"))

    def test_end_before_start(self):
        with pytest.raises(ValidationError):
            ProjectCreate(
                name="Backwards",
                project_type=ProjectType.NEW_BUILD,
                address=_address(),
                start_date=datetime(2026, 6, 1),
                end_date=datetime(2026, 5, 1),
            )

    def test_zero_budget_rejected(self):
        with pytest.raises(ValidationError):
            ProjectCreate(name="Free", project_type=ProjectType.NEW_BUILD, address=_address(), total_budget=0)

    def test_format_address(self):
        assert format_address(AddressInput(**_address())) == "12 Campbell Parade, Bondi Beach, NSW 2026"
        assert format_address(AddressInput(**_address(street_type=None))) == "12 Campbell, Bondi Beach, NSW 2026"


class TestPreferenceValidation:

    def test_valid_timezone(self):
        assert NotificationPreferenceUpdate(timezone="Australia/Perth").timezone == "Australia/Perth"

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            NotificationPreferenceUpdate(timezone="Australia/Atlantis")


class TestCommentAndVendorValidation:

    def test_comment_too_long(self):
        with pytest.raises(ValidationError):
            CommentCreate(entity_type="cost", entity_id=uuid4(), content="x" * 2001)

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, rating):
        with pytest.raises(ValidationError):
            VendorRatingCreate(contact_id=uuid4(), project_id=uuid4(), rating=rating)

    def test_compare_at_most_five(self):
        with pytest.raises(ValidationError):
            VendorCompareRequest(contact_ids=[uuid4() for _ in range(6)])
