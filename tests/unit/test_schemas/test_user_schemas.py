"""Tests for user and auth request/response schemas."""

import uuid

import pytest
from pydantic import ValidationError

from account_api.models.user import UserRole
from account_api.repositories.user_repository import SortField, SortOrder
from account_api.schemas.auth import LoginRequest, RegisterRequest
from account_api.schemas.common import PaginationMeta
from account_api.schemas.user import BulkRoleUpdateRequest, ChangeRoleRequest, SearchRequest


class TestRegisterRequest:
    """Tests for RegisterRequest."""

    def test_minimal(self) -> None:
        request = RegisterRequest(first_name="A", last_name="B", email="a@example.com", password="password123")
        assert request.role is None
        assert request.password_confirmation is None

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(first_name="A", last_name="B", email="not-an-email", password="password123")

    def test_name_too_long(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(first_name="A" * 256, last_name="B", email="a@example.com", password="password123")

    def test_empty_name(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(first_name="", last_name="B", email="a@example.com", password="password123")

    def test_unknown_role(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(
                first_name="A", last_name="B", email="a@example.com", password="password123", role="superuser"
            )


class TestOtherRequests:
    """Tests for the remaining request bodies."""

    def test_login_requires_password(self) -> None:
        with pytest.raises(ValidationError):
            LoginRequest(email="a@example.com", password="")

    def test_change_role(self) -> None:
        assert ChangeRoleRequest(role="admin").role == UserRole.ADMIN

    def test_bulk_update_requires_ids(self) -> None:
        with pytest.raises(ValidationError):
            BulkRoleUpdateRequest(user_ids=[], role="user")

    def test_bulk_update_ids_are_uuids(self) -> None:
        request = BulkRoleUpdateRequest(user_ids=[str(uuid.uuid4())], role="user")
        assert isinstance(request.user_ids[0], uuid.UUID)

    def test_search_defaults(self) -> None:
        request = SearchRequest(search="ja")
        assert request.sort_by == SortField.CREATED_AT
        assert request.sort_order == SortOrder.DESC
        assert request.page == 1

    def test_search_rejects_unknown_sort(self) -> None:
        with pytest.raises(ValidationError):
            SearchRequest(search="ja", sort_by="password")


class TestPaginationMeta:
    """Tests for PaginationMeta.build."""

    def test_middle_page(self) -> None:
        meta = PaginationMeta.build(total=25, page=2, per_page=10, count=10)
        assert meta.last_page == 3
        assert meta.from_ == 11
        assert meta.to == 20

    def test_empty_result(self) -> None:
        meta = PaginationMeta.build(total=0, page=1, per_page=10, count=0)
        assert meta.last_page == 1
        assert meta.from_ is None
        assert meta.to is None

    def test_serializes_from_alias(self) -> None:
        dumped = PaginationMeta.build(total=1, page=1, per_page=10, count=1).model_dump(by_alias=True)
        assert dumped["from"] == 1
