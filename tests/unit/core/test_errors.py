"""
Tests unitaires des erreurs typees du domaine.

Verifie la conversion en ServiceError, la reconstruction inverse et les
fonctions de validation.
"""

import pytest

from src.core.errors import (
    ConflictError,
    ErrorCode,
    NotFoundError,
    PermissionDeniedError,
    RepositoryError,
    ServiceError,
    ValidationError,
    raise_for_error,
    to_service_error,
    validate_email,
    validate_required,
    validate_uuid,
)


class TestDomainErrors:
    """Tests des classes d'erreur."""

    def test_not_found_message_names_resource(self):
        error = NotFoundError("Lot", "abc")
        assert str(error) == "Lot with identifier 'abc' not found"
        assert error.code == "NOT_FOUND"
        assert error.details == {"resource": "Lot", "identifier": "abc"}
        assert error.message == str(error)

    def test_permission_denied_is_a_validation_error(self):
        """Un appelant qui ne distingue pas les deux attrape ValidationError."""
        error = PermissionDeniedError("nope", "interventions", "approve", "u1")
        assert isinstance(error, ValidationError)
        assert error.code == "PERMISSION_DENIED"

    def test_validation_error_without_field_has_no_details(self):
        assert ValidationError("bad").details is None

    def test_repository_error_keeps_store_fields(self):
        error = RepositoryError("23505", "duplicate key", {"context": "users:save"}, "Use another email")
        assert error.code == "23505"
        assert error.message == "duplicate key"
        assert error.details["context"] == "users:save"
        assert error.hint == "Use another email"

        converted = to_service_error(error)
        assert converted == ServiceError("23505", "duplicate key", {"context": "users:save"}, "Use another email")

    def test_repository_error_transient_codes(self):
        assert RepositoryError("NETWORK_ERROR", "x").is_transient
        assert RepositoryError("TIMEOUT", "x").is_transient
        assert not RepositoryError("23505", "x").is_transient


class TestToServiceError:
    """Tests de to_service_error."""

    def test_domain_error_keeps_code_and_details(self):
        error = to_service_error(ConflictError("Email taken", "email", "a@b.fr"))
        assert error == ServiceError(
            code="CONFLICT",
            message="Email taken",
            details={"field": "email", "value": "a@b.fr"},
        )

    def test_repository_error_keeps_original_code_and_hint(self):
        error = to_service_error(RepositoryError("PGRST116", "Row missing", {"table": "lots"}, "Check id"))
        assert error.code == "PGRST116"
        assert error.details == {"table": "lots"}
        assert error.hint == "Check id"

    def test_timeout_is_normalized(self):
        assert to_service_error(TimeoutError()).code == ErrorCode.TIMEOUT.value

    def test_connection_error_is_normalized(self):
        assert to_service_error(ConnectionRefusedError()).code == ErrorCode.NETWORK_ERROR.value

    def test_unknown_exception(self):
        error = to_service_error(RuntimeError("boom"))
        assert error.code == "UNKNOWN_ERROR"
        assert error.message == "boom"


class TestRaiseForError:
    """Tests de raise_for_error (ServiceError -> exception typee)."""

    def test_not_found_round_trip(self):
        with pytest.raises(NotFoundError) as exc:
            raise_for_error(to_service_error(NotFoundError("User", "u1")))
        assert exc.value.resource == "User"
        assert exc.value.identifier == "u1"

    def test_permission_denied_is_raised_as_such(self):
        with pytest.raises(PermissionDeniedError):
            raise_for_error(to_service_error(PermissionDeniedError("no", "interventions", "approve", "u1")))

    def test_other_codes_become_repository_error(self):
        with pytest.raises(RepositoryError) as exc:
            raise_for_error(ServiceError(code="TIMEOUT", message="Request timed out"))
        assert exc.value.is_transient


class TestValidators:
    """Tests des fonctions de validation."""

    def test_validate_required_rejects_none_and_blank(self):
        with pytest.raises(ValidationError, match="Field 'name' is required"):
            validate_required({"name": "  "}, ("name",))
        with pytest.raises(ValidationError, match="Field 'email' is required"):
            validate_required({}, ("email",))

    def test_validate_required_accepts_falsy_values(self):
        validate_required({"floor": 0, "is_primary": False}, ("floor", "is_primary"))

    @pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.fr"])
    def test_validate_email_rejects_invalid(self, email):
        with pytest.raises(ValidationError, match="Invalid email format"):
            validate_email(email)

    def test_validate_email_accepts_valid(self):
        validate_email("jeanne.martin@example.fr")

    def test_validate_uuid(self):
        validate_uuid("0b7a8f6e-5a43-4c1f-9d55-2c3e4b5a6f70")
        with pytest.raises(ValidationError) as exc:
            validate_uuid("not-a-uuid", "lot_id")
        assert exc.value.field == "lot_id"
