"""Tests for failure classification and the error envelope."""

from magnetcart.models.failure import (
    ApiResponse,
    DiscardConfirmationRequired,
    FailureKind,
    FileTooLargeError,
    OutcomeType,
    UploadFailedError,
)


class TestKnownErrorResponse:
    def test_confirmation_is_refusal(self) -> None:
        """Asking for confirmation is a refusal, not a failure."""
        error = DiscardConfirmationRequired("Changing the package will remove your images.", 3)

        response = error.to_response()

        assert response.outcome == OutcomeType.REFUSAL
        assert response.failure.kind == FailureKind.CONFIRMATION_REQUIRED
        assert error.status_code == 409

    def test_limit_is_known_failure(self) -> None:
        error = FileTooLargeError("big.jpg", 11 * 1024 * 1024, 10 * 1024 * 1024)

        response = error.to_response()

        assert response.outcome == OutcomeType.KNOWN_FAILURE
        assert "10MB" in response.failure.message
        assert response.failure.detail == "11534336 bytes > 10485760 bytes"

    def test_upload_failure_is_one_based_for_customers(self) -> None:
        error = UploadFailedError(0, "timeout")

        assert error.index == 0
        assert error.message == "Image 1 failed to upload."
        assert error.status_code == 502


class TestUnknownFailure:
    def test_envelope(self) -> None:
        response = ApiResponse.unknown_failure("KeyError")

        data = response.model_dump(mode="json")

        assert data["outcome"] == "unknown_failure"
        assert data["failure"]["kind"] == "unknown"
        assert data["failure"]["detail"] == "KeyError"
