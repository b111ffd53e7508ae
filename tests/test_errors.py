import re

from core.errors import AppError, ErrorCodes, generate_correlation_id, is_app_error


def test_correlation_id_shape() -> None:
    assert re.fullmatch(r"[A-Z0-9]{2}-[A-Z0-9]{6}", generate_correlation_id())


def test_app_error_defaults() -> None:
    error = AppError("boom")

    assert error.error_code is ErrorCodes.UNCAUGHT_ERROR
    assert error.status_code == 500
    assert not error.is_client_error
    assert str(error) == "boom"
    assert is_app_error(error)
    assert not is_app_error(ValueError("boom"))


def test_app_error_payload() -> None:
    error = AppError("bad tab", ErrorCodes.MISSING_TAB_ID, status_code=400, correlation_id="AB-123456")

    assert error.is_client_error
    assert error.to_payload() == {"errorCode": "FLW-0004", "correlationId": "AB-123456", "message": "bad tab"}
    assert repr(error) == "AppError(FLW-0004, 'bad tab', status=400)"
