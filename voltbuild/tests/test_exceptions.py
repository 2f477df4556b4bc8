from voltbuild.common.exceptions import (
    ConflictError,
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    VoltBuildException,
)


def test_base_error_defaults():
    exc = VoltBuildException()
    assert exc.status_code == 500
    assert exc.detail == "VoltBuild could not complete the request"


def test_subclass_details():
    assert NotFoundError("Punch item", "PL-004").detail == "Punch item 'PL-004' not found"
    assert ConflictError("Document already attached").status_code == 409

    err = ExternalServiceError("exchange_rate", "timeout")
    assert err.status_code == 502
    assert err.detail == "External service error: exchange_rate - timeout"


def test_invalid_transition_is_bad_request():
    err = InvalidTransitionError("change order", "approved", "draft")
    assert err.status_code == 400
    assert err.detail == "Cannot transition change order from 'approved' to 'draft'"
