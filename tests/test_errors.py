from chainoracle.errors import (
    IncorrectClaimRoundError,
    InvalidAddressError,
    InvalidArgumentError,
    InvalidClaimError,
    NoClaimExistsError,
    NoClaimTypeExistsError,
    NoPrevoteError,
    NotFoundError,
    NoValidatorFoundError,
    OracleError,
    UnknownRequestError,
)


def test_wrapped_message_format():
    err = InvalidClaimError("missing claim")
    assert str(err) == "missing claim: invalid claim"
    assert err.detail == "missing claim"


def test_message_without_detail_is_description():
    assert str(NoPrevoteError()) == "no prevote exists for this claim"


def test_oracle_error_codes():
    errors = [
        InvalidClaimError("x"),
        NoClaimExistsError("x"),
        NoClaimTypeExistsError("x"),
        NoPrevoteError("x"),
        IncorrectClaimRoundError("x"),
    ]
    assert [err.code for err in errors] == [2, 3, 4, 5, 6]
    assert {err.codespace for err in errors} == {"oracle"}


def test_all_errors_caught_by_base():
    errors = [
        InvalidClaimError("detail"),
        NoClaimExistsError("detail"),
        NoClaimTypeExistsError("detail"),
        NoPrevoteError("detail"),
        IncorrectClaimRoundError("detail"),
        InvalidAddressError("detail"),
        UnknownRequestError("detail"),
        NoValidatorFoundError("detail"),
        InvalidArgumentError("detail"),
        NotFoundError("detail"),
    ]
    for err in errors:
        assert isinstance(err, OracleError)
        assert "detail" in str(err)


def test_status_error_format():
    err = NotFoundError("claim ABC not found")
    assert "NotFound" in str(err)
    assert str(err).endswith("claim ABC not found")


def test_invalid_argument_distinct_from_not_found():
    err = InvalidArgumentError("empty request")
    assert "InvalidArgument" in str(err)
    assert not isinstance(err, NotFoundError)


def test_validator_error_wraps_address():
    err = NoValidatorFoundError("cosmosvaloper1xyz")
    assert str(err) == "cosmosvaloper1xyz: validator does not exist"