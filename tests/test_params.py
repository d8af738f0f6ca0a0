from decimal import Decimal

import pytest

from chainoracle.params import (
    DEFAULT_VOTE_THRESHOLD,
    TEST_CLAIM_TYPE,
    TEST_PREVOTE_CLAIM_TYPE,
    TEST_VOTE_PERIOD,
    ClaimParams,
    Params,
    default_params,
    validate_claim_params,
)


def _params(**kwargs):
    base = {"claim_type": "x", "vote_period": 1, "vote_threshold": DEFAULT_VOTE_THRESHOLD}
    base.update(kwargs)
    return {"x": ClaimParams(**base)}


def test_default_params_contents():
    params = default_params()
    assert set(params.claim_params) == {TEST_CLAIM_TYPE, TEST_PREVOTE_CLAIM_TYPE}
    prevote = params.claim_params[TEST_PREVOTE_CLAIM_TYPE]
    assert prevote.prevote is True
    assert prevote.vote_period == TEST_VOTE_PERIOD
    plain = params.claim_params[TEST_CLAIM_TYPE]
    assert plain.prevote is False
    assert plain.vote_period == 1
    assert plain.vote_threshold == Decimal("0.5")


def test_default_params_are_independent():
    first = default_params()
    first.claim_params.clear()
    assert len(default_params().claim_params) == 2


def test_default_params_equal_and_validate():
    assert default_params() == default_params()
    assert validate_claim_params(default_params().claim_params) is None


def test_zero_vote_period_rejected():
    with pytest.raises(ValueError, match="vote period"):
        validate_claim_params(_params(vote_period=0))


@pytest.mark.parametrize("threshold", ["0.33", "0.10", "0"])
def test_low_threshold_rejected(threshold):
    with pytest.raises(ValueError, match="33 percent"):
        validate_claim_params(_params(vote_threshold=Decimal(threshold)))


def test_threshold_upper_bound():
    with pytest.raises(ValueError, match="too large"):
        validate_claim_params(_params(vote_threshold=Decimal("1.01")))
    assert validate_claim_params(_params(vote_threshold=Decimal(1))) is None


def test_wrong_type_rejected():
    with pytest.raises(TypeError, match="invalid parameter type"):
        validate_claim_params([ClaimParams()])
    with pytest.raises(TypeError):
        validate_claim_params({"x": "not params"})


def test_validate_basic_accepts_anything():
    params = Params(claim_params={"x": ClaimParams()})
    assert params.validate_basic() is None
    assert params.claim_params["x"].vote_period == 0