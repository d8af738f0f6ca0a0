import pytest

from chainoracle.claims import TestClaim
from chainoracle.errors import InvalidArgumentError, NotFoundError
from chainoracle.keeper import Context, Keeper
from chainoracle.keys import AccAddress
from chainoracle.params import default_params
from chainoracle.querier import PageRequest, Querier
from chainoracle.records import Round, new_vote


class NoStaking:
    def validator(self, ctx, address):
        return None

    def total_bonded_tokens(self, ctx):
        return 0


VAL = AccAddress(b"\x01" * 20)
DEL = AccAddress(b"\x02" * 20)


@pytest.fixture
def env():
    keeper = Keeper(NoStaking())
    ctx = Context(block_height=1)
    keeper.set_params(ctx, default_params())
    return keeper, ctx, Querier(keeper)


def populate_claims(keeper, ctx, num):
    claims = [TestClaim(i, "test", "test") for i in range(num)]
    for claim in claims:
        keeper.create_claim(ctx, claim)
    return claims


def test_query_params(env):
    _, ctx, querier = env
    assert querier.params(ctx) == default_params()


@pytest.mark.parametrize("claim_hash", ["", b"".hex().upper()])
def test_query_claim_empty(env, claim_hash):
    _, ctx, querier = env
    with pytest.raises(InvalidArgumentError, match="missing claim hash"):
        querier.claim(ctx, claim_hash)


def test_query_claim_success(env):
    keeper, ctx, querier = env
    claims = populate_claims(keeper, ctx, 1)
    assert querier.claim(ctx, claims[0].hash().hex().upper()) == claims[0]


def test_query_claim_not_found(env):
    _, ctx, querier = env
    missing = "DF0C23E8634E480F84B9D5674A7CDC9816466DEC28A3358F73260F68D28D7660"
    with pytest.raises(NotFoundError, match=f"claim {missing} not found"):
        querier.claim(ctx, missing)


def test_query_claim_bad_hex(env):
    _, ctx, querier = env
    with pytest.raises(ValueError, match="invalid claim hash"):
        querier.claim(ctx, "zz")


def test_all_claims_empty(env):
    _, ctx, querier = env
    page = querier.all_claims(ctx, PageRequest())
    assert page.claims == []
    assert page.pagination.next_key is None
    assert page.pagination.total == 0


def test_all_claims_paged(env):
    keeper, ctx, querier = env
    claims = populate_claims(keeper, ctx, 100)
    first = querier.all_claims(ctx, PageRequest(limit=50))
    assert len(first.claims) == 50
    assert first.pagination.next_key is not None
    second = querier.all_claims(ctx, PageRequest(key=first.pagination.next_key, limit=50))
    assert len(second.claims) == 50
    assert second.pagination.next_key is None
    seen = {c.hash() for c in first.claims + second.claims}
    assert seen == {c.hash() for c in claims}


def test_all_claims_default_counts_total(env):
    keeper, ctx, querier = env
    populate_claims(keeper, ctx, 5)
    page = querier.all_claims(ctx)
    assert len(page.claims) == 5
    assert page.pagination.total == 5


def test_all_claims_offset_with_total(env):
    keeper, ctx, querier = env
    populate_claims(keeper, ctx, 10)
    page = querier.all_claims(ctx, PageRequest(offset=8, limit=5, count_total=True))
    assert len(page.claims) == 2
    assert page.pagination.total == 10
    assert page.pagination.next_key is None


def test_all_claims_offset_and_key_rejected(env):
    _, ctx, querier = env
    with pytest.raises(ValueError, match="either offset or key"):
        querier.all_claims(ctx, PageRequest(key=b"a", offset=1))


def test_all_rounds(env):
    keeper, ctx, querier = env
    for i in range(3):
        claim = TestClaim(i + 1, "test", "test")
        keeper.create_round(
            ctx, Round(votes=[new_vote(i + 1, claim, VAL, "test")], round_id=i + 1, claim_type="test")
        )
    page = querier.all_rounds(ctx)
    assert sorted(r.round_id for r in page.rounds) == [1, 2, 3]
    assert page.pagination.total == 3


def test_round_queries(env):
    keeper, ctx, querier = env
    with pytest.raises(InvalidArgumentError, match="missing claimType"):
        querier.round(ctx, "", 1)
    with pytest.raises(InvalidArgumentError, match="missing RoundId"):
        querier.round(ctx, "test", 0)
    with pytest.raises(NotFoundError, match="round 1 not found"):
        querier.round(ctx, "test", 1)
    claim = TestClaim(1, "test", "test")
    keeper.create_vote(ctx, claim, VAL)
    assert querier.round(ctx, "test", 1).votes[0].claim_hash == claim.hash()
    assert querier.pending_rounds(ctx, "test") == [1]


def test_pending_and_finalized_empty(env):
    _, ctx, querier = env
    assert querier.pending_rounds(ctx, "test") == []
    assert querier.last_finalized_round(ctx, "test") == 0
    with pytest.raises(InvalidArgumentError):
        querier.pending_rounds(ctx, "")
    with pytest.raises(InvalidArgumentError):
        querier.last_finalized_round(ctx, "")


def test_delegation_queries(env):
    keeper, ctx, querier = env
    with pytest.raises(NotFoundError, match="there is no delegator"):
        querier.delegate_address(ctx, str(VAL))
    keeper.set_validator_delegate_address(ctx, VAL, DEL)
    assert querier.delegate_address(ctx, str(VAL)) == str(DEL)
    assert querier.validator_address(ctx, str(DEL)) == str(VAL)
    keeper.set_validator_delegate_address(ctx, VAL, VAL)
    with pytest.raises(NotFoundError):
        querier.delegate_address(ctx, str(VAL))


def test_delegation_query_bad_address(env):
    _, ctx, querier = env
    with pytest.raises(InvalidArgumentError):
        querier.delegate_address(ctx, "not-an-address")
    with pytest.raises(InvalidArgumentError):
        querier.validator_address(ctx, "")