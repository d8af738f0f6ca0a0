from dataclasses import dataclass

import pytest

from chainoracle.claims import TestClaim
from chainoracle.errors import (
    IncorrectClaimRoundError,
    NoClaimTypeExistsError,
    NoPrevoteError,
    NoValidatorFoundError,
    UnknownRequestError,
)
from chainoracle.keeper import POWER_REDUCTION, Context, Keeper
from chainoracle.keys import AccAddress
from chainoracle.messages import new_msg_delegate, new_msg_prevote, new_msg_vote
from chainoracle.msg_server import MsgServer, MsgVoteResponse, new_handler
from chainoracle.params import default_params
from chainoracle.records import vote_hash


@dataclass
class FakeValidator:
    power: int
    bonded: bool = True
    jailed: bool = False

    def is_bonded(self):
        return self.bonded

    def is_jailed(self):
        return self.jailed

    def consensus_power(self):
        return self.power


class FakeStaking:
    def __init__(self, validators):
        self.validators = dict(validators)

    def validator(self, ctx, address):
        return self.validators.get(bytes(address))

    def total_bonded_tokens(self, ctx):
        return sum(v.power for v in self.validators.values()) * POWER_REDUCTION


ADDRS = [AccAddress(bytes([i + 1]) * 20) for i in range(5)]
VALIDATORS = ADDRS[:3]


@pytest.fixture
def env():
    staking = FakeStaking({bytes(v): FakeValidator(10) for v in VALIDATORS})
    keeper = Keeper(staking)
    ctx = Context(block_height=1)
    keeper.set_params(ctx, default_params())
    return keeper, ctx


def test_msg_submit_claim_cases(env):
    keeper, ctx = env
    non_validator = ADDRS[3]
    validator = VALIDATORS[0]
    val1 = VALIDATORS[1]
    delegator = ADDRS[4]
    keeper.set_validator_delegate_address(ctx, val1, delegator)
    handler = new_handler(keeper)

    cases = [
        (new_msg_vote(validator, TestClaim(10, "test", "test"), ""), False),
        (new_msg_vote(delegator, TestClaim(11, "test", "test"), ""), False),
        (new_msg_vote(non_validator, TestClaim(12, "test", "test"), ""), True),
    ]
    for msg, expect_err in cases:
        if expect_err:
            with pytest.raises(NoValidatorFoundError):
                handler(ctx, msg)
        else:
            result = handler(ctx, msg)
            assert isinstance(result.data, MsgVoteResponse)
            assert result.data.hash == msg.claim.hash()


def test_delegated_vote_is_recorded_for_validator(env):
    keeper, ctx = env
    keeper.set_validator_delegate_address(ctx, VALIDATORS[1], ADDRS[4])
    claim = TestClaim(11, "test", "test")
    MsgServer(keeper).vote(ctx, new_msg_vote(ADDRS[4], claim, ""))
    round_ = keeper.get_round(ctx, "test", 11)
    assert [bytes(v.validator) for v in round_.votes] == [bytes(VALIDATORS[1])]
    assert keeper.get_pending_rounds(ctx, "test") == [11]
    assert keeper.get_claim(ctx, claim.hash()) == claim


def test_vote_emits_event_in_fresh_event_manager(env):
    keeper, ctx = env
    claim = TestClaim(10, "test", "test")
    result = new_handler(keeper)(ctx, new_msg_vote(VALIDATORS[0], claim, ""))
    assert len(result.events) == 1
    event = result.events[0]
    assert event.type == "message"
    attrs = dict(event.attributes)
    assert attrs["module"] == "oracle"
    assert attrs["action"] == "vote"
    assert attrs["sender"] == str(VALIDATORS[0])
    assert attrs["claim_hash"] == claim.hash().hex().upper()
    assert ctx.event_manager.events == []


def test_unregistered_claim_type(env):
    keeper, ctx = env
    msg = new_msg_vote(VALIDATORS[0], TestClaim(10, "test", "unknown"), "")
    with pytest.raises(NoClaimTypeExistsError):
        MsgServer(keeper).vote(ctx, msg)


def test_round_not_after_last_finalized(env):
    keeper, ctx = env
    msg = new_msg_vote(VALIDATORS[0], TestClaim(0, "test", "test"), "")
    with pytest.raises(IncorrectClaimRoundError):
        MsgServer(keeper).vote(ctx, msg)


def test_prevote_then_vote(env):
    keeper, ctx = env
    ctx.block_height = 6
    server = MsgServer(keeper)
    signer = VALIDATORS[0]
    claim = TestClaim(3, "test", "prevoteTest")
    commitment = vote_hash("salt", claim.hash().hex().upper(), signer)

    server.prevote(ctx, new_msg_prevote(signer, commitment))
    assert keeper.has_prevote(ctx, commitment)

    response = server.vote(ctx, new_msg_vote(signer, claim, "salt"))
    assert response.hash == claim.hash()
    assert not keeper.has_prevote(ctx, commitment)
    assert len(keeper.get_round(ctx, "prevoteTest", 3).votes) == 1


def test_vote_without_prevote(env):
    keeper, ctx = env
    ctx.block_height = 6
    msg = new_msg_vote(VALIDATORS[0], TestClaim(3, "test", "prevoteTest"), "salt")
    with pytest.raises(NoPrevoteError):
        MsgServer(keeper).vote(ctx, msg)


def test_prevoted_claim_too_old(env):
    keeper, ctx = env
    ctx.block_height = 6
    msg = new_msg_vote(VALIDATORS[0], TestClaim(1, "test", "prevoteTest"), "salt")
    with pytest.raises(IncorrectClaimRoundError, match="expected 3, got 1"):
        MsgServer(keeper).vote(ctx, msg)


def test_prevote_from_non_validator(env):
    keeper, ctx = env
    with pytest.raises(NoValidatorFoundError):
        MsgServer(keeper).prevote(ctx, new_msg_prevote(ADDRS[3], b"\x01\x02"))
    assert keeper.get_all_prevotes(ctx) == []


def test_delegate(env):
    keeper, ctx = env
    result = new_handler(keeper)(ctx, new_msg_delegate(VALIDATORS[0], ADDRS[4]))
    assert keeper.get_delegate_address_from_validator(ctx, VALIDATORS[0]) == ADDRS[4]
    assert keeper.get_validator_address_from_delegate(ctx, ADDRS[4]) == VALIDATORS[0]
    attrs = dict(result.events[0].attributes)
    assert attrs["action"] == "delegate"
    assert attrs["delegate"] == str(ADDRS[4])


def test_delegate_from_non_validator(env):
    keeper, ctx = env
    with pytest.raises(NoValidatorFoundError):
        MsgServer(keeper).delegate(ctx, new_msg_delegate(ADDRS[3], ADDRS[4]))
    assert not keeper.is_delegate_address(ctx, ADDRS[4])


def test_unknown_message(env):
    keeper, ctx = env
    with pytest.raises(UnknownRequestError, match="unrecognized oracle message type"):
        new_handler(keeper)(ctx, object())