"""Message handling: votes, prevotes and feed delegations."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from chainoracle.claims import Claim
from chainoracle.errors import (
    ATTRIBUTE_KEY_CLAIM_HASH,
    ATTRIBUTE_KEY_DELEGATE,
    ATTRIBUTE_KEY_PREVOTE_HASH,
    ATTRIBUTE_KEY_VALIDATOR,
    ATTRIBUTE_VALUE_CATEGORY,
    EVENT_TYPE_DELEGATE,
    EVENT_TYPE_PREVOTE,
    EVENT_TYPE_VOTE,
    IncorrectClaimRoundError,
    InvalidClaimError,
    NoClaimTypeExistsError,
    NoPrevoteError,
    NoValidatorFoundError,
    UnknownRequestError,
)
from chainoracle.keeper import Context, Event, EventManager, Keeper
from chainoracle.keys import MODULE_NAME, AccAddress, bech32_encode
from chainoracle.messages import MsgDelegate, MsgPrevote, MsgVote
from chainoracle.records import vote_hash

EVENT_TYPE_MESSAGE = "message"
ATTRIBUTE_KEY_MODULE = "module"
ATTRIBUTE_KEY_ACTION = "action"
ATTRIBUTE_KEY_SENDER = "sender"

VALIDATOR_OPERATOR_HRP = "cosmosvaloper"


@dataclass
class MsgVoteResponse:
    """Hash of the claim that was voted for."""

    hash: bytes = b""


@dataclass
class MsgDelegateResponse:
    """Empty reply to a delegation."""


@dataclass
class MsgPrevoteResponse:
    """Empty reply to a prevote."""


@dataclass
class Result:
    """Outcome of a handled message: its response and the events it emitted."""

    data: Any = None
    events: list[Event] = field(default_factory=list)


def _val_address_str(address: bytes) -> str:
    return bech32_encode(VALIDATOR_OPERATOR_HRP, bytes(address)) if address else ""


def _hex_upper(data: bytes) -> str:
    return bytes(data).hex().upper()


class MsgServer:
    """Applies oracle messages to the keeper's state."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def _validator_addr(self, ctx: Context, signer: AccAddress) -> AccAddress:
        # A signer without a delegation record must be the validator itself.
        validator = self.keeper.get_validator_address_from_delegate(ctx, signer)
        return signer if validator is None else validator

    def _require_validator(self, ctx: Context, address: bytes, shown: str) -> None:
        if self.keeper.staking_keeper.validator(ctx, address) is None:
            raise NoValidatorFoundError(shown)

    def vote(self, ctx: Context, msg: MsgVote) -> MsgVoteResponse:
        """Record a validator's vote for the message's claim."""
        claim = msg.claim
        if not isinstance(claim, Claim):
            raise InvalidClaimError("missing claim")
        signer = msg.must_get_signer()
        val_addr = self._validator_addr(ctx, signer)
        self._require_validator(ctx, val_addr, _val_address_str(val_addr))

        prevote_hash = self._check_round(ctx, msg, claim, signer)

        self.keeper.create_vote(ctx, claim, val_addr)

        ctx.event_manager.emit(
            Event(
                type=EVENT_TYPE_MESSAGE,
                attributes=[
                    (ATTRIBUTE_KEY_MODULE, ATTRIBUTE_VALUE_CATEGORY),
                    (ATTRIBUTE_KEY_ACTION, EVENT_TYPE_VOTE),
                    (ATTRIBUTE_KEY_SENDER, str(signer)),
                    (ATTRIBUTE_KEY_VALIDATOR, _val_address_str(val_addr)),
                    (ATTRIBUTE_KEY_CLAIM_HASH, _hex_upper(claim.hash())),
                ],
            )
        )

        if prevote_hash:
            self.keeper.delete_prevote(ctx, prevote_hash)

        return MsgVoteResponse(hash=claim.hash())

    def delegate(self, ctx: Context, msg: MsgDelegate) -> MsgDelegateResponse:
        """Let the validator's feed be submitted by the delegate address."""
        validator, delegate = msg.validator_address(), msg.delegate_address()
        self._require_validator(ctx, validator, str(validator))

        self.keeper.set_validator_delegate_address(ctx, validator, delegate)

        ctx.event_manager.emit(
            Event(
                type=EVENT_TYPE_MESSAGE,
                attributes=[
                    (ATTRIBUTE_KEY_MODULE, ATTRIBUTE_VALUE_CATEGORY),
                    (ATTRIBUTE_KEY_ACTION, EVENT_TYPE_DELEGATE),
                    (ATTRIBUTE_KEY_SENDER, msg.validator),
                    (ATTRIBUTE_KEY_VALIDATOR, msg.validator),
                    (ATTRIBUTE_KEY_DELEGATE, msg.delegate),
                ],
            )
        )
        return MsgDelegateResponse()

    def prevote(self, ctx: Context, msg: MsgPrevote) -> MsgPrevoteResponse:
        """Store a validator's prevote commitment."""
        signer = msg.must_get_signer()
        val_addr = self._validator_addr(ctx, signer)
        self._require_validator(ctx, val_addr, _val_address_str(val_addr))

        self.keeper.create_prevote(ctx, msg.hash)

        ctx.event_manager.emit(
            Event(
                type=EVENT_TYPE_MESSAGE,
                attributes=[
                    (ATTRIBUTE_KEY_MODULE, ATTRIBUTE_VALUE_CATEGORY),
                    (ATTRIBUTE_KEY_ACTION, EVENT_TYPE_PREVOTE),
                    (ATTRIBUTE_KEY_SENDER, str(signer)),
                    (ATTRIBUTE_KEY_VALIDATOR, _val_address_str(val_addr)),
                    (ATTRIBUTE_KEY_PREVOTE_HASH, bytes(msg.hash).hex()),
                ],
            )
        )
        return MsgPrevoteResponse()

    def _check_round(
        self, ctx: Context, msg: MsgVote, claim: Claim, signer: AccAddress
    ) -> bytes:
        """Check the claim's round; return the matching prevote hash, or b"" without prevotes."""
        claim_type = claim.type()
        params = self.keeper.claim_params_for_type(ctx, claim_type)
        if params.claim_type != claim_type:
            raise NoClaimTypeExistsError(claim_type)

        claim_round = claim.round_id()
        last_finalized = self.keeper.get_last_finalized_round(ctx, claim_type)
        if claim_round <= last_finalized:
            raise IncorrectClaimRoundError(
                f"expected current round {claim_round}, to be greater than "
                f"last finalized round {last_finalized}"
            )

        if not params.prevote:
            return b""

        # With prevotes a claim is revealed only after its prevote round.
        current_round = self.keeper.get_current_round(ctx, claim_type)
        if claim_round + params.vote_period < current_round:
            raise IncorrectClaimRoundError(
                f"expected {current_round - params.vote_period}, got {claim_round}"
            )

        claim_hash = _hex_upper(claim.hash())
        prevote_hash = vote_hash(msg.salt, claim_hash, signer)
        if not self.keeper.has_prevote(ctx, prevote_hash):
            raise NoPrevoteError(claim_hash)
        return prevote_hash


def new_handler(keeper: Keeper) -> Callable[[Context, object], Result]:
    """Return a function that routes oracle messages to a MsgServer."""
    server = MsgServer(keeper)
    routes: dict[type, Callable[[Context, Any], Any]] = {
        MsgDelegate: server.delegate,
        MsgPrevote: server.prevote,
        MsgVote: server.vote,
    }

    def handle(ctx: Context, msg: object) -> Result:
        ctx = dataclasses.replace(ctx, event_manager=EventManager())
        route = routes.get(type(msg))
        if route is None:
            raise UnknownRequestError(
                f"unrecognized {MODULE_NAME} message type: {type(msg).__name__}"
            )
        response = route(ctx, msg)
        return Result(data=response, events=list(ctx.event_manager.events))

    return handle