"""Oracle state kept in a byte-keyed store: claims, rounds, votes and delegations."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Protocol

from chainoracle.claims import Claim, decode_claim, encode_claim
from chainoracle.keys import (
    CLAIM_KEY,
    DEL_VAL_KEY,
    FINALIZED_ROUND_KEY,
    PENDING_ROUND_KEY,
    PREVOTE_KEY,
    ROUND_KEY,
    AccAddress,
    get_claim_prevote_key,
    get_del_val_key,
    get_round_key,
    get_val_del_key,
    key_prefix,
    round_prefix,
)
from chainoracle.messages import MsgDelegate, new_msg_delegate
from chainoracle.params import KEY_CLAIM_PARAMS, ClaimParams, Params, validate_claim_params
from chainoracle.records import Round, RoundResult, new_vote

POWER_REDUCTION = 10**6


class KVStore:
    """In-memory byte-keyed store whose prefix iteration runs in key order."""

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: bytes) -> bytes | None:
        """The value under key, or None."""
        return self._data.get(bytes(key))

    def set(self, key: bytes, value: bytes) -> None:
        """Store value under key; the key must not be empty."""
        key = bytes(key)
        if not key:
            raise ValueError("key is nil")
        if value is None:
            raise ValueError("value is nil")
        self._data[key] = bytes(value)

    def delete(self, key: bytes) -> None:
        """Remove key if present."""
        self._data.pop(bytes(key), None)

    def has(self, key: bytes) -> bool:
        return bytes(key) in self._data

    def iterate_prefix(self, prefix: bytes) -> Iterator[tuple[bytes, bytes]]:
        """Yield (key, value) pairs whose key starts with prefix, in key order."""
        prefix = bytes(prefix)
        for key in sorted(k for k in self._data if k.startswith(prefix)):
            value = self._data.get(key)
            if value is not None:
                yield key, value


@dataclass
class Event:
    """A typed event with ordered key/value attributes."""

    type: str
    attributes: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class EventManager:
    """Collects the events emitted while handling a message."""

    events: list[Event] = field(default_factory=list)

    def emit(self, event: Event) -> None:
        self.events.append(event)


@dataclass
class Context:
    """The state and block information a keeper call works against."""

    store: KVStore = field(default_factory=KVStore)
    param_store: KVStore = field(default_factory=KVStore)
    block_height: int = 0
    event_manager: EventManager = field(default_factory=EventManager)


class _Validator(Protocol):
    def is_bonded(self) -> bool: ...

    def is_jailed(self) -> bool: ...

    def consensus_power(self) -> int: ...


class StakingKeeper(Protocol):
    """What the oracle needs from the staking module."""

    def validator(self, ctx: Context, address: bytes) -> _Validator | None:
        """The validator with this operator address, or None."""
        ...

    def total_bonded_tokens(self, ctx: Context) -> int:
        """Total tokens bonded across the validator set."""
        ...


def tokens_to_consensus_power(tokens: int) -> int:
    """Convert a token amount to consensus power."""
    return int(tokens) // POWER_REDUCTION


def _encode_claim_params(claim_params: dict[str, ClaimParams]) -> bytes:
    payload = {
        name: {
            "claim_type": p.claim_type,
            "vote_period": p.vote_period,
            "vote_threshold": str(p.vote_threshold),
            "prevote": p.prevote,
        }
        for name, p in claim_params.items()
    }
    return json.dumps(payload, sort_keys=True).encode()


def _decode_claim_params(data: bytes) -> dict[str, ClaimParams]:
    payload = json.loads(data.decode("utf-8"))
    return {
        name: ClaimParams(
            claim_type=p["claim_type"],
            vote_period=int(p["vote_period"]),
            vote_threshold=Decimal(p["vote_threshold"]),
            prevote=bool(p["prevote"]),
        )
        for name, p in payload.items()
    }


def _parse_round_id(data: bytes, what: str) -> int:
    text = data.decode("ascii", errors="replace")
    if not text.isdigit():
        raise ValueError(f"cannot decode {what}")
    value = int(text)
    if value >= 1 << 64:
        raise ValueError(f"cannot decode {what}")
    return value


class Keeper:
    """Reads and writes the oracle's state."""

    def __init__(self, staking_keeper: StakingKeeper) -> None:
        self.staking_keeper = staking_keeper

    # Claims

    def create_claim(self, ctx: Context, claim: Claim) -> None:
        """Store the claim under its hash."""
        ctx.store.set(CLAIM_KEY + claim.hash(), encode_claim(claim))

    def get_claim(self, ctx: Context, hash: bytes) -> Claim | None:
        """The claim with this hash, or None."""
        data = ctx.store.get(CLAIM_KEY + bytes(hash))
        if not data:
            return None
        return decode_claim(data)

    def get_all_claims(self, ctx: Context) -> list[Claim]:
        return [decode_claim(value) for _, value in ctx.store.iterate_prefix(CLAIM_KEY)]

    def delete_claim(self, ctx: Context, hash: bytes) -> None:
        ctx.store.delete(CLAIM_KEY + bytes(hash))

    # Delegations

    def set_validator_delegate_address(
        self, ctx: Context, validator: bytes, delegate: bytes
    ) -> None:
        """Let delegate submit on behalf of validator; delegating to itself undoes it."""
        if str(AccAddress(validator)) == str(AccAddress(delegate)):
            ctx.store.delete(get_del_val_key(delegate))
            ctx.store.delete(get_val_del_key(validator))
        else:
            ctx.store.set(get_del_val_key(delegate), bytes(validator))
            ctx.store.set(get_val_del_key(validator), bytes(delegate))

    def get_validator_address_from_delegate(
        self, ctx: Context, delegate: bytes
    ) -> AccAddress | None:
        data = ctx.store.get(get_del_val_key(delegate))
        return AccAddress(data) if data else None

    def get_delegate_address_from_validator(
        self, ctx: Context, validator: bytes
    ) -> AccAddress | None:
        data = ctx.store.get(get_val_del_key(validator))
        return AccAddress(data) if data else None

    def is_delegate_address(self, ctx: Context, delegate: bytes) -> bool:
        return ctx.store.has(get_del_val_key(delegate))

    def get_all_delegations(self, ctx: Context) -> list[MsgDelegate]:
        return [
            new_msg_delegate(validator, delegate)
            for delegate, validator in self.iterate_delegations(ctx)
        ]

    def iterate_delegations(self, ctx: Context) -> Iterator[tuple[AccAddress, AccAddress]]:
        """Yield (delegate, validator) pairs in key order."""
        for key, value in ctx.store.iterate_prefix(DEL_VAL_KEY):
            yield AccAddress(key[len(DEL_VAL_KEY):]), AccAddress(value)

    # Params

    def claim_params(self, ctx: Context) -> dict[str, ClaimParams]:
        data = ctx.param_store.get(KEY_CLAIM_PARAMS)
        if not data:
            return {}
        return _decode_claim_params(data)

    def claim_params_for_type(self, ctx: Context, claim_type: str) -> ClaimParams:
        """Params for the claim type; empty params when it is not registered."""
        return self.claim_params(ctx).get(claim_type, ClaimParams())

    def get_params(self, ctx: Context) -> Params:
        return Params(claim_params=self.claim_params(ctx))

    def set_params(self, ctx: Context, params: Params) -> None:
        """Validate and store the parameter set."""
        validate_claim_params(params.claim_params)
        ctx.param_store.set(KEY_CLAIM_PARAMS, _encode_claim_params(dict(params.claim_params)))

    # Rounds

    def create_round(self, ctx: Context, round_: Round) -> None:
        ctx.store.set(ROUND_KEY + round_prefix(round_.claim_type, round_.round_id), round_.to_bytes())

    def get_round(self, ctx: Context, claim_type: str, round_id: int) -> Round | None:
        data = ctx.store.get(ROUND_KEY + key_prefix(get_round_key(claim_type, round_id)))
        if not data:
            return None
        return Round.from_bytes(data)

    def get_all_rounds(self, ctx: Context) -> list[Round]:
        return [Round.from_bytes(value) for _, value in ctx.store.iterate_prefix(ROUND_KEY)]

    def add_pending_round(self, ctx: Context, claim_type: str, round_id: int) -> None:
        ctx.store.set(PENDING_ROUND_KEY + round_prefix(claim_type, round_id), str(round_id).encode())

    def get_pending_rounds(self, ctx: Context, claim_type: str) -> list[int]:
        """Pending round ids for the claim type, in store key order."""
        prefix = PENDING_ROUND_KEY + key_prefix(claim_type)
        return [_parse_round_id(value, "count") for _, value in ctx.store.iterate_prefix(prefix)]

    def get_all_pending_rounds(self, ctx: Context) -> dict[str, list[int]]:
        return {
            param.claim_type: self.get_pending_rounds(ctx, param.claim_type)
            for param in self.get_params(ctx).claim_params.values()
        }

    def finalize_round(self, ctx: Context, claim_type: str, round_id: int) -> None:
        """Drop the pending round, record it as finalized and delete its votes."""
        ctx.store.delete(PENDING_ROUND_KEY + key_prefix(get_round_key(claim_type, round_id)))
        self.set_last_finalized_round(ctx, claim_type, round_id)
        self.delete_votes_for_round(ctx, claim_type, round_id)

    def set_last_finalized_round(self, ctx: Context, claim_type: str, round_id: int) -> None:
        """Record the finalized round; it only ever moves forward."""
        if self.get_last_finalized_round(ctx, claim_type) >= round_id:
            return
        ctx.store.set(FINALIZED_ROUND_KEY + key_prefix(claim_type), str(round_id).encode())

    def get_last_finalized_round(self, ctx: Context, claim_type: str) -> int:
        # The lookup uses the bare finalized-round key, whatever the claim type.
        data = ctx.store.get(FINALIZED_ROUND_KEY)
        if not data:
            return 0
        return _parse_round_id(data, "roundID")

    def get_all_finalized_rounds(self, ctx: Context) -> dict[str, int]:
        return {
            param.claim_type: self.get_last_finalized_round(ctx, param.claim_type)
            for param in self.get_params(ctx).claim_params.values()
        }

    def get_current_round(self, ctx: Context, claim_type: str) -> int:
        """The block height rounded down to the claim type's vote period."""
        period = self.claim_params_for_type(ctx, claim_type).vote_period
        block = ctx.block_height
        return block - block % period

    # Votes

    def create_vote(self, ctx: Context, claim: Claim, validator: bytes) -> None:
        """Store the claim and add the validator's vote for it to its round."""
        self.create_claim(ctx, claim)
        round_id = claim.round_id()
        claim_type = claim.type()
        vote = new_vote(round_id, claim, validator, claim_type)

        key = ROUND_KEY + round_prefix(claim_type, round_id)
        data = ctx.store.get(key)
        if not data:
            votes = Round(votes=[vote], round_id=round_id, claim_type=claim_type)
        else:
            votes = Round.from_bytes(data)
            votes.votes.append(vote)

        self.add_pending_round(ctx, vote.claim_type, vote.round_id)
        ctx.store.set(key, votes.to_bytes())

    def delete_votes_for_round(self, ctx: Context, claim_type: str, round_id: int) -> None:
        """Delete a round together with every claim voted for in it."""
        round_ = self.get_round(ctx, claim_type, round_id)
        if round_ is None:
            return
        for vote in round_.votes:
            self.delete_claim(ctx, vote.claim_hash)
        ctx.store.delete(ROUND_KEY + key_prefix(get_round_key(claim_type, round_id)))

    def tally_votes(self, ctx: Context, claim_type: str, round_id: int) -> RoundResult | None:
        """Tally bonded, unjailed votes; return the leading result if it passes the threshold."""
        round_ = self.get_round(ctx, claim_type, round_id)
        if round_ is None:
            raise LookupError(f"round {round_id} for claim type {claim_type} not found")

        results: dict[str, RoundResult] = {}
        max_vote_power = 0
        max_vote_key = ""
        for vote in round_.votes:
            validator = self.staking_keeper.validator(ctx, vote.validator)
            if validator is None or not validator.is_bonded() or validator.is_jailed():
                continue
            weight = validator.consensus_power()
            key = vote.consensus_id

            result = results.get(key)
            if result is None:
                result = RoundResult(claim_type=vote.claim_type)
            result.upsert_claim(vote.claim_hash, weight)
            result.vote_power += weight
            results[key] = result

            if result.vote_power > max_vote_power:
                max_vote_key = key

        result = results.get(max_vote_key)
        if result is None:
            return None

        passes, total_bonded_power = self.vote_passed_threshold(ctx, result)
        if passes:
            result.total_power = total_bonded_power
            return result
        return None

    def vote_passed_threshold(self, ctx: Context, round_result: RoundResult) -> tuple[bool, int]:
        """Whether the result's vote power exceeds the threshold, and the total bonded power."""
        total_bonded_power = tokens_to_consensus_power(self.staking_keeper.total_bonded_tokens(ctx))
        threshold = self.claim_params_for_type(ctx, round_result.claim_type).vote_threshold
        threshold_votes = int(
            (Decimal(threshold) * total_bonded_power).quantize(Decimal(1), rounding=ROUND_HALF_EVEN)
        )
        vote_power = round_result.vote_power
        return vote_power != 0 and vote_power > threshold_votes, total_bonded_power

    # Prevotes

    def create_prevote(self, ctx: Context, hash: bytes) -> None:
        ctx.store.set(get_claim_prevote_key(hash), bytes(hash))

    def get_prevote(self, ctx: Context, hash: bytes) -> bytes | None:
        return ctx.store.get(bytes(hash))

    def delete_prevote(self, ctx: Context, hash: bytes) -> None:
        ctx.store.delete(get_claim_prevote_key(hash))

    def has_prevote(self, ctx: Context, hash: bytes) -> bool:
        return ctx.store.has(get_claim_prevote_key(hash))

    def get_all_prevotes(self, ctx: Context) -> list[bytes]:
        return list(self.iterate_prevotes(ctx))

    def iterate_prevotes(self, ctx: Context) -> Iterator[bytes]:
        """Yield every stored prevote hash in key order."""
        for key, _ in ctx.store.iterate_prefix(PREVOTE_KEY):
            yield key[len(PREVOTE_KEY):]