"""Read-only queries over the oracle state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from chainoracle.claims import Claim, decode_claim
from chainoracle.errors import InvalidArgumentError, NotFoundError
from chainoracle.keeper import Context, Keeper, KVStore
from chainoracle.keys import CLAIM_KEY, ROUND_KEY, AccAddress
from chainoracle.params import Params
from chainoracle.records import Round

DEFAULT_LIMIT = 100

T = TypeVar("T")


@dataclass
class PageRequest:
    """Which page of a listing to return."""

    key: bytes | None = None
    offset: int = 0
    limit: int = 0
    count_total: bool = False


@dataclass
class PageResponse:
    """Where the next page starts, and the total when it was counted."""

    next_key: bytes | None = None
    total: int = 0


@dataclass
class ClaimsPage:
    claims: list[Claim] = field(default_factory=list)
    pagination: PageResponse = field(default_factory=PageResponse)


@dataclass
class RoundsPage:
    rounds: list[Round] = field(default_factory=list)
    pagination: PageResponse = field(default_factory=PageResponse)


def _paginate(
    store: KVStore,
    prefix: bytes,
    page: PageRequest | None,
    decode: Callable[[bytes], T],
) -> tuple[list[T], PageResponse]:
    page = page or PageRequest()
    key, offset, limit, count_total = page.key, page.offset, page.limit, page.count_total
    if offset > 0 and key:
        raise ValueError("invalid request, either offset or key is expected, got both")
    if limit == 0:
        limit = DEFAULT_LIMIT
        count_total = True

    entries = ((k[len(prefix):], v) for k, v in store.iterate_prefix(prefix))
    results: list[T] = []
    next_key: bytes | None = None

    if key:
        for rel_key, value in entries:
            if rel_key < bytes(key):
                continue
            if len(results) == limit:
                next_key = rel_key
                break
            results.append(decode(value))
        return results, PageResponse(next_key=next_key)

    end = offset + limit
    count = 0
    for rel_key, value in entries:
        count += 1
        if count <= offset:
            continue
        if count <= end:
            results.append(decode(value))
        elif count == end + 1:
            next_key = rel_key
            if not count_total:
                break
    return results, PageResponse(next_key=next_key, total=count if count_total else 0)


class Querier:
    """Answers queries about params, claims, rounds and delegations."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def params(self, ctx: Context) -> Params:
        return self.keeper.get_params(ctx)

    def claim(self, ctx: Context, claim_hash: str) -> Claim:
        """The claim with this hex hash; raises NotFoundError if absent."""
        if not claim_hash:
            raise InvalidArgumentError("missing claim hash")
        try:
            hash_bytes = bytes.fromhex(claim_hash)
        except ValueError as exc:
            raise ValueError(f"invalid claim hash: {exc}") from exc
        claim = self.keeper.get_claim(ctx, hash_bytes)
        if claim is None:
            raise NotFoundError(f"claim {claim_hash} not found")
        return claim

    def all_claims(self, ctx: Context, pagination: PageRequest | None = None) -> ClaimsPage:
        claims, page = _paginate(ctx.store, CLAIM_KEY, pagination, decode_claim)
        return ClaimsPage(claims=claims, pagination=page)

    def all_rounds(self, ctx: Context, pagination: PageRequest | None = None) -> RoundsPage:
        rounds, page = _paginate(ctx.store, ROUND_KEY, pagination, Round.from_bytes)
        return RoundsPage(rounds=rounds, pagination=page)

    def pending_rounds(self, ctx: Context, claim_type: str) -> list[int]:
        if not claim_type:
            raise InvalidArgumentError("missing claimType")
        return self.keeper.get_pending_rounds(ctx, claim_type)

    def last_finalized_round(self, ctx: Context, claim_type: str) -> int:
        if not claim_type:
            raise InvalidArgumentError("missing claimType")
        return self.keeper.get_last_finalized_round(ctx, claim_type)

    def round(self, ctx: Context, claim_type: str, round_id: int) -> Round:
        if not claim_type:
            raise InvalidArgumentError("missing claimType")
        if round_id == 0:
            raise InvalidArgumentError("missing RoundId")
        round_ = self.keeper.get_round(ctx, claim_type, round_id)
        if round_ is None:
            raise NotFoundError(f"round {round_id} not found")
        return round_

    def delegate_address(self, ctx: Context, validator: str) -> str:
        """The bech32 delegate address of a validator."""
        try:
            val = AccAddress.from_bech32(validator)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc
        delegate = self.keeper.get_delegate_address_from_validator(ctx, val)
        if delegate is None:
            raise NotFoundError(f"there is no delegator for address {validator}")
        return str(delegate)

    def validator_address(self, ctx: Context, delegate: str) -> str:
        """The bech32 validator address a delegate submits for."""
        try:
            del_addr = AccAddress.from_bech32(delegate)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc
        validator = self.keeper.get_validator_address_from_delegate(ctx, del_addr)
        if validator is None:
            raise NotFoundError(f"delegator address for delegate {delegate}")
        return str(validator)