"""Loading and exporting the oracle's genesis state."""

from __future__ import annotations

from chainoracle.claims import Claim
from chainoracle.genesis_state import GenesisState, new_genesis_state
from chainoracle.keeper import Context, Keeper
from chainoracle.keys import MODULE_NAME


def init_genesis(ctx: Context, keeper: Keeper, gen_state: GenesisState) -> None:
    """Validate the genesis state and write it into the store."""
    try:
        gen_state.validate()
    except ValueError as exc:
        raise ValueError(f"failed to validate {MODULE_NAME} genesis state: {exc}") from exc

    keeper.set_params(ctx, gen_state.params)

    for round_ in gen_state.rounds:
        keeper.create_round(ctx, round_)

    for claim in gen_state.claims:
        if not isinstance(claim, Claim):
            raise ValueError("expected claim")
        if keeper.get_claim(ctx, claim.hash()) is not None:
            raise ValueError(f"claim with hash {claim.hash().hex().upper()} already exists")
        keeper.create_claim(ctx, claim)

    for claim_type, round_ids in gen_state.pending.items():
        for round_id in round_ids:
            keeper.add_pending_round(ctx, claim_type, round_id)

    for delegation in gen_state.delegations:
        keeper.set_validator_delegate_address(
            ctx, delegation.validator_address(), delegation.delegate_address()
        )

    for prevote in gen_state.prevotes:
        keeper.create_prevote(ctx, prevote)

    for claim_type, round_id in gen_state.finalized_rounds.items():
        keeper.set_last_finalized_round(ctx, claim_type, round_id)


def export_genesis(ctx: Context, keeper: Keeper) -> GenesisState:
    """Read the whole oracle state back as a genesis state."""
    return new_genesis_state(
        keeper.get_params(ctx),
        keeper.get_all_rounds(ctx),
        keeper.get_all_claims(ctx),
        keeper.get_all_pending_rounds(ctx),
        keeper.get_all_delegations(ctx),
        keeper.get_all_prevotes(ctx),
        keeper.get_all_finalized_rounds(ctx),
    )