"""The oracle's genesis state."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from chainoracle.claims import Claim
from chainoracle.keys import AccAddress
from chainoracle.messages import MsgDelegate
from chainoracle.params import Params, default_params
from chainoracle.records import Round

DEFAULT_INDEX = 1


@dataclass
class GenesisState:
    """Everything needed to start or export the oracle's state."""

    params: Params = field(default_factory=Params)
    rounds: list[Round] = field(default_factory=list)
    claims: list[Claim] = field(default_factory=list)
    pending: dict[str, list[int]] = field(default_factory=dict)
    delegations: list[MsgDelegate] = field(default_factory=list)
    prevotes: list[bytes] = field(default_factory=list)
    finalized_rounds: dict[str, int] = field(default_factory=dict)

    def validate(self) -> None:
        """Raise ValueError on the first invalid delegation or claim."""
        for index, delegation in enumerate(self.delegations):
            for address in (delegation.delegate, delegation.validator):
                try:
                    AccAddress.from_bech32(address)
                except ValueError as exc:
                    raise ValueError(f"invalid feeder at index {index}: {exc}") from exc
        for claim in self.claims:
            if not isinstance(claim, Claim):
                raise ValueError("expected claim")
            claim.validate_basic()
        self.params.validate_basic()


def default_genesis() -> GenesisState:
    """Genesis state with default params and nothing else."""
    return GenesisState(params=default_params())


def new_genesis_state(
    params: Params,
    rounds: Iterable[Round] | None,
    claims: Iterable[Claim] | None,
    pending: Mapping[str, Iterable[int]] | None,
    delegations: Iterable[MsgDelegate] | None,
    prevotes: Iterable[bytes] | None,
    finalized_rounds: Mapping[str, int] | None,
) -> GenesisState:
    """Assemble a genesis state; raises TypeError for a non-claim entry."""
    claim_list = list(claims or [])
    for claim in claim_list:
        if not isinstance(claim, Claim):
            raise TypeError(f"cannot proto marshal {type(claim).__name__}")
    return GenesisState(
        params=params,
        rounds=list(rounds or []),
        claims=claim_list,
        pending={key: list(ids) for key, ids in (pending or {}).items()},
        delegations=list(delegations or []),
        prevotes=[bytes(p) for p in (prevotes or [])],
        finalized_rounds=dict(finalized_rounds or {}),
    )