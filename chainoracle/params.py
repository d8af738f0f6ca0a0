"""Oracle module parameters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

KEY_CLAIM_PARAMS = b"claimParams"

TEST_CLAIM_TYPE = "test"
TEST_PREVOTE_CLAIM_TYPE = "prevoteTest"
TEST_VOTE_PERIOD = 3

DEFAULT_VOTE_THRESHOLD = Decimal("0.50")
_MIN_VOTE_THRESHOLD = Decimal("0.33")
_MAX_VOTE_THRESHOLD = Decimal(1)


@dataclass(frozen=True)
class ClaimParams:
    """Voting settings for a single claim type."""

    claim_type: str = ""
    vote_period: int = 0
    vote_threshold: Decimal = Decimal(0)
    prevote: bool = False


DEFAULT_CLAIM_PARAMS: Mapping[str, ClaimParams] = MappingProxyType(
    {
        TEST_CLAIM_TYPE: ClaimParams(
            claim_type=TEST_CLAIM_TYPE,
            vote_threshold=DEFAULT_VOTE_THRESHOLD,
            vote_period=1,
        ),
        TEST_PREVOTE_CLAIM_TYPE: ClaimParams(
            claim_type=TEST_PREVOTE_CLAIM_TYPE,
            prevote=True,
            vote_period=TEST_VOTE_PERIOD,
            vote_threshold=DEFAULT_VOTE_THRESHOLD,
        ),
    }
)


@dataclass
class Params:
    """The full parameter set: claim params keyed by claim type."""

    claim_params: dict[str, ClaimParams] = field(default_factory=dict)

    def validate_basic(self) -> None:
        """Check that the parameter set is shaped as a claim-type mapping."""
        if not isinstance(self.claim_params, Mapping):
            raise TypeError(f"invalid parameter type: {type(self.claim_params).__name__}")
        for key, value in self.claim_params.items():
            if not isinstance(key, str) or not isinstance(value, ClaimParams):
                raise TypeError(f"invalid claim params entry for {key!r}")


def default_params() -> Params:
    """Fresh default parameters."""
    return Params(claim_params=dict(DEFAULT_CLAIM_PARAMS))


def validate_claim_params(claim_params: object) -> None:
    """Check a claim-params mapping, raising on the first invalid entry."""
    if not isinstance(claim_params, Mapping) or not all(
        isinstance(p, ClaimParams) for p in claim_params.values()
    ):
        raise TypeError(f"invalid parameter type: {type(claim_params).__name__}")
    for param in claim_params.values():
        if param.vote_period <= 0:
            raise ValueError(f"vote period must be greater than 0: {param.vote_period}")
        if param.vote_threshold <= _MIN_VOTE_THRESHOLD:
            raise ValueError("oracle parameter VoteTheshold must be greater than 33 percent")
        if param.vote_threshold > _MAX_VOTE_THRESHOLD:
            raise ValueError(f"vote threshold too large: {param.vote_threshold}")