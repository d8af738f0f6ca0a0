"""Votes, rounds and round tallies."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field

from chainoracle.claims import Claim
from chainoracle.keys import AccAddress


@dataclass
class Vote:
    """A validator's vote for a claim in a round."""

    round_id: int
    claim_hash: bytes
    consensus_id: str
    validator: bytes
    claim_type: str

    def _to_dict(self) -> dict:
        return {
            "round_id": self.round_id,
            "claim_hash": bytes(self.claim_hash).hex(),
            "consensus_id": self.consensus_id,
            "validator": bytes(self.validator).hex(),
            "claim_type": self.claim_type,
        }

    @classmethod
    def _from_dict(cls, data: dict) -> "Vote":
        return cls(
            round_id=int(data["round_id"]),
            claim_hash=bytes.fromhex(data["claim_hash"]),
            consensus_id=str(data["consensus_id"]),
            validator=AccAddress(bytes.fromhex(data["validator"])),
            claim_type=str(data["claim_type"]),
        )


def new_vote(round_id: int, claim: Claim, validator: bytes, claim_type: str) -> Vote:
    """Build a vote for the claim by the validator."""
    return Vote(
        round_id=round_id,
        claim_hash=claim.hash(),
        consensus_id=claim.consensus_key(),
        validator=validator,
        claim_type=claim_type,
    )


def vote_hash(salt: str, claim_hash: str, signer: bytes) -> bytes:
    """Prevote commitment: SHA-256 of "salt:claim_hash:signer"."""
    text = f"{salt}:{claim_hash}:{AccAddress(signer)}"
    return hashlib.sha256(text.encode()).digest()


@dataclass
class Round:
    """All votes cast for one claim type in one round."""

    votes: list[Vote] = field(default_factory=list)
    round_id: int = 0
    claim_type: str = ""

    def to_bytes(self) -> bytes:
        """Canonical encoding of the round."""
        payload = {
            "votes": [vote._to_dict() for vote in self.votes],
            "round_id": self.round_id,
            "claim_type": self.claim_type,
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Round":
        """Decode a round produced by to_bytes."""
        try:
            payload = json.loads(bytes(data).decode("utf-8"))
            return cls(
                votes=[Vote._from_dict(v) for v in payload["votes"]],
                round_id=int(payload["round_id"]),
                claim_type=str(payload["claim_type"]),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"malformed round: {exc}") from exc


@dataclass
class ClaimVoteResult:
    """Vote power gathered by one claim."""

    claim_hash: bytes
    vote_power: int


@dataclass
class RoundResult:
    """Vote tallies for a round."""

    vote_power: int = 0
    total_power: int = 0
    claim_type: str = ""
    claims: list[ClaimVoteResult] = field(default_factory=list)

    def upsert_claim(self, claim_hash: bytes, vote_power: int) -> None:
        """Add vote power to the claim's entry, creating it when absent."""
        existing = next(
            (c for c in reversed(self.claims) if bytes(c.claim_hash) == bytes(claim_hash)),
            None,
        )
        if existing is not None:
            existing.vote_power += vote_power
            return
        self.claims.append(ClaimVoteResult(claim_hash=claim_hash, vote_power=vote_power))