"""Transaction messages accepted by the oracle."""

from __future__ import annotations

import base64
import dataclasses
import json
from dataclasses import dataclass
from typing import Any

from chainoracle.claims import Claim, TestClaim
from chainoracle.errors import InvalidAddressError, InvalidClaimError
from chainoracle.keys import MODULE_NAME, ROUTER_KEY, AccAddress

TYPE_MSG_DELEGATE = "delegate"
TYPE_MSG_PREVOTE = "prevote"
TYPE_MSG_VOTE = "vote"

_AMINO_NAMES: dict[type, str] = {
    TestClaim: "oracle/TestClaim",
}


def _amino_scalar(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        # 64-bit integers are written as strings in the JSON sign format.
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode()
    if isinstance(value, Claim):
        return _amino_claim(value)
    return value


def _amino_object(items: dict[str, Any]) -> dict[str, Any]:
    return {key: _amino_scalar(value) for key, value in items.items() if value}


def _amino_claim(claim: Claim) -> dict[str, Any]:
    name = _AMINO_NAMES.get(type(claim), claim.TYPE_URL)
    if dataclasses.is_dataclass(claim):
        items = {f.name: getattr(claim, f.name) for f in dataclasses.fields(claim)}
    else:
        items = {"value": claim.marshal()}
    return {"type": name, "value": _amino_object(items)}


def _sorted_json(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()


def _parse_address(text: str) -> AccAddress:
    try:
        return AccAddress.from_bech32(text)
    except ValueError as exc:
        raise InvalidAddressError(str(exc)) from exc


@dataclass
class MsgDelegate:
    """Lets a validator hand its feed to a delegate address."""

    validator: str = ""
    delegate: str = ""

    def route(self) -> str:
        return MODULE_NAME

    def type(self) -> str:
        return TYPE_MSG_DELEGATE

    def validate_basic(self) -> None:
        """Raise InvalidAddressError if either address is malformed."""
        _parse_address(self.validator)
        _parse_address(self.delegate)

    def get_signers(self) -> list[AccAddress]:
        return [self.validator_address()]

    def validator_address(self) -> AccAddress:
        """The validator address; raises ValueError when malformed."""
        return AccAddress.from_bech32(self.validator)

    def delegate_address(self) -> AccAddress:
        """The delegate address; raises ValueError when malformed."""
        return AccAddress.from_bech32(self.delegate)


def new_msg_delegate(validator: bytes, delegate: bytes) -> MsgDelegate:
    """Build a delegation message from raw addresses."""
    return MsgDelegate(validator=str(AccAddress(validator)), delegate=str(AccAddress(delegate)))


@dataclass
class MsgPrevote:
    """Commits to a vote hash ahead of revealing the claim."""

    signer: str = ""
    hash: bytes = b""

    def route(self) -> str:
        return ROUTER_KEY

    def type(self) -> str:
        return TYPE_MSG_PREVOTE

    def validate_basic(self) -> None:
        _parse_address(self.signer)
        if not self.hash:
            raise ValueError("prevote hash cannot be empty")

    def get_signers(self) -> list[AccAddress]:
        return [self.must_get_signer()]

    def get_sign_bytes(self) -> bytes:
        """Sorted JSON of the message, as signed."""
        value = _amino_object({"hash": bytes(self.hash), "signer": self.signer})
        return _sorted_json({"type": "oracle/MsgPrevote", "value": value})

    def must_get_signer(self) -> AccAddress:
        """The signer address; raises ValueError when malformed."""
        return AccAddress.from_bech32(self.signer)


def new_msg_prevote(signer: bytes, hash: bytes) -> MsgPrevote:
    """Build a prevote message."""
    return MsgPrevote(signer=str(AccAddress(signer)), hash=bytes(hash))


@dataclass
class MsgVote:
    """Submits a claim, revealing the salt used in its prevote."""

    signer: str = ""
    claim: Claim | None = None
    salt: str = ""

    def route(self) -> str:
        return ROUTER_KEY

    def type(self) -> str:
        return TYPE_MSG_VOTE

    def validate_basic(self) -> None:
        if not self.signer:
            raise InvalidAddressError("creator can't be empty")
        if not isinstance(self.claim, Claim):
            raise InvalidClaimError("missing claim")
        self.claim.validate_basic()

    def get_signers(self) -> list[AccAddress]:
        signer = self.get_signer()
        return [] if signer is None else [signer]

    def get_sign_bytes(self) -> bytes:
        """Sorted JSON of the message, as signed."""
        value = _amino_object({"signer": self.signer, "claim": self.claim, "salt": self.salt})
        return _sorted_json({"type": "oracle/MsgVote", "value": value})

    def get_signer(self) -> AccAddress | None:
        """The signer address, or None when it does not parse."""
        try:
            return AccAddress.from_bech32(self.signer)
        except ValueError:
            return None

    def must_get_signer(self) -> AccAddress:
        """The signer address; raises ValueError when malformed."""
        return AccAddress.from_bech32(self.signer)


def new_msg_vote(signer: bytes, claim: Claim, salt: str) -> MsgVote:
    """Build a vote message; raises TypeError if claim is not a Claim."""
    if not isinstance(claim, Claim):
        raise TypeError(f"cannot proto marshal {type(claim).__name__}")
    return MsgVote(signer=str(AccAddress(signer)), claim=claim, salt=salt)