"""Errors raised by the oracle and the event names it emits."""

from __future__ import annotations

from typing import ClassVar

from chainoracle.keys import MODULE_NAME

ATTRIBUTE_VALUE_CATEGORY = "oracle"
ATTRIBUTE_KEY_CLAIM_HASH = "claim_hash"

EVENT_TYPE_DELEGATE = "delegate"
ATTRIBUTE_KEY_DELEGATE = "delegate"
ATTRIBUTE_KEY_VALIDATOR = "validator"

EVENT_TYPE_VOTE = "vote"
EVENT_TYPE_PREVOTE = "prevote"
ATTRIBUTE_KEY_PREVOTE_HASH = "prevote_hash"


class OracleError(Exception):
    """Base error; the message is the detail followed by the description."""

    codespace: ClassVar[str] = MODULE_NAME
    code: ClassVar[int] = 1
    description: ClassVar[str] = "oracle error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"{detail}: {self.description}" if detail else self.description)


class InvalidClaimError(OracleError):
    code = 2
    description = "invalid claim"


class NoClaimExistsError(OracleError):
    code = 3
    description = "no claim exits"


class NoClaimTypeExistsError(OracleError):
    code = 4
    description = "claim type is not registered as part of the oracle params"


class NoPrevoteError(OracleError):
    code = 5
    description = "no prevote exists for this claim"


class IncorrectClaimRoundError(OracleError):
    code = 6
    description = "claim must be submitted after the prevote round is over"


class InvalidAddressError(OracleError):
    codespace = "sdk"
    code = 7
    description = "invalid address"


class UnknownRequestError(OracleError):
    codespace = "sdk"
    code = 6
    description = "unknown request"


class NoValidatorFoundError(OracleError):
    codespace = "staking"
    code = 3
    description = "validator does not exist"


class _StatusError(OracleError):
    """Query errors carrying a status name, formatted like RPC status errors."""

    codespace = "grpc"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        Exception.__init__(self, f"rpc error: code = {self.description} desc = {detail}")


class InvalidArgumentError(_StatusError):
    code = 3
    description = "InvalidArgument"


class NotFoundError(_StatusError):
    code = 5
    description = "NotFound"