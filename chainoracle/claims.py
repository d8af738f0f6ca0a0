"""The claim interface, the test claim and the claim codec."""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import ClassVar

CLAIM_INTERFACE_NAME = "relevantcommunity.oracle.oracle.Claim"

_MASK64 = (1 << 64) - 1
_WIRE_VARINT = 0
_WIRE_FIXED64 = 1
_WIRE_BYTES = 2
_WIRE_FIXED32 = 5


class Claim(ABC):
    """What every oracle claim provides."""

    TYPE_URL: ClassVar[str]

    @abstractmethod
    def type(self) -> str:
        """The claim type."""

    @abstractmethod
    def hash(self) -> bytes:
        """Hash of the claim content."""

    @abstractmethod
    def round_id(self) -> int:
        """The round this claim belongs to."""

    @abstractmethod
    def consensus_key(self) -> str:
        """Key that votes must agree on.

        For deterministic content this is the content hash; for
        nondeterministic content it is a constant.
        """

    @abstractmethod
    def validate_basic(self) -> None:
        """Raise ValueError if the claim is malformed."""

    @abstractmethod
    def marshal(self) -> bytes:
        """Encode the claim."""

    @classmethod
    @abstractmethod
    def unmarshal(cls, data: bytes) -> "Claim":
        """Decode a claim produced by marshal."""


def _encode_varint(value: int) -> bytes:
    value &= _MASK64
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _field_key(number: int, wire: int) -> bytes:
    return _encode_varint((number << 3) | wire)


def _bytes_field(number: int, data: bytes) -> bytes:
    return _field_key(number, _WIRE_BYTES) + _encode_varint(len(data)) + data


def _decode_varint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    for shift in range(0, 70, 7):
        if pos >= len(data):
            raise ValueError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _MASK64, pos
    raise ValueError("varint too long")


def _iter_fields(data: bytes) -> Iterator[tuple[int, int, int | bytes]]:
    pos = 0
    while pos < len(data):
        key, pos = _decode_varint(data, pos)
        number, wire = key >> 3, key & 7
        if number == 0:
            raise ValueError("illegal field number 0")
        value: int | bytes
        if wire == _WIRE_VARINT:
            value, pos = _decode_varint(data, pos)
        elif wire == _WIRE_BYTES:
            length, pos = _decode_varint(data, pos)
            end = pos + length
            if end > len(data):
                raise ValueError("truncated length-delimited field")
            value = bytes(data[pos:end])
            pos = end
        elif wire in (_WIRE_FIXED64, _WIRE_FIXED32):
            size = 8 if wire == _WIRE_FIXED64 else 4
            if pos + size > len(data):
                raise ValueError("truncated fixed-width field")
            value = bytes(data[pos:pos + size])
            pos += size
        else:
            raise ValueError(f"unsupported wire type {wire}")
        yield number, wire, value


_REGISTRY: dict[str, type[Claim]] = {}


def register_claim_type(claim_cls: type[Claim]) -> type[Claim]:
    """Register a claim class under its TYPE_URL; usable as a decorator."""
    url = claim_cls.TYPE_URL
    existing = _REGISTRY.get(url)
    if existing is not None and existing is not claim_cls:
        raise ValueError(f"type URL {url} is already registered to {existing.__name__}")
    _REGISTRY[url] = claim_cls
    return claim_cls


@register_claim_type
@dataclass
class TestClaim(Claim):
    """A simple claim used for testing the oracle."""

    __test__ = False
    TYPE_URL = "/relevantcommunity.oracle.oracle.TestClaim"

    block_height: int = 0
    content: str = ""
    claim_type: str = ""

    def validate_basic(self) -> None:
        if not self.claim_type:
            raise ValueError("claim type should not be empty")
        if not self.content:
            raise ValueError("claim content should not be empty")
        if self.block_height < 1:
            raise ValueError(f"invalid claim height: {self.block_height}")

    def type(self) -> str:
        return self.claim_type

    def hash(self) -> bytes:
        return hashlib.sha256(self.marshal()).digest()

    def round_id(self) -> int:
        return self.block_height & _MASK64

    def consensus_key(self) -> str:
        return self.hash().hex().upper()

    def marshal(self) -> bytes:
        parts = []
        if self.block_height:
            parts.append(_field_key(1, _WIRE_VARINT) + _encode_varint(self.block_height))
        if self.content:
            parts.append(_bytes_field(2, self.content.encode()))
        if self.claim_type:
            parts.append(_bytes_field(3, self.claim_type.encode()))
        return b"".join(parts)

    @classmethod
    def unmarshal(cls, data: bytes) -> "TestClaim":
        claim = cls()
        for number, wire, value in _iter_fields(bytes(data)):
            if number == 1:
                if wire != _WIRE_VARINT:
                    raise ValueError("wrong wire type for block_height")
                claim.block_height = value - (1 << 64) if value >= 1 << 63 else value
            elif number in (2, 3):
                if wire != _WIRE_BYTES:
                    raise ValueError(f"wrong wire type for field {number}")
                text = value.decode("utf-8")
                if number == 2:
                    claim.content = text
                else:
                    claim.claim_type = text
        return claim


def encode_claim(claim: Claim) -> bytes:
    """Encode a claim together with its type URL."""
    return _bytes_field(1, claim.TYPE_URL.encode()) + _bytes_field(2, claim.marshal())


def decode_claim(data: bytes) -> Claim:
    """Decode bytes produced by encode_claim into the registered claim class."""
    type_url = ""
    value = b""
    for number, wire, field_value in _iter_fields(bytes(data)):
        if number in (1, 2) and wire != _WIRE_BYTES:
            raise ValueError(f"wrong wire type for field {number}")
        if number == 1:
            type_url = field_value.decode("utf-8")
        elif number == 2:
            value = field_value
    if not type_url:
        raise ValueError("claim type URL is empty")
    claim_cls = _REGISTRY.get(type_url)
    if claim_cls is None:
        raise ValueError(
            f"no concrete type registered for type URL {type_url} against interface {CLAIM_INTERFACE_NAME}"
        )
    return claim_cls.unmarshal(value)