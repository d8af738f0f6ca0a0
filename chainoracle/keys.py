"""Store keys, key builders and bech32 account addresses."""

from __future__ import annotations

MODULE_NAME = "oracle"
STORE_KEY = MODULE_NAME
ROUTER_KEY = MODULE_NAME
QUERIER_ROUTE = MODULE_NAME
MEM_STORE_KEY = "mem_capability"

ACCOUNT_HRP = "cosmos"

# 0x00 | claim_hash -> claim
CLAIM_KEY = b"\x00"
# 0x01 | claimType | roundId -> round
ROUND_KEY = b"\x01"
# 0x02 | claimType | roundId -> roundId
PENDING_ROUND_KEY = b"\x02"
# 0x03 | prevote_hash -> prevote_hash
PREVOTE_KEY = b"\x03"
# 0x05 | del_address -> val_address
DEL_VAL_KEY = b"\x05"
# 0x06 | val_address -> del_address
VAL_DEL_KEY = b"\x06"
# 0x07 | claimType -> roundId
FINALIZED_ROUND_KEY = b"\x07"

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_MAX_LENGTH = 1023
_MAX_ADDRESS_LENGTH = 255
_CHECKSUM_LENGTH = 6


def _polymod(values: list[int]) -> int:
    chk = 1
    for value in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ value
        for bit, generator in enumerate(_GENERATOR):
            if (top >> bit) & 1:
                chk ^= generator
    return chk


def _hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _create_checksum(hrp: str, values: list[int]) -> list[int]:
    polymod = _polymod(_hrp_expand(hrp) + values + [0] * _CHECKSUM_LENGTH) ^ 1
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(_CHECKSUM_LENGTH)]


def _convert_bits(data, from_bits: int, to_bits: int, pad: bool) -> list[int]:
    acc = 0
    bits = 0
    out: list[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise ValueError(f"invalid data range: {value}")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            out.append((acc >> bits) & maxv)
    if pad:
        if bits:
            out.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise ValueError("invalid incomplete group or non-zero padding")
    return out


def bech32_encode(hrp: str, data: bytes) -> str:
    """Encode raw bytes as a bech32 string with the given human-readable part."""
    if not hrp:
        raise ValueError("human-readable part cannot be empty")
    if any(ord(c) < 33 or ord(c) > 126 for c in hrp):
        raise ValueError(f"invalid character in human-readable part: {hrp!r}")
    hrp = hrp.lower()
    values = _convert_bits(bytes(data), 8, 5, True)
    checksum = _create_checksum(hrp, values)
    encoded = hrp + "1" + "".join(_CHARSET[v] for v in values + checksum)
    if len(encoded) > _MAX_LENGTH:
        raise ValueError("bech32 string too long")
    return encoded


def bech32_decode(text: str) -> tuple[str, bytes]:
    """Decode a bech32 string into its human-readable part and raw bytes."""
    if len(text) > _MAX_LENGTH:
        raise ValueError("bech32 string too long")
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise ValueError("invalid character in bech32 string")
    if text.lower() != text and text.upper() != text:
        raise ValueError("bech32 string is not all lowercase or all uppercase")
    text = text.lower()
    sep = text.rfind("1")
    if sep < 1 or sep + _CHECKSUM_LENGTH + 1 > len(text):
        raise ValueError("invalid separator position in bech32 string")
    hrp, data_part = text[:sep], text[sep + 1:]
    values = []
    for char in data_part:
        index = _CHARSET.find(char)
        if index < 0:
            raise ValueError(f"invalid character in data part: {char!r}")
        values.append(index)
    if _polymod(_hrp_expand(hrp) + values) != 1:
        raise ValueError("invalid bech32 checksum")
    data = _convert_bits(values[:-_CHECKSUM_LENGTH], 5, 8, False)
    return hrp, bytes(data)


class AccAddress(bytes):
    """Raw account address bytes that print as a bech32 string."""

    def __str__(self) -> str:
        return bech32_encode(ACCOUNT_HRP, self) if self else ""

    def __repr__(self) -> str:
        return f"AccAddress({str(self)!r})"

    @classmethod
    def from_bech32(cls, text: str) -> "AccAddress":
        """Parse a bech32 account address, raising ValueError when invalid."""
        if not text.strip():
            raise ValueError("empty address string is not allowed")
        hrp, data = bech32_decode(text)
        if hrp != ACCOUNT_HRP:
            raise ValueError(f"invalid Bech32 prefix; expected {ACCOUNT_HRP}, got {hrp}")
        if not data:
            raise ValueError("addresses cannot be empty")
        if len(data) > _MAX_ADDRESS_LENGTH:
            raise ValueError(
                f"address max length is {_MAX_ADDRESS_LENGTH}, got {len(data)}"
            )
        return cls(data)


def key_prefix(p: str) -> bytes:
    """Return the store key bytes for a string."""
    return p.encode()


def get_del_val_key(delegate: bytes) -> bytes:
    """Key under which a delegate's validator is stored."""
    return DEL_VAL_KEY + bytes(delegate)


def get_val_del_key(validator: bytes) -> bytes:
    """Key under which a validator's delegate is stored."""
    return VAL_DEL_KEY + bytes(validator)


def get_claim_prevote_key(hash: bytes) -> bytes:
    """Key for a prevote hash."""
    return PREVOTE_KEY + bytes(hash)


def get_round_key(claim_type: str, round_id: int) -> str:
    """Round key: the claim type followed by the decimal round id."""
    return f"{claim_type}{round_id}"


def round_prefix(claim_type: str, round_id: int) -> bytes:
    """Round key as store bytes."""
    return key_prefix(get_round_key(claim_type, round_id))