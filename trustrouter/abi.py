"""
Minimal Solidity ABI encoding for the registry reads TrustRouter makes.

Only the handful of types the registry interfaces use are supported:
``uint256``, ``address``, ``string``, ``bytes`` and ``address[]``. Values are
handled as lowercase hex strings without the ``0x`` prefix, in 32-byte words.
"""

from typing import Any

WORD = 64  # hex characters per 32-byte word

_DYNAMIC_TYPES = {"string", "bytes", "address[]"}

# Four-byte selectors (keccak256 of the canonical signature)
SELECTORS: dict[str, str] = {
    # Identity registry (ERC-721 + extensions)
    "ownerOf(uint256)": "6352211e",
    "tokenURI(uint256)": "c87b56dd",
    "getMetadata(uint256,string)": "cb4799f2",
    # Reputation registry
    "getClients(uint256)": "42dd519c",
    "getSummary(uint256,address[],string,string)": "81bbba58",
    # Validation registry
    "getSummary(uint256,address[],string)": "1b7cabd6",
}


class ABIDecodeError(ValueError):
    """Raised when return data is too short or malformed for the expected type."""


def strip_0x(data: str) -> str:
    return data[2:] if data[:2] in ("0x", "0X") else data


def encode_uint256(value: int) -> str:
    if value < 0 or value >= 1 << 256:
        raise ValueError(f"uint256 out of range: {value}")
    return f"{value:064x}"


def encode_address(address: str) -> str:
    clean = strip_0x(address).lower()
    if len(clean) != 40:
        raise ValueError(f"Invalid address: {address}")
    int(clean, 16)
    return clean.rjust(WORD, "0")


def _pad_right(hex_data: str) -> str:
    remainder = len(hex_data) % WORD
    if remainder:
        hex_data += "0" * (WORD - remainder)
    return hex_data


def _encode_dynamic(abi_type: str, value: Any) -> str:
    if abi_type == "address[]":
        return encode_uint256(len(value)) + "".join(encode_address(a) for a in value)
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return encode_uint256(len(raw)) + _pad_right(raw.hex())


def _encode_static(abi_type: str, value: Any) -> str:
    if abi_type == "uint256":
        return encode_uint256(int(value))
    if abi_type == "address":
        return encode_address(value)
    raise ValueError(f"Unsupported ABI type: {abi_type}")


def encode_arguments(types: list[str], values: list[Any]) -> str:
    """ABI-encode a tuple of arguments (head/tail layout)."""
    if len(types) != len(values):
        raise ValueError("types and values differ in length")

    head: list[str] = []
    tail: list[str] = []
    tail_bytes = 0
    head_bytes = 32 * len(types)

    for abi_type, value in zip(types, values):
        if abi_type in _DYNAMIC_TYPES:
            head.append(encode_uint256(head_bytes + tail_bytes))
            encoded = _encode_dynamic(abi_type, value)
            tail.append(encoded)
            tail_bytes += len(encoded) // 2
        else:
            head.append(_encode_static(abi_type, value))

    return "".join(head) + "".join(tail)


def encode_call(signature: str, *args: Any) -> str:
    """
    Build ``0x``-prefixed calldata for a known function signature.

    Example:
        >>> encode_call("ownerOf(uint256)", 1)[:10]
        '0x6352211e'
    """
    selector = SELECTORS[signature]
    arg_types = signature[signature.index("(") + 1 : -1]
    types = [t for t in arg_types.split(",") if t]
    return "0x" + selector + encode_arguments(types, list(args))


def _word(hex_data: str, index: int) -> str:
    start = index * WORD
    word = hex_data[start : start + WORD]
    if len(word) != WORD:
        raise ABIDecodeError(f"Return data too short for word {index}")
    return word


def decode_uint(hex_data: str, index: int = 0) -> int:
    return int(_word(strip_0x(hex_data), index), 16)


def decode_int(hex_data: str, index: int = 0) -> int:
    """Decode a signed integer word (two's complement over 256 bits)."""
    value = decode_uint(hex_data, index)
    if value >= 1 << 255:
        value -= 1 << 256
    return value


def decode_address(hex_data: str, index: int = 0) -> str:
    return "0x" + _word(strip_0x(hex_data), index)[-40:]


def _tail_offset(hex_data: str, index: int) -> int:
    offset = int(_word(hex_data, index), 16) * 2
    if offset % WORD or offset + WORD > len(hex_data):
        raise ABIDecodeError(f"Bad dynamic offset {offset // 2}")
    return offset


def decode_bytes(hex_data: str, index: int = 0) -> bytes:
    data = strip_0x(hex_data)
    offset = _tail_offset(data, index)
    length = int(data[offset : offset + WORD], 16)
    start = offset + WORD
    payload = data[start : start + length * 2]
    if len(payload) != length * 2:
        raise ABIDecodeError("Dynamic value runs past end of data")
    return bytes.fromhex(payload)


def decode_string(hex_data: str, index: int = 0) -> str:
    return decode_bytes(hex_data, index).decode("utf-8", errors="replace")


def decode_address_array(hex_data: str, index: int = 0, limit: int = 10_000) -> list[str]:
    data = strip_0x(hex_data)
    offset = _tail_offset(data, index)
    count = int(data[offset : offset + WORD], 16)
    if count > limit:
        raise ABIDecodeError(f"Array of {count} elements exceeds limit {limit}")
    items = []
    position = offset + WORD
    for _ in range(count):
        word = data[position : position + WORD]
        if len(word) != WORD:
            raise ABIDecodeError("Array runs past end of data")
        items.append("0x" + word[-40:])
        position += WORD
    return items


__all__ = [
    "SELECTORS",
    "ABIDecodeError",
    "strip_0x",
    "encode_uint256",
    "encode_address",
    "encode_arguments",
    "encode_call",
    "decode_uint",
    "decode_int",
    "decode_address",
    "decode_bytes",
    "decode_string",
    "decode_address_array",
]
