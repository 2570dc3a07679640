# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
16-bit word packing for endpoint I/O.

The protocol operates on 16-bit words while the USB endpoints carry
bytes. On the wire every word is little-endian: low byte first.
"""

import struct
from typing import List, Sequence

WORD_MASK = 0xFFFF


def pack_words(words: Sequence[int]) -> bytes:
    """
    Pack 16-bit words into little-endian bytes.

    Args:
        words: Sequence of integers in range 0..0xFFFF

    Returns:
        Packed bytes, two per word

    Raises:
        ValueError: If a word does not fit in 16 bits
    """
    for word in words:
        if not 0 <= word <= WORD_MASK:
            raise ValueError(f"Word out of 16-bit range: {word!r}")
    return struct.pack(f"<{len(words)}H", *words)


def unpack_words(data: bytes) -> List[int]:
    """
    Unpack little-endian bytes into 16-bit words.

    Args:
        data: Raw bytes (length must be even)

    Returns:
        List of decoded words

    Raises:
        ValueError: If data has an odd length
    """
    if len(data) % 2:
        raise ValueError(f"Odd byte count for 16-bit words: {len(data)}")
    return list(struct.unpack(f"<{len(data) // 2}H", data))
