# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Rolling XOR stream cipher applied to every FIFO word.

The device issues a 32-word key table at session start. After decoding,
words sent to the device are XORed with the second half of the table and
words received from it with the first half, each direction keeping its
own cursor that wraps every 16 words.
"""

import logging
from typing import MutableSequence, Sequence

from .protocol import ENCRYPT_TABLE_WORD_COUNT

logger = logging.getLogger(__name__)

KEY_HALF = ENCRYPT_TABLE_WORD_COUNT // 2


class CipherState:
    """Per-session key table and keystream cursors."""

    def __init__(self):
        self.table = [0] * ENCRYPT_TABLE_WORD_COUNT
        self.encode_index = 0
        self.decode_index = 0

    def load_table(self, raw_table: Sequence[int]) -> None:
        """Install the raw table read from the device and decode it."""
        if len(raw_table) != ENCRYPT_TABLE_WORD_COUNT:
            raise ValueError(
                f"Key table requires {ENCRYPT_TABLE_WORD_COUNT} words, got {len(raw_table)}"
            )
        self.table = list(raw_table)
        self.decode_table()

    def decode_table(self) -> None:
        """
        Unroll the raw table in place.

        Word 0 is complemented, then each word is XORed with its already
        decoded predecessor. Both cursors restart at zero.
        """
        table = self.table
        table[0] = ~table[0] & 0xFFFF
        for idx in range(1, len(table)):
            table[idx] ^= table[idx - 1]
        self.reset_indices()
        logger.debug("Key table decoded")

    def encrypt(self, words: MutableSequence[int]) -> None:
        """Encrypt words in place using the second half of the table."""
        index = self.encode_index
        for i in range(len(words)):
            words[i] ^= self.table[KEY_HALF + index]
            index = (index + 1) & 0x0F
        self.encode_index = index

    def decrypt(self, words: MutableSequence[int]) -> None:
        """Decrypt words in place using the first half of the table."""
        index = self.decode_index
        for i in range(len(words)):
            words[i] ^= self.table[index]
            index = (index + 1) & 0x0F
        self.decode_index = index

    def reset_indices(self) -> None:
        self.encode_index = 0
        self.decode_index = 0
