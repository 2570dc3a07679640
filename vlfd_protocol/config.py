# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Mirror of the device configuration bank.

The bank is 64 16-bit words whose meaning is fixed by position.
Setters only touch the bits of their own field; every other bit,
including reserved words, survives read-modify-write cycles untouched.
Values wider than a field are truncated to the field width.
"""

from typing import Iterable, List, Optional

from .protocol import CONFIG_WORD_COUNT

# Word indices
CLOCK_HIGH_DELAY = 0
CLOCK_LOW_DELAY = 1
VERICOMM_FLAGS = 2
MODE_SELECT = 3
FLASH_BEGIN_BLOCK = 4
FLASH_BEGIN_CLUSTER = 5
FLASH_END_BLOCK = 6
FLASH_END_CLUSTER = 7
LICENCE_KEY = 31
SMIMS_VERSION_WORD = 32
FIFO_SIZE = 33
FLASH_TOTAL_BLOCK = 34
FLASH_BLOCK_SIZE = 35
FLASH_CLUSTER_SIZE = 36
CAPABILITIES = 37
STATUS = 48
CLOCK_STATUS = 49

# Capability bits (word 37)
CAP_VERICOMM = 0x0001
CAP_VERIINSTRUMENT = 0x0002
CAP_VERILINK = 0x0004
CAP_VERISOC = 0x0008
CAP_VERICOMM_PRO = 0x0010
CAP_VERISDK = 0x0100

# Status bits (word 48)
STATUS_PROGRAMMED = 0x0001
STATUS_PCB_DISCONNECTED = 0x0100

CLOCK_CHECK_BIT = 0x0001
ISV_MASK = 0x00F0
ISV_SHIFT = 4


class ConfigRegister:
    """
    Host-side view of the 64-word configuration bank.

    Default-constructed to all zeros; replaced wholesale after a device
    read with `replace_words`.
    """

    WORD_COUNT = CONFIG_WORD_COUNT

    def __init__(self, words: Optional[Iterable[int]] = None):
        self._words = [0] * self.WORD_COUNT
        if words is not None:
            self.replace_words(words)

    @classmethod
    def from_words(cls, words: Iterable[int]) -> "ConfigRegister":
        return cls(words)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConfigRegister):
            return NotImplemented
        return self._words == other._words

    def __repr__(self) -> str:
        return f"ConfigRegister(version={self.smims_version_raw:#06x}, fifo_size={self.fifo_size})"

    @property
    def words(self) -> List[int]:
        """Snapshot copy of the raw word array."""
        return list(self._words)

    def replace_words(self, words: Iterable[int]) -> None:
        """
        Replace the whole bank.

        Raises:
            ValueError: If the word count is not 64 or a word exceeds 16 bits
        """
        words = list(words)
        if len(words) != self.WORD_COUNT:
            raise ValueError(
                f"Config requires {self.WORD_COUNT} words, got {len(words)}"
            )
        for word in words:
            if not 0 <= word <= 0xFFFF:
                raise ValueError(f"Config word out of 16-bit range: {word!r}")
        self._words = words

    def _set_bits(self, index: int, mask: int, value: int) -> None:
        self._words[index] = (self._words[index] & ~mask & 0xFFFF) | (value & mask)

    def _has_flag(self, index: int, mask: int) -> bool:
        return self._words[index] & mask != 0

    # VeriComm timing

    @property
    def vericomm_clock_high_delay(self) -> int:
        return self._words[CLOCK_HIGH_DELAY]

    @vericomm_clock_high_delay.setter
    def vericomm_clock_high_delay(self, delay: int) -> None:
        self._words[CLOCK_HIGH_DELAY] = delay & 0xFFFF

    @property
    def vericomm_clock_low_delay(self) -> int:
        return self._words[CLOCK_LOW_DELAY]

    @vericomm_clock_low_delay.setter
    def vericomm_clock_low_delay(self, delay: int) -> None:
        self._words[CLOCK_LOW_DELAY] = delay & 0xFFFF

    @property
    def vericomm_isv(self) -> int:
        return (self._words[VERICOMM_FLAGS] & ISV_MASK) >> ISV_SHIFT

    @vericomm_isv.setter
    def vericomm_isv(self, value: int) -> None:
        self._set_bits(VERICOMM_FLAGS, ISV_MASK, (value & 0x0F) << ISV_SHIFT)

    @property
    def vericomm_clock_check_enabled(self) -> bool:
        return self._has_flag(VERICOMM_FLAGS, CLOCK_CHECK_BIT)

    @vericomm_clock_check_enabled.setter
    def vericomm_clock_check_enabled(self, enabled: bool) -> None:
        self._set_bits(VERICOMM_FLAGS, CLOCK_CHECK_BIT, CLOCK_CHECK_BIT if enabled else 0)

    # Mode selection

    @property
    def veri_sdk_channel_selector(self) -> int:
        return self._words[MODE_SELECT] & 0x00FF

    @veri_sdk_channel_selector.setter
    def veri_sdk_channel_selector(self, channel: int) -> None:
        self._set_bits(MODE_SELECT, 0x00FF, channel)

    @property
    def mode_selector(self) -> int:
        return self._words[MODE_SELECT] >> 8

    @mode_selector.setter
    def mode_selector(self, mode: int) -> None:
        self._set_bits(MODE_SELECT, 0xFF00, (mode & 0xFF) << 8)

    # Flash address range

    @property
    def flash_begin_block_addr(self) -> int:
        return self._words[FLASH_BEGIN_BLOCK]

    @flash_begin_block_addr.setter
    def flash_begin_block_addr(self, addr: int) -> None:
        self._words[FLASH_BEGIN_BLOCK] = addr & 0xFFFF

    @property
    def flash_begin_cluster_addr(self) -> int:
        return self._words[FLASH_BEGIN_CLUSTER]

    @flash_begin_cluster_addr.setter
    def flash_begin_cluster_addr(self, addr: int) -> None:
        self._words[FLASH_BEGIN_CLUSTER] = addr & 0xFFFF

    @property
    def flash_read_end_block_addr(self) -> int:
        return self._words[FLASH_END_BLOCK]

    @flash_read_end_block_addr.setter
    def flash_read_end_block_addr(self, addr: int) -> None:
        self._words[FLASH_END_BLOCK] = addr & 0xFFFF

    @property
    def flash_read_end_cluster_addr(self) -> int:
        return self._words[FLASH_END_CLUSTER]

    @flash_read_end_cluster_addr.setter
    def flash_read_end_cluster_addr(self, addr: int) -> None:
        self._words[FLASH_END_CLUSTER] = addr & 0xFFFF

    # Licence / security key share word 31

    @property
    def licence_key(self) -> int:
        return self._words[LICENCE_KEY]

    @licence_key.setter
    def licence_key(self, key: int) -> None:
        self._words[LICENCE_KEY] = key & 0xFFFF

    @property
    def security_key(self) -> int:
        return self._words[LICENCE_KEY]

    # Read-only device information

    @property
    def smims_version_raw(self) -> int:
        return self._words[SMIMS_VERSION_WORD]

    @property
    def smims_major_version(self) -> int:
        return self._words[SMIMS_VERSION_WORD] >> 8

    @property
    def smims_sub_version(self) -> int:
        return (self._words[SMIMS_VERSION_WORD] >> 4) & 0x0F

    @property
    def smims_patch_version(self) -> int:
        return self._words[SMIMS_VERSION_WORD] & 0x0F

    @property
    def fifo_size(self) -> int:
        """FIFO depth in words."""
        return self._words[FIFO_SIZE]

    @property
    def flash_total_block(self) -> int:
        return self._words[FLASH_TOTAL_BLOCK]

    @property
    def flash_block_size(self) -> int:
        return self._words[FLASH_BLOCK_SIZE]

    @property
    def flash_cluster_size(self) -> int:
        return self._words[FLASH_CLUSTER_SIZE]

    @property
    def vericomm_ability(self) -> bool:
        return self._has_flag(CAPABILITIES, CAP_VERICOMM)

    @property
    def veri_instrument_ability(self) -> bool:
        return self._has_flag(CAPABILITIES, CAP_VERIINSTRUMENT)

    @property
    def veri_link_ability(self) -> bool:
        return self._has_flag(CAPABILITIES, CAP_VERILINK)

    @property
    def veri_soc_ability(self) -> bool:
        return self._has_flag(CAPABILITIES, CAP_VERISOC)

    @property
    def vericomm_pro_ability(self) -> bool:
        return self._has_flag(CAPABILITIES, CAP_VERICOMM_PRO)

    @property
    def veri_sdk_ability(self) -> bool:
        return self._has_flag(CAPABILITIES, CAP_VERISDK)

    @property
    def is_programmed(self) -> bool:
        return self._has_flag(STATUS, STATUS_PROGRAMMED)

    @property
    def is_pcb_connected(self) -> bool:
        # inverted sense: bit set means disconnected
        return not self._has_flag(STATUS, STATUS_PCB_DISCONNECTED)

    @property
    def vericomm_clock_continues(self) -> bool:
        return not self._has_flag(CLOCK_STATUS, 0x0001)
