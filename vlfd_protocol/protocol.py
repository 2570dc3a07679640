# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
VLFD command protocol definitions.

Commands are short byte strings written to the command endpoint. All of
them except the engine reset are two bytes: a 0x01 prefix followed by the
command code.
"""

from enum import IntEnum

# USB identity of the SMIMS VLFD board
VLFD_VID = 0x2200
VLFD_PID = 0x2008

# Minimum supported firmware version (raw config word 32)
SMIMS_VERSION = 0x0200

INTERFACE = 0
DEFAULT_TIMEOUT_MS = 1000

# Seconds the sync handshake is retried before giving up
SYNC_TIMEOUT = 1.0

CONFIG_WORD_COUNT = 64
ENCRYPT_TABLE_WORD_COUNT = 32

COMMAND_PREFIX = 0x01
RESET_ENGINE = 0x02
SYNC_PROBE = b"\x00"


class Endpoint(IntEnum):
    """Bulk endpoint addresses."""
    FIFO_WRITE = 0x02
    COMMAND = 0x04
    FIFO_READ = 0x86
    SYNC = 0x88

    def __str__(self) -> str:
        return self.name


class CommandType(IntEnum):
    """Second byte of a prefixed command."""
    ACTIVE = 0x00
    READ_CONFIG = 0x01
    ACTIVATE_FPGA_PROGRAMMER = 0x02
    ACTIVATE_VERICOMM = 0x03
    ACTIVATE_VERISDK = 0x04
    ACTIVATE_FLASH_READ = 0x05
    ACTIVATE_VERIINSTRUMENT = 0x08
    ACTIVATE_VERILINK = 0x09
    ACTIVATE_VERISOC = 0x0A
    ACTIVATE_VERICOMM_PRO = 0x0B
    READ_ENCRYPT_TABLE = 0x0F
    WRITE_CONFIG = 0x11
    ACTIVATE_FLASH_WRITE = 0x15

    def __str__(self) -> str:
        return self.name


def encode_command(command: CommandType) -> bytes:
    """Encode a prefixed two-byte command."""
    return bytes([COMMAND_PREFIX, command])


def encode_reset_engine() -> bytes:
    """Encode the single-byte engine reset command."""
    return bytes([RESET_ENGINE])
