# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
VLFD Protocol - Python driver for the SMIMS VLFD FPGA board.

This package talks to the board over USB bulk endpoints, keeps a mirror
of its configuration bank, transparently encrypts FIFO traffic and
uploads FPGA bitstreams.

Example usage:
    from vlfd_protocol import Device, IoSettings, Programmer

    # Program the FPGA
    programmer = Programmer.connect()
    programmer.program("design.txt")
    programmer.close()

    # Exchange words with the design over VeriComm
    with Device.connect() as device:
        settings = IoSettings(clock_high_delay=8, clock_low_delay=8)
        device.enter_io_mode(settings)

        tx = [0x1234, 0x5678, 0x9abc, 0xdef0]
        rx = [0] * 4
        device.transfer_io(tx, rx)

        device.exit_io_mode()
"""

from .cipher import CipherState
from .config import ConfigRegister
from .device import Device, IoSettings, SessionState
from .errors import (
    VlfdError,
    DeviceNotOpenError,
    DeviceNotFoundError,
    FeatureUnavailableError,
    InvalidBitstreamError,
    NotProgrammedError,
    TimeoutError,
    UnexpectedResponseError,
    VersionMismatchError,
    TransportError,
    IoError,
)
from .licence import licence_gen
from .programmer import Programmer, load_bitstream, parse_bitstream
from .protocol import (
    VLFD_VID,
    VLFD_PID,
    SMIMS_VERSION,
    CommandType,
    Endpoint,
    encode_command,
    encode_reset_engine,
)
from .transport import (
    UsbTransport,
    HotplugListener,
    HotplugEvent,
    HotplugEventKind,
    HotplugDeviceInfo,
)
from .words import pack_words, unpack_words

__version__ = "0.1.0"

__all__ = [
    # Session
    "Device",
    "IoSettings",
    "SessionState",
    "ConfigRegister",
    "CipherState",
    "licence_gen",
    # Programming
    "Programmer",
    "load_bitstream",
    "parse_bitstream",
    # Protocol
    "VLFD_VID",
    "VLFD_PID",
    "SMIMS_VERSION",
    "CommandType",
    "Endpoint",
    "encode_command",
    "encode_reset_engine",
    # Transport
    "UsbTransport",
    "HotplugListener",
    "HotplugEvent",
    "HotplugEventKind",
    "HotplugDeviceInfo",
    # Words
    "pack_words",
    "unpack_words",
    # Errors
    "VlfdError",
    "DeviceNotOpenError",
    "DeviceNotFoundError",
    "FeatureUnavailableError",
    "InvalidBitstreamError",
    "NotProgrammedError",
    "TimeoutError",
    "UnexpectedResponseError",
    "VersionMismatchError",
    "TransportError",
    "IoError",
]
