# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Session layer for the VLFD board.

A Device owns the transport handle, the mirrored configuration bank and
the cipher state. Every command is preceded by a sync handshake, and
every FIFO payload word is transparently encrypted or decrypted.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, MutableSequence, Optional, Sequence

from .cipher import CipherState
from .config import ConfigRegister
from .errors import (
    FeatureUnavailableError,
    NotProgrammedError,
    TimeoutError,
    VersionMismatchError,
)
from .licence import licence_gen
from .protocol import (
    CONFIG_WORD_COUNT,
    ENCRYPT_TABLE_WORD_COUNT,
    SMIMS_VERSION,
    SYNC_PROBE,
    SYNC_TIMEOUT,
    VLFD_PID,
    VLFD_VID,
    CommandType,
    Endpoint,
    encode_command,
    encode_reset_engine,
)
from .transport import UsbTransport

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Session lifecycle."""
    CLOSED = "closed"
    OPEN = "open"
    INITIALIZED = "initialized"
    MODE_ACTIVE = "mode_active"

    def __str__(self) -> str:
        return self.name


@dataclass
class IoSettings:
    """VeriComm tuning applied by `Device.enter_io_mode`."""
    clock_high_delay: int = 11
    clock_low_delay: int = 11
    vericomm_isv: int = 0
    clock_check_enabled: bool = False
    mode_selector: int = 0
    licence_key: Optional[int] = 0xFF40


class Device:
    """
    High-level interface to a VLFD board.

    Not thread-safe: serialize calls to one Device externally.

    Can be used as a context manager:
        with Device.connect() as device:
            device.enter_io_mode(IoSettings())
            device.transfer_io(tx, rx)
    """

    def __init__(
        self,
        transport=None,
        vendor_id: int = VLFD_VID,
        product_id: int = VLFD_PID,
        min_version: int = SMIMS_VERSION,
        sync_timeout: float = SYNC_TIMEOUT,
    ):
        """
        Args:
            transport: Bulk transport (default: a new UsbTransport)
            vendor_id: USB vendor id of the board
            product_id: USB product id of the board
            min_version: Minimum accepted raw firmware version
            sync_timeout: Seconds to retry the sync handshake
        """
        if transport is None:
            transport = UsbTransport()
        self._transport = transport
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._min_version = min_version
        self._sync_timeout = sync_timeout
        self._config = ConfigRegister()
        self._cipher = CipherState()
        self._state = SessionState.CLOSED

    @classmethod
    def connect(cls, **kwargs) -> "Device":
        """Create, open and initialize a device."""
        device = cls(**kwargs)
        device.open()
        device.initialize()
        return device

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def transport(self):
        return self._transport

    @property
    def config(self) -> ConfigRegister:
        """Host view of the configuration bank; push changes with write_config()."""
        return self._config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._transport.is_open

    def open(self) -> None:
        """
        Acquire the board.

        Raises:
            DeviceNotFoundError: If the board is not attached
        """
        self._transport.open(self._vendor_id, self._product_id)
        if self._state is SessionState.CLOSED:
            self._state = SessionState.OPEN

    def close(self) -> None:
        try:
            self._transport.close()
        finally:
            self._state = SessionState.CLOSED

    def initialize(self) -> None:
        """Fetch and decode the key table, then read the configuration."""
        raw_table = self._read_encrypt_table()
        self._cipher.load_table(raw_table)
        self.read_config()
        self._state = SessionState.INITIALIZED

    def ensure_session(self) -> None:
        if not self.is_open:
            self.open()
        self.initialize()

    def reset_engine(self) -> None:
        self._transport.write_bytes(Endpoint.COMMAND, encode_reset_engine())

    def sync_delay(self) -> None:
        """
        Poll the device until it reports ready.

        Raises:
            TimeoutError: If the device stays busy past the sync timeout
        """
        deadline = time.monotonic() + self._sync_timeout
        while time.monotonic() <= deadline:
            self._transport.write_bytes(Endpoint.COMMAND, SYNC_PROBE)
            response = self._transport.read_bytes(Endpoint.SYNC, 1)
            if response[0] != 0:
                return
        raise TimeoutError("sync_delay")

    def _command(self, command: CommandType) -> None:
        self.sync_delay()
        logger.debug("Command %s", command)
        self._transport.write_bytes(Endpoint.COMMAND, encode_command(command))

    def command_active(self) -> None:
        """Return the device to its ready state, leaving any active mode."""
        self._command(CommandType.ACTIVE)
        if self._state is SessionState.MODE_ACTIVE:
            self._state = SessionState.INITIALIZED

    def _activate(self, command: CommandType) -> None:
        self._command(command)
        self._state = SessionState.MODE_ACTIVE

    def read_config(self) -> None:
        """Replace the local configuration with the device's."""
        self._command(CommandType.READ_CONFIG)
        words = self._transport.read_words(Endpoint.FIFO_READ, CONFIG_WORD_COUNT)
        self.command_active()
        self._cipher.decrypt(words)
        self._config.replace_words(words)

    def write_config(self) -> None:
        """Push the local configuration to the device."""
        self.sync_delay()
        words = self._config.words
        self._cipher.encrypt(words)
        logger.debug("Command %s", CommandType.WRITE_CONFIG)
        self._transport.write_bytes(Endpoint.COMMAND, encode_command(CommandType.WRITE_CONFIG))
        self._transport.write_words(Endpoint.FIFO_WRITE, words)
        self.command_active()

    def activate_fpga_programmer(self) -> None:
        self._activate(CommandType.ACTIVATE_FPGA_PROGRAMMER)

    def activate_vericomm(self) -> None:
        self._activate(CommandType.ACTIVATE_VERICOMM)

    def activate_veri_instrument(self) -> None:
        self._activate(CommandType.ACTIVATE_VERIINSTRUMENT)

    def activate_verilink(self) -> None:
        self._activate(CommandType.ACTIVATE_VERILINK)

    def activate_veri_soc(self) -> None:
        self._activate(CommandType.ACTIVATE_VERISOC)

    def activate_vericomm_pro(self) -> None:
        self._activate(CommandType.ACTIVATE_VERICOMM_PRO)

    def activate_veri_sdk(self) -> None:
        self._activate(CommandType.ACTIVATE_VERISDK)

    def activate_flash_read(self) -> None:
        self._activate(CommandType.ACTIVATE_FLASH_READ)

    def activate_flash_write(self) -> None:
        self._activate(CommandType.ACTIVATE_FLASH_WRITE)

    def enter_io_mode(self, settings: IoSettings) -> None:
        """
        Switch the board into VeriComm I/O mode.

        Preconditions are checked in order (version, programmed,
        capability) before anything is written to the device.

        Raises:
            VersionMismatchError: If firmware is older than the minimum
            NotProgrammedError: If the FPGA holds no configuration
            FeatureUnavailableError: If VeriComm is not supported
        """
        self.ensure_session()
        config = self._config

        if config.smims_version_raw < self._min_version:
            raise VersionMismatchError(self._min_version, config.smims_version_raw)
        if not config.is_programmed:
            raise NotProgrammedError()
        if not config.vericomm_ability:
            raise FeatureUnavailableError("vericomm")

        if settings.licence_key is not None:
            config.licence_key = settings.licence_key
        config.vericomm_clock_high_delay = settings.clock_high_delay
        config.vericomm_clock_low_delay = settings.clock_low_delay
        config.vericomm_isv = settings.vericomm_isv
        config.vericomm_clock_check_enabled = settings.clock_check_enabled
        config.mode_selector = settings.mode_selector

        self.write_config()
        self.activate_vericomm()
        logger.info("Entered VeriComm I/O mode")

    def transfer_io(
        self, write_buffer: MutableSequence[int], read_buffer: MutableSequence[int]
    ) -> None:
        """
        Exchange words with the FPGA design.

        write_buffer is encrypted in place and sent; read_buffer is filled
        with len(read_buffer) decrypted words.
        """
        self._cipher.encrypt(write_buffer)
        self.fifo_write(write_buffer)
        received = self.fifo_read(len(read_buffer))
        self._cipher.decrypt(received)
        read_buffer[:] = received

    def exit_io_mode(self) -> None:
        if not self.is_open:
            return
        self.command_active()
        self.close()
        logger.info("Exited VeriComm I/O mode")

    def fifo_write(self, words: Sequence[int]) -> None:
        """Write raw (already encrypted) words to the FIFO."""
        self._transport.write_words(Endpoint.FIFO_WRITE, words)

    def fifo_read(self, count: int) -> List[int]:
        """Read raw (still encrypted) words from the FIFO."""
        return self._transport.read_words(Endpoint.FIFO_READ, count)

    def encrypt(self, words: MutableSequence[int]) -> None:
        self._cipher.encrypt(words)

    def decrypt(self, words: MutableSequence[int]) -> None:
        self._cipher.decrypt(words)

    def licence_gen(self, security_key: int, customer_id: int) -> int:
        return licence_gen(security_key, customer_id)

    def _read_encrypt_table(self) -> List[int]:
        self._command(CommandType.READ_ENCRYPT_TABLE)
        return self._transport.read_words(Endpoint.FIFO_READ, ENCRYPT_TABLE_WORD_COUNT)
