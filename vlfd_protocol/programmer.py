# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
FPGA bitstream upload.

Bitstreams are text files of hexadecimal digits. An underscore ends a
16-bit word, a space or tab ends the useful part of a line, and a line
that stops mid-word still yields that word.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from .device import Device
from .errors import InvalidBitstreamError, IoError, NotProgrammedError

logger = logging.getLogger(__name__)

_HEX_DIGITS = {ord(c): int(c, 16) for c in "0123456789abcdefABCDEF"}
_WORD_END = ord("_")
_LINE_END = (ord(" "), ord("\t"))


def parse_bitstream(lines: Iterable[bytes]) -> List[int]:
    """
    Decode bitstream text into 16-bit words.

    Args:
        lines: Raw lines (bytes), with or without line terminators

    Returns:
        Decoded words

    Raises:
        InvalidBitstreamError: On a non-hex character or an empty result
    """
    words = []

    for line in lines:
        line = line.rstrip(b"\r\n")
        accumulator = 0
        has_nibble = False

        for byte in line:
            if byte == _WORD_END:
                words.append(accumulator)
                accumulator = 0
                has_nibble = False
            elif byte in _LINE_END:
                break
            else:
                nibble = _HEX_DIGITS.get(byte)
                if nibble is None:
                    raise InvalidBitstreamError("bitfile contains non-hexadecimal character")
                accumulator = ((accumulator << 4) | nibble) & 0xFFFF
                has_nibble = True

        if has_nibble:
            words.append(accumulator)

    if not words:
        raise InvalidBitstreamError("bitfile produced no data")

    return words


def load_bitstream(path: Union[str, Path]) -> List[int]:
    """
    Read and decode a bitstream file.

    Raises:
        IoError: If the file cannot be read
        InvalidBitstreamError: If its contents are malformed
    """
    try:
        with open(path, "rb") as f:
            return parse_bitstream(f)
    except OSError as err:
        raise IoError(err) from err


class Programmer:
    """Uploads bitstreams through a Device."""

    def __init__(self, device: Device):
        self._device = device

    @classmethod
    def connect(cls, **kwargs) -> "Programmer":
        return cls(Device.connect(**kwargs))

    @property
    def device(self) -> Device:
        return self._device

    def close(self) -> None:
        self._device.close()

    def program(
        self,
        bitfile: Union[str, Path],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> None:
        """
        Program the FPGA from a bitstream file.

        The whole bitstream is encrypted as one continuous keystream, then
        written in chunks of twice the device's FIFO depth. Success is confirmed
        by the programmed bit of a fresh configuration read.

        Args:
            bitfile: Path to the bitstream text file
            progress_callback: Optional callback(words_sent, total_words)

        Raises:
            IoError: If the file cannot be read
            InvalidBitstreamError: If the file is malformed
            NotProgrammedError: If the device does not report programmed
        """
        program_data = load_bitstream(bitfile)
        device = self._device

        device.ensure_session()
        device.encrypt(program_data)
        device.activate_fpga_programmer()

        # chunks are twice the advertised FIFO depth, in words
        chunk_len = max(device.config.fifo_size * 2, 1)
        total = len(program_data)
        logger.debug("Uploading %d words in chunks of %d", total, chunk_len)

        for offset in range(0, total, chunk_len):
            chunk = program_data[offset:offset + chunk_len]
            device.fifo_write(chunk)
            if progress_callback:
                progress_callback(offset + len(chunk), total)

        device.command_active()
        device.read_config()

        if not device.config.is_programmed:
            raise NotProgrammedError()

        logger.info("FPGA programmed (%d words)", total)
