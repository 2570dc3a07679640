# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""Pytest configuration and an in-memory VLFD board."""

import struct

import pytest

from vlfd_protocol.protocol import Endpoint

# Raw (undecoded) key table served by the fake board
RAW_TABLE = [(0x1357 * (i + 1)) & 0xFFFF for i in range(32)]


def decode_table(raw):
    """Device-side key table decoding (cumulative XOR, first word complemented)."""
    table = []
    acc = 0xFFFF
    for word in raw:
        acc ^= word
        table.append(acc)
    return table


def make_config_words(
    version=0x0200,
    fifo_size=32,
    capabilities=0x0001,
    status=0x0001,
):
    """Plaintext config bank with the fields the session checks."""
    words = [0] * 64
    words[32] = version
    words[33] = fifo_size
    words[37] = capabilities
    words[48] = status
    return words


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--hardware",
        action="store_true",
        default=False,
        help="Run integration tests against a connected VLFD board",
    )
    parser.addoption(
        "--bitstream",
        action="store",
        default=None,
        help="Bitstream text file used by the programming integration test",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--hardware"):
        return
    skip = pytest.mark.skip(reason="needs --hardware")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


class FakeBoard:
    """
    Transport double behaving like a VLFD board.

    Answers sync probes, serves the key table, keeps its own copy of the
    configuration bank (encrypted on the wire with its own keystream
    cursors) and echoes VeriComm traffic back to the host.
    """

    def __init__(self, config_words=None, sync_responses=None, program_succeeds=True):
        self.config_words = list(config_words or make_config_words())
        self.sync_responses = list(sync_responses or [])
        self.ready = True
        self.program_succeeds = program_succeeds
        self.table = decode_table(RAW_TABLE)
        self.tx_index = 0   # device -> host, first half
        self.rx_index = 0   # host -> device, second half
        self.is_open = False
        self.open_calls = []
        self.close_calls = 0
        self.writes = []
        self.commands = []
        self.received_io = []
        self.programmed_words = []
        self._fifo_out = []
        self._pending_write = None
        self._mode = None

    # Transport interface

    def open(self, vid, pid):
        self.open_calls.append((vid, pid))
        self.is_open = True

    def close(self):
        self.close_calls += 1
        self.is_open = False

    def write_bytes(self, endpoint, data):
        data = bytes(data)
        self.writes.append((endpoint, data))
        if endpoint == Endpoint.COMMAND:
            if data != b"\x00":
                self._on_command(data)
        elif endpoint == Endpoint.FIFO_WRITE:
            self._on_fifo_write(list(struct.unpack(f"<{len(data) // 2}H", data)))

    def read_bytes(self, endpoint, length):
        if endpoint == Endpoint.SYNC:
            ready = self.sync_responses.pop(0) if self.sync_responses else int(self.ready)
            return bytes([ready])
        if endpoint == Endpoint.FIFO_READ:
            count = length // 2
            words, self._fifo_out = self._fifo_out[:count], self._fifo_out[count:]
            return struct.pack(f"<{len(words)}H", *words)
        raise AssertionError(f"unexpected read from {endpoint}")

    def read_words(self, endpoint, count):
        data = self.read_bytes(endpoint, count * 2)
        return list(struct.unpack(f"<{count}H", data))

    def write_words(self, endpoint, words):
        self.write_bytes(endpoint, struct.pack(f"<{len(words)}H", *words))

    # Board behaviour

    @property
    def fifo_writes(self):
        """Word counts of every FIFO write, in order."""
        return [len(data) // 2 for ep, data in self.writes if ep == Endpoint.FIFO_WRITE]

    def _queue(self, words, encrypt):
        for word in words:
            if encrypt:
                word ^= self.table[self.tx_index]
                self.tx_index = (self.tx_index + 1) & 0x0F
            self._fifo_out.append(word)

    def _decrypt_in(self, words):
        plain = []
        for word in words:
            plain.append(word ^ self.table[16 + self.rx_index])
            self.rx_index = (self.rx_index + 1) & 0x0F
        return plain

    def _on_command(self, data):
        self.commands.append(data)
        if data == b"\x01\x0f":
            self.tx_index = 0
            self.rx_index = 0
            self._queue(RAW_TABLE, encrypt=False)
        elif data == b"\x01\x01":
            self._queue(self.config_words, encrypt=True)
        elif data == b"\x01\x11":
            self._pending_write = "config"
        elif data == b"\x01\x02":
            self._mode = "programmer"
        elif data == b"\x01\x03":
            self._mode = "vericomm"
        elif data == b"\x01\x00" and self._mode == "programmer":
            self._mode = None
            if self.program_succeeds:
                self.config_words[48] |= 0x0001
            else:
                self.config_words[48] &= ~0x0001

    def _on_fifo_write(self, words):
        plain = self._decrypt_in(words)
        if self._pending_write == "config":
            self._pending_write = None
            self.config_words = plain
        elif self._mode == "programmer":
            self.programmed_words.extend(plain)
        elif self._mode == "vericomm":
            self.received_io.extend(plain)
            self._queue(plain, encrypt=True)


@pytest.fixture
def board():
    """A fake board reporting a programmed, VeriComm-capable device."""
    return FakeBoard()


@pytest.fixture
def device(board):
    """A Device wired to the fake board (not yet opened)."""
    from vlfd_protocol.device import Device

    return Device(transport=board)


@pytest.fixture(scope="session")
def hardware_bitstream(request):
    return request.config.getoption("--bitstream")
