# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Exceptions raised by the VLFD driver.

Every failure carries enough context (operation name, identifiers,
version numbers) to diagnose it without a stack trace.
"""


class VlfdError(Exception):
    """Base exception for all driver errors."""
    pass


class DeviceNotOpenError(VlfdError):
    """Operation attempted on a closed device."""

    def __init__(self):
        super().__init__("device is not open")


class DeviceNotFoundError(VlfdError):
    """No device with the requested USB identity is attached."""

    def __init__(self, vid: int, pid: int):
        self.vid = vid
        self.pid = pid
        super().__init__(f"device {vid:#06x}:{pid:#06x} not found")


class FeatureUnavailableError(VlfdError):
    """The device (or host USB stack) lacks a required capability."""

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"feature `{feature}` is unavailable")


class InvalidBitstreamError(VlfdError):
    """Bitstream text could not be decoded."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid bitstream: {reason}")


class NotProgrammedError(VlfdError):
    """The FPGA does not report a programmed configuration."""

    def __init__(self):
        super().__init__("FPGA is not programmed")


class TimeoutError(VlfdError):
    """An operation did not complete within its deadline."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"operation `{operation}` timed out")


class UnexpectedResponseError(VlfdError):
    """The device answered in a way the protocol does not allow."""

    def __init__(self, context: str):
        self.context = context
        super().__init__(f"unexpected response during `{context}`")


class VersionMismatchError(VlfdError):
    """Device firmware is older than the minimum supported version."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"SMIMS version mismatch (expected {expected:#06x}, found {actual:#06x})"
        )


class TransportError(VlfdError):
    """A USB operation failed."""

    def __init__(self, source: Exception, context: str):
        self.source = source
        self.context = context
        super().__init__(f"usb error {source} in `{context}`")


class IoError(VlfdError):
    """Host filesystem error (e.g. reading a bitstream file)."""

    def __init__(self, source: OSError):
        self.source = source
        super().__init__(str(source))
