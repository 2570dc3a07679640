# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
USB transport for the VLFD board.

Wraps a pyusb device handle with bulk helpers that retry short transfers
until the whole buffer has moved, and a polling hotplug listener.
"""

import errno
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import usb.core
import usb.util

from .errors import (
    DeviceNotFoundError,
    DeviceNotOpenError,
    FeatureUnavailableError,
    TimeoutError,
    TransportError,
    UnexpectedResponseError,
)
from .protocol import DEFAULT_TIMEOUT_MS, INTERFACE, Endpoint
from .words import pack_words, unpack_words

logger = logging.getLogger(__name__)

LIBUSB_ERROR_NO_DEVICE = -4


def _usb_error(err: usb.core.USBError, context: str) -> Exception:
    if isinstance(err, usb.core.USBTimeoutError):
        return TimeoutError(context)
    return TransportError(err, context)


def _is_no_device(err: usb.core.USBError) -> bool:
    return (
        getattr(err, "backend_error_code", None) == LIBUSB_ERROR_NO_DEVICE
        or err.errno == errno.ENODEV
    )


class UsbTransport:
    """
    Bulk endpoint access to a single VLFD board.

    Can be used as a context manager:
        with UsbTransport() as t:
            t.open(VLFD_VID, VLFD_PID)
            t.write_bytes(Endpoint.COMMAND, b"\\x02")
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT_MS, interface: int = INTERFACE):
        """
        Args:
            timeout: Per-transfer timeout in milliseconds (default 1000)
            interface: USB interface number to claim (default 0)
        """
        self._timeout = timeout
        self._interface = interface
        self._dev = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def is_open(self) -> bool:
        return self._dev is not None

    def open(self, vid: int, pid: int) -> None:
        """
        Find the board, reset it, claim its interface and clear all halts.

        Opening an already open transport is a no-op.

        Raises:
            DeviceNotFoundError: If no device matches vid/pid
            TransportError: If any setup step fails
        """
        if self.is_open:
            return

        try:
            dev = usb.core.find(idVendor=vid, idProduct=pid)
        except usb.core.NoBackendError as err:
            raise FeatureUnavailableError("libusb") from err
        if dev is None:
            raise DeviceNotFoundError(vid, pid)

        steps = [
            ("libusb_reset_device", dev.reset),
            ("libusb_set_configuration", dev.set_configuration),
            ("libusb_claim_interface", lambda: usb.util.claim_interface(dev, self._interface)),
        ]
        for endpoint in Endpoint:
            steps.append(("libusb_clear_halt", lambda ep=int(endpoint): dev.clear_halt(ep)))

        for context, step in steps:
            try:
                step()
            except usb.core.USBError as err:
                usb.util.dispose_resources(dev)
                raise _usb_error(err, context) from err

        self._dev = dev
        logger.info("Opened device %04x:%04x", vid, pid)

    def close(self) -> None:
        """
        Release the interface.

        A device that has already been unplugged is not an error.

        Raises:
            TransportError: For any other release failure
        """
        dev, self._dev = self._dev, None
        if dev is None:
            return
        try:
            usb.util.release_interface(dev, self._interface)
        except usb.core.USBError as err:
            if not _is_no_device(err):
                raise _usb_error(err, "libusb_release_interface") from err
            logger.warning("Device already detached while closing")
        finally:
            usb.util.dispose_resources(dev)
        logger.info("Closed device")

    def _handle(self):
        if self._dev is None:
            raise DeviceNotOpenError()
        return self._dev

    def read_bytes(self, endpoint: Endpoint, length: int) -> bytes:
        """
        Read exactly `length` bytes from an IN endpoint.

        Raises:
            DeviceNotOpenError: If the transport is closed
            TimeoutError: If a transfer times out
            UnexpectedResponseError: If the device returns zero bytes
            TransportError: For other USB failures
        """
        dev = self._handle()
        result = bytearray()
        while len(result) < length:
            try:
                chunk = dev.read(int(endpoint), length - len(result), timeout=self._timeout)
            except usb.core.USBError as err:
                raise _usb_error(err, "libusb_bulk_transfer") from err
            if len(chunk) == 0:
                raise UnexpectedResponseError("bulk read returned zero bytes")
            result.extend(chunk)
        return bytes(result)

    def write_bytes(self, endpoint: Endpoint, data: bytes) -> None:
        """
        Write all of `data` to an OUT endpoint.

        Raises:
            DeviceNotOpenError: If the transport is closed
            TimeoutError: If a transfer times out
            UnexpectedResponseError: If the device accepts zero bytes
            TransportError: For other USB failures
        """
        dev = self._handle()
        offset = 0
        while offset < len(data):
            try:
                written = dev.write(int(endpoint), data[offset:], timeout=self._timeout)
            except usb.core.USBError as err:
                raise _usb_error(err, "libusb_bulk_transfer") from err
            if written == 0:
                raise UnexpectedResponseError("bulk write returned zero bytes")
            offset += written

    def read_words(self, endpoint: Endpoint, count: int) -> List[int]:
        """Read `count` little-endian 16-bit words."""
        return unpack_words(self.read_bytes(endpoint, count * 2))

    def write_words(self, endpoint: Endpoint, words: Sequence[int]) -> None:
        """Write 16-bit words, little-endian."""
        self.write_bytes(endpoint, pack_words(words))

    def register_hotplug_callback(
        self,
        callback: Callable[["HotplugEvent"], None],
        vendor_id: Optional[int] = None,
        product_id: Optional[int] = None,
        class_code: Optional[int] = None,
        enumerate: bool = False,
    ) -> "HotplugListener":
        """
        Start a listener delivering arrival/departure events to `callback`.

        Stop the returned listener to cancel delivery.
        """
        listener = HotplugListener(
            callback,
            vendor_id=vendor_id,
            product_id=product_id,
            class_code=class_code,
            enumerate=enumerate,
        )
        listener.start()
        return listener


class HotplugEventKind(Enum):
    """Hotplug event type."""
    ARRIVED = "arrived"
    LEFT = "left"

    def __str__(self) -> str:
        return self.name


@dataclass
class HotplugDeviceInfo:
    """Descriptor summary of a device that arrived or left."""
    bus_number: int
    address: int
    port_numbers: List[int] = field(default_factory=list)
    vendor_id: Optional[int] = None
    product_id: Optional[int] = None
    class_code: Optional[int] = None
    sub_class_code: Optional[int] = None
    protocol_code: Optional[int] = None

    @property
    def key(self) -> Tuple[int, int]:
        return (self.bus_number, self.address)

    @classmethod
    def from_device(cls, dev) -> "HotplugDeviceInfo":
        try:
            port_numbers = list(dev.port_numbers or ())
        except (usb.core.USBError, NotImplementedError):
            port_numbers = []
        return cls(
            bus_number=dev.bus,
            address=dev.address,
            port_numbers=port_numbers,
            vendor_id=dev.idVendor,
            product_id=dev.idProduct,
            class_code=dev.bDeviceClass,
            sub_class_code=dev.bDeviceSubClass,
            protocol_code=dev.bDeviceProtocol,
        )


@dataclass
class HotplugEvent:
    """A device arrival or departure."""
    kind: HotplugEventKind
    device: HotplugDeviceInfo


class HotplugListener:
    """
    Background thread reporting USB arrivals and departures.

    pyusb has no hotplug callbacks, so the thread enumerates matching
    devices every `interval` seconds and reports the difference from the
    previous scan. Once `stop()` begins no further callback is made, and
    `stop()` returns only after the thread has exited.
    """

    def __init__(
        self,
        callback: Callable[[HotplugEvent], None],
        vendor_id: Optional[int] = None,
        product_id: Optional[int] = None,
        class_code: Optional[int] = None,
        enumerate: bool = False,
        interval: float = 0.1,
    ):
        self._callback = callback
        self._filter = {}
        if vendor_id is not None:
            self._filter["idVendor"] = vendor_id
        if product_id is not None:
            self._filter["idProduct"] = product_id
        if class_code is not None:
            self._filter["bDeviceClass"] = class_code
        self._enumerate = enumerate
        self._interval = interval
        self._stop = threading.Event()
        # held across the stop check and the callback
        self._delivery_lock = threading.RLock()
        self._thread = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="vlfd-usb-hotplug", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the polling thread and wait for it to exit."""
        with self._delivery_lock:
            self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _scan(self) -> Dict[Tuple[int, int], HotplugDeviceInfo]:
        devices = usb.core.find(find_all=True, **self._filter)
        infos = (HotplugDeviceInfo.from_device(dev) for dev in devices)
        return {info.key: info for info in infos}

    def _deliver(self, kind: HotplugEventKind, info: HotplugDeviceInfo) -> bool:
        with self._delivery_lock:
            if self._stop.is_set():
                return False
            logger.debug("Hotplug %s: bus %d address %d", kind, info.bus_number, info.address)
            self._callback(HotplugEvent(kind=kind, device=info))
        return True

    def _run(self) -> None:
        try:
            known = self._scan()
        except (usb.core.USBError, usb.core.NoBackendError) as err:
            logger.error("Hotplug enumeration failed: %s", err)
            return

        if self._enumerate:
            for info in known.values():
                if not self._deliver(HotplugEventKind.ARRIVED, info):
                    return

        while not self._stop.wait(self._interval):
            try:
                current = self._scan()
            except (usb.core.USBError, usb.core.NoBackendError) as err:
                logger.error("Hotplug enumeration failed: %s", err)
                return

            for key in known.keys() - current.keys():
                if not self._deliver(HotplugEventKind.LEFT, known[key]):
                    return
            for key in current.keys() - known.keys():
                if not self._deliver(HotplugEventKind.ARRIVED, current[key]):
                    return
            known = current
