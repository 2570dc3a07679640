# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Licence key derivation.

The licence installed in config word 31 is derived from the device's
security key and a customer identifier by a fixed bit transform.
"""

# (security key mask, security key shift, customer id mask, customer id shift,
#  accumulator position); a negative customer shift is a left shift.
_NIBBLE_LAYOUT = (
    (0x0003, 0, 0x000F, -4, 16),
    (0x0030, 4, 0x00F0, 0, 20),
    (0x0300, 8, 0x0F00, 4, 24),
    (0x3000, 12, 0xF000, 8, 28),
)


def licence_gen(security_key: int, customer_id: int) -> int:
    """
    Derive the 16-bit licence value.

    Args:
        security_key: 16-bit security key read from the device
        customer_id: 16-bit customer identifier

    Returns:
        16-bit licence key
    """
    temp = 0

    for key_mask, key_shift, id_mask, id_shift, position in _NIBBLE_LAYOUT:
        amount = (security_key & key_mask) >> key_shift
        group = customer_id & id_mask
        group = group << -id_shift if id_shift < 0 else group >> id_shift
        group >>= amount
        group = (group >> 4) | (group & 0x000F)
        temp |= group << position

    temp &= 0xFFFFFFFF
    temp >>= 11
    return ~((temp >> 16) | (temp & 0xFFFF)) & 0xFFFF
