"""
UUIDv7 helpers. Correlation ids are time-ordered so they sort with the logs.
"""
import uuid
import time
import secrets


def uuid7() -> uuid.UUID:
    """
    Generate a UUIDv7: 48-bit millisecond timestamp, then random bits,
    with the version (0111) and variant (10) bits set.
    """
    timestamp_ms = int(time.time() * 1000)
    uuid_bytes = bytearray(timestamp_ms.to_bytes(6, byteorder='big') + secrets.token_bytes(10))

    uuid_bytes[6] = (uuid_bytes[6] & 0x0f) | 0x70
    uuid_bytes[8] = (uuid_bytes[8] & 0x3f) | 0x80

    return uuid.UUID(bytes=bytes(uuid_bytes))
