"""
Random resource names.

Every vault, resource group, key and secret in a run gets a fresh name so
repeated runs never collide.
"""
import secrets
import string
import uuid
from dataclasses import dataclass

_ALPHANUMERIC = string.ascii_letters + string.digits
_MIN_RANDOM_CHARS = 3


def random_resource_name(prefix: str, max_length: int) -> str:
    """
    Lowercase prefix padded with random hex characters up to max_length.

    The prefix is truncated when it would leave fewer than three random
    characters.
    """
    prefix = prefix.lower()
    if max_length <= _MIN_RANDOM_CHARS:
        return uuid.uuid4().hex[:max_length]
    if len(prefix) + _MIN_RANDOM_CHARS > max_length:
        prefix = prefix[:max_length - _MIN_RANDOM_CHARS]

    suffix = ""
    while len(prefix) + len(suffix) < max_length:
        suffix += uuid.uuid4().hex
    return prefix + suffix[:max_length - len(prefix)]


def random_alphanumeric(length: int) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


@dataclass(frozen=True)
class SampleNames:
    """Names and values used by one sample run."""

    vault1: str
    vault2: str
    resource_group: str
    key1: str
    key2: str
    secret1: str
    secret2: str
    secret3: str
    secret_value1: str
    secret_value2: str
    secret_value3: str

    @classmethod
    def generate(cls) -> "SampleNames":
        return cls(
            vault1=random_resource_name("vault1", 20),
            vault2=random_resource_name("vault2", 20),
            resource_group=random_resource_name("rgKV_", 8),
            key1="key-" + random_alphanumeric(8),
            key2="key-" + random_alphanumeric(8),
            secret1="secret-" + random_alphanumeric(8),
            secret2="secret-" + random_alphanumeric(8),
            secret3="secret-" + random_alphanumeric(8),
            secret_value1=random_alphanumeric(16),
            secret_value2=random_alphanumeric(16),
            secret_value3=random_alphanumeric(16),
        )
