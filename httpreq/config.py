"""Client configuration.

Defaults live on the dataclass; ``ClientConfig.from_env()`` overlays any of
these environment variables:

    HTTPREQ_IPV6              "1"/"true"/"yes" selects IPv6 resolution
    HTTPREQ_TIMEOUT           default per-request timeout in seconds
    HTTPREQ_READ_CHUNK_SIZE   bytes requested per socket read
"""
import os
from dataclasses import dataclass
from typing import Any, Mapping

from .transport import AddressFamily

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ClientConfig:
    address_family: AddressFamily = AddressFamily.V4
    # None waits forever
    default_timeout: float | None = None
    read_chunk_size: int = 4096

    def __post_init__(self) -> None:
        if not isinstance(self.address_family, AddressFamily):
            raise ValueError(f"Invalid address family: {self.address_family!r}")
        if self.read_chunk_size <= 0:
            raise ValueError(f"Invalid read chunk size: {self.read_chunk_size}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        if "HTTPREQ_IPV6" in env:
            ipv6 = env["HTTPREQ_IPV6"].strip().lower() in _TRUTHY
            overrides["address_family"] = AddressFamily.V6 if ipv6 else AddressFamily.V4

        if "HTTPREQ_TIMEOUT" in env:
            try:
                overrides["default_timeout"] = float(env["HTTPREQ_TIMEOUT"])
            except ValueError:
                raise ValueError(f"Invalid HTTPREQ_TIMEOUT: {env['HTTPREQ_TIMEOUT']!r}") from None

        if "HTTPREQ_READ_CHUNK_SIZE" in env:
            try:
                overrides["read_chunk_size"] = int(env["HTTPREQ_READ_CHUNK_SIZE"])
            except ValueError:
                raise ValueError(f"Invalid HTTPREQ_READ_CHUNK_SIZE: {env['HTTPREQ_READ_CHUNK_SIZE']!r}") from None

        return cls(**overrides)
