"""Deterministic file transfer time estimation."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Tuple

from .units import convert_from_bytes, convert_to_bytes, validate_unit

LOGGER = logging.getLogger(__name__)

CLOUD_SPEED_FACTORS: Dict[str, float] = {
    "none": 1.0,
    "google-drive": 0.9,
    "aws-s3": 1.1,
    "onedrive": 0.95,
}
CONNECTION_TYPES = ("wifi", "ethernet")
TRANSFER_TYPES = ("direct", "p2p")
NUMERIC_FIELDS = (
    "download_speed_mbps",
    "upload_speed_mbps",
    "network_latency_ms",
    "compression_rate_percent",
)

VPN_FACTOR = 0.9
ETHERNET_FACTOR = 1.2
P2P_FACTOR = 0.8


@dataclass(frozen=True)
class FileItem:
    name: str
    size: float
    unit: str = "bytes"
    mime_type: str = ""

    def __post_init__(self) -> None:
        validate_unit(self.unit)

    @classmethod
    def from_bytes(cls, name: str, size: int, mime_type: str = "") -> "FileItem":
        return cls(name=name, size=size, unit="bytes", mime_type=mime_type)

    @property
    def size_bytes(self) -> float:
        return convert_to_bytes(self.size, self.unit)


@dataclass
class EstimatorConfig:
    download_speed_mbps: float = 1.0
    upload_speed_mbps: float = 2.0
    network_latency_ms: float = 50.0
    compression_enabled: bool = False
    compression_rate_percent: float = 50.0
    cloud_provider: str = "none"
    vpn_enabled: bool = False
    connection_type: str = "wifi"
    transfer_type: str = "direct"

    def __post_init__(self) -> None:
        for name in NUMERIC_FIELDS:
            value = getattr(self, name)
            try:
                number = float(value)
            except (TypeError, ValueError):
                number = None
            if number is None or isinstance(value, bool):
                raise ValueError(f"{name} must be a number, got {value!r}")
            setattr(self, name, number)
        if self.cloud_provider not in CLOUD_SPEED_FACTORS:
            raise ValueError(
                f"Unknown cloud provider {self.cloud_provider!r}; "
                f"expected one of {', '.join(CLOUD_SPEED_FACTORS)}"
            )
        if self.connection_type not in CONNECTION_TYPES:
            raise ValueError(f"Unknown connection type {self.connection_type!r}")
        if self.transfer_type not in TRANSFER_TYPES:
            raise ValueError(f"Unknown transfer type {self.transfer_type!r}")

    def merged(self, overrides: Dict[str, Any]) -> "EstimatorConfig":
        """Return a copy with ``overrides`` applied; unknown keys raise ``TypeError``."""
        data = asdict(self)
        data.update(overrides)
        return EstimatorConfig(**data)


@dataclass
class EstimationResult:
    download_time_seconds: float
    upload_time_seconds: float
    cloud_upload_time_seconds: float
    total_size_bytes: float = 0.0
    normalized_size: float = 0.0
    normalized_unit: str = "bytes"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _divide(numerator: float, denominator: float) -> float:
    # IEEE semantics: x/0 is +-inf and 0/0 is nan instead of ZeroDivisionError.
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def calculate_time(size: float, speed_mbps: float) -> float:
    return _divide(size * 8, speed_mbps * 1024 * 1024)


def calculate_time_with_latency(size: float, speed_mbps: float, latency_ms: float) -> float:
    return calculate_time(size, speed_mbps) + latency_ms / 1000


class TransferEstimator:
    """Turn a file selection and a set of network modifiers into transfer times.

    The time formula is applied to the *normalized* size (the magnitude in the
    largest fitting unit, see :func:`convert_from_bytes`), not to the raw byte
    count. Ten megabytes therefore feed ``10.0`` into the formula.
    """

    def __init__(self, config: EstimatorConfig):
        self.config = config

    def total_size_bytes(self, files: Iterable[FileItem]) -> float:
        total = sum((item.size_bytes for item in files), 0.0)
        if self.config.compression_enabled:
            total *= 1 - self.config.compression_rate_percent / 100
        return total

    def effective_speeds(self) -> Tuple[float, float]:
        download = self.config.download_speed_mbps
        upload = self.config.upload_speed_mbps

        if self.config.vpn_enabled:
            download *= VPN_FACTOR
            upload *= VPN_FACTOR

        if self.config.connection_type == "ethernet":
            download *= ETHERNET_FACTOR
            upload *= ETHERNET_FACTOR

        if self.config.transfer_type == "p2p":
            download *= P2P_FACTOR
            upload *= P2P_FACTOR

        return download, upload

    def cloud_speed(self) -> float:
        return self.config.upload_speed_mbps * CLOUD_SPEED_FACTORS[self.config.cloud_provider]

    def estimate(self, files: Iterable[FileItem]) -> EstimationResult:
        selection: List[FileItem] = list(files)
        self._warn_degenerate_inputs()

        total_bytes = self.total_size_bytes(selection)
        final_size, final_unit = convert_from_bytes(total_bytes)
        download_speed, upload_speed = self.effective_speeds()
        latency = self.config.network_latency_ms

        result = EstimationResult(
            download_time_seconds=calculate_time_with_latency(final_size, download_speed, latency),
            upload_time_seconds=calculate_time_with_latency(final_size, upload_speed, latency),
            cloud_upload_time_seconds=calculate_time_with_latency(final_size, self.cloud_speed(), latency),
            total_size_bytes=total_bytes,
            normalized_size=final_size,
            normalized_unit=final_unit,
        )
        LOGGER.debug(
            "Estimated %d file(s), %s %s: down %.6fs / up %.6fs / cloud %.6fs",
            len(selection),
            final_size,
            final_unit,
            result.download_time_seconds,
            result.upload_time_seconds,
            result.cloud_upload_time_seconds,
        )
        return result

    def _warn_degenerate_inputs(self) -> None:
        config = self.config
        if config.compression_enabled and not 0 <= config.compression_rate_percent <= 100:
            LOGGER.warning(
                "Compression rate %s%% is outside [0, 100]; estimate will be degenerate",
                config.compression_rate_percent,
            )
        if config.download_speed_mbps <= 0 or config.upload_speed_mbps <= 0:
            LOGGER.warning(
                "Non-positive speed (down %s / up %s Mbps); estimate will be infinite or NaN",
                config.download_speed_mbps,
                config.upload_speed_mbps,
            )


def estimate_transfer(files: Iterable[FileItem], config: EstimatorConfig) -> EstimationResult:
    return TransferEstimator(config).estimate(files)
