"""
Configuration schema for the DogStatsD reading and analysis pipeline.

Keep this lean and opinionated: only the knobs the readers and the
aggregator actually consult. Magic byte values live here (not as
module-level state in the readers) so a caller can point the decoder at a
differently-branded capture format without patching code.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReaderConfig(BaseModel):
    """
    Settings for turning a byte source into raw DogStatsD message lines.
    """

    model_config = ConfigDict(frozen=True)

    # === Replay container framing ===
    replay_magic: bytes = Field(
        default=bytes.fromhex("d474d060"),
        min_length=1,
        description="Marker that opens a replay container file.",
    )
    replay_versions: tuple[int, ...] = Field(
        default=(3,),
        min_length=1,
        description="Container format versions the decoder accepts.",
    )
    max_payload_len: int = Field(
        default=16 * 1024 * 1024,
        ge=1,
        description="A frame claiming a larger payload is treated as a framing error.",
    )

    # === Compression ===
    zstd_magic: bytes = Field(
        default=bytes.fromhex("28b52ffd"),
        min_length=1,
        description="Leading bytes of a zstd frame.",
    )
    allow_compression: bool = Field(
        default=True,
        description="Unwrap zstd-compressed input. When False compressed bytes are read as text.",
    )

    # === Other source kinds ===
    allow_pcap: bool = Field(
        default=True,
        description="Extract UDP payloads from PCAP/PCAPNG captures.",
    )
    chunk_size: int = Field(
        default=64 * 1024,
        ge=1,
        description="Read size used for raw newline-delimited text.",
    )
    utf8_errors: Literal["replace", "strict"] = Field(
        default="replace",
        description="How invalid UTF-8 inside a message is handled.",
    )


class AnalysisConfig(BaseModel):
    """
    Settings for the streaming statistics aggregator and the report.
    """

    model_config = ConfigDict(frozen=True)

    relative_accuracy: float = Field(
        default=0.01,
        gt=0.0,
        lt=1.0,
        description="Relative error bound of every quantile sketch.",
    )
    bin_limit: int = Field(
        default=2048,
        ge=16,
        description="Maximum number of bins per sketch store; lowest bins collapse beyond it.",
    )
    cardinality_precision: int = Field(
        default=14,
        ge=4,
        le=16,
        description="HyperLogLog precision p (2**p registers) for context and unique-tag counts.",
    )
    quantiles: tuple[float, ...] = Field(
        default=(0.5, 0.9, 0.99),
        min_length=1,
        description="Quantiles printed for each tracked attribute.",
    )

    @field_validator("quantiles")
    @classmethod
    def _quantiles_in_range(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        for q in v:
            if not 0.0 <= q <= 1.0:
                raise ValueError(f"quantile {q} outside [0, 1]")
        return v
