"""Environment-based configuration for LensLabel."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from LENSLABEL_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LENSLABEL_",
        case_sensitive=False,
        protected_namespaces=(),
    )

    # Bundled assets
    model_path: Path = Path("assets/mobilenet_v1_1.0_224_quant.onnx")
    labels_path: Path = Path("assets/labels.txt")

    # Classification
    input_size: int = Field(default=224, ge=1)
    confidence_threshold: int = Field(default=20, ge=0, le=100)

    # Frame sampling
    sample_interval: int = Field(default=30, ge=1)
    sample_marker: Literal["counter", "timestamp_ms"] = "counter"

    # Camera
    camera_index: int = Field(default=0, ge=0)
    camera_authorized: bool = True

    # ONNX Runtime
    device: Literal["cpu", "cuda"] = "cpu"
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)

    log_level: str = "INFO"


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
