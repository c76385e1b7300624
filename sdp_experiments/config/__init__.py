"""Configuration module for settings and logging."""

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

from sdp_experiments.config.settings import (  # noqa: E402
    ExperimentSettings,
    LoggingSettings,
    PathSettings,
    ResourceSettings,
    SdpSettings,
)

__all__ = [
    "ExperimentSettings",
    "LoggingSettings",
    "PathSettings",
    "ResourceSettings",
    "SdpSettings",
]
