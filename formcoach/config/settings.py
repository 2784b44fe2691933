"""
Server Configuration
====================

Configuration settings for the form analysis core and its HTTP host.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class ServerConfig:
    """Server configuration settings."""
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False
    threaded: bool = True
    log_level: str = "INFO"


@dataclass
class AnalyzerConfig:
    """Analyzer configuration settings."""
    # Landmarks below this visibility count as missing
    visibility_threshold: float = 0.5

    # Rolling buffers (~2s at 30 fps)
    frame_buffer_size: int = 60
    velocity_buffer_size: int = 60
    score_buffer_size: int = 10

    # Coarse phase scoring
    phase_check_penalty: float = 15.0

    # Temporal metrics
    velocity_min_samples: int = 5
    rom_min_frames: int = 10
    fatigue_warning_threshold: float = 0.5


def get_server_config() -> ServerConfig:
    """Get server configuration from environment."""
    return ServerConfig(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        debug=os.getenv("DEBUG", "false").lower() == "true",
        threaded=True,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def get_analyzer_config() -> AnalyzerConfig:
    """Get analyzer configuration from environment."""
    return AnalyzerConfig(
        visibility_threshold=float(os.getenv("VISIBILITY_THRESHOLD", "0.5")),
        frame_buffer_size=int(os.getenv("FRAME_BUFFER_SIZE", "60")),
        velocity_buffer_size=int(os.getenv("VELOCITY_BUFFER_SIZE", "60")),
        score_buffer_size=int(os.getenv("SCORE_BUFFER_SIZE", "10")),
        phase_check_penalty=float(os.getenv("PHASE_CHECK_PENALTY", "15")),
        velocity_min_samples=int(os.getenv("VELOCITY_MIN_SAMPLES", "5")),
        rom_min_frames=int(os.getenv("ROM_MIN_FRAMES", "10")),
        fatigue_warning_threshold=float(os.getenv("FATIGUE_WARNING_THRESHOLD", "0.5")),
    )
