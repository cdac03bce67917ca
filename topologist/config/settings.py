"""Configuration settings for topologist."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables at module level
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class Settings:
    """Main configuration settings."""

    max_phase_size: int
    preferred_files_per_phase: int
    git_timeout: float
    cache_ttl_seconds: int
    state_dir_name: str
    large_file_threshold: int
    commit_trailer: str

    @classmethod
    def from_env(cls) -> "Settings":
        """Create configuration from environment variables."""
        return cls(
            max_phase_size=int(os.getenv("TOPOLOGIST_MAX_PHASE_SIZE", "1500")),
            preferred_files_per_phase=int(os.getenv("TOPOLOGIST_FILES_PER_PHASE", "15")),
            git_timeout=float(os.getenv("TOPOLOGIST_GIT_TIMEOUT", "60")),
            cache_ttl_seconds=int(os.getenv("TOPOLOGIST_CACHE_TTL", "3600")),
            state_dir_name=os.getenv("TOPOLOGIST_STATE_DIR", ".topologist"),
            large_file_threshold=1_000_000,
            commit_trailer="Organized-By: topologist commit phases",
        )


# Global configuration instance
settings = Settings.from_env()
