from pydantic_settings import BaseSettings
from typing import List, Any, Optional
import json
from pathlib import Path


def parse_pattern_list(v: Any) -> List[str]:
    """Parse path patterns from string or list"""
    if v is None:
        return []
    if isinstance(v, (list, tuple)):
        return [str(p).strip() for p in v if str(p).strip()]
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return [str(p).strip() for p in json.loads(v) if str(p).strip()]
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [p.strip() for p in v.split(',') if p.strip()]
    return []


class Settings(BaseSettings):
    """Engine settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "SolForge"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_VERSION: str = "v1"

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # Empty disables the rotating file handler

    # ==========================================
    # Directive format
    # ==========================================
    ARTIFACT_TAG: str = "forgeArtifact"
    ACTION_TAG: str = "forgeAction"

    # ==========================================
    # Boilerplate & merge policy
    # ==========================================
    BOILERPLATE_PATH: str = ""  # Empty means use the packaged bundle
    BOILERPLATE_PATTERNS_STR: str = ""  # Empty means built-in defaults
    PROTECTED_PATH_PATTERNS_STR: str = ""  # Empty means latest write always wins

    # ==========================================
    # Chat backend (streams model output)
    # ==========================================
    CHAT_API_BASE_URL: str = "http://localhost:3001"
    CHAT_REQUEST_TIMEOUT: int = 300  # 5 minutes for long generations
    CHAT_CONNECT_TIMEOUT: int = 30

    # ==========================================
    # Local sandbox
    # ==========================================
    SANDBOX_ROOT: str = ""  # Empty means a fresh temp directory per sandbox
    SANDBOX_COMMAND_TIMEOUT: int = 600  # npm install can be slow
    DEV_SERVER_READY_TIMEOUT: int = 120

    @property
    def BOILERPLATE_PATTERNS(self) -> Optional[List[str]]:
        """Boilerplate path patterns, None when the built-in list applies"""
        patterns = parse_pattern_list(self.BOILERPLATE_PATTERNS_STR)
        return patterns or None

    @property
    def PROTECTED_PATH_PATTERNS(self) -> List[str]:
        """Paths that later AI turns may never overwrite"""
        return parse_pattern_list(self.PROTECTED_PATH_PATTERNS_STR)

    @property
    def SANDBOX_DIR(self) -> Optional[Path]:
        return Path(self.SANDBOX_ROOT) if self.SANDBOX_ROOT else None

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Create settings instance
settings = Settings()
