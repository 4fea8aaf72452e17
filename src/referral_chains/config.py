"""
# Configuration Module

Centralised settings for the Referral Chains API, loaded with **Pydantic Settings**.

## Precedence

- **Tier 1 (Highest)**: Environment variables (e.g., `export MONGODB_URL="..."`)
- **Tier 2**: Config file named by `REFERRAL_CHAINS_CONFIG_PATH`, or `.env` in the project root
- **Tier 3 (Lowest)**: Defaults hardcoded in the `Settings` class

## Groups

- **Server**: `HOST`, `PORT`, `DEBUG`, `DEFAULT_LOG_LEVEL`
- **MongoDB**: connection string, database, timeouts, pool sizes, optional credentials
- **Collections**: registry, users, media and the node collection prefix
- **Query limits**: top-N size and pagination defaults

## Usage

```python
from referral_chains.config import settings

prefix = settings.NODE_COLLECTION_PREFIX  # "treeNodes"
```
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "REFERRAL_CHAINS_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path.

    Checks, in order:
    1.  **Environment Variable**: `REFERRAL_CHAINS_CONFIG_PATH` (if set and the file exists).
    2.  **Dotenv Config**: `.env` file in the project root directory.
    3.  **Fallback**: `None`, which means environment-variable-only mode.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    Values are read from environment variables or the discovered config file. Validators
    reject an empty MongoDB URL and non-positive query limits at startup rather than at
    the first request.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    DEFAULT_LOG_LEVEL: str = "INFO"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "10D"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_MIN_POOL_SIZE: int = 5
    MONGODB_MAX_POOL_SIZE: int = 50

    # Authentication (optional)
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Collection layout
    CHAINS_COLLECTION: str = "chains"
    USERS_COLLECTION: str = "users"
    MEDIA_COLLECTION: str = "media"
    NODE_COLLECTION_PREFIX: str = "treeNodes"

    # Query limits
    TOP_NODES_LIMIT: int = 10
    DEFAULT_PAGE: int = 1
    DEFAULT_PAGE_LIMIT: int = 10

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """
        Validates that the MongoDB URL is not empty.

        Raises:
            ValueError: If the URL is empty or whitespace.
        """
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .env and not empty!")
        return v

    @field_validator(
        "TOP_NODES_LIMIT",
        "DEFAULT_PAGE",
        "DEFAULT_PAGE_LIMIT",
        "MONGODB_MIN_POOL_SIZE",
        "MONGODB_MAX_POOL_SIZE",
        mode="before",
    )
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """
        Validates that numeric settings are positive integers.

        Raises:
            ValueError: If the value is not a positive integer.
        """
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator("NODE_COLLECTION_PREFIX", mode="before")
    @classmethod
    def validate_collection_prefix(cls, v: Any, info: Any) -> Any:
        """Node collection names are built from this prefix, so it cannot be blank."""
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must not be empty")
        return v


# Global settings instance
settings: Settings = Settings()
