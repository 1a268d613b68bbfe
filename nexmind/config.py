"""
Configuration for NexMind.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Value shipped in example .env files; treated as "no key"
PLACEHOLDER_API_KEY = "your_groq_api_key_here"


class LLMConfig(BaseModel):
    """LLM provider configuration (note analysis)."""

    provider: str = "openai"  # openai (any OpenAI-compatible endpoint), ollama
    model: str = "llama-3.1-70b-versatile"
    base_url: str = "https://api.groq.com/openai/v1"
    api_key: str | None = None
    temperature: float = 0.2
    max_tokens: int = 1500
    timeout: float = 15.0

    @property
    def is_configured(self) -> bool:
        """Whether the LLM stage can run at all."""
        if self.provider == "ollama":
            return True
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY


class EmbedderConfig(BaseModel):
    """Embedder configuration."""

    provider: str = "hash"  # hash, openai, ollama
    model: str = "nomic-embed-text"
    base_url: str = "http://localhost:11434"
    api_key: str | None = None
    timeout: float = 30.0
    # Hash embedder dimension; external providers auto-detect when None
    dimension: int | None = 128


class StorageConfig(BaseModel):
    """Persistence configuration."""

    backend: str = "file"  # file, sqlite, memory
    data_dir: str = "data"
    sqlite_path: str = "data/nexmind.db"
    # Notes live in a relational table (wide schema) instead of the key-value blob
    notes_table: bool = False
    user_id: str = "local"


class GraphConfig(BaseModel):
    """Knowledge graph configuration."""

    similarity_threshold: float = 0.6
    top_similar: int = 3


class AutomationConfig(BaseModel):
    """Suggestion scheduler configuration."""

    enabled: bool = True
    interval_seconds: float = 60.0
    initial_delay_seconds: float = 5.0
    duplicate_threshold: float = 0.88
    outdated_days: int = 90
    suggestion_max_age_days: int = 30


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    automation: AutomationConfig = Field(default_factory=AutomationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            NEXMIND_LLM_PROVIDER: LLM provider (openai, ollama)
            NEXMIND_LLM_MODEL: LLM model name
            NEXMIND_LLM_BASE_URL: LLM base URL (OpenAI-compatible endpoint)
            NEXMIND_LLM_API_KEY: LLM API key (GROQ_API_KEY is also accepted)
            NEXMIND_EMBEDDER_PROVIDER: Embedder provider (hash, openai, ollama)
            NEXMIND_EMBEDDER_MODEL: Embedder model name
            NEXMIND_EMBEDDER_API_KEY: Embedder API key (for OpenAI)
            NEXMIND_STORAGE_BACKEND: Storage backend (file, sqlite, memory)
            NEXMIND_DATA_DIR: Directory for the file backend
            NEXMIND_SQLITE_PATH: Database path for the sqlite backend
            NEXMIND_GRAPH_SIMILARITY_THRESHOLD: Minimum similarity for similarTo edges
            NEXMIND_AUTOMATION_ENABLED: Run the suggestion scheduler
            NEXMIND_AUTOMATION_INTERVAL: Seconds between scheduler runs
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None or value == "":
                return default
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            llm=LLMConfig(
                provider=get_env("NEXMIND_LLM_PROVIDER", "openai"),
                model=get_env("NEXMIND_LLM_MODEL", "llama-3.1-70b-versatile"),
                base_url=get_env("NEXMIND_LLM_BASE_URL", "https://api.groq.com/openai/v1"),
                api_key=get_env("NEXMIND_LLM_API_KEY") or get_env("GROQ_API_KEY"),
                temperature=get_env("NEXMIND_LLM_TEMPERATURE", 0.2),
                max_tokens=get_env("NEXMIND_LLM_MAX_TOKENS", 1500),
                timeout=get_env("NEXMIND_LLM_TIMEOUT", 15.0),
            ),
            embedder=EmbedderConfig(
                provider=get_env("NEXMIND_EMBEDDER_PROVIDER", "hash"),
                model=get_env("NEXMIND_EMBEDDER_MODEL", "nomic-embed-text"),
                base_url=get_env("NEXMIND_EMBEDDER_BASE_URL", "http://localhost:11434"),
                api_key=get_env("NEXMIND_EMBEDDER_API_KEY"),
                timeout=get_env("NEXMIND_EMBEDDER_TIMEOUT", 30.0),
                dimension=get_env("NEXMIND_EMBEDDER_DIMENSION", 128),
            ),
            storage=StorageConfig(
                backend=get_env("NEXMIND_STORAGE_BACKEND", "file"),
                data_dir=get_env("NEXMIND_DATA_DIR", "data"),
                sqlite_path=get_env("NEXMIND_SQLITE_PATH", "data/nexmind.db"),
                notes_table=get_env("NEXMIND_NOTES_TABLE", False),
                user_id=get_env("NEXMIND_USER_ID", "local"),
            ),
            graph=GraphConfig(
                similarity_threshold=get_env("NEXMIND_GRAPH_SIMILARITY_THRESHOLD", 0.6),
                top_similar=get_env("NEXMIND_GRAPH_TOP_SIMILAR", 3),
            ),
            automation=AutomationConfig(
                enabled=get_env("NEXMIND_AUTOMATION_ENABLED", True),
                interval_seconds=get_env("NEXMIND_AUTOMATION_INTERVAL", 60.0),
                initial_delay_seconds=get_env("NEXMIND_AUTOMATION_INITIAL_DELAY", 5.0),
                duplicate_threshold=get_env("NEXMIND_AUTOMATION_DUPLICATE_THRESHOLD", 0.88),
                outdated_days=get_env("NEXMIND_AUTOMATION_OUTDATED_DAYS", 90),
                suggestion_max_age_days=get_env("NEXMIND_SUGGESTION_MAX_AGE_DAYS", 30),
            ),
            logging=LoggingConfig(
                level=get_env("NEXMIND_LOG_LEVEL", "INFO"),
                log_to_file=get_env("NEXMIND_LOG_TO_FILE", True),
                log_dir=get_env("NEXMIND_LOG_DIR", "logs"),
                file_rotation=get_env("NEXMIND_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("NEXMIND_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("NEXMIND_LOG_COMPRESSION", "zip"),
                serialize=get_env("NEXMIND_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        A section taken from the environment replaces the YAML section only
        when it differs from the defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        config_dict: dict[str, Any] = {}
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}

        env_config = cls.from_env(env_file)
        default = cls()

        for section in ("llm", "embedder", "storage", "graph", "automation", "logging"):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                config_dict[section] = env_section.model_dump()

        return cls(**config_dict) if config_dict else env_config


# Default config instance
default_config = Config()
