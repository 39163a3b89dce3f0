"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from autoflow.domain.ports.config import (
    AppConfig,
    EmbeddingsConfig,
    FlowsConfig,
    LLMConfig,
    OllamaConfig,
    OpenAICompatibleConfig,
    PersistenceConfig,
    SecurityConfig,
    ServerConfig,
    VaultConfig,
)

logger = logging.getLogger(__name__)


def _load_toml(path: Path) -> dict:
    """Load TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    if provider := os.getenv("LLM_PROVIDER"):
        config.setdefault("llm", {})["provider"] = provider
    if model := os.getenv("LLM_MODEL"):
        config.setdefault("llm", {})["model"] = model
    if temperature := os.getenv("LLM_TEMPERATURE"):
        try:
            config.setdefault("llm", {})["temperature"] = float(temperature)
        except ValueError:
            logger.warning("Invalid LLM_TEMPERATURE env value: %r, ignoring", temperature)
    if key := os.getenv("OPENAI_API_KEY"):
        config.setdefault("openai_compatible", {})["api_key"] = key.strip()
    if base_url := os.getenv("OPENAI_BASE_URL"):
        config.setdefault("openai_compatible", {})["base_url"] = base_url
    if host := os.getenv("OLLAMA_HOST"):
        config.setdefault("ollama", {})["host"] = host
    if model := os.getenv("EMBEDDINGS_MODEL"):
        config.setdefault("embeddings", {})["model"] = model
    if vault := os.getenv("VAULT_PATH"):
        config.setdefault("vault", {})["path"] = vault.strip()
    if data_dir := os.getenv("AUTOFLOW_DATA_DIR"):
        config.setdefault("persistence", {})["data_dir"] = data_dir.strip()
    if port := os.getenv("PORT"):
        try:
            config.setdefault("server", {})["port"] = int(port)
        except ValueError:
            logger.warning("Invalid PORT env value: %r, ignoring", port)
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    return config


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists.
    """
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent.parent.parent / "config"

    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        dev_config = _load_toml(dev_path)
        for key, value in dev_config.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                config[key] = {**config[key], **value}
            else:
                config[key] = value

    config = _apply_env_overrides(config)

    logging_raw = config.get("logging") or {}

    return AppConfig(
        server=ServerConfig(**(config.get("server") or {})),
        llm=LLMConfig(**(config.get("llm") or {})),
        openai_compatible=OpenAICompatibleConfig(**(config.get("openai_compatible") or {})),
        ollama=OllamaConfig(**(config.get("ollama") or {})),
        embeddings=EmbeddingsConfig(**(config.get("embeddings") or {})),
        vault=VaultConfig(**(config.get("vault") or {})),
        persistence=PersistenceConfig(**(config.get("persistence") or {})),
        flows=FlowsConfig(**(config.get("flows") or {})),
        security=SecurityConfig(**(config.get("security") or {})),
        log_level=logging_raw.get("level", "INFO"),
        log_file=(logging_raw.get("file") or "").strip(),
        log_rotation_max_mb=int(logging_raw.get("log_rotation_max_mb", 5)),
        log_rotation_backups=int(logging_raw.get("log_rotation_backups", 3)),
    )
