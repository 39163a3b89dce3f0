"""Config models - typed view of config/default.toml and env overrides."""

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """Completion provider selection and sampling settings."""

    provider: str = "openai_compatible"  # "openai_compatible" | "ollama"
    model: str = "gpt-4.1"
    temperature: float = Field(0.7, ge=0.0, le=2.0)


class OpenAICompatibleConfig(BaseModel):
    """OpenAI, LM Studio, vLLM, LocalAI - OpenAI-compatible API."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    # OpenAI proper refuses anonymous calls; local servers usually don't need a key.
    require_api_key: bool = True
    # None = no timeout. A hung provider call stalls the flow.
    timeout: float | None = None


class OllamaConfig(BaseModel):
    """Ollama connection configuration."""

    host: str = "http://localhost:11434"
    timeout: float | None = None
    num_ctx: int | None = None
    num_predict: int | None = None


class EmbeddingsConfig(BaseModel):
    """Embeddings for semantic search."""

    model: str = "text-embedding-3-small"
    # Document embeddings requested at once by one search step.
    max_concurrency: int = Field(4, ge=1)


class VaultConfig(BaseModel):
    """Document store root."""

    path: str = "."
    extension: str = ".md"


class PersistenceConfig(BaseModel):
    """Where the embedding index, autorun registry and error log live."""

    data_dir: str = "output/autoflow"
    embedding_index_file: str = "embedding-index.json"
    autorun_file: str = "autorun.json"
    error_log_file: str = "logs/latest.log"


class FlowsConfig(BaseModel):
    """Flow execution settings."""

    autorun_on_startup: bool = True


class SecurityConfig(BaseModel):
    """Security settings."""

    cors_origins: list[str] = ["http://localhost:5173"]


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    openai_compatible: OpenAICompatibleConfig = OpenAICompatibleConfig()
    ollama: OllamaConfig = OllamaConfig()
    embeddings: EmbeddingsConfig = EmbeddingsConfig()
    vault: VaultConfig = VaultConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    flows: FlowsConfig = FlowsConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout. Rotation when file exceeds max_mb.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3
