from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./data/local_rag.db"

    # Chunking (characters, not tokens)
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # OpenAI-compatible embeddings endpoint serving all-MiniLM-L6-v2 or similar
    embedding_base_url: str = "http://localhost:11434/v1/embeddings"
    embedding_model: str = "all-minilm"
    embedding_api_key: Optional[SecretStr] = None
    embedding_dimension: int = 384
    embedding_timeout: float = 60.0
    embedding_batch_size: int = 32

    search_default_k: int = 5

    load_model_on_startup: bool = False
    auto_index_on_upload: bool = False

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RAG_",
        extra="ignore",
    )

settings = Settings()
