"""Configuration settings for Kronika."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KRONIKA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Token Index ──────────────────────────────────────────────────────────
    # Words of multi-word names shorter than this are not indexed on their own
    min_token_length: int = 3

    # ── Name Resolver ────────────────────────────────────────────────────────
    # Stripping a case ending must leave at least this many characters
    min_stem_length: int = 3

    # Queries shorter than this get the short-query edit budget
    short_query_length: int = 5
    short_query_max_distance: int = 1

    # Longer queries allow floor(len / divisor) edits
    fuzzy_length_divisor: int = 3

    # Use the BK-tree for approximate lookups (full scan otherwise)
    use_search_tree: bool = True

    # ── Entity Store ─────────────────────────────────────────────────────────
    parallel_source_load: bool = False
    source_load_workers: int = 4

    # Logging level used by the CLI
    log_level: str = "WARNING"


settings = Settings()
