"""Configuration helpers for the outfit discovery service."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    """Configuration values for the discovery pipeline.

    Every third-party credential is optional. A source or image strategy whose
    credentials are missing simply reports no results, so the service can run
    with any subset of sources configured.
    """

    cj_api_endpoint: Optional[str] = None
    cj_api_key: Optional[str] = None
    shareasale_api_endpoint: Optional[str] = None
    shareasale_api_key: Optional[str] = None
    rakuten_api_endpoint: Optional[str] = None
    rakuten_api_key: Optional[str] = None
    shopstyle_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    google_search_engine_id: Optional[str] = None
    adapter_timeout: float = 15.0
    page_timeout: float = 20.0
    validation_timeout: float = 10.0
    commission_tolerance: float = 0.01
    cache_ttl_seconds: float = 15 * 60
    cache_max_entries: int = 50
    enable_listing_scrapers: bool = True
    max_alternatives: int = 3
    results_per_source: int = 20
    user_agent: str = DEFAULT_USER_AGENT
    environment: str | None = None

    def __post_init__(self) -> None:
        for name in ("adapter_timeout", "page_timeout", "validation_timeout"):
            if float(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.commission_tolerance < 0:
            raise ValueError("commission_tolerance must not be negative")
        if self.cache_ttl_seconds <= 0 or self.cache_max_entries <= 0:
            raise ValueError("cache_ttl_seconds and cache_max_entries must be positive")
        if self.max_alternatives < 0 or self.results_per_source <= 0:
            raise ValueError("max_alternatives and results_per_source are out of range")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that API keys can be
        injected by the runtime environment.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("APP_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            value = os.getenv(env_key, yaml_config.get(key, default))
            return value or default

        def get_float(key: str, default: float) -> float:
            return float(get_value(key, str(default)))

        def get_int(key: str, default: int) -> int:
            return int(get_value(key, str(default)))

        def get_bool(key: str, default: bool) -> bool:
            raw = get_value(key)
            if raw is None:
                return default
            return str(raw).strip().lower() in _TRUTHY

        return cls(
            cj_api_endpoint=get_value("cj_api_endpoint"),
            cj_api_key=get_value("cj_api_key"),
            shareasale_api_endpoint=get_value("shareasale_api_endpoint"),
            shareasale_api_key=get_value("shareasale_api_key"),
            rakuten_api_endpoint=get_value("rakuten_api_endpoint"),
            rakuten_api_key=get_value("rakuten_api_key"),
            shopstyle_api_key=get_value("shopstyle_api_key"),
            google_api_key=get_value("google_api_key"),
            google_search_engine_id=get_value("google_search_engine_id"),
            adapter_timeout=get_float("adapter_timeout", 15.0),
            page_timeout=get_float("page_timeout", 20.0),
            validation_timeout=get_float("validation_timeout", 10.0),
            commission_tolerance=get_float("commission_tolerance", 0.01),
            cache_ttl_seconds=get_float("cache_ttl_seconds", 15 * 60),
            cache_max_entries=get_int("cache_max_entries", 50),
            enable_listing_scrapers=get_bool("enable_listing_scrapers", True),
            max_alternatives=get_int("max_alternatives", 3),
            results_per_source=get_int("results_per_source", 20),
            user_agent=str(get_value("user_agent", DEFAULT_USER_AGENT)),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config

    def configured_sources(self) -> dict:
        """Report which keyed sources have credentials, for health checks."""

        return {
            "cj": bool(self.cj_api_endpoint and self.cj_api_key),
            "shareasale": bool(self.shareasale_api_endpoint and self.shareasale_api_key),
            "rakuten": bool(self.rakuten_api_endpoint and self.rakuten_api_key),
            "shopstyle": bool(self.shopstyle_api_key),
            "google_images": bool(self.google_api_key and self.google_search_engine_id),
            "listing_scrapers": self.enable_listing_scrapers,
        }
