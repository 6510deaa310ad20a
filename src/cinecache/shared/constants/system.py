"""
System Constants

File system locations and defaults for the cinecache runtime.
"""


class FileSystem:
    """File system constants."""

    CONFIG_DIRECTORY = "config"
    CONFIG_FILE = "config/cinecache.toml"
    ENV_FILE = ".env"
    DATA_DIRECTORY = "data"
    CACHE_DB_FILE = "data/cache.db"
    CONTENT_DB_URL = "sqlite:///data/catalog.db"


class Backends:
    """Cache backend identifiers."""

    MEMORY = "memory"
    SQLITE = "sqlite"
    REDIS = "redis"

    ALL: tuple[str, ...] = (MEMORY, SQLITE, REDIS)
    DEFAULT_REDIS_URL = "redis://localhost:6379/0"
    DEFAULT_KEY_PREFIX = "cinecache"
    DEFAULT_TIMEOUT_SECONDS = 0.5


class WarmerDefaults:
    """Cache warmer defaults."""

    INTERVAL_SECONDS = 3600
    TOP_N = 20
    RECOMMENDATION_TOP_N = 10
    RECOMMENDATION_LIMIT = 10
    PRELOAD_TOP_N = 10
    MAX_WORKERS = 4
    COMMON_QUERIES: tuple[str, ...] = (
        "action",
        "comedy",
        "drama",
        "thriller",
        "horror",
        "marvel",
        "disney",
        "netflix",
        "hbo",
    )


class CLIDefaults:
    """CLI defaults."""

    APP_NAME = "cinecache"
    APP_DESCRIPTION = "Cache and query-projection administration for the catalog."
    VERSION = "0.1.0"
    EXIT_SUCCESS = 0
    EXIT_ERROR = 1
