import logging
import os
from functools import lru_cache
from typing import Any, Dict


class Settings:
    """Application settings read from the environment."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
        self.DEBUG = os.getenv("DEBUG", "False").lower() == "true"
        self.APP_NAME = "dot-device-console"
        self.APP_VERSION = "0.2.0"

        # Cloudflare Workers KV
        self.CLOUDFLARE_API_TOKEN = os.getenv("CLOUDFLARE_API_TOKEN", "")
        self.CLOUDFLARE_ACCOUNT_ID = os.getenv("CLOUDFLARE_ACCOUNT_ID", "")
        self.CLOUDFLARE_KV_NAMESPACE_ID = os.getenv("CLOUDFLARE_KV_NAMESPACE_ID", "")
        self.CLOUDFLARE_API_BASE_URL = os.getenv("CLOUDFLARE_API_BASE_URL", "https://api.cloudflare.com/client/v4")
        self.KV_REQUEST_TIMEOUT = int(os.getenv("KV_REQUEST_TIMEOUT", "30"))
        self.KV_LIST_PAGE_SIZE = int(os.getenv("KV_LIST_PAGE_SIZE", "1000"))
        self.KV_SCAN_CONCURRENCY = int(os.getenv("KV_SCAN_CONCURRENCY", "10"))

        # Dot text-push API
        self.NOTIFICATION_API_URL = os.getenv("NOTIFICATION_API_URL", "https://dot.mindreset.tech/api/open/text")
        self.NOTIFICATION_TIMEOUT = int(os.getenv("NOTIFICATION_TIMEOUT", "10"))
        self.NOTIFICATION_ENABLED = os.getenv("NOTIFICATION_ENABLED", "True").lower() == "true"

        self.API_PREFIX = "/dot/api/devices"

        self.CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
        self.CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
        self.CORS_HEADERS = ["Content-Type", "Authorization"]
        self.CORS_MAX_AGE = 86400

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    def load_dotenv(self, env_file: str = ".env") -> None:
        """
        Load environment variables from a .env file when one exists.

        Variables already present in the environment win over the file.

        Args:
            env_file: Path to the .env file
        """
        try:
            if os.path.exists(env_file):
                with open(env_file, "r") as f:
                    for line in f:
                        line = line.strip()
                        if not line or line.startswith("#"):
                            continue
                        if "=" in line:
                            key, value = line.split("=", 1)
                            if key and not os.getenv(key):
                                os.environ[key] = value
                self.__init__()
                self.logger.info(f"Environment loaded from {env_file}")
        except OSError as e:
            self.logger.error(f"Could not read .env file {env_file}: {e}")

    def missing_credentials(self) -> list:
        """Names of the KV credentials that are not configured."""
        required = {
            "CLOUDFLARE_API_TOKEN": self.CLOUDFLARE_API_TOKEN,
            "CLOUDFLARE_ACCOUNT_ID": self.CLOUDFLARE_ACCOUNT_ID,
            "CLOUDFLARE_KV_NAMESPACE_ID": self.CLOUDFLARE_KV_NAMESPACE_ID,
        }
        return [name for name, value in required.items() if not value]

    def get_public_config(self) -> Dict[str, Any]:
        """
        Non-secret configuration, safe to expose over the status API.

        Returns:
            Dict[str, Any]: Configuration with credentials reported only as configured or missing
        """
        missing = self.missing_credentials()
        return {
            "environment": self.ENVIRONMENT,
            "version": self.APP_VERSION,
            "kv": {
                "api_base_url": self.CLOUDFLARE_API_BASE_URL,
                "credentials": "missing" if missing else "configured",
                "missing": missing,
                "request_timeout_seconds": self.KV_REQUEST_TIMEOUT,
                "list_page_size": self.KV_LIST_PAGE_SIZE,
                "scan_concurrency": self.KV_SCAN_CONCURRENCY,
            },
            "notification": {
                "enabled": self.NOTIFICATION_ENABLED,
                "endpoint": self.NOTIFICATION_API_URL,
                "timeout_seconds": self.NOTIFICATION_TIMEOUT,
            },
        }

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in ["prod", "production"]


@lru_cache()
def get_settings() -> Settings:
    loaded = Settings()
    loaded.load_dotenv()
    return loaded


settings = get_settings()
