"""
Configuration loader for the Aspire CMS API.

Looks for config.yaml in this order:
1. Explicit path passed to Config
2. Environment variable CONFIG_PATH
3. ./config.yaml (local development)
4. Falls back to default config

Secrets and deployment-specific values can be overridden with environment
variables (JWT_SECRET, DATABASE_PATH, BASE_URL, SMTP_*, CLOUDINARY_*).
"""

import os
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "api": {
        "server": {"host": "0.0.0.0", "port": 4000},
        "database": {"path": "./aspire.db"},
        "auth": {
            "jwt_secret": "aspire_design_lab_secret_key",
            "token_expire_hours": 8,
            "default_admin_password": "changeme",
        },
        "cache": {"max_entries": 512},
        "media": {
            "base_url": "http://localhost:4000",
            "upload_dir": "./uploads",
            "max_upload_mb": 100,
        },
        "email": {
            "smtp_host": "",
            "smtp_port": 587,
            "smtp_user": "",
            "smtp_password": "",
            "from_email": "noreply@aspirearchitecture.com",
            "use_tls": True,
        },
        "cloudinary": {"cloud_name": "", "api_key": "", "api_secret": "", "folder": "aspire-arch"},
        "cors": {
            "origins": [
                "http://localhost:3000",
                "http://localhost:5173",
                "http://127.0.0.1:3000",
                "http://localhost:4000",
            ],
            "origin_regex": r"https://.*\.(vercel\.app|railway\.app|onrender\.com)",
        },
    }
}


class Config:
    def __init__(self, config_path: str | Path | None = None):
        # Determine config path in order of priority
        if config_path:
            self.config_path = Path(config_path)
        elif os.getenv("CONFIG_PATH"):
            self.config_path = Path(os.getenv("CONFIG_PATH"))
        elif Path("./config.yaml").exists():
            self.config_path = Path("./config.yaml")
        else:
            # No config found, will use defaults
            self.config_path = None

        self._config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """
        Load configuration from the YAML file.

        Returns default config if file not found or unreadable.
        """
        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
                    print(f"✓ Loaded config from: {self.config_path}")
                    return config_data
            except (OSError, yaml.YAMLError) as e:
                print(f"✗ Error loading config from {self.config_path}: {e}")
        else:
            print("⚠ Config file not found, using defaults")
            if self.config_path:
                print(f"  Tried: {self.config_path}")

        return DEFAULT_CONFIG

    def _section(self, name: str) -> dict[str, Any]:
        section = self._config.get("api", {}).get(name)
        return section if isinstance(section, dict) else {}

    def _value(self, section: str, key: str) -> Any:
        return self._section(section).get(key, DEFAULT_CONFIG["api"][section][key])

    # =========================================================================
    # Server and storage
    # =========================================================================

    @property
    def server_host(self) -> str:
        return self._value("server", "host")

    @property
    def server_port(self) -> int:
        return int(os.getenv("PORT") or self._value("server", "port"))

    @property
    def database_path(self) -> str:
        return os.getenv("DATABASE_PATH") or self._value("database", "path")

    # =========================================================================
    # Authentication
    # =========================================================================

    @property
    def jwt_secret(self) -> str:
        return os.getenv("JWT_SECRET") or self._value("auth", "jwt_secret")

    @property
    def token_expire_hours(self) -> int:
        return int(self._value("auth", "token_expire_hours"))

    @property
    def default_admin_password(self) -> str:
        """Password given to the seeded ``admin`` account on first start."""
        return os.getenv("ADMIN_PASSWORD") or self._value("auth", "default_admin_password")

    # =========================================================================
    # Response cache
    # =========================================================================

    @property
    def cache_max_entries(self) -> int:
        """Maximum entries held by each cache tier (default 512)."""
        return int(self._value("cache", "max_entries"))

    # =========================================================================
    # Media and uploads
    # =========================================================================

    @property
    def base_url(self) -> str:
        """Public origin prepended to relative media paths."""
        return (os.getenv("BASE_URL") or self._value("media", "base_url")).rstrip("/")

    @property
    def upload_dir(self) -> Path:
        return Path(self._value("media", "upload_dir"))

    @property
    def max_upload_bytes(self) -> int:
        return int(self._value("media", "max_upload_mb")) * 1024 * 1024

    # =========================================================================
    # Outbound email (contact notifications)
    # =========================================================================

    @property
    def smtp_host(self) -> str:
        return os.getenv("SMTP_HOST") or self._value("email", "smtp_host")

    @property
    def smtp_port(self) -> int:
        return int(os.getenv("SMTP_PORT") or self._value("email", "smtp_port"))

    @property
    def smtp_user(self) -> str:
        return os.getenv("SMTP_USER") or self._value("email", "smtp_user")

    @property
    def smtp_password(self) -> str:
        return os.getenv("SMTP_PASSWORD") or self._value("email", "smtp_password")

    @property
    def from_email(self) -> str:
        return os.getenv("FROM_EMAIL") or self._value("email", "from_email")

    @property
    def smtp_use_tls(self) -> bool:
        return bool(self._value("email", "use_tls"))

    # =========================================================================
    # Cloudinary media CDN
    # =========================================================================

    @property
    def cloudinary_cloud_name(self) -> str:
        return os.getenv("CLOUDINARY_CLOUD_NAME") or self._value("cloudinary", "cloud_name")

    @property
    def cloudinary_api_key(self) -> str:
        return os.getenv("CLOUDINARY_API_KEY") or self._value("cloudinary", "api_key")

    @property
    def cloudinary_api_secret(self) -> str:
        return os.getenv("CLOUDINARY_API_SECRET") or self._value("cloudinary", "api_secret")

    @property
    def cloudinary_folder(self) -> str:
        return self._value("cloudinary", "folder")

    @property
    def has_cloudinary_credentials(self) -> bool:
        """Check if all Cloudinary credentials are configured."""
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )

    # =========================================================================
    # CORS
    # =========================================================================

    @property
    def cors_origins(self) -> list[str]:
        origins = self._value("cors", "origins")
        return origins if isinstance(origins, list) else []

    @property
    def cors_origin_regex(self) -> str | None:
        return self._value("cors", "origin_regex") or None


# Global config used when the application is started without an explicit one
config = Config()
