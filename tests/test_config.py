import pathlib
import sys

import yaml

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aspire_api.config_loader import Config


def test_missing_file_uses_defaults(tmp_path):
    cfg = Config(tmp_path / "missing.yaml")

    assert cfg.server_port == 4000
    assert cfg.cache_max_entries == 512
    assert cfg.token_expire_hours == 8
    assert cfg.has_cloudinary_credentials is False


def test_partial_file_falls_back_per_key(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"api": {"cache": {"max_entries": 64}, "server": {"port": 9000}}}))

    cfg = Config(path)

    assert cfg.cache_max_entries == 64
    assert cfg.server_port == 9000
    assert cfg.server_host == "0.0.0.0"
    assert cfg.max_upload_bytes == 100 * 1024 * 1024


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "from-env")
    monkeypatch.setenv("PORT", "8123")
    monkeypatch.setenv("BASE_URL", "https://api.example.com/")

    cfg = Config(tmp_path / "missing.yaml")

    assert cfg.jwt_secret == "from-env"
    assert cfg.server_port == 8123
    assert cfg.base_url == "https://api.example.com"


def test_config_path_env_var(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text(yaml.safe_dump({"api": {"database": {"path": "/data/cms.db"}}}))
    monkeypatch.setenv("CONFIG_PATH", str(path))

    assert Config().database_path == "/data/cms.db"


def test_cloudinary_credentials_detected(tmp_path, monkeypatch):
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")

    assert Config(tmp_path / "missing.yaml").has_cloudinary_credentials is True


def test_invalid_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("api: [unclosed")

    assert Config(path).server_port == 4000
