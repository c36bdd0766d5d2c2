import pytest

from utils.config_loader import _redact_config, load_config, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FASTLY_API_KEY", "FASTLY_API_TOKEN", "FASTLY_API_BASE_URL", "ACL_UPLOADER_CONFIG"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file():
    settings = load_settings()

    assert settings.api_key is None
    assert settings.batch_size == 50
    assert settings.batch_pause_seconds == 1.0
    assert settings.max_entries == 1000
    assert settings.default_comment == "Bulk upload"
    assert settings.api_base_url == "https://api.fastly.com"


def test_credential_read_at_call_time(monkeypatch):
    monkeypatch.setenv("FASTLY_API_KEY", "first")
    assert load_settings().api_key == "first"

    monkeypatch.setenv("FASTLY_API_KEY", "second")
    assert load_settings().api_key == "second"


def test_token_fallback(monkeypatch):
    monkeypatch.setenv("FASTLY_API_TOKEN", "token-value")

    assert load_settings().api_key == "token-value"


def test_yaml_overrides_and_ignores_file_credential(tmp_path, monkeypatch):
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("batch_size: 25\nbatch_pause_seconds: 2.5\napi_key: from-file\n")
    monkeypatch.setenv("ACL_UPLOADER_CONFIG", str(cfg))

    settings = load_settings()

    assert settings.batch_size == 25
    assert settings.batch_pause_seconds == 2.5
    assert settings.api_key is None


def test_base_url_from_env(monkeypatch):
    monkeypatch.setenv("FASTLY_API_BASE_URL", "http://localhost:9999")

    assert load_settings().api_base_url == "http://localhost:9999"


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_non_mapping_config(tmp_path):
    cfg = tmp_path / "list.yaml"
    cfg.write_text("- a\n- b\n")

    with pytest.raises(ValueError):
        load_config(str(cfg))


def test_redaction():
    redacted = _redact_config({"api_key": "secret", "nested": {"token": "t", "batch_size": 5}})

    assert redacted == {"api_key": "***REDACTED***", "nested": {"token": "***REDACTED***", "batch_size": 5}}


def test_settings_repr_hides_key(monkeypatch):
    monkeypatch.setenv("FASTLY_API_KEY", "very-secret")

    assert "very-secret" not in repr(load_settings())
