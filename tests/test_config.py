"""Tests for configuration loading and environment fallback."""

import pytest

from eda_bridge.config import (
    apply_env_defaults,
    get_env,
    get_env_bool,
    get_env_duration,
    get_env_int,
    get_env_with_default,
    load_config,
)
from eda_bridge.errors import ConfigError
from eda_bridge.models import ProviderConfig, parse_duration


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (15, 15.0),
            (2.5, 2.5),
            ("15", 15.0),
            ("15s", 15.0),
            ("500ms", 0.5),
            ("1m30s", 90.0),
            ("2h", 7200.0),
            ("1.5s", 1.5),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "abc", "10x", "s10", True, None])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestEnvHelpers:
    def test_get_env(self):
        assert get_env("A", {"A": "1"}) == "1"
        with pytest.raises(ConfigError, match="unable to find environment variable: B"):
            get_env("B", {"B": ""})

    def test_get_env_with_default(self):
        assert get_env_with_default("A", "d", {"A": "x"}) == "x"
        assert get_env_with_default("A", "d", {"A": ""}) == "d"
        assert get_env_with_default("A", "d", {}) == "d"

    def test_get_env_bool(self):
        assert get_env_bool("B", False, {"B": "true"}) is True
        assert get_env_bool("B", True, {"B": "0"}) is False
        assert get_env_bool("B", True, {"B": "maybe"}) is True

    def test_get_env_int(self):
        assert get_env_int("N", 3, {"N": "7"}) == 7
        assert get_env_int("N", 3, {"N": "seven"}) == 3

    def test_get_env_duration(self):
        assert get_env_duration("D", 5.0, {"D": "30s"}) == 30.0
        assert get_env_duration("D", 5.0, {"D": "later"}) == 5.0


class TestApplyEnvDefaults:
    def test_defaults(self):
        cfg = apply_env_defaults(ProviderConfig(), {})

        assert cfg.base_url == ""
        assert cfg.kc_realm == "master"
        assert cfg.kc_client_id == "admin-cli"
        assert cfg.kc_username == "admin"
        assert cfg.eda_realm == "eda"
        assert cfg.eda_client_id == "eda"
        assert cfg.eda_client_secret == ""
        assert cfg.rest_timeout == 15.0
        assert cfg.rest_retries == 3
        assert cfg.rest_retry_interval == 5.0
        assert cfg.tls_skip_verify is False

    def test_environment_values(self):
        env = {
            "BASE_URL": "https://eda.local",
            "KEYCLOAK_MASTER_REALM": "kc",
            "CLIENT_SECRET": "sec",
            "REALM": "other",
            "TLS_SKIP_VERIFY": "true",
            "REST_TIMEOUT": "30s",
            "REST_RETRIES": "1",
        }
        cfg = apply_env_defaults(ProviderConfig(), env)

        assert cfg.base_url == "https://eda.local"
        assert cfg.kc_realm == "kc"
        assert cfg.eda_client_secret == "sec"
        assert cfg.eda_realm == "other"
        assert cfg.tls_skip_verify is True
        assert cfg.rest_timeout == 30.0
        assert cfg.rest_retries == 1

    def test_explicit_values_win(self):
        cfg = apply_env_defaults(ProviderConfig(base_url="https://explicit"), {"BASE_URL": "https://env"})
        assert cfg.base_url == "https://explicit"

    def test_input_config_is_untouched(self):
        cfg = ProviderConfig()
        apply_env_defaults(cfg, {"BASE_URL": "https://env"})
        assert cfg.base_url == ""


class TestLoadConfig:
    def test_yaml_with_camel_case_keys(self, tmp_path):
        path = tmp_path / "provider.yaml"
        path.write_text(
            "baseURL: https://eda.local\n"
            "edaClientSecret: abc\n"
            "restTimeout: 10s\n"
            "tlsSkipVerify: true\n"
        )

        cfg = load_config(path, env={})

        assert cfg.base_url == "https://eda.local"
        assert cfg.eda_client_secret == "abc"
        assert cfg.rest_timeout == 10.0
        assert cfg.tls_skip_verify is True
        assert cfg.eda_realm == "eda"

    def test_yaml_with_snake_case_keys(self, tmp_path):
        path = tmp_path / "provider.yaml"
        path.write_text("base_url: https://eda.local\nrest_retries: 7\n")

        cfg = load_config(path, env={})

        assert cfg.rest_retries == 7

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path, env={"BASE_URL": "https://x"}).base_url == "https://x"

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(path, env={})

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("bogus: 1\n")
        with pytest.raises(ConfigError, match="Invalid provider configuration"):
            load_config(path, env={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Failed to read config file"):
            load_config(tmp_path / "nope.yaml", env={})

    def test_dotenv_under_environment(self, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("BASE_URL=https://from-dotenv\nREALM=dotenv-realm\n")

        cfg = load_config(env={"REALM": "env-realm"}, dotenv_path=dotenv)

        assert cfg.base_url == "https://from-dotenv"
        assert cfg.eda_realm == "env-realm"

    def test_missing_dotenv(self, tmp_path):
        with pytest.raises(ConfigError, match="Dotenv file not found"):
            load_config(env={}, dotenv_path=tmp_path / ".env")
