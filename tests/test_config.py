from __future__ import annotations

from pathlib import Path

import pytest

from users_api.config import DEFAULT_EXEMPT_PREFIXES, Settings, load_settings, resolve_config_path


def test_defaults_fall_back_to_development_token() -> None:
    settings = load_settings(env={})

    assert settings.api_tokens == ("dev-token-123",)
    assert settings.environment == "production"
    assert settings.development is False
    assert settings.seed_demo_user is True
    assert settings.auth_exempt_prefixes == DEFAULT_EXEMPT_PREFIXES


def test_tokens_from_environment_are_split_and_trimmed() -> None:
    settings = load_settings(env={"API_TOKENS": " alpha , ,beta,, gamma "})
    assert settings.api_tokens == ("alpha", "beta", "gamma")


def test_config_file_takes_precedence_for_tokens(tmp_path: Path) -> None:
    config = tmp_path / "users_api.yaml"
    config.write_text(
        "api_tokens:\n  - from-file\n  - second\nenvironment: development\nseed_demo_user: false\n",
        encoding="utf-8",
    )

    settings = load_settings(config, env={"API_TOKENS": "from-env"})

    assert settings.api_tokens == ("from-file", "second")
    assert settings.development is True
    assert settings.seed_demo_user is False


def test_config_file_accepts_comma_separated_tokens(tmp_path: Path) -> None:
    config = tmp_path / "users_api.yaml"
    config.write_text("api_tokens: one,two\n", encoding="utf-8")
    assert load_settings(config, env={}).api_tokens == ("one", "two")


def test_environment_variables_override_file_for_mode_and_seed(tmp_path: Path) -> None:
    config = tmp_path / "users_api.yaml"
    config.write_text("environment: development\nseed_demo_user: true\n", encoding="utf-8")

    settings = load_settings(
        config,
        env={"USERS_API_ENVIRONMENT": "Production", "USERS_API_SEED_DEMO_USER": "no"},
    )

    assert settings.development is False
    assert settings.seed_demo_user is False


def test_config_path_from_environment(tmp_path: Path) -> None:
    config = tmp_path / "custom.yaml"
    config.write_text("auth_exempt_prefixes:\n  - /status\n", encoding="utf-8")

    settings = load_settings(env={"USERS_API_CONFIG": str(config)})

    assert settings.auth_exempt_prefixes == ("/status",)
    assert resolve_config_path(str(config)) == config.resolve()


def test_empty_token_list_is_a_configuration_error() -> None:
    with pytest.raises(ValueError):
        load_settings(env={"API_TOKENS": " , ,"})


def test_non_mapping_config_file_is_rejected(tmp_path: Path) -> None:
    config = tmp_path / "users_api.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(config, env={})


def test_development_flag_is_case_insensitive() -> None:
    assert Settings(environment="Development").development is True
    assert Settings(environment="staging").development is False
