from pathlib import Path

import pytest

from firefly_sankey.core import settings


def test_read_config_file(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "\n".join([
            "# Firefly connection",
            "FIREFLY_URL: https://firefly.example.com  # trailing comment",
            'FIREFLY_TOKEN: "abc#123"',
            "SANKEY_EXCLUDE_TAGS: 'internal, transfer'",
            "LOG_LEVEL:",
            "not a pair",
        ]),
        encoding="utf-8",
    )

    values = settings.read_config_file(str(config))

    assert values == {
        "FIREFLY_URL": "https://firefly.example.com",
        "FIREFLY_TOKEN": "abc#123",
        "SANKEY_EXCLUDE_TAGS": "internal, transfer",
    }


def test_read_config_file_missing(tmp_path: Path) -> None:
    assert settings.read_config_file(str(tmp_path / "nope.yaml")) == {}
    assert settings.read_config_file(None) == {}


@pytest.fixture
def clean_option_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for env_key in settings._OPTION_ENV_KEYS.values():
        monkeypatch.delenv(env_key, raising=False)
    return monkeypatch


def test_default_options_without_env(clean_option_env: pytest.MonkeyPatch) -> None:
    options = settings.default_options()

    assert options.with_accounts is False
    assert options.include_categories is True
    assert options.exclude_tags == []
    assert options.min_amount_account is None


def test_default_options_reads_env(clean_option_env: pytest.MonkeyPatch) -> None:
    clean_option_env.setenv("SANKEY_WITH_ACCOUNTS", "yes")
    clean_option_env.setenv("SANKEY_INCLUDE_BUDGETS", "off")
    clean_option_env.setenv("SANKEY_EXCLUDE_TAGS", "internal, reimbursed")
    clean_option_env.setenv("SANKEY_MIN_AMOUNT_ACCOUNT", "25.5")

    options = settings.default_options()

    assert options.with_accounts is True
    assert options.include_budgets is False
    assert options.exclude_tags == ["internal", "reimbursed"]
    assert options.min_amount_account == 25.5


def test_overrides_beat_env_and_none_is_ignored(clean_option_env: pytest.MonkeyPatch) -> None:
    clean_option_env.setenv("SANKEY_WITH_ACCOUNTS", "true")
    clean_option_env.setenv("SANKEY_EXCLUDE_ACCOUNTS", "Savings")

    options = settings.default_options(with_accounts=False, exclude_accounts=None, start_date="2024-01-01")

    assert options.with_accounts is False
    assert options.exclude_accounts == ["Savings"]
    assert options.start_date == "2024-01-01"


def test_invalid_env_values_fall_back(clean_option_env: pytest.MonkeyPatch) -> None:
    clean_option_env.setenv("SANKEY_MIN_AMOUNT_TRANSACTION", "lots")
    clean_option_env.setenv("SANKEY_WITH_ASSETS", "maybe")
    clean_option_env.setenv("FIREFLY_PAGE_SIZE", "0")

    options = settings.default_options()

    assert options.min_amount_transaction is None
    assert options.with_assets is False
    assert settings.get_env_int("FIREFLY_PAGE_SIZE", 50, min_value=1) == 50


@pytest.mark.parametrize(
    ("name", "value", "expected"),
    [
        ("FIREFLY_TOKEN", "abcdef123456", "ab...56"),
        ("FIREFLY_TOKEN", "abc", "****"),
        ("FIREFLY_URL", "https://firefly.example.com", "https://firefly.example.com"),
        ("OTHER", "Bearer xyz123", "Be...23"),
    ],
)
def test_mask_env_value(name: str, value: str, expected: str) -> None:
    assert settings._mask_env_value(name, value) == expected
