"""Tests for the layered preservation configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from packages.preservation_shared.config import (
    deep_merge,
    load_config,
    load_settings,
    resolve_component_settings,
)
from resources.substrates.postgres.config import PostgresSettings
from services.preservation.zip_packaging import ReplicationSettings, resolve_replication_settings


def test_load_settings_uses_precedence_cascade(tmp_path: Path) -> None:
    """CLI params should override env, env should override YAML, then defaults."""
    config_file = tmp_path / "prescat.yaml"
    config_file.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "storage_roots:",
                "  fixture_sr1: /storage/sdr2objects",
                "components:",
                "  substrate:",
                "    postgres:",
                "      pool_size: 7",
                "  service:",
                "    replication:",
                "      zip_split_size: 5g",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(
        cli_params={"logging": {"level": "DEBUG"}},
        environ={
            "PRESCAT_LOGGING__LEVEL": "ERROR",
            "PRESCAT_COMPONENTS__SUBSTRATE__POSTGRES__POOL_SIZE": "9",
            "PRESCAT_PRESERVATION_POLICY__FIXITY_TTL_SECONDS": "60",
        },
        config_path=config_file,
    )

    postgres = resolve_component_settings(
        settings=settings,
        component_id="substrate_postgres",
        model=PostgresSettings,
    )

    assert settings.logging.level == "DEBUG"
    assert settings.preservation_policy.fixity_ttl_seconds == 60
    assert settings.storage_roots == {"fixture_sr1": "/storage/sdr2objects"}
    assert postgres.pool_size == 9
    assert resolve_replication_settings(settings).zip_split_size == "5g"


def test_load_settings_uses_defaults_when_sources_missing(tmp_path: Path) -> None:
    settings = load_settings(config_path=tmp_path / "prescat.yaml", environ={})

    assert settings.logging.service == "prescat"
    assert settings.logging.level == "INFO"
    assert settings.preservation_policy.version_audit_ttl_seconds == 604_800
    assert settings.zip_endpoints == {}
    assert resolve_replication_settings(settings) == ReplicationSettings()


def test_zip_endpoints_are_typed(tmp_path: Path) -> None:
    config_file = tmp_path / "prescat.yaml"
    config_file.write_text(
        "\n".join(
            [
                "zip_endpoints:",
                "  aws_s3_west_2:",
                "    endpoint_node: s3.us-west-2.amazonaws.com",
                "    storage_location: sul-sdr-aws-us-west-2-test",
                "    region: us-west-2",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(config_path=config_file, environ={})

    endpoint = settings.zip_endpoints["aws_s3_west_2"]
    assert endpoint.provider == "s3"
    assert endpoint.region == "us-west-2"


def test_flat_component_keys_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="components.service.replication"):
        load_settings(
            cli_params={"components": {"service_replication": {"zip_split_size": "1g"}}},
            config_path=tmp_path / "prescat.yaml",
            environ={},
        )


def test_component_settings_forbid_unknown_keys(tmp_path: Path) -> None:
    settings = load_settings(
        cli_params={"components": {"service": {"replication": {"zip_splits": "1g"}}}},
        config_path=tmp_path / "prescat.yaml",
        environ={},
    )

    with pytest.raises(ValidationError):
        resolve_replication_settings(settings)


def test_component_id_requires_known_kind(tmp_path: Path) -> None:
    settings = load_settings(config_path=tmp_path / "prescat.yaml", environ={})

    with pytest.raises(ValueError, match="component_id"):
        resolve_component_settings(
            settings=settings, component_id="replication", model=ReplicationSettings
        )


def test_config_file_can_be_named_by_environment(tmp_path: Path) -> None:
    config_file = tmp_path / "worker.yaml"
    config_file.write_text("storage_roots:\n  fixture_sr2: /storage/sr2\n", encoding="utf-8")

    settings = load_settings(environ={"PRESCAT_CONFIG": str(config_file)})

    assert settings.storage_roots == {"fixture_sr2": "/storage/sr2"}


def test_environment_values_are_parsed_as_yaml_scalars() -> None:
    config = load_config(
        environ={
            "PRESCAT_A__FLAG": "true",
            "PRESCAT_A__COUNT": "42",
            "PRESCAT_A__RATIO": "0.5",
            "PRESCAT_A__NOTHING": "none",
            "PRESCAT_A__LIST": '["x", "y"]',
            "PRESCAT_A__URL": "postgresql+psycopg://a:b@db:5432/prescat",
            "PRESCAT_A__SECRET": "#not-a-comment",
            "PRESCAT_A__PLAIN": "key: value",
        },
        config_path=Path("/nonexistent/prescat.yaml"),
        defaults={},
    )

    assert config["a"] == {
        "flag": True,
        "count": 42,
        "ratio": 0.5,
        "nothing": None,
        "list": ["x", "y"],
        "url": "postgresql+psycopg://a:b@db:5432/prescat",
        "secret": "#not-a-comment",
        "plain": "key: value",
    }


def test_deep_merge_overlays_nested_keys_without_mutating_inputs() -> None:
    base = {"components": {"substrate": {"postgres": {"pool_size": 5, "sslmode": "prefer"}}}}
    override = {"components": {"substrate": {"postgres": {"pool_size": 9}}}}

    merged = deep_merge(base, override)

    assert merged["components"]["substrate"]["postgres"] == {"pool_size": 9, "sslmode": "prefer"}
    assert base["components"]["substrate"]["postgres"]["pool_size"] == 5


@pytest.mark.parametrize(
    "storage_roots",
    [
        {"fixture_sr1": "relative/path"},
        {"Fixture-SR1": "/storage/sr1"},
        {"fixture_sr1": "/storage/sr1", "fixture_sr2": "/storage/sr1/"},
    ],
)
def test_storage_roots_must_be_named_absolute_and_distinct(
    tmp_path: Path, storage_roots: dict[str, str]
) -> None:
    with pytest.raises(ValidationError):
        load_settings(
            cli_params={"storage_roots": storage_roots},
            config_path=tmp_path / "prescat.yaml",
            environ={},
        )
