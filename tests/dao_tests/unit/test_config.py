"""
Tests for configuration loading, unit conversion and logging setup.
"""

import json
import logging

import pytest

from treasury_dao.core.config import (
    DEFAULT_QUORUM,
    ConfigurationError,
    DAOConfig,
    load_config,
)
from treasury_dao.core.logging_config import CustomJsonFormatter, setup_logging
from treasury_dao.core.units import format_units, parse_units


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(env={})
        assert config.quorum == DEFAULT_QUORUM == 500_000 * 10**18 + 1
        assert config.token_supply == 1_000_000
        assert config.dev_accounts == 20
        assert config.node_url == "http://127.0.0.1:8080"
        assert config.api_keys == []

    def test_yaml_file(self, tmp_path, caplog):
        path = tmp_path / "dao.yaml"
        path.write_text(
            "token_symbol: GOV\n"
            "quorum: 1_000\n"
            "api_keys: [a, b]\n"
            "unexpected: true\n"
        )
        with caplog.at_level(logging.WARNING):
            config = load_config(str(path), env={})

        assert config.token_symbol == "GOV"
        assert config.quorum == 1000
        assert config.api_keys == ["a", "b"]
        assert "unexpected" in caplog.text

    def test_env_overrides_file(self, tmp_path):
        path = tmp_path / "dao.yaml"
        path.write_text("node_port: 9000\nlog_level: DEBUG\n")
        config = load_config(
            env={
                "DAO_CONFIG_FILE": str(path),
                "DAO_NODE_PORT": "9100",
                "DAO_API_KEYS": "k1, k2,",
            }
        )
        assert config.node_port == 9100
        assert config.log_level == "DEBUG"
        assert config.api_keys == ["k1", "k2"]
        assert config.node_url == "http://127.0.0.1:9100"

    def test_explicit_node_url_wins(self):
        config = load_config(
            env={"DAO_NODE_PORT": "9100", "DAO_NODE_URL": "http://dao.internal:80"}
        )
        assert config.node_url == "http://dao.internal:80"

    @pytest.mark.parametrize(
        "env",
        [
            {"DAO_QUORUM": "lots"},
            {"DAO_QUORUM": "0"},
            {"DAO_DEV_ACCOUNTS": "0"},
            {"DAO_NODE_PORT": "70000"},
            {"DAO_LOG_LEVEL": "LOUD"},
        ],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ConfigurationError):
            load_config(env=env)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "dao.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path), env={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_config(str(tmp_path / "absent.yaml"), env={})

    def test_validate_direct(self):
        with pytest.raises(ConfigurationError):
            DAOConfig(token_supply=0).validate()


class TestUnits:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (100, 100 * 10**18),
            ("0.5", 5 * 10**17),
            ("1_000", 1000 * 10**18),
            ("0.000000000000000001", 1),
        ],
    )
    def test_parse_units(self, value, expected):
        assert parse_units(value) == expected

    def test_parse_units_custom_decimals(self):
        assert parse_units("1.25", decimals=2) == 125

    @pytest.mark.parametrize("value", ["-1", "abc", "", "0.0000000000000000001", True, "inf"])
    def test_parse_units_rejects(self, value):
        with pytest.raises(ValueError):
            parse_units(value)

    @pytest.mark.parametrize(
        "amount, expected",
        [
            (100 * 10**18, "100.0"),
            (5 * 10**17, "0.5"),
            (500_000 * 10**18 + 1, "500000.000000000000000001"),
            (0, "0.0"),
        ],
    )
    def test_format_units(self, amount, expected):
        assert format_units(amount) == expected


class TestLogging:
    def test_json_records(self, tmp_path):
        log_file = tmp_path / "logs" / "dao.json"
        logger = setup_logging(
            name="treasury_dao_test",
            log_file=str(log_file),
            level="DEBUG",
            environment="test",
            enable_console=False,
        )
        logger.info("Proposal created", extra={"event": "dao.propose", "proposal_id": 1})
        for handler in logger.handlers:
            handler.flush()

        record = json.loads(log_file.read_text().splitlines()[-1])
        assert record["message"] == "Proposal created"
        assert record["event"] == "dao.propose"
        assert record["proposal_id"] == 1
        assert record["environment"] == "test"
        assert record["service"] == "treasury_dao_test"
        assert record["level"] == "info"
        assert record["source"]["function"] == "test_json_records"

        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_setup_replaces_handlers(self):
        logger = setup_logging(name="treasury_dao_test_replace", enable_console=True)
        setup_logging(name="treasury_dao_test_replace", enable_console=True)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, CustomJsonFormatter)
        logger.removeHandler(logger.handlers[0])
