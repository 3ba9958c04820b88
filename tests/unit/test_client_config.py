import json
from pathlib import Path

import pytest

from azure_metrics.core.config import ClientConfig
from azure_metrics.domain.exceptions import ConfigurationError
from azure_metrics.domain.models import Target


def test_client_config_defaults():
    config = ClientConfig()
    assert config.scrape_interval_seconds == 60
    assert config.window_width_seconds == 300
    assert config.max_batch_size == 20
    assert config.split_batches is True
    assert config.timeout == 60.0
    assert config.targets == ()


def test_explicit_timeout_overrides_scrape_interval():
    config = ClientConfig(request_timeout_seconds=15)
    assert config.timeout == 15.0


def test_client_config_from_env(monkeypatch):
    monkeypatch.setenv("AZURE_TENANT_ID", "tenant")
    monkeypatch.setenv("AZURE_CLIENT_ID", "client")
    monkeypatch.setenv("AZURE_CLIENT_SECRET", "secret")
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "sub")
    monkeypatch.setenv(
        "AZURE_METRICS_TARGETS",
        json.dumps([{"resource": "/rg/x", "metrics": [{"name": "Ingress"}]}]),
    )
    monkeypatch.setenv("AZURE_METRICS_SCRAPE_INTERVAL_SECONDS", "30")
    monkeypatch.setenv("AZURE_METRICS_MAX_BATCH_SIZE", "10")
    monkeypatch.setenv("AZURE_METRICS_SPLIT_BATCHES", "false")

    config = ClientConfig.from_env()

    assert config.tenant_id == "tenant"
    assert config.subscription_id == "sub"
    assert config.targets == (Target(resource="/rg/x", metrics=["Ingress"]),)
    assert config.scrape_interval_seconds == 30
    assert config.max_batch_size == 10
    assert config.split_batches is False
    config.require_credentials()


def test_client_config_from_env_rejects_bad_integer(monkeypatch):
    monkeypatch.setenv("AZURE_METRICS_MAX_BATCH_SIZE", "many")

    with pytest.raises(ConfigurationError):
        ClientConfig.from_env()


def test_client_config_from_file_json(tmp_path: Path):
    data = {
        "credentials": {
            "tenant_id": "t",
            "client_id": "c",
            "client_secret": "s",
            "subscription_id": "sub",
        },
        "targets": [
            {
                "resource": "/resourceGroups/rg/providers/Microsoft.Sql/servers/db",
                "metrics": [{"name": "cpu_percent"}, {"name": "dtu_used"}],
                "aggregations": ["Average"],
            }
        ],
        "window_width_seconds": 120,
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))

    config = ClientConfig.from_file(str(path))

    assert config.client_secret == "s"
    assert config.window_width_seconds == 120
    target = config.targets[0]
    assert target.metrics == ("cpu_percent", "dtu_used")
    assert target.aggregations == ("Average",)


def test_client_config_from_file_yaml(tmp_path: Path):
    yaml = pytest.importorskip("yaml")
    data = {
        "credentials": {"tenant_id": "t", "subscription_id": "sub"},
        "targets": [{"resource": "/rg/x"}],
        "split_batches": False,
    }
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump(data))

    config = ClientConfig.from_file(str(path))

    assert config.tenant_id == "t"
    assert config.split_batches is False
    assert config.targets[0].resource == "/rg/x"


def test_client_config_from_file_rejects_invalid_target(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"targets": [{"resource": "no-leading-slash"}]}))

    with pytest.raises(ConfigurationError):
        ClientConfig.from_file(str(path))


def test_client_config_from_file_coerces_string_values(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "max_batch_size": "10",
                "window_width_seconds": " 120 ",
                "split_batches": "false",
            }
        )
    )

    config = ClientConfig.from_file(str(path))

    assert config.max_batch_size == 10
    assert config.window_width_seconds == 120
    assert config.split_batches is False


@pytest.mark.parametrize(
    "data",
    [
        {"max_batch_size": "twenty"},
        {"scrape_interval_seconds": "0"},
        {"split_batches": "sometimes"},
        {"max_metrics_per_query": 2.5},
        {"split_batches": 1},
        {"request_timeout_seconds": True},
    ],
)
def test_client_config_from_file_rejects_mistyped_values(tmp_path: Path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))

    with pytest.raises(ConfigurationError):
        ClientConfig.from_file(str(path))


def test_client_config_from_file_unknown_suffix(tmp_path: Path):
    path = tmp_path / "config.ini"
    path.write_text("[x]")

    with pytest.raises(ConfigurationError):
        ClientConfig.from_file(str(path))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"window_width_seconds": 0},
        {"window_lag_seconds": -1},
        {"scrape_interval_seconds": 0},
        {"max_batch_size": 0},
        {"max_batch_size": "20"},
        {"split_batches": "false"},
        {"request_timeout_seconds": 0},
        {"targets": ({"resource": "/rg/x"},)},
    ],
)
def test_client_config_validate_rejects_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        ClientConfig(**kwargs)


def test_require_credentials_lists_missing_fields():
    with pytest.raises(ConfigurationError) as excinfo:
        ClientConfig(tenant_id="t").require_credentials()

    assert excinfo.value.context["missing"] == [
        "client_id",
        "client_secret",
        "subscription_id",
    ]


def test_client_secret_hidden_from_repr():
    assert "hunter2" not in repr(ClientConfig(client_secret="hunter2"))
