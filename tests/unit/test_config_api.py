"""Tests for the config-level lifecycle API and its state-file bookkeeping."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

import lambdalabs_provisioner.config as config_api
from lambdalabs_provisioner.config import ConfigError, load_state, reconciler_from_config
from lambdalabs_provisioner.config.schema import Config, ProviderConfig
from lambdalabs_provisioner.core.provider import LambdaProvider
from lambdalabs_provisioner.engine.errors import NotFoundError, RemoteError, ValidationError
from lambdalabs_provisioner.engine.types import Outcome

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from conftest import FakeLambdaAPI

    from lambdalabs_provisioner.core.client import ProvisioningClient

TRAINER = "lambdalabs_instance.trainer"
LAPTOP = "lambdalabs_sshkey.laptop"

_YAML = """\
provider:
  api_key: test-key

state_path: {state_path}

ssh_keys:
  laptop:
    name: laptop
    public_key: ssh-ed25519 AAAA laptop

instances:
  trainer:
    region_name: us-west-1
    instance_type_name: gpu_1x_a10
    ssh_key_names: [laptop]
"""


@pytest.fixture
def config(
    make_config: Callable[..., Config],
    tmp_path: Path,
    client: ProvisioningClient,
    monkeypatch: pytest.MonkeyPatch,
) -> Config:
    monkeypatch.setattr(
        config_api, "_provider_from_config", lambda _cfg: LambdaProvider.from_client(client)
    )
    return make_config(_YAML.format(state_path=tmp_path / "state.json"))


def _launch(fake_api: FakeLambdaAPI, instance_id: str = "i-123") -> None:
    fake_api.add(
        "POST", "instance-operations/launch", 200, {"data": {"instance_ids": [instance_id]}}
    )


class TestReconcilerFromConfig:
    def test_missing_api_key_raises(self) -> None:
        config = Config(provider=ProviderConfig())
        with pytest.raises(ConfigError, match="LAMBDA_API_KEY"):
            reconciler_from_config(config)

    def test_api_key_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LAMBDA_API_KEY", "env-key")
        reconciler_from_config(Config(provider=ProviderConfig()))

    def test_explicit_key(self) -> None:
        reconciler_from_config(Config(provider=ProviderConfig(api_key="k")))


class TestValidate:
    def test_reports_errors_without_api_key(self, make_config: Callable[..., Config]) -> None:
        config = make_config(
            _YAML.replace("  api_key: test-key\n", "")
            .replace("[laptop]", "[laptop, desktop]")
            .format(state_path="state.json")
        )
        errors = config_api.validate(config)
        assert len(errors) == 1
        assert errors[0].startswith("lambdalabs_instance.trainer:")

    def test_valid_config(self, make_config: Callable[..., Config]) -> None:
        config = make_config(_YAML.replace("  api_key: test-key\n", "").format(state_path="s.json"))
        assert config_api.validate(config) == []


class TestCreate:
    def test_records_resource(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        _launch(fake_api)

        inst = config_api.create(config, TRAINER)

        assert inst.id == "i-123"
        state = load_state(config)
        assert state.serial == 1
        assert state.resources[TRAINER].id == "i-123"

    def test_undeclared_address(self, config: Config) -> None:
        with pytest.raises(ConfigError, match="not declared"):
            config_api.create(config, "lambdalabs_instance.other")

    def test_already_tracked(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        _launch(fake_api)
        config_api.create(config, TRAINER)
        with pytest.raises(ConfigError, match="already exists"):
            config_api.create(config, TRAINER)
        assert len(fake_api.calls("POST", "instance-operations/launch")) == 1

    def test_failure_leaves_state_untouched(
        self, config: Config, fake_api: FakeLambdaAPI
    ) -> None:
        fake_api.error("POST", "instance-operations/launch", 400, "no capacity")
        with pytest.raises(RemoteError, match="no capacity"):
            config_api.create(config, TRAINER)
        assert not config.state_path.exists()


class TestRead:
    def test_refreshes_record(
        self,
        config: Config,
        fake_api: FakeLambdaAPI,
        remote_instance: Callable[..., dict[str, Any]],
    ) -> None:
        _launch(fake_api)
        config_api.create(config, TRAINER)
        fake_api.add("GET", "instances/i-123", 200, {"data": remote_instance()})

        inst = config_api.read(config, TRAINER)

        assert inst is not None
        assert inst.attributes["ip"] == {"kind": "known", "value": "10.0.0.5"}
        assert load_state(config).serial == 2

    def test_gone_resource_is_forgotten(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        _launch(fake_api)
        config_api.create(config, TRAINER)
        fake_api.error("GET", "instances/i-123", 404, "Instance not found")

        assert config_api.read(config, TRAINER) is None
        assert TRAINER not in load_state(config).resources

    def test_untracked(self, config: Config) -> None:
        with pytest.raises(ConfigError, match="not tracked"):
            config_api.read(config, TRAINER)


class TestUpdate:
    def test_identity_change_rejected(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        _launch(fake_api)
        config_api.create(config, TRAINER)
        config.instances["trainer"] = config.instances["trainer"].model_copy(
            update={"region_name": "us-east-1"}
        )

        with pytest.raises(ValidationError, match="region_name"):
            config_api.update(config, TRAINER)
        assert load_state(config).resources[TRAINER].attributes["region_name"] == "us-west-1"

    def test_name_change_recorded(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        _launch(fake_api)
        config_api.create(config, TRAINER)
        config.instances["trainer"] = config.instances["trainer"].model_copy(
            update={"name": "renamed"}
        )

        inst = config_api.update(config, TRAINER)

        assert inst.id == "i-123"
        assert inst.attributes["name"] == {"kind": "known", "value": "renamed"}
        assert len(fake_api.requests) == 1


class TestDelete:
    def test_deletes_and_forgets(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        _launch(fake_api)
        config_api.create(config, TRAINER)
        fake_api.add(
            "POST", "instance-operations/terminate", 200, {"data": {"terminated_instances": []}}
        )

        assert config_api.delete(config, TRAINER) is Outcome.DELETED
        assert load_state(config).resources == {}

    def test_already_gone(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        fake_api.add("POST", "ssh-keys", 200, {"data": {"id": "sshkey-1", "name": "laptop"}})
        config_api.create(config, LAPTOP)
        fake_api.error("DELETE", "ssh-keys/sshkey-1", 404, "SSH key not found")

        assert config_api.delete(config, LAPTOP) is Outcome.ALREADY_GONE
        assert LAPTOP not in load_state(config).resources


class TestImport:
    def test_imports_existing_key(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        fake_api.add("GET", "ssh-keys", 200, {"data": [{"id": "sshkey-9", "name": "laptop"}]})

        inst = config_api.import_resource(config, LAPTOP, "sshkey-9")

        assert inst.id == "sshkey-9"
        assert load_state(config).resources[LAPTOP].id == "sshkey-9"

    def test_import_missing(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        fake_api.add("GET", "ssh-keys", 200, {"data": []})
        with pytest.raises(NotFoundError):
            config_api.import_resource(config, LAPTOP, "sshkey-9")
        assert not config.state_path.exists()

    def test_import_already_tracked(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        fake_api.add("GET", "ssh-keys", 200, {"data": [{"id": "sshkey-9", "name": "laptop"}]})
        config_api.import_resource(config, LAPTOP, "sshkey-9")
        with pytest.raises(ConfigError, match="already tracked"):
            config_api.import_resource(config, LAPTOP, "sshkey-9")


class TestRefreshAndDrift:
    def _track_both(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        _launch(fake_api)
        fake_api.add("POST", "ssh-keys", 200, {"data": {"id": "sshkey-1", "name": "laptop"}})
        config_api.create(config, TRAINER)
        config_api.create(config, LAPTOP)

    def test_refresh_persists(
        self,
        config: Config,
        fake_api: FakeLambdaAPI,
        remote_instance: Callable[..., dict[str, Any]],
    ) -> None:
        self._track_both(config, fake_api)
        fake_api.add("GET", "instances/i-123", 200, {"data": remote_instance()})
        fake_api.add("GET", "ssh-keys", 200, {"data": []})

        state, removed = config_api.refresh(config)

        assert removed == [LAPTOP]
        assert list(state.resources) == [TRAINER]
        assert list(load_state(config).resources) == [TRAINER]

    def test_drift_does_not_persist(
        self,
        config: Config,
        fake_api: FakeLambdaAPI,
        remote_instance: Callable[..., dict[str, Any]],
    ) -> None:
        self._track_both(config, fake_api)
        serial = load_state(config).serial
        fake_api.add("GET", "instances/i-123", 200, {"data": remote_instance()})
        fake_api.add("GET", "ssh-keys", 200, {"data": []})

        changes = config_api.drift(config)

        assert changes[LAPTOP] == {}
        assert changes[TRAINER]["ip"] == {
            "from": {"kind": "pending"},
            "to": {"kind": "known", "value": "10.0.0.5"},
        }
        assert load_state(config).serial == serial

    def test_no_drift(self, config: Config, fake_api: FakeLambdaAPI) -> None:
        fake_api.add("GET", "ssh-keys", 200, {"data": [{"id": "sshkey-1", "name": "laptop"}]})
        config_api.import_resource(config, LAPTOP, "sshkey-1")
        assert config_api.drift(config) == {}
