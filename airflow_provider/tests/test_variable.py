import json

import pytest

from airflow_provider.errors import APIError, ConfigurationError, TransportError
from airflow_provider.resources import VariableData, VariableResource
from airflow_provider.tests.fake_airflow import Unreachable


@pytest.fixture
def variables(client):
    return VariableResource(client)


class TestVariableLifecycle:
    def test_create_update_delete_scenario(self, variables, fake_airflow):
        created = variables.create(VariableData(key="foo", value="bar"))
        assert created.id == "foo"
        assert (created.key, created.value, created.description) == ("foo", "bar", "")

        updated = variables.update(VariableData(id="foo", value="baz"))
        assert updated.id == "foo"
        assert (updated.key, updated.value) == ("foo", "baz")

        deleted = variables.delete(updated)
        assert deleted.id == ""
        assert "foo" not in fake_airflow.variables

        gone = variables.read(VariableData(id="foo"))
        assert gone.id == ""

    def test_create_then_read_round_trip(self, variables):
        declared = VariableData(key="region", value="eu-west-1", description="deploy region")
        created = variables.create(declared)

        state = variables.read(VariableData(id=created.id))
        assert (state.key, state.value, state.description) == ("region", "eu-west-1", "deploy region")

    def test_create_sends_only_declared_fields(self, variables, fake_airflow):
        variables.create(VariableData(key="foo", value="bar"))

        post = fake_airflow.sent("POST")[0]
        assert post.url == "http://airflow.test/api/v1/variables"
        assert json.loads(post.body) == {"key": "foo", "value": "bar"}

    def test_update_clears_omitted_description(self, variables, fake_airflow):
        variables.create(VariableData(key="foo", value="bar", description="old"))

        updated = variables.update(VariableData(id="foo", key="foo", value="bar"))

        patch = fake_airflow.sent("PATCH")[0]
        assert json.loads(patch.body) == {"key": "foo", "value": "bar", "description": ""}
        assert updated.description == ""

    def test_update_is_idempotent(self, variables, fake_airflow):
        variables.create(VariableData(key="foo", value="bar"))

        first = variables.update(VariableData(id="foo", value="baz", description="d"))
        second = variables.update(VariableData(id="foo", value="baz", description="d"))

        assert first.as_dict() == second.as_dict()
        assert fake_airflow.variables["foo"] == {"key": "foo", "value": "baz", "description": "d"}

    def test_keys_with_slashes_are_quoted(self, variables, fake_airflow):
        variables.create(VariableData(key="team/a", value="1"))

        get = fake_airflow.sent("GET")[-1]
        assert get.url == "http://airflow.test/api/v1/variables/team%2Fa"
        assert "team/a" in fake_airflow.variables


class TestVariableErrors:
    def test_missing_required_value(self, variables, fake_airflow):
        with pytest.raises(ConfigurationError, match="missing required argument\\(s\\): value"):
            variables.create(VariableData(key="foo"))
        assert fake_airflow.requests == []

    def test_create_conflict_message(self, variables, fake_airflow):
        fake_airflow.variables["foo"] = {"key": "foo", "value": "x", "description": None}

        with pytest.raises(APIError) as excinfo:
            variables.create(VariableData(key="foo", value="bar"))

        error = excinfo.value
        assert error.operation == "create"
        assert error.status == 409
        message = str(error)
        assert message.startswith("failed to create variable `foo`, Status: `409 Conflict` from Airflow: ")
        assert "already exists" in message

    def test_read_error_other_than_not_found(self, variables, fake_airflow):
        fake_airflow.variables["foo"] = {"key": "foo", "value": "x"}
        fake_airflow.failures[("GET", "/variables/foo")] = (403, "forbidden for this user")

        with pytest.raises(APIError) as excinfo:
            variables.read(VariableData(id="foo"))

        assert excinfo.value.operation == "read"
        assert excinfo.value.status == 403
        assert "forbidden for this user" in str(excinfo.value)

    def test_delete_is_idempotent(self, variables, fake_airflow):
        result = variables.delete(VariableData(id="never-existed"))
        assert result.id == ""
        assert fake_airflow.sent("DELETE")[0].url.endswith("/variables/never-existed")

    def test_delete_failure(self, variables, fake_airflow):
        fake_airflow.failures[("DELETE", "/variables/foo")] = (500, "database is locked")

        with pytest.raises(APIError, match="failed to delete variable `foo`, Status: `500 Internal Server Error`"):
            variables.delete(VariableData(id="foo"))

    def test_update_error(self, variables, fake_airflow):
        with pytest.raises(APIError) as excinfo:
            variables.update(VariableData(id="foo", value="bar"))
        assert excinfo.value.operation == "update"
        assert excinfo.value.status == 404

    def test_key_is_immutable(self, variables, fake_airflow):
        variables.create(VariableData(key="foo", value="bar"))

        with pytest.raises(ConfigurationError, match="key cannot change"):
            variables.update(VariableData(id="foo", key="other", value="bar"))
        assert fake_airflow.sent("PATCH") == []

    def test_body_is_truncated(self, variables, fake_airflow):
        fake_airflow.failures[("GET", "/variables/foo")] = (500, "x" * 10000)

        with pytest.raises(APIError) as excinfo:
            variables.read(VariableData(id="foo"))
        assert len(excinfo.value.body) == 4096

    def test_transport_failure_names_operation(self, client):
        client.session.mount("http://airflow.test", Unreachable())

        with pytest.raises(TransportError, match="^failed to read variable `foo`: GET "):
            VariableResource(client).read(VariableData(id="foo"))


class TestVariableImport:
    def test_import(self, variables, fake_airflow):
        fake_airflow.variables["foo"] = {"key": "foo", "value": "bar", "description": "imported"}

        state = variables.import_state("foo")

        assert state.as_dict() == {"id": "foo", "key": "foo", "value": "bar", "description": "imported"}

    def test_import_missing(self, variables):
        with pytest.raises(APIError) as excinfo:
            variables.import_state("nope")
        assert excinfo.value.operation == "import"
        assert excinfo.value.status == 404

    def test_import_empty_id(self, variables, fake_airflow):
        with pytest.raises(ConfigurationError):
            variables.import_state("  ")
        assert fake_airflow.requests == []

    def test_unknown_field_rejected(self):
        with pytest.raises(ConfigurationError, match="unsupported argument\\(s\\) for VariableData: colour"):
            VariableData.from_dict({"key": "foo", "value": "bar", "colour": "red"})
