"""Tests for the three template actions."""

from __future__ import annotations

import json
import logging

import httpx
import pytest
from pydantic import ValidationError

from azpipes.actions import ActionRegistry
from azpipes.config import AppConfig
from azpipes.errors import ConfigurationError
from azpipes.module import register_actions

from conftest import ORG, PROJECT, build_path, build_status, run_created, run_path

CREATE_PATH = f"/{ORG}/{PROJECT}/_apis/pipelines"
PERMIT_PATH = f"/{ORG}/{PROJECT}/_apis/pipelines/pipelinepermissions/endpoint/svc-conn"


@pytest.fixture
def registry(app_config, fake_azure):
    return register_actions(ActionRegistry(), app_config, transport=fake_azure.transport)


def _base_input(**extra):
    return {"organization": ORG, "project": PROJECT, **extra}


class TestCreatePipeline:
    def _input(self, **extra):
        return _base_input(
            folder="/team-a", name="svc-build", repositoryId="repo-1",
            repositoryName="svc", **extra,
        )

    async def test_outputs_id_and_url(self, registry, fake_azure):
        fake_azure.add("POST", CREATE_PATH, (200, {
            "id": 42, "_links": {"web": {"href": "https://dev.azure.com/my-org/p/_build?definitionId=42"}},
        }))

        outputs = await registry.execute("azure:pipeline:create", self._input())

        assert outputs == {
            "pipelineId": "42",
            "pipelineUrl": "https://dev.azure.com/my-org/p/_build?definitionId=42",
        }
        body = json.loads(fake_azure.calls("POST", CREATE_PATH)[0].content)
        assert body["folder"] == "/team-a"
        assert body["name"] == "svc-build"
        assert body["configuration"]["path"] == "/azure-pipelines.yaml"
        assert body["configuration"]["repository"] == {
            "id": "repo-1", "name": "svc", "type": "azureReposGit",
        }

    async def test_custom_yaml_path_and_api_version(self, registry, fake_azure):
        fake_azure.add("POST", CREATE_PATH, (200, {"id": 1, "_links": {"web": {"href": "u"}}}))

        await registry.execute(
            "azure:pipeline:create",
            self._input(yamlPath="/ci/build.yml", createApiVersion="7.1"),
        )

        request = fake_azure.calls("POST", CREATE_PATH)[0]
        assert json.loads(request.content)["configuration"]["path"] == "/ci/build.yml"
        assert request.url.params["api-version"] == "7.1"

    async def test_failure_logs_and_sets_no_outputs(self, registry, fake_azure, caplog):
        fake_azure.add("POST", CREATE_PATH, (409, {"message": "exists"}))

        with caplog.at_level(logging.INFO, logger="azpipes"):
            outputs = await registry.execute("azure:pipeline:create", self._input())

        assert outputs == {}
        assert "Status code 409" in caplog.text

    async def test_connect_error_is_logged(self, registry, fake_azure, caplog):
        fake_azure.add("POST", CREATE_PATH, httpx.ConnectError("down"))

        with caplog.at_level(logging.ERROR, logger="azpipes"):
            outputs = await registry.execute("azure:pipeline:create", self._input())

        assert outputs == {}
        assert "Failed to create Azure pipeline: down" in caplog.text

    async def test_answer_without_links_sets_no_outputs(self, registry, fake_azure, caplog):
        fake_azure.add("POST", CREATE_PATH, (201, {"id": 5}))

        with caplog.at_level(logging.ERROR, logger="azpipes"):
            outputs = await registry.execute("azure:pipeline:create", self._input())

        assert outputs == {}
        assert "no outputs were set" in caplog.text

    async def test_non_json_answer_sets_no_outputs(self, registry, fake_azure):
        fake_azure.add("POST", CREATE_PATH, (200, b"<html>signin</html>"))

        outputs = await registry.execute("azure:pipeline:create", self._input())

        assert outputs == {}

    async def test_missing_required_input(self, registry):
        with pytest.raises(ValidationError):
            await registry.execute("azure:pipeline:create", _base_input(folder="/a"))


class TestPermitPipeline:
    def _input(self, authorized=True):
        return _base_input(
            resourceType="endpoint", resourceId="svc-conn",
            authorized=authorized, pipelineId="42",
        )

    async def test_patch_body(self, registry, fake_azure, caplog):
        fake_azure.add("PATCH", PERMIT_PATH, (200, {}))

        with caplog.at_level(logging.INFO, logger="azpipes"):
            outputs = await registry.execute("azure:pipeline:permit", self._input())

        assert outputs == {}
        request = fake_azure.calls("PATCH", PERMIT_PATH)[0]
        assert json.loads(request.content) == {"pipelines": [{"authorized": True, "id": 42}]}
        assert request.url.params["api-version"] == "7.1-preview.1"
        assert "Authorizing Azure pipeline with ID 42" in caplog.text
        assert "Successfully changed the Azure pipeline permissions." in caplog.text

    async def test_same_request_twice_sends_identical_bodies(self, registry, fake_azure):
        fake_azure.add("PATCH", PERMIT_PATH, (200, {}))

        await registry.execute("azure:pipeline:permit", self._input(False))
        await registry.execute("azure:pipeline:permit", self._input(False))

        first, second = fake_azure.calls("PATCH", PERMIT_PATH)
        assert first.content == second.content
        assert json.loads(first.content)["pipelines"][0]["authorized"] is False

    async def test_failure_does_not_raise(self, registry, fake_azure, caplog):
        fake_azure.add("PATCH", PERMIT_PATH, (404, {}))

        with caplog.at_level(logging.INFO, logger="azpipes"):
            await registry.execute("azure:pipeline:permit", self._input(False))

        assert "Unauthorizing Azure pipeline" in caplog.text
        assert "Failed to change the Azure pipeline permissions. Status code 404." in caplog.text

    async def test_connect_error_does_not_raise(self, registry, fake_azure, caplog):
        fake_azure.add("PATCH", PERMIT_PATH, httpx.ConnectError("down"))

        with caplog.at_level(logging.ERROR, logger="azpipes"):
            outputs = await registry.execute("azure:pipeline:permit", self._input())

        assert outputs == {}
        assert "Failed to change the Azure pipeline permissions: down" in caplog.text


class TestRunPipeline:
    async def test_end_to_end(self, registry, fake_azure, caplog):
        fake_azure.add("POST", run_path(7), run_created(1234))
        fake_azure.add(
            "GET", build_path(1234),
            build_status("notStarted"), build_status("inProgress"),
            build_status("completed", "succeeded"),
        )

        with caplog.at_level(logging.INFO, logger="azpipes"):
            outputs = await registry.execute(
                "azure:pipeline:run",
                _base_input(pipelineId="7", branch="release", pipelineParameters={"env": "prod"}),
            )

        assert outputs["result"] == "succeeded"
        assert outputs["runId"] == "1234"
        assert len(fake_azure.calls("GET", build_path(1234))) == 3
        body = json.loads(fake_azure.calls("POST", run_path(7))[0].content)
        assert body["resources"]["repositories"]["self"]["refName"] == "refs/heads/release"
        assert body["templateParameters"] == {"env": "prod"}
        assert "Azure pipeline completed successfully." in caplog.text

    async def test_default_branch_from_config(self, app_config, fake_azure):
        app_config.azure.default_branch = "trunk"
        registry = register_actions(ActionRegistry(), app_config, transport=fake_azure.transport)
        fake_azure.add("POST", run_path(7), run_created(1))

        await registry.execute(
            "azure:pipeline:run", _base_input(pipelineId="7", waitForCompletion=False)
        )

        body = json.loads(fake_azure.calls("POST", run_path(7))[0].content)
        assert body["resources"]["repositories"]["self"]["refName"] == "refs/heads/trunk"

    async def test_remote_failure_is_swallowed(self, registry, fake_azure):
        fake_azure.add("POST", run_path(7), (500, {}))

        outputs = await registry.execute("azure:pipeline:run", _base_input(pipelineId="7"))

        assert outputs == {"result": "error"}

    async def test_poll_read_timeout_is_swallowed(self, registry, fake_azure):
        fake_azure.add("POST", run_path(7), run_created(1234))
        fake_azure.add("GET", build_path(1234), httpx.ReadTimeout("slow"))

        outputs = await registry.execute("azure:pipeline:run", _base_input(pipelineId="7"))

        assert outputs == {
            "runId": "1234",
            "runUrl": run_created(1234)[1]["_links"]["web"]["href"],
            "result": "error",
        }

    async def test_non_string_parameters_are_stringified(self, registry, fake_azure):
        fake_azure.add("POST", run_path(7), run_created(1))

        await registry.execute(
            "azure:pipeline:run",
            _base_input(
                pipelineId="7", waitForCompletion=False,
                pipelineParameters={"replicas": 3, "debug": True, "env": "prod"},
            ),
        )

        body = json.loads(fake_azure.calls("POST", run_path(7))[0].content)
        assert body["templateParameters"] == {"replicas": "3", "debug": "true", "env": "prod"}

    async def test_failed_run_result(self, registry, fake_azure):
        fake_azure.add("POST", run_path(7), run_created(1234))
        fake_azure.add("GET", build_path(1234), build_status("completed", "failed"))

        outputs = await registry.execute("azure:pipeline:run", _base_input(pipelineId="7"))

        assert outputs["result"] == "failed"

    async def test_token_input_overrides_integration(self, fake_azure):
        registry = register_actions(ActionRegistry(), AppConfig(), transport=fake_azure.transport)
        fake_azure.add("POST", run_path(7), run_created(1))

        outputs = await registry.execute(
            "azure:pipeline:run",
            _base_input(pipelineId="7", token="explicit", waitForCompletion=False),
        )

        assert outputs["result"] == "succeeded"


class TestConfigurationErrors:
    @pytest.mark.parametrize(
        "action_id, extra",
        [
            ("azure:pipeline:run", {"pipelineId": "7"}),
            ("azure:pipeline:permit", {
                "resourceType": "endpoint", "resourceId": "x",
                "authorized": True, "pipelineId": "1",
            }),
            ("azure:pipeline:create", {
                "folder": "/", "name": "n", "repositoryId": "r", "repositoryName": "r",
            }),
        ],
    )
    async def test_no_integration_raises_before_network(self, fake_azure, action_id, extra):
        registry = register_actions(ActionRegistry(), AppConfig(), transport=fake_azure.transport)

        with pytest.raises(ConfigurationError):
            await registry.execute(action_id, _base_input(**extra))
        assert fake_azure.requests == []

    async def test_other_host_is_not_configured(self, registry, fake_azure):
        with pytest.raises(ConfigurationError, match="ado.example.com"):
            await registry.execute(
                "azure:pipeline:run", _base_input(pipelineId="7", server="ado.example.com")
            )
        assert fake_azure.requests == []
