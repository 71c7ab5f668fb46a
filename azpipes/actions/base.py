"""Template action base class: schema-validated input, logger and outputs."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from azpipes.client import AzureDevOpsClient
from azpipes.config import ApiVersions, AzureConfig
from azpipes.integrations.base import CredentialsProvider


class ActionInput(BaseModel):
    """Base input model. Fields are exposed to templates in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    server: str | None = Field(
        None, title="Host", description="The host of Azure DevOps. Defaults to dev.azure.com"
    )
    organization: str = Field(
        ..., title="Organization", description="The name of the Azure DevOps organization."
    )
    project: str = Field(..., title="Project", description="The name of the Azure project.")
    token: str | None = Field(
        None,
        title="Token",
        description="A personal access token overriding the configured integration.",
    )


InputT = TypeVar("InputT", bound=ActionInput)


class ActionLogger(logging.LoggerAdapter):
    """Prefixes every line with the action id."""

    def process(self, msg, kwargs):
        return f"[{self.extra['action']}] {msg}", kwargs


@dataclass
class ActionContext(Generic[InputT]):
    """Per-invocation state handed to :meth:`TemplateAction.handler`."""

    input: InputT
    logger: logging.LoggerAdapter
    outputs: dict[str, Any] = field(default_factory=dict)

    def output(self, name: str, value: Any) -> None:
        self.outputs[name] = value


class TemplateAction(ABC, Generic[InputT]):
    """Base class for all template actions.

    Subclasses declare an ``id``, a ``description`` and an ``input_model``;
    the model's JSON schema is what the scaffolder shows to templates.
    """

    id: ClassVar[str]
    description: ClassVar[str] = ""
    input_model: ClassVar[type[ActionInput]]

    def __init__(
        self,
        credentials: CredentialsProvider,
        settings: AzureConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.credentials = credentials
        self.settings = settings or AzureConfig()
        self._transport = transport

    @property
    def schema(self) -> dict[str, Any]:
        return {"input": self.input_model.model_json_schema(by_alias=True)}

    def create_context(self, raw_input: dict[str, Any]) -> ActionContext[InputT]:
        """Validate *raw_input*; raises ``pydantic.ValidationError``."""
        parsed = self.input_model.model_validate(raw_input)
        log = ActionLogger(logging.getLogger(f"azpipes.actions.{self.id}"), {"action": self.id})
        return ActionContext(input=parsed, logger=log)

    async def execute(self, raw_input: dict[str, Any]) -> dict[str, Any]:
        """Validate input, run the handler and return the outputs."""
        ctx = self.create_context(raw_input)
        await self.handler(ctx)
        return ctx.outputs

    def open_client(
        self, ctx: ActionContext[InputT], api_versions: ApiVersions
    ) -> AzureDevOpsClient:
        """Resolve the token and open a client for this invocation.

        Raises :class:`~azpipes.errors.ConfigurationError` before any
        network call when no token can be found.
        """
        host = ctx.input.server or self.settings.host
        token = ctx.input.token
        if not token:
            token = self.credentials.resolve_token(host, f"https://{host}/{ctx.input.organization}")
        return AzureDevOpsClient(
            host,
            ctx.input.organization,
            token,
            api_versions=api_versions,
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )

    @abstractmethod
    async def handler(self, ctx: ActionContext[InputT]) -> None:
        """Do the action's work, reporting through ``ctx``."""
