"""Run-and-poll engine for Azure pipeline runs.

A run is submitted once, then its build record is polled with the same
run id until the ``status`` field reaches ``completed``.  Between polls
the task suspends for a fixed interval; a deadline and an optional
:class:`asyncio.Event` let callers stop waiting early.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from azpipes.client import AzureDevOpsClient
from azpipes.engine.models import (
    PipelineRunHandle,
    PipelineRunRequest,
    RunOutcome,
    RunReport,
    RunStatus,
)
from azpipes.errors import RemoteRequestError, RunCancelledError, UnexpectedStatusError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0

SleepFunc = Callable[[float], Awaitable[None]]


class RunPoller:
    """Submits a pipeline run and waits for it to finish.

    Parameters
    ----------
    client:
        An open :class:`AzureDevOpsClient`; its credentials are reused for
        every request of the invocation.
    poll_interval:
        Seconds to wait between two status queries.
    timeout:
        Maximum seconds to keep polling, measured from the first poll.
        ``None`` polls until a terminal state.
    sleep:
        Coroutine used for the delay between polls.
    """

    def __init__(
        self,
        client: AzureDevOpsClient,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
        sleep: SleepFunc = asyncio.sleep,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self.client = client
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sleep = sleep
        self._log = log or logger
        self.polls = 0

    async def submit_run(
        self, project: str, pipeline_id: int | str, request: PipelineRunRequest
    ) -> PipelineRunHandle:
        payload = await self.client.run_pipeline(project, pipeline_id, request.to_body())
        handle = PipelineRunHandle.from_payload(payload)
        self._log.info("Successfully started Azure pipeline run: %s", handle.web_url)
        return handle

    async def get_status(self, project: str, run_id: int) -> RunStatus:
        payload = await self.client.get_build(project, run_id)
        self.polls += 1
        return RunStatus.from_payload(payload)

    async def await_completion(
        self,
        project: str,
        handle: PipelineRunHandle,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        """Poll *handle* until it completes and return whether it succeeded.

        Raises
        ------
        RemoteRequestError
            A status query answered with a non-2xx code.
        UnexpectedStatusError
            The run reported a status outside the known set.
        RunCancelledError
            The deadline passed or *cancel_event* was set first.
        """
        self.polls = 0
        loop = asyncio.get_running_loop()
        deadline = None if self.timeout is None else loop.time() + self.timeout

        while True:
            status = await self.get_status(project, handle.run_id)
            if status.is_terminal:
                return status.succeeded

            self._log.debug(
                "Azure pipeline run %s is %s, checking again in %ss",
                handle.run_id, status.state.value, self.poll_interval,
            )
            delay = self.poll_interval
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise RunCancelledError(handle.run_id, "timed out")
                delay = min(delay, remaining)
            if await self._pause(delay, cancel_event):
                raise RunCancelledError(handle.run_id)

    async def _pause(self, delay: float, cancel_event: asyncio.Event | None) -> bool:
        """Suspend for *delay* seconds; return True if cancelled meanwhile."""
        if cancel_event is None:
            await self._sleep(delay)
            return False
        if cancel_event.is_set():
            return True
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def run_pipeline_and_wait(
        self,
        project: str,
        pipeline_id: int | str,
        request: PipelineRunRequest,
        wait: bool = True,
        cancel_event: asyncio.Event | None = None,
    ) -> RunReport:
        """Submit a run, optionally wait for it, and report the outcome.

        Every failure of the run or its polling is logged and reported,
        never raised.
        """
        handle: PipelineRunHandle | None = None
        self.polls = 0
        try:
            handle = await self.submit_run(project, pipeline_id, request)
            if not wait:
                return RunReport(RunOutcome.succeeded, handle=handle)
            success = await self.await_completion(project, handle, cancel_event)
        except RunCancelledError as exc:
            self._log.warning(str(exc))
            return RunReport(RunOutcome.cancelled, handle, self.polls, str(exc))
        except (RemoteRequestError, UnexpectedStatusError) as exc:
            self._log.error(str(exc))
            return RunReport(RunOutcome.error, handle, self.polls, str(exc))
        except Exception as exc:
            self._log.exception("Azure pipeline run failed: %s", exc)
            return RunReport(RunOutcome.error, handle, self.polls, str(exc))

        if success:
            self._log.info("Azure pipeline completed successfully.")
            return RunReport(RunOutcome.succeeded, handle, self.polls)
        self._log.error("Azure pipeline failed.")
        return RunReport(RunOutcome.failed, handle, self.polls)
