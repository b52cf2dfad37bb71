"""Rollout watching: poll a function's pods until they are stably ready."""

import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from datetime import datetime

from fndock.cluster.errors import RequestTimeoutError
from fndock.deploy.errors import RolloutError

logger = logging.getLogger(__name__)


class RolloutPhase(enum.Enum):
    POLLING = "polling"
    STABLE = "stable"
    FAILED = "failed"
    GIVEN_UP = "given_up"


@dataclass
class RolloutState:
    retries: int = 0
    stable_observations: int = 0
    last_pod_status: list | None = None
    phase: RolloutPhase = RolloutPhase.POLLING
    polls: int = 0


def _parse_timestamp(value):
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _is_timeout(err):
    return isinstance(err, RequestTimeoutError) or "request timed out" in str(err)


def _first_container_status(pod):
    statuses = (pod.get("status") or {}).get("containerStatuses") or []
    return statuses[0] if statuses else None


def _container_state(pod):
    status = _first_container_status(pod)
    if status is None:
        return "unknown"
    return json.dumps(status.get("state"), sort_keys=True)


class RolloutWatcher:
    """Watches the pods of one function after a create or update.

    A poll that finds no fresh pods counts against ``max_retries``; a poll
    where every fresh pod is ready counts toward ``stability_window`` and
    any other poll resets it. A pod that is not ready and has restarted more
    than ``max_restarts`` times fails the rollout immediately.
    """

    def __init__(
        self,
        pods,
        name,
        request_moment,
        interval=2.0,
        max_retries=3,
        stability_window=2,
        max_restarts=2,
    ):
        self.pods = pods
        self.name = name
        self.request_moment = request_moment
        self.interval = interval
        self.max_retries = max_retries
        self.stability_window = stability_window
        self.max_restarts = max_restarts
        self.state = RolloutState()

    def function_pods(self, items):
        """Pods of this function created by this rollout and not being deleted."""
        selected = []
        for pod in items:
            metadata = pod.get("metadata") or {}
            if (metadata.get("labels") or {}).get("function") != self.name:
                continue
            if metadata.get("deletionTimestamp"):
                continue
            created = _parse_timestamp(metadata.get("creationTimestamp"))
            if created is not None and self.request_moment is not None and created < self.request_moment:
                continue
            selected.append(pod)
        return selected

    def observe(self, items) -> RolloutPhase:
        """Apply one poll result to the state machine and return the new phase."""
        state = self.state
        state.polls += 1
        pods = self.function_pods(items)

        if not pods:
            state.retries += 1
            state.stable_observations = 0
            if state.retries > self.max_retries:
                state.phase = RolloutPhase.GIVEN_UP
                logger.error(f"Giving up, unable to retrieve the status of the {self.name} deployment.")
                raise RolloutError(f"Unable to retrieve the status of the {self.name} deployment")
            logger.info(f"Unable to find any running pod for {self.name}. Retrying...")
            return state.phase

        ready = 0
        for pod in pods:
            # Function pods run a single container.
            status = _first_container_status(pod)
            if status is None:
                continue
            if status.get("ready"):
                ready += 1
            elif status.get("restartCount", 0) > self.max_restarts:
                state.phase = RolloutPhase.FAILED
                pod_name = (pod.get("metadata") or {}).get("name", "")
                logger.error(f"ERROR: Failed to deploy the function {self.name}")
                raise RolloutError(
                    f"Failed to deploy the function {self.name}: pod {pod_name} "
                    f"restarted {status.get('restartCount')} times"
                )

        if ready == len(pods):
            state.stable_observations += 1
            if state.stable_observations >= self.stability_window:
                state.phase = RolloutPhase.STABLE
                logger.info(f"Function {self.name} successfully deployed")
        else:
            state.stable_observations = 0
            current = [_container_state(p) for p in pods]
            if current != state.last_pod_status:
                logger.debug(f"Pods status: {', '.join(current)}")
                state.last_pod_status = current
        return state.phase

    async def watch(self) -> RolloutState:
        """Poll every ``interval`` seconds until the rollout is stable.

        Raises RolloutError on crash-loop or retry exhaustion; any fetch error
        other than a timeout propagates as is.
        """
        while self.state.phase is RolloutPhase.POLLING:
            await asyncio.sleep(self.interval)
            try:
                items = await self.pods.list()
            except Exception as e:
                if not _is_timeout(e):
                    raise
                logger.info("Request timed out. Retrying...")
                continue
            self.observe(items)
        return self.state
