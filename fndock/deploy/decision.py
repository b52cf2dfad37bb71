"""Create / update / skip decision for one function and the API call that applies it."""

import copy
import json
import logging
from datetime import datetime, timezone

from fndock.cluster.errors import ApiError, ConflictError, NotFoundError
from fndock.deploy.errors import DeployError
from fndock.deploy.results import Action

logger = logging.getLogger(__name__)


def canonical(doc):
    """Key-sorted JSON projection, so equality ignores ordering and tuple/list drift."""
    return json.loads(json.dumps(doc, sort_keys=True))


def decide(target: dict, existing: dict | None, force: bool = False) -> Action:
    """Decide how to converge *existing* onto *target*.

    Only ``spec`` is compared; metadata the API adds (uid, resourceVersion,
    timestamps) never forces a redeploy.
    """
    if existing is None:
        return Action.CREATE
    if canonical(existing.get("spec")) == canonical(target.get("spec")):
        return Action.SKIP
    if force:
        return Action.UPDATE
    return Action.CONFLICT


async def fetch_existing(functions, name):
    """Stored resource named *name*, or None when there is none."""
    try:
        return await functions.get(name)
    except NotFoundError:
        return None


def with_resource_version(manifest: dict, existing: dict | None) -> dict:
    """Copy of *manifest* pinned to the resourceVersion of the stored *existing*."""
    version = ((existing or {}).get("metadata") or {}).get("resourceVersion")
    if version is None:
        return manifest
    body = copy.deepcopy(manifest)
    body["metadata"]["resourceVersion"] = version
    return body


def _request_moment():
    # Creation timestamps have second resolution.
    return datetime.now(timezone.utc).replace(microsecond=0)


async def apply_decision(functions, manifest: dict, action: Action, existing: dict | None = None):
    """Issue the mutation for *action*.

    An update replaces *existing* wholesale, so keys the new manifest no
    longer has do not survive it.

    Returns ``(action, request_moment)``. ``request_moment`` is None when
    nothing was written. A create that loses a race with another creator is
    reported as CONFLICT rather than retried.
    """
    name = manifest["metadata"]["name"]
    if action is Action.SKIP:
        logger.info(f"Function {name} is already up to date. Skipping deployment")
        return action, None
    if action is Action.CONFLICT:
        logger.info(
            f"The function {name} already exists. "
            f"Redeploy it using --force or executing \"fndock deploy --force\"."
        )
        return action, None

    request_moment = _request_moment()
    if action is Action.CREATE:
        logger.info(f"Deploying function {name}...")
        try:
            await functions.create(manifest)
        except ConflictError:
            logger.info(f"The function {name} already exists. Redeploy it using --force.")
            return Action.CONFLICT, None
        except ApiError as e:
            raise DeployError(name, e.code, e.message) from e
    else:
        logger.info(f"Updating function {name}...")
        try:
            await functions.update(name, with_resource_version(manifest, existing))
        except ApiError as e:
            raise DeployError(name, e.code, e.message, verb="update") from e
    return action, request_moment
