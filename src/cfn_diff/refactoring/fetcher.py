"""Deployed-state fetchers: where the "before" side of refactor detection comes from."""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from ..constants import DEFAULT_FETCH_WORKERS, DEPLOYED_STACK_STATUSES
from ..errors import StackNotFoundError
from ..serialization import load_template
from .model import CloudFormationStack, Environment, StackSummary

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIXES = (".json", ".yaml", ".yml")


class DeployedStackFetcher(Protocol):
    """
    Protocol for reading what is deployed in an environment.

    Implementations talk to whatever holds the deployed state. Errors are
    not caught by callers: a failing fetch fails the whole detection.
    """

    def list_stacks(self, environment: Environment) -> List[StackSummary]:
        """
        List stacks in an environment.

        Args:
            environment: Account and region to list

        Returns:
            Stack summaries with name and status
        """
        ...

    def get_template(self, environment: Environment, stack_name: str) -> Dict[str, Any]:
        """
        Return the deployed template of one stack.

        Args:
            environment: Account and region of the stack
            stack_name: Stack to read

        Returns:
            Parsed template
        """
        ...


def get_deployed_stacks(
    fetcher: DeployedStackFetcher,
    environment: Environment,
    max_workers: int = DEFAULT_FETCH_WORKERS,
) -> List[CloudFormationStack]:
    """
    Fetch every deployed stack of an environment.

    Only stacks in a deployed status are kept. Templates are fetched in
    parallel; the first failure propagates and no partial result is
    returned.

    Args:
        fetcher: Deployed-state fetcher
        environment: Environment to read
        max_workers: Parallel template fetches

    Returns:
        Stacks in listing order
    """
    summaries = [
        s for s in fetcher.list_stacks(environment)
        if s.status in DEPLOYED_STACK_STATUSES
    ]
    logger.info("Fetching %d deployed stack(s) in %s", len(summaries), environment)
    if not summaries:
        return []

    def fetch_one(summary: StackSummary) -> CloudFormationStack:
        template = fetcher.get_template(environment, summary.stack_name)
        return CloudFormationStack(
            environment=environment,
            stack_name=summary.stack_name,
            template=template or {},
        )

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = [executor.submit(fetch_one, s) for s in summaries]
        return [future.result() for future in futures]


class InMemoryStackFetcher:
    """Fetcher over stacks held in memory, keyed by environment."""

    def __init__(
        self,
        stacks: Iterable[CloudFormationStack] = (),
        statuses: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            stacks: Deployed stacks
            statuses: Status per stack name (default CREATE_COMPLETE)
        """
        self._stacks: Dict[str, Dict[str, CloudFormationStack]] = {}
        self.statuses = dict(statuses or {})
        for stack in stacks:
            self.add(stack)

    def add(self, stack: CloudFormationStack) -> None:
        self._stacks.setdefault(stack.environment.key, {})[stack.stack_name] = stack

    def list_stacks(self, environment: Environment) -> List[StackSummary]:
        return [
            StackSummary(stack_name=name, status=self.statuses.get(name, "CREATE_COMPLETE"))
            for name in self._stacks.get(environment.key, {})
        ]

    def get_template(self, environment: Environment, stack_name: str) -> Dict[str, Any]:
        try:
            stack = self._stacks[environment.key][stack_name]
        except KeyError:
            raise StackNotFoundError(stack_name, str(environment)) from None
        return copy.deepcopy(stack.template)


class DirectoryStackFetcher:
    """
    Fetcher over template files on disk.

    Layout: ``base_dir/<account>/<region>/<StackName>.json|yaml|yml``.
    Every template found counts as deployed.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def _env_dir(self, environment: Environment) -> Path:
        return self.base_dir / environment.account / environment.region

    def _template_path(self, environment: Environment, stack_name: str) -> Optional[Path]:
        for suffix in TEMPLATE_SUFFIXES:
            path = self._env_dir(environment) / f"{stack_name}{suffix}"
            if path.is_file():
                return path
        return None

    def list_stacks(self, environment: Environment) -> List[StackSummary]:
        env_dir = self._env_dir(environment)
        if not env_dir.is_dir():
            return []
        names = sorted({
            p.stem for p in env_dir.iterdir()
            if p.is_file() and p.suffix in TEMPLATE_SUFFIXES
        })
        return [StackSummary(stack_name=name, status="CREATE_COMPLETE") for name in names]

    def get_template(self, environment: Environment, stack_name: str) -> Dict[str, Any]:
        path = self._template_path(environment, stack_name)
        if path is None:
            raise StackNotFoundError(stack_name, str(environment))
        return load_template(path)
