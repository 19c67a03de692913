"""
Resolution service for refwatch.

Runs polling cycles: for every configured repository, list the remote's
references, resolve the watch set, and resolve the target reference.
Used by the `refwatch resolve` and `refwatch watch` commands.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Callable, Dict, Generator, List, Optional

from ..config import RepositoryConfiguration
from ..domain.cycle import CycleResult, CycleStatus, PollSummary
from ..domain.reference import RemoteHandle, RemoteReferenceSnapshot
from ..errors import NoDefaultHeadError, RemoteQueryError, TargetNotFoundError
from ..infra.remotes import remote_for
from ..target import TargetResolver
from ..watch import WatchMatcher, WatchSpecification

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[RepositoryConfiguration], RemoteHandle]


def take_snapshot(remote: RemoteHandle) -> RemoteReferenceSnapshot:
    """
    List a remote's references as a snapshot.

    Raises:
        RemoteQueryError: the remote failed; the original error is the cause
    """
    try:
        references = remote.list_references()
    except Exception as e:
        raise RemoteQueryError('list_references', e) from e
    if isinstance(references, RemoteReferenceSnapshot):
        return references
    return RemoteReferenceSnapshot(tuple(references))


class ResolutionService:
    """
    Service for resolving watched and target references across repositories.

    Watch matchers are compiled once per watch specification and reused by
    later cycles until the specification changes.

    Example:
        service = ResolutionService()
        for result in service.run_cycle(repos):
            print(result.repository, result.watched, result.target)

        summary = service.last_summary
        print(f"{summary.ok}/{summary.total} repositories resolved")
    """

    def __init__(self, remote_factory: Optional[RemoteFactory] = None):
        """
        Initialize ResolutionService.

        Args:
            remote_factory: Builds the remote collaborator for a repository
                (default: remote_for)
        """
        self.remote_factory = remote_factory or remote_for
        self.last_summary: Optional[PollSummary] = None
        self._matchers: Dict[WatchSpecification, WatchMatcher] = {}
        self._lock = threading.Lock()

    def matcher_for(self, repo: RepositoryConfiguration) -> WatchMatcher:
        """
        Compiled watch matcher for a repository.

        Raises:
            InvalidPatternError: a watch pattern does not compile
        """
        specification = repo.watch_specification()
        with self._lock:
            matcher = self._matchers.get(specification)
            if matcher is None:
                matcher = WatchMatcher(specification)
                self._matchers[specification] = matcher
                logger.debug(f"Compiled watch matcher for {repo.name}: {matcher!r}")
        return matcher

    def compile_all(self, repos: List[RepositoryConfiguration]) -> Dict[str, WatchMatcher]:
        """Compile every repository's matcher, failing on the first bad pattern."""
        return {repo.name: self.matcher_for(repo) for repo in repos}

    def resolve_repo(self, repo: RepositoryConfiguration) -> CycleResult:
        """
        Run one polling cycle for one repository.

        Target resolution failures mark the cycle SKIPPED and remote
        failures mark it FAILED; neither is raised. The merge engine should
        do no work for a repository whose cycle did not succeed.

        Raises:
            InvalidPatternError: a watch pattern does not compile
        """
        matcher = self.matcher_for(repo)
        remote = self.remote_factory(repo)
        started_at = datetime.now()
        start = time.monotonic()

        def finish(status: CycleStatus, **kwargs) -> CycleResult:
            return CycleResult(
                repository=repo.name,
                status=status,
                started_at=started_at,
                duration_seconds=time.monotonic() - start,
                **kwargs
            )

        try:
            snapshot = take_snapshot(remote)
        except RemoteQueryError as e:
            logger.error(f"{repo.name}: {e}")
            return finish(CycleStatus.FAILED, error=str(e), error_type=type(e).__name__)

        watched = matcher.resolve(snapshot)
        logger.debug(f"{repo.name}: {len(watched)} of {len(snapshot)} references watched")

        try:
            target = TargetResolver(repo.target_configuration()).resolve(remote)
        except TargetNotFoundError as e:
            logger.warning(f"{repo.name}: target reference {e.name} not found on remote, skipping")
            return finish(
                CycleStatus.SKIPPED,
                watched=tuple(sorted(watched)),
                reference_count=len(snapshot),
                error=str(e),
                error_type=type(e).__name__,
            )
        except NoDefaultHeadError as e:
            logger.warning(f"{repo.name}: {e}, skipping")
            return finish(
                CycleStatus.SKIPPED,
                watched=tuple(sorted(watched)),
                reference_count=len(snapshot),
                error=str(e),
                error_type=type(e).__name__,
            )
        except RemoteQueryError as e:
            logger.error(f"{repo.name}: {e}")
            return finish(CycleStatus.FAILED, error=str(e), error_type=type(e).__name__)

        return finish(
            CycleStatus.OK,
            watched=tuple(sorted(watched)),
            target=target,
            reference_count=len(snapshot),
        )

    def run_cycle(
        self,
        repos: List[RepositoryConfiguration],
        parallel: int = 1
    ) -> Generator[CycleResult, None, PollSummary]:
        """
        Resolve every repository once.

        Args:
            repos: Repositories to resolve
            parallel: Number of repositories resolved concurrently (1 = sequential)

        Yields:
            CycleResult per repository, in completion order

        Returns:
            PollSummary with totals (also kept as ``last_summary``)

        Raises:
            InvalidPatternError: raised before any remote is queried
        """
        summary = PollSummary()
        self.last_summary = summary

        # Surface configuration errors before doing any network work
        self.compile_all(repos)

        if parallel > 1 and len(repos) > 1:
            with ThreadPoolExecutor(max_workers=parallel) as executor:
                futures = [executor.submit(self.resolve_repo, repo) for repo in repos]
                for future in as_completed(futures):
                    result = future.result()
                    summary.add_result(result)
                    yield result
        else:
            for repo in repos:
                result = self.resolve_repo(repo)
                summary.add_result(result)
                yield result

        logger.info(
            f"Cycle complete: {summary.ok} ok, {summary.skipped} skipped, "
            f"{summary.failed} failed"
        )
        return summary
