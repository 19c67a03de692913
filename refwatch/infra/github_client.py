"""
GitHub API client infrastructure for refwatch.

Provides a remote collaborator for repositories hosted on GitHub, for
installations that would rather not shell out to git:
- Lists references (branches, tags and pull request heads) via the REST API
- Reports the repository's default branch as the remote HEAD
- Handles rate limiting with exponential backoff
"""

import os
import time
import logging
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

import requests

from ..domain.reference import HEAD, RemoteReference, RemoteReferenceSnapshot
from ..errors import RemoteAccessError

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


class GitHubClient:
    """
    GitHub API client with rate limiting.

    Example:
        client = GitHubClient()
        refs = client.list_refs("octo", "hello")
        print(client.default_branch("octo", "hello"))
    """

    def __init__(
        self,
        token: Optional[str] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        timeout: float = 30.0,
        base_url: str = API_URL
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token (defaults to REFWATCH_GITHUB_TOKEN or GITHUB_TOKEN env var)
            max_retries: Maximum retry attempts for rate-limited requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            timeout: Per-request timeout in seconds
            base_url: API root, for GitHub Enterprise installations
        """
        self.token = token or os.environ.get('REFWATCH_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self.base_url = base_url.rstrip('/')
        self._rate_limit_status: Optional[RateLimitStatus] = None

    @property
    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status from the last API response, if any."""
        return self._rate_limit_status

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'refwatch'
        }
        if self.token:
            headers['Authorization'] = f'token {self.token}'
        return headers

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))
        except (ValueError, TypeError):
            return

        if remaining >= 0 and limit >= 0:
            self._rate_limit_status = RateLimitStatus(
                remaining=remaining,
                limit=limit,
                reset_time=reset_time,
                used=used
            )

            if self._rate_limit_status.is_low:
                logger.warning(
                    f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                    f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                )

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        GET a URL, retrying rate-limited and failed requests.

        Returns the final response for any status other than a rate limit;
        callers decide what the status means.

        Raises:
            RemoteAccessError: retries exhausted
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                response = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {e}")
                last_error = str(e)
                if attempt < self.max_retries - 1:
                    time.sleep(min(self.base_delay * (2 ** attempt), self.max_delay))
                continue

            self._update_rate_limit_from_headers(response.headers)

            if response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0':
                last_error = "rate limit exceeded"
                reset_time = response.headers.get('X-RateLimit-Reset')
                if reset_time:
                    wait_time = int(reset_time) - int(time.time())
                    if 0 < wait_time < self.max_delay:
                        logger.info(f"Rate limited, waiting {wait_time}s")
                        time.sleep(wait_time)
                        continue

                delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
                time.sleep(delay)
                continue

            return response

        raise RemoteAccessError(url, last_error)

    def _api(self, endpoint: str) -> Any:
        """Fetch a single API resource, raising on any non-200 status."""
        url = f"{self.base_url}/{endpoint}"
        response = self._get(url)
        if response.status_code != 200:
            raise RemoteAccessError(url, f"GitHub API error {response.status_code}")
        return response.json()

    def _api_pages(self, endpoint: str) -> List[Dict[str, Any]]:
        """Fetch every page of a list endpoint."""
        url: Optional[str] = f"{self.base_url}/{endpoint}"
        params: Optional[Dict[str, Any]] = {'per_page': 100}
        items: List[Dict[str, Any]] = []

        while url:
            response = self._get(url, params=params)
            if response.status_code == 409:
                # Empty repository: nothing advertised yet
                return []
            if response.status_code != 200:
                raise RemoteAccessError(url, f"GitHub API error {response.status_code}")

            data = response.json()
            if isinstance(data, dict):
                data = [data]
            items.extend(data)

            url = response.links.get('next', {}).get('url')
            params = None  # the next link already carries the query string

        return items

    def list_refs(self, owner: str, name: str) -> List[RemoteReference]:
        """
        List every reference in a repository.

        Args:
            owner: Repository owner
            name: Repository name

        Returns:
            Concrete references (no symbolic entries)
        """
        refs = []
        for item in self._api_pages(f"repos/{owner}/{name}/git/refs"):
            ref_name = item.get('ref')
            if not ref_name:
                continue
            obj = item.get('object') or {}
            refs.append(RemoteReference(name=ref_name, object_id=obj.get('sha')))
        return refs

    def default_branch(self, owner: str, name: str) -> Optional[str]:
        """Default branch name (e.g. ``main``), or None if unset."""
        data = self._api(f"repos/{owner}/{name}")
        return data.get('default_branch') or None


class GitHubRemote:
    """
    Remote collaborator backed by the GitHub REST API.

    The repository's default branch is advertised as a symbolic HEAD, the
    way ``git ls-remote --symref`` would show it.
    """

    def __init__(self, owner: str, name: str, client: Optional[GitHubClient] = None):
        self.owner = owner
        self.name = name
        self.client = client or GitHubClient()

    def __repr__(self) -> str:
        return f"GitHubRemote({self.owner!r}, {self.name!r})"

    def default_reference(self) -> Optional[str]:
        branch = self.client.default_branch(self.owner, self.name)
        if branch is None:
            return None
        return f"refs/heads/{branch}"

    def list_references(self) -> RemoteReferenceSnapshot:
        references = self.client.list_refs(self.owner, self.name)
        head = self.default_reference()
        if head is not None:
            references.insert(0, RemoteReference(name=HEAD, symbolic_target=head))
        return RemoteReferenceSnapshot(tuple(references))
