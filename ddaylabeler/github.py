"""
GitHub REST API client for the D-day labeler.

Lists pull requests and adds/removes labels on them.
Uses GITHUB_TOKEN environment variable for authentication.

Every call is a single attempt: failures surface as GitHubAPIError
and are left to the caller.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Iterator
from urllib.parse import quote

import requests

from . import __version__


GITHUB_API_BASE = "https://api.github.com"
DEFAULT_PER_PAGE = 100


@dataclass
class GitHubPR:
    """Parsed GitHub PR data."""
    number: int
    title: str
    labels: list[str] = field(default_factory=list)
    state: str = "open"
    html_url: str = ""


class GitHubAPIError(Exception):
    """Error from GitHub API."""
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:
    """GitHub REST API client scoped to one repository."""
    
    def __init__(
        self,
        repo: str,
        token: str | None = None,
        api_url: str = GITHUB_API_BASE,
    ):
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.token = token or os.environ.get("GITHUB_TOKEN")
        self.session = requests.Session()
        
        if self.token:
            self.session.headers["Authorization"] = f"token {self.token}"
        
        self.session.headers["Accept"] = "application/vnd.github.v3+json"
        self.session.headers["User-Agent"] = f"dday-labeler/{__version__}"
    
    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Make a single API request."""
        url = f"{self.api_url}{endpoint}"
        
        try:
            response = self.session.request(method, url, params=params, **kwargs)
        except requests.RequestException as e:
            raise GitHubAPIError(f"Request failed: {e}")
        
        if response.status_code >= 400:
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {response.text}",
                response.status_code
            )
        
        return response
    
    def _paginate(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Iterate through paginated API results."""
        params = params or {}
        params.setdefault("per_page", DEFAULT_PER_PAGE)
        page = 1
        
        while True:
            params["page"] = page
            response = self._request("GET", endpoint, params=params)
            items = response.json()
            
            if not items:
                break
            
            for item in items:
                yield item
            
            if len(items) < params["per_page"]:
                break
            
            page += 1
    
    def list_pulls(self, state: str = "open") -> list[GitHubPR]:
        """
        List pull requests for the repository.
        
        Args:
            state: PR state filter (open, closed, all)
        
        Returns:
            List of GitHubPR objects
        """
        endpoint = f"/repos/{self.repo}/pulls"
        return [self._parse_pr(item) for item in self._paginate(endpoint, {"state": state})]
    
    def add_labels(self, number: int, labels: list[str]) -> list[str]:
        """Add labels to a PR. Returns the PR's label names afterwards."""
        endpoint = f"/repos/{self.repo}/issues/{number}/labels"
        response = self._request("POST", endpoint, json={"labels": labels})
        return [label.get("name", "") for label in response.json()]
    
    def remove_label(self, number: int, label: str) -> None:
        """Remove a single label from a PR."""
        endpoint = f"/repos/{self.repo}/issues/{number}/labels/{quote(label, safe='')}"
        self._request("DELETE", endpoint)
    
    def _parse_pr(self, data: dict[str, Any]) -> GitHubPR:
        """Parse raw PR data into GitHubPR object."""
        labels = data.get("labels", [])
        
        return GitHubPR(
            number=data.get("number", 0),
            title=data.get("title", ""),
            labels=[label.get("name", "") for label in labels if label.get("name")],
            state=data.get("state", ""),
            html_url=data.get("html_url", ""),
        )
