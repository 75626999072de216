from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests

from .errors import FetchError

GITHUB_API = os.environ.get("GITHUB_API_URL", "https://api.github.com")
DEFAULT_HTTP_TIMEOUT_SECONDS = float(os.environ.get("PRGATE_HTTP_TIMEOUT_SECONDS", "15"))
PER_PAGE = 100


class GitHubClient:
    """Thin REST client for the endpoints the policy gate reads and writes.

    Transport failures and non-2xx responses surface as FetchError.
    """

    def __init__(self, token: str, repo: str, api_url: Optional[str] = None):
        self.token = token
        self.repo = repo
        self.api_url = (api_url or GITHUB_API).rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "pr-policy-gate",
        })

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", DEFAULT_HTTP_TIMEOUT_SECONDS)
        try:
            r = self.session.request(method, url, **kwargs)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(f"{method} {url} failed: {exc}") from exc
        return r

    def _paginate(self, url: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Follow ``Link: rel=next`` headers and concatenate list pages."""
        items: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        next_params: Optional[Dict[str, Any]] = {"per_page": PER_PAGE, **(params or {})}
        while next_url:
            r = self._request("GET", next_url, params=next_params)
            try:
                page = r.json()
            except ValueError as exc:
                raise FetchError(f"GET {next_url} returned invalid JSON: {exc}") from exc
            if not isinstance(page, list):
                raise FetchError(f"GET {next_url} returned {type(page).__name__}, expected a list")
            items.extend(page)
            next_url = (r.links.get("next") or {}).get("url")
            # The next link already carries the query string.
            next_params = None
        return items

    def list_pull_request_files(self, pr_number: int) -> List[str]:
        url = f"{self.api_url}/repos/{self.repo}/pulls/{pr_number}/files"
        return [f["filename"] for f in self._paginate(url) if f.get("filename")]

    def list_check_runs(self, head_sha: str, check_name: Optional[str] = None) -> List[Dict[str, Any]]:
        url = f"{self.api_url}/repos/{self.repo}/commits/{head_sha}/check-runs"
        params: Dict[str, Any] = {"per_page": PER_PAGE}
        if check_name:
            params["check_name"] = check_name
        r = self._request("GET", url, params=params)
        try:
            return r.json().get("check_runs", []) or []
        except (ValueError, AttributeError) as exc:
            raise FetchError(f"GET {url} returned an unexpected payload: {exc}") from exc

    def list_issue_comments(self, pr_number: int) -> List[Dict[str, Any]]:
        url = f"{self.api_url}/repos/{self.repo}/issues/{pr_number}/comments"
        return self._paginate(url)

    def create_issue_comment(self, pr_number: int, body: str) -> Optional[str]:
        url = f"{self.api_url}/repos/{self.repo}/issues/{pr_number}/comments"
        r = self._request("POST", url, json={"body": body})
        try:
            return (r.json() or {}).get("html_url")
        except ValueError:
            return None
