"""GitHub Actions REST client (httpx) implementing ``PipelineClient``."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from actions_dash.errors import RATE_LIMIT_REMAINING_HEADER, classify
from actions_dash.models import (
    DEFAULT_RATE_LIMIT,
    DEFAULT_RUNS_PER_PAGE,
    MAX_PER_PAGE,
    Job,
    ListRunsOpts,
    Repository,
    Run,
    Step,
    Workflow,
)

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
REQUEST_TIMEOUT = 20  # seconds
LOG_DOWNLOAD_TIMEOUT = 60  # seconds
USER_AGENT = "actions-dash/1.0"

# ============================================================================
# Response Parsing
# ============================================================================


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_workflow(data: dict[str, Any]) -> Workflow:
    return Workflow(
        id=int(data.get("id") or 0),
        name=data.get("name") or "",
        path=data.get("path") or "",
        state=data.get("state") or "",
    )


def parse_run(data: dict[str, Any]) -> Run:
    actor = data.get("actor")
    return Run(
        id=int(data.get("id") or 0),
        name=data.get("name") or "",
        status=data.get("status") or "",
        conclusion=data.get("conclusion") or "",
        branch=data.get("head_branch") or "",
        event=data.get("event") or "",
        created_at=_parse_timestamp(data.get("created_at")),
        actor=actor.get("login", "") if isinstance(actor, dict) else "",
        url=data.get("html_url") or "",
    )


def parse_job(data: dict[str, Any]) -> Job:
    steps_raw = data.get("steps") or []
    steps = [
        Step(
            name=s.get("name") or "",
            status=s.get("status") or "",
            conclusion=s.get("conclusion") or "",
            number=int(s.get("number") or 0),
        )
        for s in steps_raw
        if isinstance(s, dict)
    ]
    return Job(
        id=int(data.get("id") or 0),
        name=data.get("name") or "",
        status=data.get("status") or "",
        conclusion=data.get("conclusion") or "",
        steps=steps,
    )


def _items(payload: Any, key: str) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    raw = payload.get(key)
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


# ============================================================================
# Client
# ============================================================================


class GitHubClient:
    """Async GitHub Actions client.

    Every response updates the remaining rate budget. Non-2xx responses and
    transport failures are raised as ``ClassifiedError``.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = GITHUB_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._headers = headers
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self._rate_limit = DEFAULT_RATE_LIMIT

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def rate_limit_remaining(self) -> int:
        return self._rate_limit

    def _update_rate_limit(self, response: httpx.Response) -> None:
        raw = response.headers.get(RATE_LIMIT_REMAINING_HEADER)
        if raw is None:
            return
        try:
            self._rate_limit = int(raw)
        except ValueError:
            logger.debug("Ignoring malformed rate limit header %r", raw)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
        follow_redirects: bool = False,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers,
                timeout=timeout if timeout is not None else self._timeout,
                follow_redirects=follow_redirects,
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s transport error: %s", method, path, exc)
            raise classify(exc) from exc
        self._update_rate_limit(response)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("%s %s returned %d", method, path, response.status_code)
            raise classify(exc) from exc
        return response

    @staticmethod
    def _repo_path(repo: Repository) -> str:
        return f"/repos/{repo.owner}/{repo.name}/actions"

    # ── Reads ──────────────────────────────────────────────────────────

    async def list_workflows(self, repo: Repository) -> list[Workflow]:
        response = await self._request(
            "GET", f"{self._repo_path(repo)}/workflows", params={"per_page": MAX_PER_PAGE}
        )
        return [parse_workflow(w) for w in _items(response.json(), "workflows")]

    async def list_runs(self, repo: Repository, opts: ListRunsOpts | None = None) -> list[Run]:
        opts = opts or ListRunsOpts()
        per_page = opts.per_page if opts.per_page > 0 else DEFAULT_RUNS_PER_PAGE
        params: dict[str, Any] = {"per_page": min(per_page, MAX_PER_PAGE)}
        if opts.branch:
            params["branch"] = opts.branch
        if opts.status:
            params["status"] = opts.status
        if opts.event:
            params["event"] = opts.event

        if opts.workflow_id > 0:
            path = f"{self._repo_path(repo)}/workflows/{opts.workflow_id}/runs"
        else:
            path = f"{self._repo_path(repo)}/runs"
        response = await self._request("GET", path, params=params)
        return [parse_run(r) for r in _items(response.json(), "workflow_runs")]

    async def list_jobs(self, repo: Repository, run_id: int) -> list[Job]:
        response = await self._request(
            "GET",
            f"{self._repo_path(repo)}/runs/{run_id}/jobs",
            params={"per_page": MAX_PER_PAGE},
        )
        return [parse_job(j) for j in _items(response.json(), "jobs")]

    async def get_job_logs(self, repo: Repository, job_id: int) -> str:
        # The endpoint answers with a redirect to a short-lived download URL.
        response = await self._request(
            "GET",
            f"{self._repo_path(repo)}/jobs/{job_id}/logs",
            timeout=LOG_DOWNLOAD_TIMEOUT,
            follow_redirects=True,
        )
        return response.text

    # ── Actions ────────────────────────────────────────────────────────

    async def cancel_run(self, repo: Repository, run_id: int) -> None:
        await self._request("POST", f"{self._repo_path(repo)}/runs/{run_id}/cancel")

    async def rerun_workflow(self, repo: Repository, run_id: int) -> None:
        await self._request("POST", f"{self._repo_path(repo)}/runs/{run_id}/rerun")

    async def rerun_failed_jobs(self, repo: Repository, run_id: int) -> None:
        await self._request("POST", f"{self._repo_path(repo)}/runs/{run_id}/rerun-failed-jobs")

    async def trigger_workflow(
        self,
        repo: Repository,
        workflow_file: str,
        ref: str,
        inputs: dict[str, str] | None = None,
    ) -> None:
        body: dict[str, Any] = {"ref": ref}
        if inputs:
            body["inputs"] = dict(inputs)
        await self._request(
            "POST",
            f"{self._repo_path(repo)}/workflows/{workflow_file}/dispatches",
            json=body,
        )


__all__ = [
    "GITHUB_API_URL",
    "GitHubClient",
    "parse_job",
    "parse_run",
    "parse_workflow",
]
