"""Remote API service layer."""

from actions_dash.services.github_client import GitHubClient
from actions_dash.services.interfaces import PipelineClient

__all__ = [
    "GitHubClient",
    "PipelineClient",
]
