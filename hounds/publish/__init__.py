"""Publishing pipeline for the hounds CLI.

One run drives a single platform edit through upload, listing, graphics and
distribution, then validates and commits it. Stages talk to the platform only
through ``PublishingApi`` so they can be exercised against ``MockPublishingApi``.
"""

from hounds.publish.api import ApiError, MockPublishingApi, PublishingApi, RestPublishingApi
from hounds.publish.config_file import apply_overrides, load_publish_config
from hounds.publish.orchestrator import PublishOrchestrator, PublishOutcome, preflight
from hounds.publish.session_store import SessionStore
from hounds.publish.sessions import EditSessionManager

__all__ = [
    # api
    "ApiError",
    "MockPublishingApi",
    "PublishingApi",
    "RestPublishingApi",
    # configuration
    "apply_overrides",
    "load_publish_config",
    # run
    "EditSessionManager",
    "PublishOrchestrator",
    "PublishOutcome",
    "SessionStore",
    "preflight",
]
