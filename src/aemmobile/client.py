"""High level client for the AEM Mobile publishing service."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable

from . import auth
from .config import (
    DEFAULT_WATCH_OPTIONS,
    Credentials,
    WatchOptions,
    get_credentials,
    get_network_retry_backoff,
    get_network_retry_count,
    get_network_timeout,
    get_watch_options,
)
from .entities import EntityClient, EntityRef
from .errors import EntityResolutionError, ServerError
from .status import Aspect, StatusEvent, baseline_time
from .transport import PECS_URL, Session
from .watcher import Watch, WatchOutcome, WatchRequest

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def default_watch_options() -> dict[str, WatchOptions]:
    return {kind: WatchOptions(**values) for kind, values in DEFAULT_WATCH_OPTIONS.items()}


class AEMMobileAPI(EntityClient):
    """Client for one publication.

    Entity reads and writes come from ``EntityClient``. This class adds
    authentication and the long-running operations (article upload,
    publish, unpublish), which wait for the service to confirm completion.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        options: dict[str, WatchOptions] | None = None,
        session: Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        super().__init__(session if session is not None else Session(credentials))
        self.credentials = credentials
        self.options = default_watch_options()
        if options:
            self.options.update(options)
        self.max_workers = max_workers
        self._sleep = sleep

    @classmethod
    def from_config(cls, **kwargs: Any) -> "AEMMobileAPI":
        """Create a client from the config file and environment.

        ``options`` given here override the configured watch options per
        operation. The session is always built from the configuration.
        """
        if "session" in kwargs:
            raise TypeError(
                "from_config() builds its own session; use AEMMobileAPI() to pass one"
            )
        credentials = get_credentials()
        session = Session(
            credentials,
            timeout=get_network_timeout(),
            retry_count=get_network_retry_count(),
            retry_backoff=get_network_retry_backoff(),
        )
        options = {kind: get_watch_options(kind) for kind in DEFAULT_WATCH_OPTIONS}
        options.update(kwargs.pop("options", None) or {})
        return cls(credentials, options=options, session=session, **kwargs)

    @property
    def session_id(self) -> str:
        return self.session.session_id

    def get_access_token(self) -> dict[str, Any]:
        return auth.get_access_token(self.session)

    def get_publications(self) -> Any:
        return auth.get_publications(self.session)

    def get_permissions(self) -> Any:
        return auth.get_permissions(self.session)

    def upload_article(
        self,
        article_name: str,
        file_path: str | Path,
        *,
        deadline: float | None = None,
    ) -> WatchOutcome:
        """Upload an article package and wait until it has been ingested.

        The outcome's payload is the upload response. An exhausted outcome
        means the service had not confirmed ingestion within the polling
        budget; the upload itself was accepted.
        """
        data = Path(file_path).read_bytes()
        options = self.options["upload_article"]
        request = WatchRequest(
            entity_key=f"article/{article_name}",
            aspect=Aspect.INGESTION,
            max_attempts=options.max_retries,
            poll_interval=options.time_between_requests,
            deadline=deadline,
        )
        watch = Watch(
            request,
            fetch_status=self.get_status,
            submit=lambda: self.upload_article_contents(article_name, data),
            sleep=self._sleep,
        )
        return watch.run()

    def publish(
        self,
        entity_uris: str | list[str],
        unpublish: bool = False,
        *,
        deadline: float | None = None,
    ) -> WatchOutcome:
        """Publish one or more entities as a single job and wait for it.

        ``entity_uris`` are paths like ``article/my-article``. All entities
        are resolved concurrently and submitted together, but only the last
        one is polled: the job is taken as finished when that entity is.

        Raises:
            EntityResolutionError: An entity or its status feed could not be
                fetched, or the entity has no version. Nothing is submitted.
        """
        if isinstance(entity_uris, str):
            entity_uris = [entity_uris]
        uris = list(entity_uris)
        if not uris:
            raise ValueError("No entities to publish")

        aspect = Aspect.UNPUBLISHING if unpublish else Aspect.PUBLISHING

        workers = min(len(uris), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            resolved = list(pool.map(self._resolve_entity, uris))

        refs = [ref for ref, _ in resolved]
        last_ref, last_events = resolved[-1]

        body = {
            "workflowType": "unpublish" if unpublish else "publish",
            "entities": [ref.href(self.publication_id) for ref in refs],
            "publicationId": self.publication_id,
        }

        options = self.options["publish"]
        request = WatchRequest(
            entity_key=last_ref.uri,
            aspect=aspect,
            max_attempts=options.max_retries,
            poll_interval=options.time_between_requests,
            baseline_time=baseline_time(last_events, aspect),
            deadline=deadline,
        )
        watch = Watch(
            request,
            fetch_status=self.get_status,
            submit=lambda: self.submit_job(body),
            capture_baseline=False,
            sleep=self._sleep,
        )
        return watch.run()

    def unpublish(
        self,
        entity_uris: str | list[str],
        *,
        deadline: float | None = None,
    ) -> WatchOutcome:
        """Unpublish one or more entities and wait for it."""
        return self.publish(entity_uris, unpublish=True, deadline=deadline)

    def submit_job(self, body: dict[str, Any]) -> Any:
        """Submit a publish or unpublish job."""
        return self.session.post(
            f"{PECS_URL}/job",
            json=body,
            headers={"Content-Type": "application/json"},
        )

    def _resolve_entity(self, entity_uri: str) -> tuple[EntityRef, list[StatusEvent]]:
        """Fetch an entity's metadata and status feed for a publish job."""
        try:
            entity = self.get_entity(entity_uri)
        except ServerError as e:
            raise EntityResolutionError(entity_uri, e) from e

        if not isinstance(entity, dict):
            raise EntityResolutionError(entity_uri, ValueError("not an entity"))
        missing = [k for k in ("entityType", "entityName", "version") if not entity.get(k)]
        if missing:
            raise EntityResolutionError(
                entity_uri, ValueError(f"entity has no {', '.join(missing)}")
            )

        ref = EntityRef.from_entity(entity)
        try:
            events = self.get_status(ref.uri)
        except ServerError as e:
            raise EntityResolutionError(entity_uri, e) from e
        return ref, events
