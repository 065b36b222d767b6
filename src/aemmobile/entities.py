"""Entity operations for articles and collections."""

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigError, EntityNotFoundError
from .status import StatusEvent, parse_events
from .transport import INGESTION_URL, PECS_URL, Session

logger = logging.getLogger(__name__)

MIMETYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}

IMAGE_KINDS = ("background", "thumbnail")

ARTICLE_CONTENT_TYPE = "application/vnd.adobe.article+zip"


@dataclass(frozen=True)
class EntityRef:
    """A specific version of an entity."""

    entity_type: str
    entity_name: str
    version: str | None = None

    @classmethod
    def from_entity(cls, data: dict[str, Any]) -> "EntityRef":
        return cls(
            entity_type=data["entityType"],
            entity_name=data["entityName"],
            version=data.get("version"),
        )

    @property
    def uri(self) -> str:
        """Entity path relative to the publication, without version."""
        return f"{self.entity_type}/{self.entity_name}"

    def href(self, publication_id: str) -> str:
        href = f"/publication/{publication_id}/{self.uri}"
        if self.version:
            href += f";version={self.version}"
        return href


class EntityClient:
    """Reads and writes entities of one publication."""

    def __init__(self, session: Session):
        self.session = session

    @property
    def publication_id(self) -> str:
        publication_id = self.session.publication_id
        if not publication_id:
            raise ConfigError("Credentials have no publication_id")
        return publication_id

    def _publication_url(self, entity_uri: str) -> str:
        return f"{PECS_URL}/publication/{self.publication_id}/{entity_uri}"

    def get_entity(self, entity_uri: str) -> Any:
        """GET an entity path like 'article/name' or 'collection'."""
        return self.session.get(self._publication_url(entity_uri))

    def delete_entity(self, entity_uri: str) -> Any:
        return self.session.delete(self._publication_url(entity_uri))

    def get_status(self, entity_uri: str) -> list[StatusEvent]:
        """Get the status feed of an entity."""
        data = self.session.get(f"{PECS_URL}/status/{self.publication_id}/{entity_uri}")
        return parse_events(data)

    def get_article(self, article_name: str) -> dict[str, Any]:
        return self.get_entity(f"article/{article_name}")

    def get_collections(self) -> Any:
        return self.get_entity("collection")

    def get_collection(self, collection_name: str) -> dict[str, Any]:
        return self.get_entity(f"collection/{collection_name}")

    def get_collection_elements(self, collection: dict[str, Any]) -> list[dict[str, Any]]:
        """Get the content elements of a collection version."""
        ref = EntityRef.from_entity(collection)
        data = self.get_entity(
            f"collection/{ref.entity_name};version={ref.version}/contentElements"
        )
        return data if isinstance(data, list) else []

    def put_entity(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create or update an entity. Updates must carry the current version."""
        url = self._publication_url(f"{data['entityType']}/{data['entityName']}")
        if data.get("version"):
            url += f";version={data['version']}"
        return self.session.put(
            url,
            json=data,
            headers={"Content-Type": "application/json"},
        )

    def put_article(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create or update an article, filling in defaults."""
        data.setdefault("accessState", "free")
        data.setdefault("adType", "static")
        data.setdefault("importance", "normal")
        data.setdefault("title", data["entityName"])
        data["entityType"] = "article"
        return self.put_entity(data)

    def put_collection(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create or update a collection, filling in defaults."""
        data.setdefault("importance", "normal")
        data.setdefault("title", data["entityName"])
        data["entityType"] = "collection"
        return self.put_entity(data)

    def add_article_to_collection(self, article_name: str, collection_name: str) -> Any:
        """Add the current version of an article to a collection.

        Earlier versions of the same article are removed from the
        collection's content elements first.
        """
        try:
            collection = self.get_collection(collection_name)
        except EntityNotFoundError as e:
            raise EntityNotFoundError(
                e.code, f"Collection {collection_name} not found.", e.data
            ) from e

        elements = self.get_collection_elements(collection)
        article = self.get_article(article_name)
        article_ref = EntityRef.from_entity(article)

        pattern = re.compile(re.escape(f"article/{article_ref.entity_name};"))
        elements = [e for e in elements if not pattern.search(e.get("href", ""))]
        elements.append({"href": article_ref.href(self.publication_id)})

        collection_ref = EntityRef.from_entity(collection)
        return self.session.put(
            self._publication_url(
                f"collection/{collection_ref.entity_name};version={collection_ref.version}"
                "/contentElements"
            ),
            json=elements,
            headers={"Content-Type": "application/json"},
        )

    def put_image(self, entity: dict[str, Any], image_path: str | Path, kind: str) -> Any:
        """Upload an image and attach it to an entity.

        The upload goes to the entity's content URL, the entity is updated
        to reference it, and the upload is sealed against the new entity
        version.
        """
        if kind not in IMAGE_KINDS:
            raise ValueError("Incorrect image type")

        image_path = Path(image_path)
        mimetype = MIMETYPES.get(image_path.suffix.lstrip(".").lower())
        if mimetype is None:
            raise ValueError(f"Unsupported image format: {image_path.suffix}")

        upload_id = str(uuid.uuid4())
        content_href = entity["_links"]["contentUrl"]["href"]
        self.session.put(
            f"{PECS_URL}{content_href}images/{kind}",
            data=image_path.read_bytes(),
            headers={"Content-Type": mimetype, "X-DPS-Upload-Id": upload_id},
        )

        uri = EntityRef.from_entity(entity).uri
        current = self.get_entity(uri)
        current.setdefault("_links", {})[kind] = {"href": f"contents/images/{kind}"}
        self.put_entity(current)

        latest = EntityRef.from_entity(self.get_entity(uri))
        logger.info("Sealing %s upload for %s", kind, uri)
        return self.session.put(
            self._publication_url(f"{latest.uri};version={latest.version}/contents"),
            headers={"X-DPS-Upload-Id": upload_id},
        )

    def put_article_image(self, article: dict[str, Any], image_path: str | Path) -> Any:
        """Set the thumbnail image of an article."""
        return self.put_image(article, image_path, "thumbnail")

    def upload_article_contents(self, article_name: str, data: bytes) -> Any:
        """Upload an article package to the ingestion service."""
        return self.session.put(
            f"{INGESTION_URL}/publication/{self.publication_id}"
            f"/article/{article_name}/contents/folio",
            data=data,
            headers={"Content-Type": ARTICLE_CONTENT_TYPE},
        )
