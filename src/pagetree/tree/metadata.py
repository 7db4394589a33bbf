"""Sidecar metadata store: one page.json per node directory."""

import json
import logging

from pydantic import ValidationError

from pagetree.constants import META_FILENAME
from pagetree.tree.models import PageMeta, PageMetaPatch
from pagetree.tree.repository import Repository, join

logger = logging.getLogger(__name__)


class MetadataStore:
    """Reads and writes node sidecar files.

    Reads never fail: an absent or unparsable sidecar yields an empty PageMeta
    so one corrupt file cannot block tree assembly. Writes replace the full
    record; patch semantics live in merge().
    """

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def read(self, node_dir: str) -> PageMeta:
        """Read the sidecar of the node stored in node_dir."""
        raw = self._repo.read_text(join(node_dir, META_FILENAME))
        if raw is None:
            return PageMeta()
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            return PageMeta.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unparsable metadata in {node_dir}: {e}")
            return PageMeta()

    def write(self, node_dir: str, meta: PageMeta) -> None:
        """Serialize the full record into node_dir/page.json."""
        content = json.dumps(meta.to_json_dict(), indent=2, ensure_ascii=False)
        self._repo.write_text(join(node_dir, META_FILENAME), content + "\n")

    @staticmethod
    def merge(meta: PageMeta, patch: PageMetaPatch) -> PageMeta:
        """Overlay the fields present in patch onto meta.

        A field sent explicitly as null clears the stored value.
        """
        updates = {name: getattr(patch, name) for name in patch.model_fields_set}
        if updates.get("links") is None and "links" in updates:
            updates["links"] = []
        return meta.model_copy(update=updates)
