"""Link manifest tracking the plugin links created by uepm.

The manifest lives inside the plugins directory it describes. It is
advisory: if it can't be read, uepm behaves as if it had never linked
anything there.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from uepm.config.schemas import MANAGER_NAME, LinkManifest, LinkRecord
from uepm.utils.filesystem import path_exists

logger = logging.getLogger(__name__)

# Parses a manifest without validating its shape
_RAW_DOCUMENT = TypeAdapter(Any)


def parse_link_records(data: object) -> dict[str, LinkRecord]:
    """Validate raw manifest data into records keyed by plugin name.

    Malformed entries are dropped one by one; a document of the wrong
    shape yields an empty mapping.

    Args:
        data: Parsed JSON document

    Returns:
        Valid records keyed by plugin name, in file order
    """
    if not isinstance(data, dict):
        return {}
    raw_links = data.get("links")
    if not isinstance(raw_links, list):
        return {}

    records: dict[str, LinkRecord] = {}
    for raw in raw_links:
        try:
            record = LinkRecord.model_validate(raw)
        except ValidationError:
            logger.debug("Ignoring malformed manifest entry: %r", raw)
            continue
        records[record.plugin_name] = record
    return records


class LinkManifestManager:
    """Manages the link manifest of one plugins directory.

    The manifest is stored at ``<destination>/.uepm_links.json``.
    """

    MANIFEST_FILE = f".{MANAGER_NAME}_links.json"

    def __init__(self, destination_dir: Path) -> None:
        """Initialize the manifest manager.

        Args:
            destination_dir: Directory the plugin links are created in
        """
        self.destination_dir = destination_dir

    @property
    def manifest_path(self) -> Path:
        """Get the manifest file path."""
        return self.destination_dir / self.MANIFEST_FILE

    def exists(self) -> bool:
        """Check whether a manifest file is present."""
        return path_exists(self.manifest_path)

    def load(self) -> dict[str, LinkRecord]:
        """Load the managed link records.

        A manifest with some malformed entries keeps its valid ones.

        Returns:
            Records keyed by plugin name, or an empty mapping if the
            manifest is missing, unreadable or corrupt
        """
        if not self.exists():
            return {}

        try:
            content = self.manifest_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable link manifest %s: %s", self.manifest_path, e)
            return {}

        try:
            manifest = LinkManifest.model_validate_json(content)
        except ValidationError:
            try:
                data = _RAW_DOCUMENT.validate_json(content)
            except ValidationError as e:
                logger.warning("Ignoring corrupt link manifest %s: %s", self.manifest_path, e)
                return {}
            return parse_link_records(data)

        return {record.plugin_name: record for record in manifest.links}

    def save(self, records: list[LinkRecord]) -> None:
        """Write the manifest, replacing its previous content entirely.

        Args:
            records: Every record uepm manages in this directory

        Raises:
            OSError: If the manifest can't be written
        """
        manifest = LinkManifest(links=records)
        self.manifest_path.parent.mkdir(parents=True, exist_ok=True)
        self.manifest_path.write_text(
            manifest.model_dump_json(by_alias=True, indent=2) + "\n", encoding="utf-8"
        )
        logger.debug("Saved %d link record(s) to %s", len(records), self.manifest_path)
