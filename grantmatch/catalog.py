"""
Grant Catalog Loader.

Responsibilities:
- Pull raw entries from a catalog source and parse them into GrantRecords.
- Skip malformed or duplicate entries with a recorded warning.
- Publish the result as an immutable CatalogSnapshot.

Non-Responsibilities:
- No eligibility or scoring decisions.
- No retries; callers wrap load() if they want them.

Invariant:
The published snapshot reference is replaced in a single assignment and the
snapshot itself is never edited. A failed load leaves the previous snapshot
in effect.
"""

import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set, Tuple

from .errors import CatalogUnavailable, MalformedRecord
from .logger import StructuredLogger, get_logger
from .models import EMPTY_SNAPSHOT, CatalogSnapshot, GrantRecord
from .schema import parse_grant


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogLoader:
    """
    Owns the current catalog snapshot for one process (or one test).

    Readers call current() and keep the returned snapshot for the whole
    request; they never block on a reload in progress.
    """

    def __init__(
        self,
        source,
        logger: Optional[StructuredLogger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.source = source
        self.logger = logger or get_logger()
        self.clock = clock
        self._snapshot: CatalogSnapshot = EMPTY_SNAPSHOT
        self._reload_lock = threading.Lock()

    def current(self) -> CatalogSnapshot:
        """Latest successfully loaded snapshot, or EMPTY_SNAPSHOT."""
        return self._snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot.is_loaded

    def load(self) -> CatalogSnapshot:
        """
        Build a fresh snapshot from the source and publish it.

        Returns:
            The newly published CatalogSnapshot

        Raises:
            CatalogUnavailable: If the source cannot be reached; the
                previous snapshot stays current
        """
        with self._reload_lock:
            self.logger.record_load_attempt()
            self.logger.debug("Loading grant catalog", source=self.source.describe())

            try:
                entries = self.source.fetch()
            except CatalogUnavailable as e:
                self.logger.record_load_failure(type(e).__name__)
                self.logger.error(
                    "Catalog load failed; keeping previous snapshot",
                    source=self.source.describe(),
                    error=str(e),
                    previous_count=self._snapshot.count,
                )
                raise

            records, skipped = self._parse_entries(entries)
            snapshot = CatalogSnapshot.build(records, loaded_at=self.clock(), skipped=skipped)
            self._snapshot = snapshot

            self.logger.record_load_success(snapshot.count)
            self.logger.info(
                f"Catalog loaded: {snapshot.count} grants, {skipped} skipped",
                source=self.source.describe(),
                loaded_at=snapshot.loaded_at.isoformat(),
            )
            return snapshot

    def reload(self) -> CatalogSnapshot:
        """Alias of load(); reads better at call sites that refresh."""
        return self.load()

    def _parse_entries(self, entries) -> Tuple[List[GrantRecord], int]:
        records: List[GrantRecord] = []
        seen: Set[str] = set()
        skipped = 0

        for index, entry in enumerate(entries):
            try:
                record = parse_grant(entry)
            except MalformedRecord as e:
                skipped += 1
                self.logger.record_skipped_record("malformed")
                self.logger.warning(
                    "Skipping malformed grant record",
                    index=index,
                    grant_id=e.grant_id,
                    errors=e.errors,
                )
                continue

            if record.id in seen:
                skipped += 1
                self.logger.record_skipped_record("duplicate_id")
                self.logger.warning("Skipping duplicate grant id", index=index, grant_id=record.id)
                continue

            seen.add(record.id)
            records.append(record)

        return records, skipped
