from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from .exceptions import NotFoundError, RecordShapeError
from .models import CountryAggregate, StationRecord

logger = logging.getLogger(__name__)


class StationCatalog:
    """Holds the current station set and the transforms over it.

    The transforms are static so they can run over any record sequence; the
    instance methods apply them to whatever set was loaded last.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: list[StationRecord] = []
        self._index: dict[str, StationRecord] = {}
        self._version = datetime.now(timezone.utc).isoformat()

    @staticmethod
    def ingest(raw_records: Iterable[Any]) -> list[StationRecord]:
        records: list[StationRecord] = []
        dropped = 0
        for idx, item in enumerate(raw_records):
            try:
                records.append(StationRecord.from_raw(item))
            except RecordShapeError as exc:
                dropped += 1
                logger.debug("Dropping directory entry %s: %s", idx, exc.message)

        if dropped:
            logger.info("Ingested %s stations, dropped %s ineligible entries", len(records), dropped)
        return records

    @staticmethod
    def aggregate_by_country(records: Iterable[StationRecord]) -> list[CountryAggregate]:
        # dicts keep insertion order, which is the order of first appearance
        countries: dict[str, CountryAggregate] = {}
        for record in records:
            aggregate = countries.get(record.country)
            if aggregate is None:
                aggregate = CountryAggregate(
                    name=record.country,
                    latitude=record.latitude,
                    longitude=record.longitude,
                )
                countries[record.country] = aggregate
            aggregate.station_count += 1
        return list(countries.values())

    @staticmethod
    def filter_by_country(records: Iterable[StationRecord], country: str) -> list[StationRecord]:
        return [record for record in records if record.country == country]

    @staticmethod
    def search(records: Sequence[StationRecord], term: str) -> list[StationRecord]:
        if not term:
            return list(records)
        needle = term.lower()
        return [
            record
            for record in records
            if needle in record.name.lower() or needle in record.tags.lower()
        ]

    @property
    def version(self) -> str:
        return self._version

    @property
    def count(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[StationRecord]:
        with self._lock:
            return list(self._records)

    def load(self, raw_records: Iterable[Any]) -> list[StationRecord]:
        records = self.ingest(raw_records)
        index: dict[str, StationRecord] = {}
        for record in records:
            index.setdefault(record.station_id, record)

        with self._lock:
            self._records = records
            self._index = index
            self._version = datetime.now(timezone.utc).isoformat()

        logger.info(
            "Catalog refreshed: stations=%s, countries=%s",
            len(records),
            len(self.aggregate_by_country(records)),
        )
        return records

    def countries(self) -> list[CountryAggregate]:
        return self.aggregate_by_country(self.records)

    def stations_in(self, country: str) -> list[StationRecord]:
        return self.filter_by_country(self.records, country)

    def get(self, station_id: str) -> StationRecord:
        with self._lock:
            record = self._index.get(station_id)
        if record is None:
            raise NotFoundError(f"Unknown station: {station_id}")
        return record
