"""Item sinks: where converted items go once they are final."""

from collections import Counter, defaultdict
from typing import Iterable

import polars as pl
import structlog

from assembly_pipeline.items.models import Item
from assembly_pipeline.persistence.duckdb_store import PipelineStore

logger = structlog.get_logger()


class DuplicateItemError(ValueError):
    """Raised when an item identifier is stored a second time."""


class ItemWriter:
    """
    Base item sink.

    Every identifier may be stored at most once; a second store() of the
    same identifier raises DuplicateItemError. Subclasses implement _write().
    """

    def __init__(self):
        self._stored: set[str] = set()
        self.counts: Counter = Counter()

    def store(self, item: Item) -> None:
        if item.identifier in self._stored:
            raise DuplicateItemError(
                f"Item {item.identifier} ({item.class_name}) already stored"
            )
        self._stored.add(item.identifier)
        self.counts[item.class_name] += 1
        self._write(item)

    def store_all(self, items: Iterable[Item]) -> None:
        for item in items:
            self.store(item)

    def _write(self, item: Item) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Finish writing. The base sink has nothing to flush."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class MemoryItemWriter(ItemWriter):
    """Keep stored items in memory (dry runs and tests)."""

    def __init__(self):
        super().__init__()
        self.items: dict[str, Item] = {}

    def _write(self, item: Item) -> None:
        self.items[item.identifier] = item

    def get(self, identifier: str) -> Item | None:
        return self.items.get(identifier)

    def by_class(self, class_name: str) -> list[Item]:
        return [item for item in self.items.values() if item.class_name == class_name]


def table_name_for(class_name: str) -> str:
    """Warehouse class name -> DuckDB table name (e.g. "MRNA" -> "mrna")."""
    return class_name.lower()


def records_to_dataframe(records: list[dict]) -> pl.DataFrame:
    """
    Build a DataFrame from flattened item records of one class.

    Records of one class may carry different attribute sets (a stub has
    fewer fields than a fully defined feature), so the schema is the union
    of all keys. List values (collections) become List(Utf8) columns,
    everything else Utf8.
    """
    schema: dict[str, pl.DataType] = {}
    for record in records:
        for key, value in record.items():
            if isinstance(value, list):
                schema[key] = pl.List(pl.Utf8)
            else:
                schema.setdefault(key, pl.Utf8)

    rows = [{key: record.get(key) for key in schema} for record in records]
    return pl.DataFrame(rows, schema=schema)


class DuckDBItemWriter(ItemWriter):
    """
    Write items into a PipelineStore, one table per warehouse class.

    Records are captured when an item is stored and written as one batch
    per class on close().
    """

    def __init__(self, store: PipelineStore):
        super().__init__()
        self.store_backend = store
        self._buffers: dict[str, list[dict]] = defaultdict(list)

    def _write(self, item: Item) -> None:
        self._buffers[item.class_name].append(item.to_record())

    def close(self) -> None:
        for class_name, records in sorted(self._buffers.items()):
            df = records_to_dataframe(records)
            table_name = table_name_for(class_name)
            self.store_backend.save_dataframe(
                df,
                table_name,
                description=f"{class_name} items",
                replace=True,
            )
            logger.info("item_table_written", table=table_name, row_count=df.height)
        self._buffers.clear()
