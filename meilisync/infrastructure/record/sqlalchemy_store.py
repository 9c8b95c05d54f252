"""SQLAlchemy Core implementation of the RecordStore port."""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, NewType
from uuid import UUID

from sqlalchemy import Column, MetaData, Table, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from meilisync.domain.index.port.record_store import Document, Identifier, RecordStore
from meilisync.domain.index.service.naming import short_class_name
from meilisync.domain.shared.error import ConfigurationError, NotFoundError

logger = logging.getLogger(__name__)

# record class -> table holding its rows
RecordTables = NewType("RecordTables", dict[str, Table])


def table_name_for(record_class: str) -> str:
    """``app.models.MovieExample`` -> ``movie_example``."""
    short = short_class_name(record_class)
    return re.sub(r"(?<!^)(?=[A-Z])", "_", short).lower()


async def reflect_tables(
    engine: AsyncEngine,
    record_classes: Iterable[str],
    overrides: Mapping[str, str] | None = None,
    column_groups: Mapping[str, Mapping[str, list[str]]] | None = None,
) -> RecordTables:
    """Reflect the tables backing each record class from the live database.

    Reflection carries no column ``info``, so declared ``column_groups`` are
    stamped onto the reflected columns.
    """
    overrides = overrides or {}
    column_groups = column_groups or {}
    names = {cls: overrides.get(cls) or table_name_for(cls) for cls in record_classes}
    metadata = MetaData()
    async with engine.connect() as conn:
        await conn.run_sync(metadata.reflect, only=sorted(set(names.values())))
    tables = RecordTables({cls: metadata.tables[name] for cls, name in names.items()})
    for cls, groups_by_column in column_groups.items():
        table = tables.get(cls)
        if table is None:
            logger.warning(f"Column groups declared for unknown record class '{cls}'")
            continue
        for column_name, groups in groups_by_column.items():
            if column_name not in table.c:
                raise ConfigurationError(f"Table '{table.name}' has no column '{column_name}'")
            table.c[column_name].info["groups"] = list(groups)
    logger.debug(f"Reflected {len(tables)} record tables")
    return tables


def column_groups(column: Column) -> set[str]:
    """Field-selection groups declared on a column via ``info={"groups": [...]}``."""
    return set(column.info.get("groups", ()))


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    return value


class SqlAlchemyRecordStore(RecordStore):
    """Reads records as row mappings from one table per record class.

    Every table must have a single-column primary key. A column without
    declared groups belongs to every group.
    """

    def __init__(self, session: AsyncSession, tables: RecordTables) -> None:
        self.session = session
        self._tables = tables

    def _table(self, record_class: str) -> Table:
        table = self._tables.get(record_class)
        if table is None:
            raise NotFoundError(f"No table registered for record class '{record_class}'")
        return table

    @staticmethod
    def _pk(table: Table) -> Column:
        pk = list(table.primary_key.columns)
        if len(pk) != 1:
            raise ConfigurationError(f"Table '{table.name}' needs a single-column primary key")
        return pk[0]

    async def fetch_identifiers(
        self, record_class: str, offset: int, limit: int
    ) -> list[Identifier]:
        table = self._table(record_class)
        pk = self._pk(table)
        stmt = select(pk).order_by(pk.asc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_ids(self, record_class: str, ids: Sequence[Identifier]) -> list[Any]:
        if not ids:
            return []
        table = self._table(record_class)
        pk = self._pk(table)
        stmt = select(table).where(pk.in_(list(ids))).order_by(pk.asc())
        result = await self.session.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    def normalize(self, record_class: str, record: Any, groups: Sequence[str]) -> Document:
        table = self._table(record_class)
        pk = self._pk(table)
        wanted = set(groups)
        doc: Document = {}
        for column in table.columns:
            declared = column_groups(column)
            if wanted and declared and column is not pk and not (declared & wanted):
                continue
            if column.name in record:
                doc[column.name] = _json_value(record[column.name])
        return doc

    async def count(self, record_class: str) -> int:
        stmt = select(func.count()).select_from(self._table(record_class))
        result = await self.session.execute(stmt)
        return result.scalar_one()
