"""Relational store for contract records.

The ``contracts`` table is keyed by ``(chain_id, address)``. Writes go
through ``INSERT ... ON CONFLICT DO UPDATE`` so re-importing a record
overwrites its mutable columns and keeps ``created_at``. Each upsert is
its own transaction; there is no rollback across records.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from .errors import SetupError
from .models import ContractRecord


logger = logging.getLogger(__name__)

metadata = MetaData()

contracts_table = Table(
    "contracts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("address", Text, nullable=False),
    Column("chain", Text, nullable=False),
    Column("chain_id", Integer, nullable=False),
    Column("name", Text, nullable=False),
    Column("symbol", Text),
    Column("source_code", Text, nullable=False),
    Column("abi", Text, nullable=False),
    Column("is_proxy", Boolean, nullable=False),
    Column("implementation_address", Text),
    Column("protocol", Text),
    Column("contract_type", Text),
    Column("version", Text),
    Column("created_at", BigInteger, nullable=False),
    Column("updated_at", BigInteger, nullable=False),
    UniqueConstraint("chain_id", "address", name="contracts_chain_id_address_key"),
)

_MUTABLE_COLUMNS = (
    "source_code",
    "abi",
    "name",
    "symbol",
    "is_proxy",
    "implementation_address",
    "protocol",
    "contract_type",
    "version",
    "updated_at",
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _redact(url: str) -> str:
    return url.split("@")[-1]


class ContractStore:
    """A single connection to the contracts database, opened once per run."""

    def __init__(
        self,
        url: str,
        *,
        clock: Callable[[], float] = time.time,
        echo: bool = False,
    ) -> None:
        self._url = url
        self._clock = clock
        self._echo = echo
        self._engine: Optional[Engine] = None
        self._conn: Optional[Connection] = None

    def __enter__(self) -> "ContractStore":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("ContractStore is not open")
        return self._conn

    def open(self) -> None:
        if self._conn is not None:
            return
        logger.info("Connecting to contracts database at %s", _redact(self._url))
        try:
            engine = create_engine(self._url, echo=self._echo, future=True)
        except (ArgumentError, ImportError) as exc:
            raise SetupError(f"Invalid database URL: {exc}") from exc
        if engine.dialect.name not in _INSERT_BY_DIALECT:
            engine.dispose()
            raise SetupError(f"Unsupported database dialect: {engine.dialect.name}")
        try:
            metadata.create_all(engine, checkfirst=True)
            self._conn = engine.connect()
        except SQLAlchemyError as exc:
            engine.dispose()
            raise SetupError(f"Cannot open contracts database: {exc}") from exc
        self._engine = engine

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def upsert(self, record: ContractRecord) -> None:
        """Insert or overwrite one record in its own transaction.

        Raises :class:`sqlalchemy.exc.SQLAlchemyError` on failure.
        """
        conn = self.connection
        now = int(self._clock())
        insert = _INSERT_BY_DIALECT[conn.dialect.name]
        stmt = insert(contracts_table).values(
            address=record.address,
            chain=record.chain,
            chain_id=record.chain_id,
            name=record.name,
            symbol=record.symbol,
            source_code=record.source_code,
            abi=record.abi,
            is_proxy=record.is_proxy,
            implementation_address=record.implementation_address,
            protocol=record.protocol,
            contract_type=record.contract_type,
            version=record.version,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["chain_id", "address"],
            set_={column: stmt.excluded[column] for column in _MUTABLE_COLUMNS},
        )
        with conn.begin():
            conn.execute(stmt)

    def count(self) -> int:
        conn = self.connection
        with conn.begin():
            return conn.execute(select(func.count()).select_from(contracts_table)).scalar_one()

    def get(self, chain_id: int, address: str) -> Optional[dict]:
        conn = self.connection
        query = select(contracts_table).where(
            contracts_table.c.chain_id == chain_id,
            contracts_table.c.address == address,
        )
        with conn.begin():
            row = conn.execute(query).mappings().first()
        return dict(row) if row is not None else None
