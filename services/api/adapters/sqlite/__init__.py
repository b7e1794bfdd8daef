# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    select,
    insert,
    update,
    and_,
    event,
    text,
)
from sqlalchemy.engine import Engine
from datetime import datetime, timezone

# ---- Engine (SQLite) ---------------------------------------------------------

PRAGMAS = ("journal_mode=WAL", "synchronous=NORMAL", "foreign_keys=ON", "busy_timeout=5000")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _sqlite_file(db_url: str) -> Optional[str]:
    if not db_url.startswith("sqlite:///"):
        return None
    path = db_url[len("sqlite:///"):]
    return None if path in ("", ":memory:") else path


def make_engine(db_url: str) -> Engine:
    path = _sqlite_file(db_url)
    if path:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    engine = create_engine(db_url, future=True, pool_pre_ping=True)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore
        if not isinstance(dbapi_connection, sqlite3.Connection):
            return
        cur = dbapi_connection.cursor()
        for pragma in PRAGMAS:
            cur.execute(f"PRAGMA {pragma};")
        cur.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

familias = Table(
    "familias",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nome", String, nullable=False),
    Column("ordem", Integer, nullable=False, default=0),
    Column("ativo", Integer, nullable=False, default=1),  # 0/1
    Column("foto", String),
    Column("esquematico", String),
    Column("marcadores_vista", Text),  # JSON text of the marker collection
    Column("created_at", DateTime, nullable=False, default=_utcnow),
    Column("updated_at", DateTime, nullable=False, default=_utcnow),
)

variaveis_tecnicas = Table(
    "variaveis_tecnicas",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("chave", String, nullable=False),
    Column("nome", String, nullable=False),
    Column("categoria", String),
    Column("tipo", String, nullable=False, default="texto"),
    Column("opcoes", Text),  # newline-separated, only for tipo=lista
    Column("ordem", Integer, nullable=False, default=0),
    Column("ativo", Integer, nullable=False, default=1),
    Column("created_at", DateTime, nullable=False, default=_utcnow),
    Column("updated_at", DateTime, nullable=False, default=_utcnow),
)

familia_variavel_opcoes = Table(
    "familia_variavel_opcoes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("familia_id", Integer, ForeignKey("familias.id", ondelete="CASCADE"), nullable=False),
    Column("variavel_chave", String, nullable=False),
    Column("valor", String, nullable=False),
    Column("created_at", DateTime, nullable=False, default=_utcnow),
)

Index("idx_familias_ativo", familias.c.ativo, familias.c.ordem)
Index("idx_variaveis_chave", variaveis_tecnicas.c.chave, variaveis_tecnicas.c.ativo)
Index("idx_opcoes_familia", familia_variavel_opcoes.c.familia_id, familia_variavel_opcoes.c.variavel_chave)

_FAMILY_FIELDS = {"nome", "ordem", "foto", "esquematico", "marcadores_vista", "ativo"}
_VARIABLE_FIELDS = {"nome", "categoria", "tipo", "opcoes", "ordem", "ativo"}

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/productsheet.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()

    # Families
    def list_families(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        q = select(familias).order_by(familias.c.ordem.asc(), familias.c.nome.asc())
        if not include_inactive:
            q = q.where(familias.c.ativo == 1)
        with self.engine.begin() as conn:
            return [dict(r) for r in conn.execute(q).mappings().all()]

    def get_family(self, familia_id: int) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(familias).where(familias.c.id == familia_id)
            ).mappings().first()
            return dict(row) if row else None

    def create_family(self, nome: str, ordem: int = 0, marcadores_vista: Optional[str] = None) -> int:
        now = _utcnow()
        with self.engine.begin() as conn:
            res = conn.execute(
                insert(familias).values(
                    nome=nome,
                    ordem=int(ordem or 0),
                    ativo=1,
                    marcadores_vista=marcadores_vista,
                    created_at=now,
                    updated_at=now,
                )
            )
            return int(res.inserted_primary_key[0])

    def update_family(self, familia_id: int, updates: Dict[str, Any]) -> None:
        values = {k: v for k, v in updates.items() if k in _FAMILY_FIELDS}
        values["updated_at"] = _utcnow()
        with self.engine.begin() as conn:
            res = conn.execute(
                update(familias).where(familias.c.id == familia_id).values(**values)
            )
            if res.rowcount == 0:
                raise HTTPException(status_code=404, detail="Family not found")

    def deactivate_family(self, familia_id: int) -> None:
        self.update_family(familia_id, {"ativo": 0})

    # Technical variables
    def list_variables(self, active_only: bool = True) -> List[Dict[str, Any]]:
        q = select(variaveis_tecnicas).order_by(
            variaveis_tecnicas.c.ordem.asc(), variaveis_tecnicas.c.nome.asc()
        )
        if active_only:
            q = q.where(variaveis_tecnicas.c.ativo == 1)
        with self.engine.begin() as conn:
            return [dict(r) for r in conn.execute(q).mappings().all()]

    def get_variable(self, variavel_id: int) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(variaveis_tecnicas).where(variaveis_tecnicas.c.id == variavel_id)
            ).mappings().first()
            return dict(row) if row else None

    def find_active_variable_by_key(self, chave: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(variaveis_tecnicas).where(
                    and_(variaveis_tecnicas.c.chave == chave, variaveis_tecnicas.c.ativo == 1)
                )
            ).mappings().first()
            return dict(row) if row else None

    def create_variable(self, data: Dict[str, Any]) -> int:
        now = _utcnow()
        with self.engine.begin() as conn:
            res = conn.execute(
                insert(variaveis_tecnicas).values(
                    chave=data["chave"],
                    nome=data["nome"],
                    categoria=data.get("categoria") or None,
                    tipo=data.get("tipo") or "texto",
                    opcoes=data.get("opcoes") or None,
                    ordem=int(data.get("ordem") or 0),
                    ativo=1,
                    created_at=now,
                    updated_at=now,
                )
            )
            return int(res.inserted_primary_key[0])

    def update_variable(self, variavel_id: int, updates: Dict[str, Any]) -> None:
        # `chave` is deliberately not in _VARIABLE_FIELDS: it never changes.
        values = {k: v for k, v in updates.items() if k in _VARIABLE_FIELDS}
        values["updated_at"] = _utcnow()
        with self.engine.begin() as conn:
            res = conn.execute(
                update(variaveis_tecnicas)
                .where(variaveis_tecnicas.c.id == variavel_id)
                .values(**values)
            )
            if res.rowcount == 0:
                raise HTTPException(status_code=404, detail="Variable not found")

    def deactivate_variable(self, variavel_id: int) -> None:
        self.update_variable(variavel_id, {"ativo": 0})

    def list_variable_categories(self) -> List[str]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(variaveis_tecnicas.c.categoria)
                .where(variaveis_tecnicas.c.ativo == 1)
                .distinct()
            ).all()
        return sorted({r.categoria.strip() for r in rows if r.categoria and r.categoria.strip()})

    # Per-family option catalog
    def list_options(self, familia_id: int) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(familia_variavel_opcoes)
                .where(familia_variavel_opcoes.c.familia_id == familia_id)
                .order_by(familia_variavel_opcoes.c.id.asc())
            ).mappings().all()
            return [dict(r) for r in rows]

    def create_option(self, familia_id: int, variavel_chave: str, valor: str) -> int:
        with self.engine.begin() as conn:
            res = conn.execute(
                insert(familia_variavel_opcoes).values(
                    familia_id=familia_id,
                    variavel_chave=variavel_chave,
                    valor=valor,
                    created_at=_utcnow(),
                )
            )
            return int(res.inserted_primary_key[0])

    def delete_option(self, familia_id: int, variavel_chave: str, opcao_id: int) -> bool:
        with self.engine.begin() as conn:
            res = conn.execute(
                delete(familia_variavel_opcoes).where(
                    and_(
                        familia_variavel_opcoes.c.id == opcao_id,
                        familia_variavel_opcoes.c.familia_id == familia_id,
                        familia_variavel_opcoes.c.variavel_chave == variavel_chave,
                    )
                )
            )
            return res.rowcount > 0
