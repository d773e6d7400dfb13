"""
Core data models for the schema_sync package.

Defines the structural model of an introspected database: tables, columns,
indexes, and the DatabaseModel aggregate that owns them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class IndexType(str, Enum):
    """Closed set of index access methods reported by the catalog."""
    BTREE = "BTREE"
    HASH = "HASH"
    FULLTEXT = "FULLTEXT"
    SPATIAL = "SPATIAL"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_catalog(cls, raw: Optional[str]) -> IndexType:
        """Map a raw catalog string to a member, falling back to UNKNOWN."""
        if raw is None:
            return cls.UNKNOWN
        return INDEX_TYPE_MAP.get(str(raw).strip().upper(), cls.UNKNOWN)


# Raw catalog index type mapping
INDEX_TYPE_MAP = {
    "BTREE": IndexType.BTREE,
    "HASH": IndexType.HASH,
    "FULLTEXT": IndexType.FULLTEXT,
    "SPATIAL": IndexType.SPATIAL,
}


@dataclass
class ColumnDetail:
    """Extended column attributes from information_schema.COLUMNS."""
    ordinal_position: Optional[int] = None
    data_type: Optional[str] = None
    column_type: Optional[str] = None
    column_key: Optional[str] = None
    extra: Optional[str] = None
    character_maximum_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    character_set_name: Optional[str] = None
    collation_name: Optional[str] = None
    comment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "ordinal_position": self.ordinal_position,
            "data_type": self.data_type,
            "column_type": self.column_type,
            "column_key": self.column_key,
            "extra": self.extra,
            "character_maximum_length": self.character_maximum_length,
            "numeric_precision": self.numeric_precision,
            "numeric_scale": self.numeric_scale,
            "character_set_name": self.character_set_name,
            "collation_name": self.collation_name,
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnDetail:
        """Create from dictionary."""
        return cls(**{k: data.get(k) for k in cls().to_dict()})


@dataclass
class Column:
    """A single column of a table."""
    table_name: str
    name: str
    sql_type: str
    nullable: bool = False
    default_value: Optional[str] = None
    detail: Optional[ColumnDetail] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table_name": self.table_name,
            "name": self.name,
            "sql_type": self.sql_type,
            "nullable": self.nullable,
            "default_value": self.default_value,
            "detail": self.detail.to_dict() if self.detail else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Column:
        """Create from dictionary."""
        return cls(
            table_name=data["table_name"],
            name=data["name"],
            sql_type=data["sql_type"],
            nullable=data.get("nullable", False),
            default_value=data.get("default_value"),
            detail=ColumnDetail.from_dict(data["detail"]) if data.get("detail") else None,
        )


@dataclass
class Index:
    """
    An index of a table.

    ``columns`` keeps catalog order: it encodes composite-index precedence
    and is never re-sorted.
    """
    table_name: str
    name: str
    index_type: IndexType = IndexType.UNKNOWN
    unique: bool = False
    columns: List[str] = field(default_factory=list)

    @property
    def is_composite(self) -> bool:
        return len(self.columns) > 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table_name": self.table_name,
            "name": self.name,
            "index_type": self.index_type.value,
            "unique": self.unique,
            "columns": list(self.columns),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Index:
        """Create from dictionary."""
        return cls(
            table_name=data["table_name"],
            name=data["name"],
            index_type=IndexType(data.get("index_type", "UNKNOWN")),
            unique=data.get("unique", False),
            columns=list(data.get("columns", [])),
        )


@dataclass
class Table:
    """A relational table with its DDL, columns and indexes."""
    name: str
    definition: str = ""
    columns: List[Column] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        """Return list of column names."""
        return [c.name for c in self.columns]

    @property
    def index_names(self) -> List[str]:
        """Return list of index names."""
        return [i.name for i in self.indexes]

    def get_column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def get_index(self, name: str) -> Optional[Index]:
        for idx in self.indexes:
            if idx.name == name:
                return idx
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "definition": self.definition,
            "columns": [c.to_dict() for c in self.columns],
            "indexes": [i.to_dict() for i in self.indexes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Table:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            definition=data.get("definition", ""),
            columns=[Column.from_dict(c) for c in data.get("columns", [])],
            indexes=[Index.from_dict(i) for i in data.get("indexes", [])],
        )


@dataclass
class TableError:
    """A per-table failure recorded when failures are isolated."""
    phase: str
    table_name: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "table_name": self.table_name,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableError:
        return cls(
            phase=data["phase"],
            table_name=data["table_name"],
            message=data.get("message", ""),
        )


@dataclass
class DatabaseModel:
    """
    Structural model of one database schema.

    Tables are kept in insertion order, which the builder makes sorted by
    name. The model is sealed once a build completes and rejects further
    tables from then on.
    """
    schema_name: Optional[str] = None
    tables: List[Table] = field(default_factory=list)
    errors: List[TableError] = field(default_factory=list)
    sealed: bool = field(default=False, compare=False)

    @property
    def table_names(self) -> List[str]:
        """Return list of table names."""
        return [t.name for t in self.tables]

    def add_table(self, table: Table) -> None:
        """Add a table to the model."""
        if self.sealed:
            raise ValueError(f"Cannot add table {table.name}: model is sealed")
        if self.get_table(table.name) is not None:
            raise ValueError(f"Duplicate table name: {table.name}")
        self.tables.append(table)

    def remove_table(self, name: str) -> None:
        """Remove a table from the model during a build."""
        if self.sealed:
            raise ValueError(f"Cannot remove table {name}: model is sealed")
        self.tables = [t for t in self.tables if t.name != name]

    def get_table(self, name: str) -> Optional[Table]:
        """Get table by exact name."""
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def validate(self) -> None:
        """
        Check that every column and index references its owning table.

        Raises:
            ValueError: on an orphaned or misattributed entry, or on a
                duplicate column or index name within a table
        """
        for table in self.tables:
            seen_columns = set()
            for col in table.columns:
                if col.table_name != table.name:
                    raise ValueError(
                        f"Column {col.name} references {col.table_name} "
                        f"but belongs to {table.name}"
                    )
                if col.name in seen_columns:
                    raise ValueError(f"Duplicate column {col.name} in {table.name}")
                seen_columns.add(col.name)
            for idx in table.indexes:
                if idx.table_name != table.name:
                    raise ValueError(
                        f"Index {idx.name} references {idx.table_name} "
                        f"but belongs to {table.name}"
                    )

    def seal(self) -> None:
        """Mark the model complete."""
        self.validate()
        self.sealed = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "schema_name": self.schema_name,
            "tables": [t.to_dict() for t in self.tables],
            "errors": [e.to_dict() for e in self.errors],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DatabaseModel:
        """Create a sealed model from dictionary."""
        model = cls(
            schema_name=data.get("schema_name"),
            tables=[Table.from_dict(t) for t in data.get("tables", [])],
            errors=[TableError.from_dict(e) for e in data.get("errors", [])],
        )
        model.seal()
        return model

    def save(self, path: Path) -> None:
        """Save the model as a JSON snapshot."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")

    @classmethod
    def load(cls, path: Path) -> DatabaseModel:
        """Load a JSON snapshot from disk."""
        with open(Path(path), "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
