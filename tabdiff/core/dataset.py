"""
In-memory dataset and column mapping models.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Sequence, Tuple
import pandas as pd


Record = Dict[str, str]


@dataclass(frozen=True)
class Dataset:
    """
    Parsed tabular file: ordered unique column names plus row records.

    Rows only carry the keys present in their source; read values through
    ``value()`` so absent cells come back as an empty string.
    """

    columns: Tuple[str, ...]
    rows: Tuple[Record, ...]
    name: str = ""

    @classmethod
    def from_records(cls, columns: Sequence[str], rows: Sequence[Record],
                     name: str = "") -> "Dataset":
        """Build a dataset from any column/row sequences."""
        return cls(columns=tuple(columns), rows=tuple(dict(r) for r in rows), name=name)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def has_column(self, column: str) -> bool:
        return column in self.columns

    @staticmethod
    def value(row: Record, column: str) -> str:
        val = row.get(column)
        return "" if val is None else str(val)

    def to_frame(self) -> pd.DataFrame:
        """All-text DataFrame view, one column per dataset column."""
        return pd.DataFrame(
            [[self.value(row, col) for col in self.columns] for row in self.rows],
            columns=list(self.columns),
            dtype=str,
        )


@dataclass(frozen=True)
class ColumnMapping:
    """Pairs a key column of dataset A with a key column of dataset B."""

    source_column: str
    target_column: str

    @property
    def description(self) -> str:
        return f"{self.source_column}→{self.target_column}"

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ColumnMapping":
        """
        Accepts ``{"sourceColumn", "targetColumn"}`` and the legacy
        ``{"file1Column", "file2Column"}`` payload shape.
        """
        source = payload.get("sourceColumn", payload.get("file1Column"))
        target = payload.get("targetColumn", payload.get("file2Column"))

        if not isinstance(source, str) or not source:
            raise ValueError(f"Mapping is missing sourceColumn: {payload}")
        if not isinstance(target, str) or not target:
            raise ValueError(f"Mapping is missing targetColumn: {payload}")

        return cls(source_column=source, target_column=target)

    def to_dict(self) -> Dict[str, str]:
        return {"sourceColumn": self.source_column, "targetColumn": self.target_column}


def describe_mappings(mappings: Sequence[ColumnMapping]) -> List[str]:
    """Human-readable ``colA→colB`` list used in summaries."""
    return [m.description for m in mappings]
