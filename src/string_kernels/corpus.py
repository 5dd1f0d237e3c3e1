"""
Records and corpora consumed by the kernel engine.

The engine only relies on the structural interface described by
:class:`CorpusProtocol` and :class:`RecordProtocol`; :class:`Corpus` is the
in-memory implementation used by loaders, scripts and tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Protocol


class FieldType(Enum):
    """Type of a record field."""

    NUMERIC = "numeric"
    NOMINAL = "nominal"
    STRING = "string"
    DATE = "date"


@dataclass(frozen=True)
class Field:
    name: str
    type: FieldType


@dataclass(frozen=True)
class Record:
    """An immutable, ordered tuple of field values."""

    values: tuple[Any, ...]

    def __len__(self) -> int:
        return len(self.values)

    def string_field(self, index: int) -> str:
        """Text stored at ``index``; a missing value reads as the empty string."""
        value = self.values[index]
        return "" if value is None else str(value)


# =============================================================================
# Protocols (duck typing)
# =============================================================================


class RecordProtocol(Protocol):
    """What the engine reads from a single record."""

    def string_field(self, index: int) -> str: ...


class CorpusProtocol(Protocol):
    """Protocol defining the corpus interface the kernel engine binds to."""

    def size(self) -> int: ...

    def field_count(self) -> int: ...

    def field_type(self, index: int) -> FieldType: ...

    def class_field_index(self) -> int | None: ...

    def record(self, instance_id: int) -> RecordProtocol: ...


def find_comparison_field(corpus: CorpusProtocol) -> int | None:
    """Index of the first non-class field of string type, or ``None``."""
    class_index = corpus.class_field_index()
    for index in range(corpus.field_count()):
        if index == class_index:
            continue
        if corpus.field_type(index) is FieldType.STRING:
            return index
    return None


# =============================================================================
# In-memory Corpus
# =============================================================================


class Corpus:
    """
    An ordered collection of records with stable integer ids ``0..N-1``.

    Args:
        fields (Sequence[Field]): Field descriptions shared by every record.
        records (Iterable[Record | Sequence]): Records, or plain value sequences
            that are wrapped into :class:`Record`.
        class_index (int | None): Index of the class field, if any.

    Attributes:
        fields (tuple[Field, ...]): The field descriptions.
        records (tuple[Record, ...]): The records, indexed by instance id.
        class_index (int | None): Index of the class field.
    """

    def __init__(
        self,
        fields: Sequence[Field],
        records: Iterable[Record | Sequence[Any]],
        class_index: int | None = None,
    ):
        self.fields = tuple(fields)
        self.records = tuple(r if isinstance(r, Record) else Record(tuple(r)) for r in records)
        if class_index is not None and not 0 <= class_index < len(self.fields):
            raise ValueError(f"class_index {class_index} out of range for {len(self.fields)} fields")
        self.class_index = class_index
        for instance_id, record in enumerate(self.records):
            if len(record) != len(self.fields):
                raise ValueError(
                    f"Record {instance_id} has {len(record)} values, expected {len(self.fields)}"
                )

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.records[index]

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @classmethod
    def from_texts(cls, texts: Iterable[str], labels: Iterable[Any] | None = None) -> "Corpus":
        """
        Build a corpus with one string field and, when labels are given, a
        nominal class field placed last.
        """
        texts = list(texts)
        if labels is None:
            return cls([Field("text", FieldType.STRING)], [(text,) for text in texts])
        labels = list(labels)
        if len(labels) != len(texts):
            raise ValueError(f"Got {len(texts)} texts but {len(labels)} labels")
        fields = [Field("text", FieldType.STRING), Field("class", FieldType.NOMINAL)]
        return cls(fields, zip(texts, labels), class_index=1)

    @classmethod
    def from_huggingface_dataset(
        cls,
        dataset: Iterable[Mapping[str, Any]],
        text_column: str = "text",
        label_column: str | None = None,
    ) -> "Corpus":
        texts = []
        labels = []
        for row in dataset:
            texts.append(row[text_column])
            if label_column is not None:
                labels.append(row[label_column])
        return cls.from_texts(texts, labels if label_column is not None else None)

    @cached_property
    def comparison_field(self) -> int | None:
        """Index of the field the kernels compare (see :func:`find_comparison_field`)."""
        return find_comparison_field(self)

    def texts(self, field_index: int | None = None) -> list[str]:
        """All values of a string field, defaulting to the comparison field."""
        index = self.comparison_field if field_index is None else field_index
        if index is None:
            raise ValueError("Corpus has no string field.")
        return [record.string_field(index) for record in self.records]

    # ── CorpusProtocol ────────────────────────────────────────────

    def size(self) -> int:
        return len(self.records)

    def field_count(self) -> int:
        return len(self.fields)

    def field_type(self, index: int) -> FieldType:
        return self.fields[index].type

    def class_field_index(self) -> int | None:
        return self.class_index

    def record(self, instance_id: int) -> Record:
        return self.records[instance_id]
