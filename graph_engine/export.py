"""Normalized tabular extracts of a GraphSnapshot.

``to_tables`` produces one list of row dicts per table; ``write_csv_bundle``
writes them as CSV files and ``read_csv_bundle`` reads them back.
``counts_from_tables`` recovers the entity counts of the snapshot, so
``counts_from_tables(to_tables(s)) == s.counts()``.
"""

import csv
import logging
from pathlib import Path
from typing import Any

from .identifiers import NAMESPACE_KINDS, EntityKind, Namespace, split_index_key
from .state import GraphSnapshot

logger = logging.getLogger(__name__)

Table = list[dict[str, Any]]

TABLE_COLUMNS: dict[str, list[str]] = {
    "papers": [
        "short_uid",
        "title",
        "publication_year",
        "publication_date",
        "location",
        "abstract",
        "fwci",
        "cited_by_count",
        "type",
        "language",
        "best_oa_url",
        "oa_status",
        "is_stub",
    ],
    "authors": ["short_uid", "clean_name", "orcid", "is_stub"],
    "institutions": ["short_uid", "ror_id", "display_name", "country_code", "type"],
    "authorships": [
        "paper_short_uid",
        "author_short_uid",
        "author_position",
        "is_corresponding",
        "raw_author_name",
    ],
    "authorship_institutions": [
        "paper_short_uid",
        "author_short_uid",
        "institution_short_uid",
        "institution_position",
    ],
    "paper_relationships": ["source_short_uid", "target_short_uid", "relationship_type", "tag"],
    "paper_relationship_types": ["paper_short_uid", "relationship_tag"],
    "paper_keywords": ["paper_short_uid", "keyword", "keyword_position"],
    "paper_to_externalid": ["short_uid", "id_type", "id_value"],
    "author_to_externalid": ["short_uid", "id_type", "id_value"],
    "institution_to_externalid": ["short_uid", "id_type", "id_value"],
}

_EXTERNAL_ID_TABLES = {
    EntityKind.PAPER: "paper_to_externalid",
    EntityKind.AUTHOR: "author_to_externalid",
    EntityKind.INSTITUTION: "institution_to_externalid",
}


def to_tables(snapshot: GraphSnapshot) -> dict[str, Table]:
    """Flatten a snapshot into normalized tables."""
    tables: dict[str, Table] = {name: [] for name in TABLE_COLUMNS}

    for paper in snapshot.papers.values():
        tables["papers"].append(paper.model_dump(include=set(TABLE_COLUMNS["papers"])))
        for tag in paper.relationship_tags:
            tables["paper_relationship_types"].append(
                {"paper_short_uid": paper.short_uid, "relationship_tag": tag}
            )
        for position, keyword in enumerate(paper.keywords):
            tables["paper_keywords"].append(
                {"paper_short_uid": paper.short_uid, "keyword": keyword, "keyword_position": position}
            )

    for author in snapshot.authors.values():
        tables["authors"].append(author.model_dump())
    for institution in snapshot.institutions.values():
        tables["institutions"].append(institution.model_dump())

    for authorship in snapshot.authorships.values():
        tables["authorships"].append(authorship.model_dump(exclude={"institution_uids"}))
        for position, institution_uid in enumerate(authorship.institution_uids):
            tables["authorship_institutions"].append(
                {
                    "paper_short_uid": authorship.paper_short_uid,
                    "author_short_uid": authorship.author_short_uid,
                    "institution_short_uid": institution_uid,
                    "institution_position": position,
                }
            )

    for rel in snapshot.relationships:
        tables["paper_relationships"].append(
            {
                "source_short_uid": rel.source_short_uid,
                "target_short_uid": rel.target_short_uid,
                "relationship_type": rel.relationship_type.value,
                "tag": rel.tag.value if rel.tag else None,
            }
        )

    for key, uid in snapshot.external_ids.items():
        namespace, value = split_index_key(key)
        try:
            kind = NAMESPACE_KINDS[Namespace(namespace)]
        except ValueError:
            logger.warning(f"Skipping external id with unknown namespace: {key}")
            continue
        tables[_EXTERNAL_ID_TABLES[kind]].append(
            {"short_uid": uid, "id_type": namespace, "id_value": value}
        )

    return tables


def _is_true(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    return bool(value)


def counts_from_tables(tables: dict[str, Table]) -> dict[str, int]:
    """Entity counts recovered from tables (same keys as ``GraphSnapshot.counts``)."""
    return {
        "papers": len(tables["papers"]),
        "stub_papers": sum(1 for row in tables["papers"] if _is_true(row["is_stub"])),
        "authors": len(tables["authors"]),
        "institutions": len(tables["institutions"]),
        "authorships": len(tables["authorships"]),
        "relationships": len(tables["paper_relationships"]),
        "external_ids": sum(len(tables[name]) for name in _EXTERNAL_ID_TABLES.values()),
    }


def write_csv_bundle(snapshot: GraphSnapshot, directory: Path | str) -> list[Path]:
    """Write one ``<table>.csv`` per table into ``directory``."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for name, rows in to_tables(snapshot).items():
        path = directory / f"{name}.csv"
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=TABLE_COLUMNS[name])
            writer.writeheader()
            writer.writerows(rows)
        written.append(path)
    logger.info(f"Exported {len(written)} tables to {directory}")
    return written


def read_csv_bundle(directory: Path | str) -> dict[str, Table]:
    """Load tables written by ``write_csv_bundle`` (values come back as strings)."""
    directory = Path(directory)
    tables: dict[str, Table] = {}
    for name in TABLE_COLUMNS:
        path = directory / f"{name}.csv"
        with path.open(newline="", encoding="utf-8") as f:
            tables[name] = list(csv.DictReader(f))
    return tables
