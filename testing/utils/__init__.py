"""
Shared testing utilities for the graph engine tests.

- builders: provider payloads and typed records (OpenAlex works, Semantic
  Scholar papers)
- fakes: in-memory provider clients and an event-recording sink
- scenario: a small citation neighbourhood around one master paper
"""

from .builders import (
    make_authorship,
    make_ss_details,
    make_ss_paper,
    make_work,
    openalex_url,
    ss_paper_payload,
    work_payload,
)
from .fakes import FakeOpenAlex, FakeSemanticScholar, RecordingSink
from .scenario import (
    CITING_IDS,
    MASTER_DOI,
    MASTER_ID,
    add_second_degree,
    scenario_openalex,
    scenario_semantic_scholar,
)

__all__ = [
    "make_authorship",
    "make_ss_details",
    "make_ss_paper",
    "make_work",
    "openalex_url",
    "ss_paper_payload",
    "work_payload",
    "FakeOpenAlex",
    "FakeSemanticScholar",
    "RecordingSink",
    "CITING_IDS",
    "MASTER_DOI",
    "MASTER_ID",
    "add_second_degree",
    "scenario_openalex",
    "scenario_semantic_scholar",
]
