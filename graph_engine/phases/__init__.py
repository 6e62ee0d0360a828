"""Phase functions. Each takes the GraphState explicitly and runs to completion."""

from .cross_provider import enrich_from_semantic_scholar
from .first_degree import create_stubs, fetch_first_degree
from .hydration import hydrate_master_paper, hydrate_stub_papers
from .second_degree import fetch_second_degree
from .seed import ingest_master_paper

__all__ = [
    "create_stubs",
    "enrich_from_semantic_scholar",
    "fetch_first_degree",
    "fetch_second_degree",
    "hydrate_master_paper",
    "hydrate_stub_papers",
    "ingest_master_paper",
]
