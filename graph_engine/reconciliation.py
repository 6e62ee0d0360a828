"""Author reconciliation: merge stub authors into canonical OpenAlex identities.

Semantic Scholar lists authors by name only, so every author it introduces
is a stub. This pass looks up the stub authors' papers in OpenAlex by DOI,
fuzzy-matches names against the OpenAlex authorships and merges every stub
matched to the same OpenAlex author id into one surviving Author.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sources.openalex import FieldSet, OpenAlexAuthor, OpenAlexClient, OpenAlexWork

from .config import GraphConfig, get_graph_config
from .events import AuthorMergeEvent, AuthorUpdate
from .identifiers import Namespace, normalize_doi, normalize_openalex_id, normalize_orcid
from .matching import calculate_match_score
from .state import GraphState
from .types import authorship_key, is_empty_value

logger = logging.getLogger(__name__)


@dataclass
class AuthorMatch:
    stub_uid: str
    candidate: OpenAlexAuthor
    score: float
    paper_uid: str


@dataclass
class MergePlan:
    """All stubs matched to one OpenAlex author id."""

    openalex_author_id: str
    winner_uid: str
    canonical: OpenAlexAuthor
    loser_uids: list[str] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    stub_authors: int = 0
    dois_queried: int = 0
    matches: int = 0
    merged: int = 0
    canonical_authors: int = 0


def collect_reconciliation_targets(state: GraphState) -> dict[str, list[tuple[str, str]]]:
    """Map DOI -> [(stub author uid, paper uid)] for stub authors' papers with DOIs."""
    stub_uids = {uid for uid, author in state.authors.items() if author.is_stub}
    targets: dict[str, list[tuple[str, str]]] = {}
    for authorship in state.authorships.values():
        if authorship.author_short_uid not in stub_uids:
            continue
        doi = state.doi_for(authorship.paper_short_uid)
        if not doi:
            continue
        pair = (authorship.author_short_uid, authorship.paper_short_uid)
        bucket = targets.setdefault(doi, [])
        if pair not in bucket:
            bucket.append(pair)
    return targets


def find_author_matches(
    works: list[OpenAlexWork],
    targets: dict[str, list[tuple[str, str]]],
    state: GraphState,
    config: Optional[GraphConfig] = None,
) -> list[AuthorMatch]:
    """Best-scoring OpenAlex candidate above the threshold for each stub, per work."""
    config = config or get_graph_config()
    matches: list[AuthorMatch] = []

    for work in works:
        doi = normalize_doi(work.doi)
        if not doi or doi not in targets:
            continue
        candidates = [a.author for a in work.authorships if a.author and a.author.display_name]

        for stub_uid, paper_uid in targets[doi]:
            stub = state.authors.get(stub_uid)
            if stub is None:
                continue
            best: Optional[AuthorMatch] = None
            for candidate in candidates:
                score = calculate_match_score(
                    stub.clean_name,
                    candidate.display_name,
                    last_name_gate=config.last_name_gate,
                    initial_boost=config.initial_boost,
                )
                if score > config.author_match_threshold and (best is None or score > best.score):
                    best = AuthorMatch(stub_uid, candidate, score, paper_uid)
            if best is not None:
                logger.debug(
                    f"Matched '{stub.clean_name}' -> '{best.candidate.display_name}' "
                    f"({best.score:.3f}) on {doi}"
                )
                matches.append(best)

    return matches


def build_merge_plan(matches: list[AuthorMatch], state: GraphState) -> dict[str, MergePlan]:
    """Group matches by OpenAlex author id: first stub wins, later stubs lose.

    If the OpenAlex id already belongs to a known author, that author is the
    winner and every matched stub is merged into it. A stub joins at most
    one plan.
    """
    plans: dict[str, MergePlan] = {}
    assigned: set[str] = set()

    for match in matches:
        openalex_id = normalize_openalex_id(match.candidate.id)
        if not openalex_id or match.stub_uid in assigned:
            continue

        plan = plans.get(openalex_id)
        if plan is None:
            known_uid = state.index.find(Namespace.OPENALEX_AUTHOR, openalex_id)
            if known_uid and known_uid in state.authors and known_uid != match.stub_uid:
                plan = MergePlan(openalex_id, known_uid, match.candidate, [match.stub_uid])
                assigned.add(known_uid)
            else:
                plan = MergePlan(openalex_id, match.stub_uid, match.candidate)
            plans[openalex_id] = plan
        elif match.stub_uid != plan.winner_uid:
            plan.loser_uids.append(match.stub_uid)

        assigned.add(match.stub_uid)

    return plans


def apply_merge_plan(plans: dict[str, MergePlan], state: GraphState) -> Optional[AuthorMergeEvent]:
    """Apply plans to ``state`` and emit one batch-author-merge event."""
    if not plans:
        return None

    event = AuthorMergeEvent()

    for openalex_id, plan in plans.items():
        winner = state.authors[plan.winner_uid]
        changes = {}
        if not is_empty_value(plan.canonical.display_name) and (
            winner.is_stub or is_empty_value(winner.clean_name)
        ):
            changes["clean_name"] = plan.canonical.display_name
        orcid = normalize_orcid(plan.canonical.orcid)
        if orcid and not winner.orcid:
            changes["orcid"] = orcid
        if winner.is_stub:
            changes["is_stub"] = False
        for name, value in changes.items():
            setattr(winner, name, value)
        if changes:
            event.author_updates.append(AuthorUpdate(uid=winner.short_uid, changes=changes))

        state.index.record(Namespace.OPENALEX_AUTHOR, openalex_id, winner.short_uid)
        state.index.record(Namespace.ORCID, orcid, winner.short_uid)

        for loser_uid in plan.loser_uids:
            for authorship in state.authorships_of_author(loser_uid):
                old_key = authorship.key
                state.remove_authorship(old_key)
                event.authorships_removed.append(old_key)

                new_key = authorship_key(authorship.paper_short_uid, winner.short_uid)
                if new_key in state.authorships:
                    # Winner already credited on this paper
                    continue
                repointed = authorship.model_copy(
                    update={"author_short_uid": winner.short_uid}, deep=True
                )
                state.add_authorship(repointed)
                event.authorships_added.append(repointed.model_copy(deep=True))

            del state.authors[loser_uid]
            event.author_deletions.append(loser_uid)
            event.index_updates.update(state.index.repoint(loser_uid, winner.short_uid))

    state.emit(event)
    return event


async def reconcile_authors(
    state: GraphState,
    openalex: OpenAlexClient,
    config: Optional[GraphConfig] = None,
) -> ReconciliationResult:
    """Run one reconciliation pass over every stub author in ``state``."""
    config = config or get_graph_config()
    result = ReconciliationResult(
        stub_authors=sum(1 for a in state.authors.values() if a.is_stub)
    )
    if result.stub_authors == 0:
        logger.info("No stub authors to reconcile")
        return result

    targets = collect_reconciliation_targets(state)
    result.dois_queried = len(targets)
    if not targets:
        logger.info(f"{result.stub_authors} stub authors but none on papers with a DOI")
        return result

    works = await openalex.fetch_by_doi_batch(list(targets), FieldSet.AUTHOR_RECONCILIATION)
    matches = find_author_matches(works, targets, state, config)
    result.matches = len(matches)

    plans = build_merge_plan(matches, state)
    apply_merge_plan(plans, state)
    result.canonical_authors = len(plans)
    result.merged = sum(len(p.loser_uids) for p in plans.values())

    if plans:
        logger.info(
            f"Author reconciliation merged {result.merged} stub authors into "
            f"{result.canonical_authors} canonical authors"
        )
    else:
        logger.info("No high-confidence author matches found")
    return result
