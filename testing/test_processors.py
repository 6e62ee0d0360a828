"""
Tests for entity processors: idempotent resolution and monotonic merging.
"""

from graph_engine.events import AuthorshipAddedEvent, EntityUpdatedEvent, PaperAddedEvent
from graph_engine.identifiers import Namespace
from graph_engine.processors import (
    process_openalex_author,
    process_openalex_institution,
    process_openalex_paper,
    process_semantic_scholar_paper,
)
from graph_engine.types import UNTITLED, is_empty_value
from sources.openalex import OpenAlexAuthor, OpenAlexInstitution, OpenAlexWork
from testing.utils import make_authorship, make_ss_paper, make_work

MIT = {
    "id": "https://openalex.org/I63966007",
    "display_name": "Massachusetts Institute of Technology",
    "ror": "https://ror.org/042nb2s44",
    "country_code": "US",
    "type": "education",
}


class TestIsEmptyValue:
    """Tests for the placeholder-aware emptiness check."""

    def test_empty_values(self):
        for value in (None, "", "   ", UNTITLED, "Unknown Author", [], {}, 0, 0.0):
            assert is_empty_value(value), value

    def test_populated_values(self):
        for value in ("A title", ["kw"], 2020, 1.5, False):
            assert not is_empty_value(value), value


class TestPaperResolution:
    """Idempotent resolution of papers across ids and providers."""

    def test_same_work_twice_yields_one_paper(self, state):
        work = make_work("W1", doi="10.1000/one")
        first = process_openalex_paper(work, state)
        second = process_openalex_paper(work, state)
        assert first == second
        assert len(state.papers) == 1

    def test_doi_resolves_before_openalex_id(self, state):
        uid = process_openalex_paper(make_work("W1", doi="10.1000/one"), state)
        # Same DOI under a merged OpenAlex record
        other = process_openalex_paper(make_work("W999", doi="10.1000/ONE"), state)
        assert other == uid
        assert state.index.find(Namespace.OPENALEX, "W999") == uid

    def test_url_and_bare_ids_resolve_together(self, state):
        uid = process_openalex_paper(OpenAlexWork(id="https://openalex.org/W5"), state, is_stub=True)
        again = process_openalex_paper(OpenAlexWork(id="W5"), state, is_stub=True)
        assert uid == again
        assert "openalex:W5" in state.index

    def test_semantic_scholar_paper_resolves_by_doi(self, state):
        uid = process_openalex_paper(make_work("W1", doi="10.1000/one"), state)
        ss_uid = process_semantic_scholar_paper(make_ss_paper("S1", doi="10.1000/one"), state)
        assert ss_uid == uid
        assert state.index.find(Namespace.SS, "S1") == uid

    def test_semantic_scholar_paper_resolves_by_corpus_id(self, state):
        uid = process_semantic_scholar_paper(make_ss_paper("S1", corpus_id=77), state)
        again = process_semantic_scholar_paper(make_ss_paper("S1-alt", corpus_id=77), state)
        assert uid == again
        assert state.index.find(Namespace.CORPUS_ID, "77") == uid

    def test_new_paper_emits_added_event(self, state, events):
        uid = process_openalex_paper(make_work("W1"), state)
        added = [e for e in events if isinstance(e, PaperAddedEvent)]
        assert [e.paper.short_uid for e in added] == [uid]


class TestMonotonicMerge:
    """Fields only ever move from empty to populated, and stubs only upward."""

    def test_stub_gets_title_but_stays_stub(self, state):
        uid = process_openalex_paper(OpenAlexWork(id="W7"), state, is_stub=True)
        assert state.papers[uid].title == UNTITLED

        process_openalex_paper(
            OpenAlexWork(id="W7", title="A Real Title"), state, is_stub=True
        )
        paper = state.papers[uid]
        assert paper.title == "A Real Title"
        assert paper.is_stub is True

    def test_discovery_does_not_overwrite(self, state):
        uid = process_openalex_paper(make_work("W1", title="Original"), state, is_stub=True)
        process_openalex_paper(make_work("W1", title="Different"), state, is_stub=True)
        assert state.papers[uid].title == "Original"

    def test_full_ingestion_promotes_and_overwrites(self, state, events):
        uid = process_openalex_paper(make_work("W1", title="Preview"), state, is_stub=True)
        process_openalex_paper(make_work("W1", title="Full Title"), state, is_stub=False)

        paper = state.papers[uid]
        assert paper.title == "Full Title"
        assert paper.is_stub is False
        updates = [e for e in events if isinstance(e, EntityUpdatedEvent) and e.uid == uid]
        assert updates[-1].changes == {"title": "Full Title", "is_stub": False}

    def test_non_stub_never_regresses(self, state):
        uid = process_openalex_paper(
            make_work("W1", title="Full", cited_by_count=12, abstract_inverted_index={"hello": [0]}),
            state,
        )
        process_openalex_paper(OpenAlexWork(id="W1"), state, is_stub=True)
        process_openalex_paper(OpenAlexWork(id="W1", title=""), state, is_stub=False)

        paper = state.papers[uid]
        assert paper.is_stub is False
        assert paper.title == "Full"
        assert paper.cited_by_count == 12
        assert paper.abstract == "hello"

    def test_semantic_scholar_fills_gaps_only(self, state):
        uid = process_openalex_paper(make_work("W1", doi="10.1000/one", title="OpenAlex"), state)
        process_semantic_scholar_paper(
            make_ss_paper("S1", doi="10.1000/one", title="S2 title", pdf_url="https://x.org/a.pdf"),
            state,
        )
        paper = state.papers[uid]
        assert paper.title == "OpenAlex"
        assert paper.best_oa_url == "https://x.org/a.pdf"
        assert paper.is_stub is False

    def test_semantic_scholar_stub_defaults(self, state):
        closed = state.papers[process_semantic_scholar_paper(make_ss_paper("S1"), state)]
        assert closed.is_stub is True
        assert closed.type == "article"
        assert closed.oa_status == "closed"

        green = state.papers[
            process_semantic_scholar_paper(make_ss_paper("S2", pdf_url="https://x.org/b.pdf"), state)
        ]
        assert green.oa_status == "green"

    def test_openalex_work_without_type_defaults_to_article(self, state):
        untyped = process_openalex_paper(OpenAlexWork(id="W7", title="No type"), state)
        assert state.papers[untyped].type == "article"

        typed = process_openalex_paper(make_work("W8", type="book-chapter"), state)
        assert state.papers[typed].type == "book-chapter"


class TestAuthorsAndInstitutions:
    """Author and institution resolution plus authorship creation."""

    def test_author_dedup_by_openalex_id_and_orcid(self, state):
        first = process_openalex_author(
            OpenAlexAuthor(id="https://openalex.org/A1", display_name="Ada Lovelace"), state
        )
        by_id = process_openalex_author(OpenAlexAuthor(id="A1", display_name="A. Lovelace"), state)
        assert by_id == first

        with_orcid = process_openalex_author(
            OpenAlexAuthor(id="A2", display_name="Grace Hopper", orcid="https://orcid.org/0000-0001-0000-0001"),
            state,
        )
        by_orcid = process_openalex_author(
            OpenAlexAuthor(id="A3", display_name="Grace Hopper", orcid="0000-0001-0000-0001"), state
        )
        assert by_orcid == with_orcid
        assert len(state.authors) == 2

    def test_institution_dedup_by_ror(self, state):
        first = process_openalex_institution(OpenAlexInstitution.model_validate(MIT), state)
        other = process_openalex_institution(
            OpenAlexInstitution(id="I999", ror="042NB2S44", display_name="MIT"), state
        )
        assert first == other
        assert state.institutions[first].display_name == MIT["display_name"]

    def test_authorships_created_once(self, state, events):
        work = make_work(
            "W1",
            authorships=(
                make_authorship("A1", "Ada Lovelace", institutions=(MIT,), is_corresponding=True),
                make_authorship("A2", "Charles Babbage"),
            ),
        )
        uid = process_openalex_paper(work, state)
        process_openalex_paper(work, state)

        authorships = state.authorships_of_paper(uid)
        assert [a.author_position for a in authorships] == [0, 1]
        assert authorships[0].is_corresponding is True
        assert len(authorships[0].institution_uids) == 1
        assert len([e for e in events if isinstance(e, AuthorshipAddedEvent)]) == 2

    def test_discovery_call_skips_authorships(self, state):
        work = make_work("W1", authorships=(make_authorship("A1", "Ada Lovelace"),))
        process_openalex_paper(work, state, is_stub=True)
        assert state.authors == {}
        assert state.authorships == {}

    def test_semantic_scholar_authors_only_on_authorless_papers(self, state):
        uid = process_openalex_paper(
            make_work("W1", doi="10.1000/one", authorships=(make_authorship("A1", "Ada Lovelace"),)),
            state,
        )
        process_semantic_scholar_paper(
            make_ss_paper("S1", doi="10.1000/one", authors=(("s9", "Ada Lovelace"),)), state
        )
        assert len(state.authorships_of_paper(uid)) == 1
        assert len(state.authors) == 1

        ss_uid = process_semantic_scholar_paper(
            make_ss_paper("S2", authors=(("s1", "J. Smith"), (None, "Unnamed Coauthor"))), state
        )
        stub_authors = [state.authors[a.author_short_uid] for a in state.authorships_of_paper(ss_uid)]
        assert [a.clean_name for a in stub_authors] == ["J. Smith", "Unnamed Coauthor"]
        assert all(a.is_stub for a in stub_authors)
        assert state.index.find(Namespace.SS_AUTHOR, "s1") == stub_authors[0].short_uid

    def test_authorship_lookups_follow_add_and_remove(self, state):
        work = make_work(
            "W1",
            authorships=(
                make_authorship("A1", "Ada Lovelace"),
                make_authorship("A2", "Charles Babbage"),
            ),
        )
        uid = process_openalex_paper(work, state)
        ada = state.index.find(Namespace.OPENALEX_AUTHOR, "A1")
        assert state.has_authorships(uid)
        assert [a.paper_short_uid for a in state.authorships_of_author(ada)] == [uid]

        for authorship in state.authorships_of_paper(uid):
            state.remove_authorship(authorship.key)

        assert not state.has_authorships(uid)
        assert state.authorships_of_author(ada) == []
        assert state.authorships == {}

        # With its authors gone the paper takes Semantic Scholar authors again
        state.index.record(Namespace.DOI, "10.1000/w1", uid)
        process_semantic_scholar_paper(
            make_ss_paper("S1", doi="10.1000/w1", authors=(("s1", "A. Lovelace"),)), state
        )
        assert [a.raw_author_name for a in state.authorships_of_paper(uid)] == ["A. Lovelace"]
