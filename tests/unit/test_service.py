"""Tests for the research run service."""

import json
import threading

import pytest
from pydantic import ValidationError

from research_digest.models import EventType
from research_digest.pipeline.service import ResearchPipelineError, ResearchService
from research_digest.pipeline.stages.comprehensive_summary import NO_CONTENT_SUMMARY


@pytest.fixture
def make_service(make_capabilities, settings):
    services = []

    def factory(service_settings=None, **overrides) -> ResearchService:
        service = ResearchService(make_capabilities(**overrides), service_settings or settings)
        services.append(service)
        return service

    yield factory
    for service in services:
        service.close()


class TestRun:
    """Tests for synchronous runs."""

    def test_full_run(self, make_service):
        result = make_service().run("quantum computing", 3)

        assert result.topic == "quantum computing"
        assert result.optimized_query == "quantum computing explained"
        assert len(result.search_results) == 5
        assert len(result.structured_documents) == 3
        assert result.final_summary == "Summary of quantum computing from 3 sources"
        assert result.quick_summary == "Quick look at quantum computing from 5 snippets"
        assert [d.engine for d in result.structured_documents] == ["duckduckgo", "bing", "duckduckgo"]
        assert result.stage_errors == {}
        assert set(result.stage_durations) == {
            "optimizing_query",
            "searching",
            "quick_summary",
            "fetching_content",
            "comprehensive_summary",
        }

    def test_default_result_count(self, make_service, settings):
        result = make_service().run("quantum computing")
        assert len(result.structured_documents) == settings.default_result_count

    def test_refinement_failure_uses_topic(self, make_service, search_results):
        queries = []

        def refine(topic):
            raise TimeoutError("model timed out")

        def search(query, count):
            queries.append(query)
            return search_results[:count]

        result = make_service(refine_query=refine, search=search).run("quantum computing", 2)

        assert queries == ["quantum computing"]
        assert result.optimized_query is None
        assert result.stage_errors == {"optimizing_query": "model timed out"}
        assert len(result.structured_documents) == 2

    def test_search_failure_aborts(self, make_service):
        def search(query, count):
            raise ConnectionError("searxng unreachable")

        with pytest.raises(ResearchPipelineError) as excinfo:
            make_service(search=search).run("quantum computing", 2)

        assert excinfo.value.stage == "searching"
        assert excinfo.value.message == "searxng unreachable"

    def test_no_fetchable_pages_gives_fallback_summary(self, make_service, fake_web):
        fake_web.pages.clear()

        result = make_service().run("quantum computing", 2)

        assert result.structured_documents == []
        assert result.final_summary.startswith(NO_CONTENT_SUMMARY)
        assert len(fake_web.fetched) == 5

    def test_skip_expensive_stages(self, make_service, fake_web):
        result = make_service().run("quantum computing", 3, skip_expensive_stages=True)

        assert fake_web.fetched == []
        assert result.structured_documents == []
        assert result.final_summary is None
        assert result.quick_summary is not None
        assert "fetching_content" not in result.stage_durations

    def test_quick_summary_failure_recorded(self, make_service):
        def quick_summarize(topic, snippets):
            raise RuntimeError("model offline")

        result = make_service(quick_summarize=quick_summarize).run("quantum computing", 2)

        assert result.quick_summary is None
        assert result.stage_errors == {"quick_summary": "model offline"}
        assert result.final_summary is not None

    def test_slow_quick_summary_is_not_awaited_forever(self, make_service, settings):
        release = threading.Event()

        def quick_summarize(topic, snippets):
            release.wait(5)
            return "late"

        impatient = settings.model_copy(update={"quick_summary_timeout_seconds": 0.1})
        service = make_service(impatient, quick_summarize=quick_summarize)
        try:
            result = service.run("quantum computing", 2)
        finally:
            release.set()

        assert result.quick_summary is None
        assert "quick_summary" not in result.stage_errors


class TestLoadDocument:
    """Tests for the per-URL loader."""

    def test_skipped_url_not_fetched(self, make_service, fake_web):
        assert make_service().load_document("https://www.youtube.com/watch?v=abc") is None
        assert fake_web.fetched == []

    def test_structures_fetched_page(self, make_service, web_pages):
        url = next(iter(web_pages))
        document = make_service().load_document(url)
        assert [s.heading for s in document.sections] == ["Background", "Applications"]


class TestRunStreaming:
    """Tests for streaming runs."""

    def test_event_order_and_completion(self, make_service):
        events = list(make_service().run_streaming("quantum computing", 3))
        types = [e.event_type for e in events]

        assert types[-1] == EventType.COMPLETE
        assert types.count(EventType.COMPLETE) == 1
        assert EventType.ERROR not in types
        assert [t for t in types if t != EventType.QUICK_SUMMARY] == [
            EventType.OPTIMIZING_QUERY,
            EventType.SEARCHING,
            EventType.FETCHING_CONTENT,
            EventType.COMPREHENSIVE_SUMMARY,
            EventType.COMPLETE,
        ]
        assert types.count(EventType.QUICK_SUMMARY) == 1
        assert types.index(EventType.QUICK_SUMMARY) > types.index(EventType.SEARCHING)

    def test_payloads(self, make_service):
        events = {e.event_type: e.data for e in make_service().run_streaming("quantum computing", 3)}

        assert events[EventType.OPTIMIZING_QUERY] == "quantum computing explained"
        assert len(json.loads(events[EventType.SEARCHING])) == 5
        assert len(json.loads(events[EventType.FETCHING_CONTENT])) == 3
        assert events[EventType.QUICK_SUMMARY] == "Quick look at quantum computing from 5 snippets"
        assert json.loads(events[EventType.COMPLETE])["final_summary"] == (
            "Summary of quantum computing from 3 sources"
        )

    def test_search_failure_ends_with_error(self, make_service):
        def search(query, count):
            raise ConnectionError("searxng unreachable")

        events = list(make_service(search=search).run_streaming("quantum computing", 2))

        assert [e.event_type for e in events] == [
            EventType.OPTIMIZING_QUERY,
            EventType.SEARCHING,
            EventType.ERROR,
        ]
        assert json.loads(events[1].data) == {"error": "searxng unreachable"}
        assert json.loads(events[-1].data) == {"stage": "searching", "message": "searxng unreachable"}


class TestResultCount:
    """Tests for the requested document count."""

    def test_zero_rejected(self, make_service, fake_web):
        with pytest.raises(ValidationError):
            make_service().run("quantum computing", 0)

        assert fake_web.fetched == []

    def test_none_uses_default(self, make_service, settings):
        result = make_service().run("quantum computing", None)
        assert len(result.structured_documents) == settings.default_result_count
