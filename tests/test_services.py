"""
Integration Tests for Services
"""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from transcript_search.embeddings import (
    BaseEmbeddingProvider,
    LMStudioEmbeddingProvider,
    OpenAIEmbeddingProvider,
    get_provider,
)
from transcript_search.errors import (
    NotFoundError,
    ProviderFatalError,
    ProviderTransientError,
    SegmentStoreError,
    ValidationError,
)
from transcript_search.pipeline.ranker import HybridRanker, RankedMeeting
from transcript_search.schemas import MeetingGroup, ScoredResult, SearchQuery
from transcript_search.services import (
    CacheService,
    CrossMeetingAggregator,
    EmbeddingClient,
    SearchService,
)


class TestEmbeddingClient:
    """Tests for EmbeddingClient."""

    @pytest.mark.asyncio
    async def test_disabled_returns_none(self, make_settings, fake_provider):
        """Test disabled embeddings never call the provider."""
        settings = make_settings(embedding={"enabled": False})
        provider = fake_provider()
        client = EmbeddingClient(settings, provider=provider)

        assert not client.is_enabled()
        assert await client.embed("hello") is None
        assert await client.embed_batch(["a", "b"]) == [None, None]
        assert provider.calls == []
        assert client.get_config().enabled is False

    def test_unavailable_provider_disables(self, settings, fake_provider):
        """Test an unconfigured provider turns embeddings off."""
        client = EmbeddingClient(settings, provider=fake_provider(available=False))

        assert not client.is_enabled()

    @pytest.mark.asyncio
    async def test_blank_text_returns_none(self, settings, fake_provider):
        """Test whitespace-only input is rejected before the provider."""
        provider = fake_provider()
        client = EmbeddingClient(settings, provider=provider)

        assert await client.embed("   ") is None
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_input_is_truncated(self, make_settings, fake_provider):
        """Test long input is cut to max_input_chars."""
        settings = make_settings(embedding={"max_input_chars": 5})
        provider = fake_provider()
        client = EmbeddingClient(settings, provider=provider)

        await client.embed("abcdefghij")

        assert provider.calls == [["abcde"]]

    @pytest.mark.asyncio
    async def test_retries_transient_errors_with_backoff(self, make_settings, fake_provider):
        """Test transient errors are retried with doubling delay."""
        settings = make_settings(embedding={"retry_delay_seconds": 1.0})
        provider = fake_provider(failures=[
            ProviderTransientError("rate limited", status_code=429),
            ProviderTransientError("unavailable", status_code=503),
        ])
        client = EmbeddingClient(settings, provider=provider)

        with patch(
            "transcript_search.services.embedding_service.asyncio.sleep",
            new_callable=AsyncMock,
        ) as mock_sleep:
            vector = await client.embed("hello")

        assert vector == [0.0, 0.0, 1.0]
        assert len(provider.calls) == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, settings, fake_provider):
        """Test exhausted retries degrade to None."""
        provider = fake_provider(failures=[ProviderTransientError("busy")] * 5)
        client = EmbeddingClient(settings, provider=provider)

        assert await client.embed("hello") is None
        assert len(provider.calls) == settings.embedding.max_retries

    @pytest.mark.asyncio
    async def test_fatal_errors_are_not_retried(self, settings, fake_provider):
        """Test fatal errors fail after one attempt."""
        provider = fake_provider(failures=[ProviderFatalError("unauthorized", status_code=401)])
        client = EmbeddingClient(settings, provider=provider)

        assert await client.embed("hello") is None
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_unexpected_errors_degrade(self, settings, fake_provider):
        """Test non-provider exceptions never escape."""
        provider = fake_provider(failures=[RuntimeError("boom")])
        client = EmbeddingClient(settings, provider=provider)

        assert await client.embed("hello") is None

    def test_compute_delay(self, make_settings, fake_provider):
        """Test exponential backoff schedule."""
        settings = make_settings(embedding={"retry_delay_seconds": 0.5})
        client = EmbeddingClient(settings, provider=fake_provider())

        assert [client.compute_delay(n) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_batch_failure_is_isolated_per_chunk(self, make_settings, fake_provider):
        """Test a failing chunk only nulls its own items."""
        settings = make_settings(embedding={"batch_size": 2})
        provider = fake_provider(
            vectors={"c": [1.0, 0.0, 0.0], "d": [0.0, 1.0, 0.0]},
            failures=[ProviderFatalError("bad chunk")],
        )
        client = EmbeddingClient(settings, provider=provider)

        vectors = await client.embed_batch(["a", "b", "c", "", "d"])

        assert vectors == [None, None, [1.0, 0.0, 0.0], None, [0.0, 1.0, 0.0]]
        assert provider.calls == [["a", "b"], ["c", "d"]]

    @pytest.mark.asyncio
    async def test_wrong_dimension_is_discarded(self, settings, fake_provider):
        """Test vectors of the wrong size are dropped."""
        client = EmbeddingClient(settings, provider=fake_provider(default=[1.0, 0.0]))

        assert await client.embed("hello") is None

    @pytest.mark.asyncio
    async def test_empty_batch(self, settings, fake_provider):
        """Test empty input returns an empty list."""
        client = EmbeddingClient(settings, provider=fake_provider())

        assert await client.embed_batch([]) == []


def _embedding_response(vectors, reverse=False):
    items = [{"index": i, "embedding": v} for i, v in enumerate(vectors)]
    if reverse:
        items.reverse()
    return {"data": items, "model": "text-embedding-3-small"}


class TestOpenAIEmbeddingProvider:
    """Tests for the OpenAI provider over a mocked transport."""

    def _provider(self, make_settings, handler):
        settings = make_settings(embedding={"api_key": "sk-test", "base_url": "https://api.test/v1/"})
        return OpenAIEmbeddingProvider(settings, transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_embed_success(self, make_settings):
        """Test request shape and index ordering of the response."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_embedding_response([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], reverse=True))

        provider = self._provider(make_settings, handler)
        vectors = await provider.embed(["first", "second"])

        assert vectors == [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
        assert seen["url"] == "https://api.test/v1/embeddings"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["input"] == ["first", "second"]
        assert seen["body"]["dimensions"] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_retryable_statuses(self, make_settings, status):
        """Test rate limits and server errors are transient."""
        provider = self._provider(make_settings, lambda request: httpx.Response(status))

        with pytest.raises(ProviderTransientError) as exc_info:
            await provider.embed(["x"])
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 404])
    async def test_client_errors_are_fatal(self, make_settings, status):
        """Test other HTTP errors are fatal."""
        provider = self._provider(make_settings, lambda request: httpx.Response(status))

        with pytest.raises(ProviderFatalError):
            await provider.embed(["x"])

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, make_settings):
        """Test request timeouts are retryable."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = self._provider(make_settings, handler)

        with pytest.raises(ProviderTransientError):
            await provider.embed(["x"])

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self, make_settings):
        """Test connection failures are retryable."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = self._provider(make_settings, handler)

        with pytest.raises(ProviderTransientError):
            await provider.embed(["x"])

    @pytest.mark.asyncio
    async def test_count_mismatch_is_fatal(self, make_settings):
        """Test a response with too few vectors is rejected."""
        provider = self._provider(
            make_settings,
            lambda request: httpx.Response(200, json=_embedding_response([[1.0, 0.0, 0.0]])),
        )

        with pytest.raises(ProviderFatalError):
            await provider.embed(["a", "b"])

    @pytest.mark.asyncio
    async def test_malformed_body_is_fatal(self, make_settings):
        """Test a body without embeddings is rejected."""
        provider = self._provider(make_settings, lambda request: httpx.Response(200, json={"oops": True}))

        with pytest.raises(ProviderFatalError):
            await provider.embed(["a"])

    def test_requires_api_key(self, make_settings):
        """Test availability depends on the API key."""
        settings = make_settings(embedding={"api_key": None})
        assert not OpenAIEmbeddingProvider(settings).is_available()


class TestLMStudioEmbeddingProvider:
    """Tests for the LM Studio provider."""

    @pytest.mark.asyncio
    async def test_embed_without_auth(self, make_settings):
        """Test requests carry no Authorization header or dimensions."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_embedding_response([[0.0, 0.0, 1.0]]))

        settings = make_settings(embedding={"provider": "lm_studio", "base_url": "http://localhost:1234/v1"})
        provider = LMStudioEmbeddingProvider(settings, transport=httpx.MockTransport(handler))

        assert await provider.embed(["hello"]) == [[0.0, 0.0, 1.0]]
        assert "authorization" not in seen["headers"]
        assert "dimensions" not in seen["body"]


class TestGetProvider:
    """Tests for provider selection."""

    def test_selects_configured_provider(self, make_settings):
        """Test the factory honours EMBEDDING_PROVIDER."""
        assert isinstance(get_provider(make_settings(embedding={"provider": "openai"})), OpenAIEmbeddingProvider)
        assert isinstance(
            get_provider(make_settings(embedding={"provider": "lm_studio"})), LMStudioEmbeddingProvider
        )


class TestCacheService:
    """Tests for CacheService."""

    def test_cache_set_get(self, settings):
        """Test basic cache operations."""
        cache = CacheService(settings)
        cache.set("test:key", {"value": 123})

        assert cache.get("test:key") == {"value": 123}

    def test_cache_disabled(self, make_settings):
        """Test cache when disabled."""
        cache = CacheService(make_settings(cache={"enabled": False}))
        cache.set("test:key", {"value": 123})

        assert cache.get("test:key") is None

    def test_make_key_depends_on_parameters(self):
        """Test keys are stable and parameter-sensitive."""
        first = CacheService.make_key("meeting", "m1", SearchQuery(text="budget"))
        again = CacheService.make_key("meeting", "m1", SearchQuery(text="budget"))
        other_page = CacheService.make_key("meeting", "m1", SearchQuery(text="budget", page=2))

        assert first == again
        assert first != other_page
        assert first.startswith("search:meeting:m1:")


def _three_meeting_store(make_store, make_meeting, make_segment, per_meeting=5):
    meetings = [make_meeting(f"m{n}", day=n, title=f"Standup {n}") for n in (1, 2, 3)]
    segments = [
        make_segment(
            f"m{n}-s{i}", "budget review", meeting_id=f"m{n}",
            start=i * 1000 + n, embedding=[1.0, 0.0, 0.0],
        )
        for n in (1, 2, 3)
        for i in range(per_meeting)
    ]
    return make_store(meetings=meetings, segments=segments)


def _aggregator(store, settings, provider):
    ranker = HybridRanker(store, EmbeddingClient(settings, provider=provider), settings)
    return CrossMeetingAggregator(store, ranker, settings)


class TestCrossMeetingAggregator:
    """Tests for project-wide search."""

    @pytest.mark.asyncio
    async def test_flat_merge_across_meetings(self, settings, make_store, make_meeting, make_segment, fake_provider):
        """Test three meetings of five matches fill a page of ten."""
        store = _three_meeting_store(make_store, make_meeting, make_segment)
        provider = fake_provider(default=[1.0, 0.0, 0.0])
        aggregator = _aggregator(store, settings, provider)

        page = await aggregator.search_across_meetings(
            "p1", SearchQuery(text="budget review", limit=10, group_by_meeting=False)
        )

        assert len(page.results) == 10
        assert page.meetings_searched == 3
        assert page.pagination.total == 15
        assert page.strategy == "hybrid"
        keys = [r.sort_key() for r in page.results]
        assert keys == sorted(keys)

    @pytest.mark.asyncio
    async def test_query_embedded_once(self, settings, make_store, make_meeting, make_segment, fake_provider):
        """Test every meeting shares one query embedding."""
        store = _three_meeting_store(make_store, make_meeting, make_segment)
        provider = fake_provider(default=[1.0, 0.0, 0.0])
        aggregator = _aggregator(store, settings, provider)

        await aggregator.search_across_meetings("p1", SearchQuery(text="budget review"))

        assert provider.calls == [["budget review"]]

    @pytest.mark.asyncio
    async def test_grouped_results(self, settings, make_store, make_meeting, make_segment, fake_provider):
        """Test grouping keeps rank order and meeting metadata."""
        store = _three_meeting_store(make_store, make_meeting, make_segment, per_meeting=2)
        aggregator = _aggregator(store, settings, fake_provider(default=[1.0, 0.0, 0.0]))

        page = await aggregator.search_across_meetings("p1", SearchQuery(text="budget review"))

        assert isinstance(page.results, dict)
        assert list(page.results) == ["m1", "m2", "m3"]
        group = page.results["m1"]
        assert isinstance(group, MeetingGroup)
        assert group.meeting_title == "Standup 1"
        assert group.match_count == 2
        assert group.top_score == pytest.approx(1.0)
        assert len(page.flat_results()) == 6

    def test_group_by_meeting_orders_by_best_result(self, make_segment, make_meeting):
        """Test groups appear in order of their best result."""
        results = [
            ScoredResult(segment=make_segment("b1", "x", meeting_id="mb"), keyword_score=1.0, combined_score=0.9),
            ScoredResult(segment=make_segment("a1", "x", meeting_id="ma"), keyword_score=1.0, combined_score=0.8),
            ScoredResult(segment=make_segment("b2", "x", meeting_id="mb", start=10), keyword_score=1.0, combined_score=0.75),
        ]
        grouped = CrossMeetingAggregator.group_by_meeting(
            results, {"ma": make_meeting("ma"), "mb": make_meeting("mb")}
        )

        assert list(grouped) == ["mb", "ma"]
        assert [r.segment.id for r in grouped["mb"].results] == ["b1", "b2"]
        assert grouped["mb"].top_score == 0.9

    @pytest.mark.asyncio
    async def test_date_filter_limits_meetings(self, settings, make_store, make_meeting, make_segment, fake_provider):
        """Test date bounds select meetings by creation date."""
        store = _three_meeting_store(make_store, make_meeting, make_segment)
        aggregator = _aggregator(store, settings, fake_provider(default=[1.0, 0.0, 0.0]))

        page = await aggregator.search_across_meetings("p1", SearchQuery(
            text="budget review",
            date_from=datetime(2024, 3, 2, tzinfo=timezone.utc),
            date_to=datetime(2024, 3, 2, 23, 59, tzinfo=timezone.utc),
            group_by_meeting=False,
        ))

        assert page.meetings_searched == 1
        assert {r.segment.meeting_id for r in page.results} == {"m2"}

    @pytest.mark.asyncio
    async def test_pages_never_overlap_when_pool_is_tight(
        self, settings, make_store, make_meeting, make_segment, fake_provider
    ):
        """Test every page slices one merged pool across meetings."""
        store = make_store(
            meetings=[make_meeting("m1"), make_meeting("m2", day=2)],
            segments=[
                make_segment(f"m1-s{i}", "lunch plans", start=i * 1000, embedding=[1.0, 0.1 * i, 0.0])
                for i in range(5)
            ] + [
                make_segment("m1-s5", "budget review", start=5000, embedding=[0.5, 0.8, 0.0]),
                make_segment("m2-s0", "lunch plans", meeting_id="m2", embedding=[1.0, 0.05, 0.0]),
            ],
        )
        aggregator = _aggregator(store, settings, fake_provider(default=[1.0, 0.0, 0.0]))

        pages = [
            await aggregator.search_across_meetings("p1", SearchQuery(
                text="budget review", page=n, limit=1, score_threshold=0.0, group_by_meeting=False,
            ))
            for n in range(1, 8)
        ]

        stitched = [r.segment.id for p in pages for r in p.results]
        assert stitched == ["m1-s0", "m2-s0", "m1-s1", "m1-s2", "m1-s3", "m1-s4"]
        assert len(set(stitched)) == len(stitched)
        assert {p.pagination.total for p in pages} == {6}
        assert pages[-1].results == []

    @pytest.mark.asyncio
    async def test_unknown_project(self, settings, make_store, fake_provider):
        """Test a missing project is reported."""
        aggregator = _aggregator(make_store(), settings, fake_provider())

        with pytest.raises(NotFoundError):
            await aggregator.search_across_meetings("nope", SearchQuery(text="budget"))

    @pytest.mark.asyncio
    async def test_project_without_meetings(self, settings, make_store, fake_provider):
        """Test an empty project returns an empty page without embedding."""
        provider = fake_provider()
        aggregator = _aggregator(make_store(), settings, provider)

        page = await aggregator.search_across_meetings("p1", SearchQuery(text="budget", group_by_meeting=False))

        assert page.results == []
        assert page.meetings_searched == 0
        assert page.pagination.total == 0
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, make_settings, make_store, make_meeting):
        """Test no more than `concurrency` meetings are ranked at once."""
        settings = make_settings(search={"concurrency": 2})
        store = make_store(meetings=[make_meeting(f"m{n}", day=n) for n in range(1, 7)])
        active = 0
        peak = 0

        async def rank_meeting(meeting_id, query, query_vector):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return RankedMeeting(meeting_id=meeting_id)

        ranker = MagicMock()
        ranker.embed_query = AsyncMock(return_value=(None, False))
        ranker.rank_meeting = rank_meeting
        aggregator = CrossMeetingAggregator(store, ranker, settings)

        page = await aggregator.search_across_meetings("p1", SearchQuery(text="budget", hybrid=False))

        assert page.meetings_searched == 6
        assert peak == 2

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self, settings, make_store, make_meeting):
        """Test one failing meeting fails the search and cancels the rest."""
        store = make_store(meetings=[make_meeting(f"m{n}", day=n) for n in (1, 2, 3)])
        cancelled = []

        async def rank_meeting(meeting_id, query, query_vector):
            if meeting_id == "m2":
                raise SegmentStoreError("store down")
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.append(meeting_id)
                raise
            return RankedMeeting(meeting_id=meeting_id)

        ranker = MagicMock()
        ranker.embed_query = AsyncMock(return_value=(None, False))
        ranker.rank_meeting = rank_meeting
        aggregator = CrossMeetingAggregator(store, ranker, settings)

        with pytest.raises(SegmentStoreError):
            await aggregator.search_across_meetings("p1", SearchQuery(text="budget"))

        assert sorted(cancelled) == ["m1", "m3"]


class AlwaysTimingOut(BaseEmbeddingProvider):
    """Provider whose every request times out."""

    name = "timeout"

    def __init__(self):
        self.calls = 0

    async def embed(self, texts):
        self.calls += 1
        raise ProviderTransientError("Embedding request timed out")


class TestSearchService:
    """Tests for the SearchService facade."""

    def _service(self, settings, store, provider):
        return SearchService(
            settings,
            store=store,
            embedding_client=EmbeddingClient(settings, provider=provider),
        )

    @pytest.mark.asyncio
    async def test_empty_query_rejected_before_provider(self, settings, make_store):
        """Test blank queries raise ValidationError without embedding."""
        provider = MagicMock(spec=BaseEmbeddingProvider)
        provider.embed = AsyncMock()
        provider.is_available.return_value = True
        service = self._service(settings, make_store(), provider)

        with pytest.raises(ValidationError):
            await service.search("m1", "   ")
        with pytest.raises(ValidationError):
            await service.search_across_meetings("p1", "")
        provider.embed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_too_long(self, settings, make_store, fake_provider):
        """Test over-length queries are rejected."""
        service = self._service(settings, make_store(), fake_provider())

        with pytest.raises(ValidationError):
            await service.search("m1", "x" * 201)

    @pytest.mark.asyncio
    async def test_invalid_pagination(self, settings, make_store, fake_provider):
        """Test limit and page bounds."""
        service = self._service(settings, make_store(), fake_provider())

        with pytest.raises(ValidationError):
            await service.search("m1", "budget", limit=101)
        with pytest.raises(ValidationError) as exc_info:
            await service.search("m1", "budget", page=0)
        assert exc_info.value.errors
        assert exc_info.value.to_dict()["status"] == 422

    @pytest.mark.asyncio
    async def test_inverted_date_range(self, settings, make_store, fake_provider):
        """Test date_from after date_to is rejected."""
        service = self._service(settings, make_store(), fake_provider())

        with pytest.raises(ValidationError):
            await service.search_across_meetings(
                "p1", "budget",
                date_from=datetime(2024, 3, 5, tzinfo=timezone.utc),
                date_to=datetime(2024, 3, 1, tzinfo=timezone.utc),
            )

    def test_default_limits(self, settings, make_store, fake_provider):
        """Test meeting and project searches use their own default limits."""
        service = self._service(settings, make_store(), fake_provider())

        assert service.build_query("budget", default_limit=settings.search.meeting_limit).limit == 50
        assert service.build_query("budget", default_limit=settings.search.project_limit).limit == 20

    def test_configured_limit_ceiling(self, make_settings, make_store, fake_provider):
        """Test SEARCH_MAX_LIMIT above the default ceiling is honoured."""
        settings = make_settings(search={"max_limit": 200})
        service = self._service(settings, make_store(), fake_provider())

        assert service.build_query("budget", default_limit=20, limit=150).limit == 150
        with pytest.raises(ValidationError):
            service.build_query("budget", default_limit=20, limit=201)

    def test_configured_query_length(self, make_settings, make_store, fake_provider):
        """Test SEARCH_MAX_QUERY_LENGTH above the default is honoured."""
        settings = make_settings(search={"max_query_length": 300})
        service = self._service(settings, make_store(), fake_provider())

        assert len(service.build_query("x" * 250, default_limit=20).text) == 250
        with pytest.raises(ValidationError):
            service.build_query("x" * 301, default_limit=20)

    @pytest.mark.asyncio
    async def test_deleted_meeting_not_served_from_cache(
        self, settings, make_store, make_meeting, make_segment, fake_provider
    ):
        """Test a meeting removed after a cached search is reported missing."""
        store = _three_meeting_store(make_store, make_meeting, make_segment)
        service = self._service(settings, store, fake_provider(default=[1.0, 0.0, 0.0]))

        await service.search("m1", "budget review")
        store._meetings.pop("m1")

        with pytest.raises(NotFoundError):
            await service.search("m1", "budget review")

    @pytest.mark.asyncio
    async def test_deleted_project_not_served_from_cache(
        self, settings, make_store, make_meeting, make_segment, fake_provider
    ):
        """Test a project removed after a cached search is reported missing."""
        store = _three_meeting_store(make_store, make_meeting, make_segment)
        service = self._service(settings, store, fake_provider(default=[1.0, 0.0, 0.0]))

        await service.search_across_meetings("p1", "budget review")
        store._projects.pop("p1")

        with pytest.raises(NotFoundError):
            await service.search_across_meetings("p1", "budget review")

    @pytest.mark.asyncio
    async def test_unknown_meeting(self, settings, make_store, fake_provider):
        """Test a missing meeting raises NotFoundError."""
        service = self._service(settings, make_store(), fake_provider())

        with pytest.raises(NotFoundError) as exc_info:
            await service.search("missing", "budget")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_results_are_cached(self, settings, make_store, make_meeting, make_segment, fake_provider):
        """Test a repeated search is served from cache."""
        store = _three_meeting_store(make_store, make_meeting, make_segment)
        provider = fake_provider(default=[1.0, 0.0, 0.0])
        service = self._service(settings, store, provider)

        first = await service.search("m1", "budget review")
        first.results.clear()
        second = await service.search("m1", "budget review")

        assert len(provider.calls) == 1
        assert len(second.results) == 5

    @pytest.mark.asyncio
    async def test_provider_timeouts_fall_back_to_keyword(self, settings, make_store, make_meeting, make_segment):
        """Test an always-failing provider still yields keyword results."""
        store = _three_meeting_store(make_store, make_meeting, make_segment)
        provider = AlwaysTimingOut()
        service = self._service(settings, store, provider)

        page = await service.search_across_meetings("p1", "budget review", group_by_meeting=False)

        assert page.strategy == "keyword-only"
        assert page.degraded
        assert page.meetings_searched == 3
        assert len(page.results) == 15
        assert all(r.vector_score is None for r in page.results)
        assert provider.calls == settings.embedding.max_retries

        # Degraded pages are not cached
        await service.search_across_meetings("p1", "budget review", group_by_meeting=False)
        assert provider.calls == 2 * settings.embedding.max_retries

    @pytest.mark.asyncio
    async def test_health_check(self, settings, make_store, fake_provider):
        """Test health reports the embedding configuration."""
        service = self._service(settings, make_store(), fake_provider())

        health = service.health_check()

        assert health["status"] == "healthy"
        assert health["embedding"]["dimensions"] == 3
        assert service.is_embedding_enabled()

    def test_health_check_degraded(self, make_settings, make_store):
        """Test disabled embeddings report a degraded status."""
        settings = make_settings(embedding={"enabled": False})
        service = SearchService(settings, store=make_store(), embedding_client=EmbeddingClient(settings))

        assert service.health_check()["status"] == "degraded"
        assert service.get_embedding_config().enabled is False
