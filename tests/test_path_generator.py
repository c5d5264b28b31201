import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from learnpath.exceptions import InvalidInputError
from learnpath.goals.models import ScoringContext
from learnpath.goals.scoring import channel_frequency, composite_score
from learnpath.goals.service import (
    PathGenerator,
    chunk_ids,
    dedupe_candidates,
    normalize_keywords,
)
from learnpath.youtube.models import SearchCandidate, VideoDetail


NOW = datetime(2026, 10, 1, tzinfo=timezone.utc)


def make_video(video_id: str, **overrides) -> VideoDetail:
    fields = {
        "video_id": video_id,
        "title": f"Video {video_id}",
        "channel_id": f"chan-{video_id}",
        "published_at": NOW - timedelta(days=60),
        "duration_seconds": 600,
        "view_count": 10_000,
        "like_count": 0,
    }
    fields.update(overrides)
    return VideoDetail(**fields)


class StubYouTube:
    """
    In-memory stand-in for the search and detail collaborators.
    Records every call so tests can assert on fan-out and batching.
    """

    def __init__(self, results=None, catalog=None, failing_keywords=(), failing_batches=()):
        self.results = results or {}
        self.catalog = catalog or {}
        self.failing_keywords = set(failing_keywords)
        self.failing_batches = set(failing_batches)
        self.search_calls = []
        self.detail_calls = []

    async def search(self, query: str, max_results: int) -> list[SearchCandidate]:
        self.search_calls.append((query, max_results))
        if query in self.failing_keywords:
            raise RuntimeError(f"search for {query} returned 500")
        return [SearchCandidate(video_id=vid, keyword=query) for vid in self.results.get(query, [])]

    async def details(self, video_ids: list[str]) -> list[VideoDetail]:
        self.detail_calls.append(list(video_ids))
        if len(self.detail_calls) in self.failing_batches:
            raise RuntimeError("videos.list returned 503")
        return [self.catalog[vid] for vid in video_ids if vid in self.catalog]

    def generator(self, **kwargs) -> PathGenerator:
        return PathGenerator(search_fn=self.search, detail_fetch_fn=self.details, **kwargs)


def run(coro):
    return asyncio.run(coro)


# ---------------------------
# Keyword normalization
# ---------------------------

def test_normalize_collapses_duplicates_and_blanks():
    assert normalize_keywords(" a, a ,b,,c ") == ["a", "b", "c"]


def test_normalize_is_idempotent():
    once = normalize_keywords(" a, a ,b,,c ")
    assert normalize_keywords(once) == once
    assert normalize_keywords(", ".join(once)) == once


def test_normalize_is_case_sensitive():
    assert normalize_keywords("Python, python") == ["Python", "python"]


def test_normalize_accepts_lists():
    assert normalize_keywords(["python, pandas", " numpy ", "pandas"]) == ["python", "pandas", "numpy"]


@pytest.mark.parametrize("keywords", ["", "   ", " , ,", [], [" ", ","], None])
def test_normalize_rejects_empty_input(keywords):
    with pytest.raises(InvalidInputError) as exc:
        normalize_keywords(keywords)
    assert exc.value.status_code == 400


# ---------------------------
# Dedup / chunking
# ---------------------------

def test_dedupe_first_seen_wins():
    first = [SearchCandidate(video_id="v1", keyword="k1"), SearchCandidate(video_id="v2", keyword="k1")]
    second = [SearchCandidate(video_id="v2", keyword="k2"), SearchCandidate(video_id="v3", keyword="k2")]

    merged = dedupe_candidates([first, second])

    assert [c.video_id for c in merged] == ["v1", "v2", "v3"]
    assert merged[1].keyword == "k1"


def test_chunk_ids_sizes():
    ids = [f"v{i}" for i in range(120)]
    assert [len(batch) for batch in chunk_ids(ids, 50)] == [50, 50, 20]
    assert chunk_ids([], 50) == []
    with pytest.raises(ValueError):
        chunk_ids(ids, 0)


# ---------------------------
# Pipeline
# ---------------------------

def test_detail_fetch_is_batched_by_50():
    ids = [f"v{i}" for i in range(120)]
    stub = StubYouTube(
        results={"python": ids},
        catalog={vid: make_video(vid) for vid in ids},
    )

    run(stub.generator().generate("python", now=NOW))

    assert sorted(len(batch) for batch in stub.detail_calls) == [20, 50, 50]
    assert [vid for batch in stub.detail_calls for vid in batch] == ids


def test_search_requests_15_results_per_keyword():
    stub = StubYouTube(results={"python": ["v1"]}, catalog={"v1": make_video("v1")})
    run(stub.generator().generate("python, pandas", now=NOW))
    assert sorted(stub.search_calls) == [("pandas", 15), ("python", 15)]


def test_failed_keyword_degrades_to_remaining_keywords():
    catalog = {vid: make_video(vid, view_count=1_000 * (i + 1)) for i, vid in enumerate(["a1", "a2", "a3"])}
    results = {"python": ["a1", "a2", "a3"], "broken": ["zz"]}

    degraded = StubYouTube(results=results, catalog=catalog, failing_keywords={"broken"})
    baseline = StubYouTube(results=results, catalog=catalog)

    with_failure = run(degraded.generator().generate("python, broken", now=NOW))
    only_good = run(baseline.generator().generate("python", now=NOW))

    assert with_failure
    assert with_failure == only_good


def test_failed_detail_batch_drops_only_that_batch():
    ids = [f"v{i}" for i in range(60)]
    stub = StubYouTube(
        results={"python": ids},
        catalog={vid: make_video(vid) for vid in ids},
        failing_batches={1},
    )

    path = run(stub.generator(path_size=100).generate("python", now=NOW))

    assert len(stub.detail_calls) == 2
    assert len(path) == 10
    assert {video.video_id for video in path} == set(stub.detail_calls[1])


def test_all_searches_failing_returns_empty_list():
    stub = StubYouTube(failing_keywords={"python", "pandas"})
    assert run(stub.generator().generate("python, pandas", now=NOW)) == []
    assert stub.detail_calls == []


def test_no_search_results_returns_empty_list_without_detail_calls():
    stub = StubYouTube(results={})
    assert run(stub.generator().generate("obscure topic", now=NOW)) == []
    assert stub.detail_calls == []


def test_empty_keywords_make_no_calls():
    stub = StubYouTube()
    with pytest.raises(InvalidInputError):
        run(stub.generator().generate("", now=NOW))
    assert stub.search_calls == []
    assert stub.detail_calls == []


def test_python_pandas_scenario():
    python_ids = [f"p{i}" for i in range(10)]
    pandas_ids = ["p7", "p8", "p9"] + [f"d{i}" for i in range(5)]
    all_ids = python_ids + [vid for vid in pandas_ids if vid not in python_ids]

    catalog = {vid: make_video(vid, view_count=500 + 731 * i) for i, vid in enumerate(all_ids)}
    # Three candidates fail the hard filters
    catalog["p0"] = make_video("p0", duration_seconds=45)
    catalog["p3"] = make_video("p3", duration_seconds=60)
    catalog["d2"] = make_video("d2", view_count=150)

    stub = StubYouTube(results={"python": python_ids, "pandas": pandas_ids}, catalog=catalog)
    path = run(stub.generator().generate("python, pandas", now=NOW))

    assert len(stub.detail_calls) == 1
    assert len(stub.detail_calls[0]) == 15
    assert len(path) == 12
    assert {"p0", "p3", "d2"}.isdisjoint(video.video_id for video in path)

    context = ScoringContext(channel_frequency=channel_frequency(catalog.values()), now=NOW)
    scores = [composite_score(video, context) for video in path]
    assert scores == sorted(scores, reverse=True)

    for video in path:
        assert isinstance(video, VideoDetail)
        assert "score" not in video.model_dump()


def test_output_never_contains_filtered_videos():
    ids = [f"v{i}" for i in range(40)]
    catalog = {}
    for i, vid in enumerate(ids):
        catalog[vid] = make_video(
            vid,
            duration_seconds=[30, 60, 61, 900][i % 4],
            view_count=[0, 199, 200, 10**6][(i // 4) % 4],
            like_count=[0, 10**5][i % 2],
        )
    stub = StubYouTube(results={"k": ids}, catalog=catalog)

    path = run(stub.generator(path_size=100).generate("k", now=NOW))

    assert path
    for video in path:
        assert video.duration_seconds > 60
        assert video.view_count >= 200


def test_zero_like_video_is_eligible():
    stub = StubYouTube(
        results={"k": ["v1"]},
        catalog={"v1": make_video("v1", like_count=0, view_count=10_000, duration_seconds=600)},
    )
    path = run(stub.generator().generate("k", now=NOW))
    assert [video.video_id for video in path] == ["v1"]


def test_path_is_truncated_to_20():
    ids = [f"v{i}" for i in range(35)]
    stub = StubYouTube(results={"k": ids}, catalog={vid: make_video(vid) for vid in ids})
    path = run(stub.generator().generate("k", now=NOW))
    assert len(path) == 20


def test_ties_keep_dedup_order():
    ids = ["c", "a", "b"]
    catalog = {vid: make_video(vid, channel_id="same") for vid in ids}
    stub = StubYouTube(results={"k": ids}, catalog=catalog)

    path = run(stub.generator().generate("k", now=NOW))

    assert [video.video_id for video in path] == ids


def test_trusted_and_subscribed_channels_rank_higher():
    catalog = {
        "plain": make_video("plain", channel_id="nobody"),
        "sub": make_video("sub", channel_id="followed"),
        "trusted": make_video("trusted", channel_id="favourite"),
    }
    stub = StubYouTube(results={"k": ["plain", "sub", "trusted"]}, catalog=catalog)

    path = run(stub.generator().generate(
        "k",
        trusted_channel_ids={"favourite"},
        subscribed_channel_ids=["followed"],
        now=NOW,
    ))

    assert [video.video_id for video in path] == ["trusted", "sub", "plain"]


def test_slow_search_is_treated_as_failed():
    catalog = {"fast1": make_video("fast1")}

    async def search(query, max_results):
        if query == "slow":
            await asyncio.sleep(5)
        return [SearchCandidate(video_id="fast1", keyword=query)]

    async def details(video_ids):
        return [catalog[vid] for vid in video_ids]

    generator = PathGenerator(search_fn=search, detail_fetch_fn=details, call_timeout=0.05)
    path = run(generator.generate("slow, fast", now=NOW))

    assert [video.video_id for video in path] == ["fast1"]


def test_search_raising_before_awaiting_is_tolerated():
    def search(query, max_results):
        raise ConnectionError("DNS failure")

    async def details(video_ids):
        return []

    generator = PathGenerator(search_fn=search, detail_fetch_fn=details)
    assert run(generator.generate("python", now=NOW)) == []
