"""
Learning path generation.

keywords -> concurrent searches -> dedupe -> batched detail fetches
-> score -> hard filters -> sort -> truncate.

Upstream calls are joined tolerantly: a call that raises or times out
contributes nothing and generation carries on with the rest. The only
error surfaced to callers is a request with no usable keywords.
"""
import asyncio
import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from ..exceptions import InvalidInputError
from ..youtube.models import SearchCandidate, VideoDetail
from .models import RankedVideo, ScoringContext, ScoringWeights
from .scoring import DEFAULT_WEIGHTS, channel_frequency, composite_score, passes_hard_filters

logger = logging.getLogger("goals.generate")

SearchFn = Callable[[str, int], Awaitable[list[SearchCandidate]]]
DetailFetchFn = Callable[[list[str]], Awaitable[list[VideoDetail]]]

RESULTS_PER_KEYWORD = 15
DETAILS_BATCH_SIZE = 50
PATH_SIZE = 20


@dataclass
class CallOutcome:
    """Settled result of one upstream call: its items, or the error it failed with"""
    label: str
    items: list = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def normalize_keywords(keywords: Union[str, Iterable[str]]) -> list[str]:
    """
    Split on commas, trim, drop blanks and duplicates (first occurrence wins).

    Raises InvalidInputError when nothing is left.
    """
    if keywords is None:
        raise InvalidInputError()
    if isinstance(keywords, str):
        keywords = [keywords]

    parts = (part.strip() for raw in keywords for part in str(raw).split(","))
    normalized = list(dict.fromkeys(part for part in parts if part))
    if not normalized:
        raise InvalidInputError()
    return normalized


def dedupe_candidates(result_lists: Iterable[list[SearchCandidate]]) -> list[SearchCandidate]:
    """Merge per-keyword results in keyword order, keeping the first sighting of each video"""
    seen: set[str] = set()
    merged = []
    for results in result_lists:
        for candidate in results:
            if candidate.video_id in seen:
                continue
            seen.add(candidate.video_id)
            merged.append(candidate)
    return merged


def chunk_ids(video_ids: list[str], size: int = DETAILS_BATCH_SIZE) -> list[list[str]]:
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    return [video_ids[i:i + size] for i in range(0, len(video_ids), size)]


class PathGenerator:
    """Builds a ranked learning path from keywords using two upstream collaborators"""

    def __init__(
        self,
        search_fn: SearchFn,
        detail_fetch_fn: DetailFetchFn,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        results_per_keyword: int = RESULTS_PER_KEYWORD,
        batch_size: int = DETAILS_BATCH_SIZE,
        path_size: int = PATH_SIZE,
        call_timeout: Optional[float] = None
    ):
        self.search_fn = search_fn
        self.detail_fetch_fn = detail_fetch_fn
        self.weights = weights
        self.results_per_keyword = results_per_keyword
        self.batch_size = batch_size
        self.path_size = path_size
        self.call_timeout = call_timeout

    async def _settle(self, label: str, call: Callable[[], Awaitable[list[Any]]]) -> CallOutcome:
        try:
            if self.call_timeout is not None:
                items = await asyncio.wait_for(call(), timeout=self.call_timeout)
            else:
                items = await call()
        except Exception as e:
            # TimeoutError lands here too; CancelledError is not an Exception and propagates
            logger.warning(f"{label} failed, continuing without it: {e!r}")
            return CallOutcome(label=label, error=e)
        return CallOutcome(label=label, items=list(items or []))

    async def _search_all(self, keywords: list[str]) -> list[CallOutcome]:
        return await asyncio.gather(*(
            self._settle(
                f"Search '{keyword}'",
                functools.partial(self.search_fn, keyword, self.results_per_keyword)
            )
            for keyword in keywords
        ))

    async def _fetch_details(self, video_ids: list[str]) -> list[VideoDetail]:
        batches = chunk_ids(video_ids, self.batch_size)
        outcomes = await asyncio.gather(*(
            self._settle(
                f"Detail batch {index + 1}/{len(batches)}",
                functools.partial(self.detail_fetch_fn, batch)
            )
            for index, batch in enumerate(batches)
        ))
        return [video for outcome in outcomes for video in outcome.items]

    def rank(self, videos: list[VideoDetail], context: ScoringContext) -> list[RankedVideo]:
        """Score the videos that pass the hard filters, best first; ties keep input order"""
        ranked = [
            RankedVideo(video=video, score=composite_score(video, context, self.weights))
            for video in videos
            if passes_hard_filters(video)
        ]
        ranked.sort(key=lambda r: r.score, reverse=True)
        return ranked

    async def generate(
        self,
        keywords: Union[str, Iterable[str]],
        trusted_channel_ids: Iterable[str] = (),
        subscribed_channel_ids: Iterable[str] = (),
        now: Optional[datetime] = None
    ) -> list[VideoDetail]:
        keyword_list = normalize_keywords(keywords)
        logger.info(f"Generating learning path for keywords: {keyword_list}")

        search_outcomes = await self._search_all(keyword_list)
        failed = sum(1 for outcome in search_outcomes if outcome.failed)
        if failed:
            logger.warning(f"{failed} of {len(search_outcomes)} keyword searches failed")

        candidates = dedupe_candidates(outcome.items for outcome in search_outcomes)
        if not candidates:
            logger.info("No search results for any keyword")
            return []

        videos = await self._fetch_details([candidate.video_id for candidate in candidates])
        logger.debug(f"Enriched {len(videos)} of {len(candidates)} candidates")

        context_fields = {
            "trusted_channel_ids": frozenset(trusted_channel_ids),
            "subscribed_channel_ids": frozenset(subscribed_channel_ids),
            "channel_frequency": channel_frequency(videos),
        }
        if now is not None:
            context_fields["now"] = now
        context = ScoringContext(**context_fields)

        ranked = self.rank(videos, context)
        path = [entry.video for entry in ranked[:self.path_size]]
        logger.info(f"Learning path has {len(path)} videos ({len(ranked)} passed filters)")
        return path
