"""Tests for the candidate filter chain: each filter in isolation + full chain."""

from job_matching.core.schemas import JobListing
from job_matching.pipeline.matcher import (
    ActiveListingFilter,
    AlreadyMatchedFilter,
    DeduplicationFilter,
    run_filter_chain,
)


def _listing(job_id: str = "1", *, is_active: bool = True) -> JobListing:
    return JobListing(id=job_id, title="Engineer", is_active=is_active)


# ---------------------------------------------------------------------------
# ActiveListingFilter
# ---------------------------------------------------------------------------


class TestActiveListingFilter:
    def test_removes_inactive(self) -> None:
        listings = [_listing("1"), _listing("2", is_active=False), _listing("3")]
        result = ActiveListingFilter()(listings)
        assert [j.id for j in result] == ["1", "3"]

    def test_all_active_passes(self) -> None:
        listings = [_listing("1"), _listing("2")]
        assert len(ActiveListingFilter()(listings)) == 2


# ---------------------------------------------------------------------------
# DeduplicationFilter
# ---------------------------------------------------------------------------


class TestDeduplicationFilter:
    def test_removes_duplicates_within_batch(self) -> None:
        f = DeduplicationFilter()
        result = f([_listing("1"), _listing("2"), _listing("1")])
        assert [j.id for j in result] == ["1", "2"]

    def test_stateful_across_calls(self) -> None:
        f = DeduplicationFilter()
        f([_listing("1")])
        result = f([_listing("1"), _listing("2")])
        assert [j.id for j in result] == ["2"]

    def test_empty(self) -> None:
        assert DeduplicationFilter()([]) == []


# ---------------------------------------------------------------------------
# AlreadyMatchedFilter
# ---------------------------------------------------------------------------


class TestAlreadyMatchedFilter:
    def test_skips_matched_jobs(self) -> None:
        f = AlreadyMatchedFilter({"2", "3"})
        result = f([_listing("1"), _listing("2"), _listing("3"), _listing("4")])
        assert [j.id for j in result] == ["1", "4"]

    def test_no_existing_matches(self) -> None:
        f = AlreadyMatchedFilter(set())
        assert len(f([_listing("1"), _listing("2")])) == 2

    def test_accepts_any_iterable(self) -> None:
        f = AlreadyMatchedFilter(["1"])
        assert [j.id for j in f([_listing("1"), _listing("2")])] == ["2"]


# ---------------------------------------------------------------------------
# Full chain
# ---------------------------------------------------------------------------


class TestFilterChain:
    def test_chain_order(self) -> None:
        listings = [
            _listing("1"),
            _listing("2", is_active=False),
            _listing("3"),
            _listing("1"),
            _listing("4"),
        ]
        filters = [ActiveListingFilter(), DeduplicationFilter(), AlreadyMatchedFilter({"3"})]
        result = run_filter_chain(listings, filters)
        assert [j.id for j in result] == ["1", "4"]

    def test_no_filters(self) -> None:
        listings = [_listing("1")]
        assert run_filter_chain(listings, []) == listings
