"""Fan-out aggregation, deduplication and ranking tests."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from adapters.base import SourceAdapter
from logic.aggregator import Aggregator
from logic.ranking import compare_candidates, deduplicate, rank
from models.product import CandidateProduct


def _candidate(cid: str, name: str = "Tee", brand: str = "Acme", price: float = 50.0, commission: float = 0.0):
    return CandidateProduct(
        id=cid,
        name=name,
        brand=brand,
        price=price,
        source_name="Test",
        product_url=f"https://shop.test/{cid}",
        commission_rate=commission,
    )


class StaticAdapter(SourceAdapter):
    def __init__(self, name: str, results: List[CandidateProduct], delay: float = 0.0) -> None:
        super().__init__(timeout=5.0)
        self.name = name
        self.results = results
        self.delay = delay
        self.queries: List[tuple] = []

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        self.queries.append((query, category))
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.results)


class FailingAdapter(SourceAdapter):
    name = "failing"

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        raise RuntimeError("upstream exploded")


class ContractBreakingAdapter(SourceAdapter):
    """Overrides the public method so the exception escapes the adapter."""

    name = "broken"

    async def search(self, query: str, category: Optional[str] = None) -> List[CandidateProduct]:
        raise RuntimeError("not absorbed")

    async def _search(self, query: str, category: Optional[str]) -> List[CandidateProduct]:
        return []


def test_aggregate_waits_for_every_adapter_in_registration_order() -> None:
    slow = StaticAdapter("slow", [_candidate("s1", name="Slow tee")], delay=0.05)
    fast = StaticAdapter("fast", [_candidate("f1", name="Fast tee"), _candidate("f2", name="Fast tank")])
    aggregator = Aggregator([slow, FailingAdapter(), fast])

    results = asyncio.run(aggregator.aggregate("tee", category="tops"))

    assert [candidate.id for candidate in results] == ["s1", "f1", "f2"]
    assert slow.queries == [("tee", "tops")]
    assert fast.queries == [("tee", "tops")]


def test_aggregate_tolerates_contract_violations() -> None:
    good = StaticAdapter("good", [_candidate("g1")])
    results = asyncio.run(Aggregator([ContractBreakingAdapter(), good]).aggregate("tee"))
    assert [candidate.id for candidate in results] == ["g1"]


def test_aggregate_empty_inputs() -> None:
    adapter = StaticAdapter("only", [_candidate("a")])
    assert asyncio.run(Aggregator([adapter]).aggregate("  ")) == []
    assert adapter.queries == []
    assert asyncio.run(Aggregator([]).aggregate("tee")) == []


def test_deduplicate_first_seen_wins() -> None:
    first = _candidate("cj:1", name="Air Force 1", brand="Nike", price=120, commission=0.05)
    later = _candidate("ss:9", name="air force  1", brand="NIKE", price=90, commission=0.10)
    other = _candidate("ff:3", name="Air Max 90", brand="Nike")

    assert [c.id for c in deduplicate([first, later, other])] == ["cj:1", "ff:3"]


def test_commission_beyond_tolerance_wins() -> None:
    high = _candidate("a", name="A", price=200, commission=0.08)
    low = _candidate("b", name="B", price=20, commission=0.05)
    assert compare_candidates(high, low) < 0
    assert [c.id for c in rank([low, high])] == ["a", "b"]


def test_commission_within_tolerance_falls_back_to_price() -> None:
    pricier = _candidate("a", name="A", price=120, commission=0.055)
    cheaper = _candidate("b", name="B", price=100, commission=0.05)
    assert compare_candidates(pricier, cheaper) > 0
    assert [c.id for c in rank([pricier, cheaper])] == ["b", "a"]


def test_rank_is_stable_for_equal_candidates() -> None:
    items = [_candidate(str(i), name=f"Item {i}", price=10, commission=0.02) for i in range(5)]
    assert [c.id for c in rank(items)] == ["0", "1", "2", "3", "4"]
    assert [c.id for c in rank(items)] == [c.id for c in rank(list(items))]


def test_custom_tolerance() -> None:
    a = _candidate("a", name="A", price=100, commission=0.05)
    b = _candidate("b", name="B", price=50, commission=0.03)
    assert [c.id for c in rank([a, b])] == ["a", "b"]
    assert [c.id for c in rank([a, b], tolerance=0.05)] == ["b", "a"]


def test_search_ranks_and_limits() -> None:
    first = StaticAdapter(
        "first",
        [
            _candidate("x", name="Hoodie", brand="Acme", price=80, commission=0.0),
            _candidate("y", name="Crewneck", brand="Acme", price=60, commission=0.0),
        ],
    )
    second = StaticAdapter(
        "second",
        [
            _candidate("z", name="HOODIE", brand="acme", price=10, commission=0.2),
            _candidate("w", name="Zip hoodie", brand="Acme", price=70, commission=0.06),
        ],
    )

    results = asyncio.run(Aggregator([first, second]).search("hoodie", limit=2))

    assert [c.id for c in results] == ["w", "y"]
