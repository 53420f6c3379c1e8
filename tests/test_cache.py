"""Tests for the catalog TTL cache."""

from storefront.core.cache import TTLCache, make_cache_key
from storefront.repositories.product_repo import ProductQuery, ProductRepository
from storefront.services.product_service import ProductService


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingRepo(ProductRepository):
    def __init__(self):
        self.search_calls = 0

    def search(self, session, query, skip=0, limit=12):
        self.search_calls += 1
        return super().search(session, query, skip=skip, limit=limit)


def test_value_is_served_until_expiry():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", {"a": 1}, ttl=60)

    clock.now += 59
    assert cache.get("k") == {"a": 1}

    clock.now += 2
    assert cache.get("k") is None
    # expired entries are dropped on access
    assert len(cache) == 0


def test_missing_key_and_clear():
    cache = TTLCache(clock=FakeClock())
    assert cache.get("nope") is None

    cache.set("a", 1)
    cache.set("b", 2)
    assert len(cache) == 2
    cache.clear()
    assert cache.get("a") is None
    assert len(cache) == 0


def test_default_ttl_is_five_minutes():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v")
    clock.now += 300
    assert cache.get("k") == "v"
    clock.now += 1
    assert cache.get("k") is None


def test_cache_key_ignores_parameter_order():
    assert make_cache_key("products", page=1, search="pen") == make_cache_key(
        "products", search="pen", page=1
    )
    assert make_cache_key("products", page=1) != make_cache_key("products", page=2)
    assert make_cache_key("brands").startswith("brands_")


def test_listing_hits_database_once_per_ttl_window(session, catalog):
    clock = FakeClock()
    repo = CountingRepo()
    service = ProductService(repo, cache=TTLCache(clock=clock))
    query = ProductQuery()

    first = service.list_products(session, query, page=1, limit=12)
    second = service.list_products(session, query, page=1, limit=12)
    assert repo.search_calls == 1
    assert second is first

    # products live 5 minutes
    clock.now += 301
    service.list_products(session, query, page=1, limit=12)
    assert repo.search_calls == 2


def test_different_filters_are_cached_separately(session, catalog):
    repo = CountingRepo()
    service = ProductService(repo, cache=TTLCache(clock=FakeClock()))

    service.list_products(session, ProductQuery(), page=1, limit=12)
    service.list_products(session, ProductQuery(search="pen"), page=1, limit=12)
    service.list_products(session, ProductQuery(), page=2, limit=12)
    assert repo.search_calls == 3
