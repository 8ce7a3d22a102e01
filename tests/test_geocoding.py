import httpx
import pytest

from delivery_nav.models.domain import Address, Coordinate
from delivery_nav.services.geocoding import GeocodeCache, Geocoder, NominatimClient
from delivery_nav.services.geocoding.nominatim import check_health


class RecordingHandler:
    def __init__(self, results: dict[str, list[dict]] | None = None, status_code: int = 200):
        self.results = results or {}
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="unavailable")
        return httpx.Response(200, json=self.results.get(request.url.params["q"], []))


def _geocoder(handler, cache: GeocodeCache | None = None) -> Geocoder:
    client = NominatimClient(
        base_url="http://nominatim.test",
        user_agent="DeliveryNav/1.0",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )
    return Geocoder(client=client, cache=cache if cache is not None else GeocodeCache())


FERRY_BUILDING = [{"lat": "37.7955", "lon": "-122.3937", "display_name": "Ferry Building"}]


def test_geocode_returns_coordinates_and_caches_them():
    handler = RecordingHandler({"1 Ferry Building, San Francisco": FERRY_BUILDING})
    cache = GeocodeCache()
    geocoder = _geocoder(handler, cache)

    first = geocoder.geocode("1 Ferry Building, San Francisco")
    second = geocoder.geocode("1 Ferry Building, San Francisco")

    assert first == Coordinate(lat=37.7955, lng=-122.3937)
    assert second == first
    assert len(handler.requests) == 1
    assert "1 Ferry Building, San Francisco" in cache


def test_geocode_sends_single_result_query_with_user_agent():
    handler = RecordingHandler({"Coit Tower": FERRY_BUILDING})

    _geocoder(handler).geocode("Coit Tower")

    request = handler.requests[0]
    assert request.url.path == "/search"
    assert request.url.params["limit"] == "1"
    assert request.url.params["format"] == "json"
    assert request.headers["User-Agent"] == "DeliveryNav/1.0"


def test_geocode_returns_none_for_no_match_and_does_not_cache():
    handler = RecordingHandler()
    cache = GeocodeCache()

    assert _geocoder(handler, cache).geocode("Nowhere Lane") is None
    assert len(cache) == 0


def test_geocode_returns_none_on_http_error():
    assert _geocoder(RecordingHandler(status_code=500)).geocode("Coit Tower") is None


def test_geocode_returns_none_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    assert _geocoder(handler).geocode("Coit Tower") is None


def test_geocode_returns_none_on_malformed_payload():
    handler = lambda request: httpx.Response(200, json={"error": "bad"})  # noqa: E731

    assert _geocoder(handler).geocode("Coit Tower") is None


def test_cache_keys_are_exact_strings():
    handler = RecordingHandler({"coit tower": FERRY_BUILDING, "Coit Tower": FERRY_BUILDING})
    geocoder = _geocoder(handler)

    geocoder.geocode("Coit Tower")
    geocoder.geocode("coit tower")
    geocoder.geocode("Coit Tower ")

    assert len(handler.requests) == 3
    assert len(geocoder.cache) == 2


def test_geocode_addresses_reports_misses_and_keeps_order():
    handler = RecordingHandler({"A St": [{"lat": "37.8", "lon": "-122.4"}], "C St": [{"lat": "37.7", "lon": "-122.5"}]})
    addresses = [
        Address(address_id="1", full_address="A St"),
        Address(address_id="2", full_address="B St"),
        Address(address_id="3", full_address="C St", exact_delivery_time="10:00"),
    ]

    geocoded, misses = _geocoder(handler).geocode_addresses(addresses)

    assert [item.address_id for item in geocoded] == ["1", "3"]
    assert geocoded[1].position == (37.7, -122.5)
    assert geocoded[1].exact_delivery_time == "10:00"
    assert [miss.address_id for miss in misses] == ["2"]
    assert misses[0].message == "Could not find coordinates for 'B St'"


def test_geocode_addresses_skips_lookup_for_known_positions():
    handler = RecordingHandler()
    addresses = [Address(address_id="1", full_address="A St")]

    geocoded, misses = _geocoder(handler).geocode_addresses(addresses, [Coordinate(37.8, -122.4)])

    assert handler.requests == []
    assert geocoded[0].coordinate == Coordinate(37.8, -122.4)
    assert misses == []


def test_cache_operations():
    cache = GeocodeCache()
    cache.put("A St", Coordinate(1.0, 2.0))

    assert cache.get("A St") == Coordinate(1.0, 2.0)
    assert cache.get("B St") is None
    cache.clear()
    assert len(cache) == 0


@pytest.mark.parametrize("address", ["", "   "])
def test_blank_lookup_misses_are_not_cached(address):
    cache = GeocodeCache()

    assert _geocoder(RecordingHandler(), cache).geocode(address) is None
    assert address not in cache


def test_geocode_addresses_matches_known_positions_by_index_not_id():
    handler = RecordingHandler({"Kansas stop": [{"lat": "40.0", "lon": "-100.0"}]})
    addresses = [
        Address(address_id="1", full_address="Kansas stop"),
        Address(address_id="1", full_address="SF stop"),
    ]

    geocoded, misses = _geocoder(handler).geocode_addresses(addresses, [None, Coordinate(37.8, -122.4)])

    assert [item.position for item in geocoded] == [(40.0, -100.0), (37.8, -122.4)]
    assert [request.url.params["q"] for request in handler.requests] == ["Kansas stop"]
    assert misses == []


def test_geocode_addresses_rejects_misaligned_known_positions():
    addresses = [Address(address_id="1", full_address="A St")]

    with pytest.raises(ValueError):
        _geocoder(RecordingHandler()).geocode_addresses(addresses, [])


def test_nominatim_health_check():
    healthy = NominatimClient(
        base_url="http://nominatim.test",
        transport=httpx.MockTransport(RecordingHandler({"San Francisco, CA": FERRY_BUILDING})),
    )
    down = NominatimClient(base_url="http://nominatim.test", transport=httpx.MockTransport(RecordingHandler(status_code=503)))

    assert check_health(healthy) is True
    assert check_health(down) is False
