import httpx

from src.dispatch.models.domain import Coordinate
from src.dispatch.services.geocoding import MapboxGeocoder


def _geocoder(handler, **kwargs) -> MapboxGeocoder:
    kwargs.setdefault("access_token", "pk.test")
    return MapboxGeocoder(
        base_url="https://geocoder.test/geocoding/v5/mapbox.places",
        transport=httpx.MockTransport(handler),
        backoff_seconds=0,
        **kwargs,
    )


def test_geocode_returns_first_feature_center():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"features": [{"center": [-79.39, 43.64]}, {"center": [0, 0]}]})

    coordinate = _geocoder(handler).geocode("1 King St W, Toronto, M5V 1J1, Canada")

    assert coordinate == Coordinate(longitude=-79.39, latitude=43.64)
    params = seen[0].url.params
    assert params["access_token"] == "pk.test"
    assert params["country"] == "CA"
    assert params["limit"] == "1"


def test_no_features_returns_none_not_zero_coordinates():
    coordinate = _geocoder(lambda request: httpx.Response(200, json={"features": []})).geocode("Nowhere")

    assert coordinate is None


def test_provider_error_returns_none():
    coordinate = _geocoder(lambda request: httpx.Response(401, json={"message": "Not Authorized"})).geocode("1 King St")

    assert coordinate is None


def test_blank_address_and_missing_token_short_circuit():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"features": [{"center": [1, 2]}]})

    assert _geocoder(handler).geocode("   ") is None
    assert _geocoder(handler, access_token="").geocode("1 King St") is None
    assert calls == []


def test_network_errors_are_retried_then_give_up():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 2:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, json={"features": [{"center": [-79.0, 43.0]}]})

    assert _geocoder(handler, max_retries=2).geocode("1 King St") == Coordinate(longitude=-79.0, latitude=43.0)
    assert len(attempts) == 2

    def always_down(request):
        raise httpx.ReadTimeout("timed out", request=request)

    assert _geocoder(always_down, max_retries=1).geocode("1 King St") is None


def test_feature_without_usable_center_returns_none():
    for feature in ({"place_name": "Toronto"}, {"center": [-79.39]}, {"center": ["west", "north"]}, {"center": None}):
        payload = {"features": [feature]}
        coordinate = _geocoder(lambda request, payload=payload: httpx.Response(200, json=payload)).geocode("1 King St")

        assert coordinate is None
