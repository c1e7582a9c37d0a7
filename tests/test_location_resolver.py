import asyncio

import pytest

from conftest import FakeGeocoder
from stockist_map.models.domain import Coordinate
from stockist_map.services.location import (
    FixedPositionProvider,
    LocationResolver,
    LocationUnavailableError,
    UnsupportedPositionProvider,
)

SYDNEY = Coordinate(-33.8688, 151.2093)
MELBOURNE = Coordinate(-37.8136, 144.9631)


class SlowProvider:
    def __init__(self, delay: float, coordinate: Coordinate = SYDNEY) -> None:
        self.delay = delay
        self.coordinate = coordinate
        self.calls = 0

    async def current_position(self, options):
        self.calls += 1
        await asyncio.sleep(self.delay)
        return self.coordinate


class FrameProxy:
    def __init__(self, *, embedded=True, coordinate=None, delay=0.0, error=None) -> None:
        self.embedded = embedded
        self.coordinate = coordinate
        self.delay = delay
        self.error = error
        self.requests = 0

    def is_embedded(self) -> bool:
        return self.embedded

    async def request_position(self) -> Coordinate:
        self.requests += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.coordinate


@pytest.mark.asyncio
async def test_resolve_postcode_uses_country_scoped_query():
    geocoder = FakeGeocoder({"Australia 2000": SYDNEY})

    location = await LocationResolver(geocoder).resolve_postcode(" 2000 ")

    assert location.resolved
    assert location.coordinate == SYDNEY
    assert location.source == "geocoder"
    assert geocoder.queries == ["Australia 2000"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "geocoder, reason",
    [
        (FakeGeocoder(), "no result"),
        (FakeGeocoder(error=RuntimeError("boom")), "geocoder error"),
    ],
)
async def test_resolve_postcode_failures_are_unresolved(geocoder, reason):
    location = await LocationResolver(geocoder).resolve_postcode("9999")

    assert not location.resolved
    assert location.reason == reason


@pytest.mark.asyncio
async def test_resolve_empty_postcode_skips_geocoder():
    geocoder = FakeGeocoder()

    location = await LocationResolver(geocoder).resolve_postcode("   ")

    assert location.reason == "empty postcode"
    assert geocoder.queries == []


@pytest.mark.asyncio
async def test_locate_device_without_provider_is_unsupported():
    location = await LocationResolver(FakeGeocoder()).locate_device()

    assert location.reason == "unsupported"


@pytest.mark.asyncio
async def test_locate_device_reports_provider_reason():
    resolver = LocationResolver(FakeGeocoder(), device=FixedPositionProvider(None, reason="denied"))

    location = await resolver.locate_device()

    assert not location.resolved
    assert location.reason == "denied"


@pytest.mark.asyncio
async def test_unsupported_provider():
    resolver = LocationResolver(FakeGeocoder(), device=UnsupportedPositionProvider())

    assert (await resolver.locate_device()).reason == "unsupported"


@pytest.mark.asyncio
async def test_locate_device_success():
    resolver = LocationResolver(FakeGeocoder(), device=FixedPositionProvider(MELBOURNE))

    location = await resolver.locate_device()

    assert location.coordinate == MELBOURNE
    assert location.source == "device"


@pytest.mark.asyncio
async def test_device_timeout_becomes_unresolved():
    resolver = LocationResolver(FakeGeocoder(), device=SlowProvider(delay=1.0), geolocation_timeout=0.01)

    location = await resolver.locate_device()

    assert location.reason == "timeout"


@pytest.mark.asyncio
async def test_frame_proxy_answer_wins_when_embedded():
    device = SlowProvider(delay=0)
    proxy = FrameProxy(coordinate=MELBOURNE)
    resolver = LocationResolver(FakeGeocoder(), device=device, frame_proxy=proxy)

    location = await resolver.locate_device()

    assert location.coordinate == MELBOURNE
    assert location.source == "frame_proxy"
    assert device.calls == 0


@pytest.mark.asyncio
async def test_silent_frame_proxy_falls_back_to_device():
    device = SlowProvider(delay=0)
    proxy = FrameProxy(coordinate=MELBOURNE, delay=1.0)
    resolver = LocationResolver(FakeGeocoder(), device=device, frame_proxy=proxy, frame_proxy_timeout=0.01)

    location = await resolver.locate_device()

    assert location.source == "device"
    assert location.coordinate == SYDNEY
    assert device.calls == 1


@pytest.mark.asyncio
async def test_failed_frame_proxy_falls_back_to_device():
    proxy = FrameProxy(error=LocationUnavailableError("denied"))
    resolver = LocationResolver(FakeGeocoder(), device=FixedPositionProvider(SYDNEY), frame_proxy=proxy)

    location = await resolver.locate_device()

    assert location.source == "device"


@pytest.mark.asyncio
async def test_frame_proxy_is_skipped_when_not_embedded():
    proxy = FrameProxy(embedded=False, coordinate=MELBOURNE)
    resolver = LocationResolver(FakeGeocoder(), device=FixedPositionProvider(SYDNEY), frame_proxy=proxy)

    location = await resolver.locate_device()

    assert location.coordinate == SYDNEY
    assert proxy.requests == 0


@pytest.mark.asyncio
async def test_broken_frame_channel_falls_back_to_device():
    proxy = FrameProxy(error=ConnectionError("message channel closed"))
    resolver = LocationResolver(FakeGeocoder(), device=FixedPositionProvider(SYDNEY), frame_proxy=proxy)

    location = await resolver.locate_device()

    assert location.source == "device"
    assert location.coordinate == SYDNEY
    assert proxy.requests == 1


class BrokenProvider:
    async def current_position(self, options):
        raise OSError("position service crashed")


@pytest.mark.asyncio
async def test_unexpected_device_error_becomes_unavailable():
    resolver = LocationResolver(FakeGeocoder(), device=BrokenProvider())

    location = await resolver.locate_device()

    assert not location.resolved
    assert location.reason == "unavailable"
