import pytest
from PIL import Image

from snapshot.capture import SliceImage, capture_direct, capture_plan, capture_slice, measure_png
from snapshot.compose import compose
from snapshot.errors import CaptureError
from snapshot.planner import Region, plan_slices

from fakes import FakeSurface, PageSpec, png_bytes


def test_slice_scrolls_then_clips_in_css_coordinates():
    surface = FakeSurface(PageSpec(dpr=2.0))
    shot = capture_slice(surface, Region(1, 4000, 4000), width_css=100, settle_ms=500)

    assert surface.calls == [
        ("scroll_to", 4000),
        ("wait", 500),
        ("screenshot", (0, 4000, 100, 4000)),
    ]
    # device pixels, measured from the PNG
    assert (shot.width_px, shot.height_px) == (200, 8000)
    assert shot.index == 1


def test_plan_captured_in_ascending_order():
    surface = FakeSurface(PageSpec(width_css=50))
    shots = capture_plan(surface, plan_slices(10000, 900, 4000), width_css=50, settle_ms=0)

    assert surface.clips() == [(0, 0, 50, 4000), (0, 4000, 50, 4000), (0, 8000, 50, 2000)]
    assert [s.height_px for s in shots] == [4000, 4000, 2000]


def test_direct_plan_takes_viewport_screenshot():
    surface = FakeSurface(PageSpec(dpr=3.0), viewport=(100, 900))
    shots = capture_plan(surface, plan_slices(500, 900, 4000), width_css=100, settle_ms=0)

    assert surface.clips() == []
    assert ("screenshot", None) in surface.calls
    assert [(s.width_px, s.height_px) for s in shots] == [(300, 2700)]


def test_failed_slice_is_attributed_to_its_region():
    surface = FakeSurface(PageSpec(fail_slices={2}))
    with pytest.raises(CaptureError) as info:
        capture_plan(surface, plan_slices(10000, 900, 4000), width_css=100, settle_ms=0)

    assert "slice 2" in info.value.message
    assert "y=8000" in info.value.message
    assert info.value.stage == "capture"
    assert info.value.original is not None


def test_unreadable_screenshot_is_a_capture_error():
    class Garbage(FakeSurface):
        def screenshot(self, clip=None, *, timeout_ms=30000):
            return b"\x89PNG broken"

    with pytest.raises(CaptureError):
        capture_direct(Garbage())


def test_large_slices_do_not_loosen_the_global_pixel_guard(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    # 4x the guard would normally be a DecompressionBombError
    assert measure_png(png_bytes(5, 8)) == (5, 8)
    assert compose([SliceImage(0, png_bytes(5, 8), 5, 8)]).size == (5, 8)
    assert Image.MAX_IMAGE_PIXELS == 10
