import pytest

from snapshot.errors import ConfigurationError
from snapshot.planner import Region, plan_slices


def test_tall_dashboard_plan():
    plan = plan_slices(10000, 900, 4000)
    assert not plan.direct
    assert [(r.offset_y, r.height) for r in plan] == [(0, 4000), (4000, 4000), (8000, 2000)]
    assert [r.index for r in plan] == [0, 1, 2]


def test_page_within_viewport_is_direct():
    plan = plan_slices(900, 900, 4000)
    assert plan.direct
    assert plan.regions == (Region(0, 0, 900),)


@pytest.mark.parametrize(
    "height,viewport,cap",
    [(901, 900, 1), (12345, 800, 4000), (4001, 900, 4000), (8000, 900, 4000), (50000, 1080, 3333)],
)
def test_regions_cover_page_without_gaps(height, viewport, cap):
    plan = plan_slices(height, viewport, cap)
    cursor = 0
    for region in plan:
        assert region.offset_y == cursor
        assert 0 < region.height <= cap
        cursor = region.end
    assert cursor == height
    assert plan.total_height == height


def test_planning_is_repeatable():
    assert plan_slices(23456, 900, 4000) == plan_slices(23456, 900, 4000)


def test_slice_cap_smaller_than_viewport():
    plan = plan_slices(2000, 900, 700)
    assert [(r.offset_y, r.height) for r in plan] == [(0, 700), (700, 700), (1400, 600)]


@pytest.mark.parametrize("args", [(1000, 900, 0), (1000, 0, 4000), (-1, 900, 4000)])
def test_invalid_inputs_rejected(args):
    with pytest.raises(ConfigurationError):
        plan_slices(*args)
