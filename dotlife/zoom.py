from __future__ import annotations

from .models import GridScale, VisualizeViewType

# Finest scale first; zooming out walks towards the end of the ladder.
TODAY_VIEW_SCALES: tuple[GridScale, ...] = (GridScale.HOURS, GridScale.DAYS, GridScale.MONTHS)
WEEK_VIEW_SCALES: tuple[GridScale, ...] = (GridScale.DAYS, GridScale.MONTHS)


def scales_for(view: VisualizeViewType) -> tuple[GridScale, ...]:
    if view == VisualizeViewType.TODAY:
        return TODAY_VIEW_SCALES
    return WEEK_VIEW_SCALES


def zoom_out(scale: GridScale, view: VisualizeViewType) -> GridScale | None:
    ladder = scales_for(view)
    if scale not in ladder:
        return None
    index = ladder.index(scale)
    if index + 1 >= len(ladder):
        return None
    return ladder[index + 1]


def zoom_in(scale: GridScale, view: VisualizeViewType) -> GridScale | None:
    ladder = scales_for(view)
    if scale not in ladder:
        return None
    index = ladder.index(scale)
    if index == 0:
        return None
    return ladder[index - 1]
