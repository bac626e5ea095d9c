"""Grid sizing for the year view.

The solver picks a column count close to the region's aspect ratio, then
the largest item size for which every row and column still fits. Item
size is floored to two decimals before any leftover space is handed out
as extra spacing, so rounding never pushes the grid past its bounds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

FIT_TOLERANCE = 0.01


@dataclass(frozen=True)
class YearGridLayout:
    columns: int
    rows: int
    item_size: float
    horizontal_spacing: float
    vertical_spacing: float

    @property
    def total_width(self) -> float:
        return self.columns * self.item_size + (self.columns - 1) * self.horizontal_spacing

    @property
    def total_height(self) -> float:
        return self.rows * self.item_size + (self.rows - 1) * self.vertical_spacing

    @property
    def is_empty(self) -> bool:
        return self.item_size <= 0

    def cell_origin(self, index: int) -> tuple[float, float]:
        row, column = divmod(index, self.columns)
        x = column * (self.item_size + self.horizontal_spacing)
        y = row * (self.item_size + self.vertical_spacing)
        return (x, y)


EMPTY_LAYOUT = YearGridLayout(columns=1, rows=1, item_size=0.0, horizontal_spacing=0.0, vertical_spacing=0.0)


@dataclass(frozen=True)
class YearGridLayoutCalculator:
    spacing_ratio: float = 0.4
    min_columns: int = 10
    max_columns: int = 20

    def calculate_layout(
        self,
        available_width: float,
        available_height: float,
        item_count: int,
    ) -> YearGridLayout:
        if available_width <= 0 or available_height <= 0 or item_count <= 0:
            return EMPTY_LAYOUT

        # rows / columns should track height / width:
        # columns ~ sqrt(item_count / aspect_ratio)
        aspect_ratio = available_height / available_width
        ideal_columns = math.sqrt(item_count / aspect_ratio)
        columns = max(self.min_columns, min(self.max_columns, _round_half_up(ideal_columns)))
        columns = max(1, columns)
        rows = math.ceil(item_count / columns)

        # width = size * (columns + (columns - 1) * spacing_ratio), same for height
        horizontal_divisor = columns + (columns - 1) * self.spacing_ratio
        vertical_divisor = rows + (rows - 1) * self.spacing_ratio
        size_from_width = available_width / horizontal_divisor
        size_from_height = available_height / vertical_divisor

        item_size = math.floor(min(size_from_width, size_from_height) * 100) / 100
        base_spacing = item_size * self.spacing_ratio

        used_width = columns * item_size + (columns - 1) * base_spacing
        used_height = rows * item_size + (rows - 1) * base_spacing
        extra_width = max(0.0, available_width - used_width)
        extra_height = max(0.0, available_height - used_height)

        horizontal_spacing = base_spacing + extra_width / (columns - 1) if columns > 1 else base_spacing
        vertical_spacing = base_spacing + extra_height / (rows - 1) if rows > 1 else base_spacing

        return YearGridLayout(
            columns=columns,
            rows=rows,
            item_size=item_size,
            horizontal_spacing=horizontal_spacing,
            vertical_spacing=vertical_spacing,
        )

    def validate_layout(self, layout: YearGridLayout, available_width: float, available_height: float) -> bool:
        return (
            layout.total_width <= available_width + FIT_TOLERANCE
            and layout.total_height <= available_height + FIT_TOLERANCE
        )


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; half-way column estimates go up.
    return int(math.floor(value + 0.5))
