"""Matplotlib-based chart rendering for fetched series.

One line per series on a fixed-size canvas, colored from a qualitative
palette, with UTC date/time ticks on the X axis.
"""

import io
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend, charts only go to files
import matplotlib.pyplot as plt
import matplotlib.dates as mdates
from matplotlib.backend_bases import FigureCanvasBase

from .errors import RenderError
from .metrics import Series
from . import log


# Canvas geometry
CM_PER_INCH = 2.54
WIDTH_CM = 24.0
HEIGHT_CM = 20.0
MARGIN_CM = 0.6
DPI = 96

# Text sizes in points: title ~1cm, everything else ~3mm
TITLE_SIZE = 28
TEXT_SIZE = 8.5
LINE_WIDTH = 1.0

# Qualitative color palette, cycled by series index
PALETTE_NAME = "Dark2"
PALETTE_SIZE = 8

LEGEND_COLUMNS = 3
TICK_FORMAT = "%Y-%m-%d\n%H:%M"

# Only show the label part of a metric name in the legend
LABEL_TEXT = re.compile(r"\{(.*)\}")

DEFAULT_FORMAT = "png"


RGBColor = tuple[float, float, float]


@dataclass
class PlottedLine:
    """A line as drawn on the chart."""

    label: Optional[str]
    color: RGBColor
    points: list[tuple[datetime, float]] = field(default_factory=list)


@dataclass
class Chart:
    """A rendered chart image."""

    title: str
    format: str
    data: bytes
    lines: list[PlottedLine] = field(default_factory=list)

    @property
    def filename(self) -> str:
        return f"{self.title}.{self.format}"


def supported_formats() -> list[str]:
    """Image formats the matplotlib canvas can write."""
    return sorted(FigureCanvasBase.get_supported_filetypes())


def get_palette() -> list[RGBColor]:
    """Get the line colors for the chart."""
    try:
        colors = matplotlib.colormaps[PALETTE_NAME].colors
    except (KeyError, AttributeError) as e:
        raise RenderError(f"failed to get color palette: {e}") from e
    if len(colors) < PALETTE_SIZE:
        raise RenderError(
            f"failed to get color palette: {PALETTE_NAME} has {len(colors)} colors"
        )
    return [tuple(c[:3]) for c in colors[:PALETTE_SIZE]]


def legend_label(series: Series) -> Optional[str]:
    """Extract the text between the braces of the series name, if any."""
    match = LABEL_TEXT.search(series.name)
    if match is None:
        return None
    return match.group(1)


def series_points(series: Series) -> list[tuple[datetime, float]]:
    """Convert series samples into plot coordinates.

    Raises:
        RenderError: If any sample value is not a float
    """
    points = []
    for sample in series.samples:
        try:
            value = float(sample.value)
        except ValueError:
            raise RenderError(f"sample value not float: {sample.value}") from None
        points.append((sample.timestamp, value))
    return points


def build_lines(metrics: list[Series]) -> list[PlottedLine]:
    """Work out points, colors and legend labels for every series."""
    palette = get_palette()
    with_legend = len(metrics) > 1

    lines = []
    for i, series in enumerate(metrics):
        lines.append(PlottedLine(
            label=legend_label(series) if with_legend else None,
            color=palette[i % PALETTE_SIZE],
            points=series_points(series),
        ))
    return lines


def render_chart(metrics: list[Series], title: str, fmt: str = DEFAULT_FORMAT) -> Chart:
    """Render series as a line chart.

    Args:
        metrics: Series to draw, one line each
        title: Chart title
        fmt: Image format, one of supported_formats()

    Returns:
        Chart with the encoded image

    Raises:
        RenderError: On bad sample values, unknown formats or drawing failures
    """
    lines = build_lines(metrics)

    if fmt not in supported_formats():
        raise RenderError(
            f"failed to create canvas: unsupported format {fmt!r} "
            f"(supported: {', '.join(supported_formats())})"
        )

    fig = plt.figure(
        figsize=(WIDTH_CM / CM_PER_INCH, HEIGHT_CM / CM_PER_INCH),
        dpi=DPI,
        layout="constrained",
    )

    try:
        margin = MARGIN_CM / CM_PER_INCH
        fig.get_layout_engine().set(w_pad=margin, h_pad=margin)

        fig.suptitle(title, fontsize=TITLE_SIZE, fontweight="bold")
        ax = fig.add_subplot()
        ax.tick_params(labelsize=TEXT_SIZE)
        ax.xaxis.set_major_formatter(mdates.DateFormatter(TICK_FORMAT, tz=timezone.utc))

        if not lines:
            ax.text(
                0.5, 0.5, "No data available",
                transform=ax.transAxes,
                ha='center', va='center',
                fontsize=TEXT_SIZE,
            )

        for line in lines:
            xs = [ts for ts, _ in line.points]
            ys = [val for _, val in line.points]
            ax.plot(
                xs, ys,
                color=line.color,
                linewidth=LINE_WIDTH,
                label=line.label if line.label is not None else "_nolegend_",
            )

        labeled = [line for line in lines if line.label is not None]
        if labeled:
            # Legend sits between the title and the plot area
            ax.legend(
                loc="lower center",
                bbox_to_anchor=(0.5, 1.0),
                ncols=min(len(labeled), LEGEND_COLUMNS),
                fontsize=TEXT_SIZE,
                frameon=False,
            )

        buffer = io.BytesIO()
        fig.savefig(buffer, format=fmt)
    except (ValueError, OSError, RuntimeError) as e:
        raise RenderError(f"failed to draw plot: {e}") from e
    finally:
        # Ensure figure is closed to prevent memory leaks
        plt.close(fig)

    data = buffer.getvalue()
    log.debug(f"Rendered {len(lines)} lines into {len(data)} bytes of {fmt}")
    return Chart(title=title, format=fmt, data=data, lines=lines)
