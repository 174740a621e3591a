"""Tests for chart rendering."""

from datetime import timedelta
from unittest.mock import patch

import matplotlib.pyplot as plt

import pytest

from promplot.errors import RenderError
from promplot.metrics import Sample, Series
from promplot.plot import (
    PALETTE_SIZE,
    get_palette,
    legend_label,
    render_chart,
    series_points,
    supported_formats,
)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


class TestRenderChart:
    """Tests for render_chart."""

    def test_returns_png_by_default(self, single_series):
        chart = render_chart(single_series, "Prometheus metrics")

        assert chart.format == "png"
        assert chart.data.startswith(PNG_MAGIC)
        assert chart.title == "Prometheus metrics"

    def test_svg_output(self, single_series):
        chart = render_chart(single_series, "CPU", "svg")

        assert b"<svg" in chart.data
        assert b"CPU" in chart.data

    def test_pdf_output(self, single_series):
        chart = render_chart(single_series, "CPU", "pdf")

        assert chart.data.startswith(b"%PDF")

    def test_filename_uses_title_and_format(self, single_series):
        chart = render_chart(single_series, "load", "svg")

        assert chart.filename == "load.svg"

    def test_line_has_all_points_in_order(self, series_factory):
        """A series with N samples is drawn as a line of N points."""
        series = series_factory(count=100, step=timedelta(seconds=864))
        chart = render_chart([series], "up")

        assert len(chart.lines) == 1
        points = chart.lines[0].points
        assert len(points) == 100
        timestamps = [ts for ts, _ in points]
        assert timestamps == sorted(timestamps)
        assert timestamps == series.timestamps

    def test_values_parsed_as_float(self, series_factory):
        series = series_factory(count=3)
        chart = render_chart([series], "up")

        assert [v for _, v in chart.lines[0].points] == [0.5, 0.75, 1.0]

    def test_special_float_values(self, base_time):
        """Prometheus NaN and Inf markers are valid floats."""
        series = Series(
            metric={"__name__": "x"},
            samples=[
                Sample(base_time, "NaN"),
                Sample(base_time + timedelta(minutes=1), "+Inf"),
                Sample(base_time + timedelta(minutes=2), "1"),
            ],
        )

        chart = render_chart([series], "x")

        assert len(chart.lines[0].points) == 3

    def test_bad_value_fails_whole_render(self, series_factory):
        """A non-numeric sample aborts before anything is produced."""
        good = series_factory()
        bad = series_factory(count=2, value="abc")

        with pytest.raises(RenderError, match="sample value not float: abc"):
            render_chart([good, bad], "up")

    def test_unsupported_format(self, single_series):
        with pytest.raises(RenderError, match="failed to create canvas"):
            render_chart(single_series, "up", "gif-ish")

    def test_empty_matrix_renders(self):
        """No series still produces an image."""
        chart = render_chart([], "nothing", "svg")

        assert b"No data available" in chart.data
        assert chart.lines == []

    def test_empty_series_renders(self):
        chart = render_chart([Series(metric={"__name__": "up"})], "up")

        assert chart.data.startswith(PNG_MAGIC)


class TestPaletteAndLegend:
    """Colors and legend labels per series."""

    def test_palette_has_eight_colors(self):
        palette = get_palette()

        assert len(palette) == PALETTE_SIZE == 8
        assert len(set(palette)) == 8

    def test_colors_cycle_by_index(self, series_factory):
        """The ninth series reuses the first color."""
        metrics = [series_factory({"i": str(i)}, count=2) for i in range(9)]
        chart = render_chart(metrics, "many")
        palette = get_palette()

        assert [line.color for line in chart.lines] == [palette[i % 8] for i in range(9)]

    def test_single_series_has_no_legend(self, single_series):
        chart = render_chart(single_series, "up")

        assert chart.lines[0].label is None

    def test_multi_series_labels(self, multi_series):
        """Labels come from the braces; names without braces get no entry."""
        chart = render_chart(multi_series, "up")

        assert [line.label for line in chart.lines] == [
            'instance="a:9100"',
            'instance="b:9100"',
            None,
        ]

    def test_legend_label_extraction(self):
        series = Series(metric={"__name__": "up", "job": "node", "instance": "a"})

        assert legend_label(series) == 'instance="a", job="node"'

    def test_legend_label_without_braces(self):
        assert legend_label(Series(metric={"__name__": "up"})) is None

    def test_legend_above_plot_area(self, multi_series):
        """The legend does not cover the lines."""
        with patch("promplot.plot.plt.close") as mock_close:
            render_chart(multi_series, "up")
        fig = mock_close.call_args.args[0]

        try:
            ax = fig.axes[0]
            legend = ax.get_legend()
            renderer = fig.canvas.get_renderer()
            assert legend is not None
            assert legend.get_window_extent(renderer).y0 >= ax.get_window_extent(renderer).y1
            assert fig.get_suptitle() == "up"
        finally:
            plt.close(fig)


class TestHelpers:
    """Tests for small renderer helpers."""

    def test_supported_formats_include_common_types(self):
        formats = supported_formats()

        for fmt in ("png", "svg", "pdf", "eps", "jpg", "tiff"):
            assert fmt in formats

    def test_series_points(self, series_factory):
        series = series_factory(count=2)

        assert series_points(series) == [
            (series.samples[0].timestamp, 0.5),
            (series.samples[1].timestamp, 0.75),
        ]

    def test_series_points_rejects_text(self, series_factory):
        with pytest.raises(RenderError):
            series_points(series_factory(count=1, value="up"))
