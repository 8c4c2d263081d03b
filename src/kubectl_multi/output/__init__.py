"""Report rendering: merged tables, per-cluster blocks and the shared sink."""

from kubectl_multi.output.formatting import format_age, format_labels, human_duration
from kubectl_multi.output.report import render_block
from kubectl_multi.output.sink import OutputSink
from kubectl_multi.output.table import Column, TableAggregator, build_columns

__all__ = [
    "Column",
    "OutputSink",
    "TableAggregator",
    "build_columns",
    "format_age",
    "format_labels",
    "human_duration",
    "render_block",
]
