"""Per-cluster block rendering for delegated operations."""

from __future__ import annotations

from kubectl_multi.dispatch.results import OperationResult
from kubectl_multi.utils.errors import KubectlError

UNSUPPORTED_MESSAGE = "Cannot perform this operation on ITS (control) cluster: {name}"


def block_header(cluster_name: str, context: str | None = None) -> str:
    if context:
        return f"=== Cluster: {cluster_name} (Context: {context}) ==="
    return f"=== Cluster: {cluster_name} ==="


def render_block(result: OperationResult) -> list[str]:
    """Render one cluster's result as a labeled block.

    The block ends with a blank line so consecutive blocks stay separated.
    """
    lines = [block_header(result.cluster_name)]
    if result.unsupported:
        lines.append(UNSUPPORTED_MESSAGE.format(name=result.cluster_name))
    elif result.error is not None:
        lines.append(f"Error: {_error_text(result.error)}")
    elif result.output:
        lines.extend(str(result.output).rstrip("\n").split("\n"))
    lines.append("")
    return lines


def _error_text(error: Exception) -> str:
    if isinstance(error, KubectlError) and error.output.strip():
        return error.output.strip()
    return str(error)
