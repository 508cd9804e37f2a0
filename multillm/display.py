"""
Terminal display for multi-model dispatches.

Standard format:
  Complete: ✅ {model}: {N}/{M}                ({time}) {tokens}
  Failed:   ❌ {model}: {N}/{M}                ({time}) {error}

The client prints completion lines as models resolve when verbose; the
CLI uses the summary and catalog renderers.
"""

from typing import Optional, Sequence, Union

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .display_format import format_seconds, format_token_string, truncate
from .dispatch.schemas import DispatchSummary
from .families import family_of, group_by_family
from .models import InvocationResult, ModelInfo

# Standard widths for consistent alignment
DESCRIPTION_WIDTH = 60


def format_model_complete(result: InvocationResult, completed: int, total: int) -> Text:
    text = Text()
    if result.success:
        text.append("✅ ", style="green")
    else:
        text.append("❌ ", style="red")

    description = f"{result.model}: {completed}/{total}"
    text.append(f"{description:<{DESCRIPTION_WIDTH}}", style="")
    text.append(f"({result.execution_time:6.1f}s)", style="dim")

    if result.success:
        token_str = format_token_string(
            result.usage.prompt_tokens,
            result.usage.completion_tokens,
            fixed_width=True
        )
        text.append(f" {token_str}", style="cyan")
    else:
        text.append(f" {truncate(result.error or 'Unknown error', 80)}", style="red")

    return text


def print_model_complete(
    result: InvocationResult,
    completed: int,
    total: int,
    console: Optional[Console] = None
):
    """Print a per-model completion line."""
    (console or Console()).print(format_model_complete(result, completed, total))


def format_selection(models: Sequence[str], method: str = "ordered") -> Text:
    text = Text()
    text.append(f"Selected {len(models)} model(s) ", style="bold")
    text.append(f"[{method}]\n", style="dim")
    for model in models:
        text.append("  • ")
        text.append(model, style="cyan")
        text.append("\n")
    text.rstrip()
    return text


def print_selection(models: Sequence[str], method: str = "ordered", console: Optional[Console] = None):
    (console or Console()).print(format_selection(models, method))


def format_summary(summary: DispatchSummary) -> Group:
    """
    Format the end-of-dispatch summary block.

    Counts and success rate first, then timings and tokens over
    successful models, then one line per failed model with its reason.
    """
    header = Text("Dispatch summary", style="bold")

    counts = Text()
    counts.append(f"  Models: {summary.total_models}  ")
    counts.append(f"succeeded: {summary.successful_models}  ", style="green")
    counts.append(
        f"failed: {summary.failed_models}  ",
        style="red" if summary.failed_models else "dim"
    )
    counts.append(f"({summary.success_rate:.1f}%)", style="bold")

    timings = Text(
        f"  Time: total {format_seconds(summary.total_execution_time)}  "
        f"min {format_seconds(summary.min_execution_time)}  "
        f"avg {format_seconds(summary.avg_execution_time)}  "
        f"max {format_seconds(summary.max_execution_time)}",
        style="dim"
    )

    tokens = Text(
        f"  Tokens: {summary.total_tokens} "
        f"{format_token_string(summary.total_prompt_tokens, summary.total_completion_tokens)}",
        style="cyan"
    )

    lines = [header, counts, timings, tokens]
    if summary.failures:
        lines.append(Text("  Failed models:", style="red"))
        for failure in summary.failures:
            line = Text("    ❌ ")
            line.append(failure.model, style="bold")
            line.append(f": {truncate(failure.error, 100)}")
            lines.append(line)

    return Group(*lines)


def print_summary(summary: DispatchSummary, console: Optional[Console] = None):
    (console or Console()).print(format_summary(summary))


def build_catalog_table(
    entries: Sequence[Union[str, ModelInfo]],
    title: str = "Available models"
) -> Table:
    """
    Build a table of catalog entries.

    Plain model ids render one per row with their family; ModelInfo records are
    grouped by family with the family description.
    """
    table = Table(title=f"{title} ({len(entries)})")

    if entries and isinstance(entries[0], ModelInfo):
        table.add_column("Family", style="magenta")
        table.add_column("Model", style="cyan")
        table.add_column("Description", style="dim")

        by_model = {info.model: info for info in entries}
        for family, members in group_by_family(list(by_model)).items():
            for i, model in enumerate(members):
                table.add_row(
                    family if i == 0 else "",
                    model,
                    by_model[model].description if i == 0 else ""
                )
        return table

    table.add_column("#", justify="right", style="dim")
    table.add_column("Model", style="cyan")
    table.add_column("Family", style="magenta")
    for i, model in enumerate(entries, start=1):
        table.add_row(str(i), model, family_of(model))
    return table


def print_catalog(
    entries: Sequence[Union[str, ModelInfo]],
    title: str = "Available models",
    console: Optional[Console] = None
):
    (console or Console()).print(build_catalog_table(entries, title))
