from __future__ import annotations

from rich.markup import escape

from .models import Phase, SelectionState

KEY_HINT = "[dim]↑/k up · ↓/j down · enter ssh · q quit[/dim]"


def render_loading(project_id: str) -> str:
    return f"Loading VMs for [b]{escape(project_id)}[/b]..."


def render_failed(state: SelectionState) -> str:
    cause = escape(state.last_error or "unknown error")
    return f"[b red]An error occurred:[/b red] {cause}\n\nPress q to quit."


def render_ready(state: SelectionState, project_id: str, command_preview: str = "") -> str:
    lines = [f"[b]GCP VMs in {escape(project_id)}:[/b]", ""]
    if not state.inventory:
        lines.append("No VMs found.")
    width = max((len(record.name) for record in state.inventory), default=0)
    for index, record in enumerate(state.inventory):
        row = f"{escape(record.name.ljust(width))}  [dim]{escape(record.zone)}[/dim]"
        if index == state.cursor:
            lines.append(f"[reverse]> {row}[/reverse]")
        else:
            lines.append(f"  {row}")
    lines.append("")
    if command_preview:
        lines.append(f"[dim]$ {escape(command_preview)}[/dim]")
    lines.append(KEY_HINT)
    return "\n".join(lines)


def render_state(state: SelectionState, project_id: str, command_preview: str = "") -> str:
    match state.phase:
        case Phase.LOADING:
            return render_loading(project_id)
        case Phase.FAILED:
            return render_failed(state)
    return render_ready(state, project_id, command_preview)
