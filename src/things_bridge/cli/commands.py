# src/things_bridge/cli/commands.py

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from typing import Any

from ..store.models import Project, Task, TaskList, TaskStatus
from .bootstrap import ConsoleState

CommandHandler = Callable[[ConsoleState, list[str]], str]

logger = logging.getLogger(__name__)

_STATUS_MARK = {
    TaskStatus.INCOMPLETE: "[ ]",
    TaskStatus.COMPLETED: "[x]",
    TaskStatus.CANCELED: "[-]",
}


class CommandRegistry:
    """Slash-command registry used by the console (/help, /today, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: ConsoleState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def format_task(task: Task) -> str:
    parts = [_STATUS_MARK.get(task.status, "[ ]"), task.title or "(untitled)"]
    meta: list[str] = []
    if task.start_date:
        meta.append(f"when {task.start_date.isoformat()}")
    if task.deadline:
        meta.append(f"due {task.deadline.isoformat()}")
    if task.is_recurring:
        meta.append(f"repeats {task.recurrence_frequency or '?'}")
    if task.project_title:
        meta.append(f"in {task.project_title}")
    if meta:
        parts.append(f"({', '.join(meta)})")
    if task.tags:
        parts.append(" ".join(f"#{t}" for t in sorted(task.tags)))
    parts.append(f"<{task.id}>")
    return " ".join(parts)


def _render(state: ConsoleState, title: str, items: Iterable[Any], fmt: Callable[[Any], str]) -> str:
    items = list(items)
    if state.json_output:
        return json.dumps([i.to_dict() for i in items], ensure_ascii=False, indent=2)
    if not items:
        return f"{title}: nothing here."
    lines = [f"{title} ({len(items)}):"]
    for i, item in enumerate(items, start=1):
        lines.append(f"{i}. {fmt(item)}")
    return "\n".join(lines)


def _render_one(state: ConsoleState, item: Task | None, missing: str) -> str:
    if item is None:
        return missing
    if state.json_output:
        return json.dumps(item.to_dict(), ensure_ascii=False, indent=2)
    lines = [format_task(item)]
    if item.notes:
        lines.append(f"  notes: {item.notes}")
    if item.area_title:
        lines.append(f"  area: {item.area_title}")
    for check in item.checklist:
        lines.append(f"  {_STATUS_MARK.get(check.status, '[ ]')} {check.title}")
    if isinstance(item, Project):
        lines.append(f"  to-dos: {item.child_count}")
        for todo in item.todos or ():
            lines.append(f"    {format_task(todo)}")
    return "\n".join(lines)


# ---- handlers ----


def cmd_help(state: ConsoleState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: ConsoleState, args: list[str]) -> str:
    health = state.reader.health()
    cal = state.reader.calibrator
    offset = cal.offset() if health["database"] == "connected" else None
    return (
        "Status:\n"
        f"  Database: {health['database']} ({health['path']})\n"
        f"  Epoch offset: {offset if offset is not None else 'n/a'}\n"
        f"  Output: {'JSON' if state.json_output else 'text'}"
    )


def cmd_list(state: ConsoleState, args: list[str]) -> str:
    """
    /list            -> today
    /list <view>     -> inbox | today | upcoming | anytime | someday | logbook
    """
    name = args[0] if args else TaskList.TODAY.value
    view = TaskList.parse(name)
    if view is None:
        valid = ", ".join(v.value for v in TaskList)
        return f"Invalid list. Valid options: {valid}"
    return _render(state, view.value.capitalize(), state.reader.todos(view), format_task)


def _view_command(view: TaskList) -> CommandHandler:
    def handler(state: ConsoleState, args: list[str]) -> str:
        return cmd_list(state, [view.value])

    return handler


def cmd_search(state: ConsoleState, args: list[str]) -> str:
    query = " ".join(args).strip()
    if not query:
        return "Usage: /search <text>"
    return _render(state, f"Search '{query}'", state.reader.search(query), format_task)


def cmd_tag(state: ConsoleState, args: list[str]) -> str:
    name = " ".join(args).strip()
    if not name:
        return "Usage: /tag <name>"
    return _render(state, f"Tagged '{name}'", state.reader.todos_by_tag(name), format_task)


def cmd_todo(state: ConsoleState, args: list[str]) -> str:
    if not args:
        return "Usage: /todo <uuid>"
    return _render_one(state, state.reader.todo(args[0]), "To-do not found.")


def cmd_project(state: ConsoleState, args: list[str]) -> str:
    if not args:
        return "Usage: /project <uuid>"
    return _render_one(state, state.reader.project(args[0]), "Project not found.")


def cmd_projects(state: ConsoleState, args: list[str]) -> str:
    return _render(
        state,
        "Projects",
        state.reader.projects(),
        lambda p: f"{p.title or '(untitled)'} [{p.child_count}] <{p.id}>",
    )


def cmd_areas(state: ConsoleState, args: list[str]) -> str:
    return _render(state, "Areas", state.reader.areas(), lambda a: f"{a.title} <{a.id}>")


def cmd_tags(state: ConsoleState, args: list[str]) -> str:
    return _render(
        state,
        "Tags",
        state.reader.tags(),
        lambda t: f"{t.title}" + (f" ({t.shortcut})" if t.shortcut else "") + f" <{t.id}>",
    )


def cmd_json(state: ConsoleState, args: list[str]) -> str:
    """
    /json          -> toggle
    /json on|off   -> set
    """
    if args:
        arg = args[0].lower()
        if arg in ("on", "1", "true", "yes"):
            state.json_output = True
        elif arg in ("off", "0", "false", "no"):
            state.json_output = False
        else:
            return "Usage: /json on or /json off."
    else:
        state.json_output = not state.json_output
    return f"JSON output is {'ON' if state.json_output else 'OFF'}."


def cmd_recalibrate(state: ConsoleState, args: list[str]) -> str:
    logger.debug("Recalibration requested")
    offset = state.reader.recalibrate()
    return f"Epoch offset recalibrated: {offset}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show database path and calibration.")
registry.register("list", cmd_list, help_text="Show a built-in list: /list today | upcoming | ...")
for _view in TaskList:
    registry.register(_view.value, _view_command(_view), help_text=f"Show the {_view.value} list.")
registry.register("search", cmd_search, help_text="Search titles and notes: /search <text>.", aliases=["s"])
registry.register("tag", cmd_tag, help_text="Open to-dos with a tag: /tag <name>.")
registry.register("todo", cmd_todo, help_text="Show one to-do: /todo <uuid>.")
registry.register("project", cmd_project, help_text="Show one project and its to-dos: /project <uuid>.")
registry.register("projects", cmd_projects, help_text="List open projects.")
registry.register("areas", cmd_areas, help_text="List areas.")
registry.register("tags", cmd_tags, help_text="List tags.")
registry.register("json", cmd_json, help_text="Toggle JSON output: /json on | /json off.")
registry.register("recalibrate", cmd_recalibrate, help_text="Recompute the schedule-date epoch offset.")
