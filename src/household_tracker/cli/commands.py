# src/household_tracker/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from ..core.state import AppState
from ..errors import HouseholdTrackerError, StorageError, ValidationError
from ..sync.coordinator import MutationResult
from ..tasks.task_models import Task

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)

PENDING_MARK = " (queued, pending sync)"


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, /sync, ...)."""

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

    def handle(self, state: AppState, line: str) -> str | None:
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

        try:
            return handler(state, args)
        except StorageError as e:
            if e.transient:
                return f"Store unavailable, try again later: {e.message}"
            return f"Error: {e.message}"
        except HouseholdTrackerError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_id(args: list[str], usage: str) -> int:
    if not args:
        raise ValidationError(f"Usage: {usage}")
    try:
        return int(args[0])
    except ValueError:
        raise ValidationError(f"Task id must be a number, got {args[0]!r}") from None


def _describe(result: MutationResult, verb: str) -> str:
    task = result.task or result.op.task
    ref = f"#{task.id} {task.name}" if task.id else task.name
    return f"{verb}: {ref}" + (PENDING_MARK if result.queued else "")


def parse_task_args(args: list[str]) -> Task:
    """
    Build a Task from "/add" arguments.

    Words without "=" form the name; key=value pairs set the other fields:
    p=<1-5>, due=YYYY-MM-DD, who=<assignee>, type=<category>, desc=<text>.
    """
    name_parts: list[str] = []
    fields: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key.lower() in {"p", "due", "who", "type", "desc"}:
            fields[key.lower()] = value
        else:
            name_parts.append(arg)

    try:
        priority = int(fields.get("p", "3"))
    except ValueError:
        raise ValidationError(f"Priority must be a number, got {fields['p']!r}") from None
    try:
        due = date.fromisoformat(fields["due"]) if fields.get("due") else None
    except ValueError:
        raise ValidationError(f"Due date must be YYYY-MM-DD, got {fields['due']!r}") from None

    return Task(
        name=" ".join(name_parts),
        description=fields.get("desc", "").replace("_", " "),
        due_date=due,
        priority=priority,
        assigned_to=fields.get("who") or None,
        type=fields.get("type") or None,
    )


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.coordinator.list_tasks()
    if not tasks:
        return "No tasks."
    lines = ["Tasks:"]
    for t in tasks:
        who = f" @{t.assigned_to}" if t.assigned_to else ""
        lines.append(f"  #{t.id} (p{t.priority}) {t}{who}")
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    task = parse_task_args(args)
    return _describe(state.coordinator.add_task(task), "Added")


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "/done <id>")
    return _describe(state.coordinator.complete_task(task_id), "Completed")


def cmd_postpone(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /postpone <id> <days>"
    task_id = _parse_id(args, "/postpone <id> <days>")
    try:
        days = int(args[1])
    except ValueError:
        return f"Days must be a number, got {args[1]!r}"
    return _describe(state.coordinator.postpone_task(task_id, days), f"Postponed by {days} day(s)")


def cmd_reactivate(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "/reactivate <id>")
    return _describe(state.coordinator.reactivate_task(task_id), "Reactivated")


def cmd_cancel(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "/cancel <id>")
    return _describe(state.coordinator.cancel_task(task_id), "Cancelled")


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "/delete <id>")
    result = state.coordinator.delete_task_by_id(task_id)
    return f"Deleted: #{task_id}" + (PENDING_MARK if result.queued else "")


def cmd_sync(state: AppState, args: list[str]) -> str:
    result = state.coordinator.drain()
    if result.nothing_to_do:
        return "Nothing to sync."
    if result.ok:
        return f"Sync succeeded: {result.applied} operation(s) applied."
    return (
        f"Sync failed after {result.applied} operation(s): {result.error}. "
        f"{result.remaining} operation(s) remain queued."
    )


def cmd_status(state: AppState, args: list[str]) -> str:
    pending = state.coordinator.pending_count()
    sweeper = state.sweeper
    if sweeper is None:
        sweep = "disabled"
    elif sweeper.last_report is None:
        sweep = "not run yet"
    else:
        r = sweeper.last_report
        sweep = "aborted (store unreachable)" if r.aborted else f"checked {r.checked}, updated {r.updated}"
    return (
        "Status:\n"
        f"  Pending sync: {pending} operation(s) in {state.queue.path.name}\n"
        f"  Last overdue sweep: {sweep}"
    )


def cmd_sweep(state: AppState, args: list[str]) -> str:
    if state.sweeper is None:
        return "Overdue sweeper is disabled."
    r = state.sweeper.run_once()
    if r.aborted:
        return "Sweep aborted: store unreachable."
    return f"Sweep done: {r.updated} task(s) marked overdue, {r.failed} failed."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List all tasks.", aliases=["ls"])
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add <name> [p=1-5] [due=YYYY-MM-DD] [who=..] [type=..] [desc=..].",
)
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("postpone", cmd_postpone, help_text="Postpone a task: /postpone <id> <days>.")
registry.register("reactivate", cmd_reactivate, help_text="Make a task active again: /reactivate <id>.")
registry.register("cancel", cmd_cancel, help_text="Cancel a task: /cancel <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("sync", cmd_sync, help_text="Replay operations queued while the store was offline.")
registry.register("status", cmd_status, help_text="Show pending sync count and last sweep.")
registry.register("sweep", cmd_sweep, help_text="Run the overdue sweep now.")
