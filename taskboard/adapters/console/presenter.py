from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from taskboard.api.colors import TaskColor
from taskboard.domain.enums import Priority, TaskStatus
from taskboard.domain.stats import TaskStatistics
from taskboard.domain.task import Task
from taskboard.domain.user import User
from taskboard.ports.presentation import IntentListener

### COMMENTS
# ==========================================================
# Prezentacja w konsoli (adapters/console/presenter.py), Rich.
# ==========================================================
# - Implementuje TaskPresenter: kontroler woła display_*/show_*, presenter rysuje.
# - display_tasks/display_stats tylko zapamiętują stan; CLI rysuje go na końcu komendy
#   (render_tasks/render_stats), żeby jedna komenda nie drukowała listy kilka razy.
# - emit(intent) przekazuje intencję CLI do słuchaczy (kontrolera). Wyjątek z kontrolera
#   wraca do CLI, które pokazuje go jako czerwony panel.


def short_id(task_id: str | None, n: int = 8) -> str:
    """Zwraca skróconą wersję ID do wyświetlenia (np. pierwsze 8 znaków)."""
    return (task_id or "")[:n]


def color_status(status: TaskStatus) -> str:
    """Zwraca status w Rich-markup z kolorem."""
    match status:
        case TaskStatus.PENDING:
            return f"{TaskColor.YELLOW}pending{TaskColor.RESET}"
        case TaskStatus.IN_PROGRESS:
            return f"{TaskColor.BLUE}in-progress{TaskColor.RESET}"
        case TaskStatus.BLOCKED:
            return f"{TaskColor.MAGENTA}blocked{TaskColor.RESET}"
        case TaskStatus.COMPLETED:
            return f"{TaskColor.GREEN}completed{TaskColor.RESET}"
        case TaskStatus.CANCELLED:
            return f"{TaskColor.DIM}cancelled{TaskColor.RESET}"
        case _:
            return str(status)


def color_priority(priority: Priority) -> str:
    match priority:
        case Priority.LOW:
            return f"{TaskColor.DIM}low{TaskColor.RESET}"
        case Priority.MEDIUM:
            return "medium"
        case Priority.HIGH:
            return f"{TaskColor.YELLOW}high{TaskColor.RESET}"
        case Priority.URGENT:
            return f"{TaskColor.BOLD_RED}urgent{TaskColor.RESET}"
        case _:
            return str(priority)


def format_dt(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


class ConsolePresenter:
    """
        Presenter konsolowy dla TaskController.

        :param console: Konsola Rich (domyślnie nowa, na stdout).
        :param assume_yes: Odpowiedź na pytanie o potwierdzenie usunięcia.
    """

    def __init__(self, console: Console | None = None, assume_yes: bool = True) -> None:
        self.console = console or Console()
        self.assume_yes = assume_yes
        self.user: User | None = None
        self.tasks: list[Task] = []
        self.filter_kind: str = "all"
        self.stats: TaskStatistics | None = None
        self.last_error: str | None = None
        self._listeners: list[IntentListener] = []

    # ---- intents ----

    def subscribe(self, listener: IntentListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def emit(self, intent: Any) -> None:
        for listener in list(self._listeners):
            listener(intent)

    # ---- TaskPresenter ----

    def initialize(self, user: User) -> None:
        self.user = user

    def display_tasks(self, tasks: Sequence[Task], filter_kind: str) -> None:
        self.tasks = list(tasks)
        self.filter_kind = filter_kind

    def display_stats(self, stats: TaskStatistics) -> None:
        self.stats = stats

    def add_task(self, task: Task) -> None:
        self.console.print(Panel.fit(
            f"✅ Dodano zadanie\n"
            f"[cyan]ID:[/cyan] {short_id(task.id)}\n"
            f"[dim]Title:[/dim] {task.title}"
            + (f"\n[dim]Description:[/dim] {task.description}" if task.description else ""),
            title="Sukces",
            border_style="green",
        ))

    def update_task(self, task: Task) -> None:
        self.console.print(Panel.fit(
            f"✅ Zaktualizowano! ID: {short_id(task.id)}\n"
            f"[dim]Title:[/dim] {task.title}\n"
            f"Status: {color_status(task.status)}",
            title="Sukces",
            border_style="green",
        ))

    def remove_task(self, task_id: str) -> None:
        self.console.print(Panel.fit(
            f"🟡 Zadanie usunięte\nID: {short_id(task_id)}",
            title="Usunięto",
            border_style="yellow",
        ))

    def confirm_deletion(self, task: Task) -> bool:
        return self.assume_yes

    def show_error(self, message: str) -> None:
        self.last_error = message
        self.console.print(Panel.fit(f"❌ {message}", title="Błąd", border_style="red"))

    def show_success(self, message: str) -> None:
        self.console.print(Panel.fit(f"✅ {message}", title="Sukces", border_style="green"))

    def show_info(self, message: str) -> None:
        self.console.print(Panel.fit(message, border_style="cyan"))

    # ---- rendering ----

    def render_tasks(self, title: str | None = None) -> None:
        """Renderuje tabelę Rich z ostatnio wyświetloną listą zadań."""
        table = Table(show_lines=True, header_style="bold", title=title or f"Zadania ({self.filter_kind})")
        table.add_column("ID", no_wrap=True, style="cyan")
        table.add_column("Title")
        table.add_column("Priority", no_wrap=True)
        table.add_column("Category", no_wrap=True)
        table.add_column("Due", no_wrap=True, style="dim")
        table.add_column("Status", no_wrap=True)
        table.add_column("Tags")

        for t in self.tasks:
            table.add_row(
                short_id(t.id),
                t.title,
                color_priority(t.priority),
                t.category,
                format_dt(t.due_date),
                color_status(t.status),
                ", ".join(t.tags),
            )

        self.console.print(table)
        self.console.print(f"[dim]Razem: {len(self.tasks)} • Filtr: {self.filter_kind}[/dim]")

    def render_stats(self) -> None:
        stats = self.stats or TaskStatistics()
        by_priority = " ".join(f"{k}={v}" for k, v in stats.by_priority.items()) or "-"
        by_category = " ".join(f"{k}={v}" for k, v in stats.by_category.items()) or "-"
        self.console.print(Panel.fit(
            f"Wszystkie: {stats.total}\n"
            f"Ukończone: {stats.completed} ({stats.completion_rate}%)\n"
            f"Oczekujące: {stats.pending}\n"
            f"Po terminie: {stats.overdue}\n"
            f"[dim]Priorytety:[/dim] {by_priority}\n"
            f"[dim]Kategorie:[/dim] {by_category}",
            title="Statystyki",
            border_style="cyan",
        ))

    def render_task(self, task: Task) -> None:
        """Panel ze szczegółami pojedynczego zadania."""
        lines = [
            f"ID: {task.id}",
            f"Title: {task.title}",
            f"Description: {task.description or '[dim]brak[/]'}",
            f"Priority: {color_priority(task.priority)}",
            f"Category: {task.category}",
            f"Status: {color_status(task.status)}",
            f"Tags: {', '.join(task.tags) or '-'}",
            f"Due: {format_dt(task.due_date)}",
            f"Hours: {task.actual_hours or 0} / {task.estimated_hours if task.estimated_hours is not None else '-'}",
            f"Assigned to: {task.assigned_to}",
            f"Created: {task.created_at.isoformat()}",
        ]
        for note in task.notes:
            lines.append(f"[dim]Note {format_dt(note.created_at)}:[/dim] {note.content}")
        self.console.print(Panel.fit("\n".join(lines), title="Szczegóły zadania", border_style="cyan"))
