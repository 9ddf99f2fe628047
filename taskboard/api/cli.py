from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Iterator, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from typer import Argument, Exit, Option, Typer

from taskboard.adapters.console.presenter import ConsolePresenter, short_id
from taskboard.adapters.jsonfile.store import JsonFileStore
from taskboard.adapters.memory.store import InMemoryStore
from taskboard.adapters.sql.store import SqlStore
from taskboard.adapters.system.clock_system import SystemClock
from taskboard.adapters.system.id_provider_uuid import UuidIdProvider
from taskboard.config import Settings
from taskboard.controllers.intents import (
    AddNoteRequested,
    AddTagRequested,
    AddTimeRequested,
    AssignTaskRequested,
    CreateTaskRequested,
    DeleteTaskRequested,
    FilterRequested,
    RemoveTagRequested,
    SearchRequested,
    SetDueDateRequested,
    ToggleCompletionRequested,
    UpdateTaskRequested,
)
from taskboard.controllers.task_controller import TaskController
from taskboard.domain.errors import DomainError, NotFoundError
from taskboard.logging_setup import setup_logging
from taskboard.ports.storage import KeyValueStore
from taskboard.repositories.task_repo import TaskRepository
from taskboard.repositories.user_repo import UserRepository
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# CLI (Typer + Rich), interfejs użytkownika dla Taskboard.
# ==========================================================
# Rola:
# - Bootstrap zależności w callbacku: Settings -> logowanie -> magazyn -> repozytoria
#   -> serwisy -> presenter -> kontroler (zalogowany użytkownik).
# - Komendy zmieniające zadania wysyłają intencje przez presenter (jak kliknięcia w UI).
# - Łapie DomainError i drukuje czerwony panel (chyba że presenter już pokazał ten błąd).
#
# Zasady:
# - Zero logiki biznesowej: uprawnienia i walidację robi kontroler/serwis.
# - ID zadania można podać skrócone (prefiks z listy), jeśli jest jednoznaczne.


app = Typer(help="Taskboard: osobisty menedżer zadań")
console = Console()

# ustawiane w callbacku
controller: TaskController | None = None
presenter: ConsolePresenter | None = None
user_service: UserService | None = None

DEFAULT_USER = {"username": "demo", "email": "demo@example.com", "display_name": "Demo User"}


def build_store(settings: Settings) -> KeyValueStore:
    """Tworzy magazyn na bazie ustawień.
    - memory -> InMemory (brak trwałości)
    - json -> pliki <data_dir>/<kolekcja>.json
    - sql -> SQLAlchemy (domyślnie SQLite w data_dir)
    """
    match settings.store:
        case "json":
            return JsonFileStore(settings.data_dir)
        case "sql":
            if settings.db_url is None:
                settings.data_dir.mkdir(parents=True, exist_ok=True)
            return SqlStore(settings.resolved_db_url)
        case _:
            return InMemoryStore()


def build_controller(settings: Settings, username: str | None = None) -> tuple[TaskController, ConsolePresenter, UserService]:
    """
    Składa całą aplikację i loguje użytkownika.

    - `username` podany -> musi istnieć (NotFoundError).
    - Brak `username` -> pierwszy użytkownik w magazynie, a gdy nie ma żadnego, tworzony jest użytkownik demo.
    """
    store = build_store(settings)
    clock = SystemClock()
    ids = UuidIdProvider()

    tasks = TaskRepository(store, clock, ids, ttl=timedelta(seconds=settings.task_cache_ttl))
    users = UserRepository(store, clock, ids, ttl=timedelta(seconds=settings.user_cache_ttl))
    users_svc = UserService(users, clock)
    tasks_svc = TaskService(tasks, users, ids, clock)

    view = ConsolePresenter(console)
    ctrl = TaskController(tasks_svc, users_svc, view, clock)

    if username:
        user = users_svc.get_user_by_username(username)
        if user is None:
            raise NotFoundError("User", username)
    else:
        existing = users_svc.get_all_users()
        user = existing[0] if existing else users_svc.create_user(DEFAULT_USER)

    ctrl.initialize(user.id)
    logger.info("Session started for user %s (store=%s)", user.username, settings.store)
    return ctrl, view, users_svc


@contextmanager
def domain_errors() -> Iterator[None]:
    """Zamienia DomainError na czerwony panel i kod wyjścia 1."""
    try:
        yield
    except DomainError as e:
        if presenter is None or presenter.last_error != str(e):
            console.print(Panel.fit(f"❌ {e}", title="Błąd domenowy", border_style="red"))
        raise Exit(code=1)


def resolve_task_id(task_id: str) -> str:
    """Rozwija skrócone ID (prefiks) do pełnego, jeśli pasuje dokładnie jedno zadanie."""
    matches = [t.id for t in controller.get_all_tasks() if t.id.startswith(task_id)]
    return matches[0] if len(matches) == 1 else task_id


@app.callback()
def main(
    store: Optional[str] = Option(None, "--store", "-s", help="Magazyn: memory | json | sql"),
    data: Optional[Path] = Option(None, "--data", "-d", help="Katalog danych dla magazynu json/sql"),
    db_url: Optional[str] = Option(None, "--db-url", help="URL bazy SQLAlchemy (magazyn sql)"),
    user: Optional[str] = Option(None, "--user", "-u", help="Nazwa zalogowanego użytkownika"),
) -> None:
    """Bootstrap zależności na starcie procesu CLI."""
    global controller, presenter, user_service
    with domain_errors():
        settings = Settings.from_env().with_overrides(store=store, data_dir=data, db_url=db_url)
        setup_logging(settings.log_level, settings.log_file)
        controller, presenter, user_service = build_controller(settings, user)


# ---- users ----

@app.command("user-add")
def user_add(
    username: str,
    email: str,
    name: Optional[str] = Option(None, "--name", "-n", help="Nazwa wyświetlana"),
    role: str = Option("user", "--role", "-r", help="user | moderator | admin | super-admin"),
) -> None:
    """
    Rejestruje nowego użytkownika.

    Flow:
    - user_service.create_user({...})
    - Sukces: Panel „✅ Dodano użytkownika”.
    - Zajęty username/email: DuplicateError → czerwony Panel.
    """
    with domain_errors():
        data = {"username": username, "email": email, "role": role}
        if name:
            data["display_name"] = name
        created = user_service.create_user(data)
        console.print(Panel.fit(
            f"✅ Dodano użytkownika\n[cyan]ID:[/cyan] {short_id(created.id)}\n"
            f"[dim]Username:[/dim] {created.username}\n[dim]Email:[/dim] {created.email}",
            title="Sukces",
            border_style="green",
        ))


@app.command("users")
def users_cmd() -> None:
    """Listuje użytkowników."""
    with domain_errors():
        table = Table(show_lines=True, header_style="bold")
        table.add_column("ID", no_wrap=True, style="cyan")
        table.add_column("Username")
        table.add_column("Email")
        table.add_column("Role", no_wrap=True)
        table.add_column("Active", no_wrap=True)
        for u in user_service.get_all_users():
            table.add_row(short_id(u.id), u.username, u.email, str(u.role), "tak" if u.is_active else "nie")
        console.print(table)


# ---- tasks ----

@app.command("add")
def add(
    title: str,
    desc: Optional[str] = Option(None, "--desc", "-d"),
    priority: Optional[str] = Option(None, "--priority", "-p", help="low | medium | high | urgent"),
    category: Optional[str] = Option(None, "--category", "-c"),
    tags: Optional[list[str]] = Option(None, "--tag", "-t", help="Tag (można powtarzać)"),
    due: Optional[str] = Option(None, "--due", help="Termin w ISO 8601, np. 2025-01-31T12:00"),
    estimate: Optional[float] = Option(None, "--estimate", "-e", help="Szacowany czas (godziny)"),
) -> None:
    """
    Dodaje nowe zadanie dla zalogowanego użytkownika.

    Flow:
    - presenter.emit(CreateTaskRequested(data))
    - Kontroler ustawia właściciela i domyślnie przypisuje zadanie do niego.
    - Błąd walidacji: ValidationError → czerwony Panel.
    """
    data = {
        "title": title,
        "description": desc,
        "priority": priority,
        "category": category,
        "tags": tags,
        "due_date": due,
        "estimated_hours": estimate,
    }
    with domain_errors():
        presenter.emit(CreateTaskRequested({k: v for k, v in data.items() if v is not None}))


@app.command("list")
def list_cmd(
    filter_type: str = Option("all", "--filter", "-f", help="all | pending | completed | overdue | priority | category | tag | assigned"),
    value: Optional[str] = Option(None, "--value", "-v", help="Wartość dla filtrów priority/category/tag"),
) -> None:
    """
    Listuje zadania zalogowanego użytkownika.

    Flow:
    - presenter.emit(FilterRequested(filter_type, value))
    - presenter.render_tasks()
    """
    with domain_errors():
        presenter.emit(FilterRequested(filter_type, value))
        presenter.render_tasks()


@app.command("search")
def search(query: str) -> None:
    """Szuka frazy w tytule, opisie i tagach zadań."""
    with domain_errors():
        presenter.emit(SearchRequested(query))
        presenter.render_tasks(title=f"Wyniki dla: {query}")


@app.command("show")
def show(task_id: str) -> None:
    """
    Pokazuje szczegóły pojedynczego zadania.

    Flow:
    - task = controller.get_task(id) (sprawdza prawo do podglądu)
    - Brak zadania → czerwony Panel z podpowiedzią.
    """
    with domain_errors():
        task = controller.get_task(resolve_task_id(task_id))
        if task is None:
            console.print(Panel.fit(
                f"❌ Nie znaleziono zadania o ID: {task_id}\n"
                f"[dim]Użyj 'taskboard list', żeby znaleźć poprawne ID[/]",
                title="Nie znaleziono",
                border_style="red",
            ))
            raise Exit(code=1)
        presenter.render_task(task)


@app.command("update")
def update(
    task_id: str,
    title: Optional[str] = Option(None, "--title"),
    desc: Optional[str] = Option(None, "--desc", "-d"),
    priority: Optional[str] = Option(None, "--priority", "-p"),
    category: Optional[str] = Option(None, "--category", "-c"),
    status: Optional[str] = Option(None, "--status", help="pending | in-progress | blocked | completed | cancelled"),
    estimate: Optional[float] = Option(None, "--estimate", "-e"),
) -> None:
    """Zmienia wybrane pola zadania (tylko podane opcje)."""
    updates = {
        "title": title,
        "description": desc,
        "priority": priority,
        "category": category,
        "status": status,
        "estimated_hours": estimate,
    }
    with domain_errors():
        presenter.emit(UpdateTaskRequested(resolve_task_id(task_id), {k: v for k, v in updates.items() if v is not None}))


@app.command("done")
def done(task_id: str) -> None:
    """Przełącza ukończenie zadania (completed <-> pending)."""
    with domain_errors():
        presenter.emit(ToggleCompletionRequested(resolve_task_id(task_id)))


@app.command("assign")
def assign(task_id: str, username: str) -> None:
    """Przypisuje zadanie innemu użytkownikowi (po nazwie użytkownika)."""
    with domain_errors():
        assignee = user_service.get_user_by_username(username)
        if assignee is None:
            raise NotFoundError("User", username)
        presenter.emit(AssignTaskRequested(resolve_task_id(task_id), assignee.id))


@app.command("time")
def time_cmd(task_id: str, hours: float) -> None:
    """Dolicza przepracowane godziny do zadania."""
    with domain_errors():
        presenter.emit(AddTimeRequested(resolve_task_id(task_id), hours))


@app.command("due")
def due(task_id: str, due_date: str = Argument(..., help="Data ISO 8601 albo 'none', żeby usunąć termin")) -> None:
    """Ustawia (lub czyści) termin zadania."""
    value = None if due_date.strip().lower() in {"", "none", "brak"} else due_date
    with domain_errors():
        presenter.emit(SetDueDateRequested(resolve_task_id(task_id), value))


@app.command("tag")
def tag(task_id: str, name: str) -> None:
    """Dodaje tag do zadania."""
    with domain_errors():
        presenter.emit(AddTagRequested(resolve_task_id(task_id), name))


@app.command("untag")
def untag(task_id: str, name: str) -> None:
    """Usuwa tag z zadania."""
    with domain_errors():
        presenter.emit(RemoveTagRequested(resolve_task_id(task_id), name))


@app.command("note")
def note(task_id: str, content: str) -> None:
    """Dodaje notatkę do zadania."""
    with domain_errors():
        presenter.emit(AddNoteRequested(resolve_task_id(task_id), content))


@app.command("rm")
def rm(task_id: str) -> None:
    """
    Usuwa zadanie.

    Flow:
    - presenter.emit(DeleteTaskRequested(id))
    - Sukces: Panel „🟡 Usunięto” (rysuje presenter).
    - Brak zadania / brak uprawnień → czerwony Panel.
    """
    with domain_errors():
        presenter.emit(DeleteTaskRequested(resolve_task_id(task_id)))


@app.command("stats")
def stats() -> None:
    """Pokazuje statystyki zadań zalogowanego użytkownika."""
    with domain_errors():
        controller.update_task_stats()
        presenter.render_stats()


@app.command("demo")
def demo() -> None:
    """
    Pokazowy przebieg działania aplikacji w jednym procesie.

    - Tworzy 4 zadania (jedno po terminie).
    - Pokazuje listę.
    - Oznacza jedno jako zakończone, taguje i dodaje notatkę.
    - Usuwa inne.
    - Pokazuje listę i statystyki po zmianach.
    """
    with domain_errors():
        console.print(Panel.fit("🚀 Start demonstracji", border_style="cyan"))

        # 1️⃣ Tworzymy zadania
        presenter.emit(CreateTaskRequested({"title": "Buy milk", "description": "2% lactose-free", "category": "home"}))
        presenter.emit(CreateTaskRequested({"title": "Call mom", "description": "Sunday afternoon", "priority": "high"}))
        presenter.emit(CreateTaskRequested({"title": "Read a book", "description": "DDD chapter 3", "tags": ["learning"]}))
        presenter.emit(CreateTaskRequested({
            "title": "Pay invoice",
            "priority": "urgent",
            "category": "finance",
            "due_date": controller.clock.now() - timedelta(days=1),
        }))

        # 2️⃣ Lista po dodaniu
        presenter.emit(FilterRequested("all"))
        created = {t.title: t for t in presenter.tasks}
        console.print("\n📋 Lista po utworzeniu:")
        presenter.render_tasks()

        # 3️⃣ Zmiany
        presenter.emit(ToggleCompletionRequested(created["Call mom"].id))
        presenter.emit(AddTagRequested(created["Buy milk"].id, "shopping"))
        presenter.emit(AddTimeRequested(created["Read a book"].id, 1.5))
        presenter.emit(AddNoteRequested(created["Read a book"].id, "Skończone na stronie 42"))

        # 4️⃣ Usuwamy jedno zadanie
        presenter.emit(DeleteTaskRequested(created["Buy milk"].id))

        # 5️⃣ Po terminie i lista po zmianach
        presenter.emit(FilterRequested("overdue"))
        console.print("\n⏰ Po terminie:")
        presenter.render_tasks()

        presenter.emit(FilterRequested("all"))
        console.print("\n📋 Lista po zmianach:")
        presenter.render_tasks()
        presenter.render_stats()

        console.print(Panel.fit("🏁 Demo zakończone", border_style="cyan"))


if __name__ == "__main__":
    app()
