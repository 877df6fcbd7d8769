"""Interactive CLI application."""
import logging
import os

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt

from flashcard_srs.clock import SystemClock
from flashcard_srs.db import init_db, SqliteReviewStore, DEFAULT_DB_PATH
from flashcard_srs.errors import SchedulerError
from flashcard_srs.workflow import ReviewWorkflow

console = Console()

GRADE_CHOICES = ["0", "1", "2", "3", "4", "5"]


def show_welcome():
    console.print(Panel(
        "[bold]Flashcard SRS[/bold]\n[dim]SM-2 spaced repetition[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("decks", "List decks"),
        ("add", "Create a deck or add a card"),
        ("due", "Show due cards for a deck"),
        ("drill", "Review due cards for a deck"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<8}[/cyan] {desc}")


def choose_deck(store: SqliteReviewStore) -> str | None:
    decks = store.list_decks()
    if not decks:
        console.print("[yellow]No decks yet. Use 'add' to create one.[/yellow]")
        return None
    for i, d in enumerate(decks, 1):
        console.print(f"  [cyan]{i}[/cyan]) {d['name']} [dim]({d['card_count']} cards)[/dim]")
    index = IntPrompt.ask("Select deck", choices=[str(i) for i in range(1, len(decks) + 1)])
    return decks[index - 1]["token"]


def run_review_session(store: SqliteReviewStore, workflow: ReviewWorkflow, card_tokens: list) -> int:
    if not card_tokens:
        console.print("[yellow]No flashcards due right now![/yellow]")
        return 0
    console.print(f"\n[bold]Review Session[/bold] — {len(card_tokens)} cards\n")
    for i, token in enumerate(card_tokens, 1):
        card = store.get_card(token)
        console.print(Panel(card["question"], title=f"Card {i}/{len(card_tokens)}", border_style="cyan"))
        Prompt.ask("[dim]Press Enter to reveal answer[/dim]")
        console.print(Panel(card["answer"], border_style="green"))
        grade = IntPrompt.ask("Rate yourself (0=forgot, 3=hard, 4=good, 5=easy)", choices=GRADE_CHOICES)
        state = workflow.submit_review(token, grade)
        console.print(f"[dim]Next review in {state.interval_days} day(s)[/dim]\n")
    return len(card_tokens)


def cmd_decks(store: SqliteReviewStore):
    decks = store.list_decks()
    table = Table(title="Decks")
    table.add_column("Name", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("Token", style="dim")
    for d in decks:
        table.add_row(d["name"], str(d["card_count"]), d["token"])
    console.print(table)


def cmd_add(store: SqliteReviewStore, workflow: ReviewWorkflow):
    kind = Prompt.ask("Add", choices=["deck", "card"], default="card")
    if kind == "deck":
        name = Prompt.ask("Deck name")
        store.add_deck(name, created_at=workflow.clock.now())
        console.print(f"[green]Created deck {name}[/green]")
        return
    deck_token = choose_deck(store)
    if deck_token is None:
        return
    question = Prompt.ask("Question")
    answer = Prompt.ask("Answer")
    store.add_card(deck_token, question, answer, created_at=workflow.clock.now())
    console.print("[green]Card added, due now.[/green]")


def cmd_due(store: SqliteReviewStore, workflow: ReviewWorkflow):
    deck_token = choose_deck(store)
    if deck_token is None:
        return
    due = workflow.get_due_cards(deck_token)
    if not due:
        console.print("[green]Nothing due in this deck.[/green]")
        return
    table = Table(title=f"Due Cards ({len(due)})")
    table.add_column("#", justify="right")
    table.add_column("Question", style="cyan")
    table.add_column("Due since")
    for i, token in enumerate(due, 1):
        card = store.get_card(token)
        state = store.load_review_state(token)
        table.add_row(str(i), card["question"], state.next_review_at.strftime("%Y-%m-%d %H:%M"))
    console.print(table)


def cmd_drill(store: SqliteReviewStore, workflow: ReviewWorkflow):
    deck_token = choose_deck(store)
    if deck_token is None:
        return
    limit = IntPrompt.ask("Max cards", default=20)
    while limit < 0:
        console.print("[red]Max cards cannot be negative.[/red]")
        limit = IntPrompt.ask("Max cards", default=20)
    run_review_session(store, workflow, workflow.get_due_cards(deck_token, limit=limit))


def get_log_level() -> str:
    """Level name from FLASHCARD_SRS_LOG_LEVEL, WARNING if unset or unknown."""
    name = os.environ.get("FLASHCARD_SRS_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(name), int):
        return "WARNING"
    return name


def main():
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db_path = os.environ.get("FLASHCARD_SRS_DB", DEFAULT_DB_PATH)
    init_db(db_path)
    store = SqliteReviewStore(db_path)
    workflow = ReviewWorkflow(store, SystemClock())

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="drill").strip().lower()
        try:
            if choice == "decks":
                cmd_decks(store)
            elif choice == "add":
                cmd_add(store, workflow)
            elif choice == "due":
                cmd_due(store, workflow)
            elif choice == "drill":
                cmd_drill(store, workflow)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you at the next review![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except SchedulerError as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
