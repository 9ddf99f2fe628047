from enum import Enum


class TaskColor(Enum):
    RED = "[red]"
    BLUE = "[blue]"
    GREEN = "[green]"
    YELLOW = "[yellow]"
    MAGENTA = "[magenta]"
    DIM = "[dim]"
    BOLD_RED = "[bold red]"
    RESET = "[/]"

    def __str__(self):
        return self.value
