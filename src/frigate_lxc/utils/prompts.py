"""Interactive prompting built on Rich."""

from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt


console = Console()


class Prompter:
    """Asks the operator for values.

    Only presentation lives here; callers validate what comes back.
    """

    def __init__(self, output: Optional[Console] = None):
        self.console = output or console

    def ask(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Ask for a line of text; an empty answer returns ``default`` (or "")."""
        answer = Prompt.ask(
            message,
            console=self.console,
            default=default if default is not None else "",
            password=password,
            show_default=default is not None and not password,
        )
        return answer.strip()

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        return Confirm.ask(message, console=self.console, default=default)

    def choose(self, message: str, options: List[str], default: Optional[int] = None) -> Optional[int]:
        """Show a numbered menu and return the zero-based index picked.

        Returns ``default`` when the operator just presses enter.
        """
        for number, option in enumerate(options, start=1):
            self.console.print(f"  [cyan]{number})[/cyan] {option}")

        choices = [str(number) for number in range(1, len(options) + 1)]
        while True:
            answer = Prompt.ask(message, console=self.console, default="", show_default=False).strip()
            if not answer:
                return default
            if answer in choices:
                return int(answer) - 1
            self.console.print(f"[red]Invalid selection:[/red] {answer}")

    def info(self, message: str) -> None:
        self.console.print(message)
