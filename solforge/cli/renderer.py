"""
Parse Renderer - terminal views of parse results

Tree, commands, artifact and the focused file, drawn with rich. Used by
`solforge parse` for a one-shot dump and by `solforge replay` inside a
Live display.
"""

from typing import List, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from solforge.modules.forge.models import (
    FileTreeNode,
    FocusedFile,
    FocusSource,
    ParsedResponse,
    StreamView,
)

# Display languages that pygments names differently
_SYNTAX_ALIASES = {
    "plaintext": "text",
    "properties": "ini",
}

_SOURCE_STYLES = {
    FocusSource.BOILERPLATE: "blue",
    FocusSource.CLOSED: "green",
    FocusSource.PARTIAL: "yellow",
    FocusSource.KNOWN: "dim",
}


class ParseRenderer:
    """Renders parse results and stream views"""

    def __init__(self, console: Optional[Console] = None, syntax_theme: str = "monokai"):
        self.console = console or Console()
        self.syntax_theme = syntax_theme

    def _add_nodes(self, branch: Tree, nodes: List[FileTreeNode], active_path: Optional[str]) -> None:
        for node in nodes:
            if node.is_directory:
                child = branch.add(f"[bold cyan]📁 {node.name}[/bold cyan]")
                self._add_nodes(child, node.children, active_path)
            elif node.path == active_path:
                branch.add(f"[yellow]✎ {node.name}[/yellow]")
            else:
                branch.add(f"📄 {node.name} [dim]({node.language})[/dim]")

    def tree(self, nodes: List[FileTreeNode], title: str = "Files",
             active_path: Optional[str] = None) -> Tree:
        root = Tree(f"[bold]{title}[/bold]")
        self._add_nodes(root, nodes, active_path)
        return root

    def commands(self, response: ParsedResponse) -> Table:
        table = Table(title="Shell Commands", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=4)
        table.add_column("Command", style="white")
        for i, command in enumerate(response.shell_commands, 1):
            table.add_row(str(i), command)
        return table

    def summary(self, response: ParsedResponse) -> Panel:
        artifact = response.artifact
        if artifact is None:
            body = Text("No artifact found: narrative only", style="yellow")
        else:
            body = Text.assemble(
                ("id: ", "dim"), (artifact.id, "bold"), "\n",
                ("title: ", "dim"), (artifact.title, "bold"), "\n",
                ("files: ", "dim"), str(len(response.files)),
                ("  directories: ", "dim"), str(len(response.directories)),
                ("  commands: ", "dim"), str(len(artifact.shell_commands)),
            )
        return Panel(body, title="[bold]Artifact[/bold]", border_style="green", padding=(0, 1))

    def focused(self, focused: Optional[FocusedFile]) -> Panel:
        if focused is None:
            return Panel(Text("No file focused", style="dim"), title="Editor", border_style="dim")

        language = _SYNTAX_ALIASES.get(focused.language, focused.language)
        syntax = Syntax(
            focused.content or " ",
            language,
            theme=self.syntax_theme,
            line_numbers=True,
            word_wrap=True
        )
        marker = " [yellow]● streaming[/yellow]" if focused.is_streaming else ""
        return Panel(
            syntax,
            title=f"[bold]{focused.path}[/bold]{marker}",
            subtitle=focused.source.value,
            border_style=_SOURCE_STYLES.get(focused.source, "green"),
            padding=(0, 1)
        )

    def stream_view(self, view: StreamView) -> Group:
        """Renderable for one projector snapshot"""
        status = (
            f"[yellow]streaming[/yellow] {view.buffer_length} chars"
            if view.is_streaming
            else f"[green]complete[/green] {view.buffer_length} chars"
        )
        return Group(
            Text.from_markup(status),
            self.tree(view.tree, active_path=view.active_path),
            self.focused(view.focused),
        )

    def render_response(self, response: ParsedResponse, tree: List[FileTreeNode]) -> None:
        self.console.print(self.summary(response))
        self.console.print(self.tree(tree))
        if response.shell_commands:
            self.console.print(self.commands(response))
        if response.text:
            self.console.print(Panel(response.text, title="Narrative", border_style="dim"))
