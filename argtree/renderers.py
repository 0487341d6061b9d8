"""
Argtree help and version renderers (rich).

Both renderers take the Parser (for its metadata and runtime flags) and return a
rich renderable; Parser.helper()/Parser.versioner() decide where it is printed.

Help layout for a command
- usage line: the parser's global usage for the root when set, otherwise
  synthesized from the command path, its options, its values and its children.
- description.
- commands table: every command below this one, indented by depth, in
  registration order.
- options: this command's options, then the ones inherited from its ancestors,
  each with forms, value placeholders, description, default and bound variable.
- example usage, when the command declares one.

Palette keys (override any of them through __main__.__styles__)
- usage-label, program-name, usage-section, description-section
- group-label, option-name, metavar, argument-description, default, envvar
- children-title, children-table, children, children-description
- example-label, example
- panel-title, panel-subtitle
- program-version, info-label, info-section
"""
from collections import defaultdict, deque

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.containers import Lines
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import ArityKind
from .commands import walk


def _palette(parser, palette, /):
    styles = defaultdict(str, palette | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if parser.colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not parser.colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment.copy()
        return Text(str(fragment), style)

    return styler, text


def _metavars(nargs, label="value", /):
    """
    Placeholders for an arity: exact(2) -> "<value> <value>", "+" -> "<value> [<value> ...]".
    """
    metavar = f"<{label}>"
    match nargs.kind:
        case ArityKind.AT_LEAST_ONE:
            return f"{metavar} [{metavar} ...]"
        case ArityKind.ZERO_OR_MORE:
            return f"[{metavar} ...]"
    return " ".join(metavar for _ in range(nargs.count))


def helper(parser, command, /, *, console=None):
    """
    Build the help renderable of command (a node of parser's tree).
    """
    console = console or Console()
    styler, text = _palette(parser, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "usage-section": "bold #36C5F0",
        "description-section": "italic #A3A3A3",

        # === Options ===
        "group-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",
        "argument-description": "#9CA3AF",
        "default": "#22C55E",
        "envvar": "#FF4D94 dim",

        # === Children table ===
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",

        # === Example usage ===
        "example-label": "bold #22C55E",
        "example": "#E5E7EB",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
        "panel-subtitle": "#9CA3AF",
    })

    renders = []
    width = console.width - 4 * parser.fancy

    def forms(option):
        return Text(", ").join(text(name, styler("option-name")) for name in option.names)

    # Usage line: explicit global usage for the root, otherwise synthesized.
    usage = Text()
    usage.append(text("usage", styler("usage-label"))).append(":").append(" ")
    if command.parent is None and parser.usage:
        usage.append(text(parser.usage, styler("usage-section")))
    else:
        usage.append(text(" ".join(step.name for step in command.path), styler("program-name")))
        usage.append(" ")
        offset = len(usage)

        inputs = deque()
        for option in command.options.values():
            piece = Text.assemble("[", forms(option))
            if metavars := _metavars(option.nargs):
                piece.append(" ").append(text(metavars, styler("metavar")))
            inputs.append(piece.append("]"))
        if metavars := _metavars(command.nargs):
            inputs.append(text(metavars, styler("metavar")))
        if command.children:
            label = "<command>" if command.requires_commands and not command.default else "[<command>]"
            inputs.append(text(label, styler("metavar")))

        try:
            lines = Lines([inputs.popleft()])
        except IndexError:
            lines = Lines()
        while inputs:
            if len(lines[-1]) + 1 + len(input := inputs.popleft()) > width - offset:
                lines.append(input)
            else:
                lines[-1].append(Text(" ") + input)

        try:
            usage.append(lines.pop(0))
        except IndexError:
            pass
        for line in lines:
            usage.append("\n").append(" " * offset).append(line)

    renders.append(usage.append("\n"))

    if command.descr:
        renders.append(text(command.descr, styler("description-section")).append("\n"))

    # Commands table: every descendant, indented by depth.
    if command.children:
        table = Table(
            "name", "help",
            title=text("subcommands" if command.parent else "commands", styler("children-title")),
            width=int(width * (2 / 3)),
            box=ROUNDED,
            style=styler("children-table"),
            header_style=styler("children-title"),
        )
        depth = len(command.path)
        for child in walk(command):
            if child is command:
                continue
            indent = "  " * (len(child.path) - depth - 1)
            name = text(child.name, styler("children"))
            if metavars := _metavars(child.nargs):
                name = Text.assemble(name, " ", text(metavars, styler("metavar")))
            if child.name == child.parent.default:
                name.append(" (default)")
            table.add_row(
                Text.assemble(indent, name),
                text(child.descr or "no description", styler("children-description")),
            )
        renders.append(table)

    # Option sections with hanging indents, own options first.
    padding = 2
    indent = 24
    sections = [("options", command.options.values())]
    for ancestor in reversed(command.path[:-1]):
        if ancestor.options:
            sections.append((f"{ancestor.name} options", ancestor.options.values()))

    groups = Text("\n" if command.children else "")
    for index, (label, options) in enumerate(filter(lambda x: x[1], sections)):
        groups.append("\n" * (index > 0))
        groups.append(text(label, styler("group-label"))).append(":").append("\n")
        for option in options:
            section = Text(" " * padding).append(forms(option))
            if metavars := _metavars(option.nargs):
                section.append(" ").append(text(metavars, styler("metavar")))

            details = Text(" ").join(part for part in (
                text(option.descr, styler("argument-description")),
                text(option.default and f"(default: {option.default})", styler("default")),
                text(option.envvar and f"[env: {option.envvar}]", styler("envvar")),
            ) if part)

            if details:
                if len(section) >= indent:
                    section.append("\n").append(" " * indent)
                else:
                    section.append(" " * (indent - len(section)))
                wrapped = details.wrap(console, max(width - indent, 16))
                try:
                    section.append(wrapped.pop(0))
                except IndexError:
                    pass
                for line in wrapped:
                    section.append("\n").append(" " * indent).append(line)
            groups.append(section).append("\n")

    if groups.plain.strip():
        renders.append(groups)

    if command.usage:
        example = Text()
        example.append(text("example", styler("example-label"))).append(":").append("\n")
        example.append(" " * padding).append(text(command.usage, styler("example"))).append("\n")
        renders.append(example)

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()
    renderable = Group(*renders)

    if parser.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{command.name} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
            subtitle=text(parser.copyright, styler("panel-subtitle")),
        )
    return renderable


def versioner(parser, /, *, console=None):
    """
    Build the version renderable: "<name> — <version>" and the scalar metadata.
    """
    styler, text = _palette(parser, {
        "program-name": "bold #FF4D94",
        "program-version": "bold #00E6FF",
        "info-label": "bold #FFFFFF",
        "info-section": "#9CA3AF",
        "panel-title": "bold #FF4D94",
        "panel-subtitle": "#9CA3AF",
    })

    renders = [Text(" — ").join((
        text(parser.name, styler("program-name")),
        text(parser.version or "0.0.0", styler("program-version")),
    ))]

    for label in ("license", "homepage", "copyright"):
        if value := getattr(parser, label):
            info = Text()
            info.append(text(label, styler("info-label"))).append(":").append(" ")
            info.append(text(value, styler("info-section")))
            renders.append(info)

    renderable = Group(*renders)
    if parser.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{parser.name} VERSION".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
            subtitle=text(parser.copyright, styler("panel-subtitle")),
        )
    return renderable


__all__ = (
    "helper",
    "versioner",
)
