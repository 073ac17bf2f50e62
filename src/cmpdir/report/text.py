"""Text rendering of a classified tree."""

from ..tree import CmpResult, DirectoryNode, FileEntry

# Tree drawing characters
BRANCH = "├── "
LAST_BRANCH = "└── "
VERTICAL = "│   "
SPACE = "    "

RESULT_MARKERS = {
    CmpResult.EQUAL: "[=]",
    CmpResult.ADDED: "[+]",
    CmpResult.DELETED: "[-]",
    CmpResult.MOVED: "[>]",
    CmpResult.MODIFIED: "[M]",
    CmpResult.DUPLICATED: "[D]",
    CmpResult.DEDUPLICATED: "[d]",
}

LEGEND = "  ".join(f"{marker} {result}" for result, marker in RESULT_MARKERS.items())


def _file_label(entry: FileEntry) -> str:
    classification = entry.classification
    if classification is None:
        return entry.name

    label = f"{RESULT_MARKERS[classification.result]} {entry.name}"
    if classification.links:
        label += " -> " + ", ".join(classification.links)
    return label


def _is_visible(entry: FileEntry, show_equal: bool) -> bool:
    return show_equal or entry.classification is None or entry.classification.result != CmpResult.EQUAL


def _render_children(node: DirectoryNode, show_equal: bool) -> list[str]:
    """Lines for the visible content of node; empty when nothing below it is shown."""
    items: list[tuple[str, list[str]]] = []

    for child in node.children:
        child_lines = _render_children(child, show_equal)
        if child_lines:
            items.append((child.name + "/", child_lines))

    for entry in node.files:
        if _is_visible(entry, show_equal):
            items.append((_file_label(entry), []))

    lines = []
    for position, (label, child_lines) in enumerate(items):
        last = position == len(items) - 1
        lines.append((LAST_BRANCH if last else BRANCH) + label)
        continuation = SPACE if last else VERTICAL
        lines.extend(continuation + line for line in child_lines)
    return lines


def render_tree(tree: DirectoryNode, show_equal: bool = False) -> list[str]:
    """Render a tree as lines, directories before files.

    Files classified Equal are left out unless show_equal is set, and so is any directory
    left with nothing to show. The root line is always present.

    Args:
        tree: Root of the tree to render
        show_equal: Also list files classified Equal

    Returns:
        Lines without trailing newlines
    """
    return [tree.name + "/"] + _render_children(tree, show_equal)
