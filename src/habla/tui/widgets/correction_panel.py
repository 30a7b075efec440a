"""CorrectionPanel widget - collapsible list of corrections under a user turn."""

from __future__ import annotations

from textual.widgets import Collapsible, Static

from ...chat.corrections import CorrectionItem, CorrectionResult


def badge_title(result: CorrectionResult) -> str:
    parts = []
    if result.error_count:
        parts.append(f"{result.error_count} error" + ("s" if result.error_count != 1 else ""))
    if result.style_count:
        parts.append(f"{result.style_count} style tip" + ("s" if result.style_count != 1 else ""))
    return ", ".join(parts)


def format_item(item: CorrectionItem) -> str:
    label = "Error" if item.kind == "error" else "Style"
    return f"{label}: {item.original} -> {item.suggestion}\n  {item.explanation}"


class CorrectionPanel(Collapsible):
    """Starts collapsed; expanding it is purely local view state."""

    DEFAULT_CSS = """
    CorrectionPanel {
        margin: 0 0 0 2;
        border: none;
        padding: 0;
    }
    CorrectionPanel .correction-error {
        color: $error;
    }
    CorrectionPanel .correction-style {
        color: $warning;
    }
    """

    def __init__(self, result: CorrectionResult, **kwargs) -> None:
        items = [
            Static(format_item(item), classes=f"correction-{item.kind}", markup=False)
            for item in result.items
        ]
        super().__init__(*items, title=badge_title(result), collapsed=True, **kwargs)
        self.result = result
