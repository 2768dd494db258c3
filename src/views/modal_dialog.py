from typing import Dict, Literal, Tuple, override

from textual import on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]
Variant = Literal["primary", "default", "success", "warning", "error"]


class DialogModal(ModalScreen[bool]):
    """
    Yes/no dialog. Dismisses with True for the primary button.
    Destructive ("error") dialogs start with focus on the secondary button.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    # tone -> (primary variant, secondary variant)
    VARIANTS: Dict[Tone, Tuple[Variant, Variant]] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Tone = "default",
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    @classmethod
    def confirm(cls, caption: str, tone: Tone = "warning") -> "DialogModal":
        return cls(caption, primary_text="Yes", secondary_text="No", tone=tone)

    def compose(self) -> ComposeResult:
        primary, secondary = self.VARIANTS[self.tone]
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(self.secondary_text, variant=secondary, id="btn-secondary")
                yield Button(self.primary_text, variant=primary, id="btn-primary")

    def on_mount(self):
        if self.secondary_text and self.tone == "error":
            self.query_one("#btn-secondary").focus()
        else:
            self.query_one("#btn-primary").focus()

    @on(Button.Pressed, "#btn-primary")
    def handle_primary(self) -> None:
        self.accept()

    def accept(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#btn-secondary")
    def handle_secondary(self) -> None:
        self.dismiss(False)

    def action_cancel(self) -> None:
        self.dismiss(False)


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    @override
    def accept(self) -> None:
        self.post_message(QuitRequestedMessage())
        self.dismiss(True)
