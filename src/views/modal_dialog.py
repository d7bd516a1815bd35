from typing import Dict, Iterable, Literal, Optional, Tuple, override

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.events import Key, Resize
from textual.screen import ModalScreen
from textual.validation import Validator
from textual.widgets import Button, Input, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]


class DialogModal(ModalScreen[bool]):
    """
    A simple yes/no dialog box, dismissed with True for the primary button.
    """

    VARIANT_MAP: Dict[
        str, Tuple[Literal["primary", "default", "success", "warning", "error"], ...]
    ] = {
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
        detail: str = "",
    ):
        super().__init__()
        self.caption = caption
        self.detail = detail
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            if self.detail:
                yield Label(self.detail, id="detail")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text,
                        variant=DialogModal.VARIANT_MAP[self.tone][1],
                        id="btn-secondary",
                    )
                yield Button(
                    self.primary_text,
                    variant=DialogModal.VARIANT_MAP[self.tone][0],
                    id="btn-primary",
                )

    def on_mount(self):
        # destructive prompts focus the safe answer
        if not self.secondary_text or not self.tone == "error":
            self.query_one("#btn-primary").focus()
        else:
            self.query_one("#btn-secondary").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.dismiss(True)
        if event.button.id == "btn-secondary":
            self.dismiss(False)


class SimpleDialogModal(DialogModal):
    def __init__(self, caption: str, detail: str = ""):
        super().__init__(caption, detail=detail)


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
            self.dismiss(True)
        else:
            self.dismiss(False)


class PromptModal(ModalScreen[Optional[str]]):
    """
    Ask for a single value. Dismisses with the stripped text, or None when
    cancelled.
    """

    def __init__(
        self,
        caption: str,
        value: str = "",
        placeholder: str = "",
        input_type: Literal["integer", "number", "text"] = "text",
        validators: Optional[Iterable[Validator]] = None,
        confirm_text: str = "OK",
    ):
        super().__init__()
        self.caption = caption
        self.value = value
        self.placeholder = placeholder
        self.input_type = input_type
        self.validators = list(validators or [])
        self.confirm_text = confirm_text

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            yield Input(
                self.value,
                placeholder=self.placeholder,
                type=self.input_type,
                validators=self.validators,
                id="input-prompt",
            )
            with Horizontal(id="dialog"):
                yield Button("Cancel", id="btn-secondary")
                yield Button(self.confirm_text, variant="primary", id="btn-primary")

    def on_mount(self):
        self.query_one("#input-prompt").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def _submit(self) -> None:
        prompt = self.query_one("#input-prompt", Input)
        if not prompt.value.strip() or not prompt.is_valid:
            prompt.add_class("-invalid")
            prompt.focus()
            return
        self.dismiss(prompt.value.strip())

    def on_input_submitted(self, _: Input.Submitted) -> None:
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self._submit()
        else:
            self.dismiss(None)


class ResizeScreenPromptModal(ModalScreen[bool]):
    """
    Covers the screen until the terminal is large enough again.
    """

    def __init__(self, min_width: int = 80, min_height: int = 24) -> None:
        super().__init__()
        self.min_width = min_width
        self.min_height = min_height

    def compose(self) -> ComposeResult:
        with Container(id="div-resize"):
            yield Label(
                f"Resize the terminal to at least {self.min_width}x{self.min_height}",
                id="prompt",
            )

    def on_resize(self, event: Resize) -> None:
        if not (
            event.size.width < self.min_width or event.size.height < self.min_height
        ):
            self.dismiss(True)
