"""Interactive parameter collection.

Commands accept their parameters as flags; anything required that was not
supplied is asked for interactively.  The question-asking callable is
injectable so tests can answer from a fixed mapping instead of a terminal.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from rich.prompt import Confirm, Prompt

from .utils import ButterError, console, print_warning


class PromptCancelled(ButterError):
    """Raised when the user aborts a prompt or declines a confirmation."""


@dataclass(frozen=True)
class PromptField:
    """One parameter a command may need to ask for."""

    name: str
    description: str
    required: bool = False
    message: str | None = None
    default: str | None = None
    password: bool = False


Asker = Callable[[PromptField], "str | None"]
Confirmer = Callable[[str, bool], bool]


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

MATERIAL_SCHEMA: tuple[PromptField, ...] = (
    PromptField("name", "Material name:", required=True, message="Material name is required"),
    PromptField("group", "Group name:"),
    PromptField("style", "Style sheet name:"),
    PromptField("dna", "DNA ID:"),
)

STYLE_SCHEMA: tuple[PromptField, ...] = (
    PromptField("name", "Style name:", required=True, message="Style name is required"),
)

TEMPLATE_SCHEMA: tuple[PromptField, ...] = (
    PromptField("name", "Template name:", required=True, message="Template name is required"),
)

PAGE_SCHEMA: tuple[PromptField, ...] = (
    PromptField("url", "Page URL:", required=True, message="Page URL is required"),
    PromptField("label", "Page label:", required=True, message="Page label is required"),
)

SET_SCHEMA: tuple[PromptField, ...] = (
    PromptField("key", "Configuration key:", required=True, message="Key is required"),
    PromptField("value", "Configuration value:", required=True, message="Value is required"),
)

INSTALL_SCHEMA: tuple[PromptField, ...] = (
    PromptField("username", "Username:"),
    PromptField("password", "Password:", password=True),
)

EJECT_SCHEMA: tuple[PromptField, ...] = (
    PromptField("path", "Eject path:", required=True, message="Eject path is required"),
)


# ---------------------------------------------------------------------------
# Terminal implementations
# ---------------------------------------------------------------------------


def ask_in_terminal(field: PromptField) -> str | None:
    return Prompt.ask(
        f"  > [yellow]{field.description}[/yellow]",
        console=console,
        default=field.default,
        password=field.password,
        show_default=field.default is not None,
    )


def confirm_in_terminal(question: str, default: bool) -> bool:
    return Confirm.ask(f"  > [yellow]{question}[/yellow]", console=console, default=default)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_missing(
    schema: Sequence[PromptField],
    supplied: Mapping[str, Any],
    ask: Asker | None = None,
) -> dict[str, Any]:
    """Return *supplied* completed with answers for every missing field.

    A field counts as supplied when its value is not ``None`` (required
    fields must also be non-empty).  Required fields are asked again until
    answered; optional ones may be left blank, yielding ``None``.

    Raises:
        PromptCancelled: If the user interrupts a prompt.
    """
    ask = ask or ask_in_terminal
    params = {key: value for key, value in supplied.items() if value is not None}

    for field in schema:
        value = params.get(field.name)
        if value is not None and (value != "" or not field.required):
            continue
        params[field.name] = _ask_field(field, ask)

    return params


def confirm(question: str, default: bool = False, ask: Confirmer | None = None) -> bool:
    """Ask a yes/no question.

    Raises:
        PromptCancelled: If the user interrupts the prompt.
    """
    ask = ask or confirm_in_terminal
    try:
        return bool(ask(question, default))
    except (EOFError, KeyboardInterrupt) as exc:
        raise PromptCancelled("Cancelled") from exc


def _ask_field(field: PromptField, ask: Asker) -> str | None:
    while True:
        try:
            answer = ask(field)
        except (EOFError, KeyboardInterrupt) as exc:
            raise PromptCancelled("Cancelled") from exc

        answer = (answer or "").strip()
        if answer:
            return answer
        if not field.required:
            return field.default
        print_warning(field.message or f"{field.name} is required")
