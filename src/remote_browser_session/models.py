"""Shared models used across the remote browser session tool."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class SnapshotElement:
    """One interactive element listed by a snapshot.

    Refs are only meaningful until the next navigation or snapshot capture on the
    same session.
    """

    ref: str
    role: str
    name: str = ""
    url: Optional[str] = None


class SnapshotResult(BaseModel):
    """Payload returned by a snapshot capture."""

    url: str
    title: str
    aria_snapshot: str
    dom_snapshot: Optional[str] = None


class RequestRecord(BaseModel):
    """A captured network request and, when answered, its response status."""

    method: str
    url: str
    status: Optional[int] = None
    status_text: Optional[str] = None


class BrowserActionType(str, enum.Enum):
    """Enumerated browser commands that can be executed against a session."""

    NAVIGATE = "navigate"
    GO_BACK = "go_back"
    GO_FORWARD = "go_forward"
    SCROLL = "scroll"
    CLICK = "click"
    TYPE = "type"
    SCROLL_TO_ELEMENT = "scroll_to_element"
    WAIT_FOR_ELEMENT = "wait_for_element"
    SCREENSHOT = "screenshot"
    GET_HTML = "get_html"
    GET_TEXT = "get_text"
    SNAPSHOT = "snapshot"
    FILL_FORM = "fill_form"
    NETWORK_REQUESTS = "network_requests"
    CLOSE_SESSION = "close_session"


class FormFieldType(str, enum.Enum):
    """Kinds of form controls understood by the fill-form command."""

    TEXTBOX = "textbox"
    SLIDER = "slider"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    COMBOBOX = "combobox"


class FormField(BaseModel):
    """A single field to fill, addressed by a snapshot ref."""

    name: str
    type: FormFieldType
    ref: str
    value: str


class BrowserAction(BaseModel):
    """An instruction for the browser session to execute."""

    type: BrowserActionType
    url: Optional[str] = None
    element: Optional[str] = Field(
        default=None,
        description="Human-readable description of the target element, used in errors.",
    )
    ref: Optional[str] = None
    selector: Optional[str] = None
    text: Optional[str] = None
    submit: bool = False
    full_page: bool = False
    filtered: bool = True
    timeout: Optional[float] = Field(default=None, description="Optional timeout in seconds")
    fields: list[FormField] = Field(default_factory=list)
    domain: Optional[str] = Field(
        default=None,
        description="Domain session to address; defaults to the current domain.",
    )


class CommandResult(BaseModel):
    """Outcome of a browser command."""

    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    binary: Optional[bytes] = Field(default=None, repr=False)
