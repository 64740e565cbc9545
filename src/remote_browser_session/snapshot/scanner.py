"""In-page scan for elements a user could actually click or type into."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, TypeAdapter

from ..config import ScannerConfig
from ..models import SnapshotElement

LOGGER = logging.getLogger(__name__)

DOM_REF_PREFIX = "dom-"
DOM_REF_ATTRIBUTE = "data-fastmcp-ref"

CANDIDATE_SELECTORS = (
    "a[href]",
    "button",
    "input",
    "select",
    "textarea",
    "option",
    ".radio-item",
    "[role]",
    "[tabindex]",
    "[onclick]",
    "[data-spm-click]",
    "[data-click]",
    "[data-action]",
    "[data-spm-anchor-id]",
    "[aria-pressed]",
    "[aria-label]",
    "[aria-haspopup]",
)
INTERACTIVE_TAGS = ("a", "input", "button", "select", "textarea", "option")
INTERACTIVE_ROLES = ("button", "link", "radio", "option", "tab", "checkbox", "menuitem")
INTERACTIVE_CLASSES = ("radio-item",)
CLICK_ATTRIBUTES = (
    "onclick",
    "data-click",
    "data-action",
    "data-spm-click",
    "data-spm-anchor-id",
)


def is_dom_ref(ref: str) -> bool:
    """Return whether ``ref`` carries the DOM-scan prefix."""

    return ref.strip().startswith(DOM_REF_PREFIX)


@dataclass(frozen=True)
class ScanOptions:
    """Inputs handed to the in-page script; every heuristic list lives here."""

    selectors: tuple[str, ...] = CANDIDATE_SELECTORS
    tags: tuple[str, ...] = INTERACTIVE_TAGS
    roles: tuple[str, ...] = INTERACTIVE_ROLES
    classes: tuple[str, ...] = INTERACTIVE_CLASSES
    attributes: tuple[str, ...] = CLICK_ATTRIBUTES
    ref_attribute: str = DOM_REF_ATTRIBUTE
    ref_prefix: str = DOM_REF_PREFIX
    max_name_length: int = 80

    @classmethod
    def from_config(cls, config: ScannerConfig) -> "ScanOptions":
        return cls(ref_attribute=config.ref_attribute, max_name_length=config.max_name_length)

    def to_script_arg(self) -> dict[str, Any]:
        return {
            key: list(value) if isinstance(value, tuple) else value
            for key, value in asdict(self).items()
        }


class DomScanEntry(BaseModel):
    """Shape of one record returned by the in-page script."""

    ref: str
    role: str = ""
    name: str = ""
    url: str = ""

    def to_element(self) -> SnapshotElement:
        return SnapshotElement(ref=self.ref, role=self.role, name=self.name, url=self.url or None)


_ENTRIES = TypeAdapter(List[DomScanEntry])

# Runs inside the page. ``opts`` is ScanOptions.to_script_arg().
SCAN_SCRIPT = """
(opts) => {
  const doc = document;
  const win = window;
  const refAttr = opts.ref_attribute;
  const collapse = (text) => (text || '').replace(/\\s+/g, ' ').trim();

  let counter = 0;
  for (const tagged of doc.querySelectorAll(`[${refAttr}]`)) {
    const value = tagged.getAttribute(refAttr) || '';
    if (value.startsWith(opts.ref_prefix)) {
      const n = parseInt(value.slice(opts.ref_prefix.length), 10);
      if (!Number.isNaN(n) && n > counter) {
        counter = n;
      }
    }
  }

  const textOf = (node) => collapse(node.innerText || node.textContent || '');

  const labelledBy = (el) =>
    (el.getAttribute('aria-labelledby') || '')
      .split(/\\s+/)
      .filter(Boolean)
      .map((id) => {
        const target = doc.getElementById(id);
        return target ? textOf(target) : '';
      })
      .filter(Boolean)
      .join(' ');

  const labelFor = (el) => {
    const id = typeof el.id === 'string' ? el.id.trim() : '';
    if (!id) {
      return '';
    }
    const escaped = win.CSS && win.CSS.escape ? win.CSS.escape(id) : id;
    const label = doc.querySelector(`label[for="${escaped}"]`);
    return label ? textOf(label) : '';
  };

  const isIntrinsic = (el) => {
    if (opts.tags.includes((el.tagName || '').toLowerCase())) {
      return true;
    }
    if (opts.roles.includes((el.getAttribute('role') || '').toLowerCase())) {
      return true;
    }
    if (opts.classes.some((cls) => el.classList.contains(cls))) {
      return true;
    }
    return opts.attributes.some((attr) => el.hasAttribute(attr));
  };

  const isClickable = (el) => {
    const style = win.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden' || style.pointerEvents === 'none') {
      return false;
    }
    const rect = el.getBoundingClientRect();
    if (!rect || rect.width === 0 || rect.height === 0) {
      return false;
    }
    const x = rect.left + rect.width / 2;
    const y = rect.top + rect.height / 2;
    if (x < 0 || x > win.innerWidth || y < 0 || y > win.innerHeight) {
      return false;
    }
    const top = doc.elementFromPoint(x, y);
    if (top && (top === el || top.contains(el) || el.contains(top))) {
      return true;
    }
    return isIntrinsic(el);
  };

  const nameOf = (el) => {
    let name =
      collapse(el.getAttribute('aria-label')) ||
      labelledBy(el) ||
      collapse(el.getAttribute('title')) ||
      collapse(el.getAttribute('alt')) ||
      collapse(el.getAttribute('placeholder')) ||
      labelFor(el) ||
      textOf(el);
    if (name.length > opts.max_name_length) {
      name = `${name.slice(0, opts.max_name_length - 3)}...`;
    }
    return name;
  };

  const elements = [];
  for (const el of doc.querySelectorAll(opts.selectors.join(','))) {
    if (!isClickable(el)) {
      continue;
    }
    const name = nameOf(el);
    const url = (typeof el.href === 'string' && el.href) || el.getAttribute('data-url') || '';
    if (!name && !url) {
      continue;
    }
    if (!el.getAttribute(refAttr)) {
      counter += 1;
      el.setAttribute(refAttr, `${opts.ref_prefix}${counter}`);
    }
    elements.push({
      ref: el.getAttribute(refAttr),
      role: el.getAttribute('role') || (el.tagName || '').toLowerCase(),
      name,
      url,
    });
  }
  return elements;
}
"""


class ClickabilityScanner:
    """Run the clickability heuristics inside a page and type the results."""

    def __init__(self, options: Optional[ScanOptions] = None) -> None:
        self._options = options or ScanOptions()

    @property
    def ref_attribute(self) -> str:
        return self._options.ref_attribute

    async def scan(self, page: Any) -> List[SnapshotElement]:
        raw = await page.evaluate(SCAN_SCRIPT, self._options.to_script_arg())
        entries = _ENTRIES.validate_python(raw or [])
        LOGGER.debug("DOM scan found %d interactive elements", len(entries))
        return [entry.to_element() for entry in entries]
