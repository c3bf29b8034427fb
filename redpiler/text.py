"""Chat text components and conversion from legacy '&' formatting codes."""

from __future__ import annotations

import dataclasses
import enum
import json
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Optional, Union

_URL_RE = re.compile(
    r"[a-zA-Z0-9§\-:/]+\.[a-zA-Z/0-9§\-:_#]+(?:\.[a-zA-Z/0-9.§\-:#?+=_]+)?"
)


def _is_valid_hex(ch: str) -> bool:
    return unicodedata.category(ch) in ("Nd", "Nl", "No") or ch in "abcdefABCDEF"


class ColorCode(enum.Enum):
    BLACK = "black"
    DARK_BLUE = "dark_blue"
    DARK_GREEN = "dark_green"
    DARK_AQUA = "dark_aqua"
    DARK_RED = "dark_red"
    DARK_PURPLE = "dark_purple"
    GOLD = "gold"
    GRAY = "gray"
    DARK_GRAY = "dark_gray"
    BLUE = "blue"
    GREEN = "green"
    AQUA = "aqua"
    RED = "red"
    LIGHT_PURPLE = "light_purple"
    YELLOW = "yellow"
    WHITE = "white"
    OBFUSCATED = "obfuscated"
    BOLD = "bold"
    STRIKETHROUGH = "strikethrough"
    UNDERLINE = "underline"
    ITALIC = "italic"
    RESET = "reset"

    @classmethod
    def parse(cls, code: str) -> Optional[ColorCode]:
        """The color or format for a legacy code character, or None."""
        return _CODES.get(code)

    def is_formatting(self) -> bool:
        return self in _FORMATTING


_CODES = dict(zip("0123456789abcdefklmnor", ColorCode))

_FORMATTING = frozenset(
    {
        ColorCode.OBFUSCATED,
        ColorCode.BOLD,
        ColorCode.STRIKETHROUGH,
        ColorCode.UNDERLINE,
        ColorCode.ITALIC,
        ColorCode.RESET,
    }
)

_STYLE_FLAGS = {
    ColorCode.BOLD: "bold",
    ColorCode.ITALIC: "italic",
    ColorCode.UNDERLINE: "underlined",
    ColorCode.STRIKETHROUGH: "strikethrough",
    ColorCode.OBFUSCATED: "obfuscated",
}

TextColor = Union[str, ColorCode]
"""Either a '#rrggbb' hex string or a named color code."""


@dataclass(frozen=True)
class ClickEvent:
    value: str
    action: str = "open_url"


@dataclass
class TextComponent:
    text: str = ""
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    strikethrough: bool = False
    obfuscated: bool = False
    color: Optional[TextColor] = None
    click_event: Optional[ClickEvent] = None
    extra: list[TextComponent] = field(default_factory=list)

    def _copy(self, **changes: Any) -> TextComponent:
        changes.setdefault("extra", list(self.extra))
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_legacy_text(cls, message: str) -> list[TextComponent]:
        """Split text with '&' codes and '#rrggbb' colors into components.

        Anything that looks like a URL becomes its own component that opens it.
        """
        components: list[TextComponent] = []
        current = cls()
        chars = iter(message)
        for ch in chars:
            if ch == "&":
                code = next(chars, None)
                if code is not None:
                    color = ColorCode.parse(code)
                    if color is not None:
                        if color.is_formatting() and current.text:
                            components.append(current._copy())
                            current.text = ""
                        flag = _STYLE_FLAGS.get(color)
                        if flag is not None:
                            setattr(current, flag, True)
                        else:
                            components.append(current)
                            current = cls(color=color)
                        continue
                    current.text += ch + code
                    continue
            if ch == "#":
                hex_code = ch
                complete = True
                for _ in range(6):
                    nxt = next(chars, None)
                    if nxt is None:
                        complete = False
                        break
                    hex_code += nxt
                    if not _is_valid_hex(nxt):
                        complete = False
                        break
                if not complete:
                    current.text += hex_code
                    continue
                components.append(current)
                current = cls(color=hex_code)
                continue
            current.text += ch
        components.append(current)

        result: list[TextComponent] = []
        for component in components:
            text = component.text
            last = 0
            for match in _URL_RE.finditer(text):
                start, matched = match.start(), match.group()
                if last != start:
                    result.append(component._copy(text=text[last:start]))
                result.append(
                    component._copy(text=matched, click_event=ClickEvent(matched))
                )
                last = match.end()
            if last < len(text):
                result.append(component._copy(text=text[last:]))
        return result

    def to_json_dict(self) -> dict[str, Any]:
        """The JSON object form, leaving out false flags and empty fields."""
        out: dict[str, Any] = {"text": self.text}
        for name in ("bold", "italic", "underlined", "strikethrough", "obfuscated"):
            if getattr(self, name):
                out[name] = True
        if self.color is not None:
            out["color"] = (
                self.color.value if isinstance(self.color, ColorCode) else self.color
            )
        if self.click_event is not None:
            out["clickEvent"] = {
                "action": self.click_event.action,
                "value": self.click_event.value,
            }
        if self.extra:
            out["extra"] = [child.to_json_dict() for child in self.extra]
        return out

    def encode_json(self) -> str:
        return json.dumps(self.to_json_dict(), separators=(",", ":"), ensure_ascii=False)

    def is_text_only(self) -> bool:
        return not (
            self.bold
            or self.italic
            or self.underlined
            or self.strikethrough
            or self.obfuscated
            or self.extra
            or self.color is not None
            or self.click_event is not None
        )


class TextComponentBuilder:
    """Chainable construction of a single text component."""

    def __init__(self, text: str) -> None:
        self._component = TextComponent(text=text)

    def color(self, color: TextColor) -> TextComponentBuilder:
        self._component.color = color
        return self

    def color_code(self, color: ColorCode) -> TextComponentBuilder:
        self._component.color = color
        return self

    def strikethrough(self, val: bool) -> TextComponentBuilder:
        self._component.strikethrough = val
        return self

    def finish(self) -> TextComponent:
        return self._component