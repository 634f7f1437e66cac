"""
presenter.py — Map a computed value plus config to a render instruction.

Pure logic: nothing here touches a display. The host draws the returned
`RenderInstruction` and honours its `visible` flag.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from config import (
    ICON_TRAFFIC_DOWN,
    ICON_TRAFFIC_UP,
    ICON_TRAFFIC_UPDOWN,
    TEXT_SIZE_MULTI_PX,
    TEXT_SIZE_SINGLE_PX,
)
from statusbar.clock_formatter import StyledText
from statusbar.config_policy import ClockConfig, FormatConfig
from statusbar.rate_calculator import TrafficRates


# ── Data model ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class StyledSpan:
    """Styling for text[start:end]; None fields inherit the instruction defaults."""
    start: int
    end: int
    color: Optional[int] = None
    relative_size: Optional[float] = None


@dataclass(frozen=True)
class RenderInstruction:
    text: str
    spans: Tuple[StyledSpan, ...]
    text_color: int
    icon_id: Optional[str]
    visible: bool
    text_size_px: Optional[int] = None
    icon_color: Optional[int] = None

    @property
    def multi_line(self) -> bool:
        return "\n" in self.text


def hex_color(argb: int) -> str:
    """'#RRGGBB' for an ARGB colour; alpha is dropped."""
    return "#%06X" % (argb & 0xFFFFFF)


def to_html(instruction: RenderInstruction) -> str:
    """Render coloured spans as HTML, one <br /> per line break."""
    parts = []
    cursor = 0
    for span in instruction.spans:
        if span.start > cursor:
            parts.append(instruction.text[cursor:span.start])
        style = []
        if span.color is not None:
            style.append(f"color:{hex_color(span.color)}")
        if span.relative_size is not None:
            style.append(f"font-size:{span.relative_size:.0%}")
        chunk = instruction.text[span.start:span.end]
        parts.append(f"<span style='{';'.join(style)}'>{chunk}</span>")
        cursor = span.end
    parts.append(instruction.text[cursor:])
    return "".join(parts).replace("\n", "<br />")


# ── Traffic ──────────────────────────────────────────────────────────

def traffic_icon(config: FormatConfig) -> Optional[str]:
    """Pick the indicator icon for the enabled directions."""
    if not config.show_icon:
        return None
    if config.show_up and config.show_down:
        return ICON_TRAFFIC_UPDOWN
    if config.show_down:
        return ICON_TRAFFIC_DOWN
    return ICON_TRAFFIC_UP


def present_traffic(
    rates: TrafficRates,
    config: FormatConfig,
    previous_text: Optional[str] = None,
) -> RenderInstruction:
    """Build the traffic indicator: upload line, then download line.

    With hide_when_idle set, a text identical to *previous_text* yields an
    invisible instruction so the host blanks the indicator.
    """
    lines = []
    if config.show_up:
        label = " U" if config.show_text else ""
        lines.append((rates.up.text + label, config.color_up))
    if config.show_down:
        label = " D" if config.show_text else ""
        lines.append((rates.down.text + label, config.color_down))

    spans = []
    offset = 0
    for line, color in lines:
        spans.append(StyledSpan(start=offset, end=offset + len(line), color=color))
        offset += len(line) + 1
    text = "\n".join(line for line, _ in lines)

    if not lines:
        visible = False
    elif config.hide_when_idle and previous_text is not None and text == previous_text:
        visible = False
    else:
        visible = True

    return RenderInstruction(
        text=text,
        spans=tuple(spans),
        text_color=lines[0][1] if lines else config.color_up,
        icon_id=traffic_icon(config),
        visible=visible,
        text_size_px=TEXT_SIZE_MULTI_PX if len(lines) > 1 else TEXT_SIZE_SINGLE_PX,
        icon_color=config.color_icon if config.show_icon else None,
    )


# ── Clock ────────────────────────────────────────────────────────────

def present_clock(value: StyledText, config: ClockConfig) -> RenderInstruction:
    spans = tuple(
        StyledSpan(start=start, end=end, relative_size=size)
        for start, end, size in value.spans()
    )
    return RenderInstruction(
        text=value.text,
        spans=spans,
        text_color=config.color,
        icon_id=None,
        visible=True,
    )


def present(
    value: Union[TrafficRates, StyledText],
    config: Union[FormatConfig, ClockConfig],
    previous_text: Optional[str] = None,
) -> RenderInstruction:
    """Dispatch to the traffic or clock presenter based on *value*."""
    if isinstance(value, TrafficRates):
        if not isinstance(config, FormatConfig):
            raise TypeError("traffic rates need a FormatConfig")
        return present_traffic(value, config, previous_text)
    if isinstance(value, StyledText):
        if not isinstance(config, ClockConfig):
            raise TypeError("clock text needs a ClockConfig")
        return present_clock(value, config)
    raise TypeError(f"cannot present {type(value).__name__}")


def append_history(
    history: List[Dict[str, object]],
    refreshed: Optional[RenderInstruction],
    rates: Optional[TrafficRates],
    when: str,
    limit: int,
) -> List[Dict[str, object]]:
    """Add one chart row per computed sample and keep the newest *limit* rows.

    *refreshed* is what the monitor's tick returned; a skipped tick or a
    plain rerun gives None and the history is returned unchanged.
    """
    if refreshed is None or rates is None:
        return history
    row = {"time": when, "up_bps": rates.up.speed, "down_bps": rates.down.speed}
    return (history + [row])[-limit:]
