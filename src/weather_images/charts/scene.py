"""Declarative vector scene serialized to SVG markup."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
FONT_FAMILY = "system-ui, sans-serif"


def _fmt(value: float) -> str:
    # Compact, stable number formatting so identical scenes give identical bytes
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: str
    stroke: Optional[str] = None
    stroke_width: float = 1
    rx: float = 0

    def to_element(self) -> ET.Element:
        attrs = {
            "x": _fmt(self.x),
            "y": _fmt(self.y),
            "width": _fmt(self.width),
            "height": _fmt(self.height),
            "fill": self.fill,
        }
        if self.rx:
            attrs["rx"] = _fmt(self.rx)
        if self.stroke:
            attrs["stroke"] = self.stroke
            attrs["stroke-width"] = _fmt(self.stroke_width)
        return ET.Element("rect", attrs)


@dataclass
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    stroke_width: float = 1

    def to_element(self) -> ET.Element:
        return ET.Element("line", {
            "x1": _fmt(self.x1),
            "y1": _fmt(self.y1),
            "x2": _fmt(self.x2),
            "y2": _fmt(self.y2),
            "stroke": self.stroke,
            "stroke-width": _fmt(self.stroke_width),
        })


@dataclass
class Text:
    x: float
    y: float
    content: str
    fill: str = "#aaa"
    font_size: int = 11
    anchor: str = "start"

    def to_element(self) -> ET.Element:
        attrs = {
            "x": _fmt(self.x),
            "y": _fmt(self.y),
            "fill": self.fill,
            "font-size": f"{self.font_size}px",
            "font-family": FONT_FAMILY,
        }
        if self.anchor != "start":
            attrs["text-anchor"] = self.anchor
        element = ET.Element("text", attrs)
        element.text = self.content
        return element


@dataclass
class LinearGradient:
    """Horizontal gradient definition referenced by ``url(#id)``."""
    id: str
    stops: List[Tuple[float, str]] = field(default_factory=list)

    def to_element(self) -> ET.Element:
        element = ET.Element("linearGradient", {"id": self.id, "x1": "0%", "x2": "100%", "y1": "0", "y2": "0"})
        for offset, color in self.stops:
            ET.SubElement(element, "stop", {"offset": f"{_fmt(offset * 100)}%", "stop-color": color})
        return element

    @property
    def url(self) -> str:
        return f"url(#{self.id})"


Shape = Union[Rect, Line, Text, "Group"]


@dataclass
class Group:
    """Shapes translated by (dx, dy)."""
    dx: float = 0
    dy: float = 0
    children: List[Shape] = field(default_factory=list)

    def add(self, shape: Shape) -> Shape:
        self.children.append(shape)
        return shape

    def to_element(self) -> ET.Element:
        element = ET.Element("g")
        if self.dx or self.dy:
            element.set("transform", f"translate({_fmt(self.dx)},{_fmt(self.dy)})")
        for child in self.children:
            element.append(child.to_element())
        return element


@dataclass
class Scene:
    """A fixed-size canvas of shapes."""
    width: int
    height: int
    background: str = "#1a1a2e"
    gradients: List[LinearGradient] = field(default_factory=list)
    children: List[Shape] = field(default_factory=list)

    def add(self, shape: Shape) -> Shape:
        self.children.append(shape)
        return shape

    def to_svg(self) -> str:
        """Serialize the scene to standalone SVG markup."""
        root = ET.Element("svg", {
            "xmlns": SVG_NAMESPACE,
            "width": str(self.width),
            "height": str(self.height),
            "viewBox": f"0 0 {self.width} {self.height}",
        })
        if self.gradients:
            defs = ET.SubElement(root, "defs")
            for gradient in self.gradients:
                defs.append(gradient.to_element())
        root.append(Rect(0, 0, self.width, self.height, fill=self.background).to_element())
        for child in self.children:
            root.append(child.to_element())
        return ET.tostring(root, encoding="unicode")
