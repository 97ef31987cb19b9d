"""
Grant District Map - render pipeline
Clear-then-redraw of boundary shapes onto an in-memory SVG canvas,
with hover/click hooks attached per shape
"""
import html
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from grants_config import HEIGHT, STATE_FILL, STROKE_COLOR, WIDTH
from grants_geometry import feature_label
from grants_projection import ViewportTransform, path_data

logger = logging.getLogger(__name__)


def default_fill(feature):
    props = feature.get('properties') or {}
    return props.get('fill') or STATE_FILL


@dataclass
class RenderStyle:
    """How shapes look and which hooks they call."""
    class_name: str = 'unit'
    fill_of: Callable = default_fill
    stroke_color: str = STROKE_COLOR
    on_hover: Optional[Callable] = None      # (shape, page_x, page_y)
    on_unhover: Optional[Callable] = None    # (shape)
    on_select: Optional[Callable] = None     # (feature)


class Shape:
    """One drawn feature and its event listeners."""

    def __init__(self, feature, d, fill, stroke, class_name):
        self.feature = feature
        self.d = d
        self.fill = fill
        self.original_fill = fill
        self.stroke = stroke
        self.class_name = class_name
        self.listeners = {}

    @property
    def label(self):
        return feature_label(self.feature)

    def on(self, event, handler):
        if handler is not None:
            self.listeners[event] = handler

    def detach(self):
        self.listeners.clear()

    def dispatch(self, event, *args):
        handler = self.listeners.get(event)
        if handler is not None:
            handler(*args)

    # Host pointer forwarding
    def pointer_enter(self, page_x, page_y):
        self.dispatch('mouseover', self, page_x, page_y)

    def pointer_leave(self):
        self.dispatch('mouseout', self)

    def click(self):
        self.dispatch('click', self.feature)

    def __repr__(self):
        return f"Shape({self.label!r}, fill={self.fill!r})"


class Canvas:
    """Fixed-size drawing surface holding the current shape set."""

    def __init__(self, width=WIDTH, height=HEIGHT):
        self.width = width
        self.height = height
        self.transform = ViewportTransform(1.0, width / 2, height / 2)
        self.shapes = []
        self.render_count = 0

    def clear(self):
        for shape in self.shapes:
            shape.detach()
        self.shapes = []

    def render(self, features, style):
        """Replace everything drawn with one shape per feature."""
        self.clear()
        for feature in features:
            fill = style.fill_of(feature)
            shape = Shape(
                feature,
                path_data(feature.get('geometry'), self.transform),
                fill,
                style.stroke_color,
                style.class_name,
            )
            shape.on('mouseover', style.on_hover)
            shape.on('mouseout', style.on_unhover)
            shape.on('click', style.on_select)
            self.shapes.append(shape)
        self.render_count += 1
        logger.debug("Rendered %d shapes (render #%d)", len(self.shapes), self.render_count)

    def find(self, unit_id):
        """First shape whose feature id matches."""
        for shape in self.shapes:
            props = shape.feature.get('properties') or {}
            if str(props.get('id')) == str(unit_id):
                return shape
        return None

    def to_svg(self):
        paths = []
        for shape in self.shapes:
            paths.append(
                f'    <path class="{html.escape(shape.class_name)}" d="{shape.d}" '
                f'fill="{html.escape(str(shape.fill))}" stroke="{html.escape(shape.stroke)}">'
                f'<title>{html.escape(shape.label)}</title></path>'
            )
        body = '\n'.join(paths)
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" height="{self.height}">\n'
            f'  <g class="map-group">\n{body}\n  </g>\n'
            f'</svg>\n'
        )
