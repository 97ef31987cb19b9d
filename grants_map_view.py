"""
Grant District Map - map view
Holds the view state (current kind, collection, filter, tooltip, overlay)
and wires hover / click / filter events to the render pipeline
"""
import logging

from grants_config import (
    HEIGHT, HIGHLIGHT_COLOR, TOOLTIP_HEIGHT, TOOLTIP_OFFSET_X,
    TOOLTIP_OFFSET_Y, TOOLTIP_WIDTH, WIDTH,
)
from grants_geometry import GeometryStore, check_kind, feature_label, load_geometry
from grants_index import parse_district
from grants_overlay import OverlayController, SelectionContext
from grants_projection import fit
from grants_render import Canvas, RenderStyle

logger = logging.getLogger(__name__)


class Tooltip:
    """Label box that follows the pointer and stays inside the viewport."""

    def __init__(self, viewport_w=WIDTH, viewport_h=HEIGHT,
                 width=TOOLTIP_WIDTH, height=TOOLTIP_HEIGHT):
        self.viewport_w = viewport_w
        self.viewport_h = viewport_h
        self.width = width
        self.height = height
        self.visible = False
        self.text = ''
        self.x = 0
        self.y = 0

    def show(self, text, page_x, page_y):
        x = page_x + TOOLTIP_OFFSET_X
        y = page_y + TOOLTIP_OFFSET_Y
        self.x = max(0, min(x, self.viewport_w - self.width))
        self.y = max(0, min(y, self.viewport_h - self.height))
        self.text = text
        self.visible = True

    def hide(self):
        self.visible = False


def selection_from_feature(feature):
    """SelectionContext for a clicked feature, or None if its data is unusable."""
    props = feature.get('properties') if feature else None
    if props is None:
        logger.error("GeoJSON properties are missing: %r", feature)
        return None

    state_cd = props.get('stateCd') or props.get('state')
    raw_district = props.get('district') or props.get('id')
    try:
        district = parse_district(raw_district)
    except ValueError:
        logger.error("Feature %r has no usable district (%r)", props.get('id'), raw_district)
        return None

    label = props.get('name') or f"{state_cd}-{district}"
    return SelectionContext(state_cd, district, props.get('id'), label)


class MapView:
    """
    One interactive map: geometry store, canvas, tooltip and drill-down overlay.

    Host entry points: toggle_map_kind, set_filter_text, handle_feature_click,
    close_overlay. Pointer events are forwarded to the canvas shapes.
    """

    def __init__(self, index, loader=load_geometry, filters=None,
                 width=WIDTH, height=HEIGHT, viewport=None):
        self.loader = loader
        self.store = GeometryStore()
        self.canvas = Canvas(width, height)
        self.tooltip = Tooltip(*(viewport or (width, height)))
        self.overlay = OverlayController(index, filters)
        self.kind = None
        self.collection = None
        self.view = []
        self._request_seq = 0
        self.style = RenderStyle(
            on_hover=self._on_hover,
            on_unhover=self._on_unhover,
            on_select=self.handle_feature_click,
        )

    @property
    def filters(self):
        return self.overlay.filters

    def set_global_filters(self, award_year=None, funding_type=None):
        """Change the drill-down scope; applies from the next click on."""
        if award_year is not None:
            self.filters.award_year = str(award_year)
        if funding_type is not None:
            self.filters.funding_type = funding_type

    # --- Filter engine ---

    def set_filter(self, text):
        self.store.filter_text = (text or '').lower()
        needle = self.store.filter_text
        features = self.collection.features if self.collection is not None else ()
        self.view = [f for f in features if needle in feature_label(f).lower()]
        self.canvas.render(self.view, self.style)

    def current_view(self):
        return list(self.view)

    def set_filter_text(self, text):
        self.set_filter(text)

    # --- Collections ---

    def show_collection(self, collection):
        """Fit the viewport to a collection and draw it under the current filter."""
        # Nothing on the view changes until fit succeeds
        transform = fit(collection, self.canvas.width, self.canvas.height)
        self.kind = collection.kind
        self.collection = collection
        self.canvas.transform = transform
        self.style.class_name = collection.kind
        self.set_filter(self.store.filter_text)

    async def toggle_map_kind(self, kind, reload=False):
        """Switch map kind; only the most recent toggle gets drawn."""
        check_kind(kind)
        self._request_seq += 1
        seq = self._request_seq

        collection = None if reload else self.store.get(kind)
        if collection is None:
            logger.info("Loading %s map...", kind)
            try:
                data = await self.loader(kind)
                collection = self.store.put(kind, data)
            except Exception:
                logger.exception("Error loading %s map data", kind)
                return False

        if seq != self._request_seq:
            logger.info("Dropping %s map, a later toggle superseded it", kind)
            return False

        try:
            self.show_collection(collection)
        except Exception:
            logger.exception("Error drawing %s map, discarding it", kind)
            self.store.drop(kind)
            return False
        return True

    # --- Interaction ---

    def _on_hover(self, shape, page_x, page_y):
        if shape.feature.get('properties') is None:
            logger.error("Hover on feature without properties: %r", shape.feature)
            return
        shape.fill = HIGHLIGHT_COLOR
        self.tooltip.show(shape.label, page_x, page_y)

    def _on_unhover(self, shape):
        if shape.feature.get('properties') is None:
            return
        shape.fill = shape.original_fill
        self.tooltip.hide()

    def handle_feature_click(self, feature):
        selection = selection_from_feature(feature)
        if selection is None:
            return None
        self.overlay.open(selection)
        return selection

    def close_overlay(self):
        self.overlay.close()

    def teardown(self):
        self.canvas.clear()
        self.tooltip.hide()
        self.overlay.close()
        self.store = GeometryStore()
        self.kind = None
        self.collection = None
        self.view = []
