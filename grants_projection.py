"""
Grant District Map - projection and viewport fitting
Albers USA reference projection (lower 48 + Alaska/Hawaii insets) and
the scale/translate fit of a boundary collection into the canvas
"""
import logging
from dataclasses import dataclass

import numpy as np

from grants_config import HEIGHT, WIDTH

logger = logging.getLogger(__name__)

# Default scale of the Albers USA projection, used when a collection has no extent
DEFAULT_SCALE = 1070.0
EPSILON = 1e-12
MARGIN = 0.95

# name: (rotate lon, parallels, centre, relative scale, offset)
ALBERS_PARTS = {
    'lower48': (96.0, (29.5, 45.5), (-0.6, 38.7), 1.0, (0.0, 0.0)),
    'alaska': (154.0, (55.0, 65.0), (-2.0, 58.5), 0.35, (-0.307, 0.201)),
    'hawaii': (157.0, (8.0, 18.0), (-3.0, 19.9), 1.0, (-0.205, 0.212)),
}


def _conic_equal_area(lam, phi, parallels):
    phi0, phi1 = np.radians(parallels)
    sy0 = np.sin(phi0)
    n = (sy0 + np.sin(phi1)) / 2
    c = 1 + sy0 * (2 * n - sy0)
    r0 = np.sqrt(c) / n
    r = np.sqrt(np.maximum(c - 2 * n * np.sin(phi), 0)) / n
    return r * np.sin(lam * n), r0 - r * np.cos(lam * n)


def _project_part(lon, lat, part):
    rotate, parallels, (clon, clat), rel_scale, (ox, oy) = ALBERS_PARTS[part]
    # Rotate and wrap longitudes into [-180, 180)
    lam = np.radians((lon + rotate + 180.0) % 360.0 - 180.0)
    phi = np.radians(lat)
    x, y = _conic_equal_area(lam, phi, parallels)
    cx, cy = _conic_equal_area(np.radians(clon), np.radians(clat), parallels)
    # Screen y grows downwards
    return rel_scale * (x - cx) + ox, -rel_scale * (y - cy) + oy


def project_points(points):
    """Project (lon, lat) pairs to unscaled Albers USA coordinates (N x 2 array)."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    lon, lat = pts[:, 0], pts[:, 1]

    alaska = (lat >= 50) & ((lon <= -129) | (lon >= 170))
    hawaii = (lat >= 15) & (lat <= 24) & (lon >= -162) & (lon <= -152)
    lower48 = ~(alaska | hawaii)

    out = np.empty_like(pts)
    for part, mask in (('lower48', lower48), ('alaska', alaska), ('hawaii', hawaii)):
        if mask.any():
            x, y = _project_part(lon[mask], lat[mask], part)
            out[mask, 0] = x
            out[mask, 1] = y
    return out


def iter_rings(geometry):
    """Every linear ring of a Polygon or MultiPolygon."""
    if not geometry:
        return
    gtype = geometry.get('type')
    coords = geometry.get('coordinates') or []
    if gtype == 'Polygon':
        yield from coords
    elif gtype == 'MultiPolygon':
        for polygon in coords:
            yield from polygon


@dataclass(frozen=True)
class ViewportTransform:
    scale: float
    translate_x: float
    translate_y: float

    def apply(self, projected):
        """Reference coordinates -> canvas pixels."""
        projected = np.asarray(projected, dtype=float).reshape(-1, 2)
        return projected * self.scale + np.array([self.translate_x, self.translate_y])


def collection_bounds(features):
    """Bounding box ((x0, y0), (x1, y1)) of projected coordinates, or None if empty."""
    chunks = []
    for feature in features:
        for ring in iter_rings(feature.get('geometry')):
            if len(ring):
                chunks.append(project_points([p[:2] for p in ring]))
    if not chunks:
        return None

    pts = np.vstack(chunks)
    pts = pts[np.isfinite(pts).all(axis=1)]
    if not len(pts):
        return None
    return tuple(pts.min(axis=0)), tuple(pts.max(axis=0))


def fit(collection, canvas_w=WIDTH, canvas_h=HEIGHT):
    """Scale and translate that fit the collection in the canvas with a 5% margin."""
    if canvas_w <= 0 or canvas_h <= 0:
        raise ValueError(f"Canvas size must be positive, got {canvas_w}x{canvas_h}")

    bounds = collection_bounds(collection)
    if bounds is None:
        logger.warning("Nothing to fit, using default scale %s", DEFAULT_SCALE)
        return ViewportTransform(DEFAULT_SCALE, canvas_w / 2, canvas_h / 2)

    (x0, y0), (x1, y1) = bounds
    extent = max((x1 - x0) / canvas_w, (y1 - y0) / canvas_h)
    if not np.isfinite(extent) or extent < EPSILON:
        logger.warning("Degenerate bounds %s, using default scale %s", bounds, DEFAULT_SCALE)
        scale = DEFAULT_SCALE
    else:
        scale = MARGIN / extent

    cx, cy = (x0 + x1) / 2, (y0 + y1) / 2
    transform = ViewportTransform(
        float(scale),
        float(canvas_w / 2 - scale * cx),
        float(canvas_h / 2 - scale * cy),
    )
    logger.debug("Fitted viewport: %s", transform)
    return transform


def path_data(geometry, transform):
    """SVG path 'd' attribute for a polygon geometry under a viewport transform."""
    parts = []
    for ring in iter_rings(geometry):
        if not len(ring):
            continue
        pts = transform.apply(project_points([p[:2] for p in ring]))
        pts = pts[np.isfinite(pts).all(axis=1)]
        if not len(pts):
            continue
        head, tail = pts[0], pts[1:]
        seg = f"M{head[0]:.1f},{head[1]:.1f}"
        seg += ''.join(f"L{x:.1f},{y:.1f}" for x, y in tail)
        parts.append(seg + 'Z')
    return ''.join(parts)
