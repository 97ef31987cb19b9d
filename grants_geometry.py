"""
Grant District Map - boundary collections
Download, cache, decode and normalise state / district boundaries
"""
import asyncio
import hashlib
import json
import logging

import requests

from grants_config import (
    DISTRICT_PALETTE, GEOMETRY_CACHE, GEOMETRY_URLS, MAP_KINDS,
    STATE_FILL, TOPOLOGY_OBJECT,
)

logger = logging.getLogger(__name__)

POLYGON_TYPES = ('Polygon', 'MultiPolygon')


def check_kind(kind):
    if kind not in MAP_KINDS:
        raise ValueError(f"Unknown map kind {kind!r}, expected one of {MAP_KINDS}")
    return kind


def feature_label(feature):
    """Display label: name, then id."""
    props = feature.get('properties') or {}
    name = props.get('name')
    if name not in (None, ''):
        return str(name)
    unit_id = props.get('id')
    return '' if unit_id is None else str(unit_id)


def stable_fill(unit_id, palette=DISTRICT_PALETTE):
    """Palette colour derived from the unit id (same id, same colour, every run)."""
    digest = hashlib.md5(str(unit_id).encode('utf-8')).hexdigest()
    return palette[int(digest[:8], 16) % len(palette)]


class GeoCollection:
    """Ordered, read-only set of boundary features for one map kind."""

    def __init__(self, kind, features):
        self.kind = check_kind(kind)
        self.features = tuple(features)

    def __len__(self):
        return len(self.features)

    def __iter__(self):
        return iter(self.features)

    def __repr__(self):
        return f"GeoCollection(kind={self.kind!r}, features={len(self.features)})"


# =============================================================================
# TopoJSON
# =============================================================================

def _decode_arcs(topology):
    """Absolute lon/lat arcs, undoing quantization and delta encoding."""
    transform = topology.get('transform')
    if not transform:
        return [[tuple(p[:2]) for p in arc] for arc in topology.get('arcs', [])]

    sx, sy = transform['scale']
    tx, ty = transform['translate']
    arcs = []
    for arc in topology.get('arcs', []):
        x = y = 0
        points = []
        for p in arc:
            x += p[0]
            y += p[1]
            points.append((x * sx + tx, y * sy + ty))
        arcs.append(points)
    return arcs


def _stitch_ring(indices, arcs):
    coords = []
    for i in indices:
        # Negative index means arc ~i walked backwards
        arc = arcs[i] if i >= 0 else arcs[~i][::-1]
        # Consecutive arcs share their joining point
        coords.extend(arc[1:] if coords else arc)
    return [list(c) for c in coords]


def _topology_geometries(geometry):
    if geometry.get('type') == 'GeometryCollection':
        for child in geometry.get('geometries', []):
            yield from _topology_geometries(child)
    else:
        yield geometry


def topology_features(topology, object_name=TOPOLOGY_OBJECT):
    """Decode one TopoJSON object into a list of GeoJSON features."""
    objects = topology.get('objects', {})
    if object_name not in objects:
        if not objects:
            raise ValueError("Topology has no objects")
        fallback = next(iter(objects))
        logger.warning("Topology object %r not found, using %r", object_name, fallback)
        object_name = fallback

    arcs = _decode_arcs(topology)
    features = []
    for geom in _topology_geometries(objects[object_name]):
        gtype = geom.get('type')
        if gtype == 'Polygon':
            coordinates = [_stitch_ring(ring, arcs) for ring in geom['arcs']]
        elif gtype == 'MultiPolygon':
            coordinates = [[_stitch_ring(ring, arcs) for ring in poly] for poly in geom['arcs']]
        else:
            coordinates = None

        feature = {
            'type': 'Feature',
            'properties': geom.get('properties') or {},
            'geometry': {'type': gtype, 'coordinates': coordinates} if coordinates is not None else None,
        }
        if 'id' in geom:
            feature['id'] = geom['id']
        features.append(feature)
    return features


# =============================================================================
# Normalisation
# =============================================================================

def normalize_features(raw_features, kind):
    """Copy features, keep polygon shapes only, resolve ids and cache fills."""
    features = []
    skipped = 0
    for raw in raw_features:
        geometry = raw.get('geometry') or {}
        if geometry.get('type') not in POLYGON_TYPES:
            skipped += 1
            continue

        feature = dict(raw)
        feature.setdefault('type', 'Feature')
        props = raw.get('properties')
        if props is None:
            logger.warning("Feature without properties kept as-is: %s", raw.get('id'))
            features.append(feature)
            continue

        props = dict(props)
        if props.get('id') is None and raw.get('id') is not None:
            props['id'] = raw['id']
        if not props.get('fill'):
            props['fill'] = STATE_FILL if kind == 'state' else stable_fill(props.get('id'))
        feature['properties'] = props
        features.append(feature)

    if skipped:
        logger.warning("Skipped %d non-polygon features in %s collection", skipped, kind)
    return features


def collection_from_json(data, kind):
    """Build a GeoCollection from a parsed FeatureCollection or Topology."""
    check_kind(kind)
    if data.get('type') == 'Topology':
        raw_features = topology_features(data)
    elif 'features' in data:
        raw_features = data['features']
    else:
        raise ValueError(f"{kind} geometry has no 'features' and is not a Topology")
    return GeoCollection(kind, normalize_features(raw_features, kind))


class GeometryStore:
    """Loaded collections per kind, plus the last applied text filter."""

    def __init__(self):
        self._collections = {}
        self.filter_text = ''

    def put(self, kind, data):
        collection = collection_from_json(data, kind)
        self._collections[kind] = collection
        logger.info("Loaded %s collection: %d features", kind, len(collection))
        return collection

    def get(self, kind):
        return self._collections.get(check_kind(kind))

    def drop(self, kind):
        self._collections.pop(kind, None)


# =============================================================================
# Fetching
# =============================================================================

def fetch_geometry(kind, url=None, cache_path=None, timeout=30):
    """Download boundary JSON for a map kind, using the on-disk cache when present."""
    check_kind(kind)
    url = url or GEOMETRY_URLS[kind]
    cache_path = cache_path or GEOMETRY_CACHE[kind]

    if cache_path.exists():
        logger.info("Loading cached %s boundaries from %s", kind, cache_path)
        with open(cache_path) as f:
            return json.load(f)

    logger.info("Downloading %s boundaries from %s", kind, url)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    data = response.json()

    cache_path.parent.mkdir(parents=True, exist_ok=True)
    with open(cache_path, 'w') as f:
        json.dump(data, f)
    logger.info("Cached %s boundaries to %s", kind, cache_path)
    return data


async def load_geometry(kind):
    """Fetch off the event loop so pointer and filter handlers keep running."""
    return await asyncio.to_thread(fetch_geometry, kind)
