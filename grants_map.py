"""
Grant District Map - Federal Grants by State and District
Toggle between state and district boundaries, filter units by name,
and drill down into the grant awards of a unit

Writes a standalone SVG of the fitted map and a folium map whose
popups carry each unit's drill-down table
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from grants_config import (
    DEFAULT_AWARD_YEAR, DEFAULT_FUNDING_TYPE, HIGHLIGHT_COLOR,
    MAP_KINDS, OUTPUT_DIR, STROKE_COLOR,
)
from grants_geometry import feature_label
from grants_index import GrantIndex
from grants_map_view import MapView
from grants_overlay import format_currency


def load_grants(path):
    """Grant dataset from CSV, or an empty index when no file is given."""
    if path is None:
        print("No grants file given, drill-downs will be empty")
        return GrantIndex([])
    print(f"Loading grants from {path}...")
    index = GrantIndex.from_csv(path)
    print(f"Grant records: {len(index):,}")
    return index


def create_svg_map(view, output_path):
    """Save the current canvas as SVG."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(view.canvas.to_svg(), encoding='utf-8')
    print(f"✅ SVG map saved to: {output_path}")
    return output_path


def summary_line(index, selection, filters):
    summary = index.grantee_summary(
        selection.state_cd, selection.district, filters.award_year, filters.funding_type
    )
    total = sum(s['total_award'] for s in summary)
    return f"<p>{len(summary)} grantee(s), {format_currency(total)} total</p>"


def create_folium_map(view, output_path):
    """Leaflet map of the visible units; clicking a unit opens its grant table."""
    import folium

    m = folium.Map(location=[39.5, -98.35], zoom_start=4, tiles='cartodbpositron')

    drilled = 0
    for feature in view.current_view():
        if feature.get('properties') is None:
            continue
        fill = feature['properties'].get('fill')

        layer = folium.GeoJson(
            data=feature,
            style_function=lambda f, fill=fill: {
                'fillColor': fill,
                'color': STROKE_COLOR,
                'weight': 1,
                'fillOpacity': 0.7,
            },
            highlight_function=lambda f: {'fillColor': HIGHLIGHT_COLOR},
            tooltip=feature_label(feature),
        )

        selection = view.handle_feature_click(feature)
        if selection is not None:
            content = view.overlay.to_html() + summary_line(view.overlay.index, selection, view.filters)
            folium.Popup(content, max_width=900).add_to(layer)
            drilled += 1

        layer.add_to(m)
    view.close_overlay()

    scope_html = f'''
    <div style="position: fixed; top: 20px; right: 20px; z-index: 1000;
                background: rgba(255,255,255,0.95); padding: 10px; border-radius: 8px;
                font-size: 12px; box-shadow: 0px 4px 15px rgba(0, 0, 0, 0.3);">
    <b>Fiscal Year:</b> {view.filters.award_year}<br>
    <b>Funding Type:</b> {view.filters.funding_type}<br>
    <b>Units:</b> {len(view.current_view())}
    </div>
    '''
    m.get_root().html.add_child(folium.Element(scope_html))

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(output_path))
    print(f"✅ Folium map saved to: {output_path} ({drilled} drill-downs)")
    return output_path


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Federal grants map by state / district")
    parser.add_argument('--grants', type=Path, help="CSV of grant records")
    parser.add_argument('--kind', choices=MAP_KINDS, default='state')
    parser.add_argument('--year', default=DEFAULT_AWARD_YEAR, help="award fiscal year")
    parser.add_argument('--funding-type', default=DEFAULT_FUNDING_TYPE)
    parser.add_argument('--filter', default='', help="only units whose name contains this")
    parser.add_argument('--output', type=Path, default=OUTPUT_DIR)
    parser.add_argument('--verbose', action='store_true')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    print("=" * 60)
    print("Grant District Map")
    print("=" * 60)

    # 1. Grant dataset
    index = load_grants(args.grants)

    # 2. Map view with the requested scope
    view = MapView(index)
    view.set_global_filters(args.year, args.funding_type)

    # 3. Boundaries
    if not asyncio.run(view.toggle_map_kind(args.kind)):
        print(f"Failed to load {args.kind} boundaries")
        return 1
    view.set_filter_text(args.filter)
    print(f"Units shown: {len(view.current_view())} of {len(view.collection)}")

    # 4. Outputs
    create_svg_map(view, args.output / 'grants_map.svg')
    create_folium_map(view, args.output / 'grants_map.html')

    print("\n" + "=" * 60)
    print(f"DONE! Open {args.output / 'grants_map.html'} in browser")
    print("=" * 60)
    return 0


if __name__ == '__main__':
    sys.exit(main())
