#!/usr/bin/env python3
"""
Search result visualization using folium maps.
"""

from typing import List
import logging
import folium
from folium.template import Template

from .geometry import calculate_bbox
from .metrics import SearchMetrics
from .nearest import QueryResult
from .record_store import PositionRecord

logger = logging.getLogger(__name__)

# Map margin around queries and matched vehicles, in kilometers
MAP_BUFFER_KM = 5.0

QUERY_COLOR = "#2E86AB"
VEHICLE_COLOR = "#D23C4C"


class SearchLegend(folium.MacroElement):
    """Custom legend for nearest vehicle visualization with dynamic counts."""

    def __init__(self, metrics: SearchMetrics):
        super().__init__()
        self.query_count = metrics.query_count
        self.matched_count = metrics.matched_count
        self.vehicle_count = metrics.distinct_vehicles
        self.record_count = metrics.record_count

        self._template = Template(
            """
        {% macro html(this, kwargs) %}
        <div id="vehpos-legend" style="
            position: fixed;
            bottom: 50px;
            left: 50px;
            width: 230px;
            background-color: white;
            border: 2px solid grey;
            z-index: 9999;
            font-size: 13px;
            padding: 12px;
            font-family: Arial, sans-serif;
            border-radius: 5px;
            box-shadow: 0 2px 5px rgba(0,0,0,0.2);
            box-sizing: border-box;
        ">
            <b>Legend</b><br>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #2E86AB; font-weight: bold; font-size: 18px;">&#9679;</span>
                Queries ({{ this.matched_count }}/{{ this.query_count }} matched)
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #D23C4C; font-weight: bold; font-size: 18px;">&#9679;</span>
                Nearest vehicles ({{ this.vehicle_count }} of {{ this.record_count }})
            </div>
        </div>
        {% endmacro %}
        """
        )


def record_to_html(record: PositionRecord, distance_km: float) -> str:
    """
    Format a vehicle record into HTML for popup display.

    Args:
        record: The matched PositionRecord
        distance_km: Distance from the query in kilometers

    Returns:
        HTML-formatted string
    """
    return (
        f"<b>{record.registration}</b>"
        f"<br><i>Position:</i> {record.latitude:.6f}, {record.longitude:.6f}"
        f"<br><i>Recorded at:</i> {record.recorded_at}"
        f"<br><i>Distance:</i> {distance_km:.2f} km"
    )


def create_results_map(
    results: List[QueryResult],
    output_filename: str,
    metrics: SearchMetrics,
) -> None:
    """
    Create an interactive map showing each query and its nearest vehicle, save as HTML.

    Args:
        results: Batch results in query order
        output_filename: Path where HTML map file should be saved
        metrics: SearchMetrics for the legend

    Raises:
        ValueError: If there are no results to show
    """
    if not results:
        raise ValueError("Cannot create map without query results")

    positions = [result.query for result in results]
    positions.extend(
        result.record.position for result in results if result.record is not None
    )
    south, west, north, east = calculate_bbox(positions, MAP_BUFFER_KM)

    center_lat = (south + north) / 2
    center_lon = (west + east) / 2

    logger.debug(f"Creating map centered at ({center_lat:.4f}, {center_lon:.4f})")

    results_map = folium.Map(
        location=[center_lat, center_lon],
        tiles=None,
    )

    folium.TileLayer(
        tiles="CartoDB positron",
        attr=(
            "&copy; <a href='https://www.openstreetmap.org/copyright'>OpenStreetMap</a> "
            "contributors &copy; <a href='https://carto.com/attributions'>CARTO</a>"
        ),
        name="Standard",
        control=True,
        show=True,
    ).add_to(results_map)

    folium.TileLayer(
        tiles="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attr=(
            "Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
        name="Satellite",
        control=True,
        show=False,
    ).add_to(results_map)

    folium.LayerControl().add_to(results_map)

    for index, result in enumerate(results, start=1):
        query = result.query
        folium.CircleMarker(
            [query.latitude, query.longitude],
            radius=6,
            color=QUERY_COLOR,
            fill=True,
            fill_opacity=0.8,
            popup=f"<b>Query {index}</b><br>{query.latitude:.6f}, {query.longitude:.6f}",
        ).add_to(results_map)

        if result.record is None or result.distance_km is None:
            continue

        record = result.record
        folium.Marker(
            [record.latitude, record.longitude],
            popup=folium.Popup(record_to_html(record, result.distance_km), max_width=300),
            icon=folium.Icon(color="red", icon="car", prefix="fa"),
        ).add_to(results_map)

        folium.PolyLine(
            [[query.latitude, query.longitude], [record.latitude, record.longitude]],
            color=VEHICLE_COLOR,
            weight=2,
            opacity=0.6,
            dash_array="5, 5",
        ).add_to(results_map)

    results_map.add_child(SearchLegend(metrics))

    results_map.fit_bounds([[south, west], [north, east]])

    results_map.save(output_filename)

    logger.debug(
        f"Map saved to {output_filename} with {metrics.matched_count}/{metrics.query_count} matched queries"
    )
