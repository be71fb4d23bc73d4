"""Web Mercator calculations for the trip map.

Provides:
- Web Mercator projection (lon/lat to world pixels and back)
- Viewport math (visible bounds for a view, zoom that fits a bounding box)

Projection math follows the deck.gl/Mapbox convention of 512px tiles,
where zoom z maps the whole world onto 512 * 2**z pixels.
"""

from math import atan, cos, degrees, exp, log, log2, pi, radians, tan

from roadtrip_planner.constants import MapConfig


class GeoCalculator:
    """Static methods for Web Mercator and viewport calculations.

    Coordinates are in decimal degrees (WGS84), screen sizes in pixels.
    """

    @staticmethod
    def clamp_latitude(lat: float) -> float:
        """Clamp latitude into the range Web Mercator can project."""
        return max(-MapConfig.MAX_LATITUDE, min(MapConfig.MAX_LATITUDE, lat))

    @staticmethod
    def project(lon: float, lat: float, zoom: float) -> tuple[float, float]:
        """Project (lon, lat) to Web Mercator world pixels at a zoom level.

        Returns:
            Tuple (x, y) where y grows southwards.
        """
        scale = MapConfig.TILE_SIZE_PX * 2**zoom
        lat_rad = radians(GeoCalculator.clamp_latitude(lat))
        x = (lon + 180.0) / 360.0 * scale
        y = (1.0 - log(tan(lat_rad) + 1.0 / cos(lat_rad)) / pi) / 2.0 * scale
        return x, y

    @staticmethod
    def unproject(x: float, y: float, zoom: float) -> tuple[float, float]:
        """Inverse of project(): world pixels back to (lon, lat)."""
        scale = MapConfig.TILE_SIZE_PX * 2**zoom
        lon = x / scale * 360.0 - 180.0
        n = pi - 2.0 * pi * y / scale
        lat = degrees(atan(0.5 * (exp(n) - exp(-n))))
        return lon, lat

    @staticmethod
    def view_bounds(
        center_lon: float,
        center_lat: float,
        zoom: float,
        width_px: int,
        height_px: int,
    ) -> tuple[float, float, float, float]:
        """Compute the geographic rectangle visible for a view.

        Returns:
            Tuple (north, east, south, west) in decimal degrees.
        """
        cx, cy = GeoCalculator.project(center_lon, center_lat, zoom)
        west, north = GeoCalculator.unproject(cx - width_px / 2, cy - height_px / 2, zoom)
        east, south = GeoCalculator.unproject(cx + width_px / 2, cy + height_px / 2, zoom)
        return north, east, south, west

    @staticmethod
    def zoom_to_fit(
        north: float,
        east: float,
        south: float,
        west: float,
        width_px: int,
        height_px: int,
        padding_px: int,
        max_zoom: float = MapConfig.MAX_FIT_ZOOM,
    ) -> float:
        """Largest zoom at which the rectangle fits inside the padded view.

        A degenerate rectangle (single point) returns max_zoom.
        """
        inner_w = max(width_px - 2 * padding_px, 1)
        inner_h = max(height_px - 2 * padding_px, 1)

        # Measure the rectangle at zoom 0, then scale by powers of two
        x_west, y_north = GeoCalculator.project(west, north, 0)
        x_east, y_south = GeoCalculator.project(east, south, 0)
        span_x = abs(x_east - x_west)
        span_y = abs(y_south - y_north)

        candidates = [max_zoom]
        if span_x > 0:
            candidates.append(log2(inner_w / span_x))
        if span_y > 0:
            candidates.append(log2(inner_h / span_y))
        return max(0.0, min(candidates))
