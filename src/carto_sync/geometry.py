"""Point geometry expressions for PostGIS."""

from __future__ import annotations

from .statements import RawExpression

SRID = 4326


def format_coordinate(value: float) -> str:
    text = repr(float(value))
    if text.endswith(".0"):
        return text[:-2]
    return text


def point_wkt(latitude: float, longitude: float) -> str:
    return f"POINT({format_coordinate(longitude)} {format_coordinate(latitude)})"


def point_expression(latitude: float, longitude: float) -> RawExpression:
    wkt = point_wkt(latitude, longitude)
    return RawExpression(f"ST_Force2D(ST_SetSRID(ST_GeomFromText('{wkt}'), {SRID}))")
