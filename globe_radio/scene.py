from __future__ import annotations

from typing import Sequence

import numpy as np
import plotly.graph_objects as go

from .config import Settings
from .geo import project_many
from .models import CountryAggregate

MARKER_COLOR = "#4ecdc4"
SELECTED_COLOR = "#ff6b6b"
OCEAN_COLORSCALE = [[0.0, "rgb(10, 38, 71)"], [0.5, "rgb(22, 78, 120)"], [1.0, "rgb(34, 112, 150)"]]


def _globe_surface(radius: float, resolution: int = 64) -> go.Surface:
    lat, lng = np.meshgrid(
        np.linspace(-90.0, 90.0, resolution),
        np.linspace(-180.0, 180.0, resolution),
    )
    points = project_many(lat, lng, radius)
    return go.Surface(
        x=points[..., 0].tolist(),
        y=points[..., 1].tolist(),
        z=points[..., 2].tolist(),
        surfacecolor=lat.tolist(),
        colorscale=OCEAN_COLORSCALE,
        showscale=False,
        hoverinfo="skip",
        opacity=1.0,
        lighting=dict(ambient=0.55, diffuse=0.8, specular=0.25, roughness=0.6),
        name="Globe",
    )


def _marker_trace(
    aggregates: Sequence[CountryAggregate],
    selected_country: str | None,
    radius: float,
) -> go.Scatter3d:
    if aggregates:
        positions = project_many(
            [country.latitude for country in aggregates],
            [country.longitude for country in aggregates],
            radius,
        )
    else:
        positions = np.zeros((0, 3))

    colors = [
        SELECTED_COLOR if country.name == selected_country else MARKER_COLOR
        for country in aggregates
    ]
    hover_texts = [f"{country.name} ({country.station_count} stations)" for country in aggregates]

    return go.Scatter3d(
        x=positions[:, 0].tolist(),
        y=positions[:, 1].tolist(),
        z=positions[:, 2].tolist(),
        mode="markers",
        marker=dict(size=5, color=colors, opacity=0.8, line=dict(color="white", width=0.5)),
        text=hover_texts,
        customdata=[country.name for country in aggregates],
        hoverinfo="text",
        name="Countries",
    )


def build_globe_figure(
    aggregates: Sequence[CountryAggregate],
    selected_country: str | None,
    settings: Settings,
) -> str:
    """Plotly figure JSON for the globe and one marker per country."""
    fig = go.Figure(
        data=[
            _globe_surface(settings.globe_radius),
            _marker_trace(aggregates, selected_country, settings.marker_radius),
        ]
    )

    hidden_axis = dict(visible=False, showbackground=False)
    fig.update_layout(
        scene=dict(
            xaxis=hidden_axis,
            yaxis=hidden_axis,
            zaxis=hidden_axis,
            aspectmode="data",
            bgcolor="rgba(0, 0, 0, 0)",
            camera=dict(
                up=dict(x=0, y=1, z=0),
                eye=dict(x=0.0, y=0.35, z=1.9),
            ),
        ),
        paper_bgcolor="rgba(0, 0, 0, 0)",
        font=dict(color="rgb(243, 245, 248)", family="Inter, Segoe UI, Arial"),
        showlegend=False,
        margin=dict(l=0, r=0, t=0, b=0),
        uirevision="globe",
    )

    return fig.to_json()
