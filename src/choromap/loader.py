"""Dataset fetch/validation and the fetch-then-render pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from .legend import LegendRenderer
from .models import FeatureCollection
from .styling import FeatureStyler
from .surface import FeatureLayer, MapSurface


DEFAULT_ERROR_NOTICE = "Error al cargar los datos del mapa"

_LOGGER = logging.getLogger("choromap.loader")


class LoadError(Exception):
    """Dataset could not be turned into a feature collection."""


class NetworkError(LoadError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(LoadError):
    pass


@dataclass(frozen=True, slots=True)
class LoadResult:
    url: str
    collection: FeatureCollection | None = None
    error: LoadError | None = None
    layer: FeatureLayer | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.collection is not None


class DatasetLoader:
    """Fetch one GeoJSON dataset and render it, or show one error notice.

    `fetch` is the only blocking step; `render` is synchronous. Failures are
    terminal for the run: nothing is retried and nothing propagates.
    """

    def __init__(
        self,
        *,
        surface: MapSurface,
        styler: FeatureStyler,
        legend: LegendRenderer,
        session: Any | None = None,
        timeout_s: float = 30.0,
        user_agent: str | None = None,
        error_notice: str = DEFAULT_ERROR_NOTICE,
    ) -> None:
        self.surface = surface
        self.styler = styler
        self.legend = legend
        self.timeout_s = timeout_s
        self.error_notice = error_notice
        self._session = session if session is not None else build_session(user_agent)

    def fetch(self, url: str) -> LoadResult:
        return fetch_dataset(url, session=self._session, timeout_s=self.timeout_s)

    def render(self, collection: FeatureCollection) -> FeatureLayer:
        layer = self.surface.add_feature_layer(
            collection,
            self.styler.style_for,
            self.styler.bind_interaction,
        )
        self.surface.fit_bounds(layer)
        self.legend.render(self.surface)
        return layer

    def load(self, url: str) -> LoadResult:
        result = self.fetch(url)
        if result.collection is None:
            _LOGGER.error("Error loading or processing GeoJSON from %s: %s", url, result.error)
            self.surface.show_error(self.error_notice)
            return result
        try:
            layer = self.render(result.collection)
        except Exception as exc:
            _LOGGER.exception("Error rendering GeoJSON from %s", url)
            self.surface.show_error(self.error_notice)
            return LoadResult(url=url, error=ValidationError(f"Dataset could not be rendered: {exc}"))
        return LoadResult(url=url, collection=result.collection, layer=layer)


def build_session(user_agent: str | None = None) -> requests.Session:
    session = requests.Session()
    if user_agent:
        session.headers.update({"User-Agent": user_agent})
    return session


def fetch_dataset(url: str, *, session: Any, timeout_s: float = 30.0) -> LoadResult:
    """Fetch and validate one dataset; failures come back in the result."""
    try:
        payload = _get_json(session, url, timeout_s=timeout_s)
        collection = FeatureCollection.from_geojson(payload)
    except LoadError as exc:
        return LoadResult(url=url, error=exc)
    except ValueError as exc:
        return LoadResult(url=url, error=ValidationError(str(exc)))
    _LOGGER.info("Loaded %d features from %s", len(collection), url)
    return LoadResult(url=url, collection=collection)


def _get_json(session: Any, url: str, *, timeout_s: float) -> Any:
    try:
        response = session.get(url, timeout=timeout_s)
    except requests.RequestException as exc:
        raise NetworkError(f"Request failed: {exc}") from exc
    try:
        if not 200 <= response.status_code < 300:
            raise NetworkError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ValidationError(f"Response body is not valid JSON: {exc}") from exc
    finally:
        response.close()
