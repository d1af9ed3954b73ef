"""Read flow shared by data sources: filter model in, populated model out."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from .errors import TypeMismatchError
from .log import get_logger
from .marshal import ValueMarshaller
from .schema import Model, fill_missing_values, model_to_string_map, native_map_to_model

_logger = get_logger("datasource")


class QueryClient(Protocol):
    def get_by_query(
        self,
        path: str,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
    ) -> Any: ...


def read_data_source(
    client: QueryClient,
    path: str,
    model: Model,
    *,
    path_params: Mapping[str, str] | None = None,
    marshaller: ValueMarshaller | None = None,
) -> Model:
    """Query ``path`` using the string fields of ``model`` as filters.

    The response replaces every field of ``model``, which is then
    null-completed and returned.
    """
    query = model_to_string_map(model, marshaller)
    _logger.debug("read_data_source(%s) query=%s", path, query)
    result = client.get_by_query(path, path_params, query)
    if result is None:
        result = {}
    if not isinstance(result, Mapping):
        raise TypeMismatchError("object response", result)
    native_map_to_model(result, model, marshaller)
    return fill_missing_values(model, marshaller)
