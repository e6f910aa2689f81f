# app/datatables/request_parser.py
"""
Normalisation of raw DataTables request parameters.

DataTables <= 1.9 sends flat, numbered keys (``sEcho``, ``iDisplayStart``,
``mDataProp_0`` ...) while DataTables >= 1.10 sends nested structures
(``draw``, ``start``, ``columns[0][data]`` ...). Both are turned into the same
validated DatatableRequest.

References:
  https://datatables.net/manual/server-side        (>= 1.10)
  http://legacy.datatables.net/usage/server-side   (<= 1.9)
  https://datatables.net/upgrade/1.10-convert
"""

import re
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from app.datatables.exceptions import InvalidRequest, UnsupportedProtocolVersion
from app.datatables.schemas import ALL_RECORDS, DatatableRequest, ProtocolVersion

_BRACKETED_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_BRACKET_PART = re.compile(r"\[([^\[\]]*)\]")


def parse_bracketed(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Expand keys such as ``columns[0][search][value]`` into nested values.

    Dicts whose keys are all digits become lists ordered by index.
    """
    nested: Dict[str, Any] = {}
    for key, value in params.items():
        match = _BRACKETED_KEY.match(key)
        if match is None:
            nested[key] = value
            continue

        parts = [match.group(1)] + _BRACKET_PART.findall(match.group(2))
        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = value

    return {key: _listify(value) for key, value in nested.items()}


def _listify(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    converted = {key: _listify(value) for key, value in node.items()}
    if converted and all(str(key).isdigit() for key in converted):
        return [converted[key] for key in sorted(converted, key=int)]
    return converted


def detect_version(params: Mapping[str, Any]) -> ProtocolVersion:
    if "draw" in params:
        return ProtocolVersion.CURRENT
    if "sEcho" in params:
        return ProtocolVersion.LEGACY
    raise UnsupportedProtocolVersion()


def _count(params: Mapping[str, Any], key: str) -> int:
    value = params.get(key)
    if value in (None, ""):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f"Parameter '{key}' must be an integer, got {value!r}") from None


def _without_none(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _normalize_legacy(params: Mapping[str, Any]) -> Dict[str, Any]:
    column_names = str(params.get("sColumns") or "").split(",")

    columns: List[Dict[str, Any]] = []
    for i in range(_count(params, "iColumns")):
        columns.append(_without_none({
            "data": params.get(f"mDataProp_{i}"),
            "name": column_names[i] if i < len(column_names) else "",
            "searchable": params.get(f"bSearchable_{i}"),
            "orderable": params.get(f"bSortable_{i}"),
            "search": _without_none({
                "value": params.get(f"sSearch_{i}"),
                "regex": params.get(f"bRegex_{i}"),
            }),
        }))

    order = [
        _without_none({"column": params.get(f"iSortCol_{i}"), "dir": params.get(f"sSortDir_{i}")})
        for i in range(_count(params, "iSortingCols"))
    ]

    return _without_none({
        "draw": params.get("sEcho"),
        "start": params.get("iDisplayStart"),
        "length": params.get("iDisplayLength"),
        "search": _without_none({"value": params.get("sSearch"), "regex": params.get("bRegex")}),
        "order": order,
        "columns": columns,
    })


def _normalize_current(params: Mapping[str, Any]) -> Dict[str, Any]:
    return _without_none({
        key: params.get(key)
        for key in ("draw", "start", "length", "search", "order", "columns")
    })


def parse_request(params: Mapping[str, Any]) -> DatatableRequest:
    """Detect the protocol version of `params` and build a DatatableRequest."""
    params = parse_bracketed(params)
    version = detect_version(params)

    if version is ProtocolVersion.LEGACY:
        data = _normalize_legacy(params)
    else:
        data = _normalize_current(params)

    try:
        request = DatatableRequest.model_validate({"version": version, **data})
    except ValidationError as exc:
        raise InvalidRequest(f"Invalid DataTables request: {exc.errors(include_url=False)}") from exc

    if request.start < 0:
        raise InvalidRequest(f"Parameter 'start' must not be negative, got {request.start}")
    if request.length < ALL_RECORDS:
        raise InvalidRequest(f"Parameter 'length' must be {ALL_RECORDS} or more, got {request.length}")
    return request
