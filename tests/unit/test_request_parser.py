"""
Unit tests for DataTables request normalisation.
"""

import pytest

from app.datatables.exceptions import InvalidRequest, UnsupportedProtocolVersion
from app.datatables.request_parser import detect_version, parse_bracketed, parse_request
from app.datatables.schemas import DatatableResult, ProtocolVersion


class TestParseBracketed:
    """Test expansion of bracketed query-string keys"""

    def test_nested_keys(self):
        parsed = parse_bracketed({"search[value]": "jo", "search[regex]": "false", "draw": "1"})

        assert parsed == {"search": {"value": "jo", "regex": "false"}, "draw": "1"}

    def test_numeric_keys_become_ordered_lists(self):
        parsed = parse_bracketed({"columns[10][data]": "k", "columns[2][data]": "c", "columns[0][data]": "a"})

        assert parsed["columns"] == [{"data": "a"}, {"data": "c"}, {"data": "k"}]

    def test_already_nested_values_pass_through(self):
        params = {"draw": 1, "columns": [{"data": "id"}]}

        assert parse_bracketed(params) == params


class TestCurrentProtocol:
    """Test DataTables >= 1.10 requests"""

    def test_full_request(self, build_params):
        params = build_params(
            [{"data": "id", "orderable": False}, {"data": "customer.email", "search": "example"}],
            draw=3, start=10, length=25, search=" jo  smith ",
            order=[{"column": 1, "dir": "DESC"}],
        )

        request = parse_request(params)

        assert request.version is ProtocolVersion.CURRENT
        assert (request.draw, request.start, request.length) == (3, 10, 25)
        assert request.search_terms == ["jo", "smith"]
        assert request.order[0].column == 1
        assert request.order[0].dir == "desc"
        assert request.columns[0].data == "id"
        assert request.columns[0].orderable is False
        assert request.columns[0].searchable is True
        assert request.columns[1].search_value == "example"

    def test_json_body(self):
        request = parse_request({"draw": 2, "columns": [{"data": 0}, {"data": "name"}], "length": -1})

        assert request.columns[0].data == "0"
        assert request.is_all_records is True
        assert request.column(5) is None

    def test_defaults(self):
        request = parse_request({"draw": "1"})

        assert (request.start, request.length) == (0, 10)
        assert request.columns == []
        assert request.search_terms == []

    @pytest.mark.parametrize("params", [
        {"draw": "1", "start": "-1"},
        {"draw": "1", "length": "-2"},
        {"draw": "1", "length": "ten"},
        {"draw": "1", "order[0][column]": "first"},
    ])
    def test_invalid_values(self, params):
        with pytest.raises(InvalidRequest) as exc_info:
            parse_request(params)

        assert exc_info.value.status_code == 400


class TestLegacyProtocol:
    """Test DataTables <= 1.9 requests"""

    def test_flat_keys(self):
        params = {
            "sEcho": "4",
            "iDisplayStart": "20",
            "iDisplayLength": "10",
            "sSearch": "jo",
            "bRegex": "false",
            "iColumns": "2",
            "sColumns": "id,name",
            "mDataProp_0": "id",
            "mDataProp_1": "customer.email",
            "bSearchable_0": "true",
            "bSearchable_1": "false",
            "bSortable_0": "true",
            "bSortable_1": "false",
            "sSearch_0": "",
            "sSearch_1": "",
            "iSortingCols": "1",
            "iSortCol_0": "0",
            "sSortDir_0": "desc",
        }

        request = parse_request(params)

        assert request.version is ProtocolVersion.LEGACY
        assert (request.draw, request.start, request.length) == (4, 20, 10)
        assert request.search_terms == ["jo"]
        assert [column.data for column in request.columns] == ["id", "customer.email"]
        assert request.columns[1].name == "name"
        assert request.columns[1].searchable is False
        assert request.columns[1].orderable is False
        assert request.order[0].column == 0
        assert request.order[0].dir == "desc"

    def test_non_integer_count(self):
        with pytest.raises(InvalidRequest):
            parse_request({"sEcho": "1", "iColumns": "many"})


class TestVersion:
    """Test protocol detection and envelopes"""

    def test_missing_draw_and_secho(self):
        with pytest.raises(UnsupportedProtocolVersion):
            detect_version({"start": "0"})

    def test_draw_wins_over_secho(self):
        assert detect_version({"draw": "1", "sEcho": "1"}) is ProtocolVersion.CURRENT

    def test_output_envelopes(self):
        result = DatatableResult(data=[{"id": 1}], draw=7, total_records=12, display_records=3)

        assert result.to_output(ProtocolVersion.CURRENT) == {
            "data": [{"id": 1}], "draw": 7, "recordsTotal": 12, "recordsFiltered": 3,
        }
        assert result.to_output(ProtocolVersion.LEGACY) == {
            "aaData": [{"id": 1}], "sEcho": 7, "iTotalRecords": 12, "iTotalDisplayRecords": 3,
        }
