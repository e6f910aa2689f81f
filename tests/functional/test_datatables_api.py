"""
Functional tests for the datatables API endpoints.
"""

import pytest


class TestDatatablesAPI:
    """Test the /api/datatables endpoints"""

    def test_list_datatables(self, client):
        response = client.get("/api/datatables")

        assert response.status_code == 200
        assert response.json() == ["customers", "employees", "locations", "order_lines", "orders"]

    def test_get_current_protocol(self, client, sales_data, build_params):
        params = build_params(["id", "last_name"], draw=5, search="jo")

        response = client.get("/api/datatables/customers", params=params)

        assert response.status_code == 200
        assert response.json() == {
            "data": [{"id": 2, "last_name": "Jones"}],
            "draw": 5,
            "recordsTotal": 4,
            "recordsFiltered": 1,
        }

    def test_get_legacy_protocol(self, client, sales_data):
        params = {
            "sEcho": "2",
            "iDisplayStart": "0",
            "iDisplayLength": "2",
            "iColumns": "1",
            "mDataProp_0": "reference",
        }

        response = client.get("/api/datatables/orders", params=params)

        assert response.status_code == 200
        data = response.json()
        assert data["sEcho"] == 2
        assert data["iTotalRecords"] == 4
        assert data["iTotalDisplayRecords"] == 4
        assert len(data["aaData"]) == 2

    def test_post_form(self, client, sales_data, build_params):
        params = build_params(["reference", "customer.location.city"], search="rotterdam")

        response = client.post("/api/datatables/orders", data=params)

        assert response.status_code == 200
        data = response.json()
        assert [row["reference"] for row in data["data"]] == ["SO-1003"]
        assert data["data"][0]["customer"]["location"] == {"id": 2, "city": "Rotterdam"}

    def test_post_json(self, client, sales_data):
        body = {
            "draw": 3,
            "length": -1,
            "columns": [{"data": "name"}, {"data": "customers.last_name"}],
            "order": [{"column": 0, "dir": "asc"}],
        }

        response = client.post("/api/datatables/locations", json=body)

        assert response.status_code == 200
        data = response.json()
        assert data["recordsFiltered"] == 3
        assert [row["name"] for row in data["data"]] == ["Head office", "Shop", "Warehouse"]
        assert data["data"][2]["customers"]["last_name"] in (["Jones", "de Vries"], ["de Vries", "Jones"])

    def test_unknown_entity(self, client, build_params):
        response = client.get("/api/datatables/widgets", params=build_params(["name"]))

        assert response.status_code == 404
        assert response.json() == {"detail": "Entity 'widgets' is not registered"}

    def test_unknown_field(self, client, sales_data, build_params):
        params = build_params(["reference", "customer.unknown_field"])

        response = client.get("/api/datatables/orders", params=params)

        assert response.status_code == 404
        assert response.json()["detail"] == (
            "Field 'unknown_field' on association 'customer' not found (customer.unknown_field)"
        )

    def test_unknown_association(self, client, sales_data, build_params):
        response = client.get("/api/datatables/orders", params=build_params(["supplier.name"]))

        assert response.status_code == 404
        assert "supplier" in response.json()["detail"]

    def test_missing_protocol_version(self, client):
        response = client.get("/api/datatables/orders", params={"start": "0", "length": "10"})

        assert response.status_code == 400
        assert response.json() == {"detail": "DataTables protocol version not implemented"}

    @pytest.mark.parametrize("length", ["-5", "many"])
    def test_invalid_length(self, client, build_params, length):
        params = build_params(["reference"])
        params["length"] = length

        response = client.get("/api/datatables/orders", params=params)

        assert response.status_code == 400

    def test_post_json_must_be_an_object(self, client):
        response = client.post("/api/datatables/orders", json=[1, 2, 3])

        assert response.status_code == 400
