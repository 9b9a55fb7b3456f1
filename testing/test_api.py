import pytest
from fastapi.testclient import TestClient

from api.main import app, get_connector


@pytest.fixture
def use_connector():
    def install(connector):
        app.dependency_overrides[get_connector] = lambda: connector
        return TestClient(app)

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def client(use_connector, connected):
    return use_connector(connected)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["database_type"] == "memory"
    assert "total_errors" in body["errors"]


def test_metadata_overview(client):
    body = client.get("/api/metadata").json()
    assert body["relationships"][0] == "customer_orders"
    assert body["tables"]["orders"]["business_name"] == "Orders"


def test_plan_returns_sql_without_executing(client, connected):
    response = client.post("/api/plan", json={"question": "freight cost of shipped orders"})

    assert response.status_code == 200
    body = response.json()
    assert body["plan"]["tables"] == ["orders"]
    assert body["plan"]["filters"] == ["orders.shipped_date IS NOT NULL"]
    assert body["sql"] == (
        "SELECT SUM(orders.freight) AS freight_cost\n"
        "FROM orders\n"
        "WHERE orders.shipped_date IS NOT NULL"
    )
    assert connected.calls == []


def test_plan_for_unmatched_question_has_no_sql(client):
    body = client.post("/api/plan", json={"question": "what is the weather like"}).json()

    assert body["plan"]["tables"] == []
    assert body["sql"] is None


def test_analyze_business_question(client, connected):
    connected.rows = [{"freight_cost": 64942.69}]

    response = client.post("/api/analyze", json={"businessQuestion": "freight cost", "limit": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "business_analysis"
    assert body["results"] == [{"freight_cost": 64942.69}]
    assert body["query"].endswith("LIMIT 1")
    assert body["metadata"]["businessQuestion"] == "freight cost"


def test_invalid_request_is_400(client, connected):
    response = client.post("/api/analyze", json={"type": "correlation", "table": "orders", "columns": ["freight"]})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"]["error_code"] == "REQ001"
    assert "exactly 2 columns" in body["error"]
    assert connected.calls == []


def test_disconnected_is_503(use_connector, connector):
    client = use_connector(connector)

    response = client.post("/api/analyze", json={"type": "custom", "query": "SELECT 1"})

    assert response.status_code == 503
    assert response.json()["detail"]["error_code"] == "CON001"


def test_storage_failure_is_502(client, connected):
    connected.error = RuntimeError('column "frieght" does not exist')

    response = client.post("/api/analyze", json={"type": "custom", "query": "SELECT frieght FROM orders"})

    assert response.status_code == 502
    body = response.json()
    assert body["detail"]["error_code"] == "SCH002"
    assert body["user_message"] == "The column 'frieght' does not exist."


def test_list_tables(client):
    assert client.get("/api/tables").json() == {"tables": ["customers", "orders"], "count": 2}


def test_table_schema(client):
    body = client.get("/api/tables/orders/schema").json()

    assert body["table_name"] == "orders"
    assert body["primary_key"] == "order_id"
    assert body["business_columns"]["freight"]["business_name"] == "Freight Cost"


def test_join_path(client):
    response = client.get("/api/join-path", params={"source": "customers", "target": "products"})

    assert response.status_code == 200
    body = response.json()
    assert body["description"] == "Indirect: customers -> orders -> order_details -> products"
    assert [join["name"] for join in body["joins"]] == [
        "customer_orders", "order_line_items", "product_line_items"
    ]
    assert body["joins"][0]["sourceTable"] == "customers"


def test_missing_join_path_is_404(client):
    response = client.get("/api/join-path", params={"source": "customers", "target": "nowhere"})

    assert response.status_code == 404
    assert response.json()["detail"]["error_code"] == "MET001"
