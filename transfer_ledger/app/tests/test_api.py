import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from ..core import db as db_module
from ..core.db import get_session, set_engine
from ..core.dependencies import get_ledger_service
from ..core.errors import LockTimeoutError, StoreUnavailableError
from ..main import app

@pytest.fixture
def client(engine) -> TestClient:
    original_engine = db_module.engine
    set_engine(engine)

    def _get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session_override

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    set_engine(original_engine)


def _create(client: TestClient, account_id: str, balance: str):
    return client.post("/accounts", json={"account_id": account_id, "initial_balance": balance})


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_and_get_account(client: TestClient) -> None:
    created = _create(client, "acc-1", "150.50")
    assert created.status_code == 201
    assert created.json() == {"account_id": "acc-1", "balance": "150.5"}

    fetched = client.get("/accounts/acc-1")
    assert fetched.status_code == 200
    assert fetched.json() == {"account_id": "acc-1", "balance": "150.5"}


@pytest.mark.parametrize(
    "body, code",
    [
        ({"initial_balance": "100"}, "missing_field"),
        ({"account_id": "acc-1"}, "missing_field"),
        ({"account_id": "acc-1", "initial_balance": "xyz"}, "invalid_amount"),
        ({"account_id": "acc-1", "initial_balance": "-1"}, "negative_balance"),
        ({"account_id": "acc-1", "initial_balance": 100}, "invalid_request"),
    ],
)
def test_create_account_bad_requests(client: TestClient, body: dict, code: str) -> None:
    response = client.post("/accounts", json=body)
    assert response.status_code == 400
    assert response.json()["code"] == code


def test_create_account_invalid_json(client: TestClient) -> None:
    response = client.post(
        "/accounts",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"


def test_create_duplicate_account(client: TestClient) -> None:
    assert _create(client, "acc-1", "100").status_code == 201

    response = _create(client, "acc-1", "5")
    assert response.status_code == 409
    assert response.json() == {"detail": "account already exists", "code": "account_exists"}
    assert client.get("/accounts/acc-1").json()["balance"] == "100"


def test_get_missing_account(client: TestClient) -> None:
    response = client.get("/accounts/missing")
    assert response.status_code == 404
    assert response.json()["code"] == "account_not_found"


def test_transfer(client: TestClient) -> None:
    _create(client, "acc-1", "100")
    _create(client, "acc-2", "0.5")

    response = client.post(
        "/transactions",
        json={
            "source_account_id": "acc-1",
            "destination_account_id": "acc-2",
            "amount": "40.00",
        },
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["source_account_id"] == "acc-1"
    assert payload["destination_account_id"] == "acc-2"
    assert payload["amount"] == "40"
    assert payload["transaction_id"]
    assert payload["created_at"]

    assert client.get("/accounts/acc-1").json()["balance"] == "60"
    assert client.get("/accounts/acc-2").json()["balance"] == "40.5"


@pytest.mark.parametrize(
    "body, status_code, code",
    [
        ({"destination_account_id": "acc-2", "amount": "10"}, 400, "missing_field"),
        ({"source_account_id": "acc-1", "amount": "10"}, 400, "missing_field"),
        ({"source_account_id": "acc-1", "destination_account_id": "acc-2"}, 400, "missing_field"),
        ({"source_account_id": "acc-1", "destination_account_id": "acc-2", "amount": "xyz"}, 400, "invalid_amount"),
        ({"source_account_id": "acc-1", "destination_account_id": "acc-2", "amount": "0"}, 400, "non_positive_amount"),
        ({"source_account_id": "acc-1", "destination_account_id": "acc-1", "amount": "1"}, 400, "same_account"),
        ({"source_account_id": "acc-1", "destination_account_id": "acc-2", "amount": "50.01"}, 400, "insufficient_funds"),
        ({"source_account_id": "nobody", "destination_account_id": "acc-2", "amount": "1"}, 404, "source_not_found"),
        ({"source_account_id": "acc-1", "destination_account_id": "nowhere", "amount": "1"}, 404, "destination_not_found"),
    ],
)
def test_transfer_failures_leave_balances_alone(
    client: TestClient, body: dict, status_code: int, code: str
) -> None:
    _create(client, "acc-1", "50")
    _create(client, "acc-2", "0")

    response = client.post("/transactions", json=body)
    assert response.status_code == status_code
    assert response.json()["code"] == code

    assert client.get("/accounts/acc-1").json()["balance"] == "50"
    assert client.get("/accounts/acc-2").json()["balance"] == "0"


def test_transfer_self_transfer_message(client: TestClient) -> None:
    _create(client, "acc-1", "500")

    response = client.post(
        "/transactions",
        json={"source_account_id": "acc-1", "destination_account_id": "acc-1", "amount": "100"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot transfer to the same account"


def test_request_id_is_generated_and_echoed(client: TestClient) -> None:
    generated = client.get("/health")
    assert len(generated.headers["X-Request-ID"]) == 32

    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert echoed.headers["X-Request-ID"] == "req-123"

    sanitized = client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
    assert sanitized.headers["X-Request-ID"] != "bad id with spaces"


def test_overlong_account_id_is_a_bad_request(client: TestClient) -> None:
    long_id = "a" * 256

    created = _create(client, long_id, "1")
    assert created.status_code == 400
    assert created.json()["code"] == "invalid_account_id"

    fetched = client.get(f"/accounts/{long_id}")
    assert fetched.status_code == 400
    assert fetched.json()["code"] == "invalid_account_id"


def test_transfer_past_the_balance_limit_is_a_bad_request(client: TestClient) -> None:
    _create(client, "acc-1", "99999999999999999999")
    _create(client, "acc-2", "99999999999999999999")

    response = client.post(
        "/transactions",
        json={
            "source_account_id": "acc-1",
            "destination_account_id": "acc-2",
            "amount": "99999999999999999999",
        },
    )

    assert response.status_code == 400
    assert response.json()["code"] == "balance_limit_exceeded"
    assert client.get("/accounts/acc-2").json()["balance"] == "99999999999999999999"


class _BrokenService:
    def get_account(self, account_id: str):
        raise StoreUnavailableError("internal server error: failed to get account details")

    def transfer(self, *args):
        raise LockTimeoutError()


def test_store_failures_are_opaque(client: TestClient) -> None:
    app.dependency_overrides[get_ledger_service] = lambda: _BrokenService()

    response = client.get("/accounts/acc-1")
    assert response.status_code == 500
    assert response.json() == {
        "detail": "internal server error: failed to get account details",
        "code": "store_unavailable",
    }

    timeout = client.post(
        "/transactions",
        json={"source_account_id": "a", "destination_account_id": "b", "amount": "1"},
    )
    assert timeout.status_code == 503
    assert timeout.json()["code"] == "timeout"
