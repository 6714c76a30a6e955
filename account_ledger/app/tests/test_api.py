from datetime import UTC, datetime
from decimal import Decimal

from fastapi.testclient import TestClient

from ..core.identifiers import AccountNumberGenerator
from .conftest import auth_headers


def _create_account(
    client: TestClient, name: str, user_id: str = "user-1", **extra
) -> dict:
    response = client.post(
        "/accounts",
        json={"account_name": name, "account_type": "Personal", "currency": "USD", **extra},
        headers=auth_headers(user_id),
    )
    assert response.status_code == 201, response.text
    return response.json()


def _post(client: TestClient, account_number: str, kind: str, amount: str, user_id: str = "user-1"):
    return client.post(
        "/transactions",
        json={"account_number": account_number, "type": kind, "amount": amount},
        headers=auth_headers(user_id),
    )


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_create_account_credit_debit(client: TestClient) -> None:
    account = _create_account(client, "Alice")
    number = account["account_number"]
    assert AccountNumberGenerator.is_valid(number)
    assert Decimal(account["balance"]) == 0
    assert account["status"] == "Active"

    credit = _post(client, number, "Credit", "100.50")
    assert credit.status_code == 201
    body = credit.json()
    assert body["transaction"]["type"] == "Credit"
    assert Decimal(body["transaction"]["amount"]) == Decimal("100.50")
    assert Decimal(body["account"]["balance"]) == Decimal("100.50")
    assert body["account"]["account_number"] == number

    overdraft = _post(client, number, "Debit", "1100.00")
    assert overdraft.status_code == 400
    assert overdraft.json()["detail"] == "Insufficient balance"

    debit = _post(client, number, "Debit", "50.00")
    assert debit.status_code == 201
    assert Decimal(debit.json()["account"]["balance"]) == Decimal("50.50")

    snapshot = client.get(f"/accounts/{number}", headers=auth_headers())
    assert Decimal(snapshot.json()["balance"]) == Decimal("50.50")

    history = client.get("/transactions", params={"account_number": number}, headers=auth_headers())
    assert history.status_code == 200
    assert [Decimal(item["amount"]) for item in history.json()["items"]] == [
        Decimal("50.00"),
        Decimal("100.50"),
    ]


def test_requests_without_token_are_rejected(client: TestClient) -> None:
    response = client.post(
        "/accounts",
        json={"account_name": "Nobody", "account_type": "Personal", "currency": "USD"},
    )
    assert response.status_code == 401

    bad = client.get("/accounts/1234567890128", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


def test_other_users_account_is_forbidden(client: TestClient) -> None:
    number = _create_account(client, "Carol", user_id="carol")["account_number"]

    assert client.get(f"/accounts/{number}", headers=auth_headers("dave")).status_code == 403
    assert _post(client, number, "Credit", "10.00", user_id="dave").status_code == 403
    listing = client.get(
        "/transactions", params={"account_number": number}, headers=auth_headers("dave")
    )
    assert listing.status_code == 403


def test_unknown_account_returns_404(client: TestClient) -> None:
    response = client.get("/accounts/1234567890128", headers=auth_headers())
    assert response.status_code == 404

    posting = _post(client, "1234567890128", "Credit", "10.00")
    assert posting.status_code == 404


def test_transaction_request_validation(client: TestClient) -> None:
    number = _create_account(client, "Erin")["account_number"]
    broken = number[:-1] + str((int(number[-1]) + 1) % 10)

    assert _post(client, broken, "Credit", "10.00").status_code == 422
    assert _post(client, number, "Refund", "10.00").status_code == 422
    assert _post(client, number, "Credit", "0").status_code == 422
    assert _post(client, number, "Credit", "1.234").status_code == 422


def test_duplicate_account_name_conflicts(client: TestClient) -> None:
    _create_account(client, "Frank")
    response = client.post(
        "/accounts",
        json={"account_name": "Frank", "account_type": "Business", "currency": "GBP"},
        headers=auth_headers("someone-else"),
    )
    assert response.status_code == 409


def test_opening_balance(client: TestClient) -> None:
    account = _create_account(client, "Grace", balance="75.25")
    assert Decimal(account["balance"]) == Decimal("75.25")

    history = client.get(
        "/transactions",
        params={"account_number": account["account_number"]},
        headers=auth_headers(),
    )
    items = history.json()["items"]
    assert len(items) == 1
    assert items[0]["description"] == "Opening balance"


def test_update_account(client: TestClient) -> None:
    number = _create_account(client, "Heidi")["account_number"]
    response = client.put(
        f"/accounts/{number}",
        json={"account_name": "Heidi Business", "account_type": "Business", "currency": "INR"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["account_name"] == "Heidi Business"
    assert body["account_type"] == "Business"
    assert body["currency"] == "INR"


def test_transaction_pagination(client: TestClient) -> None:
    number = _create_account(client, "Ivan")["account_number"]
    for amount in ("100.00", "200.00", "300.00"):
        assert _post(client, number, "Credit", amount).status_code == 201

    first_page = client.get(
        "/transactions",
        params={"account_number": number, "per_page": 2},
        headers=auth_headers(),
    )
    assert first_page.status_code == 200
    body = first_page.json()
    # Newest first
    assert [Decimal(item["amount"]) for item in body["items"]] == [
        Decimal("300.00"),
        Decimal("200.00"),
    ]
    assert (body["page"], body["per_page"], body["total"], body["last_page"]) == (1, 2, 3, 2)

    second_page = client.get(
        "/transactions",
        params={"account_number": number, "per_page": 2, "page": 2},
        headers=auth_headers(),
    )
    assert [Decimal(item["amount"]) for item in second_page.json()["items"]] == [Decimal("100.00")]

    too_big = client.get(
        "/transactions",
        params={"account_number": number, "per_page": 101},
        headers=auth_headers(),
    )
    assert too_big.status_code == 422


def test_transaction_date_filter_excludes_future_range(client: TestClient) -> None:
    number = _create_account(client, "Judy")["account_number"]
    _post(client, number, "Credit", "10.00")

    response = client.get(
        "/transactions",
        params={"account_number": number, "from": "2999-01-01"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json()["items"] == []


def test_transaction_date_filter_includes_today(client: TestClient) -> None:
    number = _create_account(client, "Laura")["account_number"]
    _post(client, number, "Credit", "10.00")
    today = datetime.now(UTC).date().isoformat()

    response = client.get(
        "/transactions",
        params={"account_number": number, "from": today, "to": today},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert [Decimal(item["amount"]) for item in response.json()["items"]] == [Decimal("10.00")]


def test_deactivated_account(client: TestClient) -> None:
    number = _create_account(client, "Ken")["account_number"]
    _post(client, number, "Credit", "10.00")

    deleted = client.delete(f"/accounts/{number}", headers=auth_headers())
    assert deleted.status_code == 200

    assert client.get(f"/accounts/{number}", headers=auth_headers()).status_code == 404
    assert _post(client, number, "Credit", "10.00").status_code == 409
    assert client.delete(f"/accounts/{number}", headers=auth_headers()).status_code == 409

    history = client.get("/transactions", params={"account_number": number}, headers=auth_headers())
    assert history.status_code == 200
    assert len(history.json()["items"]) == 1
