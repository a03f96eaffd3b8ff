from fastapi import status

def _create_balance(client, admin_user, auth_headers, user, year, **extra):
    return client.post(
        "/api/leave_balances",
        headers=auth_headers(admin_user),
        json={"user": f"/api/users/{user.id}", "year": year, **extra},
    )

def test_create_annual_balance(client, admin_user, employee_user, auth_headers):
    response = _create_balance(client, admin_user, auth_headers, employee_user, 2025)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["@type"] == "LeaveBalance"
    assert data["@id"] == f"/api/leave_balances/{data['id']}"
    assert data["user"] == f"/api/users/{employee_user.id}"
    assert data["remainingPaidLeave"] == 22
    assert data["remainingSickLeave"] == 15

    again = _create_balance(client, admin_user, auth_headers, employee_user, 2025)
    assert again.status_code == status.HTTP_409_CONFLICT

def test_create_prorated_balance(client, admin_user, employee_user, auth_headers):
    response = _create_balance(client, admin_user, auth_headers, employee_user, 2024, monthsWorked=6)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["initialPaidLeave"] == 11
    assert response.json()["initialSickLeave"] == 8

def test_carry_over_endpoint(client, admin_user, employee_user, auth_headers):
    _create_balance(client, admin_user, auth_headers, employee_user, 2024)
    response = client.post(
        "/api/leave_balances/carry_over",
        headers=auth_headers(admin_user),
        json={"user": f"/api/users/{employee_user.id}", "fromYear": 2024, "daysToCarryOver": 5},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["fromBalance"]["remainingPaidLeave"] == 17
    assert data["fromBalance"]["carriedOverToNextYear"] == 5
    assert data["toBalance"]["year"] == 2025
    assert data["toBalance"]["carriedOverFromPreviousYear"] == 5
    assert data["toBalance"]["remainingPaidLeave"] == 27

def test_carry_over_too_many_days(client, admin_user, employee_user, auth_headers):
    _create_balance(client, admin_user, auth_headers, employee_user, 2024)
    response = client.post(
        "/api/leave_balances/carry_over",
        headers=auth_headers(admin_user),
        json={"user": employee_user.id, "fromYear": 2024, "daysToCarryOver": 30},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"

def test_deduct_endpoint(client, admin_user, employee_user, auth_headers):
    _create_balance(client, admin_user, auth_headers, employee_user, 2025)
    response = client.post(
        "/api/leave_balances/deduct",
        headers=auth_headers(admin_user),
        json={"user": f"/api/users/{employee_user.id}", "year": 2025, "days": 3, "leaveType": "sick"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["remainingSickLeave"] == 12

def test_employee_reads_only_own_balances(client, admin_user, employee_user, auth_headers):
    _create_balance(client, admin_user, auth_headers, employee_user, 2025)
    _create_balance(client, admin_user, auth_headers, admin_user, 2025)

    own = client.get("/api/leave_balances", params={"year": 2025}, headers=auth_headers(employee_user)).json()
    assert own["hydra:totalItems"] == 1
    assert own["hydra:member"][0]["user"] == f"/api/users/{employee_user.id}"

    other = client.get(
        "/api/leave_balances",
        params={"user": f"/api/users/{admin_user.id}"},
        headers=auth_headers(employee_user),
    )
    assert other.status_code == status.HTTP_403_FORBIDDEN

def test_employee_cannot_change_balances(client, admin_user, employee_user, auth_headers):
    created = _create_balance(client, admin_user, auth_headers, employee_user, 2025).json()
    response = client.put(
        f"/api/leave_balances/{created['id']}",
        headers=auth_headers(employee_user),
        json={"carriedOverToNextYear": 10},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_invalid_user_reference(client, admin_user, auth_headers):
    response = client.post(
        "/api/leave_balances",
        headers=auth_headers(admin_user),
        json={"user": "/api/leaves/3", "year": 2025},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

def test_carry_over_after_put_cannot_exceed_remaining(client, admin_user, employee_user, auth_headers):
    created = _create_balance(client, admin_user, auth_headers, employee_user, 2024).json()
    put = client.put(
        f"/api/leave_balances/{created['id']}",
        headers=auth_headers(admin_user),
        json={"carriedOverToNextYear": 5},
    )
    assert put.status_code == status.HTTP_200_OK
    assert put.json()["remainingPaidLeave"] == 22

    response = client.post(
        "/api/leave_balances/carry_over",
        headers=auth_headers(admin_user),
        json={"user": employee_user.id, "fromYear": 2024, "daysToCarryOver": 27},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"
