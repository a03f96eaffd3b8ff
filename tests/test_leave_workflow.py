import pytest
from datetime import date
from urllib.parse import quote

from leavetrack.models.holiday import Holiday
from leavetrack.models.leave import Leave, LeaveStatus
from leavetrack.models.leave_balance import LeaveBalance

PAID = "Congé payé"
SICK = "Congé maladie"
UNPAID = "Congé sans solde"

@pytest.fixture
def balance_2025(db_session, employee_user):
    balance = LeaveBalance(
        user_id=employee_user.id,
        year=2025,
        initial_paid_leave=22,
        initial_sick_leave=15,
        remaining_paid_leave=22,
        remaining_sick_leave=15,
        carried_over_from_previous_year=2,
        carried_over_to_next_year=0,
    )
    db_session.add(balance)
    db_session.commit()
    return balance

def _create_leave(client, user, auth_headers, leave_type=PAID, start="2025-03-03", end="2025-03-07", **extra):
    response = client.post(
        "/api/leaves",
        headers=auth_headers(user),
        json={"type": leave_type, "startDate": start, "endDate": end, "reason": "Family trip", **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()

def _set_status(client, admin_user, auth_headers, leave_id, status):
    return client.put(
        f"/api/leaves/{leave_id}/status",
        headers=auth_headers(admin_user),
        json={"status": status},
    )

def test_create_leave_request(client, employee_user, auth_headers):
    """Test creating a leave request."""
    data = _create_leave(client, employee_user, auth_headers)
    assert data["@type"] == "Leave"
    assert data["@id"] == f"/api/leaves/{data['id']}"
    assert data["user"] == f"/api/users/{employee_user.id}"
    assert data["status"] == "En attente"
    assert data["totalDays"] == 5.0

def test_total_days_skip_weekend_and_holidays(client, db_session, employee_user, auth_headers):
    db_session.add(Holiday(date=date(2025, 3, 5), name="Local holiday"))
    db_session.commit()
    # Friday to Wednesday with a half day on Tuesday
    data = _create_leave(
        client, employee_user, auth_headers,
        start="2025-02-28", end="2025-03-05", halfDayOptions=["2025-03-04"],
    )
    # Fri 28, Mon 3, Tue 4 (half), Wed 5 is a holiday
    assert data["totalDays"] == 2.5

def test_weekend_only_leave_is_rejected(client, employee_user, auth_headers):
    response = client.post(
        "/api/leaves",
        headers=auth_headers(employee_user),
        json={"type": PAID, "startDate": "2025-03-08", "endDate": "2025-03-09"},
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "VALIDATION_ERROR"

def test_end_before_start_is_rejected(client, employee_user, auth_headers):
    response = client.post(
        "/api/leaves",
        headers=auth_headers(employee_user),
        json={"type": PAID, "startDate": "2025-03-07", "endDate": "2025-03-03"},
    )
    assert response.status_code == 422

def test_approval_deducts_paid_balance(client, db_session, admin_user, employee_user, auth_headers, balance_2025):
    """Carried-over days are consumed before this year's days."""
    leave = _create_leave(client, employee_user, auth_headers)
    response = _set_status(client, admin_user, auth_headers, leave["id"], "Approuvé")
    assert response.status_code == 200
    assert response.json()["status"] == "Approuvé"

    db_session.refresh(balance_2025)
    assert balance_2025.carried_over_from_previous_year == 0
    assert balance_2025.remaining_paid_leave == 19

def test_approval_rounds_half_days_up(client, db_session, admin_user, employee_user, auth_headers, balance_2025):
    leave = _create_leave(
        client, employee_user, auth_headers, leave_type=SICK,
        start="2025-03-03", end="2025-03-04", halfDayOptions=["2025-03-04"],
    )
    assert leave["totalDays"] == 1.5
    _set_status(client, admin_user, auth_headers, leave["id"], "Approuvé")
    db_session.refresh(balance_2025)
    assert balance_2025.remaining_sick_leave == 13

def test_unpaid_leave_does_not_touch_balance(client, db_session, admin_user, employee_user, auth_headers, balance_2025):
    leave = _create_leave(client, employee_user, auth_headers, leave_type=UNPAID)
    response = _set_status(client, admin_user, auth_headers, leave["id"], "Approuvé")
    assert response.status_code == 200
    db_session.refresh(balance_2025)
    assert balance_2025.remaining_paid_leave == 22
    assert balance_2025.remaining_sick_leave == 15

def test_failed_deduction_keeps_leave_pending(client, db_session, admin_user, employee_user, auth_headers, balance_2025):
    balance_2025.remaining_paid_leave = 1
    balance_2025.carried_over_from_previous_year = 0
    db_session.commit()

    leave = _create_leave(client, employee_user, auth_headers)
    response = _set_status(client, admin_user, auth_headers, leave["id"], "Approuvé")
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"

    assert db_session.get(Leave, leave["id"]).status == LeaveStatus.PENDING.value
    db_session.refresh(balance_2025)
    assert balance_2025.remaining_paid_leave == 1

def test_approval_without_balance_is_not_found(client, db_session, admin_user, employee_user, auth_headers):
    leave = _create_leave(client, employee_user, auth_headers)
    response = _set_status(client, admin_user, auth_headers, leave["id"], "Approuvé")
    assert response.status_code == 404
    assert db_session.get(Leave, leave["id"]).status == LeaveStatus.PENDING.value

def test_rejection(client, admin_user, employee_user, auth_headers, balance_2025):
    leave = _create_leave(client, employee_user, auth_headers)
    response = _set_status(client, admin_user, auth_headers, leave["id"], "Rejeté")
    assert response.status_code == 200
    assert response.json()["status"] == "Rejeté"

    again = _set_status(client, admin_user, auth_headers, leave["id"], "Approuvé")
    assert again.status_code == 400

def test_employee_cannot_approve(client, employee_user, auth_headers, balance_2025):
    leave = _create_leave(client, employee_user, auth_headers)
    response = _set_status(client, employee_user, auth_headers, leave["id"], "Approuvé")
    assert response.status_code == 403

def test_employee_cannot_edit_processed_leave(client, admin_user, employee_user, auth_headers, balance_2025):
    leave = _create_leave(client, employee_user, auth_headers)
    _set_status(client, admin_user, auth_headers, leave["id"], "Approuvé")
    response = client.put(
        f"/api/leaves/{leave['id']}",
        headers=auth_headers(employee_user),
        json={"reason": "Changed my mind"},
    )
    assert response.status_code == 403

def test_employee_updates_pending_leave(client, employee_user, auth_headers):
    leave = _create_leave(client, employee_user, auth_headers)
    response = client.put(
        f"/api/leaves/{leave['id']}",
        headers=auth_headers(employee_user),
        json={"endDate": "2025-03-04"},
    )
    assert response.status_code == 200
    assert response.json()["totalDays"] == 2.0

def test_employee_sees_only_own_leaves(client, admin_user, employee_user, auth_headers):
    _create_leave(client, employee_user, auth_headers)
    _create_leave(client, admin_user, auth_headers)

    own = client.get("/api/leaves", headers=auth_headers(employee_user)).json()
    assert own["hydra:totalItems"] == 1

    everyone = client.get("/api/leaves", headers=auth_headers(admin_user)).json()
    assert everyone["hydra:totalItems"] == 2

    forbidden = client.get(
        "/api/leaves",
        params={"user": f"/api/users/{admin_user.id}"},
        headers=auth_headers(employee_user),
    )
    assert forbidden.status_code == 403

def test_filter_pending_leaves(client, admin_user, employee_user, auth_headers, balance_2025):
    first = _create_leave(client, employee_user, auth_headers)
    _create_leave(client, employee_user, auth_headers, start="2025-04-07", end="2025-04-08")
    _set_status(client, admin_user, auth_headers, first["id"], "Rejeté")

    response = client.get("/api/leaves", params={"status": "En attente"}, headers=auth_headers(admin_user))
    data = response.json()
    assert data["hydra:totalItems"] == 1
    assert data["hydra:member"][0]["startDate"] == "2025-04-07"

def test_delete_leave(client, db_session, employee_user, auth_headers):
    leave = _create_leave(client, employee_user, auth_headers)
    response = client.delete(f"/api/leaves/{leave['id']}", headers=auth_headers(employee_user))
    assert response.status_code == 204
    assert db_session.get(Leave, leave["id"]) is None

def test_certificate_round_trip(client, employee_user, auth_headers):
    leave = _create_leave(client, employee_user, auth_headers, leave_type=SICK)
    filename = "arrêt maladie.pdf"
    content = b"%PDF-1.4 medical certificate"

    upload = client.post(
        f"/api/leaves/{leave['id']}/certificate",
        headers=auth_headers(employee_user),
        files={"certificate[]": (filename, content, "application/pdf")},
    )
    assert upload.status_code == 200
    assert upload.json()["certificate"] == filename

    download = client.get(f"/api/leaves/{leave['id']}/certificate", headers=auth_headers(employee_user))
    assert download.status_code == 200
    assert download.content == content
    disposition = download.headers["content-disposition"]
    assert f"filename*=UTF-8''{quote(filename)}" in disposition
    assert 'filename="arrt maladie.pdf"' in disposition

    removed = client.delete(f"/api/leaves/{leave['id']}/certificate", headers=auth_headers(employee_user))
    assert removed.status_code == 204
    missing = client.get(f"/api/leaves/{leave['id']}/certificate", headers=auth_headers(employee_user))
    assert missing.status_code == 404

def test_certificate_rejects_unknown_extension(client, employee_user, auth_headers):
    leave = _create_leave(client, employee_user, auth_headers, leave_type=SICK)
    response = client.post(
        f"/api/leaves/{leave['id']}/certificate",
        headers=auth_headers(employee_user),
        files={"certificate": ("notes.exe", b"MZ", "application/octet-stream")},
    )
    assert response.status_code == 400

def test_certificate_requires_a_file(client, employee_user, auth_headers):
    leave = _create_leave(client, employee_user, auth_headers, leave_type=SICK)
    response = client.post(
        f"/api/leaves/{leave['id']}/certificate",
        headers=auth_headers(employee_user),
        data={"comment": "no file"},
    )
    assert response.status_code == 400
