import pytest
import requests
from unittest import mock

from leavetrack.client import (
    ApiError,
    LeaveTrackClient,
    NetworkError,
    filename_from_content_disposition,
    members,
)

BASE_URL = "http://leavetrack.local/api"

def _response(status_code=200, json_data=None, content=None, headers=None):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers or {}
    if json_data is not None:
        response.json.return_value = json_data
        response.content = content if content is not None else b"{...}"
    else:
        response.json.side_effect = ValueError("no json")
        response.content = content if content is not None else b""
    return response

@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)

@pytest.fixture
def api(session):
    return LeaveTrackClient(BASE_URL, token="abc", session=session)

def test_members_accepts_both_keys():
    assert members({"hydra:member": [1]}) == [1]
    assert members({"member": [2]}) == [2]
    assert members({}) == []

@pytest.mark.parametrize("header,expected", [
    ("attachment; filename=\"arrt.pdf\"; filename*=UTF-8''arr%C3%AAt.pdf", "arrêt.pdf"),
    ('attachment; filename="note.pdf"', "note.pdf"),
    ("attachment; filename=note.pdf", "note.pdf"),
    ("attachment", None),
    (None, None),
])
def test_filename_from_content_disposition(header, expected):
    assert filename_from_content_disposition(header) == expected

def test_login_stores_token(session):
    session.request.return_value = _response(json_data={"token": "jwt-token", "user": {"id": 7}})
    api = LeaveTrackClient(BASE_URL, session=session)

    user = api.login("bob@leavetrack.io", "secret")

    assert user == {"id": 7}
    assert api.token == "jwt-token"
    method, url = session.request.call_args[0]
    assert (method, url) == ("POST", f"{BASE_URL}/login")
    assert "Authorization" not in session.request.call_args[1]["headers"]

def test_bearer_token_sent(api, session):
    session.request.return_value = _response(json_data={"hydra:member": []})
    api.list_leaves()
    assert session.request.call_args[1]["headers"]["Authorization"] == "Bearer abc"

def test_get_user_balance_matches_user_and_year(api, session):
    session.request.return_value = _response(json_data={"hydra:member": [
        {"id": 1, "user": "/api/users/7", "year": 2024},
        {"id": 2, "user": "/api/users/7", "year": 2025},
    ]})
    assert api.get_user_balance(7, 2025)["id"] == 2
    assert api.get_user_balance(8, 2025) is None

def test_get_user_balance_swallows_errors(api, session):
    session.request.side_effect = requests.ConnectionError("down")
    assert api.get_user_balance(7, 2025) is None

def test_update_leave_balance_keeps_user_and_year(api, session):
    current = {"id": 3, "user": "/api/users/7", "year": 2024, "carriedOverToNextYear": 0}
    session.request.side_effect = [
        _response(json_data=current),
        _response(json_data={**current, "carriedOverToNextYear": 4}),
    ]

    result = api.update_leave_balance(3, {"carriedOverToNextYear": 4, "year": 1999})

    assert result["carriedOverToNextYear"] == 4
    put_call = session.request.call_args_list[1]
    assert put_call[0] == ("PUT", f"{BASE_URL}/leave_balances/3")
    body = put_call[1]["json"]
    assert body["user"] == "/api/users/7"
    assert body["year"] == 2024
    assert body["@type"] == "LeaveBalance"
    assert put_call[1]["headers"]["Content-Type"] == "application/ld+json"

def test_carry_over_payload(api, session):
    session.request.return_value = _response(json_data={"fromBalance": {}, "toBalance": {}})
    api.carry_over_leaves(7, 2024, 5)
    assert session.request.call_args[1]["json"] == {
        "user": "/api/users/7", "fromYear": 2024, "daysToCarryOver": 5,
    }

def test_get_pending_leaves_filters_status(api, session):
    session.request.return_value = _response(json_data={"member": [{"id": 1}]})
    assert api.get_pending_leaves() == [{"id": 1}]
    assert session.request.call_args[1]["params"] == {"status": "En attente"}

def test_approve_and_reject(api, session):
    session.request.return_value = _response(json_data={"id": 4})
    api.approve_leave(4)
    assert session.request.call_args[1]["json"] == {"status": "Approuvé"}
    api.reject_leave(4)
    assert session.request.call_args[1]["json"] == {"status": "Rejeté"}

def test_api_error_carries_server_message(api, session):
    session.request.return_value = _response(
        status_code=400,
        json_data={"success": False, "errors": [{"msg": "Insufficient balance", "code": "INSUFFICIENT_BALANCE"}]},
    )
    with pytest.raises(ApiError) as exc_info:
        api.approve_leave(4)
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Insufficient balance"

def test_network_error(api, session):
    session.request.side_effect = requests.Timeout("slow")
    with pytest.raises(NetworkError):
        api.list_leaves()

def test_upload_certificate(api, session):
    session.request.return_value = _response(json_data={"id": 4, "certificate": "note.pdf"})
    assert api.upload_certificate(4, "note.pdf", b"%PDF") == "note.pdf"
    files = session.request.call_args[1]["files"]
    assert files["certificate[]"][0] == "note.pdf"

def test_upload_certificate_requires_content(api):
    with pytest.raises(ValueError):
        api.upload_certificate(4, "note.pdf", b"")

def test_download_certificate_uses_header_name(api, session):
    session.request.return_value = _response(
        content=b"%PDF",
        headers={
            "Content-Disposition": "attachment; filename=\"arrt.pdf\"; filename*=UTF-8''arr%C3%AAt.pdf",
            "Content-Type": "application/pdf",
        },
    )
    assert api.download_certificate(4) == ("arrêt.pdf", b"%PDF", "application/pdf")

def test_download_certificate_falls_back_to_leave_record(api, session):
    session.request.side_effect = [
        _response(content=b"data", headers={"Content-Type": "image/png"}),
        _response(json_data={"id": 4, "certificate": "scan.png"}),
    ]
    assert api.download_certificate(4)[0] == "scan.png"

def test_download_certificate_default_name(api, session):
    session.request.side_effect = [
        _response(content=b"data"),
        _response(json_data={"id": 4, "certificate": None}),
    ]
    assert api.download_certificate(4)[0] == "certificat-4"

def test_download_certificate_wraps_errors(api, session):
    session.request.return_value = _response(status_code=404, json_data={"errors": [{"msg": "Leave 4 has no certificate"}]})
    with pytest.raises(ApiError) as exc_info:
        api.download_certificate(4)
    assert "Certificate download failed" in str(exc_info.value)
    assert exc_info.value.status_code == 404

def test_list_users_sorted(api, session):
    session.request.return_value = _response(json_data={"hydra:member": [
        {"firstName": "Zoé", "lastName": "Blanc"},
        {"firstName": "Adam", "lastName": "Roux"},
    ]})
    assert [u["firstName"] for u in api.list_users()] == ["Adam", "Zoé"]

def test_list_users_degrades_to_empty(api, session):
    session.request.return_value = _response(status_code=500)
    assert api.list_users() == []

def test_get_holidays(api, session):
    session.request.return_value = _response(json_data={"hydra:member": [{"date": "2025-05-01"}]})
    assert api.get_holidays(2025) == [{"date": "2025-05-01"}]
    assert session.request.call_args[1]["params"] == {"year": 2025}
