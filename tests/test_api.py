import uuid

import pytest

from jobline.models.broker import Broker


@pytest.mark.asyncio
async def test_login_issues_a_usable_token(api, agency, password):
    response = await api.post(
        "/api/v1/login/access-token",
        data={"username": "Staff@Cedar.test", "password": password},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await api.get("/api/v1/applications/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_wrong_password(api, agency):
    response = await api.post(
        "/api/v1/login/access-token",
        data={"username": "staff@cedar.test", "password": "nope"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_requests_without_a_token_are_unauthenticated(api):
    response = await api.get("/api/v1/applications/")
    assert response.status_code == 401
    assert response.json() == {"detail": "Authentication required", "field": None}


@pytest.mark.asyncio
async def test_garbage_token_is_unauthenticated(api, agency):
    response = await api.get("/api/v1/applications/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_and_advance_over_http(api, agency, auth_headers):
    headers = auth_headers(agency.staff_id)
    response = await api.post(
        "/api/v1/applications/",
        json={
            "candidate_id": str(agency.candidate_id),
            "client_id": str(agency.client_id),
            "fee_template_id": str(agency.fee_template_id),
            "final_fee_amount": "1750.00",
        },
        headers=headers,
    )
    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    created = response.json()
    assert created["status"] == "PENDING_MOL"
    assert "company_id" not in created

    response = await api.post(
        f"/api/v1/applications/{created['id']}/transition",
        json={"status": "MOL_AUTH_RECEIVED"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "MOL_AUTH_RECEIVED"
    assert response.headers["cache-control"] == "no-store"

    response = await api.get(f"/api/v1/applications/{created['id']}/documents", headers=headers)
    assert [item["document_name"] for item in response.json()] == [
        "Passport Copy",
        "MoL Pre-Authorization",
        "Employer ID Copy",
    ]


@pytest.mark.asyncio
async def test_skipping_stages_is_a_field_error(api, agency, application, auth_headers):
    response = await api.post(
        f"/api/v1/applications/{application.id}/transition",
        json={"status": "ACTIVE_EMPLOYMENT"},
        headers=auth_headers(agency.staff_id),
    )
    assert response.status_code == 400
    assert response.json()["field"] == "status"


@pytest.mark.asyncio
async def test_fee_out_of_range_is_a_field_error(api, agency, application, auth_headers):
    application_id = application.id
    response = await api.patch(
        f"/api/v1/applications/{application_id}",
        json={"final_fee_amount": "2000.01"},
        headers=auth_headers(agency.staff_id),
    )
    assert response.status_code == 400
    assert response.json() == {
        "detail": "Final fee amount must be between 1200.00 and 2000.00 USD",
        "field": "final_fee_amount",
    }


@pytest.mark.asyncio
async def test_foreign_and_missing_applications_look_the_same(api, rival, application, auth_headers):
    headers = auth_headers(rival.staff_id)
    foreign = await api.get(f"/api/v1/applications/{application.id}", headers=headers)
    missing = await api.get(f"/api/v1/applications/{uuid.uuid4()}", headers=headers)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


@pytest.mark.asyncio
async def test_staff_cannot_edit_document_rules(api, agency, auth_headers):
    payload = {"stage": "VISA_RECEIVED", "name": "Flight Ticket", "required_from": "client"}

    response = await api.post("/api/v1/document-templates/", json=payload, headers=auth_headers(agency.staff_id))
    assert response.status_code == 403

    response = await api.post("/api/v1/document-templates/", json=payload, headers=auth_headers(agency.owner_id))
    assert response.status_code == 200
    assert response.json()["required_from"] == "client"


@pytest.mark.asyncio
async def test_broken_fee_template_is_rejected(api, agency, auth_headers):
    response = await api.post(
        "/api/v1/fee-templates/",
        json={"name": "Upside down", "default_price": "100", "min_price": "500", "max_price": "200"},
        headers=auth_headers(agency.owner_id),
    )
    assert response.status_code == 400
    assert response.json()["field"] == "min_price"


@pytest.mark.asyncio
async def test_fee_dry_run(api, agency, auth_headers):
    response = await api.post(
        f"/api/v1/fee-templates/{agency.fee_template_id}/validate",
        json={"amount": "2000.00"},
        headers=auth_headers(agency.staff_id),
    )
    assert response.status_code == 200
    assert response.json()["ok"] is True


@pytest.mark.asyncio
async def test_financials_hide_costs_from_staff(api, agency, application, auth_headers):
    response = await api.get(
        f"/api/v1/applications/{application.id}/financials", headers=auth_headers(agency.staff_id)
    )
    assert response.status_code == 200
    assert "total_costs" not in response.json()
    assert "profit" not in response.json()


@pytest.mark.asyncio
async def test_public_share_page(api, agency, application, auth_headers):
    response = await api.get(
        f"/api/v1/applications/{application.id}/share-link", headers=auth_headers(agency.staff_id)
    )
    link = response.json()["shareable_link"]
    assert response.json()["url"].endswith(f"/share/{link}")

    response = await api.get(f"/share/{link}")
    assert response.status_code == 200
    body = response.json()
    assert body["candidate_first_name"] == "Amina"
    for hidden in ("id", "company_id", "final_fee_amount", "shareable_link"):
        assert hidden not in body


@pytest.mark.asyncio
async def test_public_share_page_unknown_link(api):
    response = await api.get("/share/thisLinkDoesNotExist123")
    assert response.status_code == 404
    assert response.json() == {"detail": "Application not found", "field": None}


@pytest.mark.asyncio
async def test_history_and_next_states(api, agency, application, auth_headers):
    headers = auth_headers(agency.staff_id)
    history = await api.get(f"/api/v1/applications/{application.id}/history", headers=headers)
    assert [entry["action"] for entry in history.json()] == ["created"]

    states = await api.get(f"/api/v1/applications/{application.id}/next-states", headers=headers)
    assert states.json()["forward"] == ["MOL_AUTH_RECEIVED"]
    assert states.json()["suggested_cancellation"] == "CANCELLED_PRE_ARRIVAL"


@pytest.mark.asyncio
async def test_me(api, agency, auth_headers):
    response = await api.get("/api/v1/users/me", headers=auth_headers(agency.owner_id))
    assert response.status_code == 200
    assert response.json()["role"] == "SUPER_ADMIN"
    assert "hashed_password" not in response.json()

    response = await api.get("/api/v1/users/me/company", headers=auth_headers(agency.owner_id))
    assert response.json()["name"] == "Cedar Recruitment"


@pytest.mark.asyncio
async def test_broker_contact_details_have_a_fixed_shape(api, session, agency, rival, auth_headers):
    session.add_all([
        Broker(
            name="Addis Link",
            contact_details={"phone": "+251 11 555 0101", "whatsapp": "yes"},
            company_id=agency.company_id,
        ),
        Broker(name="Harbor Agent", contact_details={}, company_id=rival.company_id),
    ])
    await session.commit()

    response = await api.get("/api/v1/brokers/", headers=auth_headers(agency.staff_id))
    assert response.status_code == 200
    assert response.json() == [{
        "id": response.json()[0]["id"],
        "name": "Addis Link",
        "contact_details": {"phone": "+251 11 555 0101", "email": None, "address": None},
    }]


@pytest.mark.asyncio
async def test_broker_contact_details_tolerate_legacy_values(api, session, agency, auth_headers):
    broker = Broker(
        name="Legacy Import",
        contact_details={"phone": 96170123456, "email": "desk@legacy.test", "address": {"city": "Beirut"}},
        company_id=agency.company_id,
    )
    session.add(broker)
    await session.commit()

    response = await api.get(f"/api/v1/brokers/{broker.id}", headers=auth_headers(agency.staff_id))
    assert response.status_code == 200
    assert response.json()["contact_details"] == {
        "phone": "96170123456",
        "email": "desk@legacy.test",
        "address": None,
    }
