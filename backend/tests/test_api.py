from datetime import datetime, timedelta, timezone

from followup.auth import create_token

from factories import (
    AGENT_ID,
    DIRECTOR_ID,
    DOCTOR_ID,
    NO_ROLE_ID,
    NURSE_ID,
    OTHER_DOCTOR_ID,
    auth_headers,
    make_appointment,
    make_patient,
    make_record,
    make_visit,
)


def today():
    return datetime.now(timezone.utc).date()


async def seed_overdue_population(add_rows):
    late = make_patient("p-late", "Ana Lima", manual_priority="urgent")
    booked = make_patient("p-booked", "Bruno Alves")
    fine = make_patient("p-fine", "Carla Souza", manual_priority="low")
    await add_rows(
        late, booked, fine,
        make_record(late, today() - timedelta(days=45), diagnosis="Diabetes"),
        make_record(booked, today() - timedelta(days=45)),
        make_appointment(booked, "scheduled"),
        make_record(fine, today() + timedelta(days=10)),
        make_visit(late),
    )


async def test_health(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_requests_without_token_are_rejected(client):
    assert (await client.get("/api/dashboard")).status_code == 401
    assert (await client.get("/api/busca-ativa")).status_code == 401
    bad = auth_headers("not-a-jwt")
    assert (await client.get("/api/patients", headers=bad)).status_code == 401


async def test_token_issuance_bakes_in_permissions(client, staff):
    response = await client.post("/api/auth/token", json={"user_id": DIRECTOR_ID})
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "doctor"
    assert body["permissions"] == ["director"]

    me = await client.get("/api/auth/me", headers=auth_headers(body["access_token"]))
    assert me.status_code == 200
    assert "director_analytics" in me.json()["panels"]


async def test_token_for_unknown_user(client, staff):
    response = await client.post("/api/auth/token", json={"user_id": "nobody"})
    assert response.status_code == 404


async def test_busca_ativa_forbidden_for_doctor(client, staff):
    response = await client.get("/api/busca-ativa", headers=auth_headers(staff[DOCTOR_ID]))
    assert response.status_code == 403


async def test_busca_ativa_lists_overdue_unscheduled_patients(client, staff, add_rows):
    await seed_overdue_population(add_rows)

    response = await client.get("/api/busca-ativa", headers=auth_headers(staff[NURSE_ID]))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    entry = body["patients"][0]
    assert entry["patient_id"] == "p-late"
    assert entry["days_overdue"] == 45
    assert entry["severity"] == "critical"
    assert entry["last_diagnosis"] == "Diabetes"


async def test_agent_can_open_busca_ativa(client, staff):
    response = await client.get("/api/busca-ativa", headers=auth_headers(staff[AGENT_ID]))
    assert response.status_code == 200
    assert response.json()["patients"] == []


async def test_dashboard_for_nurse_shows_totals_and_overdue(client, staff, add_rows):
    await seed_overdue_population(add_rows)

    response = await client.get("/api/dashboard", headers=auth_headers(staff[NURSE_ID]))

    assert response.status_code == 200
    body = response.json()
    assert body["greeting"] == "Boas-vindas, Enf. Clara"
    assert body["panels"] == ["population_totals", "overdue_count", "overdue_list"]
    assert body["stats"] == {"total_patients": 3, "scheduled_appointments": 1, "overdue_patients": 1}


async def test_dashboard_hides_population_totals_from_agent(client, staff, add_rows):
    await seed_overdue_population(add_rows)

    response = await client.get("/api/dashboard", headers=auth_headers(staff[AGENT_ID]))

    body = response.json()
    assert "population_totals" not in body["panels"]
    assert "territory_shortcut" in body["panels"]
    assert body["stats"]["total_patients"] is None
    assert body["stats"]["scheduled_appointments"] is None
    assert body["stats"]["overdue_patients"] == 1


async def test_dashboard_for_user_without_role(client, staff):
    response = await client.get("/api/dashboard", headers=auth_headers(staff[NO_ROLE_ID]))

    body = response.json()
    assert body["role"] is None
    assert body["panels"] == []
    assert body["greeting"] == "Sem"


async def test_director_analytics_requires_permission(client, staff):
    response = await client.get("/api/analytics/director", headers=auth_headers(staff[DOCTOR_ID]))
    assert response.status_code == 403


async def test_director_analytics(client, staff, add_rows):
    await seed_overdue_population(add_rows)

    response = await client.get("/api/analytics/director", headers=auth_headers(staff[DIRECTOR_ID]))

    assert response.status_code == 200
    body = response.json()
    assert {b["key"]: b["value"] for b in body["priority_distribution"]} == {
        "unassigned": 1,
        "low": 1,
        "urgent": 1,
    }
    assert {b["key"]: b["value"] for b in body["delay_distribution"]}[">30"] == 1
    assert {e["key"]: e["value"] for e in body["effectiveness"]} == {"visits": 1, "appointments": 1}


async def test_director_permission_without_role_still_gets_analytics(client, staff):
    token = create_token(NO_ROLE_ID, ["director"])
    response = await client.get("/api/analytics/director", headers=auth_headers(token))
    assert response.status_code == 200


async def test_analytics_window_is_validated(client, staff):
    response = await client.get(
        "/api/analytics/director?window_days=0", headers=auth_headers(staff[DIRECTOR_ID])
    )
    assert response.status_code == 422


async def test_record_create_and_non_author_update(client, staff, add_rows):
    await add_rows(make_patient("p1", "Maria Silva"))
    deadline = (today() - timedelta(days=3)).isoformat()

    created = await client.post(
        "/api/records",
        json={"patient_id": "p1", "diagnosis": "Asma", "return_deadline_date": deadline},
        headers=auth_headers(staff[DOCTOR_ID]),
    )
    assert created.status_code == 201
    record = created.json()
    assert record["doctor_id"] == DOCTOR_ID
    assert record["is_overdue"] is True

    forbidden = await client.put(
        f"/api/records/{record['id']}",
        json={"diagnosis": "Alterado"},
        headers=auth_headers(staff[OTHER_DOCTOR_ID]),
    )
    assert forbidden.status_code == 403

    listing = await client.get("/api/records", headers=auth_headers(staff[DOCTOR_ID]))
    assert listing.json()["records"][0]["diagnosis"] == "Asma"

    allowed = await client.put(
        f"/api/records/{record['id']}",
        json={"diagnosis": "Asma moderada"},
        headers=auth_headers(staff[DOCTOR_ID]),
    )
    assert allowed.status_code == 200
    assert allowed.json()["diagnosis"] == "Asma moderada"


async def test_record_for_unknown_patient(client, staff):
    response = await client.post(
        "/api/records", json={"patient_id": "missing"}, headers=auth_headers(staff[DOCTOR_ID])
    )
    assert response.status_code == 404


async def test_scheduling_removes_patient_from_busca_ativa(client, staff, add_rows):
    patient = make_patient("p1", "Maria Silva")
    await add_rows(patient, make_record(patient, today() - timedelta(days=20)))
    headers = auth_headers(staff[NURSE_ID])

    assert (await client.get("/api/busca-ativa", headers=headers)).json()["total"] == 1

    booked = await client.post("/api/appointments", json={"patient_id": "p1"}, headers=headers)
    assert booked.status_code == 201
    assert booked.json()["status"] == "scheduled"
    assert (await client.get("/api/busca-ativa", headers=headers)).json()["total"] == 0

    cancelled = await client.patch(
        f"/api/appointments/{booked.json()['id']}/status",
        json={"status": "cancelled"},
        headers=headers,
    )
    assert cancelled.status_code == 200
    assert (await client.get("/api/busca-ativa", headers=headers)).json()["total"] == 1


async def test_patients_search_and_visit(client, staff):
    headers = auth_headers(staff[AGENT_ID])
    created = await client.post(
        "/api/patients",
        json={"full_name": "Joana Pereira", "cns": "700000000000001", "manual_priority": "high"},
        headers=headers,
    )
    assert created.status_code == 201
    patient_id = created.json()["id"]

    found = await client.get("/api/patients", params={"search": "joana"}, headers=headers)
    assert found.json()["total"] == 1

    visit = await client.post("/api/visits", json={"patient_id": patient_id}, headers=headers)
    assert visit.status_code == 201
    assert visit.json()["agent_id"] == AGENT_ID


async def test_patients_by_territory(client, staff, add_rows):
    await add_rows(
        make_patient("p1", "Maria Silva", territory="Microárea 01"),
        make_patient("p2", "José Santos", territory="Microárea 02"),
    )
    response = await client.get(
        "/api/patients", params={"territory": "Microárea 02"}, headers=auth_headers(staff[AGENT_ID])
    )
    assert [p["id"] for p in response.json()["patients"]] == ["p2"]


async def test_unknown_patient_is_404(client, staff):
    headers = auth_headers(staff[NURSE_ID])
    assert (await client.get("/api/patients/missing", headers=headers)).status_code == 404
    update = await client.put("/api/patients/missing", json={"phone": "(11) 90000-0000"}, headers=headers)
    assert update.status_code == 404
    visit = await client.post("/api/visits", json={"patient_id": "missing"}, headers=headers)
    assert visit.status_code == 404


async def test_patient_name_cannot_be_cleared(client, staff, add_rows):
    await add_rows(make_patient("p1", "Maria Silva"))
    headers = auth_headers(staff[NURSE_ID])

    for body in ({"full_name": None}, {"full_name": "   "}):
        response = await client.put("/api/patients/p1", json=body, headers=headers)
        assert response.status_code == 422

    phone_only = await client.put("/api/patients/p1", json={"phone": "(11) 90000-0000"}, headers=headers)
    assert phone_only.status_code == 200
    assert phone_only.json()["full_name"] == "Maria Silva"
