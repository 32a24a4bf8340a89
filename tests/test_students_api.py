from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.core.models import AttendanceRecord, MonthlyFee


STUDENT_PAYLOAD = {
    "name": "Kiran Das",
    "registration_number": "MTA-010",
    "date_of_birth": "2010-02-20",
    "gender": "male",
    "guardian_name": "Meena Das",
    "phone_number": "9000000001",
    "fee_structure": "four_classes",
}


@pytest.mark.asyncio
async def test_create_and_get_student(client: AsyncClient, admin_headers: dict) -> None:
    response = await client.post("/api/v1/students", json=STUDENT_PAYLOAD, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["current_belt"] == "white"
    assert data["current_belt_label"] == "White"
    assert data["fee_structure_label"] == "4 classes per week"
    assert data["admission_date"] == date.today().isoformat()
    assert data["age"] >= 14

    response = await client.get(f"/api/v1/students/{data['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Kiran Das"


@pytest.mark.asyncio
async def test_duplicate_registration_number(client: AsyncClient, admin_headers: dict) -> None:
    first = await client.post("/api/v1/students", json=STUDENT_PAYLOAD, headers=admin_headers)
    assert first.status_code == 201
    second = await client.post(
        "/api/v1/students",
        json={**STUDENT_PAYLOAD, "name": "Someone Else"},
        headers=admin_headers,
    )
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_viewer_cannot_create_student(client: AsyncClient, viewer_headers: dict) -> None:
    response = await client.post("/api/v1/students", json=STUDENT_PAYLOAD, headers=viewer_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Only administrators can perform this action"


@pytest.mark.asyncio
async def test_unauthenticated_request_rejected(client: AsyncClient, db_session: AsyncSession) -> None:
    response = await client.get("/api/v1/students")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_active_only(client: AsyncClient, admin_headers: dict, make_student) -> None:
    await make_student(name="Zara Khan")
    await make_student(name="Anil Kumar")
    await make_student(name="Old Student", is_active=False)

    response = await client.get("/api/v1/students", params={"active_only": True}, headers=admin_headers)
    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Anil Kumar", "Zara Khan"]

    response = await client.get("/api/v1/students", headers=admin_headers)
    assert len(response.json()) == 3


@pytest.mark.asyncio
async def test_search_by_name(client: AsyncClient, admin_headers: dict, make_student) -> None:
    await make_student(name="Asha Rao")
    await make_student(name="Bilal Khan")
    await make_student(name="Natasha Iyer", is_active=False)

    response = await client.get("/api/v1/students", params={"search": "ASHA"}, headers=admin_headers)
    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Asha Rao", "Natasha Iyer"]

    response = await client.get(
        "/api/v1/students", params={"search": "asha", "active_only": True}, headers=admin_headers
    )
    assert [s["name"] for s in response.json()] == ["Asha Rao"]

    response = await client.get("/api/v1/students", params={"search": "  "}, headers=admin_headers)
    assert len(response.json()) == 3


@pytest.mark.asyncio
async def test_update_student(client: AsyncClient, admin_headers: dict, make_student) -> None:
    student = await make_student()
    response = await client.patch(
        f"/api/v1/students/{student.id}",
        json={"fee_structure": "four_classes", "phone_number": "9111111111"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["fee_structure"] == "four_classes"
    assert data["phone_number"] == "9111111111"
    assert data["name"] == "Asha Rao"


@pytest.mark.asyncio
async def test_delete_student_cascades(
    client: AsyncClient,
    admin_headers: dict,
    db_session: AsyncSession,
    make_student,
    make_fee,
) -> None:
    student = await make_student()
    await make_fee(student, 1, 2024)
    mark = await client.put(
        "/api/v1/attendance/mark",
        json={"student_id": str(student.id), "date": "2024-01-05", "status": "present"},
        headers=admin_headers,
    )
    assert mark.status_code == 200

    response = await client.delete(f"/api/v1/students/{student.id}", headers=admin_headers)
    assert response.status_code == 204

    fees = (await db_session.execute(select(MonthlyFee))).scalars().all()
    records = (await db_session.execute(select(AttendanceRecord))).scalars().all()
    assert fees == []
    assert records == []

    response = await client.get(f"/api/v1/students/{student.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_promote_to_next_belt(client: AsyncClient, admin_headers: dict, make_student) -> None:
    student = await make_student(current_belt="yellow")
    response = await client.post(f"/api/v1/students/{student.id}/promote", json={}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["current_belt"] == "green_stripe"


@pytest.mark.asyncio
async def test_promote_cannot_demote(client: AsyncClient, admin_headers: dict, make_student) -> None:
    student = await make_student(current_belt="blue")
    response = await client.post(
        f"/api/v1/students/{student.id}/promote",
        json={"to_belt": "green"},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_promote_at_top_belt(client: AsyncClient, admin_headers: dict, make_student) -> None:
    student = await make_student(current_belt="black_5th_dan")
    response = await client.post(f"/api/v1/students/{student.id}/promote", json={}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Student already holds the highest belt"
