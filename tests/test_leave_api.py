"""Leave HTTP API — auth, apply/approve flow, problem+json errors, scope.

Tests run against SQLite via the shared conftest.py fixtures.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import func, select

from workforce.common.constants import UserRole
from workforce.notifications.models import Notification
from tests.conftest import (
    auth_headers_for,
    create_access_token,
    seed_department,
    seed_employee,
    seed_sub_unit,
    seed_task,
)

BASE = "/api/v1/leave"


def _future(days: int = 30) -> date:
    return date.today() + timedelta(days=days)


async def _seed_pair(db):
    """A leader and one tech reporting to them, committed for the client."""
    dept = await seed_department(db, name="Tech", code="TECH")
    unit = await seed_sub_unit(db, dept)
    leader = await seed_employee(
        db, role=UserRole.leader, full_name="Leo Leader",
        department_id=dept.id, sub_unit_id=unit.id,
    )
    tech = await seed_employee(
        db, role=UserRole.tech, full_name="Tia Tech",
        department_id=dept.id, sub_unit_id=unit.id, supervisor_id=leader.id,
    )
    await db.commit()
    return leader, tech


def _sick_payload(start: date, end: date, **extra) -> dict:
    return {
        "category": "sick",
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        **extra,
    }


# ═════════════════════════════════════════════════════════════════════
# 1. System / auth
# ═════════════════════════════════════════════════════════════════════


async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_requires_auth(client):
    resp = await client.get(f"{BASE}/categories")
    assert resp.status_code == 401


async def test_expired_token_rejected(client, db):
    _, tech = await _seed_pair(db)
    headers = {"Authorization": f"Bearer {create_access_token(tech.id, expired=True)}"}
    resp = await client.get(f"{BASE}/categories", headers=headers)
    assert resp.status_code == 401


async def test_categories(client, db):
    _, tech = await _seed_pair(db)
    resp = await client.get(f"{BASE}/categories", headers=auth_headers_for(tech))
    assert resp.status_code == 200
    by_cat = {c["category"]: c for c in resp.json()}
    assert set(by_cat) == {"sick", "personal", "vacation", "birthday", "other"}
    assert by_cat["birthday"]["allowed_duration_types"] == ["full_day"]
    assert by_cat["vacation"]["calculated_by_tenure"] is True


# ═════════════════════════════════════════════════════════════════════
# 2. Apply / approve flow
# ═════════════════════════════════════════════════════════════════════


async def test_apply_notifies_approver(client, db):
    leader, tech = await _seed_pair(db)
    start = _future()

    resp = await client.post(
        f"{BASE}/apply",
        json=_sick_payload(start, start + timedelta(days=1), reason="Flu"),
        headers=auth_headers_for(tech),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["request"]["status"] == "pending"
    assert data["request"]["current_approver_id"] == str(leader.id)
    assert data["request"]["total_minutes"] == 960
    assert data["requires_escalation"] is False

    notes = (
        await db.execute(select(Notification).where(Notification.recipient_id == leader.id))
    ).scalars().all()
    assert len(notes) == 1
    assert notes[0].title == "New Leave Request"
    assert "Tia Tech" in notes[0].message


async def test_approve_notifies_requester(client, db):
    leader, tech = await _seed_pair(db)
    start = _future()
    created = await client.post(
        f"{BASE}/apply",
        json=_sick_payload(start, start),
        headers=auth_headers_for(tech),
    )
    request_id = created.json()["request"]["id"]

    resp = await client.put(
        f"{BASE}/requests/{request_id}/approve",
        json={"note": "Rest well"},
        headers=auth_headers_for(leader),
    )
    assert resp.status_code == 200
    assert resp.json()["request"]["status"] == "approved"
    assert resp.json()["request"]["approver_id"] == str(leader.id)

    notes = (
        await db.execute(select(Notification).where(Notification.recipient_id == tech.id))
    ).scalars().all()
    assert [n.title for n in notes] == ["Leave Request Approved"]
    assert "Note: Rest well" in notes[0].message
    unread = (
        await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.recipient_id == tech.id, Notification.is_read.is_(False))
        )
    ).scalar_one()
    assert unread == 1


async def test_approve_twice_conflicts(client, db):
    leader, tech = await _seed_pair(db)
    start = _future()
    created = await client.post(
        f"{BASE}/apply", json=_sick_payload(start, start), headers=auth_headers_for(tech),
    )
    url = f"{BASE}/requests/{created.json()['request']['id']}/approve"

    assert (await client.put(url, json={}, headers=auth_headers_for(leader))).status_code == 200
    resp = await client.put(url, json={}, headers=auth_headers_for(leader))
    assert resp.status_code == 409
    assert resp.json()["type"].endswith("/invalid-transition")


async def test_invalid_apply_returns_problem_detail(client, db):
    """Birthday leave outside the birth month → 422 listing the rule."""
    start = _future()
    wrong_month = start.month % 12 + 1
    dept = await seed_department(db)
    leader = await seed_employee(db, role=UserRole.leader, department_id=dept.id)
    tech = await seed_employee(
        db, role=UserRole.tech, department_id=dept.id,
        supervisor_id=leader.id, birth_month=wrong_month,
    )
    await db.commit()

    resp = await client.post(
        f"{BASE}/apply",
        json={
            "category": "birthday",
            "start_date": start.isoformat(),
            "end_date": start.isoformat(),
        },
        headers=auth_headers_for(tech),
    )
    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["type"].endswith("/validation-error")
    assert len(body["errors"]["rules"]) == 1
    assert "can only be taken in" in body["errors"]["rules"][0]
    assert body["warnings"] == []


async def test_malformed_time_rejected(client, db):
    _, tech = await _seed_pair(db)
    start = _future()
    resp = await client.post(
        f"{BASE}/validate",
        json=_sick_payload(start, start, duration_type="time_based",
                           start_time="9am", end_time="10:00"),
        headers=auth_headers_for(tech),
    )
    assert resp.status_code == 422
    assert "start_time" in resp.json()["errors"]


async def test_approve_with_task_conflict(client, db):
    leader, tech = await _seed_pair(db)
    start = _future()
    created = await client.post(
        f"{BASE}/apply",
        json=_sick_payload(start, start + timedelta(days=1)),
        headers=auth_headers_for(tech),
    )
    request_id = created.json()["request"]["id"]
    task = await seed_task(
        db, tech.id, start_date=start + timedelta(days=1), end_date=start + timedelta(days=3),
    )
    await db.commit()

    resp = await client.put(
        f"{BASE}/requests/{request_id}/approve", json={}, headers=auth_headers_for(leader),
    )
    assert resp.status_code == 409
    body = resp.json()
    assert body["type"].endswith("/task-conflict")
    assert [t["job_number"] for t in body["conflicting_tasks"]] == [task.job_number]

    detail = await client.get(
        f"{BASE}/requests/{request_id}", headers=auth_headers_for(tech),
    )
    assert detail.json()["status"] == "pending"

    report = await client.get(
        f"{BASE}/requests/{request_id}/conflicts", headers=auth_headers_for(leader),
    )
    assert report.json()["conflict_count"] == 1


# ═════════════════════════════════════════════════════════════════════
# 3. Preview / balances
# ═════════════════════════════════════════════════════════════════════


async def test_validate_deducts_lunch(client, db):
    leader, tech = await _seed_pair(db)
    start = _future()
    resp = await client.post(
        f"{BASE}/validate",
        json=_sick_payload(start, start, duration_type="time_based",
                           start_time="11:30", end_time="13:30"),
        headers=auth_headers_for(tech),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["validation"]["is_valid"] is True
    assert data["total_minutes"] == 60
    assert Decimal(str(data["total_days"])) == Decimal("0.125")
    assert data["duration_display"] == "1 hour"
    assert data["approver_id"] == str(leader.id)


async def test_balances_for_self(client, db):
    _, tech = await _seed_pair(db)
    resp = await client.get(f"{BASE}/balances", headers=auth_headers_for(tech))
    assert resp.status_code == 200
    data = resp.json()
    assert data["employee_id"] == str(tech.id)
    sick = next(c for c in data["categories"] if c["category"] == "sick")
    assert sick["total_quota"] == 30
    assert Decimal(str(sick["remaining"])) == Decimal("30")


async def test_balances_of_supervisor_forbidden(client, db):
    leader, tech = await _seed_pair(db)
    resp = await client.get(
        f"{BASE}/balances",
        params={"employee_id": str(leader.id)},
        headers=auth_headers_for(tech),
    )
    assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# 4. Scope / cancel / pending approvals
# ═════════════════════════════════════════════════════════════════════


async def test_list_scope(client, db):
    leader, tech = await _seed_pair(db)
    start = _future()
    await client.post(
        f"{BASE}/apply", json=_sick_payload(start, start), headers=auth_headers_for(tech),
    )
    await client.post(
        f"{BASE}/apply", json=_sick_payload(start, start), headers=auth_headers_for(leader),
    )

    own = await client.get(f"{BASE}/requests", headers=auth_headers_for(tech))
    assert own.json()["meta"]["total"] == 1

    team = await client.get(f"{BASE}/requests", headers=auth_headers_for(leader))
    assert team.json()["meta"]["total"] == 2

    pending = await client.get(
        f"{BASE}/requests/pending-approvals", headers=auth_headers_for(leader),
    )
    assert pending.status_code == 200
    assert [r["employee_id"] for r in pending.json()["data"]] == [str(tech.id)]


async def test_cancel_by_other_user_forbidden(client, db):
    leader, tech = await _seed_pair(db)
    start = _future()
    created = await client.post(
        f"{BASE}/apply", json=_sick_payload(start, start), headers=auth_headers_for(tech),
    )
    url = f"{BASE}/requests/{created.json()['request']['id']}/cancel"

    resp = await client.put(url, json={}, headers=auth_headers_for(leader))
    assert resp.status_code == 403
    assert resp.json()["type"].endswith("/forbidden")

    resp = await client.put(url, json={"reason": "Feeling better"}, headers=auth_headers_for(tech))
    assert resp.status_code == 200
    assert resp.json()["request"]["status"] == "cancelled"
    assert resp.json()["request"]["cancel_reason"] == "Feeling better"


async def test_unknown_request_404(client, db):
    _, tech = await _seed_pair(db)
    resp = await client.get(
        f"{BASE}/requests/00000000-0000-0000-0000-000000000000",
        headers=auth_headers_for(tech),
    )
    assert resp.status_code == 404
