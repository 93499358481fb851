"""End-to-end create -> verify -> siteverify scenarios."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import status

from spatial_captcha.schemas import ChallengeSession, Orientation


def test_full_protocol_round(client, auth_headers, tenant, content):
    created = client.post("/api/v1/create", headers=auth_headers)
    assert created.status_code == status.HTTP_201_CREATED
    challenge = created.json()

    verified = client.post(
        "/api/v1/verify",
        json={
            "session_id": challenge["session_id"],
            "submitted_orientation": challenge["target_orientation"],
        },
        headers=auth_headers,
    ).json()
    assert verified["verified"] is True

    confirm = {"secret_key": tenant.secret_key, "pass_token": verified["pass_token"]}
    first = client.post("/api/v1/siteverify", json=confirm).json()
    assert first["success"] is True
    assert first["error_angle"] == verified["error_angle"]
    assert "challenge_ts" in first

    assert client.post("/api/v1/siteverify", json=confirm).json()["success"] is False


def test_reference_scenario(client, auth_headers, tenant, challenge_store):
    challenge_store.set(
        "abc",
        ChallengeSession(
            session_id="abc",
            target_orientation=Orientation(x=0.2, y=-0.1, z=0.05),
            created_at=datetime.now(UTC),
        ),
    )

    verified = client.post(
        "/api/v1/verify",
        json={"session_id": "abc", "submitted_orientation": {"x": 0.21, "y": -0.09, "z": 0.06}},
        headers=auth_headers,
    ).json()
    assert verified["verified"] is True
    assert 0.5 < verified["error_angle"] < 2.0
    assert verified["tolerance"] == 45

    confirm = {"secret_key": tenant.secret_key, "pass_token": verified["pass_token"]}
    first = client.post("/api/v1/siteverify", json=confirm).json()
    assert first == {
        "success": True,
        "challenge_ts": first["challenge_ts"],
        "error_angle": verified["error_angle"],
    }
    assert client.post("/api/v1/siteverify", json=confirm).json()["success"] is False


def test_pass_token_expires(client, auth_headers, tenant, content, clock):
    challenge = client.post("/api/v1/create", headers=auth_headers).json()
    verified = client.post(
        "/api/v1/verify",
        json={
            "session_id": challenge["session_id"],
            "submitted_orientation": challenge["target_orientation"],
        },
        headers=auth_headers,
    ).json()

    clock.advance(180)
    r = client.post(
        "/api/v1/siteverify",
        json={"secret_key": tenant.secret_key, "pass_token": verified["pass_token"]},
    )
    assert r.json()["success"] is False
