from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from snapbag_api.core.settings import RateLimitPolicy, settings
from snapbag_api.services.security import BagTokenSigner


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _scan_payload(bag_id: str) -> dict[str, str]:
    return {"bagId": bag_id, "hmacSignature": BagTokenSigner().sign(bag_id), "deviceId": "pixel-8"}


@pytest.mark.asyncio
async def test_scan_spin_claim_redeem_flow(app_with_db, sample_wheel, make_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "wheel_trust_client_angle", True)
    app, _ = app_with_db
    partner, _ = sample_wheel
    user = await make_user()
    member_headers = {"X-Session-User": str(user.id)}
    partner_headers = {"X-Session-Partner": str(partner.id)}

    async with _client(app) as client:
        scan = await client.post("/api/v1/scans", json=_scan_payload("flow-bag"), headers=member_headers)
        assert scan.status_code == 201
        assert scan.json()["pointsAwarded"] == 5
        assert scan.json()["spinsAwarded"] == 1

        duplicate = await client.post("/api/v1/scans", json=_scan_payload("flow-bag"), headers=member_headers)
        assert duplicate.status_code == 409
        assert duplicate.json()["detail"]["code"] == "duplicate_scan"

        prizes = await client.get("/api/v1/wheel/prizes", headers=member_headers)
        assert prizes.status_code == 200
        assert len(prizes.json()["prizes"]) == 12
        assert prizes.json()["hasLocalPrizes"] is False

        spin = await client.post("/api/v1/wheel/spin", json={"landingAngleDegrees": 80}, headers=member_headers)
        assert spin.status_code == 200
        spin_body = spin.json()
        assert spin_body["prize"]["title"] == "JACKPOT"
        assert spin_body["landingAngle"] == 80
        assert spin_body["spinsRemaining"] == 0
        assert spin_body["voucher"]["status"] == "pending_claim"
        voucher_id = spin_body["voucher"]["id"]
        code = spin_body["voucher"]["code"]

        no_spins = await client.post("/api/v1/wheel/spin", json={}, headers=member_headers)
        assert no_spins.status_code == 400
        assert no_spins.json()["detail"]["code"] == "no_spins_available"

        listing = await client.get("/api/v1/vouchers", headers=member_headers)
        assert listing.json()["unclaimedCount"] == 1

        premature = await client.get(f"/api/v1/partner/verify-voucher/{code}", headers=partner_headers)
        assert premature.status_code == 400
        assert premature.json()["detail"]["code"] == "voucher_not_claimed"

        claim = await client.post(f"/api/v1/vouchers/{voucher_id}/claim", headers=member_headers)
        assert claim.status_code == 200
        assert claim.json()["success"] is True

        detail = await client.get(f"/api/v1/vouchers/{voucher_id}", headers=member_headers)
        assert detail.json()["status"] == "claimed"
        assert 590 <= detail.json()["timeRemaining"] <= 600

        claimed_only = await client.get("/api/v1/vouchers", params={"status": "claimed"}, headers=member_headers)
        assert [item["id"] for item in claimed_only.json()["vouchers"]] == [voucher_id]
        assert claimed_only.json()["unclaimedCount"] == 0

        verify = await client.get(f"/api/v1/partner/verify-voucher/{code}", headers=partner_headers)
        assert verify.status_code == 200
        assert verify.json()["valid"] is True
        assert verify.json()["voucher"]["prize"]["partnerName"] == "Snapbag"

        redeem = await client.post(
            "/api/v1/partner/redeem-voucher", json={"voucherCode": code}, headers=partner_headers
        )
        assert redeem.status_code == 200
        assert redeem.json()["pointsAwarded"] == 100

        again = await client.post(
            "/api/v1/partner/redeem-voucher", json={"voucherCode": code}, headers=partner_headers
        )
        assert again.status_code == 409
        assert again.json()["detail"]["code"] == "voucher_already_used"


@pytest.mark.asyncio
async def test_client_angle_is_ignored_unless_trusted(app_with_db, sample_wheel, make_user) -> None:
    app, _ = app_with_db
    user = await make_user(spins_available=1)

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/wheel/spin",
            json={"landingAngleDegrees": 80.123},
            headers={"X-Session-User": str(user.id)},
        )

    assert response.status_code == 200
    angle = response.json()["landingAngle"]
    assert 0 <= angle < 360
    assert angle != pytest.approx(80.123)


@pytest.mark.asyncio
async def test_non_finite_client_angle_is_unprocessable(app_with_db, sample_wheel, make_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "wheel_trust_client_angle", True)
    app, _ = app_with_db
    user = await make_user(spins_available=1)

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/wheel/spin",
            content='{"landingAngleDegrees": NaN}',
            headers={"X-Session-User": str(user.id), "Content-Type": "application/json"},
        )
        vouchers = await client.get("/api/v1/vouchers", headers={"X-Session-User": str(user.id)})

    assert response.status_code == 422
    assert vouchers.json()["vouchers"] == []


@pytest.mark.asyncio
async def test_invalid_signature_maps_to_bad_request(app_with_db, make_user) -> None:
    app, _ = app_with_db
    user = await make_user()

    async with _client(app) as client:
        response = await client.post(
            "/api/v1/scans",
            json={"bagId": "bag-1", "hmacSignature": "00" * 32},
            headers={"X-Session-User": str(user.id)},
        )

    assert response.status_code == 400
    assert response.json()["detail"] == {"code": "invalid_signature", "message": "Invalid QR code signature"}


@pytest.mark.asyncio
async def test_scan_rate_limit_returns_429(app_with_db, make_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "qr_scan_rate_limit", RateLimitPolicy(max_requests=1, window_minutes=60))
    app, _ = app_with_db
    user = await make_user()
    headers = {"X-Session-User": str(user.id)}

    async with _client(app) as client:
        first = await client.post("/api/v1/scans", json=_scan_payload("limit-a"), headers=headers)
        second = await client.post("/api/v1/scans", json=_scan_payload("limit-b"), headers=headers)

    assert first.status_code == 201
    assert second.status_code == 429
    assert second.json()["detail"]["code"] == "rate_limited"


@pytest.mark.asyncio
async def test_member_session_header_is_required(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        missing = await client.get("/api/v1/vouchers")
        malformed = await client.get("/api/v1/vouchers", headers={"X-Session-User": "not-a-uuid"})
        unknown = await client.get("/api/v1/vouchers", headers={"X-Session-User": str(uuid4())})

    assert missing.status_code == 401
    assert malformed.status_code == 400
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_voucher_detail_is_owner_only(app_with_db, sample_wheel, make_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "wheel_trust_client_angle", True)
    app, _ = app_with_db
    owner = await make_user(spins_available=1)
    stranger = await make_user()

    async with _client(app) as client:
        spin = await client.post(
            "/api/v1/wheel/spin", json={"landingAngleDegrees": 20}, headers={"X-Session-User": str(owner.id)}
        )
        voucher_id = spin.json()["voucher"]["id"]
        response = await client.get(f"/api/v1/vouchers/{voucher_id}", headers={"X-Session-User": str(stranger.id)})
        claim = await client.post(
            f"/api/v1/vouchers/{voucher_id}/claim", headers={"X-Session-User": str(stranger.id)}
        )

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "voucher_not_found"
    assert claim.status_code == 403
    assert claim.json()["detail"]["code"] == "voucher_wrong_owner"


@pytest.mark.asyncio
async def test_partner_api_key_is_enforced_when_configured(app_with_db, sample_wheel, monkeypatch) -> None:
    monkeypatch.setattr(settings, "partner_api_key", "counter-key")
    app, _ = app_with_db
    partner, _ = sample_wheel
    headers = {"X-Session-Partner": str(partner.id)}

    async with _client(app) as client:
        rejected = await client.get("/api/v1/partner/verify-voucher/ABCDEF0123456789", headers=headers)
        accepted = await client.get(
            "/api/v1/partner/verify-voucher/ABCDEF0123456789",
            headers={**headers, "X-API-Key": "counter-key"},
        )

    assert rejected.status_code == 401
    assert accepted.status_code == 404
    assert accepted.json()["detail"]["code"] == "voucher_not_found"


@pytest.mark.asyncio
async def test_observability_snapshot_requires_internal_key(app_with_db, make_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "internal_api_key", "ops-key")
    app, _ = app_with_db
    user = await make_user()

    async with _client(app) as client:
        await client.post("/api/v1/scans", json=_scan_payload("obs-bag"), headers={"X-Session-User": str(user.id)})
        denied = await client.get("/api/v1/observability/rewards")
        snapshot = await client.get("/api/v1/observability/rewards", headers={"X-API-Key": "ops-key"})

    assert denied.status_code == 401
    assert snapshot.status_code == 200
    assert snapshot.json()["scans"] == {"accepted": 1}
