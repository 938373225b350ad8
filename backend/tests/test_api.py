"""HTTP surface: routes, error bodies, maintenance gate"""
from marketplace.domain.enums import EntityKind

from .conftest import auth_headers, inventory_input, product_input


API = "/api/v1"


def test_health(http):
    response = http.get("/health")
    assert response.status_code == 200
    assert response.json()["store"]["backend"] == "memory"


def test_root_points_at_api(http):
    body = http.get("/").json()
    assert body["api"] == API


def test_missing_token_is_401(http):
    response = http.get(f"{API}/queues/product")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"


def test_bad_token_is_401(http):
    response = http.get(f"{API}/queues/product", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_correlation_id_echoed(http, manager):
    response = http.get(
        f"{API}/queues/product", headers={**auth_headers(manager), "X-Correlation-Id": "corr-abc"}
    )
    assert response.status_code == 200
    assert response.headers["X-Correlation-Id"] == "corr-abc"


def test_supplier_creates_and_manager_approves(http, supplier, manager):
    created = http.post(
        f"{API}/supplier/products",
        json={**product_input().model_dump(), "submit": True},
        headers=auth_headers(supplier),
    )
    assert created.status_code == 201
    product_id = created.json()["id"]
    assert created.json()["status"] == "pending"

    queue = http.get(f"{API}/queues/product", headers=auth_headers(manager)).json()
    assert [item["id"] for item in queue["items"]] == [product_id]

    approved = http.post(
        f"{API}/records/product/{product_id}/transitions",
        json={"action": "approve"},
        headers={**auth_headers(manager), "X-Correlation-Id": "corr-approve"},
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "published"

    history = http.get(f"{API}/records/product/{product_id}/history", headers=auth_headers(manager)).json()
    assert history["verified"] is True
    assert history["events"][-1]["correlation_id"] == "corr-approve"


def test_reject_without_reason_is_400(http, pending_product, manager):
    response = http.post(
        f"{API}/records/product/{pending_product.id}/transitions",
        json={"action": "reject", "reason": "  "},
        headers=auth_headers(manager),
    )
    assert response.status_code == 400
    body = response.json()["error"]
    assert body["code"] == "MISSING_REASON"
    assert body["retryable"] is False


def test_illegal_transition_is_400(http, published_product, manager):
    response = http.post(
        f"{API}/records/product/{published_product.id}/transitions",
        json={"action": "approve"},
        headers=auth_headers(manager),
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "ILLEGAL_TRANSITION"
    assert response.json()["error"]["details"]["legal_actions"] == []


def test_forbidden_is_403(http, pending_product, supplier):
    response = http.post(
        f"{API}/records/product/{pending_product.id}/transitions",
        json={"action": "approve"},
        headers=auth_headers(supplier),
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_unknown_record_is_404(http, manager):
    response = http.get(f"{API}/records/product/PRD-missing", headers=auth_headers(manager))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RECORD_NOT_FOUND"


def test_unknown_kind_is_400(http, manager):
    response = http.get(f"{API}/queues/coupon", headers=auth_headers(manager))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_private_inventory_hidden_from_staff(http, ready_item, supplier, manager, other_supplier):
    path = f"{API}/records/inventory_item/{ready_item.id}"
    assert http.get(path, headers=auth_headers(supplier)).status_code == 200
    assert http.get(path, headers=auth_headers(manager)).status_code == 404
    assert http.get(path, headers=auth_headers(other_supplier)).status_code == 404


def test_other_suppliers_product_forbidden(http, pending_product, other_supplier, manager):
    path = f"{API}/records/product/{pending_product.id}"
    assert http.get(path, headers=auth_headers(other_supplier)).status_code == 403
    assert http.get(path, headers=auth_headers(manager)).status_code == 200


def test_promote_endpoint(http, ready_item, supplier, manager):
    response = http.post(f"{API}/supplier/inventory/{ready_item.id}/promote", headers=auth_headers(supplier))
    assert response.status_code == 200
    product_id = response.json()["product_id"]

    item = http.get(f"{API}/records/inventory_item/{ready_item.id}", headers=auth_headers(manager)).json()
    assert item["status"] == "promoted"
    assert item["promoted_product_id"] == product_id


def test_draft_lifecycle_endpoints(http, supplier):
    headers = auth_headers(supplier)
    created = http.post(f"{API}/supplier/products", json=product_input().model_dump(), headers=headers).json()
    assert created["status"] == "draft"

    updated = http.put(
        f"{API}/supplier/products/{created['id']}",
        json=product_input(price=61.0).model_dump(),
        headers=headers,
    )
    assert updated.json()["price"] == 61.0

    listing = http.get(f"{API}/supplier/products", params={"status": "draft"}, headers=headers).json()
    assert [p["id"] for p in listing["items"]] == [created["id"]]

    assert http.delete(f"{API}/supplier/products/{created['id']}", headers=headers).status_code == 204
    assert http.get(f"{API}/supplier/products", headers=headers).json()["items"] == []


def test_withdrawal_and_appeal_endpoints(http, published_product, supplier, admin):
    headers = auth_headers(supplier)
    withdrawal = http.post(
        f"{API}/supplier/withdrawals", json={"amount": 80.0, "bank_details": "IBAN FR00"}, headers=headers
    )
    assert withdrawal.status_code == 201
    assert withdrawal.json()["status"] == "wd-pending"

    appeal = http.post(
        f"{API}/supplier/products/{published_product.id}/price-appeals",
        json={"new_price": 44.0},
        headers=headers,
    )
    assert appeal.status_code == 201

    duplicate = http.post(
        f"{API}/supplier/products/{published_product.id}/price-appeals",
        json={"new_price": 43.0},
        headers=headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["retryable"] is True

    queue = http.get(f"{API}/queues/price_appeal", headers=auth_headers(admin)).json()
    assert [a["id"] for a in queue["items"]] == [appeal.json()["id"]]


def test_settings_endpoints(http, manager, supplier):
    response = http.patch(
        f"{API}/manager/settings",
        json={"settings": {"default_commission_rate": 9}},
        headers=auth_headers(manager),
    )
    assert response.status_code == 200
    assert response.json()["settings"]["default_commission_rate"] == "9"

    assert http.get(f"{API}/manager/settings", headers=auth_headers(supplier)).status_code == 403


def test_maintenance_mode_blocks_suppliers_only(http, settings_service, admin, supplier, manager):
    settings_service.update_settings({"maintenance_mode": True}, admin)

    blocked = http.get(f"{API}/supplier/products", headers=auth_headers(supplier))
    assert blocked.status_code == 503
    assert blocked.json()["error"]["code"] == "MAINTENANCE_MODE"

    assert http.get(f"{API}/queues/product", headers=auth_headers(manager)).status_code == 200

    # Administrators can always switch it back off
    response = http.patch(
        f"{API}/manager/settings", json={"settings": {"maintenance_mode": False}}, headers=auth_headers(admin)
    )
    assert response.json()["settings"]["maintenance_mode"] == "false"
    assert http.get(f"{API}/supplier/products", headers=auth_headers(supplier)).status_code == 200


def test_history_is_staff_only(http, pending_product, supplier):
    response = http.get(f"{API}/records/{EntityKind.PRODUCT.value}/{pending_product.id}/history", headers=auth_headers(supplier))
    assert response.status_code == 403


def test_private_inventory_history_hidden_from_staff(http, supplier_service, supplier, manager):
    item = supplier_service.create_inventory_item(inventory_input(), supplier)
    supplier_service.update_inventory_item(item.id, inventory_input(name="Secret", price=99.0), supplier)

    path = f"{API}/records/inventory_item/{item.id}/history"
    response = http.get(path, headers=auth_headers(manager))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RECORD_NOT_FOUND"
    assert "Secret" not in response.text

    supplier_service.delete_inventory_item(item.id, supplier)
    assert http.get(path, headers=auth_headers(manager)).status_code == 404


def test_promoted_inventory_history_visible_to_staff(http, promotion_service, ready_item, supplier, manager):
    promotion_service.promote(ready_item.id, supplier)
    response = http.get(f"{API}/records/inventory_item/{ready_item.id}/history", headers=auth_headers(manager))
    assert response.status_code == 200
    assert response.json()["events"][-1]["to_state"] == "promoted"
