# tests/infra/test_api_clients.py
"""
Тесты HTTP клиентов backend API (httpx.MockTransport).
"""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from src.infra.api_clients import (
    ApiError,
    ChatClient,
    DeliveryPhotosClient,
    DeliveryZonesClient,
    OrdersClient,
    PromotionsClient,
    TaxClient,
)
from src.shared.models.delivery_dto import CompleteDeliveryRequest
from src.shared.models.enums import PhotoType
from src.shared.models.location_dto import LocationDTO

MESSAGE = {
    "id": "m1",
    "orderId": "order-1",
    "senderId": "rider-1",
    "senderRole": "rider",
    "message": "On my way",
    "createdAt": "2026-03-01T12:00:00Z",
}


def body(request: httpx.Request) -> dict:
    return json.loads(request.content)


class TestBaseClient:
    """Ошибки и авторизация."""

    @pytest.mark.asyncio
    async def test_bearer_header(self, http_client, transport) -> None:
        transport.responses[("GET", "/api/vendor/orders")] = httpx.Response(200, json=[])
        client = OrdersClient(client=http_client, token="tok")

        await client.get_vendor_orders()

        assert transport.last.headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_error_message_from_json(self, http_client, transport) -> None:
        transport.responses[("GET", "/api/vendor/orders")] = httpx.Response(
            403, json={"message": "Vendor access required"}
        )
        client = OrdersClient(client=http_client, token="tok")

        with pytest.raises(ApiError) as exc_info:
            await client.get_vendor_orders()

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Vendor access required"
        assert exc_info.value.is_transport_error is False

    @pytest.mark.asyncio
    async def test_error_message_from_text(self, http_client, transport) -> None:
        transport.responses[("GET", "/api/vendor/orders")] = httpx.Response(502, text="Bad gateway")
        client = OrdersClient(client=http_client, token="tok")

        with pytest.raises(ApiError) as exc_info:
            await client.get_vendor_orders()

        assert exc_info.value.message == "Bad gateway"

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.AsyncClient(base_url="http://api.test", transport=httpx.MockTransport(handler))
        client = OrdersClient(client=http_client, token="tok")

        with pytest.raises(ApiError) as exc_info:
            await client.get_vendor_orders()

        assert exc_info.value.is_transport_error is True

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, http_client, transport) -> None:
        """2xx с телом не в JSON превращается в ApiError."""
        transport.responses[("GET", "/api/vendor/orders")] = httpx.Response(200, text="OK")
        client = OrdersClient(client=http_client, token="tok")

        with pytest.raises(ApiError) as exc_info:
            await client.get_vendor_orders()

        assert exc_info.value.status_code == 200
        assert exc_info.value.message.startswith("Invalid JSON response")


class TestOrdersClient:
    """Заказы."""

    @pytest.mark.asyncio
    async def test_update_status_payload(self, http_client, transport) -> None:
        transport.responses[("PATCH", "/api/orders/order-1/status")] = httpx.Response(200, json={"ok": True})
        client = OrdersClient(client=http_client, token="tok")

        result = await client.update_status(
            "order-1", "rider-1", "picked_up", location=LocationDTO(lat=13.7, lng=121.0)
        )

        payload = body(transport.last)
        assert result == {"ok": True}
        assert payload["status"] == "picked_up"
        assert payload["riderId"] == "rider-1"
        assert payload["location"] == {"lat": 13.7, "lng": 121.0}
        assert "timestamp" in payload

    @pytest.mark.asyncio
    async def test_update_status_without_location(self, http_client, transport) -> None:
        """location передаётся как null."""
        transport.responses[("PATCH", "/api/orders/order-1/status")] = httpx.Response(204)
        client = OrdersClient(client=http_client, token="tok")

        result = await client.update_status("order-1", "rider-1", "en_route_pickup", extra={"note": "x"})

        payload = body(transport.last)
        assert result == {}
        assert payload["location"] is None
        assert payload["note"] == "x"

    @pytest.mark.asyncio
    async def test_update_status_plain_text_confirmation(self, http_client, transport) -> None:
        """Тело подтверждения статуса не разбирается."""
        transport.responses[("PATCH", "/api/orders/order-1/status")] = httpx.Response(200, text="OK")
        client = OrdersClient(client=http_client, token="tok")

        assert await client.update_status("order-1", "rider-1", "picked_up") == {}

    @pytest.mark.asyncio
    async def test_complete_delivery_plain_text_confirmation(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/orders/order-1/complete")] = httpx.Response(200, text="OK")
        client = OrdersClient(client=http_client, token="tok")
        request = CompleteDeliveryRequest(
            order_id="order-1",
            rider_id="rider-1",
            customer_rating=5,
            completed_at="2026-03-01T12:00:00Z",
        )

        assert await client.complete_delivery(request) == {}

    @pytest.mark.asyncio
    async def test_complete_delivery(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/orders/order-1/complete")] = httpx.Response(200, json={})
        client = OrdersClient(client=http_client, token="tok")
        request = CompleteDeliveryRequest(
            order_id="order-1",
            rider_id="rider-1",
            customer_rating=5,
            cod_received=250.0,
            completed_at="2026-03-01T12:00:00Z",
        )

        await client.complete_delivery(request)

        payload = body(transport.last)
        assert payload["customerRating"] == 5
        assert payload["codReceived"] == 250.0
        assert "deliveryNotes" not in payload

    @pytest.mark.asyncio
    async def test_rider_deliveries(self, http_client, transport, sample_order_data) -> None:
        transport.responses[("GET", "/api/rider/deliveries")] = httpx.Response(200, json=[sample_order_data()])
        client = OrdersClient(client=http_client, token="tok")

        orders = await client.get_rider_deliveries()

        assert orders[0].order_number == "BTS-1001"
        assert orders[0].customer.location.lat == 13.7565


class TestDeliveryPhotosClient:
    """Загрузка фото."""

    @pytest.mark.asyncio
    async def test_upload_photo(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/delivery-photos/upload")] = httpx.Response(
            200, json={"imageUrl": "https://cdn.test/p.jpg"}
        )
        client = DeliveryPhotosClient(client=http_client, token="tok")

        url = await client.upload_photo(
            "order-1", "rider-1", PhotoType.PICKUP_CONFIRMATION, b"jpeg", "p.jpg"
        )

        assert url == "https://cdn.test/p.jpg"
        content = transport.last.content
        assert b'name="photoType"' in content
        assert b"pickup_confirmation" in content
        assert b'filename="p.jpg"' in content
        assert transport.last.headers["Content-Type"].startswith("multipart/form-data")

    @pytest.mark.asyncio
    async def test_upload_photo_without_url(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/delivery-photos/upload")] = httpx.Response(200, json={})
        client = DeliveryPhotosClient(client=http_client, token="tok")

        with pytest.raises(ApiError):
            await client.upload_photo("order-1", "rider-1", "cod_receipt", b"jpeg", "c.jpg")

    @pytest.mark.asyncio
    async def test_upload_delivery_proof(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/delivery-proof/upload")] = httpx.Response(
            200, json={"photoUrl": "https://cdn.test/proof.jpg"}
        )
        client = DeliveryPhotosClient(client=http_client, token="tok")

        url = await client.upload_delivery_proof("order-1", b"jpeg", "proof.jpg")

        assert url == "https://cdn.test/proof.jpg"
        assert b"delivery_proof" in transport.last.content


class TestChatClient:
    """Чат заказа."""

    @pytest.mark.asyncio
    async def test_send_message_trims(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/orders/order-1/messages")] = httpx.Response(200, json=MESSAGE)
        client = ChatClient(client=http_client, token="tok")

        message = await client.send_message("order-1", "  On my way  ")

        assert body(transport.last) == {"message": "On my way"}
        assert message.sender_id == "rider-1"

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, http_client, transport) -> None:
        client = ChatClient(client=http_client, token="tok")

        with pytest.raises(ValueError):
            await client.send_message("order-1", "   ")
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_messages_and_unread(self, http_client, transport) -> None:
        transport.responses[("GET", "/api/orders/order-1/messages")] = httpx.Response(200, json=[MESSAGE])
        transport.responses[("GET", "/api/orders/order-1/messages/unread-count")] = httpx.Response(
            200, json={"count": 3}
        )
        transport.responses[("PATCH", "/api/orders/order-1/messages/read")] = httpx.Response(204)
        client = ChatClient(client=http_client, token="tok")

        messages = await client.get_messages("order-1")
        unread = await client.get_unread_count("order-1")
        await client.mark_read("order-1")

        assert messages[0].message == "On my way"
        assert unread == 3
        assert transport.last.method == "PATCH"


class TestTaxClient:
    """Налоговые льготы и отчёты."""

    @pytest.mark.asyncio
    async def test_missing_exemption(self, http_client) -> None:
        client = TaxClient(client=http_client, token="tok")

        assert await client.get_exemption() is None

    @pytest.mark.asyncio
    async def test_verify_exemption(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/admin/tax-exemptions/ex-1/verify")] = httpx.Response(
            200, json={"isValid": False, "status": "rejected"}
        )
        client = TaxClient(client=http_client, token="tok")

        result = await client.verify_exemption("ex-1", approved=False, notes="Expired ID")

        assert body(transport.last) == {"status": "rejected", "notes": "Expired ID"}
        assert result.is_valid is False

    @pytest.mark.asyncio
    async def test_generate_report(self, http_client, transport) -> None:
        transport.responses[("POST", "/api/admin/tax-reports/generate")] = httpx.Response(
            200, json={"id": "r1", "periodStart": "2026-01-01", "periodEnd": "2026-01-31", "vatAmount": 1200.5}
        )
        client = TaxClient(client=http_client, token="tok")

        report = await client.generate_report(date(2026, 1, 1), date(2026, 1, 31))

        assert body(transport.last) == {"periodStart": "2026-01-01", "periodEnd": "2026-01-31"}
        assert report.vat_amount == 1200.5

    @pytest.mark.asyncio
    async def test_generate_report_invalid_period(self, http_client) -> None:
        client = TaxClient(client=http_client, token="tok")

        with pytest.raises(ValueError):
            await client.generate_report(date(2026, 2, 1), date(2026, 1, 1))

    @pytest.mark.asyncio
    async def test_export_csv(self, http_client, transport) -> None:
        transport.responses[("GET", "/api/admin/tax-reports/r1/export")] = httpx.Response(
            200, content=b"period,vat\n2026-01,1200.50\n"
        )
        client = TaxClient(client=http_client, token="tok")

        assert (await client.export_report_csv("r1")).startswith(b"period,vat")


class TestBackofficeClients:
    """Зоны доставки и промо-акции."""

    @pytest.mark.asyncio
    async def test_zone_set_active(self, http_client, transport) -> None:
        transport.responses[("PATCH", "/api/admin/delivery-zones/z1")] = httpx.Response(
            200, json={"id": "z1", "name": "Poblacion", "isActive": False}
        )
        client = DeliveryZonesClient(client=http_client, token="tok")

        zone = await client.set_active("z1", False)

        assert body(transport.last) == {"isActive": False}
        assert zone.is_active is False

    @pytest.mark.asyncio
    async def test_list_promotions(self, http_client, transport) -> None:
        transport.responses[("GET", "/api/vendor/promotions")] = httpx.Response(
            200, json=[{"id": "p1", "name": "Lomi Monday", "discountValue": 10}]
        )
        client = PromotionsClient(client=http_client, token="tok")

        promotions = await client.list_promotions()

        assert promotions[0].discount_type == "percentage"
        assert promotions[0].discount_value == 10

    @pytest.mark.asyncio
    async def test_delete_promotion(self, http_client, transport) -> None:
        transport.responses[("DELETE", "/api/vendor/promotions/p1")] = httpx.Response(204)
        client = PromotionsClient(client=http_client, token="tok")

        assert await client.delete_promotion("p1") is None
