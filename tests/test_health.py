import pytest


@pytest.mark.asyncio
async def test_health_reports_ok(client):
    from consultdesk.core.config import settings

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
