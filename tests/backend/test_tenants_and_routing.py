from urllib.parse import urlencode
from uuid import uuid4

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from src.chatokay.domain.models.business import Business, Theme
from src.chatokay.infra.db.registry import repositories
from src.chatokay.main import app
from src.chatokay.routing import is_public_route
from src.chatokay.tenancy import extract_subdomain


def _client(base_url="http://test"):
    return AsyncClient(transport=ASGITransport(app=app), base_url=base_url)


def _seed_business(subdomain="polimar"):
    business = Business(
        id=uuid4(),
        user_id=uuid4(),
        name="Polimar Fisioterapia",
        subdomain=subdomain,
        welcome_message="¡Hola! ¿En qué podemos ayudarte?",
        theme=Theme.DARK,
        services=[{"id": "svc-1", "name": "Masaje", "duration": 60, "price": 45.0}],
    )
    repositories.businesses.save(business)
    return business


@pytest.mark.parametrize(
    "host,expected",
    [
        ("polimar.chatokay.com", "polimar"),
        ("Polimar.ChatOkay.com:443", "polimar"),
        ("chatokay.com", None),
        ("www.chatokay.com", None),
        ("a.b.chatokay.com", None),
        ("polimar.other.com", None),
        ("polimar.localhost:3000", "polimar"),
        ("localhost:3000", None),
        ("", None),
    ],
)
def test_extract_subdomain(host, expected):
    assert extract_subdomain(host, "chatokay.com") == expected


def test_public_route_matcher():
    assert is_public_route("/")
    assert is_public_route("/sign-in")
    assert is_public_route("/sign-in/factor-one")
    assert is_public_route("/chat/polimar")
    assert is_public_route("/api/business/polimar")
    assert not is_public_route("/dashboard")
    assert not is_public_route("/admin/clientes")
    assert not is_public_route("/privacy-old")


async def test_business_lookup_returns_public_record():
    business = _seed_business()

    async with _client() as ac:
        response = await ac.get("/api/business/polimar")

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["id"] == str(business.id)
    assert payload["name"] == "Polimar Fisioterapia"
    assert payload["theme"] == "dark"
    assert "user_id" not in payload


async def test_business_lookup_unknown_subdomain_is_404():
    async with _client() as ac:
        response = await ac.get("/api/business/desconocido")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Business not found"}


async def test_business_lookup_without_subdomain_is_400():
    async with _client() as ac:
        missing = await ac.get("/api/business/")
        blank = await ac.get("/api/business/%20")

    assert missing.status_code == status.HTTP_400_BAD_REQUEST
    assert blank.status_code == status.HTTP_400_BAD_REQUEST
    assert blank.json() == {"error": "Subdomain is required"}


async def test_business_lookup_internal_error_is_500(monkeypatch):
    def _boom(subdomain):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(repositories.businesses, "get_by_subdomain", _boom)

    async with _client() as ac:
        response = await ac.get("/api/business/polimar")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error"}


async def test_subdomain_root_is_rewritten_to_chat():
    _seed_business()

    async with _client("http://polimar.chatokay.com") as ac:
        response = await ac.get("/")

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["subdomain"] == "polimar"
    assert payload["business_name"] == "Polimar Fisioterapia"
    assert payload["services"][0]["name"] == "Masaje"


async def test_unknown_tenant_subdomain_is_404():
    async with _client("http://nadie.chatokay.com") as ac:
        response = await ac.get("/")

    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_anonymous_page_request_redirects_to_sign_in():
    async with _client("http://chatokay.com") as ac:
        response = await ac.get("/dashboard", follow_redirects=False)

    assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
    assert response.headers["location"].startswith("/sign-in")


async def test_anonymous_api_request_is_401():
    async with _client("http://chatokay.com") as ac:
        response = await ac.get("/api/v1/users/me")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_public_routes_pass_without_identity():
    async with _client("http://chatokay.com") as ac:
        response = await ac.get("/health")

    assert response.status_code == status.HTTP_200_OK


async def test_sign_in_redirect_keeps_the_query_string():
    async with _client("http://chatokay.com") as ac:
        plain = await ac.get("/citas", follow_redirects=False)
        with_query = await ac.get("/citas", params={"fecha": "2026-11-03", "vista": "semana"}, follow_redirects=False)

    assert plain.headers["location"] == "/sign-in?" + urlencode({"redirect_url": "/citas"})
    assert with_query.headers["location"] == "/sign-in?" + urlencode(
        {"redirect_url": "/citas?fecha=2026-11-03&vista=semana"}
    )
