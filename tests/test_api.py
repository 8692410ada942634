"""Tests for the portal HTTP API."""

import time

from fastapi.testclient import TestClient

from progress_portal.api.app import create_app
from progress_portal.containers import AppContainer
from tests.conftest import (
    ADMIN,
    ADMIN_TOKEN,
    CLIENT_TOKEN,
    FakeSessionProvider,
    InMemoryContentStore,
    auth,
)

DEVICE = {"X-Device-Id": "device-1"}

DRAFT = {
    "name": "Kulla Tirana",
    "client_name": "Alba Invest",
    "location": "Tirana",
    "access_code": "2468",
}


def test_health(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_project_list_hides_access_codes_from_clients(
    container: AppContainer,
) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/projects")

    assert response.status_code == 200
    (card,) = response.json()["projects"]
    assert card["id"] == "p_1"
    assert card["clientName"] == "Familja Hoxha"
    assert card["unlocked"] is False
    assert "accessCode" not in card


def test_unlock_flow(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        locked = client.get("/projects/p_1", headers=DEVICE)
        wrong = client.post(
            "/projects/p_1/unlock", json={"code": "0000"}, headers=DEVICE
        )
        right = client.post(
            "/projects/p_1/unlock", json={"code": "1111"}, headers=DEVICE
        )
        detail = client.get("/projects/p_1", headers=DEVICE)
        cards = client.get("/projects", headers=DEVICE).json()["projects"]

    assert locked.status_code == 403
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == (
        "Invalid access code. Please check your invitation."
    )
    assert right.json() == {"unlocked": True}
    assert detail.status_code == 200
    assert detail.json()["updates"][0]["weekNumber"] == 2
    assert cards[0]["unlocked"] is True


def test_unlock_needs_a_device_id(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        response = client.post("/projects/p_1/unlock", json={"code": "1111"})

    assert response.status_code == 400


def test_unlock_on_one_device_does_not_open_another(container: AppContainer) -> None:
    app = create_app(container)
    with TestClient(app) as phone, TestClient(app) as laptop:
        phone.post(
            "/projects/p_1/unlock",
            json={"code": "1111"},
            headers={"X-Device-Id": "phone"},
        )
        on_phone = phone.get("/projects/p_1", headers={"X-Device-Id": "phone"})
        on_laptop = laptop.get("/projects/p_1", headers={"X-Device-Id": "laptop"})
        without_device = laptop.get("/projects/p_1")

    assert on_phone.status_code == 200
    assert on_laptop.status_code == 403
    assert without_device.status_code == 403


def test_missing_project_is_not_found(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/projects/nope")

    assert response.status_code == 404


def test_admin_routes_require_admin(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        anonymous = client.post("/projects", json=DRAFT)
        as_client = client.post("/projects", json=DRAFT, headers=auth(CLIENT_TOKEN))
        forged = client.post("/projects", json=DRAFT, headers=auth("forged"))
        as_admin = client.post("/projects", json=DRAFT, headers=auth(ADMIN_TOKEN))

    assert anonymous.status_code == 401
    assert as_client.status_code == 403
    assert as_client.json()["detail"] == "Only project administrators can do this."
    assert forged.status_code == 401
    assert as_admin.status_code == 201
    created = as_admin.json()
    assert created["accessCode"] == "2468"
    assert created["updates"][0]["title"] == "Project Initialization"


def test_admin_sign_in_does_not_authorize_other_callers(
    container: AppContainer, session_provider: FakeSessionProvider
) -> None:
    session_provider.accounts["admin@x.al"] = ("secret", ADMIN)
    app = create_app(container)
    with TestClient(app) as admin, TestClient(app) as stranger:
        signed_in = admin.post(
            "/session", json={"email": "admin@x.al", "password": "secret"}
        )
        token = signed_in.json()["accessToken"]
        from_stranger = stranger.post("/projects", json=DRAFT, headers=DEVICE)
        stranger_session = stranger.get("/session")
        from_admin = admin.post(
            "/projects", json=DRAFT, headers=auth(token, "admin-laptop")
        )

    assert signed_in.status_code == 200
    assert from_stranger.status_code == 401
    assert stranger_session.json() == {"user": None}
    assert from_admin.status_code == 201


def test_admin_edits_weekly_update(
    container: AppContainer, store: InMemoryContentStore
) -> None:
    headers = auth(ADMIN_TOKEN)
    with TestClient(create_app(container)) as client:
        completion = client.patch(
            "/projects/p_1/updates/1",
            json={"field": "completion", "value": 150},
            headers=headers,
        )
        title = client.patch(
            "/projects/p_1/updates/0",
            json={"field": "title", "value": "Roof"},
            headers=headers,
        )
        bad_index = client.patch(
            "/projects/p_1/updates/7",
            json={"field": "title", "value": "x"},
            headers=headers,
        )

    assert completion.status_code == 200
    assert completion.json()["updates"][1]["stats"]["completion"] == 100
    assert title.status_code == 200
    assert store.projects["p_1"].updates[0].title == "Roof"
    assert store.projects["p_1"].updates[1].stats.completion == 100
    assert bad_index.status_code == 404


def test_admin_adds_week_media_and_deletes(
    container: AppContainer, store: InMemoryContentStore
) -> None:
    headers = auth(ADMIN_TOKEN)
    with TestClient(create_app(container)) as client:
        week = client.post("/projects/p_1/updates", headers=headers)
        media = client.post(
            "/projects/p_1/updates/0/media",
            json={"url": "https://cdn.test/clip.mp4", "type": "video"},
            headers=headers,
        )
        deleted = client.delete("/projects/p_1", headers=headers)

    assert week.status_code == 201
    assert week.json()["updates"][0]["weekNumber"] == 3
    assert media.status_code == 201
    item = media.json()["updates"][0]["media"][0]
    assert item["type"] == "video"
    assert item["thumbnail"] == "https://cdn.test/clip.mp4"
    assert deleted.status_code == 204
    assert store.projects == {}


def test_upload_rejects_oversized_and_stores_the_rest(
    container: AppContainer, store: InMemoryContentStore
) -> None:
    container.settings.max_upload_bytes = 10
    headers = auth(ADMIN_TOKEN)
    with TestClient(create_app(container)) as client:
        selected = client.post(
            "/projects/p_1/select", json={"update_index": 1}, headers=headers
        )
        response = client.post(
            "/uploads",
            files=[
                ("files", ("small.jpg", b"tiny", "image/jpeg")),
                ("files", ("huge.mp4", b"x" * 20, "video/mp4")),
            ],
            headers=headers,
        )
        for _ in range(200):
            media = store.projects["p_1"].updates[1].media
            if media:
                break
            time.sleep(0.01)

    assert selected.json()["activeUpdateIndex"] == 1
    assert response.status_code == 202
    body = response.json()
    assert [item["fileName"] for item in body["admitted"]] == ["small.jpg"]
    assert body["rejected"][0]["fileName"] == "huge.mp4"
    assert "huge.mp4" in body["rejected"][0]["message"]
    assert store.projects["p_1"].updates[1].media[0].description == "small.jpg"


def test_selection_is_kept_per_device(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        client.post(
            "/projects/p_1/select",
            json={"update_index": 1},
            headers=auth(ADMIN_TOKEN, "admin-laptop"),
        )
        client.post(
            "/projects/p_1/unlock",
            json={"code": "1111"},
            headers={"X-Device-Id": "client-phone"},
        )
        client.post(
            "/projects/p_1/select",
            json={"update_index": 0},
            headers={"X-Device-Id": "client-phone"},
        )
        admin_state = client.get("/state", headers=auth(ADMIN_TOKEN, "admin-laptop"))
        client_state = client.get("/state", headers={"X-Device-Id": "client-phone"})

    assert admin_state.json()["activeUpdateIndex"] == 1
    assert admin_state.json()["user"]["isAdmin"] is True
    assert client_state.json()["activeUpdateIndex"] == 0
    assert client_state.json()["user"] is None


def test_uploads_require_admin(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        response = client.post(
            "/uploads",
            files=[("files", ("a.jpg", b"a", "image/jpeg"))],
            headers=auth(CLIENT_TOKEN),
        )
        queue_as_client = client.get("/uploads", headers=auth(CLIENT_TOKEN))
        queue_anonymous = client.get("/uploads", headers=DEVICE)
        queue_as_admin = client.get("/uploads", headers=auth(ADMIN_TOKEN))

    assert response.status_code == 403
    assert queue_as_client.status_code == 403
    assert queue_anonymous.status_code == 401
    assert queue_as_admin.json() == {"items": []}


def test_insight_and_assistant(container: AppContainer) -> None:
    with TestClient(create_app(container)) as client:
        client.post("/projects/p_1/unlock", json={"code": "1111"}, headers=DEVICE)
        insight = client.get("/projects/p_1/updates/0/insight", headers=DEVICE)
        answer = client.post(
            "/projects/p_1/assistant",
            json={"question": "When is the roof?"},
            headers=DEVICE,
        )

    assert insight.json() == {"report": "All good."}
    assert answer.json() == {"answer": "All good."}


def test_session_and_language(
    container: AppContainer, session_provider: FakeSessionProvider
) -> None:
    session_provider.accounts["admin@x.al"] = ("secret", ADMIN)
    with TestClient(create_app(container)) as client:
        failed = client.post(
            "/session", json={"email": "admin@x.al", "password": "nope"}
        )
        signed_in = client.post(
            "/session", json={"email": "admin@x.al", "password": "secret"}
        )
        headers = auth(signed_in.json()["accessToken"])
        session = client.get("/session", headers=headers)
        language = client.put(
            "/preferences/language", json={"language": "sq"}, headers=headers
        )
        unsupported = client.put(
            "/preferences/language", json={"language": "de"}, headers=headers
        )
        current = client.get("/preferences/language", headers=headers)
        signed_out = client.delete("/session", headers=headers)
        after = client.get("/session", headers=headers)
        state = client.get("/state", headers=DEVICE)

    assert failed.status_code == 401
    assert signed_in.json()["user"]["isAdmin"] is True
    assert session.json()["user"]["uid"] == ADMIN.uid
    assert language.json() == {"language": "sq"}
    assert unsupported.status_code == 400
    assert current.json() == {"language": "sq"}
    assert signed_out.status_code == 204
    assert after.status_code == 401
    assert state.json()["user"] is None
    assert state.json()["view"] == "home"
    assert state.json()["language"] == "sq"


def test_register_returns_a_usable_token(
    container: AppContainer, session_provider: FakeSessionProvider
) -> None:
    payload = {
        "email": "  ana@x.al ",
        "password": "secret1",
        "name": " Ana ",
        "country_code": "+355",
    }
    with TestClient(create_app(container)) as client:
        created = client.post("/session/register", json=payload)
        duplicate = client.post("/session/register", json=payload)
        session = client.get(
            "/session", headers=auth(created.json()["accessToken"], None)
        )

    assert created.status_code == 201
    assert created.json()["user"]["name"] == "Ana"
    assert created.json()["user"]["countryCode"] == "+355"
    assert duplicate.status_code == 400
    assert session.json()["user"]["email"] == "ana@x.al"
    assert session_provider.accounts["ana@x.al"][0] == "secret1"
