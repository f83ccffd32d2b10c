from fastapi.testclient import TestClient

from app.core.constants import RoleEnum
from tests.helpers.ielts import api_call, data_of, reading_exam, submit


def test_admin_user_listing(client: TestClient, headers_for, user_factory):
    admin_headers = headers_for("admin")
    user_factory(email="findme@test.com")
    user_factory(role=RoleEnum.MODERATOR)

    everyone = data_of(api_call(client, "GET", "/admin/users", headers=admin_headers))
    assert len(everyone) == 3

    found = data_of(api_call(client, "GET", "/admin/users?search=findme", headers=admin_headers))
    assert [u["email"] for u in found] == ["findme@test.com"]

    moderators = data_of(api_call(client, "GET", "/admin/users?role=moderator", headers=admin_headers))
    assert [u["role"] for u in moderators] == ["moderator"]


def test_admin_routes_refuse_other_roles(client: TestClient, headers_for, user_factory):
    target = user_factory()
    for role in ("user", "moderator"):
        headers = headers_for(role)
        api_call(client, "GET", "/admin/users", headers=headers, expected_min=403, expected_max=404)
        api_call(client, "PATCH", f"/admin/users/{target.id}", headers=headers, json={"is_active": False},
                 expected_min=403, expected_max=404)
        api_call(client, "DELETE", f"/admin/users/{target.id}", headers=headers, expected_min=403, expected_max=404)


def test_deactivated_user_is_locked_out(client: TestClient, headers_for, user_factory):
    user = user_factory(email="locked@test.com")
    user_token = client.post("/auth/login", json={"email": user.email, "password": "testpass123"}).json()
    user_headers = {"Authorization": f"Bearer {user_token['data']['token']['access_token']}"}

    updated = data_of(api_call(client, "PATCH", f"/admin/users/{user.id}", headers=headers_for("admin"),
                               json={"is_active": False}))
    assert updated["is_active"] is False

    api_call(client, "GET", "/account/me", headers=user_headers, expected_min=403, expected_max=404)


def test_role_change_applies_to_existing_tokens(client: TestClient, headers_for, user_factory):
    user = user_factory(email="promoted@test.com")
    login = client.post("/auth/login", json={"email": user.email, "password": "testpass123"}).json()
    promoted_headers = {"Authorization": f"Bearer {login['data']['token']['access_token']}"}
    api_call(client, "GET", "/admin/users/1/attempts", headers=promoted_headers, expected_min=403, expected_max=404)

    api_call(client, "PATCH", f"/admin/users/{user.id}", headers=headers_for("admin"), json={"role": "moderator"})

    api_call(client, "GET", f"/admin/users/{user.id}/attempts", headers=promoted_headers)


def test_last_admin_cannot_be_removed(client: TestClient, headers_for):
    admin_headers = headers_for("admin")
    me = data_of(api_call(client, "GET", "/account/me", headers=admin_headers))

    api_call(client, "PATCH", f"/admin/users/{me['id']}", headers=admin_headers, json={"is_active": False},
             expected_min=400, expected_max=401)
    api_call(client, "PATCH", f"/admin/users/{me['id']}", headers=admin_headers, json={"role": "user"},
             expected_min=400, expected_max=401)
    api_call(client, "DELETE", f"/admin/users/{me['id']}", headers=admin_headers, expected_min=400, expected_max=401)


def test_second_admin_can_be_demoted(client: TestClient, headers_for, user_factory):
    other_admin = user_factory(role=RoleEnum.ADMIN)
    demoted = data_of(api_call(client, "PATCH", f"/admin/users/{other_admin.id}", headers=headers_for("admin"),
                               json={"role": "moderator"}))
    assert demoted["role"] == "moderator"


def test_admin_deletes_user(client: TestClient, headers_for, user_factory):
    admin_headers = headers_for("admin")
    user = user_factory()

    api_call(client, "DELETE", f"/admin/users/{user.id}", headers=admin_headers)

    remaining = data_of(api_call(client, "GET", "/admin/users", headers=admin_headers))
    assert user.id not in [u["id"] for u in remaining]
    api_call(client, "DELETE", f"/admin/users/{user.id}", headers=admin_headers, expected_min=404, expected_max=405)


def test_staff_can_review_a_candidate(client: TestClient, headers_for):
    exam = reading_exam(client, headers_for("admin"), ["A"])
    user_headers = headers_for("user")
    attempt = data_of(submit(client, user_headers, exam["id"], [{"SkillId": exam["sections"][0]["id"], "Answers": ["A"]}]))
    candidate_id = attempt["user_id"]

    for role in ("admin", "moderator"):
        attempts = data_of(api_call(client, "GET", f"/admin/users/{candidate_id}/attempts", headers=headers_for(role)))
        assert [a["id"] for a in attempts] == [attempt["id"]]
        bands = data_of(api_call(client, "GET", f"/admin/users/{candidate_id}/bands", headers=headers_for(role)))
        assert bands["reading"]["band"] == 9.0

    api_call(client, "GET", f"/admin/users/{candidate_id}/bands", headers=headers_for("user2"),
             expected_min=403, expected_max=404)
