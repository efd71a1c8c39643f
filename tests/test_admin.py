"""
测试管理员接口
"""
from conftest import auth_headers


async def test_admin_routes_require_exact_admin(client, make_user):
    editor = await make_user("Editor")

    response = await client.get("/api/admin/users", headers=auth_headers(editor))
    assert response.status_code == 403
    body = response.json()
    assert body["message"] == "Access denied. Insufficient permissions."
    assert body["details"]["yourRole"] == "Editor"
    assert body["details"]["required"] == "Admin"

    response = await client.get("/api/admin/stats")
    assert response.status_code == 401


async def test_role_change(client, make_user):
    admin = await make_user("Admin")
    reader = await make_user("Reader")

    response = await client.put(
        f"/api/admin/users/{reader.id}/role",
        json={"role": "Writer"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    assert response.json()["message"] == "User role updated from Reader to Writer"
    assert response.json()["data"]["role"] == "Writer"

    # 新角色在下一次请求中立即生效，不依赖token中的role
    response = await client.get("/api/auth/me", headers=auth_headers(reader))
    assert response.json()["data"]["role"] == "Writer"

    response = await client.put(
        f"/api/admin/users/{reader.id}/role",
        json={"role": "Overlord"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/admin/users/{admin.id}/role",
        json={"role": "Reader"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot change your own role"

    response = await client.put(
        "/api/admin/users/9999/role",
        json={"role": "Reader"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


async def test_delete_user(client, make_user, make_article):
    admin = await make_user("Admin")
    writer = await make_user("Writer")
    reader = await make_user("Reader")
    article = await make_article(writer)
    await client.post(
        "/api/comments",
        json={"content": "bye", "articleId": article["id"]},
        headers=auth_headers(reader),
    )

    response = await client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot delete your own account"

    response = await client.delete(f"/api/admin/users/{writer.id}", headers=auth_headers(admin))
    assert response.status_code == 200

    response = await client.get(f"/api/admin/users/{writer.id}", headers=auth_headers(admin))
    assert response.status_code == 404

    # 被删除用户的token立即失效
    response = await client.get("/api/auth/me", headers=auth_headers(writer))
    assert response.status_code == 401

    response = await client.get("/api/admin/stats", headers=auth_headers(admin))
    assert response.json()["data"] == {"totalUsers": 2, "totalArticles": 0, "totalComments": 0}


async def test_list_users_paginated(client, make_user):
    admin = await make_user("Admin")
    for _ in range(3):
        await make_user("Reader")

    response = await client.get("/api/admin/users", params={"page": 2, "limit": 3}, headers=auth_headers(admin))
    data = response.json()["data"]
    assert data["pagination"] == {"page": 2, "limit": 3, "total": 4, "pages": 2}
    assert len(data["users"]) == 1
    assert "password_hash" not in data["users"][0]
