"""
用户档案 API 测试
"""
import pytest
from httpx import AsyncClient
from tests.conftest import DataFactory, auth_headers


@pytest.mark.asyncio
async def test_profile_created_on_first_access(client: AsyncClient):
    """测试首次访问自动建档，默认角色为招聘专员"""
    headers = auth_headers("new-user", "new@example.com")

    response = await client.get("/api/v1/users/me", headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == "new-user"
    assert data["email"] == "new@example.com"
    assert data["role"] == "recruiter"

    # 再次访问返回同一档案
    response = await client.get("/api/v1/users/me", headers=headers)
    assert response.json()["data"]["id"] == "new-user"


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, factory: DataFactory):
    """测试更新档案，角色不可自行修改"""
    response = await client.patch(
        "/api/v1/users/me",
        json={"full_name": "王经理", "company_name": "示例科技", "role": "admin"},
        headers=factory.headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["full_name"] == "王经理"
    assert data["company_name"] == "示例科技"
    assert data["role"] == "recruiter"

    response = await client.patch("/api/v1/users/me", json={}, headers=factory.headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_profile_requires_identity(client: AsyncClient):
    """测试缺少认证信息返回 401"""
    response = await client.get("/api/v1/users/me")
    assert response.status_code == 401

    response = await client.get("/api/v1/users/me", headers={"X-User-Id": "user-9"})
    assert response.status_code == 401
