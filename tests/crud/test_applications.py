"""
应聘申请 API 测试

覆盖简历投递、查询、更新和删除的完整流程
"""
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from starlette.datastructures import UploadFile
from tests.conftest import DataFactory, FakeObjectStore, FakeScoringClient, auth_headers

from app.core.config import settings
from app.services.submission import SubmissionPipeline


@pytest.mark.asyncio
async def test_submit_duplicate_delete_scenario(
    client: AsyncClient, factory: DataFactory, store: FakeObjectStore
):
    """投递 -> 重复投递 409 -> 删除 -> 查询 404，文件同时被删除"""
    role = await factory.create_role()

    # 1. 投递
    response = await factory.submit(role["id"], email="a@x.com")
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["code"] == 201
    application = body["data"]
    assert application["status"] == "pending"
    assert application["cv_file_path"]
    assert len(store.objects) == 1

    # 2. 相同邮箱再次投递同一岗位
    response = await factory.submit(role["id"], email="a@x.com")
    assert response.status_code == 409
    assert len(store.put_calls) == 1

    # 3. 删除
    response = await client.delete(
        f"/api/v1/applications/{application['id']}", headers=factory.headers
    )
    assert response.status_code == 200

    # 4. 再次查询
    response = await client.get(
        f"/api/v1/applications/{application['id']}", headers=factory.headers
    )
    assert response.status_code == 404
    assert store.objects == {}


@pytest.mark.asyncio
async def test_submit_triggers_background_evaluation(
    client: AsyncClient, factory: DataFactory, scorer: FakeScoringClient
):
    """测试投递后后台评分写入评估记录"""
    role = await factory.create_role(description="负责招聘系统后端服务的设计与开发。")
    application = await factory.create_application(role["id"])

    assert len(scorer.calls) == 1
    cv_text, job_description = scorer.calls[0]
    assert "Python" in cv_text
    assert job_description.startswith("负责招聘系统后端服务")

    response = await client.get(
        f"/api/v1/applications/{application['id']}", headers=factory.headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["job_title"] == role["title"]
    assert data["cv_text"]
    assert data["score"] == 85
    assert data["evaluation"]["score"] == 85
    assert len(data["evaluation"]["strengths"]) == 3
    assert len(data["evaluation"]["weaknesses"]) == 3


@pytest.mark.asyncio
async def test_submit_validation(client: AsyncClient, factory: DataFactory, store: FakeObjectStore):
    """测试投递参数校验，失败时不会上传文件"""
    role = await factory.create_role()

    # 非 PDF
    response = await factory.submit(role["id"], content=b"hello", content_type="text/plain")
    assert response.status_code == 400

    # 邮箱格式错误
    response = await factory.submit(role["id"], email="not-an-email")
    assert response.status_code == 400
    assert response.json()["data"]["errors"]

    # 姓名过短
    response = await factory.submit(role["id"], name="A")
    assert response.status_code == 400

    # 缺少文件
    response = await client.post(
        "/api/v1/applications",
        data={"jobRoleId": role["id"], "candidateName": "Li Si", "candidateEmail": "li@example.com"},
    )
    assert response.status_code == 400

    assert store.put_calls == []


@pytest.mark.asyncio
async def test_submit_to_missing_or_inactive_role(
    client: AsyncClient, factory: DataFactory, store: FakeObjectStore
):
    """测试投递不存在或未开放的岗位返回 404"""
    response = await factory.submit("00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404

    role = await factory.create_role()
    await client.patch(
        f"/api/v1/roles/{role['id']}", json={"status": "inactive"}, headers=factory.headers
    )
    response = await factory.submit(role["id"])
    assert response.status_code == 404

    assert store.put_calls == []


@pytest.mark.asyncio
async def test_oversized_upload_rejected_before_read(
    client: AsyncClient, factory: DataFactory, store: FakeObjectStore
):
    """测试超过大小限制的文件在读取内容之前就被拒绝"""
    role = await factory.create_role()

    with patch.object(settings, "max_upload_size", 16), \
            patch.object(UploadFile, "read", new_callable=AsyncMock) as read, \
            patch.object(SubmissionPipeline, "submit", new_callable=AsyncMock) as submit:
        response = await factory.submit(role["id"], content=b"%PDF" + b"0" * 64)

    assert response.status_code == 400
    assert "文件大小超过限制" in response.json()["message"]
    read.assert_not_awaited()
    submit.assert_not_awaited()
    assert store.put_calls == []

@pytest.mark.asyncio
async def test_submit_storage_failure(client: AsyncClient, factory: DataFactory, store: FakeObjectStore):
    """测试文件上传失败返回 500，且不写入申请"""
    role = await factory.create_role()
    store.fail_put = True

    response = await factory.submit(role["id"])
    assert response.status_code == 500
    assert response.json()["success"] is False

    response = await client.get("/api/v1/applications", headers=factory.headers)
    assert response.json()["data"]["total"] == 0


@pytest.mark.asyncio
async def test_application_list_and_update(client: AsyncClient, factory: DataFactory):
    """测试申请列表筛选和状态更新"""
    role = await factory.create_role()
    first = await factory.create_application(role["id"], name="Wang Wu", email="wangwu@example.com")
    await factory.create_application(role["id"], name="Zhao Liu", email="zhaoliu@example.com")

    # 1. 列表
    response = await client.get("/api/v1/applications", headers=factory.headers)
    assert response.status_code == 200
    assert response.json()["data"]["total"] == 2

    # 2. 搜索
    response = await client.get(
        "/api/v1/applications", params={"search": "wangwu"}, headers=factory.headers
    )
    items = response.json()["data"]["items"]
    assert [item["id"] for item in items] == [first["id"]]

    # 3. 更新状态
    response = await client.patch(
        f"/api/v1/applications/{first['id']}",
        json={"status": "reviewing", "candidate_phone": "13911112222"},
        headers=factory.headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "reviewing"
    assert response.json()["data"]["candidate_phone"] == "13911112222"

    # 4. 按状态筛选
    response = await client.get(
        "/api/v1/applications", params={"status": "reviewing"}, headers=factory.headers
    )
    assert response.json()["data"]["total"] == 1

    # 5. 无效状态与空更新
    response = await client.patch(
        f"/api/v1/applications/{first['id']}", json={"status": "archived"}, headers=factory.headers
    )
    assert response.status_code == 400
    response = await client.patch(
        f"/api/v1/applications/{first['id']}", json={}, headers=factory.headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_application_ownership(client: AsyncClient, factory: DataFactory):
    """测试申请只对岗位创建者和管理员可见"""
    application = await factory.create_application()
    other = auth_headers("user-2")

    response = await client.get("/api/v1/applications", headers=other)
    assert response.json()["data"]["total"] == 0

    response = await client.get(f"/api/v1/applications/{application['id']}", headers=other)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/applications/{application['id']}", headers=other)
    assert response.status_code == 403

    admin = await factory.create_admin()
    response = await client.get("/api/v1/applications", headers=admin)
    assert response.json()["data"]["total"] == 1

    response = await client.get("/api/v1/applications")
    assert response.status_code == 401
