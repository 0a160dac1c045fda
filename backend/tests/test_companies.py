"""
Tests for the employer's company details and logo upload.
"""
from aguka.utils.file_paths import Buckets, get_bucket_path

from conftest import auth_headers

DETAILS = {"address": "KG 7 Ave, Kigali", "industry": "Fintech", "size": "11-50"}


class TestCompanyDetails:
    def test_get_my_company(self, client, employer):
        response = client.get("/api/v1/companies/me", headers=auth_headers(employer))

        assert response.status_code == 200
        assert response.json()["name"] == "Acme Ltd"

    def test_update_with_logo(self, client, employer):
        response = client.put(
            "/api/v1/companies/me",
            data=DETAILS,
            files={"logo": ("logo.png", b"\x89PNG fake", "image/png")},
            headers=auth_headers(employer),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["industry"] == "Fintech"
        assert body["logo_url"].startswith("/uploads/public/company-logos/")
        key = body["logo_url"].split(f"/uploads/{Buckets.PUBLIC}/", 1)[1]
        with open(get_bucket_path(Buckets.PUBLIC, key), "rb") as f:
            assert f.read() == b"\x89PNG fake"

    def test_update_without_logo(self, client, employer):
        response = client.put("/api/v1/companies/me", data=DETAILS, headers=auth_headers(employer))

        assert response.status_code == 200
        assert response.json()["logo_url"] is None

    def test_unsupported_logo_type(self, client, employer):
        response = client.put(
            "/api/v1/companies/me",
            data=DETAILS,
            files={"logo": ("logo.exe", b"MZ", "application/octet-stream")},
            headers=auth_headers(employer),
        )
        assert response.status_code == 400

    def test_missing_fields_fail_validation(self, client, employer):
        response = client.put("/api/v1/companies/me", data={"address": "x"}, headers=auth_headers(employer))
        assert response.status_code == 422

    def test_candidate_has_no_company(self, client, candidate):
        assert client.get("/api/v1/companies/me", headers=auth_headers(candidate)).status_code == 403

    def test_admin_lists_companies(self, client, admin, employer):
        response = client.get("/api/v1/admin/companies", headers=auth_headers(admin))
        assert [c["name"] for c in response.json()] == ["Acme Ltd"]
