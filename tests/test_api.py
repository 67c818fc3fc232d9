import base64
import unittest

from fastapi.testclient import TestClient

from app.database import get_db
from app.dependencies import get_photo_storage
from app.main import create_app
from app.services.photo_storage import LocalPhotoStorage
from tests.helpers import VALID_PAYLOAD, access_token, image_bytes, memory_session_factory, temp_dir

PHOTO = image_bytes("JPEG", (10, 120, 10))


def basic_auth(username: str, password: str) -> dict:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def admin_headers(role: str = "ADMIN") -> dict:
    return {"Authorization": f"Bearer {access_token(role=role)}"}


class AnnouncementApiTests(unittest.TestCase):
    def setUp(self):
        self._tmp = temp_dir()
        self.addCleanup(self._tmp.cleanup)
        self.storage = LocalPhotoStorage(self._tmp.name)
        session_factory = memory_session_factory()

        def override_get_db():
            db = session_factory()
            try:
                yield db
            finally:
                db.close()

        app = create_app()
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_photo_storage] = lambda: self.storage
        self.client = TestClient(app)

    def create(self, **overrides) -> dict:
        response = self.client.post("/api/v1/announcements", json=dict(VALID_PAYLOAD, **overrides))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def upload(self, announcement_id, password=None, data=PHOTO, headers=None):
        form = {"managementPassword": password} if password is not None else None
        return self.client.post(
            f"/api/v1/announcements/{announcement_id}/photo",
            files={"photo": ("pet.jpg", data, "image/jpeg")},
            data=form,
            headers=headers,
        )

    def stored_files(self):
        return [p.name for p in self.storage.root.iterdir()]

    def test_create_and_read(self):
        created = self.create(petName="Burek", locationLatitude=52.1, locationLongitude=21.0)
        self.assertEqual(set(created), {"id", "managementPassword"})
        self.assertRegex(created["managementPassword"], r"^\d{6}$")

        response = self.client.get(f"/api/v1/announcements/{created['id']}")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["petName"], "Burek")
        self.assertEqual(body["species"], "DOG")
        self.assertEqual(body["lastSeenDate"], "2024-01-01")
        self.assertEqual(body["status"], "ACTIVE")
        self.assertIsNone(body["photoUrl"])
        self.assertNotIn("managementPassword", body)
        self.assertNotIn("managementPasswordHash", body)
        self.assertNotIn(created["managementPassword"], response.text)

    def test_list_never_exposes_credentials(self):
        created = self.create()
        response = self.client.get("/api/v1/announcements")
        self.assertEqual(response.status_code, 200)
        items = response.json()
        self.assertEqual([a["id"] for a in items], [created["id"]])
        self.assertNotIn("managementPassword", response.text)
        self.assertNotIn("argon2", response.text)

    def test_create_validation_errors(self):
        response = self.client.post(
            "/api/v1/announcements",
            json=dict(VALID_PAYLOAD, lastSeenDate="2999-01-01", locationLatitude=91, locationLongitude=0),
        )
        self.assertEqual(response.status_code, 400)
        error = response.json()["error"]
        self.assertEqual(error["code"], "VALIDATION_ERROR")
        self.assertEqual({f["field"] for f in error["fields"]}, {"lastSeenDate", "location"})
        self.assertEqual(self.client.get("/api/v1/announcements").json(), [])

    def test_malformed_json_is_400(self):
        response = self.client.post(
            "/api/v1/announcements",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")

    def test_non_object_body_is_400(self):
        response = self.client.post("/api/v1/announcements", json=["DOG"])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["fields"][0]["field"], "body")

    def test_get_unknown_is_404(self):
        response = self.client.get("/api/v1/announcements/does-not-exist")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "NOT_FOUND")

    def test_photo_upload_round_trip(self):
        created = self.create()
        response = self.upload(created["id"], created["managementPassword"])
        self.assertEqual(response.status_code, 204, response.text)

        photo_url = self.client.get(f"/api/v1/announcements/{created['id']}").json()["photoUrl"]
        self.assertTrue(photo_url.startswith(f"/images/{created['id']}-"))
        self.assertTrue(photo_url.endswith(".jpeg"))

        image = self.client.get(photo_url)
        self.assertEqual(image.status_code, 200)
        self.assertEqual(image.headers["content-type"], "image/jpeg")
        self.assertEqual(image.content, PHOTO)

    def test_photo_upload_with_basic_auth(self):
        created = self.create()
        response = self.upload(created["id"], headers=basic_auth(created["id"], created["managementPassword"]))
        self.assertEqual(response.status_code, 204, response.text)

    def test_basic_auth_for_another_announcement_is_rejected(self):
        created = self.create()
        other = self.create()
        response = self.upload(created["id"], headers=basic_auth(other["id"], other["managementPassword"]))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "UNAUTHORIZED")
        self.assertEqual(self.stored_files(), [])

    def test_photo_upload_without_password(self):
        created = self.create()
        response = self.upload(created["id"])
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "UNAUTHENTICATED")
        self.assertEqual(response.headers["www-authenticate"], "Basic")

    def test_photo_upload_wrong_password(self):
        created = self.create()
        wrong = "000000" if created["managementPassword"] != "000000" else "111111"
        response = self.upload(created["id"], wrong)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "UNAUTHORIZED")
        self.assertEqual(self.stored_files(), [])
        self.assertIsNone(self.client.get(f"/api/v1/announcements/{created['id']}").json()["photoUrl"])

    def test_photo_upload_unknown_announcement(self):
        response = self.upload("00000000-0000-0000-0000-000000000000", "123456")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.stored_files(), [])

    def test_photo_upload_not_an_image(self):
        created = self.create()
        response = self.upload(created["id"], created["managementPassword"], data=b"definitely not a jpeg")
        self.assertEqual(response.status_code, 415)
        self.assertEqual(response.json()["error"]["code"], "UNSUPPORTED_MEDIA_TYPE")
        self.assertEqual(self.stored_files(), [])

    def test_photo_upload_missing_file_field(self):
        created = self.create()
        response = self.client.post(
            f"/api/v1/announcements/{created['id']}/photo",
            data={"managementPassword": created["managementPassword"]},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "MISSING_FILE")

    def test_second_different_photo_conflicts(self):
        created = self.create()
        self.assertEqual(self.upload(created["id"], created["managementPassword"]).status_code, 204)
        again = self.upload(created["id"], created["managementPassword"])
        self.assertEqual(again.status_code, 204)

        other = image_bytes("PNG", (0, 0, 0))
        response = self.upload(created["id"], created["managementPassword"], data=other)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "CONFLICT")
        self.assertEqual(len(self.stored_files()), 1)

    def test_image_route_rejects_unknown_keys(self):
        self.assertEqual(self.client.get("/images/nothing-here.png").status_code, 404)
        self.assertEqual(self.client.get("/images/..%2F..%2Fapp.db").status_code, 404)

    def test_admin_delete(self):
        created = self.create()
        self.upload(created["id"], created["managementPassword"])
        self.assertEqual(len(self.stored_files()), 1)

        url = f"/api/v1/admin/v1/announcements/{created['id']}"
        self.assertEqual(self.client.delete(url).status_code, 401)
        self.assertEqual(self.client.delete(url, headers={"Authorization": "Bearer garbage"}).status_code, 401)
        self.assertEqual(self.client.delete(url, headers=admin_headers(role="USER")).status_code, 403)

        response = self.client.delete(url, headers=admin_headers())
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get(f"/api/v1/announcements/{created['id']}").status_code, 404)
        self.assertEqual(self.stored_files(), [])

        self.assertEqual(self.client.delete(url, headers=admin_headers()).status_code, 404)

    def test_error_bodies_use_error_envelope(self):
        invalid = self.client.post("/api/v1/announcements", json=dict(VALID_PAYLOAD, species=""))
        missing = self.client.get("/api/v1/announcements/nope")
        forbidden = self.client.delete("/api/v1/admin/v1/announcements/nope", headers=admin_headers(role="USER"))
        expired = self.client.delete(
            "/api/v1/admin/v1/announcements/nope",
            headers={"Authorization": f"Bearer {access_token(expire_minutes=-5)}"},
        )
        no_route = self.client.get("/api/v1/nothing-here")

        for response, status_code, code in (
            (invalid, 400, "VALIDATION_ERROR"),
            (missing, 404, "NOT_FOUND"),
            (forbidden, 403, "FORBIDDEN"),
            (expired, 401, "UNAUTHENTICATED"),
            (no_route, 404, "NOT_FOUND"),
        ):
            with self.subTest(code=code, status_code=status_code):
                body = response.json()
                self.assertEqual(response.status_code, status_code)
                self.assertNotIn("detail", body)
                self.assertEqual(body["error"]["code"], code)
                self.assertTrue(body["error"]["message"])

        fields = invalid.json()["error"]["fields"]
        self.assertEqual(fields, [{"field": "species", "code": "MISSING_VALUE", "message": "cannot be empty"}])

    def test_snake_case_keys_are_unknown_fields(self):
        response = self.client.post(
            "/api/v1/announcements",
            json=dict(VALID_PAYLOAD, pet_name="Burek"),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            [(f["field"], f["code"]) for f in response.json()["error"]["fields"]],
            [("pet_name", "INVALID_FIELD")],
        )

    def test_request_id_is_echoed(self):
        response = self.client.get("/health", headers={"X-Request-ID": "req-42"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["x-request-id"], "req-42")
        self.assertTrue(self.client.get("/health").headers.get("x-request-id"))


if __name__ == "__main__":
    unittest.main()
