"""
Input Validation and Authentication Tests for the task API.

Verifies that malformed payloads and query parameters are rejected with
HTTP 400 and a JSON error envelope, and that every task endpoint refuses
requests without a valid bearer token (HTTP 401).

Key SDET Concepts Demonstrated:
- Negative testing
- Parametrized boundary cases
- Verifying that rejected writes leave stored data untouched
"""

import json

import pytest

from tests.helpers import auth_headers, create_test_token, generate_throwaway_key_pair

pytestmark = pytest.mark.integration


def _error(response) -> str:
    return json.loads(response.data)["error"]


class TestCreateValidation:
    """Tests for rejected POST /api/tasks payloads."""

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"title": ""},
            {"title": "   "},
            {"title": None},
            {"description": "no title"},
        ],
    )
    def test_missing_or_blank_title(self, client, api_headers, payload):
        # Act
        response = client.post("/api/tasks", headers=api_headers, json=payload)

        # Assert
        assert response.status_code == 400
        assert "title" in _error(response)

    def test_title_too_long(self, client, api_headers):
        response = client.post("/api/tasks", headers=api_headers, json={"title": "x" * 256})
        assert response.status_code == 400

    def test_title_at_max_length_is_accepted(self, client, api_headers):
        response = client.post("/api/tasks", headers=api_headers, json={"title": "x" * 255})
        assert response.status_code == 201

    @pytest.mark.parametrize(
        "field, value",
        [
            ("priority", "urgent"),
            ("priority", "HIGH"),
            ("status", "archived"),
            ("status", None),
        ],
    )
    def test_invalid_enum_values(self, client, api_headers, field, value):
        # Act
        response = client.post(
            "/api/tasks", headers=api_headers, json={"title": "T", field: value}
        )

        # Assert
        assert response.status_code == 400
        assert field in _error(response)

    @pytest.mark.parametrize("value", ["not-a-date", "2030-02-30", "12/31/2030"])
    def test_invalid_due_date(self, client, api_headers, value):
        # Act
        response = client.post(
            "/api/tasks", headers=api_headers, json={"title": "T", "dueAt": value}
        )

        # Assert
        assert response.status_code == 400
        assert "dueAt" in _error(response)

    @pytest.mark.parametrize("value", ["first", True, [1], 10**20, "1e30", -(2**63) - 1])
    def test_invalid_position(self, client, api_headers, value):
        response = client.post(
            "/api/tasks", headers=api_headers, json={"title": "T", "position": value}
        )
        assert response.status_code == 400

    def test_numeric_string_position_is_accepted(self, client, api_headers):
        # Act
        response = client.post(
            "/api/tasks", headers=api_headers, json={"title": "T", "position": "12"}
        )

        # Assert
        assert response.status_code == 201
        assert json.loads(response.data)["position"] == 12

    @pytest.mark.parametrize("body", ["not json", "[1, 2]", "null"])
    def test_non_object_body(self, client, api_headers, body):
        # Act
        response = client.post("/api/tasks", headers=api_headers, data=body)

        # Assert
        assert response.status_code == 400
        assert _error(response) == "Request body must be a JSON object"

    def test_rejected_create_stores_nothing(self, client, api_headers):
        # Act
        client.post("/api/tasks", headers=api_headers, json={"title": "T", "priority": "x"})

        # Assert
        assert json.loads(client.get("/api/tasks", headers=api_headers).data) == []


class TestUpdateValidation:
    """Tests for rejected PUT/PATCH payloads."""

    @pytest.mark.parametrize("method", ["put", "patch"])
    def test_empty_title_rejected(self, client, api_headers, sample_task, method):
        # Act
        response = getattr(client, method)(
            f"/api/tasks/{sample_task.id}",
            headers=api_headers,
            json={"title": "", "position": 1},
        )

        # Assert
        assert response.status_code == 400

    def test_rejected_patch_leaves_task_unchanged(self, client, api_headers, sample_task):
        # Act
        response = client.patch(
            f"/api/tasks/{sample_task.id}",
            headers=api_headers,
            json={"title": "Changed", "dueAt": "garbage"},
        )

        # Assert
        assert response.status_code == 400
        stored = json.loads(
            client.get(f"/api/tasks/{sample_task.id}", headers=api_headers).data
        )
        assert stored["title"] == "Sample Task"

    def test_out_of_range_position_rejected(self, client, api_headers, sample_task):
        # Act
        response = client.patch(
            f"/api/tasks/{sample_task.id}", headers=api_headers, json={"position": 10**20}
        )

        # Assert
        assert response.status_code == 400
        assert "position" in _error(response)
        stored = json.loads(
            client.get(f"/api/tasks/{sample_task.id}", headers=api_headers).data
        )
        assert stored["position"] == 3

    def test_invalid_tags(self, client, api_headers, sample_task):
        response = client.patch(
            f"/api/tasks/{sample_task.id}", headers=api_headers, json={"tags": "work"}
        )
        assert response.status_code == 400


class TestListValidation:
    """Tests for rejected GET /api/tasks query parameters."""

    @pytest.mark.parametrize(
        "query",
        [
            "filter[status]=bogus",
            "filter[status]=",
            "filter[priority]=urgent",
            "limit=abc",
            "limit=-1",
            "offset=1.5",
            "limit=99999999999999999999",
            "offset=9223372036854775808",
        ],
    )
    def test_invalid_query_values(self, client, api_headers, query):
        # Act
        response = client.get(f"/api/tasks?{query}", headers=api_headers)

        # Assert
        assert response.status_code == 400
        assert "error" in json.loads(response.data)

    def test_largest_limit_and_offset_are_accepted(self, client, api_headers, sample_task):
        # Act
        response = client.get(
            "/api/tasks?limit=9223372036854775807&offset=0", headers=api_headers
        )

        # Assert
        assert response.status_code == 200
        assert len(json.loads(response.data)) == 1


class TestAuthentication:
    """Tests that task endpoints require a valid bearer token."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/tasks"),
            ("post", "/api/tasks"),
            ("get", "/api/tasks/1"),
            ("put", "/api/tasks/1"),
            ("patch", "/api/tasks/1"),
            ("delete", "/api/tasks/1"),
        ],
    )
    def test_missing_token(self, client, db_session, method, path):
        # Act
        response = getattr(client, method)(path, json={"title": "T"})

        # Assert
        assert response.status_code == 401
        assert "error" in json.loads(response.data)

    def test_expired_token(self, client, user):
        # Arrange
        headers = auth_headers(create_test_token(user.id, user.email, expired=True))

        # Act
        response = client.get("/api/tasks", headers=headers)

        # Assert
        assert response.status_code == 401
        assert _error(response) == "Invalid or expired token"

    def test_token_signed_with_other_key(self, client, user):
        # Arrange
        other_private, _ = generate_throwaway_key_pair()
        headers = auth_headers(create_test_token(user.id, user.email, private_key=other_private))

        # Act
        response = client.get("/api/tasks", headers=headers)

        # Assert
        assert response.status_code == 401

    def test_non_bearer_scheme(self, client, test_token):
        response = client.get("/api/tasks", headers={"Authorization": f"Basic {test_token}"})
        assert response.status_code == 401

    def test_health_is_public(self, client):
        # Act
        response = client.get("/api/health")

        # Assert
        assert response.status_code == 200
        assert json.loads(response.data)["status"] == "healthy"
