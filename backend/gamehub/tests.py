import json

from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from .pagination import paginate, positive_int

SCHEMA_URL = reverse("schema")
API_DOCS_URL = reverse("api-docs")


# ----------------------------------------------------------------------
# A. API Documentation
# ----------------------------------------------------------------------


class ApiDocsTests(TestCase):
    """The OpenAPI schema and Swagger UI are public."""

    def setUp(self):
        self.client = APIClient()

    def test_schema_lists_endpoints(self):
        """Test GET /api/schema/ describes every app's routes."""
        res = self.client.get(SCHEMA_URL, {"format": "json"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        schema = json.loads(res.content)
        for path in ("/api/users/register/", "/api/posts/", "/api/notifications/", "/api/games/"):
            self.assertIn(path, schema["paths"])

    def test_schema_declares_bearer_jwt(self):
        """Test the JWT scheme is exposed so Swagger UI can send the token."""
        res = self.client.get(SCHEMA_URL, {"format": "json"})

        schemes = json.loads(res.content)["components"]["securitySchemes"]
        self.assertEqual(schemes["jwtAuth"]["scheme"], "bearer")

    def test_swagger_ui_served(self):
        res = self.client.get(API_DOCS_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIn("swagger-ui", res.content.decode())


# ----------------------------------------------------------------------
# B. Pagination Helper
# ----------------------------------------------------------------------


class PaginateTests(SimpleTestCase):
    def test_slices_requested_page(self):
        items, total, total_pages = paginate(list(range(25)), 3, 10)

        self.assertEqual(list(items), [20, 21, 22, 23, 24])
        self.assertEqual(total, 25)
        self.assertEqual(total_pages, 3)

    def test_empty_collection_has_no_pages(self):
        self.assertEqual(paginate([], 1, 10), ([], 0, 0))

    def test_page_past_the_end_is_empty(self):
        items, total, total_pages = paginate(list(range(5)), 4, 10)

        self.assertEqual(list(items), [])
        self.assertEqual((total, total_pages), (5, 1))

    def test_positive_int_fallbacks(self):
        self.assertEqual(positive_int("7", 1), 7)
        self.assertEqual(positive_int("seven", 1), 1)
        self.assertEqual(positive_int("0", 10), 10)
        self.assertEqual(positive_int(None, 10), 10)
