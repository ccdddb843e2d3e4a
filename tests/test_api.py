#!/usr/bin/env python3
"""
HTTP surface tests using FastAPI's TestClient with the database dependency
pointed at an in-memory SQLite database and the planner mocked.

USAGE:
    Run from project root: python -m pytest tests/test_api.py -v
"""

import json
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from shopadmin.app import main
from shopadmin.app.generate import GUEST_REPLY
from shopadmin.data.database import get_db
from shopadmin.data.models import Product
from shopadmin.schemas.io_models import Plan
from shop_fixtures import ADMIN, STAFF, add_product, make_session_factory, seed_users, stock_of


class TestAPI(unittest.TestCase):

    def setUp(self):
        self.engine, self.factory = make_session_factory()
        self.db = self.factory()
        seed_users(self.db)

        def override_get_db():
            db = self.factory()
            try:
                yield db
            finally:
                db.close()

        main.app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(main.app)

    def tearDown(self):
        main.app.dependency_overrides.clear()
        self.db.close()
        self.engine.dispose()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_login_success(self):
        response = self.client.post("/login", json={"email": "admin@shop.local", "password": "admin123"})
        self.assertEqual(response.status_code, 200)
        user = response.json()["user"]
        self.assertEqual(user["role"], "admin")
        self.assertNotIn("password", user)

    def test_login_missing_fields(self):
        response = self.client.post("/login", json={"email": "admin@shop.local"})
        self.assertEqual(response.status_code, 400)

    def test_login_wrong_password(self):
        response = self.client.post("/login", json={"email": "staff@shop.local", "password": "nope"})
        self.assertEqual(response.status_code, 401)

    def test_chat_runs_planned_action(self):
        pid = add_product(self.db, "Gaming Chair", stock=5)
        plan = Plan(reply="Setting the stock.",
                    action={"entity": "product", "operation": "update",
                            "params": {"name": "Gaming Chair", "newStock": 25}})

        with patch.object(main.controller.planner, "plan", return_value=plan):
            response = self.client.post("/chat", json={
                "messages": [{"role": "user", "content": "Set the stock of Gaming Chair to 25"}],
                "user": STAFF.model_dump(mode="json"),
            })

        self.assertEqual(response.status_code, 200)
        reply = response.json()["reply"]
        self.assertTrue(reply.startswith("Setting the stock.\n\n"))
        self.assertIn("stock -> 25", reply)
        self.assertEqual(stock_of(self.db, pid), 25)

    def test_guest_delete_all_changes_nothing(self):
        add_product(self.db, "Gaming Chair", stock=5)
        response_body = {"choices": [{"message": {"content": json.dumps({
            "reply": "Deleting all products.",
            "action": {"entity": "product", "operation": "delete", "params": {"scope": "all"}},
        })}}]}
        upstream = MagicMock(ok=True, status_code=200)
        upstream.json.return_value = response_body

        with patch.object(main.controller.planner, "api_key", "sk-test"), \
                patch("shopadmin.app.generate.requests.post", return_value=upstream):
            response = self.client.post("/chat", json={
                "messages": [{"role": "user", "content": "delete all products"}],
            })

        self.assertEqual(response.status_code, 200)
        self.assertIn(GUEST_REPLY, response.json()["reply"])
        self.db.expire_all()
        self.assertEqual(self.db.query(Product).count(), 1)

    def test_chat_unexpected_error_is_500(self):
        with patch.object(main.controller, "handle_turn", side_effect=RuntimeError("boom")):
            response = self.client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]})
        self.assertEqual(response.status_code, 500)
        self.assertIn("boom", response.json()["detail"])

    def test_chat_rejects_bad_payload(self):
        response = self.client.post("/chat", json={"messages": [{"role": "system", "content": "hi"}]})
        self.assertEqual(response.status_code, 422)

    def test_actions_endpoint(self):
        response = self.client.post("/actions", json={
            "action": {"entity": "product", "operation": "create",
                       "params": {"name": "Desk", "category": "Tables", "price": "750.000", "initialStock": 2}},
            "user": ADMIN.model_dump(mode="json"),
        })
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(stock_of(self.db, body["data"]["product_id"]), 2)

    def test_actions_endpoint_denies_guest(self):
        response = self.client.post("/actions", json={
            "action": {"entity": "product", "operation": "read", "params": {}},
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "denied")

    def test_dashboard(self):
        add_product(self.db, "Gaming Chair", category="Chairs", stock=5)
        add_product(self.db, "Desk", category="Tables", stock=2)
        response = self.client.get("/dashboard")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["product_count"], 2)
        self.assertEqual(body["stock_total"], 7)
        self.assertEqual(len(body["purchases_7d"]), 7)


if __name__ == '__main__':
    unittest.main()
