#!/usr/bin/env python3
"""
Tests for the typed action schemas and the role matrix.

USAGE:
    Run from project root: python -m pytest tests/test_action_models.py -v
"""

import unittest

from pydantic import ValidationError

from shopadmin.app.permissions import NOT_LOGGED_IN, check_permission, required_permission
from shopadmin.schemas.action_models import (
    ActionDescriptor,
    Entity,
    Operation,
    ProductCreateParams,
    ProductDeleteParams,
    ProductUpdateParams,
    PurchaseUpdateParams,
    describe_validation_error,
)
from shop_fixtures import ADMIN, STAFF


class TestActionDescriptor(unittest.TestCase):

    def test_parses_case_insensitive_pair(self):
        action = ActionDescriptor.model_validate({"entity": "Product", "operation": "CREATE", "params": None})
        self.assertEqual(action.entity, Entity.product)
        self.assertEqual(action.operation, Operation.create)
        self.assertEqual(action.params, {})

    def test_unknown_entity_rejected(self):
        with self.assertRaises(ValidationError):
            ActionDescriptor.model_validate({"entity": "customer", "operation": "read"})

    def test_typed_params_uses_schema_for_pair(self):
        action = ActionDescriptor(entity="product", operation="update", params={"scope": "ALL", "newStock": "0"})
        params = action.typed_params()
        self.assertIsInstance(params, ProductUpdateParams)
        self.assertEqual(params.scope, "all")
        self.assertEqual(params.new_stock, 0)


class TestParamSchemas(unittest.TestCase):

    def test_camel_case_and_localized_numbers(self):
        p = ProductCreateParams.model_validate(
            {"name": "Gaming Chair", "category": "Chairs", "price": "1.500.000", "initialStock": "5"})
        self.assertEqual(p.price, 1500000)
        self.assertEqual(p.initial_stock, 5)

    def test_snake_case_accepted(self):
        p = ProductCreateParams.model_validate({"name": "Desk", "category": "Tables", "price": 10, "initial_stock": 2})
        self.assertEqual(p.initial_stock, 2)

    def test_blank_strings_become_none(self):
        p = ProductUpdateParams.model_validate({"name": "  ", "newPrice": "", "scope": "single"})
        self.assertIsNone(p.name)
        self.assertIsNone(p.new_price)
        self.assertIsNone(p.scope)

    def test_non_numeric_price_is_a_validation_error(self):
        with self.assertRaises(ValidationError) as ctx:
            ProductCreateParams.model_validate({"name": "Desk", "category": "Tables", "price": "cheap"})
        self.assertIn("price", describe_validation_error(ctx.exception))

    def test_confirm_flag_defaults_false(self):
        self.assertFalse(ProductDeleteParams.model_validate({"scope": "all"}).confirm_delete_all)
        self.assertFalse(ProductDeleteParams.model_validate({"confirmDeleteAll": None}).confirm_delete_all)
        self.assertTrue(ProductDeleteParams.model_validate({"confirmDeleteAll": True}).confirm_delete_all)

    def test_purchase_edit_detection(self):
        self.assertFalse(PurchaseUpdateParams.model_validate({"id": 3, "newStatus": "CANCELLED"}).is_edit)
        self.assertTrue(PurchaseUpdateParams.model_validate({"id": 3, "newQuantity": 2}).is_edit)


class TestRoleMatrix(unittest.TestCase):

    MATRIX = [
        # entity, operation, admin allowed, staff allowed
        (Entity.product, Operation.create, True, True),
        (Entity.product, Operation.read, True, True),
        (Entity.product, Operation.update, True, True),
        (Entity.product, Operation.delete, True, False),
        (Entity.purchase, Operation.create, True, False),
        (Entity.purchase, Operation.read, True, True),
        (Entity.purchase, Operation.update, True, True),
        (Entity.purchase, Operation.delete, True, False),
    ]

    def test_matrix(self):
        for entity, operation, admin_ok, staff_ok in self.MATRIX:
            self.assertEqual(check_permission(ADMIN, entity, operation) is None, admin_ok, (entity, operation))
            self.assertEqual(check_permission(STAFF, entity, operation) is None, staff_ok, (entity, operation))

    def test_guest_denied_everything(self):
        for entity, operation, _, _ in self.MATRIX:
            self.assertEqual(check_permission(None, entity, operation), NOT_LOGGED_IN)

    def test_purchase_edit_is_admin_only(self):
        params = {"id": 4, "newQuantity": 2}
        self.assertEqual(required_permission(Entity.purchase, Operation.update, params), "EDIT_PURCHASE")
        self.assertIsNone(check_permission(ADMIN, Entity.purchase, Operation.update, params))
        self.assertIn("admin", check_permission(STAFF, Entity.purchase, Operation.update, params))

    def test_status_change_is_not_an_edit(self):
        params = {"id": 4, "newStatus": "CANCELLED", "newBuyerName": ""}
        self.assertEqual(required_permission(Entity.purchase, Operation.update, params), "UPDATE_PURCHASE_STATUS")


if __name__ == '__main__':
    unittest.main()
